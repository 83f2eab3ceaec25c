# -*- coding: utf-8 -*-
#
# GPL License and Copyright Notice ============================================
#  This file is part of Wrye Bash.
#
#  Wrye Bash is free software: you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation, either version 3
#  of the License, or (at your option) any later version.
#
#  Wrye Bash is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with Wrye Bash.  If not, see <https://www.gnu.org/licenses/>.
#
#  Wrye Bash copyright (C) 2005-2009 Wrye, 2010-2024 Wrye Bash Team
#  https://github.com/wrye-bash
#
# =============================================================================
"""This module parses the command line that was used to start lordsync."""

import argparse

from . import bass

def parse(argv=None):
    """Helper function to define commandline arguments"""
    parser = argparse.ArgumentParser(prog='lordsync',
        description='Inspect and edit the load order and the active plugins '
                    'of a game installation.')

    #### Groups ####
    def arg(group, dashed, descr, dest, action='store', dflt=None):
        group.add_argument(dashed, descr, dest=dest, action=action,
                           default='' if dflt is None else dflt,
                           help=h) # so we can wrap help but not too much

    ### Path Group ###
    pathGroup = parser.add_argument_group('Path Arguments',
        'All path arguments must be absolute paths. All of these can also be '
        'set in the settings file and if set in both cmd line takes '
        'precedence.')
    # game #
    h = 'Specifies the game to manage, e.g. Skyrim or Morrowind.'
    arg(pathGroup, '-g', '--game', dest='game')
    # gamePath #
    h = ("Specifies the game directory (the one containing the game's exe "
         'and its Data folder).')
    arg(pathGroup, '-o', '--gamePath', dest='gamePath')
    # localPath #
    h = ('Specifies the directory holding plugins.txt and loadorder.txt. If '
         'not set it is detected from the game INI and %%LOCALAPPDATA%%.')
    arg(pathGroup, '-l', '--localPath', dest='localPath')
    # config #
    h = (f'The TOML settings file to read the game and its paths from. '
         f'Defaults to {bass.default_settings_file}.')
    arg(pathGroup, '-c', '--config', dest='config',
        dflt=bass.default_settings_file)

    #### Commands ####
    commands = parser.add_subparsers(dest='command', required=True,
                                     metavar='command')
    commands.add_parser('lo', help='Print the load order, marking active '
                                   'plugins with an asterisk.')
    commands.add_parser('active', help='Print the active plugins.')
    commands.add_parser('check', help='Check the load order and the active '
                                      'plugins for problems.')
    commands.add_parser('fix', help='Fix any problems found in the load '
                                    'order and the active plugins.')
    set_pos = commands.add_parser('set-position',
                                  help='Move a plugin to a load order index.')
    set_pos.add_argument('plugin')
    set_pos.add_argument('index', type=int)
    for cmd, cmd_help in (('activate', 'Activate a plugin.'),
                          ('deactivate', 'Deactivate a plugin.'),
                          ('set-master', 'Use another plugin as the game '
                                         'master, e.g. for total '
                                         'conversions.')):
        commands.add_parser(cmd, help=cmd_help).add_argument('plugin')
    return parser.parse_args(argv)
