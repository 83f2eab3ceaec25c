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
"""This module starts lordsync from the command line. Use it like
'python -m lordsync -g Skyrim -o <game dir> lo'."""

import sys

from . import bass, barg, bolt, exception, initialization
from .load_order import LoHandle

def _print_plugins(plugins, active=()):
    for i, fn_plugin in enumerate(plugins):
        print(f'{i:3d} {"*" if fn_plugin in active else " "} {fn_plugin}')

def _run_command(opts, lo_handle: LoHandle):
    """Dispatch the command the user specified on lo_handle."""
    match opts.command:
        case 'lo':
            _print_plugins(lo_handle.get_load_order(),
                           set(lo_handle.get_active_plugins()))
        case 'active':
            for fn_plugin in lo_handle.get_active_plugins():
                print(fn_plugin)
        case 'check':
            lo_handle.check_validity()
            print('Load order and active plugins are valid.')
        case 'fix':
            fix = lo_handle.fix_plugin_lists()
            if not (fix.lo_changed() or fix.act_changed()):
                print('Nothing to fix.')
        case 'set-position':
            lo_handle.set_plugin_position(opts.plugin, opts.index)
        case 'activate':
            lo_handle.set_plugin_active(opts.plugin)
        case 'deactivate':
            lo_handle.set_plugin_active(opts.plugin, active=False)
        case 'set-master':
            lo_handle.set_game_master(opts.plugin)
            _print_plugins(lo_handle.get_load_order(),
                           set(lo_handle.get_active_plugins()))

def main(argv=None):
    """Parse the command line, set up the game and run the command. Return
    0 on success, 1 on errors and 2 if the plugin lists were found invalid.

    :param argv: the command line arguments, defaults to sys.argv[1:]"""
    opts = barg.parse(argv)
    try:
        game_settings = initialization.read_boot_settings(opts.config)['Game']
        # the command line takes precedence over the settings file
        game_name = opts.game or game_settings['name']
        if not game_name:
            raise exception.ArgumentError(
                'No game specified, use --game or set it in '
                f'{opts.config}')
        ctx = initialization.init_context(game_name,
            opts.gamePath or game_settings['game_path'],
            opts.localPath or game_settings['local_path'])
        _run_command(opts, LoHandle(ctx))
    except exception.InvalidListWarning as e:
        print(f'Warning: {e}')
        return 2
    except exception.BoltError as e:
        bolt.deprint(f'lordsync {bass.AppVersion} failed: {e}')
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())
