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
"""Fixtures creating fake game installations in pytest's tmp_path: a plugins
directory holding a few plugins with increasing modification times plus a
separate local directory for plugins.txt/loadorder.txt."""
import os

import pytest

from ..initialization import init_context

# Modification time of the first plugin, the next ones are _MTIME_STEP apart
BASE_MTIME = 1_300_000_000
_MTIME_STEP = 100

def make_plugin(plugins_dir, plugin_name, mtime, sig=b'TES4'):
    """Create a plugin whose header starts with sig and set its mtime."""
    plugin_path = os.path.join(plugins_dir, plugin_name)
    with open(plugin_path, 'wb') as out:
        out.write(sig + b'\x00' * 20)
    os.utime(plugin_path, (mtime, mtime))
    return plugin_path

def write_lines(file_path, lines, encoding='utf-8'):
    with open(file_path, 'wb') as out:
        out.write(''.join(f'{l}\r\n' for l in lines).encode(encoding))

def read_lines(file_path, encoding='utf-8'):
    with open(file_path, 'rb') as ins:
        return ins.read().decode(encoding).splitlines()

def _make_game(tmp_path, game_dir, mods_dir, plugins, sig=b'TES4'):
    """Create the game, plugins and local directories - the plugins get
    increasing mtimes in the order given. Return the game and local
    directories as strings."""
    plugins_dir = tmp_path / game_dir / mods_dir
    plugins_dir.mkdir(parents=True)
    local_dir = tmp_path / 'local'
    local_dir.mkdir(exist_ok=True) # shared by all games of a test
    for i, plugin_name in enumerate(plugins):
        make_plugin(plugins_dir, plugin_name, BASE_MTIME + i * _MTIME_STEP,
                    sig)
    make_plugin(plugins_dir, 'NotAPlugin.esp',
                BASE_MTIME + len(plugins) * _MTIME_STEP, sig=b'XXXX')
    return str(tmp_path / game_dir), str(local_dir)

SKYRIM_PLUGINS = ('Skyrim.esm', 'Blank.esm', 'Blank - Different.esm',
                  'Blank.esp', 'Blank - Different.esp',
                  'Blank - Master Dependent.esp', 'Update.esm')
# What a fresh installation loads as - the game and update masters first,
# then the other masters and the rest in modification time order
SKYRIM_DEFAULT_LO = ['Skyrim.esm', 'Update.esm', 'Blank.esm',
                     'Blank - Different.esm', 'Blank.esp',
                     'Blank - Different.esp', 'Blank - Master Dependent.esp']

@pytest.fixture
def skyrim_dirs(tmp_path):
    return _make_game(tmp_path, 'Skyrim', 'Data', SKYRIM_PLUGINS)

@pytest.fixture
def skyrim_ctx(skyrim_dirs):
    return init_context('Skyrim', *skyrim_dirs)

OBLIVION_PLUGINS = ('Oblivion.esm', 'Blank.esm', 'Blank.esp',
                    'Blank - Different.esp', 'Blank - Different.esm')

@pytest.fixture
def oblivion_dirs(tmp_path):
    return _make_game(tmp_path, 'Oblivion', 'Data', OBLIVION_PLUGINS)

@pytest.fixture
def oblivion_ctx(oblivion_dirs):
    return init_context('Oblivion', *oblivion_dirs)

MORROWIND_PLUGINS = ('Morrowind.esm', 'Blank.esm', 'Blank.esp')
MORROWIND_INI = (b'[General]\r\nfoo=bar\r\n[Game Files]\r\n'
                 b'GameFile0=Morrowind.esm\r\nGameFile1=Blank.esp\r\n'
                 b'GameFile2=Missing.esp\r\n[Archives]\r\n'
                 b'Archive 0=Blank.bsa\r\n')

@pytest.fixture
def morrowind_dirs(tmp_path):
    game_dir, local_dir = _make_game(tmp_path, 'Morrowind', 'Data Files',
                                     MORROWIND_PLUGINS, sig=b'TES3')
    with open(os.path.join(game_dir, 'Morrowind.ini'), 'wb') as out:
        out.write(MORROWIND_INI)
    return game_dir, local_dir

@pytest.fixture
def morrowind_ctx(morrowind_dirs):
    # Morrowind keeps everything in the game directory
    return init_context('Morrowind', morrowind_dirs[0])
