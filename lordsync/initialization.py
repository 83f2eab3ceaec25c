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
"""Functions for initializing a GameContext on boot: reading the boot settings
and figuring out where the game keeps its plugins.txt/loadorder.txt."""
from __future__ import annotations

import io
import os
import tomllib
from configparser import ConfigParser, MissingSectionHeaderError

from . import bass
from .bolt import FName, GPath, Path, decoder, deprint
from .exception import ArgumentError, FileError
from .game import GameContext, GameInfo, get_game_info
from .plugin_infos import PluginInfo

def read_boot_settings(toml_path) -> dict:
    """Read the settings file into bass.boot_settings, filling in defaults for
    anything missing. A missing file just means defaults."""
    try:
        with open(toml_path, 'rb') as ins:
            parsed = tomllib.load(ins)
    except FileNotFoundError:
        deprint(f'{toml_path} not found, using default settings')
        parsed = {}
    except tomllib.TOMLDecodeError as e:
        raise FileError(toml_path, f'Malformed TOML syntax: {e}') from e
    for section, defaults in bass.boot_settings_defaults.items():
        bass.boot_settings[section] = {**defaults, **parsed.get(section, {})}
    return bass.boot_settings

def _get_ini_option(ini_parser, option_key) -> str | None:
    if not ini_parser:
        return None
    # logic for getting the path from the ini - get(section, key,
    # fallback=default). section is case sensitive - key is not
    return ini_parser.get('General', option_key, fallback=None)

def _read_game_ini(game_ini_path: Path) -> ConfigParser | None:
    """Parse the main INI in the game directory, None if it does not exist or
    is not a valid game INI."""
    if not game_ini_path.is_file():
        return None
    game_ini = ConfigParser(allow_no_value=True, strict=False)
    try:
        try:
            # Try UTF-8 first, will also work for ASCII-encoded files
            game_ini.read(game_ini_path, encoding='utf8')
        except UnicodeDecodeError:
            # No good, this is a nonstandard encoding
            with game_ini_path.open('rb') as ins:
                ini_contents = ins.read()
            game_ini.read_file(io.StringIO(decoder(ini_contents)))
    except MissingSectionHeaderError:
        # Probably not actually a game INI - might be reshade
        deprint(f'The global INI file in your game directory '
                f'({game_ini_path}) does not appear to be a valid game INI, '
                f'ignoring it')
        return None
    return game_ini

def get_local_path(game_info: type[GameInfo], game_path: Path) -> Path:
    """Return the directory holding the plugins.txt of the game. Attempt, in
    order:
     - the game directory, for games that don't use AppData or if the main
       game INI sets bUseMyGamesDirectory to 0
     - %LOCALAPPDATA%
     - ~/.local/share"""
    if not game_info.uses_personal_folders:
        return game_path
    # The game reads the INI in its directory first, and only if
    # bUseMyGamesDirectory is non-existent or set to 1 does it use AppData
    if game_info.Ini.dropdown_inis:
        game_ini = _read_game_ini(
            game_path.join(game_info.Ini.dropdown_inis[0]))
        if _get_ini_option(game_ini, 'bUseMyGamesDirectory') == '0':
            return game_path
    if local_app_data := os.environ.get('LOCALAPPDATA'):
        local_app_data = GPath(local_app_data)
    else:
        local_app_data = GPath(os.path.expanduser('~')).join('.local',
                                                             'share')
    return local_app_data.join(game_info.appdata_name)

def init_context(game_name: str, game_path, local_path=None, *,
                 game_master: str | None = None,
                 plugin_type: type[PluginInfo] = PluginInfo) -> GameContext:
    """Create the GameContext of the specified game installation. If
    local_path is not given, it is detected."""
    if not game_path:
        raise ArgumentError(f'No game path specified for {game_name}')
    game_info = get_game_info(game_name)
    game_path = GPath(game_path)
    if local_path:
        local_path = GPath(local_path)
    else:
        local_path = get_local_path(game_info, game_path)
    deprint(f'{game_info.display_name} game path set to {game_path}')
    deprint(f'{game_info.display_name} local path set to {local_path}')
    return GameContext(game_info, game_path, local_path,
        game_master=FName(game_master) if game_master else None,
        plugin_type=plugin_type)

