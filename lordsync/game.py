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
"""Static information on the supported games (GameInfo and its overrides) and
GameContext, which binds a game to an actual installation. The load order
engines only ever see a GameContext."""
from __future__ import annotations

import dataclasses
from enum import Enum

from . import exception
from .bolt import FName, Path
from .plugin_infos import PluginInfo

class LoMethod(Enum):
    """How a game determines the order its plugins load in."""
    # Order of the plugins' modification times
    TIMESTAMP = 'timestamp'
    # Explicit listing in loadorder.txt
    TEXTFILE = 'textfile'

class GameInfo(object):
    # Main game info - should be overridden -----------------------------------
    # The name of the game that will be shown to the user and that is used to
    # pick the game on the command line and in lordsync.toml
    display_name = '' ## Example: 'Skyrim'
    # Short unique identifier of the game, reported to API users
    game_id = '' ## Example: 'tes5'
    # The main plugin of the game - may be overridden per installation (see
    # GameContext.game_master), e.g. for total conversions
    master_file: FName = FName('')
    # The directory in which plugins reside, relative to the game directory
    mods_dir = 'Data'
    # Name of the game's AppData folder, relative to %LocalAppData%
    appdata_name = ''
    # True if the game keeps plugins.txt in AppData, False to just use the
    # game path
    uses_personal_folders = True
    # The load order method this game uses
    lo_method = LoMethod.TIMESTAMP
    # The record signature every valid plugin of this game starts with
    plugin_sig = b'TES4'
    # File extensions of plugins the game recognizes
    plugin_exts = frozenset({'.esm', '.esp'})
    # Maximum number of plugins the game can have active at once
    max_active_plugins = 255
    # True if the game always loads its master file, whether it is listed in
    # the active plugins file or not
    master_always_active = False
    # A master that is always active if installed, in addition to the game
    # master. Only meaningful when master_always_active is True
    update_master: FName | None = None

    class Ini(object):
        """Information about this game's INI handling."""
        # INI files of the game, the first one *must* be the main INI, which
        # is read for bUseMyGamesDirectory
        #  Example: ['Oblivion.ini']
        dropdown_inis = []
        # If not None, the active plugins are stored in this INI instead of
        # plugins.txt. Format is (INI Name, section, entry format string),
        # where the entry format receives a %(lo_idx)s argument
        ini_key_actives = None
        # The encoding the game expects for plugin names in its INIs
        ini_encoding = 'cp1252'

class MorrowindGameInfo(GameInfo):
    """GameInfo override for TES III: Morrowind."""
    display_name = 'Morrowind'
    game_id = 'tes3'
    master_file = FName('Morrowind.esm')
    mods_dir = 'Data Files'
    appdata_name = 'Morrowind'
    uses_personal_folders = False
    plugin_sig = b'TES3'

    class Ini(GameInfo.Ini):
        dropdown_inis = ['Morrowind.ini']
        ini_key_actives = ('Morrowind.ini', 'Game Files',
                           'GameFile%(lo_idx)s')

class OblivionGameInfo(GameInfo):
    """GameInfo override for TES IV: Oblivion."""
    display_name = 'Oblivion'
    game_id = 'tes4'
    master_file = FName('Oblivion.esm')
    appdata_name = 'Oblivion'

    class Ini(GameInfo.Ini):
        dropdown_inis = ['Oblivion.ini']

class NehrimGameInfo(OblivionGameInfo):
    """GameInfo override for Nehrim: At Fate's Edge."""
    display_name = 'Nehrim'
    game_id = 'nehrim'
    master_file = FName('Nehrim.esm')

class Fallout3GameInfo(GameInfo):
    """GameInfo override for Fallout 3."""
    display_name = 'Fallout3'
    game_id = 'fo3'
    master_file = FName('Fallout3.esm')
    appdata_name = 'Fallout3'

    class Ini(GameInfo.Ini):
        dropdown_inis = ['Fallout.ini', 'FalloutPrefs.ini']

class FalloutNVGameInfo(Fallout3GameInfo):
    """GameInfo override for Fallout: New Vegas."""
    display_name = 'FalloutNV'
    game_id = 'fonv'
    master_file = FName('FalloutNV.esm')
    appdata_name = 'FalloutNV'

class SkyrimGameInfo(GameInfo):
    """GameInfo override for TES V: Skyrim."""
    display_name = 'Skyrim'
    game_id = 'tes5'
    master_file = FName('Skyrim.esm')
    appdata_name = 'Skyrim'
    lo_method = LoMethod.TEXTFILE
    master_always_active = True
    update_master = FName('Update.esm')

    class Ini(GameInfo.Ini):
        dropdown_inis = ['Skyrim.ini', 'SkyrimPrefs.ini']

game_types: dict[str, type[GameInfo]] = {g.display_name.lower(): g for g in (
    MorrowindGameInfo, OblivionGameInfo, NehrimGameInfo, Fallout3GameInfo,
    FalloutNVGameInfo, SkyrimGameInfo)}

def get_game_info(game_name: str) -> type[GameInfo]:
    """Return the GameInfo type for the game with the specified display name
    (case insensitive)."""
    try:
        return game_types[game_name.lower()]
    except KeyError:
        supported = ', '.join(g.display_name for g in game_types.values())
        raise exception.ArgumentError(
            f'Unsupported game {game_name!r}. Supported games: '
            f'{supported}') from None

@dataclasses.dataclass(frozen=True)
class GameContext:
    """A game installation: the game type, the directory the game is installed
    in and the directory holding its plugins.txt/loadorder.txt. Immutable, use
    dataclasses.replace to get one with another game master."""
    game: type[GameInfo]
    game_path: Path
    local_path: Path
    # Overrides game.master_file if set
    game_master: FName | None = None
    # The type used to answer questions about single plugins
    plugin_type: type[PluginInfo] = PluginInfo

    @property
    def game_id(self) -> str:
        return self.game.game_id

    @property
    def lo_method(self) -> LoMethod:
        return self.game.lo_method

    @property
    def master_file(self) -> FName:
        return self.game_master or self.game.master_file

    @property
    def master_always_active(self) -> bool:
        return self.game.master_always_active

    @property
    def update_master(self) -> FName | None:
        return self.game.update_master

    @property
    def max_active_plugins(self) -> int:
        return self.game.max_active_plugins

    @property
    def ini_key_actives(self):
        return self.game.Ini.ini_key_actives

    @property
    def plugins_dir(self) -> Path:
        return self.game_path.join(self.game.mods_dir)

    @property
    def active_plugins_file(self) -> Path:
        if ini_key := self.ini_key_actives:
            return self.game_path.join(ini_key[0])
        return self.local_path.join('plugins.txt')

    @property
    def loadorder_file(self) -> Path | None:
        """The file holding the load order of all plugins, None for games
        using timestamps."""
        if self.lo_method is LoMethod.TEXTFILE:
            return self.local_path.join('loadorder.txt')
        return None

    def plugin_info(self, fn_plugin: str) -> PluginInfo:
        return self.plugin_type(FName(fn_plugin), self)
