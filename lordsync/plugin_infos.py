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
"""PluginInfo answers the questions the load order engines ask about a single
plugin: is it installed, is it a plugin of the current game, is it a master,
which masters does it depend on and what is its modification time. Ghosted
plugins (Plugin.esp.ghost) are transparently handled as Plugin.esp."""
from __future__ import annotations

from . import exception
from .bolt import FName, Path

_GHOST_EXT = '.ghost'

class PluginInfo:
    """Default plugin capability. Classifies masters by their extension and
    reports no masters - override get_masters/is_master in a subclass and pass
    it to the GameContext to plug in real header parsing."""
    __slots__ = ('fn_key', '_ctx')

    def __init__(self, fn_key: FName, ctx):
        self.fn_key = fn_key
        self._ctx = ctx

    @property
    def abs_path(self) -> Path:
        """The path of the plugin file - the ghosted one if only that exists.
        """
        plugins_dir = self._ctx.plugins_dir
        plain = plugins_dir.join(self.fn_key)
        if plain.is_file():
            return plain
        if (ghost := plain + _GHOST_EXT).is_file():
            return ghost
        # case sensitive file systems - look for the name as spelled on disk
        on_disk = {fn: fn for fn in plugins_dir.ilist()}
        for fn_look in (self.fn_key, FName(f'{self.fn_key}{_GHOST_EXT}')):
            if (real_fn := on_disk.get(fn_look)) is not None:
                return plugins_dir.join(real_fn)
        return plain

    def exists(self) -> bool:
        return self.abs_path.is_file()

    def has_valid_ext(self) -> bool:
        return self.fn_key.fn_ext.lower() in self._ctx.game.plugin_exts

    def is_valid(self) -> bool:
        """A valid plugin has a plugin extension, is installed and starts with
        the record signature of the current game."""
        if not self.has_valid_ext():
            return False
        try:
            with open(self.abs_path, 'rb') as ins:
                return ins.read(4) == self._ctx.game.plugin_sig
        except OSError: # not installed or not a file
            return False

    def is_master(self) -> bool:
        return self.fn_key.fn_ext == '.esm'

    def get_masters(self) -> tuple[FName, ...]:
        """Return the masters this plugin depends on."""
        return ()

    @property
    def ftime(self) -> float:
        try:
            return self.abs_path.mtime
        except OSError as e:
            raise exception.TimestampReadError(self.abs_path, e) from e

    def setmtime(self, set_time: float):
        try:
            self.abs_path.mtime = set_time
        except OSError as e:
            raise exception.TimestampWriteError(self.abs_path, e) from e

    def __repr__(self):
        return f'{self.__class__.__name__}<{self.fn_key}>'

def installed_plugins(ctx) -> list[FName]:
    """Return all valid plugins in the plugins directory of the game, sorted by
    modification time and then by name. Ghosted plugins are reported without
    the .ghost extension."""
    fn_mtimes = {}
    for fn_plugin in ctx.plugins_dir.ilist():
        if fn_plugin.fn_ext == _GHOST_EXT:
            fn_plugin = fn_plugin.fn_body
        if fn_plugin in fn_mtimes:
            continue # both the plugin and its ghost are present
        if (pinf := ctx.plugin_info(fn_plugin)).is_valid():
            fn_mtimes[fn_plugin] = pinf.ftime
    return sorted(fn_mtimes, key=lambda fn: (fn_mtimes[fn], fn))
