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
"""Load order management API.

Notes:
- LoHandle owns the two engines, LoadOrder and ActivePlugins, and is the only
place where they meet: saving the load order of games using loadorder.txt
rewrites plugins.txt too, as the active plugins must be listed there in load
order.
- every getter reloads whatever changed on disk since it was last synced,
every setter saves what it changed right away.
- plugins whose names could not be encoded when writing the active plugins
file are skipped and reported once, after the file was written.
"""
from __future__ import annotations

__author__ = 'Utumno'

import dataclasses
from collections.abc import Iterable

from . import bolt
from ._games_lo import ActivePlugins, FixInfo, LoadOrder, LoTuple
from .bolt import FName
from .game import GameContext, LoMethod

class LoHandle:
    """Load order and active plugins of a single game installation."""

    def __init__(self, ctx: GameContext):
        self._ctx = ctx
        self._lo = LoadOrder()
        self._active = ActivePlugins()
        self._print_lo_paths()

    def _print_lo_paths(self):
        """Prints the paths that will be used and what they'll be used for.
        Useful for debugging."""
        bolt.deprint(f'Using the following load order files for '
                     f'{self._ctx.game.display_name}:')
        bolt.deprint(f' - Active plugins: {self._ctx.active_plugins_file}')
        if (lo_txt := self._ctx.loadorder_file) is not None:
            bolt.deprint(f' - Load order: {lo_txt}')
        else:
            bolt.deprint(f' - Load order: timestamps of plugins in '
                         f'{self._ctx.plugins_dir}')

    @property
    def game_context(self) -> GameContext:
        return self._ctx

    # Syncing -----------------------------------------------------------------
    def load_current_state(self):
        """Reload the load order and the active plugins if they changed on
        disk."""
        self._refresh_lo()
        self._refresh_active()

    def _refresh_lo(self):
        if self._lo.has_changed(self._ctx):
            self._lo.load(self._ctx)

    def _refresh_active(self):
        if self._active.has_changed(self._ctx):
            self._active.load(self._ctx)

    def _save_lo(self) -> list[FName]:
        """Save the load order. Games using loadorder.txt need their active
        plugins rewritten in the new order too."""
        self._lo.save(self._ctx)
        if self._ctx.lo_method is LoMethod.TEXTFILE:
            self._refresh_active()
            return self._save_active()
        return []

    def _save_active(self) -> list[FName]:
        bad_encodes = self._active.save(self._ctx,
                                        self._lo.get_load_order())
        if bad_encodes:
            bolt.deprint(f'The following plugins could not be encoded and '
                         f'were skipped from {self._ctx.active_plugins_file}: '
                         f'{", ".join(bad_encodes)}')
        return bad_encodes

    # Load order --------------------------------------------------------------
    def get_load_order(self) -> LoTuple:
        self._refresh_lo()
        return self._lo.get_load_order()

    def set_load_order(self, lord: Iterable[str]) -> list[FName]:
        """Set and save the load order. Return the plugins that could not be
        written to the active plugins file."""
        self._refresh_lo()
        self._lo.set_load_order(lord, self._ctx)
        return self._save_lo()

    def get_plugin_position(self, plugin: str) -> int:
        self._refresh_lo()
        return self._lo.get_position(plugin)

    def set_plugin_position(self, plugin: str, index: int) -> list[FName]:
        self._refresh_lo()
        self._lo.set_position(plugin, index, self._ctx)
        return self._save_lo()

    def get_indexed_plugin(self, index: int) -> FName:
        self._refresh_lo()
        return self._lo.get_plugin_at_position(index)

    # Active plugins ----------------------------------------------------------
    def get_active_plugins(self) -> LoTuple:
        self._refresh_active()
        return self._active.get_active()

    def set_active_plugins(self, active: Iterable[str]) -> list[FName]:
        self._refresh_lo()
        self._active.set_active(active, self._ctx)
        return self._save_active()

    def is_plugin_active(self, plugin: str) -> bool:
        self._refresh_active()
        return self._active.is_active(plugin)

    def set_plugin_active(self, plugin: str, active=True) -> list[FName]:
        self._refresh_lo()
        self._refresh_active()
        self._active.set_plugin_active(plugin, active, self._ctx)
        return self._save_active()

    # Misc --------------------------------------------------------------------
    def set_game_master(self, master: str):
        """Use another plugin as the game master, for instance for total
        conversions."""
        self._ctx = dataclasses.replace(self._ctx, game_master=FName(master))
        bolt.deprint(f'Game master set to {self._ctx.master_file}')
        # master dependent state, reload it on next access
        self._lo.clear()
        self._active.clear()

    def check_validity(self):
        """Raise an InvalidListWarning for the first problem found in the load
        order, then in the active plugins."""
        self.load_current_state()
        self._lo.check_validity(self._ctx)
        self._active.check_validity(self._ctx)

    def fix_plugin_lists(self) -> FixInfo:
        """Fix and save the load order and the active plugins so that
        check_validity passes. Return a FixInfo with the changes made."""
        self.load_current_state()
        fix = FixInfo()
        self._lo.fix_load_order(self._ctx, fix)
        self._active.fix_active_plugins(self._ctx, self._lo.get_load_order(),
                                        fix)
        if fix.lo_changed():
            self._lo.save(self._ctx)
        if fix.act_changed() or (fix.lo_changed() and
                                 self._ctx.lo_method is LoMethod.TEXTFILE):
            self._save_active()
        fix.lo_deprint()
        return fix
