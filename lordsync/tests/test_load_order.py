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
"""Tests for the load order half of LoHandle, for both the timestamp and the
textfile load order methods."""
import dataclasses
import os

import pytest

from .. import exception
from ..bolt import FName
from ..load_order import LoHandle
from ..plugin_infos import PluginInfo, installed_plugins
from .conftest import BASE_MTIME, SKYRIM_DEFAULT_LO, make_plugin, \
    read_lines, write_lines

# Installed plugins appended to a loadorder.txt starting with Skyrim.esm and
# Blank.esm
_APPENDED_LO = ['Skyrim.esm', 'Blank.esm', 'Blank - Different.esm',
                'Update.esm', 'Blank.esp', 'Blank - Different.esp',
                'Blank - Master Dependent.esp']

def _lo_txt(ctx):
    return ctx.local_path.join('loadorder.txt')

def _plugins_txt(ctx):
    return ctx.local_path.join('plugins.txt')

class TestTextfileLoad(object):
    def test_fresh_install(self, skyrim_ctx):
        """No loadorder.txt nor plugins.txt - the game master goes first,
        masters are added after the last master."""
        lo_handle = LoHandle(skyrim_ctx)
        assert lo_handle.get_load_order() == tuple(SKYRIM_DEFAULT_LO)
        assert all(type(p) is FName for p in lo_handle.get_load_order())

    def test_from_loadorder_txt(self, skyrim_ctx):
        write_lines(_lo_txt(skyrim_ctx), ['Skyrim.esm', 'Blank.esp',
            'Blank - Different.esm', 'Missing.esp', 'NotAPlugin.esp',
            'blank.esm'])
        assert LoHandle(skyrim_ctx).get_load_order() == (
            'Skyrim.esm', 'Blank - Different.esm', 'blank.esm', 'Update.esm',
            'Blank.esp', 'Blank - Different.esp',
            'Blank - Master Dependent.esp')

    def test_from_plugins_txt(self, skyrim_ctx):
        """Without loadorder.txt the order of plugins.txt is used, which does
        not list the game master."""
        write_lines(_plugins_txt(skyrim_ctx), ['Blank.esp', 'Blank.esm'])
        assert LoHandle(skyrim_ctx).get_load_order() == (
            'Skyrim.esm', 'Blank.esm', 'Update.esm', 'Blank - Different.esm',
            'Blank.esp', 'Blank - Different.esp',
            'Blank - Master Dependent.esp')

    def test_ghosted_plugins(self, skyrim_ctx):
        ghosted = skyrim_ctx.plugins_dir.join('Blank - Different.esp')
        os.rename(ghosted, ghosted + '.ghost')
        write_lines(_lo_txt(skyrim_ctx), ['Skyrim.esm',
                                          'Blank - Different.esp.ghost'])
        lord = LoHandle(skyrim_ctx).get_load_order()
        assert lord[:5] == ('Skyrim.esm', 'Blank.esm',
                            'Blank - Different.esm', 'Update.esm',
                            'Blank - Different.esp')
        assert 'Blank - Different.esp.ghost' not in lord

    def test_reload_on_change(self, skyrim_ctx):
        lo_handle = LoHandle(skyrim_ctx)
        assert lo_handle.get_load_order() == tuple(SKYRIM_DEFAULT_LO)
        new_lo = ['Skyrim.esm', 'Update.esm', 'Blank.esm']
        write_lines(_lo_txt(skyrim_ctx), new_lo)
        # make sure the change is visible even on coarse timestamps
        os.utime(_lo_txt(skyrim_ctx), (BASE_MTIME * 2, BASE_MTIME * 2))
        assert lo_handle.get_load_order()[:3] == tuple(new_lo)

class TestTextfileSetLoadOrder(object):
    def test_save_load_roundtrip(self, skyrim_ctx):
        lord = LoHandle(skyrim_ctx).get_load_order()
        LoHandle(skyrim_ctx).set_load_order(lord)
        assert read_lines(_lo_txt(skyrim_ctx)) == list(lord)
        assert LoHandle(skyrim_ctx).get_load_order() == lord

    def test_set_load_order(self, skyrim_ctx):
        lo_handle = LoHandle(skyrim_ctx)
        lord = ['Skyrim.esm', 'Update.esm', 'Blank - Different.esm',
                'Blank.esm', 'Blank - Master Dependent.esp', 'Blank.esp']
        assert lo_handle.set_load_order(lord) == []
        assert lo_handle.get_load_order() == tuple(lord)
        assert read_lines(_lo_txt(skyrim_ctx)) == lord
        # the active plugins are rewritten in load order, minus the master
        assert read_lines(_plugins_txt(skyrim_ctx)) == ['Update.esm']
        # a new handle sees the same load order, plus missing plugins
        assert LoHandle(skyrim_ctx).get_load_order() == (*lord,
            'Blank - Different.esp')

    def test_names_in_other_case(self, skyrim_ctx):
        assert skyrim_ctx.plugin_info('blank.esp').is_valid()
        assert skyrim_ctx.plugin_info('BLANK.ESM').is_master()
        lo_handle = LoHandle(skyrim_ctx)
        lord = ['skyrim.esm', 'UPDATE.ESM', 'blank.esm', 'blank.esp']
        lo_handle.set_load_order(lord)
        assert lo_handle.get_load_order() == tuple(lord)

    @pytest.mark.parametrize('lord, exc_type', [
        (['Blank.esm', 'Skyrim.esm'], exception.MasterNotFirstError),
        ([], exception.MasterNotFirstError),
        (['Skyrim.esm', 'Blank.esp', 'Blank.esm'],
         exception.MastersNotPartitionedError),
        (['Skyrim.esm', 'Blank.esm', 'BLANK.esm'],
         exception.DuplicatePluginError),
        (['Skyrim.esm', 'NotAPlugin.esp'], exception.InvalidPluginError),
        (['Skyrim.esm', 'Missing.esp'], exception.PluginNotFoundError),
    ])
    def test_invalid_load_order(self, skyrim_ctx, lord, exc_type):
        lo_handle = LoHandle(skyrim_ctx)
        with pytest.raises(exc_type):
            lo_handle.set_load_order(lord)
        # nothing changed, nothing written
        assert lo_handle.get_load_order() == tuple(SKYRIM_DEFAULT_LO)
        assert not _lo_txt(skyrim_ctx).exists()

class TestTextfilePosition(object):
    def test_get_position(self, skyrim_ctx):
        lo_handle = LoHandle(skyrim_ctx)
        assert lo_handle.get_plugin_position('Skyrim.esm') == 0
        assert lo_handle.get_plugin_position('BLANK.ESP') == 4
        # not in the load order, the length of it
        assert lo_handle.get_plugin_position('Missing.esp') == len(
            SKYRIM_DEFAULT_LO)
        assert lo_handle.get_indexed_plugin(0) == 'Skyrim.esm'
        assert lo_handle.get_indexed_plugin(6) == \
               'Blank - Master Dependent.esp'
        with pytest.raises(exception.PositionOutOfRangeError):
            lo_handle.get_indexed_plugin(7)
        with pytest.raises(exception.PositionOutOfRangeError):
            lo_handle.get_indexed_plugin(-1)

    def test_set_position(self, skyrim_ctx):
        lo_handle = LoHandle(skyrim_ctx)
        lo_handle.set_plugin_position('Blank.esm', 3)
        assert lo_handle.get_load_order()[:4] == (
            'Skyrim.esm', 'Update.esm', 'Blank - Different.esm', 'Blank.esm')
        # past the end appends
        lo_handle.set_plugin_position('blank.esp', 100)
        assert lo_handle.get_load_order()[-1] == 'Blank.esp'
        assert FName(read_lines(_lo_txt(skyrim_ctx))[-1]) == 'Blank.esp'
        # a non-master may move to the first non-master position
        lo_handle.set_plugin_position('Blank.esp', 4)
        assert lo_handle.get_plugin_position('Blank.esp') == 4
        # the game master may stay first
        lo_handle.set_plugin_position('Skyrim.esm', 0)
        assert lo_handle.get_indexed_plugin(0) == 'Skyrim.esm'

    @pytest.mark.parametrize('plugin, index, exc_type', [
        ('Blank.esp', 0, exception.MasterNotFirstError),
        ('Skyrim.esm', 1, exception.MasterNotFirstError),
        ('Blank.esp', 2, exception.PluginPositionError),
        ('Blank.esm', 5, exception.PluginPositionError),
        # would end up after Blank.esp once removed from index 2
        ('Blank.esm', 4, exception.PluginPositionError),
        ('NotAPlugin.esp', 5, exception.InvalidPluginError),
        ('Missing.esp', 5, exception.PluginNotFoundError),
        ('Blank.esp', -1, exception.PositionOutOfRangeError),
    ])
    def test_set_position_invalid(self, skyrim_ctx, plugin, index, exc_type):
        lo_handle = LoHandle(skyrim_ctx)
        with pytest.raises(exc_type):
            lo_handle.set_plugin_position(plugin, index)
        assert lo_handle.get_load_order() == tuple(SKYRIM_DEFAULT_LO)

class TestTimestampLoadOrder(object):
    def test_load(self, oblivion_ctx):
        """Masters load first, whatever their timestamps."""
        assert LoHandle(oblivion_ctx).get_load_order() == (
            'Oblivion.esm', 'Blank.esm', 'Blank - Different.esm', 'Blank.esp',
            'Blank - Different.esp')
        assert oblivion_ctx.loadorder_file is None

    def test_set_load_order(self, oblivion_ctx):
        lord = ['Oblivion.esm', 'Blank - Different.esm', 'Blank.esm',
                'Blank - Different.esp', 'Blank.esp']
        old_times = sorted(oblivion_ctx.plugin_info(p).ftime for p in lord)
        LoHandle(oblivion_ctx).set_load_order(lord)
        # the existing timestamps are reused
        assert [oblivion_ctx.plugin_info(p).ftime for p in lord] == old_times
        assert LoHandle(oblivion_ctx).get_load_order() == tuple(lord)

    def test_timestamp_collisions(self, oblivion_ctx):
        lord = ['Oblivion.esm', 'Blank.esm', 'Blank - Different.esm',
                'Blank.esp', 'Blank - Different.esp']
        for p in lord:
            oblivion_ctx.plugin_info(p).setmtime(BASE_MTIME)
        lo_handle = LoHandle(oblivion_ctx)
        # same mtimes, so sorted by name
        assert lo_handle.get_load_order() == (
            'Blank - Different.esm', 'Blank.esm', 'Oblivion.esm',
            'Blank - Different.esp', 'Blank.esp')
        lo_handle.set_load_order(lord)
        assert [oblivion_ctx.plugin_info(p).ftime for p in lord] == [
            BASE_MTIME + i * 60 for i in range(len(lord))]
        assert LoHandle(oblivion_ctx).get_load_order() == tuple(lord)

    def test_set_load_order_invalid(self, oblivion_ctx):
        lo_handle = LoHandle(oblivion_ctx)
        with pytest.raises(exception.MastersNotPartitionedError):
            lo_handle.set_load_order(['Blank.esp', 'Blank.esm'])
        # the game master need not be listed
        lo_handle.set_load_order(['Blank.esm', 'Blank.esp'])

    def test_set_position(self, oblivion_ctx):
        lo_handle = LoHandle(oblivion_ctx)
        # no first plugin restriction for timestamp games
        lo_handle.set_plugin_position('Blank.esm', 0)
        lo_handle.set_plugin_position('Blank.esp', 4)
        assert LoHandle(oblivion_ctx).get_load_order() == (
            'Blank.esm', 'Oblivion.esm', 'Blank - Different.esm',
            'Blank - Different.esp', 'Blank.esp')

    def test_new_plugin(self, oblivion_ctx):
        lo_handle = LoHandle(oblivion_ctx)
        lo_handle.get_load_order()
        make_plugin(oblivion_ctx.plugins_dir, 'New.esm', BASE_MTIME + 10_000)
        assert lo_handle.get_load_order()[3] == 'New.esm'

def test_installed_plugins(skyrim_ctx):
    """Valid plugins in (mtime, name) order, ghosts without the .ghost."""
    ghost = skyrim_ctx.plugins_dir.join('Blank.esp')
    os.rename(ghost, ghost + '.ghost')
    # a plugin and its ghost are listed once
    make_plugin(skyrim_ctx.plugins_dir, 'Update.esm.ghost', BASE_MTIME)
    make_plugin(skyrim_ctx.plugins_dir, 'Readme.txt', BASE_MTIME)
    assert installed_plugins(skyrim_ctx) == [
        'Skyrim.esm', 'Blank.esm', 'Blank - Different.esm', 'Blank.esp',
        'Blank - Different.esp', 'Blank - Master Dependent.esp', 'Update.esm']

class _MasterDependentInfo(PluginInfo):
    """Blank - Master Dependent.esp depends on Blank - Different.esp."""
    __slots__ = ()

    def get_masters(self):
        if self.fn_key == 'Blank - Master Dependent.esp':
            return (FName('Blank - Different.esp'),)
        return ()

class TestTextfileValidity(object):
    def test_valid(self, skyrim_ctx):
        LoHandle(skyrim_ctx).check_validity()

    def test_master_not_first(self, skyrim_ctx):
        write_lines(_lo_txt(skyrim_ctx), ['Blank.esm', 'Skyrim.esm'])
        with pytest.raises(exception.MasterNotFirstWarning) as exc_info:
            LoHandle(skyrim_ctx).check_validity()
        assert exc_info.value.plugin == 'Blank.esm'

    def test_duplicates(self, skyrim_ctx):
        write_lines(_lo_txt(skyrim_ctx), ['Skyrim.esm', 'Blank.esm',
                                          'Blank.esm'])
        lo_handle = LoHandle(skyrim_ctx)
        with pytest.raises(exception.DuplicateEntryWarning) as exc_info:
            lo_handle.check_validity()
        assert exc_info.value.plugin == 'Blank.esm'
        fix = lo_handle.fix_plugin_lists()
        assert fix.lo_duplicates == {FName('Blank.esm')}
        assert fix.lo_changed()
        lo_handle.check_validity()
        assert read_lines(_lo_txt(skyrim_ctx)) == _APPENDED_LO

    def test_loads_before_master(self, skyrim_ctx):
        ctx = dataclasses.replace(skyrim_ctx, plugin_type=_MasterDependentInfo)
        write_lines(_lo_txt(ctx), [*SKYRIM_DEFAULT_LO[:5],
            'Blank - Master Dependent.esp', 'Blank - Different.esp'])
        with pytest.raises(exception.LoadsBeforeMasterWarning) as exc_info:
            LoHandle(ctx).check_validity()
        assert exc_info.value.plugin == 'Blank - Master Dependent.esp'
        assert exc_info.value.master == 'Blank - Different.esp'
        LoHandle(ctx).set_plugin_position('Blank - Master Dependent.esp', 6)
        LoHandle(ctx).check_validity()

    def test_fix_master_position(self, skyrim_ctx):
        write_lines(_lo_txt(skyrim_ctx), ['Blank.esm', 'Blank.esp',
                                          'Skyrim.esm'])
        lo_handle = LoHandle(skyrim_ctx)
        fix = lo_handle.fix_plugin_lists()
        assert fix.lo_reordered[1][0] == 'Skyrim.esm'
        assert lo_handle.get_load_order() == tuple(_APPENDED_LO)
        lo_handle.check_validity()

class TestGameMaster(object):
    def test_set_game_master(self, skyrim_ctx):
        lo_handle = LoHandle(skyrim_ctx)
        lo_handle.set_game_master('Blank.esm')
        assert lo_handle.game_context.master_file == 'Blank.esm'
        assert lo_handle.get_load_order()[:3] == ('Blank.esm', 'Update.esm',
                                                  'Skyrim.esm')
        with pytest.raises(exception.MasterNotFirstError):
            lo_handle.set_plugin_position('Skyrim.esm', 0)
        assert lo_handle.is_plugin_active('Blank.esm')
        # the original context is left alone
        assert skyrim_ctx.master_file == 'Skyrim.esm'
