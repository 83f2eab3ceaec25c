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
#  Mopy/bash/games.py copyright (C) 2016 Utumno: Original design
#
# =============================================================================
"""Load order handling backend featuring the LoFile hierarchy for reading and
writing load order files and the two engines built on top of it: LoadOrder,
the order of all installed plugins, and ActivePlugins, the set of plugins the
game loads. The engines know nothing of each other - they are composed in
load_order.LoHandle, which passes the load order to ActivePlugins when the
latter needs it."""
from __future__ import annotations

__author__ = 'Utumno'

import re

from . import bolt, exception
from .bolt import AFile, FName, Path, getbestencoding
from .game import GameContext, LoMethod
from .plugin_infos import installed_plugins

# Typing
LoTuple = tuple[FName, ...]

class LoFile(AFile):
    """A file holding a plain list of plugins, one per line - loadorder.txt
    and plugins.txt. We need to be careful in case sensitive file systems,
    see _resolve_case_ambiguity."""
    _encoding = 'utf-8'

    def __init__(self, path: Path):
        super().__init__(self._resolve_case_ambiguity(path))

    def _read_bytes(self) -> bytes:
        try:
            with open(self.abs_path, 'rb') as ins:
                return ins.read()
        except FileNotFoundError as e:
            raise exception.LoFileNotFoundError(self.abs_path) from e
        except OSError as e:
            raise exception.FileReadError(self.abs_path, e) from e

    def _decode(self, content: bytes) -> str:
        try:
            return content.decode(self._encoding)
        except UnicodeDecodeError as e:
            raise exception.FileEncodingError(self.abs_path, self._encoding,
                getbestencoding(content)[0]) from e

    def parse_modfile(self) -> list[FName]:
        """Parse loadorder.txt and plugins.txt files. Blank lines, comments
        and stray carriage returns are skipped, ghosted plugins are returned
        with their .ghost extension stripped."""
        modnames = []
        # Notepad likes to add a BOM
        lo_text = self._decode(self._read_bytes()).removeprefix('\ufeff')
        for line in lo_text.split('\n'):
            modname = line.replace('\r', '').strip()
            if not modname or modname[0] == '#': continue
            mod_fn = FName(modname)
            if mod_fn.fn_ext == '.ghost':
                mod_fn = mod_fn.fn_body # Vortex keeps the .ghost extension
            modnames.append(mod_fn)
        self.do_update() # update the cache info
        return modnames

    @staticmethod
    def _resolve_case_ambiguity(lo_file_path: Path):
        """Third-party tools like LOOT do not all use the same case for
        plugins.txt and loadorder.txt. This method returns the canonical
        path for the specified load order file path and cleans up multiple
        load order files in the same dir by using the one with the newest
        mtime and deleting the older ones."""
        lo_dir, lo_fname = lo_file_path.head, lo_file_path.stail
        matching_paths = [lo_dir.join(t_fname) for t_fname in lo_dir.ilist()
                          if t_fname == lo_fname]
        if len(matching_paths) > 1:
            matching_paths.sort(key=lambda tp: tp.mtime, reverse=True)
            filenames = [p.stail for p in matching_paths]
            bolt.deprint(f'Resolving ambiguous {lo_fname} case (found '
                         f'{filenames}) to newest file ({filenames[0]})')
            for p in matching_paths[1:]:
                try:
                    p.remove()
                except OSError:
                    bolt.deprint(f'Failed to remove {p} while resolving '
                                 f'{lo_fname} ambiguous case', traceback=True)
            return matching_paths[0]
        return matching_paths[0] if matching_paths else lo_file_path

    def write_modfile(self, plugins) -> list[FName]:
        """Overwrite the file with the specified plugins. Plugins whose name
        can't be encoded are skipped and returned so the caller can report
        them once the file is written."""
        out_bytes, bad_encodes = self._encode_plugins(plugins)
        try:
            try:
                self._write_bytes(out_bytes)
            except PermissionError:
                self.abs_path.clearRO()
                self._write_bytes(out_bytes)
        except OSError as e:
            raise exception.FileWriteError(self.abs_path, e) from e
        self.do_update()
        return bad_encodes

    def _encode_plugins(self, plugins) -> tuple[bytes, list[FName]]:
        out, bad_encodes = [], []
        for mod in plugins:
            try:
                out.append(f'{mod}\r\n'.encode(self._encoding))
            except UnicodeEncodeError:
                bad_encodes.append(mod)
        return b''.join(out), bad_encodes

    def _write_bytes(self, out_bytes: bytes):
        with self.abs_path.open('wb') as out: # creates missing parent dirs
            out.write(out_bytes)

class IniLoFile(LoFile):
    """An INI section listing the active plugins as entries generated by a
    format string, e.g. the GameFileN=Plugin.esp lines in the [Game Files]
    section of Morrowind.ini. Plugin names use a legacy encoding. Everything
    in the INI up to and including the section header, as well as any
    sections following ours, is preserved byte for byte when writing."""
    _re_plugin_entry = re.compile(rb'^GameFile[0-9]{1,3}=(.+\.es[mp])$', re.I)
    _re_section_start = re.compile(rb'^[ \t]*\[', re.M)

    def __init__(self, path: Path, ini_key, encoding: str):
        super().__init__(path)
        _ini, self._section, self._key_fmt = ini_key
        self._encoding = encoding
        self._re_section = re.compile(
            rb'^[ \t]*' + re.escape(f'[{self._section}]'.encode('ascii')),
            re.I | re.M)

    def parse_modfile(self) -> list[FName]:
        """Return the plugins of all entries in the INI, in the order they
        appear in. Only the plugin names are decoded, other sections may use
        any encoding. An undecodable name is an error, since we would not be
        able to write it back."""
        modnames = []
        for line in self._read_bytes().split(b'\n'):
            if ma := self._re_plugin_entry.match(line.strip()):
                modnames.append(FName(self._decode(ma.group(1))))
        self.do_update() # update the cache info
        return modnames

    def _encode_plugins(self, plugins) -> tuple[bytes, list[FName]]:
        try:
            content = self._read_bytes()
        except exception.LoFileNotFoundError:
            content = b''
        entries, bad_encodes = [], []
        for mod in plugins:
            # indices must stay contiguous, so number only what we can write
            entry = self._key_fmt % {'lo_idx': len(entries)}
            try:
                entries.append(f'{entry}={mod}\r\n'.encode(self._encoding))
            except UnicodeEncodeError:
                bad_encodes.append(mod)
        if ma := self._re_section.search(content):
            head = content[:ma.end()]
            next_section = self._re_section_start.search(content, ma.end())
            tail = content[next_section.start():] if next_section else b''
        else:
            bolt.deprint(f'No [{self._section}] section in {self.abs_path}, '
                         f'appending one')
            head = content
            if head and not head.endswith(b'\n'):
                head += b'\r\n'
            head += f'[{self._section}]'.encode(self._encoding)
            tail = b''
        return b''.join([head, b'\r\n', *entries, tail]), bad_encodes

def active_plugins_file(ctx: GameContext) -> LoFile:
    """Return the LoFile holding the active plugins of this game."""
    if ini_key := ctx.ini_key_actives:
        return IniLoFile(ctx.active_plugins_file, ini_key,
                         ctx.game.Ini.ini_encoding)
    return LoFile(ctx.active_plugins_file)

class FixInfo(object):
    """Encapsulate info on load order and active lists fixups."""
    def __init__(self):
        self.lo_removed = set()
        self.lo_added = set()
        self.lo_duplicates = set()
        self.lo_reordered = ([], [])
        # active plugins corrections
        self.act_removed = set()
        self.act_added = set()
        self.selectedExtra = []

    def lo_changed(self):
        return bool(self.lo_removed or self.lo_added or self.lo_duplicates or
                    any(self.lo_reordered))

    def act_changed(self):
        return bool(self.act_removed or self.act_added or self.selectedExtra)

    def lo_deprint(self):
        self._warn_lo()
        self._warn_active()

    def _warn_lo(self):
        if not self.lo_changed(): return
        msg = [_pl(li, f'{at[3:]}: ') for at in ('lo_removed', 'lo_added',
            'lo_duplicates') if (li := getattr(self, at))]
        if any(self.lo_reordered):
            msg.append('reordered:')
            msg.append(_pl(self.lo_reordered[0], 'from: '))
            msg.append(_pl(self.lo_reordered[1], 'to  : '))
        nl = '\n'
        bolt.deprint(f'Fixed Load Order: {nl.join(msg)}')

    def _warn_active(self):
        if not self.act_changed(): return
        msg = ['Invalid active plugins list corrected:']
        if self.act_removed:
            msg.append('Active list contains plugins not present in the '
                       'plugins directory, invalid and/or corrupted:')
            msg.append(_pl(self.act_removed))
        for fn_plugin in self.act_added:
            msg.append(f'{fn_plugin} not present in active list while it '
                       f'must always be active')
        if self.selectedExtra:
            msg.append('Active list contains more plugins than allowed - the '
                       'following plugins were deactivated:')
            msg.append(_pl(self.selectedExtra))
        bolt.deprint('\n'.join(msg))

def _pl(it, legend=''):
    return legend + ', '.join(it)

def _check_plugin(ctx: GameContext, fn_plugin: FName):
    """Return the PluginInfo of fn_plugin, raising if it is not installed or
    not a valid plugin."""
    pinf = ctx.plugin_info(fn_plugin)
    if not pinf.exists():
        raise exception.PluginNotFoundError(fn_plugin)
    if not pinf.is_valid():
        raise exception.InvalidPluginError(fn_plugin)
    return pinf

def _masters_table(ctx: GameContext, plugins) -> dict[FName, bool]:
    """Classify the plugins up front, so we won't hit the disk while
    sorting."""
    return {fn: ctx.plugin_info(fn).is_master() for fn in plugins}

class LoadOrder:
    """The order of all installed plugins. Masters must form a contiguous
    prefix of it and, for games using loadorder.txt, the game master must
    load first. Mutators validate fully before touching the list, which is
    thus either left unchanged or replaced by a valid one."""

    def __init__(self):
        self._lord: list[FName] = []
        # the latest mtime of the load order files when we last synced
        self._sync_mtime = 0.0

    # Load / Save -------------------------------------------------------------
    def load(self, ctx: GameContext):
        """Read the load order from disk, adding any installed plugins
        missing from it."""
        self._lord.clear()
        if ctx.lo_method is LoMethod.TEXTFILE:
            self._lord.extend(self._fetch_text_lo(ctx))
            self.partition_masters(ctx)
        self._add_installed(ctx)
        if ctx.lo_method is LoMethod.TIMESTAMP:
            # split into master block and not master block then sort by ftime
            sort_keys = {}
            for fn_plugin in self._lord:
                pinf = ctx.plugin_info(fn_plugin)
                sort_keys[fn_plugin] = (not pinf.is_master(), pinf.ftime)
            self._lord.sort(key=sort_keys.__getitem__)
        self._sync_mtime = self._lo_files_mtime(ctx)

    @staticmethod
    def _fetch_text_lo(ctx: GameContext) -> list[FName]:
        """Read loadorder.txt - if it does not exist, fall back to the order
        of the plugins in plugins.txt."""
        lo_file = LoFile(ctx.loadorder_file)
        if not (from_lo_txt := lo_file.abs_path.is_file()):
            lo_file = active_plugins_file(ctx)
            if lo_file.abs_path.is_file():
                bolt.deprint(f'{ctx.loadorder_file} not found, using the '
                             f'order of {lo_file.abs_path}')
            else:
                lo_file = None
        lord = []
        if lo_file is not None:
            for fn_plugin in lo_file.parse_modfile():
                if ctx.plugin_info(fn_plugin).is_valid():
                    lord.append(fn_plugin)
                else:
                    bolt.deprint(f'Skipping invalid plugin {fn_plugin} '
                                 f'listed in {lo_file.abs_path}')
        if ctx.master_always_active and not from_lo_txt:
            # plugins.txt does not list the game master, which loads first,
            # the update master goes right after the last listed master
            master = ctx.master_file
            lord = [master, *(fn for fn in lord if fn != master)]
            upd = ctx.update_master
            if upd and upd not in lord and ctx.plugin_info(upd).is_valid():
                is_master = _masters_table(ctx, lord)
                lord.sort(key=lambda fn: not is_master[fn])
                lord.insert(sum(is_master[fn] for fn in lord), upd)
        return lord

    def _add_installed(self, ctx: GameContext) -> list[FName]:
        """Append installed plugins missing from the load order, but insert
        masters right after the last master. Return the added plugins."""
        present = set(self._lord)
        partition = self._partition_point(ctx)
        added = []
        for fn_plugin in installed_plugins(ctx):
            if fn_plugin in present: continue
            if ctx.plugin_info(fn_plugin).is_master():
                self._lord.insert(partition, fn_plugin)
                partition += 1
            else:
                self._lord.append(fn_plugin)
            added.append(fn_plugin)
        return added

    def save(self, ctx: GameContext):
        """Persist the load order - by restamping the plugins for games using
        timestamps, else by writing out loadorder.txt."""
        if ctx.lo_method is LoMethod.TIMESTAMP:
            self._persist_mtimes(ctx)
        else:
            lo_file = LoFile(ctx.loadorder_file)
            if bad_encodes := lo_file.write_modfile(self._lord):
                bolt.deprint(f'Failed to encode {_pl(bad_encodes)}, they '
                             f'were skipped from {lo_file.abs_path}')
        self._sync_mtime = self._lo_files_mtime(ctx)

    def _persist_mtimes(self, ctx: GameContext):
        pinfs = [ctx.plugin_info(fn) for fn in self._lord]
        # Reuse the current timestamps so we change as few as possible
        timestamps = {int(pinf.ftime) for pinf in pinfs}
        # plugins sharing a timestamp leave us short, pad with later ones
        while len(timestamps) < len(pinfs):
            timestamps.add(max(timestamps) + 60)
        for pinf, mtime in zip(pinfs, sorted(timestamps)):
            if pinf.ftime != mtime:
                pinf.setmtime(mtime)

    @staticmethod
    def _lo_files_mtime(ctx: GameContext) -> float:
        """Return the latest of the mtimes of loadorder.txt and the plugins
        directory, ignoring missing ones."""
        lo_paths = [ctx.plugins_dir]
        if ctx.loadorder_file is not None:
            lo_paths.append(LoFile(ctx.loadorder_file).abs_path)
        latest = 0.0
        for lo_path in lo_paths:
            try:
                latest = max(latest, lo_path.mtime)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise exception.TimestampReadError(lo_path, e) from e
        return latest

    def has_changed(self, ctx: GameContext) -> bool:
        """Return True if we need to reload. For games using timestamps this
        is always the case, as checking would cost as much as reloading."""
        if not self._lord:
            return True
        if ctx.lo_method is LoMethod.TEXTFILE and \
                LoFile(ctx.loadorder_file).abs_path.is_file():
            return self._lo_files_mtime(ctx) > self._sync_mtime
        return True

    # Getters -----------------------------------------------------------------
    def get_load_order(self) -> LoTuple:
        return tuple(self._lord)

    def get_position(self, plugin: str) -> int:
        """Return the index of plugin in the load order or the length of the
        load order if it's not in it."""
        try:
            return self._lord.index(FName(plugin))
        except ValueError:
            return len(self._lord)

    def get_plugin_at_position(self, index: int) -> FName:
        if not 0 <= index < len(self._lord):
            raise exception.PositionOutOfRangeError(index, len(self._lord))
        return self._lord[index]

    def _partition_point(self, ctx: GameContext) -> int:
        """Return the index of the first non-master in the load order."""
        for i, fn_plugin in enumerate(self._lord):
            if not ctx.plugin_info(fn_plugin).is_master():
                return i
        return len(self._lord)

    # Setters -----------------------------------------------------------------
    def set_load_order(self, lord, ctx: GameContext):
        """Replace the load order with lord, if it is a valid one."""
        lord = [FName(p) for p in lord]
        master = ctx.master_file
        if ctx.lo_method is LoMethod.TEXTFILE and (
                not lord or lord[0] != master):
            raise exception.MasterNotFirstError(master,
                                                lord[0] if lord else None)
        is_master = _masters_table(ctx, lord)
        first_plugin = None
        for fn_plugin in lord:
            if not is_master[fn_plugin]:
                if first_plugin is None:
                    first_plugin = fn_plugin
            elif first_plugin is not None:
                raise exception.MastersNotPartitionedError(fn_plugin,
                                                           first_plugin)
        seen = set()
        for fn_plugin in lord:
            if fn_plugin in seen:
                raise exception.DuplicatePluginError(fn_plugin)
            seen.add(fn_plugin)
            _check_plugin(ctx, fn_plugin)
        self._lord = lord

    def set_position(self, plugin: str, index: int, ctx: GameContext):
        """Move plugin to index, or insert it there if it's not in the load
        order yet. Indices past the end append."""
        fn_plugin = FName(plugin)
        if index < 0:
            raise exception.PositionOutOfRangeError(index, len(self._lord))
        master = ctx.master_file
        if ctx.lo_method is LoMethod.TEXTFILE:
            if index == 0 and fn_plugin != master:
                raise exception.MasterNotFirstError(master, fn_plugin)
            if index != 0 and fn_plugin == master and self._lord:
                raise exception.MasterNotFirstError(master)
        pinf = _check_plugin(ctx, fn_plugin)
        partition = self._partition_point(ctx)
        if not pinf.is_master():
            if index < partition:
                raise exception.PluginPositionError(fn_plugin, index,
                    'non-master plugins cannot load before masters.')
        # a master of the prefix moved to the partition point would end up
        # after the first non-master once removed from its old position
        elif partition != len(self._lord) and (index > partition or (
                index == partition and self.get_position(fn_plugin) <
                partition)):
            raise exception.PluginPositionError(fn_plugin, index,
                'masters cannot load after non-master plugins.')
        self._lord = [x for x in self._lord if x != fn_plugin]
        self._lord.insert(min(index, len(self._lord)), fn_plugin)

    def clear(self):
        self._lord = []
        self._sync_mtime = 0.0

    def unique(self) -> set[FName]:
        """Remove duplicate entries, keeping the last occurrence of each
        plugin. Return the removed duplicates."""
        seen, duplicates, uniq = set(), set(), []
        for fn_plugin in reversed(self._lord):
            if fn_plugin in seen:
                duplicates.add(fn_plugin)
            else:
                seen.add(fn_plugin)
                uniq.append(fn_plugin)
        uniq.reverse()
        self._lord = uniq
        return duplicates

    def partition_masters(self, ctx: GameContext) -> bool:
        """Move all masters before all non-masters, keeping the relative order
        of plugins otherwise. Return True if the load order changed."""
        old_lord = self._lord[:]
        is_master = _masters_table(ctx, self._lord)
        self._lord.sort(key=lambda fn: not is_master[fn])
        return old_lord != self._lord

    # Validation --------------------------------------------------------------
    def check_validity(self, ctx: GameContext):
        """Raise an InvalidListWarning for the first problem found with the
        load order. Does not modify the load order."""
        if not self._lord:
            return
        if self._lord[0] != (master := ctx.master_file):
            raise exception.MasterNotFirstWarning(master, self._lord[0])
        first_pos = {}
        for i, fn_plugin in enumerate(self._lord):
            first_pos.setdefault(fn_plugin, i)
        first_plugin = None
        seen = set()
        for i, fn_plugin in enumerate(self._lord):
            pinf = ctx.plugin_info(fn_plugin)
            if not pinf.exists():
                raise exception.PluginNotInstalledWarning(fn_plugin)
            if not pinf.is_valid():
                raise exception.PluginNotValidWarning(fn_plugin)
            if pinf.is_master():
                if first_plugin is not None:
                    raise exception.MasterAfterPluginWarning(fn_plugin,
                                                             first_plugin)
            elif first_plugin is None:
                first_plugin = fn_plugin
            if fn_plugin in seen:
                raise exception.DuplicateEntryWarning(fn_plugin)
            seen.add(fn_plugin)
            # masters absent from the load order are not our concern
            for fn_master in pinf.get_masters():
                if first_pos.get(FName(fn_master), -1) > i:
                    raise exception.LoadsBeforeMasterWarning(fn_plugin,
                                                             fn_master)

    def fix_load_order(self, ctx: GameContext, fix_lo: FixInfo):
        """Make the load order valid: drop duplicates and invalid plugins, add
        missing installed plugins, partition masters and move the game master
        to the top. The changes are recorded in fix_lo."""
        old_lord = self._lord[:]
        fix_lo.lo_duplicates = self.unique()
        fix_lo.lo_removed = {fn for fn in self._lord if
                             not ctx.plugin_info(fn).is_valid()}
        self._lord = [x for x in self._lord if x not in fix_lo.lo_removed]
        ol = self._lord[:] # snapshot used in checking for reordering
        self.partition_masters(ctx)
        fix_lo.lo_added = set(self._add_installed(ctx))
        master = ctx.master_file
        if master in self._lord and self._lord[0] != master:
            bolt.deprint(f'{master} has index {self._lord.index(master)} '
                         f'(must be 0)')
            self._lord.remove(master)
            self._lord.insert(0, master)
        if ol != [x for x in self._lord if x not in fix_lo.lo_added]:
            fix_lo.lo_reordered = (old_lord, self._lord[:])

class ActivePlugins:
    """The plugins the game loads, kept in an insertion ordered dict used as
    a set. Games whose master is always active get it and their update
    master added on load."""

    def __init__(self):
        self._active: dict[FName, None] = {}
        # mtime of the active plugins file when we last synced
        self._sync_mtime = 0.0

    # Load / Save -------------------------------------------------------------
    def load(self, ctx: GameContext):
        """Read the active plugins file, skipping invalid plugins."""
        self._active.clear()
        acti_file = active_plugins_file(ctx)
        if acti_file.abs_path.is_file():
            for fn_plugin in acti_file.parse_modfile():
                if ctx.plugin_info(fn_plugin).is_valid():
                    self._active[fn_plugin] = None
                else:
                    bolt.deprint(f'Skipping invalid plugin {fn_plugin} '
                                 f'listed in {acti_file.abs_path}')
            self._sync_mtime = acti_file.file_mod_time
        for fn_plugin in self.implicitly_active(ctx):
            self._active.setdefault(fn_plugin)

    def save(self, ctx: GameContext, lord: LoTuple) -> list[FName]:
        """Write out the active plugins. For games using loadorder.txt they
        are written in load order, minus the game master, which the game
        always loads. Return the plugins whose name could not be encoded,
        which were skipped."""
        acti_file = active_plugins_file(ctx)
        if ctx.lo_method is LoMethod.TEXTFILE:
            master = ctx.master_file if ctx.master_always_active else None
            plugins = [fn for fn in lord if fn in self._active and
                       fn != master]
        else: # the order does not matter here
            plugins = list(self._active)
        bad_encodes = acti_file.write_modfile(plugins)
        self._sync_mtime = acti_file.file_mod_time
        return bad_encodes

    def has_changed(self, ctx: GameContext) -> bool:
        if not self._active:
            return True
        acti_path = active_plugins_file(ctx).abs_path
        try:
            return acti_path.mtime > self._sync_mtime
        except FileNotFoundError:
            return False
        except OSError as e:
            raise exception.TimestampReadError(acti_path, e) from e

    # Getters -----------------------------------------------------------------
    def get_active(self) -> LoTuple:
        return tuple(self._active)

    def is_active(self, plugin: str) -> bool:
        return FName(plugin) in self._active

    @staticmethod
    def implicitly_active(ctx: GameContext) -> list[FName]:
        """Return the plugins the game loads whether they are listed in the
        active plugins file or not."""
        if not ctx.master_always_active:
            return []
        implicit = [ctx.master_file]
        if (upd := ctx.update_master) and ctx.plugin_info(upd).is_valid():
            implicit.append(upd)
        return implicit

    # Setters -----------------------------------------------------------------
    def set_active(self, plugins, ctx: GameContext):
        """Replace the active plugins with the specified ones, if valid."""
        acti = [FName(p) for p in plugins]
        seen = set()
        for fn_plugin in acti:
            if fn_plugin in seen:
                raise exception.DuplicatePluginError(fn_plugin)
            seen.add(fn_plugin)
            _check_plugin(ctx, fn_plugin)
        if len(acti) > (limit := ctx.max_active_plugins):
            raise exception.TooManyActivePluginsError(len(acti), limit)
        for fn_plugin in self.implicitly_active(ctx):
            if fn_plugin not in seen:
                raise exception.ImplicitlyActiveError(fn_plugin)
        self._active = dict.fromkeys(acti)

    def set_plugin_active(self, plugin: str, active: bool, ctx: GameContext):
        fn_plugin = FName(plugin)
        if active:
            if fn_plugin in self._active: return
            _check_plugin(ctx, fn_plugin)
            if len(self._active) >= (limit := ctx.max_active_plugins):
                raise exception.TooManyActivePluginsError(
                    len(self._active) + 1, limit)
            self._active[fn_plugin] = None
        else:
            if fn_plugin in self.implicitly_active(ctx):
                raise exception.ImplicitlyActiveError(fn_plugin)
            self._active.pop(fn_plugin, None)

    def clear(self):
        self._active = {}
        self._sync_mtime = 0.0

    # Validation --------------------------------------------------------------
    def check_validity(self, ctx: GameContext):
        """Raise an InvalidListWarning for the first problem found with the
        active plugins."""
        for fn_plugin in self._active:
            if not ctx.plugin_info(fn_plugin).exists():
                raise exception.ActivePluginMissingWarning(fn_plugin)
        if len(self._active) > (limit := ctx.max_active_plugins):
            raise exception.TooManyActivePluginsWarning(len(self._active),
                                                        limit)
        if ctx.master_always_active:
            if (master := ctx.master_file) not in self._active:
                raise exception.MasterNotActiveWarning(master)
            upd = ctx.update_master
            if upd and upd not in self._active and ctx.plugin_info(
                    upd).is_valid():
                raise exception.UpdateMasterNotActiveWarning(upd)

    def fix_active_plugins(self, ctx: GameContext, lord: LoTuple,
                           fix_active: FixInfo):
        """Drop invalid plugins, add missing implicitly active ones and
        deactivate the plugins loading last if too many are active. The
        changes are recorded in fix_active."""
        fix_active.act_removed = {fn for fn in self._active if
                                  not ctx.plugin_info(fn).is_valid()}
        for fn_plugin in fix_active.act_removed:
            del self._active[fn_plugin]
        pinned = self.implicitly_active(ctx)
        for fn_plugin in pinned:
            if fn_plugin not in self._active:
                self._active[fn_plugin] = None
                fix_active.act_added.add(fn_plugin)
        if len(self._active) > (limit := ctx.max_active_plugins):
            lo_dex = {fn: i for i, fn in enumerate(lord)}
            pinned = set(pinned)
            by_lo = sorted((fn for fn in self._active if fn not in pinned),
                           key=lambda fn: lo_dex.get(fn, len(lord)))
            fix_active.selectedExtra = by_lo[limit - len(pinned):]
            for fn_plugin in fix_active.selectedExtra:
                del self._active[fn_plugin]
