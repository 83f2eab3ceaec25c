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
"""Low level helpers shared by the whole package: encoding heuristics, the
case insensitive FName, the bolt.Path filesystem wrapper, the AFile stat
cache and the deprint debug logger."""
from __future__ import annotations

import io
import os
import stat
import sys
import traceback as _traceback
from typing import overload

import chardet

os_name = os.name

# Unicode ---------------------------------------------------------------------
#--decode unicode strings
#  This is only useful when reading files whose encoding is not known, like
#  user edited game inis. For normal filesystem interaction, these functions
#  are not needed
encodingOrder = (
    'ascii',    # Plain old ASCII (0-127)
    'gbk',      # GBK (simplified Chinese + some)
    'cp932',    # Japanese
    'cp949',    # Korean
    'cp1252',   # English (extended ASCII)
    'utf8',
    'cp500',
    'UTF-16LE',
)
if os_name == 'nt':
    encodingOrder += ('mbcs',)

_encodingSwap = {
    # The encoding detector reports back some encodings that
    # are subsets of others.  Use the better encoding when
    # given the option
    # 'reported encoding':'actual encoding to use',
    'GB2312': 'gbk',        # Simplified Chinese
    'SHIFT_JIS': 'cp932',   # Japanese
    'windows-1252': 'cp1252',
    'windows-1251': 'cp1251',
    'utf-8': 'utf8',
}

# Encodings that we can't use because Python doesn't even support them
_blocked_encodings = {'EUC-TW'}

def getbestencoding(bitstream):
    """Tries to detect the encoding a bitstream was saved in.  Uses Mozilla's
       detection library to find the best match (heuristics)"""
    if not bitstream:
        # Default to UTF-8 if the stream we're given is empty and hence no
        # inference can be made (chardet returns None, which breaks when passed
        # to decode())
        return 'utf8', 1.0
    # If we're fed a really big stream, go through it 16 KB at a time so as to
    # not time out on malformed data
    if len(bitstream) > 16384:
        bitstream_view = io.BytesIO(bitstream)
        result = result_sentinel = {
            'encoding': None,
            'confidence': 0.0,
            'language': None,
        }
        while block := bitstream_view.read(16384):
            result = chardet.detect(block)
            # If we got a useful result out of chardet here, we're done and can
            # return it
            if result != result_sentinel:
                break
    else:
        result = chardet.detect(bitstream)
    encoding_, confidence = result['encoding'], result['confidence']
    encoding_ = _encodingSwap.get(encoding_,encoding_)
    return encoding_, confidence

def decoder(byte_str, encoding=None, avoidEncodings=()) -> str:
    """Decode a byte string to unicode, using heuristics on encoding."""
    if isinstance(byte_str, str) or byte_str is None: return byte_str
    # Try the user specified encoding first
    if encoding:
        if encoding == 'cp65001':
            encoding = 'utf-8'
        try: return str(byte_str, encoding)
        except UnicodeDecodeError: pass
    # Try to detect the encoding next
    encoding, confidence = getbestencoding(byte_str)
    if encoding and confidence >= 0.55 and (
            encoding not in avoidEncodings or confidence == 1.0) and (
            encoding not in _blocked_encodings):
        try: return str(byte_str, encoding)
        except UnicodeDecodeError: pass
    # If even that fails, fall back to the old method, trial and error
    for encoding in encodingOrder:
        try: return str(byte_str, encoding)
        except UnicodeDecodeError: pass
    raise UnicodeDecodeError('Text could not be decoded using any method')

# Helpers ---------------------------------------------------------------------
_not_cached = object()

class fast_cached_property:
    """Similar to functools.cached_property, but ~2x faster because it does not
    feature locking and lacks that decorator's runtime error checking."""
    def __init__(self, wrapped_func):
        self._wrapped_func = wrapped_func
        self._wrapped_attr = None # set later

    def __set_name__(self, owner, name):
        self._wrapped_attr = name

    def __get__(self, instance, owner=None):
        wrapped_val = instance.__dict__.get(self._wrapped_attr, _not_cached)
        if wrapped_val is _not_cached:
            # This whole branch is only done once, so can afford to be slower
            wrapped_val = self._wrapped_func(instance)
            instance.__dict__[self._wrapped_attr] = wrapped_val
        return wrapped_val

class FName(str):
    """Class modeling a plugin filename, the key in all our lists. It only
    accepts an instance of type str in its constructor. FName is-a str as it
    is being used mostly as a plain str instance, apart from comparisons. It
    compares case insensitive with both FName and str which has a catch: it
    hashes as its lowercase version, so a plain str will not be found in a
    set or dict of FNames - always wrap names coming from the outside in an
    FName before looking them up."""
    _filenames_cache: dict[str, FName] = {}
    _hash: int # Lazily cached since it's needed so often

    def __new__(cls, unicode_str: None | FName | str, *args,
                __cache=_filenames_cache, **kwargs):
        if type(unicode_str) is FName or unicode_str is None:
            return unicode_str
        try:
            return __cache[unicode_str]
        except KeyError:
            if type(unicode_str) is not str:
                raise ValueError(f'{unicode_str!r} type is '
                                 f'{type(unicode_str)} - a str is required')
            return __cache.setdefault(unicode_str, super().__new__(
                cls, unicode_str, *args, **kwargs))

    @fast_cached_property
    def _lower(self): return super().lower()

    def lower(self): return self._lower

    @fast_cached_property
    def fn_ext(self):
        return FName('' if (dot := self.rfind('.')) == -1 else self[dot:])

    @fast_cached_property
    def fn_body(self):
        return FName(self[:-len(self.fn_ext)]) if self.fn_ext else self

    def __deepcopy__(self, memodict={}):
        return self # immutable

    def __copy__(self):
        return self # immutable

    #--Hash/Compare
    def __hash__(self):
        try:
            return self._hash
        except AttributeError:
            self._hash = hash(self._lower)
            return self._hash
    def __eq__(self, other):
        try:
            return self._lower == other._lower
        except AttributeError:
            # this will blow if other is not a str even if it defines lower
            return other is not None and self._lower == str.lower(other)
    def __ne__(self, other):
        try:
            return self._lower != other._lower
        except AttributeError:
            return other is None or self._lower != str.lower(other)
    def __lt__(self, other):
        try:
            return self._lower < other._lower
        except AttributeError:
            return self._lower < str.lower(other)
    def __ge__(self, other):
        try:
            return self._lower >= other._lower
        except AttributeError:
            return self._lower >= str.lower(other)
    def __gt__(self, other):
        try:
            return self._lower > other._lower
        except AttributeError:
            return self._lower > str.lower(other)
    def __le__(self, other):
        try:
            return self._lower <= other._lower
        except AttributeError:
            return self._lower <= str.lower(other)
    #--repr
    def __repr__(self):
        return f'{type(self).__name__}({super().__repr__()})'

# Paths -----------------------------------------------------------------------
_gpaths: dict[str | os.PathLike[str], Path] = {}

@overload
def GPath(str_or_uni: None) -> None: ...
@overload
def GPath(str_or_uni: str | os.PathLike[str]) -> Path: ...
def GPath(str_or_uni: str | os.PathLike[str] | None) -> Path | None:
    """Path factory and cache."""
    if isinstance(str_or_uni, Path) or str_or_uni is None: return str_or_uni
    if not str_or_uni: return Path('') # needed, os.path.normpath('') = '.'!
    if str_or_uni in _gpaths: return _gpaths[str_or_uni]
    return _gpaths.setdefault(str_or_uni, Path(os.path.normpath(str_or_uni)))

class Path(os.PathLike):
    """Paths are immutable objects that represent file directory paths.
     May be just a directory, filename or full path."""

    @staticmethod
    def getNorm(str_or_path: str | bytes | Path) -> str:
        """Return the normpath for specified basename/Path object."""
        if isinstance(str_or_path, Path): return str_or_path._s
        elif not str_or_path: return '' # and not maybe b''
        elif isinstance(str_or_path, bytes): str_or_path = decoder(str_or_path)
        return os.path.normpath(str_or_path)

    #--Instance stuff --------------------------------------------------
    #--Slots: _s is normalized path. All other slots are just pre-calced
    #  variations of it.
    __slots__ = ('_s', '_cs', '_shead', '_stail', '_ext', '_sroot', '_hash')
    _shead: str
    _stail: str
    _ext: str
    _sroot: str
    _hash: int

    def __init__(self, norm_str: str):
        """Initialize with unicode - call only in GPath."""
        self._s = norm_str # path must be normalized
        self._cs = norm_str.lower()

    def __len__(self):
        return len(self._s)

    def __repr__(self):
        return f'bolt.Path({self._s!r})'

    def __str__(self):
        return self._s

    def __fspath__(self):
        return self._s

    #--Properties--------------------------------------------------------
    #--String/unicode versions.
    @property
    def s(self):
        """Path as string."""
        return self._s
    @property
    def shead(self):
        """Head as string."""
        try:
            return self._shead
        except AttributeError:
            self._shead, self._stail = os.path.split(self._s)
            return self._shead
    @property
    def stail(self):
        """Tail as string."""
        try:
            return self._stail
        except AttributeError:
            self._shead, self._stail = os.path.split(self._s)
            return self._stail

    #--Head, tail
    @property
    def head(self):
        """For alpha\beta.gamma, returns alpha."""
        return GPath(self.shead)
    @property
    def tail(self):
        """For alpha\beta.gamma, returns beta.gamma."""
        return GPath(self.stail)

    #--Root, ext
    @property
    def ext(self):
        """Extension (including leading period, e.g. '.txt')."""
        try:
            return self._ext
        except AttributeError:
            self._sroot, self._ext = os.path.splitext(self._s)
            return self._ext
    @property
    def cext(self):
        """Extension in normalized case."""
        return self.ext.lower()

    #--atime, mtime
    @property
    def atime(self):
        return os.path.getatime(self._s)

    def _getmtime(self):
        """Return mtime for path."""
        return os.path.getmtime(self._s)
    def _setmtime(self, mtime):
        os.utime(self._s, (self.atime, mtime))
    mtime = property(_getmtime, _setmtime, doc='Time file was last modified.')

    def size_mtime(self):
        lstat = os.lstat(self._s)
        return lstat.st_size, lstat.st_mtime

    #--Path stuff -------------------------------------------------------
    #--New Paths, subpaths
    def __add__(self,other):
        # you can't add to None: ValueError - that's good
        return GPath(self._s + Path.getNorm(other))
    def join(*args: str | os.PathLike[str]):
        norms = [Path.getNorm(x) for x in args] # join(..,None,..) -> TypeError
        return GPath(os.path.join(*norms))

    def ilist(self):
        """For directory: Return list of files - bit weird this returns
        FName but let's say Path and FName are friend classes."""
        try:
            return map(FName, os.listdir(self._s))
        except FileNotFoundError:
            return []

    #--File system info
    def exists(self):
        return os.path.exists(self._s)
    def is_dir(self):
        return os.path.isdir(self._s)
    def is_file(self):
        return os.path.isfile(self._s)

    #--File system manipulation
    def clearRO(self):
        """Clears RO flag on self"""
        os.chmod(self._s, stat.S_IWUSR | stat.S_IRUSR | stat.S_IWOTH)

    def open(self,*args,**kwdargs):
        """Open the file, creating its parent directories if needed."""
        try:
            return open(self._s, *args, **kwdargs)
        except FileNotFoundError:
            # We rarely need to do this, so avoid the stat call from
            # os.path.exists unless it's unavoidable
            if self.shead and not os.path.exists(self.shead):
                os.makedirs(self.shead)
                return open(self._s, *args, **kwdargs)
            raise

    def remove(self):
        try:
            os.remove(self._s)
        except FileNotFoundError:
            pass # does not exist
        except OSError:
            self.clearRO()
            os.remove(self._s)

    #--Hash/Compare, based on the _cs attribute so case insensitive. NB: Paths
    # directly compare to str|Path|None and will blow for anything else
    def __hash__(self):
        try:
            return self._hash
        except AttributeError:
            self._hash = hash(self._cs)
            return self._hash
    def __eq__(self, other):
        try:
            return self._cs == other._cs
        except AttributeError:
            # Only compare with unicode or None - will blow on other types -
            # similar code in rest of the methods below
            if (typ := type(other)) is str:
                other = os.path.normpath(other).lower() if other else other
            elif other is not None:
                raise TypeError(
                    f'Comparing Path with {typ} not supported: {other!r}')
        return self._cs == other
    def __ne__(self, other):
        try:
            return self._cs != other._cs
        except AttributeError:
            if (typ := type(other)) is str:
                other = os.path.normpath(other).lower() if other else other
            elif other is not None:
                raise TypeError(
                    f'Comparing Path with {typ} not supported: {other!r}')
        return self._cs != other
    def __lt__(self, other):
        try:
            return self._cs < other._cs
        except AttributeError:
            if (typ := type(other)) is str:
                other = os.path.normpath(other).lower() if other else other
            else: raise TypeError(f'Comparing Path with {typ} not supported: '
                                  f'{other!r}')
        return self._cs < other

#------------------------------------------------------------------------------
class AFile(object):
    """Abstract file, supports caching of its size and modification time."""
    _null_stat = (-1, None)

    def _stat_tuple(self): return self.abs_path.size_mtime()

    def __init__(self, fullpath, *, raise_on_error=False):
        self._file_key = GPath(fullpath)
        try:
            self._reset_cache(self._stat_tuple())
        except OSError:
            if raise_on_error: raise
            self._reset_cache(self._null_stat)

    @property
    def abs_path(self): return self._file_key

    def do_update(self, raise_on_error=False):
        """Check cache, reset it if needed. Return True if reset else False.
        If the stat call fails and this instance was previously stat'ed we
        consider the file deleted and return True except if raise_on_error is
        True, whereupon raise the OSError we got in stat()."""
        try:
            stat_tuple = self._stat_tuple()
        except OSError:
            file_was_stated = self._file_changed(self._null_stat)
            self._reset_cache(self._null_stat)
            if raise_on_error: raise
            return file_was_stated # file previously existed, we need to update
        if self._file_changed(stat_tuple):
            self._reset_cache(stat_tuple)
            return True
        return False

    def _file_changed(self, stat_tuple):
        return (self.fsize, self.file_mod_time) != stat_tuple

    def _reset_cache(self, stat_tuple):
        self.fsize, self.file_mod_time = stat_tuple

    def __repr__(self): return f'{self.__class__.__name__}<' \
                               f'{self.abs_path.stail}>'

#------------------------------------------------------------------------------
# Constants used for censoring the user's home directory (see below)
_USER_DIR = os.path.expanduser('~')
_CENSORED_DIR = os.path.join(os.path.split(_USER_DIR)[0], '*****')

def deprint(*args, traceback=False, trace=True, frame=1):
    """Prints message along with file and line location.
       Available keyword arguments:
       trace: (default True) - if a Truthy value, displays the module,
              line number, and function this was used from
       traceback: (default False) - if a Truthy value, prints any tracebacks
              for exceptions that have occurred.
       frame: (default 1) - With `trace`, determines the function caller's
              frame for getting the function name
    """
    if trace:
        # Warning: This may be CPython-only due to _getframe usage
        parent_frame = sys._getframe(frame)
        code_obj = parent_frame.f_code
        msg = f'{os.path.basename(code_obj.co_filename)} ' \
              f'{parent_frame.f_lineno:4d} {code_obj.co_name}: '
    else:
        msg = ''
    try:
        msg += ' '.join([f'{x}' for x in args]) # OK, even with unicode args
    except UnicodeError:
        # If the args failed to convert to unicode for some reason
        # we still want the message displayed any way we can
        for x in args:
            try:
                msg += f' {x}'
            except UnicodeError:
                msg += f' {x!r}'
    # Print to stdout by default, but change to stderr if we have an error
    target_stream = sys.stdout
    if traceback:
        target_stream = sys.stderr
        exc_fmt = _traceback.format_exc()
        msg += f'\n{exc_fmt}'
    # Censor the user's home directory, this is just a way for people to
    # unknowingly doxx themselves
    msg = msg.replace(_USER_DIR, _CENSORED_DIR)
    print(msg, flush=True, file=target_stream)
