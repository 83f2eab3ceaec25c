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
"""This module contains all custom exceptions for lordsync."""

# NO LOCAL IMPORTS! This has to be importable from any module/package.

class BoltError(Exception):
    """Generic error with a string message."""
    def __init__(self, message):
        self.message = message
    def __str__(self):
        return self.message

# Argument exceptions ---------------------------------------------------------
class ArgumentError(BoltError):
    """Coding Error: Argument out of allowed range of values."""
    def __init__(self, message='Argument is out of allowed ranged of values.'):
        super(ArgumentError, self).__init__(message)

class MasterNotFirstError(ArgumentError):
    """The game master must load first, and nothing else may take its
    place."""
    def __init__(self, master, plugin=None):
        if plugin is None:
            msg = f'{master} must load first.'
        else:
            msg = f'Cannot set {plugin} to load first: {master} must load ' \
                  f'first.'
        super(MasterNotFirstError, self).__init__(msg)
        self.master, self.plugin = master, plugin

class MastersNotPartitionedError(ArgumentError):
    """A master would load after a non-master plugin."""
    def __init__(self, master, plugin):
        super(MastersNotPartitionedError, self).__init__(
            f'Master {master} loads after non-master {plugin}.')
        self.master, self.plugin = master, plugin

class DuplicatePluginError(ArgumentError):
    def __init__(self, plugin):
        super(DuplicatePluginError, self).__init__(
            f'{plugin} is listed more than once.')
        self.plugin = plugin

class InvalidPluginError(ArgumentError):
    """A plugin that is not installed or whose header is not recognized."""
    def __init__(self, plugin):
        super(InvalidPluginError, self).__init__(
            f'{plugin} is not a valid plugin file.')
        self.plugin = plugin

class PluginNotFoundError(InvalidPluginError):
    def __init__(self, plugin):
        super(InvalidPluginError, self).__init__(
            f'{plugin} is not installed.')
        self.plugin = plugin

class PluginPositionError(ArgumentError):
    """Moving the plugin to the requested index would put a master after a
    non-master or the inverse."""
    def __init__(self, plugin, index, message):
        super(PluginPositionError, self).__init__(
            f'Cannot move {plugin} to position {index}: {message}')
        self.plugin, self.index = plugin, index

class PositionOutOfRangeError(ArgumentError):
    def __init__(self, index, size):
        super(PositionOutOfRangeError, self).__init__(
            f'Position {index} is out of range (load order has {size} '
            f'plugins).')
        self.index, self.size = index, size

class TooManyActivePluginsError(ArgumentError):
    def __init__(self, count, limit):
        super(TooManyActivePluginsError, self).__init__(
            f'Cannot activate {count} plugins, at most {limit} may be '
            f'active.')
        self.count, self.limit = count, limit

class ImplicitlyActiveError(ArgumentError):
    """Attempt to deactivate a plugin the game always loads."""
    def __init__(self, plugin):
        super(ImplicitlyActiveError, self).__init__(
            f'{plugin} is always active and cannot be deactivated.')
        self.plugin = plugin

# File exceptions -------------------------------------------------------------
class FileError(BoltError):
    """An error that occurred while handling a file."""
    def __init__(self, in_name, message):
        super(FileError, self).__init__(message)
        self._in_name = (in_name and '%s' % in_name) or 'Unknown File'

    def __str__(self):
        return f'{self._in_name}: {self.message}'

class LoFileNotFoundError(FileError):
    def __init__(self, in_name):
        super(LoFileNotFoundError, self).__init__(in_name,
                                                  'File cannot be found.')

class FileReadError(FileError):
    def __init__(self, in_name, details):
        super(FileReadError, self).__init__(in_name,
            f'File could not be read. Details: {details}')

class FileWriteError(FileError):
    def __init__(self, in_name, details):
        super(FileWriteError, self).__init__(in_name,
            f'File cannot be written to. Details: {details}')

class FileEncodingError(FileError):
    """The file contents could not be decoded using the encoding the game
    expects for that file."""
    def __init__(self, in_name, encoding, detected_encoding=None):
        msg = f'File is not encoded in valid {encoding}.'
        if detected_encoding:
            msg += f' It appears to be encoded in {detected_encoding}.'
        super(FileEncodingError, self).__init__(in_name, msg)
        self.encoding = encoding
        self.detected_encoding = detected_encoding

class TimestampReadError(FileError):
    def __init__(self, in_name, details):
        super(TimestampReadError, self).__init__(in_name,
            f'Modification time could not be read. Details: {details}')

class TimestampWriteError(FileError):
    def __init__(self, in_name, details):
        super(TimestampWriteError, self).__init__(in_name,
            f'Modification time could not be set. Details: {details}')

# Validity warnings -----------------------------------------------------------
class InvalidListWarning(BoltError):
    """A load order or active plugins list the game would not handle
    properly. Only raised when explicitly checking validity, never blocks
    other operations."""

class MasterNotFirstWarning(InvalidListWarning):
    def __init__(self, master, first):
        super(MasterNotFirstWarning, self).__init__(
            f'{master} is not the first plugin in the load order. {first} is '
            f'first.')
        self.master, self.plugin = master, first

class PluginNotInstalledWarning(InvalidListWarning):
    def __init__(self, plugin):
        super(PluginNotInstalledWarning, self).__init__(
            f'{plugin} is not installed.')
        self.plugin = plugin

class PluginNotValidWarning(InvalidListWarning):
    def __init__(self, plugin):
        super(PluginNotValidWarning, self).__init__(
            f'{plugin} is not a valid plugin file.')
        self.plugin = plugin

class MasterAfterPluginWarning(InvalidListWarning):
    def __init__(self, master, plugin):
        super(MasterAfterPluginWarning, self).__init__(
            f'Master {master} loads after non-master {plugin}.')
        self.master, self.plugin = master, plugin

class DuplicateEntryWarning(InvalidListWarning):
    def __init__(self, plugin):
        super(DuplicateEntryWarning, self).__init__(
            f'{plugin} is in the load order twice.')
        self.plugin = plugin

class LoadsBeforeMasterWarning(InvalidListWarning):
    def __init__(self, plugin, master):
        super(LoadsBeforeMasterWarning, self).__init__(
            f'{plugin} loads before its master {master}.')
        self.plugin, self.master = plugin, master

class ActivePluginMissingWarning(InvalidListWarning):
    def __init__(self, plugin):
        super(ActivePluginMissingWarning, self).__init__(
            f'{plugin} is active but not installed.')
        self.plugin = plugin

class TooManyActivePluginsWarning(InvalidListWarning):
    def __init__(self, count, limit):
        super(TooManyActivePluginsWarning, self).__init__(
            f'{count} plugins are active, more than the maximum of {limit}.')
        self.count, self.limit = count, limit

class MasterNotActiveWarning(InvalidListWarning):
    def __init__(self, master):
        super(MasterNotActiveWarning, self).__init__(
            f'{master} is not active.')
        self.plugin = master

class UpdateMasterNotActiveWarning(InvalidListWarning):
    def __init__(self, plugin):
        super(UpdateMasterNotActiveWarning, self).__init__(
            f'{plugin} is installed but not active.')
        self.plugin = plugin
