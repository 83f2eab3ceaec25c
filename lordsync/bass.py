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
"""This module just stores some data that all modules have to be able to access
without worrying about circular imports."""

from collections import defaultdict

# no local imports

AppVersion = '1.0'

# The settings file read by default when none is passed on the command line
default_settings_file = 'lordsync.toml'

# Settings read from lordsync.toml in initialization.read_boot_settings. Used
# to house the game and its paths, the command line takes precedence
boot_settings = defaultdict(dict)
boot_settings_defaults = {
    'Game': {
        'name': '',
        'game_path': '',
        'local_path': '',
    },
}
