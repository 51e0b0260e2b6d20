# -*- coding: utf-8 -*-
#
# GPL License and Copyright Notice ============================================
#  This file is part of PkRoam.
#
#  PkRoam is free software: you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation, either version 3
#  of the License, or (at your option) any later version.
#
#  PkRoam is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with PkRoam.  If not, see <https://www.gnu.org/licenses/>.
#
#  PkRoam copyright (C) 2023-2026 PkRoam Team
#
# =============================================================================
"""Shared code between the OS-specific env implementations."""
from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path

__all__ = ['os', 'contextmanager', 'Path', 'LOCK_SUFFIX', 'APP_DIR_NAME',
           'CONFIG_DIR_ENV', 'get_config_dir_override']

LOCK_SUFFIX = '.lock'
APP_DIR_NAME = 'pkroam'
CONFIG_DIR_ENV = 'PKROAM_CONFIG_DIR'

def get_config_dir_override() -> Path | None:
    """Return the config dir set via the environment, if any."""
    if env_val := os.getenv(CONFIG_DIR_ENV):
        return Path(env_val)
    return None
