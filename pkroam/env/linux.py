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
"""Implements env for Linux and macOS systems."""
from __future__ import annotations

import fcntl
import os
from pathlib import Path

from .common import APP_DIR_NAME

__all__ = ['lock_file', 'unlock_file', 'fsync_dir', 'get_local_app_data_path']

def lock_file(fd: int, *, shared=False):
    fcntl.flock(fd, fcntl.LOCK_SH if shared else fcntl.LOCK_EX)

def unlock_file(fd: int):
    fcntl.flock(fd, fcntl.LOCK_UN)

def fsync_dir(dir_path: str | os.PathLike):
    """Flush the directory entry of a freshly renamed file to disk, otherwise
    the rename itself may be lost on power failure."""
    dir_fd = os.open(dir_path, os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)

def _get_xdg_path(xdg_var: str) -> Path:
    """Retrieve a path from an XDG environment variable. If no such variable is
    set, fall back to the corresponding legacy path."""
    if xdg_val := os.getenv(xdg_var):
        return Path(xdg_val)
    home_path = os.path.expanduser('~')
    # For this mapping, see:
    #  - https://specifications.freedesktop.org/basedir-spec/basedir-spec-latest.html
    return Path({
        'XDG_CACHE_HOME':  f'{home_path}/.cache',
        'XDG_CONFIG_HOME': f'{home_path}/.config',
        'XDG_DATA_HOME':   f'{home_path}/.local/share',
        'XDG_STATE_HOME':  f'{home_path}/.local/state',
    }[xdg_var])

def get_local_app_data_path() -> Path:
    return _get_xdg_path('XDG_DATA_HOME') / APP_DIR_NAME
