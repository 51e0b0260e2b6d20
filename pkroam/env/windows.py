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
"""Implements env for Windows systems."""
from __future__ import annotations

import msvcrt
import os
from pathlib import Path

from .common import APP_DIR_NAME

__all__ = ['lock_file', 'unlock_file', 'fsync_dir', 'get_local_app_data_path']

# msvcrt only knows exclusive byte range locks - lock the first byte of the
# lock file, readers serialize with writers and with each other
def lock_file(fd: int, *, shared=False):
    os.lseek(fd, 0, os.SEEK_SET)
    msvcrt.locking(fd, msvcrt.LK_LOCK, 1)

def unlock_file(fd: int):
    os.lseek(fd, 0, os.SEEK_SET)
    msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)

def fsync_dir(dir_path: str | os.PathLike):
    """Directories can't be opened for syncing on Windows, MoveFileEx already
    flushes the rename."""

def get_local_app_data_path() -> Path:
    if local_app_data := os.getenv('LOCALAPPDATA'):
        return Path(local_app_data) / APP_DIR_NAME
    return Path(os.path.expanduser('~'), 'AppData', 'Local', APP_DIR_NAME)
