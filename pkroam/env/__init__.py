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
"""The env module encapsulates OS-specific functions: advisory file locks,
directory syncing and the local application data directory. This is the
central import point, always import directly from here to get the right
implementations for the current OS."""
from __future__ import annotations

import platform

from ..exception import LockError

# First import the shared API
from .common import *

# Then check which OS we are running on and import *only* from there
match platform.system():
    case 'Windows': from .windows import *
    case 'Linux': from .linux import *
    case 'Darwin': from .linux import * # same POSIX APIs as Linux
    case _: raise ImportError(f'PkRoam does not support '
                              f'{platform.system()} yet')

# Higher level APIs using imported OS-specific ones ---------------------------
@contextmanager
def file_lock(lock_path: str | os.PathLike, *, shared=False):
    """Hold an advisory lock on lock_path for the duration of the with block,
    creating the lock file if needed. Exclusive by default, shared locks may
    be held by several readers at once. Released on every exit path.

    :raise LockError: if the lock file can't be created or locked."""
    lock_path = Path(lock_path)
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock_fp = open(lock_path, 'a+b')
    except OSError as e:
        raise LockError(lock_path, e) from e
    with lock_fp:
        try:
            lock_file(lock_fp.fileno(), shared=shared)
        except OSError as e:
            raise LockError(lock_path, e) from e
        try:
            yield lock_path
        finally:
            unlock_file(lock_fp.fileno())

def save_lock(save_path: str | os.PathLike, *, shared=False):
    """Lock the sidecar '<save>.lock' file that guards save_path."""
    save_path = Path(save_path)
    return file_lock(save_path.with_name(save_path.name + LOCK_SUFFIX),
                     shared=shared)
