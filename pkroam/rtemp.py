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
"""Encapsulates PkRoam's temporary file handling and the durable write
procedure every save and external record file goes through.

Generally, you want to use TempFile in a context handler. That way you
guarantee that the temporary file will get cleaned up, no matter how
complicated your flow of logic might get or even if an exception occurs.

Temporary files are always created next to their final destination, so that
the final os.replace is a same-filesystem rename and hence atomic."""
from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

# *No other local imports!* (besides exception and env)
from .env import fsync_dir
from .exception import DurableWriteFailed

# Internals -------------------------------------------------------------------
# Files we created and hence are safe to clean up by us as well
_our_temp_files: set[Path] = set()

# API - Temporary Files -------------------------------------------------------
def new_temp_file(*, temp_prefix='', temp_suffix='.tmp', base_dir) -> str:
    """Create a new, unique, temporary file in base_dir. The caller is
    responsible for cleaning it up via cleanup_temp_file once done.

    Use only when absolutely needed, TempFile is almost always a better
    choice."""
    ntf_fd, ntf = tempfile.mkstemp(dir=base_dir,
        prefix=f'{temp_prefix}_' if temp_prefix else '', suffix=temp_suffix)
    _our_temp_files.add(Path(ntf))
    os.close(ntf_fd)
    return ntf

def cleanup_temp_file(temp_file: str | os.PathLike) -> None:
    """Clean up a temporary file created via new_temp_file. Will raise an error
    if called on a file that wasn't created via new_temp_file or if it is
    called twice on the same file."""
    fixed_path = Path(temp_file)
    try:
        _our_temp_files.remove(fixed_path)
    except KeyError:
        # 'from None' to drop the unhelpful KeyError traceback
        raise RuntimeError(
            f"Refusing to delete file that wasn't created by this instance's "
            f"new_temp_file or was already cleaned up (offending path: "
            f"{temp_file})") from None
    try:
        os.remove(fixed_path)
    except FileNotFoundError:
        pass # Already cleaned up (e.g. by moving it into place)

class TempFile:
    """Convenient and error-resistant way to create and clean up a unique
    temporary file with a context handler."""
    def __init__(self, *, temp_prefix='', temp_suffix='.tmp', base_dir):
        self._temp_prefix = temp_prefix
        self._temp_suffix = temp_suffix
        self._base_dir = base_dir

    def __enter__(self):
        self._temp_file = new_temp_file(temp_prefix=self._temp_prefix,
            temp_suffix=self._temp_suffix, base_dir=self._base_dir)
        return self._temp_file

    def __exit__(self, exc_type, exc_val, exc_tb):
        cleanup_temp_file(self._temp_file)

# API - Durable writes --------------------------------------------------------
def _target_mode(target_path: Path) -> int:
    """The permission bits the written file should end up with: those of the
    file it replaces, else what open() would create it with."""
    try:
        return stat.S_IMODE(os.stat(target_path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask

def durable_write(target_path: str | os.PathLike, file_data: bytes) -> None:
    """Write file_data to a temporary file next to target_path, flush and
    fsync it, then atomically rename it over target_path and sync the
    directory. Either the old or the new contents are on disk afterwards,
    never a mix. The permissions of the replaced file are kept.

    :raise DurableWriteFailed: if any of the steps fails. If that happens
        before the rename the target is untouched, if only the final
        directory sync fails the new contents are already in place but may
        not survive a power loss."""
    target_path = Path(target_path)
    try:
        with TempFile(temp_prefix=target_path.name,
                      base_dir=target_path.parent) as tmp_path:
            with open(tmp_path, 'wb') as out:
                out.write(file_data)
                out.flush()
                os.fsync(out.fileno())
            os.chmod(tmp_path, _target_mode(target_path))
            os.replace(tmp_path, target_path)
            fsync_dir(target_path.parent)
    except OSError as e:
        raise DurableWriteFailed(target_path, e) from e
