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
import os
import platform

import pytest

from .. import env
from ..exception import LockError

class TestFileLock(object):
    def test_creates_lock_file(self, tmp_path):
        save_path = tmp_path / 'test.sav'
        with env.save_lock(save_path) as lock_path:
            assert lock_path == tmp_path / 'test.sav.lock'
            assert lock_path.is_file()

    def test_reentrant_after_release(self, tmp_path):
        lock_path = tmp_path / 'x.lock'
        with env.file_lock(lock_path):
            pass
        # Released on exit, so taking it again must not block
        with env.file_lock(lock_path):
            pass

    def test_released_on_error(self, tmp_path):
        lock_path = tmp_path / 'x.lock'
        with pytest.raises(ZeroDivisionError):
            with env.file_lock(lock_path):
                1 / 0
        with env.file_lock(lock_path):
            pass

    @pytest.mark.skipif(platform.system() == 'Windows',
                        reason='msvcrt has no shared locks')
    def test_shared_locks(self, tmp_path):
        lock_path = tmp_path / 'x.lock'
        with env.file_lock(lock_path, shared=True):
            with env.file_lock(lock_path, shared=True):
                pass

    def test_unopenable_lock_file(self, tmp_path):
        lock_path = tmp_path / 'x.lock'
        lock_path.mkdir()
        with pytest.raises(LockError) as exc_info:
            with env.file_lock(lock_path):
                pass
        assert isinstance(exc_info.value.orig_error, OSError)

    def test_lock_failure(self, monkeypatch, tmp_path):
        def _refuse(fd, shared=False):
            raise PermissionError(13, 'Permission denied')
        monkeypatch.setattr(env, 'lock_file', _refuse)
        with pytest.raises(LockError, match='Permission denied'):
            with env.file_lock(tmp_path / 'x.lock'):
                pass

def test_config_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv(env.CONFIG_DIR_ENV, os.fspath(tmp_path))
    assert env.get_config_dir_override() == tmp_path
    monkeypatch.delenv(env.CONFIG_DIR_ENV)
    assert env.get_config_dir_override() is None

@pytest.mark.skipif(platform.system() == 'Windows', reason='XDG only')
def test_local_app_data_path(monkeypatch, tmp_path):
    monkeypatch.setenv('XDG_DATA_HOME', os.fspath(tmp_path))
    assert env.get_local_app_data_path() == tmp_path / 'pkroam'

def test_fsync_dir(tmp_path):
    env.fsync_dir(tmp_path)
