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
"""Read-only views of saves: per-save summaries for a list of configured saves
and per-record summaries of a single save. Problems with a single save or
record are reported in the summaries instead of aborting the listing."""
from __future__ import annotations

from collections.abc import Iterable
from itertools import count
from dataclasses import dataclass
from pathlib import Path

from .bolt import Log, deprint
from .env import save_lock
from .exception import LockError, RecordChecksumMismatch, SaveFileError
from .gen3 import GameCode
from .gen3.locator import BoxAddress
from .gen3.pk3 import Pk3Record
from .gen3.save_files import PlayTime, SaveFile

__author__ = u'PkRoam Team'

STATUS_OK = u'ok'
STATUS_DEGRADED = u'degraded'
STATUS_CORRUPT = u'corrupt'
STATUS_MISSING = u'missing'

@dataclass(slots=True)
class SaveSummary:
    path: Path
    status: str
    game: GameCode | None = None
    trainer_name: str | None = None
    trainer_id: int | None = None
    play_time: PlayTime | None = None
    # 'A' or 'B'
    live_slot: str | None = None
    error: str | None = None

    @property
    def public_id(self) -> int | None:
        return None if self.trainer_id is None else self.trainer_id & 0xFFFF

@dataclass(slots=True)
class RecordSummary:
    # Set for party records (zero-based)
    party_index: int | None = None
    # Set for box records
    address: BoxAddress | None = None
    species: int | None = None
    nickname: str = u''
    level: int | None = None
    is_egg: bool = False
    error: str | None = None

    @property
    def is_corrupt(self) -> bool:
        return self.error is not None

    @property
    def location(self) -> str:
        if self.address is not None:
            return f'{self.address}'
        return f'party slot {self.party_index + 1}'

def _summarize_record(record: Pk3Record, **kwargs) -> RecordSummary:
    summary = RecordSummary(nickname=record.nickname, **kwargs)
    try:
        subs = record.decrypt()
    except RecordChecksumMismatch as e:
        summary.error = f'{e}'
        return summary
    summary.species = subs.growth.species
    summary.is_egg = subs.misc.is_egg
    if stats := record.party_stats:
        summary.level = stats.level
    return summary

class SaveCatalog(object):
    """Read-only access to saves, taking a shared lock per save."""

    def __init__(self, debug=False):
        self._debug = debug

    def load_save(self, save_path) -> SaveFile:
        """Load and decode the save at save_path under a shared lock.

        :raise SaveFileError: if the save is missing, can't be locked or is
            corrupt."""
        save_path = Path(save_path)
        if not save_path.is_file():
            raise SaveFileError(save_path, u'Save does not exist')
        try:
            with save_lock(save_path, shared=True):
                return SaveFile(save_path)
        except LockError as e:
            raise SaveFileError(save_path, f'Could not lock save: '
                                           f'{e}') from e

    def list_saves(self, paths: Iterable) -> list[SaveSummary]:
        summaries = []
        for save_path in map(Path, paths):
            if not save_path.is_file():
                summaries.append(SaveSummary(save_path, STATUS_MISSING,
                                             error=u'Save does not exist'))
                continue
            try:
                save_file = self.load_save(save_path)
            except SaveFileError as e:
                if self._debug:
                    deprint(f'Failed to load {save_path}', traceback=True)
                summaries.append(SaveSummary(save_path, STATUS_CORRUPT,
                                             error=f'{e}'))
                continue
            trainer = save_file.trainer
            warnings = save_file.warnings
            summaries.append(SaveSummary(save_path,
                STATUS_DEGRADED if warnings else STATUS_OK,
                game=trainer.game, trainer_name=trainer.name,
                trainer_id=trainer.trainer_id, play_time=trainer.play_time,
                live_slot='AB'[save_file.image.live_index],
                error='; '.join(map(str, warnings)) or None))
        return summaries

    def list_records(self, save_path) -> list[RecordSummary]:
        """Summarize the party records, then the box records of a save."""
        save_file = self.load_save(save_path)
        summaries = [_summarize_record(rec, party_index=i) for i, rec in
                     enumerate(save_file.party_records())]
        summaries.extend(_summarize_record(rec, address=addr) for addr, rec
                         in save_file.box_records())
        return summaries

def log_save_summaries(log: Log, summaries: list[SaveSummary],
                       save_ids: list[int] | None = None):
    """Write a table of save summaries, numbered by save_ids (or from 1)."""
    log.setHeader(u'== Saves')
    for i, summ in zip(save_ids or count(1), summaries):
        if summ.status in (STATUS_MISSING, STATUS_CORRUPT):
            log(f'  {i:3d}. [{summ.status}] {summ.path}: {summ.error}')
            continue
        log(f'  {i:3d}. [{summ.status}] {summ.path}')
        log(f'       {summ.trainer_name} ({summ.public_id:05d}) - '
            f'{summ.game.value}, {summ.play_time}, slot {summ.live_slot}')
        if summ.error:
            log(f'       {summ.error}')

def log_record_summaries(log: Log, summaries: list[RecordSummary]):
    log.setHeader(u'== Party')
    prev_box = None
    for summ in summaries:
        if summ.address is not None and summ.address.box != prev_box:
            prev_box = summ.address.box
            log.setHeader(f'== Box {prev_box + 1}')
        if summ.is_corrupt:
            log(f'  {summ.location}: {summ.nickname} [corrupt] {summ.error}')
            continue
        level = f', level {summ.level}' if summ.level is not None else ''
        egg = u' (egg)' if summ.is_egg else u''
        log(f'  {summ.location}: {summ.nickname}{egg} - species '
            f'{summ.species}{level}')
