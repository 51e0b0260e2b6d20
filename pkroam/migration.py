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
"""The migration engine: moves box records out of saves into external record
files and back, so that at any point in time a record lives either in a save
or in an external file.

Both directions rely on ordering plus atomic renames instead of an undo log.
The copy that becomes authoritative is always written durably first, the copy
that is given up is only removed afterwards. A crash in between leaves a
duplicate behind, which check_duplicates detects and re-running the
interrupted operation resolves."""
from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from .bolt import deprint
from .env import save_lock
from .exception import CorruptExternalFile, DuplicateRecord, FileError, \
    RecordResident, SaveFileError, SlotOccupied
from .gen3.locator import BoxAddress, clear_box_slot, is_box_slot_empty, \
    iter_box_addresses, read_box_record, write_box_record
from .gen3.save_files import SaveFile
from .roam_files import Provenance, RoamFile, iter_roam_files, unique_path
from .rtemp import durable_write

__author__ = u'PkRoam Team'

# Signature of the function every durable write goes through
DurableWriter = Callable[[Path, bytes], None]

@dataclass(slots=True)
class ExtractResult:
    save_path: Path
    address: BoxAddress
    roam_path: Path
    species: int
    personality: int
    # True if an identical external file from an interrupted extract existed
    # and was rewritten
    resumed: bool = False

@dataclass(slots=True)
class InsertResult:
    save_path: Path
    address: BoxAddress
    roam_path: Path
    species: int
    personality: int
    # Where the consumed external file went, None if it was deleted
    archived_path: Path | None = None

def _check_save_exists(save_path: Path):
    # Refuse early, otherwise we would create a lock file next to nothing
    if not save_path.is_file():
        raise SaveFileError(save_path, u'Save does not exist')

def _resident_records(slot) -> dict[bytes, list[BoxAddress]]:
    """Map the raw bytes of every box record in slot to the addresses that
    hold them."""
    resident = {}
    for address in iter_box_addresses():
        if not is_box_slot_empty(slot, address):
            resident.setdefault(read_box_record(
                slot, address).box_bytes, []).append(address)
    return resident

class MigrationEngine(object):
    """Extract and insert box records as crash safe transactions.

    :param storage_dir: Where extract puts external files if no destination
        is given.
    :param archive_dir: If set, insert moves consumed external files here
        instead of deleting them.
    :param writer: The function every durable write goes through."""

    def __init__(self, storage_dir=None, archive_dir=None, *,
                 writer: DurableWriter = durable_write, debug=False):
        self.storage_dir = Path(storage_dir) if storage_dir else None
        self.archive_dir = Path(archive_dir) if archive_dir else None
        self._write = writer
        self._debug = debug

    def _log(self, *args):
        if self._debug:
            deprint(*args, frame=2)

    # Extract -----------------------------------------------------------------
    def extract(self, save_path, address: BoxAddress,
                dest_path=None) -> ExtractResult:
        """Move the record at address out of the save at save_path into a new
        external file at dest_path (or a generated file in the storage dir).

        :raise SlotEmpty: if there is no record at address.
        :raise RecordChecksumMismatch: if the record is corrupt.
        :raise DurableWriteFailed: if either file could not be written. If
            this happens while rewriting the save, the external file is
            already in place and the record is a detectable duplicate."""
        save_path = Path(save_path)
        _check_save_exists(save_path)
        with save_lock(save_path):
            save_file = SaveFile(save_path)
            for warning in save_file.warnings:
                deprint(warning)
            slot = save_file.live_slot
            record = read_box_record(slot, address, save_path)
            record.decrypt()
            trainer = save_file.trainer
            roam_file = RoamFile(record, Provenance(
                timestamp=int(time.time()), trainer_id=trainer.trainer_id,
                game=save_file.game, box=address.box, slot=address.slot,
                trainer_name=trainer.name, save_path=os.fspath(save_path)))
            dest_path, resumed = self._pick_destination(roam_file, dest_path)
            if resumed is not None:
                # Keep the old provenance so that the rewrite is identical
                roam_file = resumed
            self._log(f'Writing {record!r} to {dest_path}')
            # From here on the external file is the authoritative copy
            self._write(dest_path, roam_file.to_bytes())
            clear_box_slot(slot, address)
            self._log(f'Clearing {address} in {save_path}')
            self._write(save_path, save_file.image.encode())
        return ExtractResult(save_path, address, dest_path, record.species,
                             record.personality, resumed is not None)

    def _pick_destination(self, roam_file: RoamFile, dest_path):
        """Figure out where to write roam_file. If a previous extract of the
        same record was interrupted, return its file (and its contents) so
        that we overwrite it instead of creating a second copy."""
        record_data = roam_file.record.box_bytes
        new_prov = roam_file.provenance
        def _same_record(candidate: Path):
            try:
                existing = RoamFile.read(candidate)
            except CorruptExternalFile:
                return None
            old_prov = existing.provenance
            # Identical records can live in several saves (e.g. a copy of a
            # save), only a file from this very save and trainer is ours
            same = (existing.record.box_bytes == record_data and
                    old_prov.origin_address == new_prov.origin_address and
                    old_prov.save_path == new_prov.save_path and
                    old_prov.trainer_id == new_prov.trainer_id)
            return existing if same else None
        if dest_path is not None:
            dest_path = Path(dest_path)
            if not dest_path.exists():
                dest_path.parent.mkdir(parents=True, exist_ok=True)
                return dest_path, None
            if (existing := _same_record(dest_path)) is None:
                raise FileError(dest_path, u'Destination already exists and '
                                           u'does not hold this record')
            return dest_path, existing
        if self.storage_dir is None:
            raise FileError(None, u'No destination given and no storage '
                                  u'directory configured')
        for candidate in iter_roam_files(self.storage_dir):
            if (existing := _same_record(candidate)) is not None:
                return candidate, existing
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        return unique_path(self.storage_dir,
                           roam_file.default_file_name()), None

    # Insert ------------------------------------------------------------------
    def insert(self, roam_path, save_path,
               address: BoxAddress) -> InsertResult:
        """Move the record in the external file at roam_path into the empty
        box slot at address in the save at save_path.

        :raise CorruptExternalFile: if the external file is invalid.
        :raise RecordResident: if the save already holds the record, in
            which case an earlier insert was interrupted and only the
            external file is left to remove.
        :raise SlotOccupied: if address already holds a record.
        :raise DurableWriteFailed: if the save could not be written, in which
            case nothing changed."""
        roam_path = Path(roam_path)
        save_path = Path(save_path)
        _check_save_exists(save_path)
        with save_lock(save_path):
            roam_file = RoamFile.read(roam_path)
            save_file = SaveFile(save_path)
            for warning in save_file.warnings:
                deprint(warning)
            slot = save_file.live_slot
            record = roam_file.record
            if resident_at := _resident_records(slot).get(record.box_bytes):
                raise RecordResident(resident_at[0], save_path, roam_path)
            if not is_box_slot_empty(slot, address):
                raise SlotOccupied(address, save_path)
            write_box_record(slot, address, record.box_bytes)
            self._log(f'Writing {record!r} to {address} in {save_path}')
            # From here on the save is the authoritative copy
            self._write(save_path, save_file.image.encode())
            archived_path = self._consume(roam_path)
        return InsertResult(save_path, address, roam_path, record.species,
                            record.personality, archived_path)

    def _consume(self, roam_path: Path) -> Path | None:
        try:
            if self.archive_dir is None:
                self._log(f'Removing {roam_path}')
                os.remove(roam_path)
                return None
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            archived_path = unique_path(self.archive_dir, roam_path.name)
            self._log(f'Archiving {roam_path} to {archived_path}')
            os.replace(roam_path, archived_path)
            return archived_path
        except OSError as e:
            raise FileError(roam_path, f'The record was inserted, but the '
                f'external file could not be removed ({e.strerror or e}). '
                f'Remove it manually to avoid a duplicate.') from e

    # Integrity check ---------------------------------------------------------
    def check_duplicates(self, save_path,
                         roam_paths: Iterable) -> list[DuplicateRecord]:
        """Return a DuplicateRecord for every external file whose record is
        still resident in the save at save_path, i.e. every extract or insert
        that was interrupted between its two writes. The origin address of
        each file is checked first, then the rest of the boxes."""
        save_path = Path(save_path)
        _check_save_exists(save_path)
        with save_lock(save_path, shared=True):
            save_file = SaveFile(save_path)
        resident = _resident_records(save_file.live_slot)
        duplicates = []
        for roam_path in roam_paths:
            try:
                roam_file = RoamFile.read(roam_path)
            except CorruptExternalFile as e:
                deprint(f'Skipping corrupt external file: {e}')
                continue
            if not (addresses := resident.get(roam_file.record.box_bytes)):
                continue
            origin = roam_file.provenance.origin_address
            found_at = origin if origin in addresses else addresses[0]
            duplicates.append(DuplicateRecord(save_path, found_at,
                                              Path(roam_path)))
        return duplicates
