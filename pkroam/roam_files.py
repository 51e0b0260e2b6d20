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
"""External record files (.pk3r). Each one holds a single box record moved out
of a save, plus where it came from. The layout is a header, the payload and a
trailing CRC-32 over everything that precedes it."""
from __future__ import annotations

import datetime
import io
import os
from dataclasses import dataclass
from pathlib import Path

from .bolt import Log, pack_4s, pack_byte, pack_int, pack_int64, pack_short, \
    pack_str8, pack_str16, struct_error, unpack_4s, unpack_byte, unpack_int, \
    unpack_int64, unpack_short, unpack_str8, unpack_str16, read_exact
from .checksums import file_crc
from .exception import CorruptExternalFile, RecordChecksumMismatch, \
    RecordError
from .gen3 import GameCode
from .gen3.locator import BoxAddress
from .gen3.pk3 import PK3_BOX_SIZE, Pk3Record

__author__ = u'PkRoam Team'

ROAM_EXT = u'.pk3r'
ROAM_MAGIC = b'PKRM'
ROAM_FORMAT_VERSION = 1
# The kinds of records a roam file can hold
RECORD_FORMAT_GEN3_BOX = 1

@dataclass(slots=True)
class Provenance:
    """Where and when a record was extracted."""
    # Unix time of the extraction
    timestamp: int
    trainer_id: int
    game: GameCode
    box: int
    slot: int
    trainer_name: str
    save_path: str

    @property
    def origin_address(self) -> BoxAddress:
        return BoxAddress(self.box, self.slot)

    @property
    def extracted_at(self) -> datetime.datetime:
        return datetime.datetime.fromtimestamp(self.timestamp)

class RoamFile(object):
    """A single record plus its provenance. Parsing checks the container CRC
    and the record checksum, so a RoamFile that was read successfully is
    always safe to insert."""
    __slots__ = ('record', 'provenance', 'in_name')

    def __init__(self, record: Pk3Record, provenance: Provenance,
                 in_name=None):
        self.record = record
        self.provenance = provenance
        self.in_name = in_name

    @classmethod
    def from_bytes(cls, file_data: bytes, in_name=None) -> RoamFile:
        """Parse and validate the contents of an external record file.

        :raise CorruptExternalFile: on any kind of malformed data."""
        def _corrupt(msg):
            return CorruptExternalFile(in_name, msg)
        if len(file_data) < 4:
            raise _corrupt(u'File is too small')
        body, expected_crc = file_data[:-4], unpack_int(
            io.BytesIO(file_data[-4:]))
        if (actual_crc := file_crc(body)) != expected_crc:
            raise _corrupt(f'Checksum does not match (expected '
                           f'{expected_crc:08X}, but got {actual_crc:08X})')
        ins = io.BytesIO(body)
        try:
            if (magic := unpack_4s(ins)) != ROAM_MAGIC:
                raise _corrupt(f'Invalid magic {magic!r}')
            if (ver := unpack_short(ins)) != ROAM_FORMAT_VERSION:
                raise _corrupt(f'Unsupported format version {ver}')
            if (rec_fmt := unpack_short(ins)) != RECORD_FORMAT_GEN3_BOX:
                raise _corrupt(f'Unsupported record format {rec_fmt}')
            stamp = unpack_int64(ins)
            trainer_id = unpack_int(ins)
            game_byte = unpack_byte(ins)
            if (game := GameCode.from_short_code(game_byte)) is None:
                raise _corrupt(f'Unknown game code {game_byte}')
            box, slot = unpack_byte(ins), unpack_byte(ins)
            trainer_name = unpack_str8(ins).decode('utf-8')
            save_path = unpack_str16(ins).decode('utf-8')
            record_data = read_exact(ins, PK3_BOX_SIZE)
        except struct_error as e:
            raise _corrupt(f'Truncated data: {e}') from e
        except UnicodeDecodeError as e:
            raise _corrupt(f'Invalid text: {e}') from e
        if trailing := ins.read():
            raise _corrupt(f'{len(trailing)} bytes of unexpected data after '
                           f'the record')
        provenance = Provenance(stamp, trainer_id, game, box, slot,
                                trainer_name, save_path)
        try:
            provenance.origin_address
        except RecordError as e:
            raise _corrupt(f'Invalid origin address: {e}') from e
        if not any(record_data):
            raise _corrupt(u'Record is empty')
        record = Pk3Record(record_data, in_name=in_name)
        try:
            record.decrypt()
        except RecordChecksumMismatch as e:
            raise _corrupt(f'Invalid record: {e}') from e
        return cls(record, provenance, in_name)

    @classmethod
    def read(cls, roam_path: str | os.PathLike) -> RoamFile:
        roam_path = Path(roam_path)
        try:
            with open(roam_path, 'rb') as ins:
                file_data = ins.read()
        except OSError as e:
            raise CorruptExternalFile(roam_path, f'Could not read file: '
                                                 f'{e.strerror or e}') from e
        return cls.from_bytes(file_data, in_name=roam_path)

    def to_bytes(self) -> bytes:
        prov = self.provenance
        out = io.BytesIO()
        pack_4s(out, ROAM_MAGIC)
        pack_short(out, ROAM_FORMAT_VERSION)
        pack_short(out, RECORD_FORMAT_GEN3_BOX)
        pack_int64(out, prov.timestamp)
        pack_int(out, prov.trainer_id)
        pack_byte(out, prov.game.short_code)
        pack_byte(out, prov.box)
        pack_byte(out, prov.slot)
        pack_str8(out, prov.trainer_name.encode('utf-8'))
        pack_str16(out, prov.save_path.encode('utf-8'))
        out.write(self.record.box_bytes)
        pack_int(out, file_crc(out.getvalue()))
        return out.getvalue()

    def default_file_name(self) -> str:
        """A file name that identifies the record, for storage dirs."""
        stamp = self.provenance.extracted_at.strftime('%Y%m%d-%H%M%S')
        return (f'{stamp}_{self.record.species:03d}_'
                f'{self.record.personality:08X}{ROAM_EXT}')

    def dump_to_log(self, log: Log):
        prov = self.provenance
        log.setHeader(f'== {self.in_name or "External record"}')
        log(f'  Extracted:   {prov.extracted_at:%Y-%m-%d %H:%M:%S}')
        log(f'  From:        {prov.save_path} @ {prov.origin_address}')
        log(f'  Trainer:     {prov.trainer_name} '
            f'({prov.trainer_id & 0xFFFF:05d}, {prov.game.value})')
        self.record.dump_to_log(log)

def iter_roam_files(roam_dir: str | os.PathLike):
    """Yield the paths of all external record files in roam_dir, sorted by
    name. Yields nothing if the directory does not exist."""
    roam_dir = Path(roam_dir)
    if not roam_dir.is_dir(): return
    yield from sorted(p for p in roam_dir.iterdir()
                      if p.suffix.lower() == ROAM_EXT and p.is_file())

def unique_path(target_dir: str | os.PathLike, file_name: str) -> Path:
    """Return a path for file_name in target_dir that does not exist yet,
    appending a counter to the stem if needed."""
    target = Path(target_dir, file_name)
    counter = 1
    while target.exists():
        target = Path(target_dir, f'{Path(file_name).stem}-{counter}'
                                  f'{Path(file_name).suffix}')
        counter += 1
    return target
