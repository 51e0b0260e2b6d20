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
"""Save files on disk: loading, trainer info and record enumeration on top of
the section codec and the record locator."""
from __future__ import annotations

from dataclasses import dataclass

from . import GameCode
from .locator import PARTY_SIZE, BoxAddress, get_game, is_box_slot_empty, \
    iter_box_addresses, party_count, read_box_name, read_box_record, \
    read_current_box, read_party_record
from .pk3 import Pk3Record
from .sections import SaveImage, SaveSlot, decode_image
from ..bolt import AFile, Log, decode_text, read_u32, structs_cache
from ..exception import RecordChecksumMismatch, SaveFileError

__author__ = u'PkRoam Team'

# Section 0 layout
_TRAINER_NAME_SIZE = 7
_GENDER_OFFSET = 0x08
_TRAINER_ID_OFFSET = 0x0A
_PLAY_TIME_OFFSET = 0x0E
_play_time_struct = structs_cache['<H3B']

@dataclass(slots=True)
class PlayTime:
    hours: int
    minutes: int
    seconds: int
    frames: int

    def __str__(self):
        return f'{self.hours}:{self.minutes:02d}:{self.seconds:02d}'

@dataclass(slots=True)
class TrainerInfo:
    name: str
    # 0 = male, 1 = female
    gender: int
    trainer_id: int
    play_time: PlayTime
    game: GameCode

    @property
    def public_id(self) -> int: return self.trainer_id & 0xFFFF
    @property
    def secret_id(self) -> int: return self.trainer_id >> 16
    @property
    def gender_name(self) -> str:
        return ('Male', 'Female')[self.gender] if self.gender in (0, 1) \
            else f'Unknown ({self.gender})'

def read_trainer_info(slot: SaveSlot) -> TrainerInfo:
    trainer_data = slot.section(0).payload
    return TrainerInfo(
        name=decode_text(trainer_data[:_TRAINER_NAME_SIZE]),
        gender=trainer_data[_GENDER_OFFSET],
        trainer_id=read_u32(trainer_data, _TRAINER_ID_OFFSET),
        play_time=PlayTime(*_play_time_struct.unpack_from(
            trainer_data, _PLAY_TIME_OFFSET)),
        game=get_game(slot))

class SaveFile(AFile):
    """A save file on disk, decoded into a SaveImage on load. Read-only: all
    writes go through the migration engine."""
    __slots__ = ('image', 'trainer')

    def __init__(self, fullpath):
        try:
            super(SaveFile, self).__init__(fullpath, load_cache=True,
                                           raise_on_error=True)
        except OSError as e:
            raise SaveFileError(fullpath, f'Could not read save: '
                                          f'{e.strerror or e}') from e

    def _reset_cache(self, stat_tuple, **kwargs):
        super(SaveFile, self)._reset_cache(stat_tuple, **kwargs)
        if kwargs.get('load_cache'):
            with open(self.abs_path, 'rb') as ins:
                raw = ins.read()
            self.image: SaveImage = decode_image(raw, in_name=self.abs_path)
            self.trainer = read_trainer_info(self.live_slot)

    @property
    def live_slot(self) -> SaveSlot: return self.image.live_slot
    @property
    def warnings(self): return self.image.warnings
    @property
    def game(self) -> GameCode: return self.trainer.game

    def read_box_record(self, address: BoxAddress) -> Pk3Record:
        return read_box_record(self.live_slot, address, self.abs_path)

    def party_records(self) -> list[Pk3Record]:
        return [read_party_record(self.live_slot, i, self.abs_path)
                for i in range(min(party_count(self.live_slot), PARTY_SIZE))]

    def box_records(self):
        """Yield (address, record) for every occupied box slot."""
        for address in iter_box_addresses():
            if not is_box_slot_empty(self.live_slot, address):
                yield address, read_box_record(self.live_slot, address,
                                               self.abs_path)

    def dump_to_log(self, log: Log, verbose=False):
        log.setHeader(u'== Trainer')
        log(f'  Name:      {self.trainer.name}')
        log(f'  Gender:    {self.trainer.gender_name}')
        log(f'  ID:        {self.trainer.public_id:05d} (secret '
            f'{self.trainer.secret_id:05d})')
        log(f'  Play time: {self.trainer.play_time}')
        log(f'  Game:      {self.game.value}')
        log.setHeader(u'== Save slots')
        for warning in self.warnings:
            log(f'  WARNING: {warning}')
        self.live_slot.dump_to_log(log)
        log.setHeader(u'== Party')
        for party_index, record in enumerate(self.party_records()):
            log(f' Party slot {party_index + 1}:')
            record.dump_to_log(log)
        current_box = read_current_box(self.live_slot)
        prev_box = None
        for address, record in self.box_records():
            if address.box != prev_box:
                prev_box = address.box
                box_name = read_box_name(self.live_slot, address.box)
                current = ' (current)' if address.box == current_box else ''
                log.setHeader(f'== Box {address.box + 1}: {box_name}'
                              f'{current}')
            if verbose:
                log(f' Slot {address.slot + 1}:')
                record.dump_to_log(log)
            else:
                try:
                    summary = f'species {record.species}'
                except RecordChecksumMismatch as e:
                    summary = f'CORRUPT ({e})'
                log(f' Slot {address.slot + 1:2d}: {record.nickname} '
                    f'({summary})')
