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
"""Resolves record addresses to the bytes that hold them inside a decoded save
slot.

The PC storage system is the concatenation of the data regions of sections 5
to 13: a dword holding the current box, 14 boxes of 30 box records each, then
the box names and wallpapers. Since the sections are only 3968 bytes long,
some records straddle two sections. The party lives in section 1."""
from __future__ import annotations

from dataclasses import dataclass

from . import GameCode
from .pk3 import PK3_BOX_SIZE, PK3_PARTY_SIZE, Pk3Record
from .sections import SECTION_DATA_SIZE, SaveSlot, checked_size
from ..bolt import decode_text, read_u32
from ..exception import AddressOutOfRange, SlotEmpty

__author__ = u'PkRoam Team'

BOX_COUNT = 14
SLOTS_PER_BOX = 30
PARTY_SIZE = 6
PC_FIRST_SECTION = 5
PC_LAST_SECTION = 13
_CURRENT_BOX_SIZE = 4
_BOX_NAME_SIZE = 9
_BOX_NAMES_OFFSET = _CURRENT_BOX_SIZE + BOX_COUNT * SLOTS_PER_BOX * \
                    PK3_BOX_SIZE
_WALLPAPERS_OFFSET = _BOX_NAMES_OFFSET + BOX_COUNT * _BOX_NAME_SIZE
PC_BUFFER_SIZE = _WALLPAPERS_OFFSET + BOX_COUNT
# Section 0 (trainer info)
GAME_CODE_OFFSET = 0xAC
# Section 1 (team and items), the party count dword is followed by the party
_PARTY_COUNT_OFFSETS = {
    GameCode.RUBY_SAPPHIRE: 0x234,
    GameCode.EMERALD: 0x234,
    GameCode.FIRERED_LEAFGREEN: 0x34,
}

class BoxAddress(object):
    """The address of a box slot. Zero-based, user facing text numbers boxes
    and slots from 1."""
    __slots__ = ('box', 'slot')

    def __init__(self, box: int, slot: int):
        if not (0 <= box < BOX_COUNT and 0 <= slot < SLOTS_PER_BOX):
            raise AddressOutOfRange(f'Box {box + 1}, slot {slot + 1} is out '
                f'of range (boxes 1-{BOX_COUNT}, slots 1-{SLOTS_PER_BOX})')
        self.box = box
        self.slot = slot

    @classmethod
    def from_user(cls, box: int, slot: int) -> BoxAddress:
        """Create an address from one-based box and slot numbers."""
        return cls(box - 1, slot - 1)

    @property
    def flat_index(self) -> int:
        return self.box * SLOTS_PER_BOX + self.slot

    def __eq__(self, other):
        if not isinstance(other, BoxAddress):
            return NotImplemented
        return (self.box, self.slot) == (other.box, other.slot)

    def __hash__(self): return hash((self.box, self.slot))

    def __str__(self): return f'box {self.box + 1}, slot {self.slot + 1}'

    def __repr__(self): return f'BoxAddress({self.box}, {self.slot})'

def iter_box_addresses():
    for box in range(BOX_COUNT):
        for slot in range(SLOTS_PER_BOX):
            yield BoxAddress(box, slot)

@dataclass(slots=True, frozen=True)
class Span:
    section_id: int
    offset: int
    length: int

@dataclass(slots=True, frozen=True)
class RecordExtent:
    """The bytes holding one record, as an ordered list of spans. Usually a
    single span, two if the record straddles a section boundary."""
    spans: tuple[Span, ...]

    @property
    def size(self) -> int:
        return sum(s.length for s in self.spans)

def _pc_extent(pc_offset: int, size: int) -> RecordExtent:
    """Map a range of the PC buffer to the section spans that hold it."""
    spans = []
    while size:
        sect_id = PC_FIRST_SECTION + pc_offset // SECTION_DATA_SIZE
        sect_offset = pc_offset % SECTION_DATA_SIZE
        span_len = min(size, checked_size(sect_id) - sect_offset)
        spans.append(Span(sect_id, sect_offset, span_len))
        pc_offset += span_len
        size -= span_len
    return RecordExtent(tuple(spans))

def locate_box(address: BoxAddress) -> RecordExtent:
    return _pc_extent(_CURRENT_BOX_SIZE + address.flat_index * PK3_BOX_SIZE,
                      PK3_BOX_SIZE)

def get_game(slot: SaveSlot) -> GameCode:
    return GameCode.from_code(read_u32(slot.section(0).payload,
                                       GAME_CODE_OFFSET))

def party_count(slot: SaveSlot) -> int:
    return read_u32(slot.section(1).payload,
                    _PARTY_COUNT_OFFSETS[get_game(slot)])

def locate_party(slot: SaveSlot, index: int) -> RecordExtent:
    """Return the extent of the party record with the specified index.

    :raise AddressOutOfRange: if index is not in 0-5.
    :raise SlotEmpty: if index is beyond the current party count."""
    address = f'party slot {index + 1}'
    if not 0 <= index < PARTY_SIZE:
        raise AddressOutOfRange(f'Party index {index} is out of range '
                                f'(0-{PARTY_SIZE - 1})', address)
    if index >= party_count(slot):
        raise SlotEmpty(address)
    start = _PARTY_COUNT_OFFSETS[get_game(slot)] + 4 + index * PK3_PARTY_SIZE
    return RecordExtent((Span(1, start, PK3_PARTY_SIZE),))

def read(slot: SaveSlot, extent: RecordExtent) -> bytes:
    return b''.join(slot.section(s.section_id).payload[
                        s.offset:s.offset + s.length] for s in extent.spans)

def write(slot: SaveSlot, extent: RecordExtent, data: bytes):
    """Replace exactly the bytes covered by extent with data."""
    if len(data) != extent.size:
        raise ValueError(f'Got {len(data)} bytes to write into a '
                         f'{extent.size}-byte extent')
    pos = 0
    for s in extent.spans:
        slot.section(s.section_id).payload[s.offset:s.offset + s.length] = \
            data[pos:pos + s.length]
        pos += s.length

def is_box_slot_empty(slot: SaveSlot, address: BoxAddress) -> bool:
    return not any(read(slot, locate_box(address)))

def read_box_record(slot: SaveSlot, address: BoxAddress,
                    in_name=None) -> Pk3Record:
    """Read the record at address. The record is not validated, call its
    decrypt method for that.

    :raise SlotEmpty: if all bytes of the slot are zero."""
    record_data = read(slot, locate_box(address))
    if not any(record_data):
        raise SlotEmpty(address, in_name)
    return Pk3Record(record_data, address, in_name)

def write_box_record(slot: SaveSlot, address: BoxAddress, record_data: bytes):
    write(slot, locate_box(address), record_data)

def clear_box_slot(slot: SaveSlot, address: BoxAddress):
    write_box_record(slot, address, bytes(PK3_BOX_SIZE))

def read_party_record(slot: SaveSlot, index: int, in_name=None) -> Pk3Record:
    return Pk3Record(read(slot, locate_party(slot, index)),
                     f'party slot {index + 1}', in_name)

def read_current_box(slot: SaveSlot) -> int:
    return read_u32(slot.section(PC_FIRST_SECTION).payload, 0)

def read_box_name(slot: SaveSlot, box: int) -> str:
    name_extent = _pc_extent(_BOX_NAMES_OFFSET + box * _BOX_NAME_SIZE,
                             _BOX_NAME_SIZE)
    return decode_text(read(slot, name_extent))
