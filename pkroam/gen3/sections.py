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
"""Section codec for third generation saves. A save file consists of two
mirrored save slots, each made up of 14 sections of 4 KiB. The game rotates
the physical order of the sections every time it saves, so sections are
always identified by the id stored in their footer."""
from __future__ import annotations

from dataclasses import dataclass, field

from ..bolt import Log, structs_cache
from ..checksums import section_checksum
from ..exception import CorruptSaveError, DegradedSave, SlotDecodeError

__author__ = u'PkRoam Team'

SAVE_SIZE = 0x20000
# Some emulators append a 16-byte RTC block to the flash dump
_VALID_SAVE_SIZES = (SAVE_SIZE, SAVE_SIZE + 0x10)
SLOT_SIZE = 0xE000
SLOT_OFFSETS = (0x0000, 0xE000)
SECTION_SIZE = 0x1000
SECTIONS_PER_SLOT = 14
SECTION_DATA_SIZE = 0xF80
SECTION_SIGNATURE = 0x08012025
# Footer layout: id u16, checksum u16, signature u32, save index u32
_FOOTER_OFFSET = 0xFF4
_footer_struct = structs_cache['<2H2I']
# Sections only checksum the part of their data region the game uses
_CHECKED_SIZES = {0: 3884, 4: 3848, 13: 2000}

def checked_size(section_id: int) -> int:
    """Return how many bytes of the data region of the section with the
    specified id are covered by its checksum."""
    return _CHECKED_SIZES.get(section_id, SECTION_DATA_SIZE)

@dataclass(slots=True)
class Section:
    """A single decoded section. The payload is mutable, the footer checksum
    is recomputed from it whenever the section is encoded."""
    # The position (0-13) of this section inside its slot
    physical_index: int
    section_id: int
    # The full 0xF80 byte data region
    payload: bytearray
    # The unused bytes between the data region and the footer
    padding: bytes
    checksum: int
    save_index: int
    signature: int = SECTION_SIGNATURE

    @property
    def checked_size(self) -> int:
        return checked_size(self.section_id)

    def compute_checksum(self) -> int:
        return section_checksum(self.payload, self.checked_size)

    def encode(self) -> bytes:
        """Serialize this section, footer included, with a freshly computed
        checksum."""
        self.checksum = self.compute_checksum()
        return b''.join([bytes(self.payload), self.padding,
                         _footer_struct.pack(self.section_id, self.checksum,
                                             self.signature, self.save_index)])

@dataclass(slots=True)
class SaveSlot:
    """One of the two mirrored copies of the game state."""
    slot_index: int
    save_index: int
    # Maps section ids to their sections
    sections: dict[int, Section] = field(default_factory=dict)

    def section(self, section_id: int) -> Section:
        return self.sections[section_id]

    def dump_to_log(self, log: Log):
        log(f'    Save slot {"AB"[self.slot_index]}, save index '
            f'{self.save_index}')
        for s in sorted(self.sections.values(),
                        key=lambda s_: s_.physical_index):
            log(f'      Section {s.section_id:2d} at position '
                f'{s.physical_index:2d}, checksum 0x{s.checksum:04X}')

def _parse_footer(raw, section_start: int):
    return _footer_struct.unpack_from(raw, section_start + _FOOTER_OFFSET)

def is_blank_slot(raw, slot_index: int) -> bool:
    """Return True if the specified slot was never written to, i.e. all of
    its section footers are erased flash (all 0x00 or all 0xFF)."""
    slot_start = SLOT_OFFSETS[slot_index]
    footer_bytes = {raw[slot_start + i * SECTION_SIZE + _FOOTER_OFFSET + j]
                    for i in range(SECTIONS_PER_SLOT)
                    for j in range(SECTION_SIZE - _FOOTER_OFFSET)}
    return footer_bytes <= {0x00} or footer_bytes <= {0xFF}

def raw_save_index(raw, slot_index: int) -> int | None:
    """Best effort read of a slot's save index that does not validate
    anything but the signatures. Used to tell which slot the game wrote last
    even when that slot turns out to be corrupt."""
    slot_start = SLOT_OFFSETS[slot_index]
    indices = [_parse_footer(raw, slot_start + i * SECTION_SIZE)
               for i in range(SECTIONS_PER_SLOT)]
    indices = [s_index for _sid, _chk, sig, s_index in indices
               if sig == SECTION_SIGNATURE]
    return max(indices) if indices else None

def decode_slot(raw, slot_index: int, in_name=None) -> SaveSlot:
    """Decode the save slot with the specified index (0 = A, 1 = B) out of
    the raw bytes of a whole save.

    :raise SlotDecodeError: if any section has a bad signature, id or
        checksum, an id is missing or duplicated, or the sections disagree
        on the save index."""
    def _error(msg):
        return SlotDecodeError(in_name, slot_index, msg)
    slot_start = SLOT_OFFSETS[slot_index]
    if len(raw) < slot_start + SLOT_SIZE:
        raise _error(f'Save is too small ({len(raw)} bytes) to hold this '
                     f'slot')
    sections = {}
    save_indices = set()
    for phys_index in range(SECTIONS_PER_SLOT):
        sect_start = slot_start + phys_index * SECTION_SIZE
        sect_id, stored_chk, signature, save_index = _parse_footer(
            raw, sect_start)
        if signature != SECTION_SIGNATURE:
            raise _error(f'Section at position {phys_index} has invalid '
                         f'signature 0x{signature:08X}')
        if not 0 <= sect_id < SECTIONS_PER_SLOT:
            raise _error(f'Section at position {phys_index} has invalid id '
                         f'{sect_id}')
        if sect_id in sections:
            raise _error(f'Section id {sect_id} appears twice (positions '
                         f'{sections[sect_id].physical_index} and '
                         f'{phys_index})')
        section = Section(physical_index=phys_index, section_id=sect_id,
            payload=bytearray(raw[sect_start:sect_start + SECTION_DATA_SIZE]),
            padding=bytes(raw[sect_start + SECTION_DATA_SIZE:
                              sect_start + _FOOTER_OFFSET]),
            checksum=stored_chk, save_index=save_index, signature=signature)
        actual_chk = section.compute_checksum()
        if actual_chk != stored_chk:
            raise _error(f'Section {sect_id} has checksum 0x{stored_chk:04X}, '
                         f'but its data sums to 0x{actual_chk:04X}')
        sections[sect_id] = section
        save_indices.add(save_index)
    if len(save_indices) != 1:
        raise _error(f'Sections disagree on the save index '
                     f'({sorted(save_indices)})')
    # 14 distinct ids in range(14) means none can be missing
    return SaveSlot(slot_index=slot_index, save_index=save_indices.pop(),
                    sections=sections)

def encode_slot(slot: SaveSlot) -> bytes:
    """Serialize a save slot, recomputing all section checksums. Sections go
    back to the positions they were read from."""
    by_position = sorted(slot.sections.values(),
                         key=lambda s: s.physical_index)
    return b''.join(s.encode() for s in by_position)

class SaveImage(object):
    """The raw bytes of a whole save plus its decoded live slot. Only the
    live slot is ever written back, the other mirror and everything after the
    two slots are preserved as they were read."""
    __slots__ = ('raw', 'slots', 'live_index', 'warnings', 'in_name')

    def __init__(self, raw, slots, live_index, warnings=(), in_name=None):
        self.raw = bytes(raw)
        # The decoded slots, None for slots that are blank or corrupt
        self.slots: tuple[SaveSlot | None, SaveSlot | None] = slots
        self.live_index = live_index
        self.warnings: list[DegradedSave] = list(warnings)
        self.in_name = in_name

    @property
    def live_slot(self) -> SaveSlot:
        return self.slots[self.live_index]

    @property
    def is_degraded(self) -> bool:
        return bool(self.warnings)

    def section(self, section_id: int) -> Section:
        return self.live_slot.section(section_id)

    def encode(self) -> bytes:
        """Return the full save bytes with the live slot re-encoded."""
        out = bytearray(self.raw)
        slot_start = SLOT_OFFSETS[self.live_index]
        out[slot_start:slot_start + SLOT_SIZE] = encode_slot(self.live_slot)
        return bytes(out)

    def __repr__(self):
        return (f'SaveImage<{self.in_name}, slot '
                f'{"AB"[self.live_index]}, index '
                f'{self.live_slot.save_index}>')

def decode_image(raw, in_name=None) -> SaveImage:
    """Decode a whole save and pick its live slot: the valid slot with the
    greater save index. If the slot the game wrote last is corrupt the other
    one is used and a DegradedSave warning is attached to the result.

    :raise CorruptSaveError: if the size is wrong or no slot is usable."""
    if len(raw) not in _VALID_SAVE_SIZES:
        raise CorruptSaveError(in_name, f'Invalid save size: {len(raw)} '
                               f'bytes (expected {SAVE_SIZE})')
    decoded = [None, None]
    errors = [None, None]
    for slot_index in (0, 1):
        if is_blank_slot(raw, slot_index):
            continue
        try:
            decoded[slot_index] = decode_slot(raw, slot_index, in_name)
        except SlotDecodeError as e:
            errors[slot_index] = e
    valid = [s for s in decoded if s is not None]
    if not valid:
        slot_errors = [e for e in errors if e is not None]
        if slot_errors:
            raise CorruptSaveError(in_name, u'No valid save slot found',
                                   slot_errors)
        raise CorruptSaveError(in_name, u'Save does not contain any data')
    warnings = []
    if len(valid) == 2:
        # On a tie slot A wins
        live_index = int(decoded[1].save_index > decoded[0].save_index)
    else:
        live_index = valid[0].slot_index
        other = 1 - live_index
        if (bad_slot_error := errors[other]) is not None:
            bad_index = raw_save_index(raw, other)
            # Only complain if the corrupt slot was the most recent one (or
            # we can't tell) - a corrupt stale mirror does not affect us
            if bad_index is None or bad_index >= valid[0].save_index:
                warnings.append(DegradedSave(in_name, live_index,
                                             bad_slot_error))
    return SaveImage(raw, tuple(decoded), live_index, warnings, in_name)
