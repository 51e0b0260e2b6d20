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
"""Shared helpers for PkRoam tests. Real saves can't be shipped, so tests
build synthetic saves and records with the helpers below. They deliberately
do not use the locator or the section codec, so that those are tested
against an independent description of the format."""
import os

from ..bolt import encode_text, structs_cache
from ..checksums import section_checksum
from ..gen3.pk3 import Attacks, Condition, Growth, Misc, Substructures, \
    encrypt

_SECTION_SIZE = 0x1000
_DATA_SIZE = 0xF80
_SLOT_SIZE = 0xE000
_SAVE_SIZE = 0x20000
_SIGNATURE = 0x08012025
_checked = {0: 3884, 4: 3848, 13: 2000}
_PC_SIZE = 8 * _DATA_SIZE + 2000

def make_substructures(species=25, experience=1000, held_item=0,
                       moves=(84, 45, 0, 0), evs=(1, 2, 3, 4, 5, 6),
                       ivs=(31, 30, 29, 28, 27, 26), is_egg=False, ability=1):
    iv_word = sum(iv << (5 * i) for i, iv in enumerate(ivs))
    iv_word |= (is_egg << 30) | (ability << 31)
    return Substructures(
        Growth(species, held_item, experience, 0, 70, 0),
        Attacks(tuple(moves), (30, 40, 0, 0)),
        Condition(tuple(evs), (0, 0, 0, 0, 0, 0)),
        Misc(0, 16, 0x1234, iv_word, 0))

_header_struct = structs_cache['<2I10s2B7sB2H']
def make_record(personality=0x1A2B3C4D, ot_id=0x0001D431, nickname='PIKACHU',
                ot_name='ASH', language=2, substructures=None, **kwargs):
    """Create the 80 bytes of a valid box record. kwargs are passed to
    make_substructures if no substructures are given."""
    subs = substructures or make_substructures(**kwargs)
    block, chk = encrypt(subs, personality, ot_id)
    return _header_struct.pack(personality, ot_id, encode_text(nickname, 10),
        language, 0x02, encode_text(ot_name, 7), 0, chk, 0) + block

_party_struct = structs_cache['<I2B7H']
def make_party_record(level=12, **kwargs):
    return make_record(**kwargs) + _party_struct.pack(
        0, level, 0xFF, 30, 33, 20, 15, 25, 18, 16)

def flip_bit(data, offset, bit=0):
    out = bytearray(data)
    out[offset] ^= 1 << bit
    return bytes(out)

_footer_struct = structs_cache['<2H2I']
class SaveBuilder(object):
    """Builds the raw bytes of a save. The PC storage buffer and the party
    are kept as flat byte arrays and only split into sections on build."""
    def __init__(self, game_code=0, trainer_name='BRENDAN', trainer_id=
                 0x0001D431, save_index=42, rotation=3):
        self.game_code = game_code
        self.save_index = save_index
        self.rotation = rotation
        self.payloads = {i: bytearray(_DATA_SIZE) for i in range(14)}
        self.pc_buffer = bytearray(_PC_SIZE)
        trainer = self.payloads[0]
        trainer[0:7] = encode_text(trainer_name, 7)
        trainer[0x08] = 0
        structs_cache['<I'].pack_into(trainer, 0x0A, trainer_id)
        structs_cache['<H3B'].pack_into(trainer, 0x0E, 12, 34, 56, 7)
        structs_cache['<I'].pack_into(trainer, 0xAC, game_code)
        self.party = []

    @property
    def party_offset(self):
        return 0x34 if self.game_code == 1 else 0x234

    def put_box_record(self, box, slot, record_data):
        """Put record_data at the zero-based box and slot."""
        start = 4 + (box * 30 + slot) * 80
        self.pc_buffer[start:start + 80] = record_data
        return self

    def add_party_record(self, record_data):
        self.party.append(record_data)
        return self

    def _slot_payloads(self):
        payloads = {i: bytearray(p) for i, p in self.payloads.items()}
        for i in range(9):
            chunk = self.pc_buffer[i * _DATA_SIZE:(i + 1) * _DATA_SIZE]
            payloads[5 + i][:len(chunk)] = chunk
        party = payloads[1]
        structs_cache['<I'].pack_into(party, self.party_offset,
                                      len(self.party))
        for i, rec in enumerate(self.party):
            start = self.party_offset + 4 + i * 100
            party[start:start + 100] = rec
        return payloads

    def build_slot(self, save_index=None, rotation=None):
        save_index = self.save_index if save_index is None else save_index
        rotation = self.rotation if rotation is None else rotation
        payloads = self._slot_payloads()
        slot_data = bytearray()
        for phys in range(14):
            sect_id = (phys + rotation) % 14
            payload = payloads[sect_id]
            slot_data += payload
            slot_data += bytes(_SECTION_SIZE - _DATA_SIZE - 12)
            slot_data += _footer_struct.pack(sect_id, section_checksum(
                payload, _checked.get(sect_id, _DATA_SIZE)), _SIGNATURE,
                save_index)
        return bytes(slot_data)

    def build(self, live_slot=0, backup=True, trailer=0x5A):
        """Build a whole save with the current state in live_slot. If backup
        is True, the other slot holds a copy with a lower save index and a
        different rotation, else it is blank (erased) flash."""
        save_data = bytearray(b'\xFF' * _SAVE_SIZE)
        save_data[2 * _SLOT_SIZE:] = bytes([trailer]) * (
            _SAVE_SIZE - 2 * _SLOT_SIZE)
        live_start = live_slot * _SLOT_SIZE
        save_data[live_start:live_start + _SLOT_SIZE] = self.build_slot()
        if backup:
            other_start = (1 - live_slot) * _SLOT_SIZE
            save_data[other_start:other_start + _SLOT_SIZE] = self.build_slot(
                self.save_index - 1, self.rotation + 1)
        return bytes(save_data)

def slot_offset(slot_index, physical_index=0):
    return slot_index * _SLOT_SIZE + physical_index * _SECTION_SIZE

def physical_index(rotation, section_id):
    """The position section_id ends up at for a given rotation."""
    return (section_id - rotation) % 14

def write_save(dir_path, save_data, name='test.sav'):
    save_path = os.path.join(dir_path, name)
    with open(save_path, 'wb') as out:
        out.write(save_data)
    return save_path

def read_file(file_path):
    with open(file_path, 'rb') as ins:
        return ins.read()
