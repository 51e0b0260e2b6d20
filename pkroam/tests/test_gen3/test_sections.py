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
import pytest

from .. import SaveBuilder, flip_bit, make_record, physical_index, \
    slot_offset
from ...exception import CorruptSaveError, DegradedSave, SlotDecodeError
from ...gen3.sections import SAVE_SIZE, SECTION_SIZE, checked_size, \
    decode_image, decode_slot, encode_slot, is_blank_slot, raw_save_index

_SLOT_SIZE = 0xE000

def _builder():
    return SaveBuilder(rotation=5).put_box_record(0, 0, make_record())

class TestDecodeSlot(object):
    def test_decode(self):
        raw = _builder().build()
        slot = decode_slot(raw, 0)
        assert slot.save_index == 42
        assert sorted(slot.sections) == list(range(14))
        # Rotation 5 puts section 5 first
        assert slot.section(5).physical_index == 0
        assert slot.section(0).physical_index == physical_index(5, 0)

    def test_checked_sizes(self):
        assert checked_size(0) == 3884
        assert checked_size(4) == 3848
        assert checked_size(13) == 2000
        assert checked_size(1) == checked_size(12) == 3968

    def test_bad_checksum(self):
        raw = _builder().build()
        # Flip a bit in the data of the first section of slot A
        bad_raw = flip_bit(raw, slot_offset(0) + 0x100, 3)
        with pytest.raises(SlotDecodeError) as exc_info:
            decode_slot(bad_raw, 0)
        assert exc_info.value.slot_index == 0
        assert u'checksum' in str(exc_info.value)

    def test_bad_signature(self):
        raw = _builder().build()
        with pytest.raises(SlotDecodeError, match='signature'):
            decode_slot(flip_bit(raw, slot_offset(0, 3) + 0xFF8), 0)

    def test_bad_section_id(self):
        raw = bytearray(_builder().build())
        # Section ids are u16 at 0xFF4, 14 is out of range
        raw[slot_offset(0, 2) + 0xFF4] = 14
        with pytest.raises(SlotDecodeError, match='invalid id'):
            decode_slot(raw, 0)

    def test_duplicate_section_id(self):
        raw = bytearray(_builder().build())
        first_id = raw[slot_offset(0, 0) + 0xFF4]
        raw[slot_offset(0, 1) + 0xFF4] = first_id
        with pytest.raises(SlotDecodeError, match='appears twice'):
            decode_slot(raw, 0)

    def test_save_index_mismatch(self):
        raw = bytearray(_builder().build())
        raw[slot_offset(0, 7) + 0xFFC] += 1
        with pytest.raises(SlotDecodeError, match='disagree'):
            decode_slot(raw, 0)

    def test_every_bit_flip_is_detected(self):
        """Flip one bit in every checked dword of a section payload and make
        sure the slot always fails to decode."""
        raw = _builder().build()
        for sect_id in (0, 4, 5, 13):
            sect_start = slot_offset(0, physical_index(5, sect_id))
            for offset in range(0, checked_size(sect_id), 97):
                with pytest.raises(CorruptSaveError):
                    decode_slot(flip_bit(raw, sect_start + offset, offset % 8),
                                0)

class TestEncodeSlot(object):
    def test_round_trip(self):
        raw = _builder().build()
        slot = decode_slot(raw, 0)
        assert encode_slot(slot) == raw[:_SLOT_SIZE]

    def test_recomputes_checksums(self):
        raw = _builder().build()
        slot = decode_slot(raw, 0)
        slot.section(7).payload[10] ^= 0xFF
        reencoded = encode_slot(slot)
        # Decodes cleanly again and keeps the change and the rotation
        new_slot = decode_slot(reencoded, 0)
        assert new_slot.section(7).payload[10] == slot.section(7).payload[10]
        assert new_slot.section(7).physical_index == physical_index(5, 7)
        # Only section 7 changed
        for sect_id in range(14):
            phys = physical_index(5, sect_id)
            same = (reencoded[phys * SECTION_SIZE:(phys + 1) * SECTION_SIZE]
                    == raw[phys * SECTION_SIZE:(phys + 1) * SECTION_SIZE])
            assert same == (sect_id != 7)

class TestDecodeImage(object):
    def test_picks_higher_save_index(self):
        raw = _builder().build(live_slot=1)
        image = decode_image(raw)
        assert image.live_index == 1
        assert image.live_slot.save_index == 42
        assert image.slots[0].save_index == 41
        assert not image.warnings

    def test_blank_slot_is_not_degraded(self):
        raw = _builder().build(backup=False)
        assert is_blank_slot(raw, 1)
        assert not is_blank_slot(raw, 0)
        image = decode_image(raw)
        assert image.live_index == 0
        assert image.slots[1] is None
        assert not image.is_degraded

    def test_fallback_to_mirror(self):
        raw = _builder().build(live_slot=0)
        bad_raw = flip_bit(raw, slot_offset(0, 4) + 0x20)
        image = decode_image(bad_raw, in_name='test.sav')
        assert image.live_index == 1
        assert image.live_slot.save_index == 41
        assert len(image.warnings) == 1
        warning = image.warnings[0]
        assert isinstance(warning, DegradedSave)
        assert warning.used_slot == 1
        assert isinstance(warning.slot_error, SlotDecodeError)
        assert u'test.sav' in str(warning)

    def test_corrupt_stale_mirror_is_ignored(self):
        raw = _builder().build(live_slot=0)
        # Slot B holds the older copy
        image = decode_image(flip_bit(raw, slot_offset(1, 4) + 0x20))
        assert image.live_index == 0
        assert not image.warnings
        assert raw_save_index(raw, 1) == 41

    def test_single_slot_corrupt(self):
        raw = _builder().build(backup=False)
        with pytest.raises(CorruptSaveError) as exc_info:
            decode_image(flip_bit(raw, slot_offset(0, 2) + 0x30))
        assert len(exc_info.value.slot_errors) == 1

    def test_both_slots_corrupt(self):
        raw = _builder().build()
        bad_raw = flip_bit(flip_bit(raw, slot_offset(0) + 8),
                           slot_offset(1) + 8)
        with pytest.raises(CorruptSaveError, match='No valid save slot') as \
                exc_info:
            decode_image(bad_raw)
        assert len(exc_info.value.slot_errors) == 2

    def test_empty_save(self):
        with pytest.raises(CorruptSaveError, match='does not contain'):
            decode_image(b'\xFF' * SAVE_SIZE)

    def test_bad_size(self):
        with pytest.raises(CorruptSaveError, match='Invalid save size'):
            decode_image(bytes(1000))

    def test_encode_only_touches_live_slot(self):
        raw = _builder().build(live_slot=1)
        image = decode_image(raw)
        assert image.encode() == raw
        image.section(9).payload[100] = 0x77
        new_raw = image.encode()
        # Slot A (the old mirror) and the trailing data are untouched
        assert new_raw[:_SLOT_SIZE] == raw[:_SLOT_SIZE]
        assert new_raw[2 * _SLOT_SIZE:] == raw[2 * _SLOT_SIZE:]
        assert new_raw[_SLOT_SIZE:2 * _SLOT_SIZE] != raw[_SLOT_SIZE:
                                                          2 * _SLOT_SIZE]
        assert decode_image(new_raw).section(9).payload[100] == 0x77
