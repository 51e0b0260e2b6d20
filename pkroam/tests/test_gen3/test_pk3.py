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
import io

import pytest

from .. import flip_bit, make_party_record, make_record, make_substructures
from ...bolt import LogFile
from ...checksums import record_checksum
from ...exception import RecordChecksumMismatch, RecordError
from ...gen3.pk3 import PERMUTATIONS, Pk3Record, decrypt, decrypt_block, \
    encrypt, substructure_order

class TestPermutations(object):
    def test_distinct_orders(self):
        orders = [substructure_order(pv) for pv in range(24)]
        assert len(set(orders)) == 24
        for order in orders:
            assert sorted(order) == ['A', 'E', 'G', 'M']

    def test_wraps(self):
        assert substructure_order(24) == substructure_order(0) == 'GAEM'
        assert substructure_order(5) == 'GMEA'
        assert substructure_order(23) == 'MEAG'
        assert substructure_order(0xFFFFFFFF) == PERMUTATIONS[
            0xFFFFFFFF % 24]

    def test_known_orders(self):
        assert PERMUTATIONS[6] == 'AGEM'
        assert PERMUTATIONS[12] == 'EGAM'
        assert PERMUTATIONS[18] == 'MGAE'

class TestEncryption(object):
    def test_round_trip_fields(self):
        subs = make_substructures(species=282, experience=123456,
                                  is_egg=True)
        for personality in (0, 5, 23, 24, 0xDEADBEEF):
            block, _chk = encrypt(subs, personality, 0x12345678)
            assert decrypt(block, personality, 0x12345678) == subs

    def test_round_trip_block(self):
        record = Pk3Record(make_record(personality=0x0BADF00D))
        subs = decrypt(record.encrypted_block, record.personality,
                       record.ot_id)
        block, chk = encrypt(subs, record.personality, record.ot_id)
        assert block == record.encrypted_block
        assert chk == record.checksum

    def test_block_is_encrypted(self):
        subs = make_substructures()
        personality, ot_id = 0x11111111, 0x22222222
        block, chk = encrypt(subs, personality, ot_id)
        plain = subs.to_bytes(personality)
        assert block != plain
        assert decrypt_block(block, personality, ot_id) == plain
        assert chk == record_checksum(plain)

    def test_substructure_placement(self):
        """With personality % 24 == 1 (GAME) the species is in the first
        substructure and the IVs are in the third."""
        subs = make_substructures(species=0x0123)
        plain = subs.to_bytes(1)
        assert plain[0:2] == b'\x23\x01'
        assert plain[24:36] == subs.misc.to_bytes()
        assert plain[36:48] == subs.condition.to_bytes()

    def test_bad_block_size(self):
        with pytest.raises(ValueError):
            decrypt(bytes(47), 0, 0)

class TestPk3Record(object):
    def test_header_fields(self):
        record = Pk3Record(make_record(personality=0x1234, ot_id=0x00050006,
                                       nickname='Pika', ot_name='RED',
                                       language=5))
        assert record.personality == 0x1234
        assert record.ot_public_id == 6
        assert record.ot_secret_id == 5
        assert record.nickname == 'Pika'
        assert record.ot_name == 'RED'
        assert record.language_name == 'German'
        assert not record.is_party_form
        assert record.party_stats is None

    def test_unknown_language(self):
        record = Pk3Record(make_record(language=9))
        assert record.language == 9
        assert record.language_name == 'Unknown (9)'

    def test_typed_fields(self):
        record = Pk3Record(make_record(species=252, moves=(1, 2, 3, 4),
            ivs=(1, 2, 3, 4, 5, 6), is_egg=True, ability=0))
        subs = record.decrypt()
        assert record.species == 252
        assert subs.attacks.moves == (1, 2, 3, 4)
        assert subs.misc.ivs == (1, 2, 3, 4, 5, 6)
        assert subs.misc.is_egg
        assert subs.misc.ability == 0
        assert record.is_egg

    def test_every_decrypted_bit_flip_is_detected(self):
        raw = make_record()
        # Flip bits in the encrypted data, which flips the same bits in the
        # decrypted data
        for offset in range(0x20, 0x50):
            bad_record = Pk3Record(flip_bit(raw, offset, offset % 8),
                                   address='somewhere')
            with pytest.raises(RecordChecksumMismatch) as exc_info:
                bad_record.decrypt()
            assert exc_info.value.address == 'somewhere'

    def test_stored_checksum_flip(self):
        record = Pk3Record(flip_bit(make_record(), 0x1C))
        with pytest.raises(RecordChecksumMismatch):
            record.species

    def test_party_form(self):
        record = Pk3Record(make_party_record(level=37))
        assert record.is_party_form
        assert record.party_stats.level == 37
        assert record.party_stats.max_hp == 33
        assert len(record.box_bytes) == 80
        assert record.box_bytes == make_record()

    def test_bad_size(self):
        with pytest.raises(RecordError, match='Invalid record size'):
            Pk3Record(bytes(81))

    def test_with_substructures(self):
        record = Pk3Record(make_record(species=1))
        subs = record.decrypt()
        subs.growth.species = 4
        new_record = record.with_substructures(subs)
        assert new_record.species == 4
        assert new_record.raw[:0x1C] == record.raw[:0x1C]

    def test_dump_to_log(self):
        out = io.StringIO()
        Pk3Record(make_party_record(species=150)).dump_to_log(LogFile(out))
        dumped = out.getvalue()
        assert 'Species:     150' in dumped
        assert 'PIKACHU' in dumped
        assert 'Level:       12' in dumped

    def test_dump_corrupt(self):
        out = io.StringIO()
        Pk3Record(flip_bit(make_record(), 0x30)).dump_to_log(LogFile(out))
        assert 'CORRUPT' in out.getvalue()
