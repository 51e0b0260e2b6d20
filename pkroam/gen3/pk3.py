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
"""Creature records (often called pk3 files). A record has a 32-byte plain
header followed by 48 bytes of data, made up of four 12-byte substructures
that are shuffled based on the personality value and XOR encrypted with the
personality value and the original trainer id. Records in the party carry 20
more bytes of battle stats that the game recomputes on its own."""
from __future__ import annotations

from dataclasses import dataclass

from . import language_name
from ..bolt import Log, decode_text, read_u16, read_u32, structs_cache, \
    write_u16
from ..checksums import record_checksum
from ..exception import RecordChecksumMismatch, RecordError

__author__ = u'PkRoam Team'

PK3_BOX_SIZE = 80
PK3_PARTY_SIZE = 100
_HEADER_SIZE = 0x20
_DATA_SIZE = 48
_SUBSTRUCT_SIZE = 12
# Header layout
_NICKNAME_OFFSET, _NICKNAME_SIZE = 0x08, 10
_LANGUAGE_OFFSET = 0x12
_MISC_FLAGS_OFFSET = 0x13
_OT_NAME_OFFSET, _OT_NAME_SIZE = 0x14, 7
_MARKINGS_OFFSET = 0x1B
_CHECKSUM_OFFSET = 0x1C

# The order of the four substructures for each value of personality % 24.
# G = Growth, A = Attacks, E = EVs & Condition, M = Miscellaneous
PERMUTATIONS = (
    'GAEM', 'GAME', 'GEAM', 'GEMA', 'GMAE', 'GMEA',
    'AGEM', 'AGME', 'AEGM', 'AEMG', 'AMGE', 'AMEG',
    'EGAM', 'EGMA', 'EAGM', 'EAMG', 'EMGA', 'EMAG',
    'MGAE', 'MGEA', 'MAGE', 'MAEG', 'MEGA', 'MEAG',
)

def substructure_order(personality: int) -> str:
    return PERMUTATIONS[personality % 24]

# Substructures ---------------------------------------------------------------
_growth_struct = structs_cache['<2HI2BH']
_attacks_struct = structs_cache['<4H4B']
_condition_struct = structs_cache['<12B']
_misc_struct = structs_cache['<2BH2I']

@dataclass(slots=True)
class Growth:
    species: int
    held_item: int
    experience: int
    pp_bonuses: int
    friendship: int
    unknown: int

    @classmethod
    def from_bytes(cls, data):
        return cls(*_growth_struct.unpack(data))

    def to_bytes(self) -> bytes:
        return _growth_struct.pack(self.species, self.held_item,
            self.experience, self.pp_bonuses, self.friendship, self.unknown)

@dataclass(slots=True)
class Attacks:
    moves: tuple[int, int, int, int]
    pp: tuple[int, int, int, int]

    @classmethod
    def from_bytes(cls, data):
        unpacked = _attacks_struct.unpack(data)
        return cls(unpacked[:4], unpacked[4:])

    def to_bytes(self) -> bytes:
        return _attacks_struct.pack(*self.moves, *self.pp)

@dataclass(slots=True)
class Condition:
    # HP, Attack, Defense, Speed, Sp. Attack, Sp. Defense
    evs: tuple[int, int, int, int, int, int]
    # Coolness, Beauty, Cuteness, Smartness, Toughness, Feel (sheen)
    contest: tuple[int, int, int, int, int, int]

    @classmethod
    def from_bytes(cls, data):
        unpacked = _condition_struct.unpack(data)
        return cls(unpacked[:6], unpacked[6:])

    def to_bytes(self) -> bytes:
        return _condition_struct.pack(*self.evs, *self.contest)

@dataclass(slots=True)
class Misc:
    pokerus: int
    met_location: int
    origins: int
    # IVs (6 x 5 bits, in stat order), egg flag (bit 30) and ability (bit 31)
    iv_egg_ability: int
    ribbons: int

    @classmethod
    def from_bytes(cls, data):
        return cls(*_misc_struct.unpack(data))

    def to_bytes(self) -> bytes:
        return _misc_struct.pack(self.pokerus, self.met_location,
            self.origins, self.iv_egg_ability, self.ribbons)

    @property
    def ivs(self) -> tuple[int, ...]:
        return tuple((self.iv_egg_ability >> (5 * i)) & 0x1F
                     for i in range(6))

    @property
    def is_egg(self) -> bool:
        return bool(self.iv_egg_ability & (1 << 30))

    @property
    def ability(self) -> int:
        return self.iv_egg_ability >> 31

_substruct_types = {'G': Growth, 'A': Attacks, 'E': Condition, 'M': Misc}
_substruct_attrs = {'G': 'growth', 'A': 'attacks', 'E': 'condition',
                    'M': 'misc'}

@dataclass(slots=True)
class Substructures:
    """The four decrypted substructures of a record, in canonical order."""
    growth: Growth
    attacks: Attacks
    condition: Condition
    misc: Misc

    @classmethod
    def from_bytes(cls, decrypted_data, personality: int) -> Substructures:
        """Split 48 decrypted bytes into the four substructures, using the
        order selected by personality."""
        parsed = {}
        for i, sub_key in enumerate(substructure_order(personality)):
            sub_data = decrypted_data[i * _SUBSTRUCT_SIZE:
                                      (i + 1) * _SUBSTRUCT_SIZE]
            parsed[_substruct_attrs[sub_key]] = _substruct_types[
                sub_key].from_bytes(sub_data)
        return cls(**parsed)

    def to_bytes(self, personality: int) -> bytes:
        return b''.join(getattr(self, _substruct_attrs[sub_key]).to_bytes()
                        for sub_key in substructure_order(personality))

# Encryption ------------------------------------------------------------------
_block_struct = structs_cache['<12I']

def _xor_block(block, personality: int, trainer_id: int) -> bytes:
    key = (personality ^ trainer_id) & 0xFFFFFFFF
    return _block_struct.pack(*(d ^ key for d in _block_struct.unpack(block)))

def decrypt_block(block48, personality: int, trainer_id: int) -> bytes:
    """Decrypt the 48-byte data block, keeping the shuffled order."""
    if len(block48) != _DATA_SIZE:
        raise ValueError(f'Record data must be {_DATA_SIZE} bytes, got '
                         f'{len(block48)}')
    return _xor_block(block48, personality, trainer_id)

def decrypt(block48, personality: int, trainer_id: int) -> Substructures:
    return Substructures.from_bytes(
        decrypt_block(block48, personality, trainer_id), personality)

def encrypt(substructures: Substructures, personality: int,
            trainer_id: int) -> tuple[bytes, int]:
    """Exact inverse of decrypt. Returns the encrypted 48-byte block and the
    checksum to store in the record header."""
    plain = substructures.to_bytes(personality)
    return _xor_block(plain, personality, trainer_id), record_checksum(plain)

# Records ---------------------------------------------------------------------
_party_struct = structs_cache['<I2B7H']

@dataclass(slots=True)
class PartyStats:
    """The battle stats trailing a party record. Recomputed by the game, so
    we only ever read them."""
    status: int
    level: int
    mail_id: int
    current_hp: int
    max_hp: int
    attack: int
    defense: int
    speed: int
    sp_attack: int
    sp_defense: int

    @classmethod
    def from_bytes(cls, data):
        return cls(*_party_struct.unpack(data))

class Pk3Record(object):
    """A single creature record, in box (80 bytes) or party (100 bytes)
    form. The raw bytes are kept as is, typed access to the encrypted part
    goes through decrypt(), which refuses records with a bad checksum."""
    __slots__ = ('raw', 'address', 'in_name', '_substructures')

    def __init__(self, raw, address=None, in_name=None):
        if len(raw) not in (PK3_BOX_SIZE, PK3_PARTY_SIZE):
            raise RecordError(f'Invalid record size {len(raw)}', address,
                              in_name)
        self.raw = bytes(raw)
        self.address = address
        self.in_name = in_name
        self._substructures = None

    # Header ------------------------------------------------------------------
    @property
    def personality(self) -> int: return read_u32(self.raw, 0x00)
    @property
    def ot_id(self) -> int: return read_u32(self.raw, 0x04)
    @property
    def ot_public_id(self) -> int: return self.ot_id & 0xFFFF
    @property
    def ot_secret_id(self) -> int: return self.ot_id >> 16

    @property
    def nickname(self) -> str:
        return decode_text(self.raw[_NICKNAME_OFFSET:
                                    _NICKNAME_OFFSET + _NICKNAME_SIZE])

    @property
    def language(self) -> int: return self.raw[_LANGUAGE_OFFSET]
    @property
    def language_name(self) -> str: return language_name(self.language)
    @property
    def misc_flags(self) -> int: return self.raw[_MISC_FLAGS_OFFSET]

    @property
    def ot_name(self) -> str:
        return decode_text(self.raw[_OT_NAME_OFFSET:
                                    _OT_NAME_OFFSET + _OT_NAME_SIZE])

    @property
    def markings(self) -> int: return self.raw[_MARKINGS_OFFSET]
    @property
    def checksum(self) -> int: return read_u16(self.raw, _CHECKSUM_OFFSET)

    @property
    def encrypted_block(self) -> bytes:
        return self.raw[_HEADER_SIZE:_HEADER_SIZE + _DATA_SIZE]

    @property
    def box_bytes(self) -> bytes:
        """The 80-byte box form of this record."""
        return self.raw[:PK3_BOX_SIZE]

    @property
    def is_party_form(self) -> bool:
        return len(self.raw) == PK3_PARTY_SIZE

    @property
    def party_stats(self) -> PartyStats | None:
        if not self.is_party_form: return None
        return PartyStats.from_bytes(self.raw[PK3_BOX_SIZE:])

    # Encrypted data ----------------------------------------------------------
    def decrypt(self) -> Substructures:
        """Decrypt and validate the substructures of this record.

        :raise RecordChecksumMismatch: if the stored checksum does not match
            the decrypted data. Such a record must not be trusted."""
        if self._substructures is None:
            plain = decrypt_block(self.encrypted_block, self.personality,
                                  self.ot_id)
            actual = record_checksum(plain)
            if actual != self.checksum:
                raise RecordChecksumMismatch(self.checksum, actual,
                                             self.address, self.in_name)
            self._substructures = Substructures.from_bytes(plain,
                                                           self.personality)
        return self._substructures

    @property
    def species(self) -> int: return self.decrypt().growth.species
    @property
    def is_egg(self) -> bool: return self.decrypt().misc.is_egg

    def with_substructures(self, substructures: Substructures) -> Pk3Record:
        """Return a copy of this record with its data replaced by the
        specified substructures, re-encrypted and with a fresh checksum."""
        block, chk = encrypt(substructures, self.personality, self.ot_id)
        new_raw = bytearray(self.raw)
        new_raw[_HEADER_SIZE:_HEADER_SIZE + _DATA_SIZE] = block
        write_u16(new_raw, _CHECKSUM_OFFSET, chk)
        return Pk3Record(new_raw, self.address, self.in_name)

    def dump_to_log(self, log: Log):
        log(f'  Nickname:    {self.nickname}')
        log(f'  OT:          {self.ot_name} ({self.ot_public_id:05d}/'
            f'{self.ot_secret_id:05d})')
        log(f'  Personality: 0x{self.personality:08X} (order '
            f'{substructure_order(self.personality)})')
        log(f'  Language:    {self.language_name}')
        try:
            subs = self.decrypt()
        except RecordChecksumMismatch as e:
            log(f'  CORRUPT:     {e}')
            return
        log(f'  Species:     {subs.growth.species}')
        log(f'  Held item:   {subs.growth.held_item}')
        log(f'  Experience:  {subs.growth.experience}')
        log(f'  Friendship:  {subs.growth.friendship}')
        log(f'  Moves:       {", ".join(map(str, subs.attacks.moves))} '
            f'(PP {", ".join(map(str, subs.attacks.pp))})')
        log(f'  EVs:         {"/".join(map(str, subs.condition.evs))}')
        log(f'  IVs:         {"/".join(map(str, subs.misc.ivs))}')
        log(f'  Ability:     {subs.misc.ability}')
        if subs.misc.is_egg:
            log(u'  Egg:         yes')
        if stats := self.party_stats:
            log(f'  Level:       {stats.level} (HP {stats.current_hp}/'
                f'{stats.max_hp})')

    def __repr__(self):
        return f'Pk3Record<{self.address}, 0x{self.personality:08X}>'
