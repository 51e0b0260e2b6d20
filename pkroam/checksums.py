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
"""Checksum primitives for the save format and for external record files.

Sections use a 32-bit sum of little-endian dwords folded down to 16 bits,
records use a plain 16-bit sum of little-endian words. External record files
are protected by a CRC-32."""
from zlib import crc32

from .bolt import structs_cache

__author__ = u'PkRoam Team'

def _dwords(data_len):
    return structs_cache[f'<{data_len // 4}I'].unpack_from

def _words(data_len):
    return structs_cache[f'<{data_len // 2}H'].unpack_from

def section_checksum(payload, checked_len: int) -> int:
    """Compute the checksum of a section whose first checked_len bytes of
    payload are covered. checked_len is always a multiple of 4."""
    if checked_len % 4 or checked_len > len(payload):
        raise ValueError(f'Invalid checksummed length {checked_len} for a '
                         f'{len(payload)}-byte payload')
    total = sum(_dwords(checked_len)(payload, 0)) & 0xFFFFFFFF
    return ((total >> 16) + (total & 0xFFFF)) & 0xFFFF

def record_checksum(decrypted_data) -> int:
    """Compute the checksum of the 48 decrypted substructure bytes of a
    record."""
    if len(decrypted_data) % 2:
        raise ValueError(f'Record data has odd length {len(decrypted_data)}')
    return sum(_words(len(decrypted_data))(decrypted_data, 0)) & 0xFFFF

def file_crc(data) -> int:
    return crc32(data) & 0xFFFFFFFF
