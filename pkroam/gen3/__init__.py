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
"""Support for the saves of the third generation games: Ruby/Sapphire,
Emerald and FireRed/LeafGreen. The submodules are layered leaf-first:
sections (slot/section codec), pk3 (creature records), locator (record
addresses) and save_files (loading saves from disk)."""
from __future__ import annotations

from enum import Enum

__author__ = u'PkRoam Team'

class GameCode(Enum):
    """The game family a save belongs to, derived from the game code dword in
    section 0."""
    RUBY_SAPPHIRE = 'Ruby/Sapphire'
    FIRERED_LEAFGREEN = 'FireRed/LeafGreen'
    EMERALD = 'Emerald'

    @classmethod
    def from_code(cls, game_code: int) -> GameCode:
        # Emerald stores its security key in the same spot, so anything that
        # isn't 0 or 1 is an Emerald save
        if game_code == 0:
            return cls.RUBY_SAPPHIRE
        if game_code == 1:
            return cls.FIRERED_LEAFGREEN
        return cls.EMERALD

    @property
    def short_code(self) -> int:
        """The single byte stored in external record files."""
        return _short_codes[self]

    @classmethod
    def from_short_code(cls, short_code: int) -> GameCode | None:
        return _from_short_codes.get(short_code)

_short_codes = {GameCode.RUBY_SAPPHIRE: 0, GameCode.FIRERED_LEAFGREEN: 1,
                GameCode.EMERALD: 2}
_from_short_codes = {v: k for k, v in _short_codes.items()}

# Language codes stored in every record header
LANGUAGES = {
    1: 'Japanese',
    2: 'English',
    3: 'French',
    4: 'Italian',
    5: 'German',
    7: 'Spanish',
}

def language_name(language_code: int) -> str:
    """Map a language code to its name, preserving unknown codes."""
    return LANGUAGES.get(language_code, f'Unknown ({language_code})')
