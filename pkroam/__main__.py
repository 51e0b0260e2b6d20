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
"""Allows running PkRoam via 'python -m pkroam'."""
from .roam import run

if __name__ == '__main__':
    run()
