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
"""This module contains all custom exceptions for PkRoam."""

# NO LOCAL IMPORTS! This has to be importable from any module/package.

class RoamError(Exception):
    """Generic error with a string message."""
    def __init__(self, message):
        super(RoamError, self).__init__(message)
        self.message = message
    def __str__(self):
        return self.message

# Configuration errors --------------------------------------------------------
class ConfigError(RoamError):
    """The configuration (ini, registry, command line) is invalid."""

# File exceptions -------------------------------------------------------------
class FileError(RoamError):
    """An error that occurred while handling a file."""
    def __init__(self, in_name, message):
        ## type: (Path|str|None, str) -> None
        super(FileError, self).__init__(message)
        self._in_name = (in_name and '%s' % in_name) or 'Unknown File'

    @property
    def in_name(self):
        return self._in_name

    def __str__(self):
        return f'{self._in_name}: {self.message}'

class DurableWriteFailed(FileError):
    """A file could not be written, flushed to disk and moved into place.
    Unless only the final directory sync failed, the target is left as it was
    before the write started."""
    def __init__(self, in_name, orig_error):
        super(DurableWriteFailed, self).__init__(in_name,
            f'Durable write failed: {orig_error!r}')
        self.orig_error = orig_error

class LockError(FileError):
    """A lock file could not be created or locked."""
    def __init__(self, in_name, orig_error):
        super(LockError, self).__init__(in_name,
            f'Could not lock: {orig_error.strerror or orig_error}')
        self.orig_error = orig_error

# Save exceptions -------------------------------------------------------------
class SaveFileError(FileError):
    """Save File Error: File is corrupted."""

class CorruptSaveError(SaveFileError):
    """Save data that can not be decoded. Raised for a whole save when
    neither of its two mirrored slots is usable."""
    def __init__(self, in_name, message, slot_errors=()):
        super(CorruptSaveError, self).__init__(in_name, message)
        # The per-slot CorruptSaveErrors that made us give up, if any
        self.slot_errors = tuple(slot_errors)

class SlotDecodeError(CorruptSaveError):
    """A single save slot failed to decode. When reading a whole save this is
    only fatal if the other slot is unusable too, see DegradedSave."""
    def __init__(self, in_name, slot_index, message):
        super(SlotDecodeError, self).__init__(in_name,
            f'Save slot {"AB"[slot_index]}: {message}')
        self.slot_index = slot_index

# Record exceptions -----------------------------------------------------------
def _address_str(address):
    return u'?' if address is None else f'{address}'

class RecordError(RoamError):
    """An error concerning a single creature record. Carries the address the
    record was read from, if known."""
    def __init__(self, message, address=None, in_name=None):
        self.address = address
        self.in_name = in_name
        where = _address_str(address)
        if in_name:
            where = f'{in_name} @ {where}'
        super(RecordError, self).__init__(f'{where}: {message}')

class RecordChecksumMismatch(RecordError):
    """The checksum of the decrypted substructures does not match the one
    stored in the record. The record must not be trusted."""
    def __init__(self, expected, actual, address=None, in_name=None):
        super(RecordChecksumMismatch, self).__init__(
            f'Record checksum mismatch - stored 0x{expected:04X}, but '
            f'computed 0x{actual:04X}', address, in_name)
        self.expected = expected
        self.actual = actual

class AddressOutOfRange(RecordError):
    """Box, slot or party index outside of the allowed range."""
    def __init__(self, message, address=None, in_name=None):
        super(AddressOutOfRange, self).__init__(message, address, in_name)

class SlotEmpty(RecordError):
    """Attempt to read a record from an empty slot."""
    def __init__(self, address=None, in_name=None):
        super(SlotEmpty, self).__init__(u'Slot is empty', address, in_name)

class SlotOccupied(RecordError):
    """Attempt to write a record into a slot that already holds one."""
    def __init__(self, address=None, in_name=None):
        super(SlotOccupied, self).__init__(u'Slot is occupied', address,
                                           in_name)

class RecordResident(RecordError):
    """Attempt to insert a record that the target save already holds, i.e.
    an earlier insert of the same external file was interrupted before it
    could remove the file."""
    def __init__(self, address=None, in_name=None, roam_path=None):
        super(RecordResident, self).__init__(
            f'Record from {roam_path} is already stored here - remove the '
            f'external file to finish the earlier insert', address, in_name)
        self.roam_path = roam_path

# External record file exceptions ---------------------------------------------
class CorruptExternalFile(FileError):
    """An external record file is malformed or fails its checksum."""
    def __init__(self, in_name, message):
        super(CorruptExternalFile, self).__init__(in_name,
            f'Corrupt external record file: {message}')

# Warnings --------------------------------------------------------------------
# These are never raised by the core - they are collected and handed to the
# caller, who decides how loudly to complain.
class RoamWarning(Warning):
    """Base class for non-fatal conditions reported to the caller."""
    def __init__(self, message):
        super(RoamWarning, self).__init__(message)
        self.message = message
    def __str__(self):
        return self.message

class DegradedSave(RoamWarning):
    """The preferred save slot was invalid and the other mirror was used."""
    def __init__(self, in_name, used_slot, slot_error):
        super(DegradedSave, self).__init__(
            f'{in_name or "Unknown File"}: falling back to save slot '
            f'{"AB"[used_slot]} - {slot_error}')
        self.used_slot = used_slot
        self.slot_error = slot_error

class DuplicateRecord(RoamWarning):
    """A record exists both in a save and in an external file, i.e. an
    extract or insert was interrupted after its first durable write."""
    def __init__(self, save_path, address, roam_path):
        super(DuplicateRecord, self).__init__(
            f'Record at {save_path} @ {address} is also stored in '
            f'{roam_path} - re-run extract to finish moving it out, or '
            f'remove the external file if it was just inserted.')
        self.save_path = save_path
        self.address = address
        self.roam_path = roam_path
