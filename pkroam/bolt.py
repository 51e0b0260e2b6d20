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
"""Low level helpers shared by every other module: struct wrappers, game text
handling, debug printing and the Log classes used to dump human-readable
reports."""
from __future__ import annotations

import datetime
import os
import struct
import sys
import traceback as _traceback
from pathlib import Path

# structure alias, so that callers don't need to import struct themselves
struct_error = struct.error

def timestamp(): return datetime.datetime.now().strftime(u'%Y-%m-%d %H.%M.%S')

# Structure wrappers ----------------------------------------------------------
# Everything in the save format is little-endian, hence the '<' everywhere
class _StructsCache(dict):
    __slots__ = ()
    def __missing__(self, key):
        return self.setdefault(key, struct.Struct(key))

structs_cache = _StructsCache()
def unpack_int(ins, __unpack=structs_cache['<I'].unpack) -> int:
    return __unpack(read_exact(ins, 4))[0]
def pack_int(out, value: int, __pack=structs_cache['<I'].pack):
    out.write(__pack(value))
def unpack_short(ins, __unpack=structs_cache['<H'].unpack) -> int:
    return __unpack(read_exact(ins, 2))[0]
def pack_short(out, val: int, __pack=structs_cache['<H'].pack):
    out.write(__pack(val))
def unpack_byte(ins, __unpack=structs_cache['<B'].unpack) -> int:
    return __unpack(read_exact(ins, 1))[0]
def pack_byte(out, val: int, __pack=structs_cache['<B'].pack):
    out.write(__pack(val))
def unpack_int64(ins, __unpack=structs_cache['<Q'].unpack) -> int:
    return __unpack(read_exact(ins, 8))[0]
def pack_int64(out, val: int, __pack=structs_cache['<Q'].pack):
    out.write(__pack(val))
def unpack_4s(ins, __unpack=structs_cache['4s'].unpack) -> bytes:
    return __unpack(read_exact(ins, 4))[0]
def pack_4s(out, val: bytes, __pack=structs_cache['4s'].pack):
    out.write(__pack(val))
def unpack_str8(ins) -> bytes:
    return read_exact(ins, unpack_byte(ins))
def pack_str8(out, val: bytes):
    pack_byte(out, len(val))
    out.write(val)
def unpack_str16(ins) -> bytes:
    return read_exact(ins, unpack_short(ins))
def pack_str16(out, val: bytes):
    pack_short(out, len(val))
    out.write(val)

def read_exact(ins, size: int) -> bytes:
    """Read exactly size bytes, raising struct_error on a short read so that
    callers only ever have to catch one exception type."""
    read_bytes = ins.read(size)
    if len(read_bytes) != size:
        raise struct_error(f'Wanted {size} bytes, but only {len(read_bytes)} '
                           f'were left')
    return read_bytes

def read_u16(buf, offset: int, __unpack=structs_cache['<H'].unpack_from):
    return __unpack(buf, offset)[0]
def read_u32(buf, offset: int, __unpack=structs_cache['<I'].unpack_from):
    return __unpack(buf, offset)[0]
def write_u16(buf, offset: int, val: int,
              __pack=structs_cache['<H'].pack_into):
    __pack(buf, offset, val)

# Game text -------------------------------------------------------------------
# The western character table used by the games for names. Only the printable
# subset we can round trip is mapped, everything else decodes to '*'
_text_table = {0x00: ' ', 0xAB: '!', 0xAC: '?', 0xAD: '.', 0xAE: '-',
               0xB0: '…', 0xB1: '“', 0xB2: '”', 0xB3: '‘', 0xB4: '’',
               0xB5: '♂', 0xB6: '♀', 0xB8: ',', 0xBA: '/'}
_text_table.update((0xA1 + i, chr(ord('0') + i)) for i in range(10))
_text_table.update((0xBB + i, chr(ord('A') + i)) for i in range(26))
_text_table.update((0xD5 + i, chr(ord('a') + i)) for i in range(26))
_reverse_text_table = {v: k for k, v in _text_table.items()}
text_terminator = 0xFF
_unknown_char = '*'

def decode_text(text_data: bytes) -> str:
    """Decode a fixed size game text field. Stops at the terminator or any
    of the control codes (0xFA-0xFE)."""
    out_text = []
    for text_byte in text_data:
        if text_byte >= 0xFA: break
        out_text.append(_text_table.get(text_byte, _unknown_char))
    return ''.join(out_text)

def encode_text(uni_str: str, field_size: int) -> bytes:
    """Encode uni_str into a game text field of exactly field_size bytes,
    terminated and padded with 0xFF."""
    try:
        encoded = bytes(_reverse_text_table[c] for c in uni_str)
    except KeyError as e:
        raise ValueError(f'{uni_str!r}: character {e.args[0]!r} can not be '
                         f'represented in game text') from None
    if len(encoded) > field_size:
        raise ValueError(f'{uni_str!r} does not fit into {field_size} bytes')
    return encoded.ljust(field_size, bytes([text_terminator]))

# Files -----------------------------------------------------------------------
class AFile(object):
    """Abstract file, supports caching. Remembers the size and modification
    time of the file when its cache was loaded."""
    _null_stat = (-1, None)

    def _stat_tuple(self):
        file_stat = os.stat(self.abs_path)
        return file_stat.st_size, file_stat.st_mtime_ns

    def __init__(self, fullpath, load_cache=False, *, raise_on_error=False,
                 **kwargs):
        self._file_key = Path(fullpath)
        #Set cache info (size, mtime) and reload if load_cache is True
        try:
            self._reset_cache(self._stat_tuple(), load_cache=load_cache,
                              **kwargs)
        except OSError:
            if raise_on_error: raise
            self._reset_cache(self._null_stat, load_cache=False)

    @property
    def abs_path(self) -> Path: return self._file_key

    def _reset_cache(self, stat_tuple, **kwargs):
        """Reset cache flags (fsize, mtime) and possibly reload the cache.
        :param **kwargs: various
            - load_cache: if True either load the cache or reset it, so it
            gets reloaded later"""
        self.fsize, self.file_mod_time = stat_tuple

    def __repr__(self): return f'{self.__class__.__name__}<' \
                               f'{self.abs_path.name}>'

# Debug printing --------------------------------------------------------------
_USER_DIR = os.path.expanduser('~')
_CENSORED_DIR = os.path.join(os.path.split(_USER_DIR)[0], '*****')

def deprint(*args, traceback=False, trace=True, frame=1):
    """Prints message along with file and line location.
       Available keyword arguments:
       trace: (default True) - if a Truthy value, displays the module,
              line number, and function this was used from
       traceback: (default False) - if a Truthy value, prints any tracebacks
              for exceptions that have occurred.
       frame: (default 1) - With `trace`, determines the function caller's
              frame for getting the function name
    """
    if trace:
        # Warning: This may be CPython-only due to _getframe usage
        parent_frame = sys._getframe(frame)
        code_obj = parent_frame.f_code
        msg = f'{os.path.basename(code_obj.co_filename)} ' \
              f'{parent_frame.f_lineno:4d} {code_obj.co_name}: '
    else:
        msg = u''
    msg += ' '.join([f'{x}' for x in args])
    # Print to stdout by default, but change to stderr if we have an error
    target_stream = sys.stdout
    if traceback:
        target_stream = sys.stderr
        exc_fmt = _traceback.format_exc()
        msg += f'\n{exc_fmt}'
    # Censor the user's home directory - paths to saves end up in almost every
    # message and people paste these into bug reports
    msg = msg.replace(_USER_DIR, _CENSORED_DIR)
    print(msg, flush=True, file=target_stream)

# Log -------------------------------------------------------------------------
class Log(object):
    """Log Callable. This is the abstract/null version. Useful version should
    override write functions.

    Log is divided into sections with headers. Header text is assigned (through
    setHeader), but isn't written until a message is written under it. I.e.,
    if no message are written under a given header, then the header itself is
    never written."""

    def __init__(self):
        self.header = None
        self.prevHeader = None
        self.doFooter = True

    def setHeader(self, header, writeNow=False, doFooter=True):
        """Sets the header."""
        self.header = header
        if self.prevHeader:
            self.prevHeader += u'x'
        self.doFooter = doFooter
        if writeNow: self()

    def __call__(self, message=None, appendNewline=True):
        """Callable. Writes message, and if necessary, header and footer."""
        if self.header != self.prevHeader:
            if self.prevHeader and self.doFooter:
                self.writeFooter()
            if self.header:
                self.writeLogHeader(self.header)
            self.prevHeader = self.header
        if message: self.writeMessage(message, appendNewline)

    #--Abstract/null writing functions...
    def writeLogHeader(self, header):
        """Write header. Abstract/null version."""
    def writeFooter(self):
        """Write mess. Abstract/null version."""
    def writeMessage(self, message, appendNewline):
        """Write message to log. Abstract/null version."""

class LogFile(Log):
    """Log that writes messages to file."""
    def __init__(self, out):
        self.out = out
        Log.__init__(self)

    def writeLogHeader(self, header):
        self.out.write(header + u'\n')

    def writeFooter(self):
        self.out.write(u'\n')

    def writeMessage(self, message, appendNewline):
        self.out.write(message)
        if appendNewline: self.out.write(u'\n')
