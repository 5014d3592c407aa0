"""Endian-aware primitive readers and writers -- stdlib only (struct module).

All offset arithmetic in the engine goes through ``ByteCodec`` so that byte
order and bounds checking live in exactly one place. Reads past the end of
a buffer raise ``CorruptData``; writes past the end raise ``EncodeError``.
"""

import struct
from typing import Tuple

from jpegexif.errors import CorruptData, EncodeError, UnknownByteAlign

# TIFF type definitions used by the engine: {type_id: (element_size_bytes, struct_format_char)}
TIFF_TYPES = {
    1: (1, 'B'),    # BYTE
    2: (1, 's'),    # ASCII
    3: (2, 'H'),    # SHORT
    4: (4, 'I'),    # LONG
    5: (8, 'II'),   # RATIONAL (num/denom)
    7: (1, 's'),    # UNDEFINED
    10: (8, 'ii'),  # SRATIONAL
}

BYTE_ORDER_MARKERS = {b'II': '<', b'MM': '>'}


class ByteCodec:
    """Reads and writes integers in one resolved byte order."""
    __slots__ = ('endian',)

    def __init__(self, endian: str):
        if endian not in ('<', '>'):
            raise ValueError(f'endian must be "<" or ">", got {endian!r}')
        self.endian = endian

    @classmethod
    def from_marker(cls, marker: bytes) -> 'ByteCodec':
        """Resolve the codec from a TIFF byte-order marker (``II`` or ``MM``)."""
        endian = BYTE_ORDER_MARKERS.get(bytes(marker))
        if endian is None:
            raise UnknownByteAlign(f'unknown TIFF byte order marker {bytes(marker)!r}')
        return cls(endian)

    @property
    def marker(self) -> bytes:
        return b'II' if self.endian == '<' else b'MM'

    @property
    def is_little_endian(self) -> bool:
        return self.endian == '<'

    def __repr__(self):
        return f'ByteCodec({self.marker.decode()})'

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def unpack(self, fmt: str, buf, offset: int) -> tuple:
        """Unpack *fmt* at *offset*, checking the read lies inside *buf*."""
        fmt = self.endian + fmt
        size = struct.calcsize(fmt)
        if offset < 0 or offset + size > len(buf):
            raise CorruptData(
                f'read of {size} bytes at offset {offset} exceeds buffer of {len(buf)} bytes')
        return struct.unpack_from(fmt, buf, offset)

    def u8(self, buf, offset: int) -> int:
        return self.unpack('B', buf, offset)[0]

    def u16(self, buf, offset: int) -> int:
        return self.unpack('H', buf, offset)[0]

    def u32(self, buf, offset: int) -> int:
        return self.unpack('I', buf, offset)[0]

    def i32(self, buf, offset: int) -> int:
        return self.unpack('i', buf, offset)[0]

    def rational(self, buf, offset: int) -> Tuple[int, int]:
        return self.unpack('II', buf, offset)

    def srational(self, buf, offset: int) -> Tuple[int, int]:
        return self.unpack('ii', buf, offset)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def pack(self, fmt: str, *values) -> bytes:
        return struct.pack(self.endian + fmt, *values)

    def pack_into(self, fmt: str, buf: bytearray, offset: int, *values) -> int:
        """Pack *values* into *buf* at *offset*. Returns the offset just past the write."""
        fmt = self.endian + fmt
        size = struct.calcsize(fmt)
        if offset < 0 or offset + size > len(buf):
            raise EncodeError(
                f'write of {size} bytes at offset {offset} exceeds buffer of {len(buf)} bytes')
        struct.pack_into(fmt, buf, offset, *values)
        return offset + size

    def write_bytes(self, buf: bytearray, offset: int, data: bytes) -> int:
        """Copy raw *data* into *buf* at *offset* with the same bounds discipline."""
        end = offset + len(data)
        if offset < 0 or end > len(buf):
            raise EncodeError(
                f'write of {len(data)} bytes at offset {offset} exceeds buffer of {len(buf)} bytes')
        buf[offset:end] = data
        return end


def element_size(format_code: int) -> int:
    """Size in bytes of one component of *format_code* (0 if unknown)."""
    return TIFF_TYPES.get(format_code, (0, ''))[0]
