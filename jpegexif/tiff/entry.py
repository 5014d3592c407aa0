"""IFD entry model -- format codes, directory roles, rationals, tagged values.

A ``TagValue`` pairs a format code with exactly one payload shape, so an
entry's format and its value can never disagree:

    BYTE / UNDEFINED  -> bytes
    ASCII             -> str (trailing NULs stripped, latin-1 on the wire)
    SHORT / LONG      -> tuple of int
    RATIONAL          -> tuple of Rational
    SRATIONAL         -> tuple of SRational
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from fractions import Fraction
from numbers import Integral, Real
from typing import Iterator, List, Optional

from jpegexif.errors import UnsupportedFormat
from jpegexif.tiff.codec import ByteCodec, element_size


class Format(IntEnum):
    """Supported TIFF field types."""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    UNDEFINED = 7
    SRATIONAL = 10

    @classmethod
    def coerce(cls, code) -> 'Format':
        """Return the ``Format`` for *code* or raise ``UnsupportedFormat``."""
        try:
            return cls(int(code))
        except ValueError:
            raise UnsupportedFormat(int(code)) from None

    @property
    def size(self) -> int:
        return element_size(self)


class DirectoryId(IntEnum):
    """Role of an IFD inside the EXIF structure.

    Tag numbers are only unique within one directory, so every lookup key
    is ``(tag, DirectoryId)``.
    """
    IFD0 = 0
    EXIF = 1
    GPS = 2
    INTEROP = 3
    IFD1 = 4
    VENDOR = 5

    @property
    def label(self) -> str:
        return _DIRECTORY_LABELS[self]

    @classmethod
    def parse(cls, text: str) -> 'DirectoryId':
        """Parse a directory name as typed by a user ('gps', 'ExifIFD', 'ifd1', ...)."""
        key = text.strip().lower()
        for member, aliases in _DIRECTORY_ALIASES.items():
            if key in aliases:
                return member
        raise ValueError(f'unknown directory {text!r}')


_DIRECTORY_LABELS = {
    DirectoryId.IFD0: 'IFD0',
    DirectoryId.EXIF: 'ExifIFD',
    DirectoryId.GPS: 'GPS',
    DirectoryId.INTEROP: 'Interop',
    DirectoryId.IFD1: 'IFD1',
    DirectoryId.VENDOR: 'VendorIFD',
}

_DIRECTORY_ALIASES = {
    DirectoryId.IFD0: ('ifd0', 'image', 'primary', '0'),
    DirectoryId.EXIF: ('exif', 'exififd', '1'),
    DirectoryId.GPS: ('gps', 'gpsifd', '2'),
    DirectoryId.INTEROP: ('interop', 'interopifd', '3'),
    DirectoryId.IFD1: ('ifd1', 'thumbnail', '4'),
    DirectoryId.VENDOR: ('vendor', 'vendorifd', '5'),
}


# ---------------------------------------------------------------------------
# Rationals
# ---------------------------------------------------------------------------

class _RationalMixin:
    _low = 0
    _high = 0xFFFFFFFF

    def __post_init__(self):
        for name in ('numerator', 'denominator'):
            value = getattr(self, name)
            if not isinstance(value, Integral) or isinstance(value, bool):
                raise TypeError(f'{type(self).__name__}.{name} must be an int, got {value!r}')
            if not self._low <= value <= self._high:
                raise ValueError(f'{type(self).__name__}.{name} out of range: {value}')

    def __float__(self) -> float:
        if self.denominator == 0:
            return 0.0
        return self.numerator / self.denominator

    def __str__(self) -> str:
        num, den = self.numerator, self.denominator
        if den == 1:
            return str(num)
        if _is_decimal_denominator(den):
            return format((Decimal(num) / Decimal(den)).normalize(), 'f')
        return f'{num}/{den} ({float(self):.4g})'

    def as_tuple(self):
        return (self.numerator, self.denominator)

    @classmethod
    def from_float(cls, value: float, max_denominator: int = 1000000):
        """Closest fraction to *value* with a bounded denominator."""
        frac = Fraction(value).limit_denominator(max_denominator)
        return cls(frac.numerator, frac.denominator)


def _is_decimal_denominator(den: int) -> bool:
    """True for denominators of the form f * 10**k with f in (1, 2, 4, 5)."""
    if den <= 0:
        return False
    while den % 10 == 0:
        den //= 10
    return den in (1, 2, 4, 5)


@dataclass(frozen=True)
class Rational(_RationalMixin):
    """Unsigned 32-bit numerator/denominator pair."""
    numerator: int
    denominator: int


@dataclass(frozen=True)
class SRational(_RationalMixin):
    """Signed 32-bit numerator/denominator pair."""
    _low = -0x80000000
    _high = 0x7FFFFFFF

    numerator: int
    denominator: int


# ---------------------------------------------------------------------------
# Tagged value
# ---------------------------------------------------------------------------

_INT_RANGES = {
    Format.SHORT: 0xFFFF,
    Format.LONG: 0xFFFFFFFF,
}


@dataclass(frozen=True)
class TagValue:
    """A format code plus the one payload shape that format allows."""
    format: Format
    data: object = None

    def __post_init__(self):
        fmt = Format.coerce(self.format)
        object.__setattr__(self, 'format', fmt)
        object.__setattr__(self, 'data', _coerce(fmt, self.data))

    @classmethod
    def empty(cls, fmt) -> 'TagValue':
        return cls(fmt)

    def __len__(self) -> int:
        """Element count (string length for ASCII)."""
        return len(self.data)

    def __iter__(self) -> Iterator:
        return iter(self.data)

    @property
    def wire_count(self) -> int:
        """Component count as written to the 12-byte entry (ASCII includes the NUL)."""
        if self.format == Format.ASCII:
            return len(self.data.encode('latin-1')) + 1
        return len(self.data)

    @property
    def wire_size(self) -> int:
        return self.format.size * self.wire_count

    def first(self, default=None):
        """First element (the whole string for ASCII), or *default* when empty."""
        if self.format == Format.ASCII:
            return self.data
        return self.data[0] if self.data else default

    def to_wire(self, codec: ByteCodec) -> bytes:
        """Serialize the payload in *codec*'s byte order."""
        fmt = self.format
        if fmt in (Format.BYTE, Format.UNDEFINED):
            return self.data
        if fmt == Format.ASCII:
            return self.data.encode('latin-1') + b'\x00'
        if fmt == Format.SHORT:
            return codec.pack('H' * len(self.data), *self.data)
        if fmt == Format.LONG:
            return codec.pack('I' * len(self.data), *self.data)
        char = 'II' if fmt == Format.RATIONAL else 'ii'
        flat = [part for r in self.data for part in r.as_tuple()]
        return codec.pack(char * len(self.data), *flat)

    @classmethod
    def from_wire(cls, fmt, count: int, raw: bytes, codec: ByteCodec) -> 'TagValue':
        """Parse *count* components of *fmt* from *raw* (already bounds-checked)."""
        fmt = Format.coerce(fmt)
        if fmt in (Format.BYTE, Format.UNDEFINED):
            return cls(fmt, bytes(raw[:count]))
        if fmt == Format.ASCII:
            return cls(fmt, bytes(raw[:count]).decode('latin-1'))
        if fmt == Format.SHORT:
            return cls(fmt, codec.unpack('H' * count, raw, 0))
        if fmt == Format.LONG:
            return cls(fmt, codec.unpack('I' * count, raw, 0))
        pairs = codec.unpack(('II' if fmt == Format.RATIONAL else 'ii') * count, raw, 0)
        kind = Rational if fmt == Format.RATIONAL else SRational
        return cls(fmt, tuple(kind(pairs[i], pairs[i + 1]) for i in range(0, len(pairs), 2)))


def _coerce(fmt: Format, data):
    if fmt in (Format.BYTE, Format.UNDEFINED):
        if data is None:
            return b''
        if isinstance(data, (bytes, bytearray, memoryview)):
            return bytes(data)
        if isinstance(data, Integral):
            return bytes([data])
        if isinstance(data, str):
            raise TypeError(f'{fmt.name} value must be bytes, got str')
        return bytes(data)

    if fmt == Format.ASCII:
        if data is None:
            return ''
        if isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data).decode('latin-1')
        if not isinstance(data, str):
            raise TypeError(f'ASCII value must be str, got {type(data).__name__}')
        data.encode('latin-1')  # raises UnicodeEncodeError for unencodable text
        return data.rstrip('\x00')

    if fmt in (Format.SHORT, Format.LONG):
        if data is None:
            return ()
        items = (data,) if isinstance(data, Integral) else tuple(data)
        high = _INT_RANGES[fmt]
        for item in items:
            if not isinstance(item, Integral) or isinstance(item, bool):
                raise TypeError(f'{fmt.name} components must be ints, got {item!r}')
            if not 0 <= item <= high:
                raise ValueError(f'{fmt.name} component out of range: {item}')
        return tuple(int(i) for i in items)

    kind = Rational if fmt == Format.RATIONAL else SRational
    if data is None:
        return ()
    if isinstance(data, (Rational, SRational)) or _is_pair(data) or isinstance(data, Real):
        data = (data,)
    return tuple(_to_rational(kind, item) for item in data)


def _is_pair(data) -> bool:
    return (isinstance(data, tuple) and len(data) == 2
            and all(isinstance(x, Integral) for x in data))


def _to_rational(kind, item):
    if isinstance(item, kind):
        return item
    if isinstance(item, (Rational, SRational)):
        return kind(item.numerator, item.denominator)
    if isinstance(item, (tuple, list)) and len(item) == 2:
        return kind(int(item[0]), int(item[1]))
    if isinstance(item, Integral):
        return kind(int(item), 1)
    if isinstance(item, Real):
        return kind.from_float(float(item))
    raise TypeError(f'cannot convert {item!r} to {kind.__name__}')


# ---------------------------------------------------------------------------
# Entries and directories
# ---------------------------------------------------------------------------

class IFEntry:
    """One tagged field of one directory."""
    __slots__ = ('tag', 'directory', '_value', 'raw_offset_or_inline')

    def __init__(self, tag: int, directory: DirectoryId, value: TagValue,
                 raw_offset_or_inline: int = 0):
        if not 0 <= tag <= 0xFFFF:
            raise ValueError(f'tag out of range: {tag}')
        if not isinstance(value, TagValue):
            raise TypeError('value must be a TagValue; use make_entry() for native values')
        self.tag = tag
        self.directory = DirectoryId(directory)
        self._value = value
        self.raw_offset_or_inline = raw_offset_or_inline

    @property
    def key(self):
        return (self.tag, self.directory)

    @property
    def format(self) -> Format:
        return self._value.format

    @format.setter
    def format(self, fmt):
        # A format change discards the old payload.
        self._value = TagValue.empty(Format.coerce(fmt))

    @property
    def value(self) -> TagValue:
        return self._value

    @value.setter
    def value(self, value):
        if not isinstance(value, TagValue):
            value = TagValue(self.format, value)
        self._value = value

    @property
    def count(self) -> int:
        return len(self._value)

    @property
    def total_size(self) -> int:
        """Bytes the value occupies on the wire."""
        return self._value.wire_size

    @property
    def is_inline(self) -> bool:
        return self.total_size <= 4

    @property
    def tag_name(self) -> str:
        from jpegexif.tiff.tags import lookup
        return lookup(self.tag, self.directory).name

    def __eq__(self, other):
        if not isinstance(other, IFEntry):
            return NotImplemented
        return self.key == other.key and self._value == other._value

    __hash__ = None

    def __repr__(self):
        return (f'IFEntry(tag=0x{self.tag:04X}, directory={self.directory.label}, '
                f'format={self.format.name}, count={self.count})')


class IFDirectory:
    """An ordered collection of entries, unique by tag.

    Mutate through ``ExifDocument``; the helpers here do not enforce
    uniqueness on their own.
    """
    __slots__ = ('type', 'entries')

    def __init__(self, type: DirectoryId, entries: Optional[List[IFEntry]] = None):
        self.type = DirectoryId(type)
        self.entries = list(entries) if entries else []

    def get(self, tag: int) -> Optional[IFEntry]:
        for entry in self.entries:
            if entry.tag == tag:
                return entry
        return None

    def sort(self):
        self.entries.sort(key=lambda e: e.tag)

    def tags(self) -> List[int]:
        return [e.tag for e in self.entries]

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __contains__(self, tag):
        return self.get(tag) is not None

    def __repr__(self):
        return f'IFDirectory({self.type.label}, {len(self.entries)} entries)'


def make_entry(tag: int, directory: DirectoryId, value, format=None) -> IFEntry:
    """Build an ``IFEntry`` from a native Python value.

    When *format* is omitted, known tags take the schema's format and
    unknown tags infer one from the value's type.
    """
    from jpegexif.tiff.tags import is_known, lookup

    directory = DirectoryId(directory)
    if isinstance(value, TagValue):
        if format is not None and Format.coerce(format) != value.format:
            raise ValueError('explicit format disagrees with TagValue format')
        return IFEntry(tag, directory, value)
    if format is None:
        if is_known(tag, directory):
            format = lookup(tag, directory).format
        else:
            format = _infer_format(value)
    return IFEntry(tag, directory, TagValue(Format.coerce(format), value))


def _infer_format(value) -> Format:
    if isinstance(value, str):
        return Format.ASCII
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Format.UNDEFINED
    if isinstance(value, SRational):
        return Format.SRATIONAL
    if isinstance(value, Rational):
        return Format.RATIONAL
    if isinstance(value, (list, tuple)) and value:
        first = value[0]
        if isinstance(first, SRational):
            return Format.SRATIONAL
        if isinstance(first, (Rational, tuple)):
            return Format.RATIONAL
    return Format.LONG
