"""TIFF/IFD decoder for the EXIF APP1 payload.

Walks the fixed directory graph: IFD0, its next-link IFD1, and the EXIF,
GPS and vendor sub-directories hanging off IFD0 (plus Interop off EXIF).
Every offset is relative to the start of the TIFF header and every read is
bounds-checked; structural violations raise ``CorruptData`` and abort the
whole decode.
"""

import logging
from typing import Dict, List, Optional, Tuple

from jpegexif.config import CodecConfig, resolve
from jpegexif.errors import CorruptData, NoExifSegment, UnsupportedFormat
from jpegexif.models import SkippedEntry
from jpegexif.tiff.codec import ByteCodec
from jpegexif.tiff.entry import DirectoryId, Format, IFDirectory, IFEntry, TagValue
from jpegexif.tiff.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    THUMBNAIL_LENGTH_TAG,
    THUMBNAIL_OFFSET_TAG,
    VENDOR_IFD_POINTER_TAG,
    is_known,
)

logger = logging.getLogger(__name__)

EXIF_HEADER = b'Exif\x00\x00'
TIFF_MAGIC = 0x2A
TIFF_HEADER_SIZE = 8
ENTRY_SIZE = 12

# Pointer tags followed from IFD0, in the order their directories are decoded
IFD0_POINTERS = {
    EXIF_IFD_POINTER_TAG: DirectoryId.EXIF,
    GPS_IFD_POINTER_TAG: DirectoryId.GPS,
    VENDOR_IFD_POINTER_TAG: DirectoryId.VENDOR,
}
EXIF_POINTERS = {
    INTEROP_IFD_POINTER_TAG: DirectoryId.INTEROP,
}


class TIFFHeader:
    """Parsed TIFF header."""
    __slots__ = ('codec', 'first_ifd_offset')

    def __init__(self, codec: ByteCodec, first_ifd_offset: int):
        self.codec = codec
        self.first_ifd_offset = first_ifd_offset

    @property
    def byte_order(self) -> str:
        return self.codec.marker.decode('ascii')


class WireEntry:
    """A raw 12-byte IFD entry, before its value is interpreted."""
    __slots__ = ('tag', 'format_code', 'count', 'data', 'entry_offset')

    def __init__(self, tag: int, format_code: int, count: int, data: int,
                 entry_offset: int):
        self.tag = tag
        self.format_code = format_code
        self.count = count
        self.data = data
        self.entry_offset = entry_offset

    @property
    def value_field_offset(self) -> int:
        return self.entry_offset + 8


class DecodedTiff:
    """Everything recovered from one TIFF structure."""
    __slots__ = ('byte_order', 'directories', 'thumbnail', 'skipped')

    def __init__(self, byte_order: str):
        self.byte_order = byte_order
        self.directories: List[IFDirectory] = []
        self.thumbnail: Optional[bytes] = None
        self.skipped: List[SkippedEntry] = []


def split_exif_payload(payload: bytes) -> bytes:
    """Strip the ``Exif\\0\\0`` preamble, returning the TIFF structure."""
    if len(payload) < len(EXIF_HEADER) or payload[:6] != EXIF_HEADER:
        raise NoExifSegment('payload does not begin with Exif\\0\\0')
    return payload[6:]


def read_header(tiff: bytes) -> TIFFHeader:
    """Read and validate the 8-byte TIFF header."""
    if len(tiff) < TIFF_HEADER_SIZE:
        raise CorruptData(f'TIFF header truncated ({len(tiff)} bytes)')
    codec = ByteCodec.from_marker(tiff[:2])
    magic = codec.u16(tiff, 2)
    if magic != TIFF_MAGIC:
        raise CorruptData(f'bad TIFF magic 0x{magic:04X}, expected 0x{TIFF_MAGIC:04X}')
    return TIFFHeader(codec, codec.u32(tiff, 4))


def read_ifd(tiff: bytes, codec: ByteCodec, ifd_offset: int,
             config: Optional[CodecConfig] = None) -> Tuple[List[WireEntry], int]:
    """Read all raw entries of the IFD at *ifd_offset*. Returns (entries, next_ifd_offset).

    The whole entry table plus the next-IFD link must fit in *tiff*;
    otherwise the entry count cannot be trusted and ``CorruptData`` is raised.
    """
    config = resolve(config)
    num_entries = codec.u16(tiff, ifd_offset)
    if num_entries > config.max_ifd_entries:
        raise CorruptData(f'IFD at offset {ifd_offset} claims {num_entries} entries')
    if ifd_offset + 6 + ENTRY_SIZE * num_entries > len(tiff):
        raise CorruptData(
            f'IFD at offset {ifd_offset} with {num_entries} entries overruns '
            f'segment of {len(tiff)} bytes')

    entries = []
    offset = ifd_offset + 2
    for _ in range(num_entries):
        tag, format_code, count, data = codec.unpack('HHII', tiff, offset)
        entries.append(WireEntry(tag, format_code, count, data, offset))
        offset += ENTRY_SIZE

    next_offset = codec.u32(tiff, offset)
    logger.debug('IFD at offset %d: %d entries, next IFD %d', ifd_offset, num_entries, next_offset)
    return entries, next_offset


def read_value_bytes(tiff: bytes, wire: WireEntry, fmt: Format) -> bytes:
    """Raw bytes of a value, inline or out-of-line. Raises ``CorruptData`` when out of bounds."""
    size = fmt.size * wire.count
    if size <= 4:
        start = wire.value_field_offset
    else:
        start = wire.data
    if start + size > len(tiff):
        raise CorruptData(
            f'value of tag 0x{wire.tag:04X} ({size} bytes at offset {start}) '
            f'exceeds segment of {len(tiff)} bytes')
    return tiff[start:start + size]


def decode_entry(tiff: bytes, codec: ByteCodec, wire: WireEntry,
                 directory: DirectoryId, config: CodecConfig,
                 skipped: List[SkippedEntry]) -> Optional[IFEntry]:
    """Interpret one raw entry. Returns None (and records a skip) for unusable entries."""
    try:
        fmt = Format.coerce(wire.format_code)
    except UnsupportedFormat as e:
        _skip(skipped, wire, directory, e.message)
        return None

    try:
        raw = read_value_bytes(tiff, wire, fmt)
    except CorruptData as e:
        if config.strict_values:
            raise
        _skip(skipped, wire, directory, e.message)
        return None

    value = TagValue.from_wire(fmt, wire.count, raw, codec)
    return IFEntry(wire.tag, directory, value, raw_offset_or_inline=wire.data)


def _skip(skipped, wire, directory, reason):
    logger.warning('skipping tag 0x%04X in %s: %s', wire.tag, DirectoryId(directory).label, reason)
    skipped.append(SkippedEntry(wire.tag, int(directory), wire.format_code, reason))


def _pointer_offset(tiff: bytes, codec: ByteCodec, wire: WireEntry) -> Optional[int]:
    """Offset carried by a pointer tag, or None when the entry is not a plain pointer."""
    if wire.count != 1:
        return None
    if wire.format_code == Format.LONG:
        return wire.data
    if wire.format_code == Format.SHORT:
        return codec.u16(tiff, wire.value_field_offset)
    return None


def split_pointers(tiff: bytes, codec: ByteCodec, wires: List[WireEntry],
                   pointer_tags: Dict[int, DirectoryId], directory: DirectoryId,
                   skipped: List[SkippedEntry]
                   ) -> Tuple[List[WireEntry], Dict[DirectoryId, int]]:
    """Separate sub-directory pointers from ordinary entries.

    Pointer tags never reach the document: the encoder regenerates them.
    One that is not a single LONG/SHORT offset cannot be followed and is
    recorded as skipped.
    """
    ordinary = []
    pointers = {}
    for wire in wires:
        target = pointer_tags.get(wire.tag)
        if target is None:
            ordinary.append(wire)
            continue
        offset = _pointer_offset(tiff, codec, wire)
        if offset is None:
            _skip(skipped, wire, directory,
                  f'unfollowed {target.label} pointer (format {wire.format_code}, '
                  f'count {wire.count})')
        elif offset:
            pointers[target] = offset
    return ordinary, pointers


def build_directory(tiff: bytes, codec: ByteCodec, wires: List[WireEntry],
                    directory: DirectoryId, config: CodecConfig,
                    skipped: List[SkippedEntry]) -> IFDirectory:
    result = IFDirectory(directory)
    seen = set()
    for wire in wires:
        entry = decode_entry(tiff, codec, wire, directory, config, skipped)
        if entry is None:
            continue
        if entry.tag in seen:
            logger.warning('duplicate tag 0x%04X in %s, keeping the last one',
                           entry.tag, directory.label)
            result.entries = [e for e in result.entries if e.tag != entry.tag]
        seen.add(entry.tag)
        result.entries.append(entry)
    return result


def looks_like_thumbnail(wires: List[WireEntry]) -> bool:
    """Heuristic: is this "EXIF sub-IFD" really IFD1?

    Some encoders put the thumbnail directory at the address meant for the
    EXIF sub-IFD. If the first tag is foreign to the EXIF schema but valid
    for the primary image, treat the directory as IFD1. This is best-effort
    and can misclassify directories that start with unusual vendor tags.
    """
    if not wires:
        return False
    first = wires[0].tag
    return not is_known(first, DirectoryId.EXIF) and is_known(first, DirectoryId.IFD0)


def _extract_thumbnail(tiff: bytes, codec: ByteCodec, wires: List[WireEntry],
                       skipped: List[SkippedEntry]
                       ) -> Tuple[List[WireEntry], Optional[bytes]]:
    """Lift the JPEGInterchangeFormat byte range out of IFD1.

    The offset/length pair is removed from the entries whether or not the
    range is usable; an unusable pair is recorded as skipped.
    """
    by_tag = {w.tag: w for w in wires}
    off_wire = by_tag.get(THUMBNAIL_OFFSET_TAG)
    len_wire = by_tag.get(THUMBNAIL_LENGTH_TAG)
    if off_wire is None and len_wire is None:
        return wires, None
    rest = [w for w in wires if w.tag not in (THUMBNAIL_OFFSET_TAG, THUMBNAIL_LENGTH_TAG)]

    offset = _pointer_offset(tiff, codec, off_wire) if off_wire is not None else None
    length = _pointer_offset(tiff, codec, len_wire) if len_wire is not None else None
    if offset is None or length is None or length == 0 or offset + length > len(tiff):
        reason = f'unusable thumbnail range (offset={offset}, length={length})'
        for wire in (off_wire, len_wire):
            if wire is not None:
                _skip(skipped, wire, DirectoryId.IFD1, reason)
        return rest, None
    return rest, tiff[offset:offset + length]


def decode_tiff(tiff: bytes, config: Optional[CodecConfig] = None) -> DecodedTiff:
    """Decode the TIFF structure that follows ``Exif\\0\\0``."""
    config = resolve(config)
    header = read_header(tiff)
    codec = header.codec
    result = DecodedTiff(header.byte_order)
    found: Dict[DirectoryId, IFDirectory] = {}
    thumbnail_offset = None

    def decode_thumbnail(wires, offset):
        nonlocal thumbnail_offset
        wires, result.thumbnail = _extract_thumbnail(tiff, codec, wires, result.skipped)
        found[DirectoryId.IFD1] = build_directory(
            tiff, codec, wires, DirectoryId.IFD1, config, result.skipped)
        thumbnail_offset = offset

    # Primary image directory
    wires, next_offset = read_ifd(tiff, codec, header.first_ifd_offset, config)
    wires, sub_offsets = split_pointers(tiff, codec, wires, IFD0_POINTERS,
                                        DirectoryId.IFD0, result.skipped)
    found[DirectoryId.IFD0] = build_directory(
        tiff, codec, wires, DirectoryId.IFD0, config, result.skipped)

    if next_offset:
        thumb_wires, _ = read_ifd(tiff, codec, next_offset, config)
        decode_thumbnail(thumb_wires, next_offset)

    for directory, offset in sub_offsets.items():
        logger.debug('following %s pointer to offset %d', directory.label, offset)
        wires, _ = read_ifd(tiff, codec, offset, config)

        if (directory == DirectoryId.EXIF and config.reclassify_thumbnail
                and looks_like_thumbnail(wires)):
            if thumbnail_offset == offset:
                logger.debug('EXIF pointer targets the IFD1 already decoded; ignoring')
                continue
            if thumbnail_offset is None:
                logger.debug('reclassifying directory at offset %d as IFD1', offset)
                decode_thumbnail(wires, offset)
                continue

        if directory == DirectoryId.EXIF:
            wires, interop = split_pointers(tiff, codec, wires, EXIF_POINTERS,
                                            DirectoryId.EXIF, result.skipped)
            if DirectoryId.INTEROP in interop:
                interop_wires, _ = read_ifd(tiff, codec, interop[DirectoryId.INTEROP], config)
                found[DirectoryId.INTEROP] = build_directory(
                    tiff, codec, interop_wires, DirectoryId.INTEROP, config, result.skipped)

        found[directory] = build_directory(tiff, codec, wires, directory, config, result.skipped)

    result.directories = [found[d] for d in sorted(found) if len(found[d])]
    return result
