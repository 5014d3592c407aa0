"""TIFF/IFD encoder producing a fresh EXIF APP1 payload.

Layout is canonical rather than a copy of the input: leaf directories are
written first so every pointer value is known before its parent is laid
out. The emitted order is Interop, EXIF, GPS, vendor, IFD0, then IFD1
followed by the thumbnail bytes. Each block is the IFD table followed by
its own out-of-line value area.

Pointer and thumbnail entries are synthesized on working copies; the
document passed in is never modified.
"""

import logging
from typing import Dict, List, Optional

from jpegexif.config import CodecConfig, resolve
from jpegexif.errors import EncodeError
from jpegexif.tiff.codec import ByteCodec
from jpegexif.tiff.decoder import ENTRY_SIZE, EXIF_HEADER, TIFF_HEADER_SIZE, TIFF_MAGIC
from jpegexif.tiff.entry import DirectoryId, Format, IFDirectory, IFEntry, TagValue
from jpegexif.tiff.tags import (
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    THUMBNAIL_LENGTH_TAG,
    THUMBNAIL_OFFSET_TAG,
    VENDOR_IFD_POINTER_TAG,
)

logger = logging.getLogger(__name__)

# Largest APP1 payload: the 16-bit segment length also counts its own 2 bytes
MAX_APP1_PAYLOAD = 0xFFFF - 2

EMIT_ORDER = (
    DirectoryId.INTEROP,
    DirectoryId.EXIF,
    DirectoryId.GPS,
    DirectoryId.VENDOR,
    DirectoryId.IFD0,
    DirectoryId.IFD1,
)

# {parent: {child: pointer tag}}
POINTERS = {
    DirectoryId.IFD0: {
        DirectoryId.EXIF: EXIF_IFD_POINTER_TAG,
        DirectoryId.GPS: GPS_IFD_POINTER_TAG,
        DirectoryId.VENDOR: VENDOR_IFD_POINTER_TAG,
    },
    DirectoryId.EXIF: {
        DirectoryId.INTEROP: INTEROP_IFD_POINTER_TAG,
    },
}

# Tags the encoder owns; copies found in a document are stale and dropped
RESERVED_TAGS = {
    DirectoryId.IFD0: {EXIF_IFD_POINTER_TAG, GPS_IFD_POINTER_TAG, VENDOR_IFD_POINTER_TAG},
    DirectoryId.EXIF: {INTEROP_IFD_POINTER_TAG},
    DirectoryId.IFD1: {THUMBNAIL_OFFSET_TAG, THUMBNAIL_LENGTH_TAG},
}


def _padded(size: int) -> int:
    """Out-of-line values start on word boundaries."""
    return size + (size & 1)


class _Block:
    """One directory as it will be laid out in the output."""
    __slots__ = ('directory', 'entries', 'offset')

    def __init__(self, directory: DirectoryId, entries: List[IFEntry]):
        self.directory = directory
        self.entries = entries
        self.offset = 0

    @property
    def table_size(self) -> int:
        return 2 + ENTRY_SIZE * len(self.entries) + 4

    @property
    def data_size(self) -> int:
        return sum(_padded(e.total_size) for e in self.entries if not e.is_inline)

    @property
    def size(self) -> int:
        return self.table_size + self.data_size


def _long_entry(tag: int, directory: DirectoryId, value: int) -> IFEntry:
    return IFEntry(tag, directory, TagValue(Format.LONG, value))


def _working_copies(directories, thumbnail: Optional[bytes]) -> Dict[DirectoryId, List[IFEntry]]:
    """Entry lists per directory with encoder-owned tags removed."""
    working = {}
    for ifd in directories:
        reserved = RESERVED_TAGS.get(ifd.type, ())
        entries = [e for e in ifd.entries if e.tag not in reserved]
        dropped = len(ifd.entries) - len(entries)
        if dropped:
            logger.warning('dropping %d encoder-owned entries from %s',
                           dropped, ifd.type.label)
        working.setdefault(ifd.type, []).extend(entries)

    # Parents must exist whenever a child does, so the child stays reachable
    if working.get(DirectoryId.INTEROP) and not working.get(DirectoryId.EXIF):
        working[DirectoryId.EXIF] = []
    if thumbnail and DirectoryId.IFD1 not in working:
        working[DirectoryId.IFD1] = []
    working.setdefault(DirectoryId.IFD0, [])
    return working


def _present(working, directory) -> bool:
    if directory == DirectoryId.IFD0:
        return True
    entries = working.get(directory)
    if entries:
        return True
    # An empty EXIF directory still hosts the Interop pointer
    return directory in working and any(
        working.get(child) for child in POINTERS.get(directory, {}))


def layout(directories, thumbnail: Optional[bytes] = None) -> List[_Block]:
    """Assign offsets to every directory block. Returns blocks in emission order."""
    working = _working_copies(directories, thumbnail)
    present = [d for d in EMIT_ORDER if _present(working, d)]
    if thumbnail and DirectoryId.IFD1 not in present:
        present.append(DirectoryId.IFD1)

    blocks = {}
    offset = TIFF_HEADER_SIZE
    for directory in present:
        entries = list(working.get(directory, []))
        for child, tag in POINTERS.get(directory, {}).items():
            if child in blocks:
                entries.append(_long_entry(tag, directory, blocks[child].offset))
        # Offset placeholder so the table size is final before the thumbnail is placed
        if directory == DirectoryId.IFD1 and thumbnail:
            entries.append(_long_entry(THUMBNAIL_OFFSET_TAG, directory, 0))
            entries.append(_long_entry(THUMBNAIL_LENGTH_TAG, directory, len(thumbnail)))
        entries.sort(key=lambda e: e.tag)

        block = _Block(directory, entries)
        block.offset = offset
        offset += block.size
        if directory == DirectoryId.IFD1 and thumbnail:
            thumb_entry = _long_entry(THUMBNAIL_OFFSET_TAG, directory, offset)
            block.entries = [thumb_entry if e.tag == THUMBNAIL_OFFSET_TAG else e
                             for e in block.entries]
            offset += _padded(len(thumbnail))
        blocks[directory] = block
        logger.debug('%s: %d entries at offset %d', directory.label, len(entries), block.offset)

    return [blocks[d] for d in present]


def _write_block(codec: ByteCodec, buf: bytearray, block: _Block, next_offset: int):
    pos = codec.pack_into('H', buf, block.offset, len(block.entries))
    data_pos = block.offset + block.table_size
    for entry in block.entries:
        raw = entry.value.to_wire(codec)
        pos = codec.pack_into('HHI', buf, pos, entry.tag, entry.format, entry.value.wire_count)
        if entry.is_inline:
            codec.write_bytes(buf, pos, raw.ljust(4, b'\x00'))
        else:
            codec.pack_into('I', buf, pos, data_pos)
            codec.write_bytes(buf, data_pos, raw)
            data_pos += _padded(len(raw))
        pos += 4
    codec.pack_into('I', buf, pos, next_offset)
    return data_pos


def encode_tiff(directories, thumbnail: Optional[bytes] = None,
                config: Optional[CodecConfig] = None) -> bytes:
    """Serialize *directories* (iterable of ``IFDirectory``) as a TIFF structure."""
    config = resolve(config)
    codec = ByteCodec(config.endian)
    blocks = layout(list(directories), thumbnail)
    by_type = {b.directory: b for b in blocks}

    end = blocks[-1].offset + blocks[-1].size
    if thumbnail and DirectoryId.IFD1 in by_type:
        end += _padded(len(thumbnail))
    if len(EXIF_HEADER) + end > MAX_APP1_PAYLOAD:
        raise EncodeError(
            f'EXIF payload of {len(EXIF_HEADER) + end} bytes exceeds the APP1 limit '
            f'of {MAX_APP1_PAYLOAD} bytes')

    buf = bytearray(end)
    codec.write_bytes(buf, 0, codec.marker)
    codec.pack_into('HI', buf, 2, TIFF_MAGIC, by_type[DirectoryId.IFD0].offset)

    for block in blocks:
        next_offset = 0
        if block.directory == DirectoryId.IFD0 and DirectoryId.IFD1 in by_type:
            next_offset = by_type[DirectoryId.IFD1].offset
        data_end = _write_block(codec, buf, block, next_offset)
        if block.directory == DirectoryId.IFD1 and thumbnail:
            codec.write_bytes(buf, data_end, thumbnail)

    logger.debug('encoded %d directories into %d bytes (%s)',
                 len(blocks), end, codec.marker.decode())
    return bytes(buf)


def encode_segment(document, config: Optional[CodecConfig] = None) -> bytes:
    """Encode *document* into an APP1 payload starting with ``Exif\\0\\0``."""
    directories = [ifd for ifd in document.directories if isinstance(ifd, IFDirectory)]
    return EXIF_HEADER + encode_tiff(directories, document.thumbnail, config)
