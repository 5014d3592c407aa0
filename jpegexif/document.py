"""ExifDocument -- the directory store and the bytes-in / bytes-out entry points."""

import logging
from typing import List, Optional

from jpegexif.config import CodecConfig, resolve
from jpegexif.errors import NoExifSegment
from jpegexif.jpeg import build_jpeg_header, scan_jpeg
from jpegexif.models import AppMarker, SkippedEntry
from jpegexif.tiff.decoder import decode_tiff, split_exif_payload
from jpegexif.tiff.encoder import encode_segment
from jpegexif.tiff.entry import DirectoryId, IFDirectory, IFEntry, make_entry

logger = logging.getLogger(__name__)


class ExifDocument:
    """All EXIF directories of one file, plus the JPEG segments kept alongside.

    ``get_or_create_directory``, ``update_entry`` and ``remove_entry`` are
    the only mutation paths; they keep every ``(tag, directory)`` key unique.
    """

    def __init__(self, directories: Optional[List[IFDirectory]] = None,
                 markers: Optional[List[AppMarker]] = None,
                 byte_align: str = ''):
        self.directories: List[IFDirectory] = list(directories) if directories else []
        self.markers: List[AppMarker] = list(markers) if markers else []
        self.byte_align = byte_align  # byte order of the decoded source, '' if built from scratch
        self.thumbnail: Optional[bytes] = None
        self.skipped: List[SkippedEntry] = []
        self.image_offset = 2

    def __repr__(self):
        dirs = ', '.join(f'{d.type.label}={len(d)}' for d in self.directories)
        return f'ExifDocument({dirs or "empty"}, markers={len(self.markers)})'

    # ------------------------------------------------------------------
    # Directory store
    # ------------------------------------------------------------------

    def directory(self, directory_id) -> Optional[IFDirectory]:
        directory_id = DirectoryId(directory_id)
        for ifd in self.directories:
            if ifd.type == directory_id:
                return ifd
        return None

    def get_or_create_directory(self, directory_id) -> IFDirectory:
        """Return the directory of this role, creating an empty one on first access."""
        ifd = self.directory(directory_id)
        if ifd is None:
            ifd = IFDirectory(directory_id)
            self.directories.append(ifd)
            self.directories.sort(key=lambda d: d.type)
        return ifd

    def find_entry(self, tag: int, directory_id) -> Optional[IFEntry]:
        ifd = self.directory(directory_id)
        return ifd.get(tag) if ifd is not None else None

    def remove_entry(self, tag: int, directory_id) -> bool:
        """Remove the entry keyed ``(tag, directory_id)``. Returns False if it was absent."""
        ifd = self.directory(directory_id)
        if ifd is None:
            return False
        before = len(ifd.entries)
        ifd.entries = [e for e in ifd.entries if e.tag != tag]
        return len(ifd.entries) != before

    def update_entry(self, entry: IFEntry):
        """Insert *entry*, replacing any entry with the same key."""
        ifd = self.get_or_create_directory(entry.directory)
        ifd.entries = [e for e in ifd.entries if e.tag != entry.tag]
        ifd.entries.append(entry)
        ifd.sort()

    def set_value(self, tag: int, directory_id, value, format=None) -> IFEntry:
        """Shortcut for ``update_entry(make_entry(...))``."""
        entry = make_entry(tag, directory_id, value, format)
        self.update_entry(entry)
        return entry

    def get_value(self, tag: int, directory_id, default=None):
        """First component of an entry's value (the whole string for ASCII)."""
        entry = self.find_entry(tag, directory_id)
        if entry is None:
            return default
        return entry.value.first(default)

    def entries(self):
        """Iterate ``(directory, entry)`` pairs in canonical order."""
        for ifd in sorted(self.directories, key=lambda d: d.type):
            for entry in sorted(ifd.entries, key=lambda e: e.tag):
                yield ifd.type, entry

    def is_empty(self) -> bool:
        return not any(len(d) for d in self.directories) and self.thumbnail is None

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    @classmethod
    def from_segment(cls, payload: bytes, config: Optional[CodecConfig] = None) -> 'ExifDocument':
        """Decode an APP1 payload that starts with ``Exif\\0\\0``."""
        decoded = decode_tiff(split_exif_payload(payload), resolve(config))
        doc = cls(decoded.directories, byte_align=decoded.byte_order)
        doc.thumbnail = decoded.thumbnail
        doc.skipped = decoded.skipped
        return doc

    @classmethod
    def from_jpeg(cls, buf: bytes, config: Optional[CodecConfig] = None,
                  require_exif: bool = False) -> 'ExifDocument':
        """Scan a whole JPEG file and decode its EXIF segment.

        A file without EXIF gives an empty document that still carries the
        other application segments, unless *require_exif* is set.
        """
        config = resolve(config)
        layout = scan_jpeg(buf, config)
        if layout.exif_payload is None:
            if require_exif:
                raise NoExifSegment('no APP1 segment with an Exif header found')
            doc = cls()
        else:
            doc = cls.from_segment(layout.exif_payload, config)
        doc.markers = list(layout.markers)
        doc.image_offset = layout.image_offset
        logger.debug('decoded %r', doc)
        return doc

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def to_segment(self, config: Optional[CodecConfig] = None) -> bytes:
        """Encode into a fresh APP1 payload (``Exif\\0\\0`` + TIFF data)."""
        return encode_segment(self, config)

    def to_jpeg_header(self, config: Optional[CodecConfig] = None) -> bytes:
        """SOI, the APP1 EXIF segment and the preserved markers.

        A document with no entries and no thumbnail gets no APP1 segment.
        """
        if self.is_empty():
            return build_jpeg_header(None, self.markers)
        return build_jpeg_header(self.to_segment(config), self.markers)

    def apply_to_jpeg(self, original: bytes, config: Optional[CodecConfig] = None) -> bytes:
        """Replace the header segments of *original* with this document's.

        The image data is taken from *original* starting at its first
        non-APPn marker, so *original* must be the file this document was
        decoded from (or one with the same segment layout).
        """
        config = resolve(config)
        layout = scan_jpeg(original, config)
        return self.to_jpeg_header(config) + bytes(original[layout.image_offset:])


def decode_segment(payload: bytes, config: Optional[CodecConfig] = None) -> ExifDocument:
    """Decode an EXIF APP1 payload into a new ``ExifDocument``."""
    return ExifDocument.from_segment(payload, config)
