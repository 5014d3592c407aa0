"""JPEG segment scanner and header assembly.

Only the application segments at the head of the file are examined; the
scan stops at the first marker outside the APPn range, which is where the
image data (quantization tables, frame header, scan) begins.
"""

import logging
import struct
from typing import Iterable, Optional

from jpegexif.config import CodecConfig, resolve
from jpegexif.errors import CorruptData, EncodeError, NotAJpeg
from jpegexif.models import AppMarker, JpegLayout
from jpegexif.tiff.decoder import EXIF_HEADER
from jpegexif.tiff.encoder import MAX_APP1_PAYLOAD

logger = logging.getLogger(__name__)

SOI = b'\xff\xd8'
EOI = b'\xff\xd9'
APP1 = 0xFFE1
APPN_MASK = 0xFFE0


def has_eoi(buf: bytes) -> bool:
    """True when *buf* ends with EOI once trailing 0x00/0xFF padding is ignored."""
    end = len(buf)
    while end > 2 and buf[end - 1] in (0x00, 0xFF):
        end -= 1
    return end >= 4 and buf[end - 2:end] == EOI


def is_app_marker(marker: int) -> bool:
    """True for markers whose top 11 bits are 0xFFE0.

    The mask admits 0xFFF0-0xFFFE as well as APP0-APP15, so JPGn and COM
    segments ahead of the image data are walked over and kept as opaque
    markers instead of ending the scan.
    """
    return marker & APPN_MASK == APPN_MASK


def scan_jpeg(buf: bytes, config: Optional[CodecConfig] = None) -> JpegLayout:
    """Split the APPn segments of *buf* into the EXIF payload and opaque markers.

    A file without an EXIF segment is not an error here; the returned
    layout simply has ``exif_payload`` set to None.
    """
    config = resolve(config)
    if len(buf) < 2 or buf[:2] != SOI:
        raise NotAJpeg('buffer does not start with the JPEG SOI marker 0xFFD8')
    if config.require_eoi and not has_eoi(buf):
        raise NotAJpeg('buffer does not end with the JPEG EOI marker 0xFFD9')

    layout = JpegLayout()
    pos = 2
    while pos + 4 <= len(buf):
        marker, length = struct.unpack_from('>HH', buf, pos)
        if not is_app_marker(marker):
            break
        if length < 2:
            raise CorruptData(f'segment 0x{marker:04X} at offset {pos} has length {length}')
        end = pos + 2 + length
        if end > len(buf):
            raise CorruptData(
                f'segment 0x{marker:04X} at offset {pos} runs past end of file '
                f'({end} > {len(buf)})')
        payload = bytes(buf[pos + 4:end])

        if marker == APP1 and payload[:6] == EXIF_HEADER:
            if layout.exif_payload is None:
                logger.debug('EXIF segment at offset %d (%d bytes)', pos, len(payload))
                layout.exif_payload = payload
                pos = end
                continue
            logger.warning('additional EXIF segment at offset %d kept as opaque marker', pos)
        layout.markers.append(AppMarker(marker, length, payload))
        pos = end

    layout.image_offset = pos
    logger.debug('scanned %d opaque segments, image data at offset %d',
                 len(layout.markers), pos)
    return layout


def build_jpeg_header(payload: Optional[bytes], markers: Iterable[AppMarker] = ()) -> bytes:
    """SOI, the APP1 segment wrapping *payload*, then each preserved marker in order.

    With *payload* None no APP1 segment is written.
    """
    parts = [SOI]
    if payload is not None:
        if len(payload) > MAX_APP1_PAYLOAD:
            raise EncodeError(
                f'APP1 payload of {len(payload)} bytes exceeds {MAX_APP1_PAYLOAD} bytes')
        parts.append(struct.pack('>HH', APP1, len(payload) + 2))
        parts.append(payload)
    for marker in markers:
        parts.append(marker.to_bytes())
    return b''.join(parts)
