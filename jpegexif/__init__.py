"""jpegexif -- extract, edit and re-serialize EXIF metadata in JPEG files."""

__version__ = "1.0.0"

from jpegexif.config import CodecConfig
from jpegexif.errors import (
    CorruptData,
    EncodeError,
    ExifError,
    NoExifSegment,
    NotAJpeg,
    UnknownByteAlign,
    UnsupportedFormat,
)
from jpegexif.models import AppMarker, ExifSummary, GeoLocation, JpegLayout, LensInfo, SkippedEntry
from jpegexif.tiff import (
    DirectoryId,
    Format,
    IFDirectory,
    IFEntry,
    Rational,
    SRational,
    TagValue,
    encode_segment,
    lookup,
    make_entry,
)
from jpegexif.jpeg import build_jpeg_header, scan_jpeg
from jpegexif.document import ExifDocument, decode_segment
from jpegexif.summary import set_geolocation, summarize

__all__ = [
    "__version__",
    "CodecConfig",
    "ExifError",
    "NotAJpeg",
    "NoExifSegment",
    "UnknownByteAlign",
    "CorruptData",
    "UnsupportedFormat",
    "EncodeError",
    "AppMarker",
    "JpegLayout",
    "SkippedEntry",
    "ExifSummary",
    "GeoLocation",
    "LensInfo",
    "DirectoryId",
    "Format",
    "IFDirectory",
    "IFEntry",
    "Rational",
    "SRational",
    "TagValue",
    "lookup",
    "make_entry",
    "scan_jpeg",
    "build_jpeg_header",
    "decode_segment",
    "encode_segment",
    "ExifDocument",
    "summarize",
    "set_geolocation",
]
