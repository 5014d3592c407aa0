"""Exception hierarchy for jpegexif.

Every failure raised by the decode/encode engine derives from ``ExifError``
so callers can catch the whole family in one place.
"""


class ExifError(Exception):
    """Base class for all jpegexif errors."""

    def __init__(self, message: str = ''):
        self.message = message
        super().__init__(message)


class NotAJpeg(ExifError):
    """Buffer does not start with the JPEG SOI marker (0xFFD8)."""


class NoExifSegment(ExifError):
    """No APP1 segment beginning with ``Exif\\0\\0`` was found."""


class UnknownByteAlign(ExifError):
    """TIFF byte-order marker is neither ``II`` nor ``MM``."""


class CorruptData(ExifError):
    """Bounds, magic or count mismatch inside the EXIF segment."""


class UnsupportedFormat(ExifError):
    """Format code outside BYTE/ASCII/SHORT/LONG/RATIONAL/UNDEFINED/SRATIONAL."""

    def __init__(self, format_code: int, message: str = ''):
        self.format_code = format_code
        super().__init__(message or f'unsupported format code {format_code}')


class EncodeError(ExifError):
    """Encoded output would overflow its buffer or the APP1 size limit."""
