"""Convenience view over a decoded document, plus GPS editing.

``summarize`` pulls the commonly displayed camera fields into an
``ExifSummary``; anything the file does not carry stays at its default.
"""

from typing import Optional, Tuple

from jpegexif.models import Coordinate, ExifSummary, GeoLocation, LensInfo
from jpegexif.tiff.entry import DirectoryId, Format, Rational

IFD0 = DirectoryId.IFD0
EXIF = DirectoryId.EXIF
GPS = DirectoryId.GPS

# Seconds are stored with this denominator when writing coordinates
SEC_DEN = 50000000

# ExifSummary field -> (tag, directory), read as the first component
_STRING_FIELDS = {
    'image_description': (0x010E, IFD0),
    'make': (0x010F, IFD0),
    'model': (0x0110, IFD0),
    'software': (0x0131, IFD0),
    'date_time': (0x0132, IFD0),
    'copyright': (0x8298, IFD0),
    'date_time_original': (0x9003, EXIF),
    'date_time_digitized': (0x9004, EXIF),
    'sub_sec_time': (0x9290, EXIF),
    'sub_sec_time_original': (0x9291, EXIF),
    'sub_sec_time_digitized': (0x9292, EXIF),
}

_INT_FIELDS = {
    'orientation': (0x0112, IFD0),
    'bits_per_sample': (0x0102, IFD0),
    'resolution_unit': (0x0128, IFD0),
    'ycbcr_positioning': (0x0213, IFD0),
    'exposure_program': (0x8822, EXIF),
    'iso_speed_ratings': (0x8827, EXIF),
    'metering_mode': (0x9207, EXIF),
    'color_space': (0xA001, EXIF),
    'image_width': (0xA002, EXIF),
    'image_height': (0xA003, EXIF),
    'custom_rendered': (0xA401, EXIF),
    'exposure_mode': (0xA402, EXIF),
    'white_balance': (0xA403, EXIF),
    'focal_length_in_35mm': (0xA405, EXIF),
    'scene_capture_type': (0xA406, EXIF),
    'scene_type': (0xA301, EXIF),
}

_FLOAT_FIELDS = {
    'x_resolution': (0x011A, IFD0),
    'y_resolution': (0x011B, IFD0),
    'exposure_time': (0x829A, EXIF),
    'f_number': (0x829D, EXIF),
    'shutter_speed_value': (0x9201, EXIF),
    'aperture_value': (0x9202, EXIF),
    'brightness_value': (0x9203, EXIF),
    'exposure_bias_value': (0x9204, EXIF),
    'max_aperture_value': (0x9205, EXIF),
    'subject_distance': (0x9206, EXIF),
    'focal_length': (0x920A, EXIF),
}

_VERSION_FIELDS = {
    'exif_version': (0x9000, EXIF),
    'flashpix_version': (0xA000, EXIF),
}


def _value(document, tag, directory):
    entry = document.find_entry(tag, directory)
    return entry.value if entry is not None else None


def _as_int(value) -> Optional[int]:
    if value is None or not len(value):
        return None
    first = value.first()
    if isinstance(first, int):
        return first
    if isinstance(first, str):
        return None
    return int(float(first))


def _as_float(value) -> Optional[float]:
    if value is None or not len(value):
        return None
    first = value.first()
    if isinstance(first, str):
        return None
    return float(first)


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if value.format == Format.ASCII:
        return value.data
    if value.format in (Format.BYTE, Format.UNDEFINED):
        return value.data.decode('latin-1').rstrip('\x00')
    return None


def _user_comment(value) -> str:
    """UserComment starts with an 8-byte character code ('ASCII\\0\\0\\0' etc.)."""
    if value is None:
        return ''
    if value.format == Format.ASCII:
        return value.data
    if value.format != Format.UNDEFINED or len(value.data) <= 8:
        return ''
    return value.data[8:].decode('latin-1').rstrip('\x00 ')


def _coordinate(value, ref) -> Tuple[float, Coordinate]:
    parts = [float(r) for r in value] if value is not None else []
    parts += [0.0] * (3 - len(parts))
    direction = ref.first() if ref is not None and ref.format == Format.ASCII else ''
    if ref is not None and ref.format in (Format.BYTE, Format.UNDEFINED):
        direction = ref.data.decode('latin-1').rstrip('\x00')
    direction = (direction or '?')[0]
    decimal = parts[0] + parts[1] / 60 + parts[2] / 3600
    if direction in ('S', 'W'):
        decimal = -decimal
    return decimal, Coordinate(parts[0], parts[1], parts[2], direction)


def read_geolocation(document) -> GeoLocation:
    """GPS position from the GPS sub-directory (zeros when absent)."""
    geo = GeoLocation()
    if document.directory(GPS) is None:
        return geo
    geo.latitude, geo.lat_components = _coordinate(
        _value(document, 2, GPS), _value(document, 1, GPS))
    geo.longitude, geo.lon_components = _coordinate(
        _value(document, 4, GPS), _value(document, 3, GPS))
    geo.altitude_ref = _as_int(_value(document, 5, GPS)) or 0
    geo.altitude = _as_float(_value(document, 6, GPS)) or 0.0
    if geo.altitude_ref == 1:
        geo.altitude = -geo.altitude
    geo.dop = _as_float(_value(document, 11, GPS)) or 0.0
    return geo


def read_lens_info(document) -> LensInfo:
    lens = LensInfo()
    spec = _value(document, 0xA432, EXIF)
    if spec is not None and spec.format in (Format.RATIONAL, Format.SRATIONAL):
        values = [float(r) for r in spec] + [0.0] * 4
        lens.focal_length_min, lens.focal_length_max = values[0], values[1]
        lens.f_stop_min, lens.f_stop_max = values[2], values[3]
    lens.focal_plane_x_resolution = _as_float(_value(document, 0xA20E, EXIF)) or 0.0
    lens.focal_plane_y_resolution = _as_float(_value(document, 0xA20F, EXIF)) or 0.0
    lens.make = _as_text(_value(document, 0xA433, EXIF)) or ''
    lens.model = _as_text(_value(document, 0xA434, EXIF)) or ''
    return lens


def summarize(document) -> ExifSummary:
    """Build an ``ExifSummary`` from *document*."""
    summary = ExifSummary(byte_align=document.byte_align)

    for name, key in _STRING_FIELDS.items():
        text = _as_text(_value(document, *key))
        if text is not None:
            setattr(summary, name, text)
    for name, key in _INT_FIELDS.items():
        number = _as_int(_value(document, *key))
        if number is not None:
            setattr(summary, name, number)
    for name, key in _FLOAT_FIELDS.items():
        number = _as_float(_value(document, *key))
        if number is not None:
            setattr(summary, name, number)
    for name, key in _VERSION_FIELDS.items():
        text = _as_text(_value(document, *key))
        if text is not None:
            setattr(summary, name, text)

    summary.user_comment = _user_comment(_value(document, 0x9286, EXIF))

    components = _value(document, 0x9101, EXIF)
    if components is not None and components.format in (Format.BYTE, Format.UNDEFINED):
        summary.components_configuration = components.data

    flash = _as_int(_value(document, 0x9209, EXIF))
    if flash is not None:
        summary.flash = flash & 1
        summary.flash_returned_light = (flash & 6) >> 1
        summary.flash_mode = (flash & 24) >> 3

    summary.geolocation = read_geolocation(document)
    summary.lens_info = read_lens_info(document)
    return summary


def _dms(value: float):
    """Split an absolute decimal degree value into (deg, min, sec * SEC_DEN)."""
    degrees = int(value)
    other = (value - degrees) * 60
    minutes = int(other)
    seconds = round((other - minutes) * 60 * SEC_DEN)
    return degrees, minutes, seconds


def set_geolocation(document, latitude: float, longitude: float,
                    altitude: Optional[float] = None):
    """Write a GPS position into *document*, replacing existing coordinates."""
    if not -90 <= latitude <= 90:
        raise ValueError(f'latitude out of range: {latitude}')
    if not -180 <= longitude <= 180:
        raise ValueError(f'longitude out of range: {longitude}')

    document.set_value(0, GPS, b'\x02\x02\x00\x00')
    for ref_tag, tag, value, refs in ((1, 2, latitude, 'NS'), (3, 4, longitude, 'EW')):
        degrees, minutes, seconds = _dms(abs(value))
        document.set_value(ref_tag, GPS, refs[value < 0])
        document.set_value(tag, GPS, [Rational(degrees, 1), Rational(minutes, 1),
                                      Rational(seconds, SEC_DEN)])

    if altitude is not None:
        document.set_value(5, GPS, b'\x01' if altitude < 0 else b'\x00')
        document.set_value(6, GPS, Rational.from_float(abs(altitude), 1000))
