"""Data models for jpegexif scan and summary results."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class AppMarker:
    """An opaque non-EXIF JPEG segment, kept byte-for-byte."""
    type: int
    length: int  # as stored on the wire: payload + 2
    payload: bytes

    def to_bytes(self) -> bytes:
        return (self.type.to_bytes(2, 'big') + self.length.to_bytes(2, 'big')
                + self.payload)


@dataclass
class JpegLayout:
    """Result of scanning the application segments of a JPEG buffer."""
    exif_payload: Optional[bytes] = None  # APP1 payload starting b'Exif\0\0'
    markers: List[AppMarker] = field(default_factory=list)
    image_offset: int = 2  # index of the first non-APPn marker


@dataclass
class SkippedEntry:
    """A wire entry that could not be decoded and was left out of the document."""
    tag: int
    directory: int
    format: int
    reason: str


@dataclass
class Coordinate:
    """Latitude or longitude split into degrees/minutes/seconds."""
    degrees: float = 0.0
    minutes: float = 0.0
    seconds: float = 0.0
    direction: str = '?'


@dataclass
class GeoLocation:
    """GPS information embedded in the file."""
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    altitude_ref: int = 0  # 0 = above sea level, 1 = below sea level
    dop: float = 0.0
    lat_components: Coordinate = field(default_factory=Coordinate)
    lon_components: Coordinate = field(default_factory=Coordinate)


@dataclass
class LensInfo:
    f_stop_min: float = 0.0
    f_stop_max: float = 0.0
    focal_length_min: float = 0.0
    focal_length_max: float = 0.0
    focal_plane_x_resolution: float = 0.0
    focal_plane_y_resolution: float = 0.0
    make: str = ''
    model: str = ''


@dataclass
class ExifSummary:
    """Commonly used EXIF fields pulled out of a decoded document.

    Fields stay at their zero/empty defaults when the file does not carry them.
    """
    byte_align: str = ''  # 'II' (Intel) or 'MM' (Motorola)
    image_description: str = ''
    make: str = ''
    model: str = ''
    software: str = ''
    exif_version: str = ''
    date_time: str = ''
    date_time_original: str = ''
    date_time_digitized: str = ''
    sub_sec_time: str = ''
    sub_sec_time_original: str = ''
    sub_sec_time_digitized: str = ''
    copyright: str = ''
    user_comment: str = ''
    flashpix_version: str = ''
    orientation: int = 0
    bits_per_sample: int = 0
    resolution_unit: int = 0
    x_resolution: float = 0.0
    y_resolution: float = 0.0
    ycbcr_positioning: int = 0
    components_configuration: bytes = b'\x00\x00\x00\x00'
    exposure_time: float = 0.0
    f_number: float = 0.0
    exposure_program: int = 0
    iso_speed_ratings: int = 0
    shutter_speed_value: float = 0.0
    aperture_value: float = 0.0
    brightness_value: float = 0.0
    exposure_bias_value: float = 0.0
    max_aperture_value: float = 0.0
    subject_distance: float = 0.0
    focal_length: float = 0.0
    focal_length_in_35mm: int = 0
    flash: int = 0  # 1 = flash fired
    flash_returned_light: int = 0
    flash_mode: int = 0
    metering_mode: int = 0
    image_width: int = 0
    image_height: int = 0
    color_space: int = 0
    custom_rendered: int = 0
    exposure_mode: int = 0
    white_balance: int = 0
    scene_capture_type: int = 0
    scene_type: int = 0
    geolocation: GeoLocation = field(default_factory=GeoLocation)
    lens_info: LensInfo = field(default_factory=LensInfo)
