"""Directory-scoped tag schema.

Maps ``(tag, DirectoryId)`` to the tag's expected format, typical component
count (0 = variable), name and a one-line description. The tables are
module-level constants built once at import and never mutated.
"""

from dataclasses import dataclass
from typing import Dict

from jpegexif.tiff.entry import DirectoryId, Format

B, A, S, L, R, U, SR = (Format.BYTE, Format.ASCII, Format.SHORT, Format.LONG,
                        Format.RATIONAL, Format.UNDEFINED, Format.SRATIONAL)

# Sub-directory pointer tags
EXIF_IFD_POINTER_TAG = 0x8769
GPS_IFD_POINTER_TAG = 0x8825
VENDOR_IFD_POINTER_TAG = 0x014A
INTEROP_IFD_POINTER_TAG = 0xA005

# IFD1 thumbnail location tags
THUMBNAIL_OFFSET_TAG = 0x0201
THUMBNAIL_LENGTH_TAG = 0x0202


@dataclass(frozen=True)
class TagInfo:
    format: Format
    count: int
    name: str
    description: str = ''


def _table(rows) -> Dict[int, TagInfo]:
    return {tag: TagInfo(fmt, count, name, desc) for tag, fmt, count, name, desc in rows}


IMAGE_TAGS = _table([
    (0x00FE, L, 1, 'NewSubfileType', 'Kind of data in this subfile'),
    (0x0100, L, 1, 'ImageWidth', 'Image width in pixels'),
    (0x0101, L, 1, 'ImageLength', 'Image height in pixels'),
    (0x0102, S, 3, 'BitsPerSample', 'Bits per component'),
    (0x0103, S, 1, 'Compression', 'Compression scheme'),
    (0x0106, S, 1, 'PhotometricInterpretation', 'Pixel composition'),
    (0x010E, A, 0, 'ImageDescription', 'Image title'),
    (0x010F, A, 0, 'Make', 'Camera manufacturer'),
    (0x0110, A, 0, 'Model', 'Camera model'),
    (0x0111, L, 0, 'StripOffsets', 'Image data location'),
    (0x0112, S, 1, 'Orientation', 'Orientation of image'),
    (0x0115, S, 1, 'SamplesPerPixel', 'Number of components'),
    (0x0116, L, 1, 'RowsPerStrip', 'Number of rows per strip'),
    (0x0117, L, 0, 'StripByteCounts', 'Bytes per compressed strip'),
    (0x011A, R, 1, 'XResolution', 'Image resolution in width direction'),
    (0x011B, R, 1, 'YResolution', 'Image resolution in height direction'),
    (0x011C, S, 1, 'PlanarConfiguration', 'Image data arrangement'),
    (0x0128, S, 1, 'ResolutionUnit', 'Unit of X and Y resolution'),
    (0x012D, S, 768, 'TransferFunction', 'Transfer function'),
    (0x0131, A, 0, 'Software', 'Software used'),
    (0x0132, A, 20, 'DateTime', 'File change date and time'),
    (0x013B, A, 0, 'Artist', 'Person who created the image'),
    (0x013E, R, 2, 'WhitePoint', 'White point chromaticity'),
    (0x013F, R, 6, 'PrimaryChromaticities', 'Chromaticities of primaries'),
    (0x014A, L, 1, 'SubIFDs', 'Vendor extension IFD offset'),
    (0x0201, L, 1, 'JPEGInterchangeFormat', 'Offset to thumbnail JPEG'),
    (0x0202, L, 1, 'JPEGInterchangeFormatLength', 'Bytes of thumbnail JPEG'),
    (0x0211, R, 3, 'YCbCrCoefficients', 'Color space transformation matrix'),
    (0x0212, S, 2, 'YCbCrSubSampling', 'Subsampling ratio of Y to C'),
    (0x0213, S, 1, 'YCbCrPositioning', 'Y and C positioning'),
    (0x0214, R, 6, 'ReferenceBlackWhite', 'Pair of black and white reference values'),
    (0x02BC, B, 0, 'XMLPacket', 'XMP metadata'),
    (0x8298, A, 0, 'Copyright', 'Copyright holder'),
    (0x8769, L, 1, 'ExifIFDPointer', 'Exif IFD offset'),
    (0x8825, L, 1, 'GPSInfoIFDPointer', 'GPS IFD offset'),
    (0xC4A5, U, 0, 'PrintImageMatching', 'PrintIM data'),
])

EXIF_TAGS = _table([
    (0x829A, R, 1, 'ExposureTime', 'Exposure time in seconds'),
    (0x829D, R, 1, 'FNumber', 'F number'),
    (0x8822, S, 1, 'ExposureProgram', 'Exposure program'),
    (0x8824, A, 0, 'SpectralSensitivity', 'Spectral sensitivity'),
    (0x8827, S, 0, 'ISOSpeedRatings', 'ISO speed'),
    (0x8828, U, 0, 'OECF', 'Optoelectric conversion factor'),
    (0x8830, S, 1, 'SensitivityType', 'Sensitivity type'),
    (0x8832, L, 1, 'RecommendedExposureIndex', 'Recommended exposure index'),
    (0x9000, U, 4, 'ExifVersion', 'Exif version'),
    (0x9003, A, 20, 'DateTimeOriginal', 'Date and time of original data generation'),
    (0x9004, A, 20, 'DateTimeDigitized', 'Date and time of digital data generation'),
    (0x9010, A, 7, 'OffsetTime', 'UTC offset of DateTime'),
    (0x9011, A, 7, 'OffsetTimeOriginal', 'UTC offset of DateTimeOriginal'),
    (0x9012, A, 7, 'OffsetTimeDigitized', 'UTC offset of DateTimeDigitized'),
    (0x9101, U, 4, 'ComponentsConfiguration', 'Meaning of each component'),
    (0x9102, R, 1, 'CompressedBitsPerPixel', 'Image compression mode'),
    (0x9201, SR, 1, 'ShutterSpeedValue', 'Shutter speed (APEX)'),
    (0x9202, R, 1, 'ApertureValue', 'Aperture (APEX)'),
    (0x9203, SR, 1, 'BrightnessValue', 'Brightness (APEX)'),
    (0x9204, SR, 1, 'ExposureBiasValue', 'Exposure bias (APEX)'),
    (0x9205, R, 1, 'MaxApertureValue', 'Maximum lens aperture'),
    (0x9206, R, 1, 'SubjectDistance', 'Subject distance in meters'),
    (0x9207, S, 1, 'MeteringMode', 'Metering mode'),
    (0x9208, S, 1, 'LightSource', 'Light source'),
    (0x9209, S, 1, 'Flash', 'Flash'),
    (0x920A, R, 1, 'FocalLength', 'Lens focal length in mm'),
    (0x9214, S, 0, 'SubjectArea', 'Subject area'),
    (0x927C, U, 0, 'MakerNote', 'Manufacturer notes'),
    (0x9286, U, 0, 'UserComment', 'User comments'),
    (0x9290, A, 0, 'SubSecTime', 'DateTime subseconds'),
    (0x9291, A, 0, 'SubSecTimeOriginal', 'DateTimeOriginal subseconds'),
    (0x9292, A, 0, 'SubSecTimeDigitized', 'DateTimeDigitized subseconds'),
    (0xA000, U, 4, 'FlashpixVersion', 'Supported Flashpix version'),
    (0xA001, S, 1, 'ColorSpace', 'Color space information'),
    (0xA002, L, 1, 'PixelXDimension', 'Valid image width'),
    (0xA003, L, 1, 'PixelYDimension', 'Valid image height'),
    (0xA004, A, 13, 'RelatedSoundFile', 'Related audio file'),
    (0xA005, L, 1, 'InteroperabilityIFDPointer', 'Interoperability IFD offset'),
    (0xA20B, R, 1, 'FlashEnergy', 'Flash energy'),
    (0xA20E, R, 1, 'FocalPlaneXResolution', 'Focal plane X resolution'),
    (0xA20F, R, 1, 'FocalPlaneYResolution', 'Focal plane Y resolution'),
    (0xA210, S, 1, 'FocalPlaneResolutionUnit', 'Focal plane resolution unit'),
    (0xA214, S, 2, 'SubjectLocation', 'Subject location'),
    (0xA215, R, 1, 'ExposureIndex', 'Exposure index'),
    (0xA217, S, 1, 'SensingMethod', 'Sensing method'),
    (0xA300, U, 1, 'FileSource', 'File source'),
    (0xA301, U, 1, 'SceneType', 'Scene type'),
    (0xA302, U, 0, 'CFAPattern', 'CFA pattern'),
    (0xA401, S, 1, 'CustomRendered', 'Custom image processing'),
    (0xA402, S, 1, 'ExposureMode', 'Exposure mode'),
    (0xA403, S, 1, 'WhiteBalance', 'White balance'),
    (0xA404, R, 1, 'DigitalZoomRatio', 'Digital zoom ratio'),
    (0xA405, S, 1, 'FocalLengthIn35mmFilm', 'Focal length in 35 mm film'),
    (0xA406, S, 1, 'SceneCaptureType', 'Scene capture type'),
    (0xA407, S, 1, 'GainControl', 'Gain control'),
    (0xA408, S, 1, 'Contrast', 'Contrast'),
    (0xA409, S, 1, 'Saturation', 'Saturation'),
    (0xA40A, S, 1, 'Sharpness', 'Sharpness'),
    (0xA40C, S, 1, 'SubjectDistanceRange', 'Subject distance range'),
    (0xA420, A, 33, 'ImageUniqueID', 'Unique image ID'),
    (0xA430, A, 0, 'CameraOwnerName', 'Camera owner name'),
    (0xA431, A, 0, 'BodySerialNumber', 'Body serial number'),
    (0xA432, R, 4, 'LensSpecification', 'Lens focal length and f-number range'),
    (0xA433, A, 0, 'LensMake', 'Lens manufacturer'),
    (0xA434, A, 0, 'LensModel', 'Lens model'),
    (0xA435, A, 0, 'LensSerialNumber', 'Lens serial number'),
])

GPS_TAGS = _table([
    (0, B, 4, 'GPSVersionID', 'GPS tag version'),
    (1, A, 2, 'GPSLatitudeRef', 'North or South latitude'),
    (2, R, 3, 'GPSLatitude', 'Latitude'),
    (3, A, 2, 'GPSLongitudeRef', 'East or West longitude'),
    (4, R, 3, 'GPSLongitude', 'Longitude'),
    (5, B, 1, 'GPSAltitudeRef', 'Altitude reference'),
    (6, R, 1, 'GPSAltitude', 'Altitude'),
    (7, R, 3, 'GPSTimeStamp', 'GPS time (atomic clock)'),
    (8, A, 0, 'GPSSatellites', 'GPS satellites used for measurement'),
    (9, A, 2, 'GPSStatus', 'GPS receiver status'),
    (10, A, 2, 'GPSMeasureMode', 'GPS measurement mode'),
    (11, R, 1, 'GPSDOP', 'Measurement precision'),
    (12, A, 2, 'GPSSpeedRef', 'Speed unit'),
    (13, R, 1, 'GPSSpeed', 'Speed of GPS receiver'),
    (14, A, 2, 'GPSTrackRef', 'Reference for direction of movement'),
    (15, R, 1, 'GPSTrack', 'Direction of movement'),
    (16, A, 2, 'GPSImgDirectionRef', 'Reference for direction of image'),
    (17, R, 1, 'GPSImgDirection', 'Direction of image'),
    (18, A, 0, 'GPSMapDatum', 'Geodetic survey data used'),
    (19, A, 2, 'GPSDestLatitudeRef', 'Reference for latitude of destination'),
    (20, R, 3, 'GPSDestLatitude', 'Latitude of destination'),
    (21, A, 2, 'GPSDestLongitudeRef', 'Reference for longitude of destination'),
    (22, R, 3, 'GPSDestLongitude', 'Longitude of destination'),
    (23, A, 2, 'GPSDestBearingRef', 'Reference for bearing of destination'),
    (24, R, 1, 'GPSDestBearing', 'Bearing of destination'),
    (25, A, 2, 'GPSDestDistanceRef', 'Reference for distance to destination'),
    (26, R, 1, 'GPSDestDistance', 'Distance to destination'),
    (27, U, 0, 'GPSProcessingMethod', 'Name of GPS processing method'),
    (28, U, 0, 'GPSAreaInformation', 'Name of GPS area'),
    (29, A, 11, 'GPSDateStamp', 'GPS date'),
    (30, S, 1, 'GPSDifferential', 'GPS differential correction'),
    (31, R, 1, 'GPSHPositioningError', 'Horizontal positioning error'),
])

INTEROP_TAGS = _table([
    (0x0001, A, 4, 'InteroperabilityIndex', 'Interoperability identification'),
    (0x0002, U, 4, 'InteroperabilityVersion', 'Interoperability version'),
    (0x1000, A, 0, 'RelatedImageFileFormat', 'Related image file format'),
    (0x1001, L, 1, 'RelatedImageWidth', 'Related image width'),
    (0x1002, L, 1, 'RelatedImageLength', 'Related image height'),
])

SCHEMA: Dict[DirectoryId, Dict[int, TagInfo]] = {
    DirectoryId.IFD0: IMAGE_TAGS,
    DirectoryId.IFD1: IMAGE_TAGS,
    DirectoryId.EXIF: EXIF_TAGS,
    DirectoryId.GPS: GPS_TAGS,
    DirectoryId.INTEROP: INTEROP_TAGS,
    DirectoryId.VENDOR: {},
}


def lookup(tag: int, directory: DirectoryId) -> TagInfo:
    """Schema entry for ``(tag, directory)``.

    Never fails: unmapped pairs get a synthetic LONG entry named after the
    tag's hex value.
    """
    info = SCHEMA.get(directory, {}).get(tag)
    if info is None:
        return TagInfo(Format.LONG, 1, f'0x{tag:04X}')
    return info


def is_known(tag: int, directory: DirectoryId) -> bool:
    return tag in SCHEMA.get(directory, {})


def find_tag(name: str, directory: DirectoryId):
    """Reverse lookup by name (case-insensitive) or hex/decimal literal. Returns the tag or None."""
    text = name.strip()
    try:
        return int(text, 0)
    except ValueError:
        pass
    lowered = text.lower()
    for tag, info in SCHEMA.get(directory, {}).items():
        if info.name.lower() == lowered:
            return tag
    return None
