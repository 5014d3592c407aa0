"""Shared test fixtures -- synthetic EXIF segment and JPEG file generators."""

import io
import struct

import pytest

EXIF_POINTER = 0x8769
GPS_POINTER = 0x8825
VENDOR_POINTER = 0x014A
INTEROP_POINTER = 0xA005

# Quantization table segment, start of scan and EOI: enough to look like image data
FAKE_IMAGE_DATA = (b'\xff\xdb\x00\x43\x00' + bytes(range(64))
                   + b'\xff\xda\x00\x08\x01\x01\x00\x00\x3f\x00'
                   + b'\x12\x34\x56\x78' + b'\xff\xd9')


def _pad(data):
    return data + b'\x00' * (len(data) & 1)


def ifd_size(entries):
    """Bytes an IFD built by build_ifd() occupies, value area included."""
    data = sum(len(_pad(v)) for _, _, _, v in entries if isinstance(v, bytes) and len(v) > 4)
    return 2 + 12 * len(entries) + 4 + data


def _inline(type_id, count, value, endian):
    if isinstance(value, bytes):
        return value.ljust(4, b'\x00')
    if type_id in (1, 2, 7) and count <= 1:
        return struct.pack(endian + 'B', value) + b'\x00\x00\x00'
    if type_id == 3 and count <= 1:
        return struct.pack(endian + 'H', value) + b'\x00\x00'
    return struct.pack(endian + 'I', value)


def build_ifd(entries, offset, endian='>', next_ifd=0):
    """Serialize one IFD placed at *offset* (relative to the TIFF header).

    Args:
        entries: List of (tag_id, type_id, count, value) tuples. An int value
            is packed inline as the given type; bytes of 4 or fewer are
            packed inline left-justified; longer bytes go to the value area
            right after the entry table.
        offset: Where the IFD will live, used to compute value offsets.
        endian: '<' or '>'.
        next_ifd: Value of the next-IFD link.

    Returns:
        bytes: entry count, entries, next link, value area.
    """
    data_start = offset + 2 + 12 * len(entries) + 4
    table = struct.pack(endian + 'H', len(entries))
    data = b''
    for tag_id, type_id, count, value in entries:
        table += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if isinstance(value, bytes) and len(value) > 4:
            table += struct.pack(endian + 'I', data_start + len(data))
            data += _pad(value)
        else:
            table += _inline(type_id, count, value, endian)
    table += struct.pack(endian + 'I', next_ifd)
    return table + data


def build_exif_tiff(ifd0, exif=None, gps=None, interop=None, ifd1=None,
                    vendor=None, thumbnail=None, endian='>'):
    """Build a TIFF structure with IFD0, its sub-IFDs and an optional IFD1.

    Pointer entries (and the IFD1 thumbnail entries) are added automatically.
    Layout: header, IFD0, IFD1, EXIF, Interop, GPS, vendor, thumbnail bytes.
    """
    ifd0 = list(ifd0)
    exif = list(exif) if exif is not None else None
    ifd1 = list(ifd1) if ifd1 is not None else None

    # Placeholders first so every IFD size is final
    if exif is not None:
        ifd0.append((EXIF_POINTER, 4, 1, 0))
        if interop is not None:
            exif.append((INTEROP_POINTER, 4, 1, 0))
    if gps is not None:
        ifd0.append((GPS_POINTER, 4, 1, 0))
    if vendor is not None:
        ifd0.append((VENDOR_POINTER, 4, 1, 0))
    if thumbnail is not None:
        if ifd1 is None:
            ifd1 = []
        ifd1 += [(0x0201, 4, 1, 0), (0x0202, 4, 1, len(thumbnail))]

    order = [('ifd0', ifd0), ('ifd1', ifd1), ('exif', exif), ('interop', interop),
             ('gps', gps), ('vendor', vendor)]
    offsets = {}
    pos = 8
    for name, entries in order:
        if entries is not None:
            offsets[name] = pos
            pos += ifd_size(entries)
    thumb_offset = pos

    def patch(entries, tag, value):
        return [(t, ty, c, value if t == tag else v) for t, ty, c, v in entries]

    if exif is not None:
        ifd0 = patch(ifd0, EXIF_POINTER, offsets['exif'])
        if interop is not None:
            exif = patch(exif, INTEROP_POINTER, offsets['interop'])
    if gps is not None:
        ifd0 = patch(ifd0, GPS_POINTER, offsets['gps'])
    if vendor is not None:
        ifd0 = patch(ifd0, VENDOR_POINTER, offsets['vendor'])
    if thumbnail is not None:
        ifd1 = patch(ifd1, 0x0201, thumb_offset)

    bo = b'II' if endian == '<' else b'MM'
    result = bo + struct.pack(endian + 'HI', 42, 8)
    built = {'ifd0': ifd0, 'ifd1': ifd1, 'exif': exif, 'interop': interop,
             'gps': gps, 'vendor': vendor}
    for name, _ in order:
        entries = built[name]
        if entries is None:
            continue
        next_ifd = offsets['ifd1'] if name == 'ifd0' and 'ifd1' in offsets else 0
        result += build_ifd(entries, offsets[name], endian, next_ifd)
    if thumbnail is not None:
        result += thumbnail
    return result


def build_exif_segment(ifd0=(), **kwargs):
    """``Exif\\0\\0`` followed by build_exif_tiff(...)."""
    return b'Exif\x00\x00' + build_exif_tiff(ifd0, **kwargs)


def build_segment(marker, payload):
    return struct.pack('>HH', marker, len(payload) + 2) + payload


def build_jpeg(exif_segment=None, markers=(), image_data=FAKE_IMAGE_DATA):
    """SOI, optional APP1 EXIF segment, extra (marker, payload) segments, image data."""
    result = b'\xff\xd8'
    if exif_segment is not None:
        result += build_segment(0xFFE1, exif_segment)
    for marker, payload in markers:
        result += build_segment(marker, payload)
    return result + image_data


JFIF_PAYLOAD = b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'

CAMERA_IFD0 = [
    (0x010F, 2, 6, b'Canon\x00'),
    (0x0110, 2, 13, b'Canon EOS 5D\x00'),
    (0x0112, 3, 1, 1),
    (0x011A, 5, 1, struct.pack('>II', 72, 1)),
    (0x011B, 5, 1, struct.pack('>II', 72, 1)),
    (0x0128, 3, 1, 2),
    (0x0132, 2, 20, b'2024:06:15 10:30:00\x00'),
]

CAMERA_EXIF = [
    (0x829A, 5, 1, struct.pack('>II', 1, 250)),
    (0x829D, 5, 1, struct.pack('>II', 28, 10)),
    (0x8827, 3, 1, 400),
    (0x9000, 7, 4, b'0230'),
    (0x9003, 2, 20, b'2024:06:15 10:30:00\x00'),
    (0x9204, 10, 1, struct.pack('>ii', -1, 3)),
    (0x9209, 3, 1, 0x19),
    (0x920A, 5, 1, struct.pack('>II', 50, 1)),
    (0xA002, 4, 1, 4000),
    (0xA003, 4, 1, 3000),
]

GPS_SOUTH = [
    (0, 1, 4, b'\x02\x02\x00\x00'),
    (1, 2, 2, b'S\x00'),
    (2, 5, 3, struct.pack('>IIIIII', 40, 1, 26, 1, 0, 1)),
    (3, 2, 2, b'W\x00'),
    (4, 5, 3, struct.pack('>IIIIII', 79, 1, 58, 1, 30, 1)),
    (5, 1, 1, 1),
    (6, 5, 1, struct.pack('>II', 125, 1)),
]


@pytest.fixture
def camera_segment():
    """EXIF payload with IFD0, EXIF, GPS, Interop and a thumbnail (big-endian)."""
    return build_exif_segment(
        CAMERA_IFD0, exif=CAMERA_EXIF, gps=GPS_SOUTH,
        interop=[(0x0001, 2, 4, b'R98\x00')],
        ifd1=[(0x0103, 3, 1, 6)],
        thumbnail=b'\xff\xd8THUMBNAIL\xff\xd9')


@pytest.fixture
def camera_jpeg(camera_segment):
    """JPEG with a JFIF APP0, the camera EXIF segment, and a comment."""
    return (b'\xff\xd8' + build_segment(0xFFE0, JFIF_PAYLOAD)
            + build_segment(0xFFE1, camera_segment)
            + build_segment(0xFFED, b'Photoshop 3.0\x00')
            + FAKE_IMAGE_DATA)


@pytest.fixture
def tmp_camera_jpeg(tmp_path, camera_jpeg):
    filepath = tmp_path / 'camera.jpg'
    filepath.write_bytes(camera_jpeg)
    return filepath


@pytest.fixture
def tmp_skipped_jpeg(tmp_path):
    """JPEG whose IFD0 carries a SubIFDs pointer with two offsets."""
    segment = build_exif_segment(
        [(0x0112, 3, 1, 1), (0x014A, 4, 2, b'\x00\x00\x00\x40\x00\x00\x00\x80')])
    filepath = tmp_path / 'subifds.jpg'
    filepath.write_bytes(build_jpeg(segment))
    return filepath


@pytest.fixture
def tmp_plain_jpeg(tmp_path):
    """JPEG without any EXIF segment."""
    filepath = tmp_path / 'plain.jpg'
    filepath.write_bytes(build_jpeg(markers=[(0xFFE0, JFIF_PAYLOAD)]))
    return filepath


@pytest.fixture
def pillow_jpeg():
    """A real JPEG encoded by Pillow carrying a few IFD0 tags."""
    Image = pytest.importorskip('PIL.Image')
    exif = Image.Exif()
    exif[0x010F] = 'Nikon'
    exif[0x0110] = 'D750'
    exif[0x0131] = 'jpegexif tests'
    exif[0x0112] = 1
    buf = io.BytesIO()
    Image.new('RGB', (32, 24), (200, 30, 30)).save(buf, 'JPEG', exif=exif.tobytes())
    return buf.getvalue()
