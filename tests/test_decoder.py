"""Tests for the TIFF/IFD decoder."""

import struct

import pytest

from jpegexif.config import CodecConfig
from jpegexif.document import decode_segment
from jpegexif.errors import CorruptData, NoExifSegment, UnknownByteAlign
from jpegexif.tiff.codec import ByteCodec
from jpegexif.tiff.decoder import decode_tiff, looks_like_thumbnail, read_header, read_ifd, WireEntry
from jpegexif.tiff.entry import DirectoryId, Format, Rational, SRational
from tests.conftest import (
    CAMERA_EXIF,
    CAMERA_IFD0,
    GPS_SOUTH,
    build_exif_segment,
    build_exif_tiff,
    build_ifd,
)


class TestHeader:
    def test_big_endian(self):
        header = read_header(b'MM\x00\x2a\x00\x00\x00\x08')
        assert header.byte_order == 'MM'
        assert header.first_ifd_offset == 8

    def test_little_endian(self):
        header = read_header(b'II\x2a\x00\x10\x00\x00\x00')
        assert header.codec.is_little_endian
        assert header.first_ifd_offset == 16

    def test_unknown_byte_order(self):
        with pytest.raises(UnknownByteAlign):
            read_header(b'XY\x00\x2a\x00\x00\x00\x08')

    def test_bad_magic(self):
        with pytest.raises(CorruptData):
            read_header(b'MM\x00\x2b\x00\x00\x00\x08')

    def test_truncated(self):
        with pytest.raises(CorruptData):
            read_header(b'MM\x00\x2a')


class TestReadIfd:
    def test_entries_and_next_link(self):
        tiff = b'MM\x00\x2a\x00\x00\x00\x08' + build_ifd(
            [(0x0112, 3, 1, 6), (0x0131, 2, 8, b'GIMP 2\x00\x00')], 8, '>', next_ifd=99)
        entries, next_offset = read_ifd(tiff, ByteCodec('>'), 8)
        assert [e.tag for e in entries] == [0x0112, 0x0131]
        assert entries[1].format_code == 2
        assert next_offset == 99

    def test_count_overruns_segment(self):
        tiff = b'MM\x00\x2a\x00\x00\x00\x08' + struct.pack('>H', 50) + bytes(20)
        with pytest.raises(CorruptData):
            read_ifd(tiff, ByteCodec('>'), 8)

    def test_count_over_limit(self):
        tiff = b'II\x2a\x00\x08\x00\x00\x00' + struct.pack('<H', 3) + bytes(3 * 12 + 4)
        with pytest.raises(CorruptData):
            read_ifd(tiff, ByteCodec('<'), 8, CodecConfig(max_ifd_entries=2))

    def test_offset_outside_segment(self):
        with pytest.raises(CorruptData):
            read_ifd(b'MM\x00\x2a\x00\x00\x00\x08', ByteCodec('>'), 400)


class TestInlineAndOutOfLine:
    def test_short_count_one_inline(self):
        doc = decode_segment(build_exif_segment([(0x0112, 3, 1, 6)]))
        entry = doc.find_entry(0x0112, DirectoryId.IFD0)
        assert entry.format is Format.SHORT
        assert entry.value.data == (6,)
        assert entry.is_inline

    def test_long_count_four_out_of_line(self):
        raw = struct.pack('<IIII', 1, 2, 3, 0xFFFFFFFF)
        doc = decode_segment(build_exif_segment([(0xC000, 4, 4, raw)], endian='<'))
        entry = doc.find_entry(0xC000, DirectoryId.IFD0)
        assert entry.value.data == (1, 2, 3, 0xFFFFFFFF)
        assert not entry.is_inline

    def test_ascii_inline(self):
        doc = decode_segment(build_exif_segment([],
                                                gps=[(1, 2, 2, b'N\x00')]))
        assert doc.get_value(1, DirectoryId.GPS) == 'N'

    def test_rationals_both_signs(self):
        doc = decode_segment(build_exif_segment(CAMERA_IFD0, exif=CAMERA_EXIF))
        assert doc.get_value(0x829A, DirectoryId.EXIF) == Rational(1, 250)
        assert doc.get_value(0x9204, DirectoryId.EXIF) == SRational(-1, 3)

    def test_undefined_bytes(self):
        doc = decode_segment(build_exif_segment(CAMERA_IFD0, exif=CAMERA_EXIF))
        assert doc.find_entry(0x9000, DirectoryId.EXIF).value.data == b'0230'

    def test_raw_offset_is_kept(self):
        doc = decode_segment(build_exif_segment(CAMERA_IFD0))
        make = doc.find_entry(0x010F, DirectoryId.IFD0)
        assert make.raw_offset_or_inline > 8


class TestDirectoryGraph:
    def test_all_directories(self, camera_segment):
        doc = decode_segment(camera_segment)
        types = [d.type for d in doc.directories]
        assert types == [DirectoryId.IFD0, DirectoryId.EXIF, DirectoryId.GPS,
                         DirectoryId.INTEROP, DirectoryId.IFD1]
        assert doc.byte_align == 'MM'

    def test_pointer_entries_not_stored(self, camera_segment):
        doc = decode_segment(camera_segment)
        assert doc.find_entry(0x8769, DirectoryId.IFD0) is None
        assert doc.find_entry(0x8825, DirectoryId.IFD0) is None
        assert doc.find_entry(0xA005, DirectoryId.EXIF) is None

    def test_thumbnail_extracted(self, camera_segment):
        doc = decode_segment(camera_segment)
        assert doc.thumbnail == b'\xff\xd8THUMBNAIL\xff\xd9'
        assert doc.find_entry(0x0201, DirectoryId.IFD1) is None
        assert doc.find_entry(0x0202, DirectoryId.IFD1) is None
        assert doc.get_value(0x0103, DirectoryId.IFD1) == 6

    def test_interop(self, camera_segment):
        doc = decode_segment(camera_segment)
        assert doc.get_value(0x0001, DirectoryId.INTEROP) == 'R98'

    def test_vendor_directory(self):
        doc = decode_segment(build_exif_segment(
            [(0x0112, 3, 1, 1)], vendor=[(0x0001, 4, 1, 77)]))
        assert doc.get_value(0x0001, DirectoryId.VENDOR) == 77

    def test_zero_pointer_ignored(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1), (0x8769, 4, 1, 0)])
        doc = decode_segment(segment)
        assert [d.type for d in doc.directories] == [DirectoryId.IFD0]

    def test_pointer_with_wrong_format_skipped(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1), (0x8769, 2, 4, b'abc\x00')])
        doc = decode_segment(segment)
        assert doc.find_entry(0x8769, DirectoryId.IFD0) is None
        assert [s.tag for s in doc.skipped] == [0x8769]
        assert 'unfollowed' in doc.skipped[0].reason

    def test_multi_value_sub_ifd_pointer_skipped(self):
        segment = build_exif_segment(
            [(0x0112, 3, 1, 1), (0x014A, 4, 2, b'\x00\x00\x00\x40\x00\x00\x00\x80')])
        doc = decode_segment(segment)
        assert doc.find_entry(0x014A, DirectoryId.IFD0) is None
        assert doc.directory(DirectoryId.VENDOR) is None
        assert doc.skipped[0].tag == 0x014A
        assert doc.skipped[0].directory == DirectoryId.IFD0

    def test_lone_thumbnail_offset_skipped(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1)],
                                     ifd1=[(0x0103, 3, 1, 6), (0x0201, 4, 1, 8)])
        doc = decode_segment(segment)
        assert doc.thumbnail is None
        assert doc.directory(DirectoryId.IFD1).tags() == [0x0103]
        assert [s.tag for s in doc.skipped] == [0x0201]
        assert 'thumbnail' in doc.skipped[0].reason

    def test_empty_directories_dropped(self):
        doc = decode_segment(build_exif_segment([(0x0112, 3, 1, 1)], gps=[]))
        assert doc.directory(DirectoryId.GPS) is None

    def test_short_pointer(self):
        tiff = build_exif_tiff([(0x0112, 3, 1, 1)], exif=[(0x8827, 3, 1, 200)])
        # Rewrite the EXIF pointer (second entry) as SHORT
        exif_offset = struct.unpack('>I', tiff[8 + 2 + 12 + 8:8 + 2 + 12 + 12])[0]
        patched = (tiff[:8 + 2 + 12 + 2] + b'\x00\x03' + tiff[8 + 2 + 12 + 4:8 + 2 + 12 + 8]
                   + struct.pack('>HH', exif_offset, 0) + tiff[8 + 2 + 24:])
        doc = decode_tiff(patched)
        assert any(d.type == DirectoryId.EXIF for d in doc.directories)

    def test_little_endian_graph(self):
        segment = build_exif_segment(CAMERA_IFD0[:1], gps=[(5, 1, 1, 1)], endian='<')
        doc = decode_segment(segment)
        assert doc.byte_align == 'II'
        assert doc.get_value(0x010F, DirectoryId.IFD0) == 'Canon'


class TestGpsScenario:
    def test_latitude_rationals(self):
        doc = decode_segment(build_exif_segment([], gps=GPS_SOUTH))
        lat = doc.find_entry(2, DirectoryId.GPS)
        assert lat.format is Format.RATIONAL
        assert lat.count == 3
        assert [r.as_tuple() for r in lat.value] == [(40, 1), (26, 1), (0, 1)]
        assert doc.get_value(1, DirectoryId.GPS) == 'S'


class TestEntryRecovery:
    def test_unsupported_format_skipped(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1), (0x0131, 9, 1, 5)])
        doc = decode_segment(segment)
        assert doc.find_entry(0x0131, DirectoryId.IFD0) is None
        assert doc.get_value(0x0112, DirectoryId.IFD0) == 1
        assert len(doc.skipped) == 1
        assert doc.skipped[0].tag == 0x0131
        assert doc.skipped[0].format == 9

    def test_out_of_bounds_value_strict(self):
        entries = [(0x010F, 2, 6, 0x7FFF0000)]
        with pytest.raises(CorruptData):
            decode_segment(build_exif_segment(entries))

    def test_out_of_bounds_value_lenient(self):
        entries = [(0x0112, 3, 1, 1), (0x010F, 2, 6, 0x7FFF0000)]
        config = CodecConfig(strict_values=False)
        doc = decode_segment(build_exif_segment(entries), config)
        assert doc.find_entry(0x010F, DirectoryId.IFD0) is None
        assert doc.skipped[0].tag == 0x010F

    def test_duplicate_tag_keeps_last(self):
        doc = decode_segment(build_exif_segment([(0x0112, 3, 1, 1), (0x0112, 3, 1, 8)]))
        assert doc.directory(DirectoryId.IFD0).tags() == [0x0112]
        assert doc.get_value(0x0112, DirectoryId.IFD0) == 8


class TestThumbnailHeuristic:
    def test_looks_like_thumbnail(self):
        assert looks_like_thumbnail([WireEntry(0x0103, 3, 1, 6, 0)])
        assert not looks_like_thumbnail([WireEntry(0x829A, 5, 1, 0, 0)])
        assert not looks_like_thumbnail([WireEntry(0xBEEF, 3, 1, 0, 0)])
        assert not looks_like_thumbnail([])

    def test_exif_pointer_to_thumbnail_reclassified(self):
        # The "EXIF" directory starts with Compression, an image tag
        segment = build_exif_segment([(0x0112, 3, 1, 1)],
                                     exif=[(0x0103, 3, 1, 6), (0x011A, 5, 1, bytes(8))])
        doc = decode_segment(segment)
        assert doc.directory(DirectoryId.EXIF) is None
        assert doc.get_value(0x0103, DirectoryId.IFD1) == 6

    def test_heuristic_disabled(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1)], exif=[(0x0103, 3, 1, 6)])
        doc = decode_segment(segment, CodecConfig(reclassify_thumbnail=False))
        assert doc.get_value(0x0103, DirectoryId.EXIF) == 6
        assert doc.directory(DirectoryId.IFD1) is None

    def test_existing_ifd1_wins(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1)],
                                     exif=[(0x0103, 3, 1, 6)],
                                     ifd1=[(0x0103, 3, 1, 1)])
        doc = decode_segment(segment)
        assert doc.get_value(0x0103, DirectoryId.IFD1) == 1
        assert doc.get_value(0x0103, DirectoryId.EXIF) == 6


class TestSegmentErrors:
    def test_missing_exif_header(self):
        with pytest.raises(NoExifSegment):
            decode_segment(b'MM\x00\x2a\x00\x00\x00\x08')

    def test_sub_ifd_outside_segment(self):
        segment = build_exif_segment([(0x0112, 3, 1, 1), (0x8825, 4, 1, 5000)])
        with pytest.raises(CorruptData):
            decode_segment(segment)
