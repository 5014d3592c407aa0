"""Low-level TIFF/IFD codec for EXIF payloads.

Re-exports the public names so callers can ``from jpegexif.tiff import X``.
"""

# --- codec.py: endian-aware primitive readers and writers ---
from jpegexif.tiff.codec import (  # noqa: F401
    TIFF_TYPES,
    ByteCodec,
    element_size,
)

# --- entry.py: formats, directory roles, values, entries ---
from jpegexif.tiff.entry import (  # noqa: F401
    DirectoryId,
    Format,
    IFDirectory,
    IFEntry,
    Rational,
    SRational,
    TagValue,
    make_entry,
)

# --- tags.py: directory-scoped tag schema ---
from jpegexif.tiff.tags import (  # noqa: F401
    EXIF_IFD_POINTER_TAG,
    GPS_IFD_POINTER_TAG,
    INTEROP_IFD_POINTER_TAG,
    THUMBNAIL_LENGTH_TAG,
    THUMBNAIL_OFFSET_TAG,
    VENDOR_IFD_POINTER_TAG,
    TagInfo,
    find_tag,
    is_known,
    lookup,
)

# --- decoder.py: TIFF header and IFD graph reading ---
from jpegexif.tiff.decoder import (  # noqa: F401
    EXIF_HEADER,
    DecodedTiff,
    TIFFHeader,
    decode_tiff,
    read_header,
    read_ifd,
    split_exif_payload,
)

# --- encoder.py: canonical TIFF layout writer ---
from jpegexif.tiff.encoder import (  # noqa: F401
    MAX_APP1_PAYLOAD,
    encode_segment,
    encode_tiff,
)
