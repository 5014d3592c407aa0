"""Decoder/encoder settings.

Defaults match the behavior described in the package documentation; a JSON
file can override individual fields without restating the rest.
"""

import json
from dataclasses import dataclass, fields

# Maximum plausible entry count per IFD.  Real EXIF directories have well
# under 200 entries; anything vastly beyond that means the directory offset
# landed in unrelated data and the count is garbage bytes.
MAX_IFD_ENTRIES = 1000


@dataclass
class CodecConfig:
    """Settings shared by the scanner, decoder and encoder."""

    byte_order: str = 'MM'
    max_ifd_entries: int = MAX_IFD_ENTRIES
    reclassify_thumbnail: bool = True
    strict_values: bool = True
    require_eoi: bool = False

    def __post_init__(self):
        if self.byte_order not in ('MM', 'II'):
            raise ValueError(f"byte_order must be 'MM' or 'II', got {self.byte_order!r}")
        if self.max_ifd_entries < 0:
            raise ValueError('max_ifd_entries must be non-negative')

    @property
    def endian(self) -> str:
        """struct prefix for the configured output byte order."""
        return '>' if self.byte_order == 'MM' else '<'

    @classmethod
    def default(cls) -> 'CodecConfig':
        """Return the built-in default settings."""
        return cls()

    @classmethod
    def from_json(cls, path) -> 'CodecConfig':
        """Load settings from a JSON file, merged over the defaults.

        JSON format::

            {
              "byte_order": "II",
              "max_ifd_entries": 500,
              "reclassify_thumbnail": false,
              "strict_values": false,
              "require_eoi": true
            }

        All keys are optional. Unknown keys raise ``ValueError``.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'unknown config keys: {", ".join(unknown)}')

        return cls(**data)


def resolve(config) -> CodecConfig:
    """Return *config* or the defaults when it is None."""
    return config if config is not None else CodecConfig.default()
