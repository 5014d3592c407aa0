"""Human-readable and JSON-ready rendering of decoded documents."""

from dataclasses import asdict
from typing import List

from jpegexif.tiff.entry import Format, IFEntry

MAX_ITEMS = 16
MAX_BYTES = 32


def _hex(data: bytes) -> str:
    shown = data[:MAX_BYTES].hex(' ')
    if len(data) > MAX_BYTES:
        shown += f' ... ({len(data)} bytes)'
    return shown


def format_entry_value(entry: IFEntry) -> str:
    """Compact text for an entry's value.

    Strings are shown as-is, byte runs as hex, numbers joined by spaces.
    Sequences longer than MAX_ITEMS are cut short.
    """
    value = entry.value
    if value.format == Format.ASCII:
        return value.data
    if value.format in (Format.BYTE, Format.UNDEFINED):
        data = value.data
        # Short printable runs (ExifVersion '0230' and friends) read better as text
        if 0 < len(data) <= MAX_BYTES and all(32 <= b < 127 for b in data):
            return data.decode('ascii')
        return _hex(data)
    items = [str(v) for v in list(value)[:MAX_ITEMS]]
    text = ' '.join(items)
    if len(value) > MAX_ITEMS:
        text += f' ... ({len(value)} values)'
    return text


def format_document(document) -> List[str]:
    """One line per entry, directories and tags in canonical order."""
    lines = []
    current = None
    for directory, entry in document.entries():
        if directory != current:
            lines.append(f'[{directory.label}]')
            current = directory
        lines.append(f'  0x{entry.tag:04X} {entry.tag_name:<28} '
                     f'{entry.format.name:<9} {format_entry_value(entry)}')
    if document.thumbnail is not None:
        lines.append(f'[thumbnail] {len(document.thumbnail)} bytes')
    for skipped in document.skipped:
        lines.append(f'[skipped] tag 0x{skipped.tag:04X} format {skipped.format}: '
                     f'{skipped.reason}')
    return lines


def _json_value(entry: IFEntry):
    value = entry.value
    if value.format == Format.ASCII:
        return value.data
    if value.format in (Format.BYTE, Format.UNDEFINED):
        return value.data.hex()
    if value.format in (Format.RATIONAL, Format.SRATIONAL):
        return [list(r.as_tuple()) for r in value]
    return list(value)


def document_to_dict(document) -> dict:
    """JSON-serializable mapping of the whole document."""
    directories = {}
    for directory, entry in document.entries():
        directories.setdefault(directory.label, []).append({
            'tag': entry.tag,
            'name': entry.tag_name,
            'format': entry.format.name,
            'count': entry.value.wire_count,
            'value': _json_value(entry),
        })
    return {
        'byte_align': document.byte_align,
        'directories': directories,
        'thumbnail_bytes': len(document.thumbnail) if document.thumbnail else 0,
        'markers': [{'type': f'0x{m.type:04X}', 'length': m.length} for m in document.markers],
        'skipped': [asdict(s) for s in document.skipped],
    }
