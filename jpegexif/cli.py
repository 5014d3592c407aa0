"""CLI interface for jpegexif -- info, rewrite, remove subcommands."""

import dataclasses
import json
import sys
from pathlib import Path

import click

import jpegexif
from jpegexif.config import CodecConfig
from jpegexif.document import ExifDocument
from jpegexif.errors import ExifError
from jpegexif.log import (
    cli_dim,
    cli_error,
    cli_header,
    cli_info,
    cli_report_line,
    cli_separator,
    cli_skipped,
    cli_success,
    log_error,
    log_info,
    log_warn,
    skipped_text,
)
from jpegexif.report import document_to_dict, format_document
from jpegexif.summary import summarize
from jpegexif.tiff.entry import DirectoryId
from jpegexif.tiff.tags import find_tag


def _load_config(config_path):
    if config_path:
        return CodecConfig.from_json(config_path)
    return CodecConfig.default()


def _fail(message: str):
    click.echo(cli_error(f'Error: {message}'), err=True)
    sys.exit(1)


def _parse_directory(ctx, param, value):
    try:
        return DirectoryId.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _summary_lines(summary):
    geo = summary.geolocation
    rows = [
        ('Byte order', summary.byte_align),
        ('Camera', f'{summary.make} {summary.model}'.strip()),
        ('Software', summary.software),
        ('Taken', summary.date_time_original or summary.date_time),
        ('Image size', f'{summary.image_width} x {summary.image_height}'
         if summary.image_width else ''),
        ('Orientation', summary.orientation or ''),
        ('Exposure', f'{summary.exposure_time:g} s' if summary.exposure_time else ''),
        ('F-number', f'f/{summary.f_number:g}' if summary.f_number else ''),
        ('ISO', summary.iso_speed_ratings or ''),
        ('Focal length', f'{summary.focal_length:g} mm' if summary.focal_length else ''),
        ('Flash', 'fired' if summary.flash else ''),
        ('Lens', f'{summary.lens_info.make} {summary.lens_info.model}'.strip()),
        ('GPS', f'{geo.latitude:.6f}, {geo.longitude:.6f}'
         if geo.lat_components.direction != '?' else ''),
        ('Comment', summary.user_comment),
    ]
    return [f'  {label + ":":<14} {value}' for label, value in rows if value != '']


def _summary_dict(summary):
    data = dataclasses.asdict(summary)
    data['components_configuration'] = summary.components_configuration.hex()
    return data


@click.group()
@click.version_option(version=jpegexif.__version__, prog_name='jpegexif')
def main():
    """jpegexif -- read and rewrite EXIF metadata in JPEG files."""
    pass


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--verbose', '-v', is_flag=True, help='List every entry of every directory.')
@click.option('--json-out', type=click.Path(), help='Write the decoded document as JSON to file.')
@click.option('--config', 'config_path', type=click.Path(exists=True),
              help='JSON file with codec settings.')
def info(path, verbose, json_out, config_path):
    """Show the EXIF metadata of a JPEG file."""
    filepath = Path(path)
    try:
        config = _load_config(config_path)
        doc = ExifDocument.from_jpeg(filepath.read_bytes(), config)
    except (ExifError, ValueError) as e:
        _fail(f'{filepath.name}: {e}')

    click.echo(cli_header(filepath.name))
    if doc.is_empty():
        click.echo(cli_dim('  No EXIF metadata'))
    else:
        summary = summarize(doc)
        for line in _summary_lines(summary):
            click.echo(line)

    if verbose:
        click.echo(cli_separator())
        for line in format_document(doc):
            click.echo(cli_report_line(line))
    else:
        for skipped in doc.skipped:
            click.echo(cli_skipped(skipped))

    if json_out:
        data = document_to_dict(doc)
        data['file'] = str(filepath)
        data['summary'] = _summary_dict(summarize(doc))
        with open(json_out, 'w') as f:
            json.dump(data, f, indent=2)
        click.echo(cli_info(f'Results written to {json_out}'))


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='Where to write the rewritten file.')
@click.option('--byte-order', type=click.Choice(['MM', 'II']),
              help='Byte order of the written EXIF data (default: MM).')
@click.option('--config', 'config_path', type=click.Path(exists=True),
              help='JSON file with codec settings.')
@click.option('--log', type=click.Path(), help='Write log to file.')
def rewrite(path, output, byte_order, config_path, log):
    """Decode the EXIF segment and write it back in canonical layout."""
    filepath = Path(path)
    log_file = open(log, 'w') if log else None

    def log_msg(msg, line):
        click.echo(msg)
        if log_file:
            log_file.write(line + '\n')
            log_file.flush()

    try:
        config = _load_config(config_path)
        if byte_order:
            config = dataclasses.replace(config, byte_order=byte_order)
        original = filepath.read_bytes()
        doc = ExifDocument.from_jpeg(original, config)
        for skipped in doc.skipped:
            log_msg(cli_skipped(skipped), log_warn(skipped_text(skipped)))
        result = doc.apply_to_jpeg(original, config)
    except (ExifError, ValueError) as e:
        if log_file:
            log_file.write(log_error(f'{filepath}: {e}') + '\n')
            log_file.close()
        _fail(f'{filepath.name}: {e}')

    Path(output).write_bytes(result)
    text = (f'{filepath.name} -> {output} ({len(original)} -> {len(result)} bytes, '
            f'{config.byte_order})')
    log_msg(cli_success(text), log_info(text))

    if log_file:
        log_file.close()


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.argument('tag')
@click.option('--directory', '-d', default='ifd0', callback=_parse_directory,
              help='Directory holding the tag (ifd0, exif, gps, interop, ifd1, vendor).')
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='Where to write the rewritten file.')
def remove(path, tag, directory, output):
    """Remove one EXIF entry.

    TAG is a tag name (e.g. Software) or number (e.g. 0x0131).
    """
    filepath = Path(path)
    tag_id = find_tag(tag, directory)
    if tag_id is None:
        _fail(f'unknown tag {tag!r} for {directory.label}')

    try:
        original = filepath.read_bytes()
        doc = ExifDocument.from_jpeg(original)
        if not doc.remove_entry(tag_id, directory):
            _fail(f'{filepath.name} has no tag 0x{tag_id:04X} in {directory.label}')
        result = doc.apply_to_jpeg(original)
    except ExifError as e:
        _fail(f'{filepath.name}: {e}')

    Path(output).write_bytes(result)
    click.echo(cli_success(f'Removed 0x{tag_id:04X} from {directory.label}; wrote {output}'))
