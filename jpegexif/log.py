"""Terminal and log-file output for the command line.

The library modules log through the stdlib ``logging`` module; this file
only formats what ``jpegexif`` prints and what ``--log`` files receive.
Colors are ANSI escapes, on when stdout is a terminal.
"""

import sys
from datetime import datetime

_RESET = '\033[0m'

# role -> ANSI code
_STYLES = {
    'header': '\033[1;36m',
    'success': '\033[32m',
    'warning': '\033[33m',
    'error': '\033[1;31m',
    'info': '\033[36m',
    'dim': '\033[2m',
    'directory': '\033[1;37m',
}

SEPARATOR_WIDTH = 60


def _is_tty():
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _style(role: str, text: str) -> str:
    if _USE_COLOR:
        return f'{_STYLES[role]}{text}{_RESET}'
    return text


# ---------------------------------------------------------------------------
# Terminal lines
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    """File name heading above a summary."""
    return _style('header', text)


def cli_success(text: str) -> str:
    return _style('success', text)


def cli_error(text: str) -> str:
    return _style('error', text)


def cli_info(text: str) -> str:
    return _style('info', text)


def cli_dim(text: str) -> str:
    return _style('dim', text)


def cli_separator() -> str:
    return _style('dim', '-' * SEPARATOR_WIDTH)


def cli_report_line(line: str) -> str:
    """Style one line of ``report.format_document`` output.

    Directory headings (``[IFD0]``, ``[GPS]``, ...) are highlighted, the
    ``[skipped]`` and ``[thumbnail]`` trailers are dimmed or flagged, and
    entry lines pass through unchanged.
    """
    if line.startswith('[skipped]'):
        return _style('warning', line)
    if line.startswith('[thumbnail]'):
        return _style('dim', line)
    if line.startswith('['):
        return _style('directory', line)
    return line


def skipped_text(skipped) -> str:
    """Plain description of a ``SkippedEntry``."""
    from jpegexif.tiff.entry import DirectoryId

    return (f'skipped tag 0x{skipped.tag:04X} in {DirectoryId(skipped.directory).label}: '
            f'{skipped.reason}')


def cli_skipped(skipped) -> str:
    return _style('warning', f'  WARNING: {skipped_text(skipped)}')


# ---------------------------------------------------------------------------
# Log file lines (plain text, timestamped)
# ---------------------------------------------------------------------------

def _log_line(level: str, msg: str) -> str:
    stamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    return f'[{stamp}] {"[" + level + "]":<7} {msg}'


def log_info(msg: str) -> str:
    return _log_line('INFO', msg)


def log_warn(msg: str) -> str:
    return _log_line('WARN', msg)


def log_error(msg: str) -> str:
    return _log_line('ERROR', msg)
