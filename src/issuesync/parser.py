from __future__ import annotations

import re
from pathlib import PurePosixPath

from .models import IssueFile

FILENAME_PATTERN = re.compile(r'^(\d+)-(.+)\.md$')
HEADER_PATTERN = re.compile(r'^#(\d+):\s*(.+)$')

# Banner written in front of a file whose created Issue got a different number.
_DRIFT_MARKER = '<!-- issuesync:drift file={file} issue={issue} -->'
_DRIFT_BANNER_RE = re.compile(
    r'\A<!-- issuesync:drift file=(\d+) issue=(\d+) -->[ \t]*\r?\n(?:>[^\n]*\n)*(?:[ \t]*\r?\n)?'
)


class ParseError(ValueError):
    pass


class EmptyContentError(ParseError):
    pass


def match_filename(name: str) -> re.Match[str] | None:
    """Return the filename match when ``name`` follows ``<digits>-<slug>.md``."""
    return FILENAME_PATTERN.match(name)


def file_number_of(name: str) -> int | None:
    m = match_filename(name)
    return int(m.group(1)) if m else None


def slug_to_title(slug: str) -> str:
    return slug.replace('-', ' ')


def split_drift_banner(content: str) -> tuple[int | None, str]:
    """Split a leading drift banner off ``content``.

    Returns ``(issue_number, remainder)``; ``issue_number`` is None when the
    file carries no banner.
    """
    m = _DRIFT_BANNER_RE.match(content)
    if not m:
        return None, content
    return int(m.group(2)), content[m.end():]


def render_drift_banner(file_number: int, issue_number: int, suggested_name: str) -> str:
    marker = _DRIFT_MARKER.format(file=file_number, issue=issue_number)
    return (
        f'{marker}\n'
        f'> **Issue number mismatch:** this file is numbered #{file_number} but GitHub '
        f'assigned #{issue_number}.\n'
        f'> Rename it to `{suggested_name}` to keep the numbering in sync.\n'
        '\n'
    )


def flag_content(content: str, file_number: int, issue_number: int, suggested_name: str) -> str:
    """Put a (fresh) drift banner on top of ``content``, replacing any older one.

    The banner uses the file's own line ending.
    """
    _, remainder = split_drift_banner(content)
    banner = render_drift_banner(file_number, issue_number, suggested_name)
    if '\r\n' in remainder:
        banner = banner.replace('\n', '\r\n')
    return banner + remainder


def renumbered_name(file_name: str, number: int, width: int) -> str:
    m = match_filename(file_name)
    if not m:
        raise ParseError(f'Not an issue file name: {file_name}')
    return f'{str(number).zfill(width)}-{m.group(2)}.md'


def rewrite_header_number(content: str, number: int) -> str:
    """Rewrite the ``#<n>:`` prefix of an embedded header line, if present."""
    _, remainder = split_drift_banner(content)
    first, sep, rest = remainder.partition('\n')
    bom = '\ufeff' if first.startswith('\ufeff') else ''
    eol = '\r' if first.endswith('\r') else ''
    m = HEADER_PATTERN.match(first.lstrip('\ufeff').strip())
    if not m:
        return remainder
    return f'{bom}#{number}: {m.group(2)}{eol}' + sep + rest


def _first_line(text: str) -> str:
    return text.lstrip('\ufeff').split('\n', 1)[0].strip()


def parse_issue_file(path: str, content: str) -> IssueFile:
    """Parse one issue file.

    Title precedence: a first line of the exact form ``#<n>: <title>``, else
    the slug with hyphens turned into spaces. Raises ``ParseError`` when the
    filename does not follow ``<digits>-<slug>.md`` and ``EmptyContentError``
    when the file holds only whitespace.
    """
    name = PurePosixPath(path).name
    m = match_filename(name)
    if not m:
        raise ParseError(f'File name {name!r} does not match <number>-<description>.md')
    digits, slug = m.group(1), m.group(2)
    if not content or not content.strip():
        raise EmptyContentError(f'File {name} is empty')
    drift_marker, body = split_drift_banner(content)
    if not body.strip():
        raise EmptyContentError(f'File {name} holds only a drift banner')

    title = slug_to_title(slug)
    embedded_number: int | None = None
    header = HEADER_PATTERN.match(_first_line(body))
    if header:
        embedded_number = int(header.group(1))
        title = header.group(2).strip()

    return IssueFile(
        path=path,
        file_name=name,
        file_number=int(digits),
        number_width=len(digits),
        slug=slug,
        content=content,
        derived_title=title,
        embedded_number=embedded_number,
        drift_marker=drift_marker,
        body=body,
    )


__all__ = [
    'FILENAME_PATTERN',
    'HEADER_PATTERN',
    'ParseError',
    'EmptyContentError',
    'match_filename',
    'file_number_of',
    'parse_issue_file',
    'split_drift_banner',
    'render_drift_banner',
    'flag_content',
    'renumbered_name',
    'rewrite_header_number',
    'slug_to_title',
]
