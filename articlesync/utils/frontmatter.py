"""Read and write the YAML front matter block at the top of Markdown articles."""
from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Mapping

import yaml


_BOM = "\ufeff"

_FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class FrontMatterError(ValueError):
    """Raised when the front matter block cannot be interpreted as a mapping."""


@dataclass(slots=True)
class ParsedDocument:
    """Header mapping and Markdown body split from a document's text."""

    header: dict[str, Any]
    body: str


def parse(text: str) -> ParsedDocument:
    """Split ``text`` into its front matter mapping and the body that follows it.

    Text without a leading ``---`` block is treated as a body with an empty header. A
    leading byte order mark is ignored.
    """

    if text.startswith(_BOM):
        text = text[len(_BOM):]
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return ParsedDocument(header={}, body=text)

    raw_header = match.group("header")
    try:
        loaded = yaml.safe_load(raw_header) if raw_header.strip() else {}
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Invalid YAML front matter: {exc}") from exc

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise FrontMatterError(f"Front matter must be a mapping, got {type(loaded).__name__}")

    return ParsedDocument(header={str(key): value for key, value in loaded.items()}, body=text[match.end():])


def serialize(header: Mapping[str, Any], body: str) -> str:
    """Render ``header`` as a YAML block followed by ``body``."""

    if not header:
        return f"---\n---\n{body}"
    dumped = yaml.safe_dump(dict(header), allow_unicode=True, sort_keys=False, default_flow_style=False)
    return f"---\n{dumped}---\n{body}"


def _dump_field(key: str, value: Any) -> str:
    return yaml.safe_dump({key: value}, allow_unicode=True, sort_keys=False, default_flow_style=False).rstrip("\n")


def stamp_field(text: str, key: str, value: Any) -> str:
    """Return ``text`` with a single top-level header field set to ``value``.

    Only the line (and any indented continuation lines) belonging to ``key`` is
    rewritten, or a new line is appended to the header. All other header bytes and
    the body are left untouched.
    """

    bom = _BOM if text.startswith(_BOM) else ""
    text = text[len(bom):]
    line = _dump_field(key, value)
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return f"{bom}---\n{line}\n---\n{text}"

    raw_header = match.group("header")
    # Block sequences may sit at column zero under their key.
    field_re = re.compile(rf"^{re.escape(key)}[ \t]*:[^\r\n]*(?:\r?\n(?:[ \t]+|- )[^\r\n]*)*", re.MULTILINE)
    existing = field_re.search(raw_header)
    if existing is not None:
        new_header = raw_header[: existing.start()] + line + raw_header[existing.end():]
    elif raw_header:
        newline = "\r\n" if "\r\n" in text[: match.end()] else "\n"
        new_header = raw_header + newline + line
    else:
        new_header = line + "\n"

    start, end = match.span("header")
    return bom + text[:start] + new_header + text[end:]


__all__ = ["FrontMatterError", "ParsedDocument", "parse", "serialize", "stamp_field"]
