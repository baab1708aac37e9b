"""Build a Story from raw source text or a file on disk."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List

from lift.data.errors import ContentError, DuplicatePageError, PageParseError, StoryLoadError
from lift.data.page_parser import parse_page
from lift.domain.defs import Page
from lift.domain.story import Story

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r"^#+\s*(?P<title>\S.*)$")


def build_story(source: str) -> Story:
    """Split ``source`` into pages on header lines and parse every body.

    Lines before the first header are ignored. The first header names the
    entry page.
    """
    pages: Dict[str, Page] = {}
    first_page: str | None = None
    current_title: str | None = None
    header_line = 0
    body: List[str] = []

    for line_number, line in enumerate(_split_lines(source), start=1):
        match = HEADER_RE.match(line)
        if match is None:
            if current_title is not None:
                body.append(line + "\n")
            continue
        if current_title is not None:
            pages[current_title] = _parse_page(current_title, header_line, "".join(body))
            body = []
        title = match.group("title").strip()
        if title in pages:
            raise DuplicatePageError(title, line_number)
        if first_page is None:
            first_page = title
        current_title = title
        header_line = line_number

    if current_title is not None:
        pages[current_title] = _parse_page(current_title, header_line, "".join(body))
    logger.debug("Built story with %d pages, entry page %r", len(pages), first_page)
    return Story(first_page=first_page or "", pages=pages)


def _split_lines(source: str) -> List[str]:
    """Split on LF and CRLF only; other Unicode line breaks stay part of the text."""
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def load_story(path: Path | str) -> Story:
    """Read a UTF-8 story file and build it, raising StoryLoadError on I/O failure."""
    story_path = Path(path)
    try:
        source = story_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise StoryLoadError(f"Story file not found: {story_path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise StoryLoadError(f"Unable to read story file: {story_path}") from exc
    return build_story(source)


def _parse_page(title: str, header_line: int, body: str) -> Page:
    try:
        return parse_page(title, body)
    except ContentError as exc:
        line = header_line + body[: exc.offset].count("\n") + 1
        raise PageParseError(title, line, exc.message) from exc
