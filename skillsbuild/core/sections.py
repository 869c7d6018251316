"""Section registry parser – reads ``_sections.md`` into ordered sections."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from skillsbuild.core.models import Section

__all__ = ["parse_sections_text", "parse_sections", "build_section_map"]

logger = logging.getLogger(__name__)

_SECTION_BLOCK_RE = re.compile(
    r"^##[ \t]+(\d+)\.[ \t]+([^\n(]+?)[ \t]*\((\w+)\)\s*\n"
    r"\*\*Impact:\*\*[ \t]*(\w+(?:-\w+)?)\s*\n"
    r"\*\*Description:\*\*[ \t]*([^\n]+)",
    re.MULTILINE,
)


def parse_sections_text(content: str) -> list[Section]:
    """Return every complete section block in document order.

    A block whose heading is not immediately followed by both the
    ``**Impact:**`` and ``**Description:**`` lines is skipped entirely.
    """
    content = content.replace("\r\n", "\n")
    return [
        Section(
            number=int(match.group(1)),
            title=match.group(2).strip(),
            prefix=match.group(3).strip(),
            impact=match.group(4).strip(),
            description=match.group(5).strip(),
        )
        for match in _SECTION_BLOCK_RE.finditer(content)
    ]


def parse_sections(references_dir: Path, filename: str = "_sections.md") -> list[Section]:
    sections_file = Path(references_dir) / filename
    if not sections_file.is_file():
        logger.debug("No section registry at %s", sections_file)
        return []
    sections = parse_sections_text(sections_file.read_text(encoding="utf-8"))
    logger.debug("Parsed %d section(s) from %s", len(sections), sections_file)
    return sections


def build_section_map(sections: list[Section]) -> dict[str, int]:
    """Map each section prefix to its section number."""
    return {section.prefix: section.number for section in sections}
