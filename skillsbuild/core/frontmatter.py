"""YAML frontmatter splitting and normalization for reference files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

__all__ = ["Frontmatter", "split_frontmatter", "flatten_metadata", "as_list", "as_text"]

_DELIMITER = "---"


@dataclass(frozen=True)
class Frontmatter:
    data: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    error: str | None = None
    present: bool = False


def split_frontmatter(text: str) -> Frontmatter:
    """Split a leading ``---`` delimited YAML block from the Markdown body.

    Text without an opening delimiter on its first line, or without a
    closing delimiter, is returned unchanged as the body.
    """
    text = text.lstrip("\ufeff").replace("\r\n", "\n")
    lines = text.split("\n")
    if not lines or lines[0].strip() != _DELIMITER:
        return Frontmatter(body=text)

    for idx in range(1, len(lines)):
        if lines[idx].strip() == _DELIMITER:
            raw = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1:])
            break
    else:
        return Frontmatter(body=text)

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        return Frontmatter(body=body, error=f"Invalid frontmatter: {exc}", present=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return Frontmatter(body=body, error="Invalid frontmatter: expected a mapping of keys", present=True)
    return Frontmatter(data=data, body=body, present=True)


def flatten_metadata(data: dict[str, Any]) -> dict[str, Any]:
    """Lift the keys of a nested ``metadata:`` mapping to the top level.

    Only one nesting level is honoured; top-level keys take precedence.
    """
    nested = data.get("metadata")
    if not isinstance(nested, dict):
        return dict(data)
    merged = {k: v for k, v in nested.items()}
    merged.update({k: v for k, v in data.items() if k != "metadata"})
    return merged


def as_list(value: Any) -> list[str]:
    """Normalize a list, scalar, or comma-separated string into stripped strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        items = [as_text(v) for v in value]
    else:
        items = as_text(value).split(",")
    return [item.strip() for item in items if item and item.strip()]


def as_text(value: Any) -> str:
    # YAML turns `11` into an int and `true` into a bool
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value).strip()
