"""Reduce an accessibility-tree dump to its interactive elements."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from ..models import SnapshotElement

INTERACTIVE_ROLES = frozenset(
    {
        "button",
        "link",
        "textbox",
        "searchbox",
        "combobox",
        "checkbox",
        "radio",
        "switch",
        "slider",
        "tab",
        "menuitem",
        "option",
    }
)

NAME_LIMIT = 60
URL_LIMIT = 50
NO_ELEMENTS_MESSAGE = "No interactive elements found"

_REF_RE = re.compile(r"\[ref=([^\]]+)\]")
_ROLE_RE = re.compile(r"^-\s+([a-zA-Z]+)")
_NAME_RE = re.compile(r'"([^"]*)"')
_URL_RE = re.compile(r"/url:\s*(.+)")
_QUOTES_RE = re.compile(r"^[\"']|[\"']$")


class SnapshotFilter:
    """Parse and render the compact element listing shown to callers."""

    @staticmethod
    def parse(snapshot_text: str) -> List[SnapshotElement]:
        """Return the interactive elements of an accessibility dump, in document order.

        A line qualifies when it is a list item carrying a ``[ref=...]`` annotation
        and its role is one of :data:`INTERACTIVE_ROLES`. A ``/url:`` annotation on
        the following line is attached to the element.
        """

        lines = snapshot_text.split("\n")
        elements: List[SnapshotElement] = []
        for index, line in enumerate(lines):
            trimmed = line.strip()
            if not trimmed.startswith("-"):
                continue
            ref_match = _REF_RE.search(trimmed)
            if not ref_match:
                continue
            role_match = _ROLE_RE.match(trimmed)
            if not role_match:
                continue
            role = role_match.group(1)
            if role not in INTERACTIVE_ROLES:
                continue
            name_match = _NAME_RE.search(trimmed)
            elements.append(
                SnapshotElement(
                    ref=ref_match.group(1),
                    role=role,
                    name=name_match.group(1) if name_match else "",
                    url=_url_annotation(lines, index + 1),
                )
            )
        return elements

    @staticmethod
    def format(elements: Iterable[SnapshotElement]) -> str:
        """Render one ``[ref] role "name" -> url`` line per element."""

        return "\n".join(_format_line(element) for element in elements)

    @classmethod
    def filter_snapshot(cls, snapshot_text: str) -> str:
        elements = cls.parse(snapshot_text)
        if not elements:
            return NO_ELEMENTS_MESSAGE
        return cls.format(elements)

    @classmethod
    def format_dom_elements(cls, elements: Optional[Sequence[SnapshotElement]]) -> Optional[str]:
        """Render a DOM scan result, or ``None`` when the scan found nothing."""

        if not elements:
            return None
        return cls.format(elements)


def _url_annotation(lines: Sequence[str], index: int) -> Optional[str]:
    if index >= len(lines):
        return None
    match = _URL_RE.search(lines[index])
    if not match:
        return None
    return _QUOTES_RE.sub("", match.group(1).strip())


def _truncate(value: str, limit: int) -> str:
    if len(value) > limit:
        return f"{value[: limit - 3]}..."
    return value


def _format_line(element: SnapshotElement) -> str:
    parts = [f"[{element.ref}]", element.role or "unknown"]
    if element.name:
        parts.append(f'"{_truncate(element.name, NAME_LIMIT)}"')
    # Same-page fragment links carry no navigation target.
    if element.url and not element.url.startswith("#"):
        parts.append(f"-> {_truncate(element.url, URL_LIMIT)}")
    return " ".join(parts)
