"""Text helpers shared by extraction, mapping and payload building."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from loresync.domain.model import EntityLink

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

CROSS_REFERENCE_PATTERN = re.compile(r"@UUID\[([^\]]+)\]")
JOURNAL_REFERENCE_PATTERN = re.compile(r"@JournalEntry\[(.*?)\]")
HASHTAG_PATTERN = re.compile(r"#([\w-]{2,})")

_SCRIPT_PATTERN = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_DATA_ATTRIBUTE_PATTERN = re.compile(r'\sdata-[a-zA-Z-]+="[^"]*"')
_MARKDOWN_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\r\n"), "\n"),
    (re.compile(r"</?(?:strong|b)>"), "**"),
    (re.compile(r"</?(?:em|i)>"), "_"),
    (re.compile(r"<p[^>]*>"), ""),
    (re.compile(r"</p>"), "\n\n"),
    (re.compile(r"<li[^>]*>"), "- "),
    (re.compile(r"</li>"), "\n"),
    (re.compile(r"<ul[^>]*>"), ""),
    (re.compile(r"</ul>"), "\n"),
    (re.compile(r"<br\s*/?>"), "\n"),
    (re.compile(r"<[^>]+>"), ""),
    (re.compile(r"\n{3,}"), "\n\n"),
)


def html_to_markdown(html: str | None, *, keep_references: bool = False) -> str:
    """Minimal HTML to Markdown conversion for paragraphs, emphasis and lists.

    Scripts and ``data-*`` attributes are dropped first, and so are cross-reference
    tokens unless ``keep_references`` is set.
    """

    text = _SCRIPT_PATTERN.sub("", html or "")
    if not keep_references:
        text = strip_references(text)
    text = _DATA_ATTRIBUTE_PATTERN.sub("", text).strip()
    for pattern, replacement in _MARKDOWN_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    return text.strip()


def synthesize_description(
    primary: object, fallbacks: Iterable[object] = (), *, keep_references: bool = False
) -> str:
    """Return the first non-blank candidate converted to Markdown."""

    for candidate in (primary, *fallbacks):
        text = coerce_text(candidate).strip()
        if text:
            return html_to_markdown(text, keep_references=keep_references)
    return ""


def coerce_text(value: object) -> str:
    """Flatten the text shapes found in raw records into a string.

    Rich-text fields are often ``{"value": ..., "public": ...}`` mappings.
    """

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        candidate = value.get("value") or value.get("public")
        return candidate if isinstance(candidate, str) else ""
    if isinstance(value, (list, tuple)):
        return "\n".join(filter(None, (coerce_text(item) for item in value)))
    return str(value)


def collect_tags(text: str) -> set[str]:
    return {match.lower() for match in HASHTAG_PATTERN.findall(text)}


def collect_links(text: str) -> tuple[EntityLink, ...]:
    links = [EntityLink("uuid", value) for value in CROSS_REFERENCE_PATTERN.findall(text)]
    links.extend(EntityLink("journal", value) for value in JOURNAL_REFERENCE_PATTERN.findall(text))
    return tuple(links)


def is_external_image_url(value: object) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    parts = urlsplit(value.strip())
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def resolve_crosslinks(markdown: str, lookup: Callable[[str], str | None] | None) -> str:
    """Replace cross-reference tokens with ``[[remote-id]]`` wiki links when known."""

    if lookup is None:
        return markdown

    def replace(match: re.Match[str]) -> str:
        remote_id = lookup(match.group(1))
        return f"[[{remote_id}]]" if remote_id else match.group(0)

    return CROSS_REFERENCE_PATTERN.sub(replace, markdown or "")


def strip_references(text: str) -> str:
    return CROSS_REFERENCE_PATTERN.sub("", text)


def remote_description(body: str, lookup: Callable[[str], str | None] | None = None) -> str:
    """Resolve known cross references, then drop the tokens that remain."""

    resolved = resolve_crosslinks(body, lookup)
    return strip_references(resolved).strip()
