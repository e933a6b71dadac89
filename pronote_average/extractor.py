"""Locate "Moyenne élève" labels in a Pronote page and name their subjects.

Pronote's markup changes between releases, so both the row that holds an
average and the element that holds the subject title are looked up through
ordered lists of known shapes; the first one that matches wins.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from pronote_average.config import (
    AVERAGE_LABEL_FRAGMENT,
    AVERAGE_LABEL_PATTERN,
    UNKNOWN_SUBJECT,
)
from pronote_average.logging_config import get_logger
from pronote_average.normalize import clean_text, strip_hierarchy

logger = get_logger(__name__)


@dataclass(frozen=True)
class RawEntry:
    subject: str
    average_text: str


# (name, predicate) tried on the node itself, then on each ancestor
ROW_STRATEGIES: List[Tuple[str, Callable[[Tag], bool]]] = [
    ("fd_ligne", lambda el: "fd_ligne" in (el.get("class") or [])),
    ("treeitem", lambda el: el.get("role") == "treeitem"),
]

# CSS selectors tried in order inside the row
TITLE_SELECTORS: List[str] = [
    ".titre-principal .ie-titre-gros",
    ".titre-principal .ie-ellipsis",
    ".zone-principale .ie-titre-gros",
    ".zone-principale .ie-ellipsis",
]


def _closest(node: Tag, predicate: Callable[[Tag], bool]) -> Optional[Tag]:
    current = node
    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
        if predicate(current):
            return current
        current = current.parent
    return None


def find_row(node: Tag) -> Optional[Tag]:
    for name, predicate in ROW_STRATEGIES:
        row = _closest(node, predicate)
        if row is not None:
            logger.debug("Row resolved via %s", name)
            return row
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def find_subject_label(row: Optional[Tag]) -> str:
    if row is None:
        return ""
    for selector in TITLE_SELECTORS:
        for title in row.select(selector):
            text = clean_text(title.get_text())
            if text:
                return text
    return ""


def match_average(label: str) -> Optional[str]:
    """Return the numeric part of a "Moyenne élève : 15,00" label, if any."""
    m = AVERAGE_LABEL_PATTERN.search(label or "")
    return m.group(1) if m else None


def average_nodes(document: BeautifulSoup) -> List[Tag]:
    return document.find_all(
        lambda el: AVERAGE_LABEL_FRAGMENT in (el.get("aria-label") or "")
    )


def dedupe_first(entries: List[RawEntry]) -> List[RawEntry]:
    """Keep the first entry per subject, compared case-insensitively."""
    seen = set()
    deduped = []
    for entry in entries:
        key = entry.subject.lower()
        if key in seen:
            logger.debug("Dropping repeated subject %r", entry.subject)
            continue
        seen.add(key)
        deduped.append(entry)
    return deduped


def extract_entries(document: BeautifulSoup) -> List[RawEntry]:
    """
    Scan a parsed page and return one RawEntry per subject, in document order.

    An empty list means no recognizable average was found; malformed markup
    never raises.
    """
    items: List[RawEntry] = []

    for node in average_nodes(document):
        avg_str = match_average(node.get("aria-label"))
        if avg_str is None:
            logger.debug("Skipping label %r", node.get("aria-label"))
            continue

        subject = find_subject_label(find_row(node)) or UNKNOWN_SUBJECT
        subject = strip_hierarchy(subject)

        items.append(RawEntry(subject=subject, average_text=avg_str))

    entries = dedupe_first(items)
    logger.debug("Found %d average label(s), %d subject(s)", len(items), len(entries))
    return entries
