"""Run an extraction function against a page snapshot.

The function is treated like a script injected into the page: it only sees
the parsed document, it must not close over any outside variable, and only
JSON-serializable data comes back out of it.
"""
import json
from typing import Any, Callable, Dict, List, Union

from bs4 import BeautifulSoup

from pronote_average.errors import InjectionRefusedError
from pronote_average.extractor import extract_entries
from pronote_average.logging_config import get_logger

logger = get_logger(__name__)

Snapshot = Union[str, bytes]


def _parse(snapshot: Snapshot) -> BeautifulSoup:
    if snapshot is None or not snapshot.strip():
        raise InjectionRefusedError("empty snapshot")
    document = BeautifulSoup(snapshot, "html.parser")
    if document.find() is None:
        raise InjectionRefusedError("snapshot contains no markup")
    return document


def execute_script(snapshot: Snapshot, func: Callable[[BeautifulSoup], Any]) -> Any:
    if getattr(func, "__closure__", None):
        names = ", ".join(func.__code__.co_freevars)
        raise InjectionRefusedError(f"function captures outer variables: {names}")

    document = _parse(snapshot)

    try:
        result = func(document)
    except Exception as exc:
        logger.exception("Injected function failed")
        raise InjectionRefusedError(str(exc)) from exc

    try:
        return json.loads(json.dumps(result, allow_nan=False))
    except (TypeError, ValueError) as exc:
        raise InjectionRefusedError(f"result is not serializable: {exc}") from exc


def extract_subjects(document: BeautifulSoup) -> List[Dict[str, str]]:
    return [
        {"subject": e.subject, "average_text": e.average_text}
        for e in extract_entries(document)
    ]
