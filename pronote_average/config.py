"""Application configuration and domain constants."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ------------------------
# Domain constants
# ------------------------
AVERAGE_LABEL_FRAGMENT = "Moyenne élève"
# aria-label=" Moyenne élève : 15,00"
AVERAGE_LABEL_PATTERN = re.compile(
    r"Moyenne\s+élève\s*:\s*([0-9]+(?:[.,][0-9]+)?)", re.IGNORECASE
)

COEF_KEY_PREFIX = "coef:"
UNKNOWN_SUBJECT = "Matière inconnue"
DEFAULT_COEFFICIENT = 1
HIERARCHY_SEPARATOR = ">"

DEFAULT_STORE_PATH = Path.home() / ".pronote_average" / "coefficients.json"


@dataclass(frozen=True)
class Settings:
    """Immutable container for runtime settings."""

    store_path: Path
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return settings derived from the current environment."""

    store = os.getenv("PRONOTE_AVERAGE_STORE")
    return Settings(
        store_path=Path(store).expanduser() if store else DEFAULT_STORE_PATH,
        log_level=os.getenv("PRONOTE_AVERAGE_LOG_LEVEL", "INFO").upper(),
    )
