"""Coefficient store: a flat JSON object on disk, read and written by key."""
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from pronote_average.config import get_settings
from pronote_average.errors import StorageError
from pronote_average.logging_config import get_logger

logger = get_logger(__name__)


class CoefficientStore:
    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StorageError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, keys: Iterable[str]) -> Dict[str, object]:
        """Return the stored values for the keys that are present."""
        data = self._read_all()
        return {k: data[k] for k in keys if k in data}

    def set(self, items: Mapping[str, object]) -> None:
        data = self._read_all()
        data.update(items)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise StorageError(f"cannot write {self.path}: {exc}") from exc

        logger.debug("Stored %s", ", ".join(items))


def default_store(path: Optional[Path] = None) -> CoefficientStore:
    return CoefficientStore(path or get_settings().store_path)
