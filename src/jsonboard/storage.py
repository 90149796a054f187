from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Protocol

from .paths import JSONValue

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get(self, key: str) -> JSONValue | None:
        ...

    def set(self, key: str, value: JSONValue) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class JsonFileStorage:
    """One JSON document per key, ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> JSONValue | None:
        p = self.path_for(key)
        if not p.exists():
            return None
        return json.loads(p.read_text(encoding="utf-8"))

    def set(self, key: str, value: JSONValue) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # write-then-rename so readers only ever see a whole document
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, indent=2)
            os.replace(tmp, self.path_for(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {self.path_for(key)}")

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
