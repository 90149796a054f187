from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import logging
import os
import yaml

from .store import STORAGE_KEY
from .transport import DEFAULT_TIMEOUT
from .widgets.base import DEFAULT_REFRESH_SECONDS

logger = logging.getLogger(__name__)

RESOLUTIONS = {
    "1920x1080": (1920, 1080),
    "2560x1600": (2560, 1600),
    "3840x2160": (3840, 2160),
}

def _expand(value: str) -> str:
    return os.path.expanduser(os.path.expandvars(value))

@dataclass(frozen=True)
class Config:
    """Settings read from config.yaml. Every key is optional."""
    raw: dict = field(default_factory=dict)

    def _section(self, name: str) -> dict:
        return self.raw.get(name) or {}

    @property
    def storage_dir(self) -> Path:
        return Path(_expand(str(self._section("storage").get("path", "~/.local/share/jsonboard"))))

    @property
    def storage_key(self) -> str:
        return str(self._section("storage").get("key", STORAGE_KEY))

    @property
    def base_url(self) -> str | None:
        url = self._section("api").get("base_url")
        return _expand(str(url)) if url else None

    @property
    def api_key(self) -> str | None:
        key = self._section("api").get("key")
        if not key:
            return None
        key = os.path.expandvars(str(key))
        # unset ${VAR} references are left verbatim by expandvars
        return None if key.startswith("$") else key

    @property
    def timeout(self) -> float:
        return float(self._section("api").get("timeout", DEFAULT_TIMEOUT))

    @property
    def columns(self) -> int:
        return int(self._section("dashboard").get("columns", 3))

    @property
    def default_refresh(self) -> int:
        return int(self._section("dashboard").get("default_refresh", DEFAULT_REFRESH_SECONDS))

    @property
    def resolution(self) -> tuple[int, int]:
        name = str(self.raw.get("resolution", "1920x1080"))
        try:
            return RESOLUTIONS[name]
        except KeyError:
            raise ValueError(f"Unsupported resolution {name!r}. Supported: {', '.join(RESOLUTIONS)}") from None

    @property
    def output_path(self) -> Path:
        return Path(_expand(str(self._section("output").get("path", "~/.cache/jsonboard/dashboard.png"))))

    @property
    def renderer_kind(self) -> str:
        return str(self._section("renderer").get("kind", "pillow"))

    @property
    def theme(self) -> dict:
        return dict(self._section("theme"))

    @property
    def web_renderer(self) -> dict:
        return dict(self._section("web_renderer"))

def load_config(path: str | Path) -> Config:
    """Read ``path``; a missing or empty file gives the defaults."""
    p = Path(_expand(str(path)))
    if not p.exists():
        logger.debug(f"No config at {p}, using defaults")
        return Config()
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must hold a YAML mapping at the top level")
    return Config(raw=raw)
