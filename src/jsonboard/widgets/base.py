from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields as dc_fields
from datetime import datetime
from typing import Protocol, Any

from ..paths import JSONValue

WIDGET_TYPES = ("card", "table", "chart")

DEFAULT_REFRESH_SECONDS = 30


@dataclass(frozen=True)
class WidgetConfig:
    id: str
    type: str
    title: str
    endpoint: str
    fields: tuple[str, ...]
    refresh_interval: int = DEFAULT_REFRESH_SECONDS
    auth_key: str | None = None
    seed_response: JSONValue = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.type not in WIDGET_TYPES:
            raise ValueError(f"Unknown widget type {self.type!r}. Supported: {list(WIDGET_TYPES)}")
        if isinstance(self.fields, str):
            raise ValueError("fields must be a sequence of field paths, not a single string")
        object.__setattr__(self, "fields", tuple(str(f) for f in self.fields))
        if not self.fields:
            raise ValueError("Select at least one field to display")
        if isinstance(self.refresh_interval, bool) or not isinstance(self.refresh_interval, int):
            raise ValueError(f"refresh_interval must be an integer, got {self.refresh_interval!r}")
        if self.refresh_interval < 0:
            raise ValueError("refresh_interval must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["fields"] = list(self.fields)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WidgetConfig:
        unknown = set(data) - config_keys()
        if unknown:
            raise ValueError(f"Unknown widget config keys: {sorted(unknown)}")
        missing = REQUIRED_KEYS - set(data)
        if missing:
            raise ValueError(f"Missing widget config keys: {sorted(missing)}")
        return cls(**data)


def config_keys() -> set[str]:
    return {f.name for f in dc_fields(WidgetConfig)}


REQUIRED_KEYS = {"id", "type", "title", "endpoint", "fields"}


@dataclass(frozen=True)
class WidgetResult:
    id: str
    type: str
    title: str
    data: Any
    ok: bool = True
    error: str | None = None
    stale: bool = False
    updated_at: datetime | None = None


class Widget(Protocol):
    name: str

    def adapt(self, root: JSONValue, field_paths: list[str]) -> Any:
        ...
