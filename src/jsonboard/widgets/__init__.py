from __future__ import annotations

from typing import Any

from . import card, table, chart
from ..paths import JSONValue

REGISTRY = {
    card.name: card,
    table.name: table,
    chart.name: chart,
}


def adapt(widget_type: str, payload: JSONValue, field_paths: list[str]) -> Any:
    mod = REGISTRY.get(widget_type)
    if mod is None:
        raise ValueError(f"Unknown widget type: {widget_type}")
    return mod.adapt(payload, list(field_paths))
