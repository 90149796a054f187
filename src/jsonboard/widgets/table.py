from __future__ import annotations

from ..paths import JSONValue, resolve

name = "table"


def to_table_shape(root: JSONValue, field_paths: list[str]) -> list[JSONValue]:
    # first path that lands on a sequence wins; rows are passed through as-is
    for path in field_paths:
        value = resolve(root, path)
        if isinstance(value, list):
            return value
    return []


adapt = to_table_shape
