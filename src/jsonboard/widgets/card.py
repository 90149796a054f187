from __future__ import annotations

from ..paths import JSONValue, NOT_FOUND, leaf_name, resolve

name = "card"


def to_card_shape(root: JSONValue, field_paths: list[str]) -> dict[str, JSONValue]:
    """Map each path's last segment to the value it resolves to.

    Paths sharing a last segment collide and the later one wins. Paths that
    resolve to nothing show up as ``None``.
    """
    card: dict[str, JSONValue] = {}
    for path in field_paths:
        value = resolve(root, path)
        card[leaf_name(path)] = None if value is NOT_FOUND else value
    return card


adapt = to_card_shape
