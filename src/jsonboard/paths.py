from __future__ import annotations

from typing import Union

JSONPrimitive = Union[None, bool, int, float, str]
JSONValue = Union[JSONPrimitive, list["JSONValue"], dict[str, "JSONValue"]]

ENVELOPE_PREFIX = "data."


class _NotFound:
    """Result of a path that does not lead anywhere.

    JSON ``null`` is a legitimate value, so misses need their own marker.
    """

    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


def leaf_name(path: str) -> str:
    return path.rsplit(".", 1)[-1]


def _lookup(node: JSONValue, path: str) -> JSONValue | _NotFound:
    if isinstance(node, dict):
        if path in node:
            return node[path]
        # shortest key first, then keys that themselves contain dots
        start = 0
        while True:
            cut = path.find(".", start)
            if cut < 0:
                return NOT_FOUND
            key = path[:cut]
            if key in node:
                value = _lookup(node[key], path[cut + 1:])
                if value is not NOT_FOUND:
                    return value
            start = cut + 1

    if isinstance(node, list):
        # a key step into a sequence is applied to every mapping element
        found = [
            v for v in (_lookup(item, path) for item in node if isinstance(item, dict))
            if v is not NOT_FOUND
        ]
        return found if found else NOT_FOUND

    return NOT_FOUND


def resolve(root: JSONValue, path: str) -> JSONValue | _NotFound:
    """Return the value at the dot-delimited ``path`` inside ``root``.

    A leading ``data.`` envelope segment is optional. Never raises: any miss
    (unknown key, stepping past a primitive or null, empty path) gives
    ``NOT_FOUND``.
    """
    if not isinstance(path, str) or not path:
        return NOT_FOUND

    if path.startswith(ENVELOPE_PREFIX):
        stripped = path[len(ENVELOPE_PREFIX):]
        if stripped:
            value = _lookup(root, stripped)
            if value is not NOT_FOUND:
                return value

    return _lookup(root, path)
