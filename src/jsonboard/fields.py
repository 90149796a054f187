from __future__ import annotations

from dataclasses import dataclass

from .paths import JSONValue

DEFAULT_MAX_DEPTH = 10


@dataclass(frozen=True)
class FieldInfo:
    path: str
    kind: str


def kind_of(value: JSONValue) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _walk(node: JSONValue, prefix: str, depth: int, max_depth: int, out: list[tuple[str, JSONValue]]) -> None:
    if depth > max_depth or node is None:
        return

    if isinstance(node, list):
        # siblings are assumed to look like the first element
        if node and isinstance(node[0], dict):
            _walk(node[0], prefix, depth + 1, max_depth, out)
        return

    if not isinstance(node, dict):
        return

    for key, value in node.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if path:
            out.append((path, value))
        if isinstance(value, dict):
            _walk(value, path, depth + 1, max_depth, out)
        elif isinstance(value, list):
            _walk(value, path, depth, max_depth, out)


def _sampled(root: JSONValue, max_depth: int) -> dict[str, JSONValue]:
    out: list[tuple[str, JSONValue]] = []
    _walk(root, "", 0, max_depth, out)
    seen: dict[str, JSONValue] = {}
    for path, value in out:
        seen.setdefault(path, value)
    return seen


def discover(root: JSONValue, max_depth: int = DEFAULT_MAX_DEPTH) -> list[str]:
    """List the field paths reachable in ``root``, first-seen order, no duplicates.

    A mapping key always contributes its own path; containers below it are
    walked further. A sequence is selectable as a whole, and only its first
    element is sampled for sub-paths. Descending into a mapping or into a
    sequence's first element costs one level of depth; past ``max_depth`` a
    branch contributes nothing. ``root`` is never modified.
    """
    return list(_sampled(root, max_depth))


def describe_fields(root: JSONValue, max_depth: int = DEFAULT_MAX_DEPTH) -> list[FieldInfo]:
    """Like :func:`discover`, with the JSON kind of the sampled value at each path."""
    return [FieldInfo(path=p, kind=kind_of(v)) for p, v in _sampled(root, max_depth).items()]


def filter_fields(infos: list[FieldInfo], query: str = "", arrays_only: bool = False) -> list[FieldInfo]:
    q = query.lower()
    return [
        f for f in infos
        if q in f.path.lower() and (not arrays_only or f.kind == "array")
    ]
