from __future__ import annotations

from dataclasses import dataclass, field
import json
import math
import re

from ..errors import UnresolvableSeries
from ..paths import JSONValue, resolve

name = "chart"

MAX_POINTS = 50

# mirrors parseFloat: longest leading decimal literal, surrounding junk ignored
_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")

_WRAPPER_KEYS = ("values", "data")


@dataclass(frozen=True)
class ChartSeries:
    labels: list[str] = field(default_factory=list)
    points: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def plottable(self) -> list[tuple[str, float]]:
        """(label, point) pairs whose point is a real, finite number."""
        return [(lb, pt) for lb, pt in zip(self.labels, self.points) if math.isfinite(pt)]


def to_point(value: JSONValue) -> float:
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            # integers past the float range, as parseFloat reads them
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        m = _LEADING_NUMBER.match(value)
        return float(m.group(1)) if m else math.nan
    return math.nan


def _label(value: JSONValue) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value)


def _unwrap(value: JSONValue) -> JSONValue:
    # [{"values": [...]}, ...] and [{"data": [...]}, ...] dataset wrappers
    if isinstance(value, list) and value and isinstance(value[0], dict):
        first = value[0]
        for key in _WRAPPER_KEYS:
            inner = first.get(key)
            if isinstance(inner, list):
                return inner
    return value


def to_chart_shape(root: JSONValue, field_paths: list[str]) -> ChartSeries:
    """Turn the series under the first field path into labels and points.

    ``[[label, value], ...]`` pairs are split; anything else is read as a flat
    list of numbers labelled ``Pt 1, Pt 2, ...``. Values that do not parse
    become NaN. Only the last ``MAX_POINTS`` pairs are kept.
    """
    path = field_paths[0] if field_paths else ""
    series = _unwrap(resolve(root, path))
    if not isinstance(series, list):
        raise UnresolvableSeries(path)

    labels: list[str] = []
    points: list[float] = []
    pairwise = bool(series) and isinstance(series[0], list)
    for i, item in enumerate(series):
        if pairwise and isinstance(item, list):
            labels.append(_label(item[0]) if item else "")
            points.append(to_point(item[1]) if len(item) > 1 else math.nan)
        else:
            labels.append(f"Pt {i + 1}")
            points.append(to_point(item))

    return ChartSeries(labels=labels[-MAX_POINTS:], points=points[-MAX_POINTS:])


adapt = to_chart_shape
