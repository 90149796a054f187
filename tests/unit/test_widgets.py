"""
Unit tests for the card, table and chart adapters and the widget registry.
"""

import math

import pytest

from jsonboard.errors import UnresolvableSeries
from jsonboard.widgets import REGISTRY, adapt
from jsonboard.widgets.base import WidgetConfig
from jsonboard.widgets.card import to_card_shape
from jsonboard.widgets.chart import MAX_POINTS, ChartSeries, to_chart_shape, to_point
from jsonboard.widgets.table import to_table_shape


QUOTE = {
    "data": {
        "price": 3410.5,
        "change": -12.25,
        "exchange": {"name": "NSE"},
    },
    "peers": [
        {"name": "INFY", "price": 1890},
        {"name": "WIPRO", "price": 512},
    ],
    "status": "ok",
}


class TestCardShape:
    """Tests for to_card_shape()."""

    def test_display_names_from_last_segment(self):
        """Test each value is keyed by the final path segment."""
        card = to_card_shape(QUOTE, ["data.price", "data.exchange.name", "status"])
        assert card == {"price": 3410.5, "name": "NSE", "status": "ok"}

    def test_preserves_field_order(self):
        """Test display order follows the field list."""
        card = to_card_shape(QUOTE, ["status", "data.change"])
        assert list(card) == ["status", "change"]

    def test_collisions_last_write_wins(self):
        """Test paths with the same last segment overwrite each other."""
        card = to_card_shape(QUOTE, ["data.price", "peers.price"])
        assert card == {"price": [1890, 512]}

    def test_missing_values_are_none(self):
        """Test unresolvable paths still get an entry."""
        assert to_card_shape(QUOTE, ["data.volume"]) == {"volume": None}


class TestTableShape:
    """Tests for to_table_shape()."""

    def test_first_sequence_wins(self):
        """Test the first path resolving to a sequence is used verbatim."""
        rows = to_table_shape(QUOTE, ["status", "peers", "data"])
        assert rows is QUOTE["peers"]

    def test_no_sequence(self):
        """Test an empty table when no path resolves to a sequence."""
        assert to_table_shape(QUOTE, ["status", "data.price", "nope"]) == []

    def test_empty_sequence(self):
        """Test an empty sequence gives an empty table."""
        assert to_table_shape({"rows": []}, ["rows"]) == []

    def test_rows_need_not_be_mappings(self):
        """Test non-mapping rows are passed through."""
        assert to_table_shape({"rows": [1, "two"]}, ["rows"]) == [1, "two"]


class TestChartShape:
    """Tests for to_chart_shape()."""

    def test_label_value_pairs(self):
        """Test [label, value] pairs are split and values parsed."""
        doc = {"prices": [["2025-01-01", "10.5"], ["2025-01-02", "11.0"]]}
        series = to_chart_shape(doc, ["prices"])
        assert series.labels == ["2025-01-01", "2025-01-02"]
        assert series.points == [10.5, 11.0]

    def test_root_level_pairs(self):
        """Test a pairs array at the document root."""
        root = [["2025-01-01", "10.5"], ["2025-01-02", "11.0"]]
        series = to_chart_shape({"v": root}, ["v"])
        assert series == ChartSeries(["2025-01-01", "2025-01-02"], [10.5, 11.0])

    def test_flat_numbers_get_synthetic_labels(self):
        """Test a flat list is labelled Pt 1, Pt 2, ..."""
        series = to_chart_shape({"v": [3, "4", 5.5]}, ["v"])
        assert series.labels == ["Pt 1", "Pt 2", "Pt 3"]
        assert series.points == [3.0, 4.0, 5.5]

    def test_truncates_to_last_points(self):
        """Test only the most recent 50 points are kept."""
        series = to_chart_shape({"v": list(range(80))}, ["v"])
        assert len(series.labels) == len(series.points) == MAX_POINTS == 50
        assert series.points == [float(i) for i in range(30, 80)]
        assert series.labels[0] == "Pt 31"
        assert series.labels[-1] == "Pt 80"

    def test_unwraps_values_dataset(self):
        """Test [{"values": [...]}] dataset wrappers are unwrapped once."""
        doc = {"datasets": [{"metric": "Price", "values": [["d1", "1"], ["d2", "2"]]}]}
        series = to_chart_shape(doc, ["datasets"])
        assert series.labels == ["d1", "d2"]
        assert series.points == [1.0, 2.0]

    def test_unwraps_data_dataset(self):
        """Test the data key is also recognised as a wrapper."""
        doc = {"datasets": [{"data": [1, 2, 3]}]}
        assert to_chart_shape(doc, ["datasets"]).points == [1.0, 2.0, 3.0]

    def test_only_first_path_used(self):
        """Test later field paths are ignored."""
        doc = {"a": "scalar", "b": [1, 2]}
        with pytest.raises(UnresolvableSeries):
            to_chart_shape(doc, ["a", "b"])

    @pytest.mark.parametrize("doc,fields", [
        ({"v": 5}, ["v"]),
        ({"v": {"x": 1}}, ["v"]),
        ({}, ["missing"]),
        ({"v": [1]}, []),
    ])
    def test_unresolvable_series(self, doc, fields):
        """Test a non-sequence raises UnresolvableSeries."""
        with pytest.raises(UnresolvableSeries):
            to_chart_shape(doc, fields)

    def test_unparseable_points_become_nan(self):
        """Test bad numbers are NaN and excluded from plottable()."""
        series = to_chart_shape({"v": [["a", "n/a"], ["b", "7"], ["c"]]}, ["v"])
        assert series.labels == ["a", "b", "c"]
        assert math.isnan(series.points[0])
        assert math.isnan(series.points[2])
        assert series.plottable() == [("b", 7.0)]

    def test_empty_series(self):
        """Test an empty sequence is a valid, empty chart."""
        assert to_chart_shape({"v": []}, ["v"]) == ChartSeries([], [])

    @pytest.mark.parametrize("value,expected", [
        (3, 3.0),
        ("10.5", 10.5),
        ("  42px", 42.0),
        ("-1e3", -1000.0),
        (".5", 0.5),
        ("Infinity", math.inf),
        (10**400, math.inf),
        (-10**400, -math.inf),
    ])
    def test_to_point(self, value, expected):
        """Test parsing mirrors parseFloat."""
        assert to_point(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", "", {"a": 1}])
    def test_to_point_nan(self, value):
        """Test unparseable values become NaN."""
        assert math.isnan(to_point(value))

    def test_huge_integer_is_not_plottable(self):
        """Test an integer beyond float range neither raises nor plots."""
        series = to_chart_shape({"v": [1, 10**400]}, ["v"])
        assert series.points == [1.0, math.inf]
        assert series.plottable() == [("Pt 1", 1.0)]


class TestRegistry:
    """Tests for adapter dispatch and WidgetConfig validation."""

    def test_registry_covers_widget_types(self):
        """Test every widget type has an adapter."""
        assert set(REGISTRY) == {"card", "table", "chart"}

    def test_adapt_dispatches(self):
        """Test adapt() picks the adapter by widget type."""
        assert adapt("card", QUOTE, ["status"]) == {"status": "ok"}
        assert adapt("table", QUOTE, ["peers"]) == QUOTE["peers"]

    def test_adapt_unknown_type(self):
        """Test an unknown widget type is rejected."""
        with pytest.raises(ValueError):
            adapt("gauge", QUOTE, ["status"])

    def test_config_requires_fields(self):
        """Test a widget needs at least one field."""
        with pytest.raises(ValueError):
            WidgetConfig(id="1", type="card", title="t", endpoint="e", fields=())

    def test_config_rejects_negative_refresh(self):
        """Test the refresh interval cannot be negative."""
        with pytest.raises(ValueError):
            WidgetConfig(id="1", type="card", title="t", endpoint="e", fields=("a",), refresh_interval=-1)

    def test_config_round_trip(self):
        """Test the persisted dict form restores an equal config."""
        cfg = WidgetConfig(id="1", type="chart", title="t", endpoint="e", fields=["a", "b"], seed_response={"a": [1]})
        again = WidgetConfig.from_dict(cfg.to_dict())
        assert again == cfg
        assert again.fields == ("a", "b")
        assert again.seed_response == {"a": [1]}

    def test_from_dict_unknown_keys(self):
        """Test unexpected keys are rejected."""
        with pytest.raises(ValueError, match="Unknown"):
            WidgetConfig.from_dict({"id": "1", "type": "card", "title": "t", "endpoint": "e", "fields": ["a"], "color": "red"})

    def test_from_dict_missing_keys(self):
        """Test missing required keys are rejected."""
        with pytest.raises(ValueError, match="Missing"):
            WidgetConfig.from_dict({"id": "1", "type": "card"})
