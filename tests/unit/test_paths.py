"""
Unit tests for field path resolution.
"""

import pytest

from jsonboard.paths import NOT_FOUND, leaf_name, resolve


QUOTE = {
    "symbol": "TCS",
    "price": {"current": 3410.5, "currency": "INR"},
    "history": [
        {"date": "2025-01-01", "close": 3400},
        {"date": "2025-01-02", "close": 3410.5},
    ],
    "meta.source": "nse",
    "flags": None,
}


class TestResolve:
    """Tests for resolve()."""

    def test_top_level_key(self):
        """Test resolving a top-level key."""
        assert resolve(QUOTE, "symbol") == "TCS"

    def test_nested_key(self):
        """Test segment-by-segment traversal."""
        assert resolve(QUOTE, "price.current") == 3410.5

    def test_literal_dotted_key_wins(self):
        """Test a key containing a dot is found as a literal key."""
        assert resolve(QUOTE, "meta.source") == "nse"

    def test_dotted_key_below_the_root(self):
        """Test keys containing dots are found at deeper levels too."""
        doc = {"a.b": {"c": 1}, "x": {"y.z": 2}}
        assert resolve(doc, "a.b.c") == 1
        assert resolve(doc, "x.y.z") == 2

    def test_data_envelope_prefix_is_optional(self):
        """Test a leading data. segment is stripped before resolution."""
        assert resolve(QUOTE, "data.price.current") == 3410.5

    def test_real_data_key_still_resolves(self):
        """Test documents that really have a data key still resolve."""
        doc = {"data": {"price": 10}}
        assert resolve(doc, "data.price") == 10
        assert resolve(doc, "data") == {"price": 10}

    def test_null_value_is_found(self):
        """Test JSON null is a value, not a miss."""
        assert resolve(QUOTE, "flags") is None

    def test_missing_key(self):
        """Test a missing key gives NOT_FOUND."""
        assert resolve(QUOTE, "volume") is NOT_FOUND
        assert resolve(QUOTE, "price.open") is NOT_FOUND

    def test_step_past_primitive(self):
        """Test stepping into a string, number or null gives NOT_FOUND."""
        assert resolve(QUOTE, "symbol.length") is NOT_FOUND
        assert resolve(QUOTE, "price.current.value") is NOT_FOUND
        assert resolve(QUOTE, "flags.x") is NOT_FOUND

    def test_key_step_into_sequence_projects(self):
        """Test a key step into a sequence collects it from each element."""
        assert resolve(QUOTE, "history.close") == [3400, 3410.5]

    def test_positional_index_not_supported(self):
        """Test numeric segments do not index into sequences."""
        assert resolve(QUOTE, "history.0") is NOT_FOUND

    @pytest.mark.parametrize("root", [{}, [], None, 0, "text", True, [1, 2]])
    @pytest.mark.parametrize("path", ["", ".", "a", "a.b", "data.", "data..x", "0"])
    def test_total(self, root, path):
        """Test resolution never raises."""
        assert resolve(root, path) is NOT_FOUND

    def test_non_string_path(self):
        """Test a non-string path is a miss rather than an error."""
        assert resolve(QUOTE, None) is NOT_FOUND

    def test_input_not_modified(self):
        """Test resolution leaves the document untouched."""
        doc = {"a": [{"b": 1}]}
        resolve(doc, "a.b")
        assert doc == {"a": [{"b": 1}]}


class TestNotFound:
    """Tests for the NOT_FOUND sentinel."""

    def test_falsy_and_distinct_from_none(self):
        """Test NOT_FOUND is falsy but is not None."""
        assert not NOT_FOUND
        assert NOT_FOUND is not None
        assert repr(NOT_FOUND) == "NOT_FOUND"

    def test_leaf_name(self):
        """Test the last segment is used as a display name."""
        assert leaf_name("data.price.current") == "current"
        assert leaf_name("symbol") == "symbol"
