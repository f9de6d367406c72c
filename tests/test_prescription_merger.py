"""
Unit tests for the prescription merger.

Tests cover:
- ARGB to CSS color conversion
- Merging rates into cells
- Legend construction and rate coloring
- Rate edits applied to both cells and document
"""
import pytest

from vrizones.domain.errors import InvalidRate, RateKeyNotFound
from vrizones.domain.models import LegendEntry
from vrizones.services.domain.prescription_merger import (
    NO_DATA_COLOR,
    RATE_PROPERTY,
    PrescriptionMerger,
    convert_color,
    feature_rate_key,
)
from vrizones.services.domain.rate_document import RateDocument


BOTTOM_ROW = (-119.9999, 37.0001, -119.9971, 37.0009)


@pytest.fixture
def merger() -> PrescriptionMerger:
    return PrescriptionMerger()


@pytest.fixture
def document(sample_vri) -> RateDocument:
    return RateDocument.parse(sample_vri)


def rate_of(collection: dict, feature_id: int):
    for feature in collection["features"]:
        if feature["id"] == feature_id:
            return feature["properties"].get(RATE_PROPERTY)
    raise KeyError(feature_id)


# ============================================================
# Color Conversion Tests
# ============================================================

class TestConvertColor:
    """Tests for document color conversion."""

    def test_opaque(self):
        assert convert_color("#FFFF0000") == "#FF0000"

    def test_translucent(self):
        assert convert_color("#800000FF") == "rgba(0,0,255,0.502)"

    def test_fully_transparent_without_hash(self):
        assert convert_color("00FF00FF") == "rgba(255,0,255,0)"

    @pytest.mark.parametrize("value", ["red", "#FF0000", "#GG000000", "", None])
    def test_other_values_unchanged(self, value):
        assert convert_color(value) == value


# ============================================================
# Merge Tests
# ============================================================

class TestMergeRates:
    """Tests for overlaying rates onto cells."""

    def test_rates_attached_by_composite_key(self, merger, cell_collection, document):
        merged = merger.merge_rates(cell_collection, document)

        assert rate_of(merged, 1) == 20
        assert rate_of(merged, 5) == 40
        assert rate_of(merged, 8) == 50

    def test_cell_without_entry_has_no_rate(self, merger, cell_collection, document):
        """Partial coverage shows as no data, never a default rate."""
        merged = merger.merge_rates(cell_collection, document)

        assert RATE_PROPERTY not in merged["features"][8]["properties"]

    def test_stale_rate_is_removed(self, merger, cell_collection, document):
        cell_collection["features"][8]["properties"][RATE_PROPERTY] = 99

        merged = merger.merge_rates(cell_collection, document)

        assert RATE_PROPERTY not in merged["features"][8]["properties"]

    def test_input_not_mutated(self, merger, cell_collection, document):
        merger.merge_rates(cell_collection, document)

        assert RATE_PROPERTY not in cell_collection["features"][0]["properties"]

    def test_feature_rate_key(self, cell_collection):
        assert feature_rate_key(cell_collection["features"][5]) == "3-2"
        assert feature_rate_key({"properties": {}}) is None


# ============================================================
# Legend Tests
# ============================================================

class TestLegend:
    """Tests for legend construction and coloring."""

    def test_legend_sorted_by_threshold(self, merger, document):
        legend = merger.build_legend(document)

        assert [entry.threshold for entry in legend] == [25, 50, 100]
        assert [entry.color for entry in legend] == [
            "rgba(0,0,255,0.502)",
            "#00FF00",
            "#FF0000",
        ]
        assert legend[0].label == "25%"

    def test_first_threshold_at_or_above_rate_wins(self, merger):
        legend = [
            LegendEntry(threshold=25, color="A", label="25%"),
            LegendEntry(threshold=50, color="B", label="50%"),
        ]

        assert merger.color_for_rate(25, legend) == "A"
        assert merger.color_for_rate(26, legend) == "B"
        assert merger.color_for_rate(999, legend) == "B"
        assert merger.color_for_rate(0, legend) == "A"

    def test_missing_rate_uses_neutral_color(self, merger, document):
        legend = merger.build_legend(document)

        assert merger.color_for_rate(None, legend) == NO_DATA_COLOR

    def test_empty_legend(self):
        merger = PrescriptionMerger(no_data_color="#cccccc")

        assert merger.color_for_rate(30, []) == "#cccccc"


# ============================================================
# Rate Update Tests
# ============================================================

class TestUpdateRate:
    """Tests for manual rate edits."""

    def test_keys_in_region(self, merger, cell_collection):
        assert merger.keys_in_region(cell_collection, BOTTOM_ROW) == ["1-1", "2-1", "3-1"]

    def test_keys_in_region_skips_features_without_geometry(self, merger, cell_collection):
        cell_collection["features"].insert(0, {
            "type": "Feature",
            "id": 99,
            "geometry": None,
            "properties": {"BearingSeqNum": 9, "DistanceSeqNum": 9},
        })

        assert merger.keys_in_region(cell_collection, BOTTOM_ROW) == ["1-1", "2-1", "3-1"]

    def test_update_keeps_cells_and_document_consistent(
        self, merger, cell_collection, document
    ):
        result = merger.update_rate(cell_collection, document, ["1-1", "2-2"], 90)

        assert result.updated_keys == ["1-1", "2-2"]
        assert result.missing_keys == []
        assert result.document.rates["1-1"].rate_percent == 90
        assert rate_of(result.cells, 1) == 90
        assert rate_of(result.cells, 5) == 90
        assert rate_of(result.cells, 2) == 30

    def test_update_leaves_input_document(self, merger, cell_collection, document):
        merger.update_rate(cell_collection, document, ["1-1"], 90)

        assert document.rates["1-1"].rate_percent == 20

    def test_partial_update_reports_missing_keys(self, merger, cell_collection, document):
        """Found keys are applied; every missing key is reported."""
        with pytest.raises(RateKeyNotFound) as exc_info:
            merger.update_rate(cell_collection, document, ["1-1", "3-3", "9-9"], 60)

        error = exc_info.value
        assert error.missing_keys == ["3-3", "9-9"]
        assert error.result.updated_keys == ["1-1"]
        assert error.result.document.rates["1-1"].rate_percent == 60

    def test_invalid_rate_rejected_first(self, merger, cell_collection, document):
        with pytest.raises(InvalidRate):
            merger.update_rate(cell_collection, document, ["3-3"], -10)

    def test_edit_survives_export(self, merger, cell_collection, document):
        """An edited rate is still there after base64 export and re-import."""
        result = merger.update_rate(cell_collection, document, ["2-3"], 15)

        reloaded = RateDocument.from_base64(result.document.to_base64())

        assert reloaded.rates["2-3"].rate_percent == 15
        assert reloaded.rates["1-3"].rate_percent == 40


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
