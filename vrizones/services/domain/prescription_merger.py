"""
Domain service: overlay a rate document onto a cell collection.

Cells and rate elements are joined on the composite key
"{bearing_seq}-{distance_seq}". A cell whose key is not in the document
gets no rate at all, never a default.
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from shapely.geometry import box

from vrizones.domain.cells import correlation_keys, feature_bounds
from vrizones.domain.errors import RateKeyNotFound
from vrizones.domain.models import BoundingBox, LegendEntry, composite_key
from vrizones.services.domain.rate_document import RateDocument, check_rate

logger = logging.getLogger(__name__)


RATE_PROPERTY = "wateringratepercent"
NO_DATA_COLOR = "#3388ff"


def convert_color(argb: Optional[str]) -> Optional[str]:
    """
    Convert a document color to a CSS color.

    "#FFRRGGBB" (opaque) becomes "#RRGGBB"; any other alpha becomes
    "rgba(r,g,b,a)" with a in [0, 1]. Anything that is not an 8-digit ARGB
    value is returned unchanged.
    """
    if not argb:
        return argb
    digits = argb[1:] if argb.startswith("#") else argb
    if len(digits) != 8:
        return argb
    try:
        alpha, red, green, blue = (int(digits[i:i + 2], 16) for i in range(0, 8, 2))
    except ValueError:
        return argb
    if alpha == 255:
        return f"#{digits[2:]}"
    return f"rgba({red},{green},{blue},{round(alpha / 255, 3):g})"


def feature_rate_key(feature: dict) -> Optional[str]:
    bearing, distance = correlation_keys(feature)
    if bearing is None or distance is None:
        return None
    return composite_key(bearing, distance)


@dataclass
class RateUpdateResult:
    """Outcome of update_rate: both sides already carry the new rate."""
    cells: dict
    document: RateDocument
    updated_keys: List[str] = field(default_factory=list)
    missing_keys: List[str] = field(default_factory=list)


class PrescriptionMerger:
    """Merge, color and edit prescriptions over a GeoJSON cell collection."""

    def __init__(self, no_data_color: str = NO_DATA_COLOR):
        self.no_data_color = no_data_color

    def merge_rates(self, cells: dict, document: RateDocument) -> dict:
        """
        Return a copy of the collection with `wateringratepercent` set on
        every cell whose composite key has a rate in the document.

        Cells without a matching key carry no rate property.
        """
        rates = document.rates
        merged = copy.deepcopy(cells)
        matched = 0
        for feature in merged.get("features") or []:
            if feature.get("properties") is None:
                feature["properties"] = {}
            properties = feature["properties"]
            entry = rates.get(feature_rate_key(feature))
            if entry is None:
                properties.pop(RATE_PROPERTY, None)
            else:
                properties[RATE_PROPERTY] = entry.rate_percent
                matched += 1
        logger.debug(f"Merged {matched} rates into {len(merged.get('features') or [])} cells")
        return merged

    def build_legend(self, document: RateDocument) -> List[LegendEntry]:
        """Legend entries ascending by threshold; colors converted to CSS."""
        legend = []
        for raw_percent, raw_color in document.colors:
            try:
                threshold = float(raw_percent)
            except (TypeError, ValueError):
                continue
            color = convert_color(raw_color)
            if not color:
                continue
            legend.append(LegendEntry(threshold=threshold, color=color, label=f"{threshold:g}%"))
        legend.sort(key=lambda entry: entry.threshold)
        return legend

    def color_for_rate(self, rate: Optional[float], legend: Iterable[LegendEntry]) -> str:
        """
        First legend color whose threshold is >= rate, else the last color.

        A missing rate or an empty legend gives the no-data color.
        """
        entries = list(legend)
        if rate is None or not entries:
            return self.no_data_color
        for entry in entries:
            if rate <= entry.threshold:
                return entry.color
        return entries[-1].color

    def keys_in_region(
        self,
        cells: dict,
        bounds: Union[BoundingBox, tuple],
    ) -> List[str]:
        """
        Composite keys of cells whose bounding box touches the region.

        Features without a geometry never match.
        """
        region = box(*(bounds.bounds if isinstance(bounds, BoundingBox) else bounds))
        keys = []
        for feature in cells.get("features") or []:
            key = feature_rate_key(feature)
            if key is None or key in keys:
                continue
            cell_bounds = feature_bounds(feature)
            if cell_bounds is not None and box(*cell_bounds).intersects(region):
                keys.append(key)
        return keys

    def update_rate(
        self,
        cells: dict,
        document: RateDocument,
        keys: Iterable[str],
        rate: float,
    ) -> RateUpdateResult:
        """
        Set one rate on a set of composite keys, in the document and the cells.

        Found keys are always applied. The returned document is a copy; the
        input document and collection are left untouched.

        Raises:
            InvalidRate: If the rate is not a finite number >= 0
            RateKeyNotFound: If any key is missing; `result` holds the
                partially applied update
        """
        check_rate(rate)
        updated_document = document.copy()
        updated_keys: List[str] = []
        missing_keys: List[str] = []
        for key, count in updated_document.set_rates(keys, rate).items():
            if count:
                updated_keys.append(key)
            else:
                missing_keys.append(key)

        result = RateUpdateResult(
            cells=self.merge_rates(cells, updated_document),
            document=updated_document,
            updated_keys=updated_keys,
            missing_keys=missing_keys,
        )
        logger.debug(f"Rate update: {len(updated_keys)} updated, {len(missing_keys)} missing")
        if missing_keys:
            raise RateKeyNotFound(missing_keys, result=result)
        return result
