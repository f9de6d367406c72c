"""
Domain service: assignment of cells to management zones.

Each cell is in exactly one of three states:

    UNASSIGNED -> SELECTED -> ZONED
    ZONED -> UNASSIGNED   (only by deleting the zone)

A cell belongs to at most one zone. Selection is the working set that the
next create_zone() call turns into a zone; the move from selection to zone
happens under a lock so a concurrent caller never sees a half-built zone.
"""
import logging
import threading
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Union

from shapely import STRtree
from shapely.geometry import box

from vrizones.domain.cells import Cell, parse_cells
from vrizones.domain.errors import (
    CellAlreadyZoned,
    DuplicateZoneName,
    EmptySelection,
    InvalidZoneName,
    RegistryError,
    UnknownCell,
    ZoneNotFound,
)
from vrizones.domain.models import (
    BoundingBox,
    CellStyle,
    FeatureId,
    GeoPoint,
    ManagementZone,
    SystemContext,
    TreatmentMetadata,
    ZoneDefinition,
    zone_name_key,
)

logger = logging.getLogger(__name__)


BOUNDARY_STROKE_COLOR = "black"
BOUNDARY_STROKE_WEIGHT = 3
ZONE_FILL_OPACITY = 0.7

SELECTED_STYLE = CellStyle(
    fill_color="blue", stroke_color="blue", stroke_weight=3, fill_opacity=0.7
)
DEFAULT_STYLE = CellStyle(
    fill_color="blue", stroke_color="blue", stroke_weight=1, fill_opacity=0.2
)

Bounds = Union[BoundingBox, tuple]


class CellState(str, Enum):
    UNASSIGNED = "unassigned"
    SELECTED = "selected"
    ZONED = "zoned"


class CellZoneRegistry:
    """
    Cells of one irrigation system and the management zones built from them.

    Cell ids are compared as strings, so a zone stored with feature id "7"
    matches a cell whose GeoJSON id is the integer 7.
    """

    def __init__(self, cells: Iterable[Cell]):
        self._cells: Dict[str, Cell] = {}
        for cell in cells:
            if cell.key in self._cells:
                raise RegistryError(f"Duplicate cell id in collection: {cell.feature_id!r}")
            self._cells[cell.key] = cell

        self._zones: Dict[str, ManagementZone] = {}
        self._assignments: Dict[str, str] = {}
        # dict keeps selection order
        self._selection: Dict[str, None] = {}
        self._lock = threading.RLock()

        self._keys: List[str] = list(self._cells)
        self._tree = STRtree([box(*self._cells[key].bounds) for key in self._keys])
        self._adjacency: Optional[Dict[str, Set[str]]] = None

    @classmethod
    def from_feature_collection(
        cls,
        collection: dict,
        require_stable_ids: bool = False,
    ) -> "CellZoneRegistry":
        """Build a registry from a GeoJSON FeatureCollection."""
        return cls(parse_cells(collection, require_stable_ids=require_stable_ids))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _key(self, cell_id: FeatureId) -> str:
        key = str(cell_id)
        if key not in self._cells:
            raise UnknownCell(cell_id)
        return key

    def cell(self, cell_id: FeatureId) -> Cell:
        return self._cells[self._key(cell_id)]

    @property
    def cells(self) -> List[Cell]:
        return list(self._cells.values())

    def state_of(self, cell_id: FeatureId) -> CellState:
        key = self._key(cell_id)
        if key in self._assignments:
            return CellState.ZONED
        if key in self._selection:
            return CellState.SELECTED
        return CellState.UNASSIGNED

    def zone_for_cell(self, cell_id: FeatureId) -> Optional[ManagementZone]:
        zone_key = self._assignments.get(self._key(cell_id))
        return self._zones[zone_key] if zone_key else None

    def zone(self, name: str) -> ManagementZone:
        try:
            return self._zones[zone_name_key(name)]
        except KeyError:
            raise ZoneNotFound(name) from None

    @property
    def zones(self) -> List[ManagementZone]:
        """Zones sorted by name, the order of the map legend."""
        return sorted(self._zones.values(), key=lambda zone: zone.name.lower())

    @property
    def selected_cells(self) -> List[Cell]:
        return [self._cells[key] for key in self._selection]

    @property
    def unassigned_cells(self) -> List[Cell]:
        return [cell for key, cell in self._cells.items() if key not in self._assignments]

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _conflict(self, key: str) -> Dict[FeatureId, str]:
        zone = self._zones[self._assignments[key]]
        return {self._cells[key].feature_id: zone.name}

    def select_cell(self, cell_id: FeatureId) -> None:
        """
        Add one cell to the selection.

        Raises:
            CellAlreadyZoned: If the cell belongs to a zone
            UnknownCell: If the id is not in the collection
        """
        with self._lock:
            key = self._key(cell_id)
            if key in self._assignments:
                raise CellAlreadyZoned(self._conflict(key))
            self._selection[key] = None

    def deselect_cell(self, cell_id: FeatureId) -> None:
        with self._lock:
            self._selection.pop(self._key(cell_id), None)

    def toggle_cell(self, cell_id: FeatureId) -> bool:
        """Click semantics: flip the selection of a cell. Returns the new state."""
        with self._lock:
            key = self._key(cell_id)
            if key in self._selection:
                del self._selection[key]
                return False
            self.select_cell(cell_id)
            return True

    def clear_selection(self) -> None:
        with self._lock:
            self._selection.clear()

    def cells_in_region(self, bounds: Bounds) -> List[Cell]:
        """Cells whose bounding box intersects (or touches) the region."""
        region = BoundingBox.from_bounds(bounds) if isinstance(bounds, tuple) else bounds
        hits = self._tree.query(box(*region.bounds), predicate="intersects")
        return [self._cells[self._keys[index]] for index in sorted(hits)]

    def select_region(self, bounds: Bounds) -> List[FeatureId]:
        """
        Select every free cell touched by a rectangle.

        Free cells are selected even when some cells in the region are
        zoned; the conflicts are then reported together.

        Returns:
            Feature ids that were newly selected

        Raises:
            CellAlreadyZoned: Listing every zoned cell in the region, with
                the newly selected ids attached as `selected`
        """
        with self._lock:
            conflicts: Dict[FeatureId, str] = {}
            newly_selected: List[FeatureId] = []
            for cell in self.cells_in_region(bounds):
                if cell.key in self._assignments:
                    conflicts.update(self._conflict(cell.key))
                elif cell.key not in self._selection:
                    self._selection[cell.key] = None
                    newly_selected.append(cell.feature_id)

            logger.debug(
                f"Region selection: {len(newly_selected)} selected, {len(conflicts)} conflicts"
            )
            if conflicts:
                raise CellAlreadyZoned(conflicts, selected=newly_selected)
            return newly_selected

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def _check_new_name(self, name: Optional[str]) -> str:
        if name is None or not name.strip():
            raise InvalidZoneName()
        if zone_name_key(name) in self._zones:
            raise DuplicateZoneName(name.strip())
        return name.strip()

    def create_zone(
        self,
        name: str,
        color: str,
        treatment: Optional[TreatmentMetadata] = None,
    ) -> ManagementZone:
        """
        Turn the current selection into a zone and clear the selection.

        Raises:
            InvalidZoneName: If the name is blank
            DuplicateZoneName: If the name is taken (case-insensitive, trimmed)
            EmptySelection: If no cell is selected
        """
        with self._lock:
            name = self._check_new_name(name)
            if not self._selection:
                raise EmptySelection()

            conflicts: Dict[FeatureId, str] = {}
            for key in self._selection:
                if key in self._assignments:
                    conflicts.update(self._conflict(key))
            if conflicts:
                raise CellAlreadyZoned(conflicts)

            zone = ManagementZone(
                name=name,
                color=color,
                cells=[self._cells[key].to_ref() for key in self._selection],
                treatment=treatment or TreatmentMetadata(),
            )
            self._zones[zone.key] = zone
            for key in self._selection:
                self._assignments[key] = zone.key
            self._selection.clear()

        logger.debug(f"Created zone '{zone.name}' with {len(zone.cells)} cells")
        return zone

    def restore_zone(self, definition: Union[ZoneDefinition, ManagementZone]) -> ManagementZone:
        """
        Re-register a zone that already exists in storage.

        Member cells are matched by feature id; they leave the selection.

        Raises:
            UnknownCell: If a member cell is not in the collection
            CellAlreadyZoned: If a member cell already belongs to another zone
        """
        with self._lock:
            name = self._check_new_name(definition.name)
            if not definition.cells:
                raise EmptySelection()
            keys = [self._key(ref.feature_id) for ref in definition.cells]
            conflicts: Dict[FeatureId, str] = {}
            for key in keys:
                if key in self._assignments:
                    conflicts.update(self._conflict(key))
            if conflicts:
                raise CellAlreadyZoned(conflicts)

            zone = ManagementZone(
                name=name,
                color=definition.color,
                cells=[self._cells[key].to_ref() for key in keys],
                treatment=definition.treatment,
            )
            self._zones[zone.key] = zone
            for key in keys:
                self._assignments[key] = zone.key
                self._selection.pop(key, None)
        return zone

    def delete_zone(self, name: str) -> ManagementZone:
        """
        Remove a zone and release its cells to UNASSIGNED.

        Raises:
            ZoneNotFound: If no zone has this name
        """
        with self._lock:
            zone_key = zone_name_key(name)
            zone = self._zones.pop(zone_key, None)
            if zone is None:
                raise ZoneNotFound(name)
            for cell_key in zone.feature_ids:
                self._assignments.pop(cell_key, None)

        logger.debug(f"Deleted zone '{zone.name}', released {len(zone.cells)} cells")
        return zone

    def zone_definition(self, name: str, context: SystemContext) -> ZoneDefinition:
        zone = self.zone(name)
        return ZoneDefinition(
            context=context,
            name=zone.name,
            color=zone.color,
            cells=list(zone.cells),
            treatment=zone.treatment,
        )

    def zone_centroid(self, name: str) -> GeoPoint:
        """Label anchor of a zone: mean of its cells' box centers."""
        zone = self.zone(name)
        centers = [
            BoundingBox.from_bounds(self._cells[key].bounds).center
            for key in zone.feature_ids
        ]
        return GeoPoint(
            latitude=sum(point.latitude for point in centers) / len(centers),
            longitude=sum(point.longitude for point in centers) / len(centers),
        )

    # ------------------------------------------------------------------
    # Boundary detection and styling
    # ------------------------------------------------------------------

    def _neighbours(self) -> Dict[str, Set[str]]:
        """Cells whose bounding boxes share an edge; corner contact does not count."""
        if self._adjacency is None:
            adjacency: Dict[str, Set[str]] = {key: set() for key in self._keys}
            geometries = self._tree.geometries
            for index, geometry in enumerate(geometries):
                for other in self._tree.query(geometry, predicate="intersects"):
                    other = int(other)
                    if other == index:
                        continue
                    if geometry.intersection(geometries[other]).length > 0:
                        adjacency[self._keys[index]].add(self._keys[other])
            self._adjacency = adjacency
        return self._adjacency

    def is_boundary_cell(self, cell_id: FeatureId) -> bool:
        """
        Whether a zoned cell gets the heavy boundary stroke.

        A cell is on the boundary when an edge neighbour is unassigned or in
        another zone, or when it has fewer same-zone neighbours than its zone
        has cells. A cell is never its own neighbour, so the second clause
        marks every zoned cell; adjacency is judged on bounding boxes only.
        """
        key = self._key(cell_id)
        zone_key = self._assignments.get(key)
        if zone_key is None:
            return False

        neighbours = self._neighbours()[key]
        if any(self._assignments.get(other) != zone_key for other in neighbours):
            return True
        same_zone = len(neighbours)
        return same_zone < len(self._zones[zone_key].cells)

    def style_for_cell(self, cell_id: FeatureId) -> CellStyle:
        key = self._key(cell_id)
        zone_key = self._assignments.get(key)
        if zone_key is not None:
            zone = self._zones[zone_key]
            if self.is_boundary_cell(cell_id):
                return CellStyle(
                    fill_color=zone.color,
                    stroke_color=BOUNDARY_STROKE_COLOR,
                    stroke_weight=BOUNDARY_STROKE_WEIGHT,
                    fill_opacity=ZONE_FILL_OPACITY,
                )
            return CellStyle(
                fill_color=zone.color,
                stroke_color=zone.color,
                stroke_weight=1,
                fill_opacity=ZONE_FILL_OPACITY,
            )
        if key in self._selection:
            return SELECTED_STYLE
        return DEFAULT_STYLE

    def styles(self) -> Dict[str, CellStyle]:
        """Style of every cell keyed by feature id (as a string)."""
        return {key: self.style_for_cell(key) for key in self._keys}
