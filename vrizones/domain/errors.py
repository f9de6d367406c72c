"""
Domain error taxonomy.

Every error raised by the geometry, sprinkler-zone, registry and
prescription code derives from VRIZoneError, which is a ValueError so
callers that only care about "bad input" can catch the builtin.
"""
from typing import Any, Optional


class VRIZoneError(ValueError):
    """Base class for all recoverable domain errors."""
    pass


# ============================================================
# Geometry
# ============================================================

class InvalidGeometry(VRIZoneError):
    """Bad numeric input to a geometry routine."""
    pass


# ============================================================
# Sprinkler zone chain
# ============================================================

class ZoneChainError(VRIZoneError):
    """Sprinkler-zone configuration is inconsistent."""

    def __init__(self, message: str, zone_index: Optional[int] = None):
        super().__init__(message)
        self.zone_index = zone_index


class NonPositiveBound(ZoneChainError):
    pass


class BoundExceedsEnvelope(ZoneChainError):
    pass


class Discontinuous(ZoneChainError):
    pass


class InvertedBounds(ZoneChainError):
    pass


class InvalidZoneCount(ZoneChainError):
    pass


class LockedBound(ZoneChainError):
    pass


# ============================================================
# Cell / management zone registry
# ============================================================

class RegistryError(VRIZoneError):
    """Conflict or lookup failure in the cell/zone registry."""
    pass


class CellAlreadyZoned(RegistryError):
    """
    One or more cells already belong to a management zone.

    Attributes:
        conflicts: Mapping of feature id to the name of the owning zone
        selected: Feature ids that were selected anyway (batch selection)
    """

    def __init__(self, conflicts: dict[Any, str], selected: Optional[list[Any]] = None):
        self.conflicts = dict(conflicts)
        self.selected = list(selected or [])
        ids = ", ".join(str(cell_id) for cell_id in self.conflicts)
        if len(self.conflicts) == 1:
            cell_id, zone_name = next(iter(self.conflicts.items()))
            message = f"Cell {cell_id} is already part of zone {zone_name}"
        else:
            message = f"Cells {ids} are already part of a zone"
        super().__init__(message)


class DuplicateZoneName(RegistryError):
    def __init__(self, name: str):
        super().__init__(f"Management zone name must be unique: {name!r}")
        self.name = name


class EmptySelection(RegistryError):
    def __init__(self):
        super().__init__("At least one unassigned cell must be selected to create a zone")


class InvalidZoneName(RegistryError):
    def __init__(self):
        super().__init__("Management zone name is required")


class ZoneNotFound(RegistryError):
    def __init__(self, name: str):
        super().__init__(f"Management zone not found: {name!r}")
        self.name = name


class UnknownCell(RegistryError):
    def __init__(self, cell_id: Any):
        super().__init__(f"Cell not found in collection: {cell_id!r}")
        self.cell_id = cell_id


class UnstableCellId(RegistryError):
    def __init__(self, index: int):
        super().__init__(
            f"Feature at position {index} has no explicit id; positional ids are not stable"
        )
        self.index = index


# ============================================================
# Prescriptions
# ============================================================

class PrescriptionError(VRIZoneError):
    """Rate document could not be read, merged or edited."""
    pass


class InvalidRateDocument(PrescriptionError):
    pass


class InvalidRate(PrescriptionError):
    pass


class RateKeyNotFound(PrescriptionError):
    """
    Some composite keys of a rate update do not exist in the document.

    Attributes:
        missing_keys: Every key that could not be updated
        result: The partially applied update (found keys were written)
    """

    def __init__(self, missing_keys: list[str], result: Any = None):
        self.missing_keys = list(missing_keys)
        self.result = result
        super().__init__(
            f"Rate entries not found in document: {', '.join(self.missing_keys)}"
        )


# ============================================================
# Units
# ============================================================

class ConversionError(VRIZoneError):
    """Raised when a unit conversion cannot be performed."""
    pass
