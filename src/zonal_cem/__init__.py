"""Multi-zone capacity expansion model over representative periods."""

from .core.catalog import (
    Catalog,
    DemandProfile,
    DemandSegment,
    Fuel,
    Network,
    PeriodStructure,
    Resource,
    TransmissionLine,
)
from .core.cem import CapacityExpansionModel, ModelSettings, build_and_solve
from .core.exceptions import CEMError, PeriodError, SchemaError, SolverUnavailableError
from .core.results import CaseResults
from .core.solver import SolveStatus

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "CapacityExpansionModel",
    "CaseResults",
    "CEMError",
    "DemandProfile",
    "DemandSegment",
    "Fuel",
    "ModelSettings",
    "Network",
    "PeriodError",
    "PeriodStructure",
    "Resource",
    "SchemaError",
    "SolveStatus",
    "SolverUnavailableError",
    "TransmissionLine",
    "build_and_solve",
]
