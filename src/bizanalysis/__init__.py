"""bizanalysis - client-side pipeline for BCG and SWOT strategic analyses."""

from .bcg.diff import DiffRecord, diff
from .bcg.importer import ImportResult, ImportStatus, import_and_compute
from .bcg.quadrant import Quadrant, classify
from .swot.merge import merge
from .version import __version__

__all__ = [
    "DiffRecord",
    "ImportResult",
    "ImportStatus",
    "Quadrant",
    "classify",
    "diff",
    "import_and_compute",
    "merge",
    "__version__",
]
