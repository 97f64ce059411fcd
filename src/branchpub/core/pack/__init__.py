"""
Build-output writer around the external bundling engine.
"""

from branchpub.core.pack.models import (
    BundleOutput,
    BundleRequest,
    Diagnostic,
    LineAndColumn,
    PackResult,
)
from branchpub.core.pack.service import (
    BundleEngine,
    BundleEngineError,
    BundleFailedError,
    SubprocessBundleEngine,
    pack,
    write_outputs,
)

__all__ = [
    "BundleEngine",
    "BundleEngineError",
    "BundleFailedError",
    "BundleOutput",
    "BundleRequest",
    "Diagnostic",
    "LineAndColumn",
    "PackResult",
    "SubprocessBundleEngine",
    "pack",
    "write_outputs",
]
