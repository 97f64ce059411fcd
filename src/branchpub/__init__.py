"""
branchpub - Branch Artifact Publisher

A CLI tool that mirrors a build-artifact folder onto a dedicated git
branch, safely alongside concurrent publishers, and tags releases.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from branchpub.core.publish.models import InvocationContext, PublishRequest, PublishResult

__all__ = ["InvocationContext", "PublishRequest", "PublishResult", "__version__"]
