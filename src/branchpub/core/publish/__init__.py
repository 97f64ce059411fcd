"""
Branch publish workflow.

Mirrors a locally built artifact directory onto a dedicated branch of a
remote git repository, retrying against concurrent publishers, and tags
the result on tag-triggered runs.

Example:
    >>> from branchpub.core.publish import InvocationContext, PublishRequest, PublishService
    >>> request = PublishRequest(folder=Path("dist"), token="...", branch="build",
    ...                          tag_prefix="release/")
    >>> result = PublishService(request, InvocationContext.from_env()).publish()
    >>> print(result.summary())
"""

from branchpub.core.publish.errors import (
    ConfigurationError,
    PublishConvergenceError,
    PublishError,
    RemoteQueryError,
    TagPublishError,
)
from branchpub.core.publish.models import (
    EventKind,
    InvocationContext,
    PublishAttempt,
    PublishRequest,
    PublishResult,
    PushOutcome,
    RemoteBranchState,
    SourceRevision,
)
from branchpub.core.publish.service import PublishService

__all__ = [
    "PublishService",
    "PublishRequest",
    "InvocationContext",
    "EventKind",
    "RemoteBranchState",
    "PushOutcome",
    "PublishAttempt",
    "PublishResult",
    "SourceRevision",
    "PublishError",
    "ConfigurationError",
    "RemoteQueryError",
    "PublishConvergenceError",
    "TagPublishError",
]
