"""
Invocation-time checks that run before anything touches the remote.
"""

from __future__ import annotations

from branchpub.core.publish.errors import ConfigurationError
from branchpub.core.publish.models import InvocationContext, PublishRequest


def check_tag_prefix(context: InvocationContext, request: PublishRequest) -> None:
    """
    Refuse to run on a tag that already carries the release prefix.

    A release tag pushed by a previous publish must never re-enter the
    pipeline, otherwise every release would trigger another one.
    """
    if not context.is_tag_event:
        return

    ref_tag = context.ref_tag
    if ref_tag.startswith(request.tag_prefix):
        raise ConfigurationError(
            f"Tag '{ref_tag}' starts with the tag prefix '{request.tag_prefix}'. "
            "You probably have your workflow configured incorrectly as this step "
            "shouldn't run on tags with the tag prefix."
        )


def check_branch(current_branch: str, request: PublishRequest) -> None:
    """Refuse to publish over the branch the workflow itself runs from."""
    if current_branch == request.branch:
        raise ConfigurationError(
            f"The current branch ({current_branch}) was the same as the output "
            f"branch ({request.branch}). Perhaps you're accidentally copying the "
            "workflow file to the output branch?"
        )


def check_preflight(
    context: InvocationContext,
    request: PublishRequest,
    current_branch: str,
) -> None:
    """
    Validate a publish before any mutation.

    Args:
        context: Invocation context from the environment
        request: The publish request
        current_branch: Branch checked out in the invoking working tree

    Raises:
        ConfigurationError: On a tag-prefix or same-branch collision
    """
    check_tag_prefix(context, request)
    check_branch(current_branch, request)
