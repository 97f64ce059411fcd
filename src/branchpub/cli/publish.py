"""
branchpub CLI - Publish command.

Mirror a build-artifact folder onto a branch of the triggering repository
and tag it on tag-triggered runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from branchpub.cli.errors import (
    ExitCode,
    console,
    print_configuration_error,
    print_convergence_error,
    print_error,
    print_git_error,
    print_tag_error,
)
from branchpub.core.config import load_settings
from branchpub.core.git import GitError
from branchpub.core.publish import (
    ConfigurationError,
    InvocationContext,
    PublishConvergenceError,
    PublishRequest,
    PublishService,
    RemoteQueryError,
    TagPublishError,
)


def publish(
    folder: Annotated[
        Path,
        typer.Argument(help="Folder holding the built artifacts"),
    ],
    branch: Annotated[
        str,
        typer.Option("--branch", "-b", help="Branch to publish to"),
    ],
    token: Annotated[
        str,
        typer.Option(
            "--token",
            envvar="BRANCHPUB_TOKEN",
            help="Token with write access to the repository",
            show_default=False,
        ),
    ],
    tag_prefix: Annotated[
        str,
        typer.Option("--tag-prefix", help="Prefix for the release tag (e.g. release/)"),
    ],
    git_user_name: Annotated[
        str | None,
        typer.Option("--git-user-name", help="Committer name"),
    ] = None,
    git_user_email: Annotated[
        str | None,
        typer.Option("--git-user-email", help="Committer email"),
    ] = None,
    keep_scratch: Annotated[
        bool,
        typer.Option("--keep-scratch", help="Keep the scratch checkout for inspection"),
    ] = False,
) -> None:
    """
    Publish a folder to a branch of the current GitHub repository.

    Reads GITHUB_REF, GITHUB_EVENT_NAME, GITHUB_REPOSITORY and RUNNER_TEMP
    from the environment. On tag events the published tip is tagged with
    the tag prefix followed by the triggering tag name.

    Examples:

        # Publish dist/ to the build branch
        branchpub publish dist --branch build --tag-prefix release/

        # Custom committer identity
        branchpub publish dist -b build --tag-prefix release/ --git-user-name bot
    """
    try:
        settings = load_settings()
        if keep_scratch:
            settings = settings.model_copy(update={"keep_scratch": True})

        request = PublishRequest(
            folder=folder,
            token=token,
            branch=branch,
            tag_prefix=tag_prefix,
            git_user_name=git_user_name,
            git_user_email=git_user_email,
        )
        context = InvocationContext.from_env()

        console.print(f"[cyan]Publishing {folder} to branch {branch}...[/cyan]")
        result = PublishService(request, context, settings=settings).publish()

    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        print_configuration_error(f"Invalid publish options: {problems}")
        raise typer.Exit(ExitCode.USER_ERROR)
    except ConfigurationError as e:
        print_configuration_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except PublishConvergenceError as e:
        print_convergence_error(e.branch, e.attempts, e.last_stderr)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except TagPublishError as e:
        print_tag_error(e.tag, e.reason)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except RemoteQueryError as e:
        print_git_error(str(e), e.stderr)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except GitError as e:
        print_git_error(str(e), e.stderr)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except KeyboardInterrupt:
        print_error("Interrupted", reason="The branch may or may not have been updated")
        raise typer.Exit(ExitCode.SIGINT)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] {result.summary()}")
