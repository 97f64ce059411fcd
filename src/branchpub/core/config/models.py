"""
Configuration data models for branchpub.

These models define the structure of .branchpub.json and
~/.config/branchpub/config.json files, with validation via Pydantic.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PublishSettings(BaseModel):
    """
    Tunables for the publish workflow.

    Retries use a fixed delay with no backoff.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(
        default=5,
        ge=1,
        description="Maximum push attempts before giving up",
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Seconds to wait between push attempts",
    )
    remote_base_url: str = Field(
        default="https://github.com/",
        description="Base URL the repository identifier is appended to",
    )
    default_user_name: str = Field(
        default="github-actions",
        description="Committer name when the request does not override it",
    )
    default_user_email: str = Field(
        default="github-actions@github.com",
        description="Committer email when the request does not override it",
    )
    scratch_prefix: str = Field(
        default="branchpub-",
        description="Prefix for the per-invocation scratch directory",
    )
    keep_scratch: bool = Field(
        default=False,
        description="Leave the scratch checkout on disk after publishing",
    )

    @field_validator("remote_base_url")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else f"{v}/"

    def remote_url(self, repository: str) -> str:
        """Build the clone URL for an ``owner/name`` repository identifier."""
        return f"{self.remote_base_url}{repository}/"
