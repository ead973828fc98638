"""Schemas for untrusted upstream payloads.

Each schema lists its required and optional fields explicitly. Fields use
pydantic's strict types so that a number never passes for a string (or the
other way around). Unknown extra fields are ignored.

Usage:
    ```python
    from portfolio_activity.schemas import GitHubUserPayload, validate

    user = validate(response_json, GitHubUserPayload)
    ```
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from portfolio_activity.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamPayload(BaseModel):
    """Base for upstream schemas: ignore fields we do not read."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class GitHubUserPayload(UpstreamPayload):
    """Subset of ``GET /users/{username}``."""

    login: StrictStr
    avatar_url: StrictStr
    name: StrictStr | None = None
    location: StrictStr | None = None
    public_repos: StrictInt | None = None
    followers: StrictInt | None = None


class GitHubRepoPayload(UpstreamPayload):
    """Subset of ``GET /repos/{owner}/{repo}``."""

    id: StrictInt
    name: StrictStr
    full_name: StrictStr
    description: StrictStr | None
    language: StrictStr | None
    stargazers_count: StrictInt
    forks_count: StrictInt
    html_url: StrictStr
    updated_at: StrictStr
    topics: list[StrictStr] = Field(default_factory=list)
    private: StrictBool = False


class LanguagePayload(UpstreamPayload):
    """One language row of a Wakapi/WakaTime stats response."""

    name: StrictStr
    percent: StrictInt | StrictFloat
    text: StrictStr
    total_seconds: StrictInt | StrictFloat | None = None
    digital: StrictStr | None = None


class CodingStatsData(UpstreamPayload):
    """The ``data`` object of a stats response."""

    languages: list[LanguagePayload]
    human_readable_total: StrictStr | None = None
    human_readable_total_including_other_language: StrictStr | None = None


class CodingStatsPayload(UpstreamPayload):
    """``GET /api/v1/users/{user}/stats/{range}`` envelope."""

    data: CodingStatsData


def _location(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def validate(raw: Any, schema: type[ModelT]) -> ModelT:
    """Validate untrusted data against a schema.

    Validation is all-or-nothing: either a complete model is returned or
    nothing is.

    Args:
        raw: Arbitrary JSON-like data
        schema: The payload model class to validate against

    Returns:
        A validated, immutable model instance

    Raises:
        ValidationError: With the path of the first violating field
    """
    try:
        return schema.model_validate(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        path = _location(first["loc"])
        raise ValidationError(
            f"{schema.__name__} mismatch at {path or '<root>'}: {first['msg']}",
            path=path,
        ) from e
