"""Removal request configuration.

This module provides the request model describing what the removal engine
should do (acting user, dry-run, trash vs. permanent delete, exclusions)
and the I/O function that loads it from a TOML file.

The default request file is stored in ~/.config/slimctl/request.toml
"""

import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slimctl.core.paths import get_request_path


class RemovalRequest(BaseModel):
    """Parameters of one cleanup session.

    The request is owned by the caller. The cleanup session keeps a
    reference and appends discovered trash directories to ``excludes``;
    entries are never removed from it.

    Attributes:
        uid: Numeric id of the user on whose behalf files are removed.
        dry_run: If True, report what would happen without removing anything.
        trash: If True, move targets to the trash instead of deleting them.
        excludes: Ordered path prefixes that must never be touched.
        bundle_blacklist: Bundle identifiers whose bundles must never be touched.
    """

    model_config = ConfigDict(extra="forbid")

    uid: Annotated[int, Field(ge=0, description="Acting user id")]
    dry_run: Annotated[bool, Field(description="Simulate without removing")] = False
    trash: Annotated[bool, Field(description="Move to trash instead of deleting")] = False
    excludes: Annotated[
        list[str],
        Field(default_factory=list, description="Path prefixes that must never be touched"),
    ]
    bundle_blacklist: Annotated[
        set[str],
        Field(default_factory=set, description="Bundle identifiers that must never be touched"),
    ]


class RequestConfigError(Exception):
    """Base exception for removal request errors."""


class RequestNotFoundError(RequestConfigError):
    """Raised when the request file is not found."""


class RequestParseError(RequestConfigError):
    """Raised when the request file cannot be parsed."""


def load_request(path: Path | None = None) -> RemovalRequest:
    """Load a removal request from a TOML file.

    Args:
        path: Path to the request file. If None, uses the default request path.

    Returns:
        Validated RemovalRequest object.

    Raises:
        RequestNotFoundError: If the request file doesn't exist.
        RequestParseError: If the TOML syntax is invalid.
        RequestConfigError: If the content doesn't match the schema.
    """
    request_path = path or get_request_path()

    if not request_path.exists():
        raise RequestNotFoundError(f"Request file not found: {request_path}")

    try:
        with open(request_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise RequestParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise RequestConfigError(f"Failed to read request file: {e}") from e

    try:
        return RemovalRequest.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise RequestConfigError(f"Invalid request content: {e}") from e
