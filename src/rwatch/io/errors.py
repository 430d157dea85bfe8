"""
Custom exceptions for the rwatch.io module.

Purpose
- Provide network/config specific error types that map cleanly to responsibilities in rwatch.io.
- Keep rwatch.core as the source of truth for record validation errors (see rwatch.core.errors).

Source of truth and boundaries
- rwatch.core.errors.RecordValidationFailure is raised by the coercion boundary.
- rwatch.io raises Upstream* errors for HTTP concerns and ApiConfigError for settings:
  - UpstreamUnavailable: transport failure or non-success HTTP status.
  - MalformedResponse: body is not JSON or lacks an array-shaped ``data`` field.
  - PerIdFetchFailure: a follow-up request scoped to one AVS failed (recovered locally).
  - ApiConfigError: invalid or unusable settings.

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations


class UpstreamError(Exception):
    """
    Base class for upstream API failures in rwatch.io.

    Notes:
        Use this as a catch-all for request-level failures, distinct from rwatch.core errors.
    """


class UpstreamUnavailable(UpstreamError):
    """
    Raised on a transport-level failure or a non-success HTTP status.

    Attributes:
        status_code (int | None): HTTP status when a response was received, else None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(UpstreamError):
    """
    Raised when a response body lacks the expected array-shaped ``data`` field.
    """


class PerIdFetchFailure(UpstreamError):
    """
    Failure of one follow-up request scoped to a single AVS id.

    Notes:
        The fetcher records and logs these and continues with the next id; they are never
        surfaced to callers as exceptions.
    """

    def __init__(self, avs: str, cause: BaseException) -> None:
        super().__init__(f"follow-up fetch for {avs} failed: {cause}")
        self.avs = avs
        self.cause = cause


class ApiConfigError(ValueError):
    """
    Raised when API settings are invalid or unusable.

    Examples:
        - Empty base URL
        - max_concurrency < 1
    """
