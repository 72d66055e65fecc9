"""Error taxonomy shared by the intake pipeline and its HTTP surface.

Every failure that reaches a caller is an :class:`IntakeError`. Each subclass
carries a machine-readable ``kind`` and the HTTP status the API layer uses when
it renders the error, so routes never have to branch on exception types.
"""

from __future__ import annotations

from typing import Iterable


class IntakeError(Exception):
    """Base class for user-displayable pipeline failures."""

    kind = "intake_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return the JSON error body rendered by the API."""

        return {"error": self.message, "kind": self.kind}


class ConfigurationMissing(IntakeError):
    """A required credential or URL is absent from the environment."""

    kind = "configuration_missing"
    status_code = 500

    def __init__(self, missing: Iterable[str], *, hint: str | None = None) -> None:
        self.missing = list(missing)
        message = f"Missing required environment variables: {', '.join(self.missing)}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class InputInvalid(IntakeError):
    """Malformed request body or schema violation supplied by the caller."""

    kind = "input_invalid"
    status_code = 400


class UpstreamUnavailable(IntakeError):
    """An external provider or the AI capability could not be reached."""

    kind = "upstream_unavailable"
    status_code = 502


class ExtractionFailure(IntakeError):
    """The AI capability answered but produced no usable structured output."""

    kind = "extraction_incomplete"
    status_code = 502


ExtractionIncomplete = ExtractionFailure


class ValidationFailure(IntakeError):
    """A submission payload violates a required-field invariant."""

    kind = "validation_failure"
    status_code = 422

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(reason)
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict[str, str]:
        body = super().to_dict()
        body["field"] = self.field
        return body


class TransportFailure(IntakeError):
    """The registry could not be reached at the network level."""

    kind = "transport_failure"
    status_code = 502


class ProtocolFailure(IntakeError):
    """The registry answered with an error envelope or an undecodable body."""

    kind = "protocol_failure"
    status_code = 502


class RequestCancelled(IntakeError):
    """The caller aborted an in-flight registry call."""

    kind = "cancelled"
    status_code = 499


__all__ = [
    "ConfigurationMissing",
    "ExtractionFailure",
    "ExtractionIncomplete",
    "InputInvalid",
    "IntakeError",
    "ProtocolFailure",
    "RequestCancelled",
    "TransportFailure",
    "UpstreamUnavailable",
    "ValidationFailure",
]
