"""Downstream registry RPC client and its SuperJSON codec."""

from . import superjson
from .client import (
    RegistryClient,
    RegistryProjectResult,
    TOKEN_HEADER,
    extract_error_message,
    extract_success_value,
    normalize_project_result,
)

__all__ = [
    "RegistryClient",
    "RegistryProjectResult",
    "TOKEN_HEADER",
    "extract_error_message",
    "extract_success_value",
    "normalize_project_result",
    "superjson",
]
