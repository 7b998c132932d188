"""Custom exception hierarchy for the podlens tool server."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed tool invocation, as reported to the caller."""

    VALIDATION_ERROR = "ValidationError"
    UNKNOWN_TOOL = "UnknownToolError"
    PROVIDER_ERROR = "ProviderError"
    HANDLER_ERROR = "HandlerError"
    TIMEOUT = "Timeout"


class PodlensError(Exception):
    """Base exception for podlens-level issues."""


class ConfigurationError(PodlensError):
    """Raised when configuration is invalid or missing."""


class PodlensToolError(PodlensError):
    """Failure that the dispatcher reports back to the caller as an error result."""

    kind: ErrorKind = ErrorKind.HANDLER_ERROR


class ValidationError(PodlensToolError):
    """Raised when a tool argument is missing or of the wrong kind."""

    kind = ErrorKind.VALIDATION_ERROR


class UnknownToolError(PodlensToolError):
    """Raised when no tool is registered under the requested name."""

    kind = ErrorKind.UNKNOWN_TOOL


class DuplicateToolError(PodlensToolError):
    """Raised when a tool name is registered twice."""


class RegistryClosedError(PodlensToolError):
    """Raised when registering into a sealed registry."""


class ProviderError(PodlensToolError):
    """Raised when the cluster API could not return workload status."""

    kind = ErrorKind.PROVIDER_ERROR


class WorkloadNotFoundError(ProviderError):
    """The requested pod does not exist."""


class AccessForbiddenError(ProviderError):
    """The configured credentials may not read the requested pod."""


class ClusterUnavailableError(ProviderError):
    """The cluster API could not be reached or answered with an error."""


class DispatchTimeoutError(PodlensToolError):
    """Raised when a handler exceeds its deadline."""

    kind = ErrorKind.TIMEOUT
