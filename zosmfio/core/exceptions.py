"""Custom exception hierarchy for zosmfio.

Every failure the library reports is a ZOSMFError subclass. HTTP failures keep
the status code and raw response body so callers can tell 401/403/404/409
apart without the library guessing at what the status means.
"""

from __future__ import annotations

from typing import Any, Optional


class ZOSMFError(Exception):
    """Base exception for all zosmfio errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        operation: The operation that was being performed when the error occurred.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        operation: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.operation = operation
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.insert(0, f"[{self.operation}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ZOSMFError):
    """Error in configuration or environment setup."""

    pass


class MissingCredentialsError(ConfigurationError):
    """Required connection settings are missing."""

    def __init__(self, missing_vars: list[str]) -> None:
        self.missing_vars = missing_vars
        super().__init__(
            f"Missing required settings: {', '.join(missing_vars)}",
            details={"missing": missing_vars},
            operation="configuration",
        )


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid configuration for '{field}': {reason}",
            details={"field": field, "value": str(value)[:100]},
            operation="configuration",
        )


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(ZOSMFError):
    """Error talking to the z/OSMF server."""

    pass


class TransportError(ConnectionError):
    """The HTTP request never produced a response (refused, TLS, timeout)."""

    def __init__(self, method: str, url: str, cause: Exception) -> None:
        self.method = method
        self.url = url
        self.cause = cause
        super().__init__(
            f"Failed to make request: {cause}",
            details={"method": method, "url": url},
            operation="request",
        )


# =============================================================================
# HTTP Errors
# =============================================================================


class APIRequestError(ZOSMFError):
    """z/OSMF answered with a status the operation does not accept.

    The body is kept verbatim; no meaning is assigned to the status code.
    """

    def __init__(
        self,
        status_code: int,
        body: str,
        *,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        super().__init__(f"API request failed with status {status_code}: {body}")


class ResponseDecodeError(ZOSMFError):
    """Response body could not be decoded into the expected structure."""

    def __init__(self, body: str, reason: str) -> None:
        self.body = body
        super().__init__(
            f"Failed to decode response: {reason}",
            details={"body": body[:200]},
            operation="decode",
        )


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ZOSMFError):
    """Input validation failed."""

    pass


class InvalidIdentifierError(ValidationError):
    """Dataset, member, or job identifier is invalid."""

    def __init__(self, identifier_type: str, value: str, reason: str) -> None:
        self.identifier_type = identifier_type
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid {identifier_type}: '{value}' - {reason}",
            details={"type": identifier_type, "value": value},
            operation="validation",
        )


class InvalidCorrelatorError(ValidationError):
    """Job correlator is not in jobname:jobid form."""

    def __init__(self, correlator: str) -> None:
        self.correlator = correlator
        super().__init__(
            f"correlator must be in format 'jobname:jobid', got: {correlator}",
            operation="validation",
        )


class InvalidPortError(ValidationError):
    """Port number is out of valid range."""

    def __init__(self, port: Any) -> None:
        self.port = port
        super().__init__(
            f"Invalid port number: {port} (must be 1-65535)",
            details={"port": str(port)},
            operation="validation",
        )


class JobRequestError(ValidationError):
    """Job submission request is malformed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason, operation="submit_job")


class DatasetRequestError(ValidationError):
    """Dataset create/upload/download request is malformed."""

    def __init__(self, reason: str, *, dataset: Optional[str] = None) -> None:
        self.reason = reason
        self.dataset = dataset
        details = {"dataset": dataset} if dataset else None
        super().__init__(reason, details=details, operation="dataset_request")


class ProfileError(ValidationError):
    """Profile is missing a required connection field."""

    def __init__(self, reason: str, *, profile: Optional[str] = None) -> None:
        self.reason = reason
        details = {"profile": profile} if profile else None
        super().__init__(reason, details=details, operation="profile")


# =============================================================================
# Resource Errors
# =============================================================================


class ResourceError(ZOSMFError):
    """Error with a z/OS resource (job, spool file, dataset, member)."""

    pass


class ResourceNotFoundError(ResourceError):
    """Requested resource does not exist."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(
            f"{resource_type} not found: {identifier}",
            details={"type": resource_type, "id": identifier},
            operation="lookup",
        )


class JobNotFoundError(ResourceNotFoundError):
    """No job matched the given id or correlator."""

    def __init__(self, job_ref: str) -> None:
        super().__init__("job", job_ref)


class DatasetNotFoundError(ResourceNotFoundError):
    """No dataset matched the given name."""

    def __init__(self, name: str) -> None:
        super().__init__("dataset", name)


class SpoolFileNotFoundError(ResourceNotFoundError):
    """The job has no spool file with the given DD name."""

    def __init__(self, ddname: str, job_ref: str) -> None:
        self.ddname = ddname
        self.job_ref = job_ref
        super().__init__("DD", f"{ddname} (job {job_ref})")


# =============================================================================
# Upload Errors
# =============================================================================


class UploadError(ZOSMFError):
    """Error during content upload."""

    pass


class MemberUploadError(UploadError):
    """Uploading a PDS member failed."""

    def __init__(
        self,
        dataset: str,
        member: str,
        reason: str,
        *,
        cause: Optional[Exception] = None,
    ) -> None:
        self.dataset = dataset
        self.member = member
        self.cause = cause
        super().__init__(
            reason,
            details={"dataset": dataset, "member": member},
            operation="member_upload",
        )


# =============================================================================
# Operation Errors
# =============================================================================


class OperationError(ZOSMFError):
    """Error during a multi-step z/OSMF operation."""

    pass


class JobTimeoutError(OperationError):
    """Job did not reach a completed status before the deadline."""

    def __init__(self, job_ref: str, timeout_seconds: float) -> None:
        self.job_ref = job_ref
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"timeout waiting for job {job_ref} to complete",
            details={"timeout_seconds": timeout_seconds},
            operation="wait_for_job",
        )


class PDSDirectoryError(OperationError):
    """Partitioned dataset directory is unusable or the dataset is not a PDS."""

    def __init__(self, dataset: str, reason: str) -> None:
        self.dataset = dataset
        super().__init__(
            reason,
            details={"dataset": dataset},
            operation="pds_directory",
        )


# =============================================================================
# Network Errors
# =============================================================================


class NetworkError(ZOSMFError):
    """Network-related error that outlived local recovery."""

    pass


class RetryExhaustedError(NetworkError):
    """All retry attempts failed.

    ``guidance`` carries a repair hint for the last error when one is known.
    """

    def __init__(
        self,
        operation: str,
        attempts: int,
        last_error: Optional[Exception] = None,
        *,
        guidance: Optional[str] = None,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.guidance = guidance
        msg = f"Failed after {attempts} attempts"
        if guidance:
            msg += f": {guidance}"
        elif last_error:
            msg += f": {last_error}"
        super().__init__(
            msg,
            details={"attempts": attempts},
            operation=operation,
        )
