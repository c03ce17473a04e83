"""Foundation modules: exceptions, logging, validation, utilities."""

from .exceptions import (
    APIRequestError,
    ConfigurationError,
    ConnectionError,
    DatasetNotFoundError,
    DatasetRequestError,
    InvalidConfigurationError,
    InvalidCorrelatorError,
    InvalidIdentifierError,
    InvalidPortError,
    JobNotFoundError,
    JobRequestError,
    JobTimeoutError,
    MemberUploadError,
    MissingCredentialsError,
    NetworkError,
    OperationError,
    PDSDirectoryError,
    ProfileError,
    ResourceError,
    ResourceNotFoundError,
    ResponseDecodeError,
    RetryExhaustedError,
    SpoolFileNotFoundError,
    TransportError,
    UploadError,
    ValidationError,
    ZOSMFError,
)
from .logging import (
    AuditLogger,
    JSONFormatter,
    LogContext,
    OperationFilter,
    TextFormatter,
    get_audit_logger,
    get_logger,
    get_trace_id,
    redact_headers,
    set_trace_id,
    setup_logging,
)
from .utils import (
    dataset_path,
    format_correlator,
    is_correlator,
    parse_correlator,
    quote_segment,
    split_member,
)
from .validation import (
    is_valid_dataset_name,
    is_valid_member_name,
    validate_dataset_name,
    validate_member_name,
    validate_port,
    validate_timeout,
    validate_wait_interval,
)

__all__ = [
    # Exceptions
    "ZOSMFError",
    "ConfigurationError",
    "MissingCredentialsError",
    "InvalidConfigurationError",
    "ConnectionError",
    "TransportError",
    "APIRequestError",
    "ResponseDecodeError",
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidCorrelatorError",
    "InvalidPortError",
    "JobRequestError",
    "DatasetRequestError",
    "ProfileError",
    "ResourceError",
    "ResourceNotFoundError",
    "JobNotFoundError",
    "DatasetNotFoundError",
    "SpoolFileNotFoundError",
    "UploadError",
    "MemberUploadError",
    "OperationError",
    "JobTimeoutError",
    "PDSDirectoryError",
    "NetworkError",
    "RetryExhaustedError",
    # Logging
    "AuditLogger",
    "JSONFormatter",
    "LogContext",
    "OperationFilter",
    "TextFormatter",
    "get_audit_logger",
    "get_logger",
    "get_trace_id",
    "redact_headers",
    "set_trace_id",
    "setup_logging",
    # Utils
    "dataset_path",
    "format_correlator",
    "is_correlator",
    "parse_correlator",
    "quote_segment",
    "split_member",
    # Validation
    "is_valid_dataset_name",
    "is_valid_member_name",
    "validate_dataset_name",
    "validate_member_name",
    "validate_port",
    "validate_timeout",
    "validate_wait_interval",
]
