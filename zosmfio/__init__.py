"""zosmfio - Python client for z/OSMF REST services.

This package wraps the z/OSMF jobs and files REST APIs: batch job submission
and monitoring, spool output retrieval, dataset allocation and PDS member
transfer.

Architecture:
    zosmfio/
    ├── core/           # Foundation modules (exceptions, logging, validation, utils)
    ├── services/       # ZOSMFConnection, JobService, DatasetService
    ├── models.py       # Job and dataset records
    ├── client.py       # Facade (ZOSMFClient)
    └── config.py       # Profiles and environment configuration

ZOSMFClient owns one connection and exposes ``.jobs`` and ``.datasets``.
The services can also be built directly on a ZOSMFConnection.
"""

__version__ = "0.1.0"
__description__ = "Python client for z/OSMF job and dataset REST services"

from .client import ZOSMFClient
from .config import (
    ZOSMFConfig,
    ZOSMFProfile,
    clone_profile,
    create_profile,
    load_config,
    profile_from_config,
    validate_profile,
)

# Core modules: exceptions, logging, validation, utilities
from .core import (
    APIRequestError,
    ConfigurationError,
    ConnectionError,
    JobNotFoundError,
    JobTimeoutError,
    LogContext,
    NetworkError,
    OperationError,
    ResourceError,
    RetryExhaustedError,
    UploadError,
    ValidationError,
    ZOSMFError,
    get_audit_logger,
    get_logger,
    is_valid_dataset_name,
    is_valid_member_name,
    parse_correlator,
    setup_logging,
    validate_dataset_name,
    validate_member_name,
)
from .models import (
    CreateDatasetRequest,
    Dataset,
    DatasetFilter,
    DatasetList,
    DatasetMember,
    DownloadRequest,
    Job,
    JobFilter,
    JobInfo,
    JobList,
    MemberList,
    Space,
    SpoolFile,
    SubmitJobRequest,
    SubmitJobResponse,
    UploadRequest,
    default_space,
    large_space,
    small_space,
)
from .services import (
    DatasetService,
    JobService,
    ZOSMFConnection,
    create_job_with_step,
    create_session_direct,
    create_simple_job_statement,
    is_job_complete,
    validate_create_dataset_request,
    validate_download_request,
    validate_job_request,
    validate_upload_request,
)

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "ZOSMFConfig",
    "ZOSMFProfile",
    "load_config",
    "profile_from_config",
    "create_profile",
    "validate_profile",
    "clone_profile",
    # Client
    "ZOSMFClient",
    # Services
    "ZOSMFConnection",
    "create_session_direct",
    "JobService",
    "DatasetService",
    # Models
    "Job",
    "JobInfo",
    "JobList",
    "JobFilter",
    "SpoolFile",
    "SubmitJobRequest",
    "SubmitJobResponse",
    "Dataset",
    "DatasetList",
    "DatasetMember",
    "MemberList",
    "DatasetFilter",
    "CreateDatasetRequest",
    "UploadRequest",
    "DownloadRequest",
    "Space",
    "default_space",
    "large_space",
    "small_space",
    # Helpers
    "is_job_complete",
    "create_simple_job_statement",
    "create_job_with_step",
    "validate_job_request",
    "validate_create_dataset_request",
    "validate_upload_request",
    "validate_download_request",
    # Exceptions
    "ZOSMFError",
    "ConfigurationError",
    "ConnectionError",
    "APIRequestError",
    "ValidationError",
    "ResourceError",
    "JobNotFoundError",
    "UploadError",
    "OperationError",
    "JobTimeoutError",
    "NetworkError",
    "RetryExhaustedError",
    # Logging
    "setup_logging",
    "get_logger",
    "LogContext",
    "get_audit_logger",
    # Validation
    "validate_dataset_name",
    "validate_member_name",
    "is_valid_dataset_name",
    "is_valid_member_name",
    "parse_correlator",
]
