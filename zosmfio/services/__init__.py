"""z/OSMF services module.

Each service covers one z/OSMF REST area and shares a ZOSMFConnection.

Services:
    ZOSMFConnection: Session state and HTTP management
    JobService: Job submission, lookup, polling, spool output and control
    DatasetService: Dataset and PDS member CRUD and content transfer

Usage:
    from zosmfio.services import ZOSMFConnection, JobService, DatasetService

    conn = ZOSMFConnection.from_profile(profile)
    jobs = JobService(conn)
    datasets = DatasetService(conn)

    response = jobs.submit_job_statement(jcl)
    datasets.upload_text_to_member("IBMUSER.JCL", "HELLO", jcl)
"""

from .base import ZOSMFConnection, build_base_url, build_default_headers, create_session_direct
from .datasets import (
    DatasetService,
    is_transient_pds_error,
    validate_create_dataset_request,
    validate_download_request,
    validate_upload_request,
)
from .jobs import (
    JobService,
    create_job_with_step,
    create_simple_job_statement,
    is_job_complete,
    validate_job_request,
)

__all__ = [
    "ZOSMFConnection",
    "build_base_url",
    "build_default_headers",
    "create_session_direct",
    "JobService",
    "DatasetService",
    "is_job_complete",
    "is_transient_pds_error",
    "create_simple_job_statement",
    "create_job_with_step",
    "validate_job_request",
    "validate_create_dataset_request",
    "validate_upload_request",
    "validate_download_request",
]
