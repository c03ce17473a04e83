"""Job management service.

This module handles operations on ``/restjobs/jobs``:
- Job submission from inline JCL, datasets and z/OS UNIX files
- Job lookup by id, correlator or name/id pair, and filtered listing
- Completion polling with timeout
- Spool file listing and retrieval
- Cancel, purge and delete
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core import (
    JobNotFoundError,
    JobRequestError,
    JobTimeoutError,
    LogContext,
    ResponseDecodeError,
    SpoolFileNotFoundError,
    ZOSMFError,
    format_correlator,
    get_audit_logger,
    get_logger,
    is_correlator,
    is_valid_dataset_name,
    parse_correlator,
    quote_segment,
    split_member,
    validate_wait_interval,
)
from ..models import (
    Job,
    JobFilter,
    JobInfo,
    JobList,
    SpoolFile,
    SubmitJobRequest,
    SubmitJobResponse,
)
from .base import ZOSMFConnection

JOBS_PATH = "/restjobs/jobs"

# Substrings of a job status that mean the job has finished
COMPLETED_STATUSES = (
    "OUTPUT",
    "CC 0000",
    "CC 0001",
    "CC 0002",
    "CC 0003",
    "CC 0004",
    "ABEND",
)

DEFAULT_WAIT_TIMEOUT = 300.0  # seconds
DEFAULT_POLL_INTERVAL = 5.0  # seconds
LOOKUP_MAX_JOBS = 100


def is_job_complete(status: str) -> bool:
    """True if the status contains any completed marker (case-insensitive)."""
    status = status.upper()
    return any(marker in status for marker in COMPLETED_STATUSES)


class JobService:
    """Service for z/OS batch jobs.

    Handles:
    - Submission (inline JCL, dataset, z/OS UNIX file)
    - Listing and lookup
    - Completion polling
    - Spool output retrieval
    - Job control (cancel, purge, delete)
    """

    def __init__(self, connection: ZOSMFConnection) -> None:
        """Initialize job service.

        Args:
            connection: z/OSMF connection instance.
        """
        self.conn = connection
        self.log = get_logger(__name__)
        self._audit = get_audit_logger()

    # =========================================================================
    # Listing and Lookup
    # =========================================================================

    def list_jobs(self, job_filter: Optional[JobFilter] = None) -> JobList:
        """List jobs matching a filter.

        z/OSMF answers either ``{"jobs": [...]}`` or a bare array; both are
        accepted and give the same result.

        Raises:
            ResponseDecodeError: If the body matches neither shape.
        """
        params = job_filter.to_params() if job_filter else None
        response = self.conn.get(JOBS_PATH, params=params, ok_statuses=(200,))
        data = self.conn.decode_json(response)

        if isinstance(data, dict) and (isinstance(data.get("jobs"), list) or not data):
            return JobList(jobs=[Job.from_dict(j) for j in data.get("jobs") or []])
        if isinstance(data, list):
            return JobList(jobs=[Job.from_dict(j) for j in data])
        raise ResponseDecodeError(
            self.conn.decode_text(response), "expected a job array or {\"jobs\": [...]}"
        )

    def get_jobs_by_owner(self, owner: str, max_jobs: int = 0) -> JobList:
        return self.list_jobs(JobFilter(owner=owner, max_jobs=max_jobs))

    def get_jobs_by_prefix(self, prefix: str, max_jobs: int = 0) -> JobList:
        return self.list_jobs(JobFilter(prefix=prefix, max_jobs=max_jobs))

    def get_jobs_by_status(self, status: str, max_jobs: int = 0) -> JobList:
        return self.list_jobs(JobFilter(status=status, max_jobs=max_jobs))

    def get_job(self, job_ref: str) -> Job:
        """Look up a job by correlator (``name:id``) or bare job id.

        A bare id is resolved through a listing filtered on that id, then the
        matching job is fetched by name and id.

        Raises:
            InvalidCorrelatorError: If the reference has more than one colon.
            JobNotFoundError: If no listed job carries the id.
        """
        job_name, job_id = self._resolve_job_ref(job_ref)
        return self.get_job_by_name_id(job_name, job_id)

    def get_job_by_name_id(self, job_name: str, job_id: str) -> Job:
        path = f"{JOBS_PATH}/{quote_segment(job_name)}/{quote_segment(job_id)}"
        response = self.conn.get(path, ok_statuses=(200,))
        return Job.from_dict(self.conn.decode_json(response))

    def get_job_by_correlator(self, correlator: str) -> Job:
        """Fetch ``/restjobs/jobs/{correlator}``, passing the correlator through as-is."""
        response = self.conn.get(f"{JOBS_PATH}/{quote_segment(correlator)}", ok_statuses=(200,))
        return Job.from_dict(self.conn.decode_json(response))

    def get_job_info(self, correlator: str) -> JobInfo:
        """Detailed job record for a ``name:id`` correlator."""
        job_name, job_id = parse_correlator(correlator)
        path = f"{JOBS_PATH}/{quote_segment(job_name)}/{quote_segment(job_id)}/files"
        response = self.conn.get(path, ok_statuses=(200,))
        data = self.conn.decode_json(response)
        # The files endpoint answers with an array; fall back to the job itself.
        if isinstance(data, dict):
            return JobInfo.from_dict(data)
        job = self.get_job_by_name_id(job_name, job_id)
        return JobInfo(**vars(job))

    def get_job_status(self, job_ref: str) -> str:
        return self.get_job(job_ref).status

    def _resolve_job_ref(self, job_ref: str) -> Tuple[str, str]:
        if is_correlator(job_ref):
            return parse_correlator(job_ref)

        jobs = self.list_jobs(JobFilter(jobid=job_ref, max_jobs=LOOKUP_MAX_JOBS))
        for job in jobs:
            if job.jobid == job_ref:
                return job.jobname, job.jobid
        raise JobNotFoundError(job_ref)

    # =========================================================================
    # Submission
    # =========================================================================

    def submit_job(self, request: SubmitJobRequest) -> SubmitJobResponse:
        """Submit a job from exactly one source.

        Inline JCL goes as a ``text/plain`` body. Dataset and z/OS UNIX file
        sources go as JSON with a ``file`` key.

        Raises:
            JobRequestError: If zero or several sources are set.
            APIRequestError: If z/OSMF does not answer 200, 201 or 202.
        """
        source = _single_source(request)

        kwargs: Dict[str, Any]
        if source == "job_statement":
            kwargs = {
                "data": request.job_statement.encode("utf-8"),
                "headers": {"Content-Type": "text/plain"},
            }
            target = "inline JCL"
        elif source == "job_dataset":
            dataset = request.job_dataset
            if not dataset.startswith("//"):
                dataset = "//" + dataset
            body = {"file": dataset}
            if request.volume:
                body["volume"] = request.volume
            kwargs = {"json": body}
            target = dataset
        else:
            body = {"file": request.job_local_file}
            if request.directory:
                body["directory"] = request.directory
            if request.extension:
                body["extension"] = request.extension
            kwargs = {"json": body}
            target = request.job_local_file

        with LogContext(
            "submit_job",
            self.log,
            audit=self._audit,
            user=self.conn.username,
            source=source,
            target=target,
        ) as ctx:
            response = self.conn.put(JOBS_PATH, ok_statuses=(200, 201, 202), **kwargs)
            submitted = SubmitJobResponse.from_dict(self.conn.decode_json(response))
            ctx.set_target(job=submitted.correlator)
            self.log.info("Submitted job %s", submitted.correlator)
            return submitted

    def submit_job_statement(self, jcl: str) -> SubmitJobResponse:
        return self.submit_job(SubmitJobRequest(job_statement=jcl))

    def submit_job_from_dataset(self, dataset: str, volume: str = "") -> SubmitJobResponse:
        """Submit JCL held in a dataset.

        A leading ``//`` and a leading ``<USER>.`` qualifier are removed,
        since z/OSMF resolves the name relative to the submitting user.
        """
        if dataset.startswith("//"):
            dataset = dataset[2:]
        user_prefix = f"{self.conn.username}."
        if self.conn.username and dataset.startswith(user_prefix):
            dataset = dataset[len(user_prefix):]
        return self.submit_job(SubmitJobRequest(job_dataset=dataset, volume=volume))

    def submit_job_from_local_file(
        self, local_file: str, directory: str = "", extension: str = ""
    ) -> SubmitJobResponse:
        return self.submit_job(
            SubmitJobRequest(job_local_file=local_file, directory=directory, extension=extension)
        )

    # =========================================================================
    # Completion Polling
    # =========================================================================

    def wait_for_job_completion(
        self,
        job_ref: str,
        timeout: float = DEFAULT_WAIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> str:
        """Poll a job until its status is complete.

        Args:
            job_ref: Correlator or bare job id.
            timeout: Seconds to wait before giving up.
            poll_interval: Seconds between status checks.

        Returns:
            The completed status string.

        Raises:
            JobTimeoutError: If the deadline passes first.
            ZOSMFError: Any status lookup failure, raised on the first occurrence.
        """
        timeout = validate_wait_interval(timeout, "timeout")
        poll_interval = validate_wait_interval(poll_interval, "poll_interval")

        start = time.monotonic()
        while True:
            if time.monotonic() - start > timeout:
                raise JobTimeoutError(job_ref, timeout)

            status = self.get_job_status(job_ref)
            if is_job_complete(status):
                self.log.info("Job %s completed with status %s", job_ref, status)
                return status

            self.log.debug("Job %s status %s, next check in %.1fs", job_ref, status, poll_interval)
            time.sleep(poll_interval)

    # =========================================================================
    # Spool Files
    # =========================================================================

    def get_spool_files(self, job_name: str, job_id: str) -> List[SpoolFile]:
        path = f"{JOBS_PATH}/{quote_segment(job_name)}/{quote_segment(job_id)}/files"
        response = self.conn.get(path, ok_statuses=(200,))
        data = self.conn.decode_json(response)
        if not isinstance(data, list):
            raise ResponseDecodeError(
                self.conn.decode_text(response), "expected a spool file array"
            )
        return [SpoolFile.from_dict(f) for f in data]

    def get_spool_file_content(self, job_name: str, job_id: str, spool_id: int) -> str:
        """Raw records of one spool file."""
        path = (
            f"{JOBS_PATH}/{quote_segment(job_name)}/{quote_segment(job_id)}"
            f"/files/{int(spool_id)}/records"
        )
        response = self.conn.get(path, ok_statuses=(200,))
        return self.conn.decode_text(response)

    def get_spool_files_by_correlator(self, correlator: str) -> List[SpoolFile]:
        job_name, job_id = parse_correlator(correlator)
        return self.get_spool_files(job_name, job_id)

    def get_spool_file_content_by_correlator(self, correlator: str, spool_id: int) -> str:
        job_name, job_id = parse_correlator(correlator)
        return self.get_spool_file_content(job_name, job_id, spool_id)

    def get_job_output(self, job_ref: str) -> Dict[str, str]:
        """Content of every spool file, keyed by DD name.

        DDs whose content cannot be fetched are left out.
        """
        job_name, job_id = self._resolve_job_ref(job_ref)
        output: Dict[str, str] = {}
        for spool_file in self.get_spool_files(job_name, job_id):
            try:
                output[spool_file.ddname] = self.get_spool_file_content(
                    job_name, job_id, spool_file.id
                )
            except ZOSMFError as e:
                self.log.debug(
                    "Skipping DD %s of %s: %s",
                    spool_file.ddname,
                    format_correlator(job_name, job_id),
                    e,
                )
        return output

    def get_job_output_by_ddname(self, job_ref: str, ddname: str) -> str:
        """Content of the first spool file with the given DD name.

        Raises:
            SpoolFileNotFoundError: If the job has no such DD.
            ZOSMFError: If the DD exists but its content cannot be fetched.
        """
        job_name, job_id = self._resolve_job_ref(job_ref)
        for spool_file in self.get_spool_files(job_name, job_id):
            if spool_file.ddname == ddname:
                return self.get_spool_file_content(job_name, job_id, spool_file.id)

        raise SpoolFileNotFoundError(ddname, job_ref)

    # =========================================================================
    # Job Control
    # =========================================================================

    def cancel_job(self, correlator: str) -> None:
        """Cancel a running job."""
        self._job_action("cancel_job", f"{JOBS_PATH}/{quote_segment(correlator)}/cancel", correlator)

    def purge_job(self, correlator: str) -> None:
        """Purge a job and its output."""
        self._job_action("purge_job", f"{JOBS_PATH}/{quote_segment(correlator)}/purge", correlator)

    def delete_job(self, correlator: str) -> None:
        job_name, job_id = parse_correlator(correlator)
        self.delete_job_by_name_id(job_name, job_id)

    def delete_job_by_name_id(self, job_name: str, job_id: str) -> None:
        correlator = format_correlator(job_name, job_id)
        path = f"{JOBS_PATH}/{quote_segment(job_name)}/{quote_segment(job_id)}"
        with self._job_scope("delete_job", correlator):
            self.conn.delete(path, ok_statuses=(200, 204))

    def _job_action(self, operation: str, path: str, correlator: str) -> None:
        with self._job_scope(operation, correlator):
            self.conn.put(path, ok_statuses=(200, 204))

    def _job_scope(self, operation: str, correlator: str) -> LogContext:
        return LogContext(
            operation, self.log, audit=self._audit, user=self.conn.username, job=correlator
        )

    def close(self) -> None:
        """Release idle pooled connections."""
        self.conn.close()


# =============================================================================
# Request Validation
# =============================================================================


def _single_source(request: SubmitJobRequest) -> str:
    sources = request.sources()
    if not sources:
        raise JobRequestError(
            "at least one job source must be specified (job_statement, job_dataset, or job_local_file)"
        )
    if len(sources) > 1:
        raise JobRequestError(
            f"only one job source may be specified, got: {', '.join(sources)}"
        )
    return sources[0]


def validate_job_request(request: Optional[SubmitJobRequest]) -> SubmitJobRequest:
    """Check a submission request before it is sent.

    Raises:
        JobRequestError: If the request has no single source, the JCL lacks
            a JOB card, or the dataset name is invalid.
    """
    if request is None:
        raise JobRequestError("job request cannot be None")

    _single_source(request)

    if request.job_statement and "JOB" not in request.job_statement.upper():
        raise JobRequestError("job statement must contain a JOB card")

    if request.job_dataset:
        dataset = request.job_dataset
        if dataset.startswith("//"):
            dataset = dataset[2:]
        dataset, _ = split_member(dataset)
        if not is_valid_dataset_name(dataset):
            raise JobRequestError(f"invalid dataset name: {request.job_dataset}")

    return request


# =============================================================================
# JCL Helpers
# =============================================================================


def create_simple_job_statement(
    job_name: str = "",
    account: str = "",
    user: str = "",
    msg_class: str = "",
    msg_level: str = "",
) -> str:
    """Build a JOB card, e.g. ``//TESTJOB JOB (ACCT),'USER',MSGCLASS=A,MSGLEVEL=(1,1)``."""
    return "//{} JOB ({}),'{}',MSGCLASS={},MSGLEVEL={}".format(
        job_name or "GOJOB",
        account or "ACCT",
        user or "USER",
        msg_class or "A",
        msg_level or "(1,1)",
    )


def create_job_with_step(
    job_name: str = "",
    account: str = "",
    user: str = "",
    msg_class: str = "",
    msg_level: str = "",
    step_name: str = "",
    pgm: str = "",
    dd_statements: Sequence[str] = (),
) -> str:
    """Build a one-step job: JOB card, EXEC statement, then DD statements, one per line."""
    lines = [
        create_simple_job_statement(job_name, account, user, msg_class, msg_level),
        f"//{step_name or 'STEP1'} EXEC PGM={pgm}",
    ]
    lines.extend(dd_statements)
    return "\n".join(lines) + "\n"
