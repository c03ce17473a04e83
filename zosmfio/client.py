"""ZOSMFClient - facade over the job and dataset services.

This module provides one object that owns a ZOSMFConnection and exposes the
services built on it. The services can also be used directly.

Usage:
    from zosmfio import ZOSMFClient, load_config

    with ZOSMFClient.from_config(load_config()) as client:
        submitted = client.jobs.submit_job_statement(jcl)
        status = client.jobs.wait_for_job_completion(submitted.correlator)
        client.datasets.upload_text("IBMUSER.DATA", "hello")

    # Service style
    from zosmfio.services import ZOSMFConnection, JobService

    conn = ZOSMFConnection.from_profile(profile)
    jobs = JobService(conn)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .config import ZOSMFConfig, ZOSMFProfile, profile_from_config
from .core import get_logger, setup_logging
from .models import JobList, SubmitJobResponse
from .services import DatasetService, JobService, ZOSMFConnection


class ZOSMFClient:
    """Unified client for z/OSMF operations.

    Combines:
    - ZOSMFConnection (session, headers, HTTP)
    - JobService (``.jobs``)
    - DatasetService (``.datasets``)
    """

    def __init__(
        self,
        profile: ZOSMFProfile,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Create a new client.

        Args:
            profile: Connection profile.
            logger: Optional logger instance.
        """
        self.log = logger or get_logger(__name__)

        self._conn = ZOSMFConnection(profile, logger=self.log)
        self._jobs = JobService(self._conn)
        self._datasets = DatasetService(self._conn)

    @classmethod
    def from_profile(cls, profile: ZOSMFProfile) -> "ZOSMFClient":
        return cls(profile)

    @classmethod
    def from_config(cls, cfg: ZOSMFConfig) -> "ZOSMFClient":
        """Create client from configuration dictionary.

        When ``cfg`` names a log level, zosmfio logging is set up from its
        ``log_level``, ``log_json`` and ``audit_file`` entries first.

        Args:
            cfg: Configuration from load_config().

        Returns:
            Configured ZOSMFClient instance.
        """
        if cfg.get("log_level"):
            setup_logging(
                cfg["log_level"],
                json_output=cfg.get("log_json", False),
                audit_file=cfg.get("audit_file"),
            )
        return cls(profile_from_config(cfg))

    # =========================================================================
    # Properties for service access
    # =========================================================================

    @property
    def connection(self) -> ZOSMFConnection:
        """Access the underlying connection."""
        return self._conn

    @property
    def jobs(self) -> JobService:
        return self._jobs

    @property
    def datasets(self) -> DatasetService:
        return self._datasets

    @property
    def base_url(self) -> str:
        return self._conn.base_url

    @property
    def username(self) -> str:
        return self._conn.username

    # =========================================================================
    # Common operations (delegated to the services)
    # =========================================================================

    def submit_jcl(self, jcl: str) -> SubmitJobResponse:
        """Submit inline JCL."""
        return self._jobs.submit_job_statement(jcl)

    def run_jcl(
        self,
        jcl: str,
        *,
        timeout: float = 300.0,
        poll_interval: float = 5.0,
    ) -> Dict[str, Any]:
        """Submit inline JCL, wait for it to finish and collect its output.

        Returns:
            Dict with ``job`` (the submit response), ``status`` and ``output``
            (DD name to content).
        """
        submitted = self._jobs.submit_job_statement(jcl)
        status = self._jobs.wait_for_job_completion(
            submitted.correlator, timeout=timeout, poll_interval=poll_interval
        )
        return {
            "job": submitted,
            "status": status,
            "output": self._jobs.get_job_output(submitted.correlator),
        }

    def list_my_jobs(self, max_jobs: int = 0) -> JobList:
        """Jobs owned by the session user."""
        return self._jobs.get_jobs_by_owner(self.username, max_jobs)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release pooled connections."""
        self._conn.close()

    def __enter__(self) -> "ZOSMFClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
