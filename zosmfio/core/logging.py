"""Logging for zosmfio.

Records logged while a z/OSMF operation runs carry a trace ID plus the objects
the operation touches: the job correlator, the dataset and the member. The
JSON formatter writes them as top-level keys, so a log store can be queried
by job or dataset. State-changing operations also write one audit record to
the ``zosmfio.audit`` logger.

Usage:
    from zosmfio.core import LogContext, get_audit_logger, get_logger, setup_logging

    setup_logging(level="DEBUG", json_output=True, audit_file="audit.jsonl")
    log = get_logger(__name__)

    with LogContext("purge_job", log, audit=get_audit_logger(), job="TESTJOB:JOB00042"):
        ...
"""

from __future__ import annotations

import contextvars
import functools
import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

ROOT_LOGGER = "zosmfio"
AUDIT_LOGGER = "zosmfio.audit"

# z/OS objects an operation can act on, in display order
TARGET_FIELDS = ("job", "dataset", "member")

_trace_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "zosmfio_trace_id", default=None
)
_active_operation: contextvars.ContextVar[Optional["LogContext"]] = contextvars.ContextVar(
    "zosmfio_operation", default=None
)


def get_trace_id() -> str:
    """Trace ID of the current context, started on first use."""
    tid = _trace_id.get()
    if tid is None:
        tid = uuid.uuid4().hex[:8]
        _trace_id.set(tid)
    return tid


def set_trace_id(tid: Optional[str]) -> None:
    """Pin the trace ID of the current context. None starts a new one on next use."""
    _trace_id.set(tid)


# =============================================================================
# Filter and formatters
# =============================================================================


class OperationFilter(logging.Filter):
    """Stamp each record with the trace ID and the active operation's targets.

    Values passed explicitly through ``extra=`` win over the active operation.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        ctx = _active_operation.get()
        if ctx is not None:
            if not hasattr(record, "operation"):
                record.operation = ctx.operation
            for key, value in ctx.targets.items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        return True


def _targets_of(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in TARGET_FIELDS if getattr(record, key, None)}


class TextFormatter(logging.Formatter):
    """``time LEVEL [trace] logger: message [job=... dataset=...]``."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(trace_id)s] %(name)s: %(message)s%(targets)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        record.trace_id = getattr(record, "trace_id", "-")
        targets = " ".join(f"{k}={v}" for k, v in _targets_of(record).items())
        record.targets = f" [{targets}]" if targets else ""
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Always present: ``time``, ``level``, ``logger``, ``trace_id``, ``message``.
    Present when set: ``operation``, ``job``, ``dataset``, ``member``,
    ``status_code``, ``duration_ms``, the nested ``audit`` record and
    ``exception``.
    """

    OPTIONAL_FIELDS = ("operation",) + TARGET_FIELDS + ("status_code", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "trace_id": getattr(record, "trace_id", None),
            "message": record.getMessage(),
        }
        for key in self.OPTIONAL_FIELDS:
            value = getattr(record, key, None)
            if value is not None and value != "":
                entry[key] = value
        audit = getattr(record, "audit", None)
        if audit:
            entry["audit"] = audit
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# =============================================================================
# Audit
# =============================================================================


class AuditLogger:
    """Writes one record per state-changing z/OSMF call.

    The record travels on the log record as ``audit`` (a dict) and its job,
    dataset and member are also set as record attributes. JSONFormatter
    emits both as structured data; the text line is a short summary such as
    ``purge_job ok job=TESTJOB:JOB00042``.
    """

    def __init__(self, logger_name: str = AUDIT_LOGGER) -> None:
        self.logger = logging.getLogger(logger_name)

    def log_operation(
        self,
        operation: str,
        *,
        user: Optional[str] = None,
        job: Optional[str] = None,
        dataset: Optional[str] = None,
        member: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        success: bool = True,
        error: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Write an audit record and return it.

        Successes go out at INFO, failures at WARNING.
        """
        entry: Dict[str, Any] = {
            "operation": operation,
            "success": success,
            "trace_id": get_trace_id(),
        }
        for key, value in (
            ("user", user),
            ("job", job),
            ("dataset", dataset),
            ("member", member),
            ("details", details),
            ("error", error),
        ):
            if value:
                entry[key] = value
        if duration_ms is not None:
            entry["duration_ms"] = round(duration_ms, 2)

        targets = {key: entry[key] for key in TARGET_FIELDS if key in entry}
        summary = " ".join(f"{key}={value}" for key, value in targets.items())
        self.logger.log(
            logging.INFO if success else logging.WARNING,
            "%s %s%s",
            operation,
            "ok" if success else "failed",
            f" {summary}" if summary else "",
            extra={"audit": entry, **targets},
        )
        return entry


@functools.lru_cache(maxsize=None)
def get_audit_logger() -> AuditLogger:
    """Shared audit logger."""
    return AuditLogger()


# =============================================================================
# Operation scope
# =============================================================================


class LogContext:
    """Scope for one z/OSMF operation.

    While the block runs the operation is the active one, so every record
    logged inside it carries its targets. On exit the outcome and duration
    are logged and, when ``audit`` is given, one audit record is written for
    success and for failure alike. Exceptions propagate unchanged.

    Args:
        operation: Operation name, e.g. ``submit_job``.
        logger: Logger for the start/finish lines.
        audit: Audit logger. None writes no audit record.
        user: User recorded in the audit record.
        job: Job correlator the operation acts on.
        dataset: Dataset the operation acts on.
        member: Member the operation acts on.
        trace_id: Trace ID inside the block (default: keep the current one).
        log_entry_exit: Log start and success at INFO. Failures are always logged.
        **details: Extra key/values for the audit record.

    Usage:
        with LogContext("submit_job", log, audit=audit, user="IBMUSER") as ctx:
            submitted = ...
            ctx.set_target(job=submitted.correlator)
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        *,
        audit: Optional[AuditLogger] = None,
        user: Optional[str] = None,
        job: Optional[str] = None,
        dataset: Optional[str] = None,
        member: Optional[str] = None,
        trace_id: Optional[str] = None,
        log_entry_exit: bool = True,
        **details: Any,
    ) -> None:
        self.operation = operation
        self.logger = logger or logging.getLogger(ROOT_LOGGER)
        self.audit = audit
        self.user = user
        self.targets: Dict[str, str] = {}
        self.details: Dict[str, Any] = dict(details)
        self.trace_id = trace_id
        self.log_entry_exit = log_entry_exit
        self.audit_record: Optional[Dict[str, Any]] = None
        self._started: Optional[float] = None
        self.set_target(job=job, dataset=dataset, member=member)

    def set_target(self, **targets: Optional[str]) -> None:
        """Record the objects acted on, including ones learned mid-operation."""
        for key, value in targets.items():
            if key not in TARGET_FIELDS:
                raise ValueError(f"unknown target {key!r}, expected one of {TARGET_FIELDS}")
            if value:
                self.targets[key] = value

    def add_detail(self, key: str, value: Any) -> None:
        self.details[key] = value

    @property
    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        return (time.monotonic() - self._started) * 1000

    def __enter__(self) -> "LogContext":
        self._trace_token = _trace_id.set(self.trace_id or get_trace_id())
        self._operation_token = _active_operation.set(self)
        self._started = time.monotonic()
        if self.log_entry_exit:
            self.logger.info("Starting %s", self.operation)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        elapsed = self.elapsed_ms
        timing = {"duration_ms": round(elapsed, 2)}
        try:
            if exc_val is None:
                if self.log_entry_exit:
                    self.logger.info(
                        "Completed %s in %.1fms", self.operation, elapsed, extra=timing
                    )
            else:
                self.logger.error(
                    "%s failed after %.1fms: %s", self.operation, elapsed, exc_val, extra=timing
                )
                self.logger.debug(
                    "%s traceback", self.operation, exc_info=(exc_type, exc_val, exc_tb)
                )
            if self.audit is not None:
                self.audit_record = self.audit.log_operation(
                    self.operation,
                    user=self.user,
                    details=self.details or None,
                    success=exc_val is None,
                    error=str(exc_val) if exc_val is not None else None,
                    duration_ms=elapsed,
                    **self.targets,
                )
        finally:
            _active_operation.reset(self._operation_token)
            _trace_id.reset(self._trace_token)
        return False


# =============================================================================
# Setup
# =============================================================================


def _reset_logger(name: str, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    return logger


def setup_logging(
    level: Union[int, str] = logging.INFO,
    *,
    json_output: bool = False,
    log_file: Optional[Union[str, Path]] = None,
    audit_file: Optional[Union[str, Path]] = None,
) -> None:
    """Route the ``zosmfio`` logger tree to stderr and optional files.

    Audit records go to ``audit_file`` as JSON lines when given, otherwise
    to the same handlers as every other record. Calling again replaces the
    handlers installed by the previous call.

    Args:
        level: Level name or number for ``zosmfio`` loggers.
        json_output: Use JSONFormatter instead of TextFormatter.
        log_file: Also write to this file.
        audit_file: Write audit records only to this file.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    formatter: logging.Formatter = JSONFormatter() if json_output else TextFormatter()
    stamp = OperationFilter()

    root = _reset_logger(ROOT_LOGGER, level)
    root.propagate = False
    handlers: list = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(stamp)
        root.addHandler(handler)

    audit = _reset_logger(AUDIT_LOGGER, logging.INFO)
    if audit_file:
        handler = logging.FileHandler(audit_file, encoding="utf-8")
        handler.setFormatter(JSONFormatter())
        handler.addFilter(stamp)
        audit.addHandler(handler)
        audit.propagate = False
    else:
        audit.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``zosmfio`` tree."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy of request headers that is safe to log.

    ``Authorization`` keeps only its scheme (``Basic ****``). Cookies, which
    carry the ``LtpaToken2`` session token, are replaced entirely.
    """
    safe: Dict[str, str] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered == "authorization":
            scheme, sep, _ = str(value).partition(" ")
            safe[name] = f"{scheme} ****" if sep else "****"
        elif lowered in ("cookie", "set-cookie"):
            safe[name] = "****"
        else:
            safe[name] = value
    return safe
