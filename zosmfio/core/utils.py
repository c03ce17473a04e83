from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import quote

from .exceptions import InvalidCorrelatorError

# Characters z/OS names use that need no escaping inside a path segment
_PATH_SAFE = "@$:"


def parse_correlator(correlator: str) -> Tuple[str, str]:
    """Split ``jobname:jobid`` into its two parts.

    Raises:
        InvalidCorrelatorError: Unless the string holds exactly one colon.
    """
    parts = correlator.split(":")
    if len(parts) != 2:
        raise InvalidCorrelatorError(correlator)
    return parts[0], parts[1]


def format_correlator(job_name: str, job_id: str) -> str:
    """Join a job name and id into ``jobname:jobid``."""
    return f"{job_name}:{job_id}"


def is_correlator(job_ref: str) -> bool:
    """True if ``job_ref`` looks like ``jobname:jobid`` rather than a bare id."""
    return ":" in job_ref


def quote_segment(value: str) -> str:
    """Escape one URL path segment."""
    return quote(value, safe=_PATH_SAFE)


def dataset_path(dataset_name: str, member_name: Optional[str] = None) -> str:
    """Build ``/restfiles/ds/<name>`` or ``/restfiles/ds/<name>(<member>)``."""
    path = f"/restfiles/ds/{quote_segment(dataset_name)}"
    if member_name:
        path += f"({quote_segment(member_name)})"
    return path


def split_member(dataset_ref: str) -> Tuple[str, Optional[str]]:
    """Split ``NAME(MEMBER)`` into name and member; member is None if absent."""
    if dataset_ref.endswith(")") and "(" in dataset_ref:
        name, _, member = dataset_ref[:-1].partition("(")
        return name, member
    return dataset_ref, None


__all__ = [
    "dataset_path",
    "format_correlator",
    "is_correlator",
    "parse_correlator",
    "quote_segment",
    "split_member",
]
