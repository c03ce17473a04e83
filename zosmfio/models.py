"""Typed records exchanged with z/OSMF.

JSON keys follow the z/OSMF REST payloads (``jobid``, ``phase-name``,
``dsname``, ``returnedRows`` ...). Each response model has a ``from_dict``
constructor that tolerates missing keys; request models have helpers that
produce query parameters or request bodies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

# Dataset organizations
DATASET_TYPE_SEQUENTIAL = "PS"
DATASET_TYPE_PARTITIONED = "PO"
DATASET_TYPE_PDSE = "PDSE"
DATASET_TYPE_VSAM = "VSAM"
DATASET_TYPES = (
    DATASET_TYPE_SEQUENTIAL,
    DATASET_TYPE_PARTITIONED,
    DATASET_TYPE_PDSE,
    DATASET_TYPE_VSAM,
)

# Allocation units
SPACE_UNIT_TRACKS = "TRK"
SPACE_UNIT_CYLINDERS = "CYL"
SPACE_UNIT_KILOBYTES = "KB"
SPACE_UNIT_MEGABYTES = "MB"
SPACE_UNIT_GIGABYTES = "GB"
SPACE_UNITS = (
    SPACE_UNIT_TRACKS,
    SPACE_UNIT_CYLINDERS,
    SPACE_UNIT_KILOBYTES,
    SPACE_UNIT_MEGABYTES,
    SPACE_UNIT_GIGABYTES,
)

# Record formats
RECORD_FORMAT_FIXED = "F"
RECORD_FORMAT_VARIABLE = "V"
RECORD_FORMAT_UNDEFINED = "U"
RECORD_FORMATS = (
    RECORD_FORMAT_FIXED,
    RECORD_FORMAT_VARIABLE,
    RECORD_FORMAT_UNDEFINED,
)


def _str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


# =============================================================================
# Jobs
# =============================================================================


@dataclass
class Job:
    """A job as reported by ``/restjobs/jobs``."""

    jobid: str = ""
    jobname: str = ""
    owner: str = ""
    status: str = ""
    subsystem: str = ""
    type: str = ""
    job_class: str = ""
    phase_name: str = ""
    phase: int = 0
    retcode: str = ""
    url: str = ""
    files_url: str = ""
    job_correlator: str = ""
    exec_class: str = ""
    exec_mode: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            jobid=_str(data, "jobid"),
            jobname=_str(data, "jobname"),
            owner=_str(data, "owner"),
            status=_str(data, "status"),
            subsystem=_str(data, "subsystem"),
            type=_str(data, "type"),
            job_class=_str(data, "class"),
            phase_name=_str(data, "phase-name"),
            phase=_int(data, "phase") or _int(data, "phase-number"),
            retcode=_str(data, "retcode"),
            url=_str(data, "url"),
            files_url=_str(data, "files-url"),
            job_correlator=_str(data, "job-correlator"),
            exec_class=_str(data, "exec-class") or _str(data, "execution-class"),
            exec_mode=_str(data, "exec-mode") or _str(data, "execution-mode"),
        )

    @property
    def correlator(self) -> str:
        """``jobname:jobid`` for this job."""
        return f"{self.jobname}:{self.jobid}"


@dataclass
class JobInfo(Job):
    """Detailed job record; same fields as :class:`Job`."""


@dataclass
class SpoolFile:
    """One spool data set (DD) of a job."""

    id: int = 0
    ddname: str = ""
    stepname: str = ""
    procstep: str = ""
    spool_class: str = ""
    records: int = 0
    byte_count: int = 0
    url: str = ""
    records_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpoolFile":
        return cls(
            id=_int(data, "id"),
            ddname=_str(data, "ddname"),
            stepname=_str(data, "stepname"),
            procstep=_str(data, "procstep"),
            spool_class=_str(data, "class"),
            records=_int(data, "record-count") or _int(data, "records"),
            byte_count=_int(data, "byte-count") or _int(data, "bytes"),
            url=_str(data, "url"),
            records_url=_str(data, "records-url") or _str(data, "content-url"),
        )


@dataclass
class JobList:
    jobs: List[Job] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.jobs)

    def __iter__(self):
        return iter(self.jobs)


@dataclass
class SubmitJobRequest:
    """Source of a job submission. Exactly one of the three sources is used.

    Attributes:
        job_statement: Inline JCL text.
        job_dataset: Dataset (optionally with member) holding the JCL.
        job_local_file: z/OS UNIX file holding the JCL.
        volume: Volume of an uncataloged ``job_dataset``.
        directory: Directory for ``job_local_file``.
        extension: Extension for ``job_local_file``.
    """

    job_statement: str = ""
    job_dataset: str = ""
    job_local_file: str = ""
    volume: str = ""
    directory: str = ""
    extension: str = ""

    def sources(self) -> List[str]:
        """Names of the sources that are set."""
        names = []
        if self.job_statement:
            names.append("job_statement")
        if self.job_dataset:
            names.append("job_dataset")
        if self.job_local_file:
            names.append("job_local_file")
        return names


@dataclass
class SubmitJobResponse:
    jobid: str = ""
    jobname: str = ""
    owner: str = ""
    status: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubmitJobResponse":
        return cls(
            jobid=_str(data, "jobid"),
            jobname=_str(data, "jobname"),
            owner=_str(data, "owner"),
            status=_str(data, "status"),
            url=_str(data, "url"),
        )

    @property
    def correlator(self) -> str:
        return f"{self.jobname}:{self.jobid}"


@dataclass
class JobFilter:
    """Query filter for job listing. Empty fields are not sent."""

    owner: str = ""
    prefix: str = ""
    max_jobs: int = 0
    jobid: str = ""
    jobname: str = ""
    status: str = ""
    user_correlator: str = ""

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.owner:
            params["owner"] = self.owner
        if self.prefix:
            params["prefix"] = self.prefix
        if self.max_jobs > 0:
            params["max-jobs"] = str(self.max_jobs)
        if self.jobid:
            params["jobid"] = self.jobid
        if self.jobname:
            params["jobname"] = self.jobname
        if self.status:
            params["status"] = self.status
        if self.user_correlator:
            params["user-correlator"] = self.user_correlator
        return params


# =============================================================================
# Datasets
# =============================================================================


@dataclass
class Dataset:
    """Dataset attributes as returned by ``/restfiles/ds`` (base attributes)."""

    name: str = ""
    dsorg: str = ""
    volume: str = ""
    block_size: str = ""
    record_length: str = ""
    record_format: str = ""
    catalog: str = ""
    created_date: str = ""
    device: str = ""
    dataset_type: str = ""
    expiry_date: str = ""
    extents: str = ""
    migrated: str = ""
    multi_volume: str = ""
    overflow: str = ""
    referenced_date: str = ""
    size: str = ""
    space_unit: str = ""
    used: str = ""
    volumes: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        return cls(
            name=_str(data, "dsname"),
            dsorg=_str(data, "dsorg"),
            volume=_str(data, "vol"),
            block_size=_str(data, "blksz"),
            record_length=_str(data, "lrecl"),
            record_format=_str(data, "recfm"),
            catalog=_str(data, "catnm"),
            created_date=_str(data, "cdate"),
            device=_str(data, "dev"),
            dataset_type=_str(data, "dsntp"),
            expiry_date=_str(data, "edate"),
            extents=_str(data, "extx"),
            migrated=_str(data, "migr"),
            multi_volume=_str(data, "mvol"),
            overflow=_str(data, "ovf"),
            referenced_date=_str(data, "rdate"),
            size=_str(data, "sizex"),
            space_unit=_str(data, "spacu"),
            used=_str(data, "used"),
            volumes=_str(data, "vols"),
        )

    @property
    def is_partitioned(self) -> bool:
        return self.dsorg in ("PO", "PO-E")


@dataclass
class DatasetList:
    items: List[Dataset] = field(default_factory=list)
    returned_rows: int = 0
    more_rows: bool = False
    json_version: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatasetList":
        return cls(
            items=[Dataset.from_dict(d) for d in data.get("items") or []],
            returned_rows=_int(data, "returnedRows"),
            more_rows=bool(data.get("moreRows", False)),
            json_version=_int(data, "JSONversion"),
        )


@dataclass
class DatasetMember:
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatasetMember":
        return cls(name=_str(data, "member"))


@dataclass
class MemberList:
    items: List[DatasetMember] = field(default_factory=list)
    returned_rows: int = 0
    json_version: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberList":
        return cls(
            items=[DatasetMember.from_dict(m) for m in data.get("items") or []],
            returned_rows=_int(data, "returnedRows"),
            json_version=_int(data, "JSONversion"),
        )

    @property
    def names(self) -> List[str]:
        return [m.name for m in self.items]


@dataclass
class Space:
    """Space allocation: primary/secondary quantity, unit, directory blocks."""

    primary: int = 0
    secondary: int = 0
    unit: str = SPACE_UNIT_TRACKS
    directory: int = 0


def default_space() -> Space:
    """10/5 tracks with 5 directory blocks."""
    return Space(primary=10, secondary=5, unit=SPACE_UNIT_TRACKS, directory=5)


def large_space() -> Space:
    """100/50 tracks with 20 directory blocks."""
    return Space(primary=100, secondary=50, unit=SPACE_UNIT_TRACKS, directory=20)


def small_space() -> Space:
    """5/2 tracks with 2 directory blocks."""
    return Space(primary=5, secondary=2, unit=SPACE_UNIT_TRACKS, directory=2)


@dataclass
class CreateDatasetRequest:
    """Allocation request for a new dataset.

    Attributes:
        name: Fully qualified dataset name.
        type: Organization, one of PS, PO, PDSE, VSAM.
        volume: Optional volume serial.
        space: Space allocation.
        record_format: F, V or U (empty = server default).
        record_length: Logical record length (0 = server default).
        block_size: Block size (0 = server default).
        directory: Directory blocks for PO datasets (0 = not sent).
    """

    name: str
    type: str = DATASET_TYPE_SEQUENTIAL
    volume: str = ""
    space: Space = field(default_factory=Space)
    record_format: str = ""
    record_length: int = 0
    block_size: int = 0
    directory: int = 0

    def to_body(self) -> Dict[str, Any]:
        """z/OSMF allocation body; optional attributes only when set."""
        body: Dict[str, Any] = {"dsname": self.name, "dsorg": self.type}
        if self.volume:
            body["vol"] = self.volume
        if self.space.primary > 0:
            body["alcunit"] = self.space.unit
            body["primary"] = self.space.primary
            body["secondary"] = self.space.secondary
            if self.space.directory > 0:
                body["dirblk"] = self.space.directory
        if self.record_format:
            body["recfm"] = self.record_format
        if self.record_length > 0:
            body["lrecl"] = self.record_length
        if self.block_size > 0:
            body["blksize"] = self.block_size
        if self.directory > 0:
            body["dirblk"] = self.directory
        return body


@dataclass
class UploadRequest:
    dataset_name: str
    content: str = ""
    member_name: str = ""
    encoding: str = ""
    replace: bool = False


@dataclass
class DownloadRequest:
    dataset_name: str
    member_name: str = ""
    encoding: str = ""


@dataclass
class DatasetFilter:
    """Query filter for dataset listing.

    ``name`` maps to ``dslevel`` and ``volume`` to ``volser``. ``start`` (or,
    when unset, ``owner``) is the first dataset name of the page. ``type`` is
    matched against each result's ``dsorg`` after the response arrives.
    """

    name: str = ""
    type: str = ""
    volume: str = ""
    owner: str = ""
    limit: int = 0
    start: str = ""

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.name:
            params["dslevel"] = self.name
        if self.volume:
            params["volser"] = self.volume
        start = self.start or self.owner
        if start:
            params["start"] = start
        return params


__all__ = [
    "DATASET_TYPES",
    "DATASET_TYPE_PARTITIONED",
    "DATASET_TYPE_PDSE",
    "DATASET_TYPE_SEQUENTIAL",
    "DATASET_TYPE_VSAM",
    "RECORD_FORMATS",
    "RECORD_FORMAT_FIXED",
    "RECORD_FORMAT_UNDEFINED",
    "RECORD_FORMAT_VARIABLE",
    "SPACE_UNITS",
    "SPACE_UNIT_CYLINDERS",
    "SPACE_UNIT_GIGABYTES",
    "SPACE_UNIT_KILOBYTES",
    "SPACE_UNIT_MEGABYTES",
    "SPACE_UNIT_TRACKS",
    "CreateDatasetRequest",
    "Dataset",
    "DatasetFilter",
    "DatasetList",
    "DatasetMember",
    "DownloadRequest",
    "Job",
    "JobFilter",
    "JobInfo",
    "JobList",
    "MemberList",
    "Space",
    "SpoolFile",
    "SubmitJobRequest",
    "SubmitJobResponse",
    "UploadRequest",
    "default_space",
    "large_space",
    "small_space",
]
