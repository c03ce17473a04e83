"""Dataset management service.

This module handles operations on ``/restfiles/ds``:
- Dataset listing, lookup and existence checks
- Allocation, deletion, copy and rename
- Text upload and download for datasets and PDS members
- Member listing and deletion
- Member upload with PDS directory checks and retry on transient errors
"""

from __future__ import annotations

import time
from typing import Optional

from ..core import (
    DatasetNotFoundError,
    DatasetRequestError,
    InvalidIdentifierError,
    LogContext,
    MemberUploadError,
    PDSDirectoryError,
    RetryExhaustedError,
    ZOSMFError,
    dataset_path,
    get_audit_logger,
    get_logger,
    validate_dataset_name,
    validate_member_name,
)
from ..core.validation import MAX_BLOCK_SIZE, MAX_DIRECTORY_BLOCKS, MAX_RECORD_LENGTH
from ..models import (
    DATASET_TYPE_PARTITIONED,
    DATASET_TYPE_SEQUENTIAL,
    DATASET_TYPES,
    RECORD_FORMAT_VARIABLE,
    RECORD_FORMATS,
    SPACE_UNIT_TRACKS,
    SPACE_UNITS,
    CreateDatasetRequest,
    Dataset,
    DatasetFilter,
    DatasetList,
    DatasetMember,
    DownloadRequest,
    MemberList,
    Space,
    UploadRequest,
)
from .base import ZOSMFConnection

DATASETS_PATH = "/restfiles/ds"

# Upload retry policy for PDS members
MAX_UPLOAD_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 2

# Lower-cased fragments of error text worth another upload attempt
TRANSIENT_ERROR_MARKERS = (
    "isrz002",
    "i/o error",
    "lmfind error",
    "directory",
    "timeout",
    "connection",
)

DEFAULT_ENCODING = "UTF-8"
DEFAULT_RECORD_LENGTH = 256
DEFAULT_BLOCK_SIZE = 27920
DEFAULT_DIRECTORY_BLOCKS = 5
MIN_RECOMMENDED_DIRECTORY_BLOCKS = 5
RECOMMENDED_DIRECTORY_BLOCKS = 10

_IO_ERROR_GUIDANCE = (
    "This typically indicates:\n"
    "1. Directory corruption - use ISPF 3.1 or IEBCOPY to repair\n"
    "2. Insufficient directory space - reallocate PDS with more directory blocks\n"
    "3. Member name conflicts - check for duplicate or invalid names"
)


def is_transient_pds_error(error: BaseException) -> bool:
    """True if the error text names a condition a retry may clear."""
    text = str(error).lower()
    return any(marker in text for marker in TRANSIENT_ERROR_MARKERS)


def _pds_guidance(dataset: str, member: str, error: BaseException) -> Optional[str]:
    """Repair hint for known PDS directory faults, or None."""
    text = str(error)
    if "ISRZ002" in text or "I/O error" in text:
        return (
            f"PDS directory I/O error for member {member} in {dataset}: {text}. "
            + _IO_ERROR_GUIDANCE
        )
    if "LMFIND error" in text:
        return (
            f"PDS directory search error for member {member} in {dataset}: {text}. "
            "The PDS directory may need maintenance using ISPF utilities"
        )
    return None


class DatasetService:
    """Service for z/OS datasets and PDS members.

    Handles:
    - Listing and lookup
    - Allocation, deletion, copy and rename
    - Content upload and download
    - Member operations and PDS directory health checks
    """

    def __init__(self, connection: ZOSMFConnection) -> None:
        """Initialize dataset service.

        Args:
            connection: z/OSMF connection instance.
        """
        self.conn = connection
        self.log = get_logger(__name__)
        self._audit = get_audit_logger()

    # =========================================================================
    # Listing and Lookup
    # =========================================================================

    def list_datasets(self, dataset_filter: Optional[DatasetFilter] = None) -> DatasetList:
        """List datasets by name pattern and/or volume.

        Without a name or volume the listing defaults to ``<USER>.*``.
        ``limit`` is sent as ``X-IBM-Max-Items`` (0 means no limit).
        ``type`` is applied to the returned items.
        """
        dataset_filter = dataset_filter or DatasetFilter()
        params = dataset_filter.to_params()
        if "dslevel" not in params and "volser" not in params:
            params["dslevel"] = f"{self.conn.username}.*"

        headers = {
            "X-IBM-Max-Items": str(dataset_filter.limit if dataset_filter.limit > 0 else 0),
            "X-IBM-Attributes": "base",
        }
        response = self.conn.get(
            DATASETS_PATH, params=params, headers=headers, ok_statuses=(200,)
        )
        datasets = DatasetList.from_dict(self.conn.decode_json(response))

        if dataset_filter.type:
            datasets.items = [d for d in datasets.items if d.dsorg == dataset_filter.type]
        return datasets

    def get_datasets_by_owner(self, owner: str, limit: int = 0) -> DatasetList:
        """Datasets under the ``<owner>.*`` high-level qualifier."""
        return self.list_datasets(DatasetFilter(name=f"{owner}.*", limit=limit))

    def get_datasets_by_type(self, dataset_type: str, limit: int = 0) -> DatasetList:
        return self.list_datasets(DatasetFilter(type=dataset_type, limit=limit))

    def get_datasets_by_name(self, name_pattern: str, limit: int = 0) -> DatasetList:
        return self.list_datasets(DatasetFilter(name=name_pattern, limit=limit))

    def get_dataset(self, name: str) -> Dataset:
        """Exact-name match from a listing.

        Raises:
            DatasetNotFoundError: If the listing has no dataset with that name.
        """
        for dataset in self.list_datasets(DatasetFilter(name=name)).items:
            if dataset.name == name:
                return dataset
        raise DatasetNotFoundError(name)

    def get_dataset_info(self, name: str) -> Dataset:
        """Dataset attributes, read directly when possible, else from a listing."""
        try:
            response = self.conn.get(
                dataset_path(name),
                params={"metadata": "true"},
                headers={"Accept": "application/json"},
                ok_statuses=(200,),
            )
            data = self.conn.decode_json(response)
            if isinstance(data, dict):
                return Dataset.from_dict(data)
            self.log.debug("Metadata for %s was not an object, using listing", name)
        except ZOSMFError as e:
            self.log.debug("Direct metadata lookup for %s failed: %s", name, e)
        return self.get_dataset(name)

    def exists(self, name: str) -> bool:
        return any(d.name == name for d in self.list_datasets(DatasetFilter(name=name)).items)

    # =========================================================================
    # Allocation and Deletion
    # =========================================================================

    def create_dataset(self, request: CreateDatasetRequest) -> None:
        """Allocate a dataset.

        Raises:
            APIRequestError: If z/OSMF does not answer 200 or 201.
        """
        body = request.to_body()
        with LogContext(
            "create_dataset",
            self.log,
            audit=self._audit,
            user=self.conn.username,
            dataset=request.name,
        ) as ctx:
            ctx.details.update(body)
            self.conn.post(dataset_path(request.name), json=body, ok_statuses=(200, 201))

    def create_sequential_dataset(self, name: str) -> None:
        """PS, 10/5 tracks, RECFM=V, LRECL=256, BLKSIZE=27920."""
        self.create_dataset(
            CreateDatasetRequest(
                name=name,
                type=DATASET_TYPE_SEQUENTIAL,
                space=Space(primary=10, secondary=5, unit=SPACE_UNIT_TRACKS),
                record_format=RECORD_FORMAT_VARIABLE,
                record_length=DEFAULT_RECORD_LENGTH,
                block_size=DEFAULT_BLOCK_SIZE,
            )
        )

    def create_partitioned_dataset(self, name: str) -> None:
        """PO, 10/5 tracks, 5 directory blocks, RECFM=V, LRECL=256, BLKSIZE=27920."""
        self.create_dataset(
            CreateDatasetRequest(
                name=name,
                type=DATASET_TYPE_PARTITIONED,
                space=Space(
                    primary=10,
                    secondary=5,
                    unit=SPACE_UNIT_TRACKS,
                    directory=DEFAULT_DIRECTORY_BLOCKS,
                ),
                record_format=RECORD_FORMAT_VARIABLE,
                record_length=DEFAULT_RECORD_LENGTH,
                block_size=DEFAULT_BLOCK_SIZE,
                directory=DEFAULT_DIRECTORY_BLOCKS,
            )
        )

    def create_dataset_with_options(
        self,
        name: str,
        dataset_type: str,
        space: Space,
        record_format: str = "",
        record_length: int = 0,
        block_size: int = 0,
    ) -> None:
        """Allocate with explicit attributes; a PO without directory blocks gets 5."""
        request = CreateDatasetRequest(
            name=name,
            type=dataset_type,
            space=space,
            record_format=record_format,
            record_length=record_length,
            block_size=block_size,
        )
        if dataset_type == DATASET_TYPE_PARTITIONED and space.directory == 0:
            request.directory = DEFAULT_DIRECTORY_BLOCKS
        self.create_dataset(request)

    def create_pds_with_directory_space(self, name: str, directory_blocks: int) -> None:
        """Allocate a PDS with room in its directory (fewer than 5 blocks becomes 10)."""
        if directory_blocks < MIN_RECOMMENDED_DIRECTORY_BLOCKS:
            directory_blocks = RECOMMENDED_DIRECTORY_BLOCKS
        self.create_dataset(
            CreateDatasetRequest(
                name=name,
                type=DATASET_TYPE_PARTITIONED,
                space=Space(
                    primary=20,
                    secondary=10,
                    unit=SPACE_UNIT_TRACKS,
                    directory=directory_blocks,
                ),
                record_format=RECORD_FORMAT_VARIABLE,
                record_length=DEFAULT_RECORD_LENGTH,
                block_size=DEFAULT_BLOCK_SIZE,
                directory=directory_blocks,
            )
        )

    def delete_dataset(self, name: str) -> None:
        self._delete("delete_dataset", name)

    # =========================================================================
    # Copy and Rename
    # =========================================================================

    def copy_sequential_dataset(self, source: str, target: str) -> None:
        """Copy a whole dataset; the request goes to the target's path."""
        self._copy_or_rename(
            "copy",
            target_path=dataset_path(target),
            from_dataset={"dsn": source},
            target=target,
        )

    def copy_member(
        self,
        source: str,
        source_member: str,
        target: str,
        target_member: str,
    ) -> None:
        self._copy_or_rename(
            "copy",
            target_path=dataset_path(target, target_member),
            from_dataset={"dsn": source, "member": source_member},
            target=target,
            member=target_member,
        )

    def copy_member_to_same_dataset(self, name: str, source_member: str, target_member: str) -> None:
        self.copy_member(name, source_member, name, target_member)

    def copy_member_with_same_name(self, source: str, target: str, member: str) -> None:
        self.copy_member(source, member, target, member)

    def rename_dataset(self, old_name: str, new_name: str) -> None:
        self._copy_or_rename(
            "rename",
            target_path=dataset_path(new_name),
            from_dataset={"dsn": old_name},
            target=new_name,
        )

    def _copy_or_rename(
        self,
        action: str,
        *,
        target_path: str,
        from_dataset: dict,
        target: str,
        member: Optional[str] = None,
    ) -> None:
        operation = f"{action}_dataset"
        body = {"request": action, "from-dataset": from_dataset}
        with LogContext(
            operation,
            self.log,
            audit=self._audit,
            user=self.conn.username,
            dataset=target,
            member=member,
            source=from_dataset["dsn"],
        ):
            self.conn.put(target_path, json=body, ok_statuses=(200, 201))

    # =========================================================================
    # Content Transfer
    # =========================================================================

    def upload_content(self, request: UploadRequest) -> None:
        """Write text to a dataset or member, replacing what is there.

        The body is sent as UTF-8 ``text/plain``; ``encoding`` and ``replace``
        are carried on the request but not sent.
        """
        path = dataset_path(request.dataset_name, request.member_name or None)
        target = (
            f"{request.dataset_name}({request.member_name})"
            if request.member_name
            else request.dataset_name
        )
        with LogContext(
            "upload_content",
            self.log,
            audit=self._audit,
            user=self.conn.username,
            dataset=request.dataset_name,
            member=request.member_name,
            log_entry_exit=False,
            chars=len(request.content),
        ):
            self.conn.put(
                path,
                data=request.content.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                ok_statuses=(200, 201, 204),
            )
            self.log.info("Uploaded %d characters to %s", len(request.content), target)

    def download_content(self, request: DownloadRequest) -> str:
        """Read a dataset or member as text."""
        params = {"encoding": request.encoding} if request.encoding else None
        response = self.conn.get(
            dataset_path(request.dataset_name, request.member_name or None),
            params=params,
            ok_statuses=(200,),
        )
        return self.conn.decode_text(response)

    def upload_text(self, dataset_name: str, content: str) -> None:
        self.upload_content(
            UploadRequest(
                dataset_name=dataset_name,
                content=content,
                encoding=DEFAULT_ENCODING,
                replace=True,
            )
        )

    def upload_text_to_member(self, dataset_name: str, member_name: str, content: str) -> None:
        """Write text to a PDS member.

        Raises:
            InvalidIdentifierError: If the member name is invalid.
            MemberUploadError: For PDS directory faults (ISRZ002, I/O, LMFIND),
                with repair guidance in the message.
            ZOSMFError: Any other upload failure, unchanged.
        """
        validate_member_name(member_name)
        request = UploadRequest(
            dataset_name=dataset_name,
            member_name=member_name,
            content=content,
            encoding=DEFAULT_ENCODING,
            replace=True,
        )
        try:
            self.upload_content(request)
        except ZOSMFError as e:
            guidance = _pds_guidance(dataset_name, member_name, e)
            if guidance is None:
                raise
            raise MemberUploadError(dataset_name, member_name, guidance, cause=e) from e

    def upload_text_to_member_with_validation(
        self, dataset_name: str, member_name: str, content: str
    ) -> None:
        """Write a PDS member after checking the dataset, retrying transient faults.

        Checks, in order: member name, dataset existence, PO/PO-E organization,
        member list readability. The upload is then tried up to
        MAX_UPLOAD_ATTEMPTS times.

        Raises:
            InvalidIdentifierError: If the member name is invalid.
            DatasetNotFoundError: If the dataset does not exist.
            PDSDirectoryError: If the dataset is not partitioned or its directory
                cannot be read.
            RetryExhaustedError: If every attempt failed with a transient error.
                ISRZ002, I/O and LMFIND faults carry repair guidance.
            MemberUploadError: If an attempt failed with a non-transient error.
        """
        validate_member_name(member_name)
        self._require_healthy_pds(dataset_name)

        request = UploadRequest(
            dataset_name=dataset_name,
            member_name=member_name,
            content=content,
            encoding=DEFAULT_ENCODING,
            replace=True,
        )
        try:
            self._upload_with_retry(request)
        except RetryExhaustedError:
            raise
        except ZOSMFError as e:
            reason = _pds_guidance(dataset_name, member_name, e) or (
                f"failed to upload member {member_name} to {dataset_name}: {e}"
            )
            raise MemberUploadError(dataset_name, member_name, reason, cause=e) from e

    def _upload_with_retry(self, request: UploadRequest) -> None:
        last_error: Optional[ZOSMFError] = None
        for attempt in range(1, MAX_UPLOAD_ATTEMPTS + 1):
            try:
                self.upload_content(request)
                return
            except ZOSMFError as e:
                if not is_transient_pds_error(e):
                    raise
                last_error = e
                if attempt < MAX_UPLOAD_ATTEMPTS:
                    wait_time = attempt * RETRY_DELAY_SECONDS
                    self.log.warning(
                        "Transient error uploading %s(%s) (attempt %d/%d): %s. Retrying in %ds",
                        request.dataset_name,
                        request.member_name,
                        attempt,
                        MAX_UPLOAD_ATTEMPTS,
                        e,
                        wait_time,
                    )
                    time.sleep(wait_time)

        self.log.error(
            "Upload of %s(%s) failed after %d attempts",
            request.dataset_name,
            request.member_name,
            MAX_UPLOAD_ATTEMPTS,
        )
        guidance = (
            _pds_guidance(request.dataset_name, request.member_name, last_error)
            if last_error is not None
            else None
        )
        raise RetryExhaustedError(
            "upload_member", MAX_UPLOAD_ATTEMPTS, last_error, guidance=guidance
        )

    def download_text(self, dataset_name: str) -> str:
        return self.download_content(
            DownloadRequest(dataset_name=dataset_name, encoding=DEFAULT_ENCODING)
        )

    def download_text_from_member(self, dataset_name: str, member_name: str) -> str:
        return self.download_content(
            DownloadRequest(
                dataset_name=dataset_name,
                member_name=member_name,
                encoding=DEFAULT_ENCODING,
            )
        )

    # =========================================================================
    # Members
    # =========================================================================

    def list_members(self, dataset_name: str) -> MemberList:
        response = self.conn.get(f"{dataset_path(dataset_name)}/member", ok_statuses=(200,))
        return MemberList.from_dict(self.conn.decode_json(response))

    def get_member(self, dataset_name: str, member_name: str) -> DatasetMember:
        """Confirm a member exists; only its name is returned."""
        self.conn.get(dataset_path(dataset_name, member_name), ok_statuses=(200,))
        return DatasetMember(name=member_name)

    def delete_member(self, dataset_name: str, member_name: str) -> None:
        self._delete("delete_member", dataset_name, member_name)

    def check_pds_directory_health(self, dataset_name: str) -> None:
        """Raise unless the dataset exists, is partitioned and its member list is readable."""
        self._require_healthy_pds(dataset_name)

    def _require_healthy_pds(self, dataset_name: str) -> None:
        if not self.exists(dataset_name):
            raise DatasetNotFoundError(dataset_name)

        dataset = self.get_dataset(dataset_name)
        if not dataset.is_partitioned:
            raise PDSDirectoryError(
                dataset_name,
                f"dataset {dataset_name} is not a partitioned dataset (type: {dataset.dsorg})",
            )

        try:
            self.list_members(dataset_name)
        except ZOSMFError as e:
            raise PDSDirectoryError(
                dataset_name,
                f"PDS directory is not accessible: {e}. This may indicate directory "
                "corruption or insufficient directory space. Consider using IEBCOPY "
                "or ISPF to repair the PDS directory",
            ) from e

    def _delete(self, operation: str, dataset_name: str, member_name: Optional[str] = None) -> None:
        with LogContext(
            operation,
            self.log,
            audit=self._audit,
            user=self.conn.username,
            dataset=dataset_name,
            member=member_name,
        ):
            self.conn.delete(dataset_path(dataset_name, member_name), ok_statuses=(200, 204))

    def close(self) -> None:
        """Release idle pooled connections."""
        self.conn.close()


# =============================================================================
# Request Validation
# =============================================================================


def _check_names(dataset_name: str, member_name: str = "") -> None:
    try:
        validate_dataset_name(dataset_name)
    except InvalidIdentifierError as e:
        raise DatasetRequestError(
            f"invalid dataset name: {e.reason}", dataset=dataset_name
        ) from e
    if member_name:
        try:
            validate_member_name(member_name)
        except InvalidIdentifierError as e:
            raise DatasetRequestError(
                f"invalid member name: {e.reason}", dataset=dataset_name
            ) from e


def validate_create_dataset_request(request: Optional[CreateDatasetRequest]) -> CreateDatasetRequest:
    """Check an allocation request before it is sent.

    Raises:
        DatasetRequestError: On the first attribute that is out of range.
    """
    if request is None:
        raise DatasetRequestError("request cannot be None")

    name = request.name
    _check_names(name)

    if request.type not in DATASET_TYPES:
        raise DatasetRequestError(f"invalid dataset type: {request.type}", dataset=name)
    if request.space.primary <= 0:
        raise DatasetRequestError(
            "primary space allocation must be greater than 0", dataset=name
        )
    if request.space.secondary < 0:
        raise DatasetRequestError(
            "secondary space allocation cannot be negative", dataset=name
        )
    if request.space.unit not in SPACE_UNITS:
        raise DatasetRequestError(f"invalid space unit: {request.space.unit}", dataset=name)
    if request.record_format and request.record_format not in RECORD_FORMATS:
        raise DatasetRequestError(
            f"invalid record format: {request.record_format}", dataset=name
        )
    if request.record_length and not 1 <= request.record_length <= MAX_RECORD_LENGTH:
        raise DatasetRequestError(
            f"record length must be between 1 and {MAX_RECORD_LENGTH}", dataset=name
        )
    if request.block_size and not 1 <= request.block_size <= MAX_BLOCK_SIZE:
        raise DatasetRequestError(
            f"block size must be between 1 and {MAX_BLOCK_SIZE}", dataset=name
        )
    if (
        request.type == DATASET_TYPE_PARTITIONED
        and request.directory
        and not 1 <= request.directory <= MAX_DIRECTORY_BLOCKS
    ):
        raise DatasetRequestError(
            f"directory blocks must be between 1 and {MAX_DIRECTORY_BLOCKS}", dataset=name
        )
    return request


def validate_upload_request(request: Optional[UploadRequest]) -> UploadRequest:
    if request is None:
        raise DatasetRequestError("request cannot be None")
    _check_names(request.dataset_name, request.member_name)
    if not request.content:
        raise DatasetRequestError("content cannot be empty", dataset=request.dataset_name)
    return request


def validate_download_request(request: Optional[DownloadRequest]) -> DownloadRequest:
    if request is None:
        raise DatasetRequestError("request cannot be None")
    _check_names(request.dataset_name, request.member_name)
    return request

