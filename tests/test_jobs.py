"""Tests for zosmfio.services.jobs module."""

from __future__ import annotations

from unittest import mock

import pytest

from zosmfio.core import (
    APIRequestError,
    InvalidCorrelatorError,
    JobNotFoundError,
    JobRequestError,
    JobTimeoutError,
    ResponseDecodeError,
    SpoolFileNotFoundError,
)
from zosmfio.models import JobFilter, SubmitJobRequest
from zosmfio.services import (
    JobService,
    ZOSMFConnection,
    create_job_with_step,
    create_simple_job_statement,
    is_job_complete,
    validate_job_request,
)

BASE = "https://mainframe.example.com/zosmf/restjobs/jobs"

JCL = "//TESTJOB JOB (ACCT),'USER',MSGCLASS=A,MSGLEVEL=(1,1)\n//STEP1 EXEC PGM=IEFBR14\n"

SUBMITTED = {
    "jobid": "JOB00042",
    "jobname": "TESTJOB",
    "owner": "IBMUSER",
    "status": "INPUT",
    "url": f"{BASE}/TESTJOB/JOB00042",
}

SPOOL_FILES = [
    {"id": 2, "ddname": "JESMSGLG", "stepname": "JES2", "record-count": 14},
    {"id": 3, "ddname": "JESJCL", "stepname": "JES2", "record-count": 5},
    {"id": 102, "ddname": "SYSPRINT", "stepname": "STEP1", "record-count": 1},
]


def _job(status: str = "OUTPUT", **extra) -> dict:
    return {"jobid": "JOB00042", "jobname": "TESTJOB", "owner": "IBMUSER", "status": status, **extra}


@pytest.fixture
def service(conn: ZOSMFConnection) -> JobService:
    return JobService(conn)


def _route(make_response, routes: dict):
    """side_effect answering ``(method, url)`` from a table; unknown routes get 404."""

    def handler(method, url, **kwargs):
        answer = routes.get((method, url))
        if answer is None:
            return make_response(404, "not found")
        return make_response(*answer)

    return handler


class TestIsJobComplete:
    """Tests for is_job_complete."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("OUTPUT", True),
            ("CC 0000", True),
            ("CC 0004", True),
            ("ABEND S0C4", True),
            ("output", True),
            ("ACTIVE", False),
            ("INPUT", False),
            ("CC 0008", False),
            ("", False),
        ],
    )
    def test_status_markers(self, status: str, expected: bool) -> None:
        assert is_job_complete(status) is expected


class TestSubmitJob:
    """Tests for job submission."""

    def test_submit_inline_jcl(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(201, SUBMITTED)
        ) as req:
            result = service.submit_job_statement(JCL)

        args, kwargs = req.call_args
        assert args == ("PUT", BASE)
        assert kwargs["data"] == JCL.encode("utf-8")
        assert kwargs["json"] is None
        assert kwargs["headers"]["Content-Type"] == "text/plain"
        assert result.jobid == "JOB00042"
        assert result.correlator == "TESTJOB:JOB00042"

    def test_submit_from_dataset_adds_slashes(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(200, SUBMITTED)
        ) as req:
            service.submit_job(SubmitJobRequest(job_dataset="SYS1.JCL(HELLO)", volume="VOL001"))

        kwargs = req.call_args.kwargs
        assert kwargs["json"] == {"file": "//SYS1.JCL(HELLO)", "volume": "VOL001"}
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_submit_from_dataset_strips_user_qualifier(
        self, service: JobService, make_response
    ) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(201, SUBMITTED)
        ) as req:
            service.submit_job_from_dataset("//IBMUSER.JCL(HELLO)")

        assert req.call_args.kwargs["json"] == {"file": "//JCL(HELLO)"}

    def test_submit_from_local_file(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(202, SUBMITTED)
        ) as req:
            service.submit_job_from_local_file("/u/ibmuser/hello.jcl", "/u/ibmuser", "jcl")

        assert req.call_args.kwargs["json"] == {
            "file": "/u/ibmuser/hello.jcl",
            "directory": "/u/ibmuser",
            "extension": "jcl",
        }

    def test_submit_server_error(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(500, "JCL error")
        ):
            with pytest.raises(APIRequestError) as exc_info:
                service.submit_job_statement(JCL)
        assert exc_info.value.status_code == 500

    def test_submit_failure_is_audited(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(500, "JCL error")
        ), mock.patch.object(service._audit, "log_operation") as audit:
            with pytest.raises(APIRequestError):
                service.submit_job_statement(JCL)

        assert audit.call_args.kwargs["success"] is False
        assert "status 500" in audit.call_args.kwargs["error"]

    def test_submit_success_audits_new_job(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(201, SUBMITTED)
        ), mock.patch.object(service._audit, "log_operation") as audit:
            service.submit_job_statement(JCL)

        audit.assert_called_once()
        kwargs = audit.call_args.kwargs
        assert audit.call_args.args == ("submit_job",)
        assert kwargs["success"] is True
        assert kwargs["user"] == "IBMUSER"
        assert kwargs["job"] == "TESTJOB:JOB00042"
        assert kwargs["details"] == {"source": "job_statement", "target": "inline JCL"}

    @pytest.mark.parametrize(
        "request_",
        [
            SubmitJobRequest(),
            SubmitJobRequest(job_statement=JCL, job_dataset="SYS1.JCL"),
        ],
    )
    def test_submit_needs_exactly_one_source(self, service: JobService, request_) -> None:
        with mock.patch.object(service.conn.http, "request") as req:
            with pytest.raises(JobRequestError):
                service.submit_job(request_)
        req.assert_not_called()


class TestListJobs:
    """Tests for job listing."""

    def test_both_response_shapes_agree(self, service: JobService, make_response) -> None:
        jobs = [_job(), _job(status="ACTIVE", jobid="JOB00043")]
        with mock.patch.object(
            service.conn.http,
            "request",
            side_effect=[make_response(200, {"jobs": jobs}), make_response(200, jobs)],
        ):
            wrapped = service.list_jobs()
            bare = service.list_jobs()

        assert wrapped == bare
        assert len(wrapped) == 2
        assert [j.jobid for j in wrapped] == ["JOB00042", "JOB00043"]

    def test_empty_object_is_empty_list(self, service: JobService, make_response) -> None:
        with mock.patch.object(service.conn.http, "request", return_value=make_response(200, {})):
            assert len(service.list_jobs()) == 0

    @pytest.mark.parametrize("body", ['"jobs"', {"jobs": "none"}, "not json"])
    def test_unexpected_body(self, service: JobService, make_response, body) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(200, body)
        ):
            with pytest.raises(ResponseDecodeError):
                service.list_jobs()

    def test_filter_params(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(200, [])
        ) as req:
            service.get_jobs_by_owner("IBMUSER", max_jobs=10)

        assert req.call_args.kwargs["params"] == {"owner": "IBMUSER", "max-jobs": "10"}

    def test_filter_skips_empty_fields(self) -> None:
        assert JobFilter(prefix="TEST*", user_correlator="abc").to_params() == {
            "prefix": "TEST*",
            "user-correlator": "abc",
        }


class TestGetJob:
    """Tests for job lookup."""

    def test_get_by_correlator_reference(self, service: JobService, make_response) -> None:
        routes = {("GET", f"{BASE}/TESTJOB/JOB00042"): (200, _job(retcode="CC 0000"))}
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            job = service.get_job("TESTJOB:JOB00042")

        assert job.retcode == "CC 0000"
        assert job.correlator == "TESTJOB:JOB00042"

    def test_get_by_bare_id(self, service: JobService, make_response) -> None:
        routes = {
            ("GET", BASE): (200, [_job(status="ACTIVE")]),
            ("GET", f"{BASE}/TESTJOB/JOB00042"): (200, _job(status="ACTIVE")),
        }
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ) as req:
            job = service.get_job("JOB00042")

        assert job.status == "ACTIVE"
        assert req.call_args_list[0].kwargs["params"] == {"max-jobs": "100", "jobid": "JOB00042"}

    def test_bare_id_not_listed(self, service: JobService, make_response) -> None:
        with mock.patch.object(service.conn.http, "request", return_value=make_response(200, [])):
            with pytest.raises(JobNotFoundError):
                service.get_job("JOB99999")

    def test_malformed_correlator(self, service: JobService) -> None:
        with pytest.raises(InvalidCorrelatorError):
            service.get_job("A:B:C")

    def test_get_job_info_falls_back_to_job(self, service: JobService, make_response) -> None:
        routes = {
            ("GET", f"{BASE}/TESTJOB/JOB00042/files"): (200, SPOOL_FILES),
            ("GET", f"{BASE}/TESTJOB/JOB00042"): (200, _job(phase=20)),
        }
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            info = service.get_job_info("TESTJOB:JOB00042")

        assert info.jobid == "JOB00042"
        assert info.phase == 20

    def test_get_job_status(self, service: JobService, make_response) -> None:
        routes = {("GET", f"{BASE}/TESTJOB/JOB00042"): (200, _job(status="ACTIVE"))}
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            assert service.get_job_status("TESTJOB:JOB00042") == "ACTIVE"


class TestWaitForCompletion:
    """Tests for completion polling."""

    def test_returns_completed_status(self, service: JobService, make_response) -> None:
        responses = [make_response(200, _job(status="ACTIVE")), make_response(200, _job("OUTPUT"))]
        with mock.patch("zosmfio.services.jobs.time") as mock_time, mock.patch.object(
            service.conn.http, "request", side_effect=responses
        ):
            mock_time.monotonic.return_value = 0.0
            status = service.wait_for_job_completion("TESTJOB:JOB00042", timeout=60, poll_interval=2)

        assert status == "OUTPUT"
        mock_time.sleep.assert_called_once_with(2.0)

    def test_times_out(self, service: JobService, make_response) -> None:
        with mock.patch("zosmfio.services.jobs.time") as mock_time, mock.patch.object(
            service.conn.http,
            "request",
            side_effect=lambda *a, **k: make_response(200, _job(status="ACTIVE")),
        ) as req:
            mock_time.monotonic.side_effect = [0.0, 0.0, 10.0, 20.0]
            with pytest.raises(JobTimeoutError) as exc_info:
                service.wait_for_job_completion("TESTJOB:JOB00042", timeout=15, poll_interval=5)

        assert req.call_count == 2
        assert mock_time.sleep.call_count == 2
        assert "timeout waiting for job TESTJOB:JOB00042 to complete" in str(exc_info.value)

    def test_lookup_error_propagates(self, service: JobService, make_response) -> None:
        with mock.patch("zosmfio.services.jobs.time") as mock_time, mock.patch.object(
            service.conn.http, "request", return_value=make_response(500, "down")
        ):
            mock_time.monotonic.return_value = 0.0
            with pytest.raises(APIRequestError):
                service.wait_for_job_completion("TESTJOB:JOB00042")
        mock_time.sleep.assert_not_called()


class TestSpoolOutput:
    """Tests for spool file retrieval."""

    def test_spool_files(self, service: JobService, make_response) -> None:
        routes = {("GET", f"{BASE}/TESTJOB/JOB00042/files"): (200, SPOOL_FILES)}
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            files = service.get_spool_files_by_correlator("TESTJOB:JOB00042")

        assert [f.ddname for f in files] == ["JESMSGLG", "JESJCL", "SYSPRINT"]
        assert files[2].id == 102
        assert files[0].records == 14

    def test_spool_files_must_be_array(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(200, {"files": []})
        ):
            with pytest.raises(ResponseDecodeError):
                service.get_spool_files("TESTJOB", "JOB00042")

    def test_spool_content_is_raw_text(self, service: JobService, make_response) -> None:
        routes = {("GET", f"{BASE}/TESTJOB/JOB00042/files/102/records"): (200, "HELLO WORLD\n")}
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            assert service.get_spool_file_content("TESTJOB", "JOB00042", 102) == "HELLO WORLD\n"

    def test_spool_content_non_ascii(self, service: JobService, make_response) -> None:
        routes = {
            ("GET", f"{BASE}/TESTJOB/JOB00042/files/102/records"): (200, "Größe: 42 €\n")
        }
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            assert service.get_spool_file_content("TESTJOB", "JOB00042", 102) == "Größe: 42 €\n"

    def test_job_output_skips_failed_dd(self, service: JobService, make_response) -> None:
        routes = {
            ("GET", f"{BASE}/TESTJOB/JOB00042/files"): (200, SPOOL_FILES),
            ("GET", f"{BASE}/TESTJOB/JOB00042/files/2/records"): (200, "JES LOG"),
            ("GET", f"{BASE}/TESTJOB/JOB00042/files/102/records"): (200, "HELLO"),
        }
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            output = service.get_job_output("TESTJOB:JOB00042")

        assert output == {"JESMSGLG": "JES LOG", "SYSPRINT": "HELLO"}

    def test_job_output_by_ddname(self, service: JobService, make_response) -> None:
        routes = {
            ("GET", f"{BASE}/TESTJOB/JOB00042/files"): (200, SPOOL_FILES),
            ("GET", f"{BASE}/TESTJOB/JOB00042/files/102/records"): (200, "HELLO"),
        }
        with mock.patch.object(
            service.conn.http, "request", side_effect=_route(make_response, routes)
        ):
            assert service.get_job_output_by_ddname("TESTJOB:JOB00042", "SYSPRINT") == "HELLO"
            with pytest.raises(SpoolFileNotFoundError):
                service.get_job_output_by_ddname("TESTJOB:JOB00042", "SYSOUT")


class TestJobControl:
    """Tests for cancel, purge and delete."""

    @pytest.mark.parametrize("action", ["cancel", "purge"])
    def test_actions_put_to_correlator(
        self, service: JobService, make_response, action: str
    ) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(204)
        ) as req:
            getattr(service, f"{action}_job")("TESTJOB:JOB00042")

        assert req.call_args.args == ("PUT", f"{BASE}/TESTJOB:JOB00042/{action}")

    def test_delete_job(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(200)
        ) as req, mock.patch.object(service._audit, "log_operation") as audit:
            service.delete_job("TESTJOB:JOB00042")

        assert req.call_args.args == ("DELETE", f"{BASE}/TESTJOB/JOB00042")
        audit.assert_called_once()
        assert audit.call_args.kwargs["job"] == "TESTJOB:JOB00042"
        assert audit.call_args.kwargs["success"] is True

    def test_purge_rejected(self, service: JobService, make_response) -> None:
        with mock.patch.object(
            service.conn.http, "request", return_value=make_response(400, "not found")
        ):
            with pytest.raises(APIRequestError):
                service.purge_job("TESTJOB:JOB00042")


class TestValidateJobRequest:
    """Tests for validate_job_request."""

    def test_valid_requests(self) -> None:
        for request in (
            SubmitJobRequest(job_statement=JCL),
            SubmitJobRequest(job_dataset="//SYS1.JCL(HELLO)"),
            SubmitJobRequest(job_local_file="/u/ibmuser/hello.jcl"),
        ):
            assert validate_job_request(request) is request

    def test_none_rejected(self) -> None:
        with pytest.raises(JobRequestError, match="cannot be None"):
            validate_job_request(None)

    def test_missing_job_card(self) -> None:
        with pytest.raises(JobRequestError, match="JOB card"):
            validate_job_request(SubmitJobRequest(job_statement="//STEP1 EXEC PGM=IEFBR14"))

    def test_invalid_dataset(self) -> None:
        with pytest.raises(JobRequestError, match="invalid dataset name"):
            validate_job_request(SubmitJobRequest(job_dataset="1BAD..NAME"))


class TestJCLHelpers:
    """Tests for JCL builders."""

    def test_simple_job_statement(self) -> None:
        assert (
            create_simple_job_statement("TESTJOB", "ACCT", "USER", "A", "(1,1)")
            == "//TESTJOB JOB (ACCT),'USER',MSGCLASS=A,MSGLEVEL=(1,1)"
        )

    def test_defaults(self) -> None:
        assert create_simple_job_statement() == "//GOJOB JOB (ACCT),'USER',MSGCLASS=A,MSGLEVEL=(1,1)"

    def test_job_with_step(self) -> None:
        jcl = create_job_with_step(
            "TESTJOB",
            pgm="IEBGENER",
            dd_statements=["//SYSPRINT DD SYSOUT=*", "//SYSIN DD DUMMY"],
        )
        assert jcl.splitlines() == [
            "//TESTJOB JOB (ACCT),'USER',MSGCLASS=A,MSGLEVEL=(1,1)",
            "//STEP1 EXEC PGM=IEBGENER",
            "//SYSPRINT DD SYSOUT=*",
            "//SYSIN DD DUMMY",
        ]
        assert jcl.endswith("\n")
        assert validate_job_request(SubmitJobRequest(job_statement=jcl))
