"""Shared fixtures for zosmfio tests."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Generator, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict
from requests.utils import get_encoding_from_headers

from zosmfio.config import ZOSMFProfile, create_profile
from zosmfio.services import ZOSMFConnection


def _build_response(
    status: int = 200, body: Any = b"", headers: Optional[Dict[str, str]] = None
) -> requests.Response:
    """Canned response with headers and encoding set as the requests adapter does."""
    response = requests.Response()
    response.status_code = status
    content_type = "text/plain"
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
        content_type = "application/json"
    if isinstance(body, str):
        body = body.encode("utf-8")
    response._content = body
    response.headers = CaseInsensitiveDict({"Content-Type": content_type, **(headers or {})})
    response.encoding = get_encoding_from_headers(response.headers)
    response.url = "https://mainframe.example.com/zosmf"
    return response


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    """Factory for canned ``requests.Response`` objects (JSON for dicts and lists)."""
    return _build_response


@pytest.fixture
def profile() -> ZOSMFProfile:
    return create_profile("test", "mainframe.example.com", 443, "IBMUSER", "secret")


@pytest.fixture
def conn(profile: ZOSMFProfile) -> Generator[ZOSMFConnection, None, None]:
    connection = ZOSMFConnection(profile)
    yield connection
    connection.close()
