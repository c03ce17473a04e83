"""Base z/OSMF connection with session state and HTTP utilities.

This module provides the foundational ZOSMFConnection class that handles:
- Base URL resolution from a profile
- Default headers, including HTTP Basic authentication
- Authenticated HTTP requests with status checking and transport error wrapping
- Connection pool lifecycle
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Iterable, Optional

import requests

from ..config import (
    DEFAULT_BASE_PATH,
    DEFAULT_PROTOCOL,
    DEFAULT_RESPONSE_TIMEOUT,
    ZOSMFConfig,
    ZOSMFProfile,
    create_profile,
    profile_from_config,
)
from ..core import (
    APIRequestError,
    ResponseDecodeError,
    TransportError,
    get_logger,
    redact_headers,
    validate_timeout,
)

# Ports that always use plain HTTP
HTTP_PORTS = (80, 8080)
# Ports left out of the base URL
IMPLICIT_PORTS = (0, 80, 443)


def build_base_url(profile: ZOSMFProfile) -> str:
    """Resolve ``{protocol}://{host}[:{port}]{base_path}`` for a profile.

    Protocol defaults to https and is forced to http on ports 80 and 8080.
    The port is omitted when it is 0, 80 or 443. The base path defaults to
    /zosmf and always starts with a slash.
    """
    protocol = profile.protocol or DEFAULT_PROTOCOL
    if profile.port in HTTP_PORTS:
        protocol = "http"

    url = f"{protocol}://{profile.host}"
    if profile.port not in IMPLICIT_PORTS:
        url += f":{profile.port}"

    base_path = profile.base_path or DEFAULT_BASE_PATH
    if not base_path.startswith("/"):
        base_path = "/" + base_path
    return url + base_path


def build_default_headers(profile: ZOSMFProfile) -> Dict[str, str]:
    """JSON content headers, plus Basic auth when user and password are both set."""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if profile.user and profile.password:
        token = base64.b64encode(f"{profile.user}:{profile.password}".encode("utf-8"))
        headers["Authorization"] = "Basic " + token.decode("ascii")
    return headers


class ZOSMFConnection:
    """Session against one z/OSMF instance.

    Holds the resolved base URL, the default header map and a pooled
    ``requests.Session``. Construction does no network I/O.

    Usage:
        conn = ZOSMFConnection.from_profile(profile)
        response = conn.get("/restjobs/jobs", params={"owner": "IBMUSER"})

        with ZOSMFConnection.from_config(load_config()) as conn:
            conn.add_header("X-CSRF-ZOSMF-HEADER", "true")
    """

    def __init__(
        self,
        profile: ZOSMFProfile,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize a session from a profile.

        Args:
            profile: Connection profile.
            logger: Optional logger instance.

        Raises:
            InvalidConfigurationError: If the profile's response timeout is out of range.
        """
        self.profile = profile
        self.base_url = build_base_url(profile)
        self.headers: Dict[str, str] = build_default_headers(profile)
        self.timeout = validate_timeout(
            profile.response_timeout or DEFAULT_RESPONSE_TIMEOUT, "response_timeout"
        )
        self.log = logger or get_logger(__name__)

        self.http = requests.Session()
        self.http.verify = profile.reject_unauthorized
        if profile.cert_file:
            self.http.cert = (
                (profile.cert_file, profile.cert_key_file)
                if profile.cert_key_file
                else profile.cert_file
            )

    @classmethod
    def from_profile(cls, profile: ZOSMFProfile) -> "ZOSMFConnection":
        return cls(profile)

    @classmethod
    def from_config(cls, cfg: ZOSMFConfig) -> "ZOSMFConnection":
        """Create connection from configuration dictionary.

        Args:
            cfg: Configuration dictionary from load_config().

        Returns:
            Configured ZOSMFConnection instance.
        """
        return cls(profile_from_config(cfg))

    @property
    def username(self) -> str:
        return self.profile.user

    @property
    def host(self) -> str:
        return self.profile.host

    # =========================================================================
    # Header Management
    # =========================================================================

    def add_header(self, key: str, value: str) -> None:
        """Set a header sent with every request."""
        self.headers[key] = value

    def remove_header(self, key: str) -> None:
        """Stop sending a default header. Unknown keys are ignored."""
        self.headers.pop(key, None)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def url(self, path: str) -> str:
        """Absolute URL for an API path such as ``/restjobs/jobs``."""
        return self.base_url + path

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        ok_statuses: Optional[Iterable[int]] = None,
    ) -> requests.Response:
        """Perform an authenticated request.

        Args:
            method: HTTP method.
            path: API path below the base URL.
            params: Query parameters.
            data: Raw request body.
            json: JSON request body.
            headers: Headers merged over the default headers for this call only.
            ok_statuses: Accepted status codes. None accepts any status.

        Returns:
            Response object.

        Raises:
            TransportError: If no response was received.
            APIRequestError: If the status is not in ok_statuses.
        """
        url = self.url(path)
        merged = dict(self.headers)
        if headers:
            merged.update(headers)

        self.log.debug(
            "%s %s params=%s headers=%s",
            method,
            url,
            params,
            redact_headers(merged),
        )

        try:
            response = self.http.request(
                method,
                url,
                params=params,
                data=data,
                json=json,
                headers=merged,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(method, url, e) from e

        self.log.debug(
            "%s %s -> %d",
            method,
            url,
            response.status_code,
            extra={"status_code": response.status_code},
        )

        if ok_statuses is not None:
            self.check_response(response, ok_statuses)
        return response

    def check_response(self, response: requests.Response, ok_statuses: Iterable[int]) -> None:
        """Raise APIRequestError carrying status and body unless the status is accepted."""
        if response.status_code not in tuple(ok_statuses):
            request = response.request
            raise APIRequestError(
                response.status_code,
                self.decode_text(response),
                method=request.method if request is not None else None,
                url=request.url if request is not None else response.url,
            )

    def get(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    @staticmethod
    def decode_text(response: requests.Response) -> str:
        """Body as text, read as UTF-8 unless Content-Type names a charset.

        z/OSMF serves dataset and spool records as ``text/plain`` with no
        charset, for which requests would otherwise assume ISO-8859-1.
        """
        content_type = response.headers.get("Content-Type", "")
        if "charset=" in content_type.lower():
            return response.text
        return (response.content or b"").decode("utf-8", errors="replace")

    @classmethod
    def decode_json(cls, response: requests.Response) -> Any:
        """Parse a JSON body.

        Raises:
            ResponseDecodeError: If the body is not valid JSON.
        """
        try:
            return response.json()
        except ValueError as e:
            raise ResponseDecodeError(cls.decode_text(response), str(e)) from e

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def close(self) -> None:
        """Release pooled connections."""
        self.http.close()

    def __enter__(self) -> "ZOSMFConnection":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def create_session_direct(
    host: str,
    port: int,
    user: str,
    password: str,
    *,
    reject_unauthorized: bool = True,
    base_path: str = "",
) -> ZOSMFConnection:
    """Build a connection without a named profile."""
    profile = create_profile(
        "direct",
        host,
        port,
        user,
        password,
        reject_unauthorized=reject_unauthorized,
        base_path=base_path,
    )
    return ZOSMFConnection.from_profile(profile)
