from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TypedDict

from dotenv import load_dotenv

from .core import (
    InvalidConfigurationError,
    MissingCredentialsError,
    ProfileError,
    validate_port,
    validate_timeout,
)

# Default values
DEFAULT_PORT = 443
DEFAULT_PROTOCOL = "https"
DEFAULT_BASE_PATH = "/zosmf"
DEFAULT_RESPONSE_TIMEOUT = 30  # seconds, per request


@dataclass(frozen=True)
class ZOSMFProfile:
    """Connection descriptor for one z/OSMF instance.

    Attributes:
        name: Profile name, used only for logging and error messages.
        host: z/OSMF host name.
        port: TCP port; 0 means "use the protocol default".
        user: TSO user ID.
        password: Password or passphrase.
        reject_unauthorized: Verify the server TLS certificate.
        base_path: z/OSMF context root (default /zosmf).
        protocol: http or https (default https; ports 80/8080 force http).
        encoding: Default codepage for content downloads.
        response_timeout: Per-request timeout in seconds (0 = library default).
        cert_file: Optional client certificate (PEM).
        cert_key_file: Optional client certificate key (PEM).
    """

    name: str = ""
    host: str = ""
    port: int = 0
    user: str = ""
    password: str = field(default="", repr=False)
    reject_unauthorized: bool = True
    base_path: str = ""
    protocol: str = ""
    encoding: str = ""
    response_timeout: int = 0
    cert_file: str = ""
    cert_key_file: str = ""


class _LoggingConfig(TypedDict, total=False):
    """Optional logging settings; absent keys leave logging untouched."""

    log_level: Optional[str]
    log_json: bool
    audit_file: Optional[str]


class ZOSMFConfig(_LoggingConfig):
    """Configuration dictionary read from the environment.

    Attributes:
        host: z/OSMF host name
        port: z/OSMF port (default 443)
        user: TSO user ID
        password: Password or passphrase
        protocol: http or https (default https)
        base_path: z/OSMF context root (default /zosmf)
        reject_unauthorized: Whether to verify TLS certificates (default True)
        response_timeout: Per-request timeout in seconds (default 30)
        encoding: Optional default download codepage
        log_level: Level for setup_logging; None leaves logging unconfigured
        log_json: Emit JSON log lines
        audit_file: JSON-lines file for audit records
    """

    host: str
    port: int
    user: str
    password: str
    protocol: str
    base_path: str
    reject_unauthorized: bool
    response_timeout: int
    encoding: Optional[str]


def _str_to_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    value_norm = value.strip().lower()
    if value_norm in {"1", "true", "yes", "y", "on"}:
        return True
    if value_norm in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_int(value: Optional[str], default: int) -> int:
    """Parse a string to an integer with a fallback default."""
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def load_config(env_path: Optional[Path] = None, *, require_credentials: bool = True) -> ZOSMFConfig:
    """Load connection settings from environment variables and .env files.

    Behavior:
        - If env_path is provided, load that .env file with override=True (it overrides OS env).
        - Else, if a .env exists in the current working directory, load it with override=False.
        - Finally, read variables from the environment.

    Required variables:
        ZOSMF_HOST, ZOSMF_USER, ZOSMF_PASSWORD

    Optional variables:
        ZOSMF_PORT: default 443
        ZOSMF_PROTOCOL: default https
        ZOSMF_BASE_PATH: default /zosmf
        ZOSMF_REJECT_UNAUTHORIZED: verify TLS certificates (default true)
        ZOSMF_RESPONSE_TIMEOUT: per-request timeout in seconds (default 30)
        ZOSMF_ENCODING: default codepage for downloads
        ZOSMF_LOG_LEVEL: configure zosmfio logging at this level when the client is built
        ZOSMF_LOG_JSON: JSON log lines (default false)
        ZOSMF_AUDIT_FILE: write audit records to this file

    Raises:
        FileNotFoundError: If explicit env_path is provided but does not exist.
        MissingCredentialsError: If required variables are missing.
        InvalidConfigurationError: If port or timeout is not a usable integer.
    """
    if env_path:
        p = Path(env_path).expanduser()
        if not p.exists():
            raise FileNotFoundError(f"Environment file not found: {p}")
        load_dotenv(p, override=True)
    else:
        default_env = Path.cwd() / ".env"
        if default_env.exists():
            load_dotenv(default_env, override=False)

    host = os.getenv("ZOSMF_HOST")
    user = os.getenv("ZOSMF_USER")
    password = os.getenv("ZOSMF_PASSWORD")

    if require_credentials and (not host or not user or not password):
        missing = [
            name
            for name, val in (
                ("ZOSMF_HOST", host),
                ("ZOSMF_USER", user),
                ("ZOSMF_PASSWORD", password),
            )
            if not val
        ]
        raise MissingCredentialsError(missing)

    port_raw = os.getenv("ZOSMF_PORT")
    port = DEFAULT_PORT
    if port_raw:
        try:
            port_int = int(port_raw.strip())
        except ValueError as exc:
            raise InvalidConfigurationError("ZOSMF_PORT", port_raw, "must be an integer") from exc
        port = validate_port(port_int) or DEFAULT_PORT

    response_timeout = validate_timeout(
        _parse_int(os.getenv("ZOSMF_RESPONSE_TIMEOUT"), DEFAULT_RESPONSE_TIMEOUT),
        "ZOSMF_RESPONSE_TIMEOUT",
    )

    return ZOSMFConfig(
        host=host or "",
        port=port,
        user=user or "",
        password=password or "",
        protocol=(os.getenv("ZOSMF_PROTOCOL") or DEFAULT_PROTOCOL).strip().lower(),
        base_path=os.getenv("ZOSMF_BASE_PATH") or DEFAULT_BASE_PATH,
        reject_unauthorized=_str_to_bool(os.getenv("ZOSMF_REJECT_UNAUTHORIZED"), default=True),
        response_timeout=response_timeout,
        encoding=os.getenv("ZOSMF_ENCODING"),
        log_level=os.getenv("ZOSMF_LOG_LEVEL") or None,
        log_json=_str_to_bool(os.getenv("ZOSMF_LOG_JSON"), default=False),
        audit_file=os.getenv("ZOSMF_AUDIT_FILE") or None,
    )


def profile_from_config(cfg: ZOSMFConfig, name: str = "default") -> ZOSMFProfile:
    """Turn a ZOSMFConfig into an immutable profile."""
    return ZOSMFProfile(
        name=name,
        host=cfg["host"],
        port=cfg.get("port", DEFAULT_PORT),
        user=cfg["user"],
        password=cfg["password"],
        reject_unauthorized=cfg.get("reject_unauthorized", True),
        base_path=cfg.get("base_path", DEFAULT_BASE_PATH),
        protocol=cfg.get("protocol", DEFAULT_PROTOCOL),
        encoding=cfg.get("encoding") or "",
        response_timeout=cfg.get("response_timeout", DEFAULT_RESPONSE_TIMEOUT),
    )


def create_profile(
    name: str,
    host: str,
    port: int,
    user: str,
    password: str,
    *,
    reject_unauthorized: bool = True,
    base_path: str = "",
    protocol: str = DEFAULT_PROTOCOL,
) -> ZOSMFProfile:
    """Build a profile programmatically."""
    return ZOSMFProfile(
        name=name,
        host=host,
        port=port,
        user=user,
        password=password,
        reject_unauthorized=reject_unauthorized,
        base_path=base_path,
        protocol=protocol,
    )


def validate_profile(profile: ZOSMFProfile) -> ZOSMFProfile:
    """Check that a profile carries everything needed to authenticate.

    Raises:
        ProfileError: If host, user or password is empty, or port is not positive.
    """
    if not profile.host:
        raise ProfileError("host is required", profile=profile.name)
    if not profile.user:
        raise ProfileError("user is required", profile=profile.name)
    if not profile.password:
        raise ProfileError("password is required", profile=profile.name)
    if profile.port <= 0:
        raise ProfileError("port must be greater than 0", profile=profile.name)
    return profile


def clone_profile(profile: ZOSMFProfile, **changes: Any) -> ZOSMFProfile:
    """Copy a profile, optionally replacing some fields."""
    return dataclasses.replace(profile, **changes)
