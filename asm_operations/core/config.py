"""Client configuration loaded from environment variables.

All values have defaults suitable for the public Service Management
endpoint.  ``from_env()`` validates ranges and raises
``ConfigValidationError`` so bad configuration fails at startup rather
than halfway through an upload.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from asm_operations.core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_VERSION,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from asm_operations.core.exceptions import OperationsError


class ConfigValidationError(OperationsError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Immutable client configuration.

    Attributes:
        api_base_url: Root URL of the management API.
        subscription_id: Subscription prefixed to every resource path
            (empty for APIs that are not subscription-scoped).
        api_version: ``x-ms-version`` header value.
        request_timeout_seconds: Per-request HTTP timeout.
        poll_interval_seconds: Wait between operation-status polls.
        poll_max_attempts: Status GETs before a poll is declared timed out.
        poll_deadline_seconds: Optional wall-clock budget per poll
            (``0`` disables it).
        uploader: Registered payload uploader name.
        upload_max_concurrency: Parallel block uploads for the blob uploader.
        client_cert_path: PEM management certificate (empty for none).
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    subscription_id: str = ""
    api_version: str = DEFAULT_API_VERSION
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS
    poll_deadline_seconds: float = 0.0
    uploader: str = "azure_blob"
    upload_max_concurrency: int = 1
    client_cert_path: str = ""

    @property
    def poll_deadline(self) -> float | None:
        """Deadline in seconds, or ``None`` when disabled."""
        return self.poll_deadline_seconds or None

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load and validate configuration from ``ASM_*`` environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a required
                string value is empty.
            ValueError: If a numeric variable cannot be parsed
                (e.g. ``ASM_POLL_MAX_ATTEMPTS=abc``).
        """
        config = cls(
            api_base_url=os.getenv("ASM_API_BASE_URL", DEFAULT_API_BASE_URL),
            subscription_id=os.getenv("ASM_SUBSCRIPTION_ID", ""),
            api_version=os.getenv("ASM_API_VERSION", DEFAULT_API_VERSION),
            request_timeout_seconds=float(
                os.getenv("ASM_REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))
            ),
            poll_interval_seconds=float(
                os.getenv("ASM_POLL_INTERVAL_SECONDS", str(DEFAULT_POLL_INTERVAL_SECONDS))
            ),
            poll_max_attempts=int(
                os.getenv("ASM_POLL_MAX_ATTEMPTS", str(DEFAULT_POLL_MAX_ATTEMPTS))
            ),
            poll_deadline_seconds=float(os.getenv("ASM_POLL_DEADLINE_SECONDS", "0")),
            uploader=os.getenv("ASM_UPLOADER", "azure_blob"),
            upload_max_concurrency=int(os.getenv("ASM_UPLOAD_MAX_CONCURRENCY", "1")),
            client_cert_path=os.getenv("ASM_CLIENT_CERT_PATH", ""),
        )
        _validate(config)
        return config


def _validate(config: ClientConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.api_base_url.startswith(("https://", "http://")):
        raise ConfigValidationError(
            "ASM_API_BASE_URL",
            config.api_base_url,
            "must be an absolute http(s) URL",
        )

    if not config.api_version:
        raise ConfigValidationError("ASM_API_VERSION", config.api_version, "must not be empty")

    if config.request_timeout_seconds <= 0:
        raise ConfigValidationError(
            "ASM_REQUEST_TIMEOUT_SECONDS",
            config.request_timeout_seconds,
            "must be > 0 (seconds)",
        )

    if config.poll_interval_seconds < 0:
        raise ConfigValidationError(
            "ASM_POLL_INTERVAL_SECONDS",
            config.poll_interval_seconds,
            "must be >= 0 (seconds)",
        )

    if config.poll_max_attempts < 1:
        raise ConfigValidationError(
            "ASM_POLL_MAX_ATTEMPTS",
            config.poll_max_attempts,
            "must be >= 1",
        )

    if config.poll_deadline_seconds < 0:
        raise ConfigValidationError(
            "ASM_POLL_DEADLINE_SECONDS",
            config.poll_deadline_seconds,
            "must be >= 0 (seconds, 0 disables the deadline)",
        )

    if not config.uploader:
        raise ConfigValidationError("ASM_UPLOADER", config.uploader, "must not be empty")

    if config.upload_max_concurrency < 1:
        raise ConfigValidationError(
            "ASM_UPLOAD_MAX_CONCURRENCY",
            config.upload_max_concurrency,
            "must be >= 1",
        )
