"""Centralized configuration management for the Furni storefront client."""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer of :mod:`furni.settings` sees the same
# values regardless of import order.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_API_BASE_URL = "https://vso4w24kxa.execute-api.us-east-1.amazonaws.com/prod/"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_SLOW_REQUEST_THRESHOLD_SECONDS = 1.0
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CURRENCY = "USD"
DEFAULT_MERCHANT_LABEL = "Furni"


def _normalize_base_url(url: str) -> str:
    """Return ``url`` stripped of whitespace and terminated by a single slash.

    Endpoints are joined relative to the base URL, so a missing trailing slash
    would silently drop the last path segment (``/prod``).
    """

    return url.strip().rstrip("/") + "/"


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    The class encapsulates the environment variables consumed by the gateway,
    the cart pricing policy and the checkout collaborator so that the service
    objects never read ``os.environ`` directly.
    """

    _explicit_charge_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:  # noqa: D401 - short override explanation
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_charge_url = (
            "backend_charge_url" in normalized_keys
            and bool(values.get("backend_charge_url"))
        )
        charge_env = os.getenv("BACKEND_CHARGE_URL")
        if charge_env is not None and charge_env.strip():
            self._explicit_charge_url = True

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        alias="FURNI_API_BASE_URL",
        description="Base URL every catalog and social endpoint is resolved against.",
    )
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        alias="FURNI_REQUEST_TIMEOUT",
        gt=0,
        description="Timeout applied to each gateway request.",
    )
    slow_request_threshold: float = Field(
        default=DEFAULT_SLOW_REQUEST_THRESHOLD_SECONDS,
        alias="SLOW_REQUEST_THRESHOLD",
        description="Requests slower than this many seconds are logged as warnings.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    shipping_flat_rate: Decimal = Field(
        default=Decimal("0"),
        alias="SHIPPING_FLAT_RATE",
        ge=0,
        description="Shipping charged for any non-empty cart.",
    )
    free_shipping_threshold: Decimal | None = Field(
        default=None,
        alias="FREE_SHIPPING_THRESHOLD",
        ge=0,
        description="Subtotal at or above which shipping is waived.",
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        alias="CURRENCY",
        description="ISO currency code used for payment summaries.",
    )
    merchant_label: str = Field(
        default=DEFAULT_MERCHANT_LABEL,
        alias="MERCHANT_LABEL",
        description="Label of the total line shown by the payment sheet.",
    )
    backend_charge_url: str | None = Field(
        default=None,
        alias="BACKEND_CHARGE_URL",
        description="Base URL of the backend that turns payment tokens into charges.",
    )

    @property
    def resolved_api_base_url(self) -> str:
        """Return the gateway base URL with exactly one trailing slash."""

        return _normalize_base_url(self.api_base_url)

    @property
    def resolved_charge_base_url(self) -> str | None:
        """Return the payment backend base URL or ``None`` when checkout is unconfigured."""

        if not self.backend_charge_url or not self.backend_charge_url.strip():
            return None
        return _normalize_base_url(self.backend_charge_url)

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_charge_url:
            warnings.append(
                "BACKEND_CHARGE_URL is not set - checkout will fail after payment "
                "authorization"
            )

        if self.free_shipping_threshold is None and self.shipping_flat_rate > 0:
            warnings.append(
                "FREE_SHIPPING_THRESHOLD is not set - every order pays the flat "
                "shipping rate"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_CURRENCY",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MERCHANT_LABEL",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "DEFAULT_SLOW_REQUEST_THRESHOLD_SECONDS",
    "get_settings",
]
