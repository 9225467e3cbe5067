"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_base_url(value: Any) -> str:
    """Validate a site base URL and drop trailing slashes."""
    if not isinstance(value, str):
        raise TypeError(f"Expected URL string, got: {type(value)!r}")
    url = value.strip()
    if not url.lower().startswith(("http://", "https://")):
        raise ValueError("base_url must start with http:// or https://")
    return url.rstrip("/")


class ResolverConfig(BaseModel):
    """Settings of the episode stream resolution pipeline.

    All values configurable via YAML (resolver section) or ENV vars.
    """

    base_url: str = Field(
        default="https://kajzu.com",
        description="Content site base URL (custom domain override).",
    )
    referer: str = Field(
        default="",
        description="Referer sent to the content site. Defaults to base_url + '/'.",
    )

    max_concurrent_links: int = Field(
        default=8,
        description="Max server links resolved in parallel per episode.",
    )
    link_timeout_seconds: float = Field(
        default=30.0,
        description="Overall timeout for resolving one server link.",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for each individual HTTP request.",
    )

    embed_path_markers: list[str] = Field(
        default=["/embed", "/player", "/e/"],
        description="Path fragments marking same-site embed pages.",
    )
    shortener_domains: list[str] = Field(
        default=[
            "short.icu",
            "bit.ly",
            "tinyurl.com",
            "cutt.ly",
            "shorturl.at",
            "is.gd",
        ],
        description="URL shortener hosts followed before dispatch.",
    )

    p2pplay_api_host: str = Field(
        default="t1.p2pplay.pro",
        description="Host of the P2PPlay video API.",
    )
    script_scan_enabled: bool = Field(
        default=True,
        description="Scan inline scripts when no other discovery strategy matches.",
    )
    redirect_cache_ttl_seconds: float = Field(
        default=3600.0,
        description="TTL for cached shortener redirect targets (seconds).",
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def _validate_base_url(cls, v: Any) -> str:
        return _normalize_base_url(v)

    @field_validator("max_concurrent_links")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent_links must be >= 1")
        return v

    @field_validator("link_timeout_seconds", "request_timeout_seconds")
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("redirect_cache_ttl_seconds")
    @classmethod
    def _validate_cache_ttl(cls, v: float) -> float:
        if v < 0:
            raise ValueError("redirect_cache_ttl_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_referer(self) -> "ResolverConfig":
        if not self.referer:
            self.referer = f"{self.base_url}/"
        return self


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/resolver).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="embedarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default HTTP timeout in seconds for the shared client.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Mozilla/5.0 (compatible; Embedarr/0.1.0)",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Resolution pipeline (YAML section: resolver.*)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "resolver": self.resolver.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read EMBEDARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - EMBEDARR_HTTP_TIMEOUT_SECONDS
    - EMBEDARR_LOG_LEVEL
    - EMBEDARR_BASE_URL
    - EMBEDARR_MAX_CONCURRENT_LINKS
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    base_url: Optional[str] = None
    referer: Optional[str] = None
    max_concurrent_links: Optional[int] = None
    link_timeout_seconds: Optional[float] = None
    request_timeout_seconds: Optional[float] = None
    p2pplay_api_host: Optional[str] = None
    script_scan_enabled: Optional[bool] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
