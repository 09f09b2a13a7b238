"""
Configuration management for Domain Watch.

Every setting comes from environment variables; each concern reads its own
prefix (DB_, DNS_, SMTP_, WEBHOOK_, DOMAIN_WATCH_).
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class StoreConfig(BaseSettings):
    """Snapshot store configuration."""

    path: str = Field(
        default="/data/domain_watch.db",
        description="Path to the SQLite snapshot database"
    )

    class Config:
        env_prefix = "DB_"


class DnsConfig(BaseSettings):
    """DNS resolver configuration."""

    nameservers: str = Field(
        default="1.1.1.1",
        description="Comma-separated resolver IPs (empty: use system resolver)"
    )
    timeout: float = Field(
        default=5.0,
        gt=0.0,
        description="Per-query timeout in seconds"
    )

    @property
    def nameserver_list(self) -> List[str]:
        return _split_csv(self.nameservers)

    class Config:
        env_prefix = "DNS_"


class SmtpConfig(BaseSettings):
    """SMTP settings for the email subscriber."""

    host: str = Field(default="", description="SMTP server hostname")
    port: int = Field(default=587, ge=1, le=65535, description="SMTP server port")
    user: str = Field(default="", description="SMTP username")
    password: str = Field(default="", description="SMTP password")
    from_email: str = Field(default="", description="Sender address")
    to_email: str = Field(
        default="",
        description="Recipient address (comma-separated for multiple)"
    )
    use_tls: bool = Field(default=True, description="Issue STARTTLS before login")

    @property
    def recipients(self) -> List[str]:
        return _split_csv(self.to_email)

    def is_enabled(self) -> bool:
        """Email needs a server, a sender and at least one recipient."""
        return bool(self.host and self.from_email and self.recipients)

    class Config:
        env_prefix = "SMTP_"


class WebhookConfig(BaseSettings):
    """Webhook subscriber configuration."""

    url: str = Field(default="", description="Webhook endpoint URL")
    token: str = Field(default="", description="Optional Bearer token")
    timeout: float = Field(default=10.0, gt=0.0, description="Request timeout in seconds")

    def is_enabled(self) -> bool:
        return bool(self.url)

    class Config:
        env_prefix = "WEBHOOK_"


class RunnerConfig(BaseSettings):
    """Batch run configuration."""

    max_workers: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Number of domains processed concurrently"
    )
    keep_last_known: bool = Field(
        default=False,
        description="Keep the stored value when a fetch fails instead of writing an empty one"
    )

    class Config:
        env_prefix = "DOMAIN_WATCH_"


class AppConfig(BaseSettings):
    """All Domain Watch settings."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Nested configurations
    store: StoreConfig = Field(default_factory=StoreConfig)
    dns: DnsConfig = Field(default_factory=DnsConfig)
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Process-wide settings, built on first use
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Return the settings for this process, reading the environment once.

    Returns:
        AppConfig: Shared settings object
    """
    global _config
    if _config is None:
        _config = AppConfig(
            store=StoreConfig(),
            dns=DnsConfig(),
            smtp=SmtpConfig(),
            webhook=WebhookConfig(),
            runner=RunnerConfig(),
        )
    return _config


def reload_config() -> AppConfig:
    """
    Drop the cached settings and read the environment again.

    Tests call this after changing DB_PATH or SMTP_* variables.
    """
    global _config
    _config = None
    return get_config()
