"""
Configuration module for the Ticket Tracker client.

Handles all configuration through environment variables with local defaults
that match a development backend running on port 8080.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


# Load environment variables from .env file
load_dotenv()


# Hard upper bound on contributors per ticket, shared with the backend
CONTRIBUTOR_LIMIT = 10


@dataclass(frozen=True)
class ApiConfig:
    """Configuration for the backend REST API."""

    base_url: str = field(
        default_factory=lambda: os.getenv("TICKET_API_BASE_URL", "http://localhost:8080")
    )

    # Ticket endpoints can return large lists, so they get a longer timeout
    ticket_timeout: float = field(
        default_factory=lambda: float(os.getenv("TICKET_API_TIMEOUT", "60"))
    )
    contributor_timeout: float = field(
        default_factory=lambda: float(os.getenv("CONTRIBUTOR_API_TIMEOUT", "30"))
    )

    # Retry policy for transient network failures
    max_retries: int = field(
        default_factory=lambda: int(os.getenv("TICKET_API_MAX_RETRIES", "3"))
    )
    retry_delay: float = field(
        default_factory=lambda: float(os.getenv("TICKET_API_RETRY_DELAY", "1.0"))
    )


@dataclass(frozen=True)
class ReconcileConfig:
    """Configuration for contributor reconciliation."""

    max_contributors: int = field(
        default_factory=lambda: int(os.getenv("MAX_CONTRIBUTORS", str(CONTRIBUTOR_LIMIT)))
    )

    # Seconds before a cached directory is considered stale
    directory_max_age: int = field(
        default_factory=lambda: int(os.getenv("DIRECTORY_MAX_AGE", "300"))
    )

    @property
    def contributor_limit(self) -> int:
        """Configured limit clamped to 1..CONTRIBUTOR_LIMIT."""
        return max(1, min(self.max_contributors, CONTRIBUTOR_LIMIT))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration aggregating all config sections."""

    api: ApiConfig = field(default_factory=ApiConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)

    # Logging level
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO")
    )

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = []

        if not self.api.base_url:
            errors.append("TICKET_API_BASE_URL is required")
        elif not self.api.base_url.startswith(("http://", "https://")):
            errors.append("TICKET_API_BASE_URL must start with http:// or https://")
        if self.api.ticket_timeout <= 0:
            errors.append("TICKET_API_TIMEOUT must be positive")
        if self.api.contributor_timeout <= 0:
            errors.append("CONTRIBUTOR_API_TIMEOUT must be positive")
        if self.api.max_retries < 1:
            errors.append("TICKET_API_MAX_RETRIES must be at least 1")

        if not 1 <= self.reconcile.max_contributors <= CONTRIBUTOR_LIMIT:
            errors.append(f"MAX_CONTRIBUTORS must be between 1 and {CONTRIBUTOR_LIMIT}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"LOG_LEVEL '{self.log_level}' is not a valid logging level")

        return errors


def get_config() -> AppConfig:
    """
    Get application configuration.

    Returns:
        AppConfig instance with all settings loaded from environment.
    """
    return AppConfig()
