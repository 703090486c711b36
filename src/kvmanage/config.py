"""
Sample Configuration

Configuration management for the Key Vault management sample.
"""
import os
from typing import Optional
from dataclasses import dataclass

from kvmanage.errors import ConfigurationError

AUTH_LOCATION_ENV_VAR = "AZURE_AUTH_LOCATION"

# Object id granted full access next to the authenticated principal
DEFAULT_EXTERNAL_OBJECT_ID = "cd069970-731a-435d-ac26-8d0f5e6d8862"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    if raw.lower() in ("true", "1", "yes"):
        return True
    if raw.lower() in ("false", "0", "no"):
        return False
    raise ConfigurationError(f"{name} must be true or false, got {raw!r}")


def check_log_level(level: str) -> str:
    """Return the level upper-cased, or raise ConfigurationError."""
    if level.upper() not in LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")
    return level.upper()


@dataclass
class SampleConfig:
    """Settings for one run of the sample."""

    auth_env_var: str = AUTH_LOCATION_ENV_VAR
    auth_location: Optional[str] = None  # Overrides the environment variable when set
    cloud: str = "AzureCloud"

    # Regions for the first and second vault
    primary_region: str = "eastus"
    secondary_region: str = "eastus2"

    sku: str = "standard"
    external_object_id: str = DEFAULT_EXTERNAL_OBJECT_ID
    secret_page_size: int = 10

    # Delete vaults and resource group when the run ends
    cleanup: bool = False

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "SampleConfig":
        """
        Create SampleConfig from environment variables.

        Raises:
            ConfigurationError: If a variable holds a value that cannot be used
        """
        return cls(
            auth_env_var=os.getenv("KVMANAGE_AUTH_ENV_VAR", AUTH_LOCATION_ENV_VAR),
            cloud=os.getenv("KVMANAGE_CLOUD", "AzureCloud"),
            primary_region=os.getenv("KVMANAGE_PRIMARY_REGION", "eastus"),
            secondary_region=os.getenv("KVMANAGE_SECONDARY_REGION", "eastus2"),
            sku=os.getenv("KVMANAGE_SKU", "standard"),
            external_object_id=os.getenv("KVMANAGE_EXTERNAL_OBJECT_ID", DEFAULT_EXTERNAL_OBJECT_ID),
            secret_page_size=_env_int("KVMANAGE_SECRET_PAGE_SIZE", 10),
            cleanup=_env_bool("KVMANAGE_CLEANUP", False),
            log_level=check_log_level(os.getenv("KVMANAGE_LOG_LEVEL", "INFO")),
        )

    def get_auth_location(self) -> Optional[str]:
        """Get the credentials file path, preferring an explicit location."""
        if self.auth_location:
            return self.auth_location
        return os.getenv(self.auth_env_var)
