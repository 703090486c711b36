"""
Service Principal Credentials

Loads the service principal credentials file referenced by AZURE_AUTH_LOCATION.
The file is the JSON document written by ``az ad sp create-for-rbac --sdk-auth``;
only clientId, tenantId, clientSecret and subscriptionId are read.
"""
import json
import logging
import os
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, StrictStr, ValidationError, field_validator

from kvmanage.config import AUTH_LOCATION_ENV_VAR
from kvmanage.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """Service principal credentials bound to one subscription."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    client_id: StrictStr = Field(alias="clientId")
    tenant_id: StrictStr = Field(alias="tenantId")
    client_secret: SecretStr = Field(alias="clientSecret")
    subscription_id: StrictStr = Field(alias="subscriptionId")

    @field_validator("client_id", "tenant_id", "client_secret", "subscription_id", mode="before")
    @classmethod
    def _not_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value

    def summary(self) -> str:
        """Human-readable description without the secret."""
        return "\n".join([
            "Found the following for Azure authentication",
            f"clientId={self.client_id}",
            f"tenantId={self.tenant_id}",
            f"subscription={self.subscription_id}",
        ])


def load_credentials(path: Union[str, Path]) -> Credentials:
    """
    Read and validate a credentials file.

    Args:
        path: Path to the JSON credentials file

    Returns:
        Parsed credentials

    Raises:
        ConfigurationError: If the file cannot be read or a field is missing/malformed
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Credentials file cannot be read: {path} ({e})")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Credentials file is not valid JSON: {path} ({e})")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Credentials file must contain a JSON object: {path}")

    try:
        credentials = Credentials.model_validate(data)
    except ValidationError as e:
        problems = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid credentials file {path}: {problems}")

    logger.debug(f"Loaded credentials for client {credentials.client_id} from {path}")
    return credentials


def load_credentials_from_env(env_var: str = AUTH_LOCATION_ENV_VAR) -> Credentials:
    """
    Load credentials from the file named by an environment variable.

    Args:
        env_var: Environment variable holding the credentials file path

    Returns:
        Parsed credentials
    """
    location = os.getenv(env_var)
    if not location:
        raise ConfigurationError(
            "Credentials file cannot be found or read. "
            f"Ensure that the environment variable {env_var} is set"
        )
    return load_credentials(location)
