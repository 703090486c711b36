"""
kvmanage - Azure Key Vault Management Sample

Creates, configures and populates Azure Key Vaults with the Azure SDK for Python.

Modules:
- auth: Credentials file loading and service principal authentication
- vault: Management-plane and data-plane client wrappers
- sample: The demonstration sequence
- cli: Command-line entry point
"""

__version__ = "0.1.0"

from kvmanage.errors import KvManageError, ConfigurationError, AuthenticationError, ServiceError
from kvmanage.config import SampleConfig
from kvmanage.auth import Credentials, AzureSession, load_credentials, load_credentials_from_env, authenticate
from kvmanage.naming import SampleNames
from kvmanage.sample import run_sample

__all__ = [
    # Version
    "__version__",
    # Errors
    "KvManageError",
    "ConfigurationError",
    "AuthenticationError",
    "ServiceError",
    # Config
    "SampleConfig",
    # Auth
    "Credentials",
    "AzureSession",
    "load_credentials",
    "load_credentials_from_env",
    "authenticate",
    # Sample
    "SampleNames",
    "run_sample",
]
