"""
kvmanage Authentication

Credential loading and service principal authentication.
"""

from kvmanage.auth.cloud import CloudEnvironment, AZURE_PUBLIC_CLOUD, get_cloud
from kvmanage.auth.credentials import Credentials, load_credentials, load_credentials_from_env
from kvmanage.auth.session import AzureSession, authenticate

__all__ = [
    'CloudEnvironment',
    'AZURE_PUBLIC_CLOUD',
    'get_cloud',
    'Credentials',
    'load_credentials',
    'load_credentials_from_env',
    'AzureSession',
    'authenticate',
]
