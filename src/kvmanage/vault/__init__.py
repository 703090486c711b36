"""
kvmanage Vault Clients

Management-plane (vault lifecycle) and data-plane (keys, secrets) wrappers
around the Azure SDK.
"""

from kvmanage.vault.models import (
    KeyPermission,
    SecretPermission,
    AccessPolicySpec,
    VaultSpec,
    VaultUpdate,
    VaultDescriptor,
    KeySpec,
    KeyDescriptor,
    SecretSpec,
    SecretDescriptor,
    SecretReference,
)
from kvmanage.vault.manager import VaultManager
from kvmanage.vault.data_client import VaultDataClient, VaultScope

__all__ = [
    'KeyPermission',
    'SecretPermission',
    'AccessPolicySpec',
    'VaultSpec',
    'VaultUpdate',
    'VaultDescriptor',
    'KeySpec',
    'KeyDescriptor',
    'SecretSpec',
    'SecretDescriptor',
    'SecretReference',
    'VaultManager',
    'VaultDataClient',
    'VaultScope',
]
