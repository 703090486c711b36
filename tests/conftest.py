"""
Shared fixtures: in-memory stand-ins for the Azure management and
Key Vault data-plane clients.
"""
import io
import json
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ResourceNotFoundError
from rich.console import Console

from kvmanage.auth import AZURE_PUBLIC_CLOUD, AzureSession, Credentials
from kvmanage.errors import ServiceError
from kvmanage.vault import VaultDataClient, VaultDescriptor, VaultSpec, VaultUpdate


TENANT_ID = "72f988bf-0000-0000-0000-000000000000"
CLIENT_ID = "afea05bc-0000-0000-0000-000000000000"
PRINCIPAL_OBJECT_ID = "5d2e3c1a-0000-0000-0000-000000000000"
SUBSCRIPTION_ID = "56c10ef7-0000-0000-0000-000000000000"


class FakeSecretClient:
    """SecretClient keeping every version of every secret in memory."""

    def __init__(self, vault_url: str, store: Dict[str, dict]):
        self.vault_url = vault_url.rstrip("/")
        self._secrets = store.setdefault(self.vault_url, {})
        self.list_calls: List[Optional[int]] = []
        self.closed = False

    def set_secret(self, name, value, content_type=None):
        version = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        secret_id = f"{self.vault_url}/secrets/{name}/{version}"
        properties = SimpleNamespace(
            name=name,
            id=secret_id,
            version=version,
            enabled=True,
            created_on=now,
            updated_on=now,
            content_type=content_type,
        )
        secret = SimpleNamespace(name=name, id=secret_id, value=value, properties=properties)
        self._secrets.setdefault(name, {})[version] = secret
        self._secrets[name]["latest"] = secret
        return secret

    def get_secret(self, name, version=None):
        versions = self._secrets.get(name)
        if not versions or (version or "latest") not in versions:
            raise ResourceNotFoundError(f"Secret not found: {name}")
        return versions[version or "latest"]

    def list_properties_of_secrets(self, max_page_size=None):
        self.list_calls.append(max_page_size)
        # Listing returns identifiers without a version, like the service
        for name, versions in self._secrets.items():
            latest = versions["latest"].properties
            yield SimpleNamespace(
                name=name,
                id=f"{self.vault_url}/secrets/{name}",
                version=None,
                enabled=latest.enabled,
                created_on=latest.created_on,
                updated_on=latest.updated_on,
                content_type=latest.content_type,
            )

    def close(self):
        self.closed = True


class FakeKeyClient:
    """KeyClient recording created keys."""

    def __init__(self, vault_url: str, store: Dict[str, dict]):
        self.vault_url = vault_url.rstrip("/")
        self._keys = store.setdefault(self.vault_url, {})
        self.closed = False

    def create_key(self, name, key_type, key_operations=None):
        key = SimpleNamespace(
            name=name,
            id=f"{self.vault_url}/keys/{name}/{uuid.uuid4().hex}",
            key_type=key_type,
            key_operations=key_operations,
        )
        self._keys[name] = key
        return key

    def close(self):
        self.closed = True


class FakeVaultManager:
    """VaultManager keeping vaults in memory and recording every call."""

    def __init__(self, fail_on_create: Optional[int] = None):
        self.fail_on_create = fail_on_create
        self.resource_groups: Dict[str, str] = {}
        self.vaults: Dict[str, VaultDescriptor] = {}
        self.created_specs: List[VaultSpec] = []
        self.updates: List[VaultUpdate] = []
        self.deleted_vaults: List[str] = []
        self.deleted_groups: List[str] = []

    def create_resource_group(self, name, region):
        self.resource_groups[name] = region
        return name

    def delete_resource_group(self, name):
        self.resource_groups.pop(name, None)
        self.deleted_groups.append(name)

    def create_vault(self, spec):
        self.created_specs.append(spec)
        if self.fail_on_create == len(self.created_specs):
            raise ServiceError(f"Vault name {spec.name} is already in use", status_code=409)

        vault = VaultDescriptor(
            id=f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{spec.resource_group}"
               f"/providers/Microsoft.KeyVault/vaults/{spec.name}",
            name=spec.name,
            resource_group=spec.resource_group,
            region=spec.region,
            vault_uri=f"https://{spec.name}.vault.azure.net/",
            tenant_id=spec.tenant_id,
            sku=spec.sku,
            access_policies=list(spec.access_policies),
            enabled_for_deployment=spec.enabled_for_deployment,
            enabled_for_template_deployment=spec.enabled_for_template_deployment,
        )
        self.vaults[spec.name] = vault
        return vault

    def update_vault(self, current, update):
        self.updates.append(update)
        vault = self.vaults[current.name]
        vault.access_policies = update.apply_to(vault.access_policies)
        if update.enabled_for_deployment is not None:
            vault.enabled_for_deployment = update.enabled_for_deployment
        if update.enabled_for_template_deployment is not None:
            vault.enabled_for_template_deployment = update.enabled_for_template_deployment
        return vault

    def list_vaults(self, resource_group):
        return [v for v in self.vaults.values() if v.resource_group == resource_group]

    def delete_vault(self, resource_group, name):
        self.vaults.pop(name, None)
        self.deleted_vaults.append(name)


@pytest.fixture
def credentials():
    """Service principal credentials for testing."""
    return Credentials(
        client_id=CLIENT_ID,
        tenant_id=TENANT_ID,
        client_secret="not-a-real-secret",
        subscription_id=SUBSCRIPTION_ID,
    )


@pytest.fixture
def credentials_file(tmp_path):
    """Credentials file in the --sdk-auth layout."""
    path = tmp_path / "my.azureauth"
    path.write_text(json.dumps({
        "clientId": CLIENT_ID,
        "clientSecret": "not-a-real-secret",
        "subscriptionId": SUBSCRIPTION_ID,
        "tenantId": TENANT_ID,
        "activeDirectoryEndpointUrl": "https://login.microsoftonline.com",
        "resourceManagerEndpointUrl": "https://management.azure.com/",
    }))
    return path


@pytest.fixture
def session(credentials):
    """Authenticated session without touching the network."""
    return AzureSession(
        credentials=credentials,
        credential=MagicMock(),
        subscription_id=SUBSCRIPTION_ID,
        principal_object_id=PRINCIPAL_OBJECT_ID,
        cloud=AZURE_PUBLIC_CLOUD,
    )


@pytest.fixture
def vault_store():
    return {}


@pytest.fixture
def data_client(vault_store):
    """VaultDataClient backed by in-memory key and secret clients."""
    secret_clients = {}

    def secret_factory(vault_url, credential):
        client = FakeSecretClient(vault_url, vault_store.setdefault("secrets", {}))
        secret_clients[client.vault_url] = client
        return client

    def key_factory(vault_url, credential):
        return FakeKeyClient(vault_url, vault_store.setdefault("keys", {}))

    client = VaultDataClient(
        MagicMock(),
        key_client_factory=key_factory,
        secret_client_factory=secret_factory,
    )
    client.fake_secret_clients = secret_clients
    yield client
    client.close()


@pytest.fixture
def manager():
    return FakeVaultManager()


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def console(output):
    """Console writing to a buffer, wide enough not to wrap ids."""
    return Console(file=output, width=300, color_system=None)
