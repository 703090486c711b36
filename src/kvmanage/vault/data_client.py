"""
Key Vault Data Client Wrapper

Data-plane operations against a vault endpoint: keys and secrets.
Wraps azure-keyvault-keys and azure-keyvault-secrets, keeping one SDK client
per vault URL. Offers two ways in: vault-URI-addressed calls on
VaultDataClient, and a VaultScope bound to one vault.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import islice
from typing import Any, Callable, Dict, List, Optional

from azure.core.credentials import TokenCredential
from azure.core.exceptions import ResourceNotFoundError
from azure.keyvault.keys import KeyClient
from azure.keyvault.secrets import KeyVaultSecretIdentifier, SecretClient

from kvmanage.errors import translate_azure_errors
from kvmanage.vault.models import (
    ALL_KEY_OPERATIONS,
    KeyDescriptor,
    KeySpec,
    SecretDescriptor,
    SecretReference,
    SecretSpec,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def _normalize_url(vault_url: str) -> str:
    return vault_url.rstrip("/")


class VaultDataClient:
    """
    Keys and secrets client for any number of vaults.

    Thread-safe: the background secret writes share the client cache.
    """

    _lock = threading.Lock()

    def __init__(
        self,
        credential: TokenCredential,
        key_client_factory: Callable[..., Any] = KeyClient,
        secret_client_factory: Callable[..., Any] = SecretClient,
        max_workers: int = 2,
    ):
        """
        Initialize the data client.

        Args:
            credential: Token credential for the vault endpoints
            key_client_factory: Builds a key client from (vault_url, credential)
            secret_client_factory: Builds a secret client from (vault_url, credential)
            max_workers: Worker threads for background secret writes
        """
        self.credential = credential
        self._key_client_factory = key_client_factory
        self._secret_client_factory = secret_client_factory
        self._key_clients: Dict[str, Any] = {}
        self._secret_clients: Dict[str, Any] = {}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kvmanage")

    def __enter__(self) -> "VaultDataClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _key_client(self, vault_url: str):
        url = _normalize_url(vault_url)
        with self._lock:
            if url not in self._key_clients:
                self._key_clients[url] = self._key_client_factory(vault_url=url, credential=self.credential)
                logger.debug(f"Key client created for {url}")
            return self._key_clients[url]

    def _secret_client(self, vault_url: str):
        url = _normalize_url(vault_url)
        with self._lock:
            if url not in self._secret_clients:
                self._secret_clients[url] = self._secret_client_factory(vault_url=url, credential=self.credential)
                logger.debug(f"Secret client created for {url}")
            return self._secret_clients[url]

    def scoped(self, vault_url: str) -> "VaultScope":
        """Bind this client to one vault."""
        return VaultScope(self, vault_url)

    # Keys

    @translate_azure_errors("Create key")
    def create_key(
        self,
        vault_url: str,
        name: str,
        key_type: str = "RSA",
        operations: Optional[List[str]] = None,
    ) -> KeyDescriptor:
        """
        Create a key in a vault.

        Args:
            vault_url: Vault endpoint URI
            name: Key name
            key_type: JSON web key type (e.g., 'RSA', 'EC')
            operations: Permitted key operations (service default if None)

        Returns:
            Descriptor of the created key
        """
        key = self._key_client(vault_url).create_key(name, key_type, key_operations=operations)
        logger.debug(f"Key {name} created in {vault_url}")
        return KeyDescriptor.from_sdk(key)

    # Secrets

    @translate_azure_errors("Set secret")
    def set_secret(
        self,
        vault_url: str,
        name: str,
        value: str,
        content_type: Optional[str] = None,
    ) -> SecretDescriptor:
        """
        Store a secret value, creating a new version.

        Args:
            vault_url: Vault endpoint URI
            name: Secret name
            value: Secret value
            content_type: Optional content type hint

        Returns:
            Descriptor of the stored secret
        """
        secret = self._secret_client(vault_url).set_secret(name, value, content_type=content_type)
        logger.debug(f"Secret {name} written to {vault_url}")
        return SecretDescriptor.from_sdk(secret)

    def begin_set_secret(
        self,
        vault_url: str,
        name: str,
        value: str,
        content_type: Optional[str] = None,
    ) -> "Future[SecretDescriptor]":
        """
        Store a secret on a background thread.

        Returns:
            Future resolving to the stored secret's descriptor
        """
        logger.debug(f"Scheduling background write of secret {name} to {vault_url}")
        return self._executor.submit(self.set_secret, vault_url, name, value, content_type)

    @translate_azure_errors("Get secret")
    def get_secret(
        self,
        vault_url: str,
        name: str,
        version: Optional[str] = None,
    ) -> Optional[SecretDescriptor]:
        """
        Read a secret by name.

        Args:
            vault_url: Vault endpoint URI
            name: Secret name
            version: Specific version (latest if None)

        Returns:
            Secret descriptor or None if not found
        """
        try:
            secret = self._secret_client(vault_url).get_secret(name, version=version)
        except ResourceNotFoundError:
            # Not an error, just return None
            logger.debug(f"Secret {name} not found in {vault_url}")
            return None
        return SecretDescriptor.from_sdk(secret)

    def get_secret_by_id(self, secret_id: str) -> Optional[SecretDescriptor]:
        """
        Read a secret by its full identifier URI.

        Args:
            secret_id: e.g. https://myvault.vault.azure.net/secrets/name[/version]

        Returns:
            Secret descriptor or None if not found
        """
        identifier = KeyVaultSecretIdentifier(secret_id)
        return self.get_secret(identifier.vault_url, identifier.name, version=identifier.version)

    @translate_azure_errors("List secrets")
    def list_secrets(self, vault_url: str, max_results: int = DEFAULT_PAGE_SIZE) -> List[SecretReference]:
        """
        List secrets in a vault, stopping after max_results entries.

        Args:
            vault_url: Vault endpoint URI
            max_results: Page size requested from the service and upper bound on the result

        Returns:
            Up to max_results secret references (no values)
        """
        pages = self._secret_client(vault_url).list_properties_of_secrets(max_page_size=max_results)
        references = [SecretReference.from_sdk(p) for p in islice(pages, max_results)]
        logger.debug(f"Listed {len(references)} secrets in {vault_url}")
        return references

    def close(self) -> None:
        """Wait for background writes and close every cached SDK client."""
        self._executor.shutdown(wait=True)
        with self._lock:
            for client in list(self._key_clients.values()) + list(self._secret_clients.values()):
                client.close()
            self._key_clients.clear()
            self._secret_clients.clear()


class VaultScope:
    """Key and secret operations bound to a single vault."""

    def __init__(self, client: VaultDataClient, vault_url: str):
        self.client = client
        self.vault_url = vault_url

    def create_key(self, spec: KeySpec) -> KeyDescriptor:
        return self.client.create_key(
            self.vault_url,
            spec.name,
            key_type=spec.key_type,
            operations=list(spec.operations or ALL_KEY_OPERATIONS),
        )

    def create_secret(self, spec: SecretSpec) -> SecretDescriptor:
        return self.client.set_secret(self.vault_url, spec.name, spec.value, content_type=spec.content_type)

    def list_secrets(self, max_results: int = DEFAULT_PAGE_SIZE) -> List[SecretReference]:
        return self.client.list_secrets(self.vault_url, max_results=max_results)
