"""
Key Vault Management Sample

Runs the demonstration sequence against a subscription:
  - Create a key vault with no access policy
  - Authorize the current service principal and a second principal
  - Add keys to the vault (direct client and vault-scoped paths)
  - Add secrets to the vault (sync, background and vault-scoped paths)
  - Retrieve a secret by name, then up to 10 secrets by identifier
  - Update the vault (deployment flags, extra permissions)
  - Create a second vault with a restricted access policy
  - List the vaults in the resource group
  - Optionally delete everything that was created
"""
import logging
from typing import List, Optional

from rich.console import Console

from kvmanage.auth.session import AzureSession
from kvmanage.config import SampleConfig
from kvmanage.errors import ConfigurationError, ServiceError
from kvmanage.naming import SampleNames
from kvmanage.printer import print_vault
from kvmanage.vault.data_client import VaultDataClient
from kvmanage.vault.manager import VaultManager
from kvmanage.vault.models import (
    ALL_SECRET_PERMISSIONS,
    AccessPolicySpec,
    KeyPermission,
    KeySpec,
    SecretPermission,
    SecretSpec,
    VaultSpec,
    VaultUpdate,
)

logger = logging.getLogger(__name__)

# Permissions of the second vault's only policy
RESTRICTED_KEY_PERMISSIONS = frozenset({KeyPermission.LIST, KeyPermission.GET, KeyPermission.DECRYPT})
RESTRICTED_SECRET_PERMISSIONS = frozenset({SecretPermission.GET})


def second_vault_spec(session: AzureSession, names: SampleNames, config: SampleConfig) -> VaultSpec:
    """Vault created with its access policy fully defined up front."""
    return VaultSpec(
        name=names.vault2,
        region=config.secondary_region,
        resource_group=names.resource_group,
        tenant_id=session.tenant_id,
        sku=config.sku,
        access_policies=[
            AccessPolicySpec(
                tenant_id=session.tenant_id,
                object_id=session.principal_object_id,
                key_permissions=RESTRICTED_KEY_PERMISSIONS,
                secret_permissions=RESTRICTED_SECRET_PERMISSIONS,
            ),
        ],
    )


def _cleanup(
    manager: VaultManager,
    resource_group: Optional[str],
    vaults: List[str],
    console: Console,
) -> None:
    """Delete the vaults and resource group created by the run."""
    if not resource_group:
        console.print("Did not create any resources in Azure. No clean up is necessary")
        return

    console.print("Deleting the key vaults")
    for name in vaults:
        try:
            manager.delete_vault(resource_group, name)
            console.print(f"Deleted key vault: {name}")
        except Exception as e:
            logger.error(f"Could not delete key vault {name}: {e}")

    console.print(f"Deleting Resource Group: {resource_group}")
    try:
        manager.delete_resource_group(resource_group)
        console.print(f"Deleted Resource Group: {resource_group}")
    except Exception as e:
        logger.error(f"Could not delete resource group {resource_group}: {e}")


def run_sample(
    session: AzureSession,
    manager: VaultManager,
    data_client: VaultDataClient,
    config: Optional[SampleConfig] = None,
    names: Optional[SampleNames] = None,
    console: Optional[Console] = None,
) -> bool:
    """
    Run the Key Vault management sample.

    Args:
        session: Authenticated session
        manager: Management-plane client
        data_client: Keys and secrets client
        config: Regions, page size, cleanup flag (defaults if None)
        names: Resource names for this run (freshly generated if None)
        console: Output console (stdout if None)

    Returns:
        True if every step succeeded
    """
    config = config or SampleConfig()
    names = names or SampleNames.generate()
    console = console or Console()

    created_group: Optional[str] = None
    created_vaults: List[str] = []

    try:
        principal = session.principal_object_id
        if not principal:
            raise ConfigurationError(
                f"Could not determine the object id of service principal {session.client_id}"
            )

        # ============================================================
        # Create a key vault with empty access policy

        console.print("Creating a key vault with no Access Policy...")

        created_group = manager.create_resource_group(names.resource_group, config.primary_region)
        vault1 = manager.create_vault(VaultSpec(
            name=names.vault1,
            region=config.primary_region,
            resource_group=names.resource_group,
            tenant_id=session.tenant_id,
            sku=config.sku,
        ))
        created_vaults.append(vault1.name)

        console.print("Created key vault")
        print_vault(vault1, console)

        # ============================================================
        # Authorize an application

        console.print("Authorizing the application associated with the current service principal...")

        vault1 = manager.update_vault(vault1, VaultUpdate(add_policies=[
            AccessPolicySpec.full_access(session.tenant_id, principal),
            AccessPolicySpec.full_access(session.tenant_id, config.external_object_id),
        ]))

        console.print("Updated key vault")
        print_vault(vault1, console)

        # ============================================================
        # Keys: direct client call, then through the vault scope

        vault_uri = vault1.vault_uri
        scope = data_client.scoped(vault_uri)

        key1 = data_client.create_key(vault_uri, names.key1, key_type="RSA")
        console.print(f"The key Id is: {key1.kid}")

        key2 = scope.create_key(KeySpec(name=names.key2, key_type="RSA"))
        console.print(f"The key Id is: {key2.kid}")

        # ============================================================
        # Secrets: sync, background and vault-scoped writes

        data_client.set_secret(vault_uri, names.secret1, names.secret_value1)

        pending = data_client.begin_set_secret(vault_uri, names.secret3, names.secret_value3)
        try:
            scope.create_secret(SecretSpec(name=names.secret2, value=names.secret_value2))
        except Exception:
            # Wait for the background write so its outcome is not lost
            background_error = pending.exception()
            if background_error is not None:
                logger.error(f"Background write of {names.secret3} failed: {background_error}")
            raise
        secret3 = pending.result()
        console.print(f"The secret value is: {secret3.value}")

        secret1 = data_client.get_secret(vault_uri, names.secret1)
        if secret1 is None:
            raise ServiceError(f"Secret {names.secret1} not found in {vault1.name}")
        console.print(f"Got Secret: {names.secret1} with value={secret1.value}")

        for reference in scope.list_secrets(max_results=config.secret_page_size):
            console.print(f"secret attributes: {reference.attributes}")
            console.print(f"secret value: {reference.id}")

            secret = data_client.get_secret_by_id(reference.id)
            if secret is None:
                raise ServiceError(f"Secret {reference.id} disappeared while listing")
            console.print(f"Secret in Key Vault Value: {secret.value}")

        # ============================================================
        # Update a key vault

        console.print("Update a key vault to enable deployments and add permissions to the application...")

        first_policy = vault1.access_policies[0]
        vault1 = manager.update_vault(vault1, VaultUpdate(
            enabled_for_deployment=True,
            enabled_for_template_deployment=True,
            grants=[AccessPolicySpec(
                tenant_id=first_policy.tenant_id,
                object_id=first_policy.object_id,
                secret_permissions=ALL_SECRET_PERMISSIONS,
            )],
        ))

        console.print("Updated key vault")
        print_vault(vault1, console)

        # ============================================================
        # Create another key vault with its access policy defined at creation

        vault2 = manager.create_vault(second_vault_spec(session, names, config))
        created_vaults.append(vault2.name)

        console.print("Created key vault")
        print_vault(vault2, console)

        # ============================================================
        # List key vaults

        console.print("Listing key vaults...")

        for vault in manager.list_vaults(names.resource_group):
            print_vault(vault, console)

        return True
    except Exception as e:
        logger.error(str(e))
    finally:
        if config.cleanup:
            _cleanup(manager, created_group, created_vaults, console)

    return False
