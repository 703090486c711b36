"""
Key Vault Management Client Wrapper

Management-plane operations: resource groups and the vault lifecycle
(create, update, list, delete). Wraps azure-mgmt-keyvault and
azure-mgmt-resource behind plain spec/descriptor values.
"""
import logging
from typing import List, Optional

from azure.mgmt.keyvault import KeyVaultManagementClient
from azure.mgmt.keyvault.models import (
    AccessPolicyEntry,
    Permissions,
    Sku,
    VaultCreateOrUpdateParameters,
    VaultPatchParameters,
    VaultPatchProperties,
    VaultProperties,
)
from azure.mgmt.resource import ResourceManagementClient

from kvmanage.auth.session import AzureSession
from kvmanage.errors import translate_azure_errors
from kvmanage.vault.models import AccessPolicySpec, VaultDescriptor, VaultSpec, VaultUpdate

logger = logging.getLogger(__name__)


def _policy_to_sdk(policy: AccessPolicySpec) -> AccessPolicyEntry:
    return AccessPolicyEntry(
        tenant_id=policy.tenant_id,
        object_id=policy.object_id,
        application_id=policy.application_id,
        permissions=Permissions(
            keys=policy.sorted_key_permissions(),
            secrets=policy.sorted_secret_permissions(),
            certificates=sorted(policy.certificate_permissions),
            storage=sorted(policy.storage_permissions),
        ),
    )


def build_create_parameters(spec: VaultSpec) -> VaultCreateOrUpdateParameters:
    """Translate a VaultSpec into the SDK's create request body."""
    return VaultCreateOrUpdateParameters(
        location=spec.region,
        properties=VaultProperties(
            tenant_id=spec.tenant_id,
            sku=Sku(family="A", name=spec.sku),
            access_policies=[_policy_to_sdk(p) for p in spec.access_policies],
            enabled_for_deployment=spec.enabled_for_deployment,
            enabled_for_template_deployment=spec.enabled_for_template_deployment,
            enable_rbac_authorization=False,
        ),
    )


def build_patch_parameters(current: VaultDescriptor, update: VaultUpdate) -> VaultPatchParameters:
    """Merge a change set into the current vault and build the patch body."""
    policies = update.apply_to(current.access_policies)
    return VaultPatchParameters(
        properties=VaultPatchProperties(
            access_policies=[_policy_to_sdk(p) for p in policies],
            enabled_for_deployment=update.enabled_for_deployment,
            enabled_for_template_deployment=update.enabled_for_template_deployment,
        ),
    )


class VaultManager:
    """
    Vault lifecycle operations for one subscription.

    Example:
        >>> manager = VaultManager(session)
        >>> manager.create_resource_group("rgkv_abc", "eastus")
        >>> vault = manager.create_vault(VaultSpec(name="vault1abc", ...))
    """

    def __init__(
        self,
        session: AzureSession,
        keyvault_client: Optional[KeyVaultManagementClient] = None,
        resource_client: Optional[ResourceManagementClient] = None,
    ):
        """
        Initialize the management clients.

        Args:
            session: Authenticated session
            keyvault_client: Pre-built KeyVaultManagementClient (built from session if None)
            resource_client: Pre-built ResourceManagementClient (built from session if None)
        """
        self.session = session
        base_url = session.cloud.resource_manager
        scopes = [session.cloud.management_scope]

        self._keyvault = keyvault_client or KeyVaultManagementClient(
            session.credential,
            session.subscription_id,
            base_url=base_url,
            credential_scopes=scopes,
        )
        self._resources = resource_client or ResourceManagementClient(
            session.credential,
            session.subscription_id,
            base_url=base_url,
            credential_scopes=scopes,
        )

        logger.info(f"Vault manager initialized for subscription {session.subscription_id}")

    @translate_azure_errors("Create resource group")
    def create_resource_group(self, name: str, region: str) -> str:
        """Create (or update) a resource group. Returns its name."""
        group = self._resources.resource_groups.create_or_update(name, {"location": region})
        logger.info(f"Resource group {group.name} ready in {group.location}")
        return group.name

    @translate_azure_errors("Delete resource group")
    def delete_resource_group(self, name: str) -> None:
        """Delete a resource group and everything in it, waiting for completion."""
        self._resources.resource_groups.begin_delete(name).result()
        logger.info(f"Deleted resource group {name}")

    @translate_azure_errors("Create vault")
    def create_vault(self, spec: VaultSpec) -> VaultDescriptor:
        """
        Create a vault and wait for provisioning to finish.

        Args:
            spec: Complete vault definition including access policies

        Returns:
            Descriptor of the created vault
        """
        logger.info(
            f"Creating vault {spec.name} in {spec.region} "
            f"({len(spec.access_policies)} access policies)"
        )
        poller = self._keyvault.vaults.begin_create_or_update(
            spec.resource_group,
            spec.name,
            build_create_parameters(spec),
        )
        return VaultDescriptor.from_sdk(poller.result())

    @translate_azure_errors("Get vault")
    def get_vault(self, resource_group: str, name: str) -> VaultDescriptor:
        return VaultDescriptor.from_sdk(self._keyvault.vaults.get(resource_group, name))

    @translate_azure_errors("Update vault")
    def update_vault(self, current: VaultDescriptor, update: VaultUpdate) -> VaultDescriptor:
        """
        Apply a change set to a vault in one request.

        Args:
            current: The vault as last seen
            update: Policies to add, grants to merge, flags to change

        Returns:
            Descriptor of the updated vault
        """
        parameters = build_patch_parameters(current, update)
        logger.info(
            f"Updating vault {current.name}: "
            f"{len(parameters.properties.access_policies)} access policies"
        )
        vault = self._keyvault.vaults.update(current.resource_group, current.name, parameters)
        return VaultDescriptor.from_sdk(vault)

    @translate_azure_errors("List vaults")
    def list_vaults(self, resource_group: str) -> List[VaultDescriptor]:
        """List every vault in a resource group."""
        return [
            VaultDescriptor.from_sdk(vault)
            for vault in self._keyvault.vaults.list_by_resource_group(resource_group)
        ]

    @translate_azure_errors("Delete vault")
    def delete_vault(self, resource_group: str, name: str) -> None:
        self._keyvault.vaults.delete(resource_group, name)
        logger.info(f"Deleted vault {name}")

    def close(self) -> None:
        """Close the underlying SDK clients."""
        self._keyvault.close()
        self._resources.close()
