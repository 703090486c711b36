"""
Integration tests for the Key Vault management sample.

Runs the full sequence against in-memory management and data-plane
collaborators.
"""

import pytest

from kvmanage.config import DEFAULT_EXTERNAL_OBJECT_ID, SampleConfig
from kvmanage.errors import ServiceError
from kvmanage.naming import SampleNames
from kvmanage.sample import run_sample
from kvmanage.vault import VaultSpec
from kvmanage.vault.models import ALL_KEY_PERMISSIONS, ALL_SECRET_PERMISSIONS, KeyPermission, SecretPermission

from conftest import FakeVaultManager, PRINCIPAL_OBJECT_ID, TENANT_ID


@pytest.fixture
def names():
    return SampleNames(
        vault1="vault1abcdef",
        vault2="vault2abcdef",
        resource_group="rgkv_abc",
        key1="key-AAAAAAAA",
        key2="key-BBBBBBBB",
        secret1="secret-11111111",
        secret2="secret-22222222",
        secret3="secret-33333333",
        secret_value1="value1AAAAAAAAAA",
        secret_value2="value2BBBBBBBBBB",
        secret_value3="value3CCCCCCCCCC",
    )


class NoQuotaManager(FakeVaultManager):
    def create_resource_group(self, name, region):
        raise ServiceError("Resource group quota exceeded", status_code=409)


class LockedVaultManager(FakeVaultManager):
    """Refuses to delete one vault."""

    def __init__(self, locked: str):
        super().__init__()
        self.locked = locked

    def delete_vault(self, resource_group, name):
        if name == self.locked:
            raise ServiceError(f"Vault {name} is locked", status_code=409)
        super().delete_vault(resource_group, name)


class TestRunSample:
    """Tests for run_sample."""

    def test_succeeds(self, session, manager, data_client, names, console, output):
        assert run_sample(session, manager, data_client, names=names, console=console) is True

        text = output.getvalue()
        assert f"Got Secret: {names.secret1} with value={names.secret_value1}" in text
        assert f"The secret value is: {names.secret_value3}" in text
        assert "Listing key vaults..." in text

    def test_creates_two_vaults_with_distinct_names(self, session, manager, data_client, console):
        assert run_sample(session, manager, data_client, console=console) is True

        assert len(manager.created_specs) == 2
        first, second = manager.created_specs
        assert first.name != second.name

    def test_first_vault_starts_empty_then_authorized(self, session, manager, data_client, names, console):
        run_sample(session, manager, data_client, names=names, console=console)

        first = manager.created_specs[0]
        assert first.access_policies == []
        assert first.region == "eastus"

        authorize = manager.updates[0]
        assert [p.object_id for p in authorize.add_policies] == [PRINCIPAL_OBJECT_ID, DEFAULT_EXTERNAL_OBJECT_ID]
        for policy in authorize.add_policies:
            assert policy.key_permissions == ALL_KEY_PERMISSIONS
            assert policy.secret_permissions == ALL_SECRET_PERMISSIONS

    def test_second_vault_policy_restricted(self, session, manager, data_client, names, console):
        """Test the fixed policy submitted for the second vault."""
        run_sample(session, manager, data_client, names=names, console=console)

        second: VaultSpec = manager.created_specs[1]
        assert second.region == "eastus2"
        assert second.resource_group == names.resource_group
        assert len(second.access_policies) == 1

        policy = second.access_policies[0]
        assert policy.object_id == PRINCIPAL_OBJECT_ID
        assert policy.tenant_id == TENANT_ID
        assert policy.key_permissions == {KeyPermission.LIST, KeyPermission.GET, KeyPermission.DECRYPT}
        assert policy.secret_permissions == {SecretPermission.GET}

    def test_vault_update_enables_deployment(self, session, manager, data_client, names, console):
        run_sample(session, manager, data_client, names=names, console=console)

        vault1 = manager.vaults[names.vault1]
        assert vault1.enabled_for_deployment is True
        assert vault1.enabled_for_template_deployment is True
        assert manager.updates[1].grants[0].object_id == PRINCIPAL_OBJECT_ID

    def test_keys_and_secrets_created(self, session, manager, data_client, names, console, vault_store):
        run_sample(session, manager, data_client, names=names, console=console)

        url = f"https://{names.vault1}.vault.azure.net"
        assert set(vault_store["keys"][url]) == {names.key1, names.key2}
        assert set(vault_store["secrets"][url]) == {names.secret1, names.secret2, names.secret3}

    def test_secret_listing_bounded(self, session, manager, data_client, names, console):
        """Test that the listing requests the configured page size."""
        config = SampleConfig(secret_page_size=2)
        run_sample(session, manager, data_client, config=config, names=names, console=console)

        fake = data_client.fake_secret_clients[f"https://{names.vault1}.vault.azure.net"]
        assert fake.list_calls == [2]

    def test_secret_listing_default_page_size(self, session, manager, data_client, names, console, output):
        run_sample(session, manager, data_client, names=names, console=console)

        fake = data_client.fake_secret_clients[f"https://{names.vault1}.vault.azure.net"]
        assert fake.list_calls == [10]
        assert output.getvalue().count("Secret in Key Vault Value:") == 3

    def test_failure_on_second_vault(self, session, data_client, names, console):
        """Test that an error creating the second vault is reported, not raised."""
        manager = FakeVaultManager(fail_on_create=2)

        assert run_sample(session, manager, data_client, names=names, console=console) is False
        assert len(manager.created_specs) == 2

    def test_failure_logged(self, session, data_client, names, console, caplog):
        manager = FakeVaultManager(fail_on_create=1)

        assert run_sample(session, manager, data_client, names=names, console=console) is False
        assert "already in use" in caplog.text

    def test_background_write_joined_on_failure(self, session, manager, data_client, names, console, caplog):
        """Test that a failed scoped write still waits for and reports the background write."""
        set_secret = data_client.set_secret

        def failing_set_secret(vault_url, name, value, content_type=None):
            if name in (names.secret2, names.secret3):
                raise ServiceError(f"Secret {name} was rejected", status_code=403)
            return set_secret(vault_url, name, value, content_type=content_type)

        data_client.set_secret = failing_set_secret

        assert run_sample(session, manager, data_client, names=names, console=console) is False
        assert f"Secret {names.secret2} was rejected" in caplog.text
        assert f"Background write of {names.secret3} failed" in caplog.text

    def test_missing_principal_object_id(self, session, manager, data_client, console):
        from dataclasses import replace

        anonymous = replace(session, principal_object_id=None)
        assert run_sample(anonymous, manager, data_client, console=console) is False
        assert manager.created_specs == []


class TestCleanup:
    """Tests for the opt-in cleanup."""

    def test_resources_kept_by_default(self, session, manager, data_client, names, console):
        run_sample(session, manager, data_client, names=names, console=console)

        assert manager.deleted_vaults == []
        assert manager.deleted_groups == []
        assert set(manager.vaults) == {names.vault1, names.vault2}

    def test_cleanup_deletes_everything(self, session, manager, data_client, names, console):
        config = SampleConfig(cleanup=True)

        assert run_sample(session, manager, data_client, config=config, names=names, console=console) is True
        assert manager.deleted_vaults == [names.vault1, names.vault2]
        assert manager.deleted_groups == [names.resource_group]

    def test_cleanup_after_failure(self, session, data_client, names, console):
        manager = FakeVaultManager(fail_on_create=2)
        config = SampleConfig(cleanup=True)

        assert run_sample(session, manager, data_client, config=config, names=names, console=console) is False
        assert manager.deleted_vaults == [names.vault1]
        assert manager.deleted_groups == [names.resource_group]

    def test_cleanup_continues_past_failed_delete(self, session, data_client, names, console, caplog):
        """Test that one undeletable vault does not stop the rest of the cleanup."""
        manager = LockedVaultManager(locked=names.vault1)
        config = SampleConfig(cleanup=True)

        assert run_sample(session, manager, data_client, config=config, names=names, console=console) is True
        assert manager.deleted_vaults == [names.vault2]
        assert manager.deleted_groups == [names.resource_group]
        assert f"Could not delete key vault {names.vault1}" in caplog.text

    def test_nothing_to_clean(self, session, data_client, names, console, output):
        manager = NoQuotaManager()
        config = SampleConfig(cleanup=True)

        assert run_sample(session, manager, data_client, config=config, names=names, console=console) is False
        assert "No clean up is necessary" in output.getvalue()


class TestEndToEnd:
    """Single-vault scenario through the public clients."""

    def test_set_get_list(self, session, manager, data_client):
        vault = manager.create_vault(VaultSpec(name="v1", region="eastus", resource_group="rg", tenant_id=TENANT_ID))

        data_client.set_secret(vault.vault_uri, "s1", "abc123")
        assert data_client.get_secret(vault.vault_uri, "s1").value == "abc123"

        data_client.set_secret(vault.vault_uri, "s2", "def456")
        data_client.set_secret(vault.vault_uri, "s3", "ghi789")

        references = data_client.list_secrets(vault.vault_uri)
        assert len(references) == 3
        assert sorted(r.id for r in references) == [
            "https://v1.vault.azure.net/secrets/s1",
            "https://v1.vault.azure.net/secrets/s2",
            "https://v1.vault.azure.net/secrets/s3",
        ]
        assert [data_client.get_secret_by_id(r.id).value for r in sorted(references, key=lambda r: r.name)] == [
            "abc123", "def456", "ghi789",
        ]
