"""
Vault Models

Plain value types describing vaults, access policies, keys and secrets.
Specs are submitted to the clients as one unit; descriptors are what the
service returned.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional


class KeyPermission(str, Enum):
    """Operations an access policy may allow on keys."""
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"
    WRAP_KEY = "wrapKey"
    UNWRAP_KEY = "unwrapKey"
    SIGN = "sign"
    VERIFY = "verify"
    GET = "get"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    IMPORT = "import"
    DELETE = "delete"
    BACKUP = "backup"
    RESTORE = "restore"
    RECOVER = "recover"
    PURGE = "purge"
    RELEASE = "release"
    ROTATE = "rotate"
    GET_ROTATION_POLICY = "getrotationpolicy"
    SET_ROTATION_POLICY = "setrotationpolicy"


class SecretPermission(str, Enum):
    """Operations an access policy may allow on secrets."""
    GET = "get"
    LIST = "list"
    SET = "set"
    DELETE = "delete"
    BACKUP = "backup"
    RESTORE = "restore"
    RECOVER = "recover"
    PURGE = "purge"


ALL_KEY_PERMISSIONS: FrozenSet[KeyPermission] = frozenset(KeyPermission)
ALL_SECRET_PERMISSIONS: FrozenSet[SecretPermission] = frozenset(SecretPermission)

# JSON web key operations granted to keys created by the sample
ALL_KEY_OPERATIONS = ("encrypt", "decrypt", "sign", "verify", "wrapKey", "unwrapKey")


def _parse_permissions(enum_cls, all_permissions: FrozenSet, values: Iterable[Any]) -> FrozenSet:
    """Normalize enum members or wire strings (any case, "all" expands)."""
    by_value = {member.value.lower(): member for member in enum_cls}
    result = set()
    for value in values or ():
        raw = str(getattr(value, "value", value)).lower()
        if raw == "all":
            result |= all_permissions
        elif raw in by_value:
            result.add(by_value[raw])
        else:
            raise ValueError(f"Unknown {enum_cls.__name__}: {value}")
    return frozenset(result)


def _wire_permissions(values: Iterable[Any]) -> FrozenSet[str]:
    """Permissions passed through as the service spells them."""
    return frozenset(str(getattr(value, "value", value)) for value in values or ())


def _key_permissions(values: Iterable[Any]) -> FrozenSet[KeyPermission]:
    return _parse_permissions(KeyPermission, ALL_KEY_PERMISSIONS, values)


def _secret_permissions(values: Iterable[Any]) -> FrozenSet[SecretPermission]:
    return _parse_permissions(SecretPermission, ALL_SECRET_PERMISSIONS, values)


@dataclass(frozen=True)
class AccessPolicySpec:
    """Binds one principal to the key and secret operations it may perform."""

    tenant_id: str
    object_id: str
    key_permissions: FrozenSet[KeyPermission] = frozenset()
    secret_permissions: FrozenSet[SecretPermission] = frozenset()
    application_id: Optional[str] = None
    # Not managed here, but kept so updates send them back unchanged
    certificate_permissions: FrozenSet[str] = frozenset()
    storage_permissions: FrozenSet[str] = frozenset()

    def __post_init__(self):
        # Accept any iterable of enum members or wire strings
        object.__setattr__(self, "key_permissions", _key_permissions(self.key_permissions))
        object.__setattr__(self, "secret_permissions", _secret_permissions(self.secret_permissions))
        object.__setattr__(self, "certificate_permissions", _wire_permissions(self.certificate_permissions))
        object.__setattr__(self, "storage_permissions", _wire_permissions(self.storage_permissions))

    @classmethod
    def full_access(cls, tenant_id: str, object_id: str) -> "AccessPolicySpec":
        """Policy granting every key and secret permission."""
        return cls(
            tenant_id=tenant_id,
            object_id=object_id,
            key_permissions=ALL_KEY_PERMISSIONS,
            secret_permissions=ALL_SECRET_PERMISSIONS,
        )

    def merged_with(self, other: "AccessPolicySpec") -> "AccessPolicySpec":
        """Union of this policy's permissions with another's."""
        return replace(
            self,
            key_permissions=self.key_permissions | other.key_permissions,
            secret_permissions=self.secret_permissions | other.secret_permissions,
            certificate_permissions=self.certificate_permissions | other.certificate_permissions,
            storage_permissions=self.storage_permissions | other.storage_permissions,
        )

    def sorted_key_permissions(self) -> List[str]:
        return sorted(p.value for p in self.key_permissions)

    def sorted_secret_permissions(self) -> List[str]:
        return sorted(p.value for p in self.secret_permissions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "object_id": self.object_id,
            "application_id": self.application_id,
            "keys": self.sorted_key_permissions(),
            "secrets": self.sorted_secret_permissions(),
            "certificates": sorted(self.certificate_permissions),
            "storage": sorted(self.storage_permissions),
        }


@dataclass
class VaultSpec:
    """Everything needed to create a vault in one request."""

    name: str
    region: str
    resource_group: str
    tenant_id: str
    access_policies: List[AccessPolicySpec] = field(default_factory=list)
    sku: str = "standard"
    enabled_for_deployment: bool = False
    enabled_for_template_deployment: bool = False


@dataclass
class VaultUpdate:
    """
    Change set applied to an existing vault.

    add_policies are appended; grants are merged into the existing policy with
    the same object id. Flags left as None are not changed.
    """

    add_policies: List[AccessPolicySpec] = field(default_factory=list)
    grants: List[AccessPolicySpec] = field(default_factory=list)
    enabled_for_deployment: Optional[bool] = None
    enabled_for_template_deployment: Optional[bool] = None

    def apply_to(self, policies: List[AccessPolicySpec]) -> List[AccessPolicySpec]:
        """
        Compute the policy list after this update.

        Raises:
            ValueError: If a grant targets an object id without a policy
        """
        result = list(policies) + list(self.add_policies)

        for grant in self.grants:
            for i, policy in enumerate(result):
                if policy.object_id == grant.object_id:
                    result[i] = policy.merged_with(grant)
                    break
            else:
                raise ValueError(f"No access policy for object id {grant.object_id}")

        return result


def _resource_group_from_id(resource_id: Optional[str]) -> Optional[str]:
    parts = (resource_id or "").split("/")
    for i, part in enumerate(parts[:-1]):
        if part.lower() == "resourcegroups":
            return parts[i + 1]
    return None


@dataclass
class VaultDescriptor:
    """A vault as returned by the management service."""

    id: str
    name: str
    resource_group: Optional[str]
    region: str
    vault_uri: str
    tenant_id: str
    sku: str = "standard"
    access_policies: List[AccessPolicySpec] = field(default_factory=list)
    enabled_for_deployment: bool = False
    enabled_for_template_deployment: bool = False

    @classmethod
    def from_sdk(cls, vault: Any) -> "VaultDescriptor":
        """Build a descriptor from an azure.mgmt.keyvault Vault."""
        props = vault.properties
        sku = getattr(getattr(props, "sku", None), "name", None) or "standard"

        policies = [
            AccessPolicySpec(
                tenant_id=str(entry.tenant_id),
                object_id=entry.object_id,
                key_permissions=entry.permissions.keys or (),
                secret_permissions=entry.permissions.secrets or (),
                certificate_permissions=entry.permissions.certificates or (),
                storage_permissions=entry.permissions.storage or (),
                application_id=str(entry.application_id) if entry.application_id else None,
            )
            for entry in (props.access_policies or [])
        ]

        return cls(
            id=vault.id,
            name=vault.name,
            resource_group=_resource_group_from_id(vault.id),
            region=vault.location,
            vault_uri=props.vault_uri,
            tenant_id=str(props.tenant_id),
            sku=str(getattr(sku, "value", sku)),
            access_policies=policies,
            enabled_for_deployment=bool(props.enabled_for_deployment),
            enabled_for_template_deployment=bool(props.enabled_for_template_deployment),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "resource_group": self.resource_group,
            "region": self.region,
            "vault_uri": self.vault_uri,
            "tenant_id": self.tenant_id,
            "sku": self.sku,
            "access_policies": [p.to_dict() for p in self.access_policies],
            "enabled_for_deployment": self.enabled_for_deployment,
            "enabled_for_template_deployment": self.enabled_for_template_deployment,
        }


@dataclass
class KeySpec:
    """A key to create in a vault."""

    name: str
    key_type: str = "RSA"
    operations: List[str] = field(default_factory=lambda: list(ALL_KEY_OPERATIONS))


@dataclass
class KeyDescriptor:
    """A key as returned by the vault."""

    name: str
    kid: str
    key_type: str
    operations: List[str] = field(default_factory=list)

    @classmethod
    def from_sdk(cls, key: Any) -> "KeyDescriptor":
        """Build a descriptor from an azure.keyvault.keys KeyVaultKey."""
        key_type = getattr(key, "key_type", None)
        return cls(
            name=key.name,
            kid=key.id,
            key_type=str(getattr(key_type, "value", key_type)),
            operations=[str(getattr(op, "value", op)) for op in (key.key_operations or [])],
        )


@dataclass
class SecretAttributes:
    """Lifecycle attributes of a secret."""

    enabled: Optional[bool] = None
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None
    content_type: Optional[str] = None

    @classmethod
    def from_sdk(cls, properties: Any) -> "SecretAttributes":
        return cls(
            enabled=getattr(properties, "enabled", None),
            created_on=getattr(properties, "created_on", None),
            updated_on=getattr(properties, "updated_on", None),
            content_type=getattr(properties, "content_type", None),
        )

    def __str__(self) -> str:
        return (
            f"enabled={self.enabled}, created={self.created_on}, "
            f"updated={self.updated_on}, content_type={self.content_type}"
        )


@dataclass
class SecretSpec:
    """A secret to store in a vault."""

    name: str
    value: str
    content_type: Optional[str] = None


@dataclass
class SecretDescriptor:
    """A secret, including its value, as returned by the vault."""

    name: str
    id: str
    value: str
    version: Optional[str] = None
    attributes: SecretAttributes = field(default_factory=SecretAttributes)

    @classmethod
    def from_sdk(cls, secret: Any) -> "SecretDescriptor":
        """Build a descriptor from an azure.keyvault.secrets KeyVaultSecret."""
        return cls(
            name=secret.name,
            id=secret.id,
            value=secret.value,
            version=getattr(secret.properties, "version", None),
            attributes=SecretAttributes.from_sdk(secret.properties),
        )


@dataclass
class SecretReference:
    """A listing entry: identifies a secret without its value."""

    name: str
    id: str
    attributes: SecretAttributes = field(default_factory=SecretAttributes)

    @classmethod
    def from_sdk(cls, properties: Any) -> "SecretReference":
        """Build a reference from an azure.keyvault.secrets SecretProperties."""
        return cls(
            name=properties.name,
            id=properties.id,
            attributes=SecretAttributes.from_sdk(properties),
        )
