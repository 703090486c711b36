"""
Azure Cloud Environments

Endpoints for the public and sovereign Azure clouds.
"""
from dataclasses import dataclass
from typing import Dict

from azure.identity import AzureAuthorityHosts

from kvmanage.errors import ConfigurationError


@dataclass(frozen=True)
class CloudEnvironment:
    """Authority and Resource Manager endpoints of one Azure cloud."""

    name: str
    authority_host: str
    resource_manager: str
    vault_dns_suffix: str

    @property
    def management_scope(self) -> str:
        """Token scope for Resource Manager requests."""
        return f"{self.resource_manager.rstrip('/')}/.default"


AZURE_PUBLIC_CLOUD = CloudEnvironment(
    name="AzureCloud",
    authority_host=AzureAuthorityHosts.AZURE_PUBLIC_CLOUD,
    resource_manager="https://management.azure.com/",
    vault_dns_suffix="vault.azure.net",
)

AZURE_CHINA_CLOUD = CloudEnvironment(
    name="AzureChinaCloud",
    authority_host=AzureAuthorityHosts.AZURE_CHINA,
    resource_manager="https://management.chinacloudapi.cn/",
    vault_dns_suffix="vault.azure.cn",
)

AZURE_US_GOVERNMENT = CloudEnvironment(
    name="AzureUSGovernment",
    authority_host=AzureAuthorityHosts.AZURE_GOVERNMENT,
    resource_manager="https://management.usgovcloudapi.net/",
    vault_dns_suffix="vault.usgovcloudapi.net",
)

CLOUDS: Dict[str, CloudEnvironment] = {
    cloud.name.lower(): cloud
    for cloud in (AZURE_PUBLIC_CLOUD, AZURE_CHINA_CLOUD, AZURE_US_GOVERNMENT)
}


def get_cloud(name: str) -> CloudEnvironment:
    """Look up a cloud environment by name (case-insensitive)."""
    try:
        return CLOUDS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown Azure cloud '{name}'. Expected one of: "
            f"{', '.join(c.name for c in CLOUDS.values())}"
        )
