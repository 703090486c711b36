"""
Console output for vault descriptors.
"""
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from kvmanage.vault.models import VaultDescriptor


def format_vault(vault: VaultDescriptor) -> str:
    """Multi-line description of a vault and its access policies."""
    lines = [
        f"Key Vault: {vault.id}",
        f"Name: {vault.name}",
        f"\tResource group: {vault.resource_group}",
        f"\tRegion: {vault.region}",
        f"\tSku: {vault.sku}",
        f"\tVault URI: {vault.vault_uri}",
        f"\tDeployment enabled: {vault.enabled_for_deployment}",
        f"\tTemplate deployment enabled: {vault.enabled_for_template_deployment}",
        "\tAccess policies: ",
    ]
    for policy in vault.access_policies:
        lines.append(f"\t\tIdentity: {policy.object_id}")
        lines.append(f"\t\tKey permissions: {', '.join(policy.sorted_key_permissions())}")
        lines.append(f"\t\tSecret permissions: {', '.join(policy.sorted_secret_permissions())}")
    return "\n".join(lines)


def print_vault(vault: VaultDescriptor, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(Panel.fit(Text(format_vault(vault).expandtabs(4)), title=vault.name, border_style="blue"))
