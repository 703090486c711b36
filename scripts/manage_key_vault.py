#!/usr/bin/env python3
"""
Run the Azure Key Vault management sample from a source checkout.

Usage:
    export AZURE_AUTH_LOCATION=/path/to/my.azureauth
    python scripts/manage_key_vault.py [--cleanup] [--cloud AzureCloud]
"""
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kvmanage.cli import main


if __name__ == "__main__":
    sys.exit(main())
