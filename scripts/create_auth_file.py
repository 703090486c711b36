#!/usr/bin/env python3
"""
Write a credentials file for the sample from AZURE_* environment variables.

Produces the same JSON layout as ``az ad sp create-for-rbac --sdk-auth`` so
the file can be pointed to by AZURE_AUTH_LOCATION.

Usage:
    AZURE_CLIENT_ID=... AZURE_TENANT_ID=... AZURE_CLIENT_SECRET=... \
    AZURE_SUBSCRIPTION_ID=... python scripts/create_auth_file.py my.azureauth
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kvmanage.auth import load_credentials
from kvmanage.errors import ConfigurationError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

FIELDS = {
    "clientId": "AZURE_CLIENT_ID",
    "tenantId": "AZURE_TENANT_ID",
    "clientSecret": "AZURE_CLIENT_SECRET",
    "subscriptionId": "AZURE_SUBSCRIPTION_ID",
}


def main():
    parser = argparse.ArgumentParser(description="Write a sample credentials file")
    parser.add_argument("output", type=str, help="Path of the credentials file to write")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
    args = parser.parse_args()

    output = Path(args.output)
    if output.exists() and not args.force:
        logger.error(f"❌ {output} already exists (use --force to overwrite)")
        return 1

    missing = [env for env in FIELDS.values() if not os.getenv(env)]
    if missing:
        logger.error(f"❌ Missing environment variables: {', '.join(missing)}")
        return 1

    data = {key: os.environ[env] for key, env in FIELDS.items()}
    output.write_text(json.dumps(data, indent=2))
    os.chmod(output, 0o600)

    # Read it back through the same loader the sample uses
    try:
        credentials = load_credentials(output)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return 1

    logger.info(f"✅ Wrote credentials for client {credentials.client_id} to {output}")
    logger.info(f"Set AZURE_AUTH_LOCATION={output.resolve()} to use it")
    return 0


if __name__ == "__main__":
    sys.exit(main())
