"""
kvmanage CLI

Usage:
    kvmanage                          # Run the sample with AZURE_AUTH_LOCATION
    kvmanage --auth-location my.azureauth
    kvmanage --cleanup                # Delete created vaults and resource group afterwards
    kvmanage --cloud AzureChinaCloud
"""
import argparse
import logging
import sys
from typing import List, Optional

from kvmanage.auth import authenticate, get_cloud, load_credentials, load_credentials_from_env
from kvmanage.config import SampleConfig, check_log_level
from kvmanage.errors import KvManageError
from kvmanage.sample import run_sample
from kvmanage.vault import VaultDataClient, VaultManager

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Set up logging."""
    level = check_log_level(level)
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # The SDK logs every HTTP request at INFO
    if level != "DEBUG":
        logging.getLogger("azure").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvmanage",
        description="Azure Key Vault sample: create, configure and populate key vaults",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "--auth-location",
        type=str,
        help="Credentials file (default: from AZURE_AUTH_LOCATION env var)",
    )
    parser.add_argument(
        "--cloud",
        type=str,
        help="Azure cloud: AzureCloud, AzureChinaCloud or AzureUSGovernment",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete the vaults and resource group when the run ends",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def load_config(args: argparse.Namespace) -> SampleConfig:
    """Environment settings overridden by command-line flags."""
    config = SampleConfig.from_env()
    if args.auth_location:
        config.auth_location = args.auth_location
    if args.cloud:
        config.cloud = args.cloud
    if args.cleanup:
        config.cleanup = True
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        from kvmanage import __version__

        print(f"kvmanage {__version__}")
        return 0

    try:
        config = load_config(args)
    except KvManageError as e:
        setup_logging()
        logger.error(f"❌ {e}")
        return 1

    setup_logging(config.log_level)

    try:
        cloud = get_cloud(config.cloud)
        location = config.get_auth_location()
        if location:
            credentials = load_credentials(location)
        else:
            # Fails naming the unset variable
            credentials = load_credentials_from_env(config.auth_env_var)
        session = authenticate(credentials, cloud)
    except KvManageError as e:
        logger.error(f"❌ {e}")
        return 1

    manager = VaultManager(session)
    try:
        with VaultDataClient(session.credential) as data_client:
            success = run_sample(session, manager, data_client, config)
    finally:
        manager.close()

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
