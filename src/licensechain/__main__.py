"""Command-line entry point: ``python -m licensechain validate <key>``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .client import LicenseChainClient
from .config import ClientConfig
from .errors import LicenseChainError

logger = logging.getLogger("licensechain.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="licensechain", description="LicenseChain API client")
    parser.add_argument("--api-key", help="API key (defaults to LICENSECHAIN_API_KEY)")
    parser.add_argument("--base-url", help="Override the API base URL")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log retries and requests")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Validate a license key")
    validate.add_argument("license_key")
    validate.add_argument("--app-id")

    sub.add_parser("health", help="Check API health")
    sub.add_parser("ping", help="Ping the API")
    return parser


def _config(args: argparse.Namespace) -> ClientConfig:
    config = ClientConfig.from_env(api_key=args.api_key)
    if args.base_url:
        config = ClientConfig(
            api_key=config.api_key,
            base_url=args.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        with LicenseChainClient(_config(args)) as client:
            if args.command == "validate":
                result = client.validate_license_details(args.license_key, args.app_id)
                print(json.dumps(result.model_dump(mode="json", exclude_none=True), indent=2))
                return 0 if result.valid else 1
            if args.command == "health":
                print(json.dumps(client.health().model_dump(mode="json", exclude_none=True), indent=2))
                return 0
            print(json.dumps(client.ping().model_dump(mode="json", exclude_none=True), indent=2))
            return 0
    except LicenseChainError as exc:
        logger.error("%s error: %s", exc.kind.value, exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
