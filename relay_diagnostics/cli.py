"""
Relay Diagnostics - command line entry point

    relay-diagnostics contracts
    relay-diagnostics sponsored
    relay-diagnostics erc2771
    relay-diagnostics sync-fee [--function NAME ...]
    relay-diagnostics status TASK_ID

Exit code 0 on success, 1 on any unrecovered failure.
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from typing import Mapping, Optional, Sequence

from dotenv import load_dotenv

from .chain import ChainClient
from .config import load_config, load_credentials
from .errors import ConfigurationError, DiagnosticsError
from .gelato_relay import GelatoRelayClient
from .probes import check_contracts
from .relay_trials import (
    DEFAULT_SYNC_FEE_FUNCTIONS,
    run_call_with_sync_fee,
    run_sponsored_call,
    run_sponsored_call_erc2771,
    run_task_status,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relay-diagnostics",
        description="Probe contracts and the Gelato relay on a test network",
    )
    parser.add_argument("--rpc-url", help="Override the chain RPC endpoint")
    parser.add_argument("--relay-url", help="Override the Gelato relay base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("contracts", help="Check which configured addresses hold contract code")
    sub.add_parser("sponsored", help="Submit a sponsoredCall to the simple counter")
    sub.add_parser("erc2771", help="Submit a sponsoredCallERC2771, falling back to concurrent mode on nonce errors")
    sync_fee = sub.add_parser("sync-fee", help="Try callWithSyncFee with candidate relay-context functions")
    sync_fee.add_argument(
        "--function",
        dest="functions",
        action="append",
        help="Function name to try (repeatable, default: the built-in candidate list)",
    )
    status = sub.add_parser("status", help="Look up a relay task once")
    status.add_argument("task_id")
    return parser


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _banner(title: str):
    print(title)
    print("=" * len(title))


def run(args: argparse.Namespace, environ: Mapping[str, str]) -> int:
    config = load_config(environ)
    if args.rpc_url:
        config = replace(config, rpc_url=args.rpc_url)
    if args.relay_url:
        config = replace(config, relay_url=args.relay_url)

    # Credentials are checked before any client exists
    if args.command in ("sponsored", "erc2771"):
        credentials = load_credentials(environ)
    elif args.command == "sync-fee":
        credentials = load_credentials(environ, require_api_key=False)
    else:
        credentials = None

    if args.command == "contracts":
        _banner(f"🔍 Debugging Contract Addresses on {config.name}")
        chain = ChainClient(config.rpc_url, timeout=config.rpc_timeout)
        check_contracts(chain, config.targets())
        print("🎉 Contract debugging completed!")
        return 0

    relay = GelatoRelayClient(config.relay_url)

    if args.command == "sponsored":
        _banner(f"🧪 Testing Gelato Relay on {config.name}")
        asyncio.run(run_sponsored_call(relay, config, credentials))
        print("🎉 Test completed successfully!")
    elif args.command == "erc2771":
        _banner(f"🧪 Testing sponsoredCallERC2771 on {config.name}")
        chain = ChainClient(config.rpc_url, timeout=config.rpc_timeout)
        asyncio.run(run_sponsored_call_erc2771(relay, config, credentials, chain=chain))
        print("🎉 ERC2771 testing completed!")
    elif args.command == "sync-fee":
        _banner("🧪 Testing callWithSyncFee with CounterRelayContext")
        chain = ChainClient(config.rpc_url, timeout=config.rpc_timeout)
        functions = args.functions or DEFAULT_SYNC_FEE_FUNCTIONS
        results = asyncio.run(run_call_with_sync_fee(relay, chain, config, credentials, functions))
        working = [name for name, handle in results.items() if handle]
        print("🎉 Relay context testing completed!")
        print(f"Working functions: {', '.join(working) if working else 'none'}")
    elif args.command == "status":
        asyncio.run(run_task_status(relay, args.task_id))
    return 0


def main(argv: Optional[Sequence[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if environ is None:
        load_dotenv()
        environ = os.environ

    try:
        return run(args, environ)
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except DiagnosticsError as e:
        logger.debug("Unrecovered failure", exc_info=True)
        print(f"💥 {args.command} failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"💥 {args.command} failed: {e!r}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
