"""CLI entrypoints for katana-devkit commands."""

import argparse
import os
import sys
from typing import List, Optional

from .abi import build_abis, validate_abi_count
from .config import load_layout
from .constants import DEFAULT_CHECK_TOKENS, DEFAULT_RPC_URL
from .directory import directory_statistics, generate_contract_directory, write_contract_directory
from .exceptions import DevkitError, RpcError
from .libraries import build_address_libraries
from .logging import configure_logging
from .mapping import generate_address_mapping
from .rpc import check_connection
from .telemetry import flush_queue, record_event


def _add_common_options(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    default = argparse.SUPPRESS if suppress_default else None
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--root",
        default=default,
        help="Project root (defaults to $KATANA_DEVKIT_ROOT or the current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="katana-devkit",
        description="Code generation and checks for the Katana starter kit.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    contractdir_parser = subparsers.add_parser(
        "contractdir",
        help="Generate dist/contractdir.json and dist/contractdir_sample.json.",
    )
    _add_common_options(contractdir_parser, suppress_default=True)

    addresses_parser = subparsers.add_parser(
        "addresses",
        help="Build per-network address libraries and utils/addresses.ts from @custom tags.",
    )
    _add_common_options(addresses_parser, suppress_default=True)

    mapping_parser = subparsers.add_parser(
        "mapping",
        help="Generate utils/addresses.js from the Tatara and Katana address libraries.",
    )
    _add_common_options(mapping_parser, suppress_default=True)

    abi_parser = subparsers.add_parser(
        "abi",
        help="Generate ABIs for every interface with solc.",
    )
    _add_common_options(abi_parser, suppress_default=True)
    abi_parser.add_argument(
        "--validate",
        action="store_true",
        help="Only compare the number of interface files with generated ABIs.",
    )
    abi_parser.add_argument(
        "--solc",
        default="solc",
        help="solc executable (defaults to 'solc' on PATH).",
    )

    connection_parser = subparsers.add_parser(
        "check-connection",
        help="Check that an RPC endpoint answers and token contracts are readable.",
    )
    _add_common_options(connection_parser, suppress_default=True)
    connection_parser.add_argument(
        "--rpc-url",
        default=None,
        help=f"RPC endpoint (defaults to $RPC_URL or {DEFAULT_RPC_URL}).",
    )

    telemetry_parser = subparsers.add_parser(
        "telemetry",
        help="Record an anonymous usage event (opt-in).",
    )
    _add_common_options(telemetry_parser, suppress_default=True)
    telemetry_parser.add_argument("--event", default="", help="Event name to record.")

    flush_parser = subparsers.add_parser(
        "telemetry-flush",
        help="Send queued usage events to $PHONEHOME_ENDPOINT.",
    )
    _add_common_options(flush_parser, suppress_default=True)

    return parser


def _run_contractdir(args: argparse.Namespace) -> None:
    layout = load_layout(args.root)
    print("Generating contract directory files...")
    entries = generate_contract_directory(layout)
    full_path, sample_path = write_contract_directory(entries, layout)
    print(f"Full contract directory written to {full_path}")
    print(f"Sample contract directory written to {sample_path}")

    stats = directory_statistics(entries)
    print("\nDirectory Statistics:")
    print(f"  - Total contracts: {stats['contracts']}")
    print(f"  - Contracts with ABIs: {stats['with_abi']}")
    print(f"  - Contracts with addresses: {stats['with_address']}")
    print(f"  - Total function signatures: {stats['function_signatures']}")
    print("\nGeneration complete!")


def _run_addresses(args: argparse.Namespace) -> None:
    result = build_address_libraries(load_layout(args.root))
    for path in result.library_paths:
        print(f"Generated {path.name}")
    print(f"Generated {result.mapping_path}")
    for network, count in result.contract_counts.items():
        print(f"  - {network}: {count} contracts")


def _run_mapping(args: argparse.Namespace) -> None:
    output_path = generate_address_mapping(load_layout(args.root))
    print(f"Address mapping generated at {output_path}")


def _run_abi(args: argparse.Namespace) -> bool:
    layout = load_layout(args.root)
    if args.validate:
        validation = validate_abi_count(layout.interfaces_dir, layout.abis_dir)
        print("Validation Check:")
        print(f"  - Total interface files: {validation.source_count}")
        print(f"  - Total generated ABIs: {validation.abi_count}")
        if validation.ok:
            print("OK: The number of generated ABIs matches the number of interface files.")
        else:
            print("NOK: The number of generated ABIs does not match the number of interface files.")
        return validation.ok

    result = build_abis(layout, solc=args.solc)
    print(f"ABI generation complete: {len(result.written)} written, {len(result.failed)} failed")
    return True


def _run_check_connection(args: argparse.Namespace) -> None:
    rpc_url = args.rpc_url or os.environ.get("RPC_URL") or DEFAULT_RPC_URL
    report = check_connection(rpc_url, DEFAULT_CHECK_TOKENS)
    print(f"Connected to {report.rpc_url}")
    print(f"  - Current block: {report.block_number}")
    print(f"  - Chain ID: {report.chain_id}")
    for label, token in report.tokens.items():
        print(f"  - {label}: {token.name} ({token.symbol}), total supply {token.formatted_supply}")


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint for katana-devkit commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        if args.command == "contractdir":
            _run_contractdir(args)
        elif args.command == "addresses":
            _run_addresses(args)
        elif args.command == "mapping":
            _run_mapping(args)
        elif args.command == "abi":
            if not _run_abi(args):
                parser.exit(1)
        elif args.command == "check-connection":
            _run_check_connection(args)
        elif args.command == "telemetry":
            record_event(args.event, load_layout(args.root).phonehome_dir)
        elif args.command == "telemetry-flush":
            layout = load_layout(args.root)
            flushed = flush_queue(layout.phonehome_dir / "queue", os.environ.get("PHONEHOME_ENDPOINT"))
            print(f"Flushed {flushed} events")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except RpcError as exc:
        parser.exit(
            1,
            f"Connection test failed: {exc}\n"
            "Make sure your node or local fork is running and RPC_URL is valid.\n",
        )
    except DevkitError as exc:
        parser.exit(1, f"Error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
