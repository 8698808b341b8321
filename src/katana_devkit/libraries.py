"""
Address-library builder.

Collects @custom:<network> address tags from contract sources and renders
one Solidity library per network plus a TypeScript address mapping.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .config import ProjectLayout
from .constants import NETWORK_CONFIG, NETWORKS
from .exceptions import MissingInputError
from .logging import get_logger
from .matching import strip_interface_prefix
from .solidity import extract_declaration, extract_network_addresses

logger = get_logger("libraries")

TS_MAPPING_NAME = "addresses.ts"


@dataclass
class NetworkTable:
    """Contract name -> address for one network, with the file each entry came from."""

    addresses: Dict[str, str] = field(default_factory=dict)
    sources: Dict[str, str] = field(default_factory=dict)

    def add(self, name: str, address: str, source: str) -> None:
        """
        Add an address, keeping names unique.

        When the name is taken by a different address, the existing entry is
        renamed with its file-path suffix and the new file takes the plain
        name.
        """
        existing = self.addresses.get(name)
        if existing is not None and existing != address:
            previous_source = self.sources[name]
            unique_name = unique_contract_name(name, previous_source)
            logger.warning(
                "Duplicate contract name '%s' with different addresses: %s (%s) and %s (%s); "
                "renaming the former to %s",
                name,
                existing,
                previous_source,
                address,
                source,
                unique_name,
            )
            self.addresses[unique_name] = existing
            self.sources[unique_name] = previous_source

        self.addresses[name] = address
        self.sources[name] = source


def unique_contract_name(name: str, source: str) -> str:
    """
    Build a collision-free name from a contract name and its source path.

    >>> unique_contract_name("IToken", "tokens/IToken.sol")
    'IToken_tokens_IToken'
    """
    suffix = source.replace("/", "_").replace(".", "_")
    if suffix.endswith("_sol"):
        suffix = suffix[: -len("_sol")]
    return f"{name}_{suffix}"


def contract_function_name(name: str) -> str:
    """Getter name for a contract, e.g. "IMultiSend" -> "getMultiSendAddress"."""
    return f"get{strip_interface_prefix(name)}Address"


def _sort_key(name: str) -> tuple:
    return (name.casefold(), name)


def scan_contract_sources(contracts_dir: Path) -> List[Path]:
    """Return .sol files below contracts_dir, skipping any utils directory."""
    return [
        path
        for path in sorted(contracts_dir.rglob("*.sol"))
        if path.is_file() and "utils" not in path.relative_to(contracts_dir).parts[:-1]
    ]


def collect_network_contracts(
    contracts_dir: Path, networks: Sequence[str] = NETWORKS
) -> Dict[str, NetworkTable]:
    """
    Extract @custom:<network> addresses from every contract source.

    Args:
        contracts_dir: Root of the contract sources
        networks: Networks to collect

    Returns:
        Dictionary mapping network -> NetworkTable
    """
    tables = {network: NetworkTable() for network in networks}

    for path in scan_contract_sources(contracts_dir):
        relative = path.relative_to(contracts_dir).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", relative, e)
            continue

        declaration = extract_declaration(text)
        contract_name = declaration[1] if declaration else path.stem

        for network, address in extract_network_addresses(text, networks).items():
            tables[network].add(contract_name, address, relative)
            logger.info("Found %s: %s -> %s (%s)", network, contract_name, address, relative)

    return tables


def render_address_library(network: str, contracts: Mapping[str, str]) -> str:
    """
    Render the Solidity address library for one network.

    Args:
        network: Network name, e.g. "tatara"
        contracts: Contract name -> checksummed address

    Returns:
        Solidity source of library <Network>Addresses
    """
    network_name = network.capitalize()
    chain_id = NETWORK_CONFIG[network]["chain_id"]
    chain_name = NETWORK_CONFIG[network]["chain_name"]

    lines = [
        "// SPDX-License-Identifier: MIT",
        "pragma solidity ^0.8.0;",
        "",
        "/**",
        f" * @title {network_name}Addresses",
        f" * @notice Library for accessing {chain_name} contract addresses",
        " * @dev Auto-generated from contract doccomments. Do not edit manually.",
        " */",
        f"library {network_name}Addresses {{",
        "    /**",
        f"     * @notice Chain ID for {chain_name}",
        "     */",
        f"    uint256 internal constant CHAIN_ID = {chain_id};",
        "",
    ]

    if not contracts:
        lines += [
            f"    // No contracts found with @custom:{network} addresses",
            f"    // This file will be populated as contracts are deployed to {network_name}",
            "",
        ]

    for name in sorted(contracts, key=_sort_key):
        lines += [
            "    /**",
            f"     * @notice Returns the address of {name}",
            f"     * @return The {name} contract address",
            "     */",
            f"    function {contract_function_name(name)}() internal pure returns (address) {{",
            f"        return {contracts[name]};",
            "    }",
            "",
        ]

    lines.append("}")
    return "\n".join(lines)


def _ts_value(address: Optional[str]) -> str:
    return f'"{address}" as `0x${{string}}`' if address else "null"


def render_typescript_mapping(
    network_contracts: Mapping[str, Mapping[str, str]],
    generated_at: datetime,
    networks: Sequence[str] = NETWORKS,
) -> str:
    """
    Render utils/addresses.ts with chain IDs and the per-network mapping.

    Args:
        network_contracts: Network -> (contract name -> address)
        generated_at: Timestamp written into the header comment
        networks: Networks to include, in column order

    Returns:
        TypeScript source
    """
    names = sorted(
        {name for network in networks for name in network_contracts.get(network, {})},
        key=_sort_key,
    )

    chain_interface = "\n".join(f"  {network.upper()}: number;" for network in networks)
    address_interface = "\n".join(f"    {network}: `0x${{string}}` | null;" for network in networks)
    chain_values = ",\n".join(
        f"  {network.upper()}: {NETWORK_CONFIG[network]['chain_id']}" for network in networks
    )
    rows = ",\n".join(
        "  \"{}\": {{ {} }}".format(
            name,
            ", ".join(
                f'"{network}": {_ts_value(network_contracts.get(network, {}).get(name))}'
                for network in networks
            ),
        )
        for name in names
    )
    timestamp = generated_at.isoformat().replace("+00:00", "Z")
    cases = "\n".join(
        f"    case CHAIN_IDS.{network.upper()}:\n"
        f"      return CONTRACT_ADDRESSES[contractName].{network};"
        for network in networks
    )

    return f"""// Auto-generated contract address mapping
// Generated on {timestamp}
// Do not edit manually - this file is generated by katana-devkit addresses

/**
 * Chain IDs for all supported networks
 */
export interface ChainIds {{
{chain_interface}
}}

/**
 * Contract addresses for each network - using viem's Address type format
 */
export interface ContractAddresses {{
  [contractName: string]: {{
{address_interface}
  }};
}}

/**
 * Chain ID constants
 */
export const CHAIN_IDS: ChainIds = {{
{chain_values}
}};

/**
 * Mapping of contract names to their addresses on each network
 */
export const CONTRACT_ADDRESSES: ContractAddresses = {{
{rows}
}};

/**
 * Get a contract address based on the contract name and chain ID
 * @param contractName - The name of the contract
 * @param chainId - The chain ID
 * @returns The contract address or null if not found
 */
export function getContractAddress(contractName: string, chainId: number): `0x${{string}}` | null {{
  if (!contractName || !CONTRACT_ADDRESSES[contractName]) {{
    return null;
  }}

  switch (chainId) {{
{cases}
    default:
      return null;
  }}
}}

export default getContractAddress;
"""


@dataclass
class LibraryBuildResult:
    """Files written by build_address_libraries and per-network counts."""

    library_paths: List[Path]
    mapping_path: Path
    contract_counts: Dict[str, int]


def build_address_libraries(layout: ProjectLayout, generated_at: Optional[datetime] = None) -> LibraryBuildResult:
    """
    Generate <Network>Addresses.sol libraries and utils/addresses.ts.

    Args:
        layout: Project layout
        generated_at: Timestamp for the TypeScript header (defaults to now, UTC)

    Returns:
        LibraryBuildResult

    Raises:
        MissingInputError: If contracts/ or contracts/utils/ is missing
    """
    if not layout.contracts_dir.is_dir():
        raise MissingInputError(f"Contracts directory not found: {layout.contracts_dir}")
    if not layout.contract_utils_dir.is_dir():
        raise MissingInputError(f"Utils directory not found: {layout.contract_utils_dir}")

    if generated_at is None:
        generated_at = datetime.now(timezone.utc)

    tables = collect_network_contracts(layout.contracts_dir)
    total = sum(len(table.addresses) for table in tables.values())
    logger.info("Total addresses found: %d", total)

    library_paths = []
    for network, table in tables.items():
        library_path = layout.contract_utils_dir / f"{network.capitalize()}Addresses.sol"
        library_path.write_text(render_address_library(network, table.addresses), encoding="utf-8")
        logger.info("Generated %s with %d contracts", library_path.name, len(table.addresses))
        library_paths.append(library_path)

    layout.js_utils_dir.mkdir(parents=True, exist_ok=True)
    mapping_path = layout.js_utils_dir / TS_MAPPING_NAME
    mapping_path.write_text(
        render_typescript_mapping({network: table.addresses for network, table in tables.items()}, generated_at),
        encoding="utf-8",
    )
    logger.info("Generated %s", mapping_path)

    return LibraryBuildResult(
        library_paths=library_paths,
        mapping_path=mapping_path,
        contract_counts={network: len(table.addresses) for network, table in tables.items()},
    )
