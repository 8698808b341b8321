"""Address table extraction from generated Solidity address libraries."""

import re
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional

from eth_utils import to_checksum_address

from .logging import get_logger
from .types import AddressRecord

logger = get_logger("addresses")

# 40 hex digits not followed by more hex (so bytes32 literals don't match)
ADDRESS_LITERAL = r"0x[0-9a-fA-F]{40}(?![0-9a-fA-F])"

# Networks an AddressRecord has slots for
RECORD_NETWORKS = ("tatara", "mainnet")

_GETTER = re.compile(r"function\s+get(\w+)Address\s*\(\s*\)")
_NEXT_FUNCTION = re.compile(r"\bfunction\b")
_RETURN = re.compile(rf"return\s+({ADDRESS_LITERAL}|address\(\s*0\s*\))\s*;")
_IF_BLOCK = re.compile(r"\bif\s*\((?:[^()]|\([^()]*\))*\)\s*\{([^{}]*)\}")
_ELSE = re.compile(r"\belse\b")


class BranchPolicy(Enum):
    """
    Which return statement of a getter body holds the network's address.

    Value strings are the names accepted in katana-devkit.json:
    - FIRST: the first return in the body
    - ELSE: the return following an else branch (non-default/testnet)
    - IF: the return inside an if (...) { ... } block (mainnet-guarded)

    ELSE and IF fall back to the first return when the body has no
    conditional at all.
    """

    FIRST = "first"
    ELSE = "else"
    IF = "if"


def normalize_address(address: str) -> str:
    """Return the EIP-55 checksummed form of a hex address."""
    return to_checksum_address(address)


def _literal_to_address(literal: str) -> Optional[str]:
    if literal.startswith("address"):
        # address(0) means not deployed on this network
        return None
    return normalize_address(literal)


def _select_return(body: str, policy: BranchPolicy) -> Optional[re.Match]:
    """Pick the return statement of a getter body according to the policy."""
    if_block = _IF_BLOCK.search(body)
    else_match = _ELSE.search(body)

    if policy is BranchPolicy.FIRST or (if_block is None and else_match is None):
        return _RETURN.search(body)

    if policy is BranchPolicy.IF:
        if if_block is None:
            return None
        return _RETURN.search(if_block.group(1))

    # ELSE: explicit else branch first, otherwise the fall-through after the if block
    if else_match is not None:
        return _RETURN.search(body, else_match.end())
    return _RETURN.search(body, if_block.end())


def extract_address_table(text: str, policy: BranchPolicy = BranchPolicy.FIRST) -> Dict[str, Optional[str]]:
    """
    Extract contract addresses from a generated address library.

    Args:
        text: Solidity source containing get<Name>Address() getters
        policy: Which return statement holds this network's address

    Returns:
        Dictionary mapping bare contract name -> checksummed address, or None
        for address(0). Getters without a matching return are omitted.
    """
    table: Dict[str, Optional[str]] = {}
    getters = list(_GETTER.finditer(text))

    for getter in getters:
        contract_name = getter.group(1)

        # Body runs until the next function keyword
        next_function = _NEXT_FUNCTION.search(text, getter.end())
        end = next_function.start() if next_function else len(text)
        body = text[getter.end():end]

        match = _select_return(body, policy)
        if match is None:
            logger.debug("No %s-branch return found in get%sAddress()", policy.value, contract_name)
            continue

        table[contract_name] = _literal_to_address(match.group(1))

    return table


def load_address_table(path: Path, policy: BranchPolicy = BranchPolicy.FIRST) -> Dict[str, Optional[str]]:
    """
    Read an address library file and extract its address table.

    Args:
        path: Path to the .sol address library
        policy: Which return statement holds this network's address

    Returns:
        Address table, or an empty dict if the file cannot be read
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Could not read address library %s: %s", path, e)
        return {}

    table = extract_address_table(text, policy)
    logger.info("Found %d addresses in %s", len(table), Path(path).name)
    return table


def merge_address_tables(tables: Mapping[str, Mapping[str, Optional[str]]]) -> Dict[str, AddressRecord]:
    """
    Merge per-network address tables into one record per contract name.

    Args:
        tables: Mapping of network ("tatara" or "mainnet") -> address table

    Returns:
        Dictionary mapping contract name -> AddressRecord, ordered by name.
        A name missing from a network's table has that slot set to None.

    Raises:
        ValueError: If a network has no slot in AddressRecord
    """
    for network in tables:
        if network not in RECORD_NETWORKS:
            raise ValueError(f"Unknown address record network: {network}")

    names = sorted({name for table in tables.values() for name in table})
    records: Dict[str, AddressRecord] = {}
    for name in names:
        record = AddressRecord(contract_name=name)
        for network, table in tables.items():
            setattr(record, network, table.get(name))
        records[name] = record
    return records
