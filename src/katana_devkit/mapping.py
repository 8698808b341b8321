"""Address-mapping generator: address libraries -> utils/addresses.js."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Mapping, Optional

from .addresses import BranchPolicy, load_address_table
from .config import ProjectLayout
from .constants import MAPPING_CHAIN_IDS
from .exceptions import MissingInputError
from .logging import get_logger

logger = get_logger("mapping")

JS_MAPPING_NAME = "addresses.js"


def combine_mapping(
    tatara: Mapping[str, Optional[str]], katana: Mapping[str, Optional[str]]
) -> Dict[str, Dict[str, Optional[str]]]:
    """
    Combine the two network tables into {name: {"tatara", "katana"}}.

    Names keep first-seen order: Tatara names first, then Katana-only names.
    """
    names = list(dict.fromkeys([*tatara, *katana]))
    return {name: {"tatara": tatara.get(name), "katana": katana.get(name)} for name in names}


def render_js_mapping(mapping: Mapping[str, Mapping[str, Optional[str]]], generated_at: datetime) -> str:
    """Render the ES module exporting CHAIN_IDS, CONTRACT_ADDRESSES and getContractAddress."""
    timestamp = generated_at.isoformat().replace("+00:00", "Z")
    return f"""// Auto-generated contract address mapping
// Generated on {timestamp}

export const CHAIN_IDS = {{
  TATARA: {MAPPING_CHAIN_IDS['tatara']},
  KATANA: {MAPPING_CHAIN_IDS['katana']}
}};

export const CONTRACT_ADDRESSES = {json.dumps(mapping, indent=2)};

/**
 * Get a contract address based on the contract name and chain ID
 * @param {{string}} contractName - The name of the contract (without "get" and "Address")
 * @param {{number}} chainId - The chain ID
 * @returns {{string|null}} The contract address or null if not found
 */
export function getContractAddress(contractName, chainId) {{
  if (!contractName || !CONTRACT_ADDRESSES[contractName]) {{
    return null;
  }}

  switch (chainId) {{
    case CHAIN_IDS.TATARA:
      return CONTRACT_ADDRESSES[contractName].tatara;
    case CHAIN_IDS.KATANA:
      return CONTRACT_ADDRESSES[contractName].katana;
    default:
      return null;
  }}
}}

export default getContractAddress;
"""


def generate_address_mapping(layout: ProjectLayout, generated_at: Optional[datetime] = None) -> Path:
    """
    Write utils/addresses.js from TataraAddresses.sol and KatanaAddresses.sol.

    Tatara addresses come from the first return of each getter, Katana
    mainnet addresses from the isMainnet() branch. address(0) becomes null.

    Args:
        layout: Project layout
        generated_at: Timestamp for the header comment (defaults to now, UTC)

    Returns:
        Path of the written file

    Raises:
        MissingInputError: If either address library is missing
    """
    tatara_path = layout.interface_utils_dir / "TataraAddresses.sol"
    katana_path = layout.interface_utils_dir / "KatanaAddresses.sol"
    for path in (tatara_path, katana_path):
        if not path.is_file():
            raise MissingInputError(f"Address library not found: {path}")

    if generated_at is None:
        generated_at = datetime.now(timezone.utc)

    mapping = combine_mapping(
        load_address_table(tatara_path, BranchPolicy.FIRST),
        load_address_table(katana_path, BranchPolicy.IF),
    )

    layout.js_utils_dir.mkdir(parents=True, exist_ok=True)
    output_path = layout.js_utils_dir / JS_MAPPING_NAME
    output_path.write_text(render_js_mapping(mapping, generated_at), encoding="utf-8")
    logger.info("Address mapping generated at %s", output_path)
    return output_path
