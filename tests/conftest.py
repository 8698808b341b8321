"""Shared pytest fixtures for katana-devkit tests."""

import json
import logging
from pathlib import Path

import pytest

from tests._fixtures.sources import ERC20_ABI, KATANA_ADDRESSES_SOL, TATARA_ADDRESSES_SOL


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("katana_devkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_file():
    """Return a helper that writes text to a path, creating parent directories."""

    def _write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def project_root(tmp_path: Path, write_file) -> Path:
    """
    Create a small starter-kit checkout.

    interfaces/
      IMorphoBlue.sol          declares IMorphoBase (alias match)
      tokens/IAUSD.sol         doc block, exact match, ABI present
      marketplace/ISeaport.sol exact match, unparseable ABI
      IERC20Metadata.sol       no doc block, no address
      utils/KatanaAddresses.sol, utils/TataraAddresses.sol
    """
    root = tmp_path / "project"
    interfaces = root / "interfaces"

    write_file(
        interfaces / "IMorphoBlue.sol",
        "// SPDX-License-Identifier: MIT\n"
        "pragma solidity ^0.8.0;\n\n"
        "/**\n"
        " * @title Morpho Blue\n"
        " * @notice Core lending primitive\n"
        " */\n"
        "interface IMorphoBase {\n"
        "    function owner() external view returns (address);\n"
        "}\n",
    )
    write_file(
        interfaces / "tokens" / "IAUSD.sol",
        "// SPDX-License-Identifier: MIT\n"
        "pragma solidity ^0.8.0;\n\n"
        "/**\n"
        " * @title AUSD\n"
        " * @notice Agora dollar stablecoin\n"
        " * @dev ERC20 with permit\n"
        " */\n"
        "interface IAUSD {\n"
        "    function totalSupply() external view returns (uint256);\n"
        "}\n",
    )
    write_file(
        interfaces / "marketplace" / "ISeaport.sol",
        "pragma solidity ^0.8.0;\n\ninterface ISeaport {\n}\n",
    )
    write_file(
        interfaces / "IERC20Metadata.sol",
        "pragma solidity ^0.8.0;\n\ninterface IERC20Metadata {\n    function decimals() external view returns (uint8);\n}\n",
    )
    write_file(interfaces / "utils" / "KatanaAddresses.sol", KATANA_ADDRESSES_SOL)
    write_file(interfaces / "utils" / "TataraAddresses.sol", TATARA_ADDRESSES_SOL)

    abis = root / "abis"
    write_file(abis / "tokens" / "IAUSD.json", json.dumps(ERC20_ABI, indent=2))
    write_file(abis / "marketplace" / "ISeaport.json", "{ not json")

    return root
