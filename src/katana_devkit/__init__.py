"""
katana-devkit: code generation and checks for the Katana starter kit
"""

from importlib.metadata import PackageNotFoundError, version

from .addresses import BranchPolicy, extract_address_table, merge_address_tables
from .classifier import classify
from .config import ProjectLayout, load_layout
from .directory import generate_contract_directory, write_contract_directory
from .exceptions import (
    ConfigError,
    DevkitError,
    MissingInputError,
    RpcError,
    ToolchainError,
)
from .matching import NameMatcher
from .solidity import extract_doc
from .types import AddressRecord, ContractEntry, Description

try:
    __version__ = version("katana-devkit")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "BranchPolicy",
    "extract_address_table",
    "merge_address_tables",
    "extract_doc",
    "classify",
    "NameMatcher",
    "ProjectLayout",
    "load_layout",
    "generate_contract_directory",
    "write_contract_directory",
    "AddressRecord",
    "ContractEntry",
    "Description",
    "DevkitError",
    "MissingInputError",
    "ConfigError",
    "ToolchainError",
    "RpcError",
]
