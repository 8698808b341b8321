"""Data types and dataclasses for katana-devkit."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class InterfaceFile:
    """A Solidity interface source read during a directory scan."""

    path: str  # "/"-separated key relative to the interfaces root, e.g. "morpho/IMorpho.sol"
    relative_path: str  # Containing directory relative to the root, "" at top level
    raw_text: str


@dataclass
class AddressRecord:
    """Deployment addresses of one contract across networks."""

    contract_name: str
    tatara: Optional[str] = None
    mainnet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractName": self.contract_name,
            "tatara": self.tatara,
            "mainnet": self.mainnet,
        }


@dataclass
class Description:
    """Fields extracted from one NatSpec doc-comment block."""

    title: Optional[str] = None
    notice: Optional[str] = None
    dev: Optional[str] = None
    custom_address: Optional[str] = None
    full: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "notice": self.notice,
            "dev": self.dev,
            "customAddress": self.custom_address,
            "full": self.full,
        }


@dataclass
class FunctionSignature:
    """Human-readable view of one ABI function entry."""

    name: str
    signature: str  # e.g. "transfer(address,uint256)"
    inputs: List[Dict[str, Any]]
    outputs: List[Dict[str, Any]]
    state_mutability: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "signature": self.signature,
            "inputs": self.inputs,
            "outputs": self.outputs,
            "stateMutability": self.state_mutability,
        }


@dataclass
class Context:
    """UI category assigned by the context classifier."""

    category: str
    theme: str


@dataclass
class ContractEntry:
    """One record of the generated contract directory."""

    name: str
    path: str
    relative_path: str
    description: Optional[Description]
    metadata: Dict[str, Any]
    context: str
    theme: str
    address: Optional[AddressRecord]
    abi: Optional[List[Dict[str, Any]]]
    function_signatures: List[FunctionSignature] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "relativePath": self.relative_path,
            "description": self.description.to_dict() if self.description else None,
            "metadata": self.metadata,
            "context": self.context,
            "theme": self.theme,
            "address": self.address.to_dict() if self.address else None,
            "abi": self.abi,
            "functionSignatures": [sig.to_dict() for sig in self.function_signatures],
        }
