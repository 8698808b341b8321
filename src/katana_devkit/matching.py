"""Heuristic matching of interface names to address table entries."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from .logging import get_logger
from .types import AddressRecord

logger = get_logger("matching")


class MatchRule(Enum):
    """Matcher rule that produced an address; values appear in entry metadata."""

    EXACT = "exact"
    SUBSTRING = "substring"
    ALIAS = "alias"
    DOC = "doc"


@dataclass(frozen=True)
class Alias:
    """Maps an interface file key (or interface name) to an address table key."""

    source: str
    target: str


@dataclass
class MatchResult:
    """Outcome of matching one interface."""

    record: Optional[AddressRecord] = None
    rule: Optional[MatchRule] = None


def strip_interface_prefix(name: str) -> str:
    """
    Drop the conventional leading 'I' of an interface name.

    The prefix is only stripped when the next character is uppercase, so
    "IMorpho" becomes "Morpho" while "Index" is left alone.
    """
    if len(name) > 1 and name[0] == "I" and name[1].isupper():
        return name[1:]
    return name


class NameMatcher:
    """
    Links interface names to address records.

    Rules are tried in order and the first hit wins:
    1. exact match of the stripped interface name
    2. case-insensitive substring containment in either direction
    3. alias table lookup by interface file key or interface name
    4. address from the interface's @custom:address doc tag

    Address table keys are visited in sorted order so ties resolve the same
    way on every run.
    """

    def __init__(self, records: Mapping[str, AddressRecord], aliases: Sequence[Alias] = ()):
        self._records: Dict[str, AddressRecord] = dict(records)
        self._keys: List[str] = sorted(self._records)
        self._aliases = list(aliases)

    def match(self, interface_name: str, file_key: str, doc_address: Optional[str] = None) -> MatchResult:
        """
        Find the address record for an interface.

        Args:
            interface_name: Declared interface name, e.g. "IMorphoBlue"
            file_key: Interface file key relative to the interfaces root
            doc_address: Checksummed @custom:address from the doc block, if any

        Returns:
            MatchResult; both fields are None when nothing matched
        """
        contract_name = strip_interface_prefix(interface_name)

        if contract_name in self._records:
            logger.debug("Found exact address match: %s -> %s", contract_name, contract_name)
            return MatchResult(self._records[contract_name], MatchRule.EXACT)

        lowered = contract_name.lower()
        for key in self._keys:
            lowered_key = key.lower()
            if lowered_key in lowered or lowered in lowered_key:
                logger.debug("Found partial address match: %s -> %s", contract_name, key)
                return MatchResult(self._records[key], MatchRule.SUBSTRING)

        for alias in self._aliases:
            if alias.source in (file_key, interface_name) and alias.target in self._records:
                logger.info("Found special case match for: %s -> %s", file_key, alias.target)
                return MatchResult(self._records[alias.target], MatchRule.ALIAS)

        if doc_address:
            logger.debug("Using @custom:address for %s: %s", interface_name, doc_address)
            record = AddressRecord(contract_name=contract_name, tatara=doc_address, mainnet=doc_address)
            return MatchResult(record, MatchRule.DOC)

        return MatchResult()
