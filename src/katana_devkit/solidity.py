"""Regex-based extraction of declarations and NatSpec from Solidity source."""

import re
from typing import Dict, List, Optional, Sequence, Tuple

from .addresses import ADDRESS_LITERAL, normalize_address
from .types import Description

# A /** ... */ block followed only by whitespace and a declaration
_DOC_BEFORE_INTERFACE = re.compile(r"/\*\*((?:(?!\*/).)*)\*/\s*interface\s+\w+", re.DOTALL)
_DOC_BEFORE_DECLARATION = re.compile(
    r"/\*\*((?:(?!\*/).)*)\*/\s*(?:abstract\s+)?(?:interface|contract|library)\s+\w+",
    re.DOTALL,
)

_DECLARATION = re.compile(r"^(?:abstract\s+)?(interface|contract|library)\s+(\w+)")

_INTERFACE_DECLARATION = re.compile(r"(?:^|\n)[ \t]*interface\s+(\w+)")

_TAG_LINE = re.compile(r"^@([\w-]+(?::[\w-]+)?)\s*(.*)$")

_ADDRESS_IN_TEXT = re.compile(ADDRESS_LITERAL)


def _block_lines(body: str) -> List[str]:
    """Strip the leading ' * ' decoration from each line of a doc block."""
    lines = []
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:].strip()
        lines.append(line)
    return lines


def _collect_tags(lines: Sequence[str]) -> List[Tuple[str, str]]:
    """
    Group doc block lines into (tag, text) pairs.

    Text without a leading tag is reported under "notice", which is the
    NatSpec default. Continuation lines are appended to the current tag.
    """
    tags: List[Tuple[str, List[str]]] = []
    for line in lines:
        match = _TAG_LINE.match(line)
        if match:
            tags.append((match.group(1), [match.group(2)]))
        elif line:
            if not tags:
                tags.append(("notice", []))
            tags[-1][1].append(line)
    return [(tag, " ".join(part for part in parts if part).strip()) for tag, parts in tags]


def _compose_full(title: Optional[str], notice: Optional[str], dev: Optional[str]) -> Optional[str]:
    full = f"{title}: {notice}" if title and notice else (title or notice)
    if dev:
        full = f"{full} ({dev})" if full else dev
    return full or None


def extract_doc(text: str) -> Optional[Description]:
    """
    Extract the doc-comment block that precedes the interface declaration.

    Files without a documented interface fall back to the block before the
    first contract or library.

    Args:
        text: Solidity source text

    Returns:
        Description with title, notice, dev, custom address and the derived
        full text, or None if no doc block precedes a declaration
    """
    match = _DOC_BEFORE_INTERFACE.search(text) or _DOC_BEFORE_DECLARATION.search(text)
    if not match:
        return None

    title: Optional[str] = None
    notices: List[str] = []
    devs: List[str] = []
    custom_address: Optional[str] = None

    for tag, value in _collect_tags(_block_lines(match.group(1))):
        if tag == "title":
            if title is None and value:
                title = value
        elif tag == "notice":
            if value:
                notices.append(value)
        elif tag == "dev":
            if value:
                devs.append(value)
        elif tag == "custom:address" and custom_address is None:
            address_match = _ADDRESS_IN_TEXT.search(value)
            if address_match:
                custom_address = normalize_address(address_match.group(0))

    notice = " ".join(notices) or None
    dev = " ".join(devs) or None
    return Description(
        title=title,
        notice=notice,
        dev=dev,
        custom_address=custom_address,
        full=_compose_full(title, notice, dev),
    )


def extract_network_addresses(text: str, networks: Sequence[str]) -> Dict[str, str]:
    """
    Extract @custom:<network> address tags.

    Args:
        text: Solidity source text
        networks: Network names to look for, e.g. ["tatara", "katana"]

    Returns:
        Dictionary mapping network -> checksummed address (first tag wins);
        networks without a tag are omitted
    """
    addresses: Dict[str, str] = {}
    for network in networks:
        pattern = re.compile(rf"@custom:{re.escape(network)}\s+({ADDRESS_LITERAL})", re.IGNORECASE)
        match = pattern.search(text)
        if match:
            addresses[network] = normalize_address(match.group(1))
    return addresses


def extract_declaration(text: str) -> Optional[Tuple[str, str]]:
    """
    Find the first interface, contract or library declared outside comments.

    Args:
        text: Solidity source text

    Returns:
        Tuple of (kind, name), e.g. ("interface", "IMorpho"), or None
    """
    in_block_comment = False
    for raw in text.splitlines():
        line = raw.strip()
        if in_block_comment:
            if "*/" in line:
                in_block_comment = False
                line = line.split("*/", 1)[1].strip()
            else:
                continue
        if not line or line.startswith("//") or line.startswith("*"):
            continue
        if line.startswith("/*"):
            if "*/" not in line:
                in_block_comment = True
                continue
            line = line.split("*/", 1)[1].strip()

        match = _DECLARATION.match(line)
        if match:
            return match.group(1), match.group(2)
    return None


def extract_interface_name(text: str) -> Optional[str]:
    """Return the name of the first line-leading interface declaration, if any."""
    match = _INTERFACE_DECLARATION.search(text)
    return match.group(1) if match else None
