"""Contract directory generation: interfaces + ABIs + addresses -> JSON."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .addresses import load_address_table, merge_address_tables
from .classifier import CategoryRule, classify
from .config import ProjectLayout
from .constants import NETWORKS
from .exceptions import MissingInputError
from .logging import get_logger
from .matching import NameMatcher
from .solidity import extract_declaration, extract_doc, extract_interface_name, extract_network_addresses
from .types import AddressRecord, ContractEntry, FunctionSignature, InterfaceFile

logger = get_logger("directory")

FULL_OUTPUT_NAME = "contractdir.json"
SAMPLE_OUTPUT_NAME = "contractdir_sample.json"


def scan_interface_files(interfaces_dir: Path) -> List[InterfaceFile]:
    """
    Read every .sol file below a directory.

    Args:
        interfaces_dir: Root of the interface tree

    Returns:
        InterfaceFile list ordered by relative path. Files that cannot be
        read are kept with empty text so they still produce an entry.
    """
    files = []
    for file_path in sorted(interfaces_dir.rglob("*.sol")):
        if not file_path.is_file():
            continue
        relative = file_path.relative_to(interfaces_dir)
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read interface %s: %s", relative.as_posix(), e)
            text = ""

        parent = relative.parent.as_posix()
        files.append(
            InterfaceFile(
                path=relative.as_posix(),
                relative_path="" if parent == "." else parent,
                raw_text=text,
            )
        )
    return files


def load_abi(abis_dir: Path, interface_file: InterfaceFile) -> Optional[Any]:
    """
    Load the ABI generated for an interface file.

    The ABI lives at abis/<relativePath>/<stem>.json.

    Returns:
        Parsed ABI, or None if it is missing or unparseable
    """
    abi_path = abis_dir / interface_file.relative_path / f"{Path(interface_file.path).stem}.json"
    if not abi_path.is_file():
        return None

    try:
        with open(abi_path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Could not parse ABI for %s", abi_path.relative_to(abis_dir).as_posix())
        return None


def extract_function_signatures(abi: Any) -> List[FunctionSignature]:
    """
    Derive function signatures from an ABI.

    Args:
        abi: Parsed ABI; anything other than a list yields no signatures

    Returns:
        One FunctionSignature per named "function" entry, in ABI order.
        Entries without a name are logged and skipped.
    """
    if not isinstance(abi, list):
        return []

    signatures = []
    for item in abi:
        if not isinstance(item, dict) or item.get("type") != "function":
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name:
            logger.warning("Skipping ABI function entry without a name")
            continue
        inputs = item.get("inputs") or []
        outputs = item.get("outputs") or []
        arg_types = [str(arg.get("type", "")) if isinstance(arg, dict) else "" for arg in inputs]
        signatures.append(
            FunctionSignature(
                name=name,
                signature=f"{name}({','.join(arg_types)})",
                inputs=inputs,
                outputs=outputs,
                state_mutability=item.get("stateMutability"),
            )
        )
    return signatures


def build_entry(
    interface_file: InterfaceFile,
    abi: Optional[Any],
    matcher: NameMatcher,
    rules: Sequence[CategoryRule],
) -> ContractEntry:
    """Assemble the directory entry for one interface file."""
    file_name = Path(interface_file.path).stem
    name = extract_interface_name(interface_file.raw_text) or file_name
    declaration = extract_declaration(interface_file.raw_text)
    description = extract_doc(interface_file.raw_text)

    result = matcher.match(
        name,
        interface_file.path,
        doc_address=description.custom_address if description else None,
    )
    context = classify(
        name,
        interface_file.path,
        interface_file.relative_path,
        description.full if description else None,
        rules,
    )
    signatures = extract_function_signatures(abi)

    metadata: Dict[str, Any] = {
        "fileName": file_name,
        "declarationKind": declaration[0] if declaration else None,
        "matchedBy": result.rule.value if result.rule else None,
        "networkTags": extract_network_addresses(interface_file.raw_text, NETWORKS),
        "functionCount": len(signatures),
    }

    return ContractEntry(
        name=name,
        path=interface_file.path,
        relative_path=interface_file.relative_path,
        description=description,
        metadata=metadata,
        context=context.category,
        theme=context.theme,
        address=result.record,
        abi=abi,
        function_signatures=signatures,
    )


def sort_entries(entries: List[ContractEntry]) -> List[ContractEntry]:
    """
    Order entries by name, case-insensitively first, then by path.

    This approximates locale-aware ordering without depending on the
    process locale. Names that differ only in case sort uppercase first,
    where a locale collation would put lowercase first.
    """
    return sorted(entries, key=lambda entry: (entry.name.casefold(), entry.name, entry.path))


def load_address_records(layout: ProjectLayout) -> Dict[str, AddressRecord]:
    """Extract and merge the address tables of every configured source."""
    tables: Dict[str, Dict[str, Optional[str]]] = {}
    for source in layout.address_sources:
        table = load_address_table(source.path, source.policy)
        tables.setdefault(source.network, {}).update(table)
    records = merge_address_tables(tables)
    logger.info("Found addresses for the following contracts: %s", ", ".join(records) or "(none)")
    return records


def check_inputs(layout: ProjectLayout) -> None:
    """
    Check that the directories the generator reads exist.

    Raises:
        MissingInputError: If the interfaces or ABIs directory is missing
    """
    if not layout.interfaces_dir.is_dir():
        raise MissingInputError(f"Interfaces directory does not exist: {layout.interfaces_dir}")
    if not layout.abis_dir.is_dir():
        raise MissingInputError(
            f"ABIs directory does not exist: {layout.abis_dir}. Run 'katana-devkit abi' first."
        )


def generate_contract_directory(layout: ProjectLayout) -> List[ContractEntry]:
    """
    Build the sorted contract directory for a project.

    Args:
        layout: Project layout

    Returns:
        ContractEntry list sorted by name

    Raises:
        MissingInputError: If a required input directory is missing
    """
    check_inputs(layout)

    matcher = NameMatcher(load_address_records(layout), layout.aliases)
    entries = []
    for interface_file in scan_interface_files(layout.interfaces_dir):
        abi = load_abi(layout.abis_dir, interface_file)
        entries.append(build_entry(interface_file, abi, matcher, layout.category_rules))

    return sort_entries(entries)


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_contract_directory(entries: List[ContractEntry], layout: ProjectLayout) -> Tuple[Path, Path]:
    """
    Write the full and sample directory files.

    Args:
        entries: Sorted contract entries
        layout: Project layout (dist directory and sample size)

    Returns:
        Tuple of (full_path, sample_path)
    """
    serialized = [entry.to_dict() for entry in entries]
    full_text = _dump(serialized)
    sample_text = _dump(serialized[: layout.sample_size])

    layout.dist_dir.mkdir(parents=True, exist_ok=True)
    full_path = layout.dist_dir / FULL_OUTPUT_NAME
    sample_path = layout.dist_dir / SAMPLE_OUTPUT_NAME
    full_path.write_text(full_text, encoding="utf-8")
    logger.info("Full contract directory written to %s", full_path)
    sample_path.write_text(sample_text, encoding="utf-8")
    logger.info("Sample contract directory written to %s", sample_path)

    return full_path, sample_path


def directory_statistics(entries: Sequence[ContractEntry]) -> Dict[str, int]:
    """Count contracts, contracts with ABI/address, and function signatures."""
    return {
        "contracts": len(entries),
        "with_abi": sum(1 for entry in entries if entry.abi is not None),
        "with_address": sum(1 for entry in entries if entry.address is not None),
        "function_signatures": sum(len(entry.function_signatures) for entry in entries),
    }
