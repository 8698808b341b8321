"""ABI generation with solc and generated-ABI validation."""

import json
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import ProjectLayout
from .exceptions import MissingInputError, ToolchainError
from .logging import get_logger
from .solidity import extract_interface_name

logger = get_logger("abi")


@dataclass
class AbiBuildResult:
    """Outcome of an ABI build run."""

    written: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class AbiValidation:
    """Comparison of source file count against generated ABI count."""

    source_count: int
    abi_count: int

    @property
    def ok(self) -> bool:
        return self.source_count == self.abi_count


def select_abi_output(candidates: List[str], interface_name: Optional[str], file_stem: str) -> Optional[str]:
    """
    Choose which solc output file holds the interface's ABI.

    Preference: name contains the interface name, then the file stem, then
    the first candidate.
    """
    for needle in (interface_name, file_stem):
        if not needle:
            continue
        for candidate in candidates:
            if needle in candidate:
                return candidate
    return candidates[0] if candidates else None


def _format_json(text: str) -> str:
    try:
        return json.dumps(json.loads(text), indent=2)
    except json.JSONDecodeError:
        return text


def compile_interface_abi(
    source: Path, output_path: Path, work_dir: Path, root: Path, solc: str = "solc"
) -> bool:
    """
    Compile one interface with solc and write its pretty-printed ABI.

    Args:
        source: Interface .sol file
        output_path: Destination .json file
        work_dir: Scratch directory for solc output (emptied afterwards)
        root: Project root used as solc base path
        solc: solc executable

    Returns:
        True if an ABI was written, False otherwise
    """
    command = [
        solc,
        "--abi",
        "--pretty-json",
        "--include-path",
        "node_modules/",
        "--base-path",
        ".",
        "-o",
        str(work_dir),
        str(source),
    ]
    try:
        try:
            subprocess.run(command, check=True, capture_output=True, cwd=root)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else str(e.stderr)
            logger.error("Error processing %s: %s", source, stderr.strip())
            return False

        candidates = sorted(path.name for path in work_dir.iterdir() if path.is_file())
        interface_name = extract_interface_name(source.read_text(encoding="utf-8"))
        chosen = select_abi_output(candidates, interface_name, source.stem)
        if chosen is None:
            logger.error("No ABI file generated for %s", source.stem)
            return False

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(_format_json((work_dir / chosen).read_text(encoding="utf-8")), encoding="utf-8")
        logger.info("ABI written to %s", output_path)
        return True
    finally:
        for path in work_dir.iterdir():
            if path.is_file():
                path.unlink()


def build_abis(layout: ProjectLayout, solc: str = "solc") -> AbiBuildResult:
    """
    Regenerate abis/ from every interface under interfaces/.

    The abis directory is recreated from scratch; its tree mirrors the
    interfaces tree. Per-file compiler errors are logged and skipped.

    Args:
        layout: Project layout
        solc: solc executable name or path

    Returns:
        AbiBuildResult

    Raises:
        MissingInputError: If the interfaces directory is missing
        ToolchainError: If solc cannot be found
    """
    if not layout.interfaces_dir.is_dir():
        raise MissingInputError(f"Interfaces directory not found: {layout.interfaces_dir}")
    if shutil.which(solc) is None:
        raise ToolchainError(f"'{solc}' not found on PATH; install the Solidity compiler first")

    if layout.abis_dir.exists():
        logger.info("Cleaning up existing abis directory")
        shutil.rmtree(layout.abis_dir)
    layout.abis_dir.mkdir(parents=True)

    sources = sorted(path for path in layout.interfaces_dir.rglob("*.sol") if path.is_file())
    logger.info("Found %d interface files", len(sources))

    result = AbiBuildResult()
    with tempfile.TemporaryDirectory() as tmp_dir:
        work_dir = Path(tmp_dir)
        for source in sources:
            relative = source.relative_to(layout.interfaces_dir)
            output_path = layout.abis_dir / relative.parent / f"{source.stem}.json"
            logger.info("Processing %s", relative.as_posix())
            if compile_interface_abi(source, output_path, work_dir, layout.root, solc):
                result.written.append(output_path)
            else:
                result.failed.append(relative.as_posix())

    return result


def _count_files(directory: Path, suffix: str) -> int:
    if not directory.is_dir():
        return 0
    return sum(1 for path in directory.rglob(f"*{suffix}") if path.is_file())


def validate_abi_count(source_dir: Path, abis_dir: Path) -> AbiValidation:
    """
    Count .sol sources and generated .json ABIs.

    Args:
        source_dir: Directory of Solidity sources
        abis_dir: Directory of generated ABIs

    Returns:
        AbiValidation; ok is True when both counts match
    """
    return AbiValidation(source_count=_count_files(source_dir, ".sol"), abi_count=_count_files(abis_dir, ".json"))
