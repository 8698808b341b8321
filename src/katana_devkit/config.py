"""Project layout and optional katana-devkit.json overrides."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .addresses import RECORD_NETWORKS, BranchPolicy
from .classifier import DEFAULT_RULES, CategoryRule, build_rules
from .constants import DEFAULT_ADDRESS_SOURCES, DEFAULT_ALIASES, PROJECT_CONFIG_FILE, SAMPLE_SIZE
from .exceptions import ConfigError
from .matching import Alias


@dataclass(frozen=True)
class AddressSource:
    """One address library merged into the contract directory."""

    network: str  # "tatara" or "mainnet"
    path: Path
    policy: BranchPolicy


@dataclass
class ProjectLayout:
    """Input and output locations of a starter-kit checkout."""

    root: Path
    address_sources: List[AddressSource] = field(default_factory=list)
    sample_size: int = SAMPLE_SIZE
    category_rules: List[CategoryRule] = field(default_factory=lambda: list(DEFAULT_RULES))
    aliases: List[Alias] = field(default_factory=list)

    @property
    def interfaces_dir(self) -> Path:
        return self.root / "interfaces"

    @property
    def abis_dir(self) -> Path:
        return self.root / "abis"

    @property
    def contracts_dir(self) -> Path:
        return self.root / "contracts"

    @property
    def contract_utils_dir(self) -> Path:
        return self.contracts_dir / "utils"

    @property
    def interface_utils_dir(self) -> Path:
        return self.interfaces_dir / "utils"

    @property
    def js_utils_dir(self) -> Path:
        return self.root / "utils"

    @property
    def dist_dir(self) -> Path:
        return self.root / "dist"

    @property
    def phonehome_dir(self) -> Path:
        return self.root / ".phonehome"


def resolve_root(root: Optional[Union[Path, str]] = None) -> Path:
    """
    Resolve the project root directory.

    Args:
        root: Explicit root; falls back to $KATANA_DEVKIT_ROOT, then the cwd

    Returns:
        Absolute root path
    """
    if root is None:
        root = os.environ.get("KATANA_DEVKIT_ROOT") or Path.cwd()
    return Path(root).absolute()


def _parse_address_sources(root: Path, raw_sources: List[Dict[str, Any]]) -> List[AddressSource]:
    sources = []
    for raw in raw_sources:
        try:
            network = raw["network"]
            path = root / raw["path"]
            policy = BranchPolicy(raw.get("policy", BranchPolicy.FIRST.value))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid address source {raw!r}: {e}") from e

        if network not in RECORD_NETWORKS:
            raise ConfigError(
                f"Invalid address source network '{network}' (expected one of {', '.join(RECORD_NETWORKS)})"
            )
        sources.append(AddressSource(network=network, path=path, policy=policy))
    return sources


def _parse_aliases(raw_aliases: List[Dict[str, Any]]) -> List[Alias]:
    try:
        return [Alias(source=raw["source"], target=raw["target"]) for raw in raw_aliases]
    except (KeyError, TypeError) as e:
        raise ConfigError(f"Invalid alias entry: {e}") from e


def load_layout(root: Optional[Union[Path, str]] = None) -> ProjectLayout:
    """
    Build the project layout, applying katana-devkit.json if present.

    Recognized keys: sampleSize, addressSources, categories, aliases.
    Categories and aliases replace the built-in tables entirely.

    Args:
        root: Project root (see resolve_root)

    Returns:
        ProjectLayout

    Raises:
        ConfigError: If katana-devkit.json is unreadable or malformed
    """
    root_path = resolve_root(root)
    overrides: Dict[str, Any] = {}

    config_path = root_path / PROJECT_CONFIG_FILE
    if config_path.exists():
        try:
            with open(config_path) as f:
                overrides = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not read {config_path}: {e}") from e
        if not isinstance(overrides, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")

    sample_size = overrides.get("sampleSize", SAMPLE_SIZE)
    if not isinstance(sample_size, int) or sample_size < 0:
        raise ConfigError(f"sampleSize must be a non-negative integer, got {sample_size!r}")

    if "categories" in overrides:
        try:
            category_rules = build_rules(overrides["categories"])
        except (KeyError, TypeError, AttributeError) as e:
            raise ConfigError(f"Invalid category rule: {e}") from e
    else:
        category_rules = list(DEFAULT_RULES)

    return ProjectLayout(
        root=root_path,
        address_sources=_parse_address_sources(
            root_path, overrides.get("addressSources", DEFAULT_ADDRESS_SOURCES)
        ),
        sample_size=sample_size,
        category_rules=category_rules,
        aliases=_parse_aliases(overrides.get("aliases", DEFAULT_ALIASES)),
    )
