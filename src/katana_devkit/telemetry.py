"""
Opt-in anonymous usage events.

Events are written to .phonehome/queue/ as one JSON file each and flushed in
batches to $PHONEHOME_ENDPOINT. Recording never raises and never waits on the
network beyond a short flush timeout.
"""

import json
import os
import platform
import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO

import requests

from .logging import get_logger

logger = get_logger("telemetry")

CONSENT_YES = "yes"
CONSENT_NO = "no"
CONSENT_UNSET = "unset"

FLUSH_THRESHOLD = 20
FLUSH_BATCH_SIZE = 500
FLUSH_TIMEOUT = 0.8

CONSENT_PROMPT = (
    "Help improve Katana Starter Kit by sending anonymous usage (event name, version, OS). [y/N]: "
)


@dataclass
class TelemetryConfig:
    """Contents of .phonehome/config.json."""

    consent: str
    repo_id: str
    device_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"consent": self.consent, "repoId": self.repo_id, "deviceId": self.device_id}


def default_device_file() -> Path:
    return Path.home() / ".katana-phonehome" / "device-id"


def env_override(env: Mapping[str, str]) -> Optional[bool]:
    """
    Consent forced by the environment.

    Returns:
        False if tracking is disabled (KATANA_PHONEHOME=0, CI, GitHub Actions
        or DO_NOT_TRACK=1), True if KATANA_PHONEHOME=1, None otherwise
    """
    if (
        env.get("KATANA_PHONEHOME") == "0"
        or env.get("CI") == "true"
        or env.get("GITHUB_ACTIONS") == "true"
        or env.get("DO_NOT_TRACK") == "1"
    ):
        return False
    if env.get("KATANA_PHONEHOME") == "1":
        return True
    return None


def _read_json(path: Path) -> Optional[Any]:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return None


def _write_json(path: Path, data: Any) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        logger.debug("Could not write %s: %s", path, e)


def load_or_create_device_id(device_file: Path) -> str:
    """Return the per-machine device id, creating it on first use."""
    try:
        if device_file.exists():
            return device_file.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.debug("Could not read %s: %s", device_file, e)

    device_id = str(uuid.uuid4())
    try:
        device_file.parent.mkdir(parents=True, exist_ok=True)
        device_file.write_text(device_id + "\n", encoding="utf-8")
    except OSError as e:
        logger.debug("Could not write %s: %s", device_file, e)
    return device_id


def load_or_create_config(config_file: Path, device_file: Path) -> TelemetryConfig:
    """Load .phonehome/config.json, filling in and persisting missing fields."""
    existing = _read_json(config_file)
    if not isinstance(existing, dict):
        existing = {}
    if existing.get("consent") and existing.get("repoId") and existing.get("deviceId"):
        return TelemetryConfig(
            consent=existing["consent"], repo_id=existing["repoId"], device_id=existing["deviceId"]
        )

    config = TelemetryConfig(
        consent=existing.get("consent") or CONSENT_UNSET,
        repo_id=existing.get("repoId") or str(uuid.uuid4()),
        device_id=existing.get("deviceId") or load_or_create_device_id(device_file),
    )
    _write_json(config_file, config.to_dict())
    return config


def prompt_for_consent(stdin: TextIO, stdout: TextIO) -> str:
    """Ask once on an interactive terminal; anything but 'y' means no."""
    if not stdin.isatty():
        return CONSENT_NO
    stdout.write(CONSENT_PROMPT)
    stdout.flush()
    answer = stdin.readline().strip().lower()
    return CONSENT_YES if answer.startswith("y") else CONSENT_NO


def _package_version() -> str:
    try:
        return version("katana-devkit")
    except PackageNotFoundError:
        return "0.0.0"


def build_event(name: str, config: TelemetryConfig, env: Mapping[str, str]) -> Dict[str, Any]:
    """Assemble the event payload."""
    return {
        "event": name,
        "repoId": config.repo_id,
        "deviceId": config.device_id,
        "version": _package_version(),
        "env": {
            "os": sys.platform,
            "arch": platform.machine(),
            "pythonVersion": platform.python_version(),
            "ci": bool(env.get("CI") or env.get("GITHUB_ACTIONS")),
        },
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


def queued_files(queue_dir: Path) -> List[Path]:
    if not queue_dir.is_dir():
        return []
    return sorted(path for path in queue_dir.glob("*.json") if path.is_file())


def record_event(
    name: str,
    phonehome_dir: Path,
    env: Optional[Mapping[str, str]] = None,
    device_file: Optional[Path] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> Optional[Path]:
    """
    Queue a usage event if the user consented.

    Unset consent is resolved by prompting (only on a TTY) and stored.
    When FLUSH_THRESHOLD or more events are queued, a flush is attempted.

    Args:
        name: Event name, e.g. "build:abi"
        phonehome_dir: The project's .phonehome directory
        env: Environment (defaults to os.environ)
        device_file: Device id file (defaults to ~/.katana-phonehome/device-id)
        stdin: Input for the consent prompt (defaults to sys.stdin)
        stdout: Output for the consent prompt (defaults to sys.stdout)

    Returns:
        Path of the queued event file, or None if nothing was recorded
    """
    if not name:
        return None
    if env is None:
        env = os.environ
    if device_file is None:
        device_file = default_device_file()

    queue_dir = phonehome_dir / "queue"
    config_file = phonehome_dir / "config.json"
    config = load_or_create_config(config_file, device_file)

    override = env_override(env)
    if config.consent == CONSENT_UNSET and override is None:
        config.consent = prompt_for_consent(stdin or sys.stdin, stdout or sys.stdout)
        _write_json(config_file, config.to_dict())

    tracking = override if override is not None else config.consent == CONSENT_YES
    if not tracking:
        logger.debug("Telemetry disabled; not recording %s", name)
        return None

    event_path = queue_dir / f"{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S%f')}-{uuid.uuid4().hex[:8]}.json"
    try:
        queue_dir.mkdir(parents=True, exist_ok=True)
        event_path.write_text(json.dumps(build_event(name, config, env)) + "\n", encoding="utf-8")
    except OSError as e:
        logger.debug("Could not queue event %s: %s", name, e)
        return None

    endpoint = env.get("PHONEHOME_ENDPOINT")
    if endpoint and len(queued_files(queue_dir)) >= FLUSH_THRESHOLD:
        flush_queue(queue_dir, endpoint)

    return event_path


def flush_queue(queue_dir: Path, endpoint: Optional[str], timeout: float = FLUSH_TIMEOUT) -> int:
    """
    Post queued events and delete them on success.

    Files that cannot be parsed are skipped (and left in place). On any
    network failure or non-2xx response every file stays queued for the
    next attempt.

    Args:
        queue_dir: The .phonehome/queue directory
        endpoint: Collector URL; nothing is sent when empty
        timeout: Request timeout in seconds

    Returns:
        Number of events flushed
    """
    if not endpoint:
        logger.debug("No telemetry endpoint configured, nothing to flush")
        return 0

    files = queued_files(queue_dir)
    logger.debug("Found %d queued files", len(files))

    batch = []
    used = []
    for path in files[:FLUSH_BATCH_SIZE]:
        try:
            batch.append(json.loads(path.read_text(encoding="utf-8")))
            used.append(path)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug("Failed to read/parse %s: %s", path.name, e)

    if not batch:
        return 0

    try:
        response = requests.post(endpoint, json={"events": batch}, timeout=timeout)
    except requests.RequestException as e:
        logger.debug("Telemetry flush failed: %s", e)
        return 0

    if not response.ok:
        logger.debug("Telemetry endpoint returned %d: %s", response.status_code, response.text[:200])
        return 0

    for path in used:
        path.unlink(missing_ok=True)
    logger.debug("Flushed %d events", len(used))
    return len(used)
