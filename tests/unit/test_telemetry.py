"""Unit tests for opt-in usage events."""

import io
import json
from pathlib import Path

import pytest
import requests
import responses

from katana_devkit import telemetry
from katana_devkit.telemetry import (
    CONSENT_NO,
    CONSENT_UNSET,
    CONSENT_YES,
    env_override,
    flush_queue,
    load_or_create_config,
    prompt_for_consent,
    queued_files,
    record_event,
)

ENDPOINT = "http://collector.example.com/events"


class FakeTty(io.StringIO):
    def isatty(self):
        return True


@pytest.fixture
def phonehome(tmp_path: Path) -> Path:
    return tmp_path / ".phonehome"


@pytest.fixture
def device_file(tmp_path: Path) -> Path:
    return tmp_path / "home" / "device-id"


def _write_config(phonehome: Path, consent: str) -> None:
    phonehome.mkdir(parents=True, exist_ok=True)
    (phonehome / "config.json").write_text(
        json.dumps({"consent": consent, "repoId": "repo-1", "deviceId": "device-1"})
    )


class TestEnvOverride:
    """Test environment-forced consent."""

    @pytest.mark.parametrize(
        "env",
        [
            {"KATANA_PHONEHOME": "0"},
            {"CI": "true"},
            {"GITHUB_ACTIONS": "true"},
            {"DO_NOT_TRACK": "1"},
            {"KATANA_PHONEHOME": "1", "CI": "true"},
        ],
    )
    def test_disabled(self, env):
        assert env_override(env) is False

    def test_forced_on(self):
        assert env_override({"KATANA_PHONEHOME": "1"}) is True

    def test_no_override(self):
        assert env_override({}) is None


class TestConfig:
    """Test config and device id persistence."""

    def test_creates_config(self, phonehome: Path, device_file: Path):
        config = load_or_create_config(phonehome / "config.json", device_file)

        assert config.consent == CONSENT_UNSET
        assert device_file.read_text().strip() == config.device_id
        stored = json.loads((phonehome / "config.json").read_text())
        assert stored == {"consent": "unset", "repoId": config.repo_id, "deviceId": config.device_id}

    def test_reuses_existing(self, phonehome: Path, device_file: Path):
        _write_config(phonehome, CONSENT_YES)

        config = load_or_create_config(phonehome / "config.json", device_file)

        assert (config.consent, config.repo_id, config.device_id) == ("yes", "repo-1", "device-1")
        assert not device_file.exists()

    def test_corrupt_config_is_replaced(self, phonehome: Path, device_file: Path):
        phonehome.mkdir()
        (phonehome / "config.json").write_text("{ nope")

        config = load_or_create_config(phonehome / "config.json", device_file)

        assert config.consent == CONSENT_UNSET


class TestPromptForConsent:
    """Test the interactive consent prompt."""

    def test_non_tty_means_no(self):
        stdout = io.StringIO()

        assert prompt_for_consent(io.StringIO("y\n"), stdout) == CONSENT_NO
        assert stdout.getvalue() == ""

    def test_yes(self):
        assert prompt_for_consent(FakeTty("Yes\n"), io.StringIO()) == CONSENT_YES

    def test_empty_answer_is_no(self):
        stdout = io.StringIO()

        assert prompt_for_consent(FakeTty("\n"), stdout) == CONSENT_NO
        assert "[y/N]" in stdout.getvalue()


class TestRecordEvent:
    """Test event queueing."""

    def test_consented_event_is_queued(self, phonehome: Path, device_file: Path):
        _write_config(phonehome, CONSENT_YES)

        path = record_event("build:abi", phonehome, env={}, device_file=device_file)

        assert path is not None and path.parent == phonehome / "queue"
        event = json.loads(path.read_text())
        assert event["event"] == "build:abi"
        assert event["repoId"] == "repo-1"
        assert event["deviceId"] == "device-1"
        assert event["env"]["ci"] is False
        assert event["ts"].endswith("Z")

    def test_declined_consent(self, phonehome: Path, device_file: Path):
        _write_config(phonehome, CONSENT_NO)

        assert record_event("build:abi", phonehome, env={}, device_file=device_file) is None
        assert queued_files(phonehome / "queue") == []

    def test_ci_disables_even_with_consent(self, phonehome: Path, device_file: Path):
        _write_config(phonehome, CONSENT_YES)

        assert record_event("build:abi", phonehome, env={"CI": "true"}, device_file=device_file) is None

    def test_force_on_without_prompt(self, phonehome: Path, device_file: Path):
        stdin = FakeTty("n\n")

        path = record_event(
            "gen:contractdir", phonehome, env={"KATANA_PHONEHOME": "1"}, device_file=device_file, stdin=stdin
        )

        assert path is not None
        assert json.loads((phonehome / "config.json").read_text())["consent"] == CONSENT_UNSET

    def test_unset_consent_prompts_and_persists(self, phonehome: Path, device_file: Path):
        path = record_event(
            "build:abi", phonehome, env={}, device_file=device_file, stdin=FakeTty("y\n"), stdout=io.StringIO()
        )

        assert path is not None
        assert json.loads((phonehome / "config.json").read_text())["consent"] == CONSENT_YES

    def test_empty_name(self, phonehome: Path, device_file: Path):
        assert record_event("", phonehome, env={"KATANA_PHONEHOME": "1"}, device_file=device_file) is None
        assert not phonehome.exists()

    def test_flushes_at_threshold(self, phonehome: Path, device_file: Path, monkeypatch):
        _write_config(phonehome, CONSENT_YES)
        flushed = []
        monkeypatch.setattr(telemetry, "flush_queue", lambda queue_dir, endpoint: flushed.append(endpoint))
        env = {"PHONEHOME_ENDPOINT": ENDPOINT}

        for _ in range(telemetry.FLUSH_THRESHOLD - 1):
            record_event("build:abi", phonehome, env=env, device_file=device_file)
        assert flushed == []

        record_event("build:abi", phonehome, env=env, device_file=device_file)
        assert flushed == [ENDPOINT]


class TestFlushQueue:
    """Test posting queued events."""

    def _queue(self, queue_dir: Path, count: int) -> None:
        queue_dir.mkdir(parents=True, exist_ok=True)
        for i in range(count):
            (queue_dir / f"{i:03d}.json").write_text(json.dumps({"event": f"e{i}"}))

    def test_no_endpoint(self, tmp_path: Path):
        self._queue(tmp_path, 2)

        assert flush_queue(tmp_path, None) == 0
        assert len(queued_files(tmp_path)) == 2

    @responses.activate
    def test_success_deletes_files(self, tmp_path: Path):
        responses.add(responses.POST, ENDPOINT, status=204)
        self._queue(tmp_path, 3)
        (tmp_path / "bad.json").write_text("{")

        assert flush_queue(tmp_path, ENDPOINT) == 3

        body = json.loads(responses.calls[0].request.body)
        assert [event["event"] for event in body["events"]] == ["e0", "e1", "e2"]
        assert [p.name for p in queued_files(tmp_path)] == ["bad.json"]

    @responses.activate
    def test_server_error_keeps_files(self, tmp_path: Path):
        responses.add(responses.POST, ENDPOINT, status=500)
        self._queue(tmp_path, 2)

        assert flush_queue(tmp_path, ENDPOINT) == 0
        assert len(queued_files(tmp_path)) == 2

    @responses.activate
    def test_network_error_keeps_files(self, tmp_path: Path):
        responses.add(responses.POST, ENDPOINT, body=requests.ConnectionError("down"))
        self._queue(tmp_path, 1)

        assert flush_queue(tmp_path, ENDPOINT) == 0
        assert len(queued_files(tmp_path)) == 1
