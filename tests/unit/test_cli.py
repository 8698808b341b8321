"""CLI parser and command behaviour tests."""

from pathlib import Path

import pytest
import requests
import responses

from katana_devkit.cli import _build_parser, main


class TestParser:
    """Test argument parsing."""

    def test_accepts_verbose_before_command(self):
        args = _build_parser().parse_args(["--verbose", "contractdir"])

        assert args.verbose is True
        assert args.command == "contractdir"

    def test_accepts_verbose_after_command(self):
        args = _build_parser().parse_args(["contractdir", "-v"])

        assert args.verbose is True

    def test_root_defaults_to_none(self):
        args = _build_parser().parse_args(["mapping"])

        assert args.root is None
        assert args.verbose is False

    def test_root_after_command(self):
        args = _build_parser().parse_args(["addresses", "--root", "/tmp/kit"])

        assert args.root == "/tmp/kit"

    def test_abi_flags(self):
        args = _build_parser().parse_args(["abi", "--validate", "--solc", "solc-0.8.24"])

        assert args.validate is True
        assert args.solc == "solc-0.8.24"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args([])


class TestMain:
    """Test command dispatch and exit codes."""

    def test_contractdir_prints_statistics(self, project_root: Path, capsys):
        main(["contractdir", "--root", str(project_root)])

        out = capsys.readouterr().out
        assert out.startswith("Generating contract directory files...\n")
        assert "  - Total contracts: 6\n" in out
        assert "  - Contracts with ABIs: 1\n" in out
        assert "  - Contracts with addresses: 3\n" in out
        assert "  - Total function signatures: 2\n" in out
        assert (project_root / "dist" / "contractdir.json").exists()

    def test_missing_interfaces_exits_1(self, tmp_path: Path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["contractdir", "--root", str(tmp_path)])

        assert excinfo.value.code == 1
        assert "Error: Interfaces directory does not exist" in capsys.readouterr().err
        assert not (tmp_path / "dist").exists()

    def test_abi_validate_mismatch_exits_1(self, project_root: Path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["abi", "--validate", "--root", str(project_root)])

        assert excinfo.value.code == 1
        out = capsys.readouterr().out
        assert "  - Total interface files: 6" in out
        assert "  - Total generated ABIs: 2" in out
        assert "NOK" in out

    def test_mapping(self, project_root: Path, capsys):
        main(["mapping", "--root", str(project_root)])

        assert "Address mapping generated at" in capsys.readouterr().out
        assert (project_root / "utils" / "addresses.js").exists()

    @responses.activate
    def test_check_connection_failure(self, capsys):
        responses.add(responses.POST, "http://localhost:9999", body=requests.ConnectionError("refused"))

        with pytest.raises(SystemExit) as excinfo:
            main(["check-connection", "--rpc-url", "http://localhost:9999"])

        assert excinfo.value.code == 1
        assert "Connection test failed" in capsys.readouterr().err

    def test_telemetry_flush_without_endpoint(self, tmp_path: Path, capsys, monkeypatch):
        monkeypatch.delenv("PHONEHOME_ENDPOINT", raising=False)

        main(["telemetry-flush", "--root", str(tmp_path)])

        assert capsys.readouterr().out == "Flushed 0 events\n"

    def test_telemetry_respects_ci(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("HOME", str(tmp_path / "home"))

        main(["telemetry", "--event", "build:abi", "--root", str(tmp_path)])

        assert not (tmp_path / ".phonehome" / "queue").exists()
