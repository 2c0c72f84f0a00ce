"""Tests for the share-handoff CLI."""

import json

import pytest
import yaml
from click.testing import CliRunner

from share_handoff.host import HandoffInbox
from share_handoff.main import cli
from share_handoff.settings import load_settings


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temporary storage root and log file."""
    monkeypatch.setenv("SHARE_HANDOFF_HOME", str(tmp_path / "groups"))
    return ["--log-file", str(tmp_path / "logs" / "handoff.log.jsonl")]


class TestShareCommand:
    def test_share_files_without_activation(self, runner, cli_env, image_files):
        result = runner.invoke(cli, [*cli_env, "share", "--no-activate", *map(str, image_files)])

        assert result.exit_code == 0, result.output
        assert "3 of 3 attachment(s) recorded" in result.output
        assert "Host not activated" in result.output
        assert len(HandoffInbox(load_settings()).pending_paths()) == 3

    def test_share_uses_system_opener(self, runner, cli_env, image_files, monkeypatch):
        opened = []
        monkeypatch.setattr("share_handoff.main.system_opener", lambda url: opened.append(url) or True)

        result = runner.invoke(cli, [*cli_env, "share", str(image_files[0])])

        assert result.exit_code == 0, result.output
        assert opened == ["takasly://share"]
        assert "Host activated via takasly://share" in result.output

    def test_missing_file_dropped_not_fatal(self, runner, cli_env, image_files, tmp_path):
        missing = tmp_path / "missing.png"

        result = runner.invoke(cli, [*cli_env, "share", "--no-activate", str(image_files[0]), str(missing)])

        assert result.exit_code == 0, result.output
        assert "1 of 2 attachment(s) recorded, 1 dropped" in result.output

    def test_no_files(self, runner, cli_env):
        result = runner.invoke(cli, [*cli_env, "share", "--no-activate"])

        assert result.exit_code == 0, result.output
        assert "No attachments were shared" in result.output
        assert HandoffInbox(load_settings()).pending_paths() == []

    def test_type_override(self, runner, cli_env, tmp_path):
        blob = tmp_path / "export.bin"
        blob.write_bytes(b"\x89PNG data")

        skipped = runner.invoke(cli, [*cli_env, "share", "--no-activate", str(blob)])
        forced = runner.invoke(cli, [*cli_env, "share", "--no-activate", "--type", "image/png", str(blob)])

        assert "0 of 0 attachment(s) recorded" in skipped.output
        assert "1 of 1 attachment(s) recorded" in forced.output

    def test_invalid_settings_exit_code(self, runner, cli_env, tmp_path, image_files):
        bad = tmp_path / "bad.yaml"
        bad.write_text(yaml.safe_dump({"file_extension": "jpg"}))

        result = runner.invoke(cli, [*cli_env, "share", "--settings", str(bad), str(image_files[0])])

        assert result.exit_code == 1
        assert "Invalid settings" in result.output

    def test_writes_jsonl_log(self, runner, cli_env, image_files, tmp_path):
        runner.invoke(cli, [*cli_env, "share", "--no-activate", str(image_files[0])])

        log_file = tmp_path / "logs" / "handoff.log.jsonl"
        assert log_file.exists()
        assert "Persisted shared asset" in log_file.read_text()

    def test_jsonl_log_tags_handoff_events(self, runner, cli_env, image_files, tmp_path):
        missing = tmp_path / "missing.png"
        runner.invoke(cli, [*cli_env, "share", "--no-activate", str(image_files[0]), str(missing)])

        lines = (tmp_path / "logs" / "handoff.log.jsonl").read_text().splitlines()
        entries = [json.loads(line) for line in lines]
        by_event = {entry["event"]: entry for entry in entries if entry["event"]}

        assert by_event["asset_persisted"]["group"] == "group.com.rivorya.takaslyapp"
        assert by_event["asset_persisted"]["size"] == image_files[0].stat().st_size
        assert by_event["attachment_dropped"]["reason"].startswith("load failed")
        assert by_event["request_completed"]["asset_count"] == 1
        assert by_event["request_completed"]["failed_count"] == 1
        assert by_event["host_activation_declined"]["url"] == "takasly://share"

    def test_progress_shows_paths_inside_container(self, runner, cli_env, image_files):
        result = runner.invoke(cli, [*cli_env, "share", "--no-activate", str(image_files[0])])

        assert result.exit_code == 0, result.output
        progress = [line for line in result.output.splitlines() if line.startswith("✓ shared_")]
        assert len(progress) == 1
        assert str(load_settings().container) not in progress[0]


class TestRecordCommand:
    def test_empty_record(self, runner, cli_env):
        result = runner.invoke(cli, [*cli_env, "record"])
        assert result.exit_code == 0
        assert "is empty" in result.output

    def test_lists_recorded_assets(self, runner, cli_env, image_files):
        runner.invoke(cli, [*cli_env, "share", "--no-activate", *map(str, image_files[:2])])

        result = runner.invoke(cli, [*cli_env, "record"])

        assert result.exit_code == 0, result.output
        assert "Handoff Record" in result.output
        assert result.output.count("✓") == 2


class TestConfigCommand:
    def test_shows_settings(self, runner, cli_env):
        result = runner.invoke(cli, [*cli_env, "config"])

        assert result.exit_code == 0, result.output
        assert "share_images" in result.output
        assert "takasly://share" in result.output
