"""Tests for host-side activation routing and the record reader."""

from pathlib import Path
from unittest.mock import Mock
from unittest.mock import patch

from share_handoff.host import HandoffInbox
from share_handoff.host import UrlSchemeRouter
from share_handoff.host import get_platform_open_command
from share_handoff.host import system_opener
from share_handoff.shared_defaults import SharedDefaults


class TestUrlSchemeRouter:
    def test_registered_address_delivered(self):
        router = UrlSchemeRouter()
        handler = Mock()
        router.register("takasly", "share", handler)

        assert router.open("takasly://share") is True
        handler.assert_called_once_with("takasly://share")

    def test_router_is_an_opener(self):
        router = UrlSchemeRouter()
        handler = Mock()
        router.register("takasly", "share", handler)

        assert router("TAKASLY://Share") is True
        handler.assert_called_once()

    def test_unknown_address_declined(self):
        router = UrlSchemeRouter()
        router.register("takasly", "share", Mock())

        assert router.open("other://share") is False
        assert router.open("takasly://settings") is False
        assert router.can_open("takasly://share") is True
        assert router.can_open("takasly://settings") is False


class TestSystemOpener:
    def test_platform_commands(self):
        with patch("share_handoff.host.platform.system", return_value="Darwin"):
            assert get_platform_open_command("x://y") == ["open", "x://y"]
        with patch("share_handoff.host.platform.system", return_value="Linux"):
            assert get_platform_open_command("x://y") == ["xdg-open", "x://y"]
        with patch("share_handoff.host.platform.system", return_value="Windows"):
            assert get_platform_open_command("x://y") is None

    def test_success(self):
        completed = Mock(returncode=0, stderr="")
        with (
            patch("share_handoff.host.platform.system", return_value="Linux"),
            patch("share_handoff.host.subprocess.run", return_value=completed) as run,
        ):
            assert system_opener("takasly://share") is True
        assert run.call_args.args[0] == ["xdg-open", "takasly://share"]

    def test_nonzero_exit(self):
        completed = Mock(returncode=4, stderr="no handler\n")
        with (
            patch("share_handoff.host.platform.system", return_value="Linux"),
            patch("share_handoff.host.subprocess.run", return_value=completed),
        ):
            assert system_opener("takasly://share") is False

    def test_missing_opener_binary(self):
        with (
            patch("share_handoff.host.platform.system", return_value="Linux"),
            patch("share_handoff.host.subprocess.run", side_effect=FileNotFoundError("xdg-open")),
        ):
            assert system_opener("takasly://share") is False


class TestHandoffInbox:
    def test_pending_paths(self, settings):
        SharedDefaults(settings.group_identifier, settings.storage_root).set(
            settings.record_key, ["/c/shared_1.jpg", "/c/shared_2.jpg"]
        )

        assert HandoffInbox(settings).pending_paths() == [Path("/c/shared_1.jpg"), Path("/c/shared_2.jpg")]

    def test_empty_when_nothing_shared(self, settings):
        assert HandoffInbox(settings).pending_paths() == []
