"""Tests for the command-line entry point and main flow."""

import json
from pathlib import Path

import pytest

from scrotto import cli, output
from scrotto.capture import CaptureCancelled, CaptureError
from scrotto.cli import ExitCode, main
from scrotto.ocr import OcrUnavailableError
from scrotto.session import Backend


@pytest.fixture
def desktop(monkeypatch, isolated_env):
    """A GNOME-less Wayland session with every external effect recorded."""
    monkeypatch.setenv("XDG_SESSION_TYPE", "wayland")
    monkeypatch.setenv("XDG_CURRENT_DESKTOP", "KDE")

    calls = {"capture": [], "ocr": [], "clipboard": [], "notify": []}

    def fake_capture(ctx, fullscreen=False):
        calls["capture"].append((ctx.backend, fullscreen))
        ctx.config.temp_file.write_bytes(b"png")
        return ctx.config.temp_file

    def fake_ocr(image, config):
        calls["ocr"].append(image)
        assert Path(image).exists()
        return "Hello world"

    def fake_copy(text, backends):
        calls["clipboard"].append(text)
        return "wl-copy"

    def fake_notify(title, body, config):
        calls["notify"].append(body)
        return True

    monkeypatch.setattr(cli, "capture", fake_capture)
    monkeypatch.setattr(cli, "extract_text", fake_ocr)
    monkeypatch.setattr(output, "copy_text", fake_copy)
    monkeypatch.setattr(output, "notify", fake_notify)
    return calls


@pytest.fixture
def temp_file(isolated_env):
    return isolated_env / "screen_grab.png"


class TestArguments:
    def test_help(self, desktop, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "--full" in out
        assert "--backend" in out
        assert desktop["capture"] == []

    def test_invalid_backend(self, desktop, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--backend", "bogus"])
        assert exc_info.value.code == ExitCode.USAGE
        assert "bogus" in capsys.readouterr().err
        assert desktop["capture"] == []

    def test_missing_backend_value(self, desktop):
        with pytest.raises(SystemExit):
            main(["--backend"])
        assert desktop["capture"] == []

    def test_unknown_arguments_ignored(self, desktop, caplog):
        assert main(["--frobnicate", "extra"]) == ExitCode.OK
        assert "Ignoring unknown argument: --frobnicate" in caplog.text
        assert len(desktop["capture"]) == 1

    def test_full_flag(self, desktop):
        main(["-f"])
        assert desktop["capture"] == [(Backend.AUTO, True)]

    def test_abbreviations_not_accepted(self, desktop, caplog):
        assert main(["--ful"]) == ExitCode.OK
        assert "Ignoring unknown argument: --ful" in caplog.text
        assert desktop["capture"] == [(Backend.AUTO, False)]

    def test_invalid_config_is_usage_error(self, desktop, isolated_env, monkeypatch, caplog):
        path = isolated_env / "config.yaml"
        path.write_text('preview_chars: "abc"\n')
        monkeypatch.setenv("SCROTTO_CONFIG", str(path))
        monkeypatch.delenv("XDG_SESSION_TYPE")
        assert main([]) == ExitCode.USAGE
        assert "preview_chars must be an integer" in caplog.text
        assert desktop["capture"] == []

    def test_print_defaults(self, desktop, capsys):
        assert main(["--print-defaults"]) == ExitCode.OK
        assert json.loads(capsys.readouterr().out)["ocr_language"] == "eng"
        assert desktop["capture"] == []


class TestBackendSelection:
    def test_gnome_wayland_uses_portal(self, desktop, monkeypatch):
        monkeypatch.setenv("XDG_CURRENT_DESKTOP", "ubuntu:GNOME")
        main([])
        assert desktop["capture"] == [(Backend.PORTAL, False)]

    def test_kde_wayland_uses_auto(self, desktop):
        main([])
        assert desktop["capture"] == [(Backend.AUTO, False)]

    def test_override(self, desktop, monkeypatch):
        monkeypatch.setenv("XDG_CURRENT_DESKTOP", "GNOME")
        main(["--backend", "AUTO"])
        assert desktop["capture"] == [(Backend.AUTO, False)]


class TestSession:
    @pytest.mark.parametrize("session_type", ["tty", ""])
    def test_unsupported_session(self, desktop, monkeypatch, session_type):
        monkeypatch.setenv("XDG_SESSION_TYPE", session_type)
        assert main([]) == ExitCode.UNSUPPORTED_SESSION
        assert desktop["capture"] == []
        assert desktop["ocr"] == []

    def test_missing_session_variable(self, desktop, monkeypatch):
        monkeypatch.delenv("XDG_SESSION_TYPE")
        assert main([]) == ExitCode.UNSUPPORTED_SESSION
        assert desktop["capture"] == []

    def test_x11_supported(self, desktop, monkeypatch):
        monkeypatch.setenv("XDG_SESSION_TYPE", "x11")
        assert main([]) == ExitCode.OK


class TestFlow:
    def test_success(self, desktop, temp_file, capsys):
        assert main([]) == ExitCode.OK
        assert desktop["clipboard"] == ["Hello world"]
        assert "Hello world" in desktop["notify"][0]
        assert "Hello world" in capsys.readouterr().out
        assert not temp_file.exists()

    def test_stale_artifact_removed_before_capture(self, desktop, temp_file, monkeypatch):
        temp_file.write_bytes(b"stale")
        seen = []

        def fake_capture(ctx, fullscreen=False):
            seen.append(temp_file.exists())
            raise CaptureError("nothing installed")

        monkeypatch.setattr(cli, "capture", fake_capture)
        main([])
        assert seen == [False]

    def test_capture_failure_skips_ocr(self, desktop, temp_file, monkeypatch, caplog):
        def failing(ctx, fullscreen=False):
            raise CaptureError("No capture strategy produced an image")

        monkeypatch.setattr(cli, "capture", failing)
        assert main([]) == ExitCode.CAPTURE_FAILED
        assert "Screenshot failed" in caplog.text
        assert desktop["ocr"] == []
        assert desktop["clipboard"] == []
        assert desktop["notify"] == []
        assert not temp_file.exists()

    def test_cancel_is_not_an_error(self, desktop, monkeypatch):
        def cancelled(ctx, fullscreen=False):
            raise CaptureCancelled("Selection cancelled by user")

        monkeypatch.setattr(cli, "capture", cancelled)
        assert main([]) == ExitCode.OK
        assert desktop["ocr"] == []

    def test_ocr_missing_aborts(self, desktop, temp_file, monkeypatch, caplog):
        def missing(image, config):
            raise OcrUnavailableError("Failed to run tesseract")

        monkeypatch.setattr(cli, "extract_text", missing)
        assert main([]) == ExitCode.OCR_UNAVAILABLE
        assert desktop["clipboard"] == []
        assert not temp_file.exists()

    def test_no_text(self, desktop, temp_file, monkeypatch, capsys):
        monkeypatch.setattr(cli, "extract_text", lambda image, config: "")
        assert main([]) == ExitCode.OK
        assert desktop["clipboard"] == []
        assert "No text detected" in capsys.readouterr().out
        assert not temp_file.exists()

    def test_clipboard_failure_still_succeeds(self, desktop, monkeypatch, capsys):
        monkeypatch.setattr(output, "copy_text", lambda text, backends: None)
        assert main([]) == ExitCode.OK
        assert "Hello world" in capsys.readouterr().out
        assert "Hello world" in desktop["notify"][0]

    def test_json(self, desktop, capsys):
        main(["--json"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["text"] == "Hello world"
        assert payload["copied"] is True

    def test_events(self, desktop, capsys):
        main(["--events"])
        events = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]
        types = [e["event_type"] for e in events]
        assert types[0] == "config.resolved"
        assert "operation.started" in types
        assert events[-1]["data"]["success"] is True
