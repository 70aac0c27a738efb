"""
Tests for loggerRaise in debug and release mode.
"""
import logging

import pytest

from chromagen.utils import logger as error_logger

from conftest import solid


@pytest.fixture
def popups():
    shown = []
    error_logger.set_popup_hook(lambda title, message: shown.append((title, message)))
    yield shown
    error_logger.set_popup_hook(None)


class TestLoggerRaise:

    def test_debug_mode_raises_without_popup(self, monkeypatch, popups):
        monkeypatch.setattr(error_logger, 'DEBUG_MODE', True)
        with pytest.raises(KeyError):
            error_logger.loggerRaise(KeyError('x'), "Friendly")
        assert popups == []

    def test_release_mode_logs_and_shows_popup(self, monkeypatch, popups, caplog):
        monkeypatch.setattr(error_logger, 'DEBUG_MODE', False)
        with caplog.at_level(logging.ERROR, logger=error_logger.__name__):
            with pytest.raises(OSError):
                error_logger.loggerRaise(OSError("disk full"), "Could not export image.", "Export failed")
        assert popups == [("Export failed", "Could not export image.")]
        assert "disk full" in caplog.text

    def test_release_mode_falls_back_to_exception_text(self, monkeypatch, popups):
        monkeypatch.setattr(error_logger, 'DEBUG_MODE', False)
        with pytest.raises(ValueError):
            error_logger.loggerRaise(ValueError("bad value"))
        assert popups == [("Error", "bad value")]

    def test_export_failure_routed_through_popup(self, monkeypatch, popups, studio, tmp_path):
        monkeypatch.setattr(error_logger, 'DEBUG_MODE', False)
        studio.load_background(solid(4, 4, (255, 0, 0)))
        blocker = tmp_path / 'file'
        blocker.write_bytes(b'')
        with pytest.raises(OSError):
            studio.file_actions.save_export(blocker / 'sub')
        assert popups and popups[0][0] == "Export failed"
