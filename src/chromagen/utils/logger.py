"""Global logging and error handling utilities"""
import logging
import sys

logger = logging.getLogger(__name__)

# Detect debug mode - True if running from source, False if packaged
DEBUG_MODE = not getattr(sys, 'frozen', False)

_main_window = None
_popup_hook = None


def set_main_window(window):
    """Set the main window reference for showing popups"""
    global _main_window
    _main_window = window


def set_popup_hook(hook):
    """Override how release-mode errors are shown.

    hook(title, message) replaces the QMessageBox; pass None to restore it.
    """
    global _popup_hook
    _popup_hook = hook


def _show_popup(title: str, message: str):
    if _popup_hook is not None:
        _popup_hook(title, message)
    elif _main_window is not None:
        from PyQt5.QtWidgets import QMessageBox
        QMessageBox.critical(_main_window, title, message)
    else:
        logger.error("ERROR POPUP (no window): %s - %s", title, message)


def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Handle exceptions with optional popup in release mode

    Args:
        e: The exception to handle
        user_message: User-friendly message to show in popup (optional)
        title: Title for the popup dialog

    In DEBUG_MODE:
        - Just raises the exception (shows full traceback)

    In RELEASE_MODE:
        - Logs the full traceback
        - Shows popup with user message or exception string
        - Then raises the exception
    """
    if DEBUG_MODE:
        raise e

    logger.error("%s: %s", title, e, exc_info=(type(e), e, e.__traceback__))
    _show_popup(title, user_message if user_message else str(e))
    raise e
