"""
Open a URL in the user's default browser.
On Linux launches xdg-open detached; elsewhere, or when xdg-open is missing, uses webbrowser.
"""

from __future__ import annotations

import logging
import platform
import subprocess
import webbrowser

from modules.search.base import UrlOpener

logger = logging.getLogger(__name__)


class XdgOpener(UrlOpener):
    """Opens URLs via xdg-open (fire and forget), falling back to the webbrowser module."""

    def __init__(self, command: str = "xdg-open") -> None:
        self._command = (command or "xdg-open").strip() or "xdg-open"

    def open_url(self, url: str) -> None:
        """
        Start the default handler for url and return without waiting for it.
        Raises ValueError for an empty URL, RuntimeError if no launch method worked.
        """
        url = (url or "").strip()
        if not url:
            raise ValueError("URL is empty.")
        if platform.system() == "Linux":
            try:
                subprocess.Popen(
                    [self._command, url],
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
                logger.debug("Launched %s for %s", self._command, url)
                return
            except OSError as e:
                logger.warning(
                    "%s failed, trying default browser: %s", self._command, e
                )
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as e:
            logger.exception("Default browser open failed: %s", e)
            raise RuntimeError("Could not open the browser.") from e
        if not opened:
            raise RuntimeError("Could not open the browser.")
        logger.debug("Opened %s in default browser", url)
