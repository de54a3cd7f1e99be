"""Tests for modules.search.opener: xdg-open launch, webbrowser fallback, errors."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from modules.search.opener import XdgOpener


@patch("modules.search.opener.platform.system", return_value="Linux")
@patch("modules.search.opener.subprocess.Popen")
def test_linux_launches_xdg_open(mock_popen: object, _system: object) -> None:
    XdgOpener().open_url("https://example.com/search?q=cat%20videos")
    mock_popen.assert_called_once()
    args = mock_popen.call_args[0][0]
    assert args == ["xdg-open", "https://example.com/search?q=cat%20videos"]
    assert mock_popen.call_args[1]["stdout"] is subprocess.DEVNULL


@patch("modules.search.opener.webbrowser.open", return_value=True)
@patch("modules.search.opener.platform.system", return_value="Linux")
@patch("modules.search.opener.subprocess.Popen", side_effect=FileNotFoundError())
def test_missing_xdg_open_falls_back_to_webbrowser(
    _popen: object, _system: object, mock_open: object
) -> None:
    XdgOpener().open_url("https://example.com")
    mock_open.assert_called_once_with("https://example.com")


@patch("modules.search.opener.webbrowser.open", return_value=True)
@patch("modules.search.opener.subprocess.Popen")
@patch("modules.search.opener.platform.system", return_value="Darwin")
def test_non_linux_uses_webbrowser(
    _system: object, mock_popen: object, mock_open: object
) -> None:
    XdgOpener().open_url("https://example.com")
    mock_popen.assert_not_called()
    mock_open.assert_called_once_with("https://example.com")


@patch("modules.search.opener.webbrowser.open", return_value=False)
@patch("modules.search.opener.platform.system", return_value="Windows")
def test_no_browser_raises_runtime_error(_system: object, _open: object) -> None:
    with pytest.raises(RuntimeError, match="Could not open the browser"):
        XdgOpener().open_url("https://example.com")


@patch("modules.search.opener.subprocess.Popen")
def test_empty_url_raises(mock_popen: object) -> None:
    with pytest.raises(ValueError):
        XdgOpener().open_url("  ")
    mock_popen.assert_not_called()


@patch("modules.search.opener.platform.system", return_value="Linux")
@patch("modules.search.opener.subprocess.Popen")
def test_custom_command(mock_popen: object, _system: object) -> None:
    XdgOpener("gio-open").open_url("https://example.com")
    assert mock_popen.call_args[0][0][0] == "gio-open"
