#!/usr/bin/env python3
"""
Web search entry point: load config, initialize the settings database, then
serve the provider over HTTP, edit the engine preference, or run a one-shot search.

Usage:
    python run.py serve [--host HOST] [--port PORT]
    python run.py prefs [--select N] [--apply]
    python run.py search cat videos [--open]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

import requests

from config import AppConfig, load_config

logger = logging.getLogger(__name__)

# Ensure project root is on path
_ROOT = Path(__file__).resolve().parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))


def validate_config(config: dict) -> None:
    """Validate required config values. Raises ValueError with a clear message if invalid."""
    if not config:
        raise ValueError("Config is empty")
    search = config.get("search")
    if not isinstance(search, dict):
        raise ValueError("config.search must be a mapping")
    for key in ("extension_uuid", "catalog_file", "settings_key"):
        value = search.get(key)
        if value is not None and not str(value).strip():
            raise ValueError(f"config.search.{key} must be non-empty")
    max_results = search.get("max_results", 5)
    try:
        max_results = int(max_results)
    except (TypeError, ValueError):
        raise ValueError("config.search.max_results must be a positive integer") from None
    if max_results <= 0:
        raise ValueError("config.search.max_results must be positive")
    server = config.get("server") or {}
    port = server.get("port", 8010)
    try:
        port = int(port)
    except (TypeError, ValueError):
        raise ValueError("config.server.port must be an integer") from None
    if not (1 <= port <= 65535):
        raise ValueError("config.server.port must be between 1 and 65535")


def _setup_logging(config: AppConfig, root: Path) -> None:
    level = getattr(logging, config.get_log_level().upper(), logging.INFO)
    log_fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    logging.basicConfig(level=level, format=log_fmt)
    log_path = config.get_log_path()
    if log_path:
        path = Path(log_path) if os.path.isabs(log_path) else root / log_path
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def bootstrap(root: Path = _ROOT, config_path: str | None = None) -> tuple[AppConfig, Any]:
    """
    Load and validate config, set up logging, initialize the settings database.
    Returns (config, settings_repo). Single place for entry-point startup.
    """
    raw = load_config(config_path)
    validate_config(raw)
    config = AppConfig(raw)
    _setup_logging(config, root)

    from persistence.database import get_connection, init_database
    from persistence.settings_repo import SettingsRepo

    db_path = config.get_db_path()
    init_database(db_path)
    logger.info("Settings database at %s", db_path)
    settings = SettingsRepo(lambda: get_connection(db_path))
    return (config, settings)


def create_server(
    config: AppConfig,
    settings: Any,
    host: str | None = None,
    port: int | None = None,
    api_key: str | None = None,
    opener: Any = None,
):
    """Build the search module server from config; CLI arguments win over config values."""
    from modules.search import create_search_components
    from modules.search.server import SearchModuleServer
    from sdk import get_server_section

    components = create_search_components(config, settings, opener=opener)
    server_cfg = get_server_section(config.raw)
    return SearchModuleServer(
        components.extension,
        components.controller,
        settings,
        components.config,
        host=host or server_cfg["host"],
        port=port or server_cfg["port"],
        api_key=api_key or server_cfg["api_key"],
    )


def _server_endpoint(config: AppConfig) -> tuple[str, dict[str, str]]:
    """Return (base_url, auth headers) for the configured server."""
    from sdk import get_server_section

    server_cfg = get_server_section(config.raw)
    headers = {"X-API-Key": server_cfg["api_key"]} if server_cfg["api_key"] else {}
    return (f"http://{server_cfg['host']}:{server_cfg['port']}", headers)


def _server_already_running(base_url: str) -> bool:
    try:
        response = requests.get(f"{base_url}/health", timeout=1.0)
        return response.status_code == 200
    except requests.RequestException:
        return False


def cmd_serve(args: argparse.Namespace) -> int:
    config, settings = bootstrap(config_path=args.config)
    server = create_server(config, settings, host=args.host, port=args.port)
    base_url = server.base_url
    if _server_already_running(base_url):
        logger.info("Search module server already running at %s", base_url)
        return 0
    server.run()
    return 0


def cmd_prefs(args: argparse.Namespace) -> int:
    from modules.search.errors import CatalogError
    from modules.search.prefs import build_preferences
    from sdk import get_search_section

    config, settings = bootstrap(config_path=args.config)
    search_cfg = get_search_section(config.raw)
    try:
        prefs = build_preferences(
            search_cfg["data_dir"],
            settings,
            catalog_file=search_cfg["catalog_file"],
            settings_key=search_cfg["settings_key"],
        )
    except CatalogError as e:
        print(f"Could not load engines: {e}", file=sys.stderr)
        return 1
    chooser = prefs.chooser
    if args.select is not None:
        try:
            chooser.selected = args.select
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return 2
    for i, name in enumerate(chooser.names):
        marker = "*" if i == chooser.selected else " "
        print(f"{marker} {i}: {name}")
    prefs.binding.unbind()
    if args.apply:
        base_url, headers = _server_endpoint(config)
        try:
            response = requests.post(
                f"{base_url}/config/reload", headers=headers, timeout=5.0
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Could not reload running server at %s: %s", base_url, e)
            return 1
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    from modules.search import create_search_components
    from modules.search.errors import CatalogError

    config, settings = bootstrap(config_path=args.config)
    components = create_search_components(config, settings)
    try:
        components.extension.enable()
    except CatalogError as e:
        print(f"Search provider not available: {e}", file=sys.stderr)
        return 1
    try:
        results = asyncio.run(components.controller.search(args.terms))
        for r in results:
            for meta in r.metas:
                print(f"{meta.name}: {meta.description}")
                if args.open:
                    components.controller.activate(r.provider_id, meta.id, args.terms)
    finally:
        components.extension.disable()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Web search provider")
    parser.add_argument("--config", default=None, help="Override config YAML file")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the search module server")
    serve.add_argument("--host", default=None, help="Host to bind to")
    serve.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve.set_defaults(func=cmd_serve)

    prefs = sub.add_parser("prefs", help="List engines or select the active one")
    prefs.add_argument("--select", type=int, default=None, help="Engine index to select")
    prefs.add_argument(
        "--apply", action="store_true", help="Ask a running server to reload"
    )
    prefs.set_defaults(func=cmd_prefs)

    search = sub.add_parser("search", help="Describe (and optionally open) a web search")
    search.add_argument("terms", nargs="+", help="Search terms")
    search.add_argument("--open", action="store_true", help="Open the result in a browser")
    search.set_defaults(func=cmd_search)
    return parser


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args([*argv, "serve"])
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
