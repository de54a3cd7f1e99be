"""
HTTP server for the web search module: exposes the host search controller
(search, activate, launch), the provider identity, and the engine preferences.

The server is ready exactly while the extension is enabled, i.e. while a
provider is registered with the controller.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.search_controller import SearchController, split_terms
from modules.search.errors import CatalogError, ExtensionNotEnabledError
from modules.search.extension import WebSearchExtension
from modules.search.prefs import EnginePreferences, build_preferences

logger = logging.getLogger(__name__)

MODULE_VERSION = "1.0.0"
DEFAULT_ICON_SIZE = 32

# Reachable without an API key
_OPEN_PATHS = ("/health", "/metrics", "/version")


def _error_response(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error_code, "message": message},
    )


def _not_enabled_response() -> JSONResponse:
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "service_unavailable",
        "Search provider is not enabled",
    )


def _invalid_request(message: str) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, "invalid_request", message)


async def _read_object(request: Request) -> dict[str, Any] | None:
    """Return the JSON body if it is an object, else None."""
    try:
        data = await request.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _terms_from_body(data: dict[str, Any]) -> list[str]:
    terms = data.get("terms")
    if isinstance(terms, list):
        return [str(t) for t in terms if str(t).strip()]
    return split_terms(str(data.get("query") or ""))


def _has_api_key(request: Request, api_key: str) -> bool:
    if request.headers.get("X-API-Key", "") == api_key:
        return True
    auth = request.headers.get("Authorization", "")
    return auth.startswith("Bearer ") and auth[len("Bearer "):] == api_key


class SearchModuleServer:
    """
    FastAPI app around one WebSearchExtension. Startup binds the engine
    preferences and enables the extension; shutdown undoes both.
    """

    def __init__(
        self,
        extension: WebSearchExtension,
        controller: SearchController,
        settings: Any,
        search_config: dict[str, Any],
        host: str = "localhost",
        port: int = 8010,
        api_key: str | None = None,
        cors_origins: list[str] | None = None,
    ) -> None:
        self._extension = extension
        self._controller = controller
        self._settings = settings
        self._search_config = dict(search_config)
        self._host = host
        self._port = port
        self._prefs: EnginePreferences | None = None
        self._start_time = time.time()
        self._requests_total = 0
        self._requests_by_path: dict[str, int] = {}
        self._errors_total = 0

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.startup()
            try:
                yield
            finally:
                self.shutdown()

        self._app = FastAPI(
            title="Web Search Module", version=MODULE_VERSION, lifespan=lifespan
        )
        self._app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins if cors_origins is not None else ["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self._install_middleware(api_key)
        self._setup_endpoints()

    @property
    def ready(self) -> bool:
        return self._extension.enabled

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    def get_app(self) -> FastAPI:
        return self._app

    def startup(self) -> None:
        logger.info("Search module server starting on %s:%d", self._host, self._port)
        try:
            self._prefs = build_preferences(
                self._extension.path,
                self._settings,
                catalog_file=self._search_config["catalog_file"],
                settings_key=self._search_config["settings_key"],
            )
            self._extension.enable()
        except CatalogError as e:
            logger.error("Search provider not registered: %s", e)

    def shutdown(self) -> None:
        if self._prefs is not None:
            self._prefs.binding.unbind()
            self._prefs = None
        self._extension.disable()
        logger.info("Search module server stopped")

    def get_config_dict(self) -> dict[str, Any]:
        out = dict(self._search_config)
        out["engine"] = (
            self._extension.config.engine.name if self._extension.has_config else None
        )
        return out

    def reload_config(self) -> None:
        """Disable and enable the extension so a changed engine selection takes effect."""
        self._extension.reload()

    def _reload_or_error(self) -> JSONResponse | None:
        try:
            self.reload_config()
        except CatalogError as e:
            logger.error("Reload failed, provider not registered: %s", e)
            return _error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE, "reload_failed", str(e)
            )
        return None

    def _install_middleware(self, api_key: str | None) -> None:
        app = self._app

        @app.middleware("http")
        async def count_requests(request: Request, call_next):
            path = request.url.path
            self._requests_total += 1
            self._requests_by_path[path] = self._requests_by_path.get(path, 0) + 1
            try:
                response = await call_next(request)
            except Exception:
                self._errors_total += 1
                raise
            if response.status_code >= 400:
                self._errors_total += 1
            response.headers["X-Request-ID"] = (
                request.headers.get("X-Request-ID") or uuid.uuid4().hex
            )
            return response

        if api_key:

            @app.middleware("http")
            async def require_api_key(request: Request, call_next):
                if request.url.path in _OPEN_PATHS or _has_api_key(request, api_key):
                    return await call_next(request)
                return _error_response(
                    status.HTTP_401_UNAUTHORIZED, "authentication_failed", "Invalid API key"
                )

    def _prefs_body(self) -> dict[str, Any]:
        chooser = self._prefs.chooser
        return {
            "title": chooser.title,
            "engines": chooser.names,
            "selected": chooser.selected,
        }

    def _setup_endpoints(self) -> None:
        app = self._app

        @app.get("/health")
        async def health() -> dict[str, Any]:
            return {"status": "ok", "ready": self.ready, "module": "search"}

        @app.get("/version")
        async def version() -> dict[str, Any]:
            return {"module_version": MODULE_VERSION}

        @app.get("/metrics")
        async def metrics() -> dict[str, Any]:
            return {
                "requests_total": self._requests_total,
                "requests_by_endpoint": dict(self._requests_by_path),
                "errors_total": self._errors_total,
                "uptime_sec": time.time() - self._start_time,
            }

        @app.get("/config")
        async def get_config() -> dict[str, Any]:
            return {"config": self.get_config_dict()}

        @app.post("/config/reload")
        async def reload_config():
            error = self._reload_or_error()
            return error or {"success": True}

        @app.get("/provider")
        async def provider_info() -> dict[str, Any]:
            provider = self._extension.provider
            return {
                "id": self._extension.uuid,
                "enabled": provider is not None,
                "app_info": None,
                "can_launch_search": (
                    provider.can_launch_search if provider is not None else None
                ),
                "engine": (
                    self._extension.config.engine.name
                    if self._extension.has_config
                    else None
                ),
            }

        @app.post("/search")
        async def search(request: Request):
            if not self.ready:
                return _not_enabled_response()
            data = await _read_object(request)
            if data is None:
                return _invalid_request("Body must be a JSON object")
            terms = _terms_from_body(data)
            try:
                icon_size = int(data.get("icon_size", DEFAULT_ICON_SIZE))
            except (TypeError, ValueError):
                return _invalid_request("icon_size must be an integer")
            results = await self._controller.search(terms)
            return {
                "terms": terms,
                "results": [
                    {
                        "provider_id": r.provider_id,
                        "metas": [m.to_dict(icon_size) for m in r.metas],
                    }
                    for r in results
                ],
            }

        @app.post("/activate")
        async def activate(request: Request):
            if not self.ready:
                return _not_enabled_response()
            data = await _read_object(request)
            if data is None:
                return _invalid_request("Body must be a JSON object")
            provider_id = str(data.get("provider_id") or self._extension.uuid)
            result_id = str(data.get("result_id") or "")
            try:
                self._controller.activate(provider_id, result_id, _terms_from_body(data))
            except KeyError as e:
                return _error_response(status.HTTP_404_NOT_FOUND, "unknown_provider", str(e))
            except ExtensionNotEnabledError:
                return _not_enabled_response()
            except (RuntimeError, ValueError) as e:
                logger.warning("Activate %s failed: %s", provider_id, e)
                return _error_response(status.HTTP_502_BAD_GATEWAY, "open_failed", str(e))
            return {"success": True}

        @app.post("/launch")
        async def launch(request: Request):
            if not self.ready:
                return _not_enabled_response()
            data = await _read_object(request)
            if data is None:
                return _invalid_request("Body must be a JSON object")
            provider_id = str(data.get("provider_id") or self._extension.uuid)
            try:
                self._controller.launch_search(provider_id, _terms_from_body(data))
            except KeyError as e:
                return _error_response(status.HTTP_404_NOT_FOUND, "unknown_provider", str(e))
            return {"success": True}

        @app.get("/prefs")
        async def get_prefs():
            if self._prefs is None:
                return _error_response(
                    status.HTTP_503_SERVICE_UNAVAILABLE,
                    "service_unavailable",
                    "Engine list not loaded",
                )
            return self._prefs_body()

        @app.post("/prefs")
        async def set_prefs(request: Request):
            if self._prefs is None:
                return _error_response(
                    status.HTTP_503_SERVICE_UNAVAILABLE,
                    "service_unavailable",
                    "Engine list not loaded",
                )
            data = await _read_object(request)
            if data is None:
                return _invalid_request("Body must be a JSON object")
            try:
                self._prefs.chooser.selected = int(data.get("selected"))
            except (TypeError, ValueError) as e:
                return _invalid_request(str(e))
            if data.get("apply"):
                error = self._reload_or_error()
                if error is not None:
                    return error
            return self._prefs_body()

    def run(self) -> None:
        """Serve with uvicorn until interrupted."""
        import uvicorn

        try:
            uvicorn.run(self._app, host=self._host, port=self._port, log_level="info")
        except KeyboardInterrupt:
            logger.info("Search module server stopped by user")
        except Exception as e:
            logger.exception("Search module server error: %s", e)
            sys.exit(1)


def main() -> None:
    """Run the search module server from the command line."""
    parser = argparse.ArgumentParser(description="Web search module server")
    parser.add_argument("--host", default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    parser.add_argument("--api-key", default=None, help="Optional API key")
    args = parser.parse_args()

    from run import bootstrap, create_server

    config, settings = bootstrap()
    server = create_server(
        config, settings, host=args.host, port=args.port, api_key=args.api_key
    )
    server.run()


if __name__ == "__main__":
    main()
