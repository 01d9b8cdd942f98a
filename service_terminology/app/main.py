"""
Terminology service for the Terminology Access Layer.
"""

from typing import Dict, Optional

import httpx
from fastapi import HTTPException, Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.metrics import MetricsCollector

from .adapters.terminology_gateway import TerminologyGateway
from .auth.authenticator import Authenticator
from .auth.session_cache import init_session_cache, reset_session_cache


class TerminologyService(BaseService):
    """Terminology service implementation."""

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 metrics: Optional[MetricsCollector] = None,
                 authenticator: Optional[Authenticator] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        config = config or get_config("terminology", 8000)
        super().__init__("terminology", 8000, config=config, metrics=metrics)

        self.session_cache = init_session_cache(
            self.config,
            authenticator=authenticator,
            metrics=self.metrics,
        )
        self.gateway = TerminologyGateway.from_config(
            self.config,
            self.session_cache,
            client=http_client,
            metrics=self.metrics,
        )

        self._setup_terminology_routes()

    async def on_shutdown(self) -> None:
        await self.gateway.close()
        await self.session_cache.authenticator.close()
        reset_session_cache()

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check terminology service dependencies."""
        return {"terminology_server": self.gateway.check_health()}

    def _setup_terminology_routes(self):
        """Set up pass-through routes to the terminology server."""

        @self.app.get("/")
        async def root():
            return {
                "service": self.service_name,
                "message": "Terminology Access Layer - Terminology Service",
                "handler": self.config.handler,
            }

        @self.app.get("/snowstorm/{path:path}")
        async def get_from_snowstorm(path: str, request: Request):
            """Forward a GET to the terminology server."""
            url = self._backend_url(path, request)
            self.logger.info("Terminology pass-through", method="GET", url=url)

            response = await self.gateway.get(url, language=request.headers.get("Accept-Language"))
            if response.status_code != 200:
                self.logger.warning(
                    "Terminology server lookup failed",
                    url=url,
                    status_code=response.status_code,
                    body=response.text
                )
                raise HTTPException(status_code=417, detail="Error occurred performing lookup.")

            return Response(content=response.content, media_type="application/json")

        @self.app.post("/snowstorm/{path:path}")
        async def post_to_snowstorm(path: str, request: Request):
            """Forward a POST with its raw body to the terminology server."""
            url = self._backend_url(path, request)
            body = (await request.body()).decode("utf-8")
            self.logger.info("Terminology pass-through", method="POST", url=url)

            response = await self.gateway.post(url, body=body, language=request.headers.get("Accept-Language"))
            if not 200 <= response.status_code <= 399:
                self.logger.warning(
                    "Terminology server call failed",
                    url=url,
                    status_code=response.status_code,
                    body=response.text
                )
                raise HTTPException(status_code=417, detail="Error occurred performing lookup.")

            return Response(content=response.content, media_type="application/json")

    def _backend_url(self, path: str, request: Request) -> str:
        url = self.gateway.url_for(path)
        query = request.url.query
        return f"{url}?{query}" if query else url


def create_app():
    """Create FastAPI application."""
    service = TerminologyService()
    return service.app


if __name__ == "__main__":
    service = TerminologyService()
    service.run()
