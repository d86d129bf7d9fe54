"""FastAPI server setup and routes"""
from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.requests import ClientDisconnect
from app import forms
from config import Config
from logging_config import get_logger
from metrics.batch import BatchDecodeError, decode_batch, dispatch_batch
from metrics.client import BaseMetricsClient, BufferedStatsDClient
from metrics.dispatch import dispatch_metric
from metrics.models import MetricType, is_valid_key
from middleware.auth import JWTValidator
from middleware.cors import ReflectOriginMiddleware
from middleware.request_logging import RequestLoggingMiddleware


logger = get_logger(__name__)


class ProxyServer:
    """FastAPI server translating HTTP metric requests into StatsD lines"""

    def __init__(self, config: Config, client: Optional[BaseMetricsClient] = None):
        self.config = config
        self.app = FastAPI(
            title="StatsD HTTP Proxy",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )
        self.client = client if client is not None else BufferedStatsDClient(config)
        self.auth = JWTValidator(config)

        self._setup_middleware()
        self._setup_routes()
        self._setup_events()

    def _metric_key(self, key: str) -> str:
        """Prefix a path key, 400 when it would break the StatsD line"""
        if not is_valid_key(key):
            raise HTTPException(status_code=400, detail="Invalid key specified")
        return self.config.build_key(key)

    def _setup_middleware(self):
        """Setup middleware"""
        # Add middleware in reverse order (last added is executed first)
        self.app.add_middleware(ReflectOriginMiddleware)

        if self.config.enable_request_logging:
            self.app.add_middleware(RequestLoggingMiddleware)

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/heartbeat', response_class=PlainTextResponse)
        def heartbeat():
            """Liveness probe"""
            return "OK"

        metric_router = APIRouter(dependencies=[Depends(self.auth)])

        @metric_router.post('/count/{key}')
        async def count(key: str, request: Request):
            metric = forms.count_request(self._metric_key(key), await request.form())
            dispatch_metric(self.client, MetricType.COUNT, metric.key, metric)
            return Response(status_code=200)

        @metric_router.post('/gauge/{key}')
        async def gauge(key: str, request: Request):
            metric = forms.gauge_request(self._metric_key(key), await request.form())
            dispatch_metric(self.client, MetricType.GAUGE, metric.key, metric)
            return Response(status_code=200)

        @metric_router.post('/timing/{key}')
        async def timing(key: str, request: Request):
            metric = forms.timing_request(self._metric_key(key), await request.form())
            dispatch_metric(self.client, MetricType.TIMING, metric.key, metric)
            return Response(status_code=200)

        @metric_router.post('/set/{key}')
        async def set_value(key: str, request: Request):
            metric = forms.set_request(self._metric_key(key), await request.form())
            dispatch_metric(self.client, MetricType.SET, metric.key, metric)
            return Response(status_code=200)

        @metric_router.post('/batch')
        async def batch(request: Request):
            """Forward a JSON list of metrics, best-effort per entry"""
            try:
                envelope = decode_batch(await request.body())
            except (BatchDecodeError, ClientDisconnect) as e:
                logger.info("Invalid batch request", error=str(e), event_type="batch_rejected")
                raise HTTPException(status_code=400, detail="Invalid values specified")

            forwarded = dispatch_batch(envelope, self.client, self.config.build_key)
            logger.debug(
                "Batch dispatched",
                received=len(envelope.metrics),
                forwarded=forwarded,
                event_type="batch_dispatched"
            )
            return Response(status_code=200)

        self.app.include_router(metric_router)

    def _setup_events(self):
        """Setup FastAPI startup/shutdown events"""

        @self.app.on_event("startup")
        async def startup_event():
            logger.info(
                "Application startup initiated",
                service_name=self.config.service_name,
                service_version=self.config.service_version,
                auth_enabled=self.config.auth_enabled(),
                event_type="server_startup"
            )
            await self.client.start()

        @self.app.on_event("shutdown")
        async def shutdown_event():
            """Flush buffered metrics before exit"""
            logger.info("Shutting down StatsD HTTP proxy", event_type="server_shutdown")
            await self.client.stop()

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
