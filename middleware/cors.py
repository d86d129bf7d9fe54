"""Open CORS policy: any origin is reflected back"""
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from logging_config import get_logger
from middleware.auth import JWT_HEADER_NAME


logger = get_logger(__name__)

ALLOWED_HEADERS = f"{JWT_HEADER_NAME}, X-Requested-With, Origin, Accept, Content-Type, Authentication"
ALLOWED_METHODS = "GET, POST, HEAD, OPTIONS"


class ReflectOriginMiddleware(BaseHTTPMiddleware):
    """Echo the request Origin on every response and answer preflight requests"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")

        # Preflight for any path is answered here, routes and auth are never reached
        if request.method == "OPTIONS":
            response = Response(status_code=200)
            if origin:
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
                response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
            return response

        try:
            response = await call_next(request)
        except Exception as e:
            # Error responses carry the origin as well
            logger.error(
                "Unhandled error while serving request",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                event_type="request_failed",
                exc_info=True
            )
            response = PlainTextResponse("Internal Server Error", status_code=500)

        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
        return response
