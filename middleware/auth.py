"""JWT validation for metric endpoints"""
from typing import Optional
import jwt
from fastapi import HTTPException, Request
from config import Config
from logging_config import get_logger


logger = get_logger(__name__)

JWT_HEADER_NAME = "X-JWT-Token"
JWT_QUERY_PARAM = "token"
HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


class JWTValidator:
    """FastAPI dependency rejecting requests without a valid HMAC-signed token.

    With no secret configured every request is accepted.
    """

    def __init__(self, config: Config):
        self.secret = config.jwt_secret

    def extract_token(self, request: Request) -> Optional[str]:
        """Token from the header, falling back to the query string"""
        token = request.headers.get(JWT_HEADER_NAME)
        if not token:
            token = request.query_params.get(JWT_QUERY_PARAM)
        return token or None

    async def __call__(self, request: Request) -> None:
        if not self.secret:
            return

        token = self.extract_token(request)
        if token is None:
            logger.warning(
                "Token not specified",
                path=request.url.path,
                client_ip=request.client.host if request.client else None,
                event_type="auth_rejected"
            )
            raise HTTPException(status_code=401, detail="Token not specified")

        try:
            jwt.decode(
                token,
                self.secret,
                algorithms=HMAC_ALGORITHMS,
                options={"verify_aud": False}
            )
        except jwt.InvalidTokenError as e:
            logger.warning(
                "Error parsing token",
                path=request.url.path,
                reason=type(e).__name__,
                client_ip=request.client.host if request.client else None,
                event_type="auth_rejected"
            )
            raise HTTPException(status_code=403, detail="Error parsing token")
