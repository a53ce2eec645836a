"""
Quotes API — Pre-flight Middleware
====================================

What:  Answers every OPTIONS request with an empty 204 and permissive CORS
       headers.
How:   Short-circuits before routing, so pre-flight never reaches the auth
       dependencies and never produces "Route not found". Other methods pass
       through to Starlette's CORSMiddleware.

Allow-Origin:
    "*" when CORS_ORIGINS contains "*"; otherwise the request's Origin if it
    is listed, and no Allow-Origin header at all if it is not.
    With "*", every response carries Allow-Origin/Methods/Headers, including
    requests that send no Origin header.
"""

from typing import Dict, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]


class PreflightMiddleware(BaseHTTPMiddleware):
    """Replies 204 to OPTIONS on any path."""

    def __init__(self, app: ASGIApp, allow_origins: Sequence[str] = ("*",)):
        super().__init__(app)
        self.allow_origins = list(allow_origins)
        self.allow_all = "*" in self.allow_origins

    def _headers_for(self, origin: str) -> Dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
            "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
        }
        if self.allow_all:
            headers["Access-Control-Allow-Origin"] = "*"
        elif origin in self.allow_origins:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
        return headers

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            origin = request.headers.get("origin", "")
            return Response(status_code=204, headers=self._headers_for(origin))

        response = await call_next(request)
        if self.allow_all:
            for name, value in self._headers_for("").items():
                response.headers.setdefault(name, value)
        return response
