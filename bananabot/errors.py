import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class BananaBotError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_content(self) -> dict:
        return {"error": self.message}


class ValidationError(BananaBotError):
    """Malformed input such as a bad account id. Never retried."""
    status_code = status.HTTP_400_BAD_REQUEST


class RateLimited(BananaBotError):
    """Throttling decision taken before any remote call was made."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, retry_after: float, rank: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after
        self.rank = rank

    def to_content(self) -> dict:
        return {"error": self.message, "retryAfter": self.retry_after, "rank": self.rank}


class ServiceUnavailable(BananaBotError):
    """Remote ranking service failed and no cached rank exists."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class SessionError(BananaBotError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(BananaBotError):
    """A Steam endpoint returned an error or could not be reached."""
    status_code = status.HTTP_502_BAD_GATEWAY


async def bananabot_error_handler(request: Request, exc: BananaBotError) -> JSONResponse:
    if exc.status_code >= 500:
        logging.error(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = None
    if isinstance(exc, RateLimited):
        # Retry-After only takes whole seconds
        headers = {"Retry-After": "1"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_content(), headers=headers
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BananaBotError, bananabot_error_handler)
