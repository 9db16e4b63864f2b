import time
from typing import Any, Dict, Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from core.utils.logging import structured_logger

REDACTED = "[REDACTED]"
LOGGED_HEADERS = ("user-agent", "content-type", "authorization", "x-auth-token")


# Helper function to filter sensitive values out of logged query parameters
def filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    sensitive_fields = ["password", "token", "access_token", "refresh_token", "secret"]
    filtered_data = data.copy()
    for field in sensitive_fields:
        if field in filtered_data:
            filtered_data[field] = "[FILTERED]"
    return filtered_data


def redact_headers(request: Request) -> Dict[str, str]:
    headers = {}
    for name in LOGGED_HEADERS:
        value = request.headers.get(name)
        if value is None:
            continue
        if name == "authorization":
            scheme = value.split(" ", 1)[0] if " " in value else ""
            value = f"{scheme} {REDACTED}".strip()
        elif name == "x-auth-token":
            value = REDACTED
        headers[name] = value
    return headers


def describe_user(request: Request) -> Optional[str]:
    # Set by core.dependencies.get_current_user once a token resolves
    user = getattr(request.state, "user", None)
    if user is None:
        return None
    return f"{user.name} ({user.role})"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        metadata = {
            "request_method": request.method,
            "request_path": request.url.path,
            "client_host": request.client.host if request.client else None,
            "headers": redact_headers(request),
        }
        if request.query_params:
            metadata["query"] = filter_sensitive_data(dict(request.query_params))

        try:
            response = await call_next(request)
        except Exception as e:
            metadata["process_time"] = f"{time.time() - start_time:.4f}s"
            metadata["user"] = describe_user(request) or "Anonymous"
            structured_logger.error(
                message=f"{request.method} {request.url.path} failed",
                user_id=self._user_id(request),
                endpoint=request.url.path,
                metadata=metadata,
                exception=e,
            )
            raise

        metadata["response_status_code"] = response.status_code
        metadata["process_time"] = f"{time.time() - start_time:.4f}s"
        metadata["user"] = describe_user(request) or "Anonymous"
        structured_logger.info(
            message=f"{request.method} {request.url.path} {response.status_code}",
            user_id=self._user_id(request),
            endpoint=request.url.path,
            metadata=metadata,
        )
        return response

    @staticmethod
    def _user_id(request: Request) -> Optional[str]:
        user = getattr(request.state, "user", None)
        return str(user.id) if user is not None else None
