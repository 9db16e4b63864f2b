from .api_exceptions import (
    APIException,
    ValidationException,
    InvalidInputException,
    AuthenticationException,
    AuthorizationException,
    NotFoundException,
    ConflictException,
    DatabaseException,
)

from .handlers import (
    api_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler
)

from .utils import get_correlation_id

__all__ = [
    # Exceptions
    "APIException",
    "ValidationException",
    "InvalidInputException",
    "AuthenticationException",
    "AuthorizationException",
    "NotFoundException",
    "ConflictException",
    "DatabaseException",

    # Handlers
    "api_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "sqlalchemy_exception_handler",
    "general_exception_handler",

    # Utils
    "get_correlation_id",
]
