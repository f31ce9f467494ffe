"""Error types and FastAPI exception handlers."""

from .problem_details import (
    ProblemDetail,
    ProblemDetailException,
    InvalidArgumentError,
    InternalError,
    create_problem_response
)
from .handlers import register_exception_handlers

__all__ = [
    "ProblemDetail",
    "ProblemDetailException",
    "InvalidArgumentError",
    "InternalError",
    "create_problem_response",
    "register_exception_handlers"
]
