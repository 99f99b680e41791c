from .logging import LoggingMiddleware
from .request_id import RequestIDMiddleware

__all__ = [
    "LoggingMiddleware",
    "RequestIDMiddleware",
]
