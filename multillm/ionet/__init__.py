"""
io.net gateway client components.

Clean separation of concerns:
- transport.py: HTTP requests
- response_parser.py: Response and SSE parsing
- retry_policy.py: Error classification and retry decisions
- catalog.py: Cached model listing with static fallback
"""

from .transport import IONetTransport
from .response_parser import ResponseParser, ParsedResponse
from .retry_policy import RetryPolicy, classify_http_error
from .catalog import ModelCatalog, STATIC_MODELS

__all__ = [
    'IONetTransport',
    'ResponseParser',
    'ParsedResponse',
    'RetryPolicy',
    'classify_http_error',
    'ModelCatalog',
    'STATIC_MODELS',
]
