#!/usr/bin/env python3
import re
from typing import Any

import requests

from multillm.errors import GatewayHTTPError, MalformedResponseError

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Statuses that never succeed on a retry, whatever the detail says.
TERMINAL_STATUS_CODES = frozenset({401, 403})

STATUS_CATEGORIES = {
    400: "Bad Request",
    401: "Authentication Error",
    403: "Access Forbidden",
    404: "Model Not Found",
    408: "Request Timeout",
    429: "Rate Limit Exceeded",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}

MODEL_MISSING_PATTERN = re.compile(r"model.*(not.*found|unavailable|not.*exist)", re.IGNORECASE)
MODEL_TEMPORARILY_DOWN_PATTERN = re.compile(
    r"(temporarily|currently)\s+unavailable|overloaded|model.*unavailable",
    re.IGNORECASE
)

TRANSIENT_TRANSPORT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


def extract_error_detail(error_data: Any) -> str:
    if isinstance(error_data, dict):
        error = error_data.get('error')
        if isinstance(error, dict) and error.get('message'):
            return str(error['message'])
        if isinstance(error, str) and error:
            return error
        if error_data.get('message'):
            return str(error_data['message'])
        if error_data.get('detail'):
            return str(error_data['detail'])
    return "No detailed error message available"


def classify_http_error(status_code: int, error_data: Any, model: str) -> GatewayHTTPError:
    """Turn a non-200 gateway response into a categorised, human-readable error."""
    category = STATUS_CATEGORIES.get(status_code, f"HTTP {status_code} Error")
    detail = extract_error_detail(error_data)

    if status_code == 404 or MODEL_MISSING_PATTERN.search(detail):
        message = (
            f"Model '{model}' is not available or temporarily offline. "
            f"This model may have been removed from io.net or is under maintenance."
        )
    elif status_code == 429:
        message = (
            f"Rate limit exceeded for model '{model}'. "
            f"Consider reducing concurrent requests or waiting before retry."
        )
    elif status_code == 503:
        message = (
            f"Model '{model}' service is temporarily unavailable. "
            f"This is usually temporary - try again later."
        )
    else:
        message = f"{category} for model '{model}': {detail}"

    if status_code in TRANSIENT_STATUS_CODES:
        retryable = True
    elif status_code in TERMINAL_STATUS_CODES:
        retryable = False
    else:
        retryable = bool(MODEL_TEMPORARILY_DOWN_PATTERN.search(detail))

    return GatewayHTTPError(
        message,
        status_code=status_code,
        category=category,
        detail=detail,
        retryable=retryable,
    )


class RetryPolicy:
    """Decides whether a failed attempt is retried and how long to wait.

    Backoff is linear: attempt N waits retry_wait * N seconds.
    """

    def __init__(self, retries: int = 2, retry_wait: float = 2.0):
        self.retries = max(0, retries)
        self.retry_wait = max(0.0, retry_wait)

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def is_transient(self, error: BaseException) -> bool:
        if isinstance(error, GatewayHTTPError):
            return error.retryable
        if isinstance(error, MalformedResponseError):
            return True
        if isinstance(error, TRANSIENT_TRANSPORT_ERRORS):
            return True
        return False

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        if attempt >= self.max_attempts:
            return False
        return self.is_transient(error)

    def backoff_delay(self, attempt: int) -> float:
        return self.retry_wait * attempt
