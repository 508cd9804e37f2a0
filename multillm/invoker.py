#!/usr/bin/env python3
"""
Single-model invoker for the io.net gateway.

Orchestrates transport, retry and parsing layers for one prompt sent to
one model, and always returns an InvocationResult: every failure mode is
captured in the result's error field.
"""

import time
from datetime import datetime
from typing import Callable, Optional

import requests

from multillm.errors import GatewayHTTPError, MalformedResponseError
from multillm.ionet import IONetTransport, ResponseParser, RetryPolicy
from multillm.ionet.response_parser import ParsedResponse
from multillm.logger import RunLogger, create_logger
from multillm.models import InvocationRequest, InvocationResult


class ModelInvoker:
    """
    Sends one InvocationRequest to the gateway with retries.

    Components:
    - IONetTransport: HTTP requests
    - RetryPolicy: Transient-error detection and linear backoff
    - ResponseParser: Content extraction for JSON and SSE bodies
    """

    def __init__(
        self,
        transport: IONetTransport,
        retry_policy: Optional[RetryPolicy] = None,
        parser: Optional[ResponseParser] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[RunLogger] = None
    ):
        """
        Initialize invoker.

        Args:
            transport: Gateway transport used for every attempt
            retry_policy: Retry decisions (default: 2 retries, 2s linear backoff)
            parser: Response parser (default: ResponseParser sharing this logger)
            sleep: Backoff sleep function (injectable for tests)
            clock: Monotonic clock used for execution_time
            logger: Structured logger
        """
        self.logger = logger or create_logger("multillm", "invoker")
        self.transport = transport
        self.retry = retry_policy or RetryPolicy()
        self.parser = parser or ResponseParser(logger=self.logger)
        self.sleep = sleep
        self.clock = clock

    def with_retry_policy(self, retry_policy: RetryPolicy) -> 'ModelInvoker':
        """Copy of this invoker sharing transport and parser but using another retry policy."""
        return ModelInvoker(
            self.transport,
            retry_policy=retry_policy,
            parser=self.parser,
            sleep=self.sleep,
            clock=self.clock,
            logger=self.logger,
        )

    def invoke(self, request: InvocationRequest) -> InvocationResult:
        """
        Send the prompt to the model, retrying transient failures.

        Transient failures (408/429/5xx, connection errors, timeouts,
        malformed or empty content) are retried up to retry_policy.retries
        times, waiting retry_wait * attempt seconds between attempts.
        Anything else fails on the first attempt.

        Returns:
            InvocationResult (never raises)
        """
        start = self.clock()
        attempt = 0

        while True:
            attempt += 1
            try:
                parsed = self._attempt(request)
            except Exception as e:
                error = e
            else:
                execution_time = self.clock() - start
                self.logger.debug(
                    f"{request.model} succeeded",
                    model=request.model,
                    attempt=attempt,
                    duration_seconds=round(execution_time, 3),
                    tokens=parsed.usage.total_tokens
                )
                return InvocationResult(
                    model=request.model,
                    success=True,
                    response=parsed.content,
                    usage=parsed.usage,
                    execution_time=execution_time,
                    timestamp=datetime.now(),
                    attempts=attempt,
                )

            if self.retry.should_retry(error, attempt):
                delay = self.retry.backoff_delay(attempt)
                self.logger.warning(
                    f"{request.model} attempt {attempt}/{self.retry.max_attempts} failed, "
                    f"retrying in {delay:.1f}s",
                    model=request.model,
                    attempt=attempt,
                    max_attempts=self.retry.max_attempts,
                    status_code=getattr(error, 'status_code', None),
                    delay_seconds=delay,
                    error=self._describe(error, request)
                )
                if delay > 0:
                    self.sleep(delay)
                continue

            execution_time = self.clock() - start
            message = self._describe(error, request)
            self.logger.error(
                f"{request.model} failed after {attempt} attempt(s)",
                model=request.model,
                attempt=attempt,
                status_code=getattr(error, 'status_code', None),
                duration_seconds=round(execution_time, 3),
                error=message
            )
            return InvocationResult.failure(
                request.model,
                message,
                execution_time=execution_time,
                attempts=attempt,
            )

    def _attempt(self, request: InvocationRequest) -> ParsedResponse:
        response = self.transport.post_chat(request.to_payload(), timeout=request.timeout)
        try:
            if request.streaming:
                return self.parser.parse_stream(
                    response.iter_lines(),
                    request.model
                )
            return self.parser.parse_body(response.text, request.model)
        finally:
            response.close()

    def _describe(self, error: BaseException, request: InvocationRequest) -> str:
        if isinstance(error, (GatewayHTTPError, MalformedResponseError)):
            return str(error)
        if isinstance(error, requests.exceptions.Timeout):
            return f"Request to model '{request.model}' timed out after {request.timeout}s"
        if isinstance(error, requests.exceptions.ConnectionError):
            return f"Connection error for model '{request.model}': {error}"
        return f"{type(error).__name__} for model '{request.model}': {error}"
