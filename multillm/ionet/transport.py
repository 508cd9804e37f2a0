#!/usr/bin/env python3
from typing import Any, Dict, List, Optional

import requests

from multillm.config import DEFAULT_BASE_URL
from multillm.errors import MalformedResponseError
from multillm.logger import RunLogger, create_logger
from .http_session import ThreadLocalSessionManager
from .retry_policy import classify_http_error


class IONetTransport:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        session_manager: Optional[ThreadLocalSessionManager] = None,
        logger: Optional[RunLogger] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.session_manager = session_manager or ThreadLocalSessionManager()
        self.logger = logger or create_logger("multillm", "transport")

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def post_chat(self, payload: Dict[str, Any], timeout: float) -> requests.Response:
        """
        POST a chat completion request.

        Streaming payloads are sent with stream=True so the caller can
        iterate SSE lines; the caller owns closing the response.

        Raises:
            GatewayHTTPError: On any non-200 status (categorised)
            requests.exceptions.RequestException: On transport failures
        """
        model = payload.get('model', 'unknown')
        stream = bool(payload.get('stream'))

        self.logger.debug(
            "Gateway chat request",
            model=model,
            stream=stream,
            timeout=timeout
        )

        session = self.session_manager.get_session()
        response = session.post(
            self.chat_url,
            headers=self._headers(),
            json=payload,
            stream=stream,
            timeout=timeout
        )

        self.logger.debug(
            "Gateway chat response",
            model=model,
            status_code=response.status_code
        )

        if response.status_code != 200:
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            finally:
                response.close()
            raise classify_http_error(response.status_code, error_data, model)

        return response

    def list_models(self, timeout: float = 30) -> List[str]:
        """
        Fetch model ids from the gateway listing endpoint.

        Accepts {"data": [{"id": ...}, ...]} or a bare list of the same
        entries. Order is preserved; de-duplication is left to the caller.

        Raises:
            requests.exceptions.RequestException: On transport or HTTP errors
            MalformedResponseError: If the body has no recognisable model list
        """
        session = self.session_manager.get_session()
        response = session.get(self.models_url, headers=self._headers(), timeout=timeout)
        try:
            response.raise_for_status()
            try:
                body = response.json()
            except ValueError as e:
                raise MalformedResponseError(f"Model listing is not valid JSON: {e}") from e
        finally:
            response.close()

        entries = body.get('data') if isinstance(body, dict) else body
        if not isinstance(entries, list):
            raise MalformedResponseError(
                f"Model listing has no 'data' array (got {type(entries).__name__})"
            )

        model_ids = []
        for entry in entries:
            if isinstance(entry, dict) and isinstance(entry.get('id'), str):
                model_ids.append(entry['id'])
            elif isinstance(entry, str):
                model_ids.append(entry)

        self.logger.debug("Gateway model listing", count=len(model_ids))
        return model_ids

    def close(self):
        """Release the HTTP sessions opened by worker threads."""
        self.session_manager.close_all()
