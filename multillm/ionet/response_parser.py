import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from multillm.errors import EmptyResponseError, MalformedResponseError
from multillm.logger import RunLogger, create_logger
from multillm.models import Usage


@dataclass
class ParsedResponse:
    content: str
    usage: Usage = field(default_factory=Usage)
    chunks: int = 0


def _first_choice(body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    choices = body.get('choices')
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _choice_message_content(body: Dict[str, Any]) -> Optional[str]:
    choice = _first_choice(body)
    message = choice.get('message') if choice else None
    return _text(message.get('content')) if isinstance(message, dict) else None


def _choice_delta_content(body: Dict[str, Any]) -> Optional[str]:
    choice = _first_choice(body)
    delta = choice.get('delta') if choice else None
    return _text(delta.get('content')) if isinstance(delta, dict) else None


def _choice_text(body: Dict[str, Any]) -> Optional[str]:
    choice = _first_choice(body)
    return _text(choice.get('text')) if choice else None


def _top_level(key: str) -> Callable[[Dict[str, Any]], Optional[str]]:
    def extract(body: Dict[str, Any]) -> Optional[str]:
        return _text(body.get(key))
    return extract


def _data_content(body: Dict[str, Any]) -> Optional[str]:
    data = body.get('data')
    return _text(data.get('content')) if isinstance(data, dict) else None


# Gateway providers disagree on where the text lives; first match wins.
CONTENT_EXTRACTORS: List[Tuple[str, Callable[[Dict[str, Any]], Optional[str]]]] = [
    ('choices[0].message.content', _choice_message_content),
    ('choices[0].delta.content', _choice_delta_content),
    ('choices[0].text', _choice_text),
    ('content', _top_level('content')),
    ('output', _top_level('output')),
    ('text', _top_level('text')),
    ('response', _top_level('response')),
    ('data.content', _data_content),
]


def extract_content(body: Any) -> Optional[Tuple[str, str]]:
    """Return (extractor_name, text) for the first extractor yielding non-blank text."""
    if not isinstance(body, dict):
        return None
    for name, extractor in CONTENT_EXTRACTORS:
        text = extractor(body)
        if text is not None:
            return name, text
    return None


class ResponseParser:
    # A stream with more bad chunks than this is treated as corrupted.
    MAX_PARSE_ERRORS = 10

    def __init__(self, logger: Optional[RunLogger] = None):
        self.logger = logger or create_logger("multillm", "parser")

    def parse_completion(self, body: Any, model: str) -> ParsedResponse:
        found = extract_content(body)
        if found is None:
            if isinstance(body, dict):
                self.logger.warning(
                    f"No content in response from {model}",
                    model=model,
                    error=f"top-level keys: {sorted(body.keys())}"
                )
                if _first_choice(body) is not None or 'choices' in body:
                    raise EmptyResponseError(f"Model '{model}' returned empty or null content")
                raise MalformedResponseError(
                    f"No valid content found in API response for model '{model}' "
                    f"(keys: {', '.join(sorted(body.keys())) or 'none'})"
                )
            raise MalformedResponseError(
                f"Unexpected response type for model '{model}': {type(body).__name__}"
            )

        extractor_name, content = found
        self.logger.debug(
            f"Extracted content via {extractor_name}",
            model=model
        )
        usage = Usage.from_api(body.get('usage'))
        return ParsedResponse(content=content, usage=usage)

    def parse_body(self, text: str, model: str) -> ParsedResponse:
        if not text or not text.strip():
            raise EmptyResponseError(f"Model '{model}' returned an empty body")
        try:
            body = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Failed to parse API response for model '{model}'. "
                f"Raw content (first 500 chars): {text[:500]}. Parse error: {e}"
            ) from e
        return self.parse_completion(body, model)

    def parse_stream(self, lines: Iterable[Union[str, bytes]], model: str) -> ParsedResponse:
        """
        Rebuild a response from Server-Sent Events lines.

        Concatenates choices[0].delta.content across chunks, skipping
        [DONE] sentinels and malformed chunks. When no chunk carries delta
        content, the last valid chunk is parsed as a complete response.
        A body without any data: lines is parsed as plain JSON.
        """
        raw_lines: List[str] = []
        pieces: List[str] = []
        usage: Optional[Usage] = None
        last_chunk: Optional[Dict[str, Any]] = None
        saw_data = False
        parse_errors = 0
        chunks = 0

        for raw in lines:
            if isinstance(raw, bytes):
                raw = raw.decode('utf-8', errors='replace')
            raw_lines.append(raw)

            line = raw.strip()
            if not line.startswith('data:'):
                continue
            saw_data = True

            data_str = line[5:].strip()
            if not data_str or data_str == '[DONE]':
                continue

            try:
                chunk = json.loads(data_str)
            except json.JSONDecodeError as e:
                parse_errors += 1
                self.logger.warning(
                    f"Skipping malformed SSE chunk from {model}",
                    model=model,
                    error=f"{e}; chunk={data_str[:200]}"
                )
                if parse_errors > self.MAX_PARSE_ERRORS:
                    raise MalformedResponseError(
                        f"Too many SSE parse errors ({parse_errors}) for model '{model}' - "
                        f"stream may be corrupted"
                    )
                continue

            if not isinstance(chunk, dict):
                continue

            chunks += 1
            last_chunk = chunk

            if chunk.get('usage'):
                usage = Usage.from_api(chunk['usage'])

            choice = _first_choice(chunk)
            delta = choice.get('delta') if choice else None
            if isinstance(delta, dict):
                content = delta.get('content')
                if isinstance(content, str) and content:
                    pieces.append(content)

        if not saw_data:
            return self.parse_body("\n".join(raw_lines), model)

        content = ''.join(pieces)
        if content.strip():
            return ParsedResponse(content=content, usage=usage or Usage(), chunks=chunks)

        if last_chunk is None:
            raise MalformedResponseError(
                f"No valid streaming data chunks found in SSE response for model '{model}'"
            )

        parsed = self.parse_completion(last_chunk, model)
        if usage is not None and parsed.usage == Usage():
            parsed.usage = usage
        parsed.chunks = chunks
        return parsed
