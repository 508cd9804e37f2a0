#!/usr/bin/env python3
"""
Data models for multi-model dispatch.

Defines the request/result containers passed between the invoker,
the fan-out dispatcher and the aggregator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class InvocationRequest:
    prompt: str
    model: str
    max_tokens: int = 1024
    temperature: float = 0.7
    timeout: float = 300.0
    streaming: bool = True

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": self.prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": self.streaming,
        }


@dataclass(frozen=True)
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_api(cls, usage: Any) -> 'Usage':
        """Build from a provider usage dict; missing or invalid counts become 0."""
        if not isinstance(usage, dict):
            return cls()

        prompt_tokens = _token_count(usage.get('prompt_tokens'))
        completion_tokens = _token_count(usage.get('completion_tokens'))
        total_tokens = _token_count(usage.get('total_tokens'))
        if total_tokens == 0:
            total_tokens = prompt_tokens + completion_tokens

        return cls(prompt_tokens, completion_tokens, total_tokens)

    def to_dict(self) -> Dict[str, int]:
        return {
            'prompt_tokens': self.prompt_tokens,
            'completion_tokens': self.completion_tokens,
            'total_tokens': self.total_tokens,
        }


def _token_count(value: Any) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, count)


@dataclass
class InvocationResult:
    """
    Outcome of sending one prompt to one model.

    Attributes:
        model: Model the prompt was sent to
        success: Whether a non-empty response was obtained
        response: Response text (None on failure)
        usage: Token usage reported by the provider (zeros if not reported)
        execution_time: Wall-clock seconds from first attempt to final outcome
        error: Human-readable error (None on success)
        timestamp: When the outcome was recorded
        attempts: Number of HTTP attempts made (0 when the call never started)
    """
    model: str
    success: bool
    response: Optional[str] = None
    usage: Usage = field(default_factory=Usage)
    execution_time: float = 0.0
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    attempts: int = 0

    @classmethod
    def failure(
        cls,
        model: str,
        error: str,
        execution_time: float = 0.0,
        attempts: int = 0
    ) -> 'InvocationResult':
        return cls(
            model=model,
            success=False,
            error=error,
            execution_time=max(0.0, execution_time),
            attempts=attempts,
        )

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            'model': self.model,
            'success': self.success,
            'response': self.response,
            'usage': self.usage.to_dict(),
            'execution_time': round(self.execution_time, 3),
            'error': self.error,
            'timestamp': self.timestamp.isoformat(),
            'attempts': self.attempts,
        }


@dataclass(frozen=True)
class Catalog:
    models: tuple
    fetched_at: datetime
    source: str = "remote"

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self):
        return iter(self.models)

    def __contains__(self, model: object) -> bool:
        return model in self.models


@dataclass(frozen=True)
class ModelInfo:
    model: str
    category: str
    description: str


@dataclass
class MultiLLMResult:
    results: Dict[str, InvocationResult]
    summary: 'DispatchSummary'
    models_used: List[str]
    execution_time: float
    timestamp: datetime = field(default_factory=datetime.now)
    selection_method: str = "ordered"
    excluded_models: List[str] = field(default_factory=list)

    @property
    def errors(self) -> List[InvocationResult]:
        return [r for r in self.results.values() if not r.success]

    @property
    def responses(self) -> Dict[str, str]:
        return {m: r.response for m, r in self.results.items() if r.success}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'results': {m: r.to_dict() for m, r in self.results.items()},
            'summary': self.summary.to_dict(),
            'errors': [r.to_dict() for r in self.errors],
            'models_used': list(self.models_used),
            'execution_time': round(self.execution_time, 3),
            'timestamp': self.timestamp.isoformat(),
            'selection_method': self.selection_method,
            'excluded_models': list(self.excluded_models),
        }
