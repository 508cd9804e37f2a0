#!/usr/bin/env python3
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class FailedModel:
    model: str
    error: str
    execution_time: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'model': self.model,
            'error': self.error,
            'execution_time': round(self.execution_time, 3),
        }


@dataclass
class DispatchSummary:
    total_models: int
    successful_models: int
    failed_models: int
    success_rate: float
    total_execution_time: float
    min_execution_time: float = 0.0
    avg_execution_time: float = 0.0
    max_execution_time: float = 0.0
    total_tokens: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    failures: List[FailedModel] = field(default_factory=list)

    @property
    def failed_model_names(self) -> List[str]:
        return [f.model for f in self.failures]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_models': self.total_models,
            'successful_models': self.successful_models,
            'failed_models': self.failed_models,
            'success_rate': self.success_rate,
            'total_execution_time': round(self.total_execution_time, 3),
            'min_execution_time': round(self.min_execution_time, 3),
            'avg_execution_time': round(self.avg_execution_time, 3),
            'max_execution_time': round(self.max_execution_time, 3),
            'total_tokens': self.total_tokens,
            'total_prompt_tokens': self.total_prompt_tokens,
            'total_completion_tokens': self.total_completion_tokens,
            'failures': [f.to_dict() for f in self.failures],
        }
