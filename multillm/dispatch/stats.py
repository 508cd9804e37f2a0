#!/usr/bin/env python3
from typing import Mapping

from multillm.models import InvocationResult
from .schemas import DispatchSummary, FailedModel


def summarize(results: Mapping[str, InvocationResult], total_elapsed: float) -> DispatchSummary:
    """
    Aggregate per-model outcomes into a DispatchSummary.

    Timing and token statistics cover successful results only and are 0
    when nothing succeeded. Success rate is a percentage rounded to one
    decimal (0 for an empty dispatch).
    """
    total = len(results)
    successes = [r for r in results.values() if r.success]
    failures = [r for r in results.values() if not r.success]

    success_rate = round(100.0 * len(successes) / total, 1) if total else 0.0

    if successes:
        times = [r.execution_time for r in successes]
        min_time = min(times)
        avg_time = sum(times) / len(times)
        max_time = max(times)
    else:
        min_time = avg_time = max_time = 0.0

    return DispatchSummary(
        total_models=total,
        successful_models=len(successes),
        failed_models=len(failures),
        success_rate=success_rate,
        total_execution_time=max(0.0, total_elapsed),
        min_execution_time=min_time,
        avg_execution_time=avg_time,
        max_execution_time=max_time,
        total_tokens=sum(r.usage.total_tokens for r in successes),
        total_prompt_tokens=sum(r.usage.prompt_tokens for r in successes),
        total_completion_tokens=sum(r.usage.completion_tokens for r in successes),
        failures=[
            FailedModel(model=r.model, error=r.error or "Unknown error", execution_time=r.execution_time)
            for r in failures
        ],
    )
