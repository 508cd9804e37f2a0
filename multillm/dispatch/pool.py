import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Sequence

from multillm.config import MAX_PARALLEL_WORKERS, DispatchConfig
from multillm.ionet.catalog import dedupe
from multillm.logger import RunLogger, create_logger
from multillm.models import InvocationRequest, InvocationResult

InvokeFn = Callable[[InvocationRequest], InvocationResult]
CompletionCallback = Callable[[InvocationResult, int, int], None]


class FanOutDispatcher:
    """
    Sends one prompt to many models and collects exactly one result per model.

    Parallel dispatch runs invocations on a bounded thread pool and waits
    on their futures against a monitor deadline. Models still unresolved
    at the deadline are reported as timed out; queued invocations are
    cancelled and the pool is shut down without joining in-flight calls,
    which finish (and are discarded) within their own request timeout.
    """

    def __init__(
        self,
        invoke_fn: InvokeFn,
        on_complete: Optional[CompletionCallback] = None,
        logger: Optional[RunLogger] = None
    ):
        self.invoke_fn = invoke_fn
        self.on_complete = on_complete
        self.logger = logger or create_logger("multillm", "dispatcher")

    def dispatch(
        self,
        prompt: str,
        models: Sequence[str],
        config: DispatchConfig,
        parallel: Optional[bool] = None
    ) -> Dict[str, InvocationResult]:
        models = dedupe(models)
        if not models:
            return {}

        requests = [
            InvocationRequest(
                prompt=prompt,
                model=model,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=config.timeout,
                streaming=config.streaming,
            )
            for model in models
        ]

        parallel = config.parallel if parallel is None else parallel
        if parallel and len(requests) > 1:
            results = self._dispatch_parallel(requests, config)
        else:
            results = self._dispatch_sequential(requests)

        return {model: results[model] for model in models}

    def _dispatch_sequential(self, requests: List[InvocationRequest]) -> Dict[str, InvocationResult]:
        self.logger.info(
            f"Dispatching to {len(requests)} model(s) sequentially",
            total=len(requests)
        )
        results: Dict[str, InvocationResult] = {}
        for request in requests:
            started = time.monotonic()
            try:
                result = self.invoke_fn(request)
            except Exception as e:
                result = self._worker_failure(request.model, e, time.monotonic() - started)
            results[request.model] = result
            self._notify(result, len(results), len(requests))
        return results

    def _dispatch_parallel(
        self,
        requests: List[InvocationRequest],
        config: DispatchConfig
    ) -> Dict[str, InvocationResult]:
        workers = min(len(requests), config.max_workers, MAX_PARALLEL_WORKERS)
        monitor_timeout = config.monitor_timeout

        self.logger.info(
            f"Dispatching to {len(requests)} models with {workers} workers",
            total=len(requests),
            count=workers,
            timeout=monitor_timeout
        )

        results: Dict[str, InvocationResult] = {}
        started = time.monotonic()
        deadline = started + monitor_timeout

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="multillm")
        try:
            future_to_model: Dict[Future, str] = {
                executor.submit(self.invoke_fn, request): request.model
                for request in requests
            }
            pending = set(future_to_model)

            while pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break

                done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
                for future in done:
                    model = future_to_model[future]
                    results[model] = self._collect(future, model, time.monotonic() - started)
                    self._notify(results[model], len(results), len(requests))

            if pending:
                self.logger.warning(
                    f"Monitor timeout reached with {len(pending)} model(s) unresolved",
                    completed=len(results),
                    total=len(requests),
                    timeout=monitor_timeout
                )
                for future in pending:
                    future.cancel()
                    model = future_to_model[future]
                    results[model] = InvocationResult.failure(
                        model,
                        f"Timed out after {monitor_timeout:g} seconds",
                        execution_time=time.monotonic() - started,
                    )
                    self._notify(results[model], len(results), len(requests))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results

    def _collect(self, future: Future, model: str, elapsed: float) -> InvocationResult:
        try:
            return future.result()
        except Exception as e:
            return self._worker_failure(model, e, elapsed)

    def _worker_failure(self, model: str, error: Exception, elapsed: float) -> InvocationResult:
        self.logger.error(
            f"Worker for {model} raised {type(error).__name__}",
            model=model,
            error=str(error)
        )
        return InvocationResult.failure(
            model,
            f"Worker execution failed: {error}",
            execution_time=elapsed,
        )

    def _notify(self, result: InvocationResult, completed: int, total: int):
        status = "success" if result.success else "failed"
        self.logger.debug(
            f"{result.model} {status} ({completed}/{total})",
            model=result.model,
            completed=completed,
            total=total,
            duration_seconds=round(result.execution_time, 3)
        )
        if self.on_complete is None:
            return
        try:
            self.on_complete(result, completed, total)
        except Exception as e:
            self.logger.warning(
                "Completion callback raised",
                model=result.model,
                error=f"{type(e).__name__}: {e}"
            )
