#!/usr/bin/env python3
"""
Multi-model client for the io.net gateway.

Orchestrates the catalog, selector, dispatcher and aggregator for one
prompt sent to many models.

Flow:
- Pre-flight validation (prompt, API key, dispatch parameters)
- Catalog lookup (cached, with static fallback)
- Model selection (ordered, random or family-balanced)
- Fan-out dispatch with per-model retries
- Summary aggregation
"""

import random
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from multillm.config import DispatchConfig, MultiLLMConfig, build_dispatch_config, load_config
from multillm.dispatch import FanOutDispatcher, summarize
from multillm.display import print_model_complete, print_selection, print_summary
from multillm.errors import ConfigurationError, NoValidModelsError
from multillm.families import describe_family, family_of, filter_by_family, group_by_family
from multillm.invoker import ModelInvoker
from multillm.ionet import IONetTransport, ModelCatalog, RetryPolicy
from multillm.logger import RunLogger, create_logger
from multillm.models import ModelInfo, MultiLLMResult
from multillm.selector import select_balanced, select_models

MAX_RANDOM_COUNT = 50

ConfigLike = Union[DispatchConfig, Mapping[str, Any], None]


def _resolve_config(config: ConfigLike) -> DispatchConfig:
    if config is None:
        return DispatchConfig()
    if isinstance(config, DispatchConfig):
        return config
    if isinstance(config, Mapping):
        return build_dispatch_config(**config)
    raise ConfigurationError(f"config must be a DispatchConfig or a mapping, got {type(config).__name__}")


def _validate_prompt(prompt: Any) -> str:
    if not isinstance(prompt, str) or not prompt.strip():
        raise ConfigurationError("Prompt must be a non-empty string")
    return prompt


class MultiLLMClient:
    """
    Sends one prompt to many io.net models and collects every outcome.

    Components:
    - ModelCatalog: Cached model listing
    - ModelInvoker: Single-model calls with retries
    - FanOutDispatcher: Bounded parallel fan-out with a monitor deadline

    Only ConfigurationError and NoValidModelsError escape run(); every
    per-model failure is reported inside the returned MultiLLMResult.
    """

    def __init__(
        self,
        settings: Optional[MultiLLMConfig] = None,
        catalog: Optional[ModelCatalog] = None,
        invoker: Optional[ModelInvoker] = None,
        logger: Optional[RunLogger] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize client.

        Args:
            settings: Gateway settings (default: load_config() from the environment)
            catalog: Model catalog (default: ModelCatalog over an IONetTransport)
            invoker: Single-model invoker (default: ModelInvoker over the same transport)
            logger: Structured logger (default: per-client run logger)
            rng: Random source for random and balanced selection

        Raises:
            ConfigurationError: If settings are not given and the environment lacks an API key
        """
        self.settings = settings or load_config()
        self.logger = logger or create_logger(
            f"mllm-{datetime.now():%Y%m%d-%H%M%S}",
            "client",
            log_dir=self.settings.log_dir,
            level=self.settings.log_level
        )
        self.rng = rng or random.Random()

        self.transport = None
        if catalog is None or invoker is None:
            self.transport = IONetTransport(
                self.settings.ionet_api_key,
                self.settings.ionet_base_url,
                logger=self.logger.child("transport")
            )

        self.catalog = catalog or ModelCatalog(
            self.transport,
            ttl_seconds=self.settings.catalog_ttl_seconds,
            logger=self.logger.child("catalog")
        )
        self.invoker = invoker or ModelInvoker(self.transport, logger=self.logger.child("invoker"))
        self.dispatch_logger = self.logger.child("dispatcher")

    def close(self):
        if self.transport is not None:
            self.transport.close()
        self.logger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def run(
        self,
        prompt: str,
        models: Optional[Union[str, Sequence[str]]] = None,
        config: ConfigLike = None,
        verbose: bool = False
    ) -> MultiLLMResult:
        """
        Send the prompt to the requested models (or the whole catalog).

        Args:
            prompt: Prompt text sent as a single user message
            models: Model ids to query; None queries the catalog (subject to max_models)
            config: DispatchConfig or a mapping of its fields
            verbose: Print the selection, per-model completions and summary

        Returns:
            MultiLLMResult with one InvocationResult per selected model

        Raises:
            ConfigurationError: Empty prompt or out-of-range parameters
            NoValidModelsError: None of the requested models is in the catalog
        """
        prompt = _validate_prompt(prompt)
        config = _resolve_config(config)
        if isinstance(models, str):
            models = [models]

        catalog = self.catalog.get_available_models()
        selected = select_models(
            catalog,
            models,
            config.max_models,
            random_selection=config.random_selection,
            balanced=config.balanced,
            rng=self.rng,
            logger=self.logger
        )

        if config.balanced:
            method = "balanced"
        elif config.random_selection:
            method = "random"
        else:
            method = "ordered"

        return self._dispatch(prompt, selected, config, verbose, method)

    def run_random(
        self,
        prompt: str,
        count: int = 10,
        balanced: bool = True,
        exclude_models: Sequence[str] = (),
        config: ConfigLike = None,
        verbose: bool = False
    ) -> MultiLLMResult:
        """
        Send the prompt to `count` models picked from the catalog.

        Balanced mode spreads the pick across vendor families; otherwise
        models are sampled uniformly. Excluded models are removed first.
        When fewer than `count` models remain, all of them are used. The
        pick is always dispatched in parallel, exactly as selected.
        """
        prompt = _validate_prompt(prompt)
        config = _resolve_config(config)
        if not isinstance(count, int) or isinstance(count, bool) or not 1 <= count <= MAX_RANDOM_COUNT:
            raise ConfigurationError(f"count must be an integer between 1 and {MAX_RANDOM_COUNT}, got {count!r}")

        excluded = list(dict.fromkeys(exclude_models or ()))
        excluded_set = set(excluded)
        catalog = self.catalog.get_available_models()
        pool = [m for m in catalog if m not in excluded_set]

        if not pool:
            raise NoValidModelsError(
                "No models available after exclusions.",
                invalid_models=[],
                available_by_family=group_by_family(catalog),
            )

        if len(pool) < count:
            self.logger.warning(
                f"Only {len(pool)} models available, using all of them",
                count=len(pool),
                total=count
            )
            selected = list(pool)
        elif balanced:
            selected = select_balanced(pool, count, rng=self.rng, logger=self.logger)
        else:
            selected = self.rng.sample(pool, count)

        # The pick is final: dispatch it as-is, in parallel.
        config = config.model_copy(update={
            "max_models": len(selected),
            "random_selection": False,
            "balanced": False,
            "parallel": True,
        })

        return self._dispatch(
            prompt,
            selected,
            config,
            verbose,
            "balanced" if balanced else "random",
            excluded_models=excluded
        )

    def list_models(
        self,
        category: str = "all",
        detailed: bool = False,
        refresh: bool = False
    ) -> Union[List[str], List[ModelInfo]]:
        """
        List catalog models, optionally restricted to one family.

        Raises:
            ConfigurationError: Unknown category
        """
        catalog = self.catalog.get_available_models(force_refresh=refresh)
        models = filter_by_family(catalog, category)
        if not detailed:
            return models

        infos = []
        for model in models:
            family = family_of(model)
            infos.append(ModelInfo(model=model, category=family, description=describe_family(family)))
        return infos

    def _invoker_for(self, config: DispatchConfig) -> ModelInvoker:
        return self.invoker.with_retry_policy(
            RetryPolicy(retries=config.retries, retry_wait=config.retry_wait)
        )

    def _dispatch(
        self,
        prompt: str,
        selected: List[str],
        config: DispatchConfig,
        verbose: bool,
        method: str,
        excluded_models: Optional[List[str]] = None
    ) -> MultiLLMResult:
        if verbose:
            print_selection(selected, method)

        dispatcher = FanOutDispatcher(
            self._invoker_for(config).invoke,
            on_complete=print_model_complete if verbose else None,
            logger=self.dispatch_logger
        )

        self.logger.info(
            f"Dispatching prompt to {len(selected)} model(s) ({method})",
            count=len(selected),
            stream=config.streaming
        )

        start = time.monotonic()
        results = dispatcher.dispatch(prompt, selected, config)
        elapsed = time.monotonic() - start

        summary = summarize(results, elapsed)
        self.logger.info(
            f"Dispatch complete: {summary.successful_models}/{summary.total_models} succeeded",
            completed=summary.successful_models,
            total=summary.total_models,
            duration_seconds=round(elapsed, 3),
            tokens=summary.total_tokens
        )

        if verbose:
            print_summary(summary)

        return MultiLLMResult(
            results=results,
            summary=summary,
            models_used=list(results),
            execution_time=elapsed,
            timestamp=datetime.now(),
            selection_method=method,
            excluded_models=list(excluded_models or []),
        )


_clients: Dict[Tuple[str, str], MultiLLMClient] = {}
_clients_lock = threading.Lock()


def _shared_client(api_key: Optional[str] = None) -> MultiLLMClient:
    # One client per (key, base URL) so the catalog cache outlives a single call.
    settings = load_config(api_key)
    key = (settings.ionet_api_key, settings.ionet_base_url)
    with _clients_lock:
        client = _clients.get(key)
        if client is None:
            client = MultiLLMClient(settings=settings)
            _clients[key] = client
        return client


def multi_llm(
    prompt: str,
    models: Optional[Union[str, Sequence[str]]] = None,
    api_key: Optional[str] = None,
    verbose: bool = False,
    **options
) -> MultiLLMResult:
    """Send a prompt to several models; keyword options are DispatchConfig fields."""
    config = build_dispatch_config(**options)
    return _shared_client(api_key).run(prompt, models=models, config=config, verbose=verbose)


def multi_llm_random(
    prompt: str,
    count: int = 10,
    balanced: bool = True,
    exclude_models: Sequence[str] = (),
    api_key: Optional[str] = None,
    verbose: bool = False,
    **options
) -> MultiLLMResult:
    config = build_dispatch_config(**options)
    return _shared_client(api_key).run_random(
        prompt,
        count=count,
        balanced=balanced,
        exclude_models=exclude_models,
        config=config,
        verbose=verbose
    )


def list_models(
    category: str = "all",
    detailed: bool = False,
    refresh: bool = False,
    api_key: Optional[str] = None
) -> Union[List[str], List[ModelInfo]]:
    return _shared_client(api_key).list_models(category=category, detailed=detailed, refresh=refresh)
