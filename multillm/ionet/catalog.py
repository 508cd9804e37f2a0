import threading
import time
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from multillm.logger import RunLogger, create_logger
from multillm.models import Catalog

CACHE_TTL_SECONDS = 3600.0

# Served when the gateway listing is unreachable or empty.
STATIC_MODELS = (
    "meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8",
    "meta-llama/Llama-3.3-70B-Instruct",
    "meta-llama/Llama-3.2-90B-Vision-Instruct",
    "deepseek-ai/DeepSeek-R1-0528",
    "deepseek-ai/DeepSeek-R1",
    "deepseek-ai/DeepSeek-R1-Distill-Llama-70B",
    "deepseek-ai/DeepSeek-R1-Distill-Qwen-32B",
    "Qwen/Qwen3-235B-A22B-FP8",
    "Qwen/Qwen2.5-VL-32B-Instruct",
    "google/gemma-3-27b-it",
    "mistralai/Devstral-Small-2505",
    "mistralai/Magistral-Small-2506",
    "mistralai/Mistral-Large-Instruct-2411",
    "mistralai/Ministral-8B-Instruct-2410",
    "netease-youdao/Confucius-o1-14B",
    "nvidia/AceMath-7B-Instruct",
    "microsoft/phi-4",
    "bespokelabs/Bespoke-Stratos-32B",
    "THUDM/glm-4-9b-chat",
    "CohereForAI/aya-expanse-32b",
    "openbmb/MiniCPM3-4B",
    "ibm-granite/granite-3.1-8b-instruct",
    "BAAI/bge-multilingual-gemma2",
)


def dedupe(models: Iterable[str]) -> List[str]:
    seen = set()
    unique = []
    for model in models:
        if model not in seen:
            seen.add(model)
            unique.append(model)
    return unique


class ModelCatalog:
    """
    Time-boxed cache of the models the gateway can serve.

    The cached catalog is reused until it is older than ttl_seconds or a
    refresh is forced. A failed or empty listing degrades to the static
    fallback list without touching the cache, so the next call tries the
    gateway again. Reads and refreshes are serialised by a lock.
    """

    def __init__(
        self,
        transport,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        fallback: Sequence[str] = STATIC_MODELS,
        clock: Callable[[], float] = time.monotonic,
        listing_timeout: float = 30,
        logger: Optional[RunLogger] = None
    ):
        self.transport = transport
        self.ttl_seconds = ttl_seconds
        self.fallback = tuple(dedupe(fallback))
        self.clock = clock
        self.listing_timeout = listing_timeout
        self.logger = logger or create_logger("multillm", "catalog")

        self._lock = threading.Lock()
        self._cached: Optional[Catalog] = None
        self._cached_at: Optional[float] = None

    def _is_cache_valid(self) -> bool:
        if self._cached is None or self._cached_at is None:
            return False
        return (self.clock() - self._cached_at) < self.ttl_seconds

    def get_available_models(self, force_refresh: bool = False) -> Catalog:
        with self._lock:
            if not force_refresh and self._is_cache_valid():
                return self._cached

            try:
                models = dedupe(self.transport.list_models(timeout=self.listing_timeout))
            except Exception as e:
                self.logger.warning(
                    "Model listing failed, using static fallback list",
                    error=f"{type(e).__name__}: {e}",
                    count=len(self.fallback)
                )
                return self._fallback_catalog()

            if not models:
                self.logger.warning(
                    "Model listing returned no models, using static fallback list",
                    count=len(self.fallback)
                )
                return self._fallback_catalog()

            self._cached = Catalog(models=tuple(models), fetched_at=datetime.now(), source="remote")
            self._cached_at = self.clock()

            self.logger.info(
                f"Fetched {len(models)} models from gateway",
                count=len(models),
                source="remote"
            )
            return self._cached

    def invalidate(self):
        with self._lock:
            self._cached = None
            self._cached_at = None

    def _fallback_catalog(self) -> Catalog:
        return Catalog(models=self.fallback, fetched_at=datetime.now(), source="fallback")
