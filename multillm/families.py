import re
from collections import OrderedDict
from typing import Dict, Iterable, List

from multillm.errors import ConfigurationError

OTHER_FAMILY = "other"

# Ordered: the first matching family wins.
MODEL_FAMILIES = OrderedDict([
    ("llama", {
        "pattern": r"meta-llama",
        "description": "Meta's Llama series - multimodal models with expert architectures and strong general capabilities",
    }),
    ("deepseek", {
        "pattern": r"deepseek-ai",
        "description": "DeepSeek series - reasoning and inference models with o1-like capabilities",
    }),
    ("qwen", {
        "pattern": r"Qwen/",
        "description": "Alibaba's Qwen series - MoE models with multilingual and vision support",
    }),
    ("mistral", {
        "pattern": r"mistralai",
        "description": "Mistral AI series - software engineering and multilingual models",
    }),
    ("reasoning", {
        "pattern": r"(netease-youdao|nvidia)",
        "description": "Reasoning specialised models - mathematical problem solving and o1-like thinking",
    }),
    ("compact", {
        "pattern": r"(microsoft|THUDM|openbmb|ibm-granite)",
        "description": "Compact models - high performance with smaller parameter counts",
    }),
    ("multilingual", {
        "pattern": r"(google|CohereForAI|bespokelabs|BAAI)",
        "description": "Multilingual and specialised models - language capabilities and embeddings",
    }),
])

OTHER_DESCRIPTION = "Other specialised model"

_COMPILED = [
    (name, re.compile(entry["pattern"], re.IGNORECASE))
    for name, entry in MODEL_FAMILIES.items()
]


def family_of(model: str) -> str:
    for name, pattern in _COMPILED:
        if pattern.search(model):
            return name
    return OTHER_FAMILY


def describe_family(family: str) -> str:
    entry = MODEL_FAMILIES.get(family)
    return entry["description"] if entry else OTHER_DESCRIPTION


def group_by_family(models: Iterable[str]) -> Dict[str, List[str]]:
    """Bucket models by family, in family-table order; empty buckets are omitted."""
    buckets: Dict[str, List[str]] = OrderedDict((name, []) for name in MODEL_FAMILIES)
    buckets[OTHER_FAMILY] = []

    for model in models:
        buckets[family_of(model)].append(model)

    return OrderedDict((name, members) for name, members in buckets.items() if members)


def filter_by_family(models: Iterable[str], category: str = "all") -> List[str]:
    category = (category or "all").lower()
    if category == "all":
        return list(models)

    known = list(MODEL_FAMILIES) + [OTHER_FAMILY]
    if category not in known:
        raise ConfigurationError(
            f"Unknown model category '{category}'. Choose one of: all, {', '.join(known)}"
        )

    return [m for m in models if family_of(m) == category]
