import difflib
import random
import re
from typing import Dict, Iterable, List, Optional, Sequence

from multillm.errors import NoValidModelsError
from multillm.families import group_by_family
from multillm.ionet.catalog import dedupe
from multillm.logger import RunLogger, create_logger


def suggest_similar_models(model: str, available: Sequence[str], limit: int = 3) -> List[str]:
    """
    Suggest catalog entries resembling an unknown model name.

    difflib close matches come first, then catalog entries containing any
    name fragment longer than two characters.
    """
    lowered = {c.lower(): c for c in available}
    close = [
        lowered[m]
        for m in difflib.get_close_matches(model.lower(), list(lowered), n=limit, cutoff=0.5)
    ]

    parts = [p for p in re.split(r"[-_/]", model.lower()) if len(p) > 2]
    by_fragment = [
        candidate
        for part in parts
        for candidate in available
        if part in candidate.lower()
    ]

    return dedupe(close + by_fragment)[:limit]


def select_balanced(
    models: Sequence[str],
    count: int,
    rng: Optional[random.Random] = None,
    logger: Optional[RunLogger] = None
) -> List[str]:
    """
    Pick up to `count` models spread across vendor families.

    Each family contributes max(1, count // families) models (families are
    visited in random order so a small count does not always favour the
    same vendors); remaining slots are filled at random from what is left
    and the final selection is shuffled.
    """
    rng = rng or random.Random()
    buckets = group_by_family(models)
    if not buckets or count <= 0:
        return []

    if logger:
        for family, members in buckets.items():
            logger.debug(f"{family}: {len(members)} models", category=family, count=len(members))

    per_family = max(1, count // len(buckets))
    families = list(buckets)
    rng.shuffle(families)

    selected: List[str] = []
    for family in families:
        if len(selected) >= count:
            break
        members = buckets[family]
        take = min(per_family, len(members), count - len(selected))
        selected.extend(rng.sample(members, take))

    remaining_slots = count - len(selected)
    if remaining_slots > 0:
        remaining = [m for m in models if m not in selected]
        if remaining:
            selected.extend(rng.sample(remaining, min(remaining_slots, len(remaining))))

    rng.shuffle(selected)
    return selected


def select_models(
    catalog: Iterable[str],
    requested: Optional[Sequence[str]],
    max_count: int,
    random_selection: bool = False,
    balanced: bool = False,
    exclude: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None,
    logger: Optional[RunLogger] = None
) -> List[str]:
    """
    Narrow the requested models (or the whole catalog) to a working subset.

    Args:
        catalog: Models the gateway can serve
        requested: Models asked for; None means the whole catalog
        max_count: Upper bound on the number of models returned
        random_selection: Sample instead of truncating when over max_count
        balanced: Spread the selection across vendor families
        exclude: Models removed from consideration before selecting
        rng: Random source (injectable for reproducible tests)

    Returns:
        Selected model ids

    Raises:
        NoValidModelsError: If no requested model is in the catalog
    """
    logger = logger or create_logger("multillm", "selector")
    rng = rng or random.Random()
    available = dedupe(catalog)
    excluded = set(exclude or ())

    candidates = dedupe(requested) if requested is not None else list(available)
    if excluded:
        candidates = [m for m in candidates if m not in excluded]

    available_set = set(available)
    valid = [m for m in candidates if m in available_set]
    invalid = [m for m in candidates if m not in available_set]

    suggestions: Dict[str, List[str]] = {}
    for model in invalid:
        suggestions[model] = suggest_similar_models(model, available)
        hint = suggestions[model][:2]
        logger.warning(
            f"Skipping unavailable model {model}"
            + (f" (similar: {', '.join(hint)})" if hint else ""),
            model=model
        )

    if not valid:
        raise NoValidModelsError(
            "No valid models found. Please check model names against available models.",
            invalid_models=invalid,
            suggestions=suggestions,
            available_by_family=group_by_family(available),
        )

    if balanced and len(valid) > max_count:
        logger.info(f"Balanced selection of {max_count} from {len(valid)} models", count=max_count)
        return select_balanced(valid, max_count, rng=rng, logger=logger)

    if len(valid) > max_count:
        if random_selection:
            logger.info(f"Randomly selecting {max_count} of {len(valid)} models", count=max_count)
            return rng.sample(valid, max_count)
        logger.info(f"Limiting to first {max_count} models", count=max_count)
        return valid[:max_count]

    if random_selection or balanced:
        valid = list(valid)
        rng.shuffle(valid)
    return valid
