"""
Tests for multillm/selector.py

Key behaviors to verify:
1. Requested models are de-duplicated and validated against the catalog
2. No valid model raises NoValidModelsError with suggestions
3. Ordered truncation, random sampling and family-balanced selection
"""

import random

import pytest

from multillm.errors import NoValidModelsError
from multillm.families import family_of
from multillm.ionet.catalog import STATIC_MODELS
from multillm.selector import select_balanced, select_models, suggest_similar_models

THREE_FAMILIES = [
    "meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8",
    "meta-llama/Llama-3.3-70B-Instruct",
    "meta-llama/Llama-3.2-90B-Vision-Instruct",
    "meta-llama/Llama-3.1-8B-Instruct",
    "deepseek-ai/DeepSeek-R1-0528",
    "deepseek-ai/DeepSeek-R1",
    "deepseek-ai/DeepSeek-R1-Distill-Llama-70B",
    "deepseek-ai/DeepSeek-V3",
    "Qwen/Qwen3-235B-A22B-FP8",
    "Qwen/Qwen2.5-VL-32B-Instruct",
    "Qwen/QwQ-32B",
    "Qwen/Qwen2.5-Coder-32B-Instruct",
]


class TestValidation:

    def test_requested_deduplicated_in_order(self, test_logger):
        selected = select_models(
            STATIC_MODELS,
            ["microsoft/phi-4", "google/gemma-3-27b-it", "microsoft/phi-4"],
            max_count=6,
            logger=test_logger
        )
        assert selected == ["microsoft/phi-4", "google/gemma-3-27b-it"]

    def test_invalid_models_dropped(self, test_logger):
        selected = select_models(
            STATIC_MODELS,
            ["microsoft/phi-4", "acme/imaginary-7b"],
            max_count=6,
            logger=test_logger
        )
        assert selected == ["microsoft/phi-4"]

    def test_all_invalid_raises_with_suggestions(self, test_logger):
        with pytest.raises(NoValidModelsError) as exc_info:
            select_models(
                STATIC_MODELS,
                ["meta-llama/Llama-3.3-70B", "acme/imaginary-7b"],
                max_count=6,
                logger=test_logger
            )

        error = exc_info.value
        assert error.invalid_models == ["meta-llama/Llama-3.3-70B", "acme/imaginary-7b"]
        assert "meta-llama/Llama-3.3-70B-Instruct" in error.suggestions["meta-llama/Llama-3.3-70B"]
        assert "llama" in error.available_by_family
        assert "did you mean" in error.describe()

    def test_none_means_whole_catalog(self, test_logger):
        assert select_models(STATIC_MODELS, None, max_count=50, logger=test_logger) == list(STATIC_MODELS)

    def test_exclude(self, test_logger):
        selected = select_models(
            THREE_FAMILIES, None, max_count=50, exclude=THREE_FAMILIES[1:], logger=test_logger
        )
        assert selected == THREE_FAMILIES[:1]


class TestLimiting:

    def test_ordered_truncation(self, test_logger):
        assert select_models(STATIC_MODELS, None, max_count=3, logger=test_logger) == list(STATIC_MODELS[:3])

    def test_random_sample(self, test_logger):
        selected = select_models(
            STATIC_MODELS, None, max_count=5, random_selection=True,
            rng=random.Random(7), logger=test_logger
        )

        assert len(selected) == 5
        assert len(set(selected)) == 5
        assert set(selected) <= set(STATIC_MODELS)

    def test_random_is_reproducible_with_seed(self, test_logger):
        kwargs = dict(max_count=4, random_selection=True, logger=test_logger)
        first = select_models(STATIC_MODELS, None, rng=random.Random(42), **kwargs)
        second = select_models(STATIC_MODELS, None, rng=random.Random(42), **kwargs)
        assert first == second

    def test_under_limit_keeps_everything(self, test_logger):
        requested = ["microsoft/phi-4", "openbmb/MiniCPM3-4B"]
        selected = select_models(
            STATIC_MODELS, requested, max_count=6, random_selection=True,
            rng=random.Random(1), logger=test_logger
        )
        assert sorted(selected) == sorted(requested)

    def test_balanced_covers_every_family(self, test_logger):
        for seed in range(20):
            selected = select_models(
                THREE_FAMILIES, None, max_count=9, balanced=True,
                rng=random.Random(seed), logger=test_logger
            )

            assert len(selected) == 9
            assert len(set(selected)) == 9
            assert {family_of(m) for m in selected} == {"llama", "deepseek", "qwen"}


class TestSelectBalanced:

    def test_one_per_family(self):
        selected = select_balanced(THREE_FAMILIES, 3, rng=random.Random(3))
        assert sorted(family_of(m) for m in selected) == ["deepseek", "llama", "qwen"]

    def test_never_exceeds_count(self):
        for seed in range(20):
            selected = select_balanced(STATIC_MODELS, 2, rng=random.Random(seed))
            assert len(selected) == 2
            assert len(set(selected)) == 2

    def test_fills_remaining_slots(self):
        models = THREE_FAMILIES[:4] + ["microsoft/phi-4"]
        selected = select_balanced(models, 5, rng=random.Random(0))
        assert sorted(selected) == sorted(models)

    def test_count_larger_than_pool(self):
        assert len(select_balanced(THREE_FAMILIES[:2], 5, rng=random.Random(0))) == 2

    def test_empty(self):
        assert select_balanced([], 3) == []


class TestSuggestions:

    def test_close_match_first(self):
        suggestions = suggest_similar_models("microsoft/phi-3", STATIC_MODELS)
        assert suggestions[0] == "microsoft/phi-4"

    def test_fragment_match(self):
        suggestions = suggest_similar_models("mistral/magistral", STATIC_MODELS)
        assert "mistralai/Magistral-Small-2506" in suggestions

    def test_limit(self):
        assert len(suggest_similar_models("deepseek-ai/DeepSeek", STATIC_MODELS, limit=2)) <= 2

    def test_no_match(self):
        assert suggest_similar_models("zz", STATIC_MODELS) == []
