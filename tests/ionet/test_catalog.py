"""
Tests for multillm/ionet/catalog.py

Key behaviors to verify:
1. A fresh cache is served without touching the gateway
2. TTL expiry and force_refresh both refetch
3. Failures and empty listings degrade to the static list, uncached
"""

from unittest.mock import MagicMock

import requests

from multillm.ionet.catalog import STATIC_MODELS, ModelCatalog, dedupe


def make_catalog(transport, clock, test_logger, ttl=3600):
    return ModelCatalog(transport, ttl_seconds=ttl, clock=clock, logger=test_logger)


class TestCaching:

    def test_second_call_within_ttl_uses_cache(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.return_value = ["a/one", "b/two"]
        catalog = make_catalog(transport, clock, test_logger)

        first = catalog.get_available_models()
        clock.advance(3599)
        second = catalog.get_available_models()

        assert first is second
        assert first.source == "remote"
        assert list(first) == ["a/one", "b/two"]
        assert transport.list_models.call_count == 1

    def test_expired_cache_refetches(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.side_effect = [["a/one"], ["a/one", "c/three"]]
        catalog = make_catalog(transport, clock, test_logger)

        catalog.get_available_models()
        clock.advance(3600)
        refreshed = catalog.get_available_models()

        assert list(refreshed) == ["a/one", "c/three"]
        assert transport.list_models.call_count == 2

    def test_force_refresh_bypasses_cache(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.return_value = ["a/one"]
        catalog = make_catalog(transport, clock, test_logger)

        catalog.get_available_models()
        catalog.get_available_models(force_refresh=True)

        assert transport.list_models.call_count == 2

    def test_invalidate(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.return_value = ["a/one"]
        catalog = make_catalog(transport, clock, test_logger)

        catalog.get_available_models()
        catalog.invalidate()
        catalog.get_available_models()

        assert transport.list_models.call_count == 2

    def test_listing_deduplicated(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.return_value = ["a/one", "b/two", "a/one"]

        assert list(make_catalog(transport, clock, test_logger).get_available_models()) == ["a/one", "b/two"]


class TestFallback:

    def test_transport_error_returns_static_list(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.side_effect = requests.exceptions.ConnectionError("down")
        catalog = make_catalog(transport, clock, test_logger)

        result = catalog.get_available_models()

        assert result.source == "fallback"
        assert tuple(result) == STATIC_MODELS
        assert len(result) > 0

    def test_fallback_is_not_cached(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.side_effect = [requests.exceptions.Timeout("slow"), ["a/one"]]
        catalog = make_catalog(transport, clock, test_logger)

        assert catalog.get_available_models().source == "fallback"
        recovered = catalog.get_available_models()

        assert recovered.source == "remote"
        assert list(recovered) == ["a/one"]

    def test_empty_listing_returns_static_list(self, clock, test_logger):
        transport = MagicMock()
        transport.list_models.return_value = []

        assert make_catalog(transport, clock, test_logger).get_available_models().source == "fallback"

    def test_http_500_from_gateway(self, transport, fake_session, make_response, clock, test_logger):
        response = make_response(500, {"error": "boom"})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")
        fake_session.get.return_value = response

        result = make_catalog(transport, clock, test_logger).get_available_models()

        assert result.source == "fallback"
        assert "meta-llama/Llama-3.3-70B-Instruct" in result

    def test_static_list_has_no_duplicates(self):
        assert dedupe(STATIC_MODELS) == list(STATIC_MODELS)
