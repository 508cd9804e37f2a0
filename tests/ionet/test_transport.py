import pytest
import requests

from multillm.errors import GatewayHTTPError, MalformedResponseError
from multillm.ionet import IONetTransport

GATEWAY_URL = "https://gateway.test/api/v1"


class TestPostChat:

    def test_posts_payload_with_bearer_auth(self, transport, fake_session, make_response):
        response = make_response(200, {"choices": []})
        fake_session.post.return_value = response
        payload = {"model": "m", "messages": [], "stream": True}

        assert transport.post_chat(payload, timeout=12) is response

        args, kwargs = fake_session.post.call_args
        assert args[0] == f"{GATEWAY_URL}/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["json"] == payload
        assert kwargs["stream"] is True
        assert kwargs["timeout"] == 12

    def test_non_200_raises_categorised_error(self, transport, fake_session, make_response):
        response = make_response(403, {"error": {"message": "no access"}})
        fake_session.post.return_value = response

        with pytest.raises(GatewayHTTPError) as exc_info:
            transport.post_chat({"model": "m", "stream": False}, timeout=5)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "no access"
        response.close.assert_called_once()

    def test_non_json_error_body(self, transport, fake_session, make_response):
        fake_session.post.return_value = make_response(502, None, text="<html>bad gateway</html>")

        with pytest.raises(GatewayHTTPError) as exc_info:
            transport.post_chat({"model": "m", "stream": False}, timeout=5)

        assert exc_info.value.category == "Bad Gateway"

    def test_transport_errors_propagate(self, transport, fake_session):
        fake_session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(requests.exceptions.ConnectionError):
            transport.post_chat({"model": "m", "stream": False}, timeout=5)


class TestListModels:

    def test_data_envelope(self, transport, fake_session, make_response):
        fake_session.get.return_value = make_response(200, {"data": [{"id": "a/one"}, {"id": "b/two"}]})

        assert transport.list_models() == ["a/one", "b/two"]
        args, _ = fake_session.get.call_args
        assert args[0] == f"{GATEWAY_URL}/models"

    def test_bare_list_with_strings(self, transport, fake_session, make_response):
        fake_session.get.return_value = make_response(200, [{"id": "a/one"}, "b/two", {"name": "skipped"}])

        assert transport.list_models() == ["a/one", "b/two"]

    def test_malformed_body(self, transport, fake_session, make_response):
        fake_session.get.return_value = make_response(200, {"models": "nope"})

        with pytest.raises(MalformedResponseError):
            transport.list_models()

    def test_http_error(self, transport, fake_session, make_response):
        response = make_response(500, {"error": "boom"})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")
        fake_session.get.return_value = response

        with pytest.raises(requests.exceptions.HTTPError):
            transport.list_models()
        response.close.assert_called_once()


def test_base_url_trailing_slash():
    transport = IONetTransport("k", "https://gateway.test/api/v1/")
    assert transport.chat_url == "https://gateway.test/api/v1/chat/completions"
    assert transport.models_url == "https://gateway.test/api/v1/models"
