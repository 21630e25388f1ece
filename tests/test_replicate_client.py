"""Tests for ReplicateClient — request shape, cache-busting, error mapping.

No network: ``requests.Session`` is replaced by a MagicMock.
"""

from urllib.parse import parse_qs, unquote, urlsplit

import pytest
import requests

from lumina.config import StudioConfig
from lumina.core.errors import MalformedResponseError, MissingCredentialError, ServiceError
from lumina.services.replicate_client import ReplicateClient, cache_bust_url
from fakes import POLL_URL, make_response, prediction


class TestCacheBustUrl:

    def test_adds_query(self):
        assert cache_bust_url("https://x/p", 123, "ab") == "https://x/p?t=123&nonce=ab"

    def test_extends_existing_query(self):
        assert cache_bust_url("https://x/p?a=1", 5, "cd") == "https://x/p?a=1&t=5&nonce=cd"


class TestCreatePrediction:

    def test_posts_to_model_endpoint(self, config, session):
        session.post.return_value = make_response(201, prediction("starting"))
        client = ReplicateClient(config, session=session)
        result = client.create_prediction({"input": {"prompt": "x"}})

        assert result.status == "starting"
        assert result.urls.get == POLL_URL
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.replicate.com/v1/models/bria/fibo/predictions"
        assert kwargs["json"] == {"input": {"prompt": "x"}}
        assert kwargs["headers"]["Authorization"] == "Token r8_test"

    def test_missing_token_raises_before_network(self, session):
        client = ReplicateClient(StudioConfig(), session=session)
        with pytest.raises(MissingCredentialError):
            client.create_prediction({})
        session.post.assert_not_called()

    def test_http_error_surfaces_status_and_body(self, config, session):
        session.post.return_value = make_response(422, text="Invalid input: " + "x" * 500)
        client = ReplicateClient(config, session=session)
        with pytest.raises(ServiceError) as exc_info:
            client.create_prediction({})
        err = exc_info.value
        assert err.status_code == 422
        assert str(err).startswith("Replicate API Error (422): Invalid input: ")
        assert len(str(err)) < 260
        assert err.body.startswith("Invalid input")

    def test_network_error(self, config, session):
        session.post.side_effect = requests.ConnectionError("refused")
        client = ReplicateClient(config, session=session)
        with pytest.raises(ServiceError, match="refused"):
            client.create_prediction({})

    def test_invalid_json(self, config, session):
        session.post.return_value = make_response(200, ValueError("no json"))
        client = ReplicateClient(config, session=session)
        with pytest.raises(MalformedResponseError):
            client.create_prediction({})

    def test_missing_status(self, config, session):
        session.post.return_value = make_response(200, {"id": "x"})
        client = ReplicateClient(config, session=session)
        with pytest.raises(MalformedResponseError):
            client.create_prediction({})

    def test_proxy_prefix_encodes_target(self, session):
        cfg = StudioConfig(replicate_api_token="t", proxy_url="https://corsproxy.io/?")
        session.post.return_value = make_response(201, prediction("starting"))
        ReplicateClient(cfg, session=session).create_prediction({})
        url = session.post.call_args[0][0]
        assert url.startswith("https://corsproxy.io/?https%3A%2F%2Fapi.replicate.com")
        assert unquote(url[len("https://corsproxy.io/?"):]).endswith("/predictions")


class TestGetPrediction:

    def test_cache_busting_params_and_headers(self, config, session):
        session.get.return_value = make_response(200, prediction("processing"))
        client = ReplicateClient(
            config, session=session, clock=lambda: 1700000000.5, nonce_factory=lambda: "n0nce",
        )
        client.get_prediction(POLL_URL)

        args, kwargs = session.get.call_args
        query = parse_qs(urlsplit(args[0]).query)
        assert query["t"] == ["1700000000500"]
        assert query["nonce"] == ["n0nce"]
        assert "no-store" in kwargs["headers"]["Cache-Control"]
        assert kwargs["headers"]["Pragma"] == "no-cache"

    def test_each_poll_gets_distinct_url(self, config, session):
        session.get.return_value = make_response(200, prediction("processing"))
        client = ReplicateClient(config, session=session, clock=lambda: 1.0)
        for _ in range(5):
            client.get_prediction(POLL_URL)
        urls = [c.args[0] for c in session.get.call_args_list]
        assert len(set(urls)) == 5

    def test_non_success_status(self, config, session):
        session.get.return_value = make_response(502, text="Bad gateway")
        client = ReplicateClient(config, session=session)
        with pytest.raises(ServiceError) as exc_info:
            client.get_prediction(POLL_URL)
        assert exc_info.value.status_code == 502

    def test_list_output_normalized(self, config, session):
        session.get.return_value = make_response(
            200, prediction("succeeded", output=["https://a/1.png", "https://a/2.png"]),
        )
        result = ReplicateClient(config, session=session).get_prediction(POLL_URL)
        assert result.first_output() == "https://a/1.png"

    def test_string_output(self, config, session):
        session.get.return_value = make_response(200, prediction("succeeded", output="https://a/1.png"))
        result = ReplicateClient(config, session=session).get_prediction(POLL_URL)
        assert result.first_output() == "https://a/1.png"


class TestCancelPrediction:

    def test_cancel_posts(self, config, session):
        session.post.return_value = make_response(200, prediction("canceled"))
        ReplicateClient(config, session=session).cancel_prediction(POLL_URL + "/cancel")
        assert session.post.call_args[0][0] == POLL_URL + "/cancel"

    def test_cancel_failure(self, config, session):
        session.post.return_value = make_response(404, text="gone")
        with pytest.raises(ServiceError):
            ReplicateClient(config, session=session).cancel_prediction(POLL_URL + "/cancel")
