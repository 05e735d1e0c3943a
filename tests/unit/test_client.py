"""Unit tests for the generation client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from studygen.errors import AuthError, InvalidResponseError, QuotaOrRateLimitError, TransportError
from studygen.llm.client import GenerationClient
from studygen.llm.credentials import CredentialPool
from studygen.llm.invoker import ResilientInvoker

ENDPOINT = "https://llm.example.com/v1/chat/completions"


def make_response(status_code=200, body=None, reason="OK", text=""):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def client():
    return GenerationClient(endpoint_url=ENDPOINT, model="test-model", temperature=0.3, max_tokens=256, timeout=15.0)


@pytest.mark.unit
class TestGenerate:
    """Tests for GenerationClient.generate."""

    @patch("studygen.llm.client.requests.post")
    def test_successful_call(self, mock_post, client):
        """Test the request shape and the stripped result."""
        mock_post.return_value = make_response(body=completion("  Generated answer \n"))

        result = client.generate("Explain osmosis", credential="key-abc")

        assert result == "Generated answer"
        mock_post.assert_called_once_with(
            ENDPOINT,
            json={
                "model": "test-model",
                "messages": [{"role": "user", "content": "Explain osmosis"}],
                "temperature": 0.3,
                "max_tokens": 256,
            },
            headers={"Authorization": "Bearer key-abc", "Content-Type": "application/json"},
            timeout=15.0,
        )

    @patch("studygen.llm.client.requests.post")
    def test_system_instruction_and_temperature(self, mock_post, client):
        """The system message goes first and the temperature can be overridden."""
        mock_post.return_value = make_response(body=completion("ok"))

        client.generate("Prompt", "You are a tutor.", credential="key", temperature=0.0)

        payload = mock_post.call_args.kwargs["json"]
        assert payload["messages"][0] == {"role": "system", "content": "You are a tutor."}
        assert payload["messages"][1]["role"] == "user"
        assert payload["temperature"] == 0.0

    @patch("studygen.llm.client.requests.post")
    def test_rate_limit(self, mock_post, client):
        """429 becomes a quota error carrying the provider's message."""
        mock_post.return_value = make_response(
            429,
            body=[{"error": {"code": 429, "message": "Resource has been exhausted"}}],
            reason="Too Many Requests",
        )

        with pytest.raises(QuotaOrRateLimitError, match="HTTP 429: Too Many Requests Resource has been exhausted"):
            client.generate("Prompt", credential="key")

    @pytest.mark.parametrize("status", [401, 403])
    @patch("studygen.llm.client.requests.post")
    def test_auth_failure(self, mock_post, status, client):
        mock_post.return_value = make_response(status, body={"error": "API key not valid"}, reason="Unauthorized")

        with pytest.raises(AuthError, match="API key not valid"):
            client.generate("Prompt", credential="bad-key")

    @patch("studygen.llm.client.requests.post")
    def test_server_error(self, mock_post, client):
        mock_post.return_value = make_response(503, body=ValueError("no json"), reason="Service Unavailable", text="upstream down")

        with pytest.raises(TransportError, match="HTTP 503: Service Unavailable upstream down"):
            client.generate("Prompt", credential="key")

    @patch("studygen.llm.client.requests.post")
    def test_bad_request_naming_api_key_is_auth_failure(self, mock_post, client):
        """Gemini rejects an invalid key with a 400, not a 401."""
        mock_post.return_value = make_response(
            400,
            body={"error": {"code": 400, "message": "API key not valid. Please pass a valid API key."}},
            reason="Bad Request",
        )

        with pytest.raises(AuthError, match="HTTP 400: Bad Request API key not valid"):
            client.generate("Prompt", credential="bad-key")

    @patch("studygen.llm.client.requests.post")
    def test_invalid_key_rotates_to_next_credential(self, mock_post, client, clock):
        """Through the invoker, a 400 invalid-key response moves on to the next key."""
        pool = CredentialPool(["bad-key", "good-key"], clock=clock)
        invoker = ResilientInvoker(pool, sleep=lambda seconds, event: False)
        mock_post.side_effect = [
            make_response(400, body={"error": {"message": "API key not valid."}}, reason="Bad Request"),
            make_response(body=completion("Generated")),
        ]

        result = invoker.invoke(lambda credential: client.generate("Prompt", credential=credential))

        assert result == "Generated"
        headers = [call.kwargs["headers"]["Authorization"] for call in mock_post.call_args_list]
        assert headers == ["Bearer bad-key", "Bearer good-key"]
        assert pool.status().blocked == 1

    @patch("studygen.llm.client.requests.post")
    def test_other_client_error_raises_http_error(self, mock_post, client):
        """Unmapped 4xx responses fall through to raise_for_status."""
        response = make_response(400, body={"error": {"message": "bad request"}}, reason="Bad Request")
        response.raise_for_status.side_effect = requests.HTTPError("400 Client Error", response=response)
        mock_post.return_value = response

        with pytest.raises(requests.HTTPError):
            client.generate("Prompt", credential="key")

    @patch("studygen.llm.client.requests.post")
    def test_timeout(self, mock_post, client):
        mock_post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportError, match="timed out after 15.0s"):
            client.generate("Prompt", credential="key")

    @patch("studygen.llm.client.requests.post")
    def test_connection_error(self, mock_post, client):
        mock_post.side_effect = requests.ConnectionError("Connection refused")

        with pytest.raises(TransportError, match="Connection error"):
            client.generate("Prompt", credential="key")

    @pytest.mark.parametrize(
        "body",
        [ValueError("Expecting value"), {"choices": []}, {"unexpected": True}, {"choices": [{"message": {}}]}],
    )
    @patch("studygen.llm.client.requests.post")
    def test_malformed_response(self, mock_post, body, client):
        mock_post.return_value = make_response(body=body)

        with pytest.raises(InvalidResponseError, match="Malformed"):
            client.generate("Prompt", credential="key")

    @pytest.mark.parametrize("content", ["", "   \n", None])
    @patch("studygen.llm.client.requests.post")
    def test_empty_response(self, mock_post, content, client):
        mock_post.return_value = make_response(body=completion(content))

        with pytest.raises(InvalidResponseError, match="Empty response"):
            client.generate("Prompt", credential="key")


@pytest.mark.unit
class TestHealthCheck:
    """Tests for GenerationClient.health_check."""

    @patch("studygen.llm.client.requests.post")
    def test_healthy(self, mock_post, client):
        response = make_response(body=completion("x"))
        response.elapsed.total_seconds.return_value = 0.42
        mock_post.return_value = response

        healthy, message = client.health_check("key")

        assert healthy is True
        assert "0.42s" in message
        assert mock_post.call_args.kwargs["json"]["max_tokens"] == 1

    @patch("studygen.llm.client.requests.post")
    def test_invalid_structure(self, mock_post, client):
        mock_post.return_value = make_response(body={"choices": []})

        healthy, message = client.health_check("key")

        assert healthy is False
        assert "invalid response structure" in message

    @patch("studygen.llm.client.requests.post")
    def test_timeout(self, mock_post, client):
        mock_post.side_effect = requests.Timeout()

        healthy, message = client.health_check("key", timeout=5.0)

        assert healthy is False
        assert "timed out after 5.0s" in message

    @patch("studygen.llm.client.requests.post")
    def test_http_error(self, mock_post, client):
        response = make_response(401, reason="Unauthorized")
        response.raise_for_status.side_effect = requests.HTTPError("401", response=response)
        mock_post.return_value = response

        healthy, message = client.health_check("bad-key")

        assert healthy is False
        assert message == "HTTP 401: Unauthorized"
