"""
Generation client for OpenAI-compatible chat completions endpoints.

Performs exactly one HTTP request per call and translates every failure into
the package's error taxonomy. Retrying and credential rotation are the
invoker's job, not the client's.
"""

import logging
from typing import Optional

import requests

from studygen.errors import (
    AuthError,
    ErrorKind,
    InvalidResponseError,
    QuotaOrRateLimitError,
    TransportError,
    kind_for_message,
    kind_for_status,
)

logger = logging.getLogger(__name__)

_ERROR_TYPES = {
    ErrorKind.AUTH: AuthError,
    ErrorKind.QUOTA: QuotaOrRateLimitError,
    ErrorKind.TRANSPORT: TransportError,
}


class GenerationClient:
    """LLM client for OpenAI-compatible endpoints."""

    def __init__(
        self,
        endpoint_url: str,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 8192,
        timeout: float = 120.0,
    ):
        """
        Initialize the client.

        Args:
            endpoint_url: Full URL to the chat completions endpoint
            model: Model name sent with each request
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
        """
        self.endpoint_url = endpoint_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _payload(
        self,
        prompt: str,
        system_instruction: Optional[str],
        temperature: Optional[float],
        max_tokens: Optional[int] = None,
    ) -> dict:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        *,
        credential: str,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Call the generation service once.

        Args:
            prompt: The user prompt
            system_instruction: Optional system message
            credential: API key for this request
            temperature: Optional per-call temperature override

        Returns:
            The generated text, stripped

        Raises:
            TransportError: On timeouts, connection failures and 5xx responses
            QuotaOrRateLimitError: On 429 responses
            AuthError: On 401/403 responses, and on other 4xx responses whose
                body says the API key was rejected
            InvalidResponseError: On malformed or empty responses
            requests.HTTPError: On other client errors
        """
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }
        payload = self._payload(prompt, system_instruction, temperature)

        try:
            response = requests.post(
                self.endpoint_url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as e:
            raise TransportError(f"Generation request timed out after {self.timeout}s") from e
        except requests.ConnectionError as e:
            raise TransportError(f"Connection error: {e}") from e

        if response.status_code >= 400:
            kind = kind_for_status(response.status_code)
            detail = _error_detail(response)
            if kind is ErrorKind.UNKNOWN:
                # Some providers report a bad or exhausted key as a plain 400.
                kind = kind_for_message(detail) or kind
            error_type = _ERROR_TYPES.get(kind)
            message = f"HTTP {response.status_code}: {response.reason} {detail}".strip()
            if error_type is not None:
                raise error_type(message)
            response.raise_for_status()

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InvalidResponseError(f"Malformed response from generation service: {e}") from e

        if not isinstance(content, str) or not content.strip():
            raise InvalidResponseError("Empty response from generation service")

        return content.strip()

    def health_check(self, credential: str, timeout: float = 30.0) -> tuple[bool, str]:
        """
        Perform a quick health check on the endpoint.

        Sends a minimal prompt with a short timeout.

        Returns:
            Tuple of (is_healthy, message)
        """
        headers = {"Authorization": f"Bearer {credential}"}
        payload = self._payload("test", None, 0.0, max_tokens=1)

        try:
            logger.info(f"Performing health check on endpoint: {self.endpoint_url}")
            response = requests.post(self.endpoint_url, json=payload, headers=headers, timeout=timeout)
            response.raise_for_status()

            result = response.json()
            if result.get("choices"):
                elapsed = response.elapsed.total_seconds()
                logger.info(f"Endpoint health check passed ({elapsed:.2f}s)")
                return True, f"Endpoint healthy (responded in {elapsed:.2f}s)"
            error_msg = "Endpoint returned invalid response structure"
            logger.warning(error_msg)
            return False, error_msg

        except requests.Timeout:
            error_msg = f"Endpoint timed out after {timeout}s"
            logger.error(error_msg)
            return False, error_msg

        except requests.ConnectionError as e:
            error_msg = f"Connection failed: {e}"
            logger.error(error_msg)
            return False, error_msg

        except requests.HTTPError as e:
            error_msg = f"HTTP {e.response.status_code}: {e.response.reason}"
            logger.error(error_msg)
            return False, error_msg

        except ValueError as e:
            error_msg = f"Unreadable response: {e}"
            logger.error(error_msg)
            return False, error_msg


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, list) and body:
        body = body[0]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message", ""))[:200]
        if error:
            return str(error)[:200]
    return ""
