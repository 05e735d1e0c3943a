"""
Factory and entry point for generation calls.

create_client() builds a client from configuration; call_generation_service()
is the resilient, rotating wrapper the rest of the package uses.
"""

from typing import Optional, Protocol


class GenerationProtocol(Protocol):
    """Protocol that all generation clients must implement."""

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        *,
        credential: str,
        temperature: Optional[float] = None,
    ) -> str:
        """Call the service once with the given credential and return the text."""
        ...


def create_client(temperature: float | None = None) -> GenerationProtocol:
    """
    Create a generation client based on configuration settings.

    Args:
        temperature: Optional temperature override. If None, uses settings.generation_temperature

    Returns:
        Client that implements GenerationProtocol
    """
    from studygen.config import settings
    from studygen.llm.client import GenerationClient

    temp = temperature if temperature is not None else settings.generation_temperature

    return GenerationClient(
        endpoint_url=settings.generation_endpoint_url,
        model=settings.generation_model,
        temperature=temp,
        max_tokens=settings.generation_max_tokens,
        timeout=settings.request_timeout,
    )


def call_generation_service(
    prompt: str,
    system_instruction: Optional[str] = None,
    temperature: Optional[float] = None,
) -> str:
    """
    Generate text with retry and credential rotation.

    Args:
        prompt: The user prompt
        system_instruction: Optional system message
        temperature: Optional per-call temperature override

    Returns:
        Generated text

    Raises:
        The last generation error once the attempt ceiling is reached, or
        the first non-retryable one.
    """
    from studygen.services import get_generation_client, get_invoker

    client = get_generation_client()
    return get_invoker().invoke(
        lambda credential: client.generate(
            prompt,
            system_instruction,
            credential=credential,
            temperature=temperature,
        )
    )
