"""Generation service access: client, credential pool and resilient invoker."""

from studygen.llm.client import GenerationClient
from studygen.llm.credentials import CredentialPool, CredentialRecord, PoolStatus, revive_oldest
from studygen.llm.factory import GenerationProtocol, call_generation_service, create_client
from studygen.llm.invoker import ResilientInvoker, RetryPolicy, backoff_delay

__all__ = [
    "GenerationClient",
    "CredentialPool",
    "CredentialRecord",
    "PoolStatus",
    "revive_oldest",
    "GenerationProtocol",
    "call_generation_service",
    "create_client",
    "ResilientInvoker",
    "RetryPolicy",
    "backoff_delay",
]
