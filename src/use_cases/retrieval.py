"""Shared retriever call wrapper for the query use cases."""

from collections.abc import Awaitable
from typing import TypeVar

from src.domain.exceptions import KarmaEngineError, RetrievalFailure

T = TypeVar("T")


async def retrieve(step: str, awaitable: Awaitable[T]) -> T:
    """Await a retriever call, typing unexpected errors as RetrievalFailure.

    Engine errors pass through unchanged; anything else is wrapped with the
    original exception chained as ``__cause__``.

    Raises:
        RetrievalFailure: If the retriever raised an untyped exception
    """
    try:
        return await awaitable
    except KarmaEngineError:
        raise
    except Exception as exc:
        raise RetrievalFailure(f"{step} failed: {exc}") from exc
