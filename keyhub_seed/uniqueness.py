"""Collision-free value generation."""

from collections.abc import Callable
from typing import TypeVar

from keyhub_seed.exceptions import UniquenessExhaustedError

V = TypeVar("V")

MAX_UNIQUE_ATTEMPTS = 50


def resolve_unique(
    generate: Callable[[], V],
    exists: Callable[[V], bool],
    max_attempts: int = MAX_UNIQUE_ATTEMPTS,
    field: str | None = None,
) -> V:
    """
    Generate values until one is not taken.

    Args:
        generate: Produces a candidate value
        exists: Read-only check, True when the candidate is already taken
        max_attempts: Number of candidates to try
        field: Field name used in the error message

    Returns:
        First candidate for which ``exists`` returned False

    Raises:
        UniquenessExhaustedError: If every candidate collided

    Example:
        >>> taken = {"a", "b"}
        >>> resolve_unique(lambda: "c", taken.__contains__)
        'c'
    """
    for _ in range(max_attempts):
        value = generate()
        if not exists(value):
            return value

    raise UniquenessExhaustedError(max_attempts, field)
