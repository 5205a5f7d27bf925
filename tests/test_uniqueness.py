"""Tests for resolve_unique()."""

import itertools

import pytest

from keyhub_seed.exceptions import UniquenessExhaustedError
from keyhub_seed.uniqueness import MAX_UNIQUE_ATTEMPTS, resolve_unique


class TestResolveUnique:
    """Tests for resolve_unique()."""

    def test_returns_first_free_candidate(self) -> None:
        """Test taken candidates are skipped."""
        candidates = iter(["a", "b", "c", "d"])
        taken = {"a", "b"}

        assert resolve_unique(lambda: next(candidates), taken.__contains__) == "c"

    def test_free_first_candidate_needs_one_call(self) -> None:
        """Test generator is called once when nothing collides."""
        counter = itertools.count()

        value = resolve_unique(lambda: next(counter), lambda v: False)

        assert value == 0
        assert next(counter) == 1

    def test_exhausted_after_max_attempts(self) -> None:
        """Test error after exactly max_attempts candidates."""
        calls = []

        def generate() -> str:
            calls.append(1)
            return "same"

        with pytest.raises(UniquenessExhaustedError) as exc_info:
            resolve_unique(generate, lambda v: True, max_attempts=7, field="email")

        assert len(calls) == 7
        assert exc_info.value.attempts == 7
        assert exc_info.value.field == "email"
        assert "email" in str(exc_info.value)

    def test_default_budget(self) -> None:
        """Test default collision budget is 50 attempts."""
        with pytest.raises(UniquenessExhaustedError) as exc_info:
            resolve_unique(lambda: 1, lambda v: True)

        assert MAX_UNIQUE_ATTEMPTS == 50
        assert exc_info.value.attempts == 50
