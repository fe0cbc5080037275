"""Shuffling and sampling of questions and their options."""
from __future__ import annotations

import dataclasses
import logging
import random
from typing import Any, Callable, Iterable, Sequence, TypeVar

from quizcore.models import Question

log = logging.getLogger(__name__)

T = TypeVar("T")

_LCG_MULTIPLIER = 9301
_LCG_INCREMENT = 49297
_LCG_MODULUS = 233280


def _fisher_yates(items: list[T], next_index: Callable[[int], int]) -> list[T]:
    for i in range(len(items) - 1, 0, -1):
        j = next_index(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def shuffle(sequence: Iterable[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy; the input is left untouched."""
    source = rng or random
    return _fisher_yates(list(sequence), source.randrange)


def sample(
    sequence: Sequence[T], count: int, rng: random.Random | None = None
) -> list[T]:
    """Pick ``count`` distinct elements at random, clamped to what is available."""
    if not sequence:
        log.warning("Cannot sample from an empty question set")
        return []
    if count <= 0:
        log.warning("Requested %d questions; returning none", count)
        return []
    if count > len(sequence):
        log.warning(
            "Requested %d questions but only %d available", count, len(sequence)
        )
        count = len(sequence)
    return shuffle(sequence, rng)[:count]


def _item_id(item: Any) -> Any:
    if isinstance(item, dict):
        return item.get("id")
    return getattr(item, "id", None)


def sample_excluding(
    sequence: Sequence[T],
    exclude_ids: Iterable[Any],
    count: int,
    rng: random.Random | None = None,
) -> list[T]:
    """Sample from the elements whose id is not in ``exclude_ids``."""
    excluded = set(exclude_ids)
    available = [item for item in sequence if _item_id(item) not in excluded]
    if not available:
        log.warning("No questions left after excluding %d ids", len(excluded))
        return []
    return sample(available, count, rng)


def _seed_hash(seed: str) -> int:
    value = 0
    for char in seed:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    return value


def seeded_random(seed: str) -> Callable[[], float]:
    """Linear congruential generator in [0, 1) seeded from a string hash."""
    state = _seed_hash(seed) % _LCG_MODULUS

    def next_value() -> float:
        nonlocal state
        state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        return state / _LCG_MODULUS

    return next_value


def seeded_shuffle(sequence: Iterable[T], seed: str) -> list[T]:
    """Shuffle reproducibly: the same seed and input give the same order."""
    next_value = seeded_random(seed)
    return _fisher_yates(list(sequence), lambda bound: int(next_value() * bound))


def shuffle_options(question: Question, rng: random.Random | None = None) -> Question:
    """
    Permute the option texts of a question among its option keys.
    The correct answer key follows its text to the new position.
    """
    keys = sorted(question.options)
    new_keys = shuffle(keys, rng)
    mapping = dict(zip(keys, new_keys))
    options = {mapping[old]: question.options[old] for old in keys}
    return dataclasses.replace(
        question,
        options={key: options[key] for key in sorted(options)},
        correct_answer=mapping.get(question.correct_answer, question.correct_answer),
    )
