import logging
import random
from collections import Counter

import pytest

from quizcore import sampler
from tests.conftest import make_question


def test_shuffle_keeps_elements_and_does_not_mutate() -> None:
    items = list(range(30))
    original = list(items)
    shuffled = sampler.shuffle(items, random.Random(7))
    assert items == original
    assert Counter(shuffled) == Counter(original)
    assert shuffled is not items


@pytest.mark.parametrize("items", [[], ["only"]])
def test_shuffle_trivial_sequences(items: list[str]) -> None:
    assert sampler.shuffle(items) == items


def test_shuffle_covers_all_permutations() -> None:
    rng = random.Random(1234)
    counts = Counter(tuple(sampler.shuffle("abc", rng)) for _ in range(6000))
    assert len(counts) == 6
    # Each of the 6 orders should get roughly 1000 hits.
    assert all(700 < count < 1300 for count in counts.values())


def test_sample_clamps_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    questions = [make_question(i) for i in range(1, 4)]
    with caplog.at_level(logging.WARNING, logger="quizcore.sampler"):
        picked = sampler.sample(questions, 10)
    assert len(picked) == 3
    assert {q.id for q in picked} == {1, 2, 3}
    assert "only 3 available" in caplog.text


def test_sample_returns_distinct_subset() -> None:
    questions = [make_question(i) for i in range(1, 101)]
    picked = sampler.sample(questions, 70, random.Random(3))
    assert len(picked) == 70
    assert len({q.id for q in picked}) == 70


@pytest.mark.parametrize("count", [0, -5])
def test_sample_non_positive_count(count: int) -> None:
    assert sampler.sample([make_question(1)], count) == []


def test_sample_empty_input() -> None:
    assert sampler.sample([], 5) == []


def test_sample_excluding() -> None:
    questions = [make_question(i) for i in range(1, 6)]
    picked = sampler.sample_excluding(questions, [1, 2], 10)
    assert sorted(q.id for q in picked) == [3, 4, 5]
    assert sampler.sample_excluding(questions, [1, 2, 3, 4, 5], 2) == []


def test_sample_excluding_dicts() -> None:
    questions = [{"id": i} for i in range(1, 4)]
    picked = sampler.sample_excluding(questions, {2}, 5)
    assert sorted(item["id"] for item in picked) == [1, 3]


def test_seeded_shuffle_is_reproducible() -> None:
    items = list(range(20))
    first = sampler.seeded_shuffle(items, "abc")
    second = sampler.seeded_shuffle(items, "abc")
    assert first == second
    assert sorted(first) == items
    assert items == list(range(20))


def test_seeded_shuffle_depends_on_seed() -> None:
    items = list(range(10))
    assert sampler.seeded_shuffle(items, "abc") != sampler.seeded_shuffle(items, "abd")


def test_seeded_random_range() -> None:
    next_value = sampler.seeded_random("seed")
    values = [next_value() for _ in range(500)]
    assert all(0 <= value < 1 for value in values)


def test_shuffle_options_keeps_correct_text() -> None:
    rng = random.Random(99)
    for correct in "ABCD":
        question = make_question(1, correct)
        for _ in range(20):
            shuffled = sampler.shuffle_options(question, rng)
            assert shuffled.options[shuffled.correct_answer] == question.options[correct]
            assert sorted(shuffled.options.values()) == sorted(question.options.values())
            assert set(shuffled.options) == set("ABCD")
    assert question.correct_answer == "D"
