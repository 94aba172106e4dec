import random
from typing import Optional, TypeVar

from .types import RandomSource


T = TypeVar("T")

_MODULUS = 0x80000000
_MULTIPLIER = 1103515245
_INCREMENT = 12345


def default_random() -> RandomSource:
    return random.random


def seeded_random(seed: str) -> RandomSource:
    """Deterministic source of floats in [0, 1) for a string seed such as a date key."""
    state = 0
    for char in seed:
        state = (state * 31 + ord(char)) & 0xFFFFFFFF

    def next_float() -> float:
        nonlocal state
        state = (_MULTIPLIER * state + _INCREMENT) % _MODULUS
        return state / _MODULUS

    return next_float


def resolve_random(rng: Optional[RandomSource]) -> RandomSource:
    return rng if rng is not None else default_random()


def random_index(rng: RandomSource, length: int) -> int:
    return min(int(rng() * length), length - 1)


def shuffled(values: list[T], rng: RandomSource) -> list[T]:
    result = list(values)
    for i in range(len(result) - 1, 0, -1):
        j = random_index(rng, i + 1)
        result[i], result[j] = result[j], result[i]
    return result
