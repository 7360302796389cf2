import logging
import math
import random
from typing import Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

class SeededRandom:
    """The engine's single source of randomness.

    Every draw is a pure function of the seed and call order, so the same
    instance must be threaded to every consumer; never create a second one
    for the same run.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)
        logger.debug("Random source initialized with seed %d", seed)

    def reseed(self, seed: int):
        self.seed = seed
        self._rng.seed(seed)

    def random(self) -> float:
        """Uniform draw in [0, 1)."""
        return self._rng.random()

    def uniform(self, low: float, high: float) -> float:
        return low + self.random() * (high - low)

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high)."""
        return math.floor(self.uniform(low, high))

    def bernoulli(self, probability: float = 0.5) -> bool:
        return self.random() < probability

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from empty sequence")
        return items[self.randint(0, len(items))]

    def weighted_choice(self, choices: Sequence[T], weights: Sequence[float]) -> T:
        if len(choices) != len(weights):
            raise ValueError("Choices and weights must have the same length")
        if not choices:
            raise ValueError("Cannot choose from empty sequence")

        remaining = self.random() * math.fsum(weights)
        for item, weight in zip(choices, weights):
            remaining -= weight
            if remaining <= 0:
                return item
        # floating point rounding can leave a sliver of weight unassigned
        return choices[-1]

    def normal(self, mean: float = 0.0, std_dev: float = 1.0) -> float:
        # Box-Muller; 1 - u keeps the log argument in (0, 1]
        u1 = 1.0 - self.random()
        u2 = self.random()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * std_dev + mean

    def exponential(self, lam: float) -> float:
        return -math.log(1.0 - self.random()) / lam

    def poisson(self, lam: float) -> int:
        if lam < 30:
            limit = math.exp(-lam)
            k = 0
            p = 1.0
            while True:
                k += 1
                p *= self.random()
                if p <= limit:
                    return k - 1
        # half-up rounding, not round()'s banker's rounding
        return max(0, math.floor(self.normal(lam, math.sqrt(lam)) + 0.5))
