"""
Training configuration.

Everything fit() needs to know is passed in through one TrainConfig value;
there is no module-level training state. fit() itself does not create
models; `seed` is for the caller, who builds the model with make_rng().
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class TrainConfig:
    """Hyperparameters for scalargrad.train.fit."""

    # Plain gradient descent
    learning_rate: float = 0.05
    steps: int = 100

    # Log a progress line every N steps (0 disables progress lines)
    log_every: int = 10

    # Caller-side only: seeds make_rng() for model initialization; fit() ignores it
    seed: Optional[int] = None

    # Verify the graph is acyclic on every backward pass (slow; for debugging)
    check_cycles: bool = False

    def __post_init__(self):
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.steps < 0:
            raise ValueError(f"steps must be non-negative, got {self.steps}")
        if self.log_every < 0:
            raise ValueError(f"log_every must be non-negative, got {self.log_every}")

    def make_rng(self):
        """numpy Generator seeded with `seed` (fresh entropy when seed is None)."""
        return np.random.default_rng(self.seed)
