"""
Loss, parameter update and a small training loop.

The loop owns nothing: the model, the data and the configuration are passed
in, and the only state it changes is the data and grad of the model's
parameters.
"""

import logging

import numpy as np

from scalargrad.config import TrainConfig
from scalargrad.engine import Value, zero_grad
from scalargrad.errors import ShapeMismatch

logger = logging.getLogger(__name__)


def mse_loss(outputs, targets):
    """
    Mean squared error over samples.

    Each sample contributes the sum of squared differences between its output
    Values and its target, which is either a number (one output) or a
    sequence of numbers/Values of the same width.

    Args:
        outputs: list of per-sample output lists, as returned by a Layer or MLP
        targets: list of per-sample targets

    Returns:
        Scalar loss Value
    """
    if len(outputs) != len(targets):
        raise ShapeMismatch(f"Got {len(outputs)} outputs for {len(targets)} targets")
    if not outputs:
        raise ShapeMismatch("Cannot compute a loss over zero samples")

    total = Value(0.0)
    for out, target in zip(outputs, targets):
        if np.ndim(target) == 0:
            target = [target]
        if len(out) != len(target):
            raise ShapeMismatch(f"Output width {len(out)} does not match target width {len(target)}")
        for o, t in zip(out, target):
            total = total + (o - t) ** 2

    return total / len(outputs)


def sgd_step(parameters, learning_rate):
    """Gradient descent update: p.data -= learning_rate * p.grad for every parameter."""
    for p in parameters:
        p.data -= learning_rate * p.grad


def fit(model, xs, ys, config=None):
    """
    Train `model` on (xs, ys) with full-batch gradient descent.

    Each step rebuilds the forward graph from the current parameter values,
    zeroes the parameter gradients, backpropagates the MSE loss and applies
    one sgd_step.

    Args:
        model: Module whose __call__ maps an input sequence to a list of Values
        xs: list of input sequences
        ys: list of targets (see mse_loss)
        config: TrainConfig (defaults are used when None)

    Returns:
        list of float losses, one per step
    """
    config = config or TrainConfig()
    params = model.parameters()
    losses = []

    for step in range(config.steps):
        outputs = [model(x) for x in xs]
        loss = mse_loss(outputs, ys)
        losses.append(loss.data)

        zero_grad(params)
        loss.backward(check_cycles=config.check_cycles)
        sgd_step(params, config.learning_rate)

        if config.log_every and step % config.log_every == 0:
            logger.info(f"[Train] step={step} loss={loss.data:.6f}")

    if losses:
        logger.info(
            f"[Train] Finished: {len(losses)} steps, {len(params)} parameters, "
            f"loss {losses[0]:.6f} -> {losses[-1]:.6f}"
        )
    else:
        logger.info("[Train] No steps configured, parameters unchanged")

    return losses
