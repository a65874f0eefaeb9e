"""
scalargrad quickstart: build an expression, backpropagate, train a tiny MLP.

    python examples/quickstart.py
"""

import logging

from scalargrad import TrainConfig, Value
from scalargrad.nn import MLP
from scalargrad.train import fit


# -- Step 1: An expression and its gradients ---------------------------------
# a feeds the result along two paths; backward() sums both contributions.

a = Value(3.0, name='a')
b = a * a
c = b + a
c.backward()
print(f"c = {c.data}, dc/da = {a.grad}")  # 12.0, 7.0


# -- Step 2: Train a small network --------------------------------------------
# The model, data and config are all explicit; fit() holds no global state.

logging.basicConfig(level=logging.INFO, format="%(name)s %(message)s")

xs = [
    [2.0, 3.0, -1.0],
    [3.0, -1.0, 0.5],
    [0.5, 1.0, 1.0],
    [1.0, 1.0, -1.0],
]
ys = [1.0, -1.0, -1.0, 1.0]

config = TrainConfig(learning_rate=0.1, steps=100, log_every=20, seed=0)
model = MLP(3, [4, 4, 1], rng=config.make_rng())
losses = fit(model, xs, ys, config)

print("predictions:", [round(model(x)[0].data, 3) for x in xs])
print(f"parameters: {len(model.parameters())}, final loss: {losses[-1]:.6f}")
