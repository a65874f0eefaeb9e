"""
scalargrad: A minimal scalar autograd engine.

This package provides reverse-mode automatic differentiation over scalar
Values, and neurons, layers and MLPs built on top of it.
"""

from scalargrad.engine import (
    Op,
    Value,
    add,
    backward,
    divide,
    multiply,
    negate,
    power,
    subtract,
    tanh,
    topological_order,
    zero_grad,
)
from scalargrad import nn
from scalargrad.config import TrainConfig
from scalargrad.errors import (
    DivisionByZero,
    GraphCycleError,
    ScalarGradError,
    ShapeMismatch,
    UnsupportedExponentType,
)
from scalargrad.utils import draw_dot

__version__ = "0.1.0"
__all__ = [
    "Value",
    "Op",
    "add",
    "multiply",
    "subtract",
    "negate",
    "power",
    "divide",
    "tanh",
    "backward",
    "topological_order",
    "zero_grad",
    "nn",
    "TrainConfig",
    "draw_dot",
    "ScalarGradError",
    "ShapeMismatch",
    "UnsupportedExponentType",
    "DivisionByZero",
    "GraphCycleError",
]
