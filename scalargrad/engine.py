import logging
import numbers
from enum import Enum

import numpy as np

from scalargrad.errors import (
    DivisionByZero,
    GraphCycleError,
    ShapeMismatch,
    UnsupportedExponentType,
)

logger = logging.getLogger(__name__)


class Op(Enum):
    """
    The operation that produced a Value.

    This is the complete set of node kinds in a graph. Negation, subtraction
    and division are built from these (see Value.__neg__, __sub__, __truediv__),
    so every node's local derivative is one of five fixed rules.
    """

    LEAF = ''
    ADD = '+'
    MUL = '*'
    POW = '**'
    TANH = 'tanh'


class Value:
    """
    Wraps a single scalar and tracks the operations that produced it.

    The Value class is the node type of the autograd engine. It stores data and
    its gradient, and builds a computational graph by recording the operands
    (producers) and the operation of every Value derived from other Values.

    Example:
        >>> x = Value(2.0)
        >>> y = Value(3.0)
        >>> z = x * y + x
        >>> z.backward()  # Compute gradients
        >>> print(x.grad)  # dz/dx = y + 1 = 4.0
    """

    def __init__(self, data, _children=(), _op=Op.LEAF, name="", _exponent=None):
        """
        Initialize a Value object.

        Args:
            data: The numerical data (any 0-d number: int, float, numpy scalar)
            _children: Tuple of operand Values, in operand order (internal use)
            _op: Op that created this Value (internal)
            name: Optional name for debugging and visualization
            _exponent: Constant exponent, only set for Op.POW (internal)

        Raises:
            ShapeMismatch: if data is not a scalar
        """
        if np.ndim(data) != 0:
            raise ShapeMismatch(
                f"Value holds a single scalar, got data with shape {np.shape(data)}"
            )
        self.data = float(data)

        # Gradient of the backward root with respect to this value
        self.grad = 0.0

        self.name = name

        # Operands in positional order; `a * a` keeps both entries
        self._prev = tuple(_children)
        self._op = _op
        self._exponent = _exponent

    @property
    def value(self):
        """Alias of `data`."""
        return self.data

    @value.setter
    def value(self, v):
        self.data = float(v)

    @property
    def gradient(self):
        """Alias of `grad`."""
        return self.grad

    @gradient.setter
    def gradient(self, g):
        self.grad = float(g)

    @property
    def producers(self):
        """The distinct operands of this Value, in first-seen order."""
        return tuple(dict.fromkeys(self._prev))

    @property
    def op(self):
        return self._op

    @property
    def is_leaf(self):
        return self._op is Op.LEAF

    def __add__(self, other):
        """
        Addition: Value + Value or Value + number.

        Example:
            >>> a = Value(1.0)
            >>> b = Value(2.0)
            >>> c = a + b  # c.data = 3.0
        """
        other = _as_value(other)
        return Value(self.data + other.data, (self, other), Op.ADD)

    def __mul__(self, other):
        """
        Multiplication: Value * Value or Value * number.

        Example:
            >>> a = Value(3.0)
            >>> b = Value(4.0)
            >>> c = a * b  # c.data = 12.0
        """
        other = _as_value(other)
        return Value(self.data * other.data, (self, other), Op.MUL)

    def __pow__(self, other):
        """
        Power operation: raises Value to a constant real power.

        Example:
            >>> x = Value(3.0)
            >>> y = x ** 2  # y.data = 9.0

        Raises:
            UnsupportedExponentType: if the exponent is a Value, a bool or not a real number
            DivisionByZero: if a zero base is raised to a negative power
        """
        if isinstance(other, (Value, bool)) or not isinstance(other, numbers.Real):
            raise UnsupportedExponentType(
                f"Only constant int/float exponents are supported, got {type(other).__name__}"
            )
        if self.data == 0 and other < 0:
            raise DivisionByZero(f"0 cannot be raised to the negative power {other}")

        # numpy float64 semantics: a negative base with a fractional exponent gives nan
        out = Value(np.power(self.data, float(other)), (self,), Op.POW, _exponent=other)
        return out

    def tanh(self):
        """
        Hyperbolic tangent activation: squashes input to range (-1, 1).

        Example:
            >>> x = Value(0.0)
            >>> y = x.tanh()  # y.data = 0.0
        """
        return Value(np.tanh(self.data), (self,), Op.TANH)

    def _backward(self):
        """Add this Value's contribution into the gradients of its operands."""
        _BACKWARD_RULES[self._op](self)

    def backward(self, check_cycles=False):
        """
        Perform backpropagation: compute gradients for all Values in the graph.

        This method implements automatic differentiation using reverse-mode
        accumulation (backpropagation). It traverses the computational graph
        in reverse topological order and applies the chain rule.

        Leaf gradients accumulate across calls; call zero_grad() on the
        parameters between training steps. Gradients of derived Values are
        recomputed from scratch on every call.

        Args:
            check_cycles: Verify the graph is acyclic while ordering it (debugging aid)

        Example:
            >>> x = Value(2.0)
            >>> y = x * 3 + 1
            >>> y.backward()
            >>> print(x.grad)  # dy/dx = 3.0
        """
        topo = topological_order(self, check_cycles=check_cycles)

        for v in topo:
            if not v.is_leaf:
                v.grad = 0.0

        # Initialize gradient of output to 1 (dL/dL = 1)
        self.grad = 1.0

        # Traverse graph in reverse: apply chain rule to compute all gradients
        for v in reversed(topo):
            v._backward()

        logger.debug(f"[Backward] Propagated through {len(topo)} values")

    # Reverse and derived operations (use the basic operations defined above)

    def __neg__(self):
        """Negation: -x = -1 * x"""
        return self * -1

    def __radd__(self, other):
        """Right addition: other + self (when other is not a Value)"""
        return self + other

    def __sub__(self, other):
        """Subtraction: a - b = a + (-b)"""
        return self + (-other)

    def __rsub__(self, other):
        """Right subtraction: other - self"""
        return other + (-self)

    def __rmul__(self, other):
        """Right multiplication: other * self (when other is not a Value)"""
        return self * other

    def __truediv__(self, other):
        """Division: a / b = a * b^(-1)"""
        other = _as_value(other)
        if other.data == 0:
            raise DivisionByZero(f"Division of {self.data} by a zero-valued divisor")
        return self * other**-1

    def __rtruediv__(self, other):
        """Right division: other / self"""
        return _as_value(other) / self

    def __repr__(self):
        """Return a readable string representation of the Value."""
        name_str = f"'{self.name}' " if self.name else ""
        op_str = f" from {_op_label(self)}" if not self.is_leaf else ""
        return f"Value({name_str}data={self.data}, grad={self.grad}{op_str})"


def _as_value(x):
    return x if isinstance(x, Value) else Value(x)


def _op_label(v):
    if v._op is Op.POW:
        return f"**{v._exponent}"
    return v._op.value


# Local derivative rules, one per Op. Each reads out.grad and adds the
# scaled contribution into its operands' grad.

def _leaf_backward(out):
    pass


def _add_backward(out):
    # d(a+b)/da = 1, d(a+b)/db = 1
    for v in out._prev:
        v.grad += out.grad


def _mul_backward(out):
    # d(a*b)/da = b, d(a*b)/db = a
    a, b = out._prev
    a.grad += b.data * out.grad
    b.grad += a.data * out.grad


def _pow_backward(out):
    # d(x^k)/dx = k * x^(k-1)
    (a,) = out._prev
    k = out._exponent
    if k == 0:
        return
    a.grad += float(k * np.power(a.data, k - 1)) * out.grad


def _tanh_backward(out):
    # d(tanh(x))/dx = 1 - tanh(x)^2
    (a,) = out._prev
    a.grad += (1.0 - out.data**2) * out.grad


_BACKWARD_RULES = {
    Op.LEAF: _leaf_backward,
    Op.ADD: _add_backward,
    Op.MUL: _mul_backward,
    Op.POW: _pow_backward,
    Op.TANH: _tanh_backward,
}


def topological_order(root, check_cycles=False):
    """
    Order every Value reachable from root so that operands come before results.

    Depth-first, post-order, visiting operands in positional order, so the
    result is deterministic for a given graph. Each Value appears once even if
    it is reachable along several paths. The traversal keeps an explicit stack,
    so graph depth is not bounded by the interpreter's recursion limit.

    Args:
        root: The Value to start from
        check_cycles: If True, raise GraphCycleError when a Value is reached
            again while it is still on the current path

    Returns:
        list of Values, root last
    """
    topo = []
    visited = {root}
    on_path = {root}
    stack = [(root, iter(root._prev))]

    while stack:
        v, children = stack[-1]
        for child in children:
            if check_cycles and child in on_path:
                raise GraphCycleError(f"Cycle detected at {child!r}")
            if child not in visited:
                visited.add(child)
                on_path.add(child)
                stack.append((child, iter(child._prev)))
                break
        else:
            stack.pop()
            on_path.discard(v)
            topo.append(v)

    return topo


# Functional operation builders. Each accepts Values or plain numbers.

def add(a, b):
    return _as_value(a) + b


def multiply(a, b):
    return _as_value(a) * b


def negate(a):
    return -_as_value(a)


def subtract(a, b):
    return _as_value(a) - b


def power(a, k):
    return _as_value(a) ** k


def divide(a, b):
    return _as_value(a) / b


def tanh(a):
    return _as_value(a).tanh()


def backward(root, check_cycles=False):
    """Run backpropagation from root. See Value.backward."""
    root.backward(check_cycles=check_cycles)


def zero_grad(values):
    """
    Reset the gradient of every Value in `values` to zero.

    The engine never does this by itself, so several backward passes can be
    accumulated before an update. Call it between training steps.
    """
    for v in values:
        v.grad = 0.0
