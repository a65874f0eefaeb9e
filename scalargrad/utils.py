"""
Visualization and gradient-checking utilities for scalargrad graphs.

trace() and draw_dot() show the flow of data and gradients through a
computational graph; numerical_grad() estimates gradients by finite
differences to cross-check backward().
"""

import numpy as np
from graphviz import Digraph

from scalargrad.engine import Value, _op_label


def trace(root):
    """
    Trace the computational graph starting from a root Value node.

    Performs a depth-first traversal of the computational graph to collect
    all nodes and edges. This is used internally by draw_dot() to build
    the visualization.

    Args:
        root: A Value object representing the output of a computation

    Returns:
        tuple: (nodes, edges) where:
            - nodes: set of all Value objects in the graph
            - edges: set of (producer, consumer) tuples

    Example:
        >>> from scalargrad.engine import Value
        >>> x = Value(2.0)
        >>> y = Value(3.0)
        >>> z = x * y + x
        >>> nodes, edges = trace(z)
        >>> len(nodes)  # x, y, x*y and z
        4
    """
    nodes, edges = set(), set()
    stack = [root]

    while stack:
        v = stack.pop()
        if v in nodes:
            continue
        nodes.add(v)
        for child in v.producers:
            edges.add((child, v))
            stack.append(child)

    return nodes, edges


def _short_repr(x):
    """Format a scalar for a graph label with 4 decimal places."""
    x = float(x)
    if np.isnan(x) or np.isinf(x):
        return str(x)
    return f"{x:.4f}"


def draw_dot(root, format='svg', rankdir='LR'):
    """
    Visualize the computational graph of a Value object as a directed graph.

    Creates a Graphviz diagram showing:
    - Value nodes with their data and gradients
    - Operation nodes (+, *, **k, tanh)
    - Edges showing data flow through the computation

    Args:
        root: A Value object (typically the loss) to visualize from
        format: Output format ('svg', 'png', 'pdf', etc.)
        rankdir: Graph direction - 'LR' (left-right) or 'TB' (top-bottom)

    Returns:
        Digraph: A graphviz Digraph object that can be rendered or displayed

    Example:
        >>> from scalargrad.engine import Value
        >>> from scalargrad.utils import draw_dot
        >>> x = Value(2.0, name='x')
        >>> y = Value(-3.0, name='y')
        >>> z = x * y
        >>> z.name = 'z'
        >>> z.backward()
        >>> graph = draw_dot(z)
        >>> graph.render('computation_graph')  # Saves as SVG

    Note:
        Rendering requires the graphviz system package (the `dot` binary);
        building the Digraph does not.
    """
    if rankdir not in ('LR', 'TB'):
        raise ValueError("rankdir must be 'LR' (left-right) or 'TB' (top-bottom)")

    nodes, edges = trace(root)

    dot = Digraph(format=format, graph_attr={'rankdir': rankdir})

    # Sorted by id so the source is stable for a given graph object
    for n in sorted(nodes, key=id):
        # Create label showing name, data, and gradient
        label = f'{{ {n.name} | {{ data {_short_repr(n.data)} | grad {_short_repr(n.grad)} }} }}'
        dot.node(name=str(id(n)), label=label, shape='record')

        # If this node was created by an operation, add an operation node
        if not n.is_leaf:
            op = _op_label(n)
            dot.node(name=str(id(n)) + op, label=op)
            dot.edge(str(id(n)) + op, str(id(n)))

    for n1, n2 in sorted(edges, key=lambda e: (id(e[0]), id(e[1]))):
        # Connect producer to the operation that created the consumer
        dot.edge(str(id(n1)), str(id(n2)) + _op_label(n2))

    return dot


def numerical_grad(f, values, eps=1e-6):
    """
    Estimate d f() / d v for each v in `values` by centered finite differences.

    `f` must rebuild its graph from the current data of `values` on every
    call and return a Value (or number). Each value's data is restored after
    it has been perturbed.

    Args:
        f: Zero-argument callable computing the scalar output
        values: Leaf Values to differentiate with respect to
        eps: Perturbation size

    Returns:
        list of float gradient estimates, in the order of `values`

    Example:
        >>> a = Value(3.0)
        >>> numerical_grad(lambda: a * a + a, [a])  # ≈ [7.0]
    """
    grads = []
    for v in values:
        original = v.data
        try:
            v.data = original + eps
            plus = _scalar(f())
            v.data = original - eps
            minus = _scalar(f())
        finally:
            v.data = original
        grads.append((plus - minus) / (2 * eps))
    return grads


def _scalar(out):
    return out.data if isinstance(out, Value) else float(out)
