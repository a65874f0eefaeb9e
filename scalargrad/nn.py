"""
Neural network building blocks for scalargrad.

This module provides Neuron, Layer and MLP classes built purely from Values,
so gradients flow through them with Value.backward().
"""

import numpy as np

from scalargrad.engine import Value, zero_grad
from scalargrad.errors import ShapeMismatch


class Module:
    """
    Base class for all neural network modules.

    Provides common functionality for managing parameters and gradients.
    """

    def zero_grad(self):
        """
        Reset all gradients to zero.

        Call this before each backward pass to avoid accumulating gradients
        from multiple backward passes.
        """
        zero_grad(self.parameters())

    def parameters(self):
        """
        Return a list of all trainable parameters (weights and biases).

        Override this in subclasses to return actual parameters.
        """
        return []

    def state_dict(self):
        """Map each parameter name to its current value."""
        params = self.parameters()
        state = {p.name: p.data for p in params}
        if len(state) != len(params):
            raise ValueError("Parameter names are not unique; give each layer a distinct name")
        return state

    def load_state_dict(self, state):
        """
        Write values from `state` into the existing parameters.

        Parameters are updated in place, so Values already handed out by
        parameters() see the new data.

        Raises:
            ShapeMismatch: if the names in `state` differ from this module's parameters
        """
        params = self.parameters()
        expected = [p.name for p in params]
        if set(state) != set(expected) or len(state) != len(expected):
            missing = sorted(set(expected) - set(state))
            unexpected = sorted(set(state) - set(expected))
            raise ShapeMismatch(
                f"State does not match parameters (missing={missing}, unexpected={unexpected})"
            )
        for p in params:
            p.data = float(state[p.name])


class Neuron(Module):
    """
    A single neuron: tanh(w . x + b).

    Args:
        nin: Number of inputs
        nonlin: If True, apply tanh to the weighted sum (default: True)
        weights: Optional initial weights (length nin)
        bias: Optional initial bias
        rng: numpy Generator used for random weights
        name: Prefix for parameter names

    Example:
        >>> n = Neuron(2, weights=[0.5, -0.5], bias=0.0)
        >>> out = n([1.0, 1.0])  # tanh(0.0) = 0.0
    """

    def __init__(self, nin, nonlin=True, weights=None, bias=None, rng=None, name=""):
        if nin < 1:
            raise ShapeMismatch(f"Neuron needs at least one input, got nin={nin}")
        self.name = name

        if weights is None:
            rng = rng if rng is not None else np.random.default_rng()
            weights = rng.uniform(-1.0, 1.0, nin)
        elif len(weights) != nin:
            raise ShapeMismatch(f"Neuron expects {nin} weights, got {len(weights)}")

        self.w = [Value(wi, name=f"{name}.w{i}" if name else f"w{i}") for i, wi in enumerate(weights)]
        self.b = Value(0.0 if bias is None else bias, name=f"{name}.b" if name else "b")
        self.nonlin = nonlin

    @property
    def nin(self):
        return len(self.w)

    def __call__(self, x):
        """
        Forward pass: weighted sum of the inputs plus bias, through tanh.

        Args:
            x: Sequence of Values or numbers, length nin

        Returns:
            A single output Value
        """
        if len(x) != self.nin:
            raise ShapeMismatch(f"Neuron expects {self.nin} inputs, got {len(x)}")

        # Bias first: b + w0*x0 + w1*x1 + ...
        act = sum((wi * xi for wi, xi in zip(self.w, x)), self.b)
        return act.tanh() if self.nonlin else act

    def rename(self, name):
        """Set the neuron name and re-derive its parameter names from it."""
        self.name = name
        for i, wi in enumerate(self.w):
            wi.name = f"{name}.w{i}" if name else f"w{i}"
        self.b.name = f"{name}.b" if name else "b"

    def parameters(self):
        """Weights in input order, then the bias."""
        return self.w + [self.b]

    def __repr__(self):
        activation = 'Tanh' if self.nonlin else 'Linear'
        return f"{activation}Neuron({self.nin})"


class Layer(Module):
    """
    A fully-connected layer: nout neurons over the same nin inputs.

    The output is always a list of length nout, including when nout == 1.

    Args:
        nin: Number of input features
        nout: Number of neurons
        nonlin: If True, neurons apply tanh (default: True)
        weights: Optional initial weights, one row of nin weights per neuron
        bias: Optional initial biases (length nout)
        rng: numpy Generator used for random weights
        name: Optional name for debugging

    Example:
        >>> layer = Layer(3, 4)
        >>> y = layer([1.0, 2.0, 3.0])  # list of 4 Values
    """

    def __init__(self, nin, nout, nonlin=True, weights=None, bias=None, rng=None, name=""):
        if nout < 1:
            raise ShapeMismatch(f"Layer needs at least one neuron, got nout={nout}")
        if weights is not None and len(weights) != nout:
            raise ShapeMismatch(f"Layer expects weights for {nout} neurons, got {len(weights)}")
        if bias is not None and len(bias) != nout:
            raise ShapeMismatch(f"Layer expects {nout} biases, got {len(bias)}")

        self.name = name
        rng = rng if rng is not None else np.random.default_rng()
        self.neurons = [
            Neuron(
                nin,
                nonlin=nonlin,
                weights=weights[j] if weights is not None else None,
                bias=bias[j] if bias is not None else None,
                rng=rng,
                name=f"{name}.n{j}" if name else f"n{j}",
            )
            for j in range(nout)
        ]

    @property
    def nin(self):
        return self.neurons[0].nin

    @property
    def nout(self):
        return len(self.neurons)

    def __call__(self, x):
        """
        Forward pass: apply every neuron to the same inputs.

        Args:
            x: Sequence of Values or numbers, length nin

        Returns:
            List of nout output Values
        """
        if len(x) != self.nin:
            raise ShapeMismatch(f"Layer {self.name or '?'} expects {self.nin} inputs, got {len(x)}")
        return [n(x) for n in self.neurons]

    def rename(self, name):
        """Set the layer name and rename its neurons and parameters to match."""
        self.name = name
        for j, n in enumerate(self.neurons):
            n.rename(f"{name}.n{j}" if name else f"n{j}")

    def parameters(self):
        """Return list of trainable parameters, neuron by neuron."""
        return [p for n in self.neurons for p in n.parameters()]

    def __repr__(self):
        return f"Layer({self.nin} → {self.nout}, [{', '.join(str(n) for n in self.neurons)}])"


class MLP(Module):
    """
    Multi-Layer Perceptron: a sequence of fully-connected layers.

    Automatically constructs a neural network with the specified architecture.
    Every layer applies tanh, unless linear_output is set, in which case the
    last layer returns the raw weighted sums.

    Args:
        nin: Number of input features
        nouts: List of output sizes for each layer
               Example: [4, 4, 1] creates 3 layers: input→4→4→1
        weights: Optional list of per-layer weights (see Layer)
        biases: Optional list of per-layer biases (see Layer)
        linear_output: If True, the last layer has no activation
        rng: numpy Generator used for random weights

    Example:
        >>> # Create a 3-layer network: 3 → 4 → 4 → 1
        >>> mlp = MLP(nin=3, nouts=[4, 4, 1])
        >>> y = mlp([2.0, 3.0, -1.0])  # Forward pass, list of 1 Value
        >>> loss = (y[0] - 1.0) ** 2
        >>> mlp.zero_grad()  # Reset gradients
        >>> loss.backward()  # Compute gradients
        >>> # Update parameters (SGD)
        >>> for p in mlp.parameters():
        ...     p.data -= learning_rate * p.grad
    """

    def __init__(self, nin, nouts, weights=None, biases=None, linear_output=False, rng=None):
        if not nouts:
            raise ShapeMismatch("MLP needs at least one layer")
        if weights is not None and len(weights) != len(nouts):
            raise ShapeMismatch(f"MLP expects weights for {len(nouts)} layers, got {len(weights)}")
        if biases is not None and len(biases) != len(nouts):
            raise ShapeMismatch(f"MLP expects biases for {len(nouts)} layers, got {len(biases)}")

        # Build layer sizes: [input_size, hidden1, hidden2, ..., output_size]
        layer_sizes = [nin] + list(nouts)
        rng = rng if rng is not None else np.random.default_rng()

        layers = []
        for i in range(len(nouts)):
            is_output_layer = (i == len(nouts) - 1)

            layer = Layer(
                nin=layer_sizes[i],
                nout=layer_sizes[i + 1],
                nonlin=not (linear_output and is_output_layer),
                weights=weights[i] if weights is not None else None,
                bias=biases[i] if biases is not None else None,
                rng=rng,
                name=f"layer{i}"
            )
            layers.append(layer)

        self.layers = _check_widths(layers)

    @classmethod
    def from_layers(cls, layers):
        """
        Build a network from existing layers.

        Unnamed layers are renamed to `layer{i}` by position, so the
        network's parameter names are unique and state_dict() works.

        Raises:
            ShapeMismatch: if a layer's width differs from the next layer's input width
        """
        mlp = cls.__new__(cls)
        mlp.layers = _check_widths(list(layers))
        for i, layer in enumerate(mlp.layers):
            if not layer.name:
                layer.rename(f"layer{i}")
        return mlp

    @property
    def nin(self):
        return self.layers[0].nin

    @property
    def nout(self):
        return self.layers[-1].nout

    def __call__(self, x):
        """
        Forward pass: pass input through all layers sequentially.

        Args:
            x: Sequence of Values or numbers, length nin

        Returns:
            List of Values, length nouts[-1]
        """
        for layer in self.layers:
            x = layer(x)
        return x

    def parameters(self):
        """Return all trainable parameters from all layers."""
        return [p for layer in self.layers for p in layer.parameters()]

    def __repr__(self):
        layer_str = ' → '.join(str(layer) for layer in self.layers)
        return f"MLP[\n  {layer_str}\n]"


def _check_widths(layers):
    if not layers:
        raise ShapeMismatch("MLP needs at least one layer")
    for i, (prev, nxt) in enumerate(zip(layers, layers[1:])):
        if prev.nout != nxt.nin:
            raise ShapeMismatch(
                f"Layer {i} produces {prev.nout} outputs but layer {i + 1} expects {nxt.nin} inputs"
            )
    return layers
