"""
Tests for Neuron, Layer and MLP.
"""

import math

import numpy as np
import pytest

from scalargrad.engine import Op, Value
from scalargrad.errors import ShapeMismatch
from scalargrad.nn import MLP, Layer, Module, Neuron
from scalargrad.utils import numerical_grad


# ============================================================================
# NEURON
# ============================================================================

class TestNeuron:
    def test_forward(self):
        n = Neuron(2, weights=[0.5, -0.25], bias=0.1)
        out = n([1.0, 2.0])
        assert out.op is Op.TANH
        assert out.data == pytest.approx(math.tanh(0.5 - 0.5 + 0.1))

    def test_linear(self):
        n = Neuron(2, nonlin=False, weights=[2.0, 3.0], bias=1.0)
        out = n([Value(1.0), Value(-1.0)])
        assert out.data == 0.0

    def test_backward(self):
        n = Neuron(2, weights=[0.5, -0.5], bias=0.0)
        x = [Value(1.0), Value(2.0)]
        out = n(x)
        out.backward()
        local = 1 - math.tanh(-0.5) ** 2
        w0, w1, b = n.parameters()
        assert w0.grad == pytest.approx(1.0 * local)
        assert w1.grad == pytest.approx(2.0 * local)
        assert b.grad == pytest.approx(local)
        assert x[0].grad == pytest.approx(0.5 * local)

    def test_parameters_order(self):
        n = Neuron(3, rng=np.random.default_rng(0))
        params = n.parameters()
        assert len(params) == 4
        assert params[:3] == n.w
        assert params[3] is n.b
        assert [p.name for p in params] == ["w0", "w1", "w2", "b"]

    def test_random_init_range(self, rng):
        n = Neuron(50, rng=rng)
        assert all(-1.0 <= w.data < 1.0 for w in n.w)
        assert n.b.data == 0.0

    def test_input_width_mismatch(self):
        n = Neuron(3, rng=np.random.default_rng(0))
        with pytest.raises(ShapeMismatch):
            n([1.0, 2.0])

    def test_weight_count_mismatch(self):
        with pytest.raises(ShapeMismatch):
            Neuron(3, weights=[1.0, 2.0])

    def test_no_inputs(self):
        with pytest.raises(ShapeMismatch):
            Neuron(0)


# ============================================================================
# LAYER
# ============================================================================

class TestLayer:
    def test_single_neuron_returns_list(self, rng):
        layer = Layer(3, 1, rng=rng)
        out = layer([1.0, 2.0, 3.0])
        assert isinstance(out, list)
        assert len(out) == 1
        assert isinstance(out[0], Value)

    def test_output_width(self, rng):
        layer = Layer(3, 4, rng=rng)
        out = layer([1.0, 2.0, 3.0])
        assert len(out) == 4
        assert len(layer.parameters()) == 4 * (3 + 1)

    def test_given_weights(self):
        layer = Layer(2, 2, weights=[[1.0, 0.0], [0.0, 1.0]], bias=[0.0, 0.0], nonlin=False)
        out = layer([3.0, 4.0])
        assert [o.data for o in out] == [3.0, 4.0]

    def test_input_width_mismatch(self, rng):
        layer = Layer(3, 2, rng=rng)
        with pytest.raises(ShapeMismatch):
            layer([1.0, 2.0])

    def test_weight_rows_mismatch(self):
        with pytest.raises(ShapeMismatch):
            Layer(2, 3, weights=[[1.0, 0.0]])
        with pytest.raises(ShapeMismatch):
            Layer(2, 2, bias=[0.0])


# ============================================================================
# MLP
# ============================================================================

class TestMLP:
    def test_forward_shape(self, rng):
        mlp = MLP(3, [4, 4, 1], rng=rng)
        out = mlp([2.0, 3.0, -1.0])
        assert len(out) == 1
        assert -1.0 < out[0].data < 1.0

    def test_parameter_count(self, rng):
        mlp = MLP(3, [4, 4, 1], rng=rng)
        # (3+1)*4 + (4+1)*4 + (4+1)*1
        assert len(mlp.parameters()) == 41

    def test_parameters_stable_identity(self, rng):
        mlp = MLP(3, [4, 1], rng=rng)
        first = mlp.parameters()
        second = mlp.parameters()
        assert len(first) == len(second)
        assert all(p is q for p, q in zip(first, second))

    def test_parameters_construction_order(self, rng):
        mlp = MLP(2, [2, 1], rng=rng)
        names = [p.name for p in mlp.parameters()]
        assert names == [
            "layer0.n0.w0", "layer0.n0.w1", "layer0.n0.b",
            "layer0.n1.w0", "layer0.n1.w1", "layer0.n1.b",
            "layer1.n0.w0", "layer1.n0.w1", "layer1.n0.b",
        ]

    def test_from_layers(self, rng):
        mlp = MLP.from_layers([Layer(2, 4, rng=rng), Layer(4, 1, rng=rng)])
        assert mlp.nin == 2
        assert mlp.nout == 1
        assert len(mlp([1.0, -1.0])) == 1

    def test_mismatched_layers_rejected_at_construction(self, rng):
        with pytest.raises(ShapeMismatch):
            MLP.from_layers([Layer(2, 4, rng=rng), Layer(3, 1, rng=rng)])

    def test_empty_network_rejected(self):
        with pytest.raises(ShapeMismatch):
            MLP(3, [])
        with pytest.raises(ShapeMismatch):
            MLP.from_layers([])

    def test_weights_per_layer_count(self):
        # Too few layers of weights
        with pytest.raises(ShapeMismatch):
            MLP(2, [2, 1], weights=[[[1.0, 0.0], [0.0, 1.0]]])
        # Too many: the extra layer must not be dropped silently
        with pytest.raises(ShapeMismatch):
            MLP(2, [1], weights=[[[1.0, 0.0]], [[9.0]]])

    def test_biases_per_layer_count(self):
        with pytest.raises(ShapeMismatch):
            MLP(2, [2, 1], biases=[[0.0, 0.0]])
        with pytest.raises(ShapeMismatch):
            MLP(2, [1], biases=[[0.0], [0.0]])

    def test_given_weights_and_biases(self):
        mlp = MLP(2, [1], weights=[[[2.0, 3.0]]], biases=[[1.0]], linear_output=True)
        assert mlp([1.0, 1.0])[0].data == 6.0

    def test_input_width_mismatch(self, rng):
        mlp = MLP(3, [2, 1], rng=rng)
        with pytest.raises(ShapeMismatch):
            mlp([1.0, 2.0])

    def test_linear_output(self, rng):
        mlp = MLP(2, [3, 1], linear_output=True, rng=rng)
        out = mlp([1.0, 2.0])
        assert out[0].op is not Op.TANH
        assert all(n.nonlin for n in mlp.layers[0].neurons)

    def test_seeded_init_is_reproducible(self):
        a = MLP(3, [4, 1], rng=np.random.default_rng(7))
        b = MLP(3, [4, 1], rng=np.random.default_rng(7))
        assert a.state_dict() == b.state_dict()

    def test_zero_grad(self, rng):
        mlp = MLP(2, [3, 1], rng=rng)
        out = mlp([1.0, -2.0])[0]
        out.backward()
        assert any(p.grad != 0.0 for p in mlp.parameters())
        mlp.zero_grad()
        assert all(p.grad == 0.0 for p in mlp.parameters())

    def test_gradients_match_finite_differences(self, rng):
        mlp = MLP(3, [4, 2, 1], rng=rng)
        x = [0.5, -1.0, 2.0]

        def loss():
            return (mlp(x)[0] - 0.25) ** 2

        out = loss()
        mlp.zero_grad()
        out.backward()

        params = mlp.parameters()
        numeric = numerical_grad(loss, params)
        for p, n in zip(params, numeric):
            assert p.grad == pytest.approx(n, abs=1e-4, rel=1e-4)

    def test_external_update_seen_on_next_forward(self, rng):
        mlp = MLP(2, [1], linear_output=True, rng=rng)
        for p in mlp.parameters():
            p.data = 0.0
        assert mlp([1.0, 1.0])[0].data == 0.0

        for p in mlp.parameters():
            p.data += 1.0
        assert mlp([1.0, 1.0])[0].data == 3.0


# ============================================================================
# STATE DICT
# ============================================================================

class TestStateDict:
    def test_roundtrip_preserves_identity(self):
        src = MLP(2, [3, 1], rng=np.random.default_rng(1))
        dst = MLP(2, [3, 1], rng=np.random.default_rng(2))
        params = dst.parameters()

        dst.load_state_dict(src.state_dict())

        assert dst.state_dict() == src.state_dict()
        assert all(p is q for p, q in zip(params, dst.parameters()))

    def test_mismatched_keys(self, rng):
        mlp = MLP(2, [3, 1], rng=rng)
        state = mlp.state_dict()
        state.pop("layer1.n0.b")
        with pytest.raises(ShapeMismatch):
            mlp.load_state_dict(state)

    def test_from_layers_names_unnamed_layers(self, rng):
        mlp = MLP.from_layers([Layer(2, 2, rng=rng), Layer(2, 1, rng=rng, name="head")])
        names = [p.name for p in mlp.parameters()]
        assert names[0] == "layer0.n0.w0"
        assert names[-1] == "head.n0.b"

        other = MLP.from_layers([Layer(2, 2, rng=rng), Layer(2, 1, rng=rng, name="head")])
        other.load_state_dict(mlp.state_dict())
        assert other.state_dict() == mlp.state_dict()

    def test_duplicate_names(self, rng):
        mlp = MLP.from_layers([Layer(2, 2, rng=rng, name="hidden"), Layer(2, 1, rng=rng, name="hidden")])
        with pytest.raises(ValueError):
            mlp.state_dict()

    def test_base_module_has_no_parameters(self):
        m = Module()
        assert m.parameters() == []
        assert m.state_dict() == {}
