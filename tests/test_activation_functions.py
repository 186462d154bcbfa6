"""活性化関数・数値カーネルのテスト"""

import numpy as np
import pytest

from ed_modules.activation_functions import random_weight, sigmoid, sigmoid_derivative, sign_of


class TestSigmoid:

    def test_zero_is_half(self):
        assert sigmoid(0.0, 0.4) == pytest.approx(0.5, abs=1e-10)

    @pytest.mark.parametrize("x", [0.01, 0.3, 1.0, 2.5, 10.0])
    @pytest.mark.parametrize("steepness", [0.1, 0.4, 2.0])
    def test_symmetry(self, x, steepness):
        assert sigmoid(-x, steepness) == pytest.approx(1.0 - sigmoid(x, steepness))

    @pytest.mark.parametrize("x", [-3.0, -0.5, 0.0, 0.5, 3.0])
    def test_open_unit_interval(self, x):
        y = sigmoid(x, 0.4)
        assert 0.0 < y < 1.0

    def test_steepness_form(self):
        """σ(x; s) = 1 / (1 + exp(-2x/s))"""
        assert sigmoid(0.4, 0.4) == pytest.approx(1.0 / (1.0 + np.exp(-2.0)))

    def test_extreme_input_does_not_overflow(self):
        with np.errstate(over="raise"):
            assert sigmoid(1.0e6, 0.4) == pytest.approx(1.0)
            assert sigmoid(-1.0e6, 0.4) == pytest.approx(0.0)

    def test_array_input(self):
        y = sigmoid(np.array([-1.0, 0.0, 1.0]), 0.4)
        assert isinstance(y, np.ndarray)
        assert y.shape == (3,)
        assert y[1] == pytest.approx(0.5)

    def test_scalar_returns_float(self):
        assert isinstance(sigmoid(0.2), float)


class TestSigmoidDerivative:

    def test_maximum_at_half(self):
        assert sigmoid_derivative(0.5) == pytest.approx(0.25)

    def test_saturated_outputs(self):
        assert sigmoid_derivative(0.0) == 0.0
        assert sigmoid_derivative(1.0) == 0.0

    def test_array(self):
        y = np.array([0.1, 0.5, 0.9])
        np.testing.assert_allclose(sigmoid_derivative(y), y * (1 - y))


class TestHelpers:

    def test_random_weight_range(self):
        rng = np.random.default_rng(0)
        draws = [random_weight(rng, 0.3) for _ in range(200)]
        assert all(0.0 <= w < 0.3 for w in draws)

    def test_random_weight_is_seeded(self):
        a = [random_weight(np.random.default_rng(5), 1.0) for _ in range(3)]
        b = [random_weight(np.random.default_rng(5), 1.0) for _ in range(3)]
        assert a == b

    def test_sign_of(self):
        assert sign_of(2.0) == 1.0
        assert sign_of(-0.1) == -1.0
        assert sign_of(0.0) == 0.0
