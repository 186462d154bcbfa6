"""EDNetworkのテスト（構築・順伝播・誤差拡散・重み更新・学習ループ）"""

import numpy as np
import pytest

from ed_modules.activation_functions import sign_of
from ed_modules.amine_diffusion import select_governing_channel
from ed_modules.data_loader import TrainingPattern, create_parity_dataset, create_xor_dataset
from ed_modules.ed_network import EDNetwork, NetworkDimensions, new_network
from ed_modules.errors import (
    ConfigurationError,
    DimensionOverflowError,
    NoTrainingDataError,
    ShapeMismatchError,
)
from ed_modules.hyperparameters import EDConfig
from ed_modules.layer_structure import LayerType
from ed_modules.neuron_structure import ErrorChannels


def polarity_of(network, connection):
    """結合の極性 sign(from) × sign(to)"""
    source = network.neurons[connection.from_index]
    target = network.neurons[connection.to_index]
    return source.neuron_type.sign_factor * target.neuron_type.sign_factor


def weights_of(network):
    return [c.weight for c in network.connections]


def assert_polarity_discipline(network):
    for c in network.connections:
        assert sign_of(c.weight) in (polarity_of(network, c), 0.0), c


class TestNetworkDimensions:

    def test_total_neurons(self):
        assert NetworkDimensions(2, 2, 1).total_neurons == 9
        assert NetworkDimensions(4, 8, 1).total_neurons == 19

    def test_cap_is_inclusive(self):
        NetworkDimensions(1, 998, 1)

    def test_overflow(self):
        with pytest.raises(DimensionOverflowError):
            NetworkDimensions(1, 999, 1)

    def test_overflow_at_construction(self):
        with pytest.raises(DimensionOverflowError):
            EDNetwork(500, 500, 1)

    @pytest.mark.parametrize("dims", [(0, 2, 1), (2, -1, 1), (2, 2, 0)])
    def test_invalid_sizes(self, dims):
        with pytest.raises(ConfigurationError):
            NetworkDimensions(*dims)


class TestConstruction:

    def test_layout(self):
        network = new_network((2, 2, 1), seed=1)
        assert [layer.layer_type for layer in network.layers] == [
            LayerType.BIAS, LayerType.INPUT, LayerType.HIDDEN, LayerType.OUTPUT,
        ]
        assert network.bias_layer.indices == [0, 1]
        assert network.input_layer.indices == [2, 3, 4, 5]
        assert network.hidden_layer.indices == [6, 7]
        assert network.output_layer.indices == [8]
        assert len(network.neurons) == network.dimensions.total_neurons

    def test_input_doubling(self):
        network = new_network((3, 2, 1), seed=1)
        assert len(network.input_layer) == 6

    def test_neuron_types(self):
        network = new_network((2, 2, 2), seed=1)
        assert network.bias_layer.neurons[0].is_inhibitory
        assert network.bias_layer.neurons[1].is_excitatory
        assert [n.is_excitatory for n in network.hidden_layer] == [False, True]
        assert all(n.is_excitatory for n in network.output_layer)

    def test_default_connection_count(self):
        network = new_network((2, 2, 1), seed=1)
        assert len(network.connections) == 16

    @pytest.mark.parametrize("overrides,expected", [
        ({"flag_self_loop_cutting": False}, 19),
        ({"flag_loop_cutting": False}, 20),
        ({"flag_multilayer": False}, 20),
        ({"flag_self_loop_cutting": False, "flag_loop_cutting": False,
          "flag_multilayer": False}, 27),
    ])
    def test_flag_connection_counts(self, overrides, expected):
        network = new_network((2, 2, 1), config=EDConfig(**overrides), seed=1)
        assert len(network.connections) == expected

    def test_self_loop_cutting(self):
        network = new_network((2, 4, 2), seed=3)
        assert all(c.from_index != c.to_index for c in network.connections)

    def test_loop_cutting(self):
        network = new_network((2, 4, 2), seed=3)
        for c in network.connections:
            assert network.layer_of(c.to_index) >= network.layer_of(c.from_index)
            if network.layer_of(c.to_index) == network.layer_of(c.from_index):
                assert c.from_index == c.to_index

    def test_lateral_hidden_edges_without_loop_cutting(self):
        network = new_network((2, 3, 1), config=EDConfig(flag_loop_cutting=False), seed=3)
        hidden = set(network.hidden_layer.indices)
        lateral = [c for c in network.connections
                   if c.from_index in hidden and c.to_index in hidden]
        assert len(lateral) == 6

    def test_multilayer(self):
        network = new_network((2, 4, 2), seed=3)
        inputs = set(network.input_layer.indices)
        outputs = set(network.output_layer.indices)
        assert not any(c.from_index in inputs and c.to_index in outputs
                       for c in network.connections)

    def test_no_edge_into_bias_or_input(self):
        config = EDConfig(flag_loop_cutting=False, flag_self_loop_cutting=False,
                          flag_multilayer=False)
        network = new_network((2, 3, 2), config=config, seed=3)
        targets = {c.to_index for c in network.connections}
        assert not targets & set(network.bias_layer.indices + network.input_layer.indices)

    def test_bias_connects_to_every_computed_neuron(self):
        network = new_network((2, 3, 2), seed=3)
        for j in network.hidden_layer.indices + network.output_layer.indices:
            sources = {c.from_index for c in network.connections_to(j)}
            assert {0, 1} <= sources

    def test_candidate_order(self):
        network = new_network((2, 3, 2), seed=3)
        keys = [(c.to_index, c.from_index) for c in network.connections]
        assert keys == sorted(keys)

    def test_initial_ranges(self):
        config = EDConfig(weight_init_range=0.1, threshold_init_range=0.5)
        network = new_network((3, 6, 2), config=config, seed=4)
        for c in network.connections:
            bound = 0.5 if c.from_index in (0, 1) else 0.1
            assert abs(c.weight) < bound

    def test_polarity_after_construction(self):
        assert_polarity_discipline(new_network((3, 6, 2), seed=4))

    def test_same_seed_same_weights(self):
        assert weights_of(new_network((2, 4, 1), seed=9)) == weights_of(new_network((2, 4, 1), seed=9))

    def test_different_seed_different_weights(self):
        assert weights_of(new_network((2, 4, 1), seed=9)) != weights_of(new_network((2, 4, 1), seed=10))

    def test_explicit_rng(self):
        a = EDNetwork(2, 2, 1, rng=np.random.default_rng(5))
        b = EDNetwork(2, 2, 1, seed=5)
        assert weights_of(a) == weights_of(b)

    def test_verbose_summary(self, capsys):
        new_network((2, 2, 1), seed=1, verbose=True)
        assert "ED法ネットワーク構築" in capsys.readouterr().out

    def test_quiet_by_default(self, capsys):
        new_network((2, 2, 1), seed=1)
        assert capsys.readouterr().out == ""


class TestForward:

    def test_output_shape(self, xor_network):
        outputs = xor_network.forward([1.0, 0.0])
        assert isinstance(outputs, np.ndarray)
        assert outputs.shape == (1,)
        assert 0.0 < outputs[0] < 1.0

    def test_input_assignment(self, xor_network):
        xor_network.forward([1.0, 0.0])
        assert [n.output for n in xor_network.input_layer] == [1.0, 1.0, 0.0, 0.0]
        assert [n.output for n in xor_network.bias_layer] == [0.8, 0.8]

    def test_inhibitory_inputs_masked(self):
        config = EDConfig(flag_inhibitory_inputs=False)
        network = new_network((2, 2, 1), config=config, seed=1)
        network.forward([1.0, 1.0])
        outputs = [n.output for n in network.input_layer]
        assert outputs == [0.0, 1.0, 0.0, 1.0]

    def test_wrong_length(self, xor_network):
        with pytest.raises(ShapeMismatchError):
            xor_network.forward([1.0, 0.0, 1.0])

    def test_forward_is_repeatable(self, xor_network):
        first = xor_network.forward([0.0, 1.0])
        second = xor_network.forward([0.0, 1.0])
        np.testing.assert_array_equal(first, second)

    def test_single_timestep_sees_only_bias_at_output(self):
        """t=1 の出力層は初期状態（隠れ層出力0）とバイアスのみから計算される"""
        network = new_network((2, 2, 1), config=EDConfig(timesteps=1), seed=1)
        outputs_a = network.forward([0.0, 0.0])
        outputs_b = network.forward([1.0, 1.0])
        np.testing.assert_array_equal(outputs_a, outputs_b)

    def test_matches_manual_computation(self):
        network = new_network((1, 1, 1), config=EDConfig(timesteps=2), seed=2)
        steepness = network.config.sigmoid_steepness
        w = network.weight_matrix()
        x = np.zeros(len(network.neurons))
        x[[0, 1]] = 0.8
        x[[2, 3]] = 0.6
        for _ in range(2):
            net = w @ x
            nxt = x.copy()
            nxt[[4, 5]] = 1.0 / (1.0 + np.exp(-2.0 * net[[4, 5]] / steepness))
            x = nxt
        outputs = network.forward([0.6])
        assert outputs[0] == pytest.approx(x[5])
        assert network.hidden_layer.neurons[0].output == pytest.approx(x[4])

    def test_hidden_free_network(self):
        network = new_network((2, 0, 1), seed=1)
        assert network.forward([1.0, 1.0]).shape == (1,)


class TestErrorDiffusion:

    def test_output_channels(self, xor_network):
        xor_network.forward([1.0, 0.0])
        output = xor_network.output_layer.outputs()[0]
        errors = xor_network.diffuse_error([1.0])
        channels = xor_network.output_layer.neurons[0].error_channels
        assert errors[0] == pytest.approx(1.0 - output)
        assert channels.excitatory == pytest.approx(1.0 - output)
        assert channels.inhibitory == 0.0

    def test_no_error_into_bias_or_input(self, xor_network):
        xor_network.forward([1.0, 1.0])
        xor_network.diffuse_error([0.0])
        for neuron in list(xor_network.bias_layer) + list(xor_network.input_layer):
            assert not neuron.error_channels.has_error_signal()

    @pytest.mark.parametrize("diffusion", ["uniform", "magnitude"])
    def test_hidden_channels_follow_polarity(self, diffusion):
        config = EDConfig(error_amplification=1.5, error_diffusion=diffusion)
        network = new_network((2, 2, 1), config=config, seed=1)
        network.forward([0.0, 1.0])
        network.diffuse_error([0.0])
        o_inh = network.output_layer.neurons[0].error_channels.inhibitory
        assert o_inh > 0.0

        output_index = network.output_layer.indices[0]
        for neuron in network.hidden_layer:
            (edge,) = [c for c in network.connections_from(neuron.index)
                       if c.to_index == output_index]
            factor = abs(edge.weight) if diffusion == "magnitude" else 1.0
            expected = 1.5 * o_inh * factor
            if neuron.is_excitatory:
                assert neuron.error_channels.inhibitory == pytest.approx(expected)
                assert neuron.error_channels.excitatory == 0.0
            else:
                assert neuron.error_channels.excitatory == pytest.approx(expected)
                assert neuron.error_channels.inhibitory == 0.0

    def test_disabled_edges_carry_no_error(self):
        network = new_network((2, 2, 1), seed=1)
        output_index = network.output_layer.indices[0]
        for c in network.connections:
            if c.to_index == output_index and c.from_index in network.hidden_layer.indices:
                c.enabled = False
        network.forward([1.0, 0.0])
        network.diffuse_error([1.0])
        assert not any(n.error_channels.has_error_signal() for n in network.hidden_layer)

    @pytest.mark.parametrize("target", [0.0, 1.0])
    def test_hidden_governing_channel_follows_source_type(self, target):
        """隠れ層では送り側が興奮性なら出力の興奮性、抑制性なら出力の抑制性が効く"""
        network = new_network((2, 2, 1), seed=1)
        network.forward([1.0, 0.0])
        network.diffuse_error([target])
        output_channels = network.output_layer.neurons[0].error_channels

        for neuron in network.hidden_layer:
            for c in network.connections_to(neuron.index):
                source = network.neurons[c.from_index]
                governing, _ = select_governing_channel(
                    neuron.error_channels, source.neuron_type, neuron.neuron_type)
                if source.is_excitatory:
                    assert governing == pytest.approx(output_channels.excitatory)
                else:
                    assert governing == pytest.approx(output_channels.inhibitory)


class TestWeightUpdate:

    def test_no_error_no_change(self, xor_network):
        outputs = xor_network.forward([1.0, 0.0])
        xor_network.diffuse_error(outputs)
        before = weights_of(xor_network)
        xor_network.update_weights()
        assert weights_of(xor_network) == before

    @pytest.mark.parametrize("target", [0.0, 1.0])
    def test_update_moves_output_towards_target(self, xor_network, target):
        pattern = TrainingPattern([1.0, 0.0], [target], 0)
        before = xor_network.forward(pattern.inputs)[0]
        xor_network.train_pattern(pattern)
        after = xor_network.forward(pattern.inputs)[0]
        if target == 1.0:
            assert after > before
        else:
            assert after < before

    def test_magnitudes_only_grow_without_decrement(self, xor_network):
        before = [abs(w) for w in weights_of(xor_network)]
        xor_network.train_one_epoch()
        after = [abs(w) for w in weights_of(xor_network)]
        assert all(a >= b for a, b in zip(after, before))

    @pytest.mark.parametrize("decrement", [False, True])
    def test_opposite_channel_shrinks_magnitude(self, decrement):
        """興奮性→興奮性の結合で抑制性チャネルだけが立っている場合"""
        config = EDConfig(mode_weight_decrement=decrement)
        network = new_network((2, 2, 1), config=config, seed=1)
        network.forward([1.0, 1.0])
        for neuron in network.neurons:
            neuron.error_channels = ErrorChannels(0.0, 0.0)
        target = network.output_layer.neurons[0]
        target.error_channels = ErrorChannels(0.0, 0.4)

        source = network.bias_layer.neurons[1]
        assert source.is_excitatory and target.is_excitatory
        (edge,) = [c for c in network.connections_to(target.index)
                   if c.from_index == source.index]
        edge.weight = 0.5
        y_j = target.output
        y_i = source.output

        network.update_weights()

        if decrement:
            shrink = config.learning_rate * 0.4 * y_j * (1.0 - y_j) * y_i
            assert edge.weight == pytest.approx(0.5 - shrink)
            assert edge.weight > 0.0
        else:
            assert edge.weight == 0.5

    def test_disabled_connection_is_frozen(self, xor_network):
        edge = xor_network.connections[0]
        edge.enabled = False
        weight = edge.weight
        xor_network.train_one_epoch()
        assert edge.weight == weight

    def test_polarity_after_training(self):
        config = EDConfig(mode_weight_decrement=True, flag_loop_cutting=False)
        network = new_network((3, 6, 1), config=config, seed=2)
        network.load_patterns(create_parity_dataset(3))
        for _ in range(20):
            network.train_one_epoch()
            assert_polarity_discipline(network)

    def test_sanity_bound_clamp_is_recorded(self):
        config = EDConfig(weight_sanity_bound=1.0e-3)
        network = new_network((2, 2, 1), config=config, seed=1)
        network.load_patterns(create_xor_dataset())
        stats = network.train_one_epoch()
        assert stats.weight_clamp_count > 0
        assert all(abs(w) <= 1.0e-3 for w in weights_of(network))


class TestTraining:

    def test_load_patterns_rejects_mismatch(self, xor_network):
        before = weights_of(xor_network)
        with pytest.raises(ShapeMismatchError):
            xor_network.load_patterns([TrainingPattern([1.0, 0.0, 0.0], [1.0], 0)])
        assert weights_of(xor_network) == before
        assert len(xor_network.training_data) == 4

    def test_no_training_data(self):
        network = new_network((2, 2, 1), seed=1)
        with pytest.raises(NoTrainingDataError):
            network.train_one_epoch()
        with pytest.raises(NoTrainingDataError):
            network.train_until_converged(10)

    def test_epoch_statistics(self, xor_network):
        stats = xor_network.train_one_epoch()
        assert stats.epoch == 1
        assert stats.pattern_count == 4
        assert 0 <= stats.error_count <= 4
        assert stats.total_error > 0.0
        assert stats.error_history == [stats.total_error]
        xor_network.train_one_epoch()
        assert xor_network.stats.epoch == 2

    def test_max_epochs_cap(self, xor_network):
        stats = xor_network.train_until_converged(max_epochs=5)
        assert stats.epoch <= 5
        assert len(stats.error_history) == stats.epoch

    def test_default_cap_from_config(self, xor_patterns):
        network = new_network((2, 2, 1), config=EDConfig(max_epochs=3), seed=1)
        network.load_patterns(xor_patterns)
        assert network.train_until_converged().epoch <= 3

    def test_callback_can_stop(self, xor_network):
        seen = []

        def callback(stats):
            seen.append(stats.epoch)
            return stats.epoch < 3

        stats = xor_network.train_until_converged(max_epochs=50, callback=callback)
        assert seen == [1, 2, 3]
        assert stats.epoch == 3

    def test_returns_snapshot(self, xor_network):
        stats = xor_network.train_until_converged(max_epochs=2)
        stats.error_history.append(123.0)
        assert 123.0 not in xor_network.stats.error_history

    def test_stops_when_converged(self, xor_patterns):
        network = new_network((2, 2, 1), config=EDConfig(convergence_threshold=100.0), seed=1)
        network.load_patterns(xor_patterns)
        stats = network.train_until_converged(max_epochs=50)
        assert stats.converged
        assert stats.epoch == 1

    def test_determinism(self, xor_patterns):
        runs = []
        for _ in range(2):
            network = new_network((2, 2, 1), seed=7)
            network.load_patterns(xor_patterns)
            network.train_until_converged(max_epochs=20)
            runs.append(weights_of(network))
        assert runs[0] == runs[1]

    @pytest.mark.parametrize("seed", range(5))
    def test_xor_error_reduction(self, xor_patterns, seed):
        network = new_network((2, 2, 1), seed=seed)
        network.load_patterns(xor_patterns)
        stats = network.train_until_converged(max_epochs=2000)
        assert stats.total_error <= 0.5 * stats.error_history[0]


class TestSerialisableRecord:

    def test_document_keys(self, xor_network):
        document = xor_network.to_dict()
        assert set(document) == {"layers", "connections", "config", "dimensions",
                                 "stats", "training_data"}
        assert document["dimensions"] == {"input_size": 2, "hidden_size": 2,
                                          "output_size": 1, "total_neurons": 9}
        neuron = document["layers"][0]["neurons"][0]
        assert set(neuron) == {"neuron_type", "index", "input", "output", "error_channels"}

    def test_from_dict_rebuilds_equivalent_network(self, xor_network):
        xor_network.train_until_converged(max_epochs=3)
        restored = EDNetwork.from_dict(xor_network.to_dict())
        assert weights_of(restored) == weights_of(xor_network)
        np.testing.assert_array_equal(restored.forward([1.0, 1.0]),
                                      xor_network.forward([1.0, 1.0]))

    def test_repr(self, xor_network):
        assert "2-2-1" in repr(xor_network)
