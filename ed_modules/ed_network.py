#!/usr/bin/env python3
"""
ED法ネットワークモジュール（統合クラス）

★Pure ED Network（金子勇氏の誤差拡散学習法）★
役割:
  - EDNetworkクラス（構築・順伝播・誤差拡散・重み更新・学習ループ）
  - 興奮性・抑制性ニューロンの符号制約（Dale's Principle）
  - 再帰的な順伝播（timesteps回、ダブルバッファ）
  - ED法準拠（微分の連鎖律不使用、2チャネル誤差の拡散）

クラス:
  - NetworkDimensions: ネットワーク寸法
  - EDNetwork: メインネットワーククラス

関数:
  - new_network: 寸法と設定からネットワークを生成

ニューロンのグローバル番号:
  バイアス(0=抑制性, 1=興奮性) → 入力(2〜, 論理入力1個につき抑制性・興奮性の2個)
  → 隠れ層 → 出力層

使用例:
    from ed_modules.ed_network import NetworkDimensions, new_network
    from ed_modules.data_loader import create_xor_dataset

    network = new_network(NetworkDimensions(2, 2, 1), seed=1)
    network.load_patterns(create_xor_dataset())

    stats = network.train_until_converged(max_epochs=2000)
    print(stats)
    # → Epoch:2000 Error:... Accuracy:...% Patterns:.../4

    network.forward([1.0, 0.0])   # → array([...])
"""

import numpy as np

from .activation_functions import random_weight, sigmoid, sigmoid_derivative
from .amine_diffusion import diffuse_to_hidden, select_governing_channel, split_error_channels
from .data_loader import TrainingPattern, validate_patterns
from .errors import (
    ConfigurationError,
    DimensionOverflowError,
    NoTrainingDataError,
    ShapeMismatchError,
)
from .hyperparameters import MAX_NETWORK_SIZE, EDConfig
from .layer_structure import LAYER_ORDER, LayerType, NetworkLayer
from .learning_stats import LearningStats
from .neuron_structure import Connection, ErrorChannels, create_ei_flags, create_ei_pairs


class NetworkDimensions:
    """ネットワーク寸法（論理入力数・隠れニューロン数・出力数）"""

    def __init__(self, input_size, hidden_size, output_size):
        self.input_size = int(input_size)
        self.hidden_size = int(hidden_size)
        self.output_size = int(output_size)
        self.validate()

    @property
    def total_neurons(self):
        """バイアス2 + 入力ペア + 隠れ + 出力"""
        return 2 + 2 * self.input_size + self.hidden_size + self.output_size

    def validate(self):
        """
        寸法の検証

        Raises:
            ConfigurationError: 入力・出力が1未満、または隠れ層が負
            DimensionOverflowError: 入力 + 隠れ + 出力 が上限を超える
        """
        if self.input_size < 1 or self.output_size < 1 or self.hidden_size < 0:
            raise ConfigurationError(
                f"ネットワーク寸法が不正です: "
                f"input_size={self.input_size}, hidden_size={self.hidden_size}, "
                f"output_size={self.output_size}\n"
                f"  入力・出力は1以上、隠れ層は0以上である必要があります"
            )

        size = self.input_size + self.hidden_size + self.output_size
        if size > MAX_NETWORK_SIZE:
            raise DimensionOverflowError(
                f"ネットワークが大きすぎます: 入力 + 隠れ + 出力 = {size}"
                f"（上限 {MAX_NETWORK_SIZE}）\n"
                f"\n修正方法:\n"
                f"  隠れ層のニューロン数を {MAX_NETWORK_SIZE - self.input_size - self.output_size} 以下にしてください"
            )

    def to_dict(self):
        return {
            "input_size": self.input_size,
            "hidden_size": self.hidden_size,
            "output_size": self.output_size,
            "total_neurons": self.total_neurons,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(data["input_size"], data["hidden_size"], data["output_size"])

    def __eq__(self, other):
        if not isinstance(other, NetworkDimensions):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"NetworkDimensions({self.input_size}-{self.hidden_size}-{self.output_size}, "
                f"total_neurons={self.total_neurons})")


class EDNetwork:
    """
    誤差拡散（ED）法ネットワーク

    ネットワークは全ニューロン・全結合・設定・学習パターン・統計を所有する。
    ニューロンはグローバル番号で管理され、結合は番号の組で相手を参照する。

    学習の流れ（1パターン）:
      1. forward: 入力を興奮性・抑制性ペアに展開し、timesteps回の再帰計算
      2. diffuse_error: 出力誤差を2チャネルに分離して隠れ層へ配分
      3. update_weights: 受け側ニューロンのチャネルで全結合を更新
    """

    def __init__(self, input_size, hidden_size, output_size, config=None, seed=None,
                 rng=None, verbose=False):
        """
        初期化

        Args:
            input_size: 論理入力数（入力層はこの2倍のニューロン）
            hidden_size: 隠れ層ニューロン数
            output_size: 出力ニューロン数
            config: EDConfig（Noneなら既定値）
            seed: 乱数シード（rng未指定時に使用）
            rng: numpy.random.Generator（指定時はseedより優先）
            verbose: 構築サマリーを表示するか

        Raises:
            ConfigurationError: 寸法・設定値が不正
            DimensionOverflowError: ネットワーク規模が上限を超える
        """
        self.dimensions = NetworkDimensions(input_size, hidden_size, output_size)
        self.config = config if config is not None else EDConfig()
        self.config.validate()
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.verbose = verbose

        self._build_layers()
        self.connections = self._build_connections()
        self.training_data = []
        self.stats = LearningStats()
        self._index_edges()

        if verbose:
            self.print_summary()

    # ------------------------------------------------------------------
    # 構築
    # ------------------------------------------------------------------

    def _build_layers(self):
        """バイアス → 入力 → 隠れ → 出力 の順に層を作成"""
        dims = self.dimensions
        sizes = [
            (LayerType.BIAS, 2),
            (LayerType.INPUT, 2 * dims.input_size),
            (LayerType.HIDDEN, dims.hidden_size),
            (LayerType.OUTPUT, dims.output_size),
        ]
        self.layers = []
        start = 0
        for layer_type, size in sizes:
            self.layers.append(NetworkLayer(layer_type, size, start_index=start))
            start += size
        self._register_neurons()

    def _register_neurons(self):
        """グローバル番号順のニューロン配列と層インデックス表を作る"""
        self.neurons = [n for layer in self.layers for n in layer]
        assert all(n.index == i for i, n in enumerate(self.neurons))

        self._layer_of = np.empty(len(self.neurons), dtype=int)
        for layer in self.layers:
            self._layer_of[layer.indices] = layer.layer_index
        self._signs = create_ei_flags([n.neuron_type for n in self.neurons])

    def _admits_edge(self, i, j):
        """
        結合 i → j を作るか

        受け側は隠れ層・出力層のみ。バイアスは常に結合する。
        ループカット時は前段への結合と同じ層内の結合（自己結合を除く）を作らない。
        """
        source_layer = self._layer_of[i]
        target_layer = self._layer_of[j]
        if target_layer < LAYER_ORDER[LayerType.HIDDEN]:
            return False
        if i == j and self.config.flag_self_loop_cutting:
            return False
        if source_layer == LAYER_ORDER[LayerType.BIAS]:
            return True
        if self.config.flag_loop_cutting and (
                target_layer < source_layer or (target_layer == source_layer and i != j)):
            return False
        if (self.config.flag_multilayer
                and source_layer == LAYER_ORDER[LayerType.INPUT]
                and target_layer == LAYER_ORDER[LayerType.OUTPUT]):
            return False
        return True

    def _build_connections(self):
        """
        候補結合を 受け側昇順 → 送り側昇順 で走査して生成

        初期重みの大きさ: [0, weight_init_range)（バイアスからは threshold_init_range）
        符号: 両端のニューロン種別で決定
        """
        bias_layer = LAYER_ORDER[LayerType.BIAS]
        connections = []
        for j, target in enumerate(self.neurons):
            for i, source in enumerate(self.neurons):
                if not self._admits_edge(i, j):
                    continue
                if self._layer_of[i] == bias_layer:
                    base = random_weight(self.rng, self.config.threshold_init_range)
                else:
                    base = random_weight(self.rng, self.config.weight_init_range)
                connections.append(
                    Connection.new(i, j, base, source.neuron_type, target.neuron_type)
                )
        return connections

    def _index_edges(self):
        """順伝播用の送り側・受け側番号配列（結合リストと同じ順序）"""
        self._edge_from = np.array([c.from_index for c in self.connections], dtype=int)
        self._edge_to = np.array([c.to_index for c in self.connections], dtype=int)

    # ------------------------------------------------------------------
    # 層アクセス
    # ------------------------------------------------------------------

    def get_layer(self, layer_type):
        for layer in self.layers:
            if layer.layer_type is layer_type:
                return layer
        raise KeyError(layer_type)

    @property
    def bias_layer(self):
        return self.get_layer(LayerType.BIAS)

    @property
    def input_layer(self):
        return self.get_layer(LayerType.INPUT)

    @property
    def hidden_layer(self):
        return self.get_layer(LayerType.HIDDEN)

    @property
    def output_layer(self):
        return self.get_layer(LayerType.OUTPUT)

    def layer_of(self, index):
        """グローバル番号から層インデックス"""
        return int(self._layer_of[index])

    def connections_to(self, index):
        return [c for c in self.connections if c.to_index == index]

    def connections_from(self, index):
        return [c for c in self.connections if c.from_index == index]

    def weight_matrix(self):
        """
        重み行列 W[to, from]（無効な結合と存在しない結合は0）

        Returns:
            shape [total_neurons, total_neurons]
        """
        n = len(self.neurons)
        matrix = np.zeros((n, n))
        for c in self.connections:
            if c.enabled:
                matrix[c.to_index, c.from_index] = c.weight
        return matrix

    # ------------------------------------------------------------------
    # 学習パターン
    # ------------------------------------------------------------------

    def load_patterns(self, patterns):
        """
        学習パターンを設定（全パターンを先に検証してから置き換える）

        Raises:
            ShapeMismatchError: 入力数・目標数がネットワークと一致しない
        """
        patterns = list(patterns)
        validate_patterns(patterns, self.dimensions.input_size, self.dimensions.output_size)
        self.training_data = patterns
        self.stats.pattern_count = len(patterns)

    # ------------------------------------------------------------------
    # 順伝播
    # ------------------------------------------------------------------

    def reset(self):
        """全ニューロンの状態をリセット"""
        for layer in self.layers:
            layer.reset()

    def forward(self, inputs):
        """
        順伝播（再帰、timesteps回）

        各タイムステップで隠れ層・出力層の入力和を「前ステップの出力」から計算し、
        全ニューロンを同時に更新する（ダブルバッファ）。

        Args:
            inputs: 論理入力 shape [input_size]

        Returns:
            出力層の出力 shape [output_size]

        Raises:
            ShapeMismatchError: 入力数がinput_sizeと異なる
        """
        inputs = np.asarray(inputs, dtype=float).ravel()
        if inputs.size != self.dimensions.input_size:
            raise ShapeMismatchError(
                f"入力数が一致しません: {inputs.size}（ネットワークの入力数: "
                f"{self.dimensions.input_size}）"
            )

        self.reset()
        n = len(self.neurons)
        outputs = np.zeros(n)

        bias_indices = self.bias_layer.indices
        outputs[bias_indices] = self.config.bias

        input_indices = self.input_layer.indices
        outputs[input_indices] = create_ei_pairs(inputs, self.config.flag_inhibitory_inputs)

        computed = np.concatenate([self.hidden_layer.indices, self.output_layer.indices]).astype(int)
        weights = np.array([c.weight if c.enabled else 0.0 for c in self.connections])
        net_input = np.zeros(n)

        for _ in range(self.config.timesteps):
            net_input = np.zeros(n)
            np.add.at(net_input, self._edge_to, weights * outputs[self._edge_from])
            current = outputs.copy()
            current[computed] = sigmoid(net_input[computed], self.config.sigmoid_steepness)
            outputs = current

        for index in bias_indices + input_indices:
            self.neurons[index].output = float(outputs[index])
        for index in computed:
            neuron = self.neurons[index]
            neuron.input = float(net_input[index])
            neuron.output = float(outputs[index])

        return self.output_layer.outputs()

    # ------------------------------------------------------------------
    # 誤差拡散・重み更新
    # ------------------------------------------------------------------

    def diffuse_error(self, targets):
        """
        出力誤差を2チャネルに分離して隠れ層へ拡散

        隠れ→出力の結合ごとの寄与は uniform なら1、magnitude なら |w|。

        Args:
            targets: 目標値 shape [output_size]

        Returns:
            予測誤差（目標 - 出力） shape [output_size]
        """
        output_layer = self.output_layer
        hidden_layer = self.hidden_layer

        errors = np.asarray(targets, dtype=float) - output_layer.outputs()
        for neuron, error in zip(output_layer, errors):
            neuron.error_channels = ErrorChannels.from_prediction_error(float(error))

        if len(hidden_layer) == 0:
            return errors

        hidden_start = hidden_layer.indices[0]
        output_start = output_layer.indices[0]
        weighted = self.config.error_diffusion == 'magnitude'
        magnitudes = np.zeros((len(hidden_layer), len(output_layer)))
        for c in self.connections:
            if (c.enabled
                    and self._layer_of[c.from_index] == hidden_layer.layer_index
                    and self._layer_of[c.to_index] == output_layer.layer_index):
                magnitudes[c.from_index - hidden_start, c.to_index - output_start] += (
                    abs(c.weight) if weighted else 1.0)

        polarity = np.outer(self._signs[hidden_layer.indices], self._signs[output_layer.indices])
        out_excitatory, out_inhibitory = split_error_channels(errors)
        hidden_excitatory, hidden_inhibitory = diffuse_to_hidden(
            out_excitatory, out_inhibitory, magnitudes, polarity,
            self.config.error_amplification
        )
        for neuron, exc, inh in zip(hidden_layer, hidden_excitatory, hidden_inhibitory):
            neuron.error_channels = ErrorChannels(exc, inh)

        return errors

    def update_weights(self):
        """
        全結合の重み更新（ED法）

        δ = learning_rate × ε × σ'(y_to) × y_from
        ε は受け側ニューロンのチャネルを結合の極性で選んだもの。
        重み減少モードでは反対側のチャネルで逆向きの更新も行う。

        Returns:
            健全性上限でクランプされた結合数
        """
        lr = self.config.learning_rate
        bound = self.config.weight_sanity_bound
        decrement = self.config.mode_weight_decrement
        clamps = 0

        for c in self.connections:
            if not c.enabled:
                continue
            source = self.neurons[c.from_index]
            target = self.neurons[c.to_index]
            governing, opposite = select_governing_channel(
                target.error_channels, source.neuron_type, target.neuron_type
            )
            scale = lr * sigmoid_derivative(target.output) * source.output

            if c.update(scale * governing, 1.0, source.neuron_type, target.neuron_type, bound):
                clamps += 1
            if decrement and c.update(-scale * opposite, 1.0, source.neuron_type,
                                      target.neuron_type, bound):
                clamps += 1

        if clamps:
            self.stats.record_weight_clamp(clamps)
        return clamps

    def train_pattern(self, pattern):
        """
        1パターンの学習（順伝播 → 誤差拡散 → 重み更新）

        Returns:
            予測誤差 shape [output_size]
        """
        self.forward(pattern.inputs)
        errors = self.diffuse_error(pattern.targets)
        self.update_weights()
        return errors

    # ------------------------------------------------------------------
    # 学習ループ
    # ------------------------------------------------------------------

    def _require_patterns(self):
        if not self.training_data:
            raise NoTrainingDataError(
                "学習パターンが設定されていません\n"
                "\n修正方法:\n"
                "  network.load_patterns(patterns) で学習パターンを設定してください"
            )

    def train_one_epoch(self):
        """
        全パターンを固定順で1回ずつ学習

        Returns:
            LearningStats（ネットワークが保持する統計そのもの）

        Raises:
            NoTrainingDataError: 学習パターンが未設定
        """
        self._require_patterns()

        threshold = self.config.convergence_threshold
        total_error = 0.0
        error_count = 0
        for pattern in self.training_data:
            errors = np.abs(self.train_pattern(pattern))
            if errors.max() > threshold:
                error_count += 1
            total_error += float(errors.sum())

        self.stats.pattern_count = len(self.training_data)
        self.stats.update_epoch(self.stats.epoch + 1, total_error, error_count)
        self.stats.check_convergence(threshold)
        return self.stats

    def train_until_converged(self, max_epochs=None, callback=None):
        """
        収束するか上限エポックに達するまで学習

        Args:
            max_epochs: 上限エポック数（Noneなら config.max_epochs）
            callback: エポックごとに統計のスナップショットを受け取る関数。
                      Falseを返すと学習を打ち切る。

        Returns:
            LearningStats のスナップショット
        """
        self._require_patterns()
        if max_epochs is None:
            max_epochs = self.config.max_epochs
        if max_epochs < 0:
            raise ConfigurationError(f"max_epochs は0以上である必要があります（指定値: {max_epochs}）")

        for _ in range(max_epochs):
            stats = self.train_one_epoch()
            if callback is not None and callback(stats.snapshot()) is False:
                break
            if stats.converged:
                break

        if self.verbose:
            self.print_training_result()
        return self.stats.snapshot()

    # ------------------------------------------------------------------
    # 表示
    # ------------------------------------------------------------------

    def print_summary(self):
        """構築サマリーの表示"""
        dims = self.dimensions
        cfg = self.config
        print(f"\n[ED法ネットワーク構築]")
        print(f"  - 構成: 入力{dims.input_size}（ペア{2 * dims.input_size}）"
              f" - 隠れ{dims.hidden_size} - 出力{dims.output_size}")
        print(f"  - 総ニューロン数: {dims.total_neurons}")
        print(f"  - 結合数: {len(self.connections)}")
        print(f"  - 学習率: {cfg.learning_rate}, 再帰回数: {cfg.timesteps}, "
              f"シグモイド勾配: {cfg.sigmoid_steepness}, 誤差拡散: {cfg.error_diffusion}")
        flags = []
        if cfg.flag_multilayer:
            flags.append("多層")
        if cfg.flag_loop_cutting:
            flags.append("ループカット")
        if cfg.flag_self_loop_cutting:
            flags.append("自己ループカット")
        if cfg.flag_inhibitory_inputs:
            flags.append("抑制性入力")
        if cfg.mode_weight_decrement:
            flags.append("重み減少")
        print(f"  - 有効フラグ: {', '.join(flags) if flags else 'なし'}")

    def print_training_result(self):
        stats = self.stats
        print(f"\n[学習結果]")
        print(f"  - {stats}")
        print(f"  - 収束: {'はい' if stats.converged else 'いいえ'}")
        if stats.weight_clamp_count:
            print(f"  - 警告: 重みクランプ {stats.weight_clamp_count} 回（数値不安定）")

    # ------------------------------------------------------------------
    # 辞書との相互変換
    # ------------------------------------------------------------------

    def to_dict(self):
        """保存用の辞書（JSON化可能な値のみ）"""
        return {
            "layers": [layer.to_dict() for layer in self.layers],
            "connections": [c.to_dict() for c in self.connections],
            "config": self.config.to_dict(),
            "dimensions": self.dimensions.to_dict(),
            "stats": self.stats.to_dict(),
            "training_data": [p.to_dict() for p in self.training_data],
        }

    @classmethod
    def from_dict(cls, data, verbose=False):
        """
        辞書からネットワークを復元（乱数による再初期化は行わない）

        Raises:
            ConfigurationError: 設定・寸法が不正
            ShapeMismatchError: 層構成・学習パターンが寸法と一致しない
        """
        network = cls.__new__(cls)
        network.dimensions = NetworkDimensions.from_dict(data["dimensions"])
        network.config = EDConfig.from_dict(data["config"])
        network.seed = None
        network.rng = np.random.default_rng()
        network.verbose = verbose

        network.layers = [NetworkLayer.from_dict(d) for d in data["layers"]]
        if len(network.layers) != 4 or sum(len(l) for l in network.layers) != network.dimensions.total_neurons:
            raise ShapeMismatchError(
                f"層構成が寸法と一致しません: {[len(l) for l in network.layers]}"
                f"（総ニューロン数 {network.dimensions.total_neurons}）"
            )
        network._register_neurons()

        network.connections = [Connection.from_dict(d) for d in data["connections"]]
        network._index_edges()

        network.stats = LearningStats.from_dict(data["stats"])
        patterns = [TrainingPattern.from_dict(d) for d in data["training_data"]]
        validate_patterns(patterns, network.dimensions.input_size, network.dimensions.output_size)
        network.training_data = patterns
        return network

    def __repr__(self):
        dims = self.dimensions
        return (f"EDNetwork({dims.input_size}-{dims.hidden_size}-{dims.output_size}, "
                f"connections={len(self.connections)}, epoch={self.stats.epoch})")


def new_network(dimensions, config=None, seed=None, verbose=False):
    """
    寸法と設定からネットワークを生成

    Args:
        dimensions: NetworkDimensions または (input_size, hidden_size, output_size)
        config: EDConfig（Noneなら既定値）
        seed: 乱数シード（同じシード・設定なら同じ初期重み）
    """
    if not isinstance(dimensions, NetworkDimensions):
        dimensions = NetworkDimensions(*dimensions)
    return EDNetwork(dimensions.input_size, dimensions.hidden_size, dimensions.output_size,
                     config=config, seed=seed, verbose=verbose)
