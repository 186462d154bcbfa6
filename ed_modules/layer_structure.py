#!/usr/bin/env python3
"""
層構造モジュール

役割:
  - 層の役割（バイアス・入力・隠れ・出力）の管理
  - 役割に応じたニューロン種別の割り当て
  - 層単位のリセット・範囲チェック付きアクセス

種別の割り当て規則:
  - 出力層: 全て興奮性
  - バイアス層・入力層・隠れ層: 交互配置（局所インデックス0が抑制性）

クラス:
  - LayerType: 層の役割
  - NetworkLayer: ニューロンの順序付き集合

関数:
  - neuron_labels: 重み行列・ヒートマップ用の表示ラベル

使用例:
    from ed_modules.layer_structure import LayerType, NetworkLayer

    # 論理入力2個 → 入力層は4ニューロン（グローバル番号2から）
    layer = NetworkLayer(LayerType.INPUT, size=4, layer_index=1, start_index=2)
    layer.get_neuron(0).neuron_type   # → NeuronType.INHIBITORY
    layer.get_neuron(10)              # → None
"""

from enum import Enum

import numpy as np

from .neuron_structure import Neuron, NeuronType


class LayerType(Enum):
    """層の役割"""

    BIAS = "Bias"
    INPUT = "Input"
    HIDDEN = "Hidden"
    OUTPUT = "Output"


# 構築順の層インデックス
LAYER_ORDER = {
    LayerType.BIAS: 0,
    LayerType.INPUT: 1,
    LayerType.HIDDEN: 2,
    LayerType.OUTPUT: 3,
}

# 表示ラベルの層略号
LAYER_PREFIX = {
    LayerType.BIAS: 'b',
    LayerType.INPUT: 'i',
    LayerType.HIDDEN: 'h',
    LayerType.OUTPUT: 'o',
}


class NetworkLayer:
    """同じ役割を持つニューロンの順序付き集合"""

    def __init__(self, layer_type, size, layer_index=None, start_index=0, neurons=None):
        """
        Args:
            layer_type: LayerType
            size: ニューロン数
            layer_index: 層インデックス（Noneなら役割から決定）
            start_index: 先頭ニューロンのグローバル番号
            neurons: 復元用の既存ニューロンリスト（指定時はsizeを無視）
        """
        self.layer_type = layer_type
        self.layer_index = LAYER_ORDER[layer_type] if layer_index is None else layer_index

        if neurons is not None:
            self.neurons = list(neurons)
            return

        self.neurons = []
        for i in range(size):
            if layer_type is LayerType.OUTPUT:
                neuron_type = NeuronType.EXCITATORY
            else:
                neuron_type = NeuronType.from_index(i)
            self.neurons.append(Neuron(neuron_type, start_index + i))

    def __len__(self):
        return len(self.neurons)

    def __iter__(self):
        return iter(self.neurons)

    @property
    def indices(self):
        """グローバル番号のリスト"""
        return [n.index for n in self.neurons]

    def reset(self):
        """層内の全ニューロンをリセット"""
        for neuron in self.neurons:
            neuron.reset()

    def get_neuron(self, index):
        """局所インデックスでニューロンを返す（範囲外ならNone）"""
        if 0 <= index < len(self.neurons):
            return self.neurons[index]
        return None

    def outputs(self):
        """層の出力値を配列で返す"""
        return np.array([n.output for n in self.neurons], dtype=float)

    def to_dict(self):
        return {
            "layer_type": self.layer_type.value,
            "layer_index": self.layer_index,
            "neurons": [n.to_dict() for n in self.neurons],
        }

    @classmethod
    def from_dict(cls, data):
        neurons = [Neuron.from_dict(d) for d in data["neurons"]]
        return cls(LayerType(data["layer_type"]), len(neurons),
                   layer_index=int(data["layer_index"]), neurons=neurons)

    def __repr__(self):
        types = "".join(str(n.neuron_type) for n in self.neurons)
        return f"NetworkLayer({self.layer_type.value}, index={self.layer_index}, types={types})"


def neuron_labels(layers):
    """
    全ニューロンの表示ラベル（グローバル番号順）

    例: 'i0-' = 入力層の局所0番、抑制性 / 'o0+' = 出力層の局所0番、興奮性
    """
    labels = []
    for layer in layers:
        prefix = LAYER_PREFIX[layer.layer_type]
        for local, neuron in enumerate(layer):
            labels.append(f"{prefix}{local}{neuron.neuron_type}")
    return labels
