#!/usr/bin/env python3
"""
興奮性・抑制性ニューロン構造モジュール

★Dale's Principle実装の基礎★
役割:
  - ニューロン種別（興奮性 +1 / 抑制性 -1）の管理
  - 2チャネル誤差（興奮性チャネル・抑制性チャネル）
  - ニューロン単体の状態（入力和・出力・誤差チャネル）
  - 符号制約付き結合（重みの符号 = 送り側符号 × 受け側符号）

クラス:
  - NeuronType: ニューロン種別
  - ErrorChannels: 2チャネル誤差
  - Neuron: ニューロン状態
  - Connection: 符号制約付き結合

関数:
  - create_ei_pairs: 論理入力を抑制性・興奮性ペアに展開
  - create_ei_flags: 種別配列から符号配列（+1/-1）を生成

使用例:
    from ed_modules.neuron_structure import NeuronType, ErrorChannels, Connection

    # 交互配置: 0=抑制性, 1=興奮性, 2=抑制性, ...
    types = [NeuronType.from_index(i) for i in range(4)]

    # 予測誤差を2チャネルに分離
    channels = ErrorChannels.from_prediction_error(-0.3)
    # → excitatory=0.0, inhibitory=0.3

    # 抑制性→興奮性の結合は負の重みになる
    c = Connection.new(0, 5, 0.7, NeuronType.INHIBITORY, NeuronType.EXCITATORY)
    # → c.weight == -0.7
"""

from enum import Enum

import numpy as np

from .activation_functions import sigmoid, sign_of


# 重みの健全性上限（これを超えたらクランプして統計に記録）
WEIGHT_SANITY_BOUND = 1.0e6


class NeuronType(Enum):
    """ニューロン種別（符号係数を1つだけ持つタグ付き列挙型）"""

    EXCITATORY = "Excitatory"
    INHIBITORY = "Inhibitory"

    @property
    def sign_factor(self):
        """重み計算用の符号係数（興奮性=+1.0、抑制性=-1.0）"""
        return 1.0 if self is NeuronType.EXCITATORY else -1.0

    @classmethod
    def from_index(cls, index):
        """
        交互配置の種別を返す

        (index + 1) % 2 == 1 なら抑制性、それ以外は興奮性。
        したがって 0=抑制性, 1=興奮性, 2=抑制性, ...
        """
        if (index + 1) % 2 == 0:
            return cls.EXCITATORY
        return cls.INHIBITORY

    def __str__(self):
        return "+" if self is NeuronType.EXCITATORY else "-"


class ErrorChannels:
    """
    2チャネル誤差（アミン濃度に相当）

    excitatory: 出力を上げるべき量（≥0）
    inhibitory: 出力を下げるべき量（≥0）
    """

    __slots__ = ("excitatory", "inhibitory")

    def __init__(self, excitatory=0.0, inhibitory=0.0):
        self.excitatory = float(excitatory)
        self.inhibitory = float(inhibitory)

    @classmethod
    def from_prediction_error(cls, error):
        """
        予測誤差（目標 - 出力）をチャネルに振り分ける

        正の誤差 → 興奮性チャネル、負の誤差 → 抑制性チャネル、
        ゼロなら両チャネルともゼロ。非ゼロになるのは高々1チャネル。
        """
        if error > 0.0:
            return cls(error, 0.0)
        if error < 0.0:
            return cls(0.0, -error)
        return cls(0.0, 0.0)

    def has_error_signal(self):
        """いずれかのチャネルに誤差があるか"""
        return self.excitatory > 0.0 or self.inhibitory > 0.0

    def error_magnitude(self):
        """支配的なチャネルの大きさ"""
        return max(self.excitatory, self.inhibitory)

    def to_dict(self):
        return {"excitatory": self.excitatory, "inhibitory": self.inhibitory}

    @classmethod
    def from_dict(cls, data):
        return cls(data["excitatory"], data["inhibitory"])

    def __eq__(self, other):
        if not isinstance(other, ErrorChannels):
            return NotImplemented
        return (self.excitatory == other.excitatory
                and self.inhibitory == other.inhibitory)

    def __repr__(self):
        return f"ErrorChannels(excitatory={self.excitatory}, inhibitory={self.inhibitory})"

    def __str__(self):
        return f"E:{self.excitatory:.4f} I:{self.inhibitory:.4f}"


class Neuron:
    """
    ニューロン1個の状態

    結合は知らない。入力和の計算は層とネットワークが担当する。
    """

    def __init__(self, neuron_type, index):
        self._neuron_type = neuron_type
        self._index = index
        self.input = 0.0
        self.output = 0.0
        self.error_channels = ErrorChannels()

    @property
    def neuron_type(self):
        return self._neuron_type

    @property
    def index(self):
        return self._index

    @property
    def is_excitatory(self):
        return self._neuron_type is NeuronType.EXCITATORY

    @property
    def is_inhibitory(self):
        return self._neuron_type is NeuronType.INHIBITORY

    def reset(self):
        """新しいパターンのために入力・出力・誤差チャネルをゼロに戻す"""
        self.input = 0.0
        self.output = 0.0
        self.error_channels = ErrorChannels()

    def activate(self, steepness):
        """output = σ(input; steepness)"""
        self.output = sigmoid(self.input, steepness)

    def to_dict(self):
        return {
            "neuron_type": self._neuron_type.value,
            "index": self._index,
            "input": float(self.input),
            "output": float(self.output),
            "error_channels": self.error_channels.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        neuron = cls(NeuronType(data["neuron_type"]), int(data["index"]))
        neuron.input = float(data["input"])
        neuron.output = float(data["output"])
        neuron.error_channels = ErrorChannels.from_dict(data["error_channels"])
        return neuron

    def __repr__(self):
        return (f"Neuron({self._neuron_type}{self._index}, "
                f"input={self.input:.4f}, output={self.output:.4f}, {self.error_channels})")


class Connection:
    """
    有向結合 from → to

    ★符号制約★
      重みの符号 = sign(from) × sign(to)（またはゼロ）
      - 興奮性→興奮性、抑制性→抑制性: 非負
      - 種別の異なる結合: 非正
      学習されるのは重みの大きさのみ。
    """

    __slots__ = ("from_index", "to_index", "weight", "enabled")

    def __init__(self, from_index, to_index, weight, enabled=True):
        self.from_index = from_index
        self.to_index = to_index
        self.weight = float(weight)
        self.enabled = enabled

    @classmethod
    def new(cls, from_index, to_index, base_weight, from_type, to_type):
        """
        符号制約を適用した結合を生成

        Args:
            base_weight: 初期重み（大きさのみ使用、[0, weight_init_range)の乱数）
            from_type, to_type: 両端のニューロン種別
        """
        polarity = from_type.sign_factor * to_type.sign_factor
        return cls(from_index, to_index, abs(base_weight) * polarity)

    def update(self, delta_base, error_signal, from_type, to_type,
               bound=WEIGHT_SANITY_BOUND):
        """
        ED法の重み更新

        weight += delta_base * error_signal * sign(from) * sign(to)

        負のdelta（重み減少モード）でゼロを跨ぐ場合は0.0で止める。
        |weight| が bound を超えた場合は bound にクランプする。

        Returns:
            bool: クランプが発生したらTrue（数値不安定イベント）
        """
        if not self.enabled:
            return False

        polarity = from_type.sign_factor * to_type.sign_factor
        weight = self.weight + delta_base * error_signal * polarity

        # 符号制約の維持（極性の逆転は禁止）
        if sign_of(weight) == -polarity:
            weight = 0.0

        clamped = False
        if abs(weight) > bound:
            weight = bound * polarity
            clamped = True

        self.weight = weight
        return clamped

    def to_dict(self):
        return {
            "from": self.from_index,
            "to": self.to_index,
            "weight": float(self.weight),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(int(data["from"]), int(data["to"]), float(data["weight"]),
                   bool(data["enabled"]))

    def __repr__(self):
        state = "" if self.enabled else ", disabled"
        return f"Connection({self.from_index}->{self.to_index}, weight={self.weight:.6f}{state})"


def create_ei_pairs(x, inhibitory_inputs=True):
    """
    論理入力を抑制性・興奮性ペアに展開

    ★Dale's Principle★
    論理入力 k は隣接する2ニューロン（局所インデックス 2k=抑制性、
    2k+1=興奮性）に同じ値を与える。inhibitory_inputs=False のとき
    抑制性側はゼロにマスクされる。

    Args:
        x: 論理入力 shape [n_input]
        inhibitory_inputs: 抑制性側を活性化するか

    Returns:
        x_paired: shape [n_input * 2]
                 [x1(-), x1(+), x2(-), x2(+), ...]
    """
    x = np.asarray(x, dtype=float)
    x_paired = np.repeat(x, 2)
    if not inhibitory_inputs:
        x_paired[0::2] = 0.0
    return x_paired


def create_ei_flags(neuron_types):
    """
    種別のリストから符号配列を生成

    Args:
        neuron_types: NeuronTypeのリスト

    Returns:
        ei_flags: shape [n_neurons]
                 +1 = 興奮性ニューロン
                 -1 = 抑制性ニューロン
    """
    return np.array([t.sign_factor for t in neuron_types], dtype=float)
