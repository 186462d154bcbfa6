#!/usr/bin/env python3
"""
アミン拡散モジュール（2チャネル誤差の配分）

★ED法の核心メカニズム★
役割:
  - 出力層の予測誤差を興奮性・抑制性の2チャネル（アミン濃度）に分離
  - 出力層のアミンを結合 h→o ごとの係数 m で隠れ層へ配分（uniform: m=1、magnitude: m=|w|）
  - 結合の極性（送り側符号 × 受け側符号）によるチャネルの入れ替え

配分規則（隠れニューロン h、出力ニューロン o、結合 h→o）:
  - 極性 +1: h.興奮性 += o.興奮性 × m,  h.抑制性 += o.抑制性 × m
  - 極性 -1: h.興奮性 += o.抑制性 × m,  h.抑制性 += o.興奮性 × m
  - 最後に両チャネルへ error_amplification を掛ける
  バイアス層・入力層へは配分しない。

関数:
  - split_error_channels: 予測誤差 → (興奮性, 抑制性) 配列
  - diffuse_to_hidden: 出力層のアミンを隠れ層へ配分
  - select_governing_channel: 重み更新で参照するチャネルの選択

使用例:
    from ed_modules.amine_diffusion import split_error_channels, diffuse_to_hidden
    import numpy as np

    exc_out, inh_out = split_error_channels(np.array([0.3, -0.2]))
    # → exc_out=[0.3, 0.0], inh_out=[0.0, 0.2]

    exc_hidden, inh_hidden = diffuse_to_hidden(
        exc_out, inh_out,
        magnitudes=edge_mask.astype(float),  # shape [n_hidden, n_output]
        polarity=polarity_hidden_output,      # +1 / -1
        amplification=1.0
    )
"""

import numpy as np


def split_error_channels(errors):
    """
    予測誤差（目標 - 出力）を2チャネルに分離

    Args:
        errors: 予測誤差 shape [n_output]

    Returns:
        excitatory: 正の誤差（出力を上げるべき量）
        inhibitory: 負の誤差の大きさ（出力を下げるべき量）
        各要素で非ゼロになるのは高々一方のみ
    """
    errors = np.asarray(errors, dtype=float)
    return np.maximum(errors, 0.0), np.maximum(-errors, 0.0)


def diffuse_to_hidden(excitatory, inhibitory, magnitudes, polarity, amplification=1.0):
    """
    出力層のアミン濃度を隠れ層へ配分

    Args:
        excitatory: 出力層の興奮性チャネル shape [n_output]
        inhibitory: 出力層の抑制性チャネル shape [n_output]
        magnitudes: 結合 h→o ごとの係数 m（結合なしは0） shape [n_hidden, n_output]
        polarity: 結合の極性 sign(h) × sign(o) shape [n_hidden, n_output]
        amplification: 誤差増幅率

    Returns:
        隠れ層の興奮性チャネル, 抑制性チャネル（各 shape [n_hidden]）
    """
    magnitudes = np.asarray(magnitudes, dtype=float)
    polarity = np.asarray(polarity, dtype=float)

    same = np.where(polarity > 0, magnitudes, 0.0)
    crossed = np.where(polarity < 0, magnitudes, 0.0)

    hidden_excitatory = same @ excitatory + crossed @ inhibitory
    hidden_inhibitory = same @ inhibitory + crossed @ excitatory

    return hidden_excitatory * amplification, hidden_inhibitory * amplification


def select_governing_channel(channels, from_type, to_type):
    """
    重み更新で参照するチャネルを受け側ニューロンのチャネルから選ぶ

    極性 +1 の結合は興奮性チャネル、極性 -1 の結合は抑制性チャネル。

    Returns:
        (支配チャネル, もう一方のチャネル)
    """
    if from_type.sign_factor * to_type.sign_factor > 0:
        return channels.excitatory, channels.inhibitory
    return channels.inhibitory, channels.excitatory
