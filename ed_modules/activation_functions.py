#!/usr/bin/env python3
"""
活性化関数・数値カーネルモジュール

★ED法準拠★
役割:
  - 勾配パラメータ付きシグモイド（金子勇氏のED法と同じ形式）
  - 出力値から計算するシグモイド微分（飽和項）
  - 範囲指定の乱数ドロー（シード付きGenerator使用）

重要: このモジュールの関数は微分の連鎖律を使用しません

関数:
  - sigmoid: σ(x; s) = 1 / (1 + exp(-2x/s))
  - sigmoid_derivative: 活性化後の値 y から y(1-y) を計算
  - random_weight: [0, range) の一様乱数
  - sign_of: 符号関数（-1, 0, +1）

使用例:
    from ed_modules.activation_functions import sigmoid, sigmoid_derivative
    import numpy as np

    y = sigmoid(np.array([-1.0, 0.0, 1.0]), steepness=0.4)
    saturation = sigmoid_derivative(y)
"""

import numpy as np


def sigmoid(x, steepness=0.4):
    """
    シグモイド関数（overflow回避）

    Args:
        x: 入力値または配列
        steepness: 勾配パラメータ（小さいほど急峻、金子氏のプログラムでは0.4）

    Returns:
        シグモイド変換後の値（0-1の範囲）
    """
    z = np.clip(-2.0 * np.asarray(x, dtype=float) / steepness, -500, 500)
    result = 1.0 / (1.0 + np.exp(z))
    if np.ndim(result) == 0:
        return float(result)
    return result


def sigmoid_derivative(output):
    """
    シグモイドの飽和項 y(1-y)

    Args:
        output: 活性化後の値 y（スカラーまたは配列）

    Returns:
        y * (1 - y)
    """
    return output * (1.0 - output)


def random_weight(rng, weight_range):
    """
    [0, weight_range) の一様乱数を1つ返す

    Args:
        rng: numpy.random.Generator（シード固定で再現性確保）
        weight_range: 上限値

    Returns:
        float: u * weight_range（u ∈ [0, 1)）
    """
    return float(rng.random()) * weight_range


def sign_of(x):
    """符号関数: 正なら1.0、負なら-1.0、ゼロなら0.0"""
    if x > 0.0:
        return 1.0
    if x < 0.0:
        return -1.0
    return 0.0
