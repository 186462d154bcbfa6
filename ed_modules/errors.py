#!/usr/bin/env python3
"""
例外クラスモジュール

役割:
  - ED法ネットワーク固有の例外階層
  - 形状不一致・次元超過・設定不正・学習データ未設定の区別

クラス:
  - EDNetworkError: 基底例外
  - ConfigurationError: 設定値が不正
  - ShapeMismatchError: パターンの入力数・目標数がネットワークと不一致
  - DimensionOverflowError: ニューロン総数が上限を超過
  - NoTrainingDataError: 学習パターン未設定のまま学習を開始
  - PatternFileError: パターンファイル・ネットワーク文書の形式不正

使用例:
    from ed_modules.errors import ShapeMismatchError

    try:
        network.load_patterns(patterns)
    except ShapeMismatchError as e:
        print(f"パターン形状エラー: {e}")
"""


class EDNetworkError(Exception):
    """ED法ネットワーク関連の全例外の基底クラス"""


class ConfigurationError(EDNetworkError, ValueError):
    """設定値が範囲外、または未知の設定キーが指定された"""


class ShapeMismatchError(EDNetworkError, ValueError):
    """
    パターン形状の不一致

    入力ベクトル長が論理入力数と異なる、または目標ベクトル長が
    出力ニューロン数と異なる場合に送出される。重みには一切触れない。
    """


class DimensionOverflowError(EDNetworkError, ValueError):
    """ニューロン総数が上限（MAX_NETWORK_SIZE）を超えた"""


class NoTrainingDataError(EDNetworkError, RuntimeError):
    """学習パターンが読み込まれていない"""


class PatternFileError(EDNetworkError, ValueError):
    """パターンファイルまたはネットワーク文書のJSON形式が不正"""
