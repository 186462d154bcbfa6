#!/usr/bin/env python3
"""
ネットワーク保存・復元モジュール

役割:
  - EDNetworkをJSON文書に変換（層・結合・設定・寸法・統計・学習パターン）
  - JSON文書からEDNetworkを復元
  - 保存 → 復元 → 保存 でバイト単位に同一の文書を生成

関数:
  - dumps_network / loads_network: 文字列との相互変換
  - save_network / load_network: ファイルとの相互変換

使用例:
    from ed_modules.serialization import save_network, load_network

    save_network(network, 'results/xor_network.json')
    restored = load_network('results/xor_network.json')
    restored.forward([1.0, 0.0])  # 保存前と同じ出力
"""

import json
import os

from .ed_network import EDNetwork
from .errors import PatternFileError

REQUIRED_KEYS = ("layers", "connections", "config", "dimensions", "stats", "training_data")


def dumps_network(network):
    """ネットワークをJSON文字列に変換"""
    return json.dumps(network.to_dict(), indent=2, ensure_ascii=False)


def loads_network(text, verbose=False):
    """
    JSON文字列からネットワークを復元

    Raises:
        PatternFileError: JSON形式が不正、または必須キーが欠けている
        ConfigurationError: 設定値が不正
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise PatternFileError(
            f"ネットワーク文書のJSON形式が不正です（行 {e.lineno}, 列 {e.colno}: {e.msg}）"
        ) from e

    if not isinstance(document, dict):
        raise PatternFileError("ネットワーク文書はJSONオブジェクトである必要があります")
    missing = [key for key in REQUIRED_KEYS if key not in document]
    if missing:
        raise PatternFileError(
            f"ネットワーク文書に必須キーがありません: {missing}\n"
            f"必須キー: {list(REQUIRED_KEYS)}"
        )

    try:
        return EDNetwork.from_dict(document, verbose=verbose)
    except (KeyError, TypeError) as e:
        raise PatternFileError(f"ネットワーク文書の内容が不正です: {e!r}") from e


def save_network(network, path):
    """
    ネットワークをJSONファイルに保存

    Returns:
        保存したファイルパス
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(dumps_network(network))
    return path


def load_network(path, verbose=False):
    """
    JSONファイルからネットワークを復元

    Raises:
        FileNotFoundError: ファイルが存在しない
        PatternFileError: 文書の形式が不正
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"ネットワークファイルが見つかりません: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return loads_network(f.read(), verbose=verbose)
