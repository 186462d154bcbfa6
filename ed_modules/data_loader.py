#!/usr/bin/env python3
"""
学習パターン生成・読み込みモジュール

役割:
  - 学習パターン（入力ベクトル・目標ベクトル・識別番号）の表現
  - ED法の代表的なベンチマーク課題の生成
    （XOR、Nビットパリティ、ミラー対称性、ランダム、ワンホット）
  - JSONパターンファイルの読み書き
  - ネットワーク寸法との形状検証

関数:
  - create_xor_dataset: 2入力XOR（4パターン）
  - create_parity_dataset: Nビットパリティ（2^Nパターン）
  - create_mirror_dataset: 左右対称性検出
  - create_random_dataset: ランダム目標（記憶課題）
  - create_one_hot_dataset: 出力ごとに1パターンだけが1
  - create_dataset: 課題名から生成
  - validate_patterns: 形状・値域の検証
  - load_pattern_file / save_pattern_file: JSONパターンファイル

使用例:
    from ed_modules.data_loader import create_parity_dataset, validate_patterns

    patterns = create_parity_dataset(3)
    # → 8パターン、入力ビットの1の個数が奇数なら目標1
    validate_patterns(patterns, input_size=3, output_size=1)

パターンファイル形式:
    {
        "name": "my_patterns",
        "patterns": [
            {"inputs": [0.0, 1.0], "targets": [1.0]},
            {"inputs": [1.0, 1.0], "targets": [0.0], "id": 3}
        ]
    }
"""

import json
import os

import numpy as np

from .errors import PatternFileError, ShapeMismatchError


class TrainingPattern:
    """学習パターン（不変）"""

    __slots__ = ("_inputs", "_targets", "_id")

    def __init__(self, inputs, targets, id):
        inputs = tuple(float(v) for v in inputs)
        targets = tuple(float(v) for v in targets)
        for name, values in (("inputs", inputs), ("targets", targets)):
            if any(not 0.0 <= v <= 1.0 for v in values):
                raise ValueError(
                    f"パターン{id}の{name}は全て[0, 1]の範囲である必要があります: {list(values)}"
                )
        self._inputs = inputs
        self._targets = targets
        self._id = int(id)

    @property
    def inputs(self):
        return self._inputs

    @property
    def targets(self):
        return self._targets

    @property
    def id(self):
        return self._id

    def to_dict(self):
        return {"inputs": list(self._inputs), "targets": list(self._targets), "id": self._id}

    @classmethod
    def from_dict(cls, data, default_id=0):
        return cls(data["inputs"], data["targets"], data.get("id", default_id))

    def __eq__(self, other):
        if not isinstance(other, TrainingPattern):
            return NotImplemented
        return (self._inputs, self._targets, self._id) == (other._inputs, other._targets, other._id)

    def __hash__(self):
        return hash((self._inputs, self._targets, self._id))

    def __repr__(self):
        return f"TrainingPattern(id={self._id}, inputs={list(self._inputs)}, targets={list(self._targets)})"


def _binary_inputs(pattern_index, n_bits):
    """パターン番号のビット列（下位ビットが入力0）"""
    return [1.0 if (pattern_index >> bit) & 1 else 0.0 for bit in range(n_bits)]


def create_xor_dataset():
    """
    2入力XOR

    入力順: [00, 10, 01, 11] → 目標 [0, 1, 1, 0]
    """
    return [
        TrainingPattern([0.0, 0.0], [0.0], 0),
        TrainingPattern([1.0, 0.0], [1.0], 1),
        TrainingPattern([0.0, 1.0], [1.0], 2),
        TrainingPattern([1.0, 1.0], [0.0], 3),
    ]


def create_parity_dataset(n_bits):
    """
    Nビットパリティ

    Args:
        n_bits: 入力ビット数

    Returns:
        2^n_bits 個のパターン。1の個数が奇数なら目標1、偶数なら0
    """
    if n_bits < 1:
        raise ValueError(f"n_bits は1以上である必要があります（指定値: {n_bits}）")

    patterns = []
    for i in range(1 << n_bits):
        inputs = _binary_inputs(i, n_bits)
        ones = sum(1 for v in inputs if v > 0.5)
        patterns.append(TrainingPattern(inputs, [1.0 if ones % 2 == 1 else 0.0], i))
    return patterns


def create_mirror_dataset(n_bits):
    """
    ミラー対称性検出

    ビット列が左右対称なら目標1、非対称なら0
    """
    if n_bits < 2:
        raise ValueError(f"ミラー課題には2ビット以上が必要です（指定値: {n_bits}）")

    patterns = []
    for i in range(1 << n_bits):
        inputs = _binary_inputs(i, n_bits)
        symmetric = all(inputs[k] == inputs[n_bits - 1 - k] for k in range(n_bits // 2))
        patterns.append(TrainingPattern(inputs, [1.0 if symmetric else 0.0], i))
    return patterns


def create_random_dataset(n_inputs, n_patterns, n_outputs=1, seed=None,
                          random_inputs=False, real_valued_targets=False):
    """
    ランダム目標のパターン

    Args:
        n_inputs: 論理入力数
        n_patterns: パターン数
        n_outputs: 出力数
        seed: 乱数シード
        random_inputs: Trueなら入力も[0,1)の乱数（Falseなら2進の網羅パターン）
        real_valued_targets: Trueなら目標を[0,1)の実数、Falseなら0/1
    """
    rng = np.random.default_rng(seed)
    patterns = []
    for i in range(n_patterns):
        if random_inputs:
            inputs = [float(rng.random()) for _ in range(n_inputs)]
        else:
            inputs = _binary_inputs(i, n_inputs)

        if real_valued_targets:
            targets = [float(rng.random()) for _ in range(n_outputs)]
        else:
            targets = [1.0 if rng.random() > 0.5 else 0.0 for _ in range(n_outputs)]
        patterns.append(TrainingPattern(inputs, targets, i))
    return patterns


def create_one_hot_dataset(n_bits, n_outputs=1, seed=None):
    """
    ワンホット分類パターン

    各出力について、他の出力と重複しないパターンを1つ乱数で選び、
    そのパターンだけ目標1、残りは0とする。
    """
    n_patterns = 1 << n_bits
    if n_outputs > n_patterns:
        raise ValueError(
            f"出力数 {n_outputs} がパターン数 {n_patterns} を超えています"
        )

    rng = np.random.default_rng(seed)
    chosen = rng.choice(n_patterns, size=n_outputs, replace=False)
    targets = np.zeros((n_patterns, n_outputs))
    for out_idx, pattern_idx in enumerate(chosen):
        targets[pattern_idx, out_idx] = 1.0

    return [TrainingPattern(_binary_inputs(i, n_bits), targets[i], i)
            for i in range(n_patterns)]


def create_dataset(task, n_bits=None, n_outputs=1, n_patterns=None, seed=None):
    """
    課題名からパターンを生成

    Args:
        task: 'xor', 'parity', 'mirror', 'random', 'one_hot'
        n_bits: 入力ビット数（xorでは無視）
        n_outputs: 出力数（random / one_hot のみ）
        n_patterns: パターン数（randomのみ、Noneなら2^n_bits）
        seed: 乱数シード
    """
    if task == 'xor':
        return create_xor_dataset()
    if n_bits is None:
        raise ValueError(f"課題 '{task}' には入力ビット数が必要です")
    if task == 'parity':
        return create_parity_dataset(n_bits)
    if task == 'mirror':
        return create_mirror_dataset(n_bits)
    if task == 'random':
        count = n_patterns if n_patterns is not None else 1 << n_bits
        return create_random_dataset(n_bits, count, n_outputs=n_outputs, seed=seed)
    if task == 'one_hot':
        return create_one_hot_dataset(n_bits, n_outputs=n_outputs, seed=seed)
    raise ValueError(
        f"未知の課題です: {task}\n"
        f"利用可能な課題: ['xor', 'parity', 'mirror', 'random', 'one_hot']"
    )


def validate_patterns(patterns, input_size, output_size):
    """
    パターンの形状検証

    Args:
        patterns: TrainingPatternのリスト
        input_size: 論理入力数
        output_size: 出力ニューロン数

    Raises:
        ShapeMismatchError: 入力数・目標数が一致しないパターンがある場合

    検証項目:
        1. 入力ベクトル長 == input_size
        2. 目標ベクトル長 == output_size
    """
    problems = []
    for position, pattern in enumerate(patterns):
        if len(pattern.inputs) != input_size:
            problems.append(
                f"パターン{position}（id={pattern.id}）: 入力数 {len(pattern.inputs)} ≠ {input_size}"
            )
        if len(pattern.targets) != output_size:
            problems.append(
                f"パターン{position}（id={pattern.id}）: 目標数 {len(pattern.targets)} ≠ {output_size}"
            )

    if problems:
        shown = problems[:10]
        more = f"\n  ... 他{len(problems) - 10}件" if len(problems) > 10 else ""
        raise ShapeMismatchError(
            "学習パターンの形状がネットワークと一致しません:\n"
            + "\n".join(f"  - {p}" for p in shown) + more
            + f"\n\n修正方法:\n"
            f"  ネットワークの入力数={input_size}、出力数={output_size} に合わせて"
            f"パターンを作成してください"
        )


def load_pattern_file(path):
    """
    JSONパターンファイルの読み込み

    Args:
        path: ファイルパス

    Returns:
        TrainingPatternのリスト（idが無いパターンは出現順の番号）

    Raises:
        FileNotFoundError: ファイルが存在しない
        PatternFileError: JSON形式・必須フィールドの不正
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"パターンファイルが見つかりません: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise PatternFileError(
            f"パターンファイルのJSON形式が不正です: {path}\n"
            f"  行 {e.lineno}, 列 {e.colno}: {e.msg}"
        ) from e

    if not isinstance(document, dict) or not isinstance(document.get('patterns'), list):
        raise PatternFileError(
            f"パターンファイルには 'patterns' リストが必要です: {path}\n"
            f"\n形式の例:\n"
            f"  {{\"name\": \"xor\", \"patterns\": [{{\"inputs\": [0, 1], \"targets\": [1]}}]}}"
        )

    patterns = []
    for position, entry in enumerate(document['patterns']):
        if not isinstance(entry, dict) or 'inputs' not in entry or 'targets' not in entry:
            raise PatternFileError(
                f"パターン{position}に 'inputs' と 'targets' が必要です: {path}"
            )
        try:
            patterns.append(TrainingPattern.from_dict(entry, default_id=position))
        except (TypeError, ValueError) as e:
            raise PatternFileError(f"パターン{position}の値が不正です: {e}") from e

    if not patterns:
        raise PatternFileError(f"パターンファイルが空です: {path}")

    return patterns


def save_pattern_file(patterns, path, name='patterns'):
    """パターンをJSONファイルに保存"""
    document = {'name': name, 'patterns': [p.to_dict() for p in patterns]}
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
        f.write('\n')
    return path
