#!/usr/bin/env python3
"""
パターン検証モジュール - パターン別の出力・誤差と重み行列のレポート

役割:
  - 学習済みネットワークで全パターンを順伝播し、出力・目標・誤差を一覧表示
  - 隠れ層の活性度の表示（学習の中身を確認する詳細モード）
  - 重み行列（受け側 × 送り側）の表示

クラス:
  - PatternVerifier: 検証レポート

使用例:
    from ed_modules.accuracy_verifier import PatternVerifier

    verifier = PatternVerifier(network)
    rows = verifier.verify(dataset_name="XOR")
    verifier.weight_report()
"""

import numpy as np

from .layer_structure import neuron_labels


class PatternVerifier:
    """
    パターン別の検証レポート

    機能:
    - 正誤判定（全出力の |誤差| が閾値以下なら正解）
    - パターン別の出力・目標・誤差・隠れ層活性度
    - 重み行列の表示
    """

    def __init__(self, network, threshold=None):
        """
        Parameters:
        -----------
        network : EDNetwork
            検証対象のネットワーク
        threshold : float or None
            正誤判定の閾値（Noneなら config.convergence_threshold）
        """
        self.network = network
        self.threshold = network.config.convergence_threshold if threshold is None else threshold

    def evaluate(self, patterns=None):
        """
        全パターンを順伝播して結果を集計（表示なし）

        Returns:
        --------
        list[dict]
            各パターンの id, inputs, outputs, targets, errors, hidden, correct
        """
        patterns = self.network.training_data if patterns is None else patterns
        rows = []
        for pattern in patterns:
            outputs = self.network.forward(pattern.inputs)
            errors = np.asarray(pattern.targets) - outputs
            rows.append({
                'id': pattern.id,
                'inputs': list(pattern.inputs),
                'outputs': outputs.tolist(),
                'targets': list(pattern.targets),
                'errors': errors.tolist(),
                'hidden': self.network.hidden_layer.outputs().tolist(),
                'correct': bool(np.max(np.abs(errors)) <= self.threshold),
            })
        return rows

    def verify(self, patterns=None, dataset_name="Patterns", show_hidden=True):
        """
        パターン別の検証レポートを表示

        Parameters:
        -----------
        patterns : list[TrainingPattern] or None
            検証パターン（Noneならネットワークの学習パターン）
        dataset_name : str
            レポート見出し
        show_hidden : bool
            隠れ層の活性度を表示するか
        """
        rows = self.evaluate(patterns)

        print("\n" + "=" * 70)
        print(f"パターン検証レポート - {dataset_name}")
        print("=" * 70)

        if not rows:
            print("\n  検証パターンがありません")
            print("=" * 70 + "\n")
            return rows

        n_correct = sum(1 for r in rows if r['correct'])
        total_error = sum(float(np.sum(np.abs(r['errors']))) for r in rows)
        print(f"\n全体統計:")
        print(f"  正解パターン: {n_correct}/{len(rows)} ({100.0 * n_correct / len(rows):.1f}%)")
        print(f"  総誤差: {total_error:.6f}")
        print(f"  判定閾値: |誤差| <= {self.threshold}")

        print(f"\nパターン別結果:")
        for r in rows:
            mark = 'OK' if r['correct'] else 'NG'
            inputs = " ".join(f"{v:.0f}" if v in (0.0, 1.0) else f"{v:.3f}" for v in r['inputs'])
            outputs = " ".join(f"{v:.4f}" for v in r['outputs'])
            targets = " ".join(f"{v:.2f}" for v in r['targets'])
            errors = " ".join(f"{v:+.4f}" for v in r['errors'])
            print(f"  [{mark}] #{r['id']:3d} 入力: {inputs} | 出力: {outputs} | "
                  f"目標: {targets} | 誤差: {errors}")
            if show_hidden and r['hidden']:
                hidden = " ".join(f"{v:.3f}" for v in r['hidden'])
                print(f"         隠れ層: {hidden}")

        print("=" * 70 + "\n")
        return rows

    def weight_report(self):
        """
        重み行列（行=受け側、列=送り側）を表示

        Returns:
        --------
        numpy.ndarray
            隠れ層・出力層を受け側とする部分行列
        """
        network = self.network
        matrix = network.weight_matrix()
        targets = network.hidden_layer.indices + network.output_layer.indices
        sub = matrix[targets, :]

        labels = neuron_labels(network.layers)

        col_width = 9
        print("\n" + "=" * 70)
        print("重み行列（行=受け側、列=送り側、0=結合なし）")
        print("=" * 70)
        print(" " * 7 + "".join(f"{label:>{col_width}s}" for label in labels))
        for row, index in zip(sub, targets):
            print(f"{labels[index]:>6s} " + "".join(f"{w:{col_width}.4f}" for w in row))
        print("=" * 70 + "\n")
        return sub
