#!/usr/bin/env python3
"""
学習統計モジュール

役割:
  - エポックごとの総誤差・誤りパターン数・正解率の記録
  - 収束判定（総誤差 < 閾値）
  - 誤差履歴（学習曲線用）の蓄積
  - 数値不安定イベント（重みクランプ）の記録

クラス:
  - LearningStats: 学習統計

表示形式:
    Epoch:{e} Error:{err:.6f} Accuracy:{a:.1f}% Patterns:{ok}/{total}
"""

import copy


class LearningStats:
    """
    ED学習の進捗統計

    履歴は追記のみ。スカラー値はエポックごとに上書きされる。
    """

    def __init__(self, pattern_count=0):
        self.epoch = 0
        self.total_error = 0.0
        self.error_count = 0
        self.pattern_count = pattern_count
        self.error_history = []
        self.accuracy_history = []
        self.converged = False
        self.accuracy = 0.0
        self.weight_clamp_count = 0

    def update_epoch(self, epoch, total_error, error_count):
        """エポック結果を反映して履歴に追加"""
        self.epoch = epoch
        self.total_error = float(total_error)
        self.error_count = error_count
        self.error_history.append(self.total_error)
        if self.pattern_count > 0:
            self.accuracy = 100.0 * (self.pattern_count - error_count) / self.pattern_count
        else:
            self.accuracy = 0.0
        self.accuracy_history.append(self.accuracy)

    def check_convergence(self, threshold):
        """総誤差が閾値未満なら収束"""
        self.converged = self.total_error < threshold
        return self.converged

    def error_rate(self):
        """誤りパターンの割合"""
        if self.pattern_count == 0:
            return 0.0
        return self.error_count / self.pattern_count

    def record_weight_clamp(self, count=1):
        self.weight_clamp_count += count

    def snapshot(self):
        """呼び出し側が保持できる独立コピー"""
        return copy.deepcopy(self)

    def to_dict(self):
        return {
            "epoch": self.epoch,
            "total_error": self.total_error,
            "error_count": self.error_count,
            "pattern_count": self.pattern_count,
            "error_history": list(self.error_history),
            "accuracy_history": list(self.accuracy_history),
            "converged": self.converged,
            "accuracy": self.accuracy,
            "weight_clamp_count": self.weight_clamp_count,
        }

    @classmethod
    def from_dict(cls, data):
        stats = cls(int(data["pattern_count"]))
        stats.epoch = int(data["epoch"])
        stats.total_error = float(data["total_error"])
        stats.error_count = int(data["error_count"])
        stats.error_history = [float(e) for e in data["error_history"]]
        stats.accuracy_history = [float(a) for a in data.get("accuracy_history", [])]
        stats.converged = bool(data["converged"])
        stats.accuracy = float(data["accuracy"])
        stats.weight_clamp_count = int(data.get("weight_clamp_count", 0))
        return stats

    def __str__(self):
        return (f"Epoch:{self.epoch} Error:{self.total_error:.6f} "
                f"Accuracy:{self.accuracy:.1f}% "
                f"Patterns:{self.pattern_count - self.error_count}/{self.pattern_count}")

    def __repr__(self):
        return f"LearningStats({self})"
