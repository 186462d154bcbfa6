#!/usr/bin/env python3
"""
可視化マネージャー - リアルタイム学習進捗・重みヒートマップ表示

役割:
  - 日本語フォント設定
  - 保存パス決定
  - リアルタイム学習曲線表示（総誤差・正解率）
  - 重み行列ヒートマップ表示（符号制約の確認用、青=負・赤=正）

クラス:
  - VisualizationManager: 図の生成・更新・保存

使用例:
    from ed_modules.visualization_manager import VisualizationManager

    viz = VisualizationManager(enable_viz=True, enable_heatmap=True,
                               save_path='viz_results/xor', total_epochs=2000)
    viz.update_learning_curve(network.stats)
    viz.update_heatmap(network)
    viz.save_figures()   # → viz_results/xor_viz.png, viz_results/xor_heatmap.png
    viz.close()
"""

from datetime import datetime
from pathlib import Path

import matplotlib
import matplotlib.font_manager as fm
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from .layer_structure import neuron_labels

IMAGE_SUFFIXES = ['.png', '.jpg', '.jpeg', '.pdf', '.svg']


def setup_japanese_font():
    """
    日本語フォントを設定する（Noto Sans CJK JP優先、fallback付き）

    Returns:
    --------
    str or None
        選択されたフォント名（見つからない場合はNone）
    """
    preferred_fonts = [
        'Noto Sans CJK JP',
        'Noto Sans JP',
        'IPAexGothic',
        'IPAGothic',
        'TakaoPGothic',
    ]
    available_fonts = [f.name for f in fm.fontManager.ttflist]

    selected_font = next((f for f in preferred_fonts if f in available_fonts), None)
    if selected_font is None:
        selected_font = next(
            (f for f in available_fonts if 'CJK' in f or 'Japan' in f or 'IPA' in f), None
        )

    if selected_font is None:
        return None

    plt.rcParams['font.family'] = selected_font
    plt.rcParams['font.sans-serif'] = [selected_font] + plt.rcParams['font.sans-serif']
    plt.rcParams['axes.unicode_minus'] = False
    return selected_font


def determine_save_path(save_path):
    """
    保存パス（拡張子なしのベース名）を決定

    Examples:
    ---------
    - 'results/': results/viz_results_YYYYMMDD_HHMMSS
    - 'results/xor.png': results/xor
    - 'xor': xor
    """
    if save_path is None:
        return None

    if save_path.endswith('/') or Path(save_path).is_dir():
        directory = Path(save_path)
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        return str(directory / f'viz_results_{timestamp}')

    path = Path(save_path)
    if path.parent != Path('.'):
        path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in IMAGE_SUFFIXES:
        return str(path.with_suffix(''))
    return save_path


class VisualizationManager:
    """
    リアルタイム可視化マネージャー

    機能:
    - 学習曲線表示（総誤差・正解率）
    - 重み行列ヒートマップ表示
    - 図の保存
    """

    def __init__(self, enable_viz=False, enable_heatmap=False, save_path=None, total_epochs=100):
        """
        Parameters:
        -----------
        enable_viz : bool
            学習曲線表示の有効化
        enable_heatmap : bool
            ヒートマップ表示の有効化
        save_path : str or None
            保存パス（ディレクトリまたはベースファイル名、Noneなら保存なし）
            両方有効な場合は _viz.png, _heatmap.png を付けて保存
        total_epochs : int
            総エポック数（学習曲線の横軸設定用）
        """
        self.enable_viz = enable_viz
        self.enable_heatmap = enable_heatmap
        self.save_path = determine_save_path(save_path)
        self.total_epochs = total_epochs

        self.fig_viz = None
        self.fig_heatmap = None

        if enable_viz or enable_heatmap:
            setup_japanese_font()

        if self.enable_viz:
            plt.ion()
            self.fig_viz = plt.figure(figsize=(12, 5))
            self.fig_viz.canvas.manager.set_window_title('Learning Curve')

        if self.enable_heatmap:
            plt.ion()
            self.fig_heatmap = plt.figure(figsize=(10, 6))
            self.fig_heatmap.canvas.manager.set_window_title('Weight Heatmap')

    def _refresh(self, figure):
        if matplotlib.get_backend().lower() == 'agg':
            figure.canvas.draw()
            return
        plt.figure(figure.number)
        plt.pause(0.01)
        plt.draw()

    def update_learning_curve(self, stats):
        """
        学習曲線を更新

        Parameters:
        -----------
        stats : LearningStats
            error_history / accuracy_history を持つ学習統計
        """
        if not self.enable_viz or self.fig_viz is None:
            return

        self.fig_viz.clear()
        ax1, ax2 = self.fig_viz.subplots(1, 2)
        epochs_list = list(range(1, len(stats.error_history) + 1))

        ax1.plot(epochs_list, stats.error_history, color='tab:red')
        ax1.set_xlabel('Epoch')
        ax1.set_ylabel('Total Error')
        ax1.set_title('Total Error')
        ax1.set_xlim(0, max(self.total_epochs, len(epochs_list)))
        ax1.set_ylim(bottom=0.0)
        ax1.grid(True, alpha=0.3)

        ax2.plot(epochs_list, stats.accuracy_history, color='tab:blue')
        ax2.set_xlabel('Epoch')
        ax2.set_ylabel('Accuracy [%]')
        ax2.set_title('Pattern Accuracy')
        ax2.set_xlim(0, max(self.total_epochs, len(epochs_list)))
        ax2.set_ylim(0.0, 100.0)
        ax2.set_yticks(list(range(0, 101, 10)))
        ax2.grid(True, alpha=0.3)
        for y in [20, 40, 60, 80]:
            ax2.axhline(y=y, color='gray', linestyle='-', linewidth=0.5, alpha=0.5)

        self.fig_viz.suptitle(str(stats), fontsize=10)
        self._refresh(self.fig_viz)

    def update_heatmap(self, network, epoch=None):
        """
        重み行列ヒートマップを更新（行=受け側の隠れ層・出力層、列=全ニューロン）

        Parameters:
        -----------
        network : EDNetwork
            表示対象のネットワーク
        epoch : int or None
            タイトルに表示するエポック番号（Noneなら統計から取得）
        """
        if not self.enable_heatmap or self.fig_heatmap is None:
            return

        self.fig_heatmap.clear()
        ax = self.fig_heatmap.add_subplot(1, 1, 1)

        labels = neuron_labels(network.layers)
        targets = network.hidden_layer.indices + network.output_layer.indices
        matrix = network.weight_matrix()[targets, :]
        limit = max(float(np.max(np.abs(matrix))), 1e-8)

        sns.heatmap(matrix, ax=ax, cmap='RdBu_r', center=0.0, vmin=-limit, vmax=limit,
                    xticklabels=labels, yticklabels=[labels[i] for i in targets],
                    cbar_kws={'label': 'Weight'})
        ax.set_xlabel('From')
        ax.set_ylabel('To')
        epoch = network.stats.epoch if epoch is None else epoch
        ax.set_title(f'Weight Matrix (Epoch: {epoch})')

        self._refresh(self.fig_heatmap)

    def save_figures(self):
        """
        可視化図を保存

        Returns:
        --------
        tuple[str, str] or tuple[None, None]
            (学習曲線保存パス, ヒートマップ保存パス)
        """
        if not (self.enable_viz or self.enable_heatmap) or self.save_path is None:
            return None, None

        plt.ioff()
        both = self.fig_viz is not None and self.fig_heatmap is not None

        save_path_viz = None
        save_path_heatmap = None

        if self.fig_viz is not None:
            save_path_viz = f"{self.save_path}_viz.png" if both else f"{self.save_path}.png"
            self.fig_viz.savefig(save_path_viz, dpi=150, bbox_inches='tight')
            print(f"[学習曲線保存] {save_path_viz}")

        if self.fig_heatmap is not None:
            save_path_heatmap = f"{self.save_path}_heatmap.png" if both else f"{self.save_path}.png"
            self.fig_heatmap.savefig(save_path_heatmap, dpi=150, bbox_inches='tight')
            print(f"[ヒートマップ保存] {save_path_heatmap}")

        return save_path_viz, save_path_heatmap

    def close(self):
        """可視化ウィンドウを閉じる"""
        if self.fig_viz is not None:
            plt.close(self.fig_viz)
            self.fig_viz = None
        if self.fig_heatmap is not None:
            plt.close(self.fig_heatmap)
            self.fig_heatmap = None
