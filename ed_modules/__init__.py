"""
ED法（誤差拡散学習法）ニューラルネットワーク モジュール

モジュール構成:
- ed_network: ネットワーク本体（構築・順伝播・誤差拡散・学習ループ）
- neuron_structure / layer_structure: ニューロン・結合・層
- amine_diffusion: 2チャネル誤差の配分
- hyperparameters: 設定値と課題別パラメータテーブル
- data_loader: 学習パターンの生成・読み込み
- serialization: ネットワークのJSON保存・復元
- accuracy_verifier: パターン別検証レポート
- visualization_manager: 学習曲線・重みヒートマップ表示
"""

from .data_loader import TrainingPattern
from .ed_network import EDNetwork, NetworkDimensions, new_network
from .errors import (
    ConfigurationError,
    DimensionOverflowError,
    EDNetworkError,
    NoTrainingDataError,
    PatternFileError,
    ShapeMismatchError,
)
from .hyperparameters import EDConfig, HyperParams
from .learning_stats import LearningStats

__all__ = [
    'EDNetwork',
    'NetworkDimensions',
    'new_network',
    'EDConfig',
    'HyperParams',
    'LearningStats',
    'TrainingPattern',
    'EDNetworkError',
    'ConfigurationError',
    'ShapeMismatchError',
    'DimensionOverflowError',
    'NoTrainingDataError',
    'PatternFileError',
]

__version__ = "1.0.0"
