"""共通フィクスチャ"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from ed_modules.data_loader import create_xor_dataset
from ed_modules.ed_network import NetworkDimensions, new_network
from ed_modules.hyperparameters import EDConfig


@pytest.fixture(autouse=True)
def set_random_seed():
    """グローバル乱数の固定（ネットワークは自前のGeneratorを使う）"""
    np.random.seed(42)


@pytest.fixture
def xor_patterns():
    return create_xor_dataset()


@pytest.fixture
def default_config():
    return EDConfig()


@pytest.fixture
def xor_network(xor_patterns):
    """2-2-1 のXORネットワーク（シード1、パターン読み込み済み）"""
    network = new_network(NetworkDimensions(2, 2, 1), seed=1)
    network.load_patterns(xor_patterns)
    return network

