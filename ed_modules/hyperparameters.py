#!/usr/bin/env python3
"""
ハイパーパラメータ管理モジュール

役割:
  - ED法ネットワークの全設定値（EDConfig）
  - 課題別の推奨パラメータテーブル管理（HyperParams）
  - 設定値の検証・辞書との相互変換

クラス:
  - EDConfig: ネットワーク設定レコード
  - HyperParams: 課題別パラメータテーブル管理クラス

使用例:
    from ed_modules.hyperparameters import EDConfig, HyperParams

    hp = HyperParams()
    preset = hp.get_config('parity')
    config = EDConfig(**preset['config'])
    # → 4ビットパリティの推奨構成（隠れ層8ニューロン）
"""

from .errors import ConfigurationError


# ネットワーク規模の上限（論理入力 + 隠れ + 出力）
MAX_NETWORK_SIZE = 1000

# 隠れ層への誤差の配分方法
DIFFUSION_MODES = ('uniform', 'magnitude')


class EDConfig:
    """
    ED法ネットワークの設定値

    既定値:
      - timesteps=2: 再帰処理回数（隠れ層→出力層に信号が届く最小回数）
      - learning_rate=0.8, bias=0.8: 金子勇氏のED法プログラムと同じ
      - sigmoid_steepness=2.0, weight_init_range=threshold_init_range=0.1
      - error_diffusion='uniform': 出力誤差を全隠れニューロンへ同じ量で放出
      - 結合フラグ: 多層・ループカット・自己ループカット・抑制性入力は全て有効
    """

    FIELDS = (
        'timesteps',
        'learning_rate',
        'bias',
        'sigmoid_steepness',
        'error_amplification',
        'error_diffusion',
        'weight_init_range',
        'threshold_init_range',
        'convergence_threshold',
        'flag_multilayer',
        'flag_loop_cutting',
        'flag_self_loop_cutting',
        'flag_inhibitory_inputs',
        'mode_weight_decrement',
        'max_epochs',
        'weight_sanity_bound',
    )

    def __init__(self, timesteps=2, learning_rate=0.8, bias=0.8, sigmoid_steepness=2.0,
                 error_amplification=1.0, error_diffusion='uniform',
                 weight_init_range=0.1, threshold_init_range=0.1,
                 convergence_threshold=0.1, flag_multilayer=True, flag_loop_cutting=True,
                 flag_self_loop_cutting=True, flag_inhibitory_inputs=True,
                 mode_weight_decrement=False, max_epochs=10000, weight_sanity_bound=1.0e6):
        """
        Args:
            timesteps: 1回の順伝播での再帰処理回数（≥1）
            learning_rate: 重み変化量の倍率
            bias: バイアスニューロンの一定出力
            sigmoid_steepness: シグモイドの勾配パラメータ
            error_amplification: 隠れ層へ拡散する誤差の倍率
            error_diffusion: 隠れ層への誤差の配分方法
                'uniform' = 全隠れニューロンに同じ量、'magnitude' = 結合 h→o の |w| で重み付け
            weight_init_range: 初期重みの大きさの上限
            threshold_init_range: バイアス結合の初期重みの上限
            convergence_threshold: 総誤差がこれ未満で学習終了
            flag_multilayer: 入力層→出力層の直結を禁止
            flag_loop_cutting: 後段の層から前段の層への結合と同じ層内の結合を禁止
            flag_self_loop_cutting: 自己結合を禁止
            flag_inhibitory_inputs: 入力ペアの抑制性側を活性化（Falseならゼロ）
            mode_weight_decrement: 両チャネルで逆向きの更新を行う
            max_epochs: 学習ループの上限エポック数
            weight_sanity_bound: |weight| の健全性上限
        """
        self.timesteps = timesteps
        self.learning_rate = learning_rate
        self.bias = bias
        self.sigmoid_steepness = sigmoid_steepness
        self.error_amplification = error_amplification
        self.error_diffusion = error_diffusion
        self.weight_init_range = weight_init_range
        self.threshold_init_range = threshold_init_range
        self.convergence_threshold = convergence_threshold
        self.flag_multilayer = flag_multilayer
        self.flag_loop_cutting = flag_loop_cutting
        self.flag_self_loop_cutting = flag_self_loop_cutting
        self.flag_inhibitory_inputs = flag_inhibitory_inputs
        self.mode_weight_decrement = mode_weight_decrement
        self.max_epochs = max_epochs
        self.weight_sanity_bound = weight_sanity_bound
        self.validate()

    def validate(self):
        """
        設定値の範囲チェック

        Raises:
            ConfigurationError: 範囲外の値がある場合
        """
        problems = []
        if int(self.timesteps) != self.timesteps or self.timesteps < 1:
            problems.append(f"timesteps は1以上の整数である必要があります（指定値: {self.timesteps}）")
        if self.sigmoid_steepness <= 0:
            problems.append(f"sigmoid_steepness は正の値である必要があります（指定値: {self.sigmoid_steepness}）")
        if self.learning_rate < 0:
            problems.append(f"learning_rate は0以上である必要があります（指定値: {self.learning_rate}）")
        if self.weight_init_range < 0 or self.threshold_init_range < 0:
            problems.append(
                f"初期化範囲は0以上である必要があります"
                f"（weight_init_range={self.weight_init_range}, "
                f"threshold_init_range={self.threshold_init_range}）"
            )
        if self.error_amplification < 0:
            problems.append(f"error_amplification は0以上である必要があります（指定値: {self.error_amplification}）")
        if self.error_diffusion not in DIFFUSION_MODES:
            problems.append(f"error_diffusion は {DIFFUSION_MODES} のいずれかである必要があります（指定値: {self.error_diffusion!r}）")
        if int(self.max_epochs) != self.max_epochs or self.max_epochs < 1:
            problems.append(f"max_epochs は1以上の整数である必要があります（指定値: {self.max_epochs}）")
        if self.weight_sanity_bound <= 0:
            problems.append(f"weight_sanity_bound は正の値である必要があります（指定値: {self.weight_sanity_bound}）")

        if problems:
            raise ConfigurationError(
                "ED法ネットワークの設定値が不正です:\n"
                + "\n".join(f"  - {p}" for p in problems)
            )

    def replace(self, **overrides):
        """一部の値を置き換えた新しい設定を返す"""
        values = self.to_dict()
        for key in overrides:
            if key not in values:
                raise ConfigurationError(f"未知の設定キー: {key}")
        values.update(overrides)
        return EDConfig(**values)

    def to_dict(self):
        return {name: getattr(self, name) for name in self.FIELDS}

    @classmethod
    def from_dict(cls, data):
        """
        辞書から設定を復元

        Raises:
            ConfigurationError: 未知のキーが含まれる場合
        """
        unknown = sorted(set(data) - set(cls.FIELDS))
        if unknown:
            raise ConfigurationError(
                f"未知の設定キーがあります: {unknown}\n"
                f"利用可能なキー: {list(cls.FIELDS)}"
            )
        return cls(**data)

    def __eq__(self, other):
        if not isinstance(other, EDConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        items = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"EDConfig({items})"


class HyperParams:
    """
    課題別パラメータをテーブル管理するクラス

    設計方針:
      - 課題（XOR・パリティ・ミラー等）ごとに推奨構成を提供
      - 隠れ層サイズ・エポック数・EDConfigの上書き値を一元管理
      - コマンドライン引数で明示指定した値はテーブルより優先
    """

    def __init__(self):
        """課題別設定テーブルの初期化"""

        self.task_configs = {
            'xor': {
                'input_size': 2,
                'hidden': 2,
                'output_size': 1,
                'epochs': 2000,
                'config': {},
                'description': '2入力XOR（最小構成、2-2-1）',
            },
            'parity': {
                'input_size': 4,
                'hidden': 8,
                'output_size': 1,
                'epochs': 3000,
                'config': {},
                'description': 'Nビットパリティ（4入力・8隠れ）',
            },
            'mirror': {
                'input_size': 4,
                'hidden': 8,
                'output_size': 1,
                'epochs': 3000,
                'config': {},
                'description': '対称性検出（ビット列が左右対称なら1）',
            },
            'random': {
                'input_size': 4,
                'hidden': 16,
                'output_size': 1,
                'epochs': 5000,
                'config': {'convergence_threshold': 0.5},
                'description': 'ランダム目標（記憶能力の確認用）',
            },
            'one_hot': {
                'input_size': 3,
                'hidden': 8,
                'output_size': 2,
                'epochs': 3000,
                'config': {},
                'description': '出力ごとに1パターンだけが1（分類）',
            },
        }

        # 共通パラメータ（課題非依存）
        self.common_params = {
            'seed': 1,
        }

    def get_config(self, task):
        """
        指定課題の設定を取得

        Args:
            task: 課題名（'xor', 'parity', 'mirror', 'random', 'one_hot'）

        Returns:
            dict: 課題に対応した設定辞書（'config'はEDConfigへの上書き値）

        Raises:
            ConfigurationError: 未知の課題名
        """
        if task not in self.task_configs:
            supported = list(self.task_configs.keys())
            raise ConfigurationError(
                f"課題 '{task}' はサポートされていません。"
                f"サポート課題: {supported}"
            )

        config = dict(self.task_configs[task])
        config['config'] = dict(config['config'])
        config.update(self.common_params)
        return config

    def list_configs(self):
        """利用可能な設定一覧を表示"""
        print("\n=== 利用可能な課題別設定 ===")
        for task, config in sorted(self.task_configs.items()):
            print(f"\n[{task}] {config['description']}")
            print(f"  input_size: {config['input_size']}")
            print(f"  hidden: {config['hidden']}")
            print(f"  output_size: {config['output_size']}")
            print(f"  epochs: {config['epochs']}")
            overrides = config['config'] or 'なし（EDConfig既定値）'
            print(f"  config上書き: {overrides}")
        print("\n注: 明示的に指定したコマンドライン引数はテーブル値より優先されます")
