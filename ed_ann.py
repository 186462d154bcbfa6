#!/usr/bin/env python3
"""
ED法（誤差拡散学習法）ニューラルネットワーク - コマンドライン実行

使用例:
    python ed_ann.py --task xor
    python ed_ann.py --task parity --bits 4 --hidden 8 --epochs 3000 --report
    python ed_ann.py --pattern_file my_patterns.json --hidden 6 --save results/net.json
    python ed_ann.py --load results/net.json --epochs 500 --viz --heatmap
"""

import argparse
import sys
import time

from tqdm import tqdm

from ed_modules.accuracy_verifier import PatternVerifier
from ed_modules.data_loader import create_dataset, load_pattern_file
from ed_modules.ed_network import NetworkDimensions, new_network
from ed_modules.errors import EDNetworkError
from ed_modules.hyperparameters import DIFFUSION_MODES, EDConfig, HyperParams
from ed_modules.serialization import load_network, save_network
from ed_modules.visualization_manager import VisualizationManager

# コマンドライン引数 → EDConfigのフィールド
CONFIG_ARGS = {
    'timesteps': 'timesteps',
    'lr': 'learning_rate',
    'bias': 'bias',
    'steepness': 'sigmoid_steepness',
    'amplification': 'error_amplification',
    'diffusion': 'error_diffusion',
    'weight_range': 'weight_init_range',
    'threshold_range': 'threshold_init_range',
    'threshold': 'convergence_threshold',
}

# 無効化フラグ → EDConfigのフィールドと設定値
FLAG_ARGS = {
    'no_multilayer': ('flag_multilayer', False),
    'no_loop_cutting': ('flag_loop_cutting', False),
    'allow_self_loops': ('flag_self_loop_cutting', False),
    'no_inhibitory_inputs': ('flag_inhibitory_inputs', False),
    'weight_decrement': ('mode_weight_decrement', True),
}


def parse_args(argv=None):
    """コマンドライン引数の解析"""
    parser = argparse.ArgumentParser(
        description='ED法（誤差拡散学習法）ニューラルネットワーク\n'
                    '\n'
                    '【重要】課題に基づく自動パラメータ設定:\n'
                    '  - 課題（xor, parity, mirror, random, one_hot）ごとに内部テーブルの推奨値が適用されます\n'
                    '  - コマンドライン引数で明示的に指定した値は自動設定より優先されます\n'
                    '  - --list_hyperparams で利用可能な設定一覧を確認できます\n',
        formatter_class=argparse.RawTextHelpFormatter
    )

    # ========================================
    # 実行関連のパラメータ
    # ========================================
    exec_group = parser.add_argument_group('実行関連のパラメータ')
    exec_group.add_argument('--task', type=str, default='xor',
                            choices=['xor', 'parity', 'mirror', 'random', 'one_hot'],
                            help='学習課題（デフォルト値: xor）')
    exec_group.add_argument('--bits', type=int, default=None,
                            help='入力ビット数（デフォルト値: 課題に応じた自動設定、xorでは無視）')
    exec_group.add_argument('--outputs', type=int, default=None,
                            help='出力数（random / one_hot のみ、デフォルト値: 課題に応じた自動設定）')
    exec_group.add_argument('--patterns', type=int, default=None,
                            help='パターン数（randomのみ、デフォルト値: 2^bits）')
    exec_group.add_argument('--pattern_file', type=str, default=None,
                            help='JSONパターンファイル（指定時は--taskの生成パターンより優先）')
    exec_group.add_argument('--epochs', type=int, default=None,
                            help='最大エポック数（デフォルト値: 課題に応じた自動設定）')
    exec_group.add_argument('--seed', type=int, default=None,
                            help='乱数シード（デフォルト値: 1、再現性確保用）')
    exec_group.add_argument('--log_interval', type=int, default=100,
                            help='エポック結果を表示する間隔（デフォルト値: 100）')
    exec_group.add_argument('--list_hyperparams', action='store_true',
                            help='利用可能なHyperParams設定一覧を表示して終了')

    # ========================================
    # ED法関連のパラメータ
    # ========================================
    ed_group = parser.add_argument_group('ED法関連のパラメータ')
    ed_group.add_argument('--hidden', type=int, default=None,
                          help='隠れ層ニューロン数（デフォルト値: 課題に応じた自動設定）')
    ed_group.add_argument('--timesteps', type=int, default=None,
                          help='順伝播の再帰回数（デフォルト値: 2）')
    ed_group.add_argument('--lr', type=float, default=None,
                          help='学習率（デフォルト値: 0.8）')
    ed_group.add_argument('--bias', type=float, default=None,
                          help='バイアスニューロンの出力（デフォルト値: 0.8）')
    ed_group.add_argument('--steepness', type=float, default=None,
                          help='シグモイドの勾配パラメータ（デフォルト値: 2.0）')
    ed_group.add_argument('--amplification', type=float, default=None,
                          help='隠れ層へ拡散する誤差の倍率（デフォルト値: 1.0）')
    ed_group.add_argument('--diffusion', type=str, default=None, choices=DIFFUSION_MODES,
                          help='隠れ層への誤差拡散の重み付け（デフォルト値: uniform）')
    ed_group.add_argument('--weight_range', type=float, default=None,
                          help='初期重みの大きさの上限（デフォルト値: 0.1）')
    ed_group.add_argument('--threshold_range', type=float, default=None,
                          help='バイアス結合の初期重みの上限（デフォルト値: 0.1）')
    ed_group.add_argument('--threshold', type=float, default=None,
                          help='収束判定の閾値（デフォルト値: 0.1）')

    # ========================================
    # 結合構造関連のパラメータ
    # ========================================
    topo_group = parser.add_argument_group('結合構造関連のパラメータ')
    topo_group.add_argument('--no_multilayer', action='store_true',
                            help='入力層→出力層の直結を許可')
    topo_group.add_argument('--no_loop_cutting', action='store_true',
                            help='後段の層から前段の層への結合と同じ層内の結合を許可')
    topo_group.add_argument('--allow_self_loops', action='store_true',
                            help='自己結合を許可')
    topo_group.add_argument('--no_inhibitory_inputs', action='store_true',
                            help='入力ペアの抑制性側をゼロにする')
    topo_group.add_argument('--weight_decrement', action='store_true',
                            help='反対側のチャネルで重み減少も行う')

    # ========================================
    # 保存・レポート関連のパラメータ
    # ========================================
    io_group = parser.add_argument_group('保存・レポート関連のパラメータ')
    io_group.add_argument('--load', type=str, default=None, metavar='PATH',
                          help='保存済みネットワーク（JSON）から学習を再開')
    io_group.add_argument('--save', type=str, default=None, metavar='PATH',
                          help='学習後のネットワークをJSONで保存')
    io_group.add_argument('--report', action='store_true',
                          help='パターン別の検証レポートと重み行列を表示')

    # ========================================
    # 可視化関連のパラメータ
    # ========================================
    viz_group = parser.add_argument_group('可視化関連のパラメータ')
    viz_group.add_argument('--viz', action='store_true',
                           help='学習曲線のリアルタイム可視化を有効化')
    viz_group.add_argument('--heatmap', action='store_true',
                           help='重み行列ヒートマップの表示を有効化')
    viz_group.add_argument('--save_viz', type=str, nargs='?', const='viz_results/',
                           default=None, metavar='PATH',
                           help='可視化結果を保存。'
                                '末尾"/"でディレクトリ（タイムスタンプ付き）、末尾"/"なしでベースファイル名。'
                                '学習曲線とヒートマップを同時に保存する場合は、_viz.pngと_heatmap.pngが付加されます。'
                                '引数なし: viz_results/にタイムスタンプ付きで保存。')

    args = parser.parse_args(argv)
    if args.log_interval < 1:
        parser.error(f"--log_interval は1以上である必要があります（指定値: {args.log_interval}）")
    return args


def build_config(args, preset_overrides, base=None):
    """
    EDConfigの組み立て

    優先順位: 明示的なコマンドライン引数 > 課題テーブル > base（既定値または読み込んだ設定）
    """
    base = base if base is not None else EDConfig()
    overrides = dict(preset_overrides)
    for arg_name, field in CONFIG_ARGS.items():
        value = getattr(args, arg_name)
        if value is not None:
            overrides[field] = value
    for arg_name, (field, value) in FLAG_ARGS.items():
        if getattr(args, arg_name):
            overrides[field] = value
    overrides['max_epochs'] = args.epochs
    return base.replace(**overrides)


def prepare_network(args):
    """引数からネットワークと学習パターンを準備"""
    hp = HyperParams()

    if args.load is not None:
        print(f"ネットワーク読み込み中... ({args.load})")
        network = load_network(args.load, verbose=False)
        if args.epochs is None:
            args.epochs = network.config.max_epochs
        network.config = build_config(args, {}, base=network.config)
        if args.pattern_file is not None:
            network.load_patterns(load_pattern_file(args.pattern_file))
        network.verbose = True
        network.print_summary()
        return network, args.pattern_file or args.load

    preset = hp.get_config(args.task)

    # 各パラメータ: Noneの場合のみテーブル値を適用（明示指定された値は尊重）
    if args.bits is None:
        args.bits = preset['input_size']
    if args.outputs is None:
        args.outputs = preset['output_size']
    if args.hidden is None:
        args.hidden = preset['hidden']
    if args.epochs is None:
        args.epochs = preset['epochs']
    if args.seed is None:
        args.seed = preset['seed']

    if args.pattern_file is not None:
        patterns = load_pattern_file(args.pattern_file)
        dataset_name = args.pattern_file
    else:
        patterns = create_dataset(args.task, n_bits=args.bits, n_outputs=args.outputs,
                                  n_patterns=args.patterns, seed=args.seed)
        dataset_name = args.task

    input_size = len(patterns[0].inputs)
    output_size = len(patterns[0].targets)
    config = build_config(args, preset['config'])

    print(f"\n=== 課題に基づくHyperParams設定を自動適用（{args.task}） ===")
    print("*** コマンドライン引数で明示的に指定された値は、テーブル値より優先されます。")
    print(f"patterns: {dataset_name}（{len(patterns)}パターン）")
    print(f"input_size: {input_size}")
    print(f"hidden: {args.hidden}")
    print(f"output_size: {output_size}")
    print(f"epochs: {args.epochs}")
    print(f"seed: {args.seed}")
    print("=" * 70)

    network = new_network(NetworkDimensions(input_size, args.hidden, output_size),
                          config=config, seed=args.seed, verbose=True)
    network.load_patterns(patterns)
    return network, dataset_name


def run(args):
    """学習の実行（終了コードを返す）"""
    network, dataset_name = prepare_network(args)

    # ========================================
    # 可視化マネージャーの初期化
    # ========================================
    viz_manager = None
    if args.viz or args.heatmap:
        viz_manager = VisualizationManager(
            enable_viz=args.viz,
            enable_heatmap=args.heatmap,
            save_path=args.save_viz,
            total_epochs=network.stats.epoch + args.epochs
        )
        print("\n可視化機能: 有効")
        if args.save_viz:
            print(f"  - 保存先: {args.save_viz}")

    # ========================================
    # 学習ループ
    # ========================================
    print("\n" + "=" * 70)
    print("学習開始")
    print("=" * 70)

    start_epoch = network.stats.epoch
    start_time = time.time()
    pbar = tqdm(total=args.epochs, desc="Training", ncols=120)

    def on_epoch(stats):
        pbar.update(1)
        pbar.set_postfix({
            'Error': f'{stats.total_error:.4f}',
            'Acc': f'{stats.accuracy:.1f}%',
        })
        done = stats.epoch - start_epoch
        if done % args.log_interval == 0 or stats.converged:
            tqdm.write(f"Epoch {done:5d}/{args.epochs}: "
                       f"Error={stats.total_error:.6f}, "
                       f"Accuracy={stats.accuracy:.1f}% "
                       f"({stats.pattern_count - stats.error_count}/{stats.pattern_count})")
            if viz_manager is not None:
                viz_manager.update_learning_curve(stats)
                viz_manager.update_heatmap(network, epoch=stats.epoch)
        return True

    try:
        stats = network.train_until_converged(max_epochs=args.epochs, callback=on_epoch)
    finally:
        pbar.close()

    # ========================================
    # 結果サマリー
    # ========================================
    elapsed = time.time() - start_time
    print("\n" + "=" * 70)
    print("学習完了")
    print("=" * 70)
    print(f"最終結果: {stats}")
    print(f"収束: {'はい' if stats.converged else 'いいえ'}"
          f"（{stats.epoch - start_epoch}エポック, {elapsed:.2f}s）")
    if stats.error_history:
        print(f"総誤差: 初回={stats.error_history[0]:.6f} → 最終={stats.total_error:.6f}")
    if stats.weight_clamp_count:
        print(f"警告: 重みクランプ {stats.weight_clamp_count} 回（数値不安定）")

    if args.report:
        verifier = PatternVerifier(network)
        verifier.verify(dataset_name=dataset_name)
        verifier.weight_report()

    if args.save is not None:
        path = save_network(network, args.save)
        print(f"\n[ネットワーク保存] {path}")

    if viz_manager is not None:
        viz_manager.update_learning_curve(stats)
        viz_manager.update_heatmap(network)
        saved_viz, saved_heatmap = viz_manager.save_figures()
        if saved_viz or saved_heatmap:
            print("\n可視化結果を保存しました:")
            if saved_viz:
                print(f"  - 学習曲線: {saved_viz}")
            if saved_heatmap:
                print(f"  - ヒートマップ: {saved_heatmap}")
        viz_manager.close()

    print("\n" + "=" * 70)
    return 0


def main(argv=None):
    """メイン処理"""
    args = parse_args(argv)

    if args.list_hyperparams:
        HyperParams().list_configs()
        return 0

    try:
        return run(args)
    except (EDNetworkError, FileNotFoundError) as e:
        print(f"\nエラー: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
