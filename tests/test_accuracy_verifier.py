"""パターン検証レポートのテスト"""

import numpy as np

from ed_modules.accuracy_verifier import PatternVerifier


class TestPatternVerifier:

    def test_evaluate_rows(self, xor_network):
        rows = PatternVerifier(xor_network).evaluate()
        assert [r['id'] for r in rows] == [0, 1, 2, 3]
        for row, pattern in zip(rows, xor_network.training_data):
            assert row['targets'] == list(pattern.targets)
            np.testing.assert_allclose(row['errors'],
                                       np.array(row['targets']) - np.array(row['outputs']))
            assert len(row['hidden']) == 2

    def test_threshold_decides_correctness(self, xor_network):
        assert all(r['correct'] for r in PatternVerifier(xor_network, threshold=1.0).evaluate())
        assert not any(r['correct'] for r in PatternVerifier(xor_network, threshold=0.0).evaluate())

    def test_verify_prints_report(self, xor_network, capsys):
        rows = PatternVerifier(xor_network).verify(dataset_name="XOR")
        out = capsys.readouterr().out
        assert "パターン検証レポート - XOR" in out
        assert "隠れ層" in out
        assert len(rows) == 4

    def test_verify_without_patterns(self, capsys):
        from ed_modules.ed_network import new_network
        rows = PatternVerifier(new_network((2, 2, 1), seed=1)).verify()
        assert rows == []
        assert "検証パターンがありません" in capsys.readouterr().out

    def test_weight_report(self, xor_network, capsys):
        matrix = PatternVerifier(xor_network).weight_report()
        assert matrix.shape == (3, 9)
        np.testing.assert_array_equal(matrix, xor_network.weight_matrix()[[6, 7, 8], :])
        assert "重み行列" in capsys.readouterr().out
