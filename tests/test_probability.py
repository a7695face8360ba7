from __future__ import annotations

import unittest

from prizekiosk.prize_draw import (
    DrawConfig,
    ProbRow,
    boost_multiplier,
    compute_probs,
    draw,
    total_stock,
)

NO_BOOST = DrawConfig(threshold=0, beta=0.0, mcap=1.0)


class BoostMultiplierTests(unittest.TestCase):
    def test_caps_at_mcap(self) -> None:
        self.assertEqual(boost_multiplier(10, 3, 0.15, 2.0), 2.0)

    def test_below_threshold_is_one(self) -> None:
        self.assertEqual(boost_multiplier(0, 3, 0.15, 2.0), 1.0)
        self.assertEqual(boost_multiplier(3, 3, 0.15, 2.0), 1.0)

    def test_grows_linearly_between_bounds(self) -> None:
        self.assertAlmostEqual(boost_multiplier(5, 3, 0.15, 2.0), 1.3)

    def test_monotone_and_bounded(self) -> None:
        previous = 0.0
        for visits in range(0, 60):
            m = boost_multiplier(visits, 3, 0.15, 2.0)
            self.assertGreaterEqual(m, previous)
            self.assertGreaterEqual(m, 1.0)
            self.assertLessEqual(m, 2.0)
            previous = m

    def test_mcap_below_one_collapses_to_one(self) -> None:
        for visits in (0, 5, 100):
            self.assertEqual(boost_multiplier(visits, 0, 1.0, 0.5), 1.0)


class ComputeProbsTests(unittest.TestCase):
    def test_equal_weights_split_evenly(self) -> None:
        rows = compute_probs({"A": 1, "B": 1}, {"A": 1, "B": 1}, 0, NO_BOOST)
        self.assertEqual(
            rows,
            [ProbRow("A", 1, 50.0), ProbRow("B", 1, 50.0)],
        )

    def test_out_of_stock_prize_has_zero_probability(self) -> None:
        rows = compute_probs({"A": 0, "B": 1}, {"A": 1, "B": 1}, 0, NO_BOOST)
        self.assertEqual([r.probability for r in rows], [0.0, 100.0])

    def test_all_stock_zero_reports_zero_everywhere(self) -> None:
        rows = compute_probs({"A": 0, "B": -2}, {"A": 1, "B": 1}, 0, NO_BOOST)
        self.assertEqual([r.probability for r in rows], [0.0, 0.0])
        self.assertEqual([r.stock for r in rows], [0, 0])

    def test_zero_weights_report_zero_everywhere(self) -> None:
        rows = compute_probs({"A": 3, "B": 1}, {"A": 0}, 0, NO_BOOST)
        self.assertEqual([r.probability for r in rows], [0.0, 0.0])
        self.assertEqual([r.stock for r in rows], [3, 1])

    def test_infinite_weights_count_as_zero(self) -> None:
        rows = compute_probs(
            {"A": 1, "B": 1}, {"A": float("inf"), "B": 1}, 0, NO_BOOST
        )
        self.assertEqual([r.probability for r in rows], [0.0, 100.0])
        outcome = draw(
            {"A": 1, "B": 1}, {"A": float("inf"), "B": 1}, 0, NO_BOOST, rng=lambda: 0.0
        )
        self.assertEqual(outcome.prize, "B")

    def test_infinite_stock_counts_as_zero(self) -> None:
        self.assertEqual(total_stock({"A": float("inf"), "B": 2}), 2)

    def test_only_gain_targets_are_boosted(self) -> None:
        config = DrawConfig(
            threshold=3, beta=0.15, mcap=2.0, gain_targets=("A",), lose_names=("B",)
        )
        rows = compute_probs({"A": 1, "B": 1}, {"A": 1, "B": 1}, 10, config)
        self.assertAlmostEqual(rows[0].probability, 200 / 3)
        self.assertAlmostEqual(rows[1].probability, 100 / 3)

    def test_probabilities_sum_to_hundred(self) -> None:
        config = DrawConfig(
            threshold=3,
            beta=0.15,
            mcap=2.0,
            gain_targets=("大当たり", "中当たり", "小当たり"),
            lose_names=("はずれ",),
        )
        inventory = {"大当たり": 3, "中当たり": 30, "小当たり": 99, "はずれ": 418}
        weights = {"大当たり": 1.0, "中当たり": 0.7, "小当たり": 1.3, "はずれ": 1.0}
        for visits in range(0, 15):
            rows = compute_probs(inventory, weights, visits, config)
            self.assertAlmostEqual(sum(r.probability for r in rows), 100.0, delta=1e-9)
            self.assertTrue(all(r.probability >= 0 for r in rows))

    def test_row_order_follows_inventory_keys(self) -> None:
        rows = compute_probs({"Z": 1, "A": 1, "M": 1}, {"Z": 1, "A": 1, "M": 1}, 0, NO_BOOST)
        self.assertEqual([r.prize for r in rows], ["Z", "A", "M"])

    def test_to_json_uses_display_keys(self) -> None:
        row = ProbRow("A", 2, 25.0)
        self.assertEqual(row.to_json(), {"prize": "A", "stock": 2, "prob": 25.0})

    def test_total_stock_ignores_negative_entries(self) -> None:
        self.assertEqual(total_stock({"A": 2, "B": -5, "C": 3}), 5)


class DrawConfigTests(unittest.TestCase):
    def test_with_params_only_replaces_given_fields(self) -> None:
        config = DrawConfig(threshold=3, beta=0.15, mcap=2.0, gain_targets=("A",))
        updated = config.with_params(beta=0.3)
        self.assertEqual(updated.threshold, 3)
        self.assertEqual(updated.beta, 0.3)
        self.assertEqual(updated.mcap, 2.0)
        self.assertEqual(updated.gain_targets, ("A",))
        self.assertEqual(config.beta, 0.15)

    def test_json_views(self) -> None:
        config = DrawConfig(threshold=2, beta=0.1, mcap=1.5).with_targets(["A"], ["B"])
        self.assertEqual(config.params_json(), {"N": 2, "beta": 0.1, "Mcap": 1.5})
        self.assertEqual(
            config.targets_json(), {"gainTargets": ["A"], "loseNames": ["B"]}
        )


if __name__ == "__main__":
    unittest.main()
