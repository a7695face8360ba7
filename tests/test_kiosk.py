from __future__ import annotations

import unittest

from prizekiosk.controller import KioskStores, LotteryController
from prizekiosk.kiosk import (
    InvalidTransition,
    KioskSession,
    KioskView,
    celebration_intensity,
    eligibility_message,
)
from prizekiosk.prize_draw import DrawConfig

CONFIG = DrawConfig(
    threshold=2,
    beta=0.0,
    mcap=1.0,
    gain_targets=("Gold", "Silver", "Bronze", "Sticker"),
    lose_names=("Miss",),
)


class KioskSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.controller = LotteryController(
            KioskStores.in_memory(),
            initial_stock={"Gold": 1, "Miss": 1},
            weights={"Gold": 1, "Miss": 1},
            config=CONFIG,
            rng=lambda: 0.0,
        )
        self.kiosk = KioskSession(self.controller)

    def test_full_draw_cycle(self) -> None:
        self.assertEqual(self.kiosk.view, KioskView.WAITING)
        self.assertEqual(self.kiosk.start_draw(2), "Gold")
        self.assertEqual(self.kiosk.view, KioskView.DRAWING)
        self.assertEqual(self.controller.displayed_inventory, {"Gold": 0, "Miss": 1})
        self.assertEqual(self.kiosk.finish_draw(), "Gold")
        self.assertEqual(self.kiosk.view, KioskView.RESULT)
        self.assertEqual(self.kiosk.celebration, 0.9)
        self.kiosk.acknowledge()
        self.assertEqual(self.kiosk.view, KioskView.WAITING)
        self.assertEqual(self.kiosk.celebration, 0.0)

    def test_ineligible_visitor_stays_waiting(self) -> None:
        self.assertIsNone(self.kiosk.start_draw(1))
        self.assertEqual(self.kiosk.view, KioskView.WAITING)
        self.assertEqual(self.controller.displayed_inventory, {"Gold": 1, "Miss": 1})

    def test_illegal_transitions_raise(self) -> None:
        with self.assertRaises(InvalidTransition):
            self.kiosk.finish_draw()
        with self.assertRaises(InvalidTransition):
            self.kiosk.acknowledge()
        self.kiosk.start_draw(5)
        with self.assertRaises(InvalidTransition):
            self.kiosk.enter_admin()
        with self.assertRaises(InvalidTransition):
            self.kiosk.start_draw(5)

    def test_admin_mode_only_from_waiting(self) -> None:
        self.kiosk.enter_admin()
        self.assertEqual(self.kiosk.view, KioskView.ADMIN)
        with self.assertRaises(InvalidTransition):
            self.kiosk.start_draw(5)
        self.controller.add_stock({"Gold": 2})
        self.kiosk.exit_admin()
        self.assertEqual(self.kiosk.view, KioskView.WAITING)
        self.assertEqual(self.controller.displayed_inventory, {"Gold": 3, "Miss": 1})
        with self.assertRaises(InvalidTransition):
            self.kiosk.exit_admin()


class DisplayHelperTests(unittest.TestCase):
    def test_eligibility_messages(self) -> None:
        controller = LotteryController(
            KioskStores.in_memory(), initial_stock={"Gold": 1}, config=CONFIG
        )
        self.assertEqual(
            eligibility_message(controller, 0), "Not eligible yet (2 more visits)"
        )
        self.assertEqual(
            eligibility_message(controller, 1), "Not eligible yet (1 more visit)"
        )
        self.assertEqual(eligibility_message(controller, 2), "Ready to draw")
        controller.add_stock({"Gold": -1})
        self.assertEqual(eligibility_message(controller, 2), "Out of stock")

    def test_celebration_by_rank(self) -> None:
        targets = CONFIG.gain_targets
        self.assertEqual(celebration_intensity("Gold", targets), 0.9)
        self.assertEqual(celebration_intensity("Silver", targets), 0.65)
        self.assertEqual(celebration_intensity("Bronze", targets), 0.4)
        self.assertEqual(celebration_intensity("Sticker", targets), 0.0)
        self.assertEqual(celebration_intensity("Miss", targets), 0.0)


if __name__ == "__main__":
    unittest.main()
