import unittest
from typing import Optional

import requests

from prizekiosk.controller import KioskStores, LotteryController
from prizekiosk.entry.api import EntryClient
from prizekiosk.kiosk import KioskSession, KioskView
from prizekiosk.prize_draw import DrawConfig, VisitEntry
from prizekiosk.workflows import (
    RedemptionNotRecorded,
    load_visitor_visits,
    run_visitor_draw,
)


class DummyClient(EntryClient):
    def __init__(self, history, *, fail_post: bool = False):
        self.history = history
        self.fail_post = fail_post
        self.posts: list[dict] = []

    def get_user_history(self, user_id: str) -> list[VisitEntry]:
        return list(self.history)

    def post_attraction_visit(
        self, user_id: str, attraction: str = "prize", staff: Optional[str] = None
    ) -> dict:
        if self.fail_post:
            raise requests.ConnectionError("entry service unreachable")
        self.posts.append({"user_id": user_id, "attraction": attraction, "staff": staff})
        return {"attraction": attraction}


def _history(*attractions: str) -> list[VisitEntry]:
    return [
        VisitEntry(attraction=name, visited_at=f"2023-01-{idx + 1:02d}T10:00:00Z")
        for idx, name in enumerate(attractions)
    ]


class VisitorDrawWorkflowTestCase(unittest.TestCase):
    def setUp(self):
        self.controller = LotteryController(
            KioskStores.in_memory(),
            initial_stock={"Gold": 2, "Miss": 2},
            weights={"Gold": 1, "Miss": 1},
            config=DrawConfig(threshold=2, beta=0.0, mcap=1.0, gain_targets=("Gold",)),
            rng=lambda: 0.0,
        )
        self.kiosk = KioskSession(self.controller)

    def test_load_visitor_visits_counts_after_redemption(self):
        client = DummyClient(_history("mbti", "prize", "battle", "picture"))
        self.assertEqual(load_visitor_visits(client, "user-1"), 2)

    def test_eligible_visitor_draws_and_redemption_is_recorded(self):
        client = DummyClient(_history("mbti", "battle", "picture"))
        result = run_visitor_draw(self.kiosk, client, "user-1", staff="desk-2")

        self.assertTrue(result.drew)
        self.assertEqual(result.prize, "Gold")
        self.assertEqual(result.visits, 3)
        self.assertEqual(result.message, "Ready to draw")
        self.assertEqual(self.kiosk.view, KioskView.DRAWING)
        self.assertEqual(self.controller.displayed_inventory, {"Gold": 1, "Miss": 2})
        self.assertEqual(
            client.posts, [{"user_id": "user-1", "attraction": "prize", "staff": "desk-2"}]
        )

    def test_ineligible_visitor_does_not_draw(self):
        client = DummyClient(_history("mbti", "prize", "battle"))
        result = run_visitor_draw(self.kiosk, client, "user-2")

        self.assertFalse(result.drew)
        self.assertEqual(result.visits, 1)
        self.assertEqual(result.message, "Not eligible yet (1 more visit)")
        self.assertEqual(self.kiosk.view, KioskView.WAITING)
        self.assertEqual(client.posts, [])
        self.assertEqual(self.controller.displayed_inventory, {"Gold": 2, "Miss": 2})

    def test_failed_redemption_keeps_the_draw(self):
        client = DummyClient(_history("mbti", "battle"), fail_post=True)
        with self.assertLogs("prizekiosk.workflows", level="ERROR"):
            with self.assertRaises(RedemptionNotRecorded) as ctx:
                run_visitor_draw(self.kiosk, client, "user-3")

        self.assertEqual(ctx.exception.prize, "Gold")
        self.assertEqual(ctx.exception.user_id, "user-3")
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)
        self.assertEqual(self.controller.displayed_inventory, {"Gold": 1, "Miss": 2})
        self.assertEqual(self.kiosk.view, KioskView.DRAWING)


if __name__ == "__main__":
    unittest.main()
