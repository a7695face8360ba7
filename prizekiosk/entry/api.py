import logging
from typing import Any, Mapping, Optional
from urllib.parse import quote, urljoin

from dotenv import load_dotenv

from ..prize_draw.visits import PRIZE_ATTRACTION, VisitEntry
from .utils import open_session, resolve_base_url, resolve_staff, resolve_timeout

logger = logging.getLogger(__name__)


class EntryClient:
    """Client for the event's visitor history and attraction entry service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
    ):
        load_dotenv()
        self.base_url = resolve_base_url(base_url)
        self.timeout = resolve_timeout(timeout)
        self.session = open_session(token)

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def get_user_history(self, user_id: str) -> list[VisitEntry]:
        """Return the visitor's attraction history (GET /api/user/{user_id}/history).

        Entries that are not JSON objects are skipped.
        """
        payload = self._request("GET", f"/api/user/{quote(str(user_id), safe='')}/history")
        history = payload.get("history") if isinstance(payload, dict) else None
        if not isinstance(history, list):
            logger.warning(f"History response for user {user_id} had no history list")
            return []
        return [VisitEntry.from_json(item) for item in history if isinstance(item, dict)]

    def post_attraction_visit(
        self,
        user_id: str,
        attraction: str = PRIZE_ATTRACTION,
        staff: Optional[str] = None,
    ) -> dict:
        """Record a visit (POST /api/entry/attraction/{attraction}/visit)."""
        return self._request(
            "POST",
            f"/api/entry/attraction/{quote(attraction, safe='')}/visit",
            json={"userId": user_id, "staff": resolve_staff(staff)},
        )
