import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()

DEFAULT_TIMEOUT = 10.0
DEFAULT_STAFF = "prize_system"


def resolve_base_url(base_url: Optional[str] = None) -> str:
    """Return the entry service base URL without a trailing slash.

    Raises
    ------
    ValueError
        If neither ``base_url`` nor ``ENTRY_API_BASE_URL`` is set.
    """
    url = base_url or os.environ.get("ENTRY_API_BASE_URL")
    if not url:
        raise ValueError("Environment variable 'ENTRY_API_BASE_URL' is not set")
    if "://" not in url:
        url = "https://" + url
    return url.rstrip("/")


def resolve_timeout(timeout: Optional[float] = None) -> float:
    if timeout is not None:
        return timeout
    raw = os.environ.get("ENTRY_API_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid ENTRY_API_TIMEOUT={raw!r}")
        return DEFAULT_TIMEOUT


def resolve_staff(staff: Optional[str] = None) -> str:
    return staff or os.environ.get("ENTRY_API_STAFF") or DEFAULT_STAFF


def open_session(token: Optional[str] = None) -> requests.Session:
    """Open a requests session with the JSON headers the entry service expects.

    Parameters
    ----------
    token : Optional[str]
        Bearer token. Falls back to ``ENTRY_API_TOKEN``; when neither is set
        the session is unauthenticated.

    Returns
    -------
    requests.Session
        The initialized session.

    Raises
    ------
    RuntimeError
        If the session cannot be initialized.
    """
    try:
        session = requests.Session()
        session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )
        bearer = token or os.environ.get("ENTRY_API_TOKEN")
        if bearer:
            # Never log the token value
            session.headers["Authorization"] = f"Bearer {bearer}"
            logger.debug("Entry API session configured with bearer token")
        return session
    except Exception as e:
        logger.critical(f"Error occurred while starting session: {e}")
        raise RuntimeError(f"Failed to establish session: {e}") from e
