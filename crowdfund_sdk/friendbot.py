"""
Friendbot funding for testnet accounts.

A donor account must exist on the ledger before it can donate; on test
networks Friendbot creates and funds it.
"""
import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import NetworkError

logger = logging.getLogger(__name__)

ALREADY_FUNDED_MARKERS = ("createAccountAlreadyExist", "already funded")


def create_session(retry_count: int = 3) -> requests.Session:
    """
    Create an HTTP session that retries server errors and dropped connections.

    Args:
        retry_count: Number of retries per request
    """
    session = requests.Session()
    retries = Retry(
        total=retry_count,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET", "POST"],
        raise_on_status=False,
        connect=retry_count,
        read=retry_count,
        other=retry_count
    )
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


def fund_account(
    public_key: str,
    friendbot_url: str,
    session: Optional[requests.Session] = None,
    timeout: int = 30
) -> Dict[str, Any]:
    """
    Ask Friendbot to create and fund ``public_key``.

    An account that already exists is reported by Friendbot as a 400; that
    is treated as success.

    Args:
        public_key: Account to fund (G...)
        friendbot_url: Friendbot endpoint
        session: Optional HTTP session (defaults to a retrying session)
        timeout: Request timeout in seconds

    Returns:
        Friendbot's JSON response, or {"funded": True} for already-funded accounts

    Raises:
        NetworkError: If Friendbot cannot be reached or refuses the request
    """
    session = session or create_session()
    logger.debug(f"Requesting Friendbot funding for {public_key}")

    try:
        response = session.get(friendbot_url, params={"addr": public_key}, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Friendbot request failed: {e}")
        raise NetworkError("Cannot reach Friendbot", details=str(e)) from e

    if response.status_code == 400 and any(m in response.text for m in ALREADY_FUNDED_MARKERS):
        logger.info(f"Account {public_key} is already funded")
        return {"funded": True}

    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        logger.error(f"Friendbot refused funding: {e}")
        raise NetworkError("Friendbot funding failed", details=response.text or str(e)) from e

    try:
        return response.json()
    except ValueError as e:
        logger.warning(f"Invalid JSON response from Friendbot: {e}")
        return {"funded": True}
