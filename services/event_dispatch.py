import os
import logging
import requests
from dotenv import load_dotenv

from services.exceptions import TransportError

logger = logging.getLogger(__name__)


class EventDispatchService:
    """
    Posts the per-unit write-off events to the notification endpoint.

    The endpoint gets one JSON array per run:
        [{"unit_id": ..., "unit_name": ..., "events": ["EXPIRE_AT_5_MINUTES", ...]}, ...]
    Delivery is at-least-once; overlapping runs can resend the same events.
    """

    def __init__(self, url: str, token: str = None, timeout: float = 10, http_client=None):
        load_dotenv()

        if not url:
            raise ValueError("Event sink URL is not configured")

        self.url = url
        self.token = token or os.getenv("EVENT_SINK_TOKEN")
        self.timeout = timeout
        self.http_client = http_client or requests

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def dispatch(self, payload: list[dict]) -> None:
        try:
            response = self.http_client.post(self.url, json=payload, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Event dispatch failed: {e}")
            raise TransportError(f"Event dispatch failed: {e}") from e
        logger.info(f"Dispatched events for {len(payload)} unit(s)")
