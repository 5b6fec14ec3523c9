import os
import logging
import requests
from dotenv import load_dotenv

from services.exceptions import TransportError
from services.write_offs.model import Unit

logger = logging.getLogger(__name__)


class UnitDirectoryService:
    """
    Client for the unit directory: the list of kitchens/locations that own a write-off grid.

    Attributes:
        url (str): Endpoint returning a JSON list of {"id", "name"}.
        token (str | None): Bearer token, from UNIT_DIRECTORY_TOKEN if not given.
        timeout (float): Request timeout in seconds.
    """

    def __init__(self, url: str, token: str = None, timeout: float = 10, http_client=None):
        load_dotenv()

        if not url:
            raise ValueError("Unit directory URL is not configured")

        self.url = url
        self.token = token or os.getenv("UNIT_DIRECTORY_TOKEN")
        self.timeout = timeout
        self.http_client = http_client or requests

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def list_units(self) -> list[Unit]:
        """
        Fetch every unit.

        Raises:
            TransportError: On any request failure, HTTP error status or unexpected body.
        """
        try:
            response = self.http_client.get(self.url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Unit directory request failed: {e}")
            raise TransportError(f"Unit directory request failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Unit directory returned invalid JSON: {e}") from e

        if isinstance(data, dict):
            data = data.get("units", [])
        if not isinstance(data, list):
            raise TransportError(f"Unit directory returned {type(data).__name__}, expected a list")

        units: list[Unit] = []
        for item in data:
            if not isinstance(item, dict) or "name" not in item:
                logger.debug(f"Ignoring malformed unit entry: {item!r}")
                continue
            units.append(Unit(id=item.get("id"), name=str(item["name"])))
        return units
