import httpx
from urllib.parse import quote
from typing import List, Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

BASE_PATH = "/api/timeentries"


class ApiClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TimesheetApiClient:
    """
    HTTP client for the time entries API.

    Pass base_url to talk to a running server, or an existing httpx.Client
    (for example FastAPI's TestClient).
    """

    def __init__(self, base_url: str = "http://localhost:8080", client: Optional[httpx.Client] = None):
        self.client = client if client is not None else httpx.Client(base_url=base_url)
        self._owns_client = client is None

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @staticmethod
    def _week_path(week_key: str) -> str:
        return f"{BASE_PATH}/{quote(week_key, safe='')}"

    @staticmethod
    def _raise_for_error(response: httpx.Response, default_message: str):
        if response.is_success:
            return
        try:
            message = response.json().get("error") or default_message
        except ValueError:
            message = default_message
        raise ApiClientError(message, response.status_code)

    def get_all_time_entries(self) -> Dict[str, List[Dict[str, Any]]]:
        try:
            response = self.client.get(BASE_PATH)
            self._raise_for_error(response, "Failed to fetch time entries")
            return response.json()
        except (httpx.HTTPError, ApiClientError) as e:
            logger.error(f"Error fetching time entries: {e}")
            raise

    def get_time_entry_for_week(self, week_key: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.client.get(self._week_path(week_key))
            if response.status_code == 404:
                return None
            self._raise_for_error(response, "Failed to fetch time entry")
            return response.json()
        except (httpx.HTTPError, ApiClientError) as e:
            logger.error(f"Error fetching time entry for week {week_key}: {e}")
            raise

    def save_time_entry(self, week_key: str, entries: List[Dict[str, Any]]) -> bool:
        try:
            response = self.client.post(BASE_PATH, json={"weekKey": week_key, "entries": entries})
            self._raise_for_error(response, "Failed to save time entry")
            return True
        except (httpx.HTTPError, ApiClientError) as e:
            logger.error(f"Error saving time entry for week {week_key}: {e}")
            raise

    def delete_time_entry(self, week_key: str) -> bool:
        try:
            response = self.client.delete(self._week_path(week_key))
            if response.status_code == 404:
                return False
            self._raise_for_error(response, "Failed to delete time entry")
            return True
        except (httpx.HTTPError, ApiClientError) as e:
            logger.error(f"Error deleting time entry for week {week_key}: {e}")
            raise
