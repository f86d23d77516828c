"""
Client used by the dashboard to manage one entity list at a time.

The list held by an EntityStore only ever reflects what the server returned:
saves merge the server's object, deletes drop an item after the server
confirms, and a failed call leaves the list as it was.
"""
import json
import logging
import os
import tempfile
import time
from typing import Any, Callable, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class DashboardError(Exception):
    """A request the server rejected, or that never reached it"""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self):
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"

    @property
    def unavailable(self) -> bool:
        """True when the server could not be reached or failed on its side"""
        return self.status_code is None or self.status_code >= 500


class ApiClient:
    """Thin wrapper over requests that speaks the API's token header and error bodies"""

    def __init__(self, base_url: str, token: Optional[str] = None, session=None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    def request(self, method: str, path: str, **kwargs) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["x-auth-token"] = self.token

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise DashboardError(None, f"Could not reach the server: {str(e)}")

        if not 200 <= response.status_code < 300:
            raise DashboardError(response.status_code, self._error_message(response))
        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            message = body.get("message") or body.get("detail")
            if isinstance(message, str):
                return message
        return f"HTTP {response.status_code}"

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)


class SnapshotCache:
    """On-disk copy of the last fetched list, served only when the server is unreachable.

    A snapshot older than `max_age` seconds, or invalidated by a mutation, is
    never served.
    """

    def __init__(self, path: str, max_age: float = 300):
        self.path = path
        self.max_age = max_age

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable snapshot cache {self.path}: {str(e)}")
            return {}

    def _save(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def store(self, entity: str, items: List[Dict[str, Any]]) -> None:
        data = self._load()
        data[entity] = {"saved_at": time.time(), "items": items}
        self._save(data)

    def fresh(self, entity: str) -> Optional[List[Dict[str, Any]]]:
        entry = self._load().get(entity)
        if not entry:
            return None
        if time.time() - entry.get("saved_at", 0) > self.max_age:
            return None
        return entry.get("items")

    def invalidate(self, entity: str) -> None:
        data = self._load()
        if data.pop(entity, None) is not None:
            self._save(data)


class EntityStore:
    """The dashboard's list of one entity (courses, events, ...)"""

    def __init__(self, client: ApiClient, entity: str, cache: Optional[SnapshotCache] = None):
        self.client = client
        self.entity = entity
        self.cache = cache
        self.items: List[Dict[str, Any]] = []
        self.stale = False

    @property
    def path(self) -> str:
        return f"/api/{self.entity}"

    def get(self, item_id: int) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if item.get("id") == item_id:
                return item
        return None

    def refresh(self, **params) -> List[Dict[str, Any]]:
        """Replace the list with the server's; fall back to a fresh snapshot if the server is down"""
        try:
            items = self.client.get(self.path, params=params or None)
        except DashboardError as e:
            if not e.unavailable:
                raise
            cached = self.cache.fresh(self.entity) if self.cache else None
            if cached is None:
                raise
            logger.warning(f"Serving cached {self.entity} list; the server request failed")
            self.items = list(cached)
            self.stale = True
            return self.items

        self.items = list(items)
        self.stale = False
        if self.cache and not params:
            self.cache.store(self.entity, self.items)
        return self.items

    def save(self, payload: Dict[str, Any], item_id: Optional[int] = None, files=None) -> Dict[str, Any]:
        """Create (no id) or update an item and merge the server's version into the list"""
        if files:
            # Form fields are flat; arrays and objects travel as JSON strings
            form = {key: json.dumps(value) if isinstance(value, (list, dict)) else value for key, value in payload.items()}
            request_kwargs = {"data": form, "files": files}
        else:
            request_kwargs = {"json": payload}

        if item_id is None:
            saved = self.client.post(self.path, **request_kwargs)
        else:
            saved = self.client.put(f"{self.path}/{item_id}", **request_kwargs)

        saved = {key: value for key, value in saved.items() if key != "message"}
        self._merge(saved)
        self._invalidate()
        return saved

    def remove(self, item_id: int, confirm: Callable[[Dict[str, Any]], bool]) -> bool:
        """Delete after `confirm(item)` agrees; the item leaves the list only once the server confirms"""
        item = self.get(item_id) or {"id": item_id}
        if not confirm(item):
            return False

        self.client.delete(f"{self.path}/{item_id}")
        self.items = [existing for existing in self.items if existing.get("id") != item_id]
        self._invalidate()
        return True

    def _merge(self, saved: Dict[str, Any]) -> None:
        for index, existing in enumerate(self.items):
            if existing.get("id") == saved.get("id"):
                self.items[index] = saved
                return
        self.items.insert(0, saved)

    def _invalidate(self) -> None:
        if self.cache:
            self.cache.invalidate(self.entity)
