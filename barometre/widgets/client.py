import logging
from typing import Any, Dict, Optional

import requests

from barometre.core.config import settings

log = logging.getLogger(__name__)

class ApiClient:
    """Thin JSON client for the dashboard API.

    The body is returned for every status code: lookups answer 404 with an
    empty object, which widgets render as "no data".
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.session = session or requests.Session()

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = self.url(path)
        resp = self.session.get(url, params=params, timeout=self.timeout)
        ct = resp.headers.get("content-type", "")
        if "application/json" not in ct:
            raise RuntimeError(f"Non-JSON response ({resp.status_code}): {resp.text[:300]}")
        log.debug("url=%s status=%d", url, resp.status_code)
        return resp.json()
