import logging
from pathlib import Path

import requests

from .errors import (
    AuthenticationRequired,
    NotFound,
    RequestRejected,
    ServerError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Thin wrapper over a requests.Session.

    Every request carries `Authorization: Bearer <token>` when a token is set.
    A 401 answer clears the token (in memory and in `token_path`) and raises
    AuthenticationRequired. Nothing is retried.
    """

    def __init__(self, base_url, token=None, timeout=10, token_path=None, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_path = Path(token_path).expanduser() if token_path else None
        self.session = session or requests.Session()
        if token is None and self.token_path and self.token_path.exists():
            token = self.token_path.read_text().strip() or None
        self.token = token

    # ---------- token storage ----------

    def set_token(self, token):
        self.token = token
        if self.token_path:
            self.token_path.write_text(token)

    def clear_token(self):
        self.token = None
        if self.token_path and self.token_path.exists():
            self.token_path.unlink()

    def login(self, username, password):
        data = self.post("/auth/login", json={"username": username, "password": password})
        self.set_token(data["access_token"])
        return data["user"]

    def logout(self):
        self.clear_token()

    # ---------- requests ----------

    def request(self, method, path, params=None, json=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = self.session.request(
                method, url, params=params, json=json, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Could not reach {self.base_url}: {exc}") from exc

        if response.status_code >= 400:
            self._raise_for(method, url, response)
        if response.status_code == 204 or not response.content:
            return None
        if "json" not in response.headers.get("Content-Type", ""):
            return response.text
        return response.json()

    def _raise_for(self, method, url, response):
        code = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or body.get("detail") or response.reason or f"HTTP {code}"
        details = body.get("details")
        logger.warning("%s %s -> %s %s", method, url, code, message)

        if code == 401:
            self.clear_token()
            raise AuthenticationRequired(message, code, details)
        if code == 404:
            raise NotFound(message, code, details)
        if code >= 500:
            raise ServerError(message, code, details)
        raise RequestRejected(message, code, details)

    def get(self, path, **params):
        return self.request("GET", path, params=params)

    def post(self, path, json=None):
        return self.request("POST", path, json=json)

    def patch(self, path, json=None):
        return self.request("PATCH", path, json=json)

    def delete(self, path):
        return self.request("DELETE", path)
