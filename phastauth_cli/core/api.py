# phastauth_cli/core/api.py
from typing import Any, Optional

import requests

from .config import BASE_URL, TIMEOUT


def _call(method: str, path: str, token: Optional[str] = None, payload: Optional[dict] = None) -> Optional[dict]:
    """
    Sends one request and returns the decoded response envelope,
    or None when the API could not be reached or answered with non-JSON.
    """
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        resp = requests.request(method, f"{BASE_URL}{path}", json=payload, headers=headers, timeout=TIMEOUT)
        return resp.json()
    except (requests.RequestException, ValueError):
        return None


def api_register(name: str, email: str, password: str) -> Optional[dict]:
    return _call("POST", "/users/create", payload={"name": name, "email": email, "password": password})


def api_login(email: str, password: str) -> Optional[dict]:
    return _call("POST", "/users/login", payload={"email": email, "password": password})


def api_refresh(token: str) -> Optional[dict]:
    return _call("POST", "/users/refresh", token=token)


def api_fetch(token: str) -> Optional[dict]:
    return _call("GET", "/users/fetch", token=token)


def api_update(token: str, name: str, email: str, password: str) -> Optional[dict]:
    return _call("PUT", "/users/update", token=token, payload={"name": name, "email": email, "password": password})


def api_delete(token: str) -> Optional[dict]:
    return _call("DELETE", "/users/delete", token=token)


def is_success(envelope: Optional[dict]) -> bool:
    return bool(envelope) and envelope.get("error") is False


def message_of(envelope: Optional[dict]) -> str:
    """
    The human readable message of a success or error envelope.
    """
    if not envelope:
        return "API unreachable or returned an invalid response."
    section: Any = envelope.get("success") if is_success(envelope) else envelope.get("error")
    if isinstance(section, dict):
        return section.get("message", "")
    return ""
