"""
Клиентская сторона сессии.

Токены хранит вызывающий (этот объект), а не сервер. Перед каждым запросом
токен сессии, истекающий в ближайшие REFRESH_THRESHOLD, обновляется; если
обновить не удалось, сессия закрывается и повторных попыток нет.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx

from deptrecords.utils.tokens import expires_within

logger = logging.getLogger(__name__)

REFRESH_THRESHOLD = timedelta(minutes=5)


class SessionExpired(Exception):
    """Сессия закрыта: нужно войти заново."""


class RecordsClient:
    def __init__(self, http: httpx.Client, threshold: timedelta = REFRESH_THRESHOLD):
        self.http = http
        self.threshold = threshold
        self.token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.role: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _store(self, role: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self.role = role
        self.token = data["token"]
        self.refresh_token = data.get("refreshToken")
        return data

    def _post_public(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self.http.post(path, json=payload)
        data = response.json()
        if response.status_code >= 400 or not data.get("success"):
            raise httpx.HTTPStatusError(
                data.get("error", "Request failed"), request=response.request, response=response
            )
        return data

    def login_hod(self, username: str, password: str) -> Dict[str, Any]:
        return self._store("hod", self._post_public("/hods/login", {"username": username, "password": password}))

    def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        return self._store("hod", self._post_public("/hods/verify-otp", {"email": email, "otp": otp}))

    def login_professor(self, username: str, password: str) -> Dict[str, Any]:
        data = self._post_public("/professors/login", {"username": username, "password": password})
        return self._store("professor", data)

    def logout(self) -> None:
        self.token = None
        self.refresh_token = None
        self.role = None

    def refresh(self) -> None:
        if not self.refresh_token:
            self.logout()
            raise SessionExpired("No refresh token available")

        path = "/professors/refresh-token" if self.role == "professor" else "/hods/refresh-token"
        response = self.http.post(path, json={"refreshToken": self.refresh_token})
        if response.status_code != 200:
            logger.info("Session refresh failed with %d, logging out", response.status_code)
            self.logout()
            raise SessionExpired("Session expired, please log in again")

        data = response.json()
        self.token = data["token"]
        self.refresh_token = data.get("refreshToken", self.refresh_token)

    def ensure_fresh(self) -> None:
        if self.token is None:
            raise SessionExpired("Not logged in")
        if expires_within(self.token, self.threshold):
            self.refresh()

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        self.ensure_fresh()
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {self.token}"
        return self.http.request(method, path, headers=headers, **kwargs)

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)
