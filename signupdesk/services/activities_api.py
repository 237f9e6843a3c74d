"""Encapsulation des appels HTTP au service d'inscriptions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import requests

from signupdesk.config import SignupDeskConfig
from signupdesk.errors import ActivitiesApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Statut HTTP et corps JSON décodé d'une réponse du service."""

    status: int
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, key: str, default: str) -> str:
        """Retourne ``payload[key]`` s'il s'agit d'un texte non vide, sinon ``default``."""
        value = self.payload.get(key)
        return value if isinstance(value, str) and value else default


class ActivitiesApi:
    """Client du service : authentification, liste des activités et inscriptions.

    Les réponses non 2xx sont renvoyées telles quelles (leur champ ``detail``
    intéresse l'appelant). Seuls les échecs de transport et les corps
    illisibles lèvent :class:`ActivitiesApiError`.
    """

    def __init__(self, config: SignupDeskConfig, *, session: requests.Session | None = None) -> None:
        self._base_url = config.api_url.rstrip("/")
        self._timeout = config.timeout
        self._http = session or requests.Session()

    # ------------------------------------------------------ Authentification -
    def login(self, username: str, password: str) -> ApiResponse:
        return self._request("POST", "/auth/login", params={"username": username, "password": password})

    def logout(self, token: str) -> ApiResponse:
        return self._request("POST", "/auth/logout", token=token)

    def check(self, token: str) -> ApiResponse:
        return self._request("GET", "/auth/check", token=token)

    # ------------------------------------------------------------ Activités -
    def list_activities(self) -> ApiResponse:
        return self._request("GET", "/activities")

    def signup(self, activity: str, email: str, token: str) -> ApiResponse:
        return self._request(
            "POST",
            f"/activities/{quote(activity, safe='')}/signup",
            params={"email": email},
            token=token,
        )

    def unregister(self, activity: str, email: str, token: str) -> ApiResponse:
        return self._request(
            "DELETE",
            f"/activities/{quote(activity, safe='')}/unregister",
            params={"email": email},
            token=token,
        )

    def close(self) -> None:
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        token: str | None = None,
    ) -> ApiResponse:
        headers = {"Authorization": token} if token is not None else {}
        url = f"{self._base_url}{path}"
        try:
            response = self._http.request(
                method,
                url,
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise ActivitiesApiError(f"{method} {path} : service injoignable.") from exc

        if not response.content:
            return ApiResponse(status=response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ActivitiesApiError(f"{method} {path} : réponse JSON invalide.") from exc
        if not isinstance(payload, dict):
            raise ActivitiesApiError(f"{method} {path} : objet JSON attendu.")

        logger.debug("%s %s -> %s", method, path, response.status_code)
        return ApiResponse(status=response.status_code, payload=payload)
