"""Récupération de la liste des activités et construction de sa vue."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Callable

from signupdesk.dispatch import Dispatcher, dispatch
from signupdesk.errors import FetchError, Result
from signupdesk.services.activities_api import ActivitiesApi, ApiResponse
from signupdesk.state import Activity, Roster, RosterView

logger = logging.getLogger(__name__)

RenderListener = Callable[[RosterView], None]


class RosterSynchronizer:
    """Seul propriétaire de la liste d'activités, reconstruite à chaque réponse.

    Pas de mode dégradé : en cas d'échec, la liste précédente est oubliée et
    la vue se réduit au message d'erreur. Les rafraîchissements simultanés ne
    sont pas dédoublonnés ; la dernière réponse reçue l'emporte.
    """

    def __init__(self, api: ActivitiesApi, dispatcher: Dispatcher) -> None:
        self._api = api
        self._dispatcher = dispatcher
        self._roster: Roster = {}
        self._view = RosterView.loading()
        self._listeners: list[RenderListener] = []

    @property
    def roster(self) -> Roster:
        return dict(self._roster)

    @property
    def view(self) -> RosterView:
        return self._view

    def subscribe(self, listener: RenderListener) -> None:
        """Enregistre un observateur appelé après chaque rendu."""
        self._listeners.append(listener)

    def refresh(self) -> Future[Result[Roster, FetchError]]:
        return dispatch(self._dispatcher, self._api.list_activities, self._apply)

    def _apply(self, response: ApiResponse | None, error: BaseException | None) -> Result[Roster, FetchError]:
        try:
            roster = self._parse(response, error)
        except FetchError as exc:
            logger.warning("Chargement des activités impossible : %s", exc)
            self._roster = {}
            self._render(RosterView.failed())
            return Result.failure(exc)

        self._roster = roster
        self._render(RosterView.from_roster(roster))
        logger.info("%d activité(s) chargée(s)", len(roster))
        return Result.success(dict(roster))

    @staticmethod
    def _parse(response: ApiResponse | None, error: BaseException | None) -> Roster:
        if error is not None:
            raise FetchError(str(error)) from error
        if not response.ok:
            raise FetchError(f"HTTP {response.status}")

        roster: Roster = {}
        for name, details in response.payload.items():
            try:
                roster[name] = Activity.from_payload(name, details)
            except (KeyError, TypeError, ValueError) as exc:
                raise FetchError(f"Activité {name!r} mal formée : {exc}") from exc
        return roster

    def _render(self, view: RosterView) -> None:
        self._view = view
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:  # noqa: BLE001
                logger.exception("Observateur de rendu en échec")
