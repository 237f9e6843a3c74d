"""Inscriptions et désinscriptions, réservées aux utilisateurs connectés."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Callable

from signupdesk.dispatch import Dispatcher, completed, dispatch
from signupdesk.errors import MutationError, Result
from signupdesk.notifier import (
    GATE_DELAY_MS,
    OUTCOME_DELAY_MS,
    Notification,
    Slot,
    TransientNotifier,
)
from signupdesk.services.activities_api import ActivitiesApi, ApiResponse
from signupdesk.services.roster import RosterSynchronizer
from signupdesk.state import SessionStore

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred"


class MutationController:
    """Applique le protocole contrôle / appel / réaction aux deux mutations.

    Le contrôle d'authentification est synchrone. La liste locale n'est
    jamais modifiée directement : après un succès confirmé par le serveur,
    elle est simplement rechargée.
    """

    def __init__(
        self,
        api: ActivitiesApi,
        store: SessionStore,
        roster: RosterSynchronizer,
        notifier: TransientNotifier,
        dispatcher: Dispatcher,
    ) -> None:
        self._api = api
        self._store = store
        self._roster = roster
        self._notifier = notifier
        self._dispatcher = dispatcher

    def register(self, activity: str, email: str) -> Future[Result[str, MutationError]]:
        return self._mutate(
            lambda token: self._api.signup(activity, email, token),
            gate_text="Please login to register students.",
            network_text="Failed to sign up. Please try again.",
            success_text=f"Signed up {email} for {activity}",
            label=f"inscription de {email} à {activity!r}",
        )

    def unregister(self, activity: str, email: str) -> Future[Result[str, MutationError]]:
        return self._mutate(
            lambda token: self._api.unregister(activity, email, token),
            gate_text="Please login to unregister students.",
            network_text="Failed to unregister. Please try again.",
            success_text=f"Unregistered {email} from {activity}",
            label=f"désinscription de {email} de {activity!r}",
        )

    def _mutate(
        self,
        call: Callable[[str], ApiResponse],
        *,
        gate_text: str,
        network_text: str,
        success_text: str,
        label: str,
    ) -> Future[Result[str, MutationError]]:
        token = self._store.get().token
        if token is None:
            return completed(self._fail(MutationError(gate_text), GATE_DELAY_MS))

        def apply(response: ApiResponse | None, error: BaseException | None) -> Result[str, MutationError]:
            if error is not None:
                logger.warning("Échec réseau lors de la %s : %s", label, error)
                return self._fail(MutationError(network_text))

            if not response.ok:
                logger.info("Refus du serveur pour la %s (HTTP %s)", label, response.status)
                return self._fail(MutationError(response.text("detail", GENERIC_ERROR)))

            message = response.text("message", success_text)
            self._notifier.show(Slot.MAIN, Notification.success(message))
            self._roster.refresh()
            return Result.success(message)

        return dispatch(self._dispatcher, lambda: call(token), apply)

    def _fail(self, error: MutationError, delay_ms: int = OUTCOME_DELAY_MS) -> Result[str, MutationError]:
        self._notifier.show(Slot.MAIN, Notification.error(str(error), delay_ms))
        return Result.failure(error)
