"""Point d'entrée unique des commandes utilisateur.

Chaque action de l'interface correspond à un appel de méthode qui renvoie
un :class:`~concurrent.futures.Future` ; l'interface se contente d'observer
:class:`AppState`, les notifications et les changements de vue.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Callable

from signupdesk.config import SignupDeskConfig
from signupdesk.dispatch import Dispatcher, ThreadDispatcher
from signupdesk.errors import AuthError, FetchError, MutationError, Result
from signupdesk.notifier import (
    WELCOME_DELAY_MS,
    Notification,
    Scheduler,
    Slot,
    TransientNotifier,
)
from signupdesk.services import ActivitiesApi, AuthGateway, MutationController, RosterSynchronizer
from signupdesk.state import AppState, AuthView, Roster, RosterView, Session, SessionStore

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthView], None]
RosterListener = Callable[[RosterView], None]


class SignupClient:
    """Relie le SessionStore, les services et le notificateur."""

    def __init__(
        self,
        api: ActivitiesApi,
        store: SessionStore,
        notifier: TransientNotifier,
        dispatcher: Dispatcher,
    ) -> None:
        self.api = api
        self.store = store
        self.notifier = notifier
        self.dispatcher = dispatcher
        self.state = AppState()
        self.auth = AuthGateway(api, store, dispatcher)
        self.roster = RosterSynchronizer(api, dispatcher)
        self.mutations = MutationController(api, store, self.roster, notifier, dispatcher)
        self._auth_listeners: list[AuthListener] = []
        self._roster_listeners: list[RosterListener] = []

        store.subscribe(lambda _session: self._reflect_auth())
        self.roster.subscribe(self._on_render)

    @classmethod
    def from_config(cls, config: SignupDeskConfig, scheduler: Scheduler) -> "SignupClient":
        return cls(
            api=ActivitiesApi(config),
            store=SessionStore(config.session_path),
            notifier=TransientNotifier(scheduler),
            dispatcher=ThreadDispatcher(scheduler),
        )

    def on_auth_change(self, listener: AuthListener) -> None:
        self._auth_listeners.append(listener)

    def on_roster_change(self, listener: RosterListener) -> None:
        self._roster_listeners.append(listener)

    def auth_view(self) -> AuthView:
        return self.state.auth_view

    # ------------------------------------------------------------- Commandes -
    def start(self) -> Future[Result[Roster, FetchError]]:
        """Valide la session persistée puis charge la liste des activités."""
        started: Future[Result[Roster, FetchError]] = Future()

        def after_verify(verified: Future[bool]) -> None:
            logger.info("Démarrage %s session restaurée", "avec" if verified.result() else "sans")
            self._reflect_auth()
            self.refresh().add_done_callback(lambda refreshed: started.set_result(refreshed.result()))

        self.auth.verify().add_done_callback(after_verify)
        return started

    def refresh(self) -> Future[Result[Roster, FetchError]]:
        return self.roster.refresh()

    def login(self, username: str, password: str) -> Future[Result[Session, AuthError]]:
        future = self.auth.login(username, password)
        future.add_done_callback(self._announce_login)
        return future

    def logout(self) -> Future[None]:
        return self.auth.logout()

    def register(self, activity: str, email: str) -> Future[Result[str, MutationError]]:
        return self.mutations.register(activity, email)

    def unregister(self, activity: str, email: str) -> Future[Result[str, MutationError]]:
        return self.mutations.unregister(activity, email)

    def close_login(self) -> None:
        """Fermeture de la fenêtre de connexion : son message disparaît avec elle."""
        self.notifier.hide(Slot.LOGIN)

    def close(self) -> None:
        """Arrête le relevé des réponses et ferme la connexion HTTP."""
        self.dispatcher.close()
        self.api.close()

    # ------------------------------------------------------------ Interne -
    def _announce_login(self, future: Future[Result[Session, AuthError]]) -> None:
        result = future.result()
        if result.ok:
            self.notifier.hide(Slot.LOGIN)
            self.notifier.show(
                Slot.MAIN,
                Notification.success(
                    f"Welcome, {result.value.username}! You can now register students.",
                    WELCOME_DELAY_MS,
                ),
            )
        else:
            self.notifier.show(Slot.LOGIN, Notification.error(str(result.error)))

    def _on_render(self, view: RosterView) -> None:
        self.state.roster_view = view
        for listener in list(self._roster_listeners):
            listener(view)
        # Les boutons de suppression viennent d'être recréés.
        self._reflect_auth()

    def _reflect_auth(self) -> None:
        view = AuthView.from_session(self.store.get())
        self.state.auth_view = view
        for listener in list(self._auth_listeners):
            listener(view)
