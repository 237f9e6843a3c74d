"""Connexion, déconnexion et vérification de la session auprès du service."""

from __future__ import annotations

import logging
from concurrent.futures import Future

from signupdesk.dispatch import Dispatcher, completed, dispatch
from signupdesk.errors import AuthError, Result
from signupdesk.services.activities_api import ActivitiesApi, ApiResponse
from signupdesk.state import Session, SessionStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
LOGIN_FAILED = "Login failed. Please try again."


class AuthGateway:
    """Traduit les réponses d'authentification en mises à jour du SessionStore.

    Les requêtes partent via le Dispatcher ; les Future renvoyés sont résolus
    sur le thread de l'interface, jamais avec une exception : les erreurs
    sont journalisées puis converties en :class:`Result` ou en booléen.
    """

    def __init__(self, api: ActivitiesApi, store: SessionStore, dispatcher: Dispatcher) -> None:
        self._api = api
        self._store = store
        self._dispatcher = dispatcher

    def login(self, username: str, password: str) -> Future[Result[Session, AuthError]]:
        def apply(response: ApiResponse | None, error: BaseException | None) -> Result[Session, AuthError]:
            if error is not None:
                logger.warning("Échec de la connexion : %s", error)
                return Result.failure(AuthError(LOGIN_FAILED))

            if not response.ok:
                logger.info("Connexion refusée pour %r (HTTP %s)", username, response.status)
                return Result.failure(AuthError(response.text("detail", INVALID_CREDENTIALS)))

            token = response.payload.get("token")
            name = response.payload.get("username")
            if not isinstance(token, str) or not token or not isinstance(name, str):
                logger.warning("Réponse de connexion incomplète : %s", sorted(response.payload))
                return Result.failure(AuthError(LOGIN_FAILED))

            session = Session(token=token, username=name)
            self._store.set(session)
            logger.info("Utilisateur %s connecté", name)
            return Result.success(session)

        return dispatch(self._dispatcher, lambda: self._api.login(username, password), apply)

    def logout(self) -> Future[None]:
        """Déconnecte l'utilisateur ; la session locale est effacée quoi qu'il arrive."""
        token = self._store.get().token
        if token is None:
            self._store.set(None)
            return completed(None)

        def apply(_response: ApiResponse | None, error: BaseException | None) -> None:
            if error is not None:
                logger.warning("Échec de la déconnexion côté serveur : %s", error)
            self._store.set(None)
            logger.info("Session fermée")

        return dispatch(self._dispatcher, lambda: self._api.logout(token), apply)

    def verify(self) -> Future[bool]:
        """Valide la session persistée, une seule fois au démarrage."""
        session = self._store.get()
        if session.token is None:
            return completed(False)

        def apply(response: ApiResponse | None, error: BaseException | None) -> bool:
            if error is not None:
                logger.warning("Vérification de la session impossible : %s", error)
                self._store.set(None)
                return False
            if response.payload.get("authenticated") is not True:
                logger.info("Session persistée expirée pour %s", session.username)
                self._store.set(None)
                return False
            return True

        token = session.token
        return dispatch(self._dispatcher, lambda: self._api.check(token), apply)
