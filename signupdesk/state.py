"""Structures de données partagées entre la couche UI et les services."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

TOKEN_KEY = "authToken"
USERNAME_KEY = "username"

SessionListener = Callable[["Session"], None]


@dataclass(frozen=True, slots=True)
class Session:
    """Jeton et nom de l'utilisateur connecté, toujours présents ensemble."""

    token: str | None = None
    username: str | None = None

    def __post_init__(self) -> None:
        if (self.token is None) != (self.username is None):
            raise ValueError("Le jeton et le nom d'utilisateur vont toujours de pair.")

    @property
    def is_authenticated(self) -> bool:
        """Retourne True si une session est ouverte."""
        return self.token is not None


ANONYMOUS = Session()


class SessionStore:
    """Unique source de vérité pour la session, persistée dans un fichier JSON.

    Le fichier contient les clés ``authToken`` et ``username``. Elles sont
    écrites et effacées ensemble : un fichier incomplet est considéré comme
    une absence de session.
    """

    def __init__(self, path: Path) -> None:
        self._path = path.expanduser()
        self._listeners: list[SessionListener] = []
        self._session = self._load()

    def get(self) -> Session:
        return self._session

    def set(self, session: Session | None) -> None:
        """Remplace la session courante et la persiste (``None`` efface tout)."""
        session = session or ANONYMOUS
        self._session = session
        try:
            if session.is_authenticated:
                self._write({TOKEN_KEY: session.token, USERNAME_KEY: session.username})
            else:
                self._clear()
        except OSError as exc:
            # La session reste valable en mémoire jusqu'à la fermeture.
            logger.error("Impossible de persister la session dans %s : %s", self._path, exc)
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:  # noqa: BLE001
                logger.exception("Observateur de session en échec")

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------ Stockage -
    def _load(self) -> Session:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return ANONYMOUS
        except (OSError, ValueError) as exc:
            logger.warning("Session persistée illisible (%s) : %s", self._path, exc)
            return ANONYMOUS

        if not isinstance(data, dict):
            return ANONYMOUS
        token = data.get(TOKEN_KEY)
        username = data.get(USERNAME_KEY)
        if not isinstance(token, str) or not isinstance(username, str) or not token:
            return ANONYMOUS
        return Session(token=token, username=username)

    def _write(self, payload: Mapping[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self._path)

    def _clear(self) -> None:
        try:
            os.remove(self._path)
        except FileNotFoundError:
            pass


@dataclass(frozen=True, slots=True)
class Activity:
    """Activité telle que renvoyée par le service, le serveur fait foi."""

    name: str
    description: str
    schedule: str
    max_participants: int
    participants: tuple[str, ...] = ()

    @property
    def spots_left(self) -> int:
        # Purement indicatif : la capacité est contrôlée côté serveur.
        return self.max_participants - len(self.participants)

    @classmethod
    def from_payload(cls, name: str, details: Mapping[str, Any]) -> "Activity":
        """Construit une activité depuis l'entrée JSON de ``GET /activities``."""
        participants = details["participants"]
        if not isinstance(participants, list):
            raise ValueError(f"Participants invalides pour {name!r}")
        return cls(
            name=name,
            description=str(details["description"]),
            schedule=str(details["schedule"]),
            max_participants=int(details["max_participants"]),
            participants=tuple(str(email) for email in participants),
        )


Roster = dict[str, Activity]


@dataclass(frozen=True, slots=True)
class ParticipantRow:
    """Ligne de participant, porte l'action de désinscription."""

    activity: str
    email: str


@dataclass(frozen=True, slots=True)
class ActivityCard:
    """Bloc de présentation d'une activité."""

    name: str
    description: str
    schedule: str
    spots_left: int
    participants: tuple[ParticipantRow, ...] = ()

    @property
    def availability(self) -> str:
        return f"{self.spots_left} spots left"

    @classmethod
    def from_activity(cls, activity: Activity) -> "ActivityCard":
        return cls(
            name=activity.name,
            description=activity.description,
            schedule=activity.schedule,
            spots_left=activity.spots_left,
            participants=tuple(
                ParticipantRow(activity=activity.name, email=email)
                for email in activity.participants
            ),
        )


LOADING_TEXT = "Loading activities..."
FAILURE_TEXT = "Failed to load activities. Please try again later."
NO_PARTICIPANTS_TEXT = "No participants yet"


@dataclass(frozen=True, slots=True)
class RosterView:
    """Vue neutre de la liste : des cartes, ou un unique message d'attente."""

    cards: tuple[ActivityCard, ...] = ()
    placeholder: str | None = None

    @property
    def activity_names(self) -> tuple[str, ...]:
        """Choix proposés dans le formulaire d'inscription."""
        return tuple(card.name for card in self.cards)

    @classmethod
    def loading(cls) -> "RosterView":
        return cls(placeholder=LOADING_TEXT)

    @classmethod
    def failed(cls) -> "RosterView":
        return cls(placeholder=FAILURE_TEXT)

    @classmethod
    def from_roster(cls, roster: Roster) -> "RosterView":
        return cls(cards=tuple(ActivityCard.from_activity(a) for a in roster.values()))


@dataclass(frozen=True, slots=True)
class AuthView:
    """État d'authentification tel que l'interface doit le refléter."""

    logged_in: bool = False
    username: str | None = None
    signup_enabled: bool = False
    delete_visible: bool = False

    @classmethod
    def from_session(cls, session: Session) -> "AuthView":
        logged_in = session.is_authenticated
        return cls(
            logged_in=logged_in,
            username=session.username if logged_in else None,
            signup_enabled=logged_in,
            delete_visible=logged_in,
        )


@dataclass(slots=True)
class AppState:
    """Dernier état connu de l'application, alimenté par le client."""

    roster_view: RosterView = field(default_factory=RosterView.loading)
    auth_view: AuthView = field(default_factory=AuthView)
