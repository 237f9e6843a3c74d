"""Messages éphémères de succès ou d'erreur, un emplacement par zone d'affichage."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

GATE_DELAY_MS = 3000
WELCOME_DELAY_MS = 3000
OUTCOME_DELAY_MS = 5000


class Slot(str, enum.Enum):
    MAIN = "main"
    LOGIN = "login"


class Kind(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    text: str
    kind: Kind
    expires_after_ms: int

    @classmethod
    def success(cls, text: str, expires_after_ms: int = OUTCOME_DELAY_MS) -> "Notification":
        return cls(text=text, kind=Kind.SUCCESS, expires_after_ms=expires_after_ms)

    @classmethod
    def error(cls, text: str, expires_after_ms: int = OUTCOME_DELAY_MS) -> "Notification":
        return cls(text=text, kind=Kind.ERROR, expires_after_ms=expires_after_ms)


class Scheduler(Protocol):
    """Planificateur de tâches différées (boucle Tk, horloge de test...)."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class TkScheduler:
    """Adapte ``after`` / ``after_cancel`` d'un widget Tk au protocole Scheduler."""

    def __init__(self, widget: Any) -> None:
        self._widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self._widget.after(delay_ms, callback)

    def cancel(self, handle: str) -> None:
        try:
            self._widget.after_cancel(handle)
        except ValueError:
            pass


NotificationListener = Callable[[Slot, "Notification | None"], None]


class TransientNotifier:
    """Affiche une notification par emplacement et la masque après son délai.

    Une nouvelle notification dans le même emplacement annule la tâche de
    masquage de la précédente : seule la dernière gouverne la visibilité.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._visible: dict[Slot, Notification] = {}
        self._pending: dict[Slot, Any] = {}
        self._listeners: list[NotificationListener] = []

    def subscribe(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def current(self, slot: Slot) -> Notification | None:
        return self._visible.get(slot)

    def show(self, slot: Slot, notification: Notification) -> None:
        self._cancel_pending(slot)
        self._visible[slot] = notification
        logger.debug("Notification %s (%s) : %s", slot.value, notification.kind.value, notification.text)
        self._pending[slot] = self._scheduler.call_later(
            notification.expires_after_ms,
            lambda: self._expire(slot, notification),
        )
        self._emit(slot, notification)

    def hide(self, slot: Slot) -> None:
        self._cancel_pending(slot)
        if self._visible.pop(slot, None) is not None:
            self._emit(slot, None)

    def _expire(self, slot: Slot, notification: Notification) -> None:
        # Tâche périmée : une autre notification occupe déjà l'emplacement.
        if self._visible.get(slot) is not notification:
            return
        self._pending.pop(slot, None)
        del self._visible[slot]
        self._emit(slot, None)

    def _cancel_pending(self, slot: Slot) -> None:
        handle = self._pending.pop(slot, None)
        if handle is not None:
            self._scheduler.cancel(handle)

    def _emit(self, slot: Slot, notification: Notification | None) -> None:
        for listener in list(self._listeners):
            listener(slot, notification)
