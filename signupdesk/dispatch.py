"""Exécution des requêtes hors de la boucle d'interface.

Les appels réseau tournent dans des threads ; leurs résultats transitent par
une file et sont consommés sur le thread de l'interface, qui est le seul à
modifier la session, la liste d'activités et les notifications.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional, Protocol, TypeVar

from signupdesk.notifier import Scheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Continuation = Callable[[Optional[Any], Optional[BaseException]], None]

DEFAULT_POLL_MS = 50


class Dispatcher(Protocol):
    """Lance ``call`` puis appelle ``on_done(valeur, erreur)`` sur le thread de l'interface."""

    def submit(self, call: Callable[[], Any], on_done: Continuation) -> None: ...

    def close(self) -> None: ...


class ThreadDispatcher:
    """Un thread par requête, résultats relevés périodiquement par le Scheduler."""

    def __init__(self, scheduler: Scheduler, *, poll_ms: int = DEFAULT_POLL_MS) -> None:
        self._scheduler = scheduler
        self._poll_ms = poll_ms
        self._results: queue.Queue[tuple[Continuation, Any, BaseException | None]] = queue.Queue()
        self._in_flight = 0
        self._poll_handle: Any = None
        self._closed = False

    def submit(self, call: Callable[[], Any], on_done: Continuation) -> None:
        self._in_flight += 1
        thread = threading.Thread(
            target=self._run,
            args=(call, on_done),
            name="signupdesk-request",
            daemon=True,
        )
        thread.start()
        self._ensure_polling()

    def close(self) -> None:
        self._closed = True
        if self._poll_handle is not None:
            self._scheduler.cancel(self._poll_handle)
            self._poll_handle = None

    def _run(self, call: Callable[[], Any], on_done: Continuation) -> None:
        try:
            value = call()
        except Exception as exc:  # noqa: BLE001 - remis au thread de l'interface
            self._results.put((on_done, None, exc))
        else:
            self._results.put((on_done, value, None))

    def _ensure_polling(self) -> None:
        if self._poll_handle is None and not self._closed:
            self._poll_handle = self._scheduler.call_later(self._poll_ms, self._drain)

    def _drain(self) -> None:
        self._poll_handle = None
        while True:
            try:
                on_done, value, error = self._results.get_nowait()
            except queue.Empty:
                break
            self._in_flight -= 1
            on_done(value, error)
        if self._in_flight:
            self._ensure_polling()


def completed(value: T) -> Future[T]:
    """Future déjà résolu, pour les chemins qui ne touchent pas au réseau."""
    future: Future[T] = Future()
    future.set_result(value)
    return future


def dispatch(
    dispatcher: Dispatcher,
    call: Callable[[], T],
    apply: Callable[[T | None, BaseException | None], R],
) -> Future[R]:
    """Soumet ``call`` ; le Future est résolu avec ``apply(valeur, erreur)``."""
    future: Future[R] = Future()

    def finish(value: T | None, error: BaseException | None) -> None:
        try:
            future.set_result(apply(value, error))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Traitement d'une réponse en échec")
            future.set_exception(exc)

    dispatcher.submit(call, finish)
    return future
