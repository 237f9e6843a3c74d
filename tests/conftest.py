from __future__ import annotations

import itertools
from typing import Any, Callable

import pytest

from signupdesk.client import SignupClient
from signupdesk.dispatch import Continuation
from signupdesk.errors import ActivitiesApiError
from signupdesk.notifier import TransientNotifier
from signupdesk.services.activities_api import ApiResponse
from signupdesk.state import Session, SessionStore


class ManualScheduler:
    """Horloge manuelle : les tâches ne s'exécutent qu'à l'appel de advance()."""

    def __init__(self) -> None:
        self.now = 0
        self._ids = itertools.count(1)
        self._tasks: dict[int, tuple[int, Callable[[], None]]] = {}

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self._tasks[handle] = (self.now + delay_ms, callback)
        return handle

    def cancel(self, handle: int) -> None:
        self._tasks.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [(when, handle) for handle, (when, _) in self._tasks.items() if when <= target]
            if not due:
                break
            when, handle = min(due)
            self.now = when
            _, callback = self._tasks.pop(handle)
            callback()
        self.now = target


class ImmediateDispatcher:
    """Exécute chaque requête sur-le-champ, dans le thread appelant."""

    def __init__(self) -> None:
        self.closed = False

    def submit(self, call: Callable[[], Any], on_done: Continuation) -> None:
        try:
            value = call()
        except Exception as exc:
            on_done(None, exc)
        else:
            on_done(value, None)

    def close(self) -> None:
        self.closed = True


class ManualDispatcher(ImmediateDispatcher):
    """Garde les requêtes en suspens jusqu'à ce que le test les résolve, dans l'ordre voulu."""

    def __init__(self) -> None:
        super().__init__()
        self.pending: list[tuple[Callable[[], Any], Continuation]] = []

    def submit(self, call: Callable[[], Any], on_done: Continuation) -> None:
        self.pending.append((call, on_done))

    def resolve(self, index: int = 0) -> None:
        call, on_done = self.pending.pop(index)
        super().submit(call, on_done)

    def run_all(self) -> None:
        while self.pending:
            self.resolve(0)


class FakeActivitiesApi:
    """Service d'inscriptions en mémoire, avec journal des appels."""

    def __init__(self) -> None:
        self.users = {"rick": ("validpw", "abc")}
        self.valid_tokens = {"abc"}
        self.activities = {
            "Chess Club": {
                "description": "Learn strategies and compete in chess tournaments",
                "schedule": "Fridays, 3:30 PM - 5:00 PM",
                "max_participants": 12,
                "participants": ["a@b.com", "daniel@mergington.edu"],
            },
            "Programming Class": {
                "description": "Learn programming fundamentals and build software projects",
                "schedule": "Tuesdays and Thursdays, 3:30 PM - 4:30 PM",
                "max_participants": 1,
                "participants": ["emma@mergington.edu"],
            },
        }
        self.calls: list[tuple] = []
        self.failing: set[str] = set()
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.failing:
            raise ActivitiesApiError(f"{name} : service injoignable.")

    def close(self) -> None:
        self.closed = True

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def login(self, username: str, password: str) -> ApiResponse:
        self.calls.append(("login", username))
        self._maybe_fail("login")
        expected = self.users.get(username)
        if expected is None or expected[0] != password:
            return ApiResponse(401, {"detail": "Invalid username or password"})
        return ApiResponse(200, {"token": expected[1], "username": username})

    def logout(self, token: str) -> ApiResponse:
        self.calls.append(("logout", token))
        self._maybe_fail("logout")
        self.valid_tokens.discard(token)
        return ApiResponse(200, {"message": "Logged out"})

    def check(self, token: str) -> ApiResponse:
        self.calls.append(("check", token))
        self._maybe_fail("check")
        return ApiResponse(200, {"authenticated": token in self.valid_tokens})

    def list_activities(self) -> ApiResponse:
        self.calls.append(("list_activities",))
        self._maybe_fail("list_activities")
        return ApiResponse(200, {
            name: dict(details, participants=list(details["participants"]))
            for name, details in self.activities.items()
        })

    def signup(self, activity: str, email: str, token: str) -> ApiResponse:
        self.calls.append(("signup", activity, email, token))
        self._maybe_fail("signup")
        if token not in self.valid_tokens:
            return ApiResponse(401, {"detail": "Authentication required"})
        details = self.activities.get(activity)
        if details is None:
            return ApiResponse(404, {"detail": "Activity not found"})
        if email in details["participants"]:
            return ApiResponse(400, {"detail": "Student is already signed up"})
        if len(details["participants"]) >= details["max_participants"]:
            return ApiResponse(400, {"detail": "Activity is full"})
        details["participants"].append(email)
        return ApiResponse(200, {"message": f"Signed up {email} for {activity}"})

    def unregister(self, activity: str, email: str, token: str) -> ApiResponse:
        self.calls.append(("unregister", activity, email, token))
        self._maybe_fail("unregister")
        if token not in self.valid_tokens:
            return ApiResponse(401, {"detail": "Authentication required"})
        details = self.activities.get(activity)
        if details is None or email not in details["participants"]:
            return ApiResponse(404, {"detail": "Student not registered"})
        details["participants"].remove(email)
        return ApiResponse(200, {"message": "Removed"})


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def api() -> FakeActivitiesApi:
    return FakeActivitiesApi()


@pytest.fixture
def session_path(tmp_path):
    return tmp_path / "session.json"


@pytest.fixture
def store(session_path) -> SessionStore:
    return SessionStore(session_path)


@pytest.fixture
def logged_in_store(store) -> SessionStore:
    store.set(Session(token="abc", username="rick"))
    return store


@pytest.fixture
def notifier(scheduler) -> TransientNotifier:
    return TransientNotifier(scheduler)


@pytest.fixture
def dispatcher() -> ImmediateDispatcher:
    return ImmediateDispatcher()


@pytest.fixture
def manual_dispatcher() -> ManualDispatcher:
    return ManualDispatcher()


@pytest.fixture
def client(api, store, notifier, dispatcher) -> SignupClient:
    return SignupClient(api=api, store=store, notifier=notifier, dispatcher=dispatcher)
