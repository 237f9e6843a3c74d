import pytest

from signupdesk.notifier import Kind, Slot
from signupdesk.services.activities_api import ApiResponse
from signupdesk.services.mutations import MutationController
from signupdesk.services.roster import RosterSynchronizer


@pytest.fixture
def synchronizer(api, dispatcher):
    synchronizer = RosterSynchronizer(api, dispatcher)
    synchronizer.refresh()
    return synchronizer


@pytest.fixture
def make_controller(api, synchronizer, notifier, dispatcher):
    def build(store, *, with_dispatcher=dispatcher):
        return MutationController(api, store, synchronizer, notifier, with_dispatcher)

    return build


@pytest.mark.parametrize(
    "action, expected",
    [
        ("register", "Please login to register students."),
        ("unregister", "Please login to unregister students."),
    ],
)
def test_gate_blocks_without_token(
    api, store, notifier, scheduler, manual_dispatcher, make_controller, action, expected
):
    api.calls.clear()
    controller = make_controller(store, with_dispatcher=manual_dispatcher)

    future = getattr(controller, action)("Chess Club", "new@b.com")

    assert future.done()
    assert not future.result().ok
    assert manual_dispatcher.pending == []
    assert api.calls == []
    shown = notifier.current(Slot.MAIN)
    assert (shown.text, shown.kind, shown.expires_after_ms) == (expected, Kind.ERROR, 3000)
    scheduler.advance(3001)
    assert notifier.current(Slot.MAIN) is None


def test_register_success_notifies_and_refreshes(api, logged_in_store, synchronizer, notifier, make_controller):
    controller = make_controller(logged_in_store)

    result = controller.register("Chess Club", "new@b.com").result()

    assert result.ok
    assert api.calls_to("signup") == [("signup", "Chess Club", "new@b.com", "abc")]
    assert len(api.calls_to("list_activities")) == 2
    shown = notifier.current(Slot.MAIN)
    assert (shown.text, shown.kind, shown.expires_after_ms) == (
        "Signed up new@b.com for Chess Club",
        Kind.SUCCESS,
        5000,
    )
    assert "new@b.com" in synchronizer.roster["Chess Club"].participants


def test_mutation_waits_for_the_server_before_reacting(api, logged_in_store, notifier, manual_dispatcher, make_controller):
    controller = make_controller(logged_in_store, with_dispatcher=manual_dispatcher)

    future = controller.unregister("Chess Club", "a@b.com")

    assert not future.done()
    assert notifier.current(Slot.MAIN) is None
    manual_dispatcher.resolve()
    assert future.result().ok
    assert notifier.current(Slot.MAIN).text == "Removed"
    # Le rechargement de la liste est lui-même une requête en attente.
    assert len(manual_dispatcher.pending) == 1


def test_server_rejection_shows_detail_without_refresh(api, logged_in_store, notifier, make_controller):
    controller = make_controller(logged_in_store)

    result = controller.register("Chess Club", "a@b.com").result()

    assert str(result.error) == "Student is already signed up"
    assert len(api.calls_to("list_activities")) == 1
    shown = notifier.current(Slot.MAIN)
    assert (shown.kind, shown.expires_after_ms) == (Kind.ERROR, 5000)


def test_full_activity_is_still_sent_to_server(api, logged_in_store, synchronizer, make_controller):
    controller = make_controller(logged_in_store)
    assert synchronizer.roster["Programming Class"].spots_left == 0

    result = controller.register("Programming Class", "late@b.com").result()

    assert api.calls_to("signup")
    assert str(result.error) == "Activity is full"


@pytest.mark.parametrize(
    "action, method, expected",
    [
        ("register", "signup", "Failed to sign up. Please try again."),
        ("unregister", "unregister", "Failed to unregister. Please try again."),
    ],
)
def test_network_failure_is_reported(api, logged_in_store, notifier, make_controller, action, method, expected):
    api.failing.add(method)
    controller = make_controller(logged_in_store)

    result = getattr(controller, action)("Chess Club", "a@b.com").result()

    assert str(result.error) == expected
    assert notifier.current(Slot.MAIN).text == expected
    assert notifier.current(Slot.MAIN).expires_after_ms == 5000
    assert len(api.calls_to("list_activities")) == 1


def test_generic_fallback_when_server_gives_no_detail(api, logged_in_store, make_controller):
    api.unregister = lambda activity, email, token: ApiResponse(500, {})
    controller = make_controller(logged_in_store)

    result = controller.unregister("Chess Club", "a@b.com").result()

    assert str(result.error) == "An error occurred"


def test_success_without_message_still_says_what_happened(api, logged_in_store, notifier, make_controller):
    api.unregister = lambda activity, email, token: ApiResponse(200, {})
    controller = make_controller(logged_in_store)

    result = controller.unregister("Chess Club", "a@b.com").result()

    assert result.value == "Unregistered a@b.com from Chess Club"
    assert notifier.current(Slot.MAIN).text == "Unregistered a@b.com from Chess Club"
