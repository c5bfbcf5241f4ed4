"""Unit tests for the selection state machine."""

import pytest

from gce_tui.models import (
    FetchFailed,
    FetchSucceeded,
    InstanceRecord,
    Key,
    KeyPressed,
    LaunchSession,
    Phase,
    SelectionState,
)
from gce_tui.selection import SelectionMachine, transition

VM1 = InstanceRecord(name="vm-1", zone="us-central1-a")
VM2 = InstanceRecord(name="vm-2", zone="europe-west1-b")
VM3 = InstanceRecord(name="vm-3", zone="asia-east1-c")


def ready_machine(*records: InstanceRecord) -> SelectionMachine:
    machine = SelectionMachine()
    machine.dispatch(FetchSucceeded(inventory=records))
    return machine


def press(machine: SelectionMachine, key: Key) -> LaunchSession | None:
    return machine.dispatch(KeyPressed(key))


def test_initial_state_is_loading() -> None:
    state = SelectionMachine().state
    assert state.phase is Phase.LOADING
    assert state.inventory == ()
    assert state.cursor == 0
    assert state.last_error is None


@pytest.mark.parametrize("records", [(VM1,), (VM1, VM2), (VM1, VM2, VM3)])
def test_fetch_success_enters_ready_with_cursor_at_top(records) -> None:
    machine = ready_machine(*records)
    assert machine.state.phase is Phase.READY
    assert machine.state.cursor == 0
    assert machine.state.inventory == records


def test_scenario_navigate_and_confirm() -> None:
    machine = ready_machine(VM1, VM2)
    assert len(machine.state.inventory) == 2

    assert press(machine, Key.DOWN) is None
    assert machine.state.cursor == 1

    effect = press(machine, Key.CONFIRM)
    assert effect == LaunchSession(InstanceRecord(name="vm-2", zone="europe-west1-b"))


def test_scenario_fetch_failure_accepts_only_quit() -> None:
    machine = SelectionMachine()
    machine.dispatch(FetchFailed(cause="internal server error"))
    assert machine.state.phase is Phase.FAILED
    assert machine.state.last_error == "internal server error"

    before = machine.state
    assert press(machine, Key.DOWN) is None
    assert press(machine, Key.CONFIRM) is None
    assert machine.state == before
    assert not machine.terminated

    press(machine, Key.QUIT)
    assert machine.terminated


def test_scenario_empty_inventory() -> None:
    machine = ready_machine()
    assert machine.state.phase is Phase.READY
    assert machine.state.inventory == ()
    assert machine.state.selected is None

    assert press(machine, Key.CONFIRM) is None
    press(machine, Key.DOWN)
    press(machine, Key.UP)
    assert machine.state.cursor == 0


def test_single_item_confirm_is_active() -> None:
    machine = ready_machine(VM1)
    press(machine, Key.DOWN)
    assert machine.state.cursor == 0
    assert press(machine, Key.CONFIRM) == LaunchSession(VM1)


def test_up_saturates_at_top() -> None:
    machine = ready_machine(VM1, VM2, VM3)
    for _ in range(5):
        press(machine, Key.UP)
    assert machine.state.cursor == 0


def test_down_saturates_at_bottom() -> None:
    machine = ready_machine(VM1, VM2, VM3)
    for _ in range(5):
        press(machine, Key.DOWN)
    assert machine.state.cursor == 2
    assert machine.state.selected == VM3


def test_repeated_confirm_leaves_state_untouched() -> None:
    machine = ready_machine(VM1, VM2)
    press(machine, Key.DOWN)
    before = machine.state

    first = press(machine, Key.CONFIRM)
    second = press(machine, Key.CONFIRM)

    assert first == second == LaunchSession(VM2)
    assert machine.state == before


def test_navigation_ignored_while_loading() -> None:
    machine = SelectionMachine()
    assert press(machine, Key.DOWN) is None
    assert press(machine, Key.CONFIRM) is None
    assert machine.state == SelectionState.initial()


def test_quit_while_loading_terminates() -> None:
    machine = SelectionMachine()
    press(machine, Key.QUIT)
    assert machine.terminated
    assert machine.state.phase is Phase.LOADING


def test_events_after_termination_are_ignored() -> None:
    machine = SelectionMachine()
    press(machine, Key.QUIT)
    machine.dispatch(FetchSucceeded(inventory=(VM1,)))
    assert machine.state.phase is Phase.LOADING


def test_other_keys_are_noops() -> None:
    machine = ready_machine(VM1, VM2)
    before = machine.state
    assert press(machine, Key.OTHER) is None
    assert machine.state == before
    assert not machine.terminated


def test_fetch_result_only_applies_while_loading() -> None:
    ready = transition(SelectionState.initial(), FetchSucceeded(inventory=(VM1,))).state
    after = transition(ready, FetchFailed(cause="late failure"))
    assert after.state == ready

    failed = transition(SelectionState.initial(), FetchFailed(cause="boom")).state
    assert transition(failed, FetchSucceeded(inventory=(VM1,))).state == failed


def test_transition_does_not_mutate_input_state() -> None:
    state = transition(SelectionState.initial(), FetchSucceeded(inventory=(VM1, VM2))).state
    result = transition(state, KeyPressed(Key.DOWN))
    assert state.cursor == 0
    assert result.state.cursor == 1


@pytest.mark.parametrize(
    ("name", "key"),
    [
        ("up", Key.UP),
        ("k", Key.UP),
        ("down", Key.DOWN),
        ("j", Key.DOWN),
        ("enter", Key.CONFIRM),
        ("q", Key.QUIT),
        ("ctrl+c", Key.QUIT),
        ("escape", Key.QUIT),
        ("x", Key.OTHER),
        ("space", Key.OTHER),
    ],
)
def test_key_from_name(name, key) -> None:
    assert Key.from_name(name) is key
