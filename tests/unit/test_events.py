"""
Unit tests for the EventBus (bandcrm/bus/events.py).
No mocking required — pure Python.
"""

import logging

import pytest
from bandcrm.bus.events import (
    EventBus,
    EVENT_LOGGED_IN, EVENT_LOGGED_OUT, EVENT_PASSWORD_RESET, EVENT_MEMBER_NAME_CHANGED,
    EVENT_SHOW_CREATED, EVENT_SHOW_UPDATED, EVENT_SHOW_PAID_TOGGLED, EVENT_EXPENSE_ADDED,
)


@pytest.fixture
def bus():
    """Fresh EventBus for each test — never share state between tests."""
    return EventBus()


def test_handler_called_on_emit(bus):
    received = []
    bus.on('show_created', received.append)
    bus.emit('show_created', {'show_id': 7})
    assert received == [{'show_id': 7}]


def test_handlers_called_in_registration_order(bus):
    calls = []
    bus.on('evt', lambda d: calls.append('a'))
    bus.on('evt', lambda d: calls.append('b'))
    bus.emit('evt', {})
    assert calls == ['a', 'b']


def test_emit_without_handlers_is_silent(bus):
    bus.emit('nobody_listens', {'x': 1})


def test_emit_default_data_is_empty_dict(bus):
    received = []
    bus.on('evt', received.append)
    bus.emit('evt')
    assert received == [{}]


def test_only_matching_event_handlers_run(bus):
    received = []
    bus.on(EVENT_SHOW_CREATED, lambda d: received.append('created'))
    bus.on(EVENT_SHOW_UPDATED, lambda d: received.append('updated'))
    bus.emit(EVENT_SHOW_UPDATED, {})
    assert received == ['updated']


def test_off_unregisters_handler(bus):
    received = []
    bus.on('evt', received.append)
    bus.off('evt', received.append)
    bus.emit('evt', {'x': 1})
    assert received == []


def test_off_unknown_handler_is_ignored(bus):
    bus.off('evt', lambda d: None)


def test_failing_handler_does_not_stop_others(bus, caplog):
    received = []

    def broken(data):
        raise RuntimeError("handler blew up")

    bus.on('evt', broken)
    bus.on('evt', received.append)
    with caplog.at_level(logging.ERROR, logger='bandcrm.bus.events'):
        bus.emit('evt', {'ok': True})

    assert received == [{'ok': True}]
    assert any('handler blew up' in r.message for r in caplog.records)


def test_clear_removes_all_handlers(bus):
    received = []
    bus.on('a', received.append)
    bus.on('b', received.append)
    bus.clear()
    bus.emit('a', {})
    bus.emit('b', {})
    assert received == []


def test_event_names_are_distinct():
    names = [
        EVENT_LOGGED_IN, EVENT_LOGGED_OUT, EVENT_PASSWORD_RESET, EVENT_MEMBER_NAME_CHANGED,
        EVENT_SHOW_CREATED, EVENT_SHOW_UPDATED, EVENT_SHOW_PAID_TOGGLED, EVENT_EXPENSE_ADDED,
    ]
    assert len(set(names)) == len(names)
