"""
================================================
Comprehensive pytest suite for query_observer.py
================================================

Sections:
---------
1. Unit tests - QueryEvent, LoggingObserver, CallbackObserver
2. Unit tests - QueryStatsObserver pandas summaries

Available markers:
------------------
unit, edge_case

How to Execute:
---------------
All tests:          python -m pytest tests/tests_logs/test_query_observer.py -v
"""

import logging
from unittest.mock import Mock

import pytest

from logs.query_observer import (
    CallbackObserver,
    LoggingObserver,
    QueryEvent,
    QueryObserver,
    QueryStatsObserver,
)


def make_event(operation='query', duration_ms=2.0, rowcount=1):
    return QueryEvent(
        operation=operation,
        table='Customer',
        text='SELECT * FROM Customer WHERE Country = ?',
        arguments=['USA'],
        duration_ms=duration_ms,
        rowcount=rowcount
    )


# ============================================================================
# UNIT TESTS - events and simple observers
# ============================================================================


@pytest.mark.unit
def test_event_raw_text():
    """Test raw_text inlines the arguments for display."""
    assert make_event().raw_text == "SELECT * FROM Customer WHERE Country = 'USA'"


@pytest.mark.unit
def test_base_observer_hooks_are_noops():
    """Test the base class can be attached without overriding anything."""
    observer = QueryObserver()

    observer.on_success(make_event())
    observer.on_failure(make_event(), RuntimeError('x'))


@pytest.mark.unit
def test_logging_observer_logs_sql_when_enabled(caplog):
    """Test successful statements are logged at DEBUG only with log_sql on."""
    log = logging.getLogger('tests.observer')
    caplog.set_level(logging.DEBUG, logger='tests.observer')

    LoggingObserver(log=log, log_sql=False).on_success(make_event())
    assert caplog.records == []

    LoggingObserver(log=log, log_sql=True).on_success(make_event())
    assert caplog.records[0].levelno == logging.DEBUG
    assert "'USA'" in caplog.records[0].getMessage()


@pytest.mark.unit
def test_logging_observer_logs_failures(caplog):
    """Test failures are always logged at ERROR."""
    log = logging.getLogger('tests.observer.failures')
    caplog.set_level(logging.DEBUG, logger='tests.observer.failures')

    LoggingObserver(log=log, log_sql=False).on_failure(make_event(), RuntimeError('no such table'))

    assert caplog.records[0].levelno == logging.ERROR
    assert 'no such table' in caplog.records[0].getMessage()


@pytest.mark.unit
def test_callback_observer_forwards():
    """Test callables receive the event (and error)."""
    on_success, on_failure = Mock(), Mock()
    observer = CallbackObserver(on_success=on_success, on_failure=on_failure)
    event, error = make_event(), RuntimeError('x')

    observer.on_success(event)
    observer.on_failure(event, error)

    on_success.assert_called_once_with(event)
    on_failure.assert_called_once_with(event, error)


@pytest.mark.edge_case
def test_callback_observer_without_callables():
    """Test missing callables are skipped."""
    observer = CallbackObserver()

    observer.on_success(make_event())
    observer.on_failure(make_event(), RuntimeError('x'))


# ============================================================================
# UNIT TESTS - QueryStatsObserver
# ============================================================================


@pytest.mark.unit
def test_stats_frame_and_summary():
    """Test recorded executions aggregate per operation."""
    stats = QueryStatsObserver()
    stats.on_success(make_event('query', 2.0))
    stats.on_success(make_event('query', 4.0))
    stats.on_failure(make_event('insert', 1.0, rowcount=None), RuntimeError('dup'))

    frame = stats.to_frame()
    assert list(frame.columns) == QueryStatsObserver.COLUMNS
    assert len(frame) == 3

    summary = stats.summary()
    assert summary['query'] == {'count': 2, 'failures': 0, 'mean_ms': 3.0, 'max_ms': 4.0}
    assert summary['insert']['failures'] == 1


@pytest.mark.edge_case
def test_stats_empty_and_reset():
    """Test an empty observer summarizes to {} and reset() clears records."""
    stats = QueryStatsObserver()
    assert stats.summary() == {}
    assert stats.to_frame().empty

    stats.on_success(make_event())
    stats.reset()

    assert stats.summary() == {}
