"""
Tests for EndpointSelector: health probing, fail-open initialization,
diagnostics and the active URL invariant.
"""

from __future__ import annotations

from itertools import count
from unittest.mock import MagicMock

import pytest
import requests

from safesea.infrastructure.http.endpoint_selector import ACTIVE_URL_KEY, EndpointSelector
from safesea.infrastructure.http.errors import AllEndpointsUnreachableError, TransportError
from safesea.infrastructure.http.request_executor import RequestExecutor
from safesea.infrastructure.storage.key_value_store import KeyValueStore
from safesea.infrastructure.storage.token_store import TokenStore

PRIMARY = "http://192.168.43.143:3000"
BACKUP = "http://10.0.0.5:3000"


def _route(http: MagicMock, table: dict) -> None:
    """Answer by base URL: a response object, or an exception to raise."""

    def handler(method, url, **kwargs):
        for base, outcome in table.items():
            if url.startswith(base):
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise requests.ConnectionError(f"no route to {url}")

    http.request.side_effect = handler


@pytest.fixture
def selector(tokens: TokenStore, store: KeyValueStore, http: MagicMock, sleep) -> EndpointSelector:
    executor = RequestExecutor(tokens, session=http, sleep=sleep)
    ticks = count()
    return EndpointSelector(
        [PRIMARY, BACKUP],
        executor,
        store,
        sleep=sleep,
        clock=lambda: next(ticks) * 0.05,
    )


def test_defaults_to_first_candidate(selector: EndpointSelector) -> None:
    assert selector.active_url == PRIMARY
    assert selector.url_for("/alerts") == f"{PRIMARY}/alerts"
    assert selector.url_for("weather") == f"{PRIMARY}/weather"


def test_empty_candidates_rejected(tokens: TokenStore, store: KeyValueStore) -> None:
    with pytest.raises(ValueError):
        EndpointSelector([], RequestExecutor(tokens, session=MagicMock()), store)


# --- health_check ---


def test_health_check_switches_to_first_healthy_candidate(selector: EndpointSelector, http: MagicMock, store: KeyValueStore, make_response) -> None:
    _route(http, {PRIMARY: requests.ConnectionError("down"), BACKUP: make_response(200, {"status": "ok"})})
    assert selector.health_check() == {"status": "ok"}
    assert selector.active_url == BACKUP
    assert store.get(ACTIVE_URL_KEY) == BACKUP


def test_health_check_probes_with_fifteen_second_deadline(selector: EndpointSelector, http: MagicMock, make_response) -> None:
    _route(http, {PRIMARY: make_response(200, {"status": "ok"})})
    selector.health_check()
    args, kwargs = http.request.call_args
    assert args == ("GET", f"{PRIMARY}/health")
    assert kwargs["timeout"] == 15.0


def test_health_check_keeps_active_when_it_answers(selector: EndpointSelector, http: MagicMock, store: KeyValueStore, make_response) -> None:
    _route(http, {PRIMARY: make_response(200, {"status": "ok"})})
    selector.health_check()
    assert selector.active_url == PRIMARY
    assert http.request.call_count == 1
    assert store.get(ACTIVE_URL_KEY) is None


def test_non_success_health_counts_as_failure(selector: EndpointSelector, http: MagicMock, make_response) -> None:
    _route(http, {PRIMARY: make_response(503), BACKUP: make_response(200, {"status": "ok"})})
    selector.health_check()
    assert selector.active_url == BACKUP


def test_health_check_all_down_carries_last_error(selector: EndpointSelector, http: MagicMock) -> None:
    _route(http, {PRIMARY: requests.ConnectionError("a"), BACKUP: requests.ConnectionError("b")})
    with pytest.raises(AllEndpointsUnreachableError) as info:
        selector.health_check()
    assert isinstance(info.value.last_error, TransportError)
    assert "b" in str(info.value.last_error)
    assert selector.active_url == PRIMARY


# --- initialize ---


def test_initialize_restores_persisted_candidate(selector: EndpointSelector, http: MagicMock, store: KeyValueStore, make_response) -> None:
    store.set(ACTIVE_URL_KEY, BACKUP)
    _route(http, {PRIMARY: make_response(200, {}), BACKUP: make_response(200, {})})
    assert selector.initialize() == PRIMARY
    # the persisted choice was adopted first, then the ordered probe moved it
    assert http.request.call_args_list[0].args[1] == f"{PRIMARY}/health"


def test_initialize_keeps_persisted_candidate_when_primary_down(selector: EndpointSelector, http: MagicMock, store: KeyValueStore, make_response) -> None:
    store.set(ACTIVE_URL_KEY, BACKUP)
    _route(http, {PRIMARY: requests.ConnectionError("down"), BACKUP: make_response(200, {})})
    assert selector.initialize() == BACKUP


def test_initialize_ignores_unknown_persisted_url(selector: EndpointSelector, http: MagicMock, store: KeyValueStore, sleep) -> None:
    store.set(ACTIVE_URL_KEY, "http://evil.example")
    _route(http, {})
    assert selector.initialize() == PRIMARY


def test_initialize_is_fail_open(selector: EndpointSelector, http: MagicMock, sleep) -> None:
    _route(http, {})
    active = selector.initialize()
    assert active in selector.candidates
    assert http.request.call_count == 6  # 3 rounds x 2 candidates
    assert sleep.delays == [1.0, 2.0]


def test_initialize_stops_after_first_success(selector: EndpointSelector, http: MagicMock, sleep, make_response) -> None:
    _route(http, {PRIMARY: make_response(200, {"status": "ok"})})
    selector.initialize()
    assert http.request.call_count == 1
    assert sleep.delays == []


# --- set_active ---


def test_set_active_rejects_non_candidate(selector: EndpointSelector, store: KeyValueStore, caplog) -> None:
    assert selector.set_active("http://elsewhere:3000") is False
    assert selector.active_url == PRIMARY
    assert store.get(ACTIVE_URL_KEY) is None
    assert "Invalid API URL" in caplog.text


def test_set_active_persists(selector: EndpointSelector, store: KeyValueStore) -> None:
    assert selector.set_active(BACKUP) is True
    assert selector.active_url == BACKUP
    assert store.get(ACTIVE_URL_KEY) == BACKUP


# --- test_all_connections ---


def test_all_connections_one_record_per_candidate(selector: EndpointSelector, http: MagicMock, make_response) -> None:
    _route(http, {PRIMARY: requests.ConnectionError("refused"), BACKUP: make_response(200, {"status": "ok"})})
    reports = selector.test_all_connections()
    assert [r.url for r in reports] == [PRIMARY, BACKUP]
    assert [r.outcome for r in reports] == ["error", "success"]
    assert reports[0].latency_ms is None
    assert "refused" in reports[0].detail
    assert reports[1].latency_ms == pytest.approx(50.0)
    assert reports[1].detail == {"status": "ok"}
    assert selector.active_url == PRIMARY


def test_all_connections_does_not_short_circuit(selector: EndpointSelector, http: MagicMock, make_response) -> None:
    _route(http, {PRIMARY: make_response(200, {}), BACKUP: make_response(200, {})})
    reports = selector.test_all_connections()
    assert all(r.ok for r in reports)
    assert http.request.call_count == 2
    assert all(c.kwargs["timeout"] == 3.0 for c in http.request.call_args_list)
