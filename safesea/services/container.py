"""
Composition root: builds the session layer from explicit settings.

There are no module-level URL or token singletons; everything shared is owned
by the objects created here and passed to whoever needs it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import requests

from safesea.domains.models import Session
from safesea.infrastructure.http.endpoint_selector import EndpointSelector
from safesea.infrastructure.http.request_executor import RequestExecutor
from safesea.infrastructure.http.retry_policy import RetryPolicy, linear_backoff
from safesea.infrastructure.storage.key_value_store import KeyValueStore
from safesea.infrastructure.storage.token_store import TokenStore
from safesea.services.api_client import AuthenticatedClient
from safesea.services.auth_session import AuthSession
from safesea.utils.config import ClientSettings
from safesea.utils.logger import get_logger

logger = get_logger()


@dataclass
class Services:
    settings: ClientSettings
    store: KeyValueStore
    tokens: TokenStore
    executor: RequestExecutor
    endpoints: EndpointSelector
    client: AuthenticatedClient
    auth: AuthSession


def build_services(
    settings: ClientSettings | None = None,
    *,
    session: requests.Session | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Services:
    """Wire store -> tokens -> executor -> endpoints -> client -> auth session."""
    settings = settings or ClientSettings.from_env()
    policy = RetryPolicy(settings.max_attempts, linear_backoff(settings.backoff_seconds))

    store = KeyValueStore(settings.storage_dir)
    tokens = TokenStore(store)
    executor = RequestExecutor(
        tokens,
        session=session,
        retry_policy=policy,
        sleep=sleep,
        clock=clock,
        default_timeout=settings.request_timeout,
        allow_anonymous_401=settings.allow_anonymous_401,
    )
    endpoints = EndpointSelector(
        settings.api_urls,
        executor,
        store,
        retry_policy=policy,
        sleep=sleep,
        clock=clock,
        health_timeout=settings.health_timeout,
        diagnostics_timeout=settings.diagnostics_timeout,
    )
    client = AuthenticatedClient(executor, endpoints, login_timeout=settings.login_timeout)
    auth = AuthSession(client, tokens, store)
    client.add_auth_listener(auth.invalidate)
    return Services(
        settings=settings,
        store=store,
        tokens=tokens,
        executor=executor,
        endpoints=endpoints,
        client=client,
        auth=auth,
    )


def bootstrap(services: Services) -> Session:
    """Startup sequence: pick a reachable endpoint (fail-open), then resume any session."""
    services.endpoints.initialize()
    return services.auth.restore()
