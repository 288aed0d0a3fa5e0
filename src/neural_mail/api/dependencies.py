"""
FastAPI dependency injection for the local API.

Long-lived resources (store, gateway, background runtime, credential
store) are process singletons; orchestrators are cheap and built per
request from the injected singletons, so tests can override any leaf.
"""

from functools import lru_cache

import structlog
from fastapi import Depends

from neural_mail.assistant.orchestrators import MailAssistant
from neural_mail.config import Settings, settings
from neural_mail.llm.gateway import OllamaGateway
from neural_mail.mail.mock_fetcher import MockMailFetcher
from neural_mail.persistence.credentials import CredentialStore
from neural_mail.persistence.store import MailStore
from neural_mail.runtime.background import BackgroundRuntime
from neural_mail.runtime.session import SessionToken
from neural_mail.worker.categorizer import CategorizationWorker

logger = structlog.get_logger(__name__)


@lru_cache()
def get_settings() -> Settings:
    return settings


@lru_cache()
def get_store() -> MailStore:
    """
    Get the initialized mail store singleton.

    ``init()`` runs once here, so every route sees the current schema.
    """
    store = MailStore.from_settings(get_settings())
    store.init()
    return store


@lru_cache()
def get_gateway() -> OllamaGateway:
    return OllamaGateway.from_settings(get_settings())


@lru_cache()
def get_runtime() -> BackgroundRuntime:
    """Background runtime for work that outlives a request (categorization)."""
    runtime = BackgroundRuntime.from_settings(get_settings())
    runtime.start()
    return runtime


@lru_cache()
def get_api_session() -> SessionToken:
    """Liveness token for background work started by the API; invalidated on shutdown."""
    return SessionToken("api")


@lru_cache()
def get_credentials() -> CredentialStore:
    return CredentialStore(service=get_settings().KEYRING_SERVICE)


def get_fetcher(settings: Settings = Depends(get_settings)) -> MockMailFetcher:
    return MockMailFetcher.from_settings(settings)


def get_assistant(
    store: MailStore = Depends(get_store),
    gateway: OllamaGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> MailAssistant:
    return MailAssistant.from_settings(settings, store, gateway)


def get_worker(
    store: MailStore = Depends(get_store),
    gateway: OllamaGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> CategorizationWorker:
    return CategorizationWorker.from_settings(settings, store, gateway)


def close_resources() -> None:
    """Release singletons created during the app's lifetime."""
    if get_runtime.cache_info().currsize:
        get_api_session().invalidate()
        get_runtime().shutdown()
    if get_store.cache_info().currsize:
        get_store().close()

    for factory in (get_store, get_gateway, get_runtime, get_api_session, get_credentials):
        factory.cache_clear()
    logger.debug("API resources released")
