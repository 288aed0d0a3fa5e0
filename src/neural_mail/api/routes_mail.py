"""
Mailbox routes: listing, search, categories, fetch and send.

Store calls are blocking and run in the threadpool; categorization after
a fetch is handed to the background runtime and the request returns
without waiting for it.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool

from neural_mail.api.dependencies import (
    get_api_session,
    get_fetcher,
    get_runtime,
    get_settings,
    get_store,
    get_worker,
)
from neural_mail.api.models import (
    CategorizationResponse,
    CategoryUpdate,
    CategoryUpdateResponse,
    CountResponse,
    EmailListResponse,
    FetchResponse,
    SendResponse,
)
from neural_mail.config import Settings
from neural_mail.mail.mock_fetcher import MockMailFetcher
from neural_mail.mail.outbound import resolve_transport
from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Message, OutboundMessage
from neural_mail.persistence.exceptions import MessageNotFound
from neural_mail.persistence.store import MailStore
from neural_mail.runtime.background import BackgroundRuntime
from neural_mail.runtime.session import SessionToken
from neural_mail.worker.categorizer import CategorizationWorker

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/emails",
    response_model=EmailListResponse,
    summary="List or search stored emails",
    description="""
    Without parameters returns every stored email in scan order.

    - `q`: case-insensitive substring over subject, sender and body
    - `category`: exact category filter (ignored when `q` is given)
    """,
)
async def list_emails(
    q: Optional[str] = Query(default=None, description="Search text"),
    category: Optional[Category] = Query(default=None),
    store: MailStore = Depends(get_store),
) -> EmailListResponse:
    if q is not None and q.strip():
        emails = await run_in_threadpool(store.search, q)
    elif category is not None:
        emails = await run_in_threadpool(store.by_category, category)
    else:
        emails = await run_in_threadpool(store.all)
    return EmailListResponse(emails=emails, count=len(emails))


@router.get("/emails/count", response_model=CountResponse)
async def count_emails(store: MailStore = Depends(get_store)) -> CountResponse:
    return CountResponse(count=await run_in_threadpool(store.count))


@router.get(
    "/emails/{email_id}",
    response_model=Message,
    responses={404: {"description": "No email with this id"}},
)
async def get_email(email_id: int, store: MailStore = Depends(get_store)) -> Message:
    message = await run_in_threadpool(store.get, email_id)
    if message is None:
        raise MessageNotFound(email_id)
    return message


@router.put(
    "/emails/{email_id}/category",
    response_model=CategoryUpdateResponse,
    summary="Move an email to a category",
    description="Unknown ids are not an error; the response reports `updated: false`.",
)
async def update_category(
    email_id: int,
    body: CategoryUpdate,
    store: MailStore = Depends(get_store),
) -> CategoryUpdateResponse:
    updated = await run_in_threadpool(store.update_category, email_id, body.category)
    logger.info("Category set by user", email_id=email_id, category=body.category.value, updated=updated)
    return CategoryUpdateResponse(id=email_id, category=body.category, updated=updated)


@router.post(
    "/emails/fetch",
    response_model=FetchResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Fetch the mailbox and schedule categorization",
)
async def fetch_emails(
    store: MailStore = Depends(get_store),
    fetcher: MockMailFetcher = Depends(get_fetcher),
    worker: CategorizationWorker = Depends(get_worker),
    runtime: BackgroundRuntime = Depends(get_runtime),
    session: SessionToken = Depends(get_api_session),
) -> FetchResponse:
    """
    Replace the stored mailbox with a fresh fetch.

    The categorization batch starts on the background runtime; its labels
    appear in subsequent listings one message at a time.
    """
    messages = await run_in_threadpool(fetcher.fetch)
    count = await run_in_threadpool(store.replace_all, messages)

    future = runtime.submit(worker.run(session))
    future.add_done_callback(_log_categorization)

    return FetchResponse(count=count, categorization="scheduled")


def _log_categorization(future) -> None:
    if future.cancelled():
        logger.info("Background categorization cancelled")
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Background categorization failed", error_type=type(exc).__name__, error=str(exc))
        return
    report = future.result()
    logger.info(
        "Background categorization complete",
        categorized=report.categorized,
        unchanged=report.unchanged,
        failed=report.failed,
    )


@router.post(
    "/emails/categorize",
    response_model=CategorizationResponse,
    summary="Run one categorization batch and wait for it",
)
async def categorize_emails(
    worker: CategorizationWorker = Depends(get_worker),
) -> CategorizationResponse:
    report = await worker.run()
    return CategorizationResponse(
        examined=report.examined,
        candidates=report.candidates,
        categorized=report.categorized,
        unchanged=report.unchanged,
        failed=report.failed,
        labels=report.labels,
    )


@router.post(
    "/send",
    response_model=SendResponse,
    summary="Send an email",
    description="Only the development transport exists: sends are logged, not delivered.",
    responses={503: {"description": "No outbound transport configured"}},
)
async def send_email(
    message: OutboundMessage,
    settings: Settings = Depends(get_settings),
) -> SendResponse:
    transport = resolve_transport(settings)
    message_id = await run_in_threadpool(transport.send, message)
    return SendResponse(message_id=message_id, delivered=False)
