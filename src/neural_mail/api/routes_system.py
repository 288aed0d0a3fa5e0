"""
System routes: health, installed models, persisted settings and mail accounts.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from neural_mail import __version__
from neural_mail.api.dependencies import get_credentials, get_gateway, get_store
from neural_mail.api.models import (
    AccountCreate,
    HealthResponse,
    ModelListResponse,
    SettingUpdate,
    SettingValue,
)
from neural_mail.llm.gateway import OllamaGateway
from neural_mail.models.mail_models import Account
from neural_mail.persistence.credentials import CredentialStore
from neural_mail.persistence.exceptions import StorageError
from neural_mail.persistence.store import MailStore

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="""
    Reports the database and the inference endpoint.

    The mailbox keeps working without Ollama, so an unreachable endpoint
    reports `degraded` (200); a failing database reports `unhealthy` (503).
    """,
)
async def health_check(
    store: MailStore = Depends(get_store),
    gateway: OllamaGateway = Depends(get_gateway),
):
    services = {}

    try:
        await run_in_threadpool(store.count)
        services["database"] = "ok"
    except StorageError as e:
        services["database"] = f"error ({e.details.get('error_type', 'unknown')})"

    services["ollama"] = "ok" if await gateway.health_check() else "unreachable"

    if services["database"] != "ok":
        health_status, status_code = "unhealthy", status.HTTP_503_SERVICE_UNAVAILABLE
    elif services["ollama"] != "ok":
        health_status, status_code = "degraded", status.HTTP_200_OK
    else:
        health_status, status_code = "healthy", status.HTTP_200_OK

    logger.debug("Health check", status=health_status, services=services)

    response = HealthResponse(status=health_status, version=__version__, services=services)
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


@router.get(
    "/models",
    response_model=ModelListResponse,
    summary="List models installed on the inference endpoint",
    responses={503: {"description": "Inference endpoint unreachable"}},
)
async def list_models(gateway: OllamaGateway = Depends(get_gateway)) -> ModelListResponse:
    models = await gateway.list_models()
    return ModelListResponse(default=gateway.default_model, models=models)


# === Settings ===


@router.get("/settings/{key}", response_model=SettingValue)
async def read_setting(key: str, store: MailStore = Depends(get_store)) -> SettingValue:
    value = await run_in_threadpool(store.get_setting, key)
    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Setting {key!r} not set")
    return SettingValue(key=key, value=value)


@router.put("/settings/{key}", response_model=SettingValue)
async def write_setting(
    key: str, body: SettingUpdate, store: MailStore = Depends(get_store)
) -> SettingValue:
    await run_in_threadpool(store.set_setting, key, body.value)
    return SettingValue(key=key, value=body.value)


# === Accounts ===


@router.get("/accounts", response_model=list[Account])
async def list_accounts(store: MailStore = Depends(get_store)) -> list[Account]:
    return await run_in_threadpool(store.list_accounts)


@router.post("/accounts", response_model=Account, status_code=status.HTTP_201_CREATED)
async def save_account(
    body: AccountCreate,
    store: MailStore = Depends(get_store),
    credentials: CredentialStore = Depends(get_credentials),
) -> Account:
    """
    Save account metadata; the password, when given, goes to the OS keyring.
    """
    account = Account(**body.model_dump(exclude={"password"}))
    await run_in_threadpool(store.save_account, account)
    if body.password:
        await run_in_threadpool(credentials.save_password, account.email, body.password)
    return account


@router.delete("/accounts/{email}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    email: str,
    store: MailStore = Depends(get_store),
    credentials: CredentialStore = Depends(get_credentials),
) -> None:
    deleted = await run_in_threadpool(store.delete_account, email)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Account {email!r} not found")
    await run_in_threadpool(credentials.delete_password, email)
