"""
Assistant routes: summary, reply draft and inbox chat.

These wait for the model. Failures after all gateway retries surface as
503 through the InferenceUnavailable handler.
"""

import structlog
from fastapi import APIRouter, Depends

from neural_mail.api.dependencies import get_assistant
from neural_mail.api.models import AssistantResponse, ChatRequest
from neural_mail.assistant.orchestrators import MailAssistant

logger = structlog.get_logger(__name__)

router = APIRouter()

ASSISTANT_RESPONSES = {
    404: {"description": "No email with this id"},
    503: {"description": "Inference endpoint unavailable after retries"},
}


@router.post(
    "/emails/{email_id}/summary",
    response_model=AssistantResponse,
    summary="Summarize one email",
    responses=ASSISTANT_RESPONSES,
)
async def summarize_email(
    email_id: int,
    assistant: MailAssistant = Depends(get_assistant),
) -> AssistantResponse:
    result = await assistant.summarize(email_id)
    return AssistantResponse.from_result(result)


@router.post(
    "/emails/{email_id}/reply",
    response_model=AssistantResponse,
    summary="Draft a reply to one email",
    description="Returns only the reply body; any framing the model adds is passed through.",
    responses=ASSISTANT_RESPONSES,
)
async def draft_reply(
    email_id: int,
    assistant: MailAssistant = Depends(get_assistant),
) -> AssistantResponse:
    result = await assistant.draft_reply(email_id)
    return AssistantResponse.from_result(result)


@router.post(
    "/chat",
    response_model=AssistantResponse,
    summary="Ask a question about the inbox",
    description="""
    Pure greetings ("hi", "Hello!") are answered locally without calling the model.
    Other questions are answered with up to the configured number of stored
    emails as context.
    """,
    responses={
        400: {"description": "Empty message"},
        503: {"description": "Inference endpoint unavailable after retries"},
    },
)
async def chat(
    request: ChatRequest,
    assistant: MailAssistant = Depends(get_assistant),
) -> AssistantResponse:
    result = await assistant.chat(request.message)
    return AssistantResponse.from_result(result)
