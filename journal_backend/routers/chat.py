from fastapi import APIRouter, Depends, Query

from journal_backend.schemas.response import Response, ok
from journal_backend.services.chat import ChatModel, get_chat_model
from journal_backend.utils.auth import Principal, get_current_principal

router = APIRouter(tags=["chat"])


@router.get("", response_model=Response, summary="Ask the chat model a single question")
async def complete_prompt(
    prompt: str = Query(..., min_length=1, description="Text sent to the model as one user turn"),
    principal: Principal = Depends(get_current_principal),
    model: ChatModel = Depends(get_chat_model),
):
    """
    Pass-through to the chat model. Raises 502 if the model call fails.
    """
    answer = await model.complete(prompt)
    return ok("Model response", {"prompt": prompt, "response": answer})
