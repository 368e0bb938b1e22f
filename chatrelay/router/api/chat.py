from fastapi import APIRouter, Depends

from chatrelay.router.api.params import ChatRequest
from chatrelay.router.controller.chat import ChatController, get_chat_controller
from chatrelay.router.streamer import UIMessageStreamResponse

router = APIRouter(
    tags=["chat"],
    prefix="/api",
)


@router.post("/chat")
async def chat(
    params: ChatRequest,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> UIMessageStreamResponse:
    return UIMessageStreamResponse(chat_controller.chat(params))
