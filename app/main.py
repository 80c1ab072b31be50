from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config.settings import get_settings
from neurogen.agent import ChatAgent, build_agent
from neurogen.errors import InputError


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("neurogen")

INVALID_MESSAGE_REPLY = "Please enter a valid message."
INTERNAL_ERROR_REPLY = "Internal error. Please try again."

STARTED_AT = time.time()

app = FastAPI(title="NeuroGen Chat Backend", version="1.0.0")

# CORS: allow local frontend during development
settings = get_settings()
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ChatTurn(BaseModel):
    role: str = Field(..., description="'user', 'assistant' or 'system'")
    content: str


class AskRequest(BaseModel):
    message: Optional[Any] = Field(None, description="User's latest message")
    memory: Optional[List[ChatTurn]] = Field(
        None,
        description="Prior turns managed by the frontend; server session memory is used when omitted",
    )
    session_id: Optional[str] = Field(None, description="Conversation key for server-side memory")


@lru_cache(maxsize=1)
def _shared_agent() -> ChatAgent:
    return build_agent(get_settings())


def get_chat_agent() -> Optional[ChatAgent]:
    # None tells the handler to answer with the apology body.
    try:
        return _shared_agent()
    except Exception as e:
        logger.exception("Chat agent construction failed: %s", e)
        return None


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body: %s error(s)", len(exc.errors()))
    return JSONResponse(status_code=400, content={"reply": INVALID_MESSAGE_REPLY})


@app.post("/ask")
@app.post("/chat")
async def ask(req: AskRequest, agent: Optional[ChatAgent] = Depends(get_chat_agent)) -> JSONResponse:
    message = req.message
    if not isinstance(message, str) or not message.strip():
        return JSONResponse(status_code=400, content={"reply": INVALID_MESSAGE_REPLY})
    if agent is None:
        return JSONResponse(status_code=500, content={"reply": INTERNAL_ERROR_REPLY})

    try:
        logger.info(
            "Incoming chat: session=%s message_len=%s history_turns=%s",
            req.session_id or "default",
            len(message),
            "server" if req.memory is None else len(req.memory),
        )
        history = None
        if req.memory is not None:
            history = [t.model_dump() for t in req.memory]
        result = await agent.reply(message, session_id=req.session_id, history=history)
        return JSONResponse(status_code=200, content={"reply": result.reply})
    except InputError:
        return JSONResponse(status_code=400, content={"reply": INVALID_MESSAGE_REPLY})
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return JSONResponse(status_code=500, content={"reply": INTERNAL_ERROR_REPLY})


@app.get("/")
@app.get("/health")
def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "uptime": round(time.time() - STARTED_AT, 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=int(settings.port))
