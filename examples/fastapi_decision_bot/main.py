from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from decision_router import (
    Match,
    Router,
    best,
    default,
    first,
    if_match,
    if_true,
    match_regex,
    run_route,
)


logger = logging.getLogger(__name__)


@dataclass
class Turn:
    """One incoming message plus the replies produced while handling it."""

    text: str
    session_id: UUID
    replies: list[str] = field(default_factory=list)

    def send(self, reply: str) -> None:
        self.replies.append(reply)


def turn_text(turn: Turn) -> str:
    return turn.text


def guess_song(turn: Turn):
    # A toy scorer; a real app would call an NLU service here.
    if "wheel" in turn.text.lower():
        return Match(value="Wagon Wheel", score=0.9)
    if "sing" in turn.text.lower():
        return Match(value="Happy Birthday", score=0.5)
    return None


def guess_place(turn: Turn):
    if " in " in turn.text.lower():
        return {"value": turn.text.split(" in ", 1)[1].strip(), "score": 0.8}
    return None


def build_router(turn: Turn) -> Router:
    introduce = match_regex(
        re.compile(r"my name is (.*)", re.I),
        lambda m: turn.send(f"Nice to meet you, {m.group(1)}"),
        text=turn_text,
    )
    song = if_match(guess_song, lambda title: turn.send(f"Now singing {title}"))
    place = if_match(guess_place, lambda where: turn.send(f"Looking around {where}"))
    farewell = if_true(
        lambda t: t.text.strip().lower() in {"bye", "goodbye", "farewell"},
        lambda t: turn.send("Goodbye"),
    )

    return default(
        first(
            introduce,
            farewell,
            best(song, place),
        ),
        lambda reason: lambda t: turn.send(f"I don't understand \"{t.text}\""),
    ).before(lambda t: logger.info("session %s: %r", t.session_id, t.text))


class CreateSessionResponse(BaseModel):
    id: UUID


class MessageRequest(BaseModel):
    content: str


class MessageResponse(BaseModel):
    session_id: UUID
    routed: bool
    replies: list[str]


app = FastAPI(title="decision-router: chat example")


# In-memory sessions (demo only)
SESSIONS: set[UUID] = set()


@app.post("/sessions", response_model=CreateSessionResponse)
def create_session() -> CreateSessionResponse:
    sid = uuid4()
    SESSIONS.add(sid)
    return CreateSessionResponse(id=sid)


@app.post("/sessions/{session_id}/messages", response_model=MessageResponse)
async def send_message(session_id: UUID, req: MessageRequest) -> MessageResponse:
    if session_id not in SESSIONS:
        raise HTTPException(status_code=404, detail="Session not found")

    turn = Turn(text=req.content, session_id=session_id)
    routed = await run_route(turn, build_router(turn))
    return MessageResponse(session_id=session_id, routed=routed, replies=turn.replies)
