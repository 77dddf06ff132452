"""FastAPI routes for the card session of the calling browser.

Endpoints:
- GET  /oracle/state
- POST /oracle/draw
- POST /oracle/retry-image
- PUT  /oracle/edit-prompt
- POST /oracle/edit
- GET  /oracle/card-image
- GET  /oracle/share

Remote failures are part of the returned state (`error`), not HTTP errors.
HTTP errors are only used for actions the current state does not allow.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..models import EditPromptRequest, EditRequest, ShareResponse, StateView
from ..sessions import COOKIE_NAME, SessionRegistry
from ..share import SHARE_FILE_NAME, SHARE_TITLE, fallback_share_url, share_caption
from ..state import TarotSession, Viewing

log = logging.getLogger("oraculum.routes")
router = APIRouter(prefix="/oracle", tags=["oracle"])

BUSY_DETAIL = "Un tirage ou une modification est déjà en cours."
NO_IMAGE_DETAIL = "Aucune image à modifier."


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def current_session(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
) -> TarotSession:
    cookie = request.cookies.get(COOKIE_NAME)
    sid, session = registry.get_or_create(cookie)
    if sid != cookie:
        response.set_cookie(COOKIE_NAME, sid, httponly=True, samesite="lax")
    return session


@router.get("/state", response_model=StateView)
def get_state(session: TarotSession = Depends(current_session)) -> StateView:
    return session.snapshot()


@router.post("/draw", response_model=StateView)
async def draw(session: TarotSession = Depends(current_session)) -> StateView:
    """Draw a new card. Returns once the reading and image are in, or failed."""
    if not await session.request_draw():
        log.info("draw rejected: session busy (%s)", session.mode)
        raise HTTPException(status_code=409, detail=BUSY_DETAIL)
    return session.snapshot()


@router.post("/retry-image", response_model=StateView)
async def retry_image(session: TarotSession = Depends(current_session)) -> StateView:
    if session.busy:
        raise HTTPException(status_code=409, detail=BUSY_DETAIL)
    if not await session.retry_image():
        raise HTTPException(status_code=409, detail="Aucune carte à illustrer.")
    return session.snapshot()


@router.put("/edit-prompt", response_model=StateView)
def update_edit_prompt(req: EditPromptRequest, session: TarotSession = Depends(current_session)) -> StateView:
    if not session.set_edit_prompt(req.text):
        raise HTTPException(status_code=409, detail=NO_IMAGE_DETAIL)
    return session.snapshot()


@router.post("/edit", response_model=StateView)
async def edit(req: EditRequest, session: TarotSession = Depends(current_session)) -> StateView:
    if session.busy:
        raise HTTPException(status_code=409, detail=BUSY_DETAIL)
    if not isinstance(session.state, Viewing):
        raise HTTPException(status_code=409, detail=NO_IMAGE_DETAIL)
    if not await session.request_edit(req.prompt):
        raise HTTPException(status_code=400, detail="L'instruction de modification est vide.")
    return session.snapshot()


@router.get("/card-image")
def card_image(session: TarotSession = Depends(current_session)) -> Response:
    image = session.image
    if image is None:
        raise HTTPException(status_code=404, detail="Aucune image disponible.")
    return Response(content=image.data, media_type=image.mime_type)


@router.get("/share", response_model=ShareResponse)
def share(
    request: Request,
    page_url: Optional[str] = None,
    session: TarotSession = Depends(current_session),
) -> ShareResponse:
    reading, image = session.reading, session.image
    if reading is None or image is None:
        raise HTTPException(status_code=404, detail="Aucune carte à partager.")

    caption = share_caption(reading)
    return ShareResponse(
        title=SHARE_TITLE,
        text=caption,
        file_name=SHARE_FILE_NAME,
        image_url=str(request.url_for("card_image")),
        fallback_url=fallback_share_url(page_url or str(request.base_url), caption),
    )
