"""Browser pages: root redirect, login form and the gated stream page."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, RedirectResponse

from camrelay.api.dependency import CurrentUser
from camrelay.api.templates import render_login_page, render_stream_page

router = APIRouter(tags=["Pages"])


@router.get("/")
async def index() -> RedirectResponse:
    return RedirectResponse(url="/login")


@router.get("/login")
async def login_page() -> HTMLResponse:
    return HTMLResponse(render_login_page())


@router.get("/stream-page")
async def stream_page(user: CurrentUser) -> HTMLResponse:
    return HTMLResponse(render_stream_page(user.username))
