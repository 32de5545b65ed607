# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession
from sqlalchemy.orm import sessionmaker

from inkwell.auth import session as sessions
from inkwell.auth.authenticator import USER_PASS, Authenticator, RedirectRequested
from inkwell.auth.seed import seed_users
from inkwell.config import configure_logging, get_settings, validate_runtime_config
from inkwell.db import get_db, init_db, make_engine, make_session_factory
from inkwell.forms import SignInForm, Submission, validate
from inkwell.models import Role
from inkwell.permissions import (
    current_user_optional,
    get_authenticator,
    has_role,
    load_session,
    safe_next,
    signin_url,
)
from inkwell.services.password_service import change_password
from inkwell.services.profile_service import get_profile, update_profile
from inkwell.services.results import Failure, FlowResult

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def _redirect(target: str, set_cookie: Optional[str] = None) -> RedirectResponse:
    resp = RedirectResponse(url=target, status_code=303)
    if set_cookie:
        resp.headers.append("set-cookie", set_cookie)
    return resp


def _render(request: Request, template_name: str, ctx: dict, status_code: int = 200):
    """TemplateResponse wrapper injecting the signed-in identity."""
    identity = current_user_optional(request)
    base_ctx = {
        "current_user": identity,
        "is_admin": has_role(identity, Role.ADMIN),
    }
    return templates.TemplateResponse(request, template_name, {**base_ctx, **(ctx or {})}, status_code=status_code)


def _form_reply(
    request: Request,
    template_name: str,
    submission: Submission,
    status_code: int,
    ctx: Optional[dict] = None,
    set_cookie: Optional[str] = None,
):
    if _wants_json(request):
        resp = JSONResponse(submission.reply(), status_code=status_code)
    else:
        reply = submission.reply()
        resp = _render(
            request,
            template_name,
            {"form": reply["initialValue"], "errors": reply["fieldErrors"], **(ctx or {})},
            status_code=status_code,
        )
    if set_cookie:
        resp.headers.append("set-cookie", set_cookie)
    return resp


def _flow_reply(request: Request, template_name: str, result: FlowResult, success_url: str, ctx: dict):
    if result.ok and not _wants_json(request):
        return _redirect(success_url, result.set_cookie)
    return _form_reply(
        request,
        template_name,
        result.submission,
        result.status_code,
        ctx=ctx,
        set_cookie=result.set_cookie,
    )


def create_app(
    session_factory: Optional[sessionmaker] = None,
    authenticator: Optional[Authenticator] = None,
) -> FastAPI:
    settings = get_settings()
    if session_factory is None:
        session_factory = make_session_factory(make_engine(settings.database_url))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        validate_runtime_config()
        init_db(session_factory.kw["bind"])
        if settings.seed_users_path:
            db = session_factory()
            try:
                seed_users(db, Path(settings.seed_users_path))
            finally:
                db.close()
        logger.info("Inkwell ready (%s)", settings.env)
        yield

    app = FastAPI(title="Inkwell", lifespan=lifespan)
    app.state.session_factory = session_factory
    app.state.authenticator = authenticator or Authenticator()

    @app.middleware("http")
    async def _session_middleware(request: Request, call_next):
        request.state.session = sessions.read(request)
        return await call_next(request)

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        if _wants_json(request):
            return JSONResponse({"status": "error", "message": "Unexpected error"}, status_code=500)
        return _render(request, "error.html", {"message": "Unexpected error, please try again."}, status_code=500)

    # ------------------ Routes ------------------

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request, auth: Authenticator = Depends(get_authenticator)):
        outcome = auth.is_authenticated(load_session(request), failure_redirect=signin_url(request))
        if isinstance(outcome, RedirectRequested):
            return _redirect(outcome.target)
        return _render(request, "index.html", {"identity": outcome.identity})

    @app.get("/signin", response_class=HTMLResponse)
    def signin_get(request: Request, next: str = "/", auth: Authenticator = Depends(get_authenticator)):
        outcome = auth.is_authenticated(load_session(request), success_redirect=safe_next(next))
        if isinstance(outcome, RedirectRequested):
            return _redirect(outcome.target)
        return _render(request, "signin.html", {"next": safe_next(next), "form": {}, "errors": {}})

    @app.post("/signin")
    async def signin_post(
        request: Request,
        db: DbSession = Depends(get_db),
        auth: Authenticator = Depends(get_authenticator),
    ):
        data = await request.form()
        next_url = safe_next(data.get("next"))
        submission = validate(SignInForm, {k: v for k, v in data.items() if k in ("email", "password")})
        ctx = {"next": next_url}
        if not submission.ok:
            return _form_reply(request, "signin.html", submission, 400, ctx=ctx)

        form = submission.value
        result = auth.authenticate(
            USER_PASS,
            db,
            {"email": form.email, "password": form.password},
            load_session(request),
        )
        if not result.ok:
            return _form_reply(request, "signin.html", submission.with_errors({"email": [result.error]}), 401, ctx=ctx)
        if _wants_json(request):
            return _form_reply(request, "signin.html", submission, 200, set_cookie=result.set_cookie)
        return _redirect(next_url, result.set_cookie)

    @app.post("/signout")
    def signout(request: Request, auth: Authenticator = Depends(get_authenticator)):
        outcome = auth.logout(load_session(request))
        return _redirect(outcome.target, outcome.set_cookie)

    @app.get("/{user_id}/profile", response_class=HTMLResponse)
    def profile_get(request: Request, user_id: str, saved: bool = False, db: DbSession = Depends(get_db)):
        profile = get_profile(db, user_id)
        if profile is None:
            return _render(request, "error.html", {"message": "Profile not found."}, status_code=404)
        return _render(
            request,
            "profile.html",
            {"profile": profile, "form": profile.as_form(), "errors": {}, "saved": saved},
        )

    @app.post("/{user_id}/profile")
    async def profile_post(request: Request, user_id: str, db: DbSession = Depends(get_db)):
        data = await request.form()
        result = update_profile(
            db,
            session=load_session(request),
            user_id=user_id,
            data={k: v for k, v in data.items() if k in ("name", "email", "image", "bio")},
        )
        ctx = {"profile": None, "saved": False}
        # Only a signed-in owner gets the stored profile back with their errors.
        refused = result.failure in (Failure.AUTHENTICATION, Failure.AUTHORIZATION)
        if not result.ok and not refused and not _wants_json(request):
            ctx["profile"] = get_profile(db, user_id)
        return _flow_reply(request, "profile.html", result, f"/{user_id}/profile?saved=1", ctx=ctx)

    @app.get("/{user_id}/password_change", response_class=HTMLResponse)
    def password_change_get(
        request: Request,
        user_id: str,
        saved: bool = False,
        auth: Authenticator = Depends(get_authenticator),
    ):
        outcome = auth.is_authenticated(load_session(request), failure_redirect=signin_url(request))
        if isinstance(outcome, RedirectRequested):
            return _redirect(outcome.target)
        return _render(
            request,
            "password_change.html",
            {"user_id": user_id, "form": {}, "errors": {}, "saved": saved},
        )

    @app.post("/{user_id}/password_change")
    async def password_change_post(request: Request, user_id: str, db: DbSession = Depends(get_db)):
        data = await request.form()
        result = change_password(
            db,
            identity=load_session(request).identity,
            user_id=user_id,
            data={
                k: v
                for k, v in data.items()
                if k in ("currentPassword", "newPassword", "confirmNewPassword")
            },
        )
        return _flow_reply(
            request,
            "password_change.html",
            result,
            f"/{user_id}/password_change?saved=1",
            ctx={"user_id": user_id, "saved": False},
        )

    return app


app = create_app()
