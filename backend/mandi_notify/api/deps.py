"""
Request dependencies: the caller's user id and the clients built at startup (see main.lifespan).
"""
from fastapi import Header, HTTPException, Query, Request

from mandi_notify.services.push import Dispatcher
from mandi_notify.services.translation import TranslationBackend


def current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    user_id: str | None = Query(None),
) -> str:
    uid = (x_user_id or user_id or "").strip()
    if not uid:
        raise HTTPException(status_code=400, detail="User id required (X-User-Id header or ?user_id=)")
    return uid


def get_dispatcher(request: Request) -> Dispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(status_code=503, detail="Push dispatcher not initialized")
    return dispatcher


def get_translation_backend(request: Request) -> TranslationBackend:
    backend = getattr(request.app.state, "translation_backend", None)
    if backend is None:
        raise HTTPException(status_code=503, detail="Translation backend not initialized")
    return backend
