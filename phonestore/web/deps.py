from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Header, HTTPException, Request
from fastapi.responses import JSONResponse

from phonestore.config import Settings
from phonestore.db.storage import Storage
from phonestore.services.admin_auth import AdminSessions


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_admin_sessions(request: Request) -> AdminSessions:
    return request.app.state.admin_sessions


def admin_token(
    x_admin_token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    if x_admin_token:
        return x_admin_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def require_admin(
    request: Request,
    x_admin_token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> str:
    token = admin_token(x_admin_token, authorization)
    if not get_admin_sessions(request).is_valid(token):
        raise HTTPException(status_code=401, detail="Admin authentication required")
    return token


def error_details(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg", "")}
        for e in errors
    ]


def validation_error(message: str, errors: List[Dict[str, Any]]) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message, "details": error_details(errors)})
