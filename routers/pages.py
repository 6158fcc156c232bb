# routers/pages.py
from pathlib import Path
from typing import Iterable, Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from models import ADMIN_ROLES, Role
from .auth import DASHBOARDS, OptionalUserRoleDep

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _guard(current: Optional[dict], allowed: Iterable[Role]) -> Optional[RedirectResponse]:
    """
    Redirect anonymous visitors to /login and users of another role to
    /access-denied. Returns None when the page may be shown.
    """
    if current is None:
        return RedirectResponse(url="/login", status_code=303)
    if current["role"] not in allowed:
        return RedirectResponse(url="/access-denied", status_code=303)
    return None


def _render(request: Request, template: str, current: Optional[dict], **context):
    return templates.TemplateResponse(
        request,
        template,
        {
            "current_user": current["user"] if current else None,
            "current_role": current["role"] if current else None,
            **context,
        },
    )


def _dashboard(request: Request, current: Optional[dict], allowed, title: str):
    redirect = _guard(current, allowed)
    if redirect is not None:
        return redirect
    return _render(request, "dashboard.html", current, title=title)


@router.get("/", response_class=HTMLResponse)
def read_root(request: Request, current: OptionalUserRoleDep):
    if current:
        return RedirectResponse(url=DASHBOARDS[current["role"]], status_code=303)
    return _render(request, "index.html", None)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, current: OptionalUserRoleDep):
    if current:
        return RedirectResponse(url=DASHBOARDS[current["role"]], status_code=303)
    return _render(request, "login.html", None)


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request, current: OptionalUserRoleDep):
    if current:
        return RedirectResponse(url=DASHBOARDS[current["role"]], status_code=303)
    return _render(request, "register.html", None)


@router.get("/donor", response_class=HTMLResponse)
def donor_dashboard(request: Request, current: OptionalUserRoleDep):
    return _dashboard(request, current, (Role.donor,), "Donor dashboard")


@router.get("/business", response_class=HTMLResponse)
def business_dashboard(request: Request, current: OptionalUserRoleDep):
    return _dashboard(request, current, (Role.business,), "Business dashboard")


@router.get("/ch", response_class=HTMLResponse)
def community_head_dashboard(request: Request, current: OptionalUserRoleDep):
    return _dashboard(request, current, (Role.community_head,), "Community head dashboard")


@router.get("/admin", response_class=HTMLResponse)
def admin_dashboard(request: Request, current: OptionalUserRoleDep):
    return _dashboard(request, current, ADMIN_ROLES, "Admin dashboard")


@router.get("/access-denied", response_class=HTMLResponse)
def access_denied(request: Request, current: OptionalUserRoleDep):
    if current is None:
        return RedirectResponse(url="/login", status_code=303)
    response = _render(request, "access_denied.html", current)
    response.status_code = 403
    return response
