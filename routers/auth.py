import logging
from pathlib import Path
from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from itsdangerous import BadSignature, URLSafeTimedSerializer
from passlib.context import CryptContext
from pydantic import ValidationError
from sqlmodel import Session, select

import audit
from config import Config
from db import SessionDep
from models import ADMIN_ROLES, CommunityHead, CommunityHeadStatus, MasterAdmin, Role, User
from schemas import LoginData, UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

serializer = URLSafeTimedSerializer(Config.SECRET_KEY)

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)

DASHBOARDS = {
    Role.donor: "/donor",
    Role.business: "/business",
    Role.community_head: "/ch",
    Role.main_admin: "/admin",
    Role.master_admin: "/admin",
    Role.super_admin: "/admin",
}


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_session_token(user_id: int) -> str:
    """
    Store the user id in a signed token. The role is read from the
    database on every request so promotions apply immediately.
    """
    return serializer.dumps({"user_id": user_id})


def verify_session_token(token: str, max_age_seconds: int = Config.SESSION_MAX_AGE):
    """
    Returns {'user_id': ...} if valid, or None if the token is
    invalid/expired.
    """
    try:
        return serializer.loads(token, max_age=max_age_seconds)
    except BadSignature:
        return None


def set_session_cookie(response, user_id: int) -> None:
    response.set_cookie(
        key=Config.SESSION_COOKIE,
        value=create_session_token(user_id),
        httponly=True,
        secure=Config.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=Config.SESSION_MAX_AGE,
    )


def _load_user(session: Session, session_token: Optional[str]) -> Optional[User]:
    if session_token is None:
        return None
    data = verify_session_token(session_token)
    if not data:
        return None
    return session.get(User, data["user_id"])


def get_current_user_and_role(
    session: SessionDep,
    session_token: Optional[str] = Cookie(default=None, alias=Config.SESSION_COOKIE),
) -> dict:
    """
    Reads the session cookie, verifies the token, looks up the user and
    returns {"user": User, "role": Role}. Raises 401 if not logged in.
    """
    if session_token is None:
        raise HTTPException(status_code=401, detail="Not logged in")

    user = _load_user(session, session_token)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return {"user": user, "role": user.role}


CurrentUserRoleDep = Annotated[dict, Depends(get_current_user_and_role)]


def get_optional_user_and_role(
    session: SessionDep,
    session_token: Optional[str] = Cookie(default=None, alias=Config.SESSION_COOKIE),
) -> Optional[dict]:
    """
    Like get_current_user_and_role, but returns None instead of raising
    401. Used by pages that redirect anonymous visitors.
    """
    user = _load_user(session, session_token)
    if user is None:
        return None
    return {"user": user, "role": user.role}


OptionalUserRoleDep = Annotated[Optional[dict], Depends(get_optional_user_and_role)]


def require_admin(current: CurrentUserRoleDep) -> dict:
    if current["role"] not in ADMIN_ROLES:
        logger.warning("User %s refused admin action", current["user"].id)
        raise HTTPException(status_code=403, detail="Only admins can perform this action")
    return current


AdminDep = Annotated[dict, Depends(require_admin)]


def require_master_permission(session: Session, user: User, permission: str) -> None:
    """
    MASTER_ADMIN accounts act within the flags of their MasterAdmin row
    (can_create_ch, can_remove_ch, can_view_csr). MAIN_ADMIN and
    SUPER_ADMIN are not limited by them.
    """
    if user.role != Role.master_admin:
        return
    master = session.exec(
        select(MasterAdmin).where(MasterAdmin.user_id == user.id)
    ).first()
    if master is None or not master.is_active or not getattr(master, permission):
        logger.warning("Master admin %s lacks %s", user.id, permission)
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action")


def get_community_head(session: Session, user: User) -> Optional[CommunityHead]:
    return session.exec(
        select(CommunityHead).where(CommunityHead.user_id == user.id)
    ).first()


def require_community_head(
    session: Session,
    user: User,
    detail: str = "Community head profile not found",
    status_code: int = 404,
) -> CommunityHead:
    ch = get_community_head(session, user)
    if ch is None:
        raise HTTPException(status_code=status_code, detail=detail)
    return ch


def require_active_community_head(session: Session, user: User, detail: str) -> CommunityHead:
    ch = require_community_head(session, user, detail=detail, status_code=403)
    if ch.status != CommunityHeadStatus.active:
        raise HTTPException(
            status_code=403,
            detail="Community head account is not active",
        )
    return ch


def _wants_json(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("application/json")


def _is_form(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data"))


async def _read_payload(request: Request, fields) -> dict:
    if _wants_json(request):
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Request body must be a JSON object")
        return payload
    form = await request.form()
    payload = {}
    for name in fields:
        raw = form.get(name)
        if isinstance(raw, str) and raw:
            payload[name] = raw
    return payload


def _form_error(request: Request, template: str, detail: str, status_code: int):
    return templates.TemplateResponse(
        request,
        template,
        {"current_user": None, "current_role": None, "error": detail},
        status_code=status_code,
    )


@router.post("/register")
async def register(request: Request, session: SessionDep):
    """
    Register a new user with a hashed password and log them in.
    Accepts either JSON (API) or form-data (from the HTML form).
    """
    payload = await _read_payload(
        request, ("name", "phone", "email", "password", "role", "locality")
    )
    try:
        user_in = UserCreate(**payload)
    except ValidationError as exc:
        if _wants_json(request):
            raise HTTPException(status_code=400, detail=exc.errors()[0]["msg"])
        return _form_error(request, "register.html", "Please check the form fields", 400)

    existing = session.exec(
        select(User).where(User.phone == user_in.phone)
    ).first()
    if existing:
        if _wants_json(request):
            raise HTTPException(status_code=400, detail="Phone number already registered")
        return _form_error(request, "register.html", "Phone number already registered", 400)

    user = User(
        role=Role(user_in.role),
        name=user_in.name,
        phone=user_in.phone,
        email=user_in.email,
        password_hash=hash_password(user_in.password),
    )
    session.add(user)
    session.flush()

    if user.id is None:
        raise HTTPException(status_code=500, detail="User was not created successfully")

    audit.record(session, "user_register", user_id=user.id,
                 entity_type="user", entity_id=user.id,
                 details={"role": user.role.value})

    if user.role == Role.community_head and user_in.locality:
        ch = CommunityHead(user_id=user.id, locality=user_in.locality)
        session.add(ch)
        session.flush()
        audit.record(session, "ch_created", user_id=user.id,
                     entity_type="community_head", entity_id=ch.id,
                     description=f"Community Head {user.name} was created")
    session.commit()
    logger.info("Registered user %s as %s", user.id, user.role.value)

    if _wants_json(request):
        resp = JSONResponse(UserRead.model_validate(user).model_dump(mode="json", by_alias=True))
    else:
        resp = RedirectResponse(url=DASHBOARDS[user.role], status_code=303)
    set_session_cookie(resp, user.id)
    return resp


@router.post("/login")
async def login(request: Request, session: SessionDep):
    """
    Log in with phone + password and set the signed session cookie.
    Accepts either JSON (API) or form-data (from the HTML form).
    """
    payload = await _read_payload(request, ("phone", "password"))
    try:
        data = LoginData(**payload)
    except ValidationError:
        if _wants_json(request):
            raise HTTPException(status_code=400, detail="All fields are required")
        return _form_error(request, "login.html", "All fields are required", 400)

    user = session.exec(select(User).where(User.phone == data.phone)).first()
    if user is None or not verify_password(data.password, user.password_hash):
        logger.warning("Failed login for phone %s", data.phone)
        if _wants_json(request):
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return _form_error(request, "login.html", "Invalid credentials", 401)

    audit.record(session, "user_login", user_id=user.id,
                 entity_type="user", entity_id=user.id)
    session.commit()

    if _wants_json(request):
        resp = JSONResponse(UserRead.model_validate(user).model_dump(mode="json", by_alias=True))
    else:
        resp = RedirectResponse(url=DASHBOARDS[user.role], status_code=303)
    set_session_cookie(resp, user.id)
    return resp


@router.post("/logout")
def logout(request: Request, session: SessionDep, current: OptionalUserRoleDep):
    """
    Clear the session cookie. The HTML form is sent back to the home page,
    API callers get a JSON message.
    """
    if current:
        user = current["user"]
        audit.record(session, "user_logout", user_id=user.id,
                     entity_type="user", entity_id=user.id)
        session.commit()

    if _is_form(request):
        response = RedirectResponse(url="/", status_code=303)
    else:
        response = JSONResponse({"message": "Logged out"})
    response.delete_cookie(Config.SESSION_COOKIE)
    return response


@router.get("/me", response_model=UserRead)
def read_me(current: CurrentUserRoleDep):
    """
    Get the currently logged-in user.
    """
    return current["user"]
