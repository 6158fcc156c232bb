import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from config import Config
from db import create_db_and_tables, engine
from models import MasterAdmin, Role, User
from routers import (
    admin,
    applications,
    auth,
    community_heads,
    csr,
    donation_requests,
    donations,
    flags,
    jobs,
    pages,
    placements,
    users,
    workers,
    workshops,
)
from workflow import TransitionError

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=Config.APP_NAME)


def ensure_super_admin(session: Session) -> None:
    """
    Create the bootstrap SUPER_ADMIN account when SUPER_ADMIN_PHONE and
    SUPER_ADMIN_PASSWORD are configured and the phone is not registered yet.
    """
    if not Config.SUPER_ADMIN_PHONE or not Config.SUPER_ADMIN_PASSWORD:
        return

    existing = session.exec(
        select(User).where(User.phone == Config.SUPER_ADMIN_PHONE)
    ).first()
    if existing:
        return

    user = User(
        role=Role.super_admin,
        name=Config.SUPER_ADMIN_NAME,
        phone=Config.SUPER_ADMIN_PHONE,
        password_hash=auth.hash_password(Config.SUPER_ADMIN_PASSWORD),
    )
    session.add(user)
    session.flush()
    session.add(MasterAdmin(user_id=user.id, can_create_admin=True))
    session.commit()
    logger.info("Created super admin user %s", user.id)


@app.on_event("startup")
def on_startup() -> None:
    create_db_and_tables()
    with Session(engine) as session:
        ensure_super_admin(session)


@app.exception_handler(TransitionError)
async def transition_error_handler(request: Request, exc: TransitionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(users.router, prefix="/api/users")
app.include_router(community_heads.router, prefix="/api/community-heads")
app.include_router(donations.router, prefix="/api/donations")
app.include_router(donation_requests.router, prefix="/api/donation-requests")
app.include_router(jobs.router, prefix="/api/jobs")
app.include_router(workers.router, prefix="/api/workers")
app.include_router(applications.router, prefix="/api/applications")
app.include_router(placements.router, prefix="/api/placements")
app.include_router(workshops.router, prefix="/api/workshops")
app.include_router(csr.router, prefix="/api/csr")
app.include_router(flags.router, prefix="/api/flags")
app.include_router(admin.router, prefix="/api")

app.include_router(pages.router)
