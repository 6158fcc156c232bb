from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import select

import audit
from db import SessionDep
from models import CommunityHead, CsrTransaction, utcnow
from schemas import CsrCategory, CsrSummary, CsrTransactionCreate, CsrTransactionRead
from .auth import AdminDep, require_master_permission

router = APIRouter(tags=["csr"])

CATEGORIES = ("delivery", "skilling", "administration", "infrastructure", "other")


def require_csr_access(session: SessionDep, current: AdminDep) -> dict:
    require_master_permission(session, current["user"], "can_view_csr")
    return current


CsrAdminDep = Annotated[dict, Depends(require_csr_access)]


def summarize(transactions) -> dict:
    """Total spend per category plus the overall total."""
    summary = {category: 0.0 for category in CATEGORIES}
    summary["total"] = 0.0
    for transaction in transactions:
        amount = float(transaction.amount or 0)
        summary[transaction.category] = summary.get(transaction.category, 0.0) + amount
        summary["total"] += amount
    return summary


@router.get("/transactions", response_model=List[CsrTransactionRead])
def list_transactions(
    session: SessionDep,
    current: CsrAdminDep,
    category: Optional[CsrCategory] = None,
):
    query = select(CsrTransaction)
    if category is not None:
        query = query.where(CsrTransaction.category == category)
    return session.exec(
        query.order_by(CsrTransaction.transaction_date.desc(), CsrTransaction.id.desc())
    ).all()


@router.post("/transactions", response_model=CsrTransactionRead)
def create_transaction(transaction_in: CsrTransactionCreate, session: SessionDep, current: CsrAdminDep):
    admin = current["user"]

    if transaction_in.community_head_id is not None:
        if session.get(CommunityHead, transaction_in.community_head_id) is None:
            raise HTTPException(status_code=404, detail="Community head not found")

    transaction = CsrTransaction(
        community_head_id=transaction_in.community_head_id,
        approved_by=admin.id,
        category=transaction_in.category,
        amount=transaction_in.amount,
        description=transaction_in.description,
        transaction_date=transaction_in.transaction_date or utcnow().date(),
    )
    session.add(transaction)
    session.flush()

    audit.record(session, "csr_transaction_created", user_id=admin.id,
                 entity_type="csr_transaction", entity_id=transaction.id,
                 details={"category": transaction.category, "amount": transaction.amount})
    session.commit()
    session.refresh(transaction)
    return transaction


@router.get("/summary", response_model=CsrSummary)
def transaction_summary(session: SessionDep, current: CsrAdminDep):
    return summarize(session.exec(select(CsrTransaction)).all())
