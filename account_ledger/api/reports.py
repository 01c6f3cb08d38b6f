"""
Statement endpoints
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from .dependencies import get_ledger_system
from ..system import LedgerSystem


router = APIRouter()


@router.get("")
def get_account_statement(
    start_date: datetime = Query(..., description="Period start (ISO 8601), inclusive"),
    end_date: datetime = Query(..., description="Period end (ISO 8601), inclusive"),
    customer_id: Optional[int] = None,
    account_number: Optional[str] = None,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Account statement for a customer or a single account"""
    if customer_id is None and not (account_number and account_number.strip()):
        raise HTTPException(
            status_code=400,
            detail="Either 'customer_id' or 'account_number' must be provided."
        )

    statement = system.statement_builder.build_statement(
        customer_id=customer_id,
        account_number=account_number.strip() if account_number else None,
        start_date=start_date,
        end_date=end_date
    )
    return statement.to_dict()
