"""
Ledger query endpoints
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends

from .dependencies import get_ledger_system
from .schemas import LedgerEntryResponse
from ..system import LedgerSystem


router = APIRouter()


@router.get("/accounts/{account_id}", response_model=List[LedgerEntryResponse])
def get_account_ledger(
    account_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Audit trail of an account, optionally limited to a period"""
    if (start_date is None) != (end_date is None):
        raise HTTPException(status_code=400, detail="Provide both start_date and end_date, or neither")

    if start_date is not None:
        entries = system.general_ledger.get_account_ledger_by_date_range(account_id, start_date, end_date)
    else:
        entries = system.general_ledger.get_account_ledger(account_id)
    return [LedgerEntryResponse.from_entry(e) for e in entries]


@router.get("/accounts/{account_id}/count")
def get_account_ledger_entry_count(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    return {
        "account_id": account_id,
        "count": system.general_ledger.get_account_ledger_entry_count(account_id)
    }


@router.get("/movements/{movement_id}", response_model=List[LedgerEntryResponse])
def get_ledger_by_movement(
    movement_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    return [LedgerEntryResponse.from_entry(e)
            for e in system.general_ledger.get_ledger_by_movement(movement_id)]


@router.get("/orphans", response_model=List[LedgerEntryResponse])
def get_orphaned_entries(
    account_id: Optional[int] = None,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Ledger entries whose movement record has been deleted"""
    return [LedgerEntryResponse.from_entry(e)
            for e in system.general_ledger.find_orphaned_entries(account_id)]
