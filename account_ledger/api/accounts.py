"""
Account management endpoints
"""

from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from .dependencies import get_ledger_system
from .schemas import (
    AccountResponse, ChainVerificationResponse, CreateAccountRequest, UpdateAccountRequest
)
from ..accounts import AccountType
from ..system import LedgerSystem


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AccountResponse)
def create_account(
    request: CreateAccountRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Create a new account for an existing customer"""
    account = system.account_manager.create_account(
        customer_id=request.customer_id,
        account_number=request.account_number,
        account_type=AccountType(request.account_type),
        initial_balance=request.initial_balance,
        active=request.active
    )
    return AccountResponse.from_account(account)


@router.get("/search", response_model=AccountResponse)
def find_account_by_number(
    account_number: str = Query(...),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Find an account by its number"""
    account = system.account_manager.get_account_by_number(account_number)
    if not account:
        raise HTTPException(status_code=404, detail=f"Account not found with number: {account_number}")
    return AccountResponse.from_account(account)


@router.get("", response_model=List[AccountResponse])
def list_accounts(
    customer_id: Optional[int] = None,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List all accounts, or the accounts of one customer"""
    if customer_id is not None:
        accounts = system.account_manager.list_customer_accounts(customer_id)
    else:
        accounts = system.account_manager.list_accounts()
    return [AccountResponse.from_account(a) for a in accounts]


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get account details"""
    account = system.account_manager.get_account(account_id)
    if not account:
        raise HTTPException(status_code=404, detail=f"Account not found with id: {account_id}")
    return AccountResponse.from_account(account)


@router.put("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: UpdateAccountRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Update account number, type or status; the balance only changes through movements"""
    account = system.account_manager.update_account(
        account_id,
        account_number=request.account_number,
        account_type=AccountType(request.account_type) if request.account_type else None,
        active=request.active
    )
    return AccountResponse.from_account(account)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Logically delete an account"""
    system.account_manager.deactivate_account(account_id)


@router.get("/{account_id}/verification", response_model=ChainVerificationResponse)
def verify_account(
    account_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Replay the account's ledger and report integrity problems"""
    if not system.account_manager.get_account(account_id):
        raise HTTPException(status_code=404, detail=f"Account not found with id: {account_id}")
    return ChainVerificationResponse.from_result(system.general_ledger.verify_account_chain(account_id))
