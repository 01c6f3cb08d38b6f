"""
Movement endpoints
"""

from typing import List
from fastapi import APIRouter, HTTPException, Depends, Query, status

from .dependencies import get_ledger_system
from .schemas import MovementRequest, MovementResponse
from ..system import LedgerSystem


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MovementResponse)
def register_movement(
    request: MovementRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Register a credit (positive amount) or debit (negative amount)"""
    movement = system.movement_processor.register_movement(request.account_id, request.amount)
    return MovementResponse.from_movement(movement)


@router.get("/by-account", response_model=List[MovementResponse])
def list_account_movements(
    account_id: int = Query(...),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Movements of one account"""
    return [MovementResponse.from_movement(m)
            for m in system.movement_processor.list_account_movements(account_id)]


@router.get("/all", response_model=List[MovementResponse])
def list_movements(system: LedgerSystem = Depends(get_ledger_system)):
    """All movements in the system"""
    return [MovementResponse.from_movement(m) for m in system.movement_processor.list_movements()]


@router.get("/{movement_id}", response_model=MovementResponse)
def get_movement(
    movement_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    movement = system.movement_processor.get_movement(movement_id)
    if not movement:
        raise HTTPException(status_code=404, detail=f"Movement not found with ID: {movement_id}")
    return MovementResponse.from_movement(movement)


@router.post("/{movement_id}/reversal", status_code=status.HTTP_201_CREATED,
             response_model=MovementResponse)
def reverse_movement(
    movement_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Record a compensating movement of the opposite sign"""
    return MovementResponse.from_movement(system.movement_processor.reverse_movement(movement_id))


@router.delete("/{movement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movement(
    movement_id: int,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Delete a movement record; its ledger entry is kept"""
    system.movement_processor.delete_movement(movement_id)
