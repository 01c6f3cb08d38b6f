"""
Shared API dependencies
"""

import threading
from typing import Optional

from ..system import LedgerSystem

_ledger_system: Optional[LedgerSystem] = None
_ledger_system_lock = threading.Lock()


def get_ledger_system() -> LedgerSystem:
    """Return the process-wide ledger system, building it from configuration on first use"""
    global _ledger_system
    if _ledger_system is None:
        with _ledger_system_lock:
            if _ledger_system is None:
                _ledger_system = LedgerSystem()
    return _ledger_system
