"""
Ledger System Wiring

Builds the storage backend, stores and services from configuration.
"""

from typing import Optional

from .config import LedgerConfig, get_config
from .storage import StorageInterface, create_storage
from .customers import Customer, CustomerDirectory, HttpCustomerDirectory, InMemoryCustomerDirectory
from .accounts import AccountManager, AccountStore
from .movements import MovementStore
from .ledger import GeneralLedger, LedgerStore
from .transactions import MovementProcessor
from .reporting import StatementBuilder
from .logging_config import get_logger


class LedgerSystem:
    """Account ledger with all components initialized"""

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        storage: Optional[StorageInterface] = None,
        customer_directory: Optional[CustomerDirectory] = None
    ):
        self.config = config or get_config()
        self.logger = get_logger("ledger.system")

        self.storage = storage or create_storage(self.config.database_url, echo=self.config.database_echo)
        self.customer_directory = customer_directory or self._create_customer_directory()

        # Stores
        self.account_store = AccountStore(self.storage)
        self.movement_store = MovementStore(self.storage)
        self.ledger_store = LedgerStore(self.storage)

        # Services
        self.account_manager = AccountManager(self.account_store, self.customer_directory)
        self.movement_processor = MovementProcessor(
            self.account_store, self.movement_store, self.ledger_store,
            initiated_by=self.config.system_initiator,
            allow_deletion=self.config.allow_movement_deletion
        )
        self.general_ledger = GeneralLedger(self.ledger_store, self.account_store, self.movement_store)
        self.statement_builder = StatementBuilder(
            self.account_store, self.ledger_store, self.customer_directory
        )

    def _create_customer_directory(self) -> CustomerDirectory:
        """Use the customer service when a URL is configured"""
        if not self.config.customer_service_url:
            seeded = [Customer(customer_id=cid, name=name) for cid, name in self.config.customers.items()]
            if not seeded:
                self.logger.warning(
                    "No customer service URL and no LEDGER_CUSTOMERS configured; "
                    "account opening and statements will find no customers"
                )
            else:
                self.logger.info(f"Using in-process customer directory with {len(seeded)} customers")
            return InMemoryCustomerDirectory(seeded)

        return HttpCustomerDirectory(
            base_url=self.config.customer_service_url,
            timeout=self.config.customer_service_timeout,
            api_key=self.config.customer_service_api_key or None
        )

    def close(self) -> None:
        self.customer_directory.close()
        self.storage.close()
