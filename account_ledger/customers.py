"""
Customer Directory Module

The ledger does not own customer identities. Account opening and statement
generation consult a CustomerDirectory to confirm a customer exists and to
read the name printed on statements. The HTTP implementation talks to the
customer service REST API with a plain timeout and no retries.
"""

import httpx
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .exceptions import CustomerNotFoundError, CustomerServiceUnavailableError

logger = logging.getLogger("ledger.customers")


@dataclass(frozen=True)
class Customer:
    """Customer data as seen by the ledger (not an entity of this service)"""
    customer_id: int
    name: str


class CustomerDirectory(ABC):
    """Lookup port for the external customer service"""

    @abstractmethod
    def find_customer_by_id(self, customer_id: int) -> Customer:
        """
        Find a customer by id.

        Raises:
            CustomerNotFoundError: If no such customer exists
            CustomerServiceUnavailableError: If the directory cannot be reached
        """
        pass

    def close(self) -> None:
        pass


class InMemoryCustomerDirectory(CustomerDirectory):
    """In-process directory used for tests and single-node deployments"""

    def __init__(self, customers: Optional[Iterable[Customer]] = None):
        self._customers: Dict[int, Customer] = {}
        for customer in customers or []:
            self._customers[customer.customer_id] = customer

    def register(self, customer_id: int, name: str) -> Customer:
        customer = Customer(customer_id=customer_id, name=name)
        self._customers[customer_id] = customer
        return customer

    def find_customer_by_id(self, customer_id: int) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(f"Customer not found for id: {customer_id}")
        return customer


class HttpCustomerDirectory(CustomerDirectory):
    """REST client for the customer service"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 2.0,
        api_key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_key = api_key
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def find_customer_by_id(self, customer_id: int) -> Customer:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = self._client.get(
                f"{self.base_url}/api/v1/customers/{customer_id}",
                headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Customer service connection failed: {e}")
            raise CustomerServiceUnavailableError(
                f"Customer service is unavailable: {e}"
            ) from e

        if response.status_code == 404:
            raise CustomerNotFoundError(f"Customer not found for id: {customer_id}")

        if response.status_code != 200:
            logger.warning(f"Customer service returned {response.status_code}: {response.text}")
            raise CustomerServiceUnavailableError(
                f"Customer service returned status {response.status_code}"
            )

        data = response.json()
        return Customer(
            customer_id=int(data.get("customerId", customer_id)),
            name=data.get("name", "")
        )

    def close(self) -> None:
        """Close the HTTP client"""
        self._client.close()
