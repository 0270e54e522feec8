"""Ordering bounded context: order lifecycle and payment orchestration.

Owns the Order aggregate and its status state machine, the PurchaseGrant
records created alongside each order, and the maintenance tasks that expire
abandoned orders and purge old cancelled ones.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")
