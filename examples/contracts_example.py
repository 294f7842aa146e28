"""
Example: Guarding an order service with Stipulate

Shows preconditions and postconditions on methods, named predicates looked
up on the instance, a shared predicate registry, async postconditions and
scoped configuration.
"""

import asyncio
from dataclasses import dataclass, field

from stipulate import (
    PostconditionFailure,
    PreconditionFailure,
    PredicateRegistry,
    PrintHook,
    after,
    before,
    explain,
    use_contracts,
)

# =============================================================================
# Shared predicates
# =============================================================================

checks = PredicateRegistry()


@checks.predicate
def non_empty(result):
    """Result must contain something."""
    return len(result) > 0


@checks.predicate(name="within_budget")
def _within_budget(self, total):
    return total <= self.budget


# =============================================================================
# Domain model
# =============================================================================


@dataclass
class Order:
    items: list[str]
    total: float = 0.0


@dataclass
class OrderService:
    budget: float
    stock: dict[str, int] = field(default_factory=dict)

    def in_stock(self, order):
        return all(self.stock.get(item, 0) > 0 for item in order.items)

    # 1. Named precondition, resolved on the instance
    @before(lambda order: order.items, "order has no items")
    @before("in_stock", "item out of stock")
    # 2. Registry postcondition that needs the instance
    @after("within_budget", "over budget", resolver=checks)
    def price(self, order):
        order.total = round(len(order.items) * 9.99, 2)
        return order.total

    # 3. Async postcondition, checked once the coroutine settles
    @after("non_empty", "no shipping quotes", resolver=checks)
    async def quotes(self, order):
        await asyncio.sleep(0)
        return [] if "oversized" in order.items else ["ground", "air"]


# =============================================================================
# Run examples
# =============================================================================

if __name__ == "__main__":
    service = OrderService(budget=30, stock={"widget": 3, "gadget": 1, "oversized": 1})

    print("=== Contracts ===\n")
    print(explain(OrderService.price))
    print(explain(OrderService.quotes))

    print("\n=== 1-2. Sync Contracts ===\n")
    with use_contracts(hooks=(PrintHook(show_args=False),)):
        for items in [["widget", "gadget"], [], ["unknown"], ["widget"] * 4]:
            try:
                total = service.price(Order(items=items))
                print(f"  {items!r:40s} -> ${total}")
            except (PreconditionFailure, PostconditionFailure) as error:
                print(f"  {items!r:40s} -> {type(error).__name__}: {error}")

    print("\n=== 3. Async Postcondition ===\n")

    async def main():
        for items in [["widget"], ["oversized"]]:
            try:
                print(f"  {items!r:20s} -> {await service.quotes(Order(items=items))}")
            except PostconditionFailure as error:
                print(f"  {items!r:20s} -> {type(error).__name__}: {error}")

    with use_contracts(hooks=()):
        asyncio.run(main())

    print("\n=== 4. Checks Disabled ===\n")
    with use_contracts(enabled=False):
        print(f"  empty order priced at ${service.price(Order(items=[]))}")
