"""
Budget ledger: what is left of the ceiling after the engineer's works.

Amounts are summed as Decimal so the figure quoted back to the user is
exactly the ceiling minus the committed costs.
"""
from decimal import Decimal

from adp_portal.exceptions import BudgetExceededError


def to_amount(value) -> Decimal:
    """Convert a cost (int, float, str, Decimal or None) to Decimal."""
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def committed(items) -> Decimal:
    """Sum of costs over work items."""
    return sum((to_amount(item.cost) for item in items), Decimal(0))


def remaining(ceiling, committed_items) -> Decimal:
    """max(0, ceiling - sum of committed costs)."""
    left = to_amount(ceiling) - committed(committed_items)
    return max(Decimal(0), left)


def remaining_for_cr(ceiling, committed_items, cr_number: str) -> Decimal:
    """Budget left for one CR.

    The CR may hold at most what the ceiling leaves after every other work,
    less what the CR itself already holds. Each cost is counted once.
    """
    committed_items = list(committed_items)
    others = [item for item in committed_items if item.cr_number != cr_number]
    held = committed(item for item in committed_items if item.cr_number == cr_number)
    return max(Decimal(0), remaining(ceiling, others) - held)


def can_accept(new_cost, available) -> bool:
    return to_amount(new_cost) <= to_amount(available)


def format_inr(amount) -> str:
    """Format with Indian digit grouping, e.g. 1234567 -> '12,34,567'."""
    value = to_amount(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    text = format(value.normalize(), "f") if value != value.to_integral() else str(int(value))
    whole, _, fraction = text.partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return sign + whole + ("." + fraction if fraction else "")


def check_cost(new_cost, available, for_cr: bool = False):
    """Raise BudgetExceededError when `new_cost` does not fit in `available`."""
    if can_accept(new_cost, available):
        return
    message = f"Amount exceeds remaining budget of ₹{format_inr(available)}"
    if for_cr:
        message += " for this CR"
    raise BudgetExceededError(message, remaining=to_amount(available))
