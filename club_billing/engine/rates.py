"""
Rate Resolver

Selects the wage rule that applies to a role on a date from a
time-versioned rate table.
"""

from datetime import date
from typing import Iterable, Union

from club_billing.engine.errors import RateNotFoundError
from club_billing.models.billing import RateRule, Role


def _role_value(role: Union[Role, str]) -> str:
    if isinstance(role, Role):
        return role.value
    return str(role).strip().lower()


def resolve_rate(
    role: Union[Role, str],
    on_date: date,
    rules: Iterable[RateRule],
) -> RateRule:
    """
    Find the rule with the latest effective_from not after `on_date`.

    Role matching is case-insensitive. If several rules share the winning
    effective_from, the one listed last wins, so appending a rule to the
    table is how a same-day rate change is recorded.

    Raises:
        RateNotFoundError: If no rule for the role is effective on that date.
                           Callers must not fall back to a zero rate.
    """
    wanted = _role_value(role)
    selected = None

    for rule in rules:
        if rule.role.value != wanted or rule.effective_from > on_date:
            continue
        if selected is None or rule.effective_from >= selected.effective_from:
            selected = rule

    if selected is None:
        raise RateNotFoundError(wanted, on_date)
    return selected
