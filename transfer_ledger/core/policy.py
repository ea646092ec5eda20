"""Role-based charging rules for the sending side of a transfer.

The rules are data: each role maps to a ``ChargeRule`` and the ledger asks
``charge_sender`` what to do instead of branching on the role itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    STANDARD = "standard"
    PRIVILEGED = "privileged"


@dataclass(frozen=True)
class ChargeRule:
    debit_sender: bool
    require_funds: bool


@dataclass(frozen=True)
class SenderCharge:
    debit: int
    require_funds: bool

    @property
    def skipped(self) -> bool:
        return self.debit == 0


CHARGE_RULES: dict[Role, ChargeRule] = {
    Role.STANDARD: ChargeRule(debit_sender=True, require_funds=True),
    Role.PRIVILEGED: ChargeRule(debit_sender=False, require_funds=False),
}


def coerce_role(role: Role | str | None) -> Role:
    """Unknown or missing roles fall back to the least privileged one."""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return Role.STANDARD


def charge_sender(role: Role | str | None, amount: int) -> SenderCharge:
    rule = CHARGE_RULES[coerce_role(role)]
    return SenderCharge(
        debit=amount if rule.debit_sender else 0,
        require_funds=rule.require_funds,
    )
