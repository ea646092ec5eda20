from decimal import Decimal

import pytest
from pydantic import ValidationError

from ..core.amounts import parse_amount
from ..core.config import Settings
from ..core.errors import InvalidAmountError
from ..core.policy import Role, charge_sender, coerce_role

MAX = 1_000_000


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1, 1),
        ("42", 42),
        ("  7 ", 7),
        ("+15", 15),
        (10.0, 10),
        (Decimal("300"), 300),
        (MAX, MAX),
    ],
)
def test_accepts_positive_integers(raw, expected) -> None:
    assert parse_amount(raw, MAX) == expected


@pytest.mark.parametrize(
    "raw",
    [
        0,
        -1,
        "-3",
        "0",
        "10.5",
        "1e3",
        "ten",
        "",
        "   ",
        None,
        True,
        10.25,
        float("inf"),
        float("nan"),
        Decimal("1.5"),
        Decimal("NaN"),
        [10],
        MAX + 1,
    ],
)
def test_rejects_everything_else(raw) -> None:
    with pytest.raises(InvalidAmountError):
        parse_amount(raw, MAX)


def test_standard_sender_is_debited_and_checked() -> None:
    charge = charge_sender(Role.STANDARD, 25)
    assert charge.debit == 25
    assert charge.require_funds is True
    assert not charge.skipped


def test_privileged_sender_is_neither_debited_nor_checked() -> None:
    charge = charge_sender("privileged", 25)
    assert charge.debit == 0
    assert charge.require_funds is False
    assert charge.skipped


@pytest.mark.parametrize("role", [None, "", "root", "PRIVILEGED"])
def test_unrecognised_roles_fall_back_to_standard(role) -> None:
    assert coerce_role(role) is Role.STANDARD


def test_max_transfer_amount_is_bounded_by_storage() -> None:
    with pytest.raises(ValidationError):
        Settings(max_transfer_amount=2**63)
