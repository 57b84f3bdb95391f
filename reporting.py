"""Result rows shared by the aggregation queries and the CSV reports.

All amounts are integer minor units (cents).
"""

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from models import TransactionType
from periods import month_key


class TransactionLike(Protocol):
    date: str
    description: str
    amount_cents: int
    type: TransactionType
    account: object
    category: object


@dataclass(frozen=True)
class MonthlySummary:
    income_cents: int = 0
    expense_cents: int = 0

    @property
    def balance_cents(self) -> int:
        return self.income_cents - self.expense_cents

    def as_dict(self) -> dict[str, int]:
        return {
            "income_cents": self.income_cents,
            "expense_cents": self.expense_cents,
            "balance_cents": self.balance_cents,
        }


@dataclass(frozen=True)
class AccountBalance:
    account: str
    balance_cents: int
    income_cents: int
    expense_cents: int


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total_cents: int


@dataclass(frozen=True)
class TrendPoint:
    month: str
    label: str
    income_cents: int
    expense_cents: int


@dataclass(frozen=True)
class ArchiveMonth:
    month: str
    income_cents: int
    expense_cents: int


def summarize(transactions: Iterable[TransactionLike]) -> MonthlySummary:
    income = 0
    expense = 0
    for txn in transactions:
        if txn.type == TransactionType.income:
            income += txn.amount_cents
        else:
            expense += txn.amount_cents
    return MonthlySummary(income_cents=income, expense_cents=expense)


def split_by_type(
    transactions: Iterable[TransactionLike],
) -> tuple[list[TransactionLike], list[TransactionLike]]:
    income: list[TransactionLike] = []
    expense: list[TransactionLike] = []
    for txn in transactions:
        (income if txn.type == TransactionType.income else expense).append(txn)
    return income, expense


def group_by_month(
    transactions: Sequence[TransactionLike], *, newest_first: bool = True
) -> list[tuple[str, list[TransactionLike]]]:
    """Bucket transactions by month key; rows keep their input order."""
    groups: dict[str, list[TransactionLike]] = {}
    for txn in transactions:
        groups.setdefault(month_key(txn.date), []).append(txn)
    return sorted(groups.items(), key=lambda item: item[0], reverse=newest_first)
