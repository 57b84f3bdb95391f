from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.orm import Session

from config import get_settings
from csv_utils import (
    all_time_export_filename,
    format_all_time_report,
    format_monthly_report,
    monthly_export_filename,
)
from delivery import DirectoryExportDelivery, ExportDelivery
from errors import InsufficientBalanceError
from models import (
    DEFAULT_ACCOUNT,
    UNCATEGORIZED,
    Account,
    Category,
    Transaction,
    TransactionType,
)
from periods import Month, current_month, local_today
from reporting import (
    AccountBalance,
    ArchiveMonth,
    CategoryTotal,
    MonthlySummary,
    TrendPoint,
)
from schemas import TransactionIn

logger = logging.getLogger(__name__)

_month_key = func.substr(Transaction.date, 1, 7)
_account_name = func.coalesce(Transaction.account, DEFAULT_ACCOUNT)
_is_income = Transaction.type == TransactionType.income
_is_expense = Transaction.type == TransactionType.expense


def _sum_where(condition):
    return func.coalesce(
        func.sum(case((condition, Transaction.amount_cents), else_=0)), 0
    )


_signed_total = func.coalesce(
    func.sum(
        case(
            (_is_income, Transaction.amount_cents),
            else_=-Transaction.amount_cents,
        )
    ),
    0,
)


class TransactionService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def has_any(self) -> bool:
        stmt = select(func.count(Transaction.id))
        return (self.session.execute(stmt).scalar_one() or 0) > 0

    def create(self, data: TransactionIn, *, check_balance: bool = True) -> Transaction:
        if check_balance and data.type == TransactionType.expense:
            balance = MetricsService(self.session).balance_for_account(data.account)
            if data.amount_cents > balance:
                logger.warning(
                    "transaction_rejected: account=%s amount_cents=%d balance_cents=%d",
                    data.account,
                    data.amount_cents,
                    balance,
                )
                raise InsufficientBalanceError(data.account, data.amount_cents, balance)

        txn = Transaction(
            date=data.date,
            description=data.description,
            amount_cents=data.amount_cents,
            type=data.type,
            account=data.account,
            category=data.category,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            "transaction_created: id=%d type=%s month=%s",
            txn.id,
            txn.type.value,
            Month.of(txn.date).key,
        )
        return txn

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn:
            raise ValueError("Transaction not found")
        return txn

    def list_for_month(self, month: Month) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(_month_key == month.key)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )
        return list(self.session.scalars(stmt).all())

    def list_all(self) -> list[Transaction]:
        stmt = select(Transaction).order_by(
            Transaction.date.desc(), Transaction.id.desc()
        )
        return list(self.session.scalars(stmt).all())

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        self.session.delete(txn)
        self.session.commit()
        logger.info("transaction_deleted: id=%d", transaction_id)

    def delete_month(self, month: Month) -> int:
        result = self.session.execute(
            delete(Transaction).where(_month_key == month.key)
        )
        self.session.commit()
        count = int(result.rowcount or 0)
        logger.info("transactions_deleted: month=%s count=%d", month.key, count)
        return count

    def delete_all(self) -> int:
        result = self.session.execute(delete(Transaction))
        self.session.commit()
        count = int(result.rowcount or 0)
        logger.info("transactions_deleted: month=all count=%d", count)
        return count


class ReferenceService:
    """Accounts and categories offered by the entry forms."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_accounts(self) -> list[Account]:
        return list(self.session.scalars(select(Account).order_by(Account.id)).all())

    def add_account(self, name: str) -> Account:
        existing = self.session.scalar(select(Account).where(Account.name == name))
        if existing:
            return existing
        account = Account(name=name)
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def list_categories(self) -> list[Category]:
        return list(
            self.session.scalars(select(Category).order_by(Category.name)).all()
        )

    def add_category(self, name: str) -> Category:
        existing = self.session.scalar(select(Category).where(Category.name == name))
        if existing:
            return existing
        category = Category(name=name)
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.session.get(Category, category_id)
        if not category:
            raise ValueError("Category not found")
        # Past transactions keep their category text.
        self.session.delete(category)
        self.session.commit()


class MetricsService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def monthly_summary(self, month: Month) -> MonthlySummary:
        stmt = select(
            _sum_where(_is_income).label("income"),
            _sum_where(_is_expense).label("expense"),
        ).where(_month_key == month.key)
        row = self.session.execute(stmt).one()
        return MonthlySummary(
            income_cents=int(row.income or 0), expense_cents=int(row.expense or 0)
        )

    def account_balances(self, month: Optional[Month] = None) -> list[AccountBalance]:
        """Per-account balances.

        ``balance_cents`` always covers all time; income and expense are limited
        to ``month`` when one is given. Accounts with nothing to show are left
        out, and an empty result becomes a single zero ``Cash`` row.
        """
        income_condition = _is_income
        expense_condition = _is_expense
        if month is not None:
            income_condition = and_(_is_income, _month_key == month.key)
            expense_condition = and_(_is_expense, _month_key == month.key)

        income = _sum_where(income_condition)
        expense = _sum_where(expense_condition)
        stmt = (
            select(
                _account_name.label("account"),
                _signed_total.label("balance"),
                income.label("income"),
                expense.label("expense"),
            )
            .group_by(_account_name)
            .having(or_(_signed_total != 0, income != 0, expense != 0))
            .order_by(_signed_total.desc(), _account_name.asc())
        )
        rows = [
            AccountBalance(
                account=row.account,
                balance_cents=int(row.balance or 0),
                income_cents=int(row.income or 0),
                expense_cents=int(row.expense or 0),
            )
            for row in self.session.execute(stmt)
        ]
        if not rows:
            return [AccountBalance(DEFAULT_ACCOUNT, 0, 0, 0)]
        return rows

    def balance_for_account(self, account: str) -> int:
        stmt = select(_signed_total).where(_account_name == account)
        return int(self.session.execute(stmt).scalar_one() or 0)

    def expenses_by_category(self, month: Month) -> list[CategoryTotal]:
        category_name = func.coalesce(Transaction.category, UNCATEGORIZED)
        total = func.sum(Transaction.amount_cents)
        stmt = (
            select(category_name.label("category"), total.label("total"))
            .where(_is_expense, _month_key == month.key)
            .group_by(category_name)
            .order_by(total.desc(), category_name.asc())
        )
        return [
            CategoryTotal(category=row.category, total_cents=int(row.total or 0))
            for row in self.session.execute(stmt)
        ]


class InsightsService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _monthly_totals(self, *conditions) -> list:
        stmt = (
            select(
                _month_key.label("month"),
                _sum_where(_is_income).label("income"),
                _sum_where(_is_expense).label("expense"),
            )
            .where(*conditions)
            .group_by(_month_key)
        )
        return list(self.session.execute(stmt).all())

    def trailing_months_trend(
        self, months: Optional[int] = None, *, today: Optional[date] = None
    ) -> list[TrendPoint]:
        """Income/expense per month over the trailing window, oldest first.

        Months without any transaction are omitted, so the result can be
        shorter than ``months``.
        """
        if months is None:
            months = get_settings().trend_months
        if months < 1:
            raise ValueError("Trend window must cover at least one month")
        end = current_month(today)
        start = end.shift(-(months - 1))
        rows = self._monthly_totals(_month_key >= start.key, _month_key <= end.key)
        rows.sort(key=lambda row: row.month)
        return [
            TrendPoint(
                month=row.month,
                label=Month.parse(row.month).label,
                income_cents=int(row.income or 0),
                expense_cents=int(row.expense or 0),
            )
            for row in rows
        ]

    def archive_history(self) -> list[ArchiveMonth]:
        rows = self._monthly_totals()
        rows.sort(key=lambda row: row.month, reverse=True)
        return [
            ArchiveMonth(
                month=row.month,
                income_cents=int(row.income or 0),
                expense_cents=int(row.expense or 0),
            )
            for row in rows
        ]


@dataclass(frozen=True)
class ExportFile:
    file_name: str
    content: str


class ExportService:
    def __init__(
        self, session: Session, delivery: Optional[ExportDelivery] = None
    ) -> None:
        self.session = session
        self.delivery = delivery or DirectoryExportDelivery(get_settings().export_dir)

    def monthly_export(self, month: Month) -> ExportFile:
        transactions = TransactionService(self.session).list_for_month(month)
        label = month.display_name
        content = format_monthly_report(transactions, label)
        logger.info("export_built: scope=%s rows=%d", month.key, len(transactions))
        return ExportFile(monthly_export_filename(label), content)

    def all_time_export(self, *, today: Optional[date] = None) -> ExportFile:
        transactions = TransactionService(self.session).list_all()
        content = format_all_time_report(transactions)
        logger.info("export_built: scope=all rows=%d", len(transactions))
        return ExportFile(all_time_export_filename(today or local_today()), content)

    def deliver(self, export_file: ExportFile) -> Path:
        return self.delivery.deliver(export_file.file_name, export_file.content)
