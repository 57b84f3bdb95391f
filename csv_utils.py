import re
from datetime import date
from decimal import Decimal
from typing import Sequence

from errors import EmptyExportError
from periods import Month
from reporting import (
    MonthlySummary,
    TransactionLike,
    group_by_month,
    split_by_type,
    summarize,
)

CSV_COLUMNS = ["Date", "Description", "Amount", "Type", "Account", "Category"]
ALL_TIME_TITLE = "EXPENSE TRACKER - ALL TIME"


def format_amount(cents: int) -> str:
    return f"{Decimal(cents) / 100:.2f}"


def quote_field(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def transaction_row(txn: TransactionLike) -> str:
    """One CSV line; only the description is quoted."""
    return ",".join(
        [
            txn.date,
            quote_field(txn.description or ""),
            format_amount(txn.amount_cents),
            txn.type.value,
            txn.account or "",
            txn.category or "",
        ]
    )


def _summary_lines(summary: MonthlySummary, count: int) -> list[str]:
    return [
        f"Total Income,{format_amount(summary.income_cents)}",
        f"Total Expense,{format_amount(summary.expense_cents)}",
        f"Current Balance,{format_amount(summary.balance_cents)}",
        f"Transaction Count,{count}",
    ]


def _section(
    title: str, transactions: Sequence[TransactionLike], *, keep_empty_header: bool
) -> list[str]:
    lines = [title]
    if transactions or keep_empty_header:
        lines.append(",".join(CSV_COLUMNS))
        lines.extend(transaction_row(txn) for txn in transactions)
    return lines


def format_monthly_report(
    transactions: Sequence[TransactionLike], month_label: str
) -> str:
    if not transactions:
        raise EmptyExportError(month_label)

    income, expense = split_by_type(transactions)
    lines = [f"EXPENSE TRACKER - {month_label.upper()}", "", "SUMMARY"]
    lines.extend(_summary_lines(summarize(transactions), len(transactions)))
    lines.extend(["", "TRANSACTIONS", ""])
    lines.extend(_section("INCOME TRANSACTIONS", income, keep_empty_header=True))
    lines.append("")
    lines.extend(_section("EXPENSE TRANSACTIONS", expense, keep_empty_header=True))
    return "\n".join(lines) + "\n"


def format_all_time_report(transactions: Sequence[TransactionLike]) -> str:
    if not transactions:
        raise EmptyExportError("all time")

    lines = [ALL_TIME_TITLE, "", "OVERALL SUMMARY"]
    lines.extend(_summary_lines(summarize(transactions), len(transactions)))
    lines.append("")

    # Newest month first, same order as the archive history.
    for key, month_txns in group_by_month(transactions, newest_first=True):
        month = Month.parse(key)
        income, expense = split_by_type(month_txns)
        lines.extend([f"{month.name} ({month.year})".upper(), ""])
        lines.append("MONTHLY SUMMARY")
        lines.extend(_summary_lines(summarize(month_txns), len(month_txns)))
        lines.append("")
        lines.extend(_section("INCOME TRANSACTIONS", income, keep_empty_header=False))
        lines.append("")
        lines.extend(
            _section("EXPENSE TRANSACTIONS", expense, keep_empty_header=False)
        )
        lines.append("")
    return "\n".join(lines) + "\n"


def monthly_export_filename(month_label: str) -> str:
    slug = re.sub(r"\s+", "_", month_label.strip())
    return f"Expenses_{slug}.csv"


def all_time_export_filename(today: date) -> str:
    return f"Expenses_All_Time_{today.isoformat()}.csv"
