from models import Transaction, TransactionType
from periods import Month
from reporting import AccountBalance, CategoryTotal, MonthlySummary
from services import MetricsService


def test_monthly_summary_splits_income_and_expense(session, add_txn) -> None:
    add_txn("2024-03-05", 50_000, "income", account="Cash")
    add_txn("2024-03-10", 20_000, "expense", account="Cash", category="Food")

    summary = MetricsService(session).monthly_summary(Month(2024, 3))

    assert summary == MonthlySummary(income_cents=50_000, expense_cents=20_000)
    assert summary.balance_cents == 30_000


def test_monthly_summary_ignores_other_months(session, add_txn) -> None:
    add_txn("2024-02-29", 1_000, "income")
    add_txn("2024-03-01", 2_500, "income")
    add_txn("2024-04-01", 700, "expense")

    summary = MetricsService(session).monthly_summary(Month(2024, 3))

    assert summary.as_dict() == {
        "income_cents": 2_500,
        "expense_cents": 0,
        "balance_cents": 2_500,
    }


def test_monthly_summary_for_empty_month_is_zero(session) -> None:
    summary = MetricsService(session).monthly_summary(Month(2030, 1))

    assert summary.as_dict() == {
        "income_cents": 0,
        "expense_cents": 0,
        "balance_cents": 0,
    }


def test_account_balances_all_time(session, add_txn) -> None:
    add_txn("2024-03-05", 50_000, "income", account="Cash")
    add_txn("2024-03-10", 20_000, "expense", account="Cash", category="Food")

    balances = MetricsService(session).account_balances(None)

    assert balances == [
        AccountBalance(
            account="Cash", balance_cents=30_000, income_cents=50_000, expense_cents=20_000
        )
    ]


def test_account_balances_month_only_scopes_flows(session, add_txn) -> None:
    add_txn("2024-01-15", 100_000, "income", account="ALAT")
    add_txn("2024-02-03", 10_000, "expense", account="ALAT")
    add_txn("2024-02-04", 5_000, "income", account="OPAY")

    balances = MetricsService(session).account_balances(Month(2024, 2))

    assert balances == [
        AccountBalance("ALAT", 90_000, 0, 10_000),
        AccountBalance("OPAY", 5_000, 5_000, 0),
    ]


def test_account_balances_keep_accounts_with_only_history(session, add_txn) -> None:
    add_txn("2023-12-01", 4_000, "income", account="OPAY")

    balances = MetricsService(session).account_balances(Month(2024, 6))

    assert balances == [AccountBalance("OPAY", 4_000, 0, 0)]


def test_account_balances_drop_rows_with_nothing_to_show(session, add_txn) -> None:
    add_txn("2023-11-01", 3_000, "income", account="OPAY")
    add_txn("2023-11-02", 3_000, "expense", account="OPAY")
    add_txn("2024-06-02", 1_000, "income", account="Cash")

    metrics = MetricsService(session)

    assert metrics.account_balances(Month(2024, 6)) == [
        AccountBalance("Cash", 1_000, 1_000, 0)
    ]
    # All-time flows are non-zero, so the account shows up again.
    assert AccountBalance("OPAY", 0, 3_000, 3_000) in metrics.account_balances(None)


def test_account_balances_ordered_by_balance_desc(session, add_txn) -> None:
    add_txn("2024-05-01", 1_000, "income", account="Cash")
    add_txn("2024-05-01", 9_000, "income", account="ALAT")
    add_txn("2024-05-02", 2_000, "expense", account="OPAY")

    accounts = [row.account for row in MetricsService(session).account_balances()]

    assert accounts == ["ALAT", "Cash", "OPAY"]


def test_account_balances_placeholder_when_empty(session) -> None:
    balances = MetricsService(session).account_balances(Month(2024, 1))

    assert balances == [AccountBalance("Cash", 0, 0, 0)]


def test_missing_account_counts_as_cash(session, add_txn) -> None:
    session.add(
        Transaction(
            date="2024-03-01",
            description="Legacy row",
            amount_cents=1_500,
            type=TransactionType.income,
            account=None,
            category=None,
        )
    )
    session.commit()
    add_txn("2024-03-02", 500, "expense", account="Cash")

    metrics = MetricsService(session)

    assert metrics.balance_for_account("Cash") == 1_000
    assert metrics.account_balances(None) == [AccountBalance("Cash", 1_000, 1_500, 500)]


def test_month_filter_never_changes_balance(session, add_txn) -> None:
    add_txn("2024-01-10", 7_000, "income", account="Cash")
    add_txn("2024-02-10", 3_000, "income", account="ALAT")
    add_txn("2024-02-11", 1_200, "expense", account="Cash")
    add_txn("2024-03-01", 800, "expense", account="ALAT")

    metrics = MetricsService(session)
    all_time = {row.account: row.balance_cents for row in metrics.account_balances()}
    february = {
        row.account: row.balance_cents
        for row in metrics.account_balances(Month(2024, 2))
    }

    assert all_time == february
    for account, balance in all_time.items():
        assert metrics.balance_for_account(account) == balance


def test_balance_for_unknown_account_is_zero(session, add_txn) -> None:
    add_txn("2024-01-10", 7_000, "income", account="Cash")

    assert MetricsService(session).balance_for_account("Piggy bank") == 0


def test_expenses_by_category(session, add_txn) -> None:
    add_txn("2024-03-01", 1_000, "expense", category="Transport")
    add_txn("2024-03-02", 4_000, "expense", category="Food")
    add_txn("2024-03-03", 500, "expense", category="Transport")
    add_txn("2024-03-04", 9_000, "income")
    add_txn("2024-04-01", 9_999, "expense", category="Food")

    breakdown = MetricsService(session).expenses_by_category(Month(2024, 3))

    assert breakdown == [
        CategoryTotal("Food", 4_000),
        CategoryTotal("Transport", 1_500),
    ]


def test_expenses_without_category_are_uncategorized(session) -> None:
    session.add(
        Transaction(
            date="2024-03-01",
            description="Old entry",
            amount_cents=250,
            type=TransactionType.expense,
            account="Cash",
            category=None,
        )
    )
    session.commit()

    breakdown = MetricsService(session).expenses_by_category(Month(2024, 3))

    assert breakdown == [CategoryTotal("Uncategorized", 250)]


def test_aggregations_are_deterministic(session, add_txn) -> None:
    add_txn("2024-03-01", 1_000, "income", account="ALAT")
    add_txn("2024-03-02", 1_000, "income", account="Cash")
    add_txn("2024-03-03", 300, "expense", category="Food")

    metrics = MetricsService(session)

    assert metrics.account_balances() == metrics.account_balances()
    assert metrics.monthly_summary(Month(2024, 3)) == metrics.monthly_summary(
        Month(2024, 3)
    )
    assert metrics.expenses_by_category(Month(2024, 3)) == metrics.expenses_by_category(
        Month(2024, 3)
    )
