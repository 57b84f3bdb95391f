import os
import tempfile
from typing import Optional

os.environ.setdefault("EXPENSES_DATA_DIR", tempfile.mkdtemp(prefix="expenses-test-"))

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import models  # noqa: E402,F401
from database import Base  # noqa: E402
from models import TransactionType  # noqa: E402
from schemas import TransactionIn  # noqa: E402
from services import TransactionService  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def add_txn(session):
    """Insert a transaction without the balance check."""

    def _add(
        date: str,
        amount_cents: int,
        type: str = "expense",
        account: str = "Cash",
        category: Optional[str] = None,
        description: str = "",
    ):
        if type == TransactionType.expense.value and category is None:
            category = "General"
        return TransactionService(session).create(
            TransactionIn(
                date=date,
                description=description,
                amount_cents=amount_cents,
                type=type,
                account=account,
                category=category,
            ),
            check_balance=False,
        )

    return _add
