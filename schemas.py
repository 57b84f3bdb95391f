import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models import TransactionType

# Names are written raw into CSV exports.
_FORBIDDEN_NAME_CHARS = (",", '"', "\n", "\r")


def _clean_name(value: str) -> str:
    value = value.strip()
    if any(ch in value for ch in _FORBIDDEN_NAME_CHARS):
        raise ValueError("Name must not contain commas, quotes or line breaks")
    return value


class TransactionIn(BaseModel):
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    description: str = Field(default="", max_length=200)
    amount_cents: int = Field(..., gt=0)
    type: TransactionType
    account: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = Field(default=None, max_length=100)

    @field_validator("date")
    @classmethod
    def _real_calendar_date(cls, value: str) -> str:
        dt.date.fromisoformat(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        return value.strip()

    @field_validator("account")
    @classmethod
    def _clean_account(cls, value: str) -> str:
        value = _clean_name(value)
        if not value:
            raise ValueError("Account is required")
        return value

    @field_validator("category")
    @classmethod
    def _clean_category(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _clean_name(value) or None

    @model_validator(mode="after")
    def _category_matches_type(self) -> "TransactionIn":
        if self.type == TransactionType.expense and not self.category:
            raise ValueError("Category is required for expenses")
        if self.type == TransactionType.income:
            self.category = None
        return self


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: str
    description: str
    amount_cents: int
    type: TransactionType
    account: Optional[str]
    category: Optional[str]


class AccountIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def _clean(cls, value: str) -> str:
        value = _clean_name(value)
        if not value:
            raise ValueError("Name is required")
        return value


class CategoryIn(AccountIn):
    pass


class NamedOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
