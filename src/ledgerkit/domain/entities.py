"""Domain model entities for ledgerkit.

These are pure data classes representing bookkeeping concepts, independent of
the database schema. Entities are immutable; edits produce new instances via
``dataclasses.replace``.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, UTC
from enum import Enum
from fractions import Fraction
from math import gcd
from typing import Optional

from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.money import Money

ACCOUNT_NAME_SEPARATOR = ":"
ROOT_ACCOUNT_NAME = "Root Account"
# Sorts before every real account name
ROOT_ACCOUNT_FULL_NAME = " "
IMBALANCE_ACCOUNT_PREFIX = "Imbalance-"
OPENING_BALANCE_ACCOUNT_PATH = "Equity:Opening Balances"

NAMESPACE_CURRENCY = "CURRENCY"

RECONCILE_NOT = "n"
RECONCILE_CLEARED = "c"
RECONCILE_YES = "y"
RECONCILE_STATES = (RECONCILE_NOT, RECONCILE_CLEARED, RECONCILE_YES)


def new_uid() -> str:
    """Generate a globally unique 32-character hex identifier."""
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TransactionType(str, Enum):
    """Side of the ledger a split posts to."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    def invert(self) -> "TransactionType":
        return TransactionType.CREDIT if self is TransactionType.DEBIT else TransactionType.DEBIT


class UpdateMethod(str, Enum):
    """How a save treats an existing row with the same uid."""

    INSERT = "insert"
    UPDATE = "update"
    REPLACE = "replace"


class AccountType(str, Enum):
    """Kinds of account in the chart of accounts."""

    CASH = "CASH"
    BANK = "BANK"
    CREDIT = "CREDIT"
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    PAYABLE = "PAYABLE"
    RECEIVABLE = "RECEIVABLE"
    EQUITY = "EQUITY"
    CURRENCY = "CURRENCY"
    STOCK = "STOCK"
    MUTUAL = "MUTUAL"
    TRADING = "TRADING"
    ROOT = "ROOT"

    @property
    def has_debit_normal_balance(self) -> bool:
        """True when debits increase the balance of this kind of account."""
        return self in _DEBIT_NORMAL_TYPES

    @property
    def compatible_parent_types(self) -> frozenset["AccountType"]:
        return _COMPATIBLE_PARENT_TYPES.get(self, frozenset()) | {AccountType.ROOT}

    def can_be_child_of(self, parent_type: "AccountType") -> bool:
        return parent_type in self.compatible_parent_types


_DEBIT_NORMAL_TYPES = frozenset(
    {
        AccountType.CASH,
        AccountType.BANK,
        AccountType.ASSET,
        AccountType.EXPENSE,
        AccountType.RECEIVABLE,
        AccountType.STOCK,
        AccountType.MUTUAL,
    }
)

_ASSET_LIABILITY_TYPES = frozenset(
    {
        AccountType.BANK,
        AccountType.CASH,
        AccountType.ASSET,
        AccountType.STOCK,
        AccountType.MUTUAL,
        AccountType.CURRENCY,
        AccountType.CREDIT,
        AccountType.LIABILITY,
        AccountType.RECEIVABLE,
        AccountType.PAYABLE,
    }
)
_INCOME_EXPENSE_TYPES = frozenset({AccountType.INCOME, AccountType.EXPENSE})

_COMPATIBLE_PARENT_TYPES = {
    **{t: _ASSET_LIABILITY_TYPES for t in _ASSET_LIABILITY_TYPES},
    **{t: _INCOME_EXPENSE_TYPES for t in _INCOME_EXPENSE_TYPES},
    AccountType.EQUITY: frozenset({AccountType.EQUITY}),
    AccountType.TRADING: frozenset({AccountType.TRADING}),
}


class PriceType(str, Enum):
    """Origin of a quoted price."""

    BID = "bid"
    ASK = "ask"
    LAST = "last"
    NAV = "nav"
    TRANSACTION = "transaction"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Commodity:
    """Currency or security that amounts are denominated in."""

    mnemonic: str
    fullname: str
    namespace: str = NAMESPACE_CURRENCY
    smallest_fraction: int = 100
    local_symbol: Optional[str] = None
    cusip: Optional[str] = None
    uid: str = field(default_factory=new_uid)

    def __post_init__(self):
        if self.smallest_fraction <= 0:
            raise ValidationError(f"Smallest fraction must be positive, got {self.smallest_fraction}")
        if self.namespace == "ISO4217":
            object.__setattr__(self, "namespace", NAMESPACE_CURRENCY)

    @property
    def smallest_fraction_digits(self) -> int:
        """Number of decimal places, e.g. 2 for a fraction of 100."""
        return len(str(self.smallest_fraction)) - 1

    @property
    def symbol(self) -> str:
        return self.local_symbol or self.mnemonic

    @property
    def is_currency(self) -> bool:
        return self.namespace == NAMESPACE_CURRENCY


@dataclass(frozen=True)
class Price:
    """Exchange rate of one commodity expressed in another.

    One unit of ``commodity_uid`` is worth ``value_num / value_denom`` units of
    ``currency_uid``. The pair is reduced by its greatest common divisor.
    """

    commodity_uid: str
    currency_uid: str
    value_num: int
    value_denom: int
    date: datetime = field(default_factory=_utcnow)
    source: str = "user"
    type: PriceType = PriceType.UNKNOWN
    uid: str = field(default_factory=new_uid)

    def __post_init__(self):
        divisor = gcd(self.value_num, self.value_denom)
        if divisor > 1:
            object.__setattr__(self, "value_num", self.value_num // divisor)
            object.__setattr__(self, "value_denom", self.value_denom // divisor)

    @property
    def is_valid(self) -> bool:
        return self.value_num > 0 and self.value_denom > 0

    @property
    def rate(self) -> Fraction:
        """Exact rate; only meaningful for valid prices."""
        if not self.is_valid:
            raise ValidationError(
                f"Price {self.uid} has a non-positive value {self.value_num}/{self.value_denom}"
            )
        return Fraction(self.value_num, self.value_denom)

    def inverse(self) -> "Price":
        """The same quote seen from the other commodity."""
        return replace(
            self,
            commodity_uid=self.currency_uid,
            currency_uid=self.commodity_uid,
            value_num=self.value_denom,
            value_denom=self.value_num,
        )


@dataclass(frozen=True)
class Account:
    """Node in the chart of accounts."""

    name: str
    account_type: AccountType
    commodity: Commodity
    uid: str = field(default_factory=new_uid)
    parent_uid: Optional[str] = None
    full_name: Optional[str] = None
    description: str = ""
    placeholder: bool = False
    hidden: bool = False
    favorite: bool = False
    default_transfer_account_uid: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("Account name cannot be empty")
        if ACCOUNT_NAME_SEPARATOR in name and self.account_type is not AccountType.ROOT:
            raise ValidationError(
                f"Account name '{name}' cannot contain '{ACCOUNT_NAME_SEPARATOR}'"
            )
        object.__setattr__(self, "name", name)

    @property
    def is_root(self) -> bool:
        return self.account_type is AccountType.ROOT


@dataclass(frozen=True)
class Split:
    """One leg of a transaction posting to a single account.

    ``value`` is in the transaction's commodity, ``quantity`` in the account's.
    Both are stored as non-negative magnitudes; ``type`` carries the sign.
    """

    value: Money
    account_uid: str
    type: TransactionType
    quantity: Optional[Money] = None
    memo: Optional[str] = None
    uid: str = field(default_factory=new_uid)
    transaction_uid: Optional[str] = None
    reconcile_state: str = RECONCILE_NOT
    reconcile_date: Optional[datetime] = None

    def __post_init__(self):
        if not self.account_uid:
            raise ValidationError("Split account uid cannot be empty")
        if self.reconcile_state not in RECONCILE_STATES:
            raise ValidationError(f"Unknown reconcile state '{self.reconcile_state}'")
        object.__setattr__(self, "value", abs(self.value))
        if self.quantity is not None:
            object.__setattr__(self, "quantity", abs(self.quantity))

    @property
    def signed_value(self) -> Money:
        """Value with debits positive and credits negative."""
        return self.value if self.type is TransactionType.DEBIT else -self.value

    @property
    def signed_quantity(self) -> Money:
        quantity = self.quantity if self.quantity is not None else self.value
        return quantity if self.type is TransactionType.DEBIT else -quantity

    @property
    def is_reconciled(self) -> bool:
        return self.reconcile_state == RECONCILE_YES

    def create_pair(self, account_uid: str) -> "Split":
        """Opposite leg with the same amounts, posted to another account."""
        return Split(
            value=self.value,
            account_uid=account_uid,
            type=self.type.invert(),
            quantity=self.quantity,
            memo=self.memo,
            transaction_uid=self.transaction_uid,
        )


@dataclass(frozen=True)
class Transaction:
    """Balanced set of splits recorded at one point in time."""

    description: str
    commodity: Commodity
    splits: tuple[Split, ...] = ()
    uid: str = field(default_factory=new_uid)
    note: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)
    exported: bool = False
    template: bool = False
    scheduled_action_uid: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "description", (self.description or "").strip())
        splits = tuple(
            s if s.transaction_uid == self.uid else replace(s, transaction_uid=self.uid)
            for s in self.splits
        )
        object.__setattr__(self, "splits", splits)

    def with_splits(self, splits) -> "Transaction":
        return replace(self, splits=tuple(splits))

    def splits_for(self, account_uid: str) -> list[Split]:
        return [s for s in self.splits if s.account_uid == account_uid]

    def imbalance(self) -> Money:
        """Signed sum of split values; zero for a balanced transaction."""
        total = Money.zero(self.commodity)
        for split in self.splits:
            total += split.signed_value
        return total

    def is_balanced(self) -> bool:
        return self.imbalance().is_zero()

    def create_auto_balance_split(self, account_uid: str) -> Optional[Split]:
        """Split that offsets the residual exactly, or None when balanced."""
        residual = self.imbalance()
        if residual.is_zero():
            return None
        split_type = TransactionType.CREDIT if residual.amount > 0 else TransactionType.DEBIT
        return Split(
            value=abs(residual),
            account_uid=account_uid,
            type=split_type,
            transaction_uid=self.uid,
        )
