"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes. Amounts are stored as integer
numerator/denominator pairs and rebuilt as exact ``Money`` values.
"""

from fractions import Fraction
from typing import Optional

from ledgerkit.domain import entities as domain
from ledgerkit.domain.money import Money
from ledgerkit.database.models import (
    Account as ORMAccount,
    Commodity as ORMCommodity,
    Price as ORMPrice,
    Split as ORMSplit,
    Transaction as ORMTransaction,
)


def commodity_to_domain(orm_commodity: ORMCommodity) -> domain.Commodity:
    """Convert SQLAlchemy Commodity model to domain Commodity entity."""
    return domain.Commodity(
        uid=orm_commodity.uid,
        mnemonic=orm_commodity.mnemonic,
        fullname=orm_commodity.fullname,
        namespace=orm_commodity.namespace,
        smallest_fraction=orm_commodity.smallest_fraction,
        local_symbol=orm_commodity.local_symbol,
        cusip=orm_commodity.cusip,
    )


def price_to_domain(orm_price: ORMPrice) -> domain.Price:
    """Convert SQLAlchemy Price model to domain Price entity."""
    return domain.Price(
        uid=orm_price.uid,
        commodity_uid=orm_price.commodity_uid,
        currency_uid=orm_price.currency_uid,
        date=orm_price.date,
        source=orm_price.source,
        type=domain.PriceType(orm_price.type or domain.PriceType.UNKNOWN.value),
        value_num=orm_price.value_num,
        value_denom=orm_price.value_denom,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        uid=orm_account.uid,
        name=orm_account.name,
        full_name=orm_account.full_name,
        account_type=domain.AccountType(orm_account.account_type),
        commodity=commodity_to_domain(orm_account.commodity),
        parent_uid=orm_account.parent_uid,
        description=orm_account.description or "",
        placeholder=orm_account.placeholder,
        hidden=orm_account.hidden,
        favorite=orm_account.favorite,
        default_transfer_account_uid=orm_account.default_transfer_account_uid,
        note=orm_account.note,
        created_at=orm_account.created_at,
    )


def split_to_domain(
    orm_split: ORMSplit,
    transaction_commodity: Optional[domain.Commodity] = None,
    account_commodity: Optional[domain.Commodity] = None,
) -> domain.Split:
    """Convert SQLAlchemy Split model to domain Split entity.

    Commodities may be passed in when the caller already mapped them, which
    avoids re-mapping the same commodity for every split of a transaction.
    """
    if transaction_commodity is None:
        transaction_commodity = commodity_to_domain(orm_split.transaction.commodity)
    if account_commodity is None:
        account_commodity = commodity_to_domain(orm_split.account.commodity)
    return domain.Split(
        uid=orm_split.uid,
        transaction_uid=orm_split.transaction_uid,
        account_uid=orm_split.account_uid,
        type=domain.TransactionType(orm_split.type),
        memo=orm_split.memo,
        value=Money(Fraction(orm_split.value_num, orm_split.value_denom), transaction_commodity),
        quantity=Money(
            Fraction(orm_split.quantity_num, orm_split.quantity_denom), account_commodity
        ),
        reconcile_state=orm_split.reconcile_state,
        reconcile_date=orm_split.reconcile_date,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model (with its splits) to a domain entity."""
    commodity = commodity_to_domain(orm_transaction.commodity)
    account_commodities: dict[str, domain.Commodity] = {commodity.uid: commodity}
    splits = []
    for orm_split in orm_transaction.splits:
        orm_commodity = orm_split.account.commodity
        if orm_commodity.uid not in account_commodities:
            account_commodities[orm_commodity.uid] = commodity_to_domain(orm_commodity)
        splits.append(
            split_to_domain(orm_split, commodity, account_commodities[orm_commodity.uid])
        )
    return domain.Transaction(
        uid=orm_transaction.uid,
        description=orm_transaction.description,
        note=orm_transaction.note,
        timestamp=orm_transaction.timestamp,
        commodity=commodity,
        exported=orm_transaction.exported,
        template=orm_transaction.template,
        scheduled_action_uid=orm_transaction.scheduled_action_uid,
        created_at=orm_transaction.created_at,
        modified_at=orm_transaction.modified_at,
        splits=tuple(splits),
    )


def apply_split_amounts(orm_split: ORMSplit, split: domain.Split) -> None:
    """Copy a domain split's exact amounts onto an ORM row."""
    quantity = split.quantity if split.quantity is not None else split.value
    orm_split.value_num = split.value.numerator
    orm_split.value_denom = split.value.denominator
    orm_split.quantity_num = quantity.numerator
    orm_split.quantity_denom = quantity.denominator
