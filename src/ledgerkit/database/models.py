"""SQLAlchemy models for ledgerkit database."""

from datetime import datetime, UTC
from typing import Any

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Boolean,
    UniqueConstraint,
    Index,
    TypeDecorator,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime stored as naive UTC.

    SQLite drops tzinfo, so values are normalized on the way in and tagged
    as UTC on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Preference(Base):
    """Book-level setting stored as a key/value pair."""

    __tablename__ = "preferences"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)


class Commodity(Base):
    """Currency or security model."""

    __tablename__ = "commodities"

    id = Column(Integer, primary_key=True)
    uid = Column(String(32), unique=True, nullable=False)
    namespace = Column(String, nullable=False)
    mnemonic = Column(String, nullable=False)
    fullname = Column(String, nullable=False)
    local_symbol = Column(String, nullable=True)
    cusip = Column(String, nullable=True)
    smallest_fraction = Column(Integer, nullable=False, default=100)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("namespace", "mnemonic", name="uq_commodity_namespace_mnemonic"),)


class Price(Base):
    """Exchange rate between two commodities."""

    __tablename__ = "prices"

    id = Column(Integer, primary_key=True)
    uid = Column(String(32), unique=True, nullable=False)
    commodity_uid = Column(String(32), ForeignKey("commodities.uid"), nullable=False)
    currency_uid = Column(String(32), ForeignKey("commodities.uid"), nullable=False)
    date = Column(UTCDateTime, nullable=False)
    source = Column(String, nullable=True)
    type = Column(String, nullable=True)
    value_num = Column(Integer, nullable=False)
    value_denom = Column(Integer, nullable=False)

    __table_args__ = (Index("ix_prices_pair_date", "commodity_uid", "currency_uid", "date"),)


class Account(Base):
    """Chart-of-accounts model with hierarchical structure."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    uid = Column(String(32), unique=True, nullable=False)
    name = Column(String, nullable=False)
    full_name = Column(String, nullable=False, index=True)
    account_type = Column(String, nullable=False)
    commodity_uid = Column(String(32), ForeignKey("commodities.uid"), nullable=False)
    parent_uid = Column(String(32), ForeignKey("accounts.uid"), nullable=True, index=True)
    description = Column(String, nullable=False, default="")
    placeholder = Column(Boolean, default=False, nullable=False)
    hidden = Column(Boolean, default=False, nullable=False)
    favorite = Column(Boolean, default=False, nullable=False)
    default_transfer_account_uid = Column(String(32), ForeignKey("accounts.uid"), nullable=True)
    note = Column(String, nullable=True)
    # All-time balance including subaccounts; NULL when stale
    balance_num = Column(Integer, nullable=True)
    balance_denom = Column(Integer, nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    modified_at = Column(UTCDateTime, default=_utcnow, nullable=False)

    # Relationships
    commodity = relationship("Commodity", lazy="joined")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    uid = Column(String(32), unique=True, nullable=False)
    description = Column(String, nullable=False, default="")
    note = Column(String, nullable=True)
    timestamp = Column(UTCDateTime, nullable=False, index=True)
    commodity_uid = Column(String(32), ForeignKey("commodities.uid"), nullable=False)
    exported = Column(Boolean, default=False, nullable=False)
    template = Column(Boolean, default=False, nullable=False)
    scheduled_action_uid = Column(String(32), nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    modified_at = Column(UTCDateTime, default=_utcnow, nullable=False, index=True)

    # Relationships
    commodity = relationship("Commodity", lazy="joined")
    splits = relationship(
        "Split",
        back_populates="transaction",
        order_by="Split.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Split(Base):
    """One leg of a transaction."""

    __tablename__ = "splits"

    id = Column(Integer, primary_key=True)
    uid = Column(String(32), unique=True, nullable=False)
    transaction_uid = Column(
        String(32), ForeignKey("transactions.uid", ondelete="CASCADE"), nullable=False, index=True
    )
    account_uid = Column(String(32), ForeignKey("accounts.uid"), nullable=False, index=True)
    type = Column(String, nullable=False)
    memo = Column(String, nullable=True)
    value_num = Column(Integer, nullable=False)
    value_denom = Column(Integer, nullable=False)
    quantity_num = Column(Integer, nullable=False)
    quantity_denom = Column(Integer, nullable=False)
    reconcile_state = Column(String(1), nullable=False, default="n")
    reconcile_date = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=_utcnow, nullable=False)
    modified_at = Column(UTCDateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="splits")
    account = relationship("Account")


def _configure_sqlite_connection(dbapi_conn: Any, connection_record: Any) -> None:
    """Enable foreign keys and WAL journaling for SQLite connections."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
