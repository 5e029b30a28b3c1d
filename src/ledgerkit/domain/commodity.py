"""Commodity registry domain service."""

import locale
import logging
import threading
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Commodity, NAMESPACE_CURRENCY
from ledgerkit.domain.errors import NotFoundError, ValidationError, commodity_not_found
from ledgerkit.domain.preferences import DEFAULT_CURRENCY_KEY

logger = logging.getLogger(__name__)

FALLBACK_CURRENCY_CODE = "USD"

# (code, name, smallest fraction, symbol)
ISO_CURRENCIES = [
    ("AUD", "Australian Dollar", 100, "A$"),
    ("BRL", "Brazilian Real", 100, "R$"),
    ("CAD", "Canadian Dollar", 100, "C$"),
    ("CHF", "Swiss Franc", 100, "CHF"),
    ("CNY", "Yuan Renminbi", 100, "¥"),
    ("CZK", "Czech Koruna", 100, "Kč"),
    ("DKK", "Danish Krone", 100, "kr"),
    ("EUR", "Euro", 100, "€"),
    ("GBP", "Pound Sterling", 100, "£"),
    ("HKD", "Hong Kong Dollar", 100, "HK$"),
    ("HUF", "Forint", 100, "Ft"),
    ("INR", "Indian Rupee", 100, "₹"),
    ("JPY", "Yen", 1, "¥"),
    ("KRW", "Won", 1, "₩"),
    ("KWD", "Kuwaiti Dinar", 1000, "KD"),
    ("MXN", "Mexican Peso", 100, "$"),
    ("NOK", "Norwegian Krone", 100, "kr"),
    ("NZD", "New Zealand Dollar", 100, "NZ$"),
    ("PLN", "Zloty", 100, "zł"),
    ("SEK", "Swedish Krona", 100, "kr"),
    ("SGD", "Singapore Dollar", 100, "S$"),
    ("USD", "US Dollar", 100, "$"),
    ("ZAR", "Rand", 100, "R"),
]


def _locale_currency_code() -> Optional[str]:
    """Currency code of the process's monetary locale, if one is set."""
    code = locale.localeconv().get("int_curr_symbol", "") or ""
    code = code.strip().upper()
    return code or None


class CommodityService:
    """Registry of currencies and securities.

    Known ISO 4217 currencies are registered on first use of a database.
    Lookups are cached per instance and the cache is dropped whenever the
    database commits.
    """

    def __init__(self, db: Database):
        """Initialize commodity registry.

        Args:
            db: Database instance
        """
        self.db = db
        self._lock = threading.Lock()
        self._by_code: dict[str, Commodity] = {}
        self._by_uid: dict[str, Commodity] = {}
        self._ensure_currencies()
        db.add_invalidation_listener(self.clear_cache)

    def close(self) -> None:
        """Detach from the database's invalidation notifications."""
        self.db.remove_invalidation_listener(self.clear_cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._by_code.clear()
            self._by_uid.clear()

    def _ensure_currencies(self) -> None:
        known = {c.mnemonic for c in self.db.list_commodities(NAMESPACE_CURRENCY)}
        missing = [entry for entry in ISO_CURRENCIES if entry[0] not in known]
        if not missing:
            return
        with self.db.unit_of_work():
            for code, name, fraction, symbol in missing:
                self.db.save_commodity(
                    Commodity(
                        mnemonic=code,
                        fullname=name,
                        namespace=NAMESPACE_CURRENCY,
                        smallest_fraction=fraction,
                        local_symbol=symbol,
                    )
                )
        logger.info("Registered %d currencies", len(missing))

    def _remember(self, commodity: Commodity) -> Commodity:
        with self._lock:
            if commodity.is_currency:
                self._by_code[commodity.mnemonic] = commodity
            self._by_uid[commodity.uid] = commodity
        return commodity

    def resolve(self, code: Optional[str]) -> Optional[Commodity]:
        """Look up a currency by its ISO code.

        Args:
            code: Currency code such as "USD" (case-insensitive)

        Returns:
            Commodity, or None if the code is unknown
        """
        code = (code or "").strip().upper()
        if not code:
            return None
        with self._lock:
            cached = self._by_code.get(code)
        if cached is not None:
            return cached
        commodity = self.db.get_commodity_by_mnemonic(code, NAMESPACE_CURRENCY)
        return self._remember(commodity) if commodity is not None else None

    def require(self, code: str) -> Commodity:
        """Like resolve, but raises NotFoundError for unknown codes."""
        commodity = self.resolve(code)
        if commodity is None:
            raise NotFoundError(commodity_not_found(code))
        return commodity

    def get(self, commodity_uid: str) -> Commodity:
        """Get a commodity by UID.

        Raises:
            NotFoundError: If no commodity has this UID
        """
        with self._lock:
            cached = self._by_uid.get(commodity_uid)
        if cached is not None:
            return cached
        commodity = self.db.get_commodity(commodity_uid)
        if commodity is None:
            raise NotFoundError(commodity_not_found(commodity_uid))
        return self._remember(commodity)

    def default(self) -> Commodity:
        """Default currency of the book.

        The stored preference wins, then the locale's currency, then USD.
        """
        for code in (
            self.db.get_preference(DEFAULT_CURRENCY_KEY),
            _locale_currency_code(),
            FALLBACK_CURRENCY_CODE,
        ):
            commodity = self.resolve(code)
            if commodity is not None:
                return commodity
        raise NotFoundError(commodity_not_found(FALLBACK_CURRENCY_CODE))

    def set_default(self, code: str) -> Commodity:
        """Persist the default currency.

        Raises:
            NotFoundError: If the code is not a known currency
        """
        commodity = self.require(code)
        self.db.set_preference(DEFAULT_CURRENCY_KEY, commodity.mnemonic)
        logger.info("Default currency set to %s", commodity.mnemonic)
        return commodity

    def create(
        self,
        mnemonic: str,
        fullname: str,
        namespace: str = NAMESPACE_CURRENCY,
        smallest_fraction: int = 100,
        local_symbol: Optional[str] = None,
        cusip: Optional[str] = None,
    ) -> Commodity:
        """Register a new commodity.

        Raises:
            ValidationError: If the mnemonic or namespace is empty
            ConflictError: If the namespace already holds this mnemonic
        """
        mnemonic = (mnemonic or "").strip().upper()
        namespace = (namespace or "").strip()
        if not mnemonic or not namespace:
            raise ValidationError("Commodity mnemonic and namespace are required")
        commodity = Commodity(
            mnemonic=mnemonic,
            fullname=fullname,
            namespace=namespace,
            smallest_fraction=smallest_fraction,
            local_symbol=local_symbol,
            cusip=cusip,
        )
        self.db.save_commodity(commodity)
        return commodity

    def list(self, namespace: Optional[str] = None) -> list[Commodity]:
        return self.db.list_commodities(namespace)
