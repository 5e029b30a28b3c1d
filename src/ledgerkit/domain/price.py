"""Price table domain service."""

import logging
from datetime import datetime
from fractions import Fraction
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.commodity import CommodityService
from ledgerkit.domain.entities import Commodity, Price, PriceType
from ledgerkit.domain.errors import ValidationError
from ledgerkit.domain.money import AmountLike, Money, to_fraction
from ledgerkit.utils.date_parser import DateLike, to_datetime

logger = logging.getLogger(__name__)


class PriceService:
    """Service for exchange rates between commodities.

    Rates are looked up directly in either direction. There is no
    triangulation through a third commodity: with only USD->EUR and
    EUR->GBP stored, USD->GBP has no rate.
    """

    def __init__(self, db: Database, commodities: CommodityService):
        """Initialize price service.

        Args:
            db: Database instance
            commodities: Commodity registry used to validate price pairs
        """
        self.db = db
        self.commodities = commodities

    def add_price(self, price: Price) -> Price:
        """Store a price.

        Args:
            price: Price to store

        Returns:
            The stored price

        Raises:
            ValidationError: If the value is not positive or both sides are the same
            NotFoundError: If either commodity does not exist
        """
        if not price.is_valid:
            raise ValidationError(
                f"Price value must be positive, got {price.value_num}/{price.value_denom}"
            )
        if price.commodity_uid == price.currency_uid:
            raise ValidationError("Cannot price a commodity in itself")
        commodity = self.commodities.get(price.commodity_uid)
        currency = self.commodities.get(price.currency_uid)
        self.db.save_price(price)
        logger.info(
            "Recorded price 1 %s = %s/%s %s",
            commodity.mnemonic,
            price.value_num,
            price.value_denom,
            currency.mnemonic,
        )
        return price

    def add_rate(
        self,
        commodity: Commodity,
        currency: Commodity,
        rate: AmountLike,
        date: Optional[DateLike] = None,
        source: str = "user",
        price_type: PriceType = PriceType.UNKNOWN,
    ) -> Price:
        """Store ``1 commodity = rate currency``.

        Raises:
            ValidationError: If the rate is not positive
        """
        value = to_fraction(rate)
        fields = {}
        if date is not None:
            fields["date"] = to_datetime(date)
        price = Price(
            commodity_uid=commodity.uid,
            currency_uid=currency.uid,
            value_num=value.numerator,
            value_denom=value.denominator,
            source=source,
            type=price_type,
            **fields,
        )
        return self.add_price(price)

    def get_price(
        self, commodity: Commodity, currency: Commodity, as_of: Optional[DateLike] = None
    ) -> Optional[Price]:
        """Most recent price for the pair, oriented commodity -> currency.

        Returns:
            Price, or None if no usable price exists
        """
        price = self.db.get_latest_price(
            commodity.uid, currency.uid, to_datetime(as_of, end_of_day=True)
        )
        if price is None:
            return None
        if not price.is_valid:
            logger.warning(
                "Ignoring price %s with non-positive value %s/%s",
                price.uid,
                price.value_num,
                price.value_denom,
            )
            return None
        if price.commodity_uid != commodity.uid:
            price = price.inverse()
        return price

    def get_rate(
        self, commodity: Commodity, currency: Commodity, as_of: Optional[DateLike] = None
    ) -> Optional[Fraction]:
        """Exact rate to convert amounts of ``commodity`` into ``currency``.

        Args:
            commodity: Source commodity
            currency: Target commodity
            as_of: Only consider prices dated on or before this point

        Returns:
            Rate as a Fraction, 1 for identical commodities, or None if unknown
        """
        if commodity.uid == currency.uid:
            return Fraction(1)
        price = self.get_price(commodity, currency, as_of)
        return price.rate if price is not None else None

    def convert(
        self, money: Money, currency: Commodity, as_of: Optional[DateLike] = None
    ) -> Optional[Money]:
        """Convert an amount into another commodity, or None without a rate."""
        rate = self.get_rate(money.commodity, currency, as_of)
        if rate is None:
            return None
        return money.convert(rate, currency)

    def list_prices(self, commodity: Optional[Commodity] = None) -> list[Price]:
        return self.db.list_prices(commodity.uid if commodity is not None else None)
