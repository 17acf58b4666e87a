from decimal import Decimal, ROUND_HALF_UP
from typing import Union


def estimate_commission(sale_price: Union[int, float, Decimal, None], rate: float) -> int:
    """
    Estimated commission on a sale, rounded half-up to whole dollars.

    Every caller goes through here with the configured ``commission_rate`` so the
    scanner and the valuation code cannot drift apart. Never negative.
    """
    if not sale_price or sale_price < 0:
        return 0
    amount = Decimal(str(sale_price)) * Decimal(str(rate))
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
