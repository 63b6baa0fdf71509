"""Integer arithmetic utilities for MYST amounts.

All stakes, payouts and pool balances are int micro-MYST
(1 MYST = 1_000_000 micros). No float anywhere in the money path.
"""

from decimal import Decimal

MICROS_PER_MYST = 1_000_000
BPS_DENOMINATOR = 10_000


def myst_to_micros(myst: int | str | Decimal) -> int:
    """Convert a MYST quantity to micros: '4.5' -> 4_500_000.

    Raises ValueError if the value has more than 6 decimal places.
    """
    micros = Decimal(myst) * MICROS_PER_MYST
    if micros != micros.to_integral_value():
        raise ValueError(f"MYST amount has sub-micro precision: {myst}")
    return int(micros)


def micros_to_display(micros: int) -> str:
    """Render micros for humans: 970_000_000 -> '970.00 MYST', 1 -> '0.000001 MYST'."""
    sign = "-" if micros < 0 else ""
    whole, frac = divmod(abs(micros), MICROS_PER_MYST)
    frac_str = f"{frac:06d}".rstrip("0").ljust(2, "0")
    return f"{sign}{whole:,}.{frac_str} MYST"


def apply_bps(amount: int, bps: int) -> int:
    """Floor share of amount: amount * bps / 10000, rounded down."""
    return (amount * bps) // BPS_DENOMINATOR


def calculate_fee(amount: int, fee_rate_bps: int) -> int:
    """Calculate fee with ceiling division (platform never under-collects).

    fee = ceil(amount * fee_rate_bps / 10000)
    Using integer ceiling: (a + b - 1) // b
    """
    if amount == 0 or fee_rate_bps == 0:
        return 0
    return (amount * fee_rate_bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR


def pro_rata(stake: int, numerator: int, denominator: int) -> int:
    """Floor of stake * numerator / denominator, one pari-mutuel share."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return (stake * numerator) // denominator
