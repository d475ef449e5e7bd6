def profit_vnd(benefit_usd: float, spend_vnd: float, rate: float) -> float:
    """Profit in VND: USD commission converted at ``rate``, minus VND spend."""
    return benefit_usd * rate - spend_vnd


def format_vnd(amount: float) -> str:
    """Format a VND amount with dot thousands separators, e.g. '1.234.567 đ'."""
    rounded = int(round(amount))
    sign = "-" if rounded < 0 else ""
    return f"{sign}{abs(rounded):,} đ".replace(",", ".")


def format_rate(rate: float) -> str:
    """Format an exchange rate for display, e.g. '26.000 VNĐ/USD'."""
    return f"{format_vnd(rate)[:-2]} VNĐ/USD"
