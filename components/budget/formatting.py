"""Display formatting for amounts shown in briefings and log lines."""

from components.budget.money import Amount, quantize


def format_currency(amount: Amount) -> str:
    """Format as dollars; whole amounts drop the cents (``$50``, ``-$7.50``)."""
    value = quantize(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        return f"{sign}${value:,.0f}"
    return f"{sign}${value:,.2f}"
