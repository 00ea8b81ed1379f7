"""Currency picker labels and user-facing messages."""

from typing import Dict

# Display label -> ISO 4217 code, in picker order.
CURRENCY_LABELS: Dict[str, str] = {
    "Euro (EUR)": "EUR",
    "Pound (GBP)": "GBP",
    "Yen (JPY)": "JPY",
    "US Dollar (USD)": "USD",
    "Ruble (RUB)": "RUB",
    "Yuan (CNY)": "CNY",
}

SUCCESS_RESULT = "success"

MSG_INVALID_AMOUNT = "Please enter a valid amount"
MSG_FETCH_ERROR = "Error fetching rates: {reason} {body}"
MSG_GENERIC_FETCH_ERROR = "Error fetching exchange rates. Please try again."
MSG_UNEXPECTED = "An error occurred: {detail}"
MSG_ZERO_RATE = "Cannot convert: the rate for {code} is zero"
MSG_SUPERSEDED = "Superseded by a newer conversion request"
MSG_CANCELLED = "Conversion cancelled"
