from __future__ import annotations

"""Display label -> ISO code lookup for the currency pickers.

Unknown labels pass through unchanged so new picker entries work without a
code change. The catch: a mistyped label becomes an invalid currency code and
only shows up later as an upstream API error.
"""
import logging
from typing import List

from fxconvert.models.constants import CURRENCY_LABELS

logger = logging.getLogger("fxconvert.currency_codes")


def resolve(label: str) -> str:
    code = CURRENCY_LABELS.get(label)
    if code is None:
        logger.debug("no code for label %r, using it verbatim", label)
        return label
    return code


def currency_labels() -> List[str]:
    return list(CURRENCY_LABELS)
