#!/usr/bin/env python3
"""
Extractor functions for rules

An extractor receives the regex match of its rule and the BandContext of the
band that matched, and returns the field value ('' = not found here, try a
later band). Rule files refer to extractors by registry name, or by
"package.module:function" for extractors that live outside this package.
"""

import importlib
import logging
import re
from typing import Callable, Dict

from .exceptions import RuleConfigError
from .models import BandContext

logger = logging.getLogger(__name__)

# Cleaned text uses '.' as the only decimal separator, so "1,234.50",
# "1.234,50" and "1 234,50" arrive as "1.234.50" or "1 234.50"
AMOUNT_RE = re.compile(r'(?<![\d.])(\d{1,3}(?:[. ]\d{3})+|\d+)\.(\d{2})(?![\d.]*\d)')


def find_amount(text: str) -> str:
    """
    First amount in text, or ''

    Thousands separators are dropped: "1.234.50" -> "1234.50".
    """
    if not text:
        return ''
    match = AMOUNT_RE.search(text)
    if not match:
        return ''
    whole = re.sub(r'[. ]', '', match.group(1))
    return f"{whole}.{match.group(2)}"


def amount_after_label(match: 're.Match', context: BandContext) -> str:
    """Amount printed on the same band after the label, e.g. 'TOTAL 12.50'"""
    return find_amount(context.text[match.end():])


def tax_sweep(match: 're.Match', context: BandContext) -> str:
    """
    Tax/VAT amount, inline or from a tabular layout

    Inline: 'VAT 2.10' -> '2.10'.

    Tabular: the label has no amount next to it, so the band is swept left
    to right in windows of traverse_width. When a window contains the label
    again, the amount is read from the same column one band lower
    (y - band_height), where tabular receipts print the value under its
    header. The sweep position is local to this call, so every primary
    match starts a fresh sweep at the left edge.
    """
    inline = amount_after_label(match, context)
    if inline:
        return inline

    trigger = match.re
    step = context.traverse_width
    offset = 0.0
    while offset + step <= context.width:
        column_x = context.x + offset
        window = context.read(column_x, context.y, step)
        if window and trigger.search(window):
            below = context.read(column_x, context.y - context.band_height, step)
            amount = find_amount(below)
            if amount:
                logger.debug(
                    f"Page {context.page_number}: '{match.group(0)}' value {amount} "
                    f"found under column x={column_x:.1f}"
                )
                return amount
        offset += step

    logger.debug(f"Page {context.page_number}: no value for '{match.group(0)}' at y={context.y:.1f}")
    return ''


EXTRACTORS: Dict[str, Callable[['re.Match', BandContext], str]] = {
    'amount_after_label': amount_after_label,
    'tax_sweep': tax_sweep,
}


def resolve_extractor(name: str, rule_name: str = None) -> Callable:
    """
    Look up an extractor by registry name or 'module:function' path

    Raises:
        RuleConfigError: unknown name or import failure
    """
    if name in EXTRACTORS:
        return EXTRACTORS[name]

    if ':' in name:
        module_name, _, func_name = name.partition(':')
        try:
            module = importlib.import_module(module_name)
            func = getattr(module, func_name)
        except (ImportError, AttributeError) as e:
            raise RuleConfigError(f"cannot import extractor {name!r}", rule_name=rule_name, original_error=e)
        if not callable(func):
            raise RuleConfigError(f"extractor {name!r} is not callable", rule_name=rule_name)
        return func

    raise RuleConfigError(
        f"unknown extractor {name!r} (known: {', '.join(sorted(EXTRACTORS))})",
        rule_name=rule_name
    )
