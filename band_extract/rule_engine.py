#!/usr/bin/env python3
"""
Rule Engine - Resolve field rules against scanned bands

Python = engine; YAML = business logic. The engine knows nothing about
dates or totals; it walks bands in order and asks each unresolved rule
whether its pattern matches.

Resolution per band:
1. Unresolved rules are tried in declaration order.
2. The first rule whose pattern matches is evaluated (matched substring, or
   its extractor's return value). With first_match_wins the band is then
   done; otherwise the remaining unresolved rules are tried too.
3. A non-empty value resolves the rule for good. An empty value only means
   "not in this band": the rule is tried again on later bands.
4. Scanning stops as soon as every rule is resolved.
"""

import logging
from typing import Dict, Iterable, Optional

from .models import BandContext, RuleSet

logger = logging.getLogger(__name__)


class RuleEngine:
    """Apply an ordered RuleSet to a stream of bands"""

    def __init__(self, rules: RuleSet, first_match_wins: bool = True):
        """
        Initialize rule engine

        Args:
            rules: Validated rule set
            first_match_wins: Stop evaluating a band after its first matching rule
        """
        self.rules = rules
        self.first_match_wins = first_match_wins

    def resolve(self, bands: Iterable[BandContext], skip: Optional[Iterable[str]] = None) -> Dict[str, str]:
        """
        Resolve rules against bands

        Args:
            bands: Bands in scan order (consumed lazily)
            skip: Rule names already resolved elsewhere (e.g. on an earlier page)

        Returns:
            Rule name -> value for every rule; '' where unresolved or skipped
        """
        results = {name: '' for name in self.rules.names}
        skipped = set(skip or ())
        unresolved = [rule for rule in self.rules if rule.name not in skipped]

        if not unresolved:
            return results

        for band in bands:
            for rule in list(unresolved):
                match = rule.search(band.text)
                if not match:
                    continue

                value = rule.evaluate(match, band)
                results[rule.name] = value
                if value:
                    unresolved.remove(rule)
                    logger.debug(f"Page {band.page_number}: {rule.name} = {value!r} (y={band.y:.1f})")
                else:
                    logger.debug(f"Page {band.page_number}: {rule.name} matched '{match.group(0)}' without a value (y={band.y:.1f})")

                if self.first_match_wins:
                    break

            if not unresolved:
                break

        return results
