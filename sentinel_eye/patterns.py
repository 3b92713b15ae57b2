"""
patterns.py — Threat Category Pattern Matcher
==============================================

Classifies raw text against nine named threat categories. Each category is
a family of case-insensitive keyword stems; a category matches when any of
its stems appears anywhere in the text (substring match, so "účt" hits
"účtu", "peniaz" hits "peniaze").

The keyword table mixes Slovak and English stems and lives in a versioned,
immutable RuleSet. The matcher takes a RuleSet at construction time, so
another locale or a test fixture can swap in a different table without
touching the scoring logic.

Audio is never inspected: the presence of an audio payload is reported as
a separate has_deepfake flag.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Pattern, Tuple


class ThreatCategory(str, Enum):
    BANK = "BANK"
    CRYPTO = "CRYPTO"
    AUTH = "AUTH"
    PRESSURE = "PRESSURE"
    DELIVERY = "DELIVERY"
    FAMILY = "FAMILY"
    LINK = "LINK"
    IMPERSONATION = "IMPERSONATION"
    SESSION = "SESSION"


@dataclass(frozen=True)
class CategoryRule:
    """Keyword family, point weight and report label for one category."""
    category: ThreatCategory
    terms: Tuple[str, ...]
    weight: int
    label: str


@dataclass(frozen=True)
class RuleSet:
    """Immutable scoring table consumed by the matcher and the aggregator.

    Attributes:
        version:             Identifier of this table revision.
        rules:               One CategoryRule per category.
        deepfake_weight:     Points added when an audio payload is present.
        combination_bonuses: (category_a, category_b, bonus) applied when
                             both categories matched in the same input.
    """
    version: str
    rules: Tuple[CategoryRule, ...]
    deepfake_weight: int = 15
    combination_bonuses: Tuple[Tuple[ThreatCategory, ThreatCategory, int], ...] = ()

    def rule_for(self, category: ThreatCategory) -> Optional[CategoryRule]:
        for rule in self.rules:
            if rule.category == category:
                return rule
        return None

    def weight_of(self, category: ThreatCategory) -> int:
        rule = self.rule_for(category)
        return rule.weight if rule else 0

    def label_of(self, category: ThreatCategory) -> str:
        rule = self.rule_for(category)
        return rule.label if rule else category.value.title()


# ================================================================
# DEFAULT RULE TABLE — Slovak + English keyword stems
# ================================================================

DEFAULT_RULESET = RuleSet(
    version="sk-en-2024.1",
    rules=(
        CategoryRule(
            ThreatCategory.BANK,
            ("bank", "účt", "iban", "peniaz", "euro", "platb", "prevod",
             "vklad", "výber", "sepa"),
            30, "Bank",
        ),
        CategoryRule(
            ThreatCategory.CRYPTO,
            ("krypto", "crypto", "bitcoin", "btc", "wallet", "binance",
             "coinbase", "invest", "zisk", "burz"),
            35, "Crypto",
        ),
        CategoryRule(
            ThreatCategory.AUTH,
            ("heslo", "kredit", "kart", "číslo", "poveren", "overen",
             "identity", "login", "pin", "cvv", "údaje"),
            40, "Auth",
        ),
        CategoryRule(
            ThreatCategory.PRESSURE,
            ("súrne", "rýchlo", "nemocnic", "polícia", "blokovan", "problém",
             "exekútor", "pokuta", "dlh", "ihneď", "okamžite", "zatykač",
             "väzen", "ciel", "kauci"),
            30, "Urgency",
        ),
        CategoryRule(
            ThreatCategory.DELIVERY,
            ("balík", "pošta", "zásielka", "kuriér", "dhl", "dpd", "colnic",
             "doplatok", "clo", "tracking", "sledovan"),
            20, "Delivery",
        ),
        CategoryRule(
            ThreatCategory.FAMILY,
            ("vnúča", "syn", "dcéra", "nehoda", "pomôž", "peniaze", "starká",
             "mama", "otec", "babka", "dedko"),
            35, "Family",
        ),
        CategoryRule(
            ThreatCategory.LINK,
            ("link", "klik", "bit.ly", "t.me", "http://", "https://"),
            30, "Link",
        ),
        # NIST SP 800-61r2 impersonation attack vector
        CategoryRule(
            ThreatCategory.IMPERSONATION,
            ("podpora", "microsoft", "admin", "riaditeľ", "ceo", "úrad",
             "technik", "it oddelenie", "anydesk", "teamviewer", "vzdialen",
             "prístup", "remote", "vírus", "polícia", "exekútor", "agent"),
            35, "Impersonation",
        ),
        # OWASP session management: hijacking indicators
        CategoryRule(
            ThreatCategory.SESSION,
            ("session", "cookie", "token", "expired", "re-authenticate",
             "sid=", "jsessionid"),
            25, "Session",
        ),
    ),
    deepfake_weight=15,
    combination_bonuses=(
        (ThreatCategory.PRESSURE, ThreatCategory.IMPERSONATION, 20),
        (ThreatCategory.PRESSURE, ThreatCategory.AUTH, 20),
    ),
)


@dataclass(frozen=True)
class MatchResult:
    """Category presence for one input."""
    categories: FrozenSet[ThreatCategory] = field(default_factory=frozenset)
    has_deepfake: bool = False

    def __contains__(self, category: object) -> bool:
        return category in self.categories

    def flags(self) -> Dict[ThreatCategory, bool]:
        """Every category mapped to its matched flag."""
        return {category: category in self.categories for category in ThreatCategory}


class PatternMatcher:
    """Stateless keyword classifier built from a RuleSet."""

    def __init__(self, ruleset: RuleSet = DEFAULT_RULESET) -> None:
        self.ruleset = ruleset
        self._compiled: Tuple[Tuple[ThreatCategory, Pattern], ...] = tuple(
            (rule.category, self._compile(rule.terms))
            for rule in ruleset.rules
            if rule.terms
        )

    @staticmethod
    def _compile(terms: Tuple[str, ...]) -> Pattern:
        """Join the stems into one alternation; stems are literal text."""
        return re.compile("|".join(re.escape(term) for term in terms), re.IGNORECASE)

    def match(self, text: Optional[str], has_audio: bool = False) -> MatchResult:
        lowered = (text or "").lower()
        matched = frozenset(
            category
            for category, pattern in self._compiled
            if pattern.search(lowered)
        )
        return MatchResult(categories=matched, has_deepfake=bool(has_audio))


# Module-level singleton
pattern_matcher = PatternMatcher()
