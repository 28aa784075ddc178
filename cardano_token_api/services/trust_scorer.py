"""
Trust Scorer - rule-based honeypot / trust classification.
Starts every token at 100 and applies additive penalties and bonuses over
pool structure, liquidity, market cap ratios, naming and age.
"""
import re
from typing import List, Optional, Tuple

from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.enums import TrustLevel
from cardano_token_api.core.models import Adjustment, TrustAssessment
from cardano_token_api.core.trust_lists import TrustLists


class _ScoreSheet:
    """Running score plus the audit trail of every rule that fired."""

    def __init__(self, base: int):
        self.score = base
        self.penalties: List[Adjustment] = []
        self.bonuses: List[Adjustment] = []

    def penalize(self, reason: str, points: int) -> None:
        self.penalties.append(Adjustment(reason=reason, points=-abs(points)))
        self.score -= abs(points)

    def reward(self, reason: str, points: int) -> None:
        self.bonuses.append(Adjustment(reason=reason, points=abs(points)))
        self.score += abs(points)


class TrustScorer:
    """
    Scores a token's market structure.
    Deterministic: identical inputs give an identical score and audit trail.
    """

    BASE_SCORE = 100

    # Names that look like wrapped/derivative copies of a bigger asset
    COPYCAT_PATTERNS = (
        re.compile(r"^[Ii][A-Za-z]+$"),                 # iBTC, iADA
        re.compile(r"^[A-Za-z]+[A-Z]{3,4}$"),           # ending in USDT, BTC
        re.compile(r"^[A-Za-z]+[A-Z]{2,3}[A-Za-z]+$"),  # embedded tickers
    )

    # Wrapped majors that can legitimately be priced without local pools
    WRAPPED_TOKEN_PATTERNS = (
        re.compile(r"^[iwb]btc$", re.IGNORECASE),
        re.compile(r"^[iwbe]th$", re.IGNORECASE),
        re.compile(r"^[iw]usdc?$", re.IGNORECASE),
        re.compile(r"^[iw]usdt?$", re.IGNORECASE),
    )

    HIGH_MCAP = 1_000_000
    VERY_HIGH_MCAP = 5_000_000
    SINGLE_POOL_MCAP = 10_000_000
    HIGH_LIQUIDITY = 100_000
    GOOD_LIQUIDITY = 20_000
    MODERATE_LIQUIDITY = 50_000
    HONEYPOT_LIQUIDITY = 5_000

    # (score upper bound, level) checked in order
    LEVELS: Tuple[Tuple[int, TrustLevel], ...] = (
        (20, TrustLevel.VERY_LOW),
        (40, TrustLevel.LOW),
        (60, TrustLevel.MODERATE),
        (80, TrustLevel.GOOD),
    )

    def __init__(
        self,
        trust_lists: Optional[TrustLists] = None,
        thresholds: Optional[ScoringThresholds] = None
    ):
        self.trust_lists = trust_lists or TrustLists()
        self.thresholds = thresholds or ScoringThresholds()

    def score_token(
        self,
        token_id: str,
        pool_count: int,
        suspicious_concentration: bool,
        total_liquidity: float,
        market_cap: float,
        circulating_supply: float,
        ticker: Optional[str],
        token_age_days: int = 0,
        price_from_fallback_endpoint: bool = False
    ) -> TrustAssessment:
        sheet = _ScoreSheet(self.BASE_SCORE)

        if self.trust_lists.is_trusted(token_id):
            sheet.reward("Token is in trusted whitelist", 50)

        if self.trust_lists.is_honeypot(token_id):
            sheet.penalize("Token is in honeypot blacklist", 100)

        if ticker and self.is_copycat_name(ticker) and market_cap > self.HIGH_MCAP:
            sheet.penalize("Possible copycat token with suspicious name pattern", 25)

        if (market_cap > self.HIGH_MCAP and circulating_supply == 0
                and total_liquidity > self.HIGH_LIQUIDITY):
            sheet.penalize("High liquidity but zero circulating supply reported", 50)

        self._manipulation_checks(sheet, total_liquidity, market_cap, circulating_supply)

        if price_from_fallback_endpoint:
            self._fallback_pool_checks(sheet, pool_count, market_cap, ticker)
        else:
            self._pool_count_checks(sheet, pool_count, total_liquidity, market_cap, circulating_supply)

        self._liquidity_tier(sheet, total_liquidity)

        if suspicious_concentration:
            self._concentration_penalty(sheet, total_liquidity)

        if market_cap > 0 and total_liquidity > 0:
            ratio = market_cap / total_liquidity
            if ratio > self.thresholds.max_mcap_liquidity_ratio:
                sheet.penalize(f"Extreme market cap to liquidity ratio ({ratio:.2f}:1)", 40)

        self._age_bonus(sheet, token_age_days)

        score = max(0, sheet.score)
        trust_level, is_honeypot = self.classify(score, total_liquidity)

        return TrustAssessment(
            score=score,
            trust_level=trust_level,
            is_honeypot=is_honeypot,
            penalties=sheet.penalties,
            bonuses=sheet.bonuses,
            price_from_fallback_endpoint=price_from_fallback_endpoint
        )

    def classify(self, score: int, total_liquidity: float) -> Tuple[TrustLevel, bool]:
        """Map a final score to its trust level and honeypot flag."""
        for upper, level in self.LEVELS:
            if score < upper:
                if level == TrustLevel.VERY_LOW:
                    return level, True
                if level == TrustLevel.LOW:
                    return level, total_liquidity < self.HONEYPOT_LIQUIDITY
                return level, False
        return TrustLevel.HIGH, False

    def is_copycat_name(self, ticker: str) -> bool:
        return any(pattern.match(ticker) for pattern in self.COPYCAT_PATTERNS)

    def is_wrapped_name(self, ticker: str) -> bool:
        return any(pattern.match(ticker) for pattern in self.WRAPPED_TOKEN_PATTERNS)

    # ===== Rule groups =====

    def _manipulation_checks(
        self,
        sheet: _ScoreSheet,
        total_liquidity: float,
        market_cap: float,
        circulating_supply: float
    ) -> None:
        if total_liquidity <= 0 or market_cap <= 0:
            return

        ratio = market_cap / total_liquidity
        if ratio > 50 and market_cap > self.VERY_HIGH_MCAP:
            sheet.penalize(f"Potential price manipulation ({ratio:.2f}:1 MCap/Liquidity ratio)", 40)

        if circulating_supply < total_liquidity * 0.1 and market_cap > self.HIGH_MCAP:
            sheet.penalize("Suspicious circulating supply vs. liquidity ratio", 30)

    def _fallback_pool_checks(
        self,
        sheet: _ScoreSheet,
        pool_count: int,
        market_cap: float,
        ticker: Optional[str]
    ) -> None:
        """Pool assessment when the price came from the average-price endpoint."""
        if pool_count != 0:
            return

        # Lighter than the plain no-pools penalty since a usable price exists
        sheet.penalize("No liquidity pools found, using fallback price source", 40)

        if market_cap > self.HIGH_MCAP:
            sheet.penalize("High market cap with no visible liquidity pools", 20)

        if ticker and self.is_wrapped_name(ticker):
            sheet.reward("Recognized wrapped token pattern", 30)

    def _pool_count_checks(
        self,
        sheet: _ScoreSheet,
        pool_count: int,
        total_liquidity: float,
        market_cap: float,
        circulating_supply: float
    ) -> None:
        min_pools = self.thresholds.min_pools_required

        if pool_count == 0:
            sheet.penalize("No liquidity pools found", 80)
        elif pool_count == 1:
            sheet.penalize("Single liquidity pool", 30)

            if market_cap > self.SINGLE_POOL_MCAP and circulating_supply == 0:
                sheet.penalize("High market cap with single pool and no circulating supply data", 50)

            if market_cap > 0 and total_liquidity > 0:
                ratio = market_cap / total_liquidity
                if ratio > 100:
                    sheet.penalize(f"Extremely high market cap to liquidity ratio ({ratio:.2f}:1)", 40)
                elif ratio > 50:
                    sheet.penalize(f"High market cap to liquidity ratio ({ratio:.2f}:1)", 20)
        elif pool_count < min_pools:
            sheet.penalize(f"Low number of liquidity pools ({pool_count})", 10)
        else:
            sheet.reward(f"Good number of liquidity pools ({pool_count})", 10)

    def _liquidity_tier(self, sheet: _ScoreSheet, total_liquidity: float) -> None:
        if total_liquidity < 100:
            sheet.penalize("Extremely low liquidity", 70)
        elif total_liquidity < 500:
            sheet.penalize("Very low liquidity", 50)
        elif total_liquidity < self.thresholds.min_liquidity_threshold:
            sheet.penalize(f"Low liquidity ({total_liquidity:.2f} ADA)", 30)
        elif total_liquidity > self.HIGH_LIQUIDITY:
            sheet.reward("Very high liquidity", 20)
        elif total_liquidity > self.GOOD_LIQUIDITY:
            sheet.reward("Good liquidity", 10)

    def _concentration_penalty(self, sheet: _ScoreSheet, total_liquidity: float) -> None:
        if total_liquidity < self.GOOD_LIQUIDITY:
            sheet.penalize("Suspicious liquidity distribution with low total liquidity", 30)
        elif total_liquidity < self.MODERATE_LIQUIDITY:
            sheet.penalize("Suspicious liquidity distribution with moderate liquidity", 15)
        else:
            sheet.penalize("Suspicious liquidity distribution despite significant liquidity", 5)

    def _age_bonus(self, sheet: _ScoreSheet, token_age_days: int) -> None:
        if token_age_days > 365:
            sheet.reward("Token has existed for more than a year", 15)
        elif token_age_days > 180:
            sheet.reward("Token has existed for more than 6 months", 10)
        elif token_age_days > 30:
            sheet.reward("Token has existed for more than a month", 5)
