"""
Market Cap Validator - decides whether a computed market cap is publishable.
Permissive by default; only compounding red flags mark a token invalid.
"""
from typing import Optional

from cardano_token_api.core.config import ScoringThresholds
from cardano_token_api.core.models import TrustAssessment, ValidationResult


class MarketCapValidator:
    """Cross-checks market cap against liquidity, supply and trust signals."""

    HIGH_MCAP = 1_000_000
    ZERO_SUPPLY_INVALID_MCAP = 5_000_000
    HARD_RATIO_MULTIPLIER = 10

    def __init__(self, thresholds: Optional[ScoringThresholds] = None):
        self.thresholds = thresholds or ScoringThresholds()

    def validate(
        self,
        market_cap: float,
        total_liquidity: float,
        trust_assessment: TrustAssessment,
        circulating_supply: Optional[float] = None,
        no_pools_found: bool = False,
        empty_suspicious_pools: bool = False,
        supply_discrepancy: bool = False
    ) -> ValidationResult:
        result = ValidationResult()
        max_ratio = self.thresholds.max_mcap_liquidity_ratio
        min_liquidity = self.thresholds.min_liquidity_threshold

        if empty_suspicious_pools:
            result.valid = False
            result.reasons.append(
                "Suspicious token: Claims to have pools but no valid liquidity data available"
            )

        if no_pools_found and market_cap > self.HIGH_MCAP:
            result.reasons.append(
                "No liquidity pools found despite significant market cap - exercise extreme caution"
            )

        if supply_discrepancy:
            result.valid = False
            result.reasons.append(
                "Suspicious token: Significant discrepancy between reported supply and actual supply"
            )

        if total_liquidity < min_liquidity:
            result.reasons.append(
                f"Insufficient liquidity ({total_liquidity:.2f} ADA) - minimum threshold is {min_liquidity:g} ADA"
            )

        if total_liquidity > 0 and market_cap > 0:
            ratio = market_cap / total_liquidity
            if ratio > max_ratio:
                result.reasons.append(
                    f"Suspicious market cap to liquidity ratio ({ratio:.2f}:1) - maximum allowed is {max_ratio:g}:1"
                )
                if ratio > max_ratio * self.HARD_RATIO_MULTIPLIER:
                    result.valid = False
                    result.reasons.append(
                        "Extremely suspicious market cap to liquidity ratio - likely manipulated"
                    )

        if trust_assessment.is_honeypot:
            result.valid = False
            result.reasons.append(
                f"Potential honeypot token: Low trust score ({trust_assessment.score}/100, "
                f"{trust_assessment.trust_level.value} trust)"
            )
        elif trust_assessment.score < self.thresholds.moderate_trust_threshold:
            result.reasons.append(
                f"Low trust score ({trust_assessment.score}/100) - exercise caution"
            )

        if market_cap > self.HIGH_MCAP and not circulating_supply:
            result.reasons.append(
                "High market cap with zero or unreported circulating supply - potential manipulation"
            )
            if market_cap > self.ZERO_SUPPLY_INVALID_MCAP:
                result.valid = False
                result.reasons.append(
                    "Invalid market cap calculation: Cannot have high market cap with zero circulating supply"
                )

        return result
