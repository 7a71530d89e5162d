"""Trade recommendations: confidence tiers, option contracts and targets"""

from .builder import RecommendationBuilder
from .models import (
    TIER_PROFILES,
    ActionTier,
    ExpectedPnL,
    IndexAlignment,
    KeyLevelContext,
    LeverageSource,
    LevelType,
    OptionContractSuggestion,
    OptionType,
    Recommendation,
    RecommendationRequest,
    SectorStrength,
    TierProfile,
)

__all__ = [
    "RecommendationBuilder",
    "Recommendation",
    "RecommendationRequest",
    "ActionTier",
    "TierProfile",
    "TIER_PROFILES",
    "OptionContractSuggestion",
    "OptionType",
    "ExpectedPnL",
    "LeverageSource",
    "IndexAlignment",
    "SectorStrength",
    "KeyLevelContext",
    "LevelType",
]
