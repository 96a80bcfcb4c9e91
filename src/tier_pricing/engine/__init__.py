"""Engine subpackage - tier selection, pricing, progress and savings."""
from .models import (
    CartLine,
    CartSnapshot,
    Condition,
    EvaluationContext,
    PriceList,
    ProductPrice,
)
from .condition_evaluator import ConditionEvaluator
from .price_list_selector import PriceListSelector
from .pricing_processor import PricingProcessor
from .progress_calculator import ProgressCalculator
from .savings_calculator import SavingsCalculator
from .tier_engine import TierPricingEngine

__all__ = [
    'TierPricingEngine',
    'ConditionEvaluator',
    'PriceListSelector',
    'PricingProcessor',
    'ProgressCalculator',
    'SavingsCalculator',
    'CartLine',
    'CartSnapshot',
    'Condition',
    'EvaluationContext',
    'PriceList',
    'ProductPrice',
]
