import os
from typing import Dict, Optional

# Stripe price id -> subscription tier shown in the dashboard
PRICE_TIERS: Dict[str, str] = {
    os.getenv("STRIPE_PRICE_ID_STARTER", "price_1RaAUYEJIUEdIR4s8USTWPFd"): "Starter",
    os.getenv("STRIPE_PRICE_ID_PROFESSIONAL", "price_1RaAVmEJIUEdIR4siObOCgbi"): "Professional",
    os.getenv("STRIPE_PRICE_ID_ENTERPRISE", "price_1RaAXZEJIUEdIR4si9jYeo4t"): "Enterprise",
}


def get_tier_for_price(price_id: Optional[str]) -> Optional[str]:
    """Map a Stripe price id to a tier name. Unknown prices have no tier."""
    if not price_id:
        return None
    return PRICE_TIERS.get(price_id)
