# scoring.py
# Deterministic proposal comparison used when the generative service is unavailable.

import math
from typing import List, Optional

from .models import (
    ComparisonResult,
    ComparisonSummary,
    Recommendation,
    VendorProposal,
    VendorScore,
    clamp_score,
)

UNKNOWN_DELIVERY = 999  # sentinel: no delivery days stated
DELIVERY_HORIZON_DAYS = 60


def format_money(value: float) -> str:
    """5000 -> '5,000', 1234.5 -> '1,234.5'."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def quoted_price(proposal: VendorProposal) -> float:
    price = proposal.parsed_data.total_price
    if price is None or not math.isfinite(price):
        return 0
    return price


def quoted_delivery(proposal: VendorProposal) -> int:
    days = proposal.parsed_data.delivery_days
    if not days or days >= UNKNOWN_DELIVERY:
        return UNKNOWN_DELIVERY
    return days


def price_bounds(proposals: List[VendorProposal]):
    raw = [quoted_price(p) for p in proposals]
    max_price = max(raw) or 1
    priced = [price for price in raw if price]
    min_price = min(priced) if priced else 0
    return min_price, max_price


def score_proposal(proposal: VendorProposal, min_price: float, max_price: float) -> VendorScore:
    parsed = proposal.parsed_data
    # non-finite or out-of-range values count as not quoted
    price = quoted_price(proposal)
    delivery = quoted_delivery(proposal)

    if price > 0:
        spread = (max_price - min_price) or 1
        price_score = clamp_score(100 - ((price - min_price) / spread) * 50)
    else:
        price_score = 50

    if delivery < UNKNOWN_DELIVERY:
        delivery_score = clamp_score(100 - (delivery / DELIVERY_HORIZON_DAYS) * 50)
    else:
        delivery_score = 50

    terms_score = 80 if parsed.warranty else 60
    overall = clamp_score((price_score + delivery_score + terms_score) / 3)

    pros = [
        f"Quoted price: ${format_money(price)}" if price > 0 else "Price provided",
        f"Delivery in {delivery} days" if delivery < UNKNOWN_DELIVERY else "Delivery timeline specified",
    ]
    if parsed.warranty:
        pros.append(f"Warranty: {parsed.warranty}")

    cons = []
    if not price:
        cons.append("Price not clearly specified")
    if not parsed.warranty:
        cons.append("No warranty information")

    offer = f"${format_money(price)}" if price > 0 else "competitive pricing"
    timeline = f"{delivery} days" if delivery < UNKNOWN_DELIVERY else "flexible"

    return VendorScore(
        vendor_id=proposal.vendor_id,
        vendor_name=proposal.vendor_name,
        price_score=price_score,
        delivery_score=delivery_score,
        terms_score=terms_score,
        overall_score=overall,
        pros=pros,
        cons=cons,
        summary=f"{proposal.vendor_name} offers {offer} with {timeline} delivery.",
    )


def rank(scores: List[VendorScore]) -> List[VendorScore]:
    # sorted() is stable: equal scores keep their input order
    return sorted(scores, key=lambda s: -s.overall_score)


def alternative_option(ranked: List[VendorScore]) -> Optional[str]:
    if len(ranked) > 1:
        return f"{ranked[1].vendor_name} as second choice"
    return None


def compare_proposals_fallback(rfp, proposals: List[VendorProposal]) -> ComparisonResult:
    """Score every proposal on price, delivery and terms and recommend the best.

    Only the proposals feed the formula; `rfp` is unused here.
    """
    if not proposals:
        raise ValueError("No parsed proposals available for comparison")

    min_price, max_price = price_bounds(proposals)
    ranked = rank([score_proposal(p, min_price, max_price) for p in proposals])
    best = ranked[0]

    return ComparisonResult(
        comparison=ComparisonSummary(
            summary=f"Compared {len(proposals)} vendor proposals based on price, delivery, and terms.",
            price_analysis="Pricing compared based on total quoted amounts.",
            delivery_analysis="Delivery timelines compared based on stated delivery days.",
            terms_analysis="Terms evaluated based on warranty and payment conditions.",
        ),
        vendor_scores=ranked,
        recommendation=Recommendation(
            recommended_vendor_id=best.vendor_id,
            recommended_vendor_name=best.vendor_name,
            reasoning=(
                f"{best.vendor_name} has the highest overall score of {best.overall_score}/100 "
                "based on price competitiveness, delivery timeline, and terms."
            ),
            risks=["This is a simplified analysis. Manual review recommended."],
            alternative_option=alternative_option(ranked),
        ),
    )


def single_proposal_result(proposal: VendorProposal) -> ComparisonResult:
    return ComparisonResult(
        comparison=None,
        vendor_scores=[],
        recommendation=Recommendation(
            recommended_vendor_id=proposal.vendor_id,
            recommended_vendor_name=proposal.vendor_name,
            reasoning="Only one proposal received",
            risks=["Single vendor option - no competitive comparison possible"],
        ),
    )
