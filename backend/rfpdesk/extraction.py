# extraction.py
# Deterministic regex extraction, used whenever the generative service is
# unavailable. One extractor class, parameterized by a pattern set, serves both
# RFP requests and vendor proposal replies.

import math
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from .models import ExtractionResult, Item, ProposalExtraction, Requirements


@dataclass(frozen=True)
class ItemCategory:
    name: str
    pattern: Pattern


# group 1 = quantity, group 2 = keyword as written
ITEM_CATALOGUE: Tuple[ItemCategory, ...] = (
    ItemCategory("compute", re.compile(r"(\d+)\s*(laptops?|computers?|pcs?|machines?)", re.I)),
    ItemCategory("display", re.compile(r"(\d+)\s*(monitors?|displays?|screens?)", re.I)),
    ItemCategory("input", re.compile(r"(\d+)\s*(keyboards?|mice|mouse)", re.I)),
    ItemCategory("furniture", re.compile(r"(\d+)\s*(chairs?|desks?|tables?)", re.I)),
    ItemCategory("telephony", re.compile(r"(\d+)\s*(phones?|mobiles?|handsets?)", re.I)),
    ItemCategory("printing", re.compile(r"(\d+)\s*(printers?|scanners?)", re.I)),
    ItemCategory("networking", re.compile(r"(\d+)\s*(servers?|routers?|switches?)", re.I)),
)

RAM_PATTERN = re.compile(r"(\d+)\s*GB\s*RAM", re.I)
SCREEN_PATTERN = re.compile(r"(\d+)[- ]?(inch|\")", re.I)
WARRANTY_PATTERN = re.compile(r"(\d+)\s*(year|month)s?\s*warranty", re.I)
CURRENCY_NOISE = re.compile(r"[$,\s]|dollars|usd", re.I)

NET_TERMS = (
    (("net 30",), "Net 30"),
    (("net 60",), "Net 60"),
    (("net 15",), "Net 15"),
)


@dataclass(frozen=True)
class PatternSet:
    """What to look for in one kind of document.

    amount_mode is "first" (the first amount wins) or "max" (the largest of
    all amounts wins).
    """
    amount: Pattern
    amount_mode: str
    delivery: Pattern
    payment_terms: Tuple[Tuple[Tuple[str, ...], str], ...]
    warranty: Pattern = WARRANTY_PATTERN
    item_categories: Tuple[ItemCategory, ...] = ()


RFP_PATTERNS = PatternSet(
    amount=re.compile(r"\$[\d,]+|\d+[\d,]*\s*(?:dollars|usd)", re.I),
    amount_mode="first",
    delivery=re.compile(r"(\d+)\s*(days?|weeks?)", re.I),
    payment_terms=NET_TERMS + ((("immediate", "advance"), "Advance Payment"),),
    item_categories=ITEM_CATALOGUE,
)

PROPOSAL_PATTERNS = PatternSet(
    amount=re.compile(r"\$[\d,]+\.?\d*"),
    amount_mode="max",
    delivery=re.compile(r"(\d+)\s*(days?|weeks?|business days?)", re.I),
    payment_terms=NET_TERMS,
)


def parse_amount(raw: str) -> Optional[float]:
    cleaned = CURRENCY_NOISE.sub("", raw)
    try:
        value = float(cleaned)
    except ValueError:
        return None
    # hundreds of digits parse as inf
    return value if math.isfinite(value) else None


def item_name(keyword: str) -> str:
    # "laptops" -> "Laptop", "mice" -> "Mice"
    name = keyword[:-1] if keyword.endswith("s") else keyword
    return name[:1].upper() + name[1:]


class RegexExtractor:
    """Stateless field finders. Safe to share: every call scans its own text."""

    def __init__(self, patterns: PatternSet):
        self.patterns = patterns

    def find_amount(self, text: str) -> Optional[float]:
        amounts = [a for a in (parse_amount(m.group(0)) for m in self.patterns.amount.finditer(text))
                   if a is not None]
        if not amounts:
            return None
        if self.patterns.amount_mode == "max":
            return max(amounts)
        return amounts[0]

    def find_delivery_days(self, text: str) -> Optional[int]:
        m = self.patterns.delivery.search(text.lower())
        if not m:
            return None
        days = int(m.group(1))
        if "week" in m.group(2):
            days *= 7
        return days

    def find_payment_terms(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for needles, label in self.patterns.payment_terms:
            if any(n in lowered for n in needles):
                return label
        return None

    def find_warranty(self, text: str) -> Optional[str]:
        m = self.patterns.warranty.search(text.lower())
        if not m:
            return None
        count, unit = m.group(1), m.group(2)
        plural = "s" if int(count) > 1 else ""
        return f"{count} {unit}{plural} warranty"

    def find_items(self, text: str) -> List[Item]:
        items = []
        # categories are independent; one token can produce items in two of them
        for category in self.patterns.item_categories:
            for m in category.pattern.finditer(text):
                quantity = int(m.group(1))
                if quantity < 1:
                    continue
                items.append(Item(name=item_name(m.group(2)), quantity=quantity, specifications=""))
        return items


RFP_EXTRACTOR = RegexExtractor(RFP_PATTERNS)
PROPOSAL_EXTRACTOR = RegexExtractor(PROPOSAL_PATTERNS)


def attach_specifications(text: str, items: List[Item]) -> None:
    # Positional: RAM goes on the first item whatever it is, screen size on the
    # first monitor. Interleaved categories can misattach; kept for compatibility.
    ram = RAM_PATTERN.search(text)
    if ram and items:
        items[0].specifications = f"{ram.group(1)}GB RAM"

    screen = SCREEN_PATTERN.search(text)
    if screen:
        monitor = next((i for i in items if "monitor" in i.name.lower()), None)
        if monitor is not None:
            monitor.specifications = f"{screen.group(1)} inch"


def extract_rfp(text: str) -> ExtractionResult:
    ex = RFP_EXTRACTOR
    budget = ex.find_amount(text)
    delivery_days = ex.find_delivery_days(text)

    items = ex.find_items(text)
    attach_specifications(text, items)

    if items:
        title = " and ".join(i.name for i in items) + " Procurement"
    else:
        title = "Procurement Request"
        items = [Item(name="Items as specified", quantity=1, specifications=text[:100])]

    return ExtractionResult(
        title=title,
        description=text[:200],
        budget=int(budget) if budget is not None else None,
        currency="USD",
        delivery_days=delivery_days,
        items=items,
        requirements=Requirements(
            payment_terms=ex.find_payment_terms(text),
            warranty=ex.find_warranty(text),
            delivery_location=None,
            additional_terms=[],
        ),
    )


def extract_proposal(text: str) -> ProposalExtraction:
    ex = PROPOSAL_EXTRACTOR
    delivery_days = ex.find_delivery_days(text)
    return ProposalExtraction(
        total_price=ex.find_amount(text),
        item_pricing=[],
        delivery_timeline=f"{delivery_days} days" if delivery_days else None,
        delivery_days=delivery_days,
        payment_terms=ex.find_payment_terms(text),
        warranty=ex.find_warranty(text),
        validity_period=None,
        conditions=[],
        notes="Parsed using fallback parser",
    )
