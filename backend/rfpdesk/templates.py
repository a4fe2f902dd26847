# templates.py
# Plain-text RFP invitation email used when the generative service is unavailable.

from typing import List

from .models import EmailContent, ExtractionResult, Item
from .scoring import format_money

RESPONSE_CHECKLIST = """Please provide:
1. Itemized pricing for all items
2. Total cost including any applicable taxes
3. Delivery timeline
4. Warranty terms
5. Payment terms
6. Any conditions or special requirements"""


def item_text(item: Item) -> str:
    spec = f" ({item.specifications})" if item.specifications else ""
    return f"{item.name}: Quantity {item.quantity}{spec}"


def item_line(item: Item) -> str:
    return f"  • {item_text(item)}"


def items_block(items: List[Item]) -> str:
    return "\n".join(item_line(i) for i in items) or "  • As per requirements"


def render_rfp_email(rfp: ExtractionResult, vendor_name: str) -> EmailContent:
    req = rfp.requirements
    description = f"\nDESCRIPTION: {rfp.description}" if rfp.description else ""
    budget = f"${format_money(rfp.budget)}" if rfp.budget else "Open to competitive quotes"
    delivery = f"Within {rfp.delivery_days} days" if rfp.delivery_days else "To be discussed"

    body = f"""Dear {vendor_name},

We are pleased to invite you to submit a proposal for the following procurement requirement:

PROJECT: {rfp.title}
{description}

ITEMS REQUIRED:
{items_block(rfp.items)}

BUDGET: {budget}
DELIVERY REQUIREMENT: {delivery}
PAYMENT TERMS: {req.payment_terms or 'Standard terms'}
WARRANTY: {req.warranty or 'Standard warranty expected'}

{RESPONSE_CHECKLIST}

We look forward to receiving your proposal.

Best regards,
Procurement Team"""

    return EmailContent(subject=f"Request for Proposal: {rfp.title}", body=body)


def ensure_item_lines(email: EmailContent, items: List[Item]) -> EmailContent:
    """Append any item line the generated body left out."""
    missing = [item_line(i) for i in items if item_text(i) not in email.body]
    if not missing:
        return email
    body = email.body.rstrip() + "\n\nITEMS REQUIRED:\n" + "\n".join(missing)
    return EmailContent(subject=email.subject, body=body)
