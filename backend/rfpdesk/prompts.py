# prompts.py
# Instruction templates and target JSON shapes for the generative service.

import json
from typing import List

from .models import ExtractionResult, VendorProposal
from .scoring import format_money

RFP_EXTRACTION_TEMPERATURE = 0.3
PROPOSAL_EXTRACTION_TEMPERATURE = 0.3
COMPARISON_TEMPERATURE = 0.4
EMAIL_TEMPERATURE = 0.5

RFP_EXTRACTION_PROMPT = """You are an RFP (Request for Proposal) extraction assistant. Extract structured information from a natural language procurement request.

Return JSON with exactly this shape:
{
  "title": "A concise title for the RFP",
  "description": "A brief description of what is being procured",
  "budget": <number or null if not specified>,
  "currency": "USD" or the appropriate currency code,
  "deliveryDays": <number of days for delivery or null>,
  "items": [
    {"name": "item name", "quantity": <number>, "specifications": "any specifications mentioned"}
  ],
  "requirements": {
    "paymentTerms": "payment terms if mentioned",
    "warranty": "warranty requirements if mentioned",
    "deliveryLocation": "delivery location if mentioned",
    "additionalTerms": ["any other requirements or terms"]
  }
}

Only include information that is explicitly stated or can be reasonably inferred.
Return ONLY valid JSON, no additional text."""

PROPOSAL_EXTRACTION_PROMPT = """You are a proposal parsing assistant. Extract structured information from a vendor's emailed proposal.

The vendor is responding to an RFP for: {rfp_context}

Return JSON with exactly this shape:
{{
  "totalPrice": <total quoted price as number>,
  "itemPricing": [
    {{"itemName": "name of item", "quantity": <number>, "unitPrice": <number>, "totalPrice": <number>, "notes": "notes about this item"}}
  ],
  "deliveryTimeline": "stated delivery timeline",
  "deliveryDays": <number of days if mentioned>,
  "paymentTerms": "payment terms offered",
  "warranty": "warranty terms offered",
  "validityPeriod": "how long the quote is valid",
  "conditions": ["conditions or special terms"],
  "notes": "any additional notes"
}}

Use null for fields that cannot be determined.
Return ONLY valid JSON."""

COMPARISON_PROMPT = """You are a procurement analysis assistant. Compare vendor proposals and recommend one.

Weigh: price competitiveness, delivery timeline, payment terms, warranty and support, overall value.

Return JSON with exactly this shape:
{
  "comparison": {
    "summary": "brief summary of the comparison",
    "priceAnalysis": "analysis of pricing across vendors",
    "deliveryAnalysis": "analysis of delivery timelines",
    "termsAnalysis": "analysis of terms and conditions"
  },
  "vendorScores": [
    {
      "vendorId": "vendor id",
      "vendorName": "vendor name",
      "priceScore": <0-100>,
      "deliveryScore": <0-100>,
      "termsScore": <0-100>,
      "overallScore": <0-100>,
      "pros": ["pros"],
      "cons": ["cons"],
      "summary": "brief summary for this vendor"
    }
  ],
  "recommendation": {
    "recommendedVendorId": "id of recommended vendor",
    "recommendedVendorName": "name of recommended vendor",
    "reasoning": "detailed reasoning",
    "risks": ["risks to consider"],
    "alternativeOption": "second best option if any"
  }
}"""

EMAIL_PROMPT = """You are a professional procurement assistant. Write a formal RFP email to a vendor.

The email must be professional and clear, include every RFP detail (list every item with its quantity and specifications), state what the vendor's response should contain, mention the deadline, and request itemized pricing.

Return JSON:
{
  "subject": "email subject line",
  "body": "full email body in plain text"
}"""


def proposal_system_prompt(rfp_context: str) -> str:
    return PROPOSAL_EXTRACTION_PROMPT.format(rfp_context=rfp_context or "Unknown RFP")


def proposal_user_text(email_body: str, email_subject: str = "") -> str:
    return f"Subject: {email_subject}\n\nEmail Body:\n{email_body}"


def _dump(obj) -> str:
    return json.dumps(obj, indent=2, default=str)


def comparison_user_text(rfp: ExtractionResult, proposals: List[VendorProposal]) -> str:
    budget = f"${format_money(rfp.budget)}" if rfp.budget else "Not specified"
    delivery = f"{rfp.delivery_days} days" if rfp.delivery_days else "Not specified"
    items = [i.to_json() for i in rfp.items]
    details = [p.to_json() for p in proposals]
    return (
        "RFP Details:\n"
        f"- Title: {rfp.title}\n"
        f"- Budget: {budget}\n"
        f"- Required Delivery: {delivery}\n"
        f"- Items: {json.dumps(items)}\n"
        f"- Requirements: {json.dumps(rfp.requirements.to_json())}\n\n"
        f"Proposals to Compare:\n{_dump(details)}\n"
    )


def email_user_text(rfp: ExtractionResult, vendor_name: str) -> str:
    req = rfp.requirements
    budget = f"${format_money(rfp.budget)}" if rfp.budget else "Open to quotes"
    delivery = f"Within {rfp.delivery_days} days" if rfp.delivery_days else "To be discussed"
    items = "\n".join(
        f"  - {i.name}: Qty {i.quantity}" + (f" ({i.specifications})" if i.specifications else "")
        for i in rfp.items
    )
    return (
        "Generate an RFP email for:\n"
        f"- Vendor Name: {vendor_name}\n"
        f"- RFP Title: {rfp.title}\n"
        f"- Description: {rfp.description or 'Not provided'}\n"
        f"- Budget: {budget}\n"
        f"- Required Delivery: {delivery}\n"
        f"- Items Required:\n{items}\n"
        f"- Payment Terms: {req.payment_terms or 'Standard terms'}\n"
        f"- Warranty Required: {req.warranty or 'Standard warranty'}\n"
        f"- Additional Requirements: {', '.join(req.additional_terms) or 'None specified'}\n"
    )
