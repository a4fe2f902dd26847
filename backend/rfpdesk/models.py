# models.py
# Pydantic models: core extraction/scoring types + stored records.
# Attributes are snake_case; JSON uses camelCase aliases (deliveryDays, usedFallback, ...).

import math
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    # x.5 rounds towards +inf, not to even
    return math.floor(float(value) + 0.5)


def clamp_score(value: Any) -> int:
    if value is None:
        return 0
    try:
        value = float(value)
    except OverflowError:
        value = math.inf if value > 0 else -math.inf
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 100 if value > 0 else 0
    return max(0, min(100, round_half_up(value)))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# --- core types ---

class Item(CamelModel):
    name: str
    quantity: int = Field(1, ge=1)
    specifications: str = ""
    estimated_unit_price: Optional[float] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        return 1 if v is None else v

    @field_validator("specifications", mode="before")
    @classmethod
    def blank_specifications(cls, v):
        return "" if v is None else v


class Requirements(CamelModel):
    payment_terms: Optional[str] = None
    warranty: Optional[str] = None
    delivery_location: Optional[str] = None
    additional_terms: List[str] = Field(default_factory=list)

    @field_validator("additional_terms", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v


class ExtractionResult(CamelModel):
    title: str = "Procurement Request"
    description: str = ""
    budget: Optional[float] = None
    currency: str = "USD"
    delivery_days: Optional[int] = None
    items: List[Item] = Field(default_factory=list)
    requirements: Requirements = Field(default_factory=Requirements)

    @field_validator("items", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v

    @field_validator("title", "description", "currency", "requirements", mode="before")
    @classmethod
    def defaults_for_null(cls, v, info):
        if v is not None:
            return v
        return {"title": "Procurement Request", "description": "",
                "currency": "USD", "requirements": {}}[info.field_name]


class ItemPricing(CamelModel):
    item_name: Optional[str] = None
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    notes: Optional[str] = None


class ProposalExtraction(CamelModel):
    total_price: Optional[float] = None
    item_pricing: List[ItemPricing] = Field(default_factory=list)
    delivery_timeline: Optional[str] = None
    delivery_days: Optional[int] = None
    payment_terms: Optional[str] = None
    warranty: Optional[str] = None
    validity_period: Optional[str] = None
    conditions: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("item_pricing", "conditions", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v


class VendorProposal(CamelModel):
    """One vendor's parsed reply, as handed to the comparison engine."""
    vendor_id: str
    vendor_name: str = "Unknown Vendor"
    parsed_data: ProposalExtraction = Field(default_factory=ProposalExtraction)


class VendorScore(CamelModel):
    vendor_id: str
    vendor_name: str = "Unknown Vendor"
    price_score: int = 0
    delivery_score: int = 0
    terms_score: int = 0
    overall_score: int = 0
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("pros", "cons", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v

    @field_validator("price_score", "delivery_score", "terms_score", "overall_score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)

    @field_validator("vendor_id", mode="before")
    @classmethod
    def id_as_str(cls, v):
        return str(v)


class ComparisonSummary(CamelModel):
    summary: str = ""
    price_analysis: str = ""
    delivery_analysis: str = ""
    terms_analysis: str = ""


class Recommendation(CamelModel):
    recommended_vendor_id: Optional[str] = None
    recommended_vendor_name: Optional[str] = None
    reasoning: str = ""
    risks: List[str] = Field(default_factory=list)
    alternative_option: Optional[str] = None

    @field_validator("risks", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v


class ComparisonResult(CamelModel):
    comparison: Optional[ComparisonSummary] = None
    vendor_scores: List[VendorScore] = Field(default_factory=list)
    recommendation: Recommendation

    @field_validator("vendor_scores", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return [] if v is None else v


class EmailContent(CamelModel):
    subject: str
    body: str


class Envelope(CamelModel, Generic[T]):
    """Uniform result wrapper. Callers branch on `success` before touching `data`."""
    success: bool
    data: Optional[T] = None
    used_fallback: bool = False
    error: Optional[str] = None


# --- mail transport ---

class Attachment(CamelModel):
    filename: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    path: Optional[str] = None
    content: Optional[bytes] = Field(None, exclude=True)


class SendResult(CamelModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class InboundEmail(CamelModel):
    subject: str = ""
    from_address: str = ""
    date: Optional[datetime] = None
    text: Optional[str] = None
    html: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)


# --- stored records ---

RFPStatus = Literal["draft", "sent", "responses_received", "evaluated", "awarded", "closed"]
ProposalStatus = Literal["received", "parsed", "evaluated", "selected", "rejected"]


class RFPCreateRequest(CamelModel):
    natural_language_input: str = ""

    @field_validator("natural_language_input", mode="before")
    @classmethod
    def blank_input(cls, v):
        return "" if v is None else v


class RFP(ExtractionResult):
    id: str
    original_input: str
    deadline: Optional[datetime] = None
    status: RFPStatus = "draft"
    selected_vendors: List[str] = Field(default_factory=list)
    sent_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class VendorCreate(CamelModel):
    name: str
    email: EmailStr
    company: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    categories: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v):
        return v.lower()


class Vendor(VendorCreate):
    id: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BulkVendorsRequest(CamelModel):
    vendors: List[Dict[str, Any]]


class SelectVendorsRequest(CamelModel):
    vendor_ids: List[str]


class ProposalCreate(CamelModel):
    rfp_id: str
    vendor_id: str
    email_subject: Optional[str] = None
    email_body: Optional[str] = None


class ProposalSimulate(CamelModel):
    rfp_id: str
    vendor_id: str
    proposal_text: str


class CheckEmailsRequest(CamelModel):
    rfp_id: str


class ProposalScores(CamelModel):
    price_score: Optional[int] = None
    delivery_score: Optional[int] = None
    terms_score: Optional[int] = None
    overall_score: Optional[int] = None
    ai_summary: Optional[str] = None
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class Proposal(CamelModel):
    id: str
    rfp_id: str
    vendor_id: str
    email_subject: Optional[str] = None
    email_body: Optional[str] = None
    email_from: Optional[str] = None
    email_date: Optional[datetime] = None
    parsed_data: Optional[ProposalExtraction] = None
    scores: Optional[ProposalScores] = None
    attachments: List[Attachment] = Field(default_factory=list)
    status: ProposalStatus = "received"
    is_parsing_complete: bool = False
    received_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
