# ai_helpers.py
# Generative parsing with deterministic fallback.
#
# Every operation is a Task: a prompt for the generative service, the pydantic
# shape its JSON must match, and a regex/formula fallback. A Parser runs a task
# and always hands back an Envelope.

import logging
from dataclasses import dataclass
from typing import Callable, List, Type

from pydantic import BaseModel

from . import prompts
from .extraction import extract_proposal, extract_rfp
from .llm import GenerativeService
from .models import (
    ComparisonResult,
    EmailContent,
    Envelope,
    ExtractionResult,
    Item,
    ProposalExtraction,
    VendorProposal,
)
from .scoring import compare_proposals_fallback, rank, single_proposal_result
from .templates import ensure_item_lines, render_rfp_email

log = logging.getLogger(__name__)


def _unchanged(result, *args):
    return result


@dataclass(frozen=True)
class Task:
    name: str
    temperature: float
    target: Type[BaseModel]
    system_prompt: Callable[..., str]
    user_text: Callable[..., str]
    fallback: Callable[..., BaseModel]
    finish: Callable[..., BaseModel] = _unchanged


class Parser:
    def run(self, task: Task, *args) -> Envelope:
        raise NotImplementedError


class FallbackParser(Parser):
    """Regex extraction / formula scoring. No network."""

    def run(self, task, *args):
        try:
            data = task.fallback(*args)
        except Exception as e:
            log.exception("%s: fallback failed", task.name)
            return Envelope(success=False, error=str(e))
        return Envelope(success=True, data=data, used_fallback=True)


class GenerativeParser(Parser):
    """One attempt at the generative service; anything short of a valid reply
    (transport error, timeout, bad JSON, wrong shape) goes to the fallback."""

    def __init__(self, service: GenerativeService, fallback: Parser = None):
        self.service = service
        self.fallback = fallback or FallbackParser()

    def run(self, task, *args):
        try:
            raw = self.service.complete(
                task.system_prompt(*args),
                task.user_text(*args),
                temperature=task.temperature,
                json_only=True,
            )
            data = task.target.model_validate_json(raw)
            data = task.finish(data, *args)
        except Exception as e:
            log.warning("%s: generative service failed (%s), using fallback", task.name, e)
            return self.fallback.run(task, *args)
        return Envelope(success=True, data=data)


def select_parser(service: GenerativeService) -> Parser:
    if service.configured:
        return GenerativeParser(service)
    log.info("Generative service not configured, using fallback")
    return FallbackParser()


# --- RFP extraction ---

def _rfp_placeholder_items(result: ExtractionResult, text: str) -> ExtractionResult:
    if result.items:
        return result
    placeholder = Item(name="Items as specified", quantity=1, specifications=text[:100])
    return result.model_copy(update={"items": [placeholder]})


RFP_TASK = Task(
    name="rfp_extraction",
    temperature=prompts.RFP_EXTRACTION_TEMPERATURE,
    target=ExtractionResult,
    system_prompt=lambda text: prompts.RFP_EXTRACTION_PROMPT,
    user_text=lambda text: text,
    fallback=extract_rfp,
    finish=_rfp_placeholder_items,
)


def parse_rfp_from_text(service: GenerativeService, text: str) -> Envelope:
    """Natural-language purchase request -> ExtractionResult envelope."""
    return select_parser(service).run(RFP_TASK, text)


# --- proposal extraction ---

PROPOSAL_TASK = Task(
    name="proposal_extraction",
    temperature=prompts.PROPOSAL_EXTRACTION_TEMPERATURE,
    target=ProposalExtraction,
    system_prompt=lambda body, subject, context: prompts.proposal_system_prompt(context),
    user_text=lambda body, subject, context: prompts.proposal_user_text(body, subject),
    fallback=lambda body, subject, context: extract_proposal(body),
)


def parse_proposal_from_text(service: GenerativeService, email_body: str,
                             email_subject: str = "", rfp_context: str = "") -> Envelope:
    """Vendor reply email -> ProposalExtraction envelope."""
    return select_parser(service).run(PROPOSAL_TASK, email_body, email_subject or "", rfp_context)


# --- comparison ---

def _rank_generated(result: ComparisonResult, rfp, proposals) -> ComparisonResult:
    return result.model_copy(update={"vendor_scores": rank(result.vendor_scores)})


COMPARISON_TASK = Task(
    name="proposal_comparison",
    temperature=prompts.COMPARISON_TEMPERATURE,
    target=ComparisonResult,
    system_prompt=lambda rfp, proposals: prompts.COMPARISON_PROMPT,
    user_text=prompts.comparison_user_text,
    fallback=compare_proposals_fallback,
    finish=_rank_generated,
)


def compare_proposals(service: GenerativeService, rfp: ExtractionResult,
                      proposals: List[VendorProposal]) -> Envelope:
    """Rank parsed proposals for one RFP.

    No proposals is rejected up front. A single proposal is recommended as-is
    without scoring. Two or more go through the generative service, with the
    formula in scoring.py as fallback.
    """
    if not proposals:
        return Envelope(success=False, error="No parsed proposals available for comparison")
    if len(proposals) == 1:
        return Envelope(success=True, data=single_proposal_result(proposals[0]))
    return select_parser(service).run(COMPARISON_TASK, rfp, proposals)


# --- outbound email ---

EMAIL_TASK = Task(
    name="rfp_email",
    temperature=prompts.EMAIL_TEMPERATURE,
    target=EmailContent,
    system_prompt=lambda rfp, vendor_name: prompts.EMAIL_PROMPT,
    user_text=prompts.email_user_text,
    fallback=render_rfp_email,
    finish=lambda email, rfp, vendor_name: ensure_item_lines(email, rfp.items),
)


def generate_rfp_email(service: GenerativeService, rfp: ExtractionResult, vendor_name: str) -> Envelope:
    return select_parser(service).run(EMAIL_TASK, rfp, vendor_name)
