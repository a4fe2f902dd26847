# main.py
import logging
import uuid
from datetime import timedelta
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import ai_helpers, mailer, storage
from .config import get_settings
from .llm import GenerativeService, build_service
from .log_config import setup_logging
from .models import (
    RFP,
    Attachment,
    BulkVendorsRequest,
    CheckEmailsRequest,
    Proposal,
    ProposalCreate,
    ProposalScores,
    ProposalSimulate,
    RFPCreateRequest,
    SelectVendorsRequest,
    Vendor,
    VendorCreate,
    VendorProposal,
    utcnow,
)

log = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.log_level)

app = FastAPI(title="RFP Management API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=settings.frontend_url != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- collaborators (overridden in tests) ---

@lru_cache(maxsize=1)
def get_store() -> storage.JsonStore:
    return storage.JsonStore(get_settings().data_dir)


@lru_cache(maxsize=1)
def get_llm() -> GenerativeService:
    return build_service(get_settings())


def get_mailer() -> mailer.SmtpMailer:
    return mailer.SmtpMailer(get_settings())


def get_poller() -> mailer.ImapPoller:
    return mailer.ImapPoller(get_settings())


# --- plumbing ---

@app.middleware("http")
async def log_requests(request: Request, call_next):
    log.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    body = {"success": False}
    if isinstance(exc.detail, dict):
        body.update(exc.detail)
    else:
        body["message"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={
        "success": False,
        "message": "Invalid request",
        "error": "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()),
    })


def fail(status: int, message: str, error: Optional[str] = None):
    detail = {"message": message}
    if error:
        detail["error"] = error
    raise HTTPException(status_code=status, detail=detail)


def load_rfp(store, rfp_id: str) -> RFP:
    r = store.get("rfps", rfp_id)
    if not r:
        raise HTTPException(status_code=404, detail="RFP not found")
    return RFP.model_validate(r)


def load_vendor(store, vendor_id: str) -> Vendor:
    v = store.get("vendors", vendor_id)
    if not v:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return Vendor.model_validate(v)


def load_proposal(store, proposal_id: str) -> Proposal:
    p = store.get("proposals", proposal_id)
    if not p:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return Proposal.model_validate(p)


def merged(model, current: Dict[str, Any], changes: Dict[str, Any]):
    try:
        return model.model_validate({**current, **changes, "id": current["id"], "updatedAt": utcnow()})
    except ValidationError as e:
        fail(400, "Invalid update", str(e))


def vendor_names(store) -> Dict[str, str]:
    return {v["id"]: v.get("name") for v in store.read_json("vendors")}


def mark_responses_received(store, rfp: RFP):
    if rfp.status == "sent":
        store.update("rfps", rfp.id, {"status": "responses_received", "updatedAt": utcnow().isoformat()})


# --- index ---

@app.get("/")
def index():
    return {
        "name": "AI-Powered RFP Management System API",
        "version": "1.0.0",
        "endpoints": {
            "rfps": "/api/rfps",
            "vendors": "/api/vendors",
            "proposals": "/api/proposals",
            "health": "/api/health",
        },
    }


@app.get("/api/health")
def health():
    return {"status": "ok", "message": "RFP Management API is running", "timestamp": utcnow().isoformat()}


# --- RFP endpoints ---

@app.post("/api/rfps", status_code=201)
def create_rfp(body: RFPCreateRequest, store=Depends(get_store), llm=Depends(get_llm)):
    text = body.natural_language_input
    if not text.strip():
        fail(400, "Natural language input is required")

    result = ai_helpers.parse_rfp_from_text(llm, text)
    if not result.success:
        fail(500, "Failed to parse RFP", result.error)

    parsed = result.data
    rfp = RFP(id=str(uuid.uuid4()), original_input=text, **parsed.model_dump())
    if parsed.delivery_days:
        try:
            rfp.deadline = utcnow() + timedelta(days=parsed.delivery_days)
        except OverflowError:
            log.warning("Delivery of %s days is out of range, leaving deadline unset", parsed.delivery_days)
    store.insert("rfps", rfp.to_json())
    return {"success": True, "message": "RFP created successfully",
            "usedFallback": result.used_fallback, "data": rfp.to_json()}


@app.get("/api/rfps")
def list_rfps(store=Depends(get_store)):
    rfps = sorted(store.read_json("rfps"), key=lambda r: r.get("createdAt", ""), reverse=True)
    return {"success": True, "count": len(rfps), "data": rfps}


@app.get("/api/rfps/{rfp_id}")
def get_rfp(rfp_id: str, store=Depends(get_store)):
    return {"success": True, "data": load_rfp(store, rfp_id).to_json()}


@app.put("/api/rfps/{rfp_id}")
def update_rfp(rfp_id: str, changes: Dict[str, Any], store=Depends(get_store)):
    current = load_rfp(store, rfp_id)
    rfp = merged(RFP, current.to_json(), changes)
    store.update("rfps", rfp_id, rfp.to_json())
    return {"success": True, "message": "RFP updated successfully", "data": rfp.to_json()}


@app.delete("/api/rfps/{rfp_id}")
def delete_rfp(rfp_id: str, store=Depends(get_store)):
    if not store.delete("rfps", rfp_id):
        raise HTTPException(status_code=404, detail="RFP not found")
    store.delete_where("proposals", rfpId=rfp_id)
    return {"success": True, "message": "RFP deleted successfully"}


@app.post("/api/rfps/{rfp_id}/vendors")
def select_vendors(rfp_id: str, body: SelectVendorsRequest, store=Depends(get_store)):
    load_rfp(store, rfp_id)
    known = vendor_names(store)
    if any(vid not in known for vid in body.vendor_ids):
        fail(400, "One or more vendor IDs are invalid")
    updated = store.update("rfps", rfp_id, {"selectedVendors": body.vendor_ids,
                                            "updatedAt": utcnow().isoformat()})
    return {"success": True, "message": "Vendors selected successfully", "data": updated}


@app.post("/api/rfps/{rfp_id}/send")
def send_rfp(rfp_id: str, store=Depends(get_store), llm=Depends(get_llm),
             outbox=Depends(get_mailer)):
    rfp = load_rfp(store, rfp_id)
    if not rfp.selected_vendors:
        fail(400, "No vendors selected for this RFP")

    known = {v["id"]: v for v in store.read_json("vendors")}
    vendors = [Vendor.model_validate(known[vid]) for vid in rfp.selected_vendors if vid in known]
    missing = [vid for vid in rfp.selected_vendors if vid not in known]

    def compose(vendor):
        email = ai_helpers.generate_rfp_email(llm, rfp, vendor.name)
        return email.data if email.success else None

    results = mailer.send_rfp_to_vendors(outbox, vendors, compose)
    for vid in missing:
        log.warning("RFP %s: selected vendor %s no longer exists", rfp_id, vid)
        results.append({"vendorId": vid, "vendorName": None, "email": None,
                        "sent": False, "error": "Vendor not found"})

    sent_at = utcnow().isoformat()
    store.update("rfps", rfp_id, {"status": "sent", "sentAt": sent_at, "updatedAt": sent_at})
    return {"success": True, "message": "RFP sent to vendors",
            "data": {"rfpId": rfp_id, "sentAt": sent_at, "results": results}}


@app.get("/api/rfps/{rfp_id}/proposals")
def list_rfp_proposals(rfp_id: str, store=Depends(get_store)):
    proposals = [p for p in store.read_json("proposals") if p.get("rfpId") == rfp_id]
    proposals.sort(key=lambda p: p.get("receivedAt", ""), reverse=True)
    return {"success": True, "count": len(proposals), "data": proposals}


@app.get("/api/rfps/{rfp_id}/compare")
def compare_proposals(rfp_id: str, store=Depends(get_store), llm=Depends(get_llm)):
    rfp = load_rfp(store, rfp_id)
    names = vendor_names(store)
    parsed = [Proposal.model_validate(p) for p in store.read_json("proposals")
              if p.get("rfpId") == rfp_id and p.get("isParsingComplete")]
    candidates = [
        VendorProposal(vendor_id=p.vendor_id, vendor_name=names.get(p.vendor_id) or "Unknown Vendor",
                       parsed_data=p.parsed_data or {})
        for p in parsed
    ]

    if not candidates:
        fail(400, "No parsed proposals available for comparison")

    result = ai_helpers.compare_proposals(llm, rfp, candidates)
    if not result.success:
        fail(500, "Failed to compare proposals", result.error)

    if len(candidates) == 1:
        data = result.data.to_json()
        data["proposals"] = [p.to_json() for p in parsed]
        return {"success": True, "message": "Only one proposal available", "data": data}

    by_vendor = {p.vendor_id: p for p in parsed}
    for score in result.data.vendor_scores:
        proposal = by_vendor.get(score.vendor_id)
        if proposal is None:
            continue
        scores = ProposalScores(
            price_score=score.price_score,
            delivery_score=score.delivery_score,
            terms_score=score.terms_score,
            overall_score=score.overall_score,
            ai_summary=score.summary,
            pros=score.pros,
            cons=score.cons,
        )
        store.update("proposals", proposal.id, {"scores": scores.to_json(), "status": "evaluated",
                                                "updatedAt": utcnow().isoformat()})

    store.update("rfps", rfp_id, {"status": "evaluated", "updatedAt": utcnow().isoformat()})
    return {"success": True, "usedFallback": result.used_fallback, "data": result.data.to_json()}


# --- Vendor endpoints ---

def email_taken(store, email: str, exclude_id: Optional[str] = None) -> bool:
    email = email.lower()
    return any(v.get("email", "").lower() == email and v.get("id") != exclude_id
               for v in store.read_json("vendors"))


@app.post("/api/vendors", status_code=201)
def create_vendor(body: VendorCreate, store=Depends(get_store)):
    if email_taken(store, body.email):
        fail(400, "A vendor with this email already exists")
    vendor = Vendor(id=str(uuid.uuid4()), **body.model_dump())
    store.insert("vendors", vendor.to_json())
    return {"success": True, "message": "Vendor created successfully", "data": vendor.to_json()}


@app.post("/api/vendors/bulk", status_code=201)
def bulk_create_vendors(body: BulkVendorsRequest, store=Depends(get_store)):
    created, failed = [], []
    for data in body.vendors:
        if not data.get("name") or not data.get("email"):
            failed.append({"data": data, "error": "Name and email are required"})
            continue
        try:
            vendor_in = VendorCreate.model_validate(data)
        except ValidationError as e:
            failed.append({"data": data, "error": str(e)})
            continue
        if email_taken(store, vendor_in.email):
            failed.append({"data": data, "error": "Email already exists"})
            continue
        vendor = Vendor(id=str(uuid.uuid4()), **vendor_in.model_dump())
        created.append(store.insert("vendors", vendor.to_json()))
    return {"success": True,
            "message": f"Created {len(created)} vendors, {len(failed)} failed",
            "data": {"created": created, "failed": failed}}


@app.get("/api/vendors")
def list_vendors(search: Optional[str] = None, category: Optional[str] = None,
                 is_active: Optional[bool] = Query(None, alias="isActive"),
                 store=Depends(get_store)):
    vendors = store.read_json("vendors")
    if search:
        needle = search.lower()
        vendors = [v for v in vendors
                   if any(needle in (v.get(f) or "").lower() for f in ("name", "email", "company"))]
    if category:
        vendors = [v for v in vendors if category in (v.get("categories") or [])]
    if is_active is not None:
        vendors = [v for v in vendors if v.get("isActive", True) == is_active]
    vendors.sort(key=lambda v: v.get("name", ""))
    return {"success": True, "count": len(vendors), "data": vendors}


@app.get("/api/vendors/{vendor_id}")
def get_vendor(vendor_id: str, store=Depends(get_store)):
    return {"success": True, "data": load_vendor(store, vendor_id).to_json()}


@app.put("/api/vendors/{vendor_id}")
def update_vendor(vendor_id: str, changes: Dict[str, Any], store=Depends(get_store)):
    current = load_vendor(store, vendor_id)
    if changes.get("email") and email_taken(store, changes["email"], exclude_id=vendor_id):
        fail(400, "A vendor with this email already exists")
    vendor = merged(Vendor, current.to_json(), changes)
    store.update("vendors", vendor_id, vendor.to_json())
    return {"success": True, "message": "Vendor updated successfully", "data": vendor.to_json()}


@app.delete("/api/vendors/{vendor_id}")
def delete_vendor(vendor_id: str, store=Depends(get_store)):
    if not store.delete("vendors", vendor_id):
        raise HTTPException(status_code=404, detail="Vendor not found")
    for rfp in store.read_json("rfps"):
        selected = rfp.get("selectedVendors") or []
        if vendor_id in selected:
            store.update("rfps", rfp["id"], {"selectedVendors": [v for v in selected if v != vendor_id],
                                             "updatedAt": utcnow().isoformat()})
    return {"success": True, "message": "Vendor deleted successfully"}


# --- Proposal endpoints ---

def rfp_context(rfp: Optional[RFP]) -> str:
    if rfp is None:
        return "Unknown RFP"
    return f"{rfp.title}: {rfp.description or ''}"


def find_proposal(store, rfp_id: str, vendor_id: str) -> Optional[Dict[str, Any]]:
    return next((p for p in store.read_json("proposals")
                 if p.get("rfpId") == rfp_id and p.get("vendorId") == vendor_id), None)


@app.post("/api/proposals", status_code=201)
def create_proposal(body: ProposalCreate, store=Depends(get_store)):
    rfp = load_rfp(store, body.rfp_id)
    vendor = load_vendor(store, body.vendor_id)
    if find_proposal(store, rfp.id, vendor.id):
        fail(400, "A proposal from this vendor already exists for this RFP")

    proposal = Proposal(
        id=str(uuid.uuid4()),
        rfp_id=rfp.id,
        vendor_id=vendor.id,
        email_subject=body.email_subject,
        email_body=body.email_body,
        email_from=vendor.email,
        status="received",
    )
    store.insert("proposals", proposal.to_json())
    mark_responses_received(store, rfp)
    return {"success": True, "message": "Proposal created successfully", "data": proposal.to_json()}


@app.post("/api/proposals/simulate", status_code=201)
def simulate_proposal(body: ProposalSimulate, store=Depends(get_store), llm=Depends(get_llm)):
    rfp_data = store.get("rfps", body.rfp_id)
    vendor_data = store.get("vendors", body.vendor_id)
    if not rfp_data or not vendor_data:
        raise HTTPException(status_code=404, detail="RFP or Vendor not found")
    rfp, vendor = RFP.model_validate(rfp_data), Vendor.model_validate(vendor_data)

    proposal = Proposal(
        id=str(uuid.uuid4()),
        rfp_id=rfp.id,
        vendor_id=vendor.id,
        email_subject=f"RE: RFP - {rfp.title}",
        email_body=body.proposal_text,
        email_from=vendor.email,
        email_date=utcnow(),
    )
    result = ai_helpers.parse_proposal_from_text(llm, body.proposal_text, proposal.email_subject,
                                                 rfp_context(rfp))
    if result.success:
        proposal.parsed_data = result.data
        proposal.is_parsing_complete = True
        proposal.status = "parsed"
    store.insert("proposals", proposal.to_json())
    mark_responses_received(store, rfp)

    data = proposal.to_json()
    data["vendor"] = {"name": vendor.name, "email": vendor.email, "company": vendor.company}
    return {"success": True, "message": "Proposal simulated and parsed successfully",
            "usedFallback": result.used_fallback, "data": data}


@app.post("/api/proposals/check-emails")
def check_emails(body: CheckEmailsRequest, store=Depends(get_store), inbox=Depends(get_poller)):
    rfp = load_rfp(store, body.rfp_id)
    vendors = [Vendor.model_validate(v) for v in store.read_json("vendors")
               if v["id"] in rfp.selected_vendors]
    since = rfp.sent_at or rfp.created_at

    result = mailer.check_for_vendor_responses(inbox, [v.email for v in vendors], since)
    if not result.success:
        fail(500, "Failed to check emails", result.error)

    by_email = {v.email.lower(): v for v in vendors}
    created = []
    for msg in result.data:
        vendor = by_email.get(msg.from_address.lower())
        if vendor is None or find_proposal(store, rfp.id, vendor.id):
            continue
        proposal = Proposal(
            id=str(uuid.uuid4()),
            rfp_id=rfp.id,
            vendor_id=vendor.id,
            email_subject=msg.subject,
            email_body=msg.text or msg.html,
            email_from=msg.from_address,
            email_date=msg.date,
            attachments=[Attachment(filename=a.filename, content_type=a.content_type, size=a.size)
                         for a in msg.attachments],
        )
        created.append(store.insert("proposals", proposal.to_json()))

    if created:
        mark_responses_received(store, rfp)
    return {
        "success": True,
        "message": f"Found {len(result.data)} emails, created {len(created)} new proposals",
        "data": {"emailsFound": len(result.data), "proposalsCreated": len(created), "proposals": created},
    }


@app.get("/api/proposals")
def list_proposals(rfp_id: Optional[str] = Query(None, alias="rfpId"),
                   vendor_id: Optional[str] = Query(None, alias="vendorId"),
                   status: Optional[str] = None, store=Depends(get_store)):
    proposals = store.read_json("proposals")
    if rfp_id:
        proposals = [p for p in proposals if p.get("rfpId") == rfp_id]
    if vendor_id:
        proposals = [p for p in proposals if p.get("vendorId") == vendor_id]
    if status:
        proposals = [p for p in proposals if p.get("status") == status]
    proposals.sort(key=lambda p: p.get("receivedAt", ""), reverse=True)
    return {"success": True, "count": len(proposals), "data": proposals}


@app.get("/api/proposals/{proposal_id}")
def get_proposal(proposal_id: str, store=Depends(get_store)):
    return {"success": True, "data": load_proposal(store, proposal_id).to_json()}


@app.put("/api/proposals/{proposal_id}")
def update_proposal(proposal_id: str, changes: Dict[str, Any], store=Depends(get_store)):
    current = load_proposal(store, proposal_id)
    proposal = merged(Proposal, current.to_json(), changes)
    store.update("proposals", proposal_id, proposal.to_json())
    return {"success": True, "message": "Proposal updated successfully", "data": proposal.to_json()}


@app.delete("/api/proposals/{proposal_id}")
def delete_proposal(proposal_id: str, store=Depends(get_store)):
    if not store.delete("proposals", proposal_id):
        raise HTTPException(status_code=404, detail="Proposal not found")
    return {"success": True, "message": "Proposal deleted successfully"}


@app.post("/api/proposals/{proposal_id}/parse")
def parse_proposal(proposal_id: str, store=Depends(get_store), llm=Depends(get_llm)):
    proposal = load_proposal(store, proposal_id)
    if not proposal.email_body:
        fail(400, "No email body to parse")

    rfp_data = store.get("rfps", proposal.rfp_id)
    rfp = RFP.model_validate(rfp_data) if rfp_data else None
    result = ai_helpers.parse_proposal_from_text(llm, proposal.email_body,
                                                 proposal.email_subject or "", rfp_context(rfp))
    if not result.success:
        fail(500, "Failed to parse proposal", result.error)

    proposal.parsed_data = result.data
    proposal.is_parsing_complete = True
    proposal.status = "parsed"
    proposal.updated_at = utcnow()
    store.update("proposals", proposal_id, proposal.to_json())
    return {"success": True, "message": "Proposal parsed successfully",
            "usedFallback": result.used_fallback, "data": proposal.to_json()}
