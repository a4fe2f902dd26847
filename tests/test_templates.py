"""Fallback RFP email."""
from rfpdesk.models import EmailContent, ExtractionResult
from rfpdesk.templates import ensure_item_lines, item_line, render_rfp_email


def make_rfp(**overrides):
    data = {
        "title": "Laptop and Monitor Procurement",
        "description": "Office refresh",
        "budget": 10000,
        "deliveryDays": 14,
        "items": [
            {"name": "Laptop", "quantity": 5, "specifications": "16GB RAM"},
            {"name": "Monitor", "quantity": 2, "specifications": "24 inch"},
            {"name": "Chair", "quantity": 10, "specifications": ""},
        ],
        "requirements": {"paymentTerms": "Net 30", "warranty": "2 years warranty"},
    }
    data.update(overrides)
    return ExtractionResult.model_validate(data)


def item_lines(body):
    return [line for line in body.splitlines() if line.startswith("  • ")]


class TestRenderEmail:

    def test_one_line_per_item(self):
        rfp = make_rfp()
        lines = item_lines(render_rfp_email(rfp, "Acme").body)
        assert lines == [
            "  • Laptop: Quantity 5 (16GB RAM)",
            "  • Monitor: Quantity 2 (24 inch)",
            "  • Chair: Quantity 10",
        ]
        assert len(lines) == len(rfp.items)

    def test_no_items(self):
        body = render_rfp_email(make_rfp(items=[]), "Acme").body
        assert item_lines(body) == ["  • As per requirements"]

    def test_sections(self):
        email = render_rfp_email(make_rfp(), "Acme")
        assert email.subject == "Request for Proposal: Laptop and Monitor Procurement"
        body = email.body
        assert body.startswith("Dear Acme,\n")
        assert "PROJECT: Laptop and Monitor Procurement\n\nDESCRIPTION: Office refresh\n" in body
        assert "BUDGET: $10,000\n" in body
        assert "DELIVERY REQUIREMENT: Within 14 days\n" in body
        assert "PAYMENT TERMS: Net 30\n" in body
        assert "WARRANTY: 2 years warranty\n" in body
        assert "6. Any conditions or special requirements" in body
        assert body.endswith("Best regards,\nProcurement Team")

    def test_defaults_for_missing_fields(self):
        body = render_rfp_email(
            make_rfp(description="", budget=None, deliveryDays=None, requirements={}), "Acme").body
        assert "DESCRIPTION" not in body
        assert "BUDGET: Open to competitive quotes" in body
        assert "DELIVERY REQUIREMENT: To be discussed" in body
        assert "PAYMENT TERMS: Standard terms" in body
        assert "WARRANTY: Standard warranty expected" in body


class TestEnsureItemLines:

    def test_appends_missing_items(self):
        rfp = make_rfp()
        generated = EmailContent(subject="RFP", body="Hello,\nLaptop: Quantity 5 (16GB RAM)\nThanks")
        fixed = ensure_item_lines(generated, rfp.items)
        assert fixed.body.startswith(generated.body)
        assert item_line(rfp.items[1]) in fixed.body
        assert item_line(rfp.items[2]) in fixed.body
        assert fixed.body.count("Laptop: Quantity 5") == 1

    def test_complete_body_untouched(self):
        rfp = make_rfp()
        email = render_rfp_email(rfp, "Acme")
        assert ensure_item_lines(email, rfp.items) is email
