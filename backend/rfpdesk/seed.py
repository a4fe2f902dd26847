# seed.py
# Populate the vendor list with sample vendors for local testing.
# Usage: python -m rfpdesk.seed

import logging
import uuid

from .config import get_settings
from .log_config import setup_logging
from .models import Vendor, VendorCreate
from .storage import JsonStore

log = logging.getLogger(__name__)

SAMPLE_VENDORS = [
    {"name": "TechPro Solutions", "email": "sales@techpro.com",
     "company": "TechPro Solutions Inc.", "phone": "+1 555-0101",
     "categories": ["IT", "Hardware", "Software"],
     "address": {"city": "San Francisco", "state": "CA", "country": "USA"}},
    {"name": "Global Hardware Distributors", "email": "quotes@globalhw.com",
     "company": "Global Hardware Distributors LLC", "phone": "+1 555-0102",
     "categories": ["Hardware", "Electronics"],
     "address": {"city": "Austin", "state": "TX", "country": "USA"}},
    {"name": "Enterprise Systems Corp", "email": "procurement@enterprise-sys.com",
     "company": "Enterprise Systems Corporation", "phone": "+1 555-0103",
     "categories": ["IT", "Infrastructure", "Cloud"],
     "address": {"city": "Seattle", "state": "WA", "country": "USA"}},
    {"name": "Digital Office Supplies", "email": "orders@digitaloffice.com",
     "company": "Digital Office Supplies Ltd.", "phone": "+1 555-0104",
     "categories": ["Office Equipment", "Hardware"],
     "address": {"city": "New York", "state": "NY", "country": "USA"}},
    {"name": "CloudTech Partners", "email": "hello@cloudtech.io",
     "company": "CloudTech Partners", "phone": "+1 555-0105",
     "categories": ["Cloud", "Software", "Services"],
     "address": {"city": "Denver", "state": "CO", "country": "USA"}},
]


def seed_vendors(store: JsonStore) -> list:
    """Insert sample vendors whose email is not already on file."""
    existing = {v["email"].lower() for v in store.read_json("vendors")}
    created = []
    for data in SAMPLE_VENDORS:
        if data["email"] in existing:
            continue
        vendor = Vendor(id=str(uuid.uuid4()), **VendorCreate(**data).model_dump())
        created.append(store.insert("vendors", vendor.to_json()))
    return created


def main():
    settings = get_settings()
    setup_logging(settings.log_level)
    created = seed_vendors(JsonStore(settings.data_dir))
    log.info("Inserted %d sample vendors", len(created))
    for v in created:
        log.info("  - %s (%s)", v["name"], v["email"])


if __name__ == "__main__":
    main()
