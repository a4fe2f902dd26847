# mailer.py
# SMTP send + IMAP poll for vendor correspondence.

import email
import imaplib
import logging
import smtplib
from datetime import date, datetime
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.policy import default as default_policy
from email.utils import make_msgid, parseaddr
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import Settings
from .models import Attachment, EmailContent, Envelope, InboundEmail, SendResult, Vendor

log = logging.getLogger(__name__)

SENDER_NAME = "RFP Management System"


class SmtpMailer:
    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.email_user
        self.password = settings.email_pass

    def build_message(self, to: str, subject: str, body: str,
                      attachments: Iterable[Attachment] = ()) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["From"] = f'"{SENDER_NAME}" <{self.user}>'
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()

        alt = MIMEMultipart("alternative")
        alt.attach(MIMEText(body, "plain"))
        alt.attach(MIMEText(body.replace("\n", "<br>"), "html"))
        msg.attach(alt)

        for att in attachments:
            path = Path(att.path)
            part = MIMEApplication(path.read_bytes(), Name=att.filename or path.name)
            part["Content-Disposition"] = f'attachment; filename="{att.filename or path.name}"'
            msg.attach(part)
        return msg

    def send(self, to: str, subject: str, body: str,
             attachments: Iterable[Attachment] = ()) -> SendResult:
        try:
            msg = self.build_message(to, subject, body, attachments)
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                server.starttls()
                if self.user:
                    server.login(self.user, self.password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error("Error sending email to %s: %s", to, e)
            return SendResult(success=False, error=str(e))
        log.info("Email sent: %s -> %s (%s)", subject[:50], to, msg["Message-ID"])
        return SendResult(success=True, message_id=msg["Message-ID"])


def send_rfp_to_vendors(mailer, vendors: List[Vendor],
                        compose: Callable[[Vendor], Optional[EmailContent]]) -> List[dict]:
    """Send each vendor its own message, one at a time.

    `compose` returns the message for a vendor, or None when it could not be
    written. A failed vendor is recorded and the loop moves on.
    """
    results = []
    for vendor in vendors:
        entry = {"vendorId": vendor.id, "vendorName": vendor.name, "email": vendor.email}
        content = compose(vendor)
        if content is None:
            entry.update(sent=False, error="Failed to generate email content")
        else:
            result = mailer.send(vendor.email, content.subject, content.body)
            entry.update(sent=result.success, messageId=result.message_id, error=result.error)
        results.append(entry)
    return results


def _imap_date(since) -> str:
    if isinstance(since, datetime):
        since = since.date()
    if isinstance(since, date):
        return since.strftime("%d-%b-%Y")
    return str(since)


def parse_message(raw: bytes) -> InboundEmail:
    msg = email.message_from_bytes(raw, policy=default_policy)

    text_part = msg.get_body(preferencelist=("plain",))
    html_part = msg.get_body(preferencelist=("html",))
    sent = None
    if msg["Date"]:
        try:
            sent = msg["Date"].datetime
        except (AttributeError, TypeError, ValueError):
            sent = None

    attachments = []
    for part in msg.iter_attachments():
        content = part.get_payload(decode=True) or b""
        attachments.append(Attachment(
            filename=part.get_filename(),
            content_type=part.get_content_type(),
            size=len(content),
            content=content,
        ))

    return InboundEmail(
        subject=str(msg["Subject"] or ""),
        from_address=parseaddr(str(msg["From"] or ""))[1],
        date=sent,
        text=text_part.get_content() if text_part is not None else None,
        html=html_part.get_content() if html_part is not None else None,
        attachments=attachments,
    )


class ImapPoller:
    def __init__(self, settings: Settings, folder: str = "INBOX"):
        self.host = settings.imap_host
        self.port = settings.imap_port
        self.user = settings.email_user
        self.password = settings.email_pass
        self.folder = folder

    def fetch_unseen_since(self, since=None) -> List[InboundEmail]:
        """Unread messages (optionally since a date). Fetching marks them seen."""
        criteria = ["UNSEEN"]
        if since:
            criteria += ["SINCE", _imap_date(since)]

        mail = imaplib.IMAP4_SSL(self.host, self.port)
        try:
            mail.login(self.user or "", self.password or "")
            mail.select(self.folder)
            status, data = mail.search(None, *criteria)
            if status != "OK":
                log.warning("IMAP search failed: %s", status)
                return []
            emails = []
            for num in data[0].split():
                status, parts = mail.fetch(num, "(RFC822)")
                if status != "OK" or not parts or not isinstance(parts[0], tuple):
                    continue
                emails.append(parse_message(parts[0][1]))
            return emails
        finally:
            try:
                mail.logout()
            except imaplib.IMAP4.error:
                pass


def check_for_vendor_responses(poller, vendor_emails: Iterable[str], since=None) -> Envelope:
    """Unseen mail whose sender is one of the known vendor addresses."""
    known = {e.lower() for e in vendor_emails if e}
    try:
        emails = poller.fetch_unseen_since(since)
    except (imaplib.IMAP4.error, OSError) as e:
        log.error("Error checking for vendor responses: %s", e)
        return Envelope(success=False, error=str(e))
    responses = [m for m in emails if m.from_address.lower() in known]
    return Envelope(success=True, data=responses)
