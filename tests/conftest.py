"""
Shared pytest fixtures: isolated JSON store, fake generative service,
fake mail transport, and a FastAPI test client wired to all of them.
"""
import json

import pytest
from fastapi.testclient import TestClient

from rfpdesk import main
from rfpdesk.llm import GenerativeService, GenerativeServiceError, UnconfiguredService
from rfpdesk.models import SendResult
from rfpdesk.storage import JsonStore


class FakeService(GenerativeService):
    """Configured service that replays queued replies.

    A dict/list reply is sent back as JSON, a str as-is, an exception is raised.
    """
    configured = True

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, system_instructions, user_text, *, temperature, json_only=True):
        self.calls.append({"system": system_instructions, "user": user_text,
                           "temperature": temperature, "json_only": json_only})
        if not self.replies:
            raise GenerativeServiceError("no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return reply


class CountingUnconfigured(UnconfiguredService):
    def __init__(self):
        self.calls = []

    def complete(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return super().complete(*args, **kwargs)


class FakeMailer:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, to, subject, body, attachments=()):
        if to in self.fail_for:
            return SendResult(success=False, error="550 mailbox unavailable")
        self.sent.append({"to": to, "subject": subject, "body": body})
        return SendResult(success=True, message_id=f"<{len(self.sent)}@test>")


class FakePoller:
    def __init__(self, emails=(), error=None):
        self.emails = list(emails)
        self.error = error
        self.calls = []

    def fetch_unseen_since(self, since=None):
        self.calls.append(since)
        if self.error:
            raise self.error
        return list(self.emails)


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "data")


@pytest.fixture
def llm():
    return CountingUnconfigured()


@pytest.fixture
def fake_mailer():
    return FakeMailer()


@pytest.fixture
def fake_poller():
    return FakePoller()


@pytest.fixture
def client(store, llm, fake_mailer, fake_poller):
    main.app.dependency_overrides[main.get_store] = lambda: store
    main.app.dependency_overrides[main.get_llm] = lambda: llm
    main.app.dependency_overrides[main.get_mailer] = lambda: fake_mailer
    main.app.dependency_overrides[main.get_poller] = lambda: fake_poller
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()
