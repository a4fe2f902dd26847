"""JSON store, sample data, settings and logging setup."""
import logging
from pathlib import Path

import pytest

from rfpdesk import log_config, storage
from rfpdesk.config import PLACEHOLDER_OPENAI_KEY, Settings
from rfpdesk.seed import SAMPLE_VENDORS, seed_vendors
from rfpdesk.storage import COLLECTIONS, JsonStore


class TestJsonStore:

    def test_collections_start_empty(self, store):
        for key in COLLECTIONS:
            assert store.read_json(key) == []
            assert store.files[key].read_text() == "[]"

    def test_insert_assigns_id(self, store):
        row = store.insert("vendors", {"name": "Acme"})
        assert row["id"]
        assert store.get("vendors", row["id"]) == row
        kept = store.insert("vendors", {"id": "fixed", "name": "B"})
        assert kept["id"] == "fixed"

    def test_update_merges_and_keeps_id(self, store):
        row = store.insert("rfps", {"id": "r1", "title": "Old", "status": "draft"})
        updated = store.update("rfps", "r1", {"title": "New", "id": "hijack"})
        assert updated == {"id": "r1", "title": "New", "status": "draft"}
        assert store.get("rfps", row["id"])["title"] == "New"
        assert store.update("rfps", "missing", {"title": "x"}) is None

    def test_delete(self, store):
        store.insert("proposals", {"id": "p1"})
        assert store.delete("proposals", "p1") is True
        assert store.delete("proposals", "p1") is False

    def test_delete_where(self, store):
        for pid, rfp in (("p1", "a"), ("p2", "b"), ("p3", "a")):
            store.insert("proposals", {"id": pid, "rfpId": rfp})
        assert store.delete_where("proposals", rfpId="a") == 2
        assert [p["id"] for p in store.read_json("proposals")] == ["p2"]

    def test_corrupt_file_reads_empty(self, store):
        store.files["rfps"].write_text("{not json")
        assert store.read_json("rfps") == []

    def test_write_leaves_no_temp_files(self, store):
        store.insert("rfps", {"id": "r1"})
        store.update("rfps", "r1", {"title": "x"})
        assert sorted(p.name for p in store.data_dir.iterdir()) == [
            "proposals.json", "rfps.json", "vendors.json"]

    def test_failed_write_keeps_previous_file(self, store, monkeypatch):
        store.insert("vendors", {"id": "v1"})

        def broken_replace(src, dst):
            raise OSError("disk full")
        monkeypatch.setattr(storage.os, "replace", broken_replace)

        with pytest.raises(OSError):
            store.insert("vendors", {"id": "v2"})
        assert store.read_json("vendors") == [{"id": "v1"}]
        assert not list(store.data_dir.glob("*.tmp"))

    def test_reopen_keeps_data(self, tmp_path):
        JsonStore(tmp_path).insert("vendors", {"id": "v1"})
        assert JsonStore(tmp_path).get("vendors", "v1") == {"id": "v1"}


class TestSeed:

    def test_seed_is_idempotent(self, store):
        created = seed_vendors(store)
        assert len(created) == len(SAMPLE_VENDORS)
        assert all(v["isActive"] for v in created)
        assert seed_vendors(store) == []
        assert len(store.read_json("vendors")) == len(SAMPLE_VENDORS)


class TestSettings:

    @pytest.mark.parametrize("key,configured", [
        (None, False), ("", False), (PLACEHOLDER_OPENAI_KEY, False), ("sk-real", True),
    ])
    def test_openai_configured(self, key, configured):
        assert Settings(openai_api_key=key).openai_configured is configured

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)  # no stray .env
        monkeypatch.setenv("OPENAI_API_KEY", "sk-abc")
        monkeypatch.setenv("LLM_TIMEOUT", "2.5")
        monkeypatch.setenv("SMTP_PORT", "2525")
        monkeypatch.setenv("EMAIL_HOST", "imap.corp")
        monkeypatch.setenv("EMAIL_USER", "")
        monkeypatch.setenv("RFPDESK_DATA_DIR", str(tmp_path / "d"))
        s = Settings.from_env()
        assert s.openai_api_key == "sk-abc"
        assert s.llm_timeout == 2.5
        assert s.smtp_port == 2525
        assert s.imap_host == "imap.corp"
        assert s.email_user is None
        assert s.data_dir == Path(tmp_path / "d")


class TestLogging:

    def test_setup_does_not_stack_handlers(self):
        root = logging.getLogger()
        before = [h for h in root.handlers if not getattr(h, "_rfpdesk", False)]
        log_config.setup_logging("DEBUG")
        log_config.setup_logging("WARNING")
        ours = [h for h in root.handlers if getattr(h, "_rfpdesk", False)]
        assert len(ours) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING
        assert [h for h in root.handlers if not getattr(h, "_rfpdesk", False)] == before

    def test_plain_console_line(self):
        record = logging.LogRecord("rfpdesk.main", logging.ERROR, __file__, 1, "boom %s", ("x",), None)
        line = log_config.ConsoleFormatter(color=False).format(record)
        assert line.endswith("ERROR   rfpdesk.main: boom x")
        assert "\033[" not in line

    def test_tinted_by_level(self):
        fmt = log_config.ConsoleFormatter(color=True)
        warn = logging.LogRecord("rfpdesk", logging.WARNING, __file__, 1, "slow", (), None)
        info = logging.LogRecord("rfpdesk", logging.INFO, __file__, 1, "ok", (), None)
        assert fmt.format(warn).startswith("\033[33m")
        assert fmt.format(warn).endswith("\033[0m")
        assert "\033[" not in fmt.format(info)
