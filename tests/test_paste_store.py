"""Tests for PasteStore.

Tests paste saving with deduplication, retrieval with lazy expiry, and
deletion by key.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from hypothesis import given, strategies as st, settings, HealthCheck

from pastebox.fingerprint import fingerprint
from pastebox.id_generator import IDGenerator
from pastebox.paste_store import (
    AuthorizationError,
    InvalidPasteError,
    InvalidURLError,
    PasteStore,
)
from pastebox.storage import MemoryStorage, PasteRecord


class TestSave:
    """Unit tests for PasteStore.save."""

    def test_save_empty_content(self, paste_store):
        res = paste_store.save("", "", "")

        assert res.success
        assert res.size == 0
        assert res.sha1 == "2jmj7l5rSw0yVb_vlWAYkK_YBwk="

    def test_identical_saves_return_same_paste(self, paste_store):
        res = paste_store.save("ABCdef123_i", "", "")
        res2 = paste_store.save("ABCdef123_i", "", "")

        assert res.id == res2.id
        assert res.url == res2.url
        assert res.sha1 == res2.sha1
        assert res.size == res2.size
        assert res.delkey == res2.delkey

    def test_duplicate_save_does_not_insert(self, paste_store, temp_storage):
        paste_store.save("ABCdef123_i")

        with patch.object(temp_storage, "insert") as insert:
            paste_store.save("ABCdef123_i")

        insert.assert_not_called()

    def test_different_content_gets_different_paste(self, paste_store):
        res = paste_store.save("ABCdef123_i", "", "")
        res3 = paste_store.save("ABCdef123_I", "", "")

        assert res != res3
        assert res.id != res3.id
        assert res.sha1 != res3.sha1

    def test_result_fields(self, temp_storage, clock):
        store = PasteStore(
            storage=temp_storage,
            id_generator=IDGenerator(id_length=10),
            address="https://paste.example.com/",
            clock=clock,
        )

        res = store.save("a < b")

        assert len(res.id) == 10
        assert res.url == f"https://paste.example.com/{res.id}"
        assert res.sha1 == fingerprint("a < b")
        # Size counts the escaped content
        assert res.size == len("a &lt; b")
        assert len(res.delkey) == 40
        assert res.to_dict() == {
            "success": True,
            "id": res.id,
            "sha1": res.sha1,
            "url": res.url,
            "size": res.size,
            "delkey": res.delkey,
        }

    def test_content_is_escaped_in_storage(self, paste_store, temp_storage):
        res = paste_store.save("<script>alert('x')</script>")

        stored = temp_storage.load(res.id)
        assert "<script>" not in stored.content
        assert stored.fingerprint == fingerprint("<script>alert('x')</script>")

    def test_expiry_is_resolved_from_clock(self, paste_store, temp_storage, clock):
        res = paste_store.save("expiring", "PT5M")

        assert temp_storage.load(res.id).expiry == clock.now + timedelta(minutes=5)

    def test_invalid_expiry_still_saves(self, paste_store, temp_storage, clock):
        res = paste_store.save("bad expiry", "soon")

        assert temp_storage.load(res.id).expiry == clock.now + timedelta(days=7300)

    def test_url_paste_requires_url(self, paste_store, temp_storage):
        with pytest.raises(InvalidURLError, match="Invalid URL"):
            paste_store.save("not a url", "", "url")

        assert temp_storage.find_by_fingerprint(fingerprint("not a url")) is None

    def test_url_paste(self, paste_store):
        res = paste_store.save("https://example.com/page", "", "url")

        assert paste_store.get(res.id) == ("https://example.com/page", "url")

    def test_non_url_language_skips_url_check(self, paste_store):
        assert paste_store.save("print('hi')", "", "python").success

    def test_id_collision_at_insert_is_retried(self, temp_storage, clock):
        """An ID taken between generation and insert is regenerated."""
        generator = IDGenerator(id_length=6)
        store = PasteStore(temp_storage, generator, clock=clock)
        first = store.save("first")

        ids = iter([first.id, "fresh1"])
        with patch.object(generator, "generate", side_effect=lambda _: next(ids)):
            res = store.save("second")

        assert res.id == "fresh1"
        assert store.get(first.id) == ("first", "")
        assert store.get("fresh1") == ("second", "")

    def test_huge_expiry_is_clamped_not_fatal(self, paste_store, temp_storage, clock):
        res = paste_store.save("huge", "PT99999999999999H")

        assert temp_storage.load(res.id).expiry == clock.now + timedelta(days=7300)

    @pytest.mark.parametrize("backend", ["sqlite3", "memory"])
    def test_dedup_prefers_live_duplicate(self, backend, temp_storage, clock):
        """With two rows for the same content, the live one is returned."""
        storage = temp_storage if backend == "sqlite3" else MemoryStorage()
        store = PasteStore(storage, IDGenerator(), clock=clock)
        sha = fingerprint("raced")
        storage.insert(
            PasteRecord("oldrow", sha, "raced", clock.now - timedelta(minutes=1))
        )
        storage.insert(
            PasteRecord("liverow", sha, "raced", clock.now + timedelta(days=1), "", "k" * 40)
        )

        res = store.save("raced")

        assert res.id == "liverow"
        assert res.delkey == "k" * 40

    def test_dedup_ignores_expired_paste(self, paste_store, temp_storage, clock):
        res = paste_store.save("short lived", "PT1M")
        clock.advance(timedelta(minutes=2))

        res2 = paste_store.save("short lived", "PT1M")

        assert res2.id != res.id
        assert not temp_storage.exists(res.id)
        assert paste_store.get(res2.id) == ("short lived", "")


class TestGet:
    """Unit tests for PasteStore.get."""

    def test_get_roundtrip(self, paste_store):
        content = "Line 1\nLine 2\t<b>&amp;</b> \"quoted\" 'single'"
        res = paste_store.save(content, "", "python")

        assert paste_store.get(res.id) == (content, "python")

    @pytest.mark.parametrize(
        "paste_id", ["favicon.ico", "1234567890123456789012345678901", "../etc"]
    )
    def test_malformed_id_does_not_touch_storage(self, paste_id, temp_storage, clock):
        storage = MemoryStorage()
        store = PasteStore(storage, IDGenerator(), clock=clock)

        with patch.object(storage, "load") as load:
            with pytest.raises(InvalidPasteError, match="Invalid paste"):
                store.get(paste_id)

        load.assert_not_called()

    def test_unknown_id(self, paste_store, temp_storage):
        paste_id = IDGenerator().generate(temp_storage.exists)

        with pytest.raises(InvalidPasteError):
            paste_store.get(paste_id)

    def test_expired_paste_is_removed_on_read(self, paste_store, temp_storage, clock):
        res = paste_store.save("testcontent", "PT5M")

        assert paste_store.get(res.id) == ("testcontent", "")

        clock.advance(timedelta(minutes=4, seconds=59))
        assert paste_store.get(res.id) == ("testcontent", "")

        clock.advance(timedelta(seconds=1))
        with pytest.raises(InvalidPasteError):
            paste_store.get(res.id)

        # Physically removed, not just hidden
        assert temp_storage.load(res.id) is None

    def test_heavy_usage(self, paste_store):
        for i in range(200):
            res = paste_store.save("testcontent", "PT5M")

            if i % 2 == 0:
                assert paste_store.get(res.id) == ("testcontent", "")

    @settings(
        max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture]
    )
    @given(content=st.text(max_size=1000), language=st.sampled_from(["", "python"]))
    def test_saved_content_is_returned_unchanged(self, paste_store, content, language):
        """Escaping at write time is undone on read for any content."""
        res = paste_store.save(content, "", language)

        got_content, _ = paste_store.get(res.id)
        assert got_content == content


class TestDelete:
    """Unit tests for PasteStore.delete and purge_expired."""

    def test_delete_with_key(self, paste_store, temp_storage):
        res = paste_store.save("to delete")

        paste_store.delete(res.id, res.delkey)

        assert not temp_storage.exists(res.id)
        with pytest.raises(InvalidPasteError):
            paste_store.get(res.id)

    def test_delete_with_wrong_key(self, paste_store):
        res = paste_store.save("keep me")

        with pytest.raises(AuthorizationError):
            paste_store.delete(res.id, "wrong")

        assert paste_store.get(res.id) == ("keep me", "")

    def test_delete_unknown_paste(self, paste_store):
        with pytest.raises(InvalidPasteError):
            paste_store.delete("nothere", "k" * 40)

    def test_delete_malformed_id(self, paste_store):
        with pytest.raises(InvalidPasteError):
            paste_store.delete("bad.id", "k" * 40)

    def test_saving_again_after_delete_creates_new_paste(self, paste_store):
        res = paste_store.save("recycled")
        paste_store.delete(res.id, res.delkey)

        res2 = paste_store.save("recycled")

        assert res2.id != res.id
        assert paste_store.get(res2.id) == ("recycled", "")

    def test_purge_expired(self, paste_store, temp_storage, clock):
        short = paste_store.save("short", "PT1M")
        long = paste_store.save("long", "P1D")
        clock.advance(timedelta(hours=1))

        assert paste_store.purge_expired() == 1
        assert not temp_storage.exists(short.id)
        assert temp_storage.exists(long.id)
