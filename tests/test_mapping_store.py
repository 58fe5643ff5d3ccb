"""
Tests for the mapping store (encode/decode core logic).
"""
import json

import pytest

from shortener_app.exceptions import CodeSpaceExhausted, StoreError
from shortener_app.models.mapping import Mapping
from shortener_app.services.mapping_store import MappingStore
from shortener_app.services.short_code_strategies import ShortCodeStrategy

ONE_YEAR = 365 * 24 * 60 * 60


class SequenceStrategy(ShortCodeStrategy):
    """Hands out predefined codes, ignoring the is_taken check"""

    def __init__(self, *codes):
        self.codes = list(codes)

    def generate(self, is_taken):
        return self.codes.pop(0)


class TestEncode:
    """Test MappingStore.encode"""

    def test_encode_new_url(self, mapping_store):
        mapping = mapping_store.encode("https://example.com")

        assert mapping.original_url == "https://example.com"
        assert len(mapping.short_code) == 6
        assert mapping.short_code.isalnum()
        assert mapping.short_code == mapping.short_code.upper()
        assert mapping.access_count == 0
        assert mapping.created_at > 0

    def test_encode_is_idempotent(self, mapping_store):
        first = mapping_store.encode("https://example.com")
        second = mapping_store.encode("https://example.com")

        assert first.short_code == second.short_code
        assert first == second

    def test_distinct_urls_get_distinct_codes(self, mapping_store):
        mapping1 = mapping_store.encode("https://example1.com")
        mapping2 = mapping_store.encode("https://example2.com")

        assert mapping1.short_code != mapping2.short_code

    def test_writes_both_key_slots(self, mapping_store, store):
        mapping = mapping_store.encode("https://example.com")

        url_slot = json.loads(store.get("url_mapping:url:https://example.com"))
        code_slot = json.loads(store.get(f"url_mapping:code:{mapping.short_code}"))

        assert url_slot == code_slot
        assert set(code_slot) == {"original_url", "short_code", "access_count", "created_at"}
        assert code_slot["original_url"] == "https://example.com"
        assert code_slot["short_code"] == mapping.short_code

    def test_sets_one_year_ttl_on_both_slots(self, mapping_store, store):
        mapping = mapping_store.encode("https://example.com")

        url_ttl = store.ttl("url_mapping:url:https://example.com")
        code_ttl = store.ttl(f"url_mapping:code:{mapping.short_code}")

        assert ONE_YEAR - 5 <= url_ttl <= ONE_YEAR
        assert ONE_YEAR - 5 <= code_ttl <= ONE_YEAR

    def test_skips_taken_codes(self, store):
        mapping_store = MappingStore(store)
        store.set("url_mapping:code:AAAAAA", "{}")

        calls = []

        class RecordingStrategy(ShortCodeStrategy):
            def generate(self, is_taken):
                for code in ("AAAAAA", "BBBBBB"):
                    calls.append(code)
                    if not is_taken(code):
                        return code
                raise AssertionError("no free code")

        mapping_store.short_code_strategy = RecordingStrategy()
        mapping = mapping_store.encode("https://example.com")

        assert calls == ["AAAAAA", "BBBBBB"]
        assert mapping.short_code == "BBBBBB"

    def test_url_commit_race_reuses_existing_mapping(self, store):
        """If the url key appears between check and commit, return the winner"""
        winner = Mapping(original_url="https://example.com", short_code="WINNER")
        original_get = store.get
        calls = {"n": 0}

        def get(key):
            calls["n"] += 1
            if calls["n"] == 1:
                # Our duplicate check sees nothing, then the other writer commits
                store.set(key, winner.to_json())
                return None
            return original_get(key)

        store.get = get
        mapping_store = MappingStore(store, short_code_strategy=SequenceStrategy("LOSER1"))

        mapping = mapping_store.encode("https://example.com")

        assert mapping.short_code == "WINNER"
        assert not store.exists("url_mapping:code:LOSER1")

    def test_ignores_url_key_whose_code_belongs_to_another_url(self, store):
        """A url key left by an encode that lost its code is never returned"""
        store.set("url_mapping:url:https://example.com", Mapping(
            original_url="https://example.com", short_code="TAKEN1"
        ).to_json())
        store.set("url_mapping:code:TAKEN1", Mapping(
            original_url="https://other.com", short_code="TAKEN1"
        ).to_json())
        mapping_store = MappingStore(
            store, short_code_strategy=SequenceStrategy("FRESH1", "FRESH2"), max_retries=2
        )

        with pytest.raises(CodeSpaceExhausted):
            mapping_store.encode("https://example.com")

    def test_url_key_with_pending_code_slot_is_returned(self, store):
        """The code slot may not be written yet by the encode that committed the url key"""
        store.set("url_mapping:url:https://example.com", Mapping(
            original_url="https://example.com", short_code="PENDNG"
        ).to_json())
        mapping_store = MappingStore(store, short_code_strategy=SequenceStrategy())

        assert mapping_store.encode("https://example.com").short_code == "PENDNG"

    def test_code_claimed_concurrently_retries_with_new_code(self, store):
        store.set("url_mapping:code:TAKEN1", Mapping(
            original_url="https://other.com", short_code="TAKEN1"
        ).to_json())
        mapping_store = MappingStore(
            store, short_code_strategy=SequenceStrategy("TAKEN1", "FREE01")
        )

        mapping = mapping_store.encode("https://example.com")

        assert mapping.short_code == "FREE01"
        assert json.loads(store.get("url_mapping:code:TAKEN1"))["original_url"] == "https://other.com"
        assert json.loads(store.get("url_mapping:url:https://example.com"))["short_code"] == "FREE01"

    def test_gives_up_after_retry_budget(self, store):
        store.set("url_mapping:code:TAKEN1", "{}")
        mapping_store = MappingStore(
            store,
            short_code_strategy=SequenceStrategy("TAKEN1", "TAKEN1", "TAKEN1"),
            max_retries=3,
        )

        with pytest.raises(CodeSpaceExhausted):
            mapping_store.encode("https://example.com")

        assert not store.exists("url_mapping:url:https://example.com")


class TestDecode:
    """Test MappingStore.decode"""

    def test_round_trip(self, mapping_store):
        mapping = mapping_store.encode("https://example.com/some/path?q=1")

        decoded = mapping_store.decode(mapping.short_code)

        assert decoded.original_url == "https://example.com/some/path?q=1"

    def test_unknown_code_returns_none(self, mapping_store):
        assert mapping_store.decode("NONEXISTENT") is None

    def test_access_count_increments_by_one(self, mapping_store):
        short_code = mapping_store.encode("https://a.com").short_code

        counts = [mapping_store.decode(short_code).access_count for _ in range(3)]

        assert counts == [1, 2, 3]
        assert mapping_store.lookup(short_code).access_count == 3

    def test_lookup_is_case_sensitive(self, store):
        mapping_store = MappingStore(store, short_code_strategy=SequenceStrategy("ABC123"))
        mapping_store.encode("https://example.com")

        assert mapping_store.decode("abc123") is None
        assert mapping_store.decode("ABC123") is not None

    def test_only_code_slot_is_updated(self, mapping_store, store):
        mapping = mapping_store.encode("https://example.com")

        mapping_store.decode(mapping.short_code)

        url_slot = json.loads(store.get("url_mapping:url:https://example.com"))
        assert url_slot["access_count"] == 0
        assert mapping_store.lookup(mapping.short_code).access_count == 1

    def test_decode_keeps_ttl(self, store):
        mapping_store = MappingStore(store, ttl=100)
        mapping = mapping_store.encode("https://example.com")

        mapping_store.decode(mapping.short_code)

        remaining = store.ttl(f"url_mapping:code:{mapping.short_code}")
        assert remaining is not None
        assert remaining <= 100

    def test_code_expiring_during_decode_stays_gone(self, mapping_store, store):
        """The access write must not bring back an expired code key without TTL"""
        mapping = mapping_store.encode("https://example.com")
        key = f"url_mapping:code:{mapping.short_code}"
        original_get = store.get

        def get(k):
            value = original_get(k)
            if k == key:
                # TTL fires right after the read
                store.delete(k)
            return value

        store.get = get

        assert mapping_store.decode(mapping.short_code) is None
        assert store.exists(key) is False

    def test_corrupt_payload_raises_store_error(self, mapping_store, store):
        store.set("url_mapping:code:BROKEN", "not json")

        with pytest.raises(StoreError):
            mapping_store.decode("BROKEN")


class TestHousekeeping:
    """Test clear/stats used by test setup and the demo"""

    def test_stats_counts_slots(self, mapping_store):
        mapping_store.encode("https://example1.com")
        mapping_store.encode("https://example2.com")

        assert mapping_store.stats() == {
            "total_keys": 4,
            "url_mappings": 2,
            "short_codes": 2,
        }

    def test_clear_only_touches_prefix(self, mapping_store, store):
        mapping_store.encode("https://example.com")
        store.set("unrelated", "value")

        assert mapping_store.clear() == 2
        assert store.keys("url_mapping:*") == []
        assert store.get("unrelated") == "value"
