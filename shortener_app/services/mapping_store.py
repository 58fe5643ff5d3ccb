import logging
from typing import Dict, Optional

from pydantic import ValidationError

from shortener_app.config import settings
from shortener_app.exceptions import CodeSpaceExhausted, StoreError
from shortener_app.models.mapping import Mapping
from shortener_app.services.short_code_strategies import (
    RandomShortCodeStrategy,
    ShortCodeStrategy,
)
from shortener_app.store.strategies import KeyValueStore

logger = logging.getLogger(__name__)


class MappingStore:
    """
    Single source of truth for URL <-> short code translation.

    Every mapping lives under two keys holding the same JSON document:
    - {prefix}url:{original_url}  (duplicate detection)
    - {prefix}code:{short_code}   (decode / redirect, authoritative access_count)

    The url key is the commit point for a new mapping: it is written with an
    atomic set-if-absent, so concurrent encodes of the same URL agree on one
    short code. The code key is written afterwards, also set-if-absent, so two
    URLs can never end up sharing a code.

    The store client is injected and shared; the mapping store itself holds
    no mutable state and is safe to build per request.
    """

    def __init__(
        self,
        store: KeyValueStore,
        short_code_strategy: Optional[ShortCodeStrategy] = None,
        key_prefix: Optional[str] = None,
        ttl: Optional[int] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize mapping store with dependencies.

        Args:
            store: Key-value store strategy
            short_code_strategy: Code generator (random 6-char codes by default)
            key_prefix: Namespace for every key (settings.store_key_prefix by default)
            ttl: Expiration of new mappings in seconds (settings.mapping_ttl by default)
            max_retries: Attempts at committing a new mapping before giving up
        """
        self.store = store
        self.key_prefix = key_prefix if key_prefix is not None else settings.store_key_prefix
        self.ttl = ttl if ttl is not None else settings.mapping_ttl
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.short_code_strategy = short_code_strategy or RandomShortCodeStrategy(
            length=settings.short_code_length,
            max_retries=self.max_retries,
        )

    def url_key(self, original_url: str) -> str:
        return f"{self.key_prefix}url:{original_url}"

    def code_key(self, short_code: str) -> str:
        return f"{self.key_prefix}code:{short_code}"

    def encode(self, url: str) -> Mapping:
        """
        Return the mapping for `url`, creating it if the URL is new.

        The URL is used byte-exact (no normalization). Re-encoding a known URL
        returns the stored mapping unchanged.

        Raises:
            StoreUnavailable: The store cannot be reached
            StoreError: Any other store failure
            CodeSpaceExhausted: No free short code within the retry budget
        """
        existing = self._find_by_url(url)
        if existing:
            return existing

        for _ in range(self.max_retries):
            short_code = self.short_code_strategy.generate(
                lambda code: self.store.exists(self.code_key(code))
            )
            mapping = Mapping(original_url=url, short_code=short_code)
            payload = mapping.to_json()

            if not self.store.set(self.url_key(url), payload, ttl=self.ttl, only_if_absent=True):
                # Another request created this URL between our check and commit
                existing = self._find_by_url(url)
                if existing:
                    logger.info("Concurrent encode for %s, reusing %s", url, existing.short_code)
                    return existing
                continue

            if not self.store.set(self.code_key(short_code), payload, ttl=self.ttl, only_if_absent=True):
                # Code was claimed by a different URL after the exists check
                logger.info("Short code %s claimed concurrently, retrying", short_code)
                self.store.delete(self.url_key(url))
                continue

            logger.info("Created short code %s for %s", short_code, url)
            return mapping

        raise CodeSpaceExhausted(self.max_retries)

    def decode(self, short_code: str) -> Optional[Mapping]:
        """
        Resolve a short code and count the access.

        The code is looked up verbatim (case-sensitive). The incremented
        mapping is written back to the code key only, keeping its TTL.
        Concurrent decodes of one code may lose increments.

        Returns:
            The updated mapping, or None if the code is unknown (or expired meanwhile)
        """
        mapping = self.lookup(short_code)
        if not mapping:
            return None

        mapping = mapping.accessed()
        # Never resurrect a key that expired after the read, it would lose its TTL
        if not self.store.set(
            self.code_key(short_code), mapping.to_json(), only_if_present=True, keep_ttl=True
        ):
            return None
        return mapping

    def lookup(self, short_code: str) -> Optional[Mapping]:
        """Get the mapping for a short code without counting an access"""
        return self._find(self.code_key(short_code))

    def clear(self) -> int:
        """Delete every key under the prefix. Returns number of keys removed."""
        removed = 0
        for key in self.store.keys(f"{self.key_prefix}*"):
            removed += self.store.delete(key)
        return removed

    def stats(self) -> Dict[str, int]:
        """Count stored keys per slot type"""
        url_keys = self.store.keys(f"{self.key_prefix}url:*")
        code_keys = self.store.keys(f"{self.key_prefix}code:*")
        return {
            "total_keys": len(url_keys) + len(code_keys),
            "url_mappings": len(url_keys),
            "short_codes": len(code_keys),
        }

    def _find(self, key: str) -> Optional[Mapping]:
        data = self.store.get(key)
        if data is None:
            return None

        try:
            return Mapping.from_json(data)
        except ValidationError as e:
            logger.error("Corrupt mapping stored under %s: %s", key, e)
            raise StoreError(f"Corrupt mapping stored under {key}") from e

    def _find_by_url(self, url: str) -> Optional[Mapping]:
        """
        Get the mapping committed for a URL.

        A url key whose short code is owned by a different URL belongs to an
        encode that lost its code to a concurrent writer and is about to
        delete it, so it is treated as absent.
        """
        mapping = self._find(self.url_key(url))
        if mapping is None:
            return None

        owner = self._find(self.code_key(mapping.short_code))
        if owner is not None and owner.original_url != url:
            logger.info("Ignoring url key for %s, code %s belongs to %s",
                        url, mapping.short_code, owner.original_url)
            return None
        return mapping
