"""
API key rotation for newsmux.

Each provider owns an ordered list of credentials. The store hands out the
current key and advances to the next one when a provider answers with an
auth or rate-limit error.
"""
import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from newsmux.exceptions import MissingKeyError
from newsmux.utils.nlp import mask_secret

logger = logging.getLogger(__name__)

KEY_CACHE_SECONDS = 300


def parse_key_list(raw: Optional[str]) -> List[str]:
    """Split a comma-separated credential value into trimmed, non-empty keys."""
    if not raw:
        return []
    return [part.strip() for part in str(raw).split(",") if part.strip()]


class KeySet:
    """
    Ordered credentials for one provider plus the rotation index.
    """
    def __init__(self, keys: List[str], display_name: str, current_index: int = 0):
        self.keys = list(keys)
        self.display_name = display_name
        self.current_index = current_index

    def rotate(self) -> None:
        if not self.keys:
            return
        self.current_index = (self.current_index + 1) % len(self.keys)

    def current_key(self) -> str:
        if not self.keys:
            raise MissingKeyError(self.display_name)
        index = self.current_index if self.current_index < len(self.keys) else 0
        key = self.keys[index]
        if not key.strip():
            raise MissingKeyError(self.display_name)
        return key


@dataclass(frozen=True)
class KeyStatus:
    """
    Snapshot of a provider's key rotation state.
    """
    provider: str
    display_name: str
    total_keys: int
    current_index: int

    @property
    def has_keys(self) -> bool:
        return self.total_keys > 0

    @property
    def display_info(self) -> str:
        if not self.has_keys:
            return f"{self.display_name}: No keys"
        return f"{self.display_name}: {self.current_index + 1}/{self.total_keys}"


class KeyRotationStore:
    """
    Holds key sets for every provider behind one lock.

    Keys are read lazily from the environment (``.env`` files are loaded by
    the config module), falling back to plain configured values, and cached
    for ``cache_seconds`` so repeated lookups skip the credential source.
    """
    def __init__(
        self,
        services: Mapping[str, str],
        display_names: Optional[Mapping[str, str]] = None,
        fallback: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        cache_seconds: float = KEY_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the store.

        Args:
            services: Provider id to credential name (e.g. gnews -> GNEWS_API_KEYS)
            display_names: Provider id to human-readable name
            fallback: Credential name to plain comma-separated value
            environ: Secure credential source, os.environ by default
            cache_seconds: How long loaded credentials stay valid
            clock: Monotonic clock in seconds
        """
        self.services = dict(services)
        self.display_names = dict(display_names or {})
        self.fallback = dict(fallback or {})
        self.environ = os.environ if environ is None else environ
        self.cache_seconds = cache_seconds
        self.clock = clock
        self._key_sets: Dict[str, KeySet] = {}
        self._keys_cache: Dict[str, List[str]] = {}
        self._cache_loaded_at: Dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _display_name(self, provider: str) -> str:
        return self.display_names.get(provider, provider)

    def _load_keys(self, provider: str) -> List[str]:
        service = self.services.get(provider)
        if service is None:
            return []

        now = self.clock()
        loaded_at = self._cache_loaded_at.get(service)
        if loaded_at is not None and now - loaded_at < self.cache_seconds:
            return self._keys_cache[service]

        keys = parse_key_list(self.environ.get(service))
        if not keys:
            keys = parse_key_list(self.fallback.get(service))

        self._keys_cache[service] = keys
        self._cache_loaded_at[service] = now

        if keys:
            logger.debug(f"Loaded {len(keys)} key(s) for {service}")
        else:
            logger.debug(f"No API keys found for {service}")
        return keys

    def _ensure_key_set(self, provider: str) -> KeySet:
        # Callers hold self._lock, so creation and rotation never interleave
        key_set = self._key_sets.get(provider)
        if key_set is None:
            key_set = KeySet(self._load_keys(provider), self._display_name(provider))
            self._key_sets[provider] = key_set
        return key_set

    async def current_key(self, provider: str) -> str:
        """
        Get the key currently selected for a provider.

        Args:
            provider: Provider id

        Returns:
            The API key

        Raises:
            MissingKeyError: If the provider has no keys or the selected key is blank
        """
        async with self._lock:
            return self._ensure_key_set(provider).current_key()

    async def rotate(self, provider: str) -> None:
        """Advance a provider to its next key. A provider without keys is left alone."""
        async with self._lock:
            key_set = self._ensure_key_set(provider)
            key_set.rotate()
            if key_set.keys:
                logger.debug(
                    f"{key_set.display_name} key rotated to index "
                    f"{key_set.current_index}/{len(key_set.keys)} "
                    f"({mask_secret(key_set.keys[key_set.current_index])})"
                )

    async def available_keys(self, provider: str) -> List[str]:
        async with self._lock:
            return list(self._load_keys(provider))

    async def get_status(self, provider: str) -> KeyStatus:
        async with self._lock:
            key_set = self._ensure_key_set(provider)
            return KeyStatus(
                provider=provider,
                display_name=key_set.display_name,
                total_keys=len(key_set.keys),
                current_index=key_set.current_index,
            )

    async def all_statuses(self) -> List[KeyStatus]:
        """Status of every registered provider, in registration order."""
        return list(await asyncio.gather(*(self.get_status(p) for p in self.services)))

    async def refresh_cache(self) -> None:
        """Drop cached credentials and key sets so the next lookup reloads them."""
        async with self._lock:
            self._keys_cache.clear()
            self._cache_loaded_at.clear()
            self._key_sets.clear()
        logger.info("API key cache refreshed")
