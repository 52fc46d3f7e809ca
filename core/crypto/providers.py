"""
Hash Provider Implementations

One capability, interchangeable implementations:
- Local: fast deterministic SHA-256 mixing, for development and tests
- Delegated: forwards to the remote Poseidon2 service (circuit compatible)
- Mock: wraps another provider and records calls (for testing)

All providers take and return 32-byte big-endian field element buffers.
hash2 and hash3 are pure functions of their ordered inputs. A tree build
uses a single provider instance for its whole lifetime.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, TYPE_CHECKING

from core.crypto.field import (
    FIELD_MODULUS,
    ensure_field_bytes,
    to_field_bytes,
    to_wire_hex,
)
from core.http.client import HttpClient, HttpError
from core.schemas.errors import HashServiceError

if TYPE_CHECKING:
    from core.config.runtime import HashConfig, HttpConfig


logger = logging.getLogger(__name__)


# Domain prefixes for the local provider, one per arity
LOCAL_DOMAIN_HASH2: bytes = b"poseidon2"
LOCAL_DOMAIN_HASH3: bytes = b"poseidon3"

# Path of the delegated Poseidon2 endpoint, relative to the API base URL
POSEIDON_PATH = "/api/v1/hash/poseidon"

_RESPONSE_HEX_RE = re.compile(r"^[0-9a-fA-F]{1,64}$")


class HashProvider(ABC):
    """
    Abstract base class for hash providers.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (local, delegated, mock)."""
        ...

    @abstractmethod
    def hash2(self, a: bytes, b: bytes) -> bytes:
        """Hash two field elements in order."""
        ...

    @abstractmethod
    def hash3(self, a: bytes, b: bytes, c: bytes) -> bytes:
        """Hash three field elements in order."""
        ...

    @property
    def circuit_compatible(self) -> bool:
        """Whether outputs match the zero-knowledge circuit's arithmetic."""
        return False

    def close(self) -> None:
        """Release any held resources."""

    def __enter__(self) -> "HashProvider":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class LocalHashProvider(HashProvider):
    """
    Deterministic in-process hash.

    hashN(x1..xN) = sha256(domain_N || x1 || ... || xN) where domain_N is a
    fixed textual prefix per arity. Inputs are fixed-width, so the
    concatenation is unambiguous. Output is not reduced into the field and
    does not match the circuit.
    """

    @property
    def name(self) -> str:
        return "local"

    def _digest(self, domain: bytes, *inputs: bytes) -> bytes:
        h = hashlib.sha256(domain)
        for value in inputs:
            h.update(ensure_field_bytes(value))
        return h.digest()

    def hash2(self, a: bytes, b: bytes) -> bytes:
        return self._digest(LOCAL_DOMAIN_HASH2, a, b)

    def hash3(self, a: bytes, b: bytes, c: bytes) -> bytes:
        return self._digest(LOCAL_DOMAIN_HASH3, a, b, c)


class DelegatedHashProvider(HashProvider):
    """
    Hash provider backed by the remote Poseidon2 service.

    Request:  POST {api_url}/api/v1/hash/poseidon  {"inputs": ["<hex>", ...]}
    Response: {"hash": "<hex>"}

    Arity is the length of the inputs list; the service applies its own
    domain separation. Any failure raises HashServiceError; there is no
    retry and no fallback to another provider.
    """

    def __init__(
        self,
        api_url: str,
        *,
        timeout: float = 30.0,
        http_client: Optional[HttpClient] = None,
        default_headers: Optional[dict[str, str]] = None,
        proxy: Optional[str] = None,
    ) -> None:
        if not api_url:
            raise ValueError("api_url is required for the delegated hash provider")
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or HttpClient(
            timeout=timeout,
            default_headers=default_headers,
            proxy=proxy,
        )

    @property
    def name(self) -> str:
        return "delegated"

    @property
    def circuit_compatible(self) -> bool:
        return True

    @property
    def endpoint(self) -> str:
        return f"{self._api_url}{POSEIDON_PATH}"

    def hash2(self, a: bytes, b: bytes) -> bytes:
        return self._hash([a, b])

    def hash3(self, a: bytes, b: bytes, c: bytes) -> bytes:
        return self._hash([a, b, c])

    def _hash(self, inputs: list[bytes]) -> bytes:
        payload = {"inputs": [to_wire_hex(ensure_field_bytes(x)) for x in inputs]}
        url = self.endpoint

        try:
            response = self._client.post(url, json=payload, timeout=self._timeout)
        except HttpError as e:
            logger.warning(f"Hash service request failed: {e}")
            reason = "timed out" if e.timeout else "failed"
            raise HashServiceError(
                f"Hash service request {reason}: {e}",
                url=url,
                retryable=True,
            ) from e

        if not response.ok:
            logger.warning(f"Hash service returned HTTP {response.status_code}: {response.text[:200]}")
            raise HashServiceError(
                f"Hash service returned HTTP {response.status_code}",
                status_code=response.status_code,
                url=url,
                retryable=response.status_code >= 500,
            )

        return self._parse_response(response, url)

    def _parse_response(self, response: Any, url: str) -> bytes:
        try:
            data = response.json()
        except ValueError as e:
            raise HashServiceError(
                "Hash service returned a non-JSON body",
                status_code=response.status_code,
                url=url,
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("hash"), str):
            raise HashServiceError(
                "Hash service response is missing a 'hash' string",
                status_code=response.status_code,
                url=url,
            )

        hex_str = data["hash"]
        if hex_str.startswith("0x"):
            hex_str = hex_str[2:]
        if not _RESPONSE_HEX_RE.match(hex_str):
            raise HashServiceError(
                f"Hash service returned an invalid hex value: {data['hash'][:80]!r}",
                status_code=response.status_code,
                url=url,
            )

        value = int(hex_str, 16)
        if value >= FIELD_MODULUS:
            raise HashServiceError(
                "Hash service returned a value outside the field",
                status_code=response.status_code,
                url=url,
            )
        return to_field_bytes(value)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class MockHashProvider(HashProvider):
    """
    Mock provider for testing.

    Delegates to an inner provider (LocalHashProvider by default), records
    every call, and can be told to fail or slow down.
    """

    def __init__(
        self,
        inner: Optional[HashProvider] = None,
        *,
        fail_on_call: Optional[int] = None,
        delay_fn: Optional[Callable[[tuple[bytes, ...]], float]] = None,
    ) -> None:
        self._inner = inner or LocalHashProvider()
        self._fail_on_call = fail_on_call
        self._delay_fn = delay_fn
        self._lock = threading.Lock()
        self._calls: list[tuple[bytes, ...]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def calls(self) -> list[tuple[bytes, ...]]:
        """Get all recorded calls, in the order they were issued."""
        with self._lock:
            return list(self._calls)

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self._calls)

    def _record(self, inputs: tuple[bytes, ...]) -> None:
        with self._lock:
            self._calls.append(inputs)
            count = len(self._calls)
        if self._fail_on_call is not None and count == self._fail_on_call:
            raise HashServiceError(f"Injected failure on call {count}")
        if self._delay_fn is not None:
            time.sleep(self._delay_fn(inputs))

    def hash2(self, a: bytes, b: bytes) -> bytes:
        self._record((a, b))
        return self._inner.hash2(a, b)

    def hash3(self, a: bytes, b: bytes, c: bytes) -> bytes:
        self._record((a, b, c))
        return self._inner.hash3(a, b, c)


def create_hash_provider(
    config: "HashConfig",
    *,
    http_config: Optional["HttpConfig"] = None,
    http_client: Optional[HttpClient] = None,
) -> HashProvider:
    """
    Factory function to create a hash provider from configuration.

    Args:
        config: Hash configuration (provider name, API URL, timeout)
        http_config: Optional HTTP settings (user agent, proxy)
        http_client: Pre-built client to reuse (delegated only)

    Returns:
        HashProvider instance

    Raises:
        ValueError: On an unknown provider name
    """
    provider_name = config.provider.lower()

    if provider_name == "local":
        return LocalHashProvider()
    elif provider_name == "delegated":
        return DelegatedHashProvider(
            config.api_url,
            timeout=config.timeout,
            http_client=http_client,
            default_headers={"User-Agent": http_config.user_agent} if http_config else None,
            proxy=http_config.proxy if http_config else None,
        )
    elif provider_name == "mock":
        return MockHashProvider()
    else:
        raise ValueError(f"Unknown hash provider: {config.provider}")


__all__ = [
    "LOCAL_DOMAIN_HASH2",
    "LOCAL_DOMAIN_HASH3",
    "POSEIDON_PATH",
    "HashProvider",
    "LocalHashProvider",
    "DelegatedHashProvider",
    "MockHashProvider",
    "create_hash_provider",
]
