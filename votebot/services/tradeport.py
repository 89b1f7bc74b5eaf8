from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from votebot.config import Settings
from votebot.database.repo.collection_repo import CollectionMetadata
from votebot.services.errors import ExternalValidationFailed

log = logging.getLogger(__name__)

# 0x-prefixed, 40..64 hex chars
_ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40,64}$")

# MOVE has 8 decimals
MOVE_DIVISOR = 10 ** 8

_COLLECTION_QUERY = """
query fetchCollectionByAddress($address: String!) {
  movement {
    collections(where: { slug: { _eq: $address } }) {
      id
      slug
      title
      description
      cover_url
      floor
      volume
      verified
      twitter
    }
  }
}
"""


def normalize_address(raw: str | None) -> str:
    return (raw or "").strip().lower()


def is_valid_address(normalized: str) -> bool:
    return bool(_ADDRESS_RE.match(normalized))


@dataclass(frozen=True, slots=True)
class CollectionLookup:
    exists: bool
    verified: bool
    metadata: CollectionMetadata | None = None


NOT_FOUND = CollectionLookup(exists=False, verified=False, metadata=None)


class CollectionMetadataSource(Protocol):
    async def lookup(self, contract_address: str) -> CollectionLookup: ...


def _twitter_url(raw: str | None) -> str | None:
    if not raw:
        return None
    if raw.startswith("http"):
        return raw
    return f"https://twitter.com/{raw.replace('@', '')}"


def _from_base_units(value: Any) -> float | None:
    if not value:
        return None
    return float(round(float(value) / MOVE_DIVISOR))


def parse_collection(contract_address: str, payload: dict[str, Any]) -> CollectionLookup:
    """
    Maps a GraphQL response body to a lookup result.
    """
    if payload.get("errors"):
        log.warning("Tradeport GraphQL errors for %s: %s", contract_address, payload["errors"])
        return NOT_FOUND

    collections = ((payload.get("data") or {}).get("movement") or {}).get("collections") or []
    if not collections:
        log.info("No Tradeport collection for %s", contract_address)
        return NOT_FOUND

    c = collections[0]
    meta = CollectionMetadata(
        contract_address=contract_address,
        name=c.get("title") or f"Collection {contract_address[:8]}...",
        image_url=c.get("cover_url") or None,
        description=c.get("description") or None,
        twitter_url=_twitter_url(c.get("twitter")),
        tradeport_url=f"https://tradeport.xyz/movement/collection/{contract_address}",
        floor_price=_from_base_units(c.get("floor")),
        volume=_from_base_units(c.get("volume")),
    )
    return CollectionLookup(exists=True, verified=c.get("verified") is True, metadata=meta)


class TradeportClient:
    """
    Collection metadata from the Tradeport GraphQL indexer.
    One aiohttp session for the process, opened lazily.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        api_user: str | None,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.api_user = api_user
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._http: aiohttp.ClientSession | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TradeportClient":
        return cls(settings.tradeport_api_url, settings.tradeport_api_key, settings.tradeport_api_user)

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_user)

    def _session(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(timeout=self.timeout)
        return self._http

    async def lookup(self, contract_address: str) -> CollectionLookup:
        if not self.configured:
            log.warning("TRADEPORT_API_KEY or TRADEPORT_API_USER not configured")
            return NOT_FOUND

        headers = {
            "Content-Type": "application/json",
            "x-api-key": str(self.api_key),
            "x-api-user": str(self.api_user),
        }
        body = {"query": _COLLECTION_QUERY, "variables": {"address": contract_address.lower()}}

        try:
            async with self._session().post(self.api_url, json=body, headers=headers) as resp:
                resp.raise_for_status()
                payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("Tradeport lookup failed for %s: %s", contract_address, e)
            raise ExternalValidationFailed("Could not reach Tradeport right now, please try again later.") from e

        return parse_collection(contract_address, payload or {})

    async def close(self) -> None:
        if self._http is not None and not self._http.closed:
            await self._http.close()
