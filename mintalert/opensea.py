from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from mintalert.config import DEFAULT_OPENSEA_HOST


ASSET_CONTRACT_ENDPOINT = "api/v1/asset_contract/{id}"


class OpenSeaError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(OpenSeaError):
    pass


class RateLimitError(OpenSeaError):
    pass


class DecodeError(OpenSeaError):
    pass


def _str(d: Dict[str, Any], name: str) -> str:
    v = d.get(name)
    return v if isinstance(v, str) else ""


@dataclass(frozen=True)
class CollectionInfo:
    slug: str = ""
    name: str = ""
    external_url: str = ""
    image_url: str = ""
    twitter_username: str = ""
    discord_url: str = ""
    instagram_username: str = ""

    @classmethod
    def from_json(cls, d: Dict[str, Any]) -> "CollectionInfo":
        return cls(
            slug=_str(d, "slug"),
            name=_str(d, "name"),
            external_url=_str(d, "external_url"),
            image_url=_str(d, "image_url"),
            twitter_username=_str(d, "twitter_username"),
            discord_url=_str(d, "discord_url"),
            instagram_username=_str(d, "instagram_username"),
        )


@dataclass(frozen=True)
class Collection:
    """An OpenSea asset contract with its parent collection."""

    address: str
    name: str = ""
    symbol: str = ""
    external_link: str = ""
    image_url: str = ""
    schema_name: str = ""
    collection: CollectionInfo = field(default_factory=CollectionInfo)

    @classmethod
    def from_json(cls, d: Dict[str, Any]) -> "Collection":
        coll = d.get("collection")
        if coll is not None and not isinstance(coll, dict):
            raise DecodeError(f"asset contract: unexpected collection field {type(coll).__name__}")
        return cls(
            address=_str(d, "address"),
            name=_str(d, "name"),
            symbol=_str(d, "symbol"),
            external_link=_str(d, "external_link"),
            image_url=_str(d, "image_url"),
            schema_name=_str(d, "schema_name"),
            collection=CollectionInfo.from_json(coll or {}),
        )

    @property
    def marketplace_url(self) -> str:
        return f"https://opensea.io/collection/{self.collection.slug}"


def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return f"opensea [{r.url}] status: {r.reason} code: {r.status_code}"
    if not isinstance(body, dict):
        return f"opensea [{r.url}] status: {r.reason} code: {r.status_code}"
    errors = body.get("errors") or []
    if errors:
        return f"opensea callout status {r.status_code}: {errors}"
    return f"opensea callout status {r.status_code} {body.get('title', '')}:{body.get('detail', '')}"


class OpenSeaClient:
    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_OPENSEA_HOST,
        timeout: int = 12,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, endpoint: str, ident: str) -> str:
        return f"{self.host}/{endpoint}".replace("{id}", ident)

    def asset_contract(self, address: str) -> Collection:
        """Fetch the asset contract (and its collection) for an address."""
        if not address:
            raise ValueError("asset contract: address is required")
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        url = self._url(ASSET_CONTRACT_ENDPOINT, address)
        try:
            r = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise OpenSeaError(f"asset contract {address}: {e}") from e

        if r.status_code == 404:
            raise NotFoundError(_error_message(r), r.status_code)
        if r.status_code == 429:
            raise RateLimitError(_error_message(r), r.status_code)
        if r.status_code != 200:
            raise OpenSeaError(_error_message(r), r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise DecodeError(f"asset contract {address}: response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError(f"asset contract {address}: expected a JSON object")
        return Collection.from_json(data)
