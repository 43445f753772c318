import json
from typing import Any, Dict, List, Optional

import requests

from mintalert.chain import LogEntry
from mintalert.mints import TOPIC_TRANSFER
from mintalert.opensea import Collection, CollectionInfo, NotFoundError
from mintalert.state import BlobNotFound


def word(address: str) -> str:
    return "0x" + "0" * 24 + address.lower().replace("0x", "")


def transfer(address: str, tx: str, sender: str = "0x" + "0" * 40, topics: Optional[int] = 4, block: int = 100) -> LogEntry:
    all_topics = [TOPIC_TRANSFER, word(sender), word("0x" + "ab" * 20), "0x" + "0" * 63 + "1"]
    return LogEntry(address=address, topics=tuple(all_topics[:topics]), tx_hash=tx, block_number=block)


def mints(address: str, n: int, prefix: str = "") -> List[LogEntry]:
    return [transfer(address, f"0x{prefix}{address[-6:]}{i:06x}") for i in range(n)]


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, text: Optional[str] = None, url: str = "http://fake"):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else (json.dumps(body) if body is not None else "")
        self.url = url
        self.reason = "OK" if status_code < 400 else "Error"

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._body is None:
            return json.loads(self.text)
        return self._body

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Records calls and replays queued responses (or raises queued exceptions)."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def _next(self, method: str, url: str, **kwargs: Any) -> Any:
        self.calls.append({"method": method, "url": url, **kwargs})
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    def get(self, url: str, **kwargs: Any) -> Any:
        return self._next("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Any:
        return self._next("POST", url, **kwargs)


class FakeLogSource:
    def __init__(self, entries: List[LogEntry], latest: int = 1000):
        self.entries = entries
        self.latest = latest
        self.queries: List[Any] = []

    def latest_block_number(self) -> int:
        return self.latest

    def query_logs(self, from_block: int, to_block: int, topics: Any) -> List[LogEntry]:
        self.queries.append((from_block, to_block, list(topics)))
        return list(self.entries)


class FakeMetadata:
    def __init__(self, collections: Optional[Dict[str, Any]] = None):
        self.collections = collections or {}
        self.lookups: List[str] = []

    def asset_contract(self, address: str) -> Collection:
        self.lookups.append(address)
        found = self.collections.get(address)
        if found is None:
            raise NotFoundError(f"no contract {address}", 404)
        if isinstance(found, Exception):
            raise found
        return found


class FakeNotifier:
    def __init__(self, name: str = "fake", result: bool = True):
        self.name = name
        self.result = result
        self.sent: List[Any] = []

    def send(self, collection: Collection, count: int) -> bool:
        self.sent.append((collection.address, count))
        return self.result


class MemoryStore:
    def __init__(self, blobs: Optional[Dict[Any, bytes]] = None):
        self.blobs = dict(blobs or {})
        self.puts = 0

    def get_blob(self, bucket: str, key: str) -> bytes:
        try:
            return self.blobs[(bucket, key)]
        except KeyError:
            raise BlobNotFound(f"{bucket}/{key}")

    def put_blob(self, bucket: str, key: str, data: bytes) -> None:
        self.puts += 1
        self.blobs[(bucket, key)] = data


def collection(address: str, slug: str = "cool-cats", external_link: str = "https://cool.cats",
               twitter: str = "coolcats") -> Collection:
    return Collection(
        address=address,
        name="Cool Cats",
        external_link=external_link,
        image_url="https://img.example/cat.png",
        collection=CollectionInfo(slug=slug, name="Cool Cats", external_url="https://cool.cats",
                                  twitter_username=twitter),
    )


