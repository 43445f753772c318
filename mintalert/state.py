import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError


log = logging.getLogger(__name__)

RECENTS_MAX = 200
# Only this many of the oldest entries are dropped per save, even when the
# list is further over the cap.
TRIM_COUNT = 2


class StateStoreError(Exception):
    pass


class BlobNotFound(StateStoreError):
    pass


@dataclass
class AnnouncedState:
    recents: List[str] = field(default_factory=list)

    def is_announced(self, address: str) -> bool:
        for recent in self.recents:
            if recent == "":
                continue
            if recent == address:
                return True
        return False

    def record(self, address: str) -> None:
        self.recents.append(address)

    def trim(self, cap: int = RECENTS_MAX) -> int:
        """Drop the oldest entries when over cap; returns how many were dropped."""
        if len(self.recents) > cap:
            dropped = len(self.recents[:TRIM_COUNT])
            self.recents = self.recents[TRIM_COUNT:]
            return dropped
        return 0

    def to_json(self) -> bytes:
        return json.dumps({"recents": self.recents}).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes) -> "AnnouncedState":
        try:
            doc = json.loads(data.decode("utf-8") if isinstance(data, bytes) else data)
        except ValueError as e:
            raise StateStoreError(f"state document is not JSON: {e}") from e
        if not isinstance(doc, dict):
            raise StateStoreError("state document is not a JSON object")
        recents = doc.get("recents") or []
        if not isinstance(recents, list):
            raise StateStoreError("state document 'recents' is not a list")
        if not all(isinstance(r, str) for r in recents):
            raise StateStoreError("state document 'recents' holds non-string entries")
        return cls(recents=list(recents))


class S3BlobStore:
    def __init__(self, region: str = "us-east-1", client: Any = None):
        self.client = client or boto3.client("s3", region_name=region)

    def get_blob(self, bucket: str, key: str) -> bytes:
        try:
            result = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("NoSuchKey", "404", "NotFound"):
                raise BlobNotFound(f"s3://{bucket}/{key} not found") from e
            raise StateStoreError(f"s3://{bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StateStoreError(f"s3://{bucket}/{key}: {e}") from e
        body = result["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def put_blob(self, bucket: str, key: str, data: bytes) -> None:
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=data, ContentType="application/json")
        except (ClientError, BotoCoreError) as e:
            raise StateStoreError(f"s3://{bucket}/{key}: {e}") from e


class KVBlobStore:
    """Upstash / Vercel KV REST store; bucket and key join into one KV key."""

    def __init__(self, url: str, token: str, timeout: int = 10, session: Optional[requests.Session] = None):
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def kv_key(bucket: str, key: str) -> str:
        return f"{bucket}:{key}"

    def get_blob(self, bucket: str, key: str) -> bytes:
        kv_key = self.kv_key(bucket, key)
        url = f"{self.url}/get/{kv_key}"
        try:
            r = self.session.get(url, headers={"Authorization": f"Bearer {self.token}"}, timeout=self.timeout)
            if r.status_code == 404:
                raise BlobNotFound(f"kv {kv_key} not found")
            r.raise_for_status()
            payload = r.json()
        except requests.RequestException as e:
            raise StateStoreError(f"kv {kv_key}: {e}") from e
        except ValueError as e:
            raise StateStoreError(f"kv {kv_key}: response is not JSON: {e}") from e
        val = payload.get("result") if isinstance(payload, dict) else None
        if val is None:
            raise BlobNotFound(f"kv {kv_key} not found")
        return val.encode("utf-8") if isinstance(val, str) else json.dumps(val).encode("utf-8")

    def put_blob(self, bucket: str, key: str, data: bytes) -> None:
        kv_key = self.kv_key(bucket, key)
        url = f"{self.url}/set/{kv_key}"
        try:
            r = self.session.post(
                url,
                headers={"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"},
                data=data,
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise StateStoreError(f"kv {kv_key}: {e}") from e


def load_state(store: Any, bucket: str, key: str) -> AnnouncedState:
    """Read recents; a missing blob is a first run and yields empty state."""
    try:
        data = store.get_blob(bucket, key)
    except BlobNotFound:
        log.info("[state] no state at %s/%s, starting empty", bucket, key)
        return AnnouncedState()
    state = AnnouncedState.from_json(data)
    log.info("[state] loaded %d recents from %s/%s", len(state.recents), bucket, key)
    return state


def save_state(store: Any, bucket: str, key: str, state: AnnouncedState) -> None:
    store.put_blob(bucket, key, state.to_json())
    log.info("[state] saved %d recents to %s/%s", len(state.recents), bucket, key)
