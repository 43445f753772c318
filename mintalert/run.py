import logging
import sys
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mintalert.chain import RpcLogSource
from mintalert.config import Config
from mintalert.gate import announce
from mintalert.mints import TOPIC_TRANSFER, dedupe_by_tx, filter_mints, count_mints, rank_mints
from mintalert.notify import DiscordNotifier, TwitterNotifier
from mintalert.opensea import OpenSeaClient
from mintalert.state import KVBlobStore, S3BlobStore, StateStoreError, load_state, save_state


log = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Send every module's log lines to one stream; safe to call twice."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(message)s", "%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    root.setLevel(level)


@dataclass
class RunResult:
    from_block: int = 0
    to_block: int = 0
    log_entries: int = 0
    unique_transactions: int = 0
    mint_entries: int = 0
    contracts: int = 0
    top: List[Dict[str, Any]] = field(default_factory=list)
    announced: List[str] = field(default_factory=list)
    recents: int = 0
    state_saved: bool = False
    started_utc: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_store(config: Config) -> Any:
    if config.state_backend == "kv":
        return KVBlobStore(config.kv_url or "", config.kv_token or "", timeout=config.http_timeout)
    return S3BlobStore(region=config.aws_region)


def build_notifiers(config: Config) -> List[Any]:
    return [
        TwitterNotifier(config.twitter, timeout=config.http_timeout),
        DiscordNotifier(config.discord_webhook_id, config.discord_webhook_token, timeout=config.http_timeout),
    ]


def run_once(
    config: Config,
    log_source: Any = None,
    metadata: Any = None,
    notifiers: Optional[Sequence[Any]] = None,
    store: Any = None,
) -> RunResult:
    """One scheduled invocation: scan the recent window, alert, persist recents.

    Configuration, block header, log query and unreadable-state failures
    propagate before anything is written.
    """
    result = RunResult(started_utc=time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime()))

    store = store if store is not None else build_store(config)
    state = load_state(store, config.bucket, config.key)

    log_source = log_source if log_source is not None else RpcLogSource(config.network_url, timeout=config.http_timeout)
    to_block = log_source.latest_block_number()
    from_block = to_block - config.block_window
    result.from_block, result.to_block = from_block, to_block
    log.info("[scan] Start block: %d   End block: %d", from_block, to_block)

    logs = log_source.query_logs(from_block, to_block, [TOPIC_TRANSFER])
    result.log_entries = len(logs)
    log.info("[scan] Log entries to process: %d", len(logs))

    unique = dedupe_by_tx(logs)
    result.unique_transactions = len(unique)
    log.info("[scan] Unique transactions to process: %d", len(unique))

    mints = filter_mints(unique)
    ranked = rank_mints(count_mints(mints))
    result.mint_entries = len(mints)
    result.contracts = len(ranked)
    result.top = [{"contract": a, "mints": c} for a, c in ranked[:10]]
    if ranked:
        log.info("[scan] Busiest contract %s with %d mints", ranked[0][0], ranked[0][1])

    metadata = metadata if metadata is not None else OpenSeaClient(
        config.opensea_api_key, host=config.opensea_host, timeout=config.http_timeout
    )
    notifiers = notifiers if notifiers is not None else build_notifiers(config)
    result.announced = announce(ranked, state, metadata, notifiers, threshold=config.mint_threshold)

    dropped = state.trim(config.recents_max)
    if dropped:
        log.info("[state] trimmed %d oldest recents", dropped)
    result.recents = len(state.recents)

    try:
        save_state(store, config.bucket, config.key, state)
        result.state_saved = True
    except StateStoreError as e:
        log.error("[state] save failed for %s/%s: %s", config.bucket, config.key, e)

    log.info("[scan] End. Announced %d contract(s)", len(result.announced))
    return result
