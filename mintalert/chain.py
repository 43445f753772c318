import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from web3 import Web3


log = logging.getLogger(__name__)


class UpstreamFetchError(Exception):
    pass


@dataclass(frozen=True)
class LogEntry:
    address: str
    topics: Tuple[str, ...]
    tx_hash: str
    block_number: int


def _hex(value: Any) -> str:
    # HexBytes.hex() drops the 0x prefix on newer releases; to_hex never does.
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return Web3.to_hex(value)


def entry_from_receipt(raw: Any) -> LogEntry:
    """Convert one web3 log (AttributeDict or plain dict) into a LogEntry."""
    return LogEntry(
        address=str(raw["address"]),
        topics=tuple(_hex(t) for t in (raw.get("topics") or [])),
        tx_hash=_hex(raw["transactionHash"]),
        block_number=int(raw["blockNumber"]),
    )


class RpcLogSource:
    """Transfer-log reader over a JSON-RPC node."""

    def __init__(self, network_url: str, timeout: int = 12, w3: Any = None):
        self.w3 = w3 or Web3(Web3.HTTPProvider(network_url, request_kwargs={"timeout": timeout}))

    def latest_block_number(self) -> int:
        try:
            return int(self.w3.eth.get_block("latest")["number"])
        except Exception as e:  # broad: transport, JSON-RPC error, etc.
            raise UpstreamFetchError(f"latest block header: {e}") from e

    def query_logs(self, from_block: int, to_block: int, topics: Sequence[str]) -> List[LogEntry]:
        params = {
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
            "topics": [list(topics)],
        }
        log.debug("[scan] eth_getLogs %s", params)
        try:
            raw_logs = self.w3.eth.get_logs(params)
        except Exception as e:
            raise UpstreamFetchError(f"eth_getLogs {from_block}-{to_block}: {e}") from e
        entries: List[LogEntry] = []
        for raw in raw_logs:
            try:
                entries.append(entry_from_receipt(raw))
            except (KeyError, TypeError, ValueError) as e:
                log.debug("[scan] skipping malformed log %r: %s", raw, e)
        return entries
