from typing import Dict, Iterable, List, Optional, Tuple

from mintalert.chain import LogEntry


# keccak("Transfer(address,address,uint256)")
TOPIC_TRANSFER = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

CONTRACT_OPENSEA = "0x7Be8076f4EA4A4AD08075C2508e481d6C946D12b"
CONTRACT_ENS = "0x283Af0B28c62C092C9727F1Ee09c02CA627EB7F5"
CONTRACT_ENS2 = "0x57f1887a8BF19b14fC0dF6Fd9B2acc9Af147eA85"

EXCLUDED_CONTRACTS = frozenset(a.lower() for a in (CONTRACT_OPENSEA, CONTRACT_ENS, CONTRACT_ENS2))

# ERC-721 Transfer indexes from, to and tokenId; ERC-20 only indexes from and to.
NFT_TRANSFER_TOPICS = 4

RankedEntry = Tuple[str, int]


def dedupe_by_tx(entries: Iterable[LogEntry]) -> List[LogEntry]:
    """Keep the first log seen for each transaction hash, in order."""
    seen = set()
    out: List[LogEntry] = []
    for entry in entries:
        if entry.tx_hash in seen:
            continue
        seen.add(entry.tx_hash)
        out.append(entry)
    return out


def topic_address(topic: str) -> Optional[str]:
    """Decode an address-typed topic (low 20 bytes of the 32-byte word)."""
    body = topic[2:] if topic.startswith("0x") else topic
    if len(body) != 64:
        return None
    try:
        int(body, 16)
    except ValueError:
        return None
    return "0x" + body[-40:].lower()


def is_mint(entry: LogEntry) -> bool:
    topics = entry.topics
    if not topics or topics[0].lower() != TOPIC_TRANSFER:
        return False
    if len(topics) < NFT_TRANSFER_TOPICS:
        return False
    if entry.address.lower() in EXCLUDED_CONTRACTS:
        return False
    return topic_address(topics[1]) == NULL_ADDRESS


def filter_mints(entries: Iterable[LogEntry]) -> List[LogEntry]:
    return [e for e in entries if is_mint(e)]


def count_mints(entries: Iterable[LogEntry]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for entry in entries:
        counts[entry.address] = counts.get(entry.address, 0) + 1
    return counts


def rank_mints(counts: Dict[str, int]) -> List[RankedEntry]:
    """Most mints first; equal counts fall back to address order."""
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
