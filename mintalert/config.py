import os
from dataclasses import dataclass, field
from typing import Mapping, Optional


DEFAULT_OPENSEA_HOST = "https://api.opensea.io"


class ConfigurationError(Exception):
    pass


def _get_env(env: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    v = env.get(name)
    return v if v is not None and v != "" else default


def _get_env_first(env: Mapping[str, str], *names: str) -> Optional[str]:
    for n in names:
        v = env.get(n)
        if v:
            return v
    return None


def _require(env: Mapping[str, str], name: str, label: str) -> str:
    v = _get_env(env, name)
    if v is None:
        raise ConfigurationError(f"{label} environment variable ({name}) is not set.")
    return v


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _get_env(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class TwitterKeys:
    consumer_key: str = ""
    consumer_secret: str = ""
    token: str = ""
    token_secret: str = ""


@dataclass(frozen=True)
class Config:
    network_url: str
    bucket: str
    key: str
    opensea_api_key: str
    opensea_host: str = DEFAULT_OPENSEA_HOST
    aws_region: str = "us-east-1"
    state_backend: str = "s3"
    kv_url: Optional[str] = None
    kv_token: Optional[str] = None
    discord_webhook_id: str = ""
    discord_webhook_token: str = ""
    twitter: TwitterKeys = field(default_factory=TwitterKeys)
    block_window: int = 50
    mint_threshold: int = 100
    recents_max: int = 200
    http_timeout: int = 12
    log_level: str = "INFO"


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build the run configuration from the environment.

    Required values raise ConfigurationError naming the missing variable.
    Discord and Twitter credentials are optional; leaving them out only
    disables that channel.
    """
    env = os.environ if environ is None else environ

    network_url = _require(env, "ETH_NETWORK_URL", "Ethereum network URL")
    bucket = _require(env, "S3_BUCKET", "S3 Bucket")
    key = _require(env, "S3_FILE_KEY", "S3 Key")
    opensea_api_key = _require(env, "OPENSEA_API_KEY", "Opensea Key")

    state_backend = (_get_env(env, "STATE_BACKEND", "s3") or "s3").strip().lower()
    if state_backend not in ("s3", "kv"):
        raise ConfigurationError(f"STATE_BACKEND must be 's3' or 'kv', got {state_backend!r}")

    # Support Vercel KV and Upstash Redis REST
    kv_url = _get_env_first(env, "KV_REST_API_URL", "VERCEL_KV_REST_API_URL", "UPSTASH_REDIS_REST_URL")
    kv_token = _get_env_first(env, "KV_REST_API_TOKEN", "VERCEL_KV_REST_API_TOKEN", "UPSTASH_REDIS_REST_TOKEN")
    if state_backend == "kv" and not (kv_url and kv_token):
        raise ConfigurationError("KV state backend selected but KV_REST_API_URL/KV_REST_API_TOKEN are not set.")

    return Config(
        network_url=network_url,
        bucket=bucket,
        key=key,
        opensea_api_key=opensea_api_key,
        opensea_host=(_get_env(env, "OPENSEA_API_HOST", DEFAULT_OPENSEA_HOST) or DEFAULT_OPENSEA_HOST).rstrip("/"),
        aws_region=_get_env(env, "AWS_REGION", "us-east-1") or "us-east-1",
        state_backend=state_backend,
        kv_url=kv_url.rstrip("/") if kv_url else None,
        kv_token=kv_token,
        discord_webhook_id=_get_env(env, "DISCORD_WEBHOOK_ID", "") or "",
        discord_webhook_token=_get_env(env, "DISCORD_WEBHOOK_TOKEN", "") or "",
        twitter=TwitterKeys(
            consumer_key=_get_env(env, "TWITTER_CONSUMER_KEY", "") or "",
            consumer_secret=_get_env(env, "TWITTER_CONSUMER_SECRET", "") or "",
            token=_get_env(env, "TWITTER_TOKEN", "") or "",
            token_secret=_get_env(env, "TWITTER_TOKEN_SECRET", "") or "",
        ),
        block_window=_int(env, "BLOCK_WINDOW", 50),
        mint_threshold=_int(env, "MINT_THRESHOLD", 100),
        recents_max=_int(env, "RECENTS_MAX", 200),
        http_timeout=_int(env, "HTTP_TIMEOUT", 12),
        log_level=(_get_env(env, "LOG_LEVEL", "INFO") or "INFO").upper(),
    )
