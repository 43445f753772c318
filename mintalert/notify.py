import logging
from typing import Any, Dict, Optional

import requests
from requests_oauthlib import OAuth1

from mintalert.config import TwitterKeys
from mintalert.opensea import Collection


log = logging.getLogger(__name__)

DISCORD_WEBHOOK_URL = "https://discord.com/api/webhooks/{id}/{token}"
TWITTER_TWEETS_URL = "https://api.twitter.com/2/tweets"

WINDOW_MINUTES = 10
HASHTAGS = "#nft #nfts #nftcollection #nftcollectibles #nftminting #niftyscoops #NFTsales"


class NotifyError(Exception):
    pass


def format_discord_alert(collection: Collection, count: int) -> Dict[str, Any]:
    content = (
        "Mint Alert!\n\n"
        f"**[{collection.name}]({collection.collection.external_url})**\n\n"
        f"**{count} minted** in **{WINDOW_MINUTES} minutes**\n"
    )
    return {
        "content": content,
        "embeds": [{"image": {"url": collection.image_url}}],
    }


def format_tweet(collection: Collection, count: int) -> str:
    return (
        f"NFTs Mint Alert: {count} sold in {WINDOW_MINUTES} minutes. \n"
        "Head on over and have a look\n"
        f" {collection.marketplace_url} \n\n"
        f" {HASHTAGS}"
    )


class DiscordNotifier:
    def __init__(self, webhook_id: str, webhook_token: str, timeout: int = 10,
                 session: Optional[requests.Session] = None):
        self.webhook_id = webhook_id
        self.webhook_token = webhook_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, payload: Dict[str, Any]) -> str:
        url = DISCORD_WEBHOOK_URL.format(id=self.webhook_id, token=self.webhook_token)
        try:
            # wait=true makes Discord return the created message
            r = self.session.post(url, params={"wait": "true"}, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotifyError(f"discord webhook: {e}") from e
        if not r.ok:
            raise NotifyError(f"discord webhook failed: {r.status_code} {r.text[:200]}")
        try:
            return str(r.json().get("id", ""))
        except (ValueError, AttributeError):
            return ""

    def send(self, collection: Collection, count: int) -> bool:
        if not self.webhook_id or not self.webhook_token:
            log.info("[discord] Discord webhook Id and/or webhook token not configured.")
            return False
        if not self.webhook_id.isdigit():
            log.warning("[discord] Invalid webhook ID: %r", self.webhook_id)
            return False
        try:
            message_id = self._post(format_discord_alert(collection, count))
        except NotifyError as e:
            log.error("[discord] %s (contract %s)", e, collection.address)
            return False
        log.info("[discord] Discord message sent. Message ID: %s", message_id)
        return True


class TwitterNotifier:
    _REQUIRED = (
        ("consumer_key", "Twitter Consumer Key", "TWITTER_CONSUMER_KEY"),
        ("consumer_secret", "Twitter Consumer Secret", "TWITTER_CONSUMER_SECRET"),
        ("token", "Twitter Token", "TWITTER_TOKEN"),
        ("token_secret", "Twitter Token Secret", "TWITTER_TOKEN_SECRET"),
    )

    def __init__(self, keys: TwitterKeys, timeout: int = 10, session: Optional[requests.Session] = None):
        self.keys = keys
        self.timeout = timeout
        self.session = session or requests.Session()

    def _missing(self) -> Optional[str]:
        for attr, label, env_name in self._REQUIRED:
            if not getattr(self.keys, attr):
                return f"{label} environment variable ({env_name}) is not set."
        return None

    def _post(self, text: str) -> str:
        k = self.keys
        auth = OAuth1(k.consumer_key, k.consumer_secret, k.token, k.token_secret)
        try:
            r = self.session.post(TWITTER_TWEETS_URL, auth=auth, json={"text": text}, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotifyError(f"create tweet: {e}") from e
        if r.status_code not in (200, 201):
            raise NotifyError(f"create tweet failed [{r.status_code}]: {r.text[:200]}")
        try:
            return str((r.json() or {}).get("data", {}).get("id", ""))
        except (ValueError, AttributeError):
            return ""

    def send(self, collection: Collection, count: int) -> bool:
        missing = self._missing()
        if missing:
            log.info("[twitter] %s", missing)
            return False
        try:
            tweet_id = self._post(format_tweet(collection, count))
        except NotifyError as e:
            log.error("[twitter] Error sending tweet: %s (contract %s)", e, collection.address)
            return False
        log.info("[twitter] Tweet sent. Tweet ID: %s", tweet_id)
        return True
