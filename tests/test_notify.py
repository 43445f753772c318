import logging

import requests
from requests_oauthlib import OAuth1

from mintalert.config import TwitterKeys
from mintalert.notify import DiscordNotifier, TwitterNotifier, format_discord_alert, format_tweet

from fakes import FakeResponse, FakeSession, collection

KEYS = TwitterKeys("ck", "cs", "t", "ts")


def test_discord_message_format():
    msg = format_discord_alert(collection("0xA"), 150)
    assert msg["content"] == (
        "Mint Alert!\n\n**[Cool Cats](https://cool.cats)**\n\n**150 minted** in **10 minutes**\n"
    )
    assert msg["embeds"] == [{"image": {"url": "https://img.example/cat.png"}}]


def test_tweet_format_links_marketplace_slug():
    text = format_tweet(collection("0xA", slug="cool-cats"), 150)
    assert text.startswith("NFTs Mint Alert: 150 sold in 10 minutes.")
    assert "https://opensea.io/collection/cool-cats" in text
    assert text.endswith("#nft #nfts #nftcollection #nftcollectibles #nftminting #niftyscoops #NFTsales")


def test_discord_not_configured(caplog):
    session = FakeSession()
    with caplog.at_level(logging.INFO):
        assert not DiscordNotifier("", "", session=session).send(collection("0xA"), 150)
    assert "not configured" in caplog.text
    assert session.calls == []


def test_discord_rejects_non_numeric_webhook_id():
    session = FakeSession()
    assert not DiscordNotifier("abc", "tok", session=session).send(collection("0xA"), 150)
    assert session.calls == []


def test_discord_sends_to_webhook():
    session = FakeSession(FakeResponse(200, {"id": "998877"}))
    assert DiscordNotifier("123", "tok", session=session).send(collection("0xA"), 150)
    call = session.calls[0]
    assert call["url"] == "https://discord.com/api/webhooks/123/tok"
    assert call["params"] == {"wait": "true"}
    assert call["json"]["content"].startswith("Mint Alert!")


def test_discord_failure_is_logged_not_raised(caplog):
    session = FakeSession(requests.ConnectionError("down"))
    with caplog.at_level(logging.ERROR):
        assert not DiscordNotifier("123", "tok", session=session).send(collection("0xA"), 150)
    assert "0xA" in caplog.text


def test_twitter_missing_key_names_variable(caplog):
    session = FakeSession()
    with caplog.at_level(logging.INFO):
        assert not TwitterNotifier(TwitterKeys("ck", "cs", "", "ts"), session=session).send(collection("0xA"), 150)
    assert "TWITTER_TOKEN" in caplog.text
    assert session.calls == []


def test_twitter_posts_with_oauth1():
    session = FakeSession(FakeResponse(201, {"data": {"id": "42", "text": "..."}}))
    assert TwitterNotifier(KEYS, session=session).send(collection("0xA"), 150)
    call = session.calls[0]
    assert call["url"] == "https://api.twitter.com/2/tweets"
    assert isinstance(call["auth"], OAuth1)
    assert "150 sold" in call["json"]["text"]


def test_twitter_error_status_is_recovered():
    session = FakeSession(FakeResponse(403, {"detail": "Forbidden"}))
    assert not TwitterNotifier(KEYS, session=session).send(collection("0xA"), 150)
