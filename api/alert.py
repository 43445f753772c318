"""
Vercel serverless endpoint: runs one mint scan, posts alerts and saves recents.

Cron: vercel.json schedules this every 6 minutes.
"""

import logging

from flask import Flask, jsonify, request

from mintalert.chain import UpstreamFetchError
from mintalert.config import ConfigurationError, load_config
from mintalert.run import configure_logging, run_once
from mintalert.state import StateStoreError


log = logging.getLogger(__name__)

app = Flask(__name__)


def handler(request):  # Vercel Python uses `handler`
    configure_logging()
    try:
        config = load_config()
    except ConfigurationError as e:
        log.error("[config] %s", e)
        return _respond({"ok": False, "error": str(e)}, 500)
    configure_logging(config.log_level)

    try:
        result = run_once(config)
    except (UpstreamFetchError, StateStoreError) as e:
        log.error("[scan] run aborted: %s", e)
        return _respond({"ok": False, "error": str(e)}, 502)

    return _respond({"ok": True, **result.to_dict()}, 200)


def _respond(body, status):
    with app.app_context():
        resp = jsonify(body)
    resp.status_code = status
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    return resp


@app.route("/api/alert")
def alert():
    return handler(request)
