"""
Vercel serverless endpoint: returns the persisted list of announced contracts.
"""

import logging

from flask import Flask, jsonify, request

from mintalert.config import ConfigurationError, load_config
from mintalert.run import build_store, configure_logging
from mintalert.state import StateStoreError, load_state


log = logging.getLogger(__name__)

app = Flask(__name__)


def handler(request):
    configure_logging()
    try:
        config = load_config()
        configure_logging(config.log_level)
        state = load_state(build_store(config), config.bucket, config.key)
    except (ConfigurationError, StateStoreError) as e:
        log.error("[recents] %s", e)
        with app.app_context():
            resp = jsonify({"ok": False, "error": str(e)})
        resp.status_code = 500
        return resp

    with app.app_context():
        return jsonify(
            {
                "ok": True,
                "recents": state.recents,
                "count": len(state.recents),
                "recents_max": config.recents_max,
                "backend": config.state_backend,
            }
        )


@app.route("/api/recents")
def recents():
    return handler(request)
