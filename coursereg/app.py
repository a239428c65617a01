from __future__ import annotations

import logging

from flask import Flask, jsonify

from .src import config
from .src.routes import BLUEPRINTS
from .src.utils.responses import json_error

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
app.config["SESSION_COOKIE_NAME"] = config.SESSION_COOKIE_NAME
app.config["SESSION_COOKIE_HTTPONLY"] = True
# Report mappings keep the order groups were first seen in.
app.json.sort_keys = False

for blueprint in BLUEPRINTS:
    app.register_blueprint(blueprint)

logger = logging.getLogger(__name__)


@app.get("/api/health")
def health():
    return jsonify({"ok": True})


@app.errorhandler(404)
def not_found(_exc):
    return json_error("Not found.", 404)


@app.errorhandler(405)
def method_not_allowed(_exc):
    return json_error("Method not allowed.", 405)


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(debug=False)


if __name__ == "__main__":
    main()
