from __future__ import annotations

from flask import Flask, jsonify, request
from flask.typing import ResponseReturnValue

from webhook_handlers import TelegramWebhookHandler


def create_app(webhook_handler: TelegramWebhookHandler) -> Flask:
    """Build the Flask app serving the Telegram webhook.

    Telegram accepts a JSON response describing the API call it should perform
    on behalf of the bot, so command replies are returned as the response body
    instead of being sent with a separate request.
    """

    app = Flask(__name__)

    @app.route("/webhook", methods=["POST"])
    def telegram_webhook() -> ResponseReturnValue:
        update = request.get_json(silent=True)
        response_payload = webhook_handler.handle_update(update)
        return jsonify(response_payload), 200

    @app.route("/", methods=["GET"])
    def index() -> ResponseReturnValue:
        """Health check."""
        return {"status": "running"}

    return app
