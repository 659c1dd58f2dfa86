from __future__ import annotations

"""Registers or removes the bot's webhook URL."""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Sequence

from bot_config import SECRETS_FILE, TOKEN_ENV, load_env_from_file
from telegram_api import TelegramApiClient, TelegramApiError

WEBHOOK_URL_ENV = "TELEGRAM_WEBHOOK_URL"
_SECRET_TOKEN_ENV = "TELEGRAM_WEBHOOK_SECRET_TOKEN"
_INSECURE_ENV = "TELEGRAM_WEBHOOK_INSECURE"
_CA_BUNDLE_ENV = "TELEGRAM_WEBHOOK_CA_BUNDLE"


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Configure the Telegram webhook for the bot.",
    )
    parser.add_argument(
        "--webhook-url",
        dest="webhook_url",
        default=os.getenv(WEBHOOK_URL_ENV, ""),
        help=f"Public HTTPS URL of the /webhook endpoint (env {WEBHOOK_URL_ENV}).",
    )
    parser.add_argument(
        "--secret-token",
        dest="secret_token",
        default=os.getenv(_SECRET_TOKEN_ENV),
        help="secret_token Telegram sends along with every webhook request.",
    )
    parser.add_argument(
        "--ca-bundle",
        dest="ca_bundle",
        default=os.getenv(_CA_BUNDLE_ENV),
        help="PEM file with trusted root certificates.",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Disable TLS verification (debugging only).",
    )
    parser.add_argument(
        "--drop-pending-updates",
        action="store_true",
        help="Drop updates queued before the change.",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Remove the webhook so the bot can poll again.",
    )
    return parser.parse_args(argv)


def _verify_option(args: argparse.Namespace) -> bool | str:
    insecure_env = os.getenv(_INSECURE_ENV, "").strip().lower()
    if args.insecure or insecure_env in {"1", "true", "yes", "on"}:
        print("TLS verification disabled. Use this for debugging only.", file=sys.stderr)
        return False

    if args.ca_bundle:
        bundle_path = Path(args.ca_bundle).expanduser()
        if not bundle_path.is_file():
            raise SystemExit(f"CA bundle not found: {bundle_path}")
        return str(bundle_path)

    return True


def main(argv: Sequence[str] | None = None) -> None:
    load_env_from_file(SECRETS_FILE)
    args = _parse_args(argv)

    token = os.getenv(TOKEN_ENV)
    if not token:
        raise SystemExit(f"{TOKEN_ENV} is not set. Put it into {SECRETS_FILE} or the environment.")

    if not args.delete and not args.webhook_url:
        raise SystemExit(f"Pass --webhook-url or set {WEBHOOK_URL_ENV}.")

    client = TelegramApiClient(token, verify=_verify_option(args))
    try:
        result: Any
        if args.delete:
            result = client.delete_webhook(drop_pending_updates=args.drop_pending_updates)
        else:
            result = client.set_webhook(
                args.webhook_url,
                secret_token=args.secret_token,
                drop_pending_updates=args.drop_pending_updates,
            )
    except (TelegramApiError, ValueError) as exc:
        raise SystemExit(f"Webhook update failed: {exc}")

    print(f"Webhook updated. Telegram answered: {json.dumps(result, ensure_ascii=False)}")


if __name__ == "__main__":
    main()
