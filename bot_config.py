from __future__ import annotations

"""Command-line and environment configuration for the bot process."""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from space_status import DEFAULT_HTTP_TIMEOUT

# KEY=VALUE file, e.g. TELEGRAM_BOT_TOKEN=...
SECRETS_FILE = Path("secrets/tokens.env")

TOKEN_ENV = "TELEGRAM_BOT_TOKEN"
STATUS_URL_ENV = "SPACE_STATUS_URL"
CHAT_HISTORY_ENV = "CHAT_HISTORY_FILE"
LOCATION_ENV = "SENSOR_LOCATION"
MODE_ENV = "BOT_MODE"
HTTP_TIMEOUT_ENV = "STATUS_HTTP_TIMEOUT"
TEXTS_ENV = "BOT_TEXTS_FILE"
PORT_ENV = "PORT"
LOG_LEVEL_ENV = "TELEGRAM_LOG_LEVEL"

DEFAULT_PORT = 8000
MODES = ("polling", "webhook")


class ConfigError(ValueError):
    """A required setting is missing or malformed."""


@dataclass(slots=True)
class BotConfig:
    token: str
    status_url: str
    chat_history_file: Path
    location: str
    mode: str = "polling"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    texts_file: Optional[Path] = None
    port: int = DEFAULT_PORT

    @property
    def masked_token(self) -> str:
        return mask_token(self.token)


def mask_token(token: str) -> str:
    return f"{token[:5]}...{token[-2:]}" if len(token) > 7 else "***"


def load_env_from_file(path: Path) -> None:
    """Load KEY=VALUE pairs into the environment without overriding it."""

    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, raw_value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def configure_logging() -> None:
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Telegram bot answering /status and /sprachassistentin.",
    )
    parser.add_argument(
        "--apitoken",
        dest="token",
        default=os.getenv(TOKEN_ENV, ""),
        help=f"Telegram API token (env {TOKEN_ENV}).",
    )
    parser.add_argument(
        "--spacestatusurl",
        dest="status_url",
        default=os.getenv(STATUS_URL_ENV, ""),
        help=f"URL of the space status JSON document (env {STATUS_URL_ENV}).",
    )
    parser.add_argument(
        "--chathistoryfile",
        dest="chat_history_file",
        default=os.getenv(CHAT_HISTORY_ENV, ""),
        help=f"Telegram chat export JSON to build the Markov chain from (env {CHAT_HISTORY_ENV}).",
    )
    parser.add_argument(
        "--location",
        dest="location",
        default=os.getenv(LOCATION_ENV, ""),
        help=f"Sensor location label reported by /status (env {LOCATION_ENV}).",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default=os.getenv(MODE_ENV, "polling"),
        help=f"Receive updates by long polling or via a Flask webhook (env {MODE_ENV}).",
    )
    parser.add_argument(
        "--http-timeout",
        dest="http_timeout",
        default=os.getenv(HTTP_TIMEOUT_ENV, str(DEFAULT_HTTP_TIMEOUT)),
        help=f"Timeout in seconds for the status request (env {HTTP_TIMEOUT_ENV}).",
    )
    parser.add_argument(
        "--texts",
        dest="texts_file",
        default=os.getenv(TEXTS_ENV, ""),
        help=f"Optional JSON file overriding reply texts (env {TEXTS_ENV}).",
    )
    parser.add_argument(
        "--port",
        default=os.getenv(PORT_ENV, str(DEFAULT_PORT)),
        help=f"Port for webhook mode (env {PORT_ENV}).",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> BotConfig:
    """Validate parsed arguments and build a :class:`BotConfig`."""

    required = {
        "--apitoken": args.token,
        "--spacestatusurl": args.status_url,
        "--chathistoryfile": args.chat_history_file,
        "--location": args.location,
    }
    missing = [flag for flag, value in required.items() if not str(value).strip()]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    if args.mode not in MODES:
        raise ConfigError(f"Unknown mode: {args.mode}")

    try:
        http_timeout = float(args.http_timeout)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid HTTP timeout: {args.http_timeout}") from exc
    if http_timeout <= 0:
        raise ConfigError("HTTP timeout must be positive.")

    try:
        port = int(args.port)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid port: {args.port}") from exc

    texts_file = Path(args.texts_file).expanduser() if args.texts_file else None

    return BotConfig(
        token=args.token.strip(),
        status_url=args.status_url.strip(),
        chat_history_file=Path(args.chat_history_file).expanduser(),
        location=args.location,
        mode=args.mode,
        http_timeout=http_timeout,
        texts_file=texts_file,
        port=port,
    )


def parse_config(argv: Sequence[str] | None = None) -> BotConfig:
    """Parse ``argv`` and exit with usage and status 1 when invalid."""

    load_env_from_file(SECRETS_FILE)
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return config_from_args(args)
    except ConfigError as exc:
        parser.print_usage(sys.stderr)
        parser.exit(1, f"{parser.prog}: error: {exc}\n")
