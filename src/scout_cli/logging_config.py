import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from colorama import Fore, Style
from colorama import init as colorama_init

from .config import LOG_DIR, LOG_LEVEL, STEAM_API_KEY


class SensitiveDataFilter(logging.Filter):
    """Filter to mask the Steam Web API key in logs (it travels in request URLs)."""

    def __init__(self, secrets: dict[str, str] | None = None):
        super().__init__()
        if secrets is None:
            secrets = {"STEAM_API_KEY": STEAM_API_KEY}
        self.secrets = {name: value for name, value in secrets.items() if value}

    def mask(self, text):
        if isinstance(text, str):
            for name, value in self.secrets.items():
                if value in text:
                    text = text.replace(value, f"***{name}***")
        return text

    def filter(self, record):
        record.msg = self.mask(record.msg)

        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(self.mask(arg) for arg in record.args)
            elif isinstance(record.args, dict):
                record.args = {k: self.mask(v) for k, v in record.args.items()}

        return True


def setup_logging(level: str | int = LOG_LEVEL, log_dir: str = LOG_DIR):
    force_color = os.getenv("FORCE_COLOR", "").lower() in ("1", "true")
    colorama_init(strip=False if force_color else None)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    # Handler-level so records from child loggers are masked too
    secret_filter = SensitiveDataFilter()
    root.setLevel(logging.DEBUG)

    # stdout carries the JSON result, so the console log goes to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            f"{Fore.CYAN}%(asctime)s{Style.RESET_ALL} | "
            f"{Fore.GREEN}%(levelname)s{Style.RESET_ALL}: "
            f"{Fore.YELLOW}%(name)s{Style.RESET_ALL} - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    console_handler.addFilter(secret_filter)
    root.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "workshop-scout.log"), maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s: %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        file_handler.addFilter(secret_filter)
        root.addHandler(file_handler)


def get_logger(name: str):
    return logging.getLogger(name)
