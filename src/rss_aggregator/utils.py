"""Utility functions for the RSS aggregator."""

import logging
from typing import Optional
from urllib.parse import urlparse


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Set up logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    handlers.append(console_handler)

    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)


def validate_url(url: str) -> bool:
    """Validate that a feed URL is a well-formed http(s) URL."""
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except ValueError:
        return False


def normalize_feed_url(url: str) -> str:
    """Strip surrounding whitespace and a trailing slash from a feed URL."""
    normalized = url.strip()
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to maximum length with suffix."""
    if len(text) <= max_length:
        return text

    truncated = text[: max_length - len(suffix)]

    # Try to break at word boundary
    if " " in truncated:
        last_space = truncated.rfind(" ")
        if last_space > max_length * 0.7:  # Don't break too early
            truncated = truncated[:last_space]

    return truncated + suffix
