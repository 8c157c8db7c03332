"""Utility functions for loading compiled CDS models (CSN).

This module provides functions for loading CSN from files and URLs with
proper error handling and validation.
"""

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

from .logging_config import get_logger

logger = get_logger(__name__)


class CSNLoaderError(Exception):
    """Custom exception for CSN loading errors."""

    pass


def is_url(source: str | Path) -> bool:
    """Whether a source names an http(s) URL rather than a file."""
    parsed = urlparse(str(source))
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_csn(data: Any, source: str) -> dict[str, Any]:
    """Check that loaded data has the shape of a CSN model.

    Args:
        data: Parsed JSON.
        source: Description of where the data came from.

    Returns:
        The data, unchanged.

    Raises:
        CSNLoaderError: If the data is not an object with a ``definitions`` object.
    """
    if not isinstance(data, dict):
        raise CSNLoaderError(f"CSN from {source} must be a JSON object")
    if not isinstance(data.get("definitions"), dict):
        raise CSNLoaderError(f"CSN from {source} has no 'definitions' object")
    return data


def load_csn_from_file(file_path: str | Path) -> tuple[str, dict[str, Any]]:
    """Load a CSN model from a local file.

    Args:
        file_path: Path to the CSN file.

    Returns:
        Tuple of (source description, parsed model).

    Raises:
        FileNotFoundError: If file doesn't exist.
        CSNLoaderError: If file cannot be read or is not a CSN model.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load CSN from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    if file_path.suffix.lower() not in (".json", ".csn"):
        logger.warning(f"File does not have a .json or .csn extension: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in file {file_path}: {e}", exc_info=True)
        raise CSNLoaderError(f"Invalid JSON in file {file_path}: {e}") from e
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}", exc_info=True)
        raise CSNLoaderError(f"Error reading file {file_path}: {e}") from e

    source = str(file_path)
    validate_csn(data, source)
    logger.info(f"Successfully loaded CSN from {file_path}")
    return source, data


def load_csn_from_url(url: str, timeout: int = 30) -> tuple[str, dict[str, Any]]:
    """Load a CSN model from a URL.

    Args:
        url: URL to fetch the model from.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (source description, parsed model).

    Raises:
        CSNLoaderError: If URL is invalid, request fails, or response isn't a CSN model.
    """
    logger.debug(f"Attempting to load CSN from URL: {url}")

    if not is_url(url):
        logger.error(f"Invalid URL format: {url}")
        raise CSNLoaderError(f"Invalid URL: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()

        content_type = response.headers.get("content-type", "").lower()
        if "json" not in content_type and not url.endswith((".json", ".csn")):
            logger.warning(f"URL {url} does not have JSON content type: {content_type}")

        data = response.json()

    except requests.exceptions.Timeout:
        logger.error(f"Request timeout for URL: {url}")
        raise CSNLoaderError(f"Request timeout for URL: {url}")
    except requests.exceptions.ConnectionError as e:
        logger.error(f"Connection error for URL {url}: {e}")
        raise CSNLoaderError(f"Connection error for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        logger.error(f"HTTP error {e.response.status_code} for URL: {url}")
        raise CSNLoaderError(f"HTTP error {e.response.status_code} for URL: {url}") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request error for URL {url}: {e}", exc_info=True)
        raise CSNLoaderError(f"Request error for URL {url}: {e}") from e
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON response from URL {url}: {e}", exc_info=True)
        raise CSNLoaderError(f"Invalid JSON response from URL {url}: {e}") from e

    validate_csn(data, url)
    logger.info(f"Successfully loaded CSN from {url}")
    return url, data


def load_csn(source: str | Path, timeout: int = 30) -> tuple[str, dict[str, Any]]:
    """Load a CSN model from either a file or a URL.

    Args:
        source: Path to a local file, or an http(s) URL.
        timeout: Request timeout in seconds (only used for URLs).

    Returns:
        Tuple of (source description, parsed model).

    Raises:
        CSNLoaderError: If loading fails.
        FileNotFoundError: If file doesn't exist.
    """
    if not source:
        logger.error("No source provided")
        raise CSNLoaderError("A file path or URL must be provided")

    if is_url(source):
        return load_csn_from_url(str(source), timeout)
    return load_csn_from_file(source)
