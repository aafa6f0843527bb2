"""Configuration management for invoice-automator.

This module centralizes file-system paths, environment variables, the JSON
project config, and logger setup used by the extraction and export pipeline.

Configuration file
------------------
* ``config/config.json``: extraction provider settings (provider, model,
  token limit, PDF render resolution) and export settings (sheet name,
  workbook extension, worker count).

Environment variables
---------------------
``DATA_DIR``, ``LOGS_DIR``, and ``OUTPUT_DIR`` override default directories.
The extraction service relies on ``MISTRAL_API_KEY`` (Mistral vision chat) or
``OPENROUTER_API_KEY`` (OpenAI-compatible). Directories are created eagerly on
import so downstream callers can rely on their existence.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
LOGS_DIR = Path(os.getenv("LOGS_DIR", PROJECT_ROOT / "logs"))
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", DATA_DIR / "output"))

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# API Keys
MISTRAL_API_KEY = os.getenv("MISTRAL_API_KEY", "")
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def get_config() -> dict[str, Any]:
    """Load the primary project configuration.

    Returns
    -------
    dict[str, Any]
        Parsed contents of ``config/config.json`` with the ``extraction`` and
        ``export`` sections.

    Raises
    ------
    FileNotFoundError
        If ``config/config.json`` is missing.
    json.JSONDecodeError
        If the file exists but is not valid JSON.
    """
    config_path = CONFIG_DIR / "config.json"
    if not config_path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with Path(config_path).open(encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def get_extraction_config() -> dict[str, Any]:
    """Return the ``extraction`` section of the project config."""
    return cast("dict[str, Any]", get_config().get("extraction", {}))


def get_export_config() -> dict[str, Any]:
    """Return the ``export`` section of the project config."""
    return cast("dict[str, Any]", get_config().get("export", {}))


def setup_logging(name: str = "invoice_automator") -> logging.Logger:
    """Configure a console+file logger if not already present.

    Parameters
    ----------
    name : str, optional
        Logger namespace; reused to avoid duplicate handlers.

    Returns
    -------
    logging.Logger
        Logger with INFO-level console handler and DEBUG-level file handler
        under ``LOGS_DIR``.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        console_handler.setFormatter(console_format)
        logger.addHandler(console_handler)

        # File handler
        log_filename = f"{datetime.now(UTC).strftime('%Y-%m-%d')}_run.log"
        file_handler = logging.FileHandler(LOGS_DIR / log_filename)
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    return logger


def validate_api_keys() -> dict[str, bool]:
    """Report availability of the extraction providers' API keys.

    Returns
    -------
    dict[str, bool]
        Flags for ``mistral`` and ``openrouter`` indicating whether the
        corresponding environment variables are set.
    """
    return {
        "mistral": bool(MISTRAL_API_KEY),
        "openrouter": bool(OPENROUTER_API_KEY),
    }


def get_mistral_client() -> Any:
    """Instantiate the synchronous Mistral SDK client.

    Returns
    -------
    mistralai.Mistral
        Client configured with ``MISTRAL_API_KEY`` for chat completions.

    Raises
    ------
    ValueError
        If ``MISTRAL_API_KEY`` is absent.
    """
    if not MISTRAL_API_KEY:
        msg = "MISTRAL_API_KEY is not set"
        raise ValueError(msg)

    from mistralai import Mistral

    return Mistral(api_key=MISTRAL_API_KEY)


def get_openrouter_client() -> Any:
    """Instantiate an OpenAI-compatible client against OpenRouter.

    Returns
    -------
    openai.OpenAI
        Client configured with ``OPENROUTER_API_KEY`` and OpenRouter base URL.

    Raises
    ------
    ValueError
        If ``OPENROUTER_API_KEY`` is absent.
    """
    if not OPENROUTER_API_KEY:
        msg = "OPENROUTER_API_KEY is not set"
        raise ValueError(msg)

    from openai import OpenAI

    return OpenAI(
        api_key=OPENROUTER_API_KEY,
        base_url=OPENROUTER_BASE_URL,
    )
