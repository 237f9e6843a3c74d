"""Gestion centralisée de la configuration du client SignupDesk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from signupdesk.errors import SignupDeskError

DEFAULT_API_URL = "http://127.0.0.1:8000"
DEFAULT_TIMEOUT = 10.0
DEFAULT_SESSION_PATH = Path.home() / ".signupdesk" / "session.json"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ConfigError(SignupDeskError):
    """Erreur levée lorsque la configuration est invalide."""


@dataclass(frozen=True, slots=True)
class SignupDeskConfig:
    """Paramètres nécessaires pour dialoguer avec le service d'inscriptions."""

    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    session_path: Path = DEFAULT_SESSION_PATH
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(f"SIGNUPDESK_TIMEOUT invalide : {raw!r}") from exc
    if timeout <= 0:
        raise ConfigError("SIGNUPDESK_TIMEOUT doit être strictement positif.")
    return timeout


def _parse_log_level(raw: str) -> str:
    level = raw.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"SIGNUPDESK_LOG_LEVEL inconnu : {raw!r}")
    return level


def load_config() -> SignupDeskConfig:
    """Charge la configuration depuis l'environnement (et un éventuel .env)."""
    load_dotenv()

    api_url = os.getenv("SIGNUPDESK_API_URL", DEFAULT_API_URL).strip() or DEFAULT_API_URL
    timeout = _parse_timeout(os.getenv("SIGNUPDESK_TIMEOUT", str(DEFAULT_TIMEOUT)))
    session_path = os.getenv("SIGNUPDESK_SESSION_PATH")
    log_level = _parse_log_level(os.getenv("SIGNUPDESK_LOG_LEVEL", DEFAULT_LOG_LEVEL))

    return SignupDeskConfig(
        api_url=api_url.rstrip("/"),
        timeout=timeout,
        session_path=Path(session_path).expanduser() if session_path else DEFAULT_SESSION_PATH,
        log_level=log_level,
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Installe le format de journalisation commun à toute l'application."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
