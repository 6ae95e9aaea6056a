"""
Collaborators notified by the token lifecycle.

The API process has no UI of its own, so the defaults only log; embedders
replace them with implementations that reach the user.
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

PROVIDER_REDIRECTION = "providerRedirection"


class ModalPrompt(Protocol):
    async def open(self, *, type: str, name: str) -> None:
        """Return once the user acknowledged the prompt."""


class BadgeNotifier(Protocol):
    def add_badge(self, name: str) -> None:
        ...


class LoggingModalPrompt:
    async def open(self, *, type: str, name: str) -> None:
        if type == PROVIDER_REDIRECTION:
            logger.warning("%s authorization expired; redirecting to re-authorize.", name)
        else:
            logger.warning("Prompt %s requested for %s.", type, name)


class LoggingBadgeNotifier:
    def add_badge(self, name: str) -> None:
        logger.info("Badge earned: %s", name)


__all__ = [
    "BadgeNotifier",
    "LoggingBadgeNotifier",
    "LoggingModalPrompt",
    "ModalPrompt",
    "PROVIDER_REDIRECTION",
]
