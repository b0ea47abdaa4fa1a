"""Page readiness helpers."""

from __future__ import annotations

import enum
import logging
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

LOGGER = logging.getLogger(__name__)

DEFAULT_SETTLE_TIMEOUT = 30.0


class SettleOutcome(str, enum.Enum):
    """How far a page got before :func:`await_page_settled` returned."""

    FULLY_SETTLED = "fully_settled"
    STRUCTURAL_ONLY = "structural_only"


async def await_page_settled(page: Any, timeout: float = DEFAULT_SETTLE_TIMEOUT) -> SettleOutcome:
    """Wait for the DOM to be ready, then for network quiescence if it comes.

    A timeout on ``domcontentloaded`` propagates. Pages with long-polling
    connections may never go network idle, so that timeout yields
    :attr:`SettleOutcome.STRUCTURAL_ONLY` instead of an error.
    """

    timeout_ms = _to_timeout(timeout)
    await page.wait_for_load_state("domcontentloaded", timeout=timeout_ms)
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.debug("Network did not go idle within %ss; continuing", timeout)
        return SettleOutcome.STRUCTURAL_ONLY
    return SettleOutcome.FULLY_SETTLED


def _to_timeout(timeout: float) -> int:
    return int(timeout * 1000)
