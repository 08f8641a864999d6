"""Push channel for execution status changes."""
from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import pydantic
import websockets
from websockets.exceptions import WebSocketException

from nebula_console.client.notifications import Notifier
from nebula_console.client.plan_client import GENERIC_ERROR_MESSAGE
from nebula_console.core.contracts.status import ExecutionPlanStatus
from nebula_console.core.exceptions import NetworkError

log = logging.getLogger("realtime")


def parse_update(raw: str | bytes) -> ExecutionPlanStatus | dict[str, Any] | None:
    """Status snapshots become ExecutionPlanStatus; other events stay dicts. Undecodable frames give None."""
    try:
        event = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        log.warning("dropping undecodable frame: %s", e)
        return None
    if not isinstance(event, dict):
        log.warning("dropping non-object frame: %r", event)
        return None
    if "planId" in event and "status" in event:
        try:
            return ExecutionPlanStatus.model_validate(event)
        except pydantic.ValidationError as e:
            log.warning("status frame for %s did not validate: %s", event.get("planId"), e)
    return event


class RealtimeChannel:
    """WebSocket feed of status snapshots. A failed or dropped connection raises NetworkError."""

    def __init__(self, ws_url: str, plan_id: str | None = None, notifier: Notifier | None = None):
        self.ws_url = ws_url
        self.plan_id = plan_id
        self.notifier = notifier if notifier is not None else Notifier()

    @property
    def url(self) -> str:
        if not self.plan_id:
            return self.ws_url
        sep = "&" if "?" in self.ws_url else "?"
        return f"{self.ws_url}{sep}planId={quote(self.plan_id, safe='')}"

    async def updates(self) -> AsyncIterator[ExecutionPlanStatus | dict[str, Any]]:
        log.info("→ connecting %s", self.url)
        try:
            async with websockets.connect(self.url) as ws:
                log.info("← connected %s", self.url)
                async for raw in ws:
                    update = parse_update(raw)
                    if update is not None:
                        yield update
        except (OSError, WebSocketException) as e:
            log.warning("← %s: failed %s", self.url, e)
            self.notifier.error(GENERIC_ERROR_MESSAGE)
            raise NetworkError(str(e) or type(e).__name__) from e
