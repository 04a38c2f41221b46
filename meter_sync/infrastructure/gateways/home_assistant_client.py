"""
Infrastructure Gateway - Home Assistant WebSocket Client

This module talks to the Home Assistant WebSocket API. It persists the
statistics through the recorder and reads the state history of price
sensors.
"""

import asyncio
import itertools
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import aiohttp
import structlog

from meter_sync.domain.entities.errors import PriceFeedError, StatisticsStoreError
from meter_sync.domain.entities.pricing import PriceHistoryEntry, PriceState
from meter_sync.domain.entities.time_series import StatisticMetadata, StatisticPoint
from meter_sync.domain.gateways.price_feed_gateway import IPriceFeedGateway
from meter_sync.domain.repositories.statistics_store import IStatisticsStore

logger = structlog.get_logger(__name__)

DEFAULT_WS_URL = "ws://supervisor/core/websocket"
LOOKBACK_WEEKS = 52


def parse_statistic_time(value: Any) -> datetime:
    """Parse a recorder timestamp, either epoch milliseconds or ISO-8601."""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    moment = datetime.fromisoformat(str(value))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _midnight_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT00:00:00.000Z")


def _utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def _initial_message_id() -> int:
    return int(time.time() * 1000) % 10000 + 1


class HomeAssistantClient(IStatisticsStore, IPriceFeedGateway):
    """Implementation of the statistics store and price feed over WebSocket."""

    def __init__(
        self,
        ws_url: str = DEFAULT_WS_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        message_id_start: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize Home Assistant client.

        Args:
            ws_url: WebSocket URL of Home Assistant core
            token: Supervisor or long-lived access token
            timeout: Timeout of every exchange in seconds
            message_id_start: First message id, drawn from the clock by default
            clock: Returns the current aware datetime
        """
        self.ws_url = ws_url
        self.token = token
        self.timeout = timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._message_ids = itertools.count(
            _initial_message_id() if message_id_start is None else message_id_start
        )
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    async def __aenter__(self) -> "HomeAssistantClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """Open the WebSocket and authenticate."""
        try:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None, sock_read=self.timeout)
            )
            self._ws = await self._session.ws_connect(self.ws_url)

            greeting = await self._ws.receive_json()
            if greeting.get("type") == "auth_required":
                await self._ws.send_json({"type": "auth", "access_token": self.token})
                answer = await self._ws.receive_json()
            else:
                answer = greeting

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError) as e:
            logger.error("ha.connection_failed", url=self.ws_url, error=str(e))
            await self.disconnect()
            raise StatisticsStoreError(
                f"Connection with Home Assistant failed: {str(e)}"
            ) from e

        if answer.get("type") != "auth_ok":
            await self.disconnect()
            raise StatisticsStoreError(
                "Cannot authenticate with Home Assistant",
                details={"type": answer.get("type")},
            )

        logger.debug("ha.connected", url=self.ws_url)

    async def disconnect(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._ws = None
        self._session = None
        logger.debug("ha.disconnected")

    async def send_message(self, message: Dict[str, Any]) -> Any:
        """
        Send a command and wait for its result.

        Events and results of other commands received meanwhile are ignored.

        Returns:
            The ``result`` field of the answer

        Raises:
            StatisticsStoreError: When not connected, on transport errors, or
                when Home Assistant reports a failure
        """
        if self._ws is None:
            raise StatisticsStoreError("Not connected to Home Assistant")

        message_id = next(self._message_ids)
        payload = {**message, "id": message_id}

        try:
            await self._ws.send_json(payload)
            while True:
                response = await self._ws.receive_json()
                if response.get("id") == message_id and response.get("type") == "result":
                    break
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError) as e:
            logger.error("ha.message_failed", type=message.get("type"), error=str(e))
            raise StatisticsStoreError(
                f"Home Assistant exchange failed: {str(e)}",
                details={"type": message.get("type")},
            ) from e

        if not response.get("success"):
            raise StatisticsStoreError(
                f"Home Assistant returned an error: {response.get('error')}",
                details={"type": message.get("type")},
            )

        return response.get("result")

    async def append_points(
        self, metadata: StatisticMetadata, points: List[StatisticPoint]
    ) -> None:
        await self.send_message(
            {
                "type": "recorder/import_statistics",
                "metadata": {
                    "has_mean": metadata.has_mean,
                    "has_sum": metadata.has_sum,
                    "name": metadata.name,
                    "source": metadata.source,
                    "statistic_id": metadata.statistic_id,
                    "unit_of_measurement": metadata.unit_of_measurement,
                },
                "stats": [
                    {"start": p.start.isoformat(), "state": p.state, "sum": p.sum}
                    for p in points
                ],
            }
        )
        logger.info(
            "ha.statistics_imported",
            statistic_id=metadata.statistic_id,
            count=len(points),
        )

    async def is_new_series(self, statistic_id: str) -> bool:
        ids = await self.send_message(
            {"type": "recorder/list_statistic_ids", "statistic_type": "sum"}
        )
        return not any(item.get("statistic_id") == statistic_id for item in ids or [])

    async def find_last_point(self, statistic_id: str) -> Optional[StatisticPoint]:
        if await self.is_new_series(statistic_id):
            logger.warning("ha.statistic_not_found", statistic_id=statistic_id)
            return None

        now = self.clock()
        for week in range(LOOKBACK_WEEKS):
            # The first window includes today.
            if week == 0:
                end_time = _utc(now)
            else:
                end_time = _midnight_utc(now - timedelta(days=week * 7))
            result = await self.send_message(
                {
                    "type": "recorder/statistics_during_period",
                    "start_time": _midnight_utc(now - timedelta(days=(week + 1) * 7)),
                    "end_time": end_time,
                    "statistic_ids": [statistic_id],
                    "period": "hour",
                }
            )
            points = (result or {}).get(statistic_id) or []
            if points:
                last = points[-1]
                point = StatisticPoint(
                    start=parse_statistic_time(last["start"]),
                    state=float(last.get("state") or 0),
                    sum=float(last.get("sum") or 0),
                )
                logger.debug(
                    "ha.last_statistic",
                    statistic_id=statistic_id,
                    start=point.start.isoformat(),
                )
                return point

        logger.debug("ha.no_recent_statistic", statistic_id=statistic_id)
        return None

    async def purge(self, statistic_id: str) -> None:
        logger.warning("ha.statistics_purge", statistic_id=statistic_id)
        await self.send_message(
            {"type": "recorder/clear_statistics", "statistic_ids": [statistic_id]}
        )

    async def fetch_history(
        self, entity_id: str, start: datetime, end: datetime
    ) -> List[PriceHistoryEntry]:
        try:
            result = await self.send_message(
                {
                    "type": "history/history_during_period",
                    "start_time": start.astimezone(timezone.utc).isoformat(),
                    "end_time": end.astimezone(timezone.utc).isoformat(),
                    "entity_ids": [entity_id],
                    "include_start_time_state": True,
                    "significant_changes_only": False,
                    "minimal_response": False,
                    "no_attributes": False,
                }
            )
        except StatisticsStoreError as e:
            raise PriceFeedError(
                f"Cannot read history of {entity_id}: {e.message}",
                details={"entity_id": entity_id},
            ) from e

        states = (result or {}).get(entity_id) or []
        entries: List[PriceHistoryEntry] = []
        for state in states:
            try:
                value = float(state["s"])
            except (KeyError, TypeError, ValueError):
                # unknown / unavailable
                continue
            changed = state.get("lc", state.get("lu"))
            if changed is None:
                continue
            entries.append(
                PriceHistoryEntry(
                    timestamp=datetime.fromtimestamp(float(changed), tz=timezone.utc),
                    value=value,
                    unit=(state.get("a") or {}).get("unit_of_measurement"),
                )
            )

        if any(entry.unit is None for entry in entries):
            current_unit = (await self.fetch_current_state(entity_id)).unit
            for entry in entries:
                if entry.unit is None:
                    entry.unit = current_unit

        entries.sort(key=lambda entry: entry.timestamp)
        logger.debug("ha.price_history", entity_id=entity_id, count=len(entries))
        return entries

    async def fetch_current_state(self, entity_id: str) -> PriceState:
        try:
            states = await self.send_message({"type": "get_states"})
        except StatisticsStoreError as e:
            raise PriceFeedError(
                f"Cannot read state of {entity_id}: {e.message}",
                details={"entity_id": entity_id},
            ) from e

        for state in states or []:
            if state.get("entity_id") != entity_id:
                continue
            try:
                value: Optional[float] = float(state.get("state"))
            except (TypeError, ValueError):
                value = None
            unit = (state.get("attributes") or {}).get("unit_of_measurement")
            return PriceState(value=value, unit=unit)

        raise PriceFeedError(
            f"Entity {entity_id} not found in Home Assistant",
            details={"entity_id": entity_id},
        )
