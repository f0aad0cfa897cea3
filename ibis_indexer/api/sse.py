"""Server-sent event streaming of indexed events, with Last-Event-ID replay."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Sequence
from typing import Any

from aiohttp import web

from .common import _json_default, error_response, get_server
from .eventbus import StreamEvent, Subscription
from .query import MAX_LIMIT, Filter, OrderDir, Query, parse_filters

_log = logging.getLogger(__name__)

_UINT = re.compile(r"[0-9]+")
_UINT64_LIMIT = 1 << 64
_CONNECTED = b": connected\n\n"
_DISCONNECT_POLL_SECONDS = 1.0


def _parse_uint(text: str, what: str) -> int:
    if not _UINT.fullmatch(text) or int(text) >= _UINT64_LIMIT:
        raise ValueError(f"invalid {what}: {text!r}")
    return int(text)


def parse_event_id(event_id: str) -> tuple[int, int]:
    """Split a ``block:logIndex`` id into its two numbers."""
    block, sep, log_index = event_id.partition(":")
    if not sep:
        raise ValueError("expected block:logIndex format")
    return _parse_uint(block, "block number"), _parse_uint(log_index, "log index")


def format_sse_event(event: StreamEvent) -> str:
    """Render an event as an SSE frame: ``id: ...\\ndata: {json}\\n\\n``."""
    data = json.dumps(event.data, separators=(",", ":"), sort_keys=True, default=_json_default)
    return f"id: {event.event_id()}\ndata: {data}\n\n"


async def replay_events(
    store: Any, table: str, last_id: str, filters: Sequence[Filter]
) -> list[StreamEvent]:
    """Stored events that come after ``last_id``, oldest first.

    ``store.get_events(table, query)`` is awaited and must return objects with
    ``block_number``, ``log_index`` and ``data``.
    """
    block, log_index = parse_event_id(last_id)
    query = Query(
        limit=MAX_LIMIT,
        order_by="block_number",
        order_dir=OrderDir.ASC,
        filters=[*filters, Filter("block_number", "gte", str(block))],
    )
    stored = await store.get_events(table, query)
    return [
        StreamEvent(
            table=table,
            block_number=evt.block_number,
            log_index=evt.log_index,
            data=evt.data,
        )
        for evt in stored
        if (evt.block_number, evt.log_index) > (block, log_index)
    ]


async def _write_event(response: web.StreamResponse, event: StreamEvent) -> None:
    try:
        frame = format_sse_event(event)
    except (TypeError, ValueError):
        return
    await response.write(frame.encode("utf-8"))


async def _replay(
    server: Any,
    response: web.StreamResponse,
    table: str,
    last_id: str,
    filters: Sequence[Filter],
    logger: logging.Logger,
) -> None:
    try:
        parse_event_id(last_id)
    except ValueError as exc:
        logger.warning("invalid Last-Event-ID %r: %s", last_id, exc)
        return
    try:
        events = await replay_events(server.store, table, last_id, filters)
    except Exception:
        logger.exception("SSE replay query failed for table %s", table)
        return
    for event in events:
        await _write_event(response, event)


def _client_gone(request: web.Request) -> bool:
    transport = request.transport
    return transport is None or transport.is_closing()


async def _pump(
    request: web.Request, response: web.StreamResponse, subscription: Subscription
) -> bool:
    """Forward events until the bus closes (False) or the client leaves (True)."""
    getter: asyncio.Future[StreamEvent | None] | None = None
    try:
        while True:
            if getter is None:
                getter = asyncio.ensure_future(subscription.get())
            done, _ = await asyncio.wait({getter}, timeout=_DISCONNECT_POLL_SECONDS)
            if not done:
                if _client_gone(request):
                    return True
                continue
            event = getter.result()
            getter = None
            if event is None:
                return False
            await _write_event(response, event)
    finally:
        if getter is not None:
            getter.cancel()


async def handle_stream(request: web.Request) -> web.StreamResponse:
    """GET /v1/{contract}/{event}/stream: stream new events as SSE."""
    server = get_server(request)
    logger = getattr(server, "logger", None) or _log
    contract = request.match_info["contract"]
    event_name = request.match_info["event"]

    schema = server.lookup_schema(contract, event_name)
    if schema is None:
        return error_response(404, "table not found")

    bus = server.event_bus
    if bus is None:
        return error_response(503, "event streaming not available")

    filters = parse_filters(request.query)

    # Subscribe before sending headers so nothing published in between is lost.
    subscription = bus.subscribe(schema.name, filters)
    response = web.StreamResponse(
        status=200,
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
    try:
        await response.prepare(request)
        await response.write(_CONNECTED)

        last_id = request.headers.get("Last-Event-ID", "")
        if last_id:
            await _replay(server, response, schema.name, last_id, filters, logger)

        logger.info(
            "SSE client connected contract=%s event=%s subscription_id=%s",
            contract,
            event_name,
            subscription.id,
        )
        if await _pump(request, response, subscription):
            logger.info(
                "SSE client disconnected contract=%s event=%s subscription_id=%s",
                contract,
                event_name,
                subscription.id,
            )
    except ConnectionResetError:
        logger.info("SSE client connection reset subscription_id=%s", subscription.id)
    finally:
        bus.unsubscribe(subscription.id)
    return response