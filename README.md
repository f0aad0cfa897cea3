# ibis-indexer

Building blocks for a Starknet event indexer:

- **ABI decoding** (`ibis_indexer.abi`): Cairo type model, event selectors
  (`starknet_keccak`) and decoding of raw event keys and data felts into
  plain Python values.
- **API pieces** (`ibis_indexer.api`): parsing of Supabase-style query
  parameters, an in-memory event bus, and aiohttp request handlers for
  Server-Sent Events streaming and runtime contract administration.

Install with `pip install .`; the test extra is `pip install .[test]`.

## Decoding events

```python
from ibis_indexer.abi.decoder import decode_event
from ibis_indexer.abi.selector import EventRegistry, compute_selector
from ibis_indexer.abi.types import CairoType, EventDef, FieldDef, TypeDef

address = TypeDef(CairoType.CONTRACT_ADDRESS)
amount = TypeDef(CairoType.U256)
transfer = EventDef(
    name="Transfer",
    full_name="token::Transfer",
    selector=compute_selector("Transfer"),
    key_members=[FieldDef("from", address), FieldDef("to", address)],
    data_members=[FieldDef("value", amount)],
)

registry = EventRegistry([transfer])
keys = [compute_selector("Transfer"), 0x1, 0x2]
data = [1000, 0]

event_def = registry.match_selector(keys[0])
decode_event(event_def, keys[1:], data)
# {'from': '0x1', 'to': '0x2', 'value': '1000'}
```

Felts are Python `int`s. Decoding follows the Cairo serialisation rules:

- `felt252`, contract addresses and class hashes become `0x` hex strings
  (`felt_to_hex`);
- `u8`..`u64` become ints (a value out of range raises `DecodeError`),
  `i8`..`i64` signed ints; `u128`, `i128` and `u256` (two felts, low then
  high) become decimal strings;
- `bool` is true for any non-zero felt;
- `ByteArray` is read from 31-byte chunks plus a pending word;
- arrays and spans are length-prefixed lists, structs become dicts, and
  enums become `{"variant": name, "value": ...}` (no `value` for unit
  variants).

`decode_type(type_def, felts, offset)` decodes a single value and returns it
with the number of felts it used; `TypeDef.felt_size()` gives the fixed size
of a type, or `-1` when it is variable.

`RawAbiEntry.from_dict` and `ContractClass.from_dict(...).entries()` read ABI
JSON (the ABI may be a JSON array or a string holding one).

## Query parameters

```python
from ibis_indexer.api.query import parse_query

q = parse_query({"limit": "9999", "order": "block_number.asc", "from": "eq.0xalice"})
# q.limit == 500, q.order_dir is OrderDir.ASC,
# q.filters == [Filter("from", "eq", "0xalice")]
```

- `limit` (default 50, capped at 500) and `offset`; bad values raise
  `QueryError`.
- `order=field.asc` or `order=field.desc` (default `block_number.desc`).
- Any other parameter is a filter `field=op.value`, `op` one of `eq`, `neq`,
  `gt`, `gte`, `lt`, `lte`. Without a known operator prefix it is an
  equality filter (`parse_filter_param`). `parse_filters` builds only the
  filters.

## Event bus

```python
from ibis_indexer.api.eventbus import EventBus, StreamEvent

bus = EventBus()
sub = bus.subscribe("mytoken_transfer", filters)   # "" subscribes to every table
bus.publish(StreamEvent(table="mytoken_transfer", block_number=200, log_index=0,
                        data={"from": "0xalice"}))
event = await sub.get()          # or: async for event in sub: ...
bus.unsubscribe(sub.id)
```

Publishing never blocks: each subscriber buffers up to 64 events and misses
further ones while full. On the bus only `eq` and `neq` filters reject
events; other operators always pass. `close()` ends every subscription, after
which `get()` returns `None` and publishing does nothing. `event_id()` gives
`"{block}:{log_index}"`.

## aiohttp handlers

The handlers find their dependencies through an object stored in the
application under `ibis_indexer.api.common.SERVER_KEY`. That object supplies:

- `lookup_schema(contract, event)`: a table schema with a `name`, or `None`;
- `event_bus`: an `EventBus` or `None`;
- `store`: with an awaitable `get_events(table, query)` returning items that
  have `block_number`, `log_index` and `data`;
- `engine`: `None`, or an object with awaitable `register_contract(contract)`,
  `deregister_contract(name, drop_tables)` and `update_contract(name, contract)`,
  and plain `contracts()` and `find_contract(name)`;
- `settings.admin_key`: the admin key, empty for open access;
- optionally `logger`.

```python
from aiohttp import web

from ibis_indexer.api.admin import (
    admin_auth,
    handle_admin_deregister_contract,
    handle_admin_list_contracts,
    handle_admin_register_contract,
    handle_admin_update_contract,
)
from ibis_indexer.api.common import SERVER_KEY
from ibis_indexer.api.sse import handle_stream

app = web.Application()
app[SERVER_KEY] = my_server
app.router.add_get("/v1/{contract}/{event}/stream", handle_stream)
app.router.add_get("/v1/admin/contracts", admin_auth(handle_admin_list_contracts))
app.router.add_post("/v1/admin/contracts", admin_auth(handle_admin_register_contract))
app.router.add_put("/v1/admin/contracts/{name}", admin_auth(handle_admin_update_contract))
app.router.add_delete("/v1/admin/contracts/{name}", admin_auth(handle_admin_deregister_contract))
```

### Streaming

`handle_stream` answers 404 `table not found` for an unknown table and 503
when there is no event bus. Otherwise it subscribes before sending headers
(`text/event-stream`, `no-cache`, `keep-alive`), writes a `: connected`
comment, and then sends each matching event as
`id: {block}:{log_index}\ndata: {json}\n\n` (`format_sse_event`). A
`Last-Event-ID` header first replays stored events after that ID, oldest
first (`replay_events`, `parse_event_id`); an invalid ID is logged and
ignored. The stream ends when the bus closes or the client leaves.

### Admin

`admin_auth` returns 401 unless `X-Admin-Key` matches a configured key.
Every admin handler returns 503 `dynamic registration not available`
without an engine. Registration takes a JSON object with `name` and
`address` (400 when missing or malformed, 500 when the engine fails, 201 on
success); deregistration honours `?drop_tables=true`; updating an unknown
contract gives 404. `json_response` and `error_response` build the JSON
replies.

## What this package does not do

- It has no ready-made server or application: routes are added by the user
  as above, and there is no command-line tool.
- It has no handlers for listing events, latest, count, unique, aggregate,
  health, status or factory children.
- It has no storage backend and no indexing engine; the store and engine
  are supplied by the caller.
- It does not resolve raw ABI entries into `TypeDef` and `EventDef` objects;
  those are built by the caller.