"""Query parsing, event bus, and aiohttp handlers for SSE streaming and admin."""