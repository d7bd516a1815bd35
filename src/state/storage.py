# durable client-side key/value storage, survives app restarts
import asyncio
import os.path
from contextlib import asynccontextmanager
from typing import Dict, Iterable, Optional

import aiosqlite

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

STORAGE_PATH = config.STORAGE_PATH

_INIT_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_initialized = False
_init_lock = asyncio.Lock()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection to the store.

    Creates the file and the kv_store table on first use.
    """
    global _initialized
    folder = os.path.dirname(STORAGE_PATH)
    if folder:
        os.makedirs(folder, exist_ok=True)
    conn = await aiosqlite.connect(STORAGE_PATH)

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                _logger.info(f"Initializing local storage at {STORAGE_PATH}...")
                await conn.executescript(_INIT_SQL)
                await conn.commit()
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()


async def get_item(key: str) -> Optional[str]:
    """Return the stored value, or None if the key is absent."""
    async with connect() as conn:
        cur = await conn.execute("SELECT value FROM kv_store WHERE key = ?;", (key,))
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else None


async def get_items(keys: Iterable[str]) -> Dict[str, Optional[str]]:
    """Read several keys in one connection; absent keys map to None."""
    keys = list(keys)
    result: Dict[str, Optional[str]] = {k: None for k in keys}
    async with connect() as conn:
        for key in keys:
            cur = await conn.execute(
                "SELECT value FROM kv_store WHERE key = ?;", (key,)
            )
            row = await cur.fetchone()
            await cur.close()
            if row:
                result[key] = row[0]
    return result


async def set_item(key: str, value: str) -> None:
    await set_items({key: value})


async def set_items(items: Dict[str, str]) -> None:
    """Write all entries in a single transaction."""
    async with connect() as conn:
        await conn.executemany(
            "INSERT INTO kv_store(key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value;",
            list(items.items()),
        )
        await conn.commit()


async def remove_items(keys: Iterable[str]) -> None:
    async with connect() as conn:
        await conn.executemany(
            "DELETE FROM kv_store WHERE key = ?;", [(k,) for k in keys]
        )
        await conn.commit()
