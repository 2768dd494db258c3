# connection handling for the db package; schema is created on first connect
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

_HERE = os.path.dirname(os.path.abspath(__file__))

DB_PATH = config.DB_PATH
DB_INIT_SCRIPTS = [
    os.path.join(_HERE, "schema.sql"),
    os.path.join(_HERE, "seed.sql"),
]
# stored in PRAGMA user_version once the scripts have run
SCHEMA_VERSION = 1

_initialized = False
_init_lock = asyncio.Lock()


async def _schema_version(conn: aiosqlite.Connection) -> int:
    cur = await conn.execute("PRAGMA user_version;")
    (version,) = await cur.fetchone()
    await cur.close()
    return int(version)


async def _init_db(conn: aiosqlite.Connection) -> None:
    """Create tables and seed the catalog."""
    for script in DB_INIT_SCRIPTS:
        _logger.info(f"Running {os.path.basename(script)}")
        with open(script, "r", encoding="utf-8") as f:
            await conn.executescript(f.read())
    await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


async def _grant_admins(conn: aiosqlite.Connection) -> None:
    # explicit assignments already stored for these emails win
    await conn.executemany(
        "INSERT OR IGNORE INTO role_assignments(email, role) VALUES (?, 'admin');",
        [(email,) for email in config.ADMIN_EMAILS],
    )
    await conn.commit()


async def _open(path: str) -> aiosqlite.Connection:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = await aiosqlite.connect(path)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Yield a connection to ``DB_PATH`` with foreign keys enforced.

    The first connection of the process initializes an empty database file.
    """
    global _initialized
    conn = await _open(DB_PATH)
    try:
        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if await _schema_version(conn) < SCHEMA_VERSION:
                        _logger.info(f"Initializing database {DB_PATH}")
                        await _init_db(conn)
                    await _grant_admins(conn)
                    _initialized = True
        yield conn
    finally:
        await conn.close()
