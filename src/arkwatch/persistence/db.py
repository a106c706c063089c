"""Database connection management with WAL mode and bundled migrations."""

import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def calculate_checksum(file_path: Path) -> str:
    """Return the SHA-256 hex digest of a migration file."""
    return hashlib.sha256(file_path.read_bytes()).hexdigest()


def discover_migrations(migrations_dir: Path) -> list[tuple[str, Path]]:
    """List migrations as (name, path) tuples in lexical order."""
    return [(f.name, f) for f in sorted(migrations_dir.glob("*.sql"))]


class DatabaseManager:
    """Manages the SQLite connection with WAL mode and optimal pragmas."""

    def __init__(self, db_path: str | Path, migrations_dir: Path = MIGRATIONS_DIR):
        """
        Initialize database manager.

        Args:
            db_path: Path to SQLite database file
            migrations_dir: Directory of ``*.sql`` migrations applied by init_db
        """
        self.db_path = Path(db_path)
        self.migrations_dir = migrations_dir
        self._connection: Optional[aiosqlite.Connection] = None

    @property
    def exists(self) -> bool:
        return self.db_path.exists()

    async def get_connection(self) -> aiosqlite.Connection:
        """
        Get database connection with WAL mode and optimized pragmas.

        Returns:
            SQLite connection with WAL mode enabled

        Raises:
            RuntimeError: If WAL mode could not be enabled
        """
        if self._connection is not None:
            return self._connection

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(self.db_path))

        try:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA synchronous=FULL")
            await conn.execute("PRAGMA busy_timeout=5000")

            cursor = await conn.execute("PRAGMA journal_mode")
            mode = await cursor.fetchone()
            await cursor.close()

            if mode[0].lower() != "wal":
                raise RuntimeError(
                    f"Failed to enable WAL mode. Expected 'wal', got '{mode[0]}'."
                )
        except Exception:
            await conn.close()
            raise

        logger.info(
            "database_connection_established",
            db_path=str(self.db_path),
            journal_mode=mode[0],
        )

        self._connection = conn
        return conn

    async def init_db(self) -> list[str]:
        """
        Apply pending migrations in lexical order.

        Returns:
            Names of the migrations applied by this call

        Raises:
            RuntimeError: If an applied migration's checksum changed on disk
        """
        conn = await self.get_connection()
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                migration_name TEXT PRIMARY KEY,
                checksum TEXT NOT NULL,
                applied_at INTEGER NOT NULL
            ) STRICT
        """)
        await conn.commit()

        cursor = await conn.execute("SELECT migration_name, checksum FROM schema_migrations")
        applied = {row[0]: row[1] for row in await cursor.fetchall()}
        await cursor.close()

        newly_applied = []
        for name, path in discover_migrations(self.migrations_dir):
            checksum = calculate_checksum(path)
            if name in applied:
                if applied[name] != checksum:
                    raise RuntimeError(
                        f"Checksum mismatch for applied migration '{name}'"
                    )
                continue

            await conn.executescript(path.read_text(encoding="utf-8"))
            await conn.execute(
                "INSERT INTO schema_migrations (migration_name, checksum, applied_at) VALUES (?, ?, ?)",
                (name, checksum, int(datetime.now().timestamp())),
            )
            await conn.commit()
            newly_applied.append(name)
            logger.info("migration_applied", migration=name)

        logger.info(
            "database_initialized",
            db_path=str(self.db_path),
            applied_count=len(newly_applied),
        )
        return newly_applied

    async def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("database_connection_closed", db_path=str(self.db_path))
