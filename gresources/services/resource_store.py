import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Callable, Optional

import aiofiles
import aiofiles.os

from gresources.errors import (
    InvalidFolderDeletion,
    ResourceConflict,
    ResourceNotFound,
    StoreError,
)
from gresources.models.resource import (
    FolderView,
    Resource,
    format_timestamp,
    parse_timestamp,
    utc_now,
)
from gresources.services.path_semantics import content_byte_length, normalize_path
from monitor import Monitor

logger = logging.getLogger("gresources.store")

_RESOURCE_COLUMNS = "id, user_id, path, content, size, created_at, updated_at"


class ResourceStore:
    """Persistence for resources, with folders derived from path prefixes.

    A single SQLite connection is shared by every request. All access goes
    through :meth:`_run`, which holds one lock for the whole operation, so a
    reader never sees a half-applied write.
    """

    def __init__(self, db_file_path, schema_path, monitor: Optional[Monitor] = None):
        self.db_file_path = Path(db_file_path)
        self.schema_path = Path(schema_path)
        self._monitor = monitor
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    async def initialize(self):
        """Open the database and create the schema if the resources table is missing."""
        logger.info("Initializing resource store...")

        self.db_file_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await asyncio.to_thread(self._connect)
        logger.debug(f"Database opened: {self.db_file_path}")

        try:
            table_exists = await asyncio.to_thread(self._table_exists)
            if table_exists:
                logger.info("Database schema already exists, skipping initialization")
                return

            if not await aiofiles.os.path.exists(self.schema_path):
                raise RuntimeError(f"Database schema file not found: {self.schema_path}")

            async with aiofiles.open(self.schema_path, 'r') as f:
                schema = await f.read()
            await asyncio.to_thread(self._conn.executescript, schema)
        except BaseException:
            self._conn.close()
            self._conn = None
            raise
        logger.info("Database schema initialized successfully")

    async def close(self):
        async with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Resource store closed")

    async def _run(self, path: str, operation: Callable, *args):
        """Execute ``operation`` in a worker thread while holding the store lock."""
        async with self._lock:
            if self._conn is None:
                raise StoreError("Resource store is not initialized")
            try:
                result = await asyncio.to_thread(operation, *args)
            except (sqlite3.Error, ValueError) as e:
                # ValueError covers rows whose timestamps or fields no longer parse
                if self._monitor is not None:
                    self._monitor.fail(operation.__name__.lstrip('_'), path, e)
                raise StoreError(f"{operation.__name__} failed for {path}: {e}") from e

        if self._monitor is not None:
            self._monitor.pass_(operation.__name__.lstrip('_'))
        return result

    # Public operations

    async def exists(self, path: str) -> bool:
        path = normalize_path(path)
        return await self._run(path, self._exists, path)

    async def create(self, path: str, content: str, owner_id: Optional[int] = None) -> Resource:
        """Insert a new resource. Raises ResourceConflict if the path is taken."""
        resource = Resource.new(normalize_path(path), content, owner_id)
        return await self._run(resource.path, self._create, resource)

    async def get(self, path: str) -> Optional[Resource]:
        """Return the resource stored at exactly ``path``, or None."""
        path = normalize_path(path)
        return await self._run(path, self._get, path)

    async def update(self, path: str, content: str) -> Resource:
        """Overwrite the content of an existing resource. Raises ResourceNotFound."""
        path = normalize_path(path)
        return await self._run(path, self._update, path, content)

    async def delete(self, path: str) -> None:
        """Remove an existing resource. Raises ResourceNotFound."""
        path = normalize_path(path)
        await self._run(path, self._delete, path)

    async def list_folder(self, folder_path: str) -> FolderView:
        """List the direct children of a folder.

        Descendants nested more than one level down are represented by their
        one-level ancestor only. They still make the folder exist. Raises
        ResourceNotFound when nothing is stored at or below the folder, except
        for the root, which always exists.
        """
        folder_path = normalize_path(folder_path) or '/'
        return await self._run(folder_path, self._list_folder, folder_path)

    async def folder_is_empty(self, folder_path: str) -> bool:
        """True when no stored path lies anywhere below ``folder_path``."""
        folder_path = normalize_path(folder_path) or '/'
        return await self._run(folder_path, self._folder_is_empty, folder_path)

    async def delete_folder(self, folder_path: str) -> None:
        """Folders are implicit, so deleting an empty one changes nothing."""
        if not await self.folder_is_empty(folder_path):
            raise InvalidFolderDeletion("Cannot delete non-empty folder")
        logger.debug(f"Empty folder {folder_path} deleted (no rows affected)")

    # Blocking implementations, only called through _run

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_file_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _table_exists(self) -> bool:
        return self._conn.execute(
            "SELECT COUNT(*) FROM sqlite_master WHERE type='table' AND name='resources'"
        ).fetchone()[0] > 0

    def _exists(self, path: str) -> bool:
        count = self._conn.execute(
            "SELECT COUNT(*) FROM resources WHERE path = ?", (path,)
        ).fetchone()[0]
        return count > 0

    def _create(self, resource: Resource) -> Resource:
        try:
            with self._conn:
                cur = self._conn.execute(
                    f"""
                    INSERT INTO resources ({_RESOURCE_COLUMNS})
                    VALUES (NULL, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        resource.owner_id,
                        resource.path,
                        resource.content,
                        resource.size,
                        format_timestamp(resource.created_at),
                        format_timestamp(resource.updated_at),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ResourceConflict("Resource already exists") from e

        logger.debug(f"Created resource {resource.path} ({resource.size} bytes)")
        return resource.model_copy(update={"id": cur.lastrowid})

    def _get(self, path: str) -> Optional[Resource]:
        row = self._conn.execute(
            f"SELECT {_RESOURCE_COLUMNS} FROM resources WHERE path = ?", (path,)
        ).fetchone()
        return _row_to_resource(row) if row else None

    def _update(self, path: str, content: str) -> Resource:
        with self._conn:
            cur = self._conn.execute(
                "UPDATE resources SET content = ?, size = ?, updated_at = ? WHERE path = ?",
                (content, content_byte_length(content), format_timestamp(utc_now()), path),
            )
        if cur.rowcount == 0:
            raise ResourceNotFound("Resource not found")

        logger.debug(f"Updated resource {path}")
        return self._get(path)

    def _delete(self, path: str) -> None:
        with self._conn:
            cur = self._conn.execute("DELETE FROM resources WHERE path = ?", (path,))
        if cur.rowcount == 0:
            raise ResourceNotFound("Resource not found")
        logger.debug(f"Deleted resource {path}")

    def _list_folder(self, folder_path: str) -> FolderView:
        normalized = normalize_path(folder_path) or '/'
        child_prefix = '/' if normalized == '/' else normalized + '/'

        # substr() keeps the match exact and case-sensitive, unlike LIKE
        rows = self._conn.execute(
            """
            SELECT path, created_at FROM resources
            WHERE path = ? OR substr(path, 1, ?) = ?
            ORDER BY path
            """,
            (normalized, len(child_prefix), child_prefix),
        ).fetchall()

        folder_created_at = None
        has_descendants = False
        children = set()
        for row in rows:
            path = row["path"]
            if path == normalized:
                folder_created_at = parse_timestamp(row["created_at"])
                continue

            has_descendants = True
            # Rows written before slash collapsing may carry empty segments; they are still listed
            first_segment = path[len(child_prefix):].split('/', 1)[0]
            children.add(child_prefix + first_segment)

        if folder_created_at is None and not has_descendants and normalized != '/':
            raise ResourceNotFound("Folder not found")

        return FolderView(
            path=normalized,
            created_at=folder_created_at or utc_now(),
            children=sorted(children),
        )

    def _folder_is_empty(self, folder_path: str) -> bool:
        normalized = normalize_path(folder_path) or '/'
        child_prefix = '/' if normalized == '/' else normalized + '/'
        count = self._conn.execute(
            "SELECT COUNT(*) FROM resources WHERE substr(path, 1, ?) = ? AND path != ?",
            (len(child_prefix), child_prefix, normalized),
        ).fetchone()[0]
        return count == 0


def _row_to_resource(row: sqlite3.Row) -> Resource:
    return Resource(
        id=row["id"],
        owner_id=row["user_id"],
        path=row["path"],
        content=row["content"],
        size=row["size"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )
