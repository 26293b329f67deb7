import sqlite3
import threading
from contextlib import contextmanager
from typing import Callable, Generic, List, Optional, Tuple, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from config import YamlConfig
from models import ExerciseDefinition, WorkoutSession, WorkoutTemplate
from settings_schema import SettingsSchema, validate_settings


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "documents": (
            """CREATE TABLE documents (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    collection TEXT NOT NULL,
                    doc_id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    UNIQUE(user_id, collection, doc_id)
                );""",
            ["seq", "user_id", "collection", "doc_id", "body"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def __init__(self, db_path: str = "liftlog.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;")
        conn.execute(f"DROP TABLE {table}_old;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def execute_count(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.rowcount

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


T = TypeVar("T", bound=BaseModel)
Listener = Callable[[Tuple], None]


class DocumentRepository(BaseRepository, Generic[T]):
    """User-scoped document collection with snapshot listeners.

    Every listener receives the complete, freshly decoded collection after
    each write. Documents that fail to decode are logged and skipped so a
    single corrupt record never hides the rest of the collection.
    """

    collection: str = ""
    model: Type[BaseModel] = BaseModel
    order_by: Optional[str] = None
    descending: bool = False
    label: str = "document"

    def __init__(self, db_path: str = "liftlog.db", user_id: str = "local") -> None:
        super().__init__(db_path)
        self.user_id = user_id
        self._listeners: list[Listener] = []
        self._listeners_lock = threading.Lock()

    def add(self, record: T) -> str:
        self.execute(
            "INSERT INTO documents (user_id, collection, doc_id, body) VALUES (?, ?, ?, ?);",
            (self.user_id, self.collection, record.id, record.model_dump_json()),
        )
        self._notify()
        return record.id

    def update(self, record: T) -> None:
        count = self.execute_count(
            "UPDATE documents SET body = ? WHERE user_id = ? AND collection = ? AND doc_id = ?;",
            (record.model_dump_json(), self.user_id, self.collection, record.id),
        )
        if count == 0:
            raise ValueError(f"{self.label} not found")
        self._notify()

    def delete(self, record_id: str) -> None:
        count = self.execute_count(
            "DELETE FROM documents WHERE user_id = ? AND collection = ? AND doc_id = ?;",
            (self.user_id, self.collection, record_id),
        )
        if count == 0:
            raise ValueError(f"{self.label} not found")
        self._notify()

    def fetch(self, record_id: str) -> T:
        rows = self.fetch_all(
            "SELECT body FROM documents WHERE user_id = ? AND collection = ? AND doc_id = ?;",
            (self.user_id, self.collection, record_id),
        )
        if not rows:
            raise ValueError(f"{self.label} not found")
        return self.model.model_validate_json(rows[0][0])

    def fetch_snapshot(self) -> Tuple[T, ...]:
        rows = self.fetch_all(
            "SELECT doc_id, body FROM documents WHERE user_id = ? AND collection = ? ORDER BY seq;",
            (self.user_id, self.collection),
        )
        records = []
        for doc_id, body in rows:
            try:
                records.append(self.model.model_validate_json(body))
            except ValidationError as e:
                logger.warning(
                    "Skipping undecodable {} {}: {} errors",
                    self.label,
                    doc_id,
                    e.error_count(),
                )
        if self.order_by:
            records.sort(key=lambda r: getattr(r, self.order_by), reverse=self.descending)
        return tuple(records)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and deliver the current snapshot right away."""
        with self._listeners_lock:
            self._listeners.append(listener)
        listener(self.fetch_snapshot())

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snapshot = self.fetch_snapshot()
        for listener in listeners:
            listener(snapshot)


class ExerciseDefinitionRepository(DocumentRepository[ExerciseDefinition]):
    """Repository for the user's exercise library."""

    collection = "exercises"
    model = ExerciseDefinition
    label = "exercise"


class SessionRepository(DocumentRepository[WorkoutSession]):
    """Repository for saved workout sessions, newest first."""

    collection = "sessions"
    model = WorkoutSession
    order_by = "date"
    descending = True
    label = "session"


class TemplateRepository(DocumentRepository[WorkoutTemplate]):
    """Repository for routine templates."""

    collection = "templates"
    model = WorkoutTemplate
    label = "template"


class SettingsRepository(BaseRepository):
    """Repository for general application settings synchronized with YAML."""

    _BOOL_KEYS = {"enable_sound", "enable_haptics"}
    _INT_KEYS = {"default_rest_time", "first_weekday", "weekly_set_goal"}

    def __init__(
        self, db_path: str = "liftlog.db", yaml_path: str | None = None
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._init_settings()
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _init_settings(self) -> None:
        defaults = SettingsSchema().model_dump(exclude_none=True)
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, self._to_text(key, value)),
                )

    def _to_text(self, key: str, value) -> str:
        if key in self._BOOL_KEYS:
            return "1" if str(value) in {"1", "1.0", "true", "True"} else "0"
        return str(value)

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        result: dict[str, object] = {}
        for k, v in rows:
            if k in self._BOOL_KEYS:
                result[k] = v in {"1", "1.0", "true", "True"}
            elif k in self._INT_KEYS:
                result[k] = int(float(v))
            else:
                result[k] = v
        return result

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, self._to_text(key, value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def set_text(self, key: str, value: str) -> None:
        data = self._raw_all_settings()
        data[key] = value
        validate_settings(data)
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, self._to_text(key, value)),
        )
        self._sync_to_yaml()

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def set_int(self, key: str, value: int) -> None:
        self.set_text(key, str(value))

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get_text(key, str(default)))
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        return self.get_text(key, "1" if default else "0") in {
            "1",
            "true",
            "True",
            "1.0",
        }

    def set_bool(self, key: str, value: bool) -> None:
        self.set_text(key, "1" if value else "0")
