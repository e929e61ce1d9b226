import uuid
import psycopg2
from psycopg2.extras import Json, RealDictCursor
from contextlib import contextmanager
from loguru import logger
from config import get_db_config

@contextmanager
def get_db():
    """Get a database connection with automatic commit/rollback."""
    config = get_db_config()
    conn = psycopg2.connect(
        host=config["host"],
        port=config["port"],
        database=config["database"],
        user=config["user"],
        password=config["password"],
        cursor_factory=RealDictCursor
    )
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    """Initialize database schema."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Every collection (players, drills, practices, ...) is a keyed JSON document
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                data JSONB NOT NULL DEFAULT '{}',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (collection, id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_documents_collection_created
            ON documents (collection, created_at)
        """)

        conn.commit()
    logger.info("Database schema ready")


def _to_document(row):
    data = dict(row["data"] or {})
    data["id"] = row["id"]
    return data


def list_documents(collection: str) -> list[dict]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, data FROM documents WHERE collection = %s ORDER BY created_at",
            (collection,)
        )
        return [_to_document(row) for row in cursor.fetchall()]


def get_document(collection: str, doc_id: str):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, data FROM documents WHERE collection = %s AND id = %s",
            (collection, doc_id)
        )
        row = cursor.fetchone()
        return _to_document(row) if row else None


def add_document(collection: str, data: dict, doc_id: str = None) -> dict:
    doc_id = doc_id or data.get("id") or str(uuid.uuid4())
    body = {k: v for k, v in data.items() if k != "id"}
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO documents (collection, id, data)
            VALUES (%s, %s, %s)
            ON CONFLICT (collection, id)
            DO UPDATE SET data = EXCLUDED.data, updated_at = CURRENT_TIMESTAMP
            RETURNING id, data
        """, (collection, doc_id, Json(body)))
        return _to_document(cursor.fetchone())


def update_document(collection: str, doc_id: str, data: dict):
    body = {k: v for k, v in data.items() if k != "id"}
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE documents SET data = %s, updated_at = CURRENT_TIMESTAMP
            WHERE collection = %s AND id = %s
            RETURNING id, data
        """, (Json(body), collection, doc_id))
        row = cursor.fetchone()
        return _to_document(row) if row else None


def delete_document(collection: str, doc_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM documents WHERE collection = %s AND id = %s", (collection, doc_id))
        return cursor.rowcount > 0


if __name__ == "__main__":
    init_db()
    print("Database initialized successfully")
