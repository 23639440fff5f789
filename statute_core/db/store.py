import sqlite3
from datetime import datetime
from typing import Optional, Protocol

from statute_core.models import Statute

SOURCE_API: str = "openlaws"


class StatuteStore(Protocol):
    """Persistent cache of resolved statutes, keyed by (citation, jurisdiction)."""

    def get(self, citation: str, jurisdiction: str) -> Optional[Statute]:
        ...

    def upsert(self, statute: Statute) -> None:
        ...


def init_database(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, check_same_thread=False)
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS statutes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            citation TEXT NOT NULL,
            jurisdiction TEXT NOT NULL,
            title TEXT,
            level TEXT,
            chapter TEXT,
            section TEXT,
            content TEXT,
            url TEXT,
            division_path TEXT,
            effective_date TEXT,
            source_api TEXT,
            is_active INTEGER DEFAULT 1,
            last_updated TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (citation, jurisdiction)
        )
    ''')

    cursor.execute('CREATE INDEX IF NOT EXISTS idx_statutes_jurisdiction ON statutes(jurisdiction)')

    conn.commit()
    return conn


class SQLiteStatuteStore:
    """StatuteStore backed by a SQLite table with upsert-on-conflict."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str) -> "SQLiteStatuteStore":
        return cls(init_database(db_path))

    def get(self, citation: str, jurisdiction: str) -> Optional[Statute]:
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT division_path, citation, jurisdiction, title, content, section, url, effective_date, chapter
            FROM statutes
            WHERE citation = ? AND jurisdiction = ? AND is_active = 1
        ''', (citation, jurisdiction))
        row = cursor.fetchone()

        if row:
            return Statute(
                id=row[0] or "",
                citation=row[1],
                jurisdiction=row[2],
                title=row[3] or "",
                content=row[4] or "",
                section=row[5] or "",
                source_url=row[6],
                effective_date=row[7],
                chapter=row[8],
            )
        return None

    def upsert(self, statute: Statute) -> None:
        cursor = self.conn.cursor()
        cursor.execute('''
            INSERT INTO statutes
            (citation, jurisdiction, title, level, chapter, section, content, url,
             division_path, effective_date, source_api, is_active, last_updated)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?)
            ON CONFLICT (citation, jurisdiction) DO UPDATE SET
                title = excluded.title,
                level = excluded.level,
                chapter = excluded.chapter,
                section = excluded.section,
                content = excluded.content,
                url = excluded.url,
                division_path = excluded.division_path,
                effective_date = excluded.effective_date,
                source_api = excluded.source_api,
                last_updated = excluded.last_updated
        ''', (
            statute.citation,
            statute.jurisdiction,
            statute.title,
            statute.level,
            statute.chapter,
            statute.section,
            statute.content,
            statute.source_url,
            statute.id,
            statute.effective_date,
            SOURCE_API,
            datetime.now().isoformat(),
        ))

        self.conn.commit()

    def close(self) -> None:
        self.conn.close()
