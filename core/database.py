from __future__ import annotations

import json
import logging
import sqlite3
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple

from core.errors import DocumentExistsError, StoreError

logger = logging.getLogger(__name__)

# Erstattes med committidspunktet når dokumentet skrives
SERVER_TIMESTAMP = object()

Document = Tuple[str, Dict[str, Any]]
Listener = Callable[[List[Document]], None]
ErrorListener = Callable[[Exception], None]


class _Watch:
    def __init__(self, callback: Listener, on_error: ErrorListener | None, order_by: str | None) -> None:
        self.callback = callback
        self.on_error = on_error
        self.order_by = order_by


class WriteBatch:
    """Samler skrivinger og committer dem i én transaksjon."""

    def __init__(self) -> None:
        self._ops: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._ops.append(("set", collection, doc_id, data))

    def delete(self, collection: str, doc_id: str) -> None:
        self._ops.append(("delete", collection, doc_id, None))

    def __len__(self) -> int:
        return len(self._ops)


class DocumentDatabase:
    """Dokumentlager på SQLite: samling + dokument-ID -> JSON-kropp.

    Klienten opprettes eksplisitt ved oppstart, åpnes med open() og lukkes med
    close(). Abonnenter (watch) får hele samlingen straks og på nytt etter hver
    commit som berører samlingen.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._watches: Dict[str, List[_Watch]] = defaultdict(list)
        self._opened = False

    # livssyklus
    def open(self) -> "DocumentDatabase":
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection_scope() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    doc_id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, doc_id)
                )
                """
            )
            conn.commit()
        self._opened = True
        logger.info("Dokumentdatabase åpnet: %s", self.db_path)
        return self

    def close(self) -> None:
        self._watches.clear()
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    @contextmanager
    def connection_scope(self) -> Generator[sqlite3.Connection, None, None]:
        """Åpne/lukk en anslutning og oversett SQLite-feil til StoreError."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        try:
            yield conn
        except sqlite3.IntegrityError as exc:
            raise DocumentExistsError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    # lesing
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._require_open()
        with self.connection_scope() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
        return json.loads(row[0]) if row else None

    def list(self, collection: str, order_by: str | None = None) -> List[Document]:
        self._require_open()
        with self.connection_scope() as conn:
            rows = conn.execute(
                "SELECT doc_id, data FROM documents WHERE collection = ? ORDER BY doc_id",
                (collection,),
            ).fetchall()
        docs = [(row[0], json.loads(row[1])) for row in rows]
        if order_by:
            docs.sort(key=lambda doc: str(doc[1].get(order_by) or ""))
        return docs

    def count(self, collection: str) -> int:
        self._require_open()
        with self.connection_scope() as conn:
            row = conn.execute("SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,)).fetchone()
        return int(row[0])

    # skriving
    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        batch = WriteBatch()
        batch.set(collection, doc_id, data)
        self.commit(batch)

    def delete(self, collection: str, doc_id: str) -> None:
        batch = WriteBatch()
        batch.delete(collection, doc_id)
        self.commit(batch)

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Opprett dokumentet bare hvis det ikke finnes (DocumentExistsError ellers)."""
        self._require_open()
        stamp = _now()
        with self.connection_scope() as conn:
            conn.execute(
                "INSERT INTO documents (collection, doc_id, data, updated_at) VALUES (?, ?, ?, ?)",
                (collection, doc_id, _dump(data, stamp), stamp),
            )
            conn.commit()
        self._notify({collection})

    @contextmanager
    def batch(self) -> Generator[WriteBatch, None, None]:
        """Samle skrivinger i en blokk; alt committes samlet når blokken avsluttes."""
        batch = WriteBatch()
        yield batch
        self.commit(batch)

    def commit(self, batch: WriteBatch) -> None:
        self._require_open()
        if not len(batch):
            return
        stamp = _now()
        touched = set()
        with self.connection_scope() as conn:
            for op, collection, doc_id, data in batch._ops:
                if op == "set":
                    conn.execute(
                        "INSERT INTO documents (collection, doc_id, data, updated_at) VALUES (?, ?, ?, ?) "
                        "ON CONFLICT(collection, doc_id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at",
                        (collection, doc_id, _dump(data or {}, stamp), stamp),
                    )
                else:
                    conn.execute(
                        "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                        (collection, doc_id),
                    )
                touched.add(collection)
            conn.commit()
        self._notify(touched)

    # abonnement
    def watch(
        self,
        collection: str,
        callback: Listener,
        on_error: ErrorListener | None = None,
        order_by: str | None = None,
    ) -> Callable[[], None]:
        """Abonner på en samling. Returnerer en funksjon som avslutter abonnementet."""
        entry = _Watch(callback, on_error, order_by)
        self._watches[collection].append(entry)
        self._deliver(collection, entry)

        def unsubscribe() -> None:
            try:
                self._watches[collection].remove(entry)
            except ValueError:
                pass

        return unsubscribe

    def _notify(self, collections: set) -> None:
        for collection in collections:
            for entry in list(self._watches.get(collection, [])):
                self._deliver(collection, entry)

    def _deliver(self, collection: str, entry: _Watch) -> None:
        try:
            docs = self.list(collection, order_by=entry.order_by)
        except StoreError as exc:
            logger.error("Kunne ikke lese %s for abonnent: %s", collection, exc)
            if entry.on_error:
                entry.on_error(exc)
            return
        try:
            entry.callback(docs)
        except Exception:  # en feilende abonnent skal ikke stoppe de andre
            logger.exception("Abonnent på %s feilet", collection)

    def _require_open(self) -> None:
        if not self._opened:
            raise StoreError("Dokumentdatabasen er ikke åpnet")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump(data: Dict[str, Any], stamp: str) -> str:
    resolved = {key: (stamp if value is SERVER_TIMESTAMP else value) for key, value in data.items()}
    return json.dumps(resolved, ensure_ascii=False)
