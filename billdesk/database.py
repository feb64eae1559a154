import copy
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from fastapi.concurrency import run_in_threadpool
from loguru import logger
from pydantic import BaseModel, ValidationError
from sqlalchemy import JSON, Column, DateTime, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from billdesk.errors import PersistenceError

Base = declarative_base()

ModelT = TypeVar("ModelT", bound=BaseModel)

# (field, operator, value)
Filter = Tuple[str, str, Any]

MEMORY_URL = "memory://"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    __tablename__ = "documents"

    collection = Column(String(100), primary_key=True)
    doc_id = Column(String(200), primary_key=True)
    data = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


# --------------------------
# Query helpers
# --------------------------
_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
}


def _matches(data: Dict[str, Any], filters: Sequence[Filter]) -> bool:
    for field, op, value in filters:
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op}")
        if not _OPERATORS[op](data.get(field), value):
            return False
    return True


def _apply_query(
    docs: Iterable[Dict[str, Any]],
    filters: Optional[Sequence[Filter]],
    order_by: Optional[str],
    descending: bool,
    limit: Optional[int],
) -> List[Dict[str, Any]]:
    result = [d for d in docs if _matches(d, filters or [])]

    if order_by:
        # documents missing the field sort first
        result.sort(
            key=lambda d: (d.get(order_by) is not None, d.get(order_by)),
            reverse=descending,
        )

    if limit is not None:
        result = result[:limit]

    return result


def decode(model: Type[ModelT], data: Dict[str, Any], collection: str) -> ModelT:
    """Turn a raw store document into its typed record."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Malformed document in '{collection}': {e}")
        raise PersistenceError(f"Malformed document in '{collection}'") from e


def encode(record: BaseModel) -> Dict[str, Any]:
    return record.model_dump(by_alias=True, mode="json")


# --------------------------
# Stores
# --------------------------
class DocumentStore(ABC):
    """
    Collections of JSON documents addressed by id.
    Every call is a coroutine; failures surface as PersistenceError.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def close(self) -> None:
        pass


class MemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def get(self, collection, doc_id):
        data = self._collection(collection).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    async def set(self, collection, doc_id, data):
        self._collection(collection)[doc_id] = copy.deepcopy(data)

    async def update(self, collection, doc_id, partial):
        docs = self._collection(collection)
        if doc_id not in docs:
            raise PersistenceError(f"No document '{doc_id}' in '{collection}'")
        docs[doc_id] = {**docs[doc_id], **copy.deepcopy(partial)}

    async def delete(self, collection, doc_id):
        return self._collection(collection).pop(doc_id, None) is not None

    async def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        docs = [copy.deepcopy(d) for d in self._collection(collection).values()]
        return _apply_query(docs, filters, order_by, descending, limit)


class SqlDocumentStore(DocumentStore):
    """
    Documents kept as JSON rows of a single SQLAlchemy table.
    Blocking session work runs in the threadpool.
    """

    def __init__(self, url: str):
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False, "timeout": 10}

        self.engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)
        Base.metadata.create_all(bind=self.engine)

    def _run(self, fn, *args):
        db: Session = self.SessionLocal()
        try:
            return fn(db, *args)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error: {e}")
            raise PersistenceError(f"Database error: {e.__class__.__name__}") from e
        finally:
            db.close()

    def _row(self, db: Session, collection: str, doc_id: str) -> Optional[Document]:
        return db.get(Document, (collection, doc_id))

    # ---- sync bodies ----
    def _get(self, db: Session, collection, doc_id):
        row = self._row(db, collection, doc_id)
        return copy.deepcopy(row.data) if row else None

    def _set(self, db: Session, collection, doc_id, data):
        row = self._row(db, collection, doc_id)
        if row:
            row.data = copy.deepcopy(data)
        else:
            db.add(Document(collection=collection, doc_id=doc_id, data=copy.deepcopy(data)))
        db.commit()

    def _update(self, db: Session, collection, doc_id, partial):
        row = self._row(db, collection, doc_id)
        if not row:
            raise PersistenceError(f"No document '{doc_id}' in '{collection}'")
        # reassign so the JSON column is flagged dirty
        row.data = {**row.data, **copy.deepcopy(partial)}
        db.commit()

    def _delete(self, db: Session, collection, doc_id):
        row = self._row(db, collection, doc_id)
        if not row:
            return False
        db.delete(row)
        db.commit()
        return True

    def _query(self, db: Session, collection, filters, order_by, descending, limit):
        rows = db.query(Document).filter(Document.collection == collection).all()
        return _apply_query(
            (copy.deepcopy(r.data) for r in rows), filters, order_by, descending, limit
        )

    # ---- async API ----
    async def get(self, collection, doc_id):
        return await run_in_threadpool(self._run, self._get, collection, doc_id)

    async def set(self, collection, doc_id, data):
        await run_in_threadpool(self._run, self._set, collection, doc_id, data)

    async def update(self, collection, doc_id, partial):
        await run_in_threadpool(self._run, self._update, collection, doc_id, partial)

    async def delete(self, collection, doc_id):
        return await run_in_threadpool(self._run, self._delete, collection, doc_id)

    async def query(self, collection, filters=None, order_by=None, descending=False, limit=None):
        return await run_in_threadpool(
            self._run, self._query, collection, filters, order_by, descending, limit
        )

    def close(self) -> None:
        self.engine.dispose()


def build_store(url: str) -> DocumentStore:
    if url == MEMORY_URL:
        return MemoryDocumentStore()
    return SqlDocumentStore(url)
