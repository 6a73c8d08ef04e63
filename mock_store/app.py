"""In-memory document store speaking the gateway's HTTP protocol"""

import math
import threading
import uuid
from typing import Any, Dict, List, Optional
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

Fields = Dict[str, Any]


class DocumentBody(BaseModel):
    fields: Fields = Field(default_factory=dict)


class WhereClause(BaseModel):
    field: str
    op: str = "=="
    value: Any = None


class OrderBy(BaseModel):
    field: str
    direction: str = "asc"


class QueryBody(BaseModel):
    where: List[WhereClause] = Field(default_factory=list)
    order_by: Optional[OrderBy] = None


class Write(BaseModel):
    op: str  # create | update | increment
    collection: str
    id: Optional[str] = None
    fields: Fields = Field(default_factory=dict)
    field: Optional[str] = None
    delta: float = 0.0
    minimum: Optional[float] = None


class CommitBody(BaseModel):
    writes: List[Write]


class MissingDocument(Exception):
    pass


class PreconditionFailed(Exception):
    pass


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


class InMemoryDocumentStore:
    """Collections of JSON documents guarded by one lock"""

    def __init__(self, seed: Optional[Dict[str, Dict[str, Fields]]] = None):
        self._lock = threading.Lock()
        self.collections: Dict[str, Dict[str, Fields]] = {}
        for collection, docs in (seed or {}).items():
            self.collections[collection] = {doc_id: dict(fields) for doc_id, fields in docs.items()}

    def _collection(self, name: str) -> Dict[str, Fields]:
        return self.collections.setdefault(name, {})

    def get(self, collection: str, doc_id: str) -> Optional[Fields]:
        with self._lock:
            fields = self._collection(collection).get(doc_id)
            return dict(fields) if fields is not None else None

    def put(self, collection: str, doc_id: Optional[str], fields: Fields) -> str:
        with self._lock:
            doc_id = doc_id or uuid.uuid4().hex
            self._collection(collection)[doc_id] = dict(fields)
            return doc_id

    def update(self, collection: str, doc_id: str, fields: Fields) -> Fields:
        with self._lock:
            docs = self._collection(collection)
            if doc_id not in docs:
                raise MissingDocument(f"{collection}/{doc_id}")
            docs[doc_id].update(fields)
            return dict(docs[doc_id])

    def query(self, collection: str, where: List[WhereClause], order_by: Optional[OrderBy]) -> List[Dict[str, Any]]:
        with self._lock:
            docs = [
                {"id": doc_id, "fields": dict(fields)}
                for doc_id, fields in self._collection(collection).items()
                if all(fields.get(clause.field) == clause.value for clause in where)
            ]

        if order_by:
            present = [d for d in docs if d["fields"].get(order_by.field) is not None]
            missing = [d for d in docs if d["fields"].get(order_by.field) is None]
            present.sort(key=lambda d: d["fields"][order_by.field], reverse=order_by.direction == "desc")
            docs = present + missing
        return docs

    def commit(self, writes: List[Write]) -> List[Dict[str, Any]]:
        """Validate every write against current state, then apply all of them"""
        with self._lock:
            # Increments on the same document accumulate within one commit
            pending: Dict[tuple, float] = {}
            for write in writes:
                if write.op == "create":
                    continue
                docs = self._collection(write.collection)
                if write.id not in docs:
                    raise MissingDocument(f"{write.collection}/{write.id}")
                if write.op == "increment":
                    key = (write.collection, write.id, write.field)
                    current = pending.get(key, _number(docs[write.id].get(write.field)))
                    if write.minimum is not None and current < write.minimum:
                        raise PreconditionFailed(f"{write.collection}/{write.id}.{write.field} below {write.minimum}")
                    pending[key] = current + write.delta

            results = []
            for write in writes:
                docs = self._collection(write.collection)
                if write.op == "create":
                    doc_id = write.id or uuid.uuid4().hex
                    docs[doc_id] = dict(write.fields)
                elif write.op == "increment":
                    doc_id = write.id
                    docs[doc_id][write.field] = _number(docs[doc_id].get(write.field)) + write.delta
                    docs[doc_id].update(write.fields)
                else:
                    doc_id = write.id
                    docs[doc_id].update(write.fields)
                results.append({"id": doc_id, "fields": dict(docs[doc_id])})
            return results


def create_app(seed: Optional[Dict[str, Dict[str, Fields]]] = None) -> FastAPI:
    """Create the mock store; the backing store is exposed as app.state.store"""
    app = FastAPI(title="Mock Document Store", version="1.0.0")
    store = InMemoryDocumentStore(seed)
    app.state.store = store

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/v1/query/{collection}")
    def query_documents(collection: str, body: QueryBody):
        if any(clause.op != "==" for clause in body.where):
            raise HTTPException(status_code=400, detail="only '==' filters are supported")
        return {"documents": store.query(collection, body.where, body.order_by)}

    @app.post("/v1/commit")
    def commit(body: CommitBody):
        unknown = [w.op for w in body.writes if w.op not in ("create", "update", "increment")]
        if unknown or any(w.op == "increment" and not w.field for w in body.writes):
            raise HTTPException(status_code=400, detail="invalid write")
        try:
            return {"results": store.commit(body.writes)}
        except MissingDocument as e:
            raise HTTPException(status_code=404, detail=f"document not found: {e}")
        except PreconditionFailed as e:
            raise HTTPException(status_code=409, detail=f"precondition failed: {e}")

    @app.get("/v1/{collection}/{doc_id}")
    def get_document(collection: str, doc_id: str):
        fields = store.get(collection, doc_id)
        if fields is None:
            raise HTTPException(status_code=404, detail="document not found")
        return {"id": doc_id, "fields": fields}

    @app.post("/v1/{collection}", status_code=201)
    def create_document(collection: str, body: DocumentBody):
        doc_id = store.put(collection, None, body.fields)
        return {"id": doc_id, "fields": body.fields}

    @app.put("/v1/{collection}/{doc_id}")
    def put_document(collection: str, doc_id: str, body: DocumentBody):
        store.put(collection, doc_id, body.fields)
        return {"id": doc_id, "fields": body.fields}

    @app.patch("/v1/{collection}/{doc_id}")
    def update_document(collection: str, doc_id: str, body: DocumentBody):
        try:
            fields = store.update(collection, doc_id, body.fields)
        except MissingDocument:
            raise HTTPException(status_code=404, detail="document not found")
        return {"id": doc_id, "fields": fields}

    return app
