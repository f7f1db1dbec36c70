"""
Firestore document store over the REST API.

Queries go through ``documents:runQuery`` as structured queries; writes go
through ``documents:commit`` so that server timestamps and increments are
applied as field transforms in the same write.

API Reference: https://firebase.google.com/docs/firestore/reference/rest

Usage:
    from newsfeed.config import get_config
    from newsfeed.store import FirestoreDocumentStore

    async with FirestoreDocumentStore(get_config().store) as store:
        result = await store.run_query(query)
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from newsfeed.config import StoreConfig
from newsfeed.store.base import DocumentStore
from newsfeed.store.query import (
    DOCUMENT_ID,
    SERVER_TIMESTAMP,
    Direction,
    Document,
    FieldFilter,
    Operator,
    Query,
    QueryResult,
)
from newsfeed.utils.exceptions import (
    DocumentNotFoundError,
    InvalidQueryError,
    PermissionDeniedError,
    StoreError,
    TransportUnavailableError,
)
from newsfeed.utils.logging_config import get_logger

logger = get_logger("firestore_store")


_OPERATORS = {
    Operator.EQUAL: "EQUAL",
    Operator.LESS_THAN: "LESS_THAN",
    Operator.LESS_THAN_OR_EQUAL: "LESS_THAN_OR_EQUAL",
    Operator.GREATER_THAN: "GREATER_THAN",
    Operator.GREATER_THAN_OR_EQUAL: "GREATER_THAN_OR_EQUAL",
}

_DIRECTIONS = {
    Direction.ASCENDING: "ASCENDING",
    Direction.DESCENDING: "DESCENDING",
}

# gRPC status names carried in REST error bodies
_UNAVAILABLE_STATUSES = {"UNAVAILABLE", "DEADLINE_EXCEEDED", "RESOURCE_EXHAUSTED", "ABORTED", "INTERNAL"}
_PERMISSION_STATUSES = {"PERMISSION_DENIED", "UNAUTHENTICATED"}
_INVALID_STATUSES = {"INVALID_ARGUMENT", "FAILED_PRECONDITION", "OUT_OF_RANGE"}

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}


# =============================================================================
# Value Encoding
# =============================================================================

def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a Python value as a Firestore REST ``Value``."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        stamp = value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        return {"timestampValue": stamp}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": {k: encode_value(v) for k, v in value.items()}}}
    raise TypeError(f"Cannot encode value of type {type(value).__name__}")


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp, keeping at most microsecond precision."""
    text = raw.rstrip("Z")
    if "." in text:
        whole, fraction = text.split(".", 1)
        text = f"{whole}.{fraction[:6].ljust(6, '0')}"
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


def decode_value(value: Dict[str, Any]) -> Any:
    """Decode a Firestore REST ``Value`` into a Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    # geoPointValue / bytesValue are passed through untouched
    return next(iter(value.values()), None)


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(val) for key, val in fields.items()}


def decode_document(raw: Dict[str, Any]) -> Document:
    doc_id = raw["name"].rsplit("/", 1)[-1]
    return Document(doc_id, decode_fields(raw.get("fields", {})))


# =============================================================================
# Store
# =============================================================================

class FirestoreDocumentStore(DocumentStore):
    """
    DocumentStore backed by the Firestore REST API.

    Args:
        config: StoreConfig with project, key and timeouts
        token_provider: Optional callable returning an ID token for
            authenticated (admin) requests, or None for anonymous ones
        transport: Optional httpx transport (tests pass httpx.MockTransport)
        id_factory: Callable returning ids for new documents
    """

    def __init__(
        self,
        config: StoreConfig,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        if not config.project_id:
            raise StoreError("Firestore project_id is not configured")

        self._config = config
        self._token_provider = token_provider
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:20])
        self.documents_root = (
            f"projects/{config.project_id}/databases/{config.database}/documents"
        )
        self._base = f"{config.base_url.rstrip('/')}/{self.documents_root}"

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=config.connect_timeout),
            headers={
                "User-Agent": "newsfeed/1.0",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def _params(self) -> Dict[str, str]:
        return {"key": self._config.api_key} if self._config.api_key else {}

    def _headers(self) -> Dict[str, str]:
        if self._token_provider is None:
            return {}
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _document_name(self, collection: str, doc_id: str) -> str:
        return f"{self.documents_root}/{collection}/{doc_id}"

    async def _request(
        self,
        method: str,
        url: str,
        endpoint: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            return await self.client.request(
                method,
                url,
                params=self._params(),
                headers=self._headers(),
                json=json_body,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {endpoint}: {e}")
            raise TransportUnavailableError(
                "Request timed out", endpoint=endpoint, timeout_seconds=self._config.timeout
            ) from e
        except (httpx.NetworkError, httpx.RemoteProtocolError) as e:
            logger.error(f"Network error calling {endpoint}: {e}")
            raise TransportUnavailableError(f"Network error: {e}", endpoint=endpoint) from e

    def _raise_for_status(
        self,
        response: httpx.Response,
        endpoint: str,
        collection: Optional[str] = None,
        doc_id: Optional[str] = None,
    ) -> None:
        if response.is_success:
            return

        status = ""
        message = response.text
        try:
            error = response.json().get("error", {})
            status = error.get("status", "")
            message = error.get("message", message)
        except (ValueError, AttributeError):
            pass

        code = response.status_code
        kwargs = {"status_code": code, "endpoint": endpoint, "response_body": response.text}
        logger.error(f"HTTP {code} {status} from {endpoint}: {message}")

        if code in (401, 403) or status in _PERMISSION_STATUSES:
            raise PermissionDeniedError(f"Permission denied: {message}", **kwargs)
        if code == 404 or status == "NOT_FOUND":
            if collection and doc_id:
                raise DocumentNotFoundError(collection, doc_id, **kwargs)
            raise InvalidQueryError(f"Resource not found: {message}", **kwargs)
        if code in RETRIABLE_STATUS_CODES or status in _UNAVAILABLE_STATUSES:
            raise TransportUnavailableError(f"Store unavailable: {message}", **kwargs)
        if code == 400 or status in _INVALID_STATUSES:
            raise InvalidQueryError(f"Invalid request: {message}", **kwargs)
        raise StoreError(f"Unexpected store response: {message}", **kwargs)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _encode_filter(self, collection: str, flt: FieldFilter) -> Dict[str, Any]:
        value = flt.value
        if flt.field == DOCUMENT_ID:
            encoded = {"referenceValue": self._document_name(collection, value)}
        else:
            encoded = encode_value(value)
        return {
            "fieldFilter": {
                "field": {"fieldPath": flt.field},
                "op": _OPERATORS[flt.op],
                "value": encoded,
            }
        }

    def structured_query(self, query: Query) -> Dict[str, Any]:
        """
        Translate a Query into a REST ``StructuredQuery``.

        The limit asks for one document more than the page so the store
        can report ``is_last`` without a second query.
        """
        collection_id = query.collection.rsplit("/", 1)[-1]
        body: Dict[str, Any] = {"from": [{"collectionId": collection_id}]}

        filters = [self._encode_filter(query.collection, f) for f in query.filters]
        if len(filters) == 1:
            body["where"] = filters[0]
        elif filters:
            body["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}

        if query.order_by:
            body["orderBy"] = [
                {"field": {"fieldPath": o.field}, "direction": _DIRECTIONS[o.direction]}
                for o in query.order_by
            ]

        if query.start_after is not None:
            values = []
            for clause, value in zip(query.order_by, query.start_after):
                if clause.field == DOCUMENT_ID:
                    values.append({"referenceValue": self._document_name(query.collection, value)})
                else:
                    values.append(encode_value(value))
            body["startAt"] = {"values": values, "before": False}

        if query.limit is not None:
            body["limit"] = query.limit + 1

        return body

    async def run_query(self, query: Query) -> QueryResult:
        parent = query.collection.rsplit("/", 1)[0] if "/" in query.collection else ""
        parent_url = f"{self._base}/{parent}" if parent else self._base
        endpoint = f"{query.collection}:runQuery"

        response = await self._request(
            "POST",
            f"{parent_url}:runQuery",
            endpoint,
            json_body={"structuredQuery": self.structured_query(query)},
        )
        self._raise_for_status(response, endpoint)

        documents = [
            decode_document(entry["document"])
            for entry in response.json()
            if "document" in entry
        ]

        if query.limit is None:
            return QueryResult(documents=documents, is_last=True)
        return QueryResult(
            documents=documents[:query.limit],
            is_last=len(documents) <= query.limit,
        )

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        endpoint = f"{collection}/{doc_id}"
        response = await self._request("GET", f"{self._base}/{collection}/{doc_id}", endpoint)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, endpoint)
        return decode_document(response.json())

    def _write(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        exists: bool,
        mask: bool,
    ) -> Dict[str, Any]:
        fields = {k: encode_value(v) for k, v in data.items() if v is not SERVER_TIMESTAMP}
        transforms = [
            {"fieldPath": k, "setToServerValue": "REQUEST_TIME"}
            for k, v in data.items()
            if v is SERVER_TIMESTAMP
        ]
        write: Dict[str, Any] = {
            "update": {"name": self._document_name(collection, doc_id), "fields": fields},
            "currentDocument": {"exists": exists},
        }
        if mask:
            write["updateMask"] = {"fieldPaths": list(fields)}
        if transforms:
            write["updateTransforms"] = transforms
        return write

    async def _commit(
        self,
        writes: List[Dict[str, Any]],
        endpoint: str,
        collection: Optional[str] = None,
        doc_id: Optional[str] = None,
    ) -> None:
        response = await self._request(
            "POST", f"{self._base}:commit", endpoint, json_body={"writes": writes}
        )
        self._raise_for_status(response, endpoint, collection=collection, doc_id=doc_id)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = self._id_factory()
        await self._commit(
            [self._write(collection, doc_id, data, exists=False, mask=False)],
            f"{collection}:add",
        )
        logger.info(f"Created {collection}/{doc_id}")
        return doc_id

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        await self._commit(
            [self._write(collection, doc_id, data, exists=True, mask=True)],
            f"{collection}/{doc_id}:update",
            collection=collection,
            doc_id=doc_id,
        )

    async def increment(self, collection: str, doc_id: str, field: str, amount: int = 1) -> None:
        write = {
            "transform": {
                "document": self._document_name(collection, doc_id),
                "fieldTransforms": [
                    {"fieldPath": field, "increment": {"integerValue": str(amount)}}
                ],
            },
            "currentDocument": {"exists": True},
        }
        await self._commit(
            [write], f"{collection}/{doc_id}:increment", collection=collection, doc_id=doc_id
        )

    async def delete(self, collection: str, doc_id: str) -> None:
        endpoint = f"{collection}/{doc_id}"
        response = await self._request("DELETE", f"{self._base}/{collection}/{doc_id}", endpoint)
        if response.status_code == 404:
            return
        self._raise_for_status(response, endpoint)
        logger.info(f"Deleted {collection}/{doc_id}")
