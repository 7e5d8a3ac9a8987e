from __future__ import annotations
import copy
import json
import logging
import threading
from decimal import Decimal
from typing import Any, Dict, List, Optional
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from .config import settings

logger = logging.getLogger(__name__)


def _to_jsonable(x):
    if isinstance(x, list):  return [_to_jsonable(v) for v in x]
    if isinstance(x, dict):  return {k: _to_jsonable(v) for k, v in x.items()}
    if isinstance(x, Decimal):
        return int(x) if x == x.to_integral_value() else float(x)
    return x

def _to_dynamo(x):
    # DynamoDB rejects float; round-trip through JSON so nested floats become Decimal
    return json.loads(json.dumps(x), parse_float=Decimal)


class KVStore:
    """Flat key -> JSON value store.

    Every entity lives under a string key; the only query is a prefix scan.
    ``incr`` is the single atomic operation and exists so counters
    (views, ecoPoints) do not lose concurrent updates.
    """

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def get_by_prefix(self, prefix: str) -> List[Any]:
        raise NotImplementedError

    def incr(self, key: str, field: str, delta: int = 1) -> Optional[Dict[str, Any]]:
        """Add ``delta`` to ``value[field]``; return the new value, or None if ``key`` is absent."""
        raise NotImplementedError


class DynamoStore(KVStore):
    def __init__(self, table):
        self._table = table

    def get(self, key: str) -> Optional[Any]:
        r = self._table.get_item(Key={"pk": key})
        item = r.get("Item")
        return _to_jsonable(item["value"]) if item else None

    def set(self, key: str, value: Any) -> None:
        self._table.put_item(Item={"pk": key, "value": _to_dynamo(value)})

    def delete(self, key: str) -> None:
        self._table.delete_item(Key={"pk": key})

    def get_by_prefix(self, prefix: str) -> List[Any]:
        scan_kwargs: Dict[str, Any] = {"FilterExpression": Attr("pk").begins_with(prefix)}
        out: List[Any] = []
        while True:
            resp = self._table.scan(**scan_kwargs)
            out.extend(_to_jsonable(it["value"]) for it in resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return out
            scan_kwargs["ExclusiveStartKey"] = last_key

    def incr(self, key: str, field: str, delta: int = 1) -> Optional[Dict[str, Any]]:
        try:
            resp = self._table.update_item(
                Key={"pk": key},
                UpdateExpression="SET #v.#f = if_not_exists(#v.#f, :zero) + :d",
                ConditionExpression="attribute_exists(pk)",
                ExpressionAttributeNames={"#v": "value", "#f": field},
                ExpressionAttributeValues={":zero": 0, ":d": delta},
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            raise
        return _to_jsonable(resp["Attributes"]["value"])


class MemoryStore(KVStore):
    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            v = self._data.get(key)
            return copy.deepcopy(v) if v is not None else None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_by_prefix(self, prefix: str) -> List[Any]:
        with self._lock:
            return [copy.deepcopy(v) for k, v in self._data.items() if k.startswith(prefix)]

    def incr(self, key: str, field: str, delta: int = 1) -> Optional[Dict[str, Any]]:
        with self._lock:
            v = self._data.get(key)
            if v is None:
                return None
            v[field] = (v.get(field) or 0) + delta
            return copy.deepcopy(v)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


_store: Optional[KVStore] = None

def get_store() -> KVStore:
    global _store
    if _store is None:
        if settings.kv_backend == "memory":
            logger.info("Using in-memory key-value store")
            _store = MemoryStore()
        else:
            from .aws import dynamodb_resource
            _store = DynamoStore(dynamodb_resource().Table(settings.ddb_table_kv))
    return _store
