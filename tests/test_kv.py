import threading
from decimal import Decimal

import boto3
import pytest
from botocore.stub import Stubber

from shared.kv import DynamoStore, MemoryStore, _to_dynamo, _to_jsonable


# ---- memory backend

def test_memory_get_set_delete():
    s = MemoryStore()
    assert s.get("user:1") is None
    s.set("user:1", {"id": "1", "badges": []})
    assert s.get("user:1") == {"id": "1", "badges": []}
    s.delete("user:1")
    s.delete("user:1")
    assert s.get("user:1") is None


def test_memory_values_are_copies():
    s = MemoryStore()
    v = {"id": "1", "badges": []}
    s.set("user:1", v)
    v["badges"].append("x")
    s.get("user:1")["badges"].append("y")
    assert s.get("user:1")["badges"] == []


def test_memory_prefix_scan():
    s = MemoryStore()
    s.set("wishlist:u1:p1", {"productId": "p1"})
    s.set("wishlist:u1:p2", {"productId": "p2"})
    s.set("wishlist:u10:p3", {"productId": "p3"})
    got = sorted(v["productId"] for v in s.get_by_prefix("wishlist:u1:"))
    assert got == ["p1", "p2"]


def test_memory_incr_absent_key_writes_nothing():
    s = MemoryStore()
    assert s.incr("product:nope", "views") is None
    assert s.keys() == []


def test_memory_incr_missing_field_starts_at_zero():
    s = MemoryStore()
    s.set("user:1", {"id": "1"})
    assert s.incr("user:1", "ecoPoints", 10) == {"id": "1", "ecoPoints": 10}


def test_memory_incr_concurrent_updates_are_not_lost():
    s = MemoryStore()
    s.set("product:p", {"views": 0})

    def bump():
        for _ in range(200):
            s.incr("product:p", "views")

    threads = [threading.Thread(target=bump) for _ in range(8)]
    for t in threads: t.start()
    for t in threads: t.join()
    assert s.get("product:p")["views"] == 1600


# ---- value conversion

def test_dynamo_value_conversion():
    item = _to_dynamo({"price": 12.5, "views": 3, "images": ["a"], "meta": {"w": 0.1}})
    assert item == {"price": Decimal("12.5"), "views": 3, "images": ["a"], "meta": {"w": Decimal("0.1")}}
    assert _to_jsonable(item) == {"price": 12.5, "views": 3, "images": ["a"], "meta": {"w": 0.1}}
    assert isinstance(_to_jsonable(Decimal("7")), int)


# ---- dynamodb backend

@pytest.fixture
def ddb():
    res = boto3.resource("dynamodb", region_name="us-east-1")
    store = DynamoStore(res.Table("kv_test"))
    with Stubber(res.meta.client) as stub:
        yield store, stub
        stub.assert_no_pending_responses()


def _item(pk, **value):
    return {"pk": {"S": pk}, "value": {"M": value}}


def test_dynamo_get(ddb):
    store, stub = ddb
    stub.add_response("get_item", {"Item": _item("product:p1", id={"S": "p1"}, price={"N": "12.5"}, views={"N": "3"})})
    stub.add_response("get_item", {})
    assert store.get("product:p1") == {"id": "p1", "price": 12.5, "views": 3}
    assert store.get("product:missing") is None


def test_dynamo_set_and_delete(ddb):
    store, stub = ddb
    stub.add_response("put_item", {})
    stub.add_response("delete_item", {})
    store.set("wishlist:u:p", {"userId": "u", "productId": "p"})
    store.delete("wishlist:u:p")


def test_dynamo_prefix_scan_follows_pages(ddb):
    store, stub = ddb
    stub.add_response("scan", {
        "Items": [_item("product:a", id={"S": "a"})],
        "LastEvaluatedKey": {"pk": {"S": "product:a"}},
    })
    stub.add_response("scan", {"Items": [_item("product:b", id={"S": "b"})]})
    assert [p["id"] for p in store.get_by_prefix("product:")] == ["a", "b"]


def test_dynamo_incr_returns_updated_value(ddb):
    store, stub = ddb
    stub.add_response("update_item", {"Attributes": _item("product:a", id={"S": "a"}, views={"N": "4"})})
    assert store.incr("product:a", "views") == {"id": "a", "views": 4}


def test_dynamo_incr_absent_key(ddb):
    store, stub = ddb
    stub.add_client_error(
        "update_item",
        service_error_code="ConditionalCheckFailedException",
        service_message="The conditional request failed",
        http_status_code=400,
    )
    assert store.incr("product:nope", "views") is None


def test_dynamo_incr_other_errors_propagate(ddb):
    from botocore.exceptions import ClientError

    store, stub = ddb
    stub.add_client_error("update_item", service_error_code="ProvisionedThroughputExceededException", http_status_code=400)
    with pytest.raises(ClientError):
        store.incr("product:a", "views")
