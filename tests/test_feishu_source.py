"""
Tests for the Feishu Bitable source: normalization, categories, pagination.
"""

from datetime import datetime, timezone

import httpx
import pytest
from conftest import FakeClock, make_record

from prompt_catalog.exceptions import ConfigurationError, RecordNormalizationError, UpstreamError
from prompt_catalog.repositories import FeishuBitableSource, extract_categories
from prompt_catalog.repositories.feishu_source import (
    extract_category_value,
    extract_text_value,
    transform_record,
)

BASE_URL = "https://feishu.test/open-apis"
RECORDS_PATH = "/open-apis/bitable/v1/apps/app-token/tables/tbl1/records"
TOKEN_PATH = "/open-apis/auth/v3/tenant_access_token/internal"
FETCHED_AT = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _token_response() -> httpx.Response:
    return httpx.Response(200, json={"code": 0, "msg": "ok", "tenant_access_token": "t-123", "expire": 7200})


def _page(items, has_more=False, page_token=None) -> httpx.Response:
    data = {"items": items, "has_more": has_more, "total": len(items)}
    if page_token:
        data["page_token"] = page_token
    return httpx.Response(200, json={"code": 0, "msg": "ok", "data": data})


def _item(record_id, title, category="Writing", **fields):
    return {"record_id": record_id, "fields": {"title": title, "category": category, **fields}}


class FeishuStub:
    """Routes MockTransport requests and records what was asked."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.token_calls = 0
        self.record_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == TOKEN_PATH:
            self.token_calls += 1
            return _token_response()
        if request.url.path == RECORDS_PATH:
            self.record_requests.append(request)
            return self.pages.pop(0)
        return httpx.Response(404, json={"code": 404, "msg": "not found"})


def _source(stub, clock=None, **overrides) -> FeishuBitableSource:
    values = {
        "app_id": "cli_app",
        "app_secret": "secret",
        "app_token": "app-token",
        "table_id": "tbl1",
        "base_url": BASE_URL,
        "client": httpx.AsyncClient(transport=httpx.MockTransport(stub)),
        "clock": clock or FakeClock(),
    }
    values.update(overrides)
    return FeishuBitableSource(**values)


# --- field normalization -------------------------------------------------


def test_extract_text_value_plain_string():
    assert extract_text_value("hello") == "hello"


def test_extract_text_value_rich_text_segments():
    assert extract_text_value([{"text": "Hello, "}, {"text": "world"}]) == "Hello, world"


def test_extract_text_value_empty_and_unknown():
    assert extract_text_value(None) == ""
    assert extract_text_value([]) == ""
    assert extract_text_value(42) == ""


def test_extract_text_value_rejects_bad_segments():
    with pytest.raises(RecordNormalizationError):
        extract_text_value([{"text": "ok"}, 7])


def test_extract_category_value():
    assert extract_category_value("Coding") == "Coding"
    assert extract_category_value(["Coding", "Writing"]) == "Coding"
    assert extract_category_value([]) == ""
    assert extract_category_value(None) == ""


def test_extract_category_value_blank_first_element():
    assert extract_category_value([None, "x"]) == ""
    assert extract_category_value(["", "x"]) == ""
    assert extract_category_value([3, "x"]) == "3"


def test_transform_record_keeps_record_with_blank_category():
    record = transform_record("rec1", {"title": "Kept", "category": [None, "x"]}, FETCHED_AT)
    assert record.title == "Kept"
    assert record.category == ""


def test_transform_record_prefers_canonical_names():
    fields = {"title": "English", "名字": "中文", "description": [{"text": "desc"}], "tag": ["Alias"]}
    record = transform_record("rec1", fields, FETCHED_AT)

    assert record.title == "English"
    assert record.description == "desc"
    assert record.category == "Alias"


def test_transform_record_uses_localized_aliases():
    fields = {"名字": "标题", "描述": "描述文本", "内容": [{"text": "内容"}], "tag": "写作", "tags": ["a", "b"]}
    record = transform_record("rec2", fields, FETCHED_AT)

    assert record.title == "标题"
    assert record.description == "描述文本"
    assert record.content == "内容"
    assert record.category == "写作"
    assert record.tags == ["a", "b"]
    assert record.created_at == FETCHED_AT
    assert record.updated_at == FETCHED_AT


def test_transform_record_rejects_missing_fields():
    with pytest.raises(RecordNormalizationError):
        transform_record("rec1", None, FETCHED_AT)
    with pytest.raises(RecordNormalizationError):
        transform_record(None, {"title": "x"}, FETCHED_AT)


# --- categories ----------------------------------------------------------


def test_extract_categories_unique_and_sorted():
    records = [make_record("1", "Writing"), make_record("2", "Coding"), make_record("3", "Writing"), make_record("4", "Marketing")]
    assert extract_categories(records) == ["Coding", "Marketing", "Writing"]


def test_extract_categories_sorts():
    records = [make_record("1", "Zebra"), make_record("2", "Apple"), make_record("3", "Mango")]
    assert extract_categories(records) == ["Apple", "Mango", "Zebra"]


def test_extract_categories_empty_input():
    assert extract_categories([]) == []


def test_extract_categories_skips_empty_category():
    records = [make_record("1", "Valid"), make_record("2", ""), make_record("3", "Another")]
    assert extract_categories(records) == ["Another", "Valid"]


# --- fetching ------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_drops_records_without_title():
    stub = FeishuStub([_page([_item("rec1", "Keep me", "Coding"), _item("rec2", "", "Writing")])])
    source = _source(stub)

    records = await source.fetch_records()
    await source.close()

    assert [r.id for r in records] == ["rec1"]
    assert extract_categories(records) == ["Coding"]
    assert stub.record_requests[0].headers["Authorization"] == "Bearer t-123"
    assert stub.record_requests[0].url.params["page_size"] == "100"


@pytest.mark.asyncio
async def test_fetch_follows_pagination():
    stub = FeishuStub(
        [
            _page([_item("rec1", "One")], has_more=True, page_token="p2"),
            _page([_item("rec2", "Two")], has_more=True, page_token="p3"),
            _page([_item("rec3", "Three")]),
        ]
    )
    source = _source(stub)

    records = await source.fetch_records()
    await source.close()

    assert [r.id for r in records] == ["rec1", "rec2", "rec3"]
    assert "page_token" not in stub.record_requests[0].url.params
    assert [r.url.params["page_token"] for r in stub.record_requests[1:]] == ["p2", "p3"]


@pytest.mark.asyncio
async def test_fetch_stops_when_has_more_without_token():
    stub = FeishuStub([_page([_item("rec1", "One")], has_more=True)])
    source = _source(stub)

    records = await source.fetch_records()
    await source.close()

    assert len(records) == 1
    assert len(stub.record_requests) == 1


@pytest.mark.asyncio
async def test_fetch_rejects_repeated_page_token():
    stub = FeishuStub(
        [
            _page([_item("rec1", "One")], has_more=True, page_token="p2"),
            _page([_item("rec2", "Two")], has_more=True, page_token="p2"),
        ]
    )
    source = _source(stub)

    with pytest.raises(UpstreamError, match="did not advance"):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_fetch_enforces_page_ceiling():
    stub = FeishuStub([_page([_item(f"rec{i}", "T")], has_more=True, page_token=f"p{i}") for i in range(3)])
    source = _source(stub, max_pages=2)

    with pytest.raises(UpstreamError, match="exceeded 2 pages"):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_fetch_isolates_bad_records_and_duplicates():
    items = [
        _item("rec1", "Good"),
        {"record_id": "rec2", "fields": "not-a-mapping"},
        {"record_id": "rec3", "fields": {"title": [{"text": "ok"}, 5]}},
        _item("rec1", "Duplicate"),
        "garbage",
        _item("rec4", "Also good"),
    ]
    source = _source(FeishuStub([_page(items)]))

    records = await source.fetch_records()
    await source.close()

    assert [(r.id, r.title) for r in records] == [("rec1", "Good"), ("rec4", "Also good")]


@pytest.mark.asyncio
async def test_fetch_raises_on_api_error_code():
    stub = FeishuStub([httpx.Response(200, json={"code": 91402, "msg": "NOTEXIST"})])
    source = _source(stub)

    with pytest.raises(UpstreamError, match="NOTEXIST"):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_fetch_raises_on_http_error_status():
    stub = FeishuStub([httpx.Response(500, json={"code": 0, "msg": "ok"})])
    source = _source(stub)

    with pytest.raises(UpstreamError):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_fetch_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = _source(handler)

    with pytest.raises(UpstreamError, match="request failed"):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_missing_table_configuration():
    source = _source(FeishuStub([]), app_token="")

    with pytest.raises(ConfigurationError):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_missing_app_credentials():
    source = _source(FeishuStub([]), app_secret="")

    with pytest.raises(ConfigurationError):
        await source.fetch_records()
    await source.close()


@pytest.mark.asyncio
async def test_tenant_token_is_cached_until_near_expiry():
    clock = FakeClock()
    stub = FeishuStub([_page([_item("rec1", "One")]) for _ in range(3)])
    source = _source(stub, clock=clock)

    await source.fetch_records()
    await source.fetch_records()
    assert stub.token_calls == 1

    clock.advance(7200 - 30)  # inside the refresh buffer
    await source.fetch_records()
    assert stub.token_calls == 2
    await source.close()
