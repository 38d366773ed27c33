from __future__ import annotations

import pytest

from giftideas.ideas import IdeaRecord, IdeasQuery, apply_ideas_query, parse_ideas_query


def _record(record_id: int, name: str, **kwargs) -> IdeaRecord:
    kwargs.setdefault("source", "manual")
    kwargs.setdefault("created_at", f"2026-01-{record_id:02d}T10:00:00Z")
    kwargs.setdefault("updated_at", f"2026-02-{record_id:02d}T10:00:00Z")
    return IdeaRecord(id=record_id, name=name, content=f"{name} idea", **kwargs)


RECORDS = [
    _record(1, "banana bread kit", relation_id=1, occasion_id=2, source="ai"),
    _record(2, "Apron", relation_id=1, source="manual"),
    _record(3, "camera strap", relation_id=2, occasion_id=2, source="edited-ai"),
    _record(4, "Desk lamp", relation_id=1, occasion_id=2, source="ai"),
]


def test_defaults() -> None:
    result = parse_ideas_query({})
    assert result.ok
    assert result.value == IdeasQuery(page=1, limit=20, sort="created_at", order="desc")
    assert result.value.offset == 0


def test_query_string_numbers_are_coerced() -> None:
    result = parse_ideas_query({"page": "3", "limit": "10", "relation_id": "2", "sort": "name", "order": "asc"})
    assert result.ok
    assert result.value == IdeasQuery(page=3, limit=10, sort="name", order="asc", relation_id=2)
    assert result.value.offset == 20


@pytest.mark.parametrize(
    ("params", "path"),
    [
        ({"page": "0"}, "page"),
        ({"page": "abc"}, "page"),
        ({"limit": "101"}, "limit"),
        ({"limit": "0"}, "limit"),
        ({"sort": "price"}, "sort"),
        ({"order": "up"}, "order"),
        ({"relation_id": "-1"}, "relation_id"),
        ({"occasion_id": "1.5"}, "occasion_id"),
        ({"source": "robot"}, "source"),
    ],
)
def test_invalid_params(params, path) -> None:
    result = parse_ideas_query(params)
    assert not result.ok
    assert [issue.path for issue in result.errors] == [path]


def test_filters_combine() -> None:
    query = IdeasQuery(relation_id=1, occasion_id=2, source="ai")
    result = apply_ideas_query(RECORDS, query)
    assert [record.id for record in result.data] == [4, 1]
    assert result.pagination.total == 2


def test_default_sort_is_newest_first() -> None:
    result = apply_ideas_query(RECORDS, IdeasQuery())
    assert [record.id for record in result.data] == [4, 3, 2, 1]


def test_name_sort_ignores_case() -> None:
    result = apply_ideas_query(RECORDS, IdeasQuery(sort="name", order="asc"))
    assert [record.name for record in result.data] == ["Apron", "banana bread kit", "camera strap", "Desk lamp"]


def test_pagination() -> None:
    result = apply_ideas_query(RECORDS, IdeasQuery(page=2, limit=3, sort="updated_at", order="asc"))
    assert [record.id for record in result.data] == [4]
    assert result.to_dict()["pagination"] == {"page": 2, "limit": 3, "total": 4, "total_pages": 2}


def test_page_past_the_end_is_empty() -> None:
    result = apply_ideas_query(RECORDS, IdeasQuery(page=5, limit=2))
    assert result.data == []
    assert result.pagination.total == 4
    assert result.pagination.total_pages == 2


def test_no_matches_has_zero_pages() -> None:
    result = apply_ideas_query(RECORDS, IdeasQuery(relation_id=99))
    assert result.to_dict() == {
        "data": [],
        "pagination": {"page": 1, "limit": 20, "total": 0, "total_pages": 0},
    }


def test_record_round_trips_through_dict() -> None:
    record = RECORDS[0]
    assert IdeaRecord.from_dict(record.to_dict()) == record
