from urllib.parse import parse_qs, urlsplit

import pytest

from blog_gateway.services.pagination import build_links, build_meta, build_paginated_response, page_url


def _query(url):
    return parse_qs(urlsplit(url).query)


def test_meta_for_middle_page():
    meta = build_meta(page=2, limit=10, total=25)
    assert meta.current_page == 2
    assert meta.per_page == 10
    assert meta.last_page == 3
    assert meta.from_ == 11
    assert meta.to == 20


def test_meta_last_partial_page():
    meta = build_meta(page=3, limit=10, total=25)
    assert (meta.from_, meta.to) == (21, 25)


def test_meta_empty_result():
    meta = build_meta(page=1, limit=10, total=0)
    assert meta.last_page == 0
    assert meta.from_ is None
    assert meta.to is None


def test_meta_page_past_the_end_has_no_range():
    meta = build_meta(page=5, limit=10, total=12)
    assert meta.last_page == 2
    assert meta.from_ is None and meta.to is None


def test_meta_serializes_from_under_public_name():
    dumped = build_meta(page=1, limit=5, total=3).model_dump(by_alias=True)
    assert dumped["from"] == 1
    assert dumped["to"] == 3
    assert "from_" not in dumped


def test_links_middle_page():
    links = build_links(page=2, limit=10, total=25, base_path="/api/posts")
    assert _query(links.first)["page"] == ["1"]
    assert _query(links.last)["page"] == ["3"]
    assert _query(links.prev)["page"] == ["1"]
    assert _query(links.next)["page"] == ["3"]
    assert links.first.startswith("/api/posts?")


def test_links_first_page_has_no_prev():
    links = build_links(page=1, limit=10, total=25, base_path="/posts")
    assert links.prev is None
    assert links.next is not None


def test_links_last_page_has_no_next():
    links = build_links(page=3, limit=10, total=25, base_path="/posts")
    assert links.next is None
    assert links.prev is not None


def test_links_empty_result_are_all_null():
    links = build_links(page=1, limit=10, total=0, base_path="/posts")
    assert links.first is None
    assert links.last is None
    assert links.prev is None
    assert links.next is None


@pytest.mark.parametrize("page,total,limit", [(1, 0, 10), (1, 5, 10), (2, 25, 10), (3, 25, 10), (4, 25, 10)])
def test_prev_and_next_presence(page, total, limit):
    links = build_links(page=page, limit=limit, total=total, base_path="/posts")
    last_page = build_meta(page, limit, total).last_page
    assert (links.prev is not None) == (page > 1)
    assert (links.next is not None) == (page < last_page)


def test_page_url_preserves_other_params_and_replaces_page():
    url = page_url("/posts", {"search": "hello world", "limit": "5", "page": "7"}, 2)
    query = _query(url)
    assert query == {"search": ["hello world"], "limit": ["5"], "page": ["2"]}


def test_build_paginated_response_wraps_items():
    payload = build_paginated_response(["a", "b"], page=1, limit=2, total=3, base_path="/posts")
    assert payload.data == ["a", "b"]
    assert payload.meta.last_page == 2
    assert payload.links.next is not None


def test_build_paginated_response_rejects_non_positive_page():
    with pytest.raises(ValueError):
        build_paginated_response([], page=0, limit=10, total=0, base_path="/posts")
