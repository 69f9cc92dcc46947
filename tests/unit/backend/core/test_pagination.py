"""
Unit Tests for pagination helpers.
"""

from pydantic import BaseModel

from notevault.backend.core.pagination import create_paginated_response, get_pagination_params


class Item(BaseModel):
    id: int


class TestPaginationParams:
    def test_default_limit_from_config(self):
        params = get_pagination_params(limit=None, offset=0)

        assert params.limit == 20
        assert params.offset == 0

    def test_limit_is_clamped_to_max(self):
        assert get_pagination_params(limit=5000, offset=10).limit == 100


class TestPaginatedResponse:
    def test_has_more_when_items_remain(self):
        response = create_paginated_response(
            items=[{"id": 1}, {"id": 2}],
            item_schema=Item,
            total=5,
            limit=2,
            offset=0,
            request_id="req-1",
        )

        assert response["success"] is True
        assert response["data"] == [{"id": 1}, {"id": 2}]
        assert response["pagination"] == {"total": 5, "limit": 2, "offset": 0, "has_more": True}
        assert response["metadata"]["request_id"] == "req-1"

    def test_last_page(self):
        response = create_paginated_response(
            items=[{"id": 5}], item_schema=Item, total=5, limit=2, offset=4
        )

        assert response["pagination"]["has_more"] is False
