import pytest

from bidcheck.errors import InvalidFieldPathError
from bidcheck.templates.paths import get_path, parse_path, set_path


class TestParsePath:
    def test_dotted(self):
        assert parse_path("imp.0.banner.w") == ["imp", 0, "banner", "w"]

    def test_brackets(self):
        assert parse_path("imp[0].banner.format[1].w") == ["imp", 0, "banner", "format", 1, "w"]

    def test_single_field(self):
        assert parse_path("tmax") == ["tmax"]

    @pytest.mark.parametrize("path", ["", "  ", "imp..w", ".id", "id."])
    def test_invalid(self, path):
        with pytest.raises(InvalidFieldPathError):
            parse_path(path)


class TestGetPath:
    def test_nested_value(self):
        data = {"imp": [{"banner": {"w": 300}}]}
        assert get_path(data, "imp.0.banner.w") == 300

    def test_missing_returns_default(self):
        assert get_path({"imp": []}, "imp.0.id", "none") == "none"
        assert get_path({"a": 1}, "a.b") is None


class TestSetPath:
    def test_replaces_existing_value(self):
        data = {"imp": [{"banner": {"w": 300}}]}
        set_path(data, "imp.0.banner.w", 728)
        assert data["imp"][0]["banner"]["w"] == 728

    def test_creates_dicts(self):
        data: dict = {}
        set_path(data, "site.publisher.id", "pub-1")
        assert data == {"site": {"publisher": {"id": "pub-1"}}}

    def test_creates_list_for_index(self):
        data: dict = {}
        set_path(data, "cur.0", "EUR")
        assert data == {"cur": ["EUR"]}

    def test_appends_at_list_length(self):
        data = {"imp": [{"id": "1"}]}
        set_path(data, "imp.1.id", "2")
        assert data["imp"] == [{"id": "1"}, {"id": "2"}]

    def test_index_past_end_raises(self):
        with pytest.raises(InvalidFieldPathError):
            set_path({"imp": []}, "imp.3.id", "x")

    def test_crossing_scalar_raises(self):
        with pytest.raises(InvalidFieldPathError):
            set_path({"tmax": 100}, "tmax.value", 1)

    def test_field_name_on_list_raises(self):
        with pytest.raises(InvalidFieldPathError):
            set_path({"imp": [{}]}, "imp.banner", {})

    def test_replaces_whole_subtree(self):
        data = {"site": {"domain": "a.com"}}
        set_path(data, "site", {"domain": "b.com"})
        assert data == {"site": {"domain": "b.com"}}
