"""ChurchDirectory 单元测试。"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from conftest import FakeResponse
from faith_finder.errors import InvalidInput, NotFound
from faith_finder.services.directory_service import (
    DirectoryServiceError,
    JsonChurchDirectory,
    RestChurchDirectory,
)


class TestJsonDirectoryList:
    """测试列表与位置过滤。"""

    def test_list_all_sorted_by_name(self, json_directory):
        """测试返回全部并按名称排序。"""
        names = [c.name for c in json_directory.list()]

        assert names == sorted(names, key=str.lower)
        assert len(names) == 3

    def test_location_filter(self, json_directory):
        """测试按位置过滤。"""
        churches = json_directory.list(location="state college")

        assert {c.id for c in churches} == {"a", "b"}

    def test_location_substring(self, json_directory):
        """测试子串匹配。"""
        assert [c.id for c in json_directory.list(location="Bellef")] == ["c"]

    def test_county_wide_location_returns_all(self, json_directory):
        """测试全县位置返回全部。"""
        assert len(json_directory.list(location="Centre County")) == 3

    def test_no_preference_location_returns_all(self, json_directory):
        """测试 no-preference 返回全部。"""
        assert len(json_directory.list(location="no-preference")) == 3

    def test_missing_file_is_empty(self, tmp_path):
        """测试文件不存在时返回空列表。"""
        assert JsonChurchDirectory(tmp_path / "none.json").list() == []

    def test_corrupt_file_raises(self, tmp_path):
        """测试损坏文件抛出 DirectoryServiceError。"""
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(DirectoryServiceError):
            JsonChurchDirectory(path).list()


class TestJsonDirectoryWrites:
    """测试管理员增删改。"""

    def test_add_assigns_id_and_timestamps(self, json_directory):
        """测试新增分配 id 和时间戳。"""
        church = json_directory.add({"name": "New Hope", "size": "small", "location": "Boalsburg"})

        assert church.id
        assert church.created_at is not None
        assert json_directory.get(church.id).name == "New Hope"

    def test_add_requires_name(self, json_directory):
        """测试新增需要名称。"""
        with pytest.raises(InvalidInput):
            json_directory.add({"size": "small"})

    def test_add_rejects_unknown_size(self, json_directory):
        """测试新增拒绝未知 size。"""
        with pytest.raises(InvalidInput):
            json_directory.add({"name": "X", "size": "mega"})

    def test_add_rejects_wrongly_typed_fields(self, json_directory):
        """测试新增拒绝非字符串文本字段。"""
        with pytest.raises(InvalidInput) as exc_info:
            json_directory.add({"name": 5, "location": "Boalsburg"})

        assert exc_info.value.details["fields"] == ["name"]

    def test_update_rejects_wrongly_typed_fields(self, json_directory):
        """测试更新拒绝非字符串文本字段。"""
        with pytest.raises(InvalidInput):
            json_directory.update("c", {"address": ["1 Main St"]})

        assert json_directory.get("c").address == ""

    def test_update_patches_fields(self, json_directory):
        """测试更新部分字段。"""
        church = json_directory.update("c", {"size": "medium", "id": "ignored"})

        assert church.id == "c"
        assert church.size == "medium"
        assert church.name == "Bellefonte Community Church"

    def test_update_missing_raises(self, json_directory):
        """测试更新不存在的记录。"""
        with pytest.raises(NotFound):
            json_directory.update("nope", {"size": "small"})

    def test_delete(self, json_directory):
        """测试删除。"""
        json_directory.delete("b")

        with pytest.raises(NotFound):
            json_directory.get("b")

    def test_delete_missing_raises(self, json_directory):
        """测试删除不存在的记录。"""
        with pytest.raises(NotFound):
            json_directory.delete("nope")

    def test_upsert_inserts_then_updates_by_osm_key(self, tmp_path):
        """测试按 (osm_type, osm_id) upsert。"""
        directory = JsonChurchDirectory(tmp_path / "churches.json")
        row = {"name": "St. John", "location": "Bellefonte", "osm_type": "node", "osm_id": 7}

        assert directory.upsert([row]) == 1
        assert directory.upsert([{**row, "phone": "814-555-0199"}]) == 1

        churches = directory.list()
        assert len(churches) == 1
        assert churches[0].phone == "814-555-0199"


class TestRestDirectory:
    """测试托管数据存储客户端。"""

    @pytest.fixture
    def session(self):
        session = MagicMock()
        session.headers = {}
        return session

    def test_list_with_location_uses_ilike(self, session, church_rows):
        """测试位置过滤使用 ilike。"""
        session.request.return_value = FakeResponse(200, church_rows[:2])
        directory = RestChurchDirectory("https://db.test", "key", session=session)

        churches = directory.list(location="State College")

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://db.test/rest/v1/churches")
        assert kwargs["params"]["location"] == "ilike.*State College*"
        assert kwargs["params"]["order"] == "name.asc"
        assert [c.id for c in churches] == ["a", "b"]

    def test_list_county_wide_has_no_filter(self, session):
        """测试全县不加位置过滤。"""
        session.request.return_value = FakeResponse(200, [])
        directory = RestChurchDirectory("https://db.test", "key", session=session)

        directory.list(location="Centre County")

        assert "location" not in session.request.call_args.kwargs["params"]

    def test_sends_api_key_headers(self, session):
        """测试设置认证头。"""
        RestChurchDirectory("https://db.test", "key", session=session)

        assert session.headers["apikey"] == "key"
        assert session.headers["Authorization"] == "Bearer key"

    def test_http_error_raises(self, session):
        """测试 HTTP 错误。"""
        session.request.return_value = FakeResponse(500, {"message": "down"})
        directory = RestChurchDirectory("https://db.test", "key", session=session)

        with pytest.raises(DirectoryServiceError):
            directory.list()

    def test_transport_error_raises(self, session):
        """测试网络错误。"""
        session.request.side_effect = requests.Timeout("slow")
        directory = RestChurchDirectory("https://db.test", "key", session=session)

        with pytest.raises(DirectoryServiceError):
            directory.list()

    def test_get_missing_raises(self, session):
        """测试获取不存在的记录。"""
        session.request.return_value = FakeResponse(200, [])
        directory = RestChurchDirectory("https://db.test", "key", session=session)

        with pytest.raises(NotFound):
            directory.get("nope")

    def test_upsert_uses_conflict_key(self, session):
        """测试 upsert 使用冲突键合并。"""
        session.request.return_value = FakeResponse(200, [{"id": "1"}, {"id": "2"}])
        directory = RestChurchDirectory("https://db.test", "key", session=session)

        written = directory.upsert([{"name": "A"}, {"name": "B"}])

        kwargs = session.request.call_args.kwargs
        assert written == 2
        assert kwargs["params"]["on_conflict"] == "osm_type,osm_id"
        assert "merge-duplicates" in kwargs["headers"]["Prefer"]
        assert json.dumps(kwargs["json"])
