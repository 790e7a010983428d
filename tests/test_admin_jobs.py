"""AdminJobClient 单元测试。"""

from unittest.mock import MagicMock

import pytest
import requests

from conftest import FakeResponse
from faith_finder.services.admin_jobs import ADMIN_KEY_HEADER, AdminJobClient, JobName


@pytest.fixture
def session():
    session = MagicMock()
    session.post.return_value = FakeResponse(200, {"ok": True, "imported": 3})
    return session


class TestAdminJobClient:
    """测试管理任务触发。"""

    def test_run_posts_to_job_endpoint_with_auth(self, session):
        """测试请求地址和认证头。"""
        client = AdminJobClient(
            base_url="http://functions.test/",
            access_token="tok",
            admin_key=" secret ",
            session=session,
        )

        result = client.run(JobName.IMPORT_CHURCHES)

        args, kwargs = session.post.call_args
        assert args[0] == "http://functions.test/functions/v1/import-centre-county-churches"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["headers"][ADMIN_KEY_HEADER] == "secret"
        assert kwargs["json"] == {}
        assert result.ok is True
        assert result.payload["imported"] == 3

    def test_accepts_job_name_string(self, session):
        """测试接受字符串任务名。"""
        result = AdminJobClient(session=session).run("enrich-churches")

        assert result.job is JobName.ENRICH

    def test_omits_optional_headers(self, session):
        """测试未提供时不发送认证头。"""
        AdminJobClient(session=session).run(JobName.REFRESH_SITES)

        headers = session.post.call_args.kwargs["headers"]
        assert "Authorization" not in headers
        assert ADMIN_KEY_HEADER not in headers

    def test_error_status(self, session):
        """测试失败状态返回错误信息。"""
        session.post.return_value = FakeResponse(401, {"error": "Unauthorized"})

        result = AdminJobClient(session=session).run(JobName.IMPORT_CHURCHES)

        assert result.ok is False
        assert result.status == 401
        assert result.error == "Unauthorized"

    def test_error_status_without_message(self, session):
        """测试失败状态无错误信息。"""
        session.post.return_value = FakeResponse(500, text="")

        result = AdminJobClient(session=session).run(JobName.IMPORT_CHURCHES)

        assert result.error == "Request failed (500)"

    def test_transport_error(self, session):
        """测试网络错误不抛出异常。"""
        session.post.side_effect = requests.ConnectionError("down")

        result = AdminJobClient(session=session).run(JobName.IMPORT_CHURCHES)

        assert result.ok is False
        assert "down" in result.error

    def test_unknown_job_raises(self, session):
        """测试未知任务名。"""
        with pytest.raises(ValueError):
            AdminJobClient(session=session).run("drop-tables")
