"""auth 模块单元测试。"""

import pytest

from faith_finder.auth import (
    bearer_token,
    check_admin_key,
    check_credentials,
    is_admin_email,
    issue_token,
    verify_token,
)
from faith_finder.errors import Forbidden, Unauthorized


class TestCredentials:
    """测试管理员凭据检查。"""

    def test_valid_credentials(self):
        """测试正确凭据返回规范化邮箱。"""
        email = check_credentials(" Admin@Example.com ", "pw", admin_email="admin@example.com", admin_password="pw")

        assert email == "admin@example.com"

    def test_wrong_password(self):
        """测试密码错误。"""
        with pytest.raises(Unauthorized):
            check_credentials("admin@example.com", "x", admin_email="admin@example.com", admin_password="pw")

    def test_no_password_configured(self):
        """测试未配置密码时拒绝登录。"""
        with pytest.raises(Unauthorized):
            check_credentials("admin@example.com", "", admin_email="admin@example.com", admin_password="")

    def test_wrong_email(self):
        """测试非管理员邮箱。"""
        with pytest.raises(Forbidden):
            check_credentials("other@example.com", "pw", admin_email="admin@example.com", admin_password="pw")

    def test_non_ascii_passwords(self):
        """测试非 ASCII 密码可以正常比较。"""
        email = check_credentials("admin@example.com", "pässwörd", admin_email="admin@example.com", admin_password="pässwörd")

        assert email == "admin@example.com"
        with pytest.raises(Unauthorized):
            check_credentials("admin@example.com", "pässword", admin_email="admin@example.com", admin_password="pw")

    def test_non_string_password(self):
        """测试非字符串密码被拒绝。"""
        with pytest.raises(Unauthorized):
            check_credentials("admin@example.com", 123, admin_email="admin@example.com", admin_password="123")

    def test_is_admin_email(self):
        """测试邮箱比较忽略大小写。"""
        assert is_admin_email("ADMIN@example.com", "admin@example.com")
        assert not is_admin_email(None, "admin@example.com")


class TestTokens:
    """测试签名 token。"""

    def test_issue_then_verify(self):
        """测试签发后可验证。"""
        token = issue_token("admin@example.com", secret_key="s")

        assert verify_token(token, secret_key="s") == "admin@example.com"

    def test_wrong_secret(self):
        """测试不同密钥无法验证。"""
        token = issue_token("admin@example.com", secret_key="s")

        with pytest.raises(Unauthorized):
            verify_token(token, secret_key="other")

    def test_expired(self):
        """测试过期 token。"""
        token = issue_token("admin@example.com", secret_key="s")

        with pytest.raises(Unauthorized):
            verify_token(token, secret_key="s", max_age=-1)

    def test_bearer_token(self):
        """测试解析 Authorization 头。"""
        assert bearer_token("Bearer abc") == "abc"
        assert bearer_token("bearer  abc ") == "abc"
        assert bearer_token("Basic abc") is None
        assert bearer_token(None) is None
        assert bearer_token("Bearer ") is None


class TestAdminKey:
    """测试任务共享密钥。"""

    def test_not_configured_allows(self):
        """测试未配置时放行。"""
        check_admin_key(None, "")

    def test_match(self):
        """测试密钥匹配。"""
        check_admin_key(" k ", "k")

    def test_mismatch(self):
        """测试密钥不匹配。"""
        with pytest.raises(Unauthorized):
            check_admin_key("x", "k")

    def test_non_ascii_keys(self):
        """测试非 ASCII 密钥。"""
        check_admin_key("schlüssel", "schlüssel")
        with pytest.raises(Unauthorized):
            check_admin_key("schlüssel", "k")
