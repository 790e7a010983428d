"""命令行入口测试。"""

import json
from unittest.mock import MagicMock

import pytest

from conftest import FakeResponse
from faith_finder import cli
from faith_finder.services.match_client import MatchClient
from faith_finder.services.settings_store import SettingsStore

SELECTION = {
    "bestMatch": {"churchId": "a", "reason": "Best match because:\n- Medium size"},
    "runnerUps": [{"churchId": "b", "reason": "Bigger parish nearby."}],
}


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    monkeypatch.setattr(cli, "SettingsStore", lambda: SettingsStore(path))
    return path


@pytest.fixture
def http_session(json_directory, monkeypatch):
    session = MagicMock()
    session.post.return_value = FakeResponse(200, SELECTION)
    monkeypatch.setattr(cli, "default_directory", lambda: json_directory)
    monkeypatch.setattr(
        cli,
        "MatchClient",
        lambda directory, base_url: MatchClient(directory, base_url=base_url, session=session),
    )
    return session


class TestMatchCommand:
    """测试 match 子命令。"""

    def test_prints_best_match(self, settings_path, http_session, capsys):
        """测试输出最佳匹配和备选。"""
        code = cli.main(["match", "--size", "medium", "--location", "State College"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Best match: Grace Lutheran" in out
        assert "Also worth a visit" in out
        assert "Our Lady of Victory" in out

    def test_uses_saved_defaults(self, settings_path, http_session):
        """测试缺少参数时使用保存的默认值。"""
        settings_path.write_text(
            json.dumps({"FAITH_FINDER_SETTINGS_V1": {"default_size": "medium"}}),
            encoding="utf-8",
        )

        assert cli.main(["match"]) == 0

        body = http_session.post.call_args.kwargs["json"]
        assert body["size"] == "medium"
        assert body["location"] == "State College"

    def test_save_remembers_answers(self, settings_path, http_session):
        """测试 --save 保存默认值。"""
        cli.main(["match", "--size", "large", "--location", "State College", "--save"])

        assert SettingsStore(settings_path).load().default_size == "large"

    def test_missing_size_fails(self, settings_path, http_session, capsys):
        """测试缺少 size 时失败且不发请求。"""
        code = cli.main(["match", "--location", "State College"])

        assert code == 1
        assert http_session.post.call_count == 0
        assert "⚠️" in capsys.readouterr().err

    def test_empty_location_suggests_broader_search(self, settings_path, http_session, capsys):
        """测试位置无结果时的提示。"""
        code = cli.main(["match", "--size", "small", "--location", "Philipsburg"])

        assert code == 1
        assert "Centre County" in capsys.readouterr().err

    def test_service_failure_offers_retry(self, settings_path, http_session, capsys):
        """测试服务失败时提示重试。"""
        http_session.post.return_value = FakeResponse(502, {"error": "Model request failed"})

        code = cli.main(["match", "--size", "small", "--location", "State College"])

        err = capsys.readouterr().err
        assert code == 1
        assert "Model request failed" in err
        assert "run the same command again" in err


class TestSettingsCommand:
    """测试 settings 子命令。"""

    def test_set_then_show(self, settings_path, capsys):
        """测试设置后显示。"""
        cli.main(["settings", "set", "--location", "Boalsburg", "--theme", "dark"])
        capsys.readouterr()

        cli.main(["settings", "show"])

        out = capsys.readouterr().out
        assert "default_location: Boalsburg" in out
        assert "theme: dark" in out

    def test_reset(self, settings_path, capsys):
        """测试恢复默认值。"""
        cli.main(["settings", "set", "--location", "Boalsburg"])
        cli.main(["settings", "reset"])

        assert SettingsStore(settings_path).load().default_location == "State College"


class TestChurchesCommand:
    """测试 churches 子命令。"""

    def test_lists_directory(self, json_directory, monkeypatch, capsys):
        """测试列出目录。"""
        monkeypatch.setattr(cli, "default_directory", lambda: json_directory)

        assert cli.main(["churches", "--location", "Bellefonte"]) == 0

        assert "Bellefonte Community Church" in capsys.readouterr().out
