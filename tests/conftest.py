"""测试配置和共享 Fixtures。"""

import json

import pytest

from faith_finder.models import Church
from faith_finder.services.directory_service import JsonChurchDirectory


# ============================================================================
# Mock Services
# ============================================================================

class MockLLMService:
    """测试用 Mock LLM 服务。

    可以通过设置 response 属性来控制返回值。
    可以通过设置 should_fail 来模拟失败。
    """

    def __init__(self):
        self.response = '{"bestMatch": {"churchId": "a", "reason": "Best match because:\\n- Close"}, "runnerUps": []}'
        self.should_fail = False
        self.fail_count = 0
        self.max_failures = 0
        self.call_count = 0
        self.last_prompt = None
        self.last_system = None
        self.last_kwargs = {}

    def call(self, prompt, *, system=None, json_mode=False, temperature=None):
        self.call_count += 1
        self.last_prompt = prompt
        self.last_system = system
        self.last_kwargs = {"json_mode": json_mode, "temperature": temperature}

        if self.should_fail:
            if self.fail_count < self.max_failures:
                self.fail_count += 1
                raise Exception("Mock LLM failure")

        return self.response

    def reset(self):
        """重置状态。"""
        self.call_count = 0
        self.fail_count = 0


class FakeResponse:
    """测试用 requests.Response 替身。"""

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.text = text
        else:
            self.text = json.dumps(payload) if payload is not None else ""

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


# ============================================================================
# Church Fixtures
# ============================================================================

CHURCH_ROWS = [
    {
        "id": "a",
        "name": "Grace Lutheran Church",
        "denomination": "Protestant",
        "size": "medium",
        "location": "State College",
        "address": "205 S Garner St, State College, PA",
        "latitude": 40.79,
        "longitude": -77.85,
        "phone": "814-555-0101",
        "website": "https://gracelutheran.example",
        "description": "Liturgical worship with an active youth group.",
    },
    {
        "id": "b",
        "name": "Our Lady of Victory",
        "denomination": "Catholic",
        "size": "large",
        "location": "State College",
        "address": "820 Westerly Pkwy, State College, PA",
        "latitude": 40.80,
        "longitude": -77.88,
        "phone": None,
        "website": None,
        "description": None,
    },
    {
        "id": "c",
        "name": "Bellefonte Community Church",
        "denomination": "Non-denominational",
        "size": "small",
        "location": "Bellefonte",
        "address": "",
        "latitude": None,
        "longitude": None,
        "phone": None,
        "website": None,
        "description": "",
    },
]


@pytest.fixture
def church_rows():
    """原始 church 字典列表（可修改的副本）。"""
    return [dict(row) for row in CHURCH_ROWS]


@pytest.fixture
def sample_churches(church_rows):
    """创建示例 Church 列表。"""
    return [Church.from_dict(row) for row in church_rows]


@pytest.fixture
def json_directory(tmp_path, church_rows):
    """创建预置数据的 JSON 目录。"""
    path = tmp_path / "churches.json"
    path.write_text(json.dumps(church_rows), encoding="utf-8")
    return JsonChurchDirectory(path)


@pytest.fixture
def match_request(church_rows):
    """创建合法的 match-church 请求体。"""
    return {
        "denomination": "no-preference",
        "size": "medium",
        "location": "State College",
        "worshipStyle": "traditional",
        "distance": "10",
        "priorities": ["youth", "music"],
        "additionalInfo": "We have two teenagers.",
        "churches": church_rows,
    }


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def mock_llm() -> MockLLMService:
    """创建 Mock LLM 服务。"""
    return MockLLMService()


@pytest.fixture
def mock_llm_with_selection(mock_llm: MockLLMService) -> MockLLMService:
    """创建返回完整选择 JSON 的 Mock LLM。"""
    mock_llm.response = json.dumps({
        "bestMatch": {
            "churchId": "a",
            "reason": "Best match because:\n- Medium size\n- Strong youth ministry\n- Traditional liturgy",
        },
        "runnerUps": [
            {"churchId": "b", "reason": "A larger parish in State College with many programs."},
            {"churchId": "c", "reason": "A small, close-knit congregation a short drive away."},
        ],
    })
    return mock_llm


@pytest.fixture
def no_sleep():
    """记录退避时长但不真正等待。"""
    delays = []
    return delays
