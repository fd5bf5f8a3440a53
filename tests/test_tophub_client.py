"""
今日热榜客户端测试（使用 Mock 的 requests.Session）
"""
from unittest.mock import MagicMock

import pytest
import requests

from backend.app.services.hotlist import HotlistError, TophubClient, extract_items


def _response(status_code=200, payload=None, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.json.return_value = payload
    return response


def _client(response=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return TophubClient("abcdefghijklmnop", base_url="https://api.example.com/", session=session), session


class TestTophubClient:

    def test_node_detail_unwraps_data(self):
        client, session = _client(_response(payload={"data": {"name": "知乎", "items": [{"title": "a"}]}}))
        data = client.get_node_detail("mproPpoq6O")
        assert extract_items(data) == [{"title": "a"}]

        args, kwargs = session.get.call_args
        assert args[0] == "https://api.example.com/nodes/mproPpoq6O"
        assert kwargs["headers"]["Authorization"] == "abcdefghijklmnop"
        assert kwargs["timeout"] == 10

    def test_search_params(self):
        client, session = _client(_response(payload={"data": {"items": []}}))
        client.search_node_content("AI", hashid="mproPpoq6O", page=2)
        assert session.get.call_args.kwargs["params"] == {"q": "AI", "p": 2, "hashid": "mproPpoq6O"}

    def test_empty_node_detail(self):
        client, _ = _client(_response(payload={"data": None}))
        with pytest.raises(HotlistError, match="榜单数据为空"):
            client.get_node_detail("mproPpoq6O")

    @pytest.mark.parametrize("status, message", [
        (401, "API密钥无效"),
        (429, "请求频率过高"),
        (503, "API请求失败: HTTP 503"),
    ])
    def test_http_errors(self, status, message):
        client, _ = _client(_response(status_code=status, reason="Service Unavailable"))
        with pytest.raises(HotlistError, match=message) as exc_info:
            client.get_all_nodes()
        assert exc_info.value.status_code == status

    def test_timeout(self):
        client, _ = _client(error=requests.Timeout("timed out"))
        with pytest.raises(HotlistError, match="请求超时"):
            client.get_all_nodes()

    def test_connection_error(self):
        client, _ = _client(error=requests.ConnectionError("refused"))
        with pytest.raises(HotlistError, match="API请求失败"):
            client.get_all_nodes()

    def test_business_error(self):
        client, _ = _client(_response(payload={"success": False, "message": "节点不存在"}))
        with pytest.raises(HotlistError, match="节点不存在"):
            client.get_node_detail("xxxxxxxxxx")

    def test_test_connection_uses_short_timeout(self):
        client, session = _client(_response(payload={"data": []}))
        assert client.test_connection() is True
        assert session.get.call_args.kwargs["timeout"] == 5

    def test_test_connection_failure(self):
        client, _ = _client(error=requests.Timeout("timed out"))
        assert client.test_connection() is False

    def test_api_info_masks_key(self):
        client, _ = _client(_response())
        info = client.get_api_info()
        assert info["baseURL"] == "https://api.example.com"
        assert info["accessKeyPrefix"] == "abcdefgh..."


def test_extract_items():
    assert extract_items([{"title": "a"}]) == [{"title": "a"}]
    assert extract_items({"items": None}) == []
    assert extract_items(None) == []
