"""
今日热榜（Tophub）API 客户端
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from backend.app.core.settings import DEFAULT_TOPHUB_BASE_URL

logger = logging.getLogger(__name__)

# 微信24h热文榜节点
WECHAT_HOTLIST_HASHID = "WnBe01o371"

TIMEOUT_MESSAGE = "请求超时，请稍后重试"
INVALID_KEY_MESSAGE = "API密钥无效，请检查TOPHUB_ACCESS_KEY配置"
RATE_LIMIT_MESSAGE = "请求频率过高，请稍后重试"


class HotlistError(Exception):
    """热榜 API 调用失败"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TophubClient:
    """今日热榜 API 客户端（每次调用只发一次请求，不重试、不缓存）"""

    def __init__(
        self,
        access_key: str,
        base_url: str = DEFAULT_TOPHUB_BASE_URL,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.access_key = access_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.access_key,
            "Content-Type": "application/json",
        }

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None) -> Any:
        """
        发送 GET 请求并解包响应中的 data 字段

        Args:
            path: 接口路径
            params: 查询参数
            timeout: 超时时间（默认使用客户端配置）

        Returns:
            响应中的 data 字段

        Raises:
            HotlistError: 网络、鉴权、限流或业务错误
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=timeout or self.timeout,
            )
        except requests.Timeout as e:
            raise HotlistError(TIMEOUT_MESSAGE) from e
        except requests.RequestException as e:
            raise HotlistError(f"API请求失败: {e}") from e

        if response.status_code == 401:
            raise HotlistError(INVALID_KEY_MESSAGE, 401)
        if response.status_code == 429:
            raise HotlistError(RATE_LIMIT_MESSAGE, 429)
        if response.status_code >= 400:
            raise HotlistError(
                f"API请求失败: HTTP {response.status_code} {response.reason or ''}".rstrip(),
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise HotlistError("API请求失败: 响应不是有效的JSON") from e

        if isinstance(payload, dict):
            if payload.get("success") is False:
                raise HotlistError(payload.get("message") or payload.get("error") or "API请求失败")
            if "data" in payload:
                return payload["data"]
        return payload

    def get_all_nodes(self) -> List[Dict[str, Any]]:
        """获取所有榜单节点"""
        logger.info("📡 正在获取热榜节点列表")
        data = self._get("/nodes")
        if isinstance(data, dict):
            return data.get("items") or data.get("nodes") or []
        return data or []

    def get_node_detail(self, hashid: str) -> Dict[str, Any]:
        """
        获取榜单详情

        Args:
            hashid: 榜单节点ID

        Returns:
            榜单数据（包含 items）
        """
        logger.info(f"📡 正在获取榜单: {hashid}")
        data = self._get(f"/nodes/{hashid}")
        if not data:
            raise HotlistError("榜单数据为空")
        return data

    def search_node_content(self, q: str, hashid: Optional[str] = None, page: int = 1) -> Dict[str, Any]:
        """
        在榜单中搜索内容

        Args:
            q: 关键词
            hashid: 限定的榜单节点ID（可选）
            page: 页码

        Returns:
            搜索结果（包含 items）
        """
        params: Dict[str, Any] = {"q": q, "p": page}
        if hashid:
            params["hashid"] = hashid
        logger.info(f"🔍 正在搜索热榜: {q} (hashid={hashid})")
        return self._get("/search", params=params) or {}

    def get_wechat_hotlist(self) -> Dict[str, Any]:
        """获取微信24h热文榜"""
        return self.get_node_detail(WECHAT_HOTLIST_HASHID)

    def test_connection(self) -> bool:
        """连通性检测（不抛出异常）"""
        try:
            self._get("/nodes", timeout=5)
            return True
        except HotlistError as e:
            logger.warning(f"⚠️  热榜 API 连接失败: {e}")
            return False

    def get_api_info(self) -> Dict[str, Any]:
        """返回客户端配置概要（密钥只展示前8位）"""
        return {
            "baseURL": self.base_url,
            "hasAccessKey": bool(self.access_key),
            "accessKeyPrefix": f"{self.access_key[:8]}..." if self.access_key else "未配置",
        }


def extract_items(data: Any) -> List[Dict[str, Any]]:
    """从榜单/搜索响应中取出条目列表"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get("items") or []
    return []
