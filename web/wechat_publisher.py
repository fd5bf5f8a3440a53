"""
微信公众号发布：获取 access_token、上传封面、创建草稿并提交发布
"""
import json
import logging
import time
from html import escape
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

WECHAT_API_BASE = "https://api.weixin.qq.com/cgi-bin"


class WeChatPublishError(Exception):
    """公众号接口调用失败"""

    def __init__(self, message: str, errcode: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.errcode = errcode


class WeChatPublisher:
    """微信公众号发布客户端"""

    def __init__(self, app_id: str, app_secret: str, session: Optional[requests.Session] = None, timeout: float = 30):
        if not app_id or not app_secret:
            raise WeChatPublishError("公众号 AppID 或 AppSecret 未配置")
        self.app_id = app_id
        self.app_secret = app_secret
        self.session = session or requests.Session()
        self.timeout = timeout
        self._access_token: Optional[str] = None
        self._token_expires_at: float = 0.0

    @staticmethod
    def _check(data: Dict[str, Any], action: str) -> Dict[str, Any]:
        errcode = data.get("errcode", 0)
        if errcode:
            raise WeChatPublishError(f"{action}失败: {data.get('errmsg', '未知错误')} ({errcode})", errcode)
        return data

    def _request(self, method: str, path: str, action: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, f"{WECHAT_API_BASE}{path}", timeout=self.timeout, **kwargs)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise WeChatPublishError(f"{action}失败: {e}") from e
        except ValueError as e:
            raise WeChatPublishError(f"{action}失败: 响应不是有效的JSON") from e
        return self._check(data, action)

    def get_access_token(self) -> str:
        """获取 access_token（缓存至过期前5分钟）"""
        if self._access_token and self._token_expires_at > time.time():
            return self._access_token

        data = self._request("GET", "/token", "获取access_token", params={
            "grant_type": "client_credential",
            "appid": self.app_id,
            "secret": self.app_secret,
        })
        if "access_token" not in data:
            raise WeChatPublishError(f"获取access_token失败: {data}")
        self._access_token = data["access_token"]
        self._token_expires_at = time.time() + int(data.get("expires_in", 7200)) - 300
        return self._access_token

    def test_connection(self) -> bool:
        try:
            self.get_access_token()
            return True
        except WeChatPublishError as e:
            logger.warning(f"⚠️  公众号连接失败: {e}")
            return False

    def upload_image_from_url(self, image_url: str) -> str:
        """下载图片并上传为永久素材（草稿封面需要永久素材的 media_id）"""
        try:
            image = self.session.get(image_url, timeout=self.timeout)
            image.raise_for_status()
        except requests.RequestException as e:
            raise WeChatPublishError(f"下载配图失败: {e}") from e

        token = self.get_access_token()
        data = self._request(
            "POST",
            "/material/add_material",
            "上传封面",
            params={"access_token": token, "type": "image"},
            files={"media": ("cover.jpg", image.content, "image/jpeg")},
            data={"description": "封面图"},
        )
        return str(data["media_id"])

    def create_draft(self, title: str, content: str, thumb_media_id: str, author: str = "", digest: str = "") -> str:
        """创建草稿，返回草稿 media_id"""
        token = self.get_access_token()
        article = {
            "title": title[:64],
            "author": author,
            "digest": digest[:120],
            "content": content,
            "thumb_media_id": thumb_media_id,
            "need_open_comment": 0,
        }
        body = json.dumps({"articles": [article]}, ensure_ascii=False).encode("utf-8")
        data = self._request(
            "POST",
            "/draft/add",
            "创建草稿",
            params={"access_token": token},
            data=body,
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        return data["media_id"]

    def submit_publish(self, draft_media_id: str) -> str:
        """提交发布，返回 publish_id"""
        token = self.get_access_token()
        data = self._request(
            "POST",
            "/freepublish/submit",
            "提交发布",
            params={"access_token": token},
            json={"media_id": draft_media_id},
        )
        return str(data.get("publish_id", ""))

    def publish_article(self, title: str, content: str, images: List[str]) -> str:
        """
        发布一篇文章

        Args:
            title: 标题
            content: 正文（纯文本会按段落转换为 HTML）
            images: 配图 URL，第一张作为封面

        Returns:
            publish_id
        """
        if not images:
            raise WeChatPublishError("发布需要至少一张配图作为封面")
        logger.info(f"📤 正在发布到公众号: {title[:50]}")
        thumb_media_id = self.upload_image_from_url(images[0])
        html = to_html(content, images[1:])
        draft_id = self.create_draft(title, html, thumb_media_id, digest=content.strip()[:120])
        publish_id = self.submit_publish(draft_id)
        logger.info(f"✅ 已提交发布: publish_id={publish_id}")
        return publish_id


def to_html(content: str, images: Optional[List[str]] = None) -> str:
    """纯文本正文按段落转换为 HTML，并在末尾附加配图"""
    paragraphs = [p.strip() for p in content.split("\n") if p.strip()]
    html = "".join(f"<p>{escape(p)}</p>" for p in paragraphs)
    for url in images or []:
        html += f'<p><img src="{escape(url)}" /></p>'
    return html
