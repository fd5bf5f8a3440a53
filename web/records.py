"""
仪表盘本地记录（不持久化到服务端）
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

PublicationStatus = Literal["success", "failed", "pending"]

# 改写风格预设
REWRITE_STYLES = {
    "general": {
        "name": "通用风格",
        "prompt": "请保持原文核心观点，优化语言表达，使内容更加流畅易读",
    },
    "professional": {
        "name": "专业风格",
        "prompt": "请使用专业术语改写，增加权威性和专业性",
    },
    "friendly": {
        "name": "亲民风格",
        "prompt": "请用通俗易懂的语言改写，贴近普通读者",
    },
    "marketing": {
        "name": "营销风格",
        "prompt": "请增强感染力和说服力，适合营销推广",
    },
}

# 配图风格
IMAGE_STYLES = {
    "realistic": "写实风格",
    "illustration": "插画风格",
    "minimalist": "极简风格",
    "tech": "科技风格",
}


def new_id() -> str:
    return str(uuid.uuid4())


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RewriteRecord:
    """一次改写记录"""
    article_id: str
    original_title: str
    rewritten_title: str
    original_content: str
    rewritten_content: str
    style: str
    custom_prompt: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=now_utc)


@dataclass
class PublicationStats:
    views: int = 0
    likes: int = 0
    shares: int = 0


@dataclass
class PublicationRecord:
    """一次发布记录"""
    article_id: str
    account_id: str
    title: str
    content: str
    images: list[str] = field(default_factory=list)
    status: PublicationStatus = "pending"
    stats: Optional[PublicationStats] = None
    publish_id: Optional[str] = None
    error: Optional[str] = None
    id: str = field(default_factory=new_id)
    published_at: datetime = field(default_factory=now_utc)


@dataclass
class WeChatAccount:
    """微信公众号账号"""
    name: str
    app_id: str = ""
    app_secret: str = ""
    avatar: str = ""
    is_connected: bool = False
    last_sync: Optional[datetime] = None
    id: str = field(default_factory=new_id)


@dataclass
class GeneratedImage:
    """为素材生成的配图"""
    article_id: str
    url: str
    prompt: str
    style: str = "illustration"
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=now_utc)


@dataclass
class AppConfig:
    """仪表盘配置"""
    ai_api_key: str = ""
    ai_api_base: str = "https://api.openai.com/v1"
    ai_model: str = "gpt-4"
    image_model: str = "dall-e-3"
    collect_frequency: int = 60  # 分钟
    auto_rewrite: bool = False
    auto_publish: bool = False
