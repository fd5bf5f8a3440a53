"""
热榜数据源
"""
from backend.app.services.hotlist.tophub import (
    HotlistError,
    TophubClient,
    WECHAT_HOTLIST_HASHID,
    extract_items,
)

__all__ = ["HotlistError", "TophubClient", "WECHAT_HOTLIST_HASHID", "extract_items"]
