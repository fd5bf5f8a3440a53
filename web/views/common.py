"""
页面公共组件
"""
from typing import Callable, Optional, TypeVar

import streamlit as st

from web.api_client import ApiRequestError

T = TypeVar("T")

STATUS_LABELS = {
    "pending": "待处理",
    "rewritten": "已改写",
    "published": "已发布",
}

BATCH_STATUS_LABELS = {
    "pending": "等待中",
    "running": "执行中",
    "completed": "已完成",
    "failed": "失败",
}


def run_action(action: Callable[[], T], success_message: Optional[str] = None) -> Optional[T]:
    """执行写操作，失败时展示错误信息

    Returns:
        操作结果，失败时为 None
    """
    try:
        result = action()
    except ApiRequestError as e:
        st.error(f"❌ {e.message}")
        return None
    if success_message:
        st.toast(success_message, icon="✅")
    return result


def format_time(value) -> str:
    if not value:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")
