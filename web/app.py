"""
内容运营仪表盘 - Streamlit Web Dashboard
"""
import os
import sys
from pathlib import Path

import streamlit as st

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from backend.app.utils import setup_logger
from web.api_client import DEFAULT_BASE_URL, ApiClient, ApiRequestError
from web.records import WeChatAccount
from web.state import AppStore
from web.views import collect, dashboard, images, materials, publish, rewrite, settings

logger = setup_logger(__name__)

# 页面配置
st.set_page_config(
    page_title="内容运营仪表盘",
    page_icon="📰",
    layout="wide",
    initial_sidebar_state="expanded",
)

PAGES = {
    "📊 概览": dashboard.render,
    "📡 热榜采集": collect.render,
    "📚 素材库": materials.render,
    "✍️ AI改写": rewrite.render,
    "🎨 配图生成": images.render,
    "📤 发布管理": publish.render,
    "⚙️ 设置": settings.render,
}


def init_session_state():
    """初始化session state"""
    if "store" in st.session_state:
        return

    client = ApiClient(os.getenv("DASHBOARD_API_BASE", DEFAULT_BASE_URL))
    store = AppStore(client)

    # 环境变量中配置的公众号作为默认账号
    app_id = os.getenv("WECHAT_MP_APPID")
    app_secret = os.getenv("WECHAT_MP_SECRET")
    if app_id and app_secret:
        store.add_account(WeChatAccount(
            name=os.getenv("WECHAT_MP_NAME", "默认公众号"),
            app_id=app_id,
            app_secret=app_secret,
        ))

    ai_key = os.getenv("OPENAI_API_KEY")
    if ai_key:
        store.update_config({
            "ai_api_key": ai_key,
            "ai_api_base": os.getenv("OPENAI_API_BASE", store.state.config.ai_api_base),
            "ai_model": os.getenv("OPENAI_MODEL", store.state.config.ai_model),
        })

    st.session_state.store = store
    load_initial_data(store)


def load_initial_data(store: AppStore) -> None:
    """拉取素材和采集源"""
    try:
        store.refresh_materials(page=1, limit=20)
        store.refresh_sources()
        store.refresh_batches()
        st.session_state.pop("load_error", None)
    except ApiRequestError as e:
        logger.error(f"❌ 初始数据加载失败: {e.message}")
        st.session_state.load_error = e.message


def render_sidebar() -> str:
    """渲染侧边栏，返回选中的页面"""
    st.sidebar.title("📰 内容运营")
    page = st.sidebar.radio("导航", list(PAGES.keys()), label_visibility="collapsed")

    st.sidebar.markdown("---")
    state = st.session_state.store.state
    st.sidebar.metric("素材（当前页）", len(state.materials))
    st.sidebar.metric("采集源", len(state.collect_sources))
    st.sidebar.metric("发布记录", len(state.publications))

    if st.sidebar.button("🔄 刷新数据", use_container_width=True):
        load_initial_data(st.session_state.store)
        st.rerun()

    return page


def main():
    init_session_state()
    page = render_sidebar()

    if st.session_state.get("load_error"):
        st.error(f"❌ 无法连接后端服务: {st.session_state.load_error}")

    PAGES[page](st.session_state.store)


if __name__ == "__main__":
    main()
