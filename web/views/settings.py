"""
设置页：AI 配置、公众号账号、热榜接口测试
"""
import streamlit as st

from web.api_client import ApiRequestError
from web.records import WeChatAccount, now_utc
from web.state import AppStore
from web.views.common import format_time
from web.wechat_publisher import WeChatPublisher


def render(store: AppStore):
    st.header("⚙️ 设置")
    tab_ai, tab_accounts, tab_hotlist = st.tabs(["AI 配置", "公众号", "热榜接口"])
    with tab_ai:
        _render_ai(store)
    with tab_accounts:
        _render_accounts(store)
    with tab_hotlist:
        _render_hotlist(store)


def _render_ai(store: AppStore):
    config = store.state.config
    with st.form("ai_config"):
        api_key = st.text_input("API Key", value=config.ai_api_key, type="password")
        api_base = st.text_input("API Base", value=config.ai_api_base)
        model = st.text_input("改写模型", value=config.ai_model)
        image_model = st.text_input("配图模型", value=config.image_model)
        frequency = st.number_input("采集频率（分钟）", min_value=5, max_value=1440, value=config.collect_frequency)
        auto_rewrite = st.checkbox("采集后自动改写", value=config.auto_rewrite)
        auto_publish = st.checkbox("改写后自动发布", value=config.auto_publish)
        if st.form_submit_button("💾 保存"):
            store.update_config({
                "ai_api_key": api_key.strip(),
                "ai_api_base": api_base.strip(),
                "ai_model": model.strip(),
                "image_model": image_model.strip(),
                "collect_frequency": int(frequency),
                "auto_rewrite": auto_rewrite,
                "auto_publish": auto_publish,
            })
            st.toast("配置已保存", icon="✅")


def _render_accounts(store: AppStore):
    for account in store.state.accounts:
        with st.container(border=True):
            col1, col2, col3 = st.columns([3, 1, 1])
            status = "🟢 已连接" if account.is_connected else "⚪ 未连接"
            col1.markdown(f"**{account.name}** · `{account.app_id}` · {status}")
            col1.caption(f"最近同步: {format_time(account.last_sync)}")
            if col2.button("测试", key=f"test_{account.id}"):
                connected = WeChatPublisher(account.app_id, account.app_secret).test_connection()
                store.update_account(account.id, {
                    "is_connected": connected,
                    "last_sync": now_utc() if connected else account.last_sync,
                })
                st.rerun()
            if col3.button("移除", key=f"remove_{account.id}"):
                store.remove_account(account.id)
                st.rerun()

    with st.form("add_account", clear_on_submit=True):
        name = st.text_input("公众号名称")
        app_id = st.text_input("AppID")
        app_secret = st.text_input("AppSecret", type="password")
        if st.form_submit_button("➕ 添加"):
            if not (name and app_id and app_secret):
                st.error("❌ 名称、AppID 和 AppSecret 均为必填项")
            else:
                store.add_account(WeChatAccount(name=name, app_id=app_id.strip(), app_secret=app_secret.strip()))
                st.rerun()


def _render_hotlist(store: AppStore):
    st.caption("检查后端与今日热榜 API 的连接")
    if st.button("🔌 测试连接"):
        with st.spinner("正在测试..."):
            try:
                data = store.client.test_hotlist()
            except ApiRequestError as e:
                st.error(f"❌ {e.message}")
                return
        st.success("✅ 热榜API连接正常")
        st.json(data)
