"""
发布管理页
"""
import pandas as pd
import streamlit as st

from web.api_client import ApiRequestError
from web.records import PublicationRecord
from web.state import AppStore
from web.views.common import format_time
from web.wechat_publisher import WeChatPublisher, WeChatPublishError

PUBLICATION_LABELS = {
    "success": "✅ 成功",
    "failed": "❌ 失败",
    "pending": "⏳ 处理中",
}


def render(store: AppStore):
    st.header("📤 发布管理")
    accounts = [a for a in store.state.accounts if a.is_connected]
    if not accounts:
        st.warning("⚠️ 请先在“设置”中添加公众号并测试连接")
    candidates = [m for m in store.state.materials if m.status == "rewritten"]

    if accounts and candidates:
        options = {m.title[:60]: m for m in candidates}
        material = options[st.selectbox("选择已改写的素材", list(options.keys()))]
        account_options = {a.name: a for a in accounts}
        account = account_options[st.selectbox("公众号", list(account_options.keys()))]
        images = [img.url for img in store.images_for(material.id)]
        st.caption(f"已有 {len(images)} 张配图，第一张作为封面")

        if st.button("🚀 发布", type="primary", disabled=not images):
            record = PublicationRecord(
                article_id=material.id,
                account_id=account.id,
                title=material.title,
                content=material.content,
                images=images,
            )
            with st.spinner("正在发布..."):
                try:
                    publisher = WeChatPublisher(account.app_id, account.app_secret)
                    record.publish_id = publisher.publish_article(material.title, material.content, images)
                    record.status = "success"
                except WeChatPublishError as e:
                    record.status = "failed"
                    record.error = str(e)
            try:
                store.record_publication(record)
            except ApiRequestError as e:
                st.warning(f"⚠️ 已发布，但素材状态更新失败: {e.message}")
            if record.status == "success":
                st.success("✅ 已提交发布")
            else:
                st.error(f"❌ 发布失败: {record.error}")
    elif accounts:
        st.info("没有待发布的素材，请先完成改写")

    st.subheader("发布记录")
    if not store.state.publications:
        st.caption("暂无发布记录")
        return
    names = {a.id: a.name for a in store.state.accounts}
    st.dataframe(pd.DataFrame([
        {
            "标题": p.title,
            "公众号": names.get(p.account_id, p.account_id),
            "状态": PUBLICATION_LABELS.get(p.status, p.status),
            "publish_id": p.publish_id or "",
            "错误": p.error or "",
            "时间": format_time(p.published_at),
        }
        for p in reversed(store.state.publications)
    ]), use_container_width=True, hide_index=True)
