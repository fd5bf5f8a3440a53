"""
AI 改写页
"""
import streamlit as st

from web.ai_writer import AIWriter, AIWriterError
from web.records import REWRITE_STYLES, RewriteRecord
from web.state import AppStore
from web.views.common import format_time, run_action


def get_writer(store: AppStore) -> AIWriter:
    config = store.state.config
    return AIWriter(
        api_key=config.ai_api_key,
        base_url=config.ai_api_base,
        model=config.ai_model,
        image_model=config.image_model,
    )


def render(store: AppStore):
    st.header("✍️ AI改写")
    if not store.state.config.ai_api_key:
        st.warning("⚠️ 请先在“设置”中配置 AI API Key")
        return

    candidates = [m for m in store.state.materials if m.status == "pending"] or store.state.materials
    if not candidates:
        st.info("素材库为空")
        return

    options = {m.title[:60]: m for m in candidates}
    material = options[st.selectbox("选择素材", list(options.keys()))]
    style = st.radio(
        "改写风格", list(REWRITE_STYLES.keys()),
        format_func=lambda s: REWRITE_STYLES[s]["name"],
        horizontal=True,
    )
    custom_prompt = st.text_area("额外要求（可选）")

    with st.expander("原文", expanded=False):
        st.markdown(f"**{material.title}**")
        st.write(material.content)

    if st.button("🤖 开始改写", type="primary"):
        with st.spinner("AI 正在改写..."):
            try:
                result = get_writer(store).rewrite(material.title, material.content, style, custom_prompt or None)
            except AIWriterError as e:
                st.error(f"❌ {e}")
                return
        store.add_rewrite(RewriteRecord(
            article_id=material.id,
            original_title=material.title,
            rewritten_title=result["title"],
            original_content=material.content,
            rewritten_content=result["content"],
            style=style,
            custom_prompt=custom_prompt or None,
        ))

    records = [r for r in store.state.rewrites if r.article_id == material.id]
    if not records:
        return

    st.subheader("改写记录")
    for record in reversed(records):
        with st.container(border=True):
            st.caption(f"{REWRITE_STYLES.get(record.style, {}).get('name', record.style)} · {format_time(record.created_at)}")
            st.markdown(f"**{record.rewritten_title}**")
            st.write(record.rewritten_content)
            if st.button("采纳", key=f"accept_{record.id}"):
                run_action(lambda: store.accept_rewrite(record), "已写回素材")
