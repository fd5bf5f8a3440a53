"""
概览页
"""
import pandas as pd
import streamlit as st

from web.api_client import ApiRequestError
from web.state import AppStore
from web.views.common import STATUS_LABELS, format_time


def render(store: AppStore):
    st.header("📊 概览")
    state = store.state

    counts = {status: 0 for status in STATUS_LABELS}
    for material in state.materials:
        counts[material.status] = counts.get(material.status, 0) + 1

    total = store.material_pagination.get("total", len(state.materials))
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("素材总数", total)
    col2.metric("待处理（当前页）", counts["pending"])
    col3.metric("已改写（当前页）", counts["rewritten"])
    col4.metric("已发布（当前页）", counts["published"])

    st.subheader("📡 采集统计")
    if st.button("刷新统计"):
        try:
            store.refresh_stats()
        except ApiRequestError as e:
            st.error(f"❌ {e.message}")

    stats = state.collect_stats
    if stats:
        s1, s2, s3, s4 = st.columns(4)
        s1.metric("采集源", f"{stats.active_sources}/{stats.total_sources}")
        s2.metric("今日采集", stats.today_collects)
        s3.metric("累计文章", stats.total_articles)
        s4.metric("成功率", f"{stats.success_rate:.1f}%")
        st.caption(f"最近采集: {format_time(stats.last_collect_time)}")
    else:
        st.info("暂无统计数据，点击“刷新统计”获取")

    left, right = st.columns(2)
    with left:
        st.subheader("✍️ 最近改写")
        if state.rewrites:
            st.dataframe(pd.DataFrame([
                {"标题": r.rewritten_title, "风格": r.style, "时间": format_time(r.created_at)}
                for r in reversed(state.rewrites[-10:])
            ]), use_container_width=True, hide_index=True)
        else:
            st.caption("暂无改写记录")
    with right:
        st.subheader("📤 最近发布")
        if state.publications:
            st.dataframe(pd.DataFrame([
                {"标题": p.title, "状态": p.status, "时间": format_time(p.published_at)}
                for p in reversed(state.publications[-10:])
            ]), use_container_width=True, hide_index=True)
        else:
            st.caption("暂无发布记录")
