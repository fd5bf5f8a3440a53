"""
热榜采集页：采集源管理、执行采集、结果筛选、批次与历史
"""
import pandas as pd
import streamlit as st

from backend.app.schemas.source import HASH_ID_PATTERN
from web.api_client import ApiRequestError
from web.state import AppStore
from web.views.common import BATCH_STATUS_LABELS, format_time, run_action


def render(store: AppStore):
    st.header("📡 热榜采集")
    tab_sources, tab_execute, tab_results, tab_batches, tab_history = st.tabs(
        ["采集源", "执行采集", "采集结果", "采集批次", "采集历史"]
    )
    with tab_sources:
        _render_sources(store)
    with tab_execute:
        _render_execute(store)
    with tab_results:
        _render_results(store)
    with tab_batches:
        _render_batches(store)
    with tab_history:
        _render_history(store)


def _render_sources(store: AppStore):
    sources = store.state.collect_sources
    if sources:
        st.dataframe(pd.DataFrame([
            {
                "名称": s.name,
                "平台": s.platform,
                "HashId": s.hash_id,
                "分类": s.category,
                "启用": "✅" if s.is_active else "⛔",
                "自定义": "是" if s.user_created else "否",
            }
            for s in sources
        ]), use_container_width=True, hide_index=True)
    else:
        st.info("暂无采集源")

    with st.expander("➕ 添加采集源"):
        with st.form("create_source", clear_on_submit=True):
            name = st.text_input("名称")
            platform = st.text_input("平台", placeholder="wechat / zhihu / weibo ...")
            hash_id = st.text_input("HashId", help="今日热榜节点ID，10位字母数字")
            category = st.text_input("分类")
            description = st.text_area("描述")
            submitted = st.form_submit_button("添加")
        if submitted:
            if not (name and platform and hash_id):
                st.error("❌ 名称、平台和 HashId 为必填项")
            elif not HASH_ID_PATTERN.match(hash_id.strip()):
                st.error("❌ hashId格式不正确，应为10位字母数字组合")
            else:
                run_action(lambda: store.create_source({
                    "name": name, "platform": platform, "hash_id": hash_id,
                    "category": category or None, "description": description or None,
                }), "采集源已添加")

    if not sources:
        return

    options = {f"{s.name} ({s.hash_id})": s for s in sources}
    label = st.selectbox("选择采集源", list(options.keys()), key="manage_source")
    source = options[label]
    col1, col2 = st.columns(2)
    with col1:
        toggle_label = "禁用" if source.is_active else "启用"
        if st.button(toggle_label, key=f"toggle_{source.id}"):
            run_action(lambda: store.update_source(source.id, {"is_active": not source.is_active}), f"已{toggle_label}")
            st.rerun()
    with col2:
        if st.button("🗑️ 删除", key=f"delete_{source.id}"):
            try:
                store.delete_source(source.id)
                st.toast("采集源已删除", icon="✅")
                st.rerun()
            except ApiRequestError as e:
                if e.has_related_data:
                    st.session_state.pending_cascade = {"id": source.id, "name": source.name, **e.details}
                else:
                    st.error(f"❌ {e.message}")

    pending = st.session_state.get("pending_cascade")
    if pending and pending["id"] == source.id:
        st.warning(
            f"⚠️ 采集源“{pending['name']}”关联了 {pending.get('resultsCount', 0)} 条采集结果、"
            f"{pending.get('batchesCount', 0)} 个采集批次。级联删除会一并删除采集结果，并从批次中移除该采集源。"
        )
        confirm, cancel = st.columns(2)
        if confirm.button("确认级联删除", type="primary"):
            st.session_state.pop("pending_cascade")
            run_action(lambda: store.delete_source(source.id, cascade=True), "采集源及关联数据已删除")
            st.rerun()
        if cancel.button("取消"):
            st.session_state.pop("pending_cascade")
            st.rerun()


def _render_execute(store: AppStore):
    active = [s for s in store.state.collect_sources if s.is_active]
    if not active:
        st.info("没有启用的采集源")
        return

    options = {s.name: s.id for s in active}
    with st.form("execute_collect"):
        selected = st.multiselect("采集源", list(options.keys()), default=list(options.keys())[:1])
        collect_type = st.radio("采集方式", ["full", "keyword"], format_func=lambda t: "一键采集" if t == "full" else "关键词采集", horizontal=True)
        keyword = st.text_input("关键词（关键词采集时必填）")
        limit = st.slider("每个采集源条数", 1, 100, 20)
        name = st.text_input("批次名称（可选）")
        submitted = st.form_submit_button("🚀 开始采集", type="primary")

    if not submitted:
        return
    if not selected:
        st.error("❌ 请选择至少一个采集源")
        return
    if collect_type == "keyword" and not keyword.strip():
        st.error("❌ 关键词采集时必须提供关键词")
        return

    with st.spinner("正在采集..."):
        result = run_action(lambda: store.execute_collect(
            source_ids=[options[n] for n in selected],
            collect_type=collect_type,
            keyword=keyword.strip() or None,
            name=name or None,
            limit=limit,
        ))
    if result is None:
        return
    if result.success:
        st.success(f"✅ 采集完成：获取 {result.total} 条，保存 {result.collected} 条")
    else:
        st.warning("⚠️ 本次采集没有保存任何结果")
    for error in result.errors or []:
        st.error(error)
    st.session_state.current_batch = result.batch_id


def _render_results(store: AppStore):
    batches = store.state.collect_batches
    batch_options = {"全部": None}
    batch_options.update({f"{b.name} ({BATCH_STATUS_LABELS.get(b.status, b.status)})": b.id for b in batches})
    current = st.session_state.get("current_batch")
    labels = list(batch_options.keys())
    default_index = next((i for i, k in enumerate(labels) if batch_options[k] == current), 0)

    col1, col2 = st.columns([3, 1])
    label = col1.selectbox("批次", labels, index=default_index)
    only_selected = col2.checkbox("仅看已选")
    if st.button("🔄 加载结果"):
        run_action(lambda: store.refresh_results(batch_id=batch_options[label], only_selected=only_selected, limit=100))

    results = store.state.collect_results
    if not results:
        st.info("暂无采集结果")
        return

    frame = pd.DataFrame([
        {
            "id": r.id,
            "选择": r.is_selected,
            "标题": r.title,
            "来源": r.source,
            "热度": r.read_count,
            "已入库": r.added_to_materials,
            "采集时间": format_time(r.collect_time),
        }
        for r in results
    ])
    edited = st.data_editor(
        frame,
        column_config={"id": None},
        disabled=["标题", "来源", "热度", "已入库", "采集时间"],
        use_container_width=True,
        hide_index=True,
        key="results_editor",
    )
    selected_ids = edited.loc[edited["选择"], "id"].tolist()
    changed = [
        (row["id"], bool(row["选择"]))
        for _, row in edited.iterrows()
        if bool(row["选择"]) != next(r.is_selected for r in results if r.id == row["id"])
    ]

    col1, col2, col3 = st.columns(3)
    if col1.button("💾 保存选择", disabled=not changed):
        for flag in (True, False):
            ids = [rid for rid, value in changed if value is flag]
            if ids:
                run_action(lambda: store.set_results_selected(ids, flag))
        st.rerun()
    dedupe = col2.checkbox("按标题去重", value=False)
    if col2.button("📥 添加到素材库", disabled=not selected_ids):
        summary = run_action(lambda: store.add_results_to_materials(selected_ids, dedupe=dedupe))
        if summary:
            st.success(f"✅ 新增 {summary['added']} 条素材，跳过 {summary['skipped']} 条")
    if col3.button("🗑️ 删除所选", disabled=not selected_ids):
        run_action(lambda: store.delete_results(selected_ids), "已删除")
        st.rerun()


def _render_batches(store: AppStore):
    if st.button("🔄 刷新批次"):
        run_action(store.refresh_batches)
    batches = store.state.collect_batches
    if not batches:
        st.info("暂无采集批次")
        return
    st.dataframe(pd.DataFrame([
        {
            "名称": b.name,
            "方式": "关键词" if b.collect_type == "keyword" else "一键",
            "关键词": b.keyword,
            "状态": BATCH_STATUS_LABELS.get(b.status, b.status),
            "条目": b.total_count,
            "保存": b.success_count,
            "失败源": b.error_count,
            "开始": format_time(b.started_at),
            "完成": format_time(b.completed_at),
        }
        for b in batches
    ]), use_container_width=True, hide_index=True)


def _render_history(store: AppStore):
    col1, col2 = st.columns(2)
    range_name = col1.selectbox("时间范围", ["today", "week", "month", "all"], index=1,
                                format_func=lambda r: {"today": "今天", "week": "近7天", "month": "近30天", "all": "全部"}[r])
    platforms = sorted({s.platform for s in store.state.collect_sources})
    platform = col2.selectbox("平台", ["全部"] + platforms)

    if st.button("🔄 查询历史"):
        data = run_action(lambda: store.refresh_history(
            range=None if range_name == "all" else range_name,
            platform=None if platform == "全部" else platform,
            limit=100,
        ))
        if data:
            st.session_state.history_summary = data["summary"]

    summary = st.session_state.get("history_summary")
    if summary:
        s1, s2, s3 = st.columns(3)
        s1.metric("采集条目", summary["totalArticles"])
        s2.metric("保存条目", summary["totalSuccess"])
        s3.metric("平均成功率", f"{summary['averageSuccessRate']}%")

    history = store.state.collect_history
    if history:
        st.dataframe(pd.DataFrame([
            {
                "采集源": h.source.name if h.source else h.source_id,
                "条目": h.articles_count,
                "保存": h.success_count,
                "时间": format_time(h.collected_at),
            }
            for h in history
        ]), use_container_width=True, hide_index=True)
