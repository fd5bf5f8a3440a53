"""
素材库页
"""
import math

import pandas as pd
import streamlit as st

from web.state import AppStore
from web.views.common import STATUS_LABELS, format_time, run_action

SORT_OPTIONS = {
    "collectTime": "采集时间",
    "readCount": "阅读数",
    "likeCount": "点赞数",
}


def render(store: AppStore):
    st.header("📚 素材库")

    query = dict(store.material_query)
    col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
    search = col1.text_input("搜索", value=query.get("search") or "", placeholder="标题 / 正文 / 作者")
    status_keys = ["全部"] + list(STATUS_LABELS.keys())
    status = col2.selectbox(
        "状态", status_keys,
        index=status_keys.index(query.get("status") or "全部"),
        format_func=lambda s: STATUS_LABELS.get(s, s),
    )
    sort_keys = list(SORT_OPTIONS.keys())
    sort_by = col3.selectbox(
        "排序", sort_keys,
        index=sort_keys.index(query.get("sort_by", "collectTime")),
        format_func=SORT_OPTIONS.get,
    )
    order = col4.selectbox("顺序", ["desc", "asc"], index=0 if query.get("order", "desc") == "desc" else 1)

    if st.button("🔍 查询"):
        run_action(lambda: store.refresh_materials(
            page=1,
            limit=query.get("limit", 20),
            status=None if status == "全部" else status,
            search=search.strip() or None,
            sort_by=sort_by,
            order=order,
        ))

    materials = store.state.materials
    if not materials:
        st.info("暂无素材，可在“热榜采集”中将采集结果添加到素材库")
        _render_create(store)
        return

    frame = pd.DataFrame([
        {
            "id": m.id,
            "选择": False,
            "标题": m.title,
            "来源": m.source,
            "作者": m.author,
            "阅读": m.read_count,
            "点赞": m.like_count,
            "状态": STATUS_LABELS.get(m.status, m.status),
            "采集时间": format_time(m.collect_time),
        }
        for m in materials
    ])
    edited = st.data_editor(
        frame,
        column_config={"id": None},
        disabled=[c for c in frame.columns if c != "选择"],
        use_container_width=True,
        hide_index=True,
        key="materials_editor",
    )
    selected_ids = edited.loc[edited["选择"], "id"].tolist()

    col1, col2, col3 = st.columns([2, 1, 1])
    target_status = col1.selectbox("批量设置状态", list(STATUS_LABELS.keys()), format_func=STATUS_LABELS.get)
    if col2.button("✅ 应用状态", disabled=not selected_ids):
        result = run_action(lambda: store.batch_update_materials_status(selected_ids, target_status))
        if result:
            _show_batch_result(result)
    if col3.button("🗑️ 批量删除", disabled=not selected_ids):
        result = run_action(lambda: store.batch_delete_materials(selected_ids))
        if result:
            _show_batch_result(result)

    _render_pagination(store)
    _render_editor(store)
    _render_create(store)


def _show_batch_result(result):
    summary = result["results"]
    if summary["failed"]:
        st.warning(f"⚠️ 成功 {summary['success']} 条，失败 {summary['failed']} 条")
        for item in summary["details"]["failed"]:
            st.caption(f"{item['id']}: {item['error']}")
    else:
        st.success(f"✅ 已处理 {summary['success']} 条")


def _render_pagination(store: AppStore):
    pagination = store.material_pagination
    if not pagination:
        return
    total_pages = max(1, math.ceil(pagination.get("total", 0) / max(pagination.get("limit", 20), 1)))
    page = pagination.get("page", 1)
    col1, col2, col3 = st.columns([1, 2, 1])
    if col1.button("⬅️ 上一页", disabled=page <= 1):
        run_action(lambda: store.refresh_materials(**{**store.material_query, "page": page - 1}))
        st.rerun()
    col2.caption(f"第 {page} / {total_pages} 页，共 {pagination.get('total', 0)} 条")
    if col3.button("下一页 ➡️", disabled=page >= total_pages):
        run_action(lambda: store.refresh_materials(**{**store.material_query, "page": page + 1}))
        st.rerun()


def _render_editor(store: AppStore):
    materials = store.state.materials
    options = {m.title[:60]: m.id for m in materials}
    with st.expander("✏️ 编辑素材"):
        label = st.selectbox("选择素材", list(options.keys()), key="edit_material")
        material = store.get_material(options[label])
        if material is None:
            return
        with st.form(f"edit_{material.id}"):
            title = st.text_input("标题", value=material.title)
            content = st.text_area("正文", value=material.content, height=240)
            author = st.text_input("作者", value=material.author)
            category = st.text_input("分类", value=material.category)
            tags = st.text_input("标签（逗号分隔）", value=", ".join(material.tags))
            status = st.selectbox(
                "状态", list(STATUS_LABELS.keys()),
                index=list(STATUS_LABELS.keys()).index(material.status),
                format_func=STATUS_LABELS.get,
            )
            save = st.form_submit_button("💾 保存")
        if save:
            run_action(lambda: store.update_material(material.id, {
                "title": title,
                "content": content,
                "author": author,
                "category": category,
                "tags": [t.strip() for t in tags.split(",") if t.strip()],
                "status": status,
            }), "素材已更新")
        if st.button("🗑️ 删除该素材", key=f"delete_material_{material.id}"):
            run_action(lambda: store.delete_material(material.id), "素材已删除")
            st.rerun()


def _render_create(store: AppStore):
    with st.expander("➕ 手动添加素材"):
        with st.form("create_material", clear_on_submit=True):
            title = st.text_input("标题")
            content = st.text_area("正文", height=200)
            source = st.text_input("来源", value="手动添加")
            source_url = st.text_input("原文链接")
            submitted = st.form_submit_button("添加")
        if submitted:
            if not (title.strip() and content.strip() and source.strip()):
                st.error("❌ 标题、正文和来源为必填项")
                return
            run_action(lambda: store.create_material({
                "title": title,
                "content": content,
                "source": source,
                "source_url": source_url or None,
            }), "素材已添加")
