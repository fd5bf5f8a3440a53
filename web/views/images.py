"""
配图生成页
"""
import streamlit as st

from web.ai_writer import AIWriterError, build_image_prompt
from web.records import IMAGE_STYLES, GeneratedImage
from web.state import AppStore
from web.views.rewrite import get_writer


def render(store: AppStore):
    st.header("🎨 配图生成")
    if not store.state.config.ai_api_key:
        st.warning("⚠️ 请先在“设置”中配置 AI API Key")
        return
    if not store.state.materials:
        st.info("素材库为空")
        return

    options = {m.title[:60]: m for m in store.state.materials}
    material = options[st.selectbox("选择素材", list(options.keys()))]
    style = st.radio("配图风格", list(IMAGE_STYLES.keys()), format_func=IMAGE_STYLES.get, horizontal=True)
    prompt = st.text_area("提示词", value=build_image_prompt(material.title, style), key=f"prompt_{material.id}_{style}")
    count = st.slider("数量", 1, 4, 3)

    if st.button("🖼️ 生成配图", type="primary"):
        with st.spinner("正在生成..."):
            try:
                urls = get_writer(store).generate_images(prompt, n=count)
            except AIWriterError as e:
                st.error(f"❌ {e}")
                return
        store.add_images(GeneratedImage(article_id=material.id, url=url, prompt=prompt, style=style) for url in urls)
        st.success(f"✅ 生成 {len(urls)} 张配图")

    images = store.images_for(material.id)
    if not images:
        return
    columns = st.columns(3)
    for index, image in enumerate(images):
        with columns[index % 3]:
            st.image(image.url, caption=IMAGE_STYLES.get(image.style, image.style))
            if st.button("删除", key=f"remove_image_{image.id}"):
                store.remove_image(image.id)
                st.rerun()
