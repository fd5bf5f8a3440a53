"""
AI 改写与配图生成 - 使用OpenAI兼容接口
"""
import json
import logging
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError

from web.records import IMAGE_STYLES, REWRITE_STYLES

logger = logging.getLogger(__name__)

REWRITE_SYSTEM_PROMPT = (
    "你是一名资深的微信公众号编辑，擅长在保留事实和核心观点的前提下改写文章。"
    "请始终使用中文输出，并以 JSON 格式返回。"
)


class AIWriterError(Exception):
    """AI 调用失败"""


def build_rewrite_prompt(title: str, content: str, style: str, custom_prompt: Optional[str] = None) -> str:
    """
    组装改写提示词

    Args:
        title: 原标题
        content: 原正文
        style: 风格键（general/professional/friendly/marketing）
        custom_prompt: 自定义要求（会追加在风格要求之后）

    Returns:
        提示词
    """
    style_prompt = REWRITE_STYLES.get(style, REWRITE_STYLES["general"])["prompt"]
    requirements = style_prompt
    if custom_prompt:
        requirements = f"{style_prompt}\n额外要求：{custom_prompt}"
    return (
        f"改写要求：{requirements}\n\n"
        f"原标题：{title}\n\n"
        f"原文：\n{content}\n\n"
        '请返回 JSON：{"title": "改写后的标题", "content": "改写后的正文"}'
    )


def build_image_prompt(title: str, style: str) -> str:
    """配图提示词"""
    style_name = IMAGE_STYLES.get(style, style)
    return f'为文章"{title}"生成{style_name}的配图'


class AIWriter:
    """AI 改写与配图"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4",
        image_model: str = "dall-e-3",
        client: Optional[OpenAI] = None,
    ):
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=60.0,
            max_retries=2,
        )
        self.model = model
        self.image_model = image_model

    def rewrite(self, title: str, content: str, style: str = "general", custom_prompt: Optional[str] = None) -> Dict[str, str]:
        """
        改写文章

        Args:
            title: 原标题
            content: 原正文
            style: 改写风格
            custom_prompt: 自定义要求

        Returns:
            {"title": 改写后标题, "content": 改写后正文}
        """
        prompt = build_rewrite_prompt(title, content, style, custom_prompt)
        logger.info(f"✍️  正在改写: {title[:50]} (风格: {style})")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": REWRITE_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.7,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error(f"❌ 改写失败: {e}")
            raise AIWriterError(f"改写失败: {e}") from e

        raw = response.choices[0].message.content or ""
        try:
            result = json.loads(raw)
        except json.JSONDecodeError:
            # 模型未按 JSON 返回时保留原标题，整段作为正文
            logger.warning("⚠️  改写结果不是 JSON，按纯文本处理")
            return {"title": title, "content": raw.strip()}

        return {
            "title": (result.get("title") or title).strip(),
            "content": (result.get("content") or "").strip(),
        }

    def generate_images(self, prompt: str, n: int = 3, size: str = "1024x1024") -> List[str]:
        """
        生成配图

        Args:
            prompt: 提示词
            n: 图片数量
            size: 图片尺寸

        Returns:
            图片 URL 列表
        """
        logger.info(f"🎨 正在生成 {n} 张配图: {prompt[:50]}")
        urls: List[str] = []
        try:
            # dall-e-3 每次只能生成一张
            per_call = 1 if self.image_model == "dall-e-3" else n
            while len(urls) < n:
                response = self.client.images.generate(
                    model=self.image_model,
                    prompt=prompt,
                    n=min(per_call, n - len(urls)),
                    size=size,
                )
                before = len(urls)
                urls.extend(item.url for item in response.data if item.url)
                if len(urls) == before:
                    break
        except OpenAIError as e:
            logger.error(f"❌ 配图生成失败: {e}")
            raise AIWriterError(f"配图生成失败: {e}") from e
        return urls
