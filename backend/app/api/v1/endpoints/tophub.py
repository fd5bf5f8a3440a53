"""
热榜 API 连通性检测端点
"""
import logging

from fastapi import APIRouter, Depends

from backend.app.core.dependencies import get_tophub_client
from backend.app.core.exceptions import ApiError
from backend.app.core.responses import success_response
from backend.app.db.models import utcnow
from backend.app.services.hotlist import HotlistError, TophubClient, extract_items
from backend.app.utils import log_api_request

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/test-tophub")
def test_tophub(client: TophubClient = Depends(get_tophub_client)):
    """检测热榜 API 连接并抽样获取微信热文榜"""
    log_api_request(logger, "GET", "/api/test-tophub")
    api_info = client.get_api_info()

    if not client.test_connection():
        raise ApiError(500, "热榜API连接失败", details={"apiInfo": api_info})

    try:
        hotlist = client.get_wechat_hotlist()
        wechat_test = {"status": "success", "data": extract_items(hotlist)[:3]}
    except HotlistError as e:
        logger.warning(f"⚠️  微信热文榜获取失败: {e}")
        wechat_test = {"status": "error", "error": str(e)}

    return success_response({
        "connection": True,
        "apiInfo": api_info,
        "wechatTest": wechat_test,
        "timestamp": utcnow(),
    }, message="热榜API连接正常")
