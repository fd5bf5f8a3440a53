"""
热榜采集服务
"""
from backend.app.services.collector.service import CollectService, parse_hot_value, default_batch_name

__all__ = ["CollectService", "parse_hot_value", "default_batch_name"]
