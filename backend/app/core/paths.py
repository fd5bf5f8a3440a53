"""
统一的路径管理模块
"""
from pathlib import Path
import sys

# backend/app/core/paths.py -> backend/app/core -> backend/app -> backend -> 项目根
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
BACKEND_ROOT = PROJECT_ROOT / "backend"
APP_ROOT = BACKEND_ROOT / "app"

# 预置采集源定义文件
DEFAULT_SOURCES_FILE = APP_ROOT / "sources.json"


def setup_python_path():
    """确保项目根目录在 Python 路径中（已存在时不重复添加）"""
    root_str = str(PROJECT_ROOT)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


setup_python_path()
