"""
仪表盘页面
"""
