"""
Quill - 스토리 퍼블리싱 백엔드 코어
"""

__version__ = "0.1.0"
