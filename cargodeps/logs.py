"""
cargodeps/logs.py
=================
로깅 설정
"""

import logging

LOG_FORMAT = "%(asctime)s  %(name)-24s  %(levelname)-7s  %(message)s"


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """
    루트 로거 설정

    Args:
        level: 로그 레벨 문자열 (예: 'INFO', 'DEBUG'). 알 수 없으면 WARNING

    Returns:
        패키지 로거
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )
    return logging.getLogger("cargodeps")
