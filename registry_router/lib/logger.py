# -*- coding: utf-8 -*-
"""
@FileName    : logger.py
@Author      : jiaxin
@Date        : 2026/1/10
@Time        : 17:29
@Description :
"""
import logging
from .settings import Settings

LOGGER_NAME = "registry-router"

# httpx/httpcore 在 INFO 级别会为每个上游请求打一行日志，与 [上游] 日志重复
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(settings: Settings):
    """根据配置初始化全局日志"""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True  # 覆盖可能已存在的 root logger 配置
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    # uvicorn 自带 handler，统一交给 root 输出，保证格式一致
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    logger = logging.getLogger(LOGGER_NAME)
    logger.info(f"Logging initialized at level: {logging.getLevelName(level)}")
    return logger


def get_logger():
    """获取统一命名的日志实例"""
    return logging.getLogger(LOGGER_NAME)
