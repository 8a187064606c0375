"""
Content Factory 内容工厂 - 日志模块

终端日志统一走 stderr（RichHandler），CLI 的表格输出走 stdout，两者互不干扰。
开启 system.log_to_file 后，各区域日志同时写入 data/logs/<区域>.log。

使用方法：
    from content_factory.utils.logger import get_intel_logger

    logger = get_intel_logger()
    logger.info(f"搜索关键词: {keyword}")
"""

import logging
from functools import lru_cache
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from content_factory.config import get_settings

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def logs_dir() -> Path:
    """日志目录（位于配置的数据目录下）"""
    return get_settings().storage.data_path / "logs"


def add_file_handler(logger: logging.Logger, area: str) -> Path:
    """
    为日志器追加文件输出（记录 DEBUG 及以上）

    Returns:
        Path: 日志文件路径
    """
    directory = logs_dir()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{area}.log"

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return path


@lru_cache
def get_logger(name: str, level: str | None = None, log_to_file: bool | None = None) -> logging.Logger:
    """
    获取日志器实例

    Args:
        name: 日志器名称（content_factory.<区域>）
        level: 日志级别，默认取 system.log_level
        log_to_file: 是否写文件，默认取 system.log_to_file

    Returns:
        logging.Logger: 日志器实例
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    system = get_settings().system
    logger.setLevel(getattr(logging, (level or system.log_level).upper(), logging.INFO))

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    if system.log_to_file if log_to_file is None else log_to_file:
        add_file_handler(logger, name.rsplit(".", 1)[-1])

    return logger


# ═══════════════════════════════════════════════════════════════════════════════
# 各区域日志器
# ═══════════════════════════════════════════════════════════════════════════════


def get_intel_logger() -> logging.Logger:
    """搜索与对标研究"""
    return get_logger("content_factory.intel")


def get_analysis_logger() -> logging.Logger:
    """两阶段 AI 分析"""
    return get_logger("content_factory.analysis")


def get_factory_logger() -> logging.Logger:
    """写作、配图、缓存与草稿"""
    return get_logger("content_factory.factory")


def get_publish_logger() -> logging.Logger:
    return get_logger("content_factory.publish")
