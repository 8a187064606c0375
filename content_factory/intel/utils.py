"""
Content Factory 内容工厂 - 公共工具

功能：
- 异步 HTTP 客户端（测试时可注入 MockTransport）
- 传输层错误重试装饰器（tenacity 指数退避）
- 分批并发执行（固定并发数 + 批间延迟，避免触发极致了限流）
- AI 响应 JSON 清洗、唯一 ID、文章输出目录

使用方法：
    from content_factory.intel.utils import retry_async, create_async_http_client

    @retry_async(max_attempts=3, min_wait=1, max_wait=10)
    async def _post(self, payload):
        async with create_async_http_client(transport=self.transport) as client:
            return await client.post(self.config.search_url, json=payload)
"""

import asyncio
import datetime
import logging
import re
import secrets
import time
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from content_factory.config import get_settings

# 重试日志与 intel 区域共用
logger = logging.getLogger("content_factory.intel")

T = TypeVar("T")
R = TypeVar("R")


# ═══════════════════════════════════════════════════════════════════════════════
# 重试与 HTTP 客户端
# ═══════════════════════════════════════════════════════════════════════════════

# 只重试传输层错误；HTTP 状态码错误由调用方转换为业务异常
TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    ConnectionError,
    TimeoutError,
)


def retry_async(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = TRANSPORT_ERRORS,
):
    """
    异步调用重试装饰器（指数退避，最终失败时抛出原异常）

    Args:
        max_attempts: 最大尝试次数
        min_wait: 最短等待（秒）
        max_wait: 最长等待（秒）
        exceptions: 触发重试的异常类型
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def create_async_http_client(
    timeout: float = 30.0,
    retries: int = 3,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    创建异步 HTTP 客户端

    Args:
        timeout: 请求超时（秒）
        retries: 连接建立失败时的重试次数（仅默认传输层生效）
        transport: 自定义传输层，传入时忽略 retries
    """
    if transport is None:
        transport = httpx.AsyncHTTPTransport(retries=retries)
    return httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)


# ═══════════════════════════════════════════════════════════════════════════════
# 并发批处理
# ═══════════════════════════════════════════════════════════════════════════════


async def run_in_batches(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: int = 3,
    delay: float = 1.0,
) -> list[R]:
    """
    按固定并发数分批执行异步任务，批间等待固定时间（避免触发限流）

    单个任务失败只记录日志，不影响同批其他任务。

    Args:
        items: 待处理元素
        worker: 异步处理函数
        concurrency: 每批并发数
        delay: 批间延迟（秒）

    Returns:
        list: 成功结果（保持输入顺序）
    """
    items = list(items)
    results: list[R] = []

    for start in range(0, len(items), concurrency):
        batch = items[start:start + concurrency]
        outcomes = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)

        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"批处理任务失败 [{item}]: {outcome}")
            else:
                results.append(outcome)

        # 最后一批不需要等待
        if start + concurrency < len(items) and delay > 0:
            await asyncio.sleep(delay)

    return results


# ═══════════════════════════════════════════════════════════════════════════════
# 杂项工具
# ═══════════════════════════════════════════════════════════════════════════════

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def strip_json_fence(text: str) -> str:
    """
    清理 AI 响应中的 Markdown 代码块标记

    Args:
        text: 原始响应文本

    Returns:
        str: 可直接 json.loads 的文本
    """
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_START.sub("", cleaned)
        cleaned = _FENCE_END.sub("", cleaned)
    return cleaned.strip()


def generate_id() -> str:
    """
    生成短唯一 ID（时间戳 base36 + 随机后缀）

    Returns:
        str: 唯一 ID
    """
    millis = int(time.time() * 1000)
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    stamp = ""
    while millis:
        millis, rem = divmod(millis, 36)
        stamp = digits[rem] + stamp
    return stamp + secrets.token_hex(4)


def now_ms() -> int:
    """当前毫秒时间戳"""
    return int(time.time() * 1000)


def get_today_str() -> str:
    """
    获取今日日期字符串

    Returns:
        str: 格式化日期（如 2026-01-22）
    """
    return datetime.date.today().strftime("%Y-%m-%d")


def create_article_dir(article_title: str, date_str: str | None = None, base_dir: Path | None = None) -> Path:
    """
    创建文章专属目录（按日期/文章名组织）

    目录结构：output/2026-01-22/文章标题/

    Args:
        article_title: 文章标题（会自动处理特殊字符）
        date_str: 日期字符串（默认今天）
        base_dir: 输出根目录（默认配置中的 output 目录）

    Returns:
        Path: 文章目录路径
    """
    if date_str is None:
        date_str = get_today_str()

    safe_title = re.sub(r'[<>:"/\\|?*\n\r\t]', "", article_title)  # 移除文件名非法字符
    safe_title = safe_title.strip()[:50]
    if not safe_title:
        safe_title = "untitled"

    article_dir = (base_dir or get_settings().storage.output_path) / date_str / safe_title
    article_dir.mkdir(parents=True, exist_ok=True)

    return article_dir
