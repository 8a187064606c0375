"""
Content Factory 内容工厂 - 错误识别与分类

功能：
- 根据错误消息关键字识别错误类型
- 映射到应用错误码、用户提示、可重试标记和建议操作
- 从 HTTP 响应构建错误
- 最近错误日志（环形缓冲，最多 100 条）

使用方法：
    from content_factory.utils.error_handler import ErrorHandler

    try:
        ...
    except Exception as e:
        enhanced = ErrorHandler.capture(e, context="选题分析")
        console.print(enhanced.user_message)
"""

import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

import httpx

T = TypeVar("T")


class AppErrorCode(str, Enum):
    """应用层错误码"""
    # 对话模型
    OPENROUTER_TOKEN_INVALID = "OPENROUTER_TOKEN_INVALID"
    OPENROUTER_INSUFFICIENT_BALANCE = "OPENROUTER_INSUFFICIENT_BALANCE"
    OPENROUTER_API_ERROR = "OPENROUTER_API_ERROR"
    # 极致了
    JZL_INSUFFICIENT_BALANCE = "JZL_INSUFFICIENT_BALANCE"
    JZL_API_ERROR = "JZL_API_ERROR"
    JZL_NETWORK_ERROR = "JZL_NETWORK_ERROR"
    # 图片生成
    IMAGE_GENERATION_ERROR = "IMAGE_GENERATION_ERROR"
    IMAGE_API_KEY_INVALID = "IMAGE_API_KEY_INVALID"
    IMAGE_TIMEOUT = "IMAGE_TIMEOUT"
    # 网络
    NETWORK_ERROR = "NETWORK_ERROR"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
    # 兜底
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


USER_MESSAGES: dict[AppErrorCode, str] = {
    AppErrorCode.OPENROUTER_TOKEN_INVALID: "AI模型令牌无效或已过期，请检查配置",
    AppErrorCode.OPENROUTER_INSUFFICIENT_BALANCE: "AI模型账户余额不足，请充值",
    AppErrorCode.OPENROUTER_API_ERROR: "AI模型服务异常，请稍后重试",
    AppErrorCode.JZL_INSUFFICIENT_BALANCE: "极致了API余额不足，请充值",
    AppErrorCode.JZL_API_ERROR: "极致了API调用失败，请检查配置或稍后重试",
    AppErrorCode.JZL_NETWORK_ERROR: "极致了API网络连接失败，请检查网络",
    AppErrorCode.IMAGE_GENERATION_ERROR: "图片生成失败，请稍后重试",
    AppErrorCode.IMAGE_API_KEY_INVALID: "图片生成API密钥无效，请检查配置",
    AppErrorCode.IMAGE_TIMEOUT: "图片生成超时，请稍后重试",
    AppErrorCode.NETWORK_ERROR: "网络连接失败，请检查网络设置",
    AppErrorCode.REQUEST_TIMEOUT: "请求超时，请稍后重试",
    AppErrorCode.UNKNOWN_ERROR: "发生未知错误，请稍后重试",
}

SUGGESTED_ACTIONS: dict[AppErrorCode, list[str]] = {
    AppErrorCode.OPENROUTER_TOKEN_INVALID: [
        "检查 config.yaml 中 openrouter.api_key 是否正确",
        "重新生成并配置新的API密钥",
        "运行 content-factory test-api openrouter 验证配置",
    ],
    AppErrorCode.OPENROUTER_INSUFFICIENT_BALANCE: [
        "登录OpenRouter官网充值",
        "检查充值是否已到账",
        "考虑切换到其他AI模型提供商",
    ],
    AppErrorCode.OPENROUTER_API_ERROR: [
        "检查网络连接是否正常",
        "稍等片刻后重试",
        "如持续失败，请联系OpenRouter客服",
    ],
    AppErrorCode.JZL_INSUFFICIENT_BALANCE: [
        "登录极致了官网(https://dajiala.com)充值",
        "检查充值是否已到账",
        "如已充值，请等待5-10分钟后重试",
    ],
    AppErrorCode.JZL_API_ERROR: [
        "检查配置中的极致了API密钥是否正确",
        "检查网络连接是否正常",
        "稍后重试",
    ],
    AppErrorCode.JZL_NETWORK_ERROR: [
        "检查网络连接是否正常",
        "稍后重试",
        "检查是否需要关闭VPN或代理",
    ],
    AppErrorCode.IMAGE_GENERATION_ERROR: [
        "检查配置中的硅基流动密钥",
        "尝试更换图片比例重新生成",
        "稍后重试",
    ],
    AppErrorCode.IMAGE_API_KEY_INVALID: [
        "检查配置中的硅基流动密钥",
        "重新配置正确的API密钥",
        "运行 content-factory test-api siliconflow 验证配置",
    ],
    AppErrorCode.IMAGE_TIMEOUT: [
        "检查网络连接速度",
        "稍后重试",
        "尝试减少生成内容数量",
    ],
    AppErrorCode.NETWORK_ERROR: [
        "检查网络连接是否正常",
        "稍后重试",
        "切换网络后再试",
    ],
    AppErrorCode.REQUEST_TIMEOUT: [
        "检查网络连接速度",
        "稍后重试",
        "尝试减少生成内容数量",
    ],
    AppErrorCode.UNKNOWN_ERROR: [
        "稍后重试",
        "查看 data/logs 下的日志获取详细错误信息",
        "联系技术支持",
    ],
}

RETRYABLE_CODES = frozenset({
    AppErrorCode.OPENROUTER_API_ERROR,
    AppErrorCode.JZL_API_ERROR,
    AppErrorCode.JZL_NETWORK_ERROR,
    AppErrorCode.IMAGE_GENERATION_ERROR,
    AppErrorCode.IMAGE_TIMEOUT,
    AppErrorCode.NETWORK_ERROR,
    AppErrorCode.REQUEST_TIMEOUT,
})


def identify_error_type(message: str) -> str:
    """
    根据错误消息识别错误类型

    匹配顺序固定，先命中者优先。

    Args:
        message: 错误消息

    Returns:
        str: openrouter_token / jzl_balance / jzl_api / image_generation / network / timeout / unknown
    """
    lower = (message or "").lower()

    if ("openrouter" in lower or "401" in lower or "unauthorized" in lower
            or "invalid api key" in lower or ("token" in lower and "invalid" in lower)):
        return "openrouter_token"

    if "金额不足" in lower or "余额不足" in lower or "insufficient" in lower or "balance" in lower:
        return "jzl_balance"

    if "极致了" in lower or "dajiala" in lower or "jzl" in lower:
        return "jzl_api"

    if ("图片生成" in lower or "siliconflow" in lower or "硅基流动" in lower
            or "405" in lower or "image" in lower):
        return "image_generation"

    if "network" in lower or "fetch" in lower or "connection" in lower or "econnrefused" in lower:
        return "network"

    if "timeout" in lower or "timed out" in lower:
        return "timeout"

    return "unknown"


@dataclass
class EnhancedError:
    """增强后的错误信息"""
    code: AppErrorCode                                          # 错误码
    user_message: str                                           # 面向用户的提示
    technical_message: str                                      # 原始错误消息
    can_retry: bool                                             # 是否可重试
    suggested_actions: list[str] = field(default_factory=list)  # 建议操作
    context: str = ""                                           # 发生场景
    original: BaseException | None = None                       # 原始异常

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "userMessage": self.user_message,
            "technicalMessage": self.technical_message,
            "canRetry": self.can_retry,
            "suggestedActions": list(self.suggested_actions),
            "context": self.context,
        }


class EnhancedErrorException(Exception):
    """携带 EnhancedError 的异常（由 ErrorHandler.wrap 抛出）"""

    def __init__(self, error: EnhancedError):
        super().__init__(error.user_message)
        self.error = error


class ErrorHandler:
    """错误处理器：识别、分类、增强"""

    @staticmethod
    def map_to_error_code(error_type: str, message: str) -> AppErrorCode:
        """
        将错误类型细分为应用错误码

        Args:
            error_type: identify_error_type 的结果
            message: 原始错误消息

        Returns:
            AppErrorCode: 错误码
        """
        lower = message.lower()

        if error_type == "openrouter_token":
            if "401" in lower or "unauthorized" in lower:
                return AppErrorCode.OPENROUTER_TOKEN_INVALID
            if "balance" in lower or "insufficient" in lower:
                return AppErrorCode.OPENROUTER_INSUFFICIENT_BALANCE
            return AppErrorCode.OPENROUTER_API_ERROR

        if error_type == "jzl_balance":
            return AppErrorCode.JZL_INSUFFICIENT_BALANCE

        if error_type == "jzl_api":
            if "network" in lower or "fetch" in lower:
                return AppErrorCode.JZL_NETWORK_ERROR
            return AppErrorCode.JZL_API_ERROR

        if error_type == "image_generation":
            if "401" in lower or "unauthorized" in lower or "api key" in lower:
                return AppErrorCode.IMAGE_API_KEY_INVALID
            if "timeout" in lower or "timed out" in lower:
                return AppErrorCode.IMAGE_TIMEOUT
            return AppErrorCode.IMAGE_GENERATION_ERROR

        if error_type == "network":
            return AppErrorCode.NETWORK_ERROR

        if error_type == "timeout":
            return AppErrorCode.REQUEST_TIMEOUT

        return AppErrorCode.UNKNOWN_ERROR

    @classmethod
    def capture(cls, error: BaseException | str | object, context: str = "") -> EnhancedError:
        """
        捕获并增强错误

        Args:
            error: 异常、错误字符串或已增强的错误
            context: 发生场景描述

        Returns:
            EnhancedError: 增强错误
        """
        if isinstance(error, EnhancedError):
            return error
        if isinstance(error, EnhancedErrorException):
            return error.error

        if isinstance(error, BaseException):
            message = str(error) or error.__class__.__name__
            original = error
        elif isinstance(error, str):
            message = error
            original = None
        else:
            message = "未知错误"
            original = None

        code = cls.map_to_error_code(identify_error_type(message), message)
        enhanced = EnhancedError(
            code=code,
            user_message=USER_MESSAGES[code],
            technical_message=message,
            can_retry=code in RETRYABLE_CODES,
            suggested_actions=list(SUGGESTED_ACTIONS[code]),
            context=context,
            original=original,
        )
        error_logger.log(enhanced, context)
        return enhanced

    @classmethod
    def from_response(cls, response: httpx.Response, context: str = "") -> EnhancedError:
        """
        从 HTTP 响应构建错误

        优先读取 error.message / message / msg 字段，否则使用状态行。

        Args:
            response: HTTP 响应
            context: 发生场景描述

        Returns:
            EnhancedError: 增强错误
        """
        message = f"HTTP {response.status_code}: {response.reason_phrase}"
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            error_field = data.get("error")
            if isinstance(error_field, dict) and error_field.get("message"):
                message = error_field["message"]
            elif data.get("message"):
                message = data["message"]
            elif data.get("msg"):
                message = data["msg"]

        return cls.capture(message, context)

    @classmethod
    async def wrap(cls, func: Callable[[], Awaitable[T]], context: str = "") -> T:
        """
        包装异步调用，失败时抛出携带增强错误的异常

        Args:
            func: 无参异步函数
            context: 发生场景描述

        Returns:
            函数返回值
        """
        try:
            return await func()
        except Exception as e:
            raise EnhancedErrorException(cls.capture(e, context)) from e


@dataclass
class ErrorLogEntry:
    """错误日志条目"""
    timestamp: float
    error: EnhancedError
    context: str = ""


class ErrorLogger:
    """最近错误日志（最多保留 max_entries 条）"""

    def __init__(self, max_entries: int = 100):
        self._logs: deque[ErrorLogEntry] = deque(maxlen=max_entries)

    def log(self, error: EnhancedError, context: str = "") -> None:
        self._logs.append(ErrorLogEntry(timestamp=time.time(), error=error, context=context))

    def get_all(self) -> list[ErrorLogEntry]:
        return list(self._logs)

    def clear(self) -> None:
        self._logs.clear()

    def get_recent(self, count: int = 10) -> list[ErrorLogEntry]:
        return list(self._logs)[-count:]


# 全局错误日志
error_logger = ErrorLogger()


__all__ = [
    "AppErrorCode",
    "EnhancedError",
    "EnhancedErrorException",
    "ErrorHandler",
    "ErrorLogger",
    "error_logger",
    "identify_error_type",
]
