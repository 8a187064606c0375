"""
Content Factory 内容工厂 - 异常定义

各业务模块抛出的领域异常，消息文本即面向用户的中文提示。
"""


class ContentFactoryError(Exception):
    """内容工厂异常基类"""


class ConfigError(ContentFactoryError):
    """配置缺失或无效（如 API 密钥未配置）"""


class ValidationError(ContentFactoryError):
    """参数校验失败"""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class AIServiceError(ContentFactoryError):
    """对话模型调用或响应解析失败"""


class SearchAPIError(ContentFactoryError):
    """极致了搜索类接口失败"""


class ImageGenerationError(ContentFactoryError):
    """配图或封面生成失败"""


class PublishError(ContentFactoryError):
    """公众号发布网关失败"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "ContentFactoryError",
    "ConfigError",
    "ValidationError",
    "AIServiceError",
    "SearchAPIError",
    "ImageGenerationError",
    "PublishError",
]
