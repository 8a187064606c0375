"""
Content Factory 内容工厂 - 配置验证器

功能：
- 检查配置来源（config.yaml / .env / 环境变量）
- 检查各服务 API Key 是否为占位符
- 检查存储与创作默认参数
- 生成配置状态报告

使用方法：
    from content_factory.utils.config_validator import ConfigValidator

    validator = ConfigValidator()
    result = validator.validate()
    validator.print_report(result)
"""

from dataclasses import dataclass, field

from rich.console import Console
from rich.panel import Panel

from content_factory.config import Settings, _is_valid_key, get_settings
from content_factory.factory.images import IMAGE_RATIOS, IMAGE_STYLES
from content_factory.factory.writer import WORD_COUNT_RANGES

console = Console()


@dataclass
class ValidationResult:
    """验证结果"""

    passed: bool = True  # 是否通过验证
    errors: list[str] = field(default_factory=list)  # 错误列表
    warnings: list[str] = field(default_factory=list)  # 警告列表
    info: list[str] = field(default_factory=list)  # 信息列表


class ConfigValidator:
    """
    配置验证器

    对话模型 Key 是必填项（分析和写作都依赖它），其余服务缺失只给出警告。
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def validate(self) -> ValidationResult:
        """
        执行完整验证

        Returns:
            ValidationResult: 验证结果
        """
        result = ValidationResult()
        result.info.append(f"配置来源: {self.settings.config_source}")

        self._check_openrouter(result)
        self._check_siliconflow(result)
        self._check_dajiala(result)
        self._check_publish(result)
        self._check_storage(result)
        self._check_creation(result)

        return result

    def _check_openrouter(self, result: ValidationResult):
        """检查对话模型配置"""
        config = self.settings.openrouter

        if not config.api_key:
            result.passed = False
            result.errors.append("openrouter.api_key 未配置（必填，分析与写作需要）")
        elif not _is_valid_key(config.api_key, min_length=20):
            result.passed = False
            result.errors.append("openrouter.api_key 使用了占位符或格式不正确，请填写真实 API Key")
        else:
            result.info.append(f"对话模型 API Key: 已配置 ({config.api_key[:8]}...)")

        result.info.append(f"对话模型: {config.model} @ {config.api_base}")

    def _check_siliconflow(self, result: ValidationResult):
        config = self.settings.siliconflow
        if _is_valid_key(config.api_key, min_length=20):
            result.info.append(f"硅基流动 API Key: 已配置，配图模型 {config.image_model}")
        else:
            result.warnings.append("siliconflow.api_key 未配置（文章配图将使用占位图）")

    def _check_dajiala(self, result: ValidationResult):
        """极致了：公众号搜索 / 小红书搜索"""
        if _is_valid_key(self.settings.wechat_search.api_key, min_length=8):
            result.info.append("公众号搜索 API Key: 已配置")
        else:
            result.warnings.append("wechat_search.api_key 未配置（关键词分析与选题市场分析需要）")

        if _is_valid_key(self.settings.xiaohongshu.api_key, min_length=8):
            result.info.append("小红书搜索 API Key: 已配置")
        else:
            result.warnings.append("xiaohongshu.api_key 未配置（小红书搜索需要）")

    def _check_publish(self, result: ValidationResult):
        config = self.settings.wechat_publish
        if _is_valid_key(config.api_key, min_length=8):
            result.info.append(f"公众号发布: 已配置 ({config.api_base})")
        else:
            result.warnings.append("wechat_publish.api_key 未配置（发布到公众号需要）")

    def _check_storage(self, result: ValidationResult):
        """检查存储配置"""
        storage = self.settings.storage
        result.info.append(f"数据库: {storage.db_url}")
        result.info.append(f"本地存储: {storage.local_store_file}")
        result.info.append(f"输出目录: {storage.output_dir}")

    def _check_creation(self, result: ValidationResult):
        """检查创作默认参数"""
        creation = self.settings.creation

        if creation.length not in WORD_COUNT_RANGES:
            result.warnings.append(f"creation.length 取值未知（{creation.length}），将按默认字数范围写作")
        if creation.image_style not in {s.value for s in IMAGE_STYLES}:
            result.warnings.append(f"creation.image_style 取值未知（{creation.image_style}）")
        if creation.image_ratio not in {r.value for r in IMAGE_RATIOS}:
            result.warnings.append(f"creation.image_ratio 取值未知（{creation.image_ratio}）")
        if not 0 <= creation.image_count <= 10:
            result.warnings.append(f"creation.image_count 超出范围（{creation.image_count}），建议 0-10")

        result.info.append(
            f"创作默认值: {creation.length} 字 / {creation.style} / 配图 {creation.image_count} 张"
        )

    def print_report(self, result: ValidationResult):
        """
        打印验证报告

        Args:
            result: 验证结果
        """
        status = "[green]✅ 通过[/green]" if result.passed else "[red]❌ 失败[/red]"
        console.print(Panel.fit(f"配置验证: {status}", style="bold cyan"))

        if result.errors:
            console.print("\n[bold red]❌ 错误 (必须修复)[/bold red]")
            for error in result.errors:
                console.print(f"  • {error}")

        if result.warnings:
            console.print("\n[bold yellow]⚠️ 警告 (建议修复)[/bold yellow]")
            for warning in result.warnings:
                console.print(f"  • {warning}")

        if result.info:
            console.print("\n[bold green]ℹ️ 配置信息[/bold green]")
            for info in result.info:
                console.print(f"  • {info}")

        console.print(
            f"\n[dim]错误: {len(result.errors)} | 警告: {len(result.warnings)} | 信息: {len(result.info)}[/dim]"
        )


def validate_config() -> ValidationResult:
    """便捷函数：验证当前配置"""
    return ConfigValidator().validate()


__all__ = ["ConfigValidator", "ValidationResult", "validate_config"]
