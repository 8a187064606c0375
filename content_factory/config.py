"""
Content Factory 内容工厂 - 统一配置管理模块

功能：
- 从 config.yaml 文件加载配置（推荐）
- 兼容 .env 文件与进程环境变量
- 提供类型安全的配置访问
- 支持默认值和配置状态检查

配置文件优先级：
1. config.yaml（推荐，可读性好）
2. .env / 环境变量（OPENAI_API_KEY、SILICONFLOW_API_KEY 等）
3. 默认值
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml


# 项目根目录
ROOT_DIR = Path(__file__).parent.parent

# 配置文件路径
CONFIG_YAML = ROOT_DIR / "config.yaml"
CONFIG_EXAMPLE = ROOT_DIR / "config.example.yaml"
ENV_FILE = ROOT_DIR / ".env"

# 外部服务默认地址
DEFAULT_OPENROUTER_BASE = "https://openrouter.ai/api/v1"
DEFAULT_SILICONFLOW_BASE = "https://api.siliconflow.cn/v1"
DEFAULT_WECHAT_PUBLISH_BASE = "https://wx.limyai.com/api/openapi"
DAJIALA_BASE = "https://www.dajiala.com/fbmain/monitor/v3"


def load_yaml_config() -> dict:
    """
    加载 YAML 配置文件

    Returns:
        dict: 配置字典，如果文件不存在则返回空字典
    """
    if CONFIG_YAML.exists():
        with open(CONFIG_YAML, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    return {}


def _read_env_file() -> dict:
    """读取 .env 文件为扁平字典"""
    env_vars = {}
    if not ENV_FILE.exists():
        return env_vars

    with open(ENV_FILE, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                env_vars[key.strip()] = value.strip().strip('"').strip("'")
    return env_vars


def load_env_config(environ: dict | None = None) -> dict:
    """
    从 .env 文件和进程环境变量加载配置

    .env 中的值优先，缺失时回落到进程环境变量。

    Args:
        environ: 环境变量字典（默认 os.environ，测试时可注入）

    Returns:
        dict: 转换为嵌套结构的配置字典
    """
    environ = os.environ if environ is None else environ
    file_vars = _read_env_file()

    def env(key: str, default: str = "") -> str:
        return file_vars.get(key) or environ.get(key) or default

    # 转换为嵌套结构（与 YAML 格式一致）
    return {
        'openrouter': {
            'api_key': env('OPENAI_API_KEY'),
            'api_base': env('OPENAI_API_BASE', DEFAULT_OPENROUTER_BASE),
            'model': env('OPENAI_MODEL', 'openai/gpt-4o'),
        },
        'siliconflow': {
            'api_key': env('SILICONFLOW_API_KEY'),
            'api_base': env('SILICONFLOW_API_BASE', DEFAULT_SILICONFLOW_BASE),
            'image_model': env('SILICONFLOW_MODEL', 'Kwai-Kolors/Kolors'),
            'chat_model': env('SILICONFLOW_CHAT_MODEL', 'deepseek-ai/DeepSeek-V3'),
        },
        'wechat_search': {
            'api_key': env('WECHAT_SEARCH_API_KEY') or env('JZL_API_KEY'),
        },
        'xiaohongshu': {
            'api_key': env('XIAOHONGSHU_SEARCH_API_KEY') or env('JZL_API_KEY'),
        },
        'wechat_publish': {
            'api_key': env('WECHAT_PUBLISH_API_KEY'),
            'api_base': env('WECHAT_PUBLISH_API_BASE', DEFAULT_WECHAT_PUBLISH_BASE),
        },
        'storage': {
            'data_dir': env('DATA_DIR', 'data'),
            'database_url': env('DATABASE_URL'),
            'output_dir': env('OUTPUT_DIR', 'output'),
        },
        'system': {
            'log_level': env('LOG_LEVEL', 'INFO'),
            'log_to_file': env('LOG_TO_FILE').lower() in ('1', 'true', 'yes'),
        },
    }


@dataclass
class OpenRouterConfig:
    """对话大模型配置（OpenAI 兼容协议）"""
    api_key: str = ""                          # API 密钥
    api_base: str = DEFAULT_OPENROUTER_BASE    # API 基础地址
    model: str = "openai/gpt-4o"               # 模型名称
    referer: str = "http://localhost:3000"     # OpenRouter 要求的来源标识

    @property
    def is_openrouter(self) -> bool:
        """是否为 OpenRouter 服务（需要额外请求头）"""
        return "openrouter.ai" in self.api_base


@dataclass
class SiliconFlowConfig:
    """硅基流动配置（配图生成）"""
    api_key: str = ""                                # API 密钥
    api_base: str = DEFAULT_SILICONFLOW_BASE         # API 基础地址
    image_model: str = "Kwai-Kolors/Kolors"          # 图片模型
    chat_model: str = "deepseek-ai/DeepSeek-V3"      # 连接测试用对话模型


@dataclass
class WechatSearchConfig:
    """极致了公众号数据接口配置"""
    api_key: str = ""                                          # 极致了 Key
    search_url: str = f"{DAJIALA_BASE}/kw_search"              # 关键词搜索
    detail_url: str = f"{DAJIALA_BASE}/article_html"           # 文章详情
    account_url: str = f"{DAJIALA_BASE}/Keyverifycode"         # 公众号信息


@dataclass
class XiaohongshuConfig:
    """极致了小红书搜索接口配置"""
    api_key: str = ""                               # 极致了 Key
    search_url: str = f"{DAJIALA_BASE}/xhs"         # 笔记搜索


@dataclass
class WechatPublishConfig:
    """公众号发布网关配置"""
    api_key: str = ""                                  # X-API-Key
    api_base: str = DEFAULT_WECHAT_PUBLISH_BASE        # 网关地址


@dataclass
class StorageConfig:
    """数据存储配置"""
    data_dir: str = "data"          # 数据目录（SQLite、JSON 存储）
    database_url: str = ""          # 数据库地址（留空使用 data/content_factory.db）
    output_dir: str = "output"      # 文章导出目录

    @property
    def data_path(self) -> Path:
        """获取数据目录完整路径"""
        return ROOT_DIR / self.data_dir

    @property
    def output_path(self) -> Path:
        """获取输出目录完整路径"""
        return ROOT_DIR / self.output_dir

    @property
    def db_url(self) -> str:
        """SQLAlchemy 数据库地址"""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_path / 'content_factory.db'}"

    @property
    def local_store_file(self) -> Path:
        """本地 JSON 键值存储文件（缓存、历史、选题同步）"""
        return self.data_path / "local_store.json"


@dataclass
class SystemConfig:
    """系统配置"""
    log_level: str = "INFO"     # 日志级别
    log_to_file: bool = False   # 同时写入 data/logs/<区域>.log


@dataclass
class CreationConfig:
    """内容创作默认参数"""
    length: str = "1000-1500"       # 文章长度档位
    style: str = "专业严谨"          # 写作风格
    image_count: int = 2            # 期望配图数量
    image_style: str = "auto"       # 配图风格
    image_ratio: str = "4:3"        # 配图比例


@dataclass
class Settings:
    """主配置类 - 聚合所有子配置"""
    openrouter: OpenRouterConfig = field(default_factory=OpenRouterConfig)            # 对话模型
    siliconflow: SiliconFlowConfig = field(default_factory=SiliconFlowConfig)         # 配图模型
    wechat_search: WechatSearchConfig = field(default_factory=WechatSearchConfig)     # 公众号搜索
    xiaohongshu: XiaohongshuConfig = field(default_factory=XiaohongshuConfig)         # 小红书搜索
    wechat_publish: WechatPublishConfig = field(default_factory=WechatPublishConfig)  # 公众号发布
    storage: StorageConfig = field(default_factory=StorageConfig)                     # 存储配置
    system: SystemConfig = field(default_factory=SystemConfig)                        # 系统配置
    creation: CreationConfig = field(default_factory=CreationConfig)                  # 创作默认值

    # 配置来源标识
    config_source: str = "default"  # config.yaml, .env, default

    @classmethod
    def from_dict(cls, data: dict, source: str = "default") -> "Settings":
        """
        从字典创建配置实例

        Args:
            data: 配置字典
            source: 配置来源标识

        Returns:
            Settings: 配置实例
        """
        openrouter_data = data.get('openrouter') or {}
        siliconflow_data = data.get('siliconflow') or {}
        search_data = data.get('wechat_search') or {}
        xhs_data = data.get('xiaohongshu') or {}
        publish_data = data.get('wechat_publish') or {}
        storage_data = data.get('storage') or {}
        system_data = data.get('system') or {}
        creation_data = data.get('creation') or {}

        return cls(
            openrouter=OpenRouterConfig(
                api_key=openrouter_data.get('api_key', ''),
                api_base=(openrouter_data.get('api_base') or DEFAULT_OPENROUTER_BASE).rstrip('/'),
                model=openrouter_data.get('model') or 'openai/gpt-4o',
                referer=openrouter_data.get('referer', 'http://localhost:3000'),
            ),
            siliconflow=SiliconFlowConfig(
                api_key=siliconflow_data.get('api_key', ''),
                api_base=(siliconflow_data.get('api_base') or DEFAULT_SILICONFLOW_BASE).rstrip('/'),
                image_model=siliconflow_data.get('image_model') or 'Kwai-Kolors/Kolors',
                chat_model=siliconflow_data.get('chat_model') or 'deepseek-ai/DeepSeek-V3',
            ),
            wechat_search=WechatSearchConfig(
                api_key=search_data.get('api_key', ''),
                search_url=search_data.get('search_url') or f"{DAJIALA_BASE}/kw_search",
                detail_url=search_data.get('detail_url') or f"{DAJIALA_BASE}/article_html",
                account_url=search_data.get('account_url') or f"{DAJIALA_BASE}/Keyverifycode",
            ),
            xiaohongshu=XiaohongshuConfig(
                api_key=xhs_data.get('api_key', ''),
                search_url=xhs_data.get('search_url') or f"{DAJIALA_BASE}/xhs",
            ),
            wechat_publish=WechatPublishConfig(
                api_key=publish_data.get('api_key', ''),
                api_base=(publish_data.get('api_base') or DEFAULT_WECHAT_PUBLISH_BASE).rstrip('/'),
            ),
            storage=StorageConfig(
                data_dir=storage_data.get('data_dir') or 'data',
                database_url=storage_data.get('database_url') or '',
                output_dir=storage_data.get('output_dir') or 'output',
            ),
            system=SystemConfig(
                log_level=system_data.get('log_level', 'INFO'),
                log_to_file=bool(system_data.get('log_to_file', False)),
            ),
            creation=CreationConfig(
                length=str(creation_data.get('length', '1000-1500')),
                style=creation_data.get('style', '专业严谨'),
                image_count=int(creation_data.get('image_count', 2)),
                image_style=creation_data.get('image_style', 'auto'),
                image_ratio=creation_data.get('image_ratio', '4:3'),
            ),
            config_source=source,
        )


@lru_cache
def get_settings() -> Settings:
    """
    获取配置单例

    优先级：
    1. config.yaml（推荐）
    2. .env / 环境变量
    3. 默认值

    Returns:
        Settings: 配置实例

    Usage:
        from content_factory.config import get_settings, settings

        config = get_settings()
        print(config.openrouter.model)
    """
    # 优先使用 config.yaml
    if CONFIG_YAML.exists():
        data = load_yaml_config()
        return Settings.from_dict(data, source="config.yaml")

    # .env 或环境变量
    data = load_env_config()
    if ENV_FILE.exists():
        return Settings.from_dict(data, source=".env")
    if any(section.get('api_key') for section in data.values() if isinstance(section, dict)):
        return Settings.from_dict(data, source="环境变量")

    # 使用默认值
    return Settings(config_source="默认配置")


def _is_valid_key(value: str, min_length: int = 10) -> bool:
    """
    检查配置值是否为有效的 Key（非占位符）

    Args:
        value: 配置值
        min_length: 最小有效长度

    Returns:
        bool: 是否为有效配置
    """
    if not value or not isinstance(value, str):
        return False

    value_lower = value.lower().strip()

    # 常见占位符模式
    placeholder_patterns = [
        'your_',
        'xxx',
        'placeholder',
        'example',
        'demo_',
        'fill_',
        'replace_',
        '<',
        '[',
        '{',
        'change_me',
        'insert_',
        'api_key_here',
    ]

    for pattern in placeholder_patterns:
        if pattern in value_lower:
            return False

    # 长度检查（有效的 API Key 通常较长）
    if len(value.strip()) < min_length:
        return False

    return True


def get_config_status(s: Settings | None = None) -> dict:
    """
    获取配置状态信息（用于 CLI 显示）

    Args:
        s: 配置实例（默认全局配置）

    Returns:
        dict: 配置状态字典
    """
    s = s or get_settings()

    return {
        'config_source': s.config_source,
        'config_file': str(CONFIG_YAML) if CONFIG_YAML.exists() else (str(ENV_FILE) if ENV_FILE.exists() else '无'),
        'openrouter': {
            'api_base': s.openrouter.api_base,
            'model': s.openrouter.model,
            'api_key_configured': _is_valid_key(s.openrouter.api_key, min_length=20),
        },
        'siliconflow': {
            'image_model': s.siliconflow.image_model,
            'api_key_configured': _is_valid_key(s.siliconflow.api_key, min_length=20),
        },
        'wechat_search': {
            'api_key_configured': _is_valid_key(s.wechat_search.api_key, min_length=8),
        },
        'xiaohongshu': {
            'api_key_configured': _is_valid_key(s.xiaohongshu.api_key, min_length=8),
        },
        'wechat_publish': {
            'api_base': s.wechat_publish.api_base,
            'api_key_configured': _is_valid_key(s.wechat_publish.api_key, min_length=8),
        },
        'storage': {
            'db_url': s.storage.db_url,
            'local_store': str(s.storage.local_store_file),
        },
    }


# 便捷访问 - 全局配置实例
settings = get_settings()
