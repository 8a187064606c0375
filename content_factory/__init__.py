"""
Content Factory 内容工厂

公众号选题分析、文章创作与发布。

子包:
- intel: 公众号 / 小红书数据采集、对标研究
- analysis: 两阶段 AI 选题分析
- factory: 文章写作、配图、封面、草稿与发布
- utils: 日志、异常、AI 客户端、配置验证
"""

__version__ = "1.0.0"
