"""
Content Factory 内容工厂 - 内容生产模块

子模块:
- writer: 写作 Prompt 与文本工具
- images: 智能配图
- cover: 公众号封面
- generator: 单篇 / 批量文章生成
- content_cache: 本地缓存与生成历史
- topic_sync: 分析结果同步为创作选题
- draft_store: 草稿存储
- publisher: 公众号发布
"""
