"""
Content Factory 内容工厂 - 数据采集模块

子模块:
- wechat_search: 极致了公众号关键词搜索、作者文章
- wechat_detail: 文章详情
- wechat_account: 公众号信息与对标适合度评分
- xiaohongshu_search: 小红书笔记搜索
- keyword_extractor: 标题关键词与主题分析
- topic_market: 选题市场热度分析
- article_store: 对标研究数据存储
"""
