"""
Content Factory 内容工厂 - 选题分析模块

子模块:
- pipeline: 深度文章分析 + 智能选题洞察
"""
