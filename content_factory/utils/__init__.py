"""
Content Factory 内容工厂 - 公共组件

子模块:
- logger: 统一日志
- errors / error_handler: 异常体系与错误分类
- ai_client: 对话与图片生成客户端
- api_tester: API 连接测试
- config_validator: 配置验证
"""
