"""领域层模型与协议。

包含：
- models: Message / GenerationConfig / CompletionResult 模型。
- conversation: 只追加的会话模型及 ConversationStore 抽象与内存实现。
- exceptions: 业务异常类型定义。
"""
