"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供厂商的具体实现 (gemini_client)。
"""

from typing import Optional

from companion_core.config.settings import settings
from companion_core.domain.exceptions import ValidationError
from companion_core.providers.base import CompletionProvider
from companion_core.providers.gemini_client import GeminiClient
from companion_core.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None) -> CompletionProvider:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = name or getattr(settings, "default_provider", "gemini")
    try:
        cfg = get_provider_config(provider_name)
    except KeyError:
        raise ValidationError(code="UNKNOWN_PROVIDER", message=f"Unknown provider: {provider_name!r}")
    if cfg.name == "gemini":
        return GeminiClient(settings)
    raise ValidationError(code="UNKNOWN_PROVIDER", message=f"Unknown provider: {provider_name!r}")
