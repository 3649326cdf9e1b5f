"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：
- 逻辑名（logical_name）：在代码里使用的统一名称，例如 "companion-chat"。
- provider_model：厂商实际提供的模型 ID，例如 "gemini-1.5-pro"。
"""

from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


GEMINI_CONFIG = ProviderConfig(
    name="gemini",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    models={
        "companion-chat": ModelConfig(
            logical_name="companion-chat",
            provider_model="gemini-1.5-pro",
        )
    },
)

PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "gemini": GEMINI_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
