"""Gemini Provider 适配器。

使用 Generative Language REST 接口的 generateContent 端点：
- URL: {base_url}/models/{model}:generateContent
- 认证: x-goog-api-key: <api_key>

本实现只依赖公共字段：contents / generationConfig / candidates / usageMetadata。
"""

from typing import Any, Dict, List, Optional

import httpx

from companion_core.config.settings import settings
from companion_core.domain.exceptions import (
    ApiError,
    MalformedResponseError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from companion_core.domain.models import CompletionResult, CompletionUsage, GenerationConfig
from companion_core.providers.registry import GEMINI_CONFIG, ModelConfig


class GeminiClient:
    """Gemini Provider 客户端实现。"""

    name = "gemini"

    def __init__(self, cfg=settings, model: Optional[str] = None):
        # Settings 里包含 base_url、api_key、超时等配置
        self._settings = cfg
        self._model = model or getattr(cfg, "default_model", None) or "companion-chat"

    async def complete(self, prompt: str, config: GenerationConfig) -> CompletionResult:
        """执行一次非流式补全调用。

        步骤：
        1. 读取模型配置（logical model -> provider model）。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并把网络错误/限流/服务端错误包装为 BusinessError。
        4. 解析 candidates，拿不到文本时抛出 MalformedResponseError。
        """

        api_key = getattr(self._settings, "gemini_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="GEMINI_API_KEY not set")

        model_cfg = self._model_config()
        payload = self._build_payload(prompt, config)
        base = getattr(self._settings, "gemini_base_url", None) or GEMINI_CONFIG.base_url

        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.post(
                    f"{base}/models/{model_cfg.provider_model}:generateContent",
                    json=payload,
                    headers={
                        "x-goog-api-key": api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e)) from e

        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Gemini rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message="Response is not JSON") from e
        return self._parse_response(data)

    # ---- 辅助方法 ----

    def _model_config(self) -> ModelConfig:
        try:
            return GEMINI_CONFIG.models[self._model]
        except KeyError:
            raise ValidationError(code="UNKNOWN_MODEL", message=f"Unknown model: {self._model!r}")

    @staticmethod
    def _build_payload(prompt: str, config: GenerationConfig) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": config.temperature,
                "topK": config.top_k,
                "topP": config.top_p,
                "maxOutputTokens": config.max_output_tokens,
            },
        }

    def _parse_response(self, data: Any) -> CompletionResult:
        """将 Gemini 的原始响应 JSON 解析为统一的 CompletionResult。"""

        if not isinstance(data, dict):
            raise MalformedResponseError(code="MALFORMED_RESPONSE", message="Response is not an object")

        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise MalformedResponseError(
                code="PROMPT_BLOCKED",
                message=f"Prompt blocked: {block_reason}",
                block_reason=block_reason,
            )

        candidates = data.get("candidates") or []
        if not candidates:
            raise MalformedResponseError(code="NO_CANDIDATES", message="Response has no candidates")

        first = candidates[0] or {}
        parts: List[Dict[str, Any]] = (first.get("content") or {}).get("parts") or []
        text = "".join(p.get("text") or "" for p in parts if isinstance(p, dict))
        finish_reason = first.get("finishReason")
        if not text.strip():
            raise MalformedResponseError(
                code="EMPTY_RESPONSE",
                message="Response candidate has no text",
                finish_reason=finish_reason,
            )

        usage = None
        usage_raw = data.get("usageMetadata") or {}
        if usage_raw:
            usage = CompletionUsage(
                prompt_tokens=usage_raw.get("promptTokenCount", 0),
                completion_tokens=usage_raw.get("candidatesTokenCount", 0),
                total_tokens=usage_raw.get("totalTokenCount", 0),
            )

        return CompletionResult(
            provider=self.name,
            model=self._model,
            text=text,
            usage=usage,
            finish_reason=finish_reason,
            raw=data,
        )
