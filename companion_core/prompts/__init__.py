"""Persona 提示词加载与 prompt 拼接。

按语言(locale) 从 prompts/<locale> 目录读取 persona 前言，
再由 build_prompt 把前言、历史窗口和本轮输入拼成一段纯文本 prompt。
"""

from pathlib import Path
from typing import Iterable

from companion_core.domain.models import Message


PROMPTS_DIR = Path(__file__).resolve().parent


def load_persona(locale: str = "en") -> str:
    """加载 persona 前言文本。"""

    fname = PROMPTS_DIR / locale / "companion_system.md"
    return fname.read_text(encoding="utf-8")


def build_prompt(persona: str, window: Iterable[Message], user_text: str) -> str:
    """拼接 prompt：persona 前言、每条历史 "role: content" 一行、最后一行 "User: <输入>"。

    纯函数，不访问会话或 Provider。
    """

    lines = [persona.rstrip()]
    lines.extend(f"{msg.role}: {msg.content}" for msg in window)
    lines.append(f"User: {user_text}")
    return "\n".join(lines)
