"""系统提示词加载工具。

按场景(kind) 与语言(locale) 从 prompts/<locale> 目录读取 system prompt
文本，用于构造 ChatMessage(role="system")。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent

PROMPT_FILES = {
    "reply": "reply_system.md",
    "title": "title_system.md",
}


@lru_cache(maxsize=None)
def load_system_prompt(kind: str, locale: str = "en") -> str:
    """根据场景和语言加载系统提示词文本。

    kind 目前支持 "reply" 与 "title"，未知场景抛 KeyError。
    """

    fname = PROMPTS_DIR / locale / PROMPT_FILES[kind]
    return fname.read_text(encoding="utf-8").strip()
