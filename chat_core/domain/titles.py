"""从会话首条用户消息推导简短标题。

规则按顺序匹配：
1. 去掉 ``` 包围的代码块；
2. 只保留字母、数字、空白以及 ? . !；
3. 含问号时取到第一个问号（含）；
4. 含 explain / what is / how to 时取第一个句点之前的内容；
5. 否则取第一个句末 . / !（后跟空白）之前的内容，没有则取全文；
6. 超过 40 个字符时截成 37 个字符加省略号。
"""

import re
from typing import Any

MAX_TITLE_LENGTH = 40
ELLIPSIS = "..."

_FENCED_CODE = re.compile(r"```.*?```", re.DOTALL)
# \w 含下划线，需单独剔除
_DISALLOWED = re.compile(r"[^\w\s?.!]|_")
_WHITESPACE = re.compile(r"\s+")
_SENTENCE_END = re.compile(r"[.!](?=\s)")
_EXPLAIN_KEYWORDS = ("explain", "what is", "how to")


def clean_text(raw_text: str) -> str:
    text = _FENCED_CODE.sub(" ", raw_text)
    text = _DISALLOWED.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def truncate_title(title: str, limit: int = MAX_TITLE_LENGTH) -> str:
    if len(title) <= limit:
        return title
    return title[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def derive_title(raw_text: Any) -> str:
    """返回不超过 40 个字符的标题；空输入或全是标点时返回空字符串。

    调用方需要自行处理空标题（例如显示占位文本）。
    """

    if not isinstance(raw_text, str) or not raw_text:
        return ""
    text = clean_text(raw_text)
    if not text:
        return ""

    if "?" in text:
        title = text[: text.index("?") + 1]
    elif any(keyword in text.lower() for keyword in _EXPLAIN_KEYWORDS):
        title = text.split(".", 1)[0]
    else:
        match = _SENTENCE_END.search(text)
        title = text[: match.start()] if match else text

    return truncate_title(title.strip())
