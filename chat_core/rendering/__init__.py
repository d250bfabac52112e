"""Markdown 渲染边界：核心只把 content 字符串传给 render()，从不自己解释 HTML。"""

from chat_core.rendering.markdown import render

__all__ = ["render"]
