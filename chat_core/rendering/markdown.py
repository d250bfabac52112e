"""Markdown 转安全 HTML。

基于 markdown-it-py：
- 使用 CommonMark 预设并关闭原始 HTML（<script> 等会被转义）；
- breaks=True，单个换行转换为 <br>；
- 启用表格与删除线（GFM 常用语法）；
- 围栏代码块输出 <pre><code class="language-xxx">，由前端负责高亮；
- javascript:/vbscript:/file: 等链接由 markdown-it 的 validateLink 拒绝。
"""

from markdown_it import MarkdownIt

_md = (
    MarkdownIt("commonmark", {"html": False, "breaks": True, "linkify": False})
    .enable("table")
    .enable("strikethrough")
)


def render(markdown_text: str) -> str:
    if not markdown_text:
        return ""
    return _md.render(markdown_text)
