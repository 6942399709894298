"""Atlassian Document Format (ADF) helpers.

Jira Cloud stores rich text (descriptions, comments, some custom fields) as a
JSON tree. We only need three things: turn plain text into a document, append
plain text to an existing document, and render a document as Markdown for
reading.
"""

from __future__ import annotations

import copy
from typing import Any


def _paragraphs(text: str) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for line in text.split("\n"):
        if line == "":
            out.append({"type": "paragraph", "content": []})
        else:
            out.append({"type": "paragraph", "content": [{"type": "text", "text": line}]})
    return out


def text_to_adf(text: str | None) -> dict[str, Any] | None:
    if not text:
        return None
    return {"type": "doc", "version": 1, "content": _paragraphs(text)}


def append_to_adf(existing: dict[str, Any] | None, text: str) -> dict[str, Any]:
    new_paragraphs = _paragraphs(text)
    if not isinstance(existing, dict) or not isinstance(existing.get("content"), list):
        return {"type": "doc", "version": 1, "content": new_paragraphs}
    combined = copy.deepcopy(existing)
    combined["content"].extend(new_paragraphs)
    return combined


def _inline(nodes: list[dict[str, Any]] | None) -> str:
    parts: list[str] = []
    for node in nodes or []:
        kind = node.get("type")
        if kind == "text":
            text = node.get("text", "")
            for mark in node.get("marks") or []:
                mtype = mark.get("type")
                if mtype == "strong":
                    text = f"**{text}**"
                elif mtype == "em":
                    text = f"_{text}_"
                elif mtype == "code":
                    text = f"`{text}`"
                elif mtype == "strike":
                    text = f"~~{text}~~"
                elif mtype == "link":
                    href = (mark.get("attrs") or {}).get("href")
                    if href:
                        text = f"[{text}]({href})"
            parts.append(text)
        elif kind == "hardBreak":
            parts.append("\n")
        elif kind == "mention":
            parts.append((node.get("attrs") or {}).get("text", "@unknown"))
        elif kind == "emoji":
            parts.append((node.get("attrs") or {}).get("text", ""))
        elif kind == "inlineCard":
            parts.append((node.get("attrs") or {}).get("url", ""))
        else:
            parts.append(_inline(node.get("content")))
    return "".join(parts)


def _block(node: dict[str, Any], indent: str = "") -> list[str]:
    kind = node.get("type")
    content = node.get("content") or []
    if kind == "paragraph":
        return [indent + _inline(content)]
    if kind == "heading":
        level = (node.get("attrs") or {}).get("level", 1)
        return ["#" * int(level) + " " + _inline(content)]
    if kind in ("bulletList", "orderedList"):
        lines: list[str] = []
        for idx, item in enumerate(content, start=1):
            marker = f"{idx}." if kind == "orderedList" else "-"
            item_lines: list[str] = []
            for child in item.get("content") or []:
                item_lines.extend(_block(child, indent + "  "))
            if item_lines:
                first = item_lines[0].strip()
                lines.append(f"{indent}{marker} {first}")
                lines.extend(item_lines[1:])
        return lines
    if kind == "codeBlock":
        lang = (node.get("attrs") or {}).get("language") or ""
        return [f"```{lang}", _inline(content), "```"]
    if kind == "blockquote":
        inner: list[str] = []
        for child in content:
            inner.extend(_block(child))
        return ["> " + line for line in inner]
    if kind == "rule":
        return ["---"]
    if kind == "panel":
        inner = []
        for child in content:
            inner.extend(_block(child, indent))
        return inner
    return [indent + _inline(content)] if content else []


def adf_to_markdown(doc: Any) -> str:
    """Render an ADF document (or a plain string) as Markdown text."""
    if doc is None:
        return ""
    if isinstance(doc, str):
        return doc
    if not isinstance(doc, dict):
        return str(doc)
    lines: list[str] = []
    for node in doc.get("content") or []:
        lines.extend(_block(node))
    return "\n".join(lines).strip()
