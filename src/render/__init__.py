"""
Render layer: HTML 문서 조립.

역할:
- 입력값 + 생성 필드 → HTML (Jinja2 템플릿)
"""

from .html import render_document_html, render_plan_html, render_report_html

__all__ = [
    "render_document_html",
    "render_plan_html",
    "render_report_html",
]
