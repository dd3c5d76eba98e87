"""
test_html.py - HTML 문서 조립 테스트

DoD:
- 같은 입력 → 같은 html/toc
- 모든 스칼라 입력 슬롯이 출력에 등장 (값 또는 "-")
- 생성 필드 누락 → "-"
- 부록 표: 플래그가 꺼져 있거나 목록이 비어 있으면 <h3>/<table> 통째로 생략
"""

from unittest.mock import patch

import pytest

from src.app.services.validate import validate_inputs
from src.domain.errors import ErrorCodes, PolicyRejectError
from src.domain.schemas import FieldSource, GeneratedField, ToolId
from src.render.html import (
    PLACEHOLDER,
    render_document_html,
    render_plan_html,
    render_report_html,
    safe_text,
)

# =============================================================================
# safe_text 테스트
# =============================================================================


class TestSafeText:
    """safe_text 함수 테스트."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "-"),
            ("행복초", "행복초"),
            (30, "30"),
            (2.5, "2.5"),
            (True, "true"),
            (False, "false"),
            (["월", "화"], "월, 화"),
            ([1, 2], "1, 2"),
            ([], ""),
            ({"a": 1}, '{"a":1}'),
        ],
    )
    def test_values(self, value, expected):
        assert safe_text(value) == expected


# =============================================================================
# 운영계획서 렌더 테스트
# =============================================================================


class TestRenderPlan:
    """운영계획서 렌더링."""

    def test_end_to_end_scenario(self, plan_inputs):
        """필수 항목 입력 → 검증 통과, 학교명/정원 노출, 목차 5개."""
        assert validate_inputs("aftercare_plan", plan_inputs).to_dict() == {
            "blocking": [],
            "warnings": [],
        }

        output = render_plan_html(plan_inputs, {}, include_appendix_tables=True)

        assert "행복초등학교" in output.html
        assert "30" in output.html
        assert [entry.id for entry in output.toc] == ["sec1", "sec2", "sec3", "sec4", "sec5"]
        assert [entry.title for entry in output.toc] == [
            "기본 운영 정보",
            "운영 목적 및 선발",
            "운영 세부",
            "인력 및 안전",
            "예산 및 평가",
        ]

    def test_sections_in_toc_order(self, plan_inputs):
        output = render_plan_html(plan_inputs, {}, include_appendix_tables=True)

        positions = [output.html.index(f'<section id="{entry.id}">') for entry in output.toc]
        assert positions == sorted(positions)

    def test_deterministic(self, plan_inputs_with_tables):
        fields = {"purpose_text": GeneratedField(text="목적 문장")}

        first = render_plan_html(plan_inputs_with_tables, fields, True)
        second = render_plan_html(plan_inputs_with_tables, fields, True)

        assert first.html == second.html
        assert first.toc == second.toc

    def test_scalar_values_rendered(self, plan_inputs):
        html = render_plan_html(plan_inputs, {}, True).html

        assert "학기: 2025-2학기" in html
        assert "운영 기간: 2025-09-01 ~ 2026-02-20" in html
        assert "학기 운영시간: 13:00 ~ 17:00" in html
        assert "운영 요일: 월, 화, 수, 목, 금" in html
        assert "대상 학년: 1, 2" in html
        assert "선정 기준: 맞벌이 가정, 저소득 가정" in html

    def test_missing_scalars_render_placeholder(self):
        html = render_plan_html({}, {}, True).html

        for label in (
            "학교명",
            "학기",
            "운영 유형",
            "운영 요일",
            "장소",
            "대상 학년",
            "정원",
            "선정 기준",
            "출결 방식",
            "귀가 정책",
            "예산 총액",
            "평가 주기",
            "만족도 조사",
        ):
            assert f"{label}: {PLACEHOLDER}" in html
        assert f"운영 기간: {PLACEHOLDER} ~ {PLACEHOLDER}" in html

    def test_missing_generated_fields_render_placeholder(self, plan_inputs):
        html = render_plan_html(plan_inputs, {}, True).html

        assert "<p>-</p>" in html
        assert "None" not in html

    def test_generated_field_text(self, plan_inputs):
        fields = {
            "purpose_text": GeneratedField(text="  돌봄 공백 해소  ", source=FieldSource.USER),
            "safety_plan_text": {"text": "안전 계획 문장", "source": "ai"},
            "budget_policy_text": {"text": "   "},
        }

        html = render_plan_html(plan_inputs, fields, True).html

        assert "<p>돌봄 공백 해소</p>" in html
        assert "<p>안전 계획 문장</p>" in html
        assert "<p>   </p>" not in html

    def test_html_is_escaped(self, plan_inputs):
        inputs = {**plan_inputs, "location": "<b>1실</b>"}

        html = render_plan_html(inputs, {}, True).html

        assert "<b>1실</b>" not in html
        assert "&lt;b&gt;1실&lt;/b&gt;" in html

    def test_boolean_rendered_as_text(self, plan_inputs):
        html = render_plan_html({**plan_inputs, "satisfaction_survey": True}, {}, True).html

        assert "만족도 조사: true" in html


class TestAppendixTables:
    """부록 표 포함 여부."""

    def test_tables_included(self, plan_inputs_with_tables):
        html = render_plan_html(plan_inputs_with_tables, {}, True).html

        assert html.count("<table>") == 4
        assert "<h3>일과 운영표</h3>" in html
        assert "<th>시간</th><th>활동</th><th>비고</th>" in html
        assert "<td>13:00-14:00</td><td>놀이활동</td><td>실내</td>" in html
        # 선택 열 누락 → "-"
        assert "<td>14:00-15:00</td><td>독서</td><td>-</td>" in html
        assert "<td>인건비</td><td>9,000,000</td><td>월 750,000</td>" in html

    def test_flag_off_omits_all_tables(self, plan_inputs_with_tables):
        html = render_plan_html(plan_inputs_with_tables, {}, False).html

        assert "<table>" not in html
        assert "<h3>" not in html

    def test_empty_list_omits_table(self, plan_inputs_with_tables):
        inputs = {**plan_inputs_with_tables, "programs": []}

        html = render_plan_html(inputs, {}, True).html

        assert "<h3>프로그램 운영</h3>" not in html
        assert html.count("<table>") == 3


# =============================================================================
# 운영결과보고 렌더 테스트
# =============================================================================


class TestRenderReport:
    """운영결과보고 렌더링."""

    def test_basic(self, report_inputs):
        output = render_report_html(report_inputs, {}, True)

        assert [entry.title for entry in output.toc] == [
            "운영 개요",
            "인력 및 민원",
            "예산 집행",
            "평가 및 개선",
        ]
        assert "운영일수: 95" in output.html
        assert "평균 참여 인원: 27" in output.html
        assert "사고 발생 여부: false" in output.html
        assert "예산 배정: 10,000,000" in output.html
        assert "잔액: 500,000" in output.html

    def test_missing_scalars_render_placeholder(self):
        html = render_report_html({}, {}, True).html

        for label in (
            "학교명",
            "운영 기간",
            "운영 유형",
            "운영일수",
            "평균 참여 인원",
            "사고 발생 여부",
            "예산 배정",
            "집행액",
            "잔액",
        ):
            assert f"{label}: {PLACEHOLDER}" in html
        assert html.count(f"<p>{PLACEHOLDER}</p>") == 5
        assert "<table>" not in html
        assert "강점:" not in html
        assert "개선점:" not in html

    def test_strengths_only_when_present(self, report_inputs):
        without = render_report_html(report_inputs, {}, True).html
        with_lists = render_report_html(
            {**report_inputs, "strengths": ["참여율 향상"], "improvements": ["공간 확보"]},
            {},
            True,
        ).html

        assert "강점:" not in without
        assert "개선점:" not in without
        assert "강점: 참여율 향상" in with_lists
        assert "개선점: 공간 확보" in with_lists

    def test_report_tables(self, report_inputs):
        inputs = {
            **report_inputs,
            "incidents": [
                {"when_text": "5월", "content": "찰과상", "action": "보건실", "prevention": "교육"},
            ],
            "major_expenses": [],
        }

        html = render_report_html(inputs, {}, True).html

        assert "<h3>사고 현황</h3>" in html
        assert "<h3>주요 집행 내역</h3>" not in html
        assert html.count("<table>") == 1


class TestRenderDocumentHtml:
    """render_document_html 분기."""

    @pytest.mark.parametrize("tool_id", list(ToolId))
    def test_every_tool_renders(self, tool_id):
        output = render_document_html(tool_id, {}, {}, True)

        assert output.html
        assert output.toc

    def test_string_tool_id(self, report_inputs):
        by_string = render_document_html("aftercare_report", report_inputs, {}, True)
        by_enum = render_report_html(report_inputs, {}, True)

        assert by_string.html == by_enum.html

    def test_template_error_becomes_render_failed(self, plan_inputs):
        """컨텍스트 누락 (StrictUndefined) → RENDER_FAILED."""
        with patch.dict(
            "src.render.html._CONTEXT_BUILDERS",
            {ToolId.AFTERCARE_PLAN: (lambda inputs: {}, {})},
        ):
            with pytest.raises(PolicyRejectError) as exc_info:
                render_plan_html(plan_inputs, {}, True)

        assert exc_info.value.code == ErrorCodes.RENDER_FAILED
        assert exc_info.value.context["template"] == "aftercare_plan.html.j2"
