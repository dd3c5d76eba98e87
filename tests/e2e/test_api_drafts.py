"""
test_api_drafts.py - Drafts API E2E 테스트

엔드포인트:
- POST  /v1/tools/{tool_id}/drafts
- GET   /v1/drafts/{draft_id}
- PATCH /v1/drafts/{draft_id}
- PUT   /v1/drafts/{draft_id}/fields/{field_key}
- POST  /v1/drafts/{draft_id}/fields/{field_key}:generate
- POST  /v1/drafts/{draft_id}/fields:generate_all
- POST  /v1/drafts/{draft_id}:validate
- POST  /v1/drafts/{draft_id}:render
- POST  /v1/drafts/{draft_id}:finalize
- GET   /health
"""

import pytest

# =============================================================================
# Health
# =============================================================================


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# =============================================================================
# Draft CRUD
# =============================================================================


class TestCreateDraftApi:
    """POST /v1/tools/{tool_id}/drafts 테스트."""

    def test_created(self, client, plan_inputs):
        response = client.post(
            "/v1/tools/aftercare_plan/drafts",
            json={"title": "2025 2학기 운영계획", "inputs": plan_inputs},
        )

        assert response.status_code == 201
        draft = response.json()["draft"]
        assert draft["draft_id"].startswith("drf_")
        assert draft["tool_id"] == "aftercare_plan"
        assert draft["status"] == "editing"
        assert draft["validation"] == {"blocking": [], "warnings": []}
        assert draft["generated_fields"] == {}

    def test_invalid_tool(self, client):
        response = client.post(
            "/v1/tools/lunch_menu/drafts",
            json={"title": "제목", "inputs": {}},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TOOL"

    def test_missing_title(self, client):
        response = client.post("/v1/tools/aftercare_plan/drafts", json={"inputs": {}})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_REQUEST"

    def test_non_object_body(self, client):
        response = client.post("/v1/tools/aftercare_plan/drafts", json=["title"])

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_REQUEST"

    def test_missing_inputs_saved_with_blocking(self, client):
        response = client.post(
            "/v1/tools/aftercare_report/drafts",
            json={"title": "보고", "inputs": {"school_name": "행복초등학교"}},
        )

        assert response.status_code == 201
        blocking = response.json()["draft"]["validation"]["blocking"]
        assert "period_label" in {item["field"] for item in blocking}


class TestGetAndPatchDraftApi:
    """GET/PATCH /v1/drafts/{draft_id} 테스트."""

    def test_get(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.get(f"/v1/drafts/{draft['draft_id']}")

        assert response.status_code == 200
        assert response.json()["draft"] == draft

    @pytest.mark.parametrize("draft_id", ["drf_000000000000", "drf_not-an-id", "nope"])
    def test_not_found(self, client, draft_id):
        response = client.get(f"/v1/drafts/{draft_id}")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "DRAFT_NOT_FOUND"

    def test_patch_deep_merges(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.patch(
            f"/v1/drafts/{draft['draft_id']}",
            json={"title": "수정본", "inputs": {"period": {"end_date": "2026-02-27"}}},
        )

        assert response.status_code == 200
        updated = response.json()["draft"]
        assert updated["title"] == "수정본"
        assert updated["inputs"]["period"] == {
            "start_date": "2025-09-01",
            "end_date": "2026-02-27",
        }
        assert updated["inputs"]["school_name"] == plan_inputs["school_name"]

    def test_patch_revalidates(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.patch(
            f"/v1/drafts/{draft['draft_id']}",
            json={"inputs": {"school_name": ""}},
        )

        blocking = response.json()["draft"]["validation"]["blocking"]
        assert [item["field"] for item in blocking] == ["school_name"]


# =============================================================================
# Fields
# =============================================================================


class TestFieldApi:
    """필드 생성/수정 API 테스트."""

    def test_generate_field(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.post(
            f"/v1/drafts/{draft['draft_id']}/fields/purpose_text:generate",
            json={"mode": "overwrite", "length": "short"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["field_key"] == "purpose_text"
        assert body["result"]["text"] == "입력값을 바탕으로 작성한 문장입니다."
        assert body["result"]["source"] == "ai"
        assert body["result"]["policy_checks"] == {"new_numeric_detected": False}
        assert body["validation"]["blocking"] == []

    def test_generate_without_body(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.post(f"/v1/drafts/{draft['draft_id']}/fields/purpose_text:generate")

        assert response.status_code == 200

    def test_new_number_returns_422_with_evidence(
        self, client, create_draft, use_provider, provider_factory, plan_inputs
    ):
        use_provider(provider_factory(responses=["정원 30명, 간식비 5000원을 지원합니다."]))
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.post(
            f"/v1/drafts/{draft['draft_id']}/fields/budget_policy_text:generate",
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "POLICY_VIOLATION_NEW_NUMBER"
        assert detail["evidence"] == ["5000"]

        saved = client.get(f"/v1/drafts/{draft['draft_id']}").json()["draft"]
        assert "budget_policy_text" not in saved["generated_fields"]
        assert saved["generation_logs"][-1]["result"] == "rejected"

    def test_generate_blocked_by_validation(self, client, create_draft):
        draft = create_draft("aftercare_plan", {})

        response = client.post(f"/v1/drafts/{draft['draft_id']}/fields/purpose_text:generate")

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_BLOCKING"

    def test_generate_unknown_field(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.post(f"/v1/drafts/{draft['draft_id']}/fields/menu_text:generate")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "FIELD_NOT_FOUND"

    def test_generate_all(self, client, create_draft, report_inputs):
        draft = create_draft("aftercare_report", report_inputs)

        response = client.post(
            f"/v1/drafts/{draft['draft_id']}/fields:generate_all",
            json={"concurrent": True},
        )

        assert response.status_code == 200
        body = response.json()
        assert set(body["generated_fields"]) == {
            "operations_overview_text",
            "staffing_result_text",
            "safety_complaint_result_text",
            "budget_execution_text",
            "evaluation_improvement_text",
        }
        assert body["rejected"] == {}

    def test_generate_all_reports_rejected(
        self, client, create_draft, use_provider, provider_factory, report_inputs
    ):
        use_provider(provider_factory(responses=["참여 인원 99명이었습니다."]))
        draft = create_draft("aftercare_report", report_inputs)

        response = client.post(f"/v1/drafts/{draft['draft_id']}/fields:generate_all")

        assert response.status_code == 200
        body = response.json()
        assert body["generated_fields"] == {}
        assert all(item == {"evidence": ["99"]} for item in body["rejected"].values())
        assert len(body["rejected"]) == 5

    @pytest.mark.parametrize("value", ["false", 1])
    def test_generate_all_concurrent_must_be_bool(
        self, client, create_draft, fake_provider, report_inputs, value
    ):
        draft = create_draft("aftercare_report", report_inputs)

        response = client.post(
            f"/v1/drafts/{draft['draft_id']}/fields:generate_all",
            json={"concurrent": value},
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "INVALID_REQUEST"
        assert detail["field"] == "concurrent"
        assert fake_provider.prompts == []

    def test_put_user_text(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.put(
            f"/v1/drafts/{draft['draft_id']}/fields/purpose_text",
            json={"text": "직접 작성한 목적"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["field"]["text"] == "직접 작성한 목적"
        assert body["field"]["source"] == "user"
        assert body["draft"]["generated_fields"]["purpose_text"] == body["field"]

    def test_put_requires_text(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs)

        response = client.put(
            f"/v1/drafts/{draft['draft_id']}/fields/purpose_text",
            json={"text": 3},
        )

        assert response.status_code == 400


# =============================================================================
# Validate / Render / Finalize
# =============================================================================


class TestWorkflowApi:
    """검증 → 렌더 → 확정 흐름."""

    def test_validate(self, client, create_draft):
        draft = create_draft("aftercare_plan", {"school_name": "행복초등학교"})

        response = client.post(f"/v1/drafts/{draft['draft_id']}:validate")

        assert response.status_code == 200
        fields = {item["field"] for item in response.json()["validation"]["blocking"]}
        assert "school_name" not in fields
        assert "capacity" in fields

    def test_render(self, client, create_draft, plan_inputs_with_tables):
        draft = create_draft("aftercare_plan", plan_inputs_with_tables, title="계획서")

        response = client.post(f"/v1/drafts/{draft['draft_id']}:render")

        assert response.status_code == 200
        render = response.json()["render"]
        assert render["title"] == "계획서"
        assert render["format"] == "html"
        assert [entry["id"] for entry in render["toc"]] == ["sec1", "sec2", "sec3", "sec4", "sec5"]
        assert "행복초등학교" in render["html"]
        assert "<table>" in render["html"]

        saved = client.get(f"/v1/drafts/{draft['draft_id']}").json()["draft"]
        assert saved["status"] == "rendered"

    def test_render_without_tables(self, client, create_draft, plan_inputs_with_tables):
        draft = create_draft("aftercare_plan", plan_inputs_with_tables)

        response = client.post(
            f"/v1/drafts/{draft['draft_id']}:render",
            json={"include_appendix_tables": False},
        )

        assert "<table>" not in response.json()["render"]["html"]

    def test_render_blocked(self, client, create_draft):
        draft = create_draft("aftercare_report", {})

        response = client.post(f"/v1/drafts/{draft['draft_id']}:render")

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_BLOCKING"
        assert detail["blocking"]

    def test_finalize(self, client, create_draft, plan_inputs):
        draft = create_draft("aftercare_plan", plan_inputs, title="초안 제목")

        response = client.post(
            f"/v1/drafts/{draft['draft_id']}:finalize",
            json={"title": "확정 제목"},
        )

        assert response.status_code == 201
        doc = response.json()["doc"]
        assert doc["doc_id"].startswith("doc_")
        assert doc["tool_id"] == "aftercare_plan"
        assert doc["title"] == "확정 제목"

        saved = client.get(f"/v1/drafts/{draft['draft_id']}").json()["draft"]
        assert saved["status"] == "finalized"

    def test_finalize_not_found(self, client):
        response = client.post("/v1/drafts/drf_000000000000:finalize")

        assert response.status_code == 404
