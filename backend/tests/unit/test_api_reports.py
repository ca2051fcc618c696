"""Unit tests for report API endpoints."""

import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import event

from backend.app.models.report import Report
from backend.app.services.report_pipeline import ALL_SECTIONS_FAILED

DEFAULT_SECTION_COUNT = 8


async def insert_report(database, project="Acme", status="completed", **fields) -> Report:
    """Store a report directly, without running generation."""
    async with database.session() as session:
        report = Report(
            email="lead@acme.test",
            report_owner_name=fields.pop("report_owner_name", "Sam"),
            project=project,
            status=status,
            lead_data=fields.pop(
                "lead_data", {"name": "Jane Doe", "companyName": "Acme Corp", "project": project}
            ),
            section_content=fields.pop("section_content", {}),
            enabled_sections=["overview"],
            **fields,
        )
        session.add(report)
        await session.commit()
        return report


async def create_report(client, headers, **overrides) -> str:
    payload = {"email": "jane@acme.test", "report_owner_name": "Sam", "project": "Acme"}
    payload.update(overrides)
    response = await client.post("/api/reports", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["report_id"]


@pytest.fixture
def status_writes():
    """Every value assigned to a report status while the test runs, in order."""
    writes: list[str] = []

    def record(target, value, oldvalue, initiator):
        writes.append(value)

    event.listen(Report.status, "set", record)
    yield writes
    event.remove(Report.status, "set", record)


class TestCreateReport:
    """Creating reports and the background run."""

    @pytest.mark.asyncio
    async def test_create_and_complete(self, test_client, pipeline, admin_headers, fake_news):
        response = await test_client.post(
            "/api/reports",
            json={
                "email": "jane@acme.test",
                "report_owner_name": "Sam",
                "project": "Acme",
                "lead_industry": "Software",
                "initial_note": "Met at the conference",
                "meeting": {"date": "2026-11-02", "platform": "Zoom"},
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "processing"
        report_id = body["report_id"]

        await pipeline.wait(report_id)

        status_response = await test_client.get(f"/api/reports/{report_id}/status", headers=admin_headers)
        assert status_response.json() == {"status": "completed", "error": None}

        envelope = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()
        assert envelope["status"] == "completed"
        data = envelope["data"]
        assert data["lead_data"]["name"] == "Jane Doe"
        assert data["lead_data"]["companyName"] == "Acme Corp"
        assert data["lead_data"]["leadIndustry"] == "Software"
        assert data["lead_data"]["project"] == "Acme"
        assert len(data["section_content"]) == DEFAULT_SECTION_COUNT
        assert "strategicBrief" not in data["section_content"]
        assert data["report_markdown"].startswith("# Jane Doe")
        assert data["company_news"]["totalResults"] == 1
        assert data["notes"][0]["content"] == "Met at the conference"
        assert data["meeting_details"] == {"date": "2026-11-02", "platform": "Zoom"}
        assert data["ai_content_error"] is None
        assert data["completed_at"] is not None
        assert fake_news.calls == ["Acme Corp"]

    @pytest.mark.asyncio
    async def test_selected_sections_only(self, test_client, pipeline, admin_headers, fake_llm):
        report_id = await create_report(
            test_client, admin_headers, enabled_sections=["news", "overview"]
        )
        await pipeline.wait(report_id)

        data = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()["data"]

        assert set(data["section_content"]) == {"overview", "news"}
        assert fake_llm.section_calls == ["overview", "news"]

    @pytest.mark.asyncio
    async def test_no_sections_selected(self, test_client, pipeline, admin_headers, fake_llm):
        report_id = await create_report(test_client, admin_headers, enabled_sections=[])
        await pipeline.wait(report_id)

        data = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()["data"]

        assert data["status"] == "completed"
        assert data["enabled_sections"] == []
        assert data["section_content"] == {}
        assert data["ai_content_error"] == "No sections are enabled. Please enable at least one section."
        assert fake_llm.section_calls == []

    @pytest.mark.asyncio
    async def test_unknown_section_rejected(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/reports",
            json={"email": "a@b.test", "report_owner_name": "Sam", "enabled_sections": ["weather"]},
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_email(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/reports",
            json={"email": "not-an-email", "report_owner_name": "Sam"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a valid email address"

    @pytest.mark.asyncio
    async def test_missing_owner(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/reports",
            json={"email": "a@b.test", "report_owner_name": "   "},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide your name as the report owner"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, test_client):
        response = await test_client.post(
            "/api/reports",
            json={"email": "a@b.test", "report_owner_name": "Sam"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_project_user_limited_to_assigned_projects(self, test_client, pipeline, acme_headers):
        allowed = await test_client.post(
            "/api/reports",
            json={"email": "a@b.test", "report_owner_name": "Sam", "project": "Acme"},
            headers=acme_headers,
        )
        denied = await test_client.post(
            "/api/reports",
            json={"email": "a@b.test", "report_owner_name": "Sam", "project": "Other"},
            headers=acme_headers,
        )
        unassigned = await test_client.post(
            "/api/reports",
            json={"email": "a@b.test", "report_owner_name": "Sam"},
            headers=acme_headers,
        )

        assert allowed.status_code == 201
        assert denied.status_code == 403
        assert unassigned.status_code == 403
        await pipeline.drain()


class TestGenerationFailures:
    """Run outcomes when collaborators fail."""

    @pytest.mark.asyncio
    async def test_enrichment_failure_fails_report(self, test_client, pipeline, admin_headers, fake_enrichment):
        fake_enrichment.error = "No data found for the provided email address."
        report_id = await create_report(test_client, admin_headers)
        await pipeline.wait(report_id)

        status = (await test_client.get(f"/api/reports/{report_id}/status", headers=admin_headers)).json()
        assert status["status"] == "failed"
        assert status["error"] == "Failed to fetch lead data: No data found for the provided email address."

        envelope = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()
        assert envelope["data"] is None
        assert envelope["error"] == status["error"]

    @pytest.mark.asyncio
    async def test_narrative_failure_falls_back_to_template(self, test_client, pipeline, admin_headers, fake_llm):
        fake_llm.report_error = True
        report_id = await create_report(test_client, admin_headers)
        await pipeline.wait(report_id)

        data = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()["data"]

        assert data["status"] == "completed"
        assert data["report_markdown"].startswith("# Jane Doe")
        assert "### Lead Scoring" in data["report_markdown"]
        assert data["report_generation_warning"].startswith("AI report enhancement skipped")

    @pytest.mark.asyncio
    async def test_every_section_failing_still_completes(self, test_client, pipeline, admin_headers, fake_llm):
        fake_llm.failing = {"overview", "company"}
        report_id = await create_report(test_client, admin_headers, enabled_sections=["overview", "company"])
        await pipeline.wait(report_id)

        data = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()["data"]

        assert data["status"] == "completed"
        assert data["section_content"] == {}
        assert data["ai_content_error"] == ALL_SECTIONS_FAILED

    @pytest.mark.asyncio
    async def test_one_section_failing(self, test_client, pipeline, admin_headers, fake_llm):
        fake_llm.failing = {"company"}
        report_id = await create_report(
            test_client, admin_headers, enabled_sections=["overview", "company", "news"]
        )
        await pipeline.wait(report_id)

        data = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()["data"]

        assert set(data["section_content"]) == {"overview", "news"}
        assert data["ai_content_error"] is None


SUCCESSFUL_RUN = ["processing", "fetching_enrichment", "generating_ai", "completed"]


def assert_forward_only(statuses: list[str]) -> None:
    """Statuses follow the run order, or stop early at failed."""
    assert statuses, "no status was written"
    if statuses[-1] == "failed":
        assert statuses[:-1] == SUCCESSFUL_RUN[:len(statuses) - 1]
    else:
        assert statuses == SUCCESSFUL_RUN


class TestStatusSequence:
    """Every status a run writes, not just where it ends."""

    @pytest.mark.asyncio
    async def test_successful_run(self, test_client, pipeline, admin_headers, status_writes):
        report_id = await create_report(test_client, admin_headers)
        await pipeline.wait(report_id)

        assert status_writes == SUCCESSFUL_RUN
        assert_forward_only(status_writes)

    @pytest.mark.asyncio
    async def test_failed_run_stops_at_failed(
        self, test_client, pipeline, admin_headers, fake_enrichment, status_writes
    ):
        fake_enrichment.error = "Invalid Apollo API key. Please check your configuration."
        report_id = await create_report(test_client, admin_headers)
        await pipeline.wait(report_id)

        assert status_writes == ["processing", "fetching_enrichment", "failed"]
        assert_forward_only(status_writes)

    @pytest.mark.asyncio
    async def test_each_regenerated_run_starts_over(
        self, test_client, pipeline, admin_headers, fake_enrichment, status_writes
    ):
        fake_enrichment.error = "No data found for the provided email address."
        report_id = await create_report(test_client, admin_headers)
        await pipeline.wait(report_id)
        first_run = list(status_writes)
        status_writes.clear()

        fake_enrichment.error = None
        response = await test_client.post(f"/api/reports/{report_id}/regenerate", headers=admin_headers)
        assert response.status_code == 202
        await pipeline.wait(report_id)

        assert_forward_only(first_run)
        assert status_writes == SUCCESSFUL_RUN


class TestReadReports:
    """Lookups and visibility."""

    @pytest.mark.asyncio
    async def test_invalid_report_id(self, test_client, admin_headers):
        response = await test_client.get("/api/reports/not-a-uuid/status", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid report ID"

    @pytest.mark.asyncio
    async def test_unknown_report(self, test_client, admin_headers):
        response = await test_client.get(f"/api/reports/{uuid.uuid4()}/status", headers=admin_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_in_progress_envelope_has_no_data(self, test_client, database, admin_headers):
        report = await insert_report(database, status="generating_ai")

        envelope = (await test_client.get(f"/api/reports/{report.id}", headers=admin_headers)).json()

        assert envelope == {"status": "generating_ai", "data": None, "error": None}

    @pytest.mark.asyncio
    async def test_other_project_forbidden(self, test_client, database, acme_headers):
        report = await insert_report(database, project="Other")

        status_response = await test_client.get(f"/api/reports/{report.id}/status", headers=acme_headers)
        record_response = await test_client.get(f"/api/reports/{report.id}", headers=acme_headers)

        assert status_response.status_code == 403
        assert record_response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_filters_by_project(self, test_client, database, acme_headers, admin_headers):
        await insert_report(database, project="Acme")
        await insert_report(database, project="Other")
        await insert_report(database, project="Unassigned")

        acme = (await test_client.get("/api/reports", headers=acme_headers)).json()
        everything = (await test_client.get("/api/reports", headers=admin_headers)).json()

        assert [r["project"] for r in acme] == ["Acme"]
        assert acme[0]["lead_name"] == "Jane Doe"
        assert len(everything) == 3


class TestEditReports:
    """Content edits, lead status and deletion."""

    @pytest.mark.asyncio
    async def test_update_merges_content(self, test_client, database, admin_headers):
        report = await insert_report(database, section_content={"overview": {"summary": "old"}})

        response = await test_client.patch(
            f"/api/reports/{report.id}",
            json={
                "lead_data": {"name": "Janet Doe", "project": "Elsewhere"},
                "section_content": {"news": {"summary": "fresh"}},
                "notes": [{"id": "n1", "content": "Call back"}],
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["lead_data"]["name"] == "Janet Doe"
        assert data["lead_data"]["project"] == "Acme"
        assert data["project"] == "Acme"
        assert set(data["section_content"]) == {"overview", "news"}
        assert data["notes"][0]["content"] == "Call back"

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_section(self, test_client, database, admin_headers):
        report = await insert_report(database)

        response = await test_client.patch(
            f"/api/reports/{report.id}",
            json={"section_content": {"weather": {}}},
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_lead_status(self, test_client, database, admin_headers):
        report = await insert_report(database)

        hot = await test_client.patch(
            f"/api/reports/{report.id}/lead-status", json={"status": "HOT"}, headers=admin_headers
        )
        bogus = await test_client.patch(
            f"/api/reports/{report.id}/lead-status", json={"status": "bogus"}, headers=admin_headers
        )

        assert hot.json() == {"success": True, "lead_status": "hot"}
        assert bogus.json() == {"success": True, "lead_status": "warm"}

    @pytest.mark.asyncio
    async def test_delete(self, test_client, database, admin_headers):
        report = await insert_report(database)

        response = await test_client.delete(f"/api/reports/{report.id}", headers=admin_headers)
        lookup = await test_client.get(f"/api/reports/{report.id}", headers=admin_headers)

        assert response.status_code == 200
        assert lookup.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_other_project_forbidden(self, test_client, database, acme_headers):
        report = await insert_report(database, project="Other")

        response = await test_client.delete(f"/api/reports/{report.id}", headers=acme_headers)

        assert response.status_code == 403


class TestRegenerate:
    @pytest.mark.asyncio
    async def test_regenerate_completed_report(self, test_client, pipeline, admin_headers):
        report_id = await create_report(test_client, admin_headers)
        await pipeline.wait(report_id)

        response = await test_client.post(f"/api/reports/{report_id}/regenerate", headers=admin_headers)
        assert response.status_code == 202
        assert response.json()["status"] == "processing"
        await pipeline.wait(report_id)

        data = (await test_client.get(f"/api/reports/{report_id}", headers=admin_headers)).json()["data"]
        assert data["status"] == "completed"
        assert data["lifecycle_run"] == 2

    @pytest.mark.asyncio
    async def test_regenerate_while_running(self, test_client, database, admin_headers):
        report = await insert_report(database, status="fetching_enrichment")

        response = await test_client.post(f"/api/reports/{report.id}/regenerate", headers=admin_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_regenerate_while_previous_task_settles(self, test_client, database, pipeline, admin_headers):
        """The stored status is untouched when a run for the report is still in flight."""
        report = await insert_report(database, status="completed")
        release = asyncio.Event()
        pipeline._tasks[report.id] = asyncio.create_task(release.wait())

        response = await test_client.post(f"/api/reports/{report.id}/regenerate", headers=admin_headers)
        status_response = await test_client.get(f"/api/reports/{report.id}/status", headers=admin_headers)
        release.set()
        await pipeline.wait(report.id)

        assert response.status_code == 409
        assert status_response.json() == {"status": "completed", "error": None}

        data = (await test_client.get(f"/api/reports/{report.id}", headers=admin_headers)).json()["data"]
        assert data["lifecycle_run"] == 1


class TestSectionBatch:
    """On-demand section generation for completed reports."""

    @pytest.mark.asyncio
    async def test_partial_batch(self, test_client, database, admin_headers, fake_llm):
        fake_llm.failing = {"company"}
        report = await insert_report(database, section_content={"overview": {"summary": "kept"}})

        response = await test_client.post(
            f"/api/reports/{report.id}/sections/generate",
            json={"sections": {"company": True, "news": True, "strategicBrief": True, "meeting": False}},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["generated_sections"] == ["news", "strategicBrief"]
        assert list(body["skipped_sections"]) == ["company"]
        assert [p["completed"] for p in body["progress"]] == [1, 2, 3]
        assert body["progress"][-1]["percent"] == 100
        assert set(body["section_content"]) == {"overview", "news", "strategicBrief"}

        data = (await test_client.get(f"/api/reports/{report.id}", headers=admin_headers)).json()["data"]
        assert data["section_content"]["overview"] == {"summary": "kept"}
        assert "strategicBrief" in data["section_content"]

    @pytest.mark.asyncio
    async def test_nothing_enabled(self, test_client, database, admin_headers, fake_llm):
        report = await insert_report(database)

        response = await test_client.post(
            f"/api/reports/{report.id}/sections/generate",
            json={"sections": []},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "No sections are enabled. Please enable at least one section."
        assert fake_llm.section_calls == []

    @pytest.mark.asyncio
    async def test_unknown_section(self, test_client, database, admin_headers):
        report = await insert_report(database)

        response = await test_client.post(
            f"/api/reports/{report.id}/sections/generate",
            json={"sections": ["weather"]},
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_report_not_ready(self, test_client, database, admin_headers):
        report = await insert_report(database, status="processing")

        response = await test_client.post(
            f"/api/reports/{report.id}/sections/generate",
            json={"sections": ["overview"]},
            headers=admin_headers,
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_single_section_preview(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/reports/ai-generate",
            json={"section": "overview", "lead_data": {"name": "Lee"}},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"summary": "overview insight for Lee"}


class TestDownloads:
    @pytest.mark.asyncio
    async def test_markdown(self, test_client, database, admin_headers):
        report = await insert_report(
            database,
            report_markdown="# Jane Doe\n\nNarrative",
            section_content={"overview": {"summary": "Busy quarter"}},
            notes=[{"content": "Follow up"}],
        )

        response = await test_client.get(f"/api/reports/{report.id}/markdown", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/markdown")
        assert "lead_report_Jane_Doe_" in response.headers["content-disposition"]
        text = response.text
        assert text.startswith("# Jane Doe")
        assert "**Project:** Acme" in text
        assert "### Overview" in text
        assert "Busy quarter" in text
        assert "- Follow up" in text

    @pytest.mark.asyncio
    async def test_pdf(self, test_client, database, admin_headers):
        report = await insert_report(database, report_markdown="# Jane Doe\n\n- **Role:** VP")

        response = await test_client.get(f"/api/reports/{report.id}/pdf", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_download_requires_completed(self, test_client, database, admin_headers):
        report = await insert_report(database, status="failed", error="boom")

        response = await test_client.get(f"/api/reports/{report.id}/pdf", headers=admin_headers)

        assert response.status_code == 409


class TestClientReadOnly:
    """Clients see their projects' reports but cannot change them."""

    @pytest.fixture
    async def client_headers(self, make_user, headers_for):
        client_user = await make_user("client@example.com", role="client", assigned_projects=["Acme"])
        return headers_for(client_user)

    @pytest.mark.asyncio
    async def test_client_can_read(self, test_client, database, client_headers):
        report = await insert_report(database)

        envelope = await test_client.get(f"/api/reports/{report.id}", headers=client_headers)
        listing = await test_client.get("/api/reports", headers=client_headers)

        assert envelope.status_code == 200
        assert envelope.json()["data"]["id"] == report.id
        assert [r["id"] for r in listing.json()] == [report.id]

    @pytest.mark.asyncio
    async def test_client_cannot_write(self, test_client, database, client_headers, fake_llm, fake_news):
        report = await insert_report(database)
        base = f"/api/reports/{report.id}"

        responses = [
            await test_client.post(
                "/api/reports",
                json={"email": "a@b.test", "report_owner_name": "Sam", "project": "Acme"},
                headers=client_headers,
            ),
            await test_client.patch(base, json={"report_markdown": "# Edited"}, headers=client_headers),
            await test_client.patch(f"{base}/lead-status", json={"status": "hot"}, headers=client_headers),
            await test_client.post(f"{base}/regenerate", headers=client_headers),
            await test_client.post(f"{base}/sections/generate", json={"sections": ["news"]}, headers=client_headers),
            await test_client.post(f"{base}/refresh-news", headers=client_headers),
            await test_client.delete(base, headers=client_headers),
        ]

        assert [r.status_code for r in responses] == [403] * len(responses)
        assert all(r.json()["detail"] == "Clients cannot edit reports" for r in responses)
        assert fake_llm.section_calls == []
        assert fake_news.calls == []

        data = (await test_client.get(base, headers=client_headers)).json()["data"]
        assert data["lead_status"] == "warm"
        assert data["lifecycle_run"] == 1


class TestFormOptions:
    """Choices for the report creation form."""

    @pytest.mark.asyncio
    async def test_admin_sees_every_project_and_owner(self, test_client, database, admin_headers):
        await insert_report(database, project="Other", report_owner_name="Alex")
        await insert_report(database, project="Acme", report_owner_name="Sam")
        await insert_report(database, project="Acme", report_owner_name=" Sam ")
        await insert_report(database, project="Unassigned", report_owner_name="Pat")

        response = await test_client.get("/api/reports/form-options", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"projects": ["Acme", "Other"], "report_owners": ["Alex", "Pat", "Sam"]}

    @pytest.mark.asyncio
    async def test_project_user_sees_assigned_projects_only(self, test_client, database, acme_headers):
        await insert_report(database, project="Other", report_owner_name="Alex")
        await insert_report(database, project="Acme", report_owner_name="Sam")

        response = await test_client.get("/api/reports/form-options", headers=acme_headers)

        assert response.json() == {"projects": ["Acme"], "report_owners": ["Sam"]}

    @pytest.mark.asyncio
    async def test_requires_authentication(self, test_client):
        response = await test_client.get("/api/reports/form-options")

        assert response.status_code == 401


class TestRefreshNews:
    """Fetching company news again for an existing report."""

    @pytest.mark.asyncio
    async def test_refresh_stores_articles(self, test_client, database, admin_headers, fake_news):
        report = await insert_report(database)

        response = await test_client.post(f"/api/reports/{report.id}/refresh-news", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Found 1 news articles"
        assert body["company_news"]["totalResults"] == 1
        assert fake_news.calls == ["Acme Corp"]

        data = (await test_client.get(f"/api/reports/{report.id}", headers=admin_headers)).json()["data"]
        assert data["company_news"]["articles"][0]["title"] == "Acme Corp raises Series B"
        assert data["news_refreshed_at"] is not None

    @pytest.mark.asyncio
    async def test_enriched_company_name_preferred(self, test_client, database, admin_headers, fake_news):
        report = await insert_report(
            database, enrichment_data={"person": {"organization": {"name": "Acme Inc."}}}
        )

        await test_client.post(f"/api/reports/{report.id}/refresh-news", headers=admin_headers)

        assert fake_news.calls == ["Acme Inc."]

    @pytest.mark.asyncio
    async def test_no_articles_leaves_report_unchanged(self, test_client, database, admin_headers, fake_news):
        report = await insert_report(database, company_news={"articles": [{"title": "Old"}], "totalResults": 1})
        fake_news.fetch_company_news = AsyncMock(return_value={"articles": [], "totalResults": 0})

        response = await test_client.post(f"/api/reports/{report.id}/refresh-news", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "No news articles found for this company"
        assert response.json()["company_news"] == {"articles": [], "totalResults": 0}

        data = (await test_client.get(f"/api/reports/{report.id}", headers=admin_headers)).json()["data"]
        assert data["company_news"]["articles"][0]["title"] == "Old"
        assert data["news_refreshed_at"] is None

    @pytest.mark.asyncio
    async def test_missing_company_name(self, test_client, database, admin_headers, fake_news):
        report = await insert_report(database, lead_data={"name": "Jane Doe", "companyName": "N/A"})

        response = await test_client.post(f"/api/reports/{report.id}/refresh-news", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "No company name found in report"
        assert fake_news.calls == []

    @pytest.mark.asyncio
    async def test_other_project_forbidden(self, test_client, database, acme_headers):
        report = await insert_report(database, project="Other")

        response = await test_client.post(f"/api/reports/{report.id}/refresh-news", headers=acme_headers)

        assert response.status_code == 403
