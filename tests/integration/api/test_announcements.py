"""
Integration tests for the announcements API.

WHAT: Tests for announcement endpoints via HTTP.

WHY: Announcements are the whole product surface. These tests ensure:
1. Only tenant administrators can create, update, delete and dispatch
2. Employees can read and mark announcements as viewed, idempotently
3. Org-scoping prevents cross-tenant access (404, not 403)
4. Dispatch reports and statistics reach the client intact

HOW: Uses pytest-asyncio with AsyncClient for HTTP testing; tokens are
issued directly with create_access_token.
"""

import pytest
from datetime import date
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.email import MockEmailProvider
from tests.factories import (
    AnnouncementFactory,
    BranchFactory,
    DepartmentFactory,
    OrganizationFactory,
    UserFactory,
    auth_headers,
)


ANNOUNCEMENT_PAYLOAD = {
    "title": "Fire drill on Thursday",
    "category": "Safety",
    "description": "Mandatory for everyone",
    "content": "Assemble at the parking lot.\nBring your badge.",
    "start_date": "2025-03-05",
    "end_date": "2025-03-06",
    "is_high_priority": True,
}


class TestAnnouncementCreate:
    """Integration tests for announcement creation."""

    @pytest.mark.asyncio
    async def test_create_as_admin_dispatches(
        self, client: AsyncClient, test_admin, test_employee
    ):
        """Admins create announcements and get the dispatch report back."""
        response = await client.post(
            "/api/announcements", headers=auth_headers(test_admin), json=ANNOUNCEMENT_PAYLOAD
        )

        assert response.status_code == 201
        data = response.json()
        assert data["announcement"]["title"] == "Fire drill on Thursday"
        assert data["announcement"]["is_company_wide"] is True
        assert data["announcement"]["org_id"] == test_admin.org_id
        assert data["dispatch"]["attempted"] == 1
        assert data["dispatch"]["sent"] == 1
        assert data["dispatch"]["results"][0]["outcome"] == "sent"

        assert len(MockEmailProvider.sent_emails) == 1
        sent = MockEmailProvider.sent_emails[0]
        assert sent.to_email == test_employee.email
        assert sent.subject.endswith("High Priority: Fire drill on Thursday")

    @pytest.mark.asyncio
    async def test_create_as_employee_forbidden(self, client: AsyncClient, test_employee):
        """Employees cannot create announcements."""
        response = await client.post(
            "/api/announcements",
            headers=auth_headers(test_employee),
            json=ANNOUNCEMENT_PAYLOAD,
        )

        assert response.status_code == 403
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_create_without_token(self, client: AsyncClient):
        """Anonymous requests are rejected."""
        response = await client.post("/api/announcements", json=ANNOUNCEMENT_PAYLOAD)

        # HTTPBearer answers 401 or 403 depending on the FastAPI version
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_create_with_invalid_token(self, client: AsyncClient):
        """Garbage tokens are 401."""
        response = await client.post(
            "/api/announcements",
            headers={"Authorization": "Bearer not-a-token"},
            json=ANNOUNCEMENT_PAYLOAD,
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_invalid_dates(self, client: AsyncClient, test_admin, test_employee):
        """end_date before start_date is a 400 and nothing is sent."""
        payload = {**ANNOUNCEMENT_PAYLOAD, "start_date": "2025-03-05", "end_date": "2025-03-01"}

        response = await client.post(
            "/api/announcements", headers=auth_headers(test_admin), json=payload
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_create_missing_fields(self, client: AsyncClient, test_admin):
        """Schema errors are reported in the common error shape."""
        response = await client.post(
            "/api/announcements", headers=auth_headers(test_admin), json={"title": "x"}
        )

        assert response.status_code == 400
        assert response.json()["details"]["errors"]

    @pytest.mark.asyncio
    async def test_create_scoped(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Scoped announcements only reach their branch."""
        mumbai = await BranchFactory.create(db_session, org_id=test_org.id, name="Mumbai")
        await UserFactory.create_employee(db_session, org_id=test_org.id, branch_id=mumbai.id)
        await UserFactory.create_employee(db_session, org_id=test_org.id)

        response = await client.post(
            "/api/announcements",
            headers=auth_headers(test_admin),
            json={**ANNOUNCEMENT_PAYLOAD, "is_company_wide": False, "branch_ids": [mumbai.id]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["announcement"]["branches"] == [{"id": mumbai.id, "name": "Mumbai"}]
        assert data["dispatch"]["attempted"] == 1


class TestAnnouncementRead:
    """Integration tests for listing and detail."""

    @pytest.mark.asyncio
    async def test_list_announcements(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """Employees list their organization's announcements."""
        other_org = await OrganizationFactory.create(db_session, name="Other Corp")
        await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id, title="Ours"
        )
        await AnnouncementFactory.create(
            db_session, org_id=other_org.id, created_by=test_admin.id, title="Theirs"
        )

        response = await client.get("/api/announcements", headers=auth_headers(test_employee))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Ours"
        assert data["items"][0]["status"] == "active"

    @pytest.mark.asyncio
    async def test_list_filters(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Priority and search filters are applied."""
        await AnnouncementFactory.create(
            db_session,
            org_id=test_org.id,
            created_by=test_admin.id,
            title="Server maintenance",
            is_high_priority=True,
        )
        await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id, title="Team lunch"
        )

        response = await client.get(
            "/api/announcements",
            headers=auth_headers(test_admin),
            params={"priority": "high", "search": "server", "sort_by": "title", "sort_direction": "asc"},
        )

        assert response.status_code == 200
        assert [a["title"] for a in response.json()["items"]] == ["Server maintenance"]

    @pytest.mark.asyncio
    async def test_detail_marks_viewed(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """Opening an announcement as an employee counts as a view."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )

        response = await client.get(
            f"/api/announcements/{announcement.id}", headers=auth_headers(test_employee)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["announcement"]["id"] == announcement.id
        assert data["is_viewed"] is True
        assert data["view_count"] == 1
        assert data["total_employees"] == 1
        assert data["view_percentage"] == 100

    @pytest.mark.asyncio
    async def test_detail_other_org_is_404(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Another tenant's announcement looks like it does not exist."""
        other_org = await OrganizationFactory.create(db_session, name="Other Corp")
        outsider = await UserFactory.create_employee(db_session, org_id=other_org.id)
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )

        response = await client.get(
            f"/api/announcements/{announcement.id}", headers=auth_headers(outsider)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_departments_for_branches(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Department options are returned as value/label pairs."""
        branch = await BranchFactory.create(db_session, org_id=test_org.id, name="Mumbai")
        department = await DepartmentFactory.create(
            db_session, org_id=test_org.id, name="Sales", branch_id=branch.id
        )

        response = await client.get(
            "/api/announcements/departments",
            headers=auth_headers(test_admin),
            params={"branch_ids": str(branch.id)},
        )

        assert response.status_code == 200
        assert response.json() == [{"value": department.id, "label": "Sales"}]

    @pytest.mark.asyncio
    async def test_dashboard(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """The board lists prioritized announcements and filter options."""
        branch = await BranchFactory.create(db_session, org_id=test_org.id, name="Mumbai")
        other_org = await OrganizationFactory.create(db_session, name="Other Corp")
        await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id, title="Plain", category="Events"
        )
        await AnnouncementFactory.create(
            db_session,
            org_id=test_org.id,
            created_by=test_admin.id,
            title="Urgent",
            category="Safety",
            is_high_priority=True,
        )
        await AnnouncementFactory.create(
            db_session, org_id=other_org.id, created_by=test_admin.id, title="Theirs", category="Payroll"
        )

        response = await client.get(
            "/api/announcements/dashboard", headers=auth_headers(test_employee)
        )

        assert response.status_code == 200
        data = response.json()
        assert [a["title"] for a in data["all_announcements"]] == ["Urgent", "Plain"]
        assert [a["title"] for a in data["high_priority"]] == ["Urgent"]
        assert data["featured"] == []
        assert data["upcoming"] == []
        assert data["categories"] == ["Events", "Safety"]
        assert data["branches"] == [{"id": branch.id, "name": "Mumbai"}]
        assert data["departments"] == []

    @pytest.mark.asyncio
    async def test_departments_bad_branch_ids(self, client: AsyncClient, test_admin):
        """Non-numeric branch ids are a 400."""
        response = await client.get(
            "/api/announcements/departments",
            headers=auth_headers(test_admin),
            params={"branch_ids": "1,abc"},
        )

        assert response.status_code == 400


class TestMarkViewed:
    """Integration tests for POST /{id}/view."""

    @pytest.mark.asyncio
    async def test_mark_viewed_is_idempotent(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """The first call records, repeats succeed without recording."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )
        url = f"/api/announcements/{announcement.id}/view"

        first = await client.post(url, headers=auth_headers(test_employee))
        second = await client.post(url, headers=auth_headers(test_employee))

        assert first.status_code == 200
        assert first.json() == {"success": True, "recorded": True}
        assert second.status_code == 200
        assert second.json() == {"success": True, "recorded": False}

    @pytest.mark.asyncio
    async def test_mark_viewed_unknown_announcement(self, client: AsyncClient, test_employee):
        """Unknown announcements are 404."""
        response = await client.post(
            "/api/announcements/9999/view", headers=auth_headers(test_employee)
        )

        assert response.status_code == 404


class TestAdminOperations:
    """Integration tests for update, delete, statistics and dispatch."""

    @pytest.mark.asyncio
    async def test_update_announcement(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """Partial updates change only the fields sent."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id, category="General"
        )

        response = await client.put(
            f"/api/announcements/{announcement.id}",
            headers=auth_headers(test_admin),
            json={"title": "Updated title", "send_notifications": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["announcement"]["title"] == "Updated title"
        assert data["announcement"]["category"] == "General"
        assert data["dispatch"] is None
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_update_null_title_rejected(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """An explicit null title is a validation error, not a server error."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )

        response = await client.put(
            f"/api/announcements/{announcement.id}",
            headers=auth_headers(test_admin),
            json={"title": None},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "ValidationError"
        assert "title" in data["details"]["errors"][0]["message"]

    @pytest.mark.asyncio
    async def test_update_null_start_date_rejected(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """An explicit null start date is a validation error, not a server error."""
        announcement = await AnnouncementFactory.create(
            db_session,
            org_id=test_org.id,
            created_by=test_admin.id,
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
        )

        response = await client.put(
            f"/api/announcements/{announcement.id}",
            headers=auth_headers(test_admin),
            json={"start_date": None},
        )

        assert response.status_code == 400
        assert "start_date" in response.json()["details"]["errors"][0]["message"]

    @pytest.mark.asyncio
    async def test_update_null_end_date_clears_it(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Optional columns can still be cleared with null."""
        announcement = await AnnouncementFactory.create(
            db_session,
            org_id=test_org.id,
            created_by=test_admin.id,
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
        )

        response = await client.put(
            f"/api/announcements/{announcement.id}",
            headers=auth_headers(test_admin),
            json={"end_date": None, "send_notifications": False},
        )

        assert response.status_code == 200
        assert response.json()["announcement"]["end_date"] is None

    @pytest.mark.asyncio
    async def test_delete_announcement(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Deleted announcements are gone."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )
        headers = auth_headers(test_admin)

        response = await client.delete(f"/api/announcements/{announcement.id}", headers=headers)
        assert response.status_code == 204

        response = await client.get(f"/api/announcements/{announcement.id}", headers=headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_statistics(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin
    ):
        """Statistics cover the audience and the representative branch."""
        mumbai = await BranchFactory.create(db_session, org_id=test_org.id, name="Mumbai")
        staff = await UserFactory.create_batch(
            db_session, org_id=test_org.id, count=4, branch_id=mumbai.id
        )
        announcement = await AnnouncementFactory.create(
            db_session,
            org_id=test_org.id,
            created_by=test_admin.id,
            is_company_wide=False,
            branch_ids=[mumbai.id],
        )
        await client.post(
            f"/api/announcements/{announcement.id}/view", headers=auth_headers(staff[0])
        )

        response = await client.get(
            f"/api/announcements/{announcement.id}/statistics", headers=auth_headers(test_admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["view_count"] == 1
        assert data["total_employees"] == 4
        assert data["view_percentage"] == 25
        assert data["branch_stats"] == [
            {"id": mumbai.id, "name": "Mumbai", "total": 4, "viewed": 1, "percentage": 25}
        ]
        assert data["department_stats"] == []

    @pytest.mark.asyncio
    async def test_statistics_forbidden_for_employees(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """Only administrators see statistics."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )

        response = await client.get(
            f"/api/announcements/{announcement.id}/statistics",
            headers=auth_headers(test_employee),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_dispatch_reports_invalid_and_sent(
        self, client: AsyncClient, db_session: AsyncSession, test_org, test_admin, test_employee
    ):
        """Re-dispatch returns the per-recipient report."""
        announcement = await AnnouncementFactory.create(
            db_session, org_id=test_org.id, created_by=test_admin.id
        )

        response = await client.post(
            f"/api/announcements/{announcement.id}/dispatch", headers=auth_headers(test_admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["announcement_id"] == announcement.id
        assert data["attempted"] == 1
        assert data["sent"] == 1
        assert data["failed"] == 0
        assert data["skipped_invalid_email"] == 0
        assert data["results"] == [
            {
                "employee_id": test_employee.id,
                "email": test_employee.email,
                "outcome": "sent",
                "error": None,
            }
        ]


class TestHealth:
    """Health endpoint."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        """The health check needs no authentication."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
