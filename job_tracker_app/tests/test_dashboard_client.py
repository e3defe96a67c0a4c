"""
Test the dashboard client against the running API, plus the list helpers
that back the dashboard table.
"""
from unittest.mock import Mock

import pytest
import requests

from clients.channel import DASHBOARD_SOURCE, LOGIN, LOGOUT, AuthChannel, ExtensionListener, TokenStore
from clients.dashboard.client import DashboardClient
from clients.dashboard.view import Page, filter_applications, paginate, sort_applications, summarize
from clients.http import ApiError, AuthenticationError, ConnectivityError, DuplicateApplicationError


@pytest.fixture
def dashboard(test_client, test_user, token_for):
    return DashboardClient("http://testserver", token=token_for(test_user), session=test_client)


class TestDashboardClient:
    def test_create_and_list(self, dashboard):
        created = dashboard.create_application(company_name="Acme Corp", job_title="Backend Engineer")
        dashboard.create_application(company_name="Globex", job_title="Data Engineer", status="Interviewing")

        records, total = dashboard.list_applications()
        interviewing, _ = dashboard.list_applications(status="Interviewing")

        assert created["company_name"] == "Acme Corp"
        assert total == 2
        assert {record["company_name"] for record in records} == {"Acme Corp", "Globex"}
        assert [record["company_name"] for record in interviewing] == ["Globex"]

    def test_update_status_and_notes(self, dashboard):
        created = dashboard.create_application(company_name="Acme Corp", job_title="Backend Engineer")

        dashboard.update_status(created["id"], "Offered")
        updated = dashboard.update_notes(created["id"], "Negotiating salary")

        assert updated["status"] == "Offered"
        assert updated["notes"] == "Negotiating salary"
        assert dashboard.get_application(created["id"])["status"] == "Offered"

    def test_delete_application(self, dashboard):
        created = dashboard.create_application(company_name="Acme Corp", job_title="Backend Engineer")

        deleted = dashboard.delete_application(created["id"])

        assert deleted["id"] == created["id"]
        with pytest.raises(ApiError) as exc_info:
            dashboard.get_application(created["id"])
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Application not found"

    def test_duplicate_raises_with_existing_record(self, dashboard):
        created = dashboard.create_application(company_name="Acme Corp", job_title="Backend Engineer")

        with pytest.raises(DuplicateApplicationError) as exc_info:
            dashboard.create_application(company_name="acme corp", job_title="backend engineer")

        assert exc_info.value.status_code == 409
        assert exc_info.value.existing["id"] == created["id"]

    def test_validation_error(self, dashboard):
        with pytest.raises(ApiError) as exc_info:
            dashboard.create_application(company_name="", job_title="Backend Engineer")

        assert exc_info.value.status_code == 400
        assert exc_info.value.payload["errors"][0]["field"] == "company_name"

    def test_stats_me_and_export(self, dashboard, test_user):
        dashboard.create_application(company_name="Acme Corp", job_title="Backend Engineer", status="Rejected")

        assert dashboard.stats()["rejected"] == 1
        assert dashboard.me()["email"] == test_user.email
        assert dashboard.export_csv().splitlines()[1].startswith("Acme Corp,Backend Engineer")

    def test_missing_token_raises_authentication_error(self, test_client):
        dashboard = DashboardClient("http://testserver", session=test_client)

        with pytest.raises(AuthenticationError) as exc_info:
            dashboard.list_applications()

        assert exc_info.value.status_code == 401

    def test_timeout_is_not_an_authentication_error(self):
        session = Mock()
        session.request.side_effect = requests.Timeout("slow")
        dashboard = DashboardClient("http://backend.test", token="t", timeout=3, session=session)

        with pytest.raises(ConnectivityError) as exc_info:
            dashboard.me()

        assert not isinstance(exc_info.value, AuthenticationError)


class TestLoginBroadcast:
    def test_announce_login_reaches_extension(self, test_client):
        channel = AuthChannel("http://dashboard.test")
        store = TokenStore()
        ExtensionListener(channel, store)
        dashboard = DashboardClient("http://testserver", channel=channel, session=test_client)

        dashboard.announce_login("abc.def.ghi")

        assert dashboard.token == "abc.def.ghi"
        assert store.token == "abc.def.ghi"

    def test_complete_login_trades_cookie_for_token(self, test_client, test_user, token_for):
        channel = AuthChannel("http://dashboard.test")
        store = TokenStore()
        ExtensionListener(channel, store)
        cookie_token = token_for(test_user)
        test_client.cookies.set("auth_token", cookie_token)
        dashboard = DashboardClient("http://testserver", channel=channel, session=test_client)

        token = dashboard.complete_login()

        assert token == cookie_token
        assert store.token == cookie_token
        assert dashboard.me()["id"] == test_user.id

    def test_logout_clears_both_sides(self, dashboard):
        channel = AuthChannel("http://dashboard.test")
        store = TokenStore()
        store.set_token(dashboard.token)
        ExtensionListener(channel, store)
        dashboard.channel = channel
        seen = []
        channel.subscribe(seen.append)

        dashboard.logout()

        assert dashboard.token is None
        assert store.token is None
        assert [(message.type, message.source) for message in seen] == [(LOGOUT, DASHBOARD_SOURCE)]

    def test_logout_broadcasts_even_when_backend_is_down(self):
        channel = AuthChannel("http://dashboard.test")
        store = TokenStore()
        store.set_token("abc.def.ghi")
        ExtensionListener(channel, store)
        session = Mock()
        session.request.side_effect = requests.ConnectionError("refused")
        dashboard = DashboardClient("http://backend.test", token="abc.def.ghi", channel=channel, session=session)

        with pytest.raises(ConnectivityError):
            dashboard.logout()

        assert store.token is None
        assert dashboard.token is None

    def test_login_message_type(self):
        channel = AuthChannel("http://dashboard.test")
        seen = []
        channel.subscribe(seen.append)

        DashboardClient("http://backend.test", channel=channel, session=Mock()).announce_login("tok")

        assert seen[0].type == LOGIN
        assert seen[0].origin == "http://dashboard.test"


RECORDS = [
    {"id": 1, "company_name": "Acme", "job_title": "Backend Engineer", "status": "Applied",
     "location": "Berlin", "notes": "", "date_applied": "2024-01-10T00:00:00"},
    {"id": 2, "company_name": "globex", "job_title": "Frontend Engineer", "status": "Interviewing",
     "location": "Remote", "notes": "Referral from Sam", "date_applied": "2024-03-01T00:00:00"},
    {"id": 3, "company_name": "Initech", "job_title": "Data Analyst", "status": "Ignored",
     "location": "", "notes": None, "date_applied": "2024-02-15T00:00:00"},
]


class TestDashboardView:
    def test_filter_by_search_and_status(self):
        assert [r["id"] for r in filter_applications(RECORDS, search="ENGINEER")] == [1, 2]
        assert [r["id"] for r in filter_applications(RECORDS, search="referral")] == [2]
        assert [r["id"] for r in filter_applications(RECORDS, search="engineer", status="Applied")] == [1]
        assert filter_applications(RECORDS) == RECORDS

    def test_sort(self):
        assert [r["id"] for r in sort_applications(RECORDS)] == [2, 3, 1]
        assert [r["id"] for r in sort_applications(RECORDS, key="company_name", descending=False)] == [1, 2, 3]

    def test_paginate(self):
        page = paginate(RECORDS, page=2, per_page=2)

        assert page == Page(items=[RECORDS[2]], page=2, per_page=2, total=3)
        assert page.pages == 2
        assert page.has_previous and not page.has_next

    def test_paginate_clamps_out_of_range_pages(self):
        assert paginate(RECORDS, page=9, per_page=2).page == 2
        assert paginate([], page=3).page == 1

    def test_summarize_excludes_ignored_from_total(self):
        summary = summarize(RECORDS)

        assert summary["total"] == 2
        assert summary["applied"] == 1
        assert summary["interviewing"] == 1
        assert summary["ignored"] == 1
