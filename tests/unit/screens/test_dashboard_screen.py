"""Tests for DashboardScreen."""

from __future__ import annotations

import pytest

from judging.screens import DashboardScreen

RANKINGS = {
    "success": True,
    "rankings": [{"stand_name": name} for name in ("Robotik", "Chemie", "Physik", "Biologie")],
}
ROOMS = {
    "success": True,
    "room_inspections": [
        {"room_id": 1, "room_name": "A101", "inspection_timestamp": None},
        {"room_id": 2, "room_name": "A102", "inspection_timestamp": "2026-03-01 09:00"},
    ],
}


@pytest.fixture
def dashboard_server(server, admin_settings_body):
    server.json("GET", "/api/admin_settings", admin_settings_body)
    server.json("GET", "/api/my_evaluations", {"success": True, "evaluations": [{"stand_id": 1}, {"stand_id": 2}]})
    server.json("GET", "/api/ranking_data", RANKINGS)
    server.json("GET", "/api/room_inspections", ROOMS)
    return server


class TestDashboard:
    @pytest.mark.asyncio
    async def test_administrator_sees_everything(self, dashboard_server, client, admin_context):
        screen = DashboardScreen(admin_context, client)

        await screen.refresh()

        summary = screen.summary
        assert summary.my_evaluations_count == 2
        assert [r["stand_name"] for r in summary.top_rankings] == ["Robotik", "Chemie", "Physik"]
        assert summary.open_rooms_count == 1
        assert screen.app_settings.title == "Projekttag 2026"
        assert screen.state.error is None
        assert screen.shows_evaluation_cards and screen.shows_inspection_card and screen.shows_warnings_card

    @pytest.mark.asyncio
    async def test_bewerter_skips_room_inspections_silently(self, dashboard_server, client, bewerter_context):
        screen = DashboardScreen(bewerter_context, client)

        await screen.refresh()

        assert dashboard_server.sent("GET", "/api/room_inspections") == []
        assert screen.summary.open_rooms_count is None
        assert screen.summary.my_evaluations_count == 2
        assert screen.state.error is None
        assert not screen.shows_inspection_card

    @pytest.mark.asyncio
    async def test_inspektor_skips_my_evaluations(self, dashboard_server, client, inspektor_context):
        screen = DashboardScreen(inspektor_context, client)

        await screen.refresh()

        assert dashboard_server.sent("GET", "/api/my_evaluations") == []
        assert screen.summary.my_evaluations_count is None
        assert screen.summary.open_rooms_count == 1
        assert len(screen.summary.top_rankings) == 3

    @pytest.mark.asyncio
    async def test_one_failure_keeps_other_cards(self, server, client, admin_context):
        server.json("GET", "/api/my_evaluations", {"success": True, "evaluations": []})
        server.json("GET", "/api/ranking_data", {"message": "Ranking nicht verfügbar"}, status=500)
        server.json("GET", "/api/room_inspections", ROOMS)
        screen = DashboardScreen(admin_context, client)

        await screen.refresh()

        assert screen.summary.my_evaluations_count == 0
        assert screen.summary.top_rankings == ()
        assert screen.summary.open_rooms_count == 1
        assert screen.state.error == "Ranking nicht verfügbar"

    @pytest.mark.asyncio
    async def test_server_403_is_reported(self, server, client, admin_context):
        server.json("GET", "/api/my_evaluations", {}, status=404)
        server.json("GET", "/api/ranking_data", RANKINGS)
        server.json("GET", "/api/room_inspections", {"message": "Sitzung abgelaufen"}, status=403)
        screen = DashboardScreen(admin_context, client)

        await screen.refresh()

        assert screen.state.error == "Sitzung abgelaufen"

    @pytest.mark.asyncio
    async def test_each_screen_has_its_own_summary(self, dashboard_server, client, admin_context, inspektor_context):
        loaded = DashboardScreen(admin_context, client)
        fresh = DashboardScreen(inspektor_context, client)

        await loaded.refresh()

        assert "summary" not in DashboardScreen.__dict__
        assert loaded.summary is not fresh.summary
        assert loaded.summary.my_evaluations_count == 2
        assert fresh.summary.my_evaluations_count is None
        assert fresh.summary.top_rankings == ()
