"""HTTP API tests: routing, response shapes and error mapping."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from skillbank.db.models import User
from tests.factories import make_badge, make_skill, make_user

pytestmark = pytest.mark.asyncio


class TestBadgeEndpoints:
    async def test_list_and_get_badges(self, client: AsyncClient, app_session):
        badge = await make_badge(
            app_session, "Top Tutor", {"average_rating": 4.8}, badge_type="quality", rarity=4, bonus_credits=5,
        )

        listing = await client.get("/api/v1/badges")
        detail = await client.get(f"/api/v1/badges/{badge.id}")

        assert listing.status_code == 200
        assert [b["name"] for b in listing.json()["badges"]] == ["Top Tutor"]
        assert detail.status_code == 200
        body = detail.json()
        assert body["badge_type"] == "quality"
        assert body["requirements"] == {"average_rating": 4.8}

    async def test_unknown_badge_is_404(self, client: AsyncClient):
        response = await client.get("/api/v1/badges/999")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    async def test_check_awards_once(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice", total_sessions_as_teacher=20)
        await make_badge(app_session, "Dedicated Teacher", {"teaching_sessions": 20}, bonus_credits=3)
        await make_badge(app_session, "Knowledge Seeker", {"learning_sessions": 10})

        first = await client.post(f"/api/v1/users/{user.id}/badges/check")
        second = await client.post(f"/api/v1/users/{user.id}/badges/check")

        assert first.status_code == 200
        data = first.json()
        assert [a["badge"]["name"] for a in data["awarded"]] == ["Dedicated Teacher"]
        assert data["credits_awarded"] == 3
        assert second.json()["awarded"] == []
        balance = await app_session.scalar(select(User.credit_balance).where(User.id == user.id))
        assert balance == 3.0

    async def test_check_unknown_user_is_404(self, client: AsyncClient):
        response = await client.post("/api/v1/users/999/badges/check")
        assert response.status_code == 404

    async def test_user_badges_filter_and_pin(self, client: AsyncClient, app_session):
        user = await make_user(
            app_session, "alice",
            total_sessions_as_teacher=12,
            average_rating_as_teacher=5.0,
            average_rating_as_student=4.8,
        )
        tutor = await make_badge(
            app_session, "Top Tutor", {"average_rating": 4.8, "total_sessions": 10}, badge_type="quality",
        )
        await make_badge(app_session, "Dedicated Participant", {"total_sessions": 10}, badge_type="milestone")
        await client.post(f"/api/v1/users/{user.id}/badges/check")

        everything = await client.get(f"/api/v1/users/{user.id}/badges")
        quality = await client.get(f"/api/v1/users/{user.id}/badges", params={"type": "quality"})
        pin = await client.put(f"/api/v1/users/{user.id}/badges/{tutor.id}/pin", json={"pinned": True})
        after = await client.get(f"/api/v1/users/{user.id}/badges", params={"type": "quality"})

        assert everything.json()["total_earned"] == 2
        assert [e["badge"]["name"] for e in quality.json()["earned"]] == ["Top Tutor"]
        assert pin.status_code == 200
        assert after.json()["earned"][0]["is_pinned"] is True

    async def test_invalid_badge_type_is_422(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        response = await client.get(f"/api/v1/users/{user.id}/badges", params={"type": "legendary"})
        assert response.status_code == 422

    async def test_pin_unheld_badge_is_404(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        badge = await make_badge(app_session, "Welcome", {})
        response = await client.put(f"/api/v1/users/{user.id}/badges/{badge.id}/pin", json={"pinned": True})
        assert response.status_code == 404


class TestProgressEndpoints:
    async def test_update_then_read(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        skill = await make_skill(app_session)
        url = f"/api/v1/users/{user.id}/skills/{skill.id}/progress"

        created = await client.put(url, json={"sessions_completed": 3, "hours_spent": 0})
        regressed = await client.put(url, json={"sessions_completed": 2, "hours_spent": 0})
        fetched = await client.get(url)

        assert created.status_code == 200
        body = created.json()
        assert body["percentage"] == 60.0
        assert body["level"] == "beginner"
        assert [m["is_achieved"] for m in body["milestones"]] == [True, True, True, False, False]
        assert regressed.json()["percentage"] == 40.0
        assert [m["is_achieved"] for m in fetched.json()["milestones"]] == [True, True, True, False, False]

    async def test_missing_progress_is_404(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        skill = await make_skill(app_session)
        response = await client.get(f"/api/v1/users/{user.id}/skills/{skill.id}/progress")
        assert response.status_code == 404

    async def test_unknown_skill_is_404(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        response = await client.put(
            f"/api/v1/users/{user.id}/skills/999/progress",
            json={"sessions_completed": 1, "hours_spent": 1},
        )
        assert response.status_code == 404

    async def test_negative_counters_are_422(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        skill = await make_skill(app_session)
        response = await client.put(
            f"/api/v1/users/{user.id}/skills/{skill.id}/progress",
            json={"sessions_completed": -1, "hours_spent": 0},
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    async def test_summary(self, client: AsyncClient, app_session):
        user = await make_user(app_session, "alice")
        python = await make_skill(app_session, "Python")
        guitar = await make_skill(app_session, "Guitar")
        await client.put(
            f"/api/v1/users/{user.id}/skills/{python.id}/progress",
            json={"sessions_completed": 1, "hours_spent": 2},
        )
        await client.put(
            f"/api/v1/users/{user.id}/skills/{guitar.id}/progress",
            json={"sessions_completed": 2, "hours_spent": 4},
        )

        response = await client.get(f"/api/v1/users/{user.id}/progress/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["total_skills"] == 2
        assert data["average_percentage"] == 45.0
        assert data["total_hours"] == 6.0


class TestLeaderboardEndpoints:
    async def test_sessions_leaderboard(self, client: AsyncClient, app_session):
        alice = await make_user(app_session, "alice", total_sessions_as_teacher=3)
        bob = await make_user(app_session, "bob", total_sessions_as_teacher=8)
        await make_user(app_session, "carol")

        response = await client.get("/api/v1/leaderboard/sessions", params={"limit": 0})

        assert response.status_code == 200
        entries = response.json()["entries"]
        assert [(e["rank"], e["user_id"]) for e in entries] == [(1, bob.id), (2, alice.id)]

    async def test_badges_leaderboard_counts_awards(self, client: AsyncClient, app_session):
        alice = await make_user(app_session, "alice", total_sessions_as_teacher=1)
        await make_user(app_session, "bob")
        await make_badge(app_session, "First Steps", {"total_sessions": 1})
        await client.post(f"/api/v1/users/{alice.id}/badges/check")

        response = await client.get("/api/v1/leaderboard/badges")

        assert response.json()["entries"] == [{"rank": 1, "user_id": alice.id, "score": 1.0}]

    async def test_unknown_dimension_is_422(self, client: AsyncClient):
        response = await client.get("/api/v1/leaderboard/hashrate")
        assert response.status_code == 422
        assert "dimension" in response.json()["detail"]


class TestMiddleware:
    async def test_request_id_is_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-Id": "abc-123"})
        assert response.headers["X-Request-Id"] == "abc-123"

    async def test_request_id_is_generated(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.headers["X-Request-Id"]
