# tests/test_interactions.py
"""Tests for like/repost toggles and the counters they keep in step with the ledger."""

from unittest.mock import patch

import pytest

from bridgehead.db import get_session
from bridgehead.errors import InteractionConflictError, NotFoundError
from bridgehead.models import ContentStatus, Interaction, InteractionType
from bridgehead.services import interactions
from bridgehead.services.counters import reconcile_counters
from bridgehead.services.interactions import toggle_like, toggle_repost

from conftest import BASE_TIME, auth_headers, create_post_row, create_user, load_post


def ledger_rows(post_id, kind=InteractionType.like):
    with get_session() as db:
        return db.query(Interaction).filter(Interaction.post_id == post_id, Interaction.type == kind).count()


class TestToggleService:
    """toggle_like / toggle_repost called directly."""

    def test_like_then_unlike(self, post_id, other_user_id):
        with get_session() as db:
            result = toggle_like(db, post_id, other_user_id)
        assert result.active is True
        assert result.message == "Liked"
        assert load_post(post_id)["likes_count"] == 1
        assert ledger_rows(post_id) == 1

        with get_session() as db:
            result = toggle_like(db, post_id, other_user_id)
        assert result.active is False
        assert result.message == "Unliked"
        assert load_post(post_id)["likes_count"] == 0
        assert ledger_rows(post_id) == 0

    def test_counter_tracks_distinct_likers(self, post_id, user_id, other_user_id):
        with get_session() as db:
            toggle_like(db, post_id, user_id)
            toggle_like(db, post_id, other_user_id)
        assert load_post(post_id)["likes_count"] == 2
        assert ledger_rows(post_id) == 2

    def test_repost_is_independent_of_like(self, post_id, other_user_id):
        with get_session() as db:
            liked = toggle_like(db, post_id, other_user_id)
            reposted = toggle_repost(db, post_id, other_user_id)
        assert (liked.message, reposted.message) == ("Liked", "Reposted")

        counts = load_post(post_id)
        assert counts["likes_count"] == 1
        assert counts["reposts_count"] == 1

        with get_session() as db:
            result = toggle_repost(db, post_id, other_user_id)
        assert result.message == "Unreposted"
        counts = load_post(post_id)
        assert counts["likes_count"] == 1
        assert counts["reposts_count"] == 0

    def test_unknown_post(self, other_user_id):
        with pytest.raises(NotFoundError):
            with get_session() as db:
                toggle_like(db, 4242, other_user_id)

    def test_inactive_post_cannot_be_liked(self, user_id, other_user_id):
        flagged = create_post_row(user_id, BASE_TIME, status=ContentStatus.flagged)
        with pytest.raises(NotFoundError):
            with get_session() as db:
                toggle_like(db, flagged, other_user_id)
        assert ledger_rows(flagged) == 0

    def test_unlike_never_drives_counter_negative(self, user_id, other_user_id):
        # ledger row present but the counter already drifted to zero
        post_id = create_post_row(user_id, BASE_TIME, likes_count=0)
        with get_session() as db:
            db.add(Interaction(post_id=post_id, user_id=other_user_id, type=InteractionType.like))

        with get_session() as db:
            result = toggle_like(db, post_id, other_user_id)

        assert result.active is False
        assert load_post(post_id)["likes_count"] == 0
        assert ledger_rows(post_id) == 0

    def test_duplicate_insert_is_a_conflict(self, post_id, other_user_id):
        """A racing request that missed the existing row is rejected by the unique constraint."""
        with get_session() as db:
            toggle_like(db, post_id, other_user_id)

        with patch("bridgehead.services.interactions.find_interaction", return_value=None):
            with pytest.raises(InteractionConflictError):
                with get_session() as db:
                    toggle_like(db, post_id, other_user_id)

        assert load_post(post_id)["likes_count"] == 1
        assert ledger_rows(post_id) == 1

    def test_sequential_toggles_settle_on_ledger(self, post_id, user_id, other_user_id):
        third = create_user("Linus Builder")
        sequence = [user_id, other_user_id, third, user_id, third, other_user_id, other_user_id, third]
        for uid in sequence:
            with get_session() as db:
                toggle_like(db, post_id, uid)

        with get_session() as db:
            assert reconcile_counters(db, post_id=post_id) == []
        assert load_post(post_id)["likes_count"] == ledger_rows(post_id) == 2

    def test_racing_unlike_does_not_double_decrement(self, post_id, user_id, other_user_id):
        """A second unlike commits between this request's read and its delete."""
        third = create_user("Linus Builder")
        for uid in (user_id, other_user_id, third):
            with get_session() as db:
                toggle_like(db, post_id, uid)

        real_find = interactions.find_interaction
        raced = []

        def find_then_lose_race(db, pid, uid, kind):
            row = real_find(db, pid, uid, kind)
            if not raced:
                raced.append(uid)
                with get_session() as competing:
                    toggle_like(competing, pid, uid)
            return row

        with patch("bridgehead.services.interactions.find_interaction", side_effect=find_then_lose_race):
            with pytest.raises(InteractionConflictError):
                with get_session() as db:
                    toggle_like(db, post_id, user_id)

        assert raced == [user_id]
        assert load_post(post_id)["likes_count"] == ledger_rows(post_id) == 2
        with get_session() as db:
            assert reconcile_counters(db, post_id=post_id) == []

    def test_counter_failure_rolls_back_ledger_write(self, post_id, other_user_id):
        with patch("bridgehead.services.interactions.bump_counter", side_effect=RuntimeError("db went away")):
            with pytest.raises(RuntimeError):
                with get_session() as db:
                    toggle_like(db, post_id, other_user_id)

        assert ledger_rows(post_id) == 0
        assert load_post(post_id)["likes_count"] == 0


class TestLikeEndpoint:
    """PUT /api/community/posts/{id}/like"""

    def test_like_scenario(self, client, post_id, other_user_id):
        headers = auth_headers(other_user_id)

        response = client.put(f"/api/community/posts/{post_id}/like", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Liked", "isLiked": True}
        assert load_post(post_id)["likes_count"] == 1

        response = client.put(f"/api/community/posts/{post_id}/like", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Unliked", "isLiked": False}
        assert load_post(post_id)["likes_count"] == 0

    def test_requires_token(self, client, post_id):
        response = client.put(f"/api/community/posts/{post_id}/like")
        assert response.status_code == 401
        assert response.json()["message"] == "No token, authorization denied"
        assert load_post(post_id)["likes_count"] == 0

    def test_unknown_post_is_404(self, client, headers):
        response = client.put("/api/community/posts/9999/like", headers=headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Post 9999 not found"

    def test_conflict_is_409(self, client, post_id, other_user_id):
        headers = auth_headers(other_user_id)
        client.put(f"/api/community/posts/{post_id}/like", headers=headers)

        with patch("bridgehead.services.interactions.find_interaction", return_value=None):
            response = client.put(f"/api/community/posts/{post_id}/like", headers=headers)

        assert response.status_code == 409
        assert load_post(post_id)["likes_count"] == 1

    def test_stale_unlike_is_409(self, client, post_id, other_user_id):
        headers = auth_headers(other_user_id)
        client.put(f"/api/community/posts/{post_id}/like", headers=headers)
        real_find = interactions.find_interaction
        raced = []

        def find_then_lose_race(db, pid, uid, kind):
            row = real_find(db, pid, uid, kind)
            if not raced:
                raced.append(uid)
                with get_session() as competing:
                    toggle_like(competing, pid, uid)
            return row

        with patch("bridgehead.services.interactions.find_interaction", side_effect=find_then_lose_race):
            response = client.put(f"/api/community/posts/{post_id}/like", headers=headers)

        assert response.status_code == 409
        assert load_post(post_id)["likes_count"] == ledger_rows(post_id) == 0

    def test_post_reflects_like_state(self, client, post_id, other_user_id):
        headers = auth_headers(other_user_id)
        client.put(f"/api/community/posts/{post_id}/like", headers=headers)

        body = client.get(f"/api/community/posts/{post_id}", headers=headers).json()
        assert body["isLiked"] is True
        assert body["likesCount"] == 1


class TestRepostEndpoint:
    """PUT /api/community/posts/{id}/repost"""

    def test_repost_scenario(self, client, post_id, other_user_id):
        headers = auth_headers(other_user_id)

        response = client.put(f"/api/community/posts/{post_id}/repost", headers=headers)
        assert response.json() == {"message": "Reposted", "isReposted": True}
        assert load_post(post_id)["reposts_count"] == 1

        response = client.put(f"/api/community/posts/{post_id}/repost", headers=headers)
        assert response.json() == {"message": "Unreposted", "isReposted": False}
        assert load_post(post_id)["reposts_count"] == 0

    def test_requires_token(self, client, post_id):
        assert client.put(f"/api/community/posts/{post_id}/repost").status_code == 401
