"""
Tests for the gym directory API.
"""

from chat.tests.factories import ConversationFactory
from gyms.models import Gym
from gyms.tests.factories import GymFactory

GYMS_URL = "/api/v1/gyms/"


class TestGymList:
    """GET /api/v1/gyms/"""

    def test_lists_gyms(self, member_client, gym):
        response = member_client.get(GYMS_URL)

        assert response.status_code == 200
        assert [g["name"] for g in response.data["results"]] == ["Iron Temple"]

    def test_filters_by_city(self, member_client, gym):
        GymFactory(name="Pulse", city="Eilat")

        response = member_client.get(GYMS_URL, {"city": "haifa"})

        assert [g["name"] for g in response.data["results"]] == ["Iron Temple"]

    def test_requires_authentication(self, api_client, gym):
        response = api_client.get(GYMS_URL)

        assert response.status_code in (401, 403)


class TestGymCreate:
    """POST /api/v1/gyms/"""

    def test_owner_creates(self, owner_client, gym_owner):
        response = owner_client.post(
            GYMS_URL, {"name": "Pulse", "city": "Eilat"}, format="json"
        )

        assert response.status_code == 201
        assert response.data["owner_id"] == gym_owner.id
        assert response.data["amount_of_reviews"] == 0

    def test_member_forbidden(self, member_client):
        response = member_client.post(GYMS_URL, {"name": "Pulse"}, format="json")

        assert response.status_code == 403
        assert not Gym.objects.exists()


class TestGymUpdate:
    """PATCH /api/v1/gyms/{id}/"""

    def test_rename_moves_chats(self, owner_client, gym, gym_owner, member):
        conversation = ConversationFactory(
            user_lower=gym_owner, user_higher=member, gym_name=gym.name
        )

        response = owner_client.patch(
            f"{GYMS_URL}{gym.id}/", {"name": "Iron Temple North"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["name"] == "Iron Temple North"
        conversation.refresh_from_db()
        assert conversation.gym_name == "Iron Temple North"

    def test_non_owner_forbidden(self, member_client, gym):
        response = member_client.patch(f"{GYMS_URL}{gym.id}/", {"name": "Mine"}, format="json")

        assert response.status_code == 403

    def test_delete_not_allowed(self, owner_client, gym):
        response = owner_client.delete(f"{GYMS_URL}{gym.id}/")

        assert response.status_code == 405
