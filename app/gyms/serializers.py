from rest_framework import serializers

from gyms.models import Gym


class GymSerializer(serializers.ModelSerializer):
    owner = serializers.HiddenField(default=serializers.CurrentUserDefault())
    owner_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Gym
        fields = [
            "id",
            "owner",
            "owner_id",
            "name",
            "city",
            "description",
            "amount_of_reviews",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "amount_of_reviews", "created_at", "updated_at"]
        # Uniqueness per owner is checked by GymService
        validators = []
