import django_filters as filters

from gyms.models import Gym


class GymFilter(filters.FilterSet):
    city = filters.CharFilter(field_name="city", lookup_expr="iexact")
    name = filters.CharFilter(field_name="name", lookup_expr="icontains")

    class Meta:
        model = Gym
        fields = ["city", "name", "owner"]
