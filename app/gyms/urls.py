from rest_framework.routers import DefaultRouter

from gyms.views import GymViewSet

app_name = "gyms"

router = DefaultRouter()
router.register("", GymViewSet, basename="gym")

urlpatterns = router.urls
