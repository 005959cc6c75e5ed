from rest_framework.routers import DefaultRouter

from apps.washes.views import WashViewSet

router = DefaultRouter()
router.register("washes", WashViewSet, basename="wash")

urlpatterns = router.urls
