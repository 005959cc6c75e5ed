from rest_framework.routers import DefaultRouter

from apps.catalog.views import CarTypeViewSet, ServiceViewSet

router = DefaultRouter()
router.register("services", ServiceViewSet, basename="service")
router.register("car-types", CarTypeViewSet, basename="car-type")

urlpatterns = router.urls
