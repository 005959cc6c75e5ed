from rest_framework.routers import DefaultRouter

from apps.promotions.views import FeaturedVehicleViewSet, PromotionViewSet

router = DefaultRouter()
router.register("promotions", PromotionViewSet, basename="promotion")
router.register("featured-vehicles", FeaturedVehicleViewSet, basename="featured-vehicle")

urlpatterns = router.urls
