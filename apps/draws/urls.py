from rest_framework.routers import DefaultRouter

from apps.draws.views import DailyCandidateViewSet, DailyWinnerViewSet

router = DefaultRouter()
router.register("draws/winners", DailyWinnerViewSet, basename="daily-winner")
router.register("draws/candidates", DailyCandidateViewSet, basename="daily-candidate")

urlpatterns = router.urls
