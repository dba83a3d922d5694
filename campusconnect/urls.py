from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def api_root(request):
    return JsonResponse({"message": "Campus Connect API is running successfully!"})


urlpatterns = [
    path("", api_root, name="api-root"),
    path("django-admin/", admin.site.urls),
    path("api/auth/", include("accounts.urls")),
    path("api/clubs/", include("clubs.urls")),
    path("api/notifications/", include("notifications.urls")),
    path("api/admin/", include("campusconnect.admin_urls")),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
