# config/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/', include('apps.users.urls')),
    path('api/rooms/', include('apps.rooms.urls')),
    path('api/payments/', include('apps.payments.urls')),
    path('api/customers/', include('apps.customers.urls')),
    path('api/notifications/', include('apps.notifications.urls')),
]
