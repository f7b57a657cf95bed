from django.urls import path
from .views import CustomerDirectoryView

urlpatterns = [
    path('', CustomerDirectoryView.as_view(), name='customer-directory'),
]
