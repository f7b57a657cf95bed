from django.urls import path
from .views import PaymentAggregateView

urlpatterns = [
    path('', PaymentAggregateView.as_view(), name='payment-aggregate'),
]
