"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from delivery.api.views import DeliveryFeeView

urlpatterns = [
    path("delivery-fee", DeliveryFeeView.as_view(), name="delivery-fee"),
]
