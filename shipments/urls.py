from django.urls import path
from . import views

urlpatterns = [
    # Shipments
    path('shipments/', views.ShipmentListCreateView.as_view(), name='shipment-list'),
    path('shipments/quote/', views.ShipmentQuoteView.as_view(), name='shipment-quote'),
    path('shipments/stats/', views.ShipmentStatsView.as_view(), name='shipment-stats'),
    path('shipments/<uuid:pk>/', views.ShipmentDetailView.as_view(), name='shipment-detail'),
    path('shipments/<uuid:pk>/accept/', views.ShipmentAcceptView.as_view(), name='shipment-accept'),
    path('shipments/<uuid:pk>/cancel/', views.ShipmentCancelView.as_view(), name='shipment-cancel'),
    path('shipments/<uuid:pk>/requote/', views.ShipmentRequoteView.as_view(), name='shipment-requote'),
    path('shipments/<uuid:pk>/candidates/', views.ShipmentCandidatesView.as_view(), name='shipment-candidates'),

    # Tracking
    path('shipments/<uuid:pk>/tracking/', views.ShipmentTrackingView.as_view(), name='shipment-tracking'),
    path('tracking/', views.TrackingView.as_view(), name='tracking'),
]
