from django.urls import path
from . import views

urlpatterns = [
    # Profile
    path('profile/', views.UserProfileView.as_view(), name='user-profile'),

    # Driver presence
    path('presence/', views.TransporterPresenceView.as_view(), name='transporter-presence'),
    path('drivers/', views.AvailableDriverListView.as_view(), name='driver-list'),
]
