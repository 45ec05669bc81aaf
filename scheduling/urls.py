"""
URL routing for the scheduling API.
"""

from django.urls import path
from .views import (
    CampPatternListCreateView,
    RecurrencePatternDetailView,
    PatternGenerateView,
    PatternPreviewView,
    CampSessionListView,
    CampSessionDetailView,
    CampExceptionListView,
    ScheduleExceptionDetailView,
)

urlpatterns = [
    path('camps/<int:camp_id>/patterns/', CampPatternListCreateView.as_view(), name='camp-pattern-list-create'),
    path('patterns/preview/', PatternPreviewView.as_view(), name='pattern-preview'),
    path('patterns/<int:pk>/', RecurrencePatternDetailView.as_view(), name='pattern-detail'),
    path('patterns/<int:pk>/generate/', PatternGenerateView.as_view(), name='pattern-generate'),
    path('camps/<int:camp_id>/sessions/', CampSessionListView.as_view(), name='camp-session-list-create'),
    path('sessions/<int:pk>/', CampSessionDetailView.as_view(), name='session-detail'),
    path('camps/<int:camp_id>/exceptions/', CampExceptionListView.as_view(), name='camp-exception-list-create'),
    path('exceptions/<int:pk>/', ScheduleExceptionDetailView.as_view(), name='exception-detail'),
]
