from django.urls import path

from .views import (
    AdminProjectStatsView,
    ProjectDetailView,
    ProjectFileListCreateView,
    ProjectListCreateView,
    ProjectMessageListCreateView,
    ProjectTimelineView,
    TimelineItemView,
)

urlpatterns = [
    path("admin/projects/stats/", AdminProjectStatsView.as_view(), name="admin-project-stats"),
    path("projects/", ProjectListCreateView.as_view(), name="project-list"),
    path("projects/<int:project_id>/", ProjectDetailView.as_view(), name="project-detail"),
    path(
        "projects/<int:project_id>/messages/",
        ProjectMessageListCreateView.as_view(),
        name="project-messages",
    ),
    path(
        "projects/<int:project_id>/files/",
        ProjectFileListCreateView.as_view(),
        name="project-files",
    ),
    path(
        "projects/<int:project_id>/timeline/",
        ProjectTimelineView.as_view(),
        name="project-timeline",
    ),
    path(
        "projects/<int:project_id>/timeline/<int:timeline_id>/",
        TimelineItemView.as_view(),
        name="project-timeline-item",
    ),
]
