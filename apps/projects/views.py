from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.exceptions import Forbidden, NotFound
from apps.cores.permissions import IsAdminRole

from .models import ProjectTimeline
from .selectors import ProjectAccessSelector, ProjectStatsSelector
from .serializers import (
    ProjectCreateSerializer,
    ProjectFileSerializer,
    ProjectMessageSerializer,
    ProjectSerializer,
    ProjectTimelineSerializer,
    ProjectUpdateSerializer,
)
from .services import ProjectService, TimelineService


class ProjectListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = ProjectAccessSelector.for_user(request.user)
        status_param = request.query_params.get("status")
        if status_param:
            qs = qs.filter(status=status_param)
        return Response(ProjectSerializer(qs, many=True).data)

    def post(self, request):
        serializer = ProjectCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = ProjectService.create(creator=request.user, **serializer.validated_data)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


class ProjectDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        return Response(ProjectSerializer(project).data)

    def patch(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)

        serializer = ProjectUpdateSerializer(project, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        ProjectService.update(project, request.user, serializer.validated_data)
        return Response(ProjectSerializer(project).data)

    put = patch

    def delete(self, request, project_id):
        if not request.user.has_admin_access():
            raise Forbidden("Only admins can delete projects.")
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        project.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProjectMessageListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        qs = project.messages.select_related("author")
        return Response(ProjectMessageSerializer(qs, many=True).data)

    def post(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        message = ProjectService.post_message(project, request.user, request.data.get("message"))
        return Response(ProjectMessageSerializer(message).data, status=status.HTTP_201_CREATED)


class ProjectFileListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        return Response(ProjectFileSerializer(project.files.all(), many=True).data)

    def post(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)

        serializer = ProjectFileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project_file = ProjectService.add_file(project, request.user, **serializer.validated_data)
        return Response(ProjectFileSerializer(project_file).data, status=status.HTTP_201_CREATED)


class ProjectTimelineView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        return Response(ProjectTimelineSerializer(project.timeline.all(), many=True).data)

    def post(self, request, project_id):
        if not request.user.has_admin_access():
            raise Forbidden("Only admins can edit the timeline.")
        project = ProjectAccessSelector.get_for_user(project_id, request.user)

        serializer = ProjectTimelineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = TimelineService.create(project, **serializer.validated_data)
        return Response(ProjectTimelineSerializer(item).data, status=status.HTTP_201_CREATED)


class TimelineItemView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def patch(self, request, project_id, timeline_id):
        item = ProjectTimeline.objects.filter(id=timeline_id, project_id=project_id).first()
        if item is None:
            raise NotFound("Timeline entry not found.")

        serializer = ProjectTimelineSerializer(item, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        TimelineService.update(item, serializer.validated_data)
        return Response(ProjectTimelineSerializer(item).data)


class AdminProjectStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return Response(ProjectStatsSelector.summary())
