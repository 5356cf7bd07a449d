import logging
import secrets

from django.conf import settings
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from jobs.models import BackgroundJob
from jobs.serializers import BackgroundJobSerializer
from jobs.services.queue import get_job_stats, process_next_job, process_pending_jobs, retry_job

logger = logging.getLogger(__name__)


def _token_matches(expected: str, supplied: str | None) -> bool:
    if not expected:
        return True
    return bool(supplied) and secrets.compare_digest(expected, supplied)


class JobProcessView(APIView):
    """Process the oldest pending job. Guarded by JOB_PROCESSOR_TOKEN when set."""

    permission_classes: list = []
    authentication_classes: list = []

    def get(self, request, *args, **kwargs):
        if not _token_matches(settings.JOB_PROCESSOR_TOKEN, request.query_params.get("token")):
            logger.warning("Job processor called with an invalid token")
            return Response({"detail": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED)

        job = process_next_job()
        if job is None:
            return Response({"success": True, "message": "No pending jobs"})
        return Response(
            {
                "success": job.status == BackgroundJob.COMPLETED,
                "job": BackgroundJobSerializer(job).data,
            }
        )

    post = get


class CronJobProcessorView(APIView):
    """Entry point for the scheduler: drains up to JOBS_BATCH_SIZE jobs per call."""

    permission_classes: list = []
    authentication_classes: list = []

    def get(self, request, *args, **kwargs):
        supplied = request.headers.get("Authorization", "")
        if supplied.startswith("Bearer "):
            supplied = supplied[len("Bearer "):]
        if not _token_matches(settings.CRON_SECRET, supplied):
            logger.warning("Cron job processor called without a valid secret")
            return Response({"detail": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED)

        summary = process_pending_jobs(limit=settings.JOBS_BATCH_SIZE)
        if summary["processed"]:
            logger.info("Cron processed %s jobs (%s failed)", summary["processed"], summary["failed"])
        return Response({"success": True, **summary})


class BackgroundJobViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = BackgroundJobSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = BackgroundJob.objects.all().order_by("-created_at")
    filterset_fields = ["status", "job_type"]
    ordering_fields = ["created_at", "completed_at"]

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return Response(get_job_stats())

    @action(detail=True, methods=["post"], url_path="retry")
    def retry(self, request, pk=None):
        job = self.get_object()
        try:
            retry_job(job)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(BackgroundJobSerializer(job).data)
