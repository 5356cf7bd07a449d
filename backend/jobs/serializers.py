from rest_framework import serializers

from jobs.models import BackgroundJob


class BackgroundJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = BackgroundJob
        fields = [
            "id",
            "job_type",
            "job_data",
            "status",
            "attempts",
            "result",
            "created_at",
            "started_at",
            "completed_at",
        ]
        read_only_fields = fields
