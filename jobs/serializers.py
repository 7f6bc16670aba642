"""
Job Dispatch Serializers
"""

from rest_framework import serializers

from core.exceptions import InvalidFieldRequestError
from jobs.models import JobDispatch, JobBatch
from jobs.projection import project_job_dispatch


class JobDispatchSerializer(serializers.BaseSerializer):
    """
    Read-only serializer delegating to the job dispatch projection.

    The derived fields to include are taken from context['include'], which
    the view builds from the query string.
    """

    def to_representation(self, instance: JobDispatch):
        include = self.context.get('include')
        try:
            data = project_job_dispatch(instance, include)
        except InvalidFieldRequestError as e:
            raise serializers.ValidationError({'include': [e.message]})

        for field in ('ran_at', 'completed_at', 'timeout_at', 'created_at'):
            if data.get(field) is not None:
                data[field] = serializers.DateTimeField().to_representation(data[field])
        return data


class JobBatchSerializer(serializers.ModelSerializer):
    """Job batch with derived progress"""

    processed_jobs = serializers.IntegerField(read_only=True)
    progress = serializers.FloatField(read_only=True)

    class Meta:
        model = JobBatch
        fields = [
            'id',
            'name',
            'total_jobs',
            'pending_jobs',
            'failed_jobs',
            'failed_job_ids',
            'processed_jobs',
            'progress',
            'created_at',
            'finished_at',
        ]
        read_only_fields = fields
