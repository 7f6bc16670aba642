import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('audit', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='JobBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('total_jobs', models.PositiveIntegerField(default=0)),
                ('pending_jobs', models.PositiveIntegerField(default=0)),
                ('failed_jobs', models.PositiveIntegerField(default=0)),
                ('failed_job_ids', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('finished_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Job Batch',
                'verbose_name_plural': 'Job Batches',
                'db_table': 'job_batches',
                'ordering': ['-id'],
            },
        ),
        migrations.CreateModel(
            name='JobDispatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ref', models.CharField(max_length=64, unique=True)),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('status', models.CharField(choices=[('Pending', 'Pending'), ('Running', 'Running'), ('Complete', 'Complete'), ('Exception', 'Exception'), ('Aborted', 'Aborted'), ('Failed', 'Failed'), ('Timeout', 'Timeout')], db_index=True, default='Pending', max_length=16)),
                ('count', models.PositiveIntegerField(default=1, help_text='Number of execution attempts')),
                ('ran_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('timeout_at', models.DateTimeField(blank=True, null=True)),
                ('run_time_ms', models.PositiveBigIntegerField(blank=True, null=True)),
                ('data', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('dispatch_audit_request', models.ForeignKey(blank=True, db_constraint=False, help_text='Audit request that queued the job', null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='audit.auditrequest')),
                ('job_batch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='job_dispatches', to='jobs.jobbatch')),
                ('running_audit_request', models.ForeignKey(blank=True, db_constraint=False, help_text='Audit request the job ran under', null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='audit.auditrequest')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='job_dispatches', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Job Dispatch',
                'verbose_name_plural': 'Job Dispatches',
                'db_table': 'job_dispatch',
                'ordering': ['-id'],
                'indexes': [models.Index(fields=['ref', 'status'], name='job_dispatch_ref_status_idx'), models.Index(fields=['status', 'timeout_at'], name='job_dispatch_timeout_idx')],
            },
        ),
    ]
