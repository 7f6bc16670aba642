import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_id', models.CharField(blank=True, db_index=True, default='', max_length=64)),
                ('environment', models.CharField(blank=True, default='', max_length=32)),
                ('url', models.CharField(blank=True, default='', max_length=512)),
                ('request', models.JSONField(blank=True, null=True)),
                ('response', models.JSONField(blank=True, null=True)),
                ('logs', models.TextField(blank=True, default='')),
                ('log_line_count', models.PositiveIntegerField(default=0)),
                ('api_log_count', models.PositiveIntegerField(default=0)),
                ('error_log_count', models.PositiveIntegerField(default=0)),
                ('time', models.FloatField(default=0, help_text='Seconds spent on the request')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(blank=True, help_text='Audit request that dispatched the job this request ran', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='audit.auditrequest')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Audit Request',
                'verbose_name_plural': 'Audit Requests',
                'db_table': 'audit_request',
                'ordering': ['-id'],
            },
        ),
        migrations.CreateModel(
            name='ApiLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('api_class', models.CharField(blank=True, default='', max_length=255)),
                ('service_name', models.CharField(blank=True, db_index=True, default='', max_length=255)),
                ('endpoint', models.CharField(blank=True, default='', max_length=255)),
                ('url', models.CharField(blank=True, default='', max_length=512)),
                ('full_url', models.TextField(blank=True, default='')),
                ('method', models.CharField(blank=True, default='', max_length=10)),
                ('status_code', models.PositiveSmallIntegerField(default=0)),
                ('request', models.JSONField(blank=True, null=True)),
                ('response', models.JSONField(blank=True, null=True)),
                ('request_headers', models.JSONField(blank=True, null=True)),
                ('response_headers', models.JSONField(blank=True, null=True)),
                ('stack_trace', models.JSONField(blank=True, null=True)),
                ('run_time_ms', models.PositiveIntegerField(blank=True, null=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('finished_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('audit_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='api_logs', to='audit.auditrequest')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='api_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'API Log',
                'verbose_name_plural': 'API Logs',
                'db_table': 'api_logs',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='ErrorLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('error_class', models.CharField(default='Message', max_length=255)),
                ('code', models.CharField(blank=True, default='0', max_length=64)),
                ('level', models.CharField(choices=[('DEBUG', 'Debug'), ('INFO', 'Info'), ('NOTICE', 'Notice'), ('WARNING', 'Warning'), ('ERROR', 'Error'), ('CRITICAL', 'Critical'), ('ALERT', 'Alert'), ('EMERGENCY', 'Emergency')], default='ERROR', max_length=16)),
                ('message', models.CharField(blank=True, default='', max_length=512)),
                ('file', models.CharField(blank=True, default='', max_length=512)),
                ('line', models.PositiveIntegerField(blank=True, null=True)),
                ('stack_trace', models.JSONField(blank=True, null=True)),
                ('hash', models.CharField(max_length=32, unique=True)),
                ('count', models.PositiveIntegerField(default=1)),
                ('last_seen_at', models.DateTimeField(blank=True, null=True)),
                ('send_notifications', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='audit.errorlog')),
                ('root', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='chain', to='audit.errorlog')),
            ],
            options={
                'verbose_name': 'Error Log',
                'verbose_name_plural': 'Error Logs',
                'db_table': 'error_logs',
                'ordering': ['-last_seen_at'],
            },
        ),
        migrations.CreateModel(
            name='ErrorLogEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('message', models.CharField(blank=True, default='', max_length=512)),
                ('full_message', models.TextField(blank=True, default='')),
                ('data', models.JSONField(blank=True, null=True)),
                ('is_retryable', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('audit_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='error_log_entries', to='audit.auditrequest')),
                ('error_log', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='entries', to='audit.errorlog')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='error_log_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Error Log Entry',
                'verbose_name_plural': 'Error Log Entries',
                'db_table': 'error_log_entry',
                'ordering': ['id'],
            },
        ),
    ]
