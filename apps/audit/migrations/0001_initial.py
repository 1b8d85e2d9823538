import uuid

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
            name='ActivityLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('type', models.CharField(choices=[
                    ('request_created', 'Request Created'),
                    ('request_updated', 'Request Updated'),
                    ('request_assigned', 'Request Assigned'),
                    ('note_added', 'Note Added'),
                    ('attachment_uploaded', 'Attachment Uploaded'),
                    ('status_changed', 'Status Changed'),
                    ('user_created', 'User Created'),
                    ('user_updated', 'User Updated'),
                    ('user_deleted', 'User Deleted'),
                    ('agent_created', 'Agent Created'),
                    ('company_created', 'Company Created'),
                    ('company_updated', 'Company Updated'),
                    ('company_deleted', 'Company Deleted'),
                ], db_index=True, max_length=50)),
                ('description', models.TextField()),
                ('company_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('service_request_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('user', models.ForeignKey(blank=True, help_text='User who performed the action', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activity_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Activity log',
                'verbose_name_plural': 'Activity logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['company_id', '-created_at'], name='activity_company_created_idx'),
                    models.Index(fields=['service_request_id', '-created_at'], name='activity_request_created_idx'),
                ],
            },
        ),
    ]
