import uuid

import django.db.models.deletion
import simple_history.models
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [('new', 'New'), ('open', 'Open'), ('in_progress', 'In Progress'), ('closed', 'Closed')]
CATEGORY_CHOICES = [
    ('policy_inquiry', 'Policy Inquiry'),
    ('claims_processing', 'Claims Processing'),
    ('account_update', 'Account Update'),
    ('technical_support', 'Technical Support'),
    ('billing_inquiry', 'Billing Inquiry'),
    ('other', 'Other'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('companies', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ServiceRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('service_queue_id', models.CharField(help_text='Human-readable ticket reference', max_length=40, unique=True)),
                ('client', models.CharField(help_text='Name of the requester', max_length=255)),
                ('task_status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='new', max_length=20)),
                ('service_request_narrative', models.TextField()),
                ('service_queue_category', models.CharField(choices=CATEGORY_CHOICES, max_length=30)),
                ('due_date', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('assigned_by', models.ForeignKey(help_text='User who created or assigned the request', on_delete=django.db.models.deletion.PROTECT, related_name='created_requests', to=settings.AUTH_USER_MODEL)),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_requests', to=settings.AUTH_USER_MODEL)),
                ('company', models.ForeignKey(help_text='Company this request belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='service_requests', to='companies.company')),
                ('modified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='modified_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['company', 'task_status'], name='sr_company_status_idx'),
                    models.Index(fields=['company', 'created_at'], name='sr_company_created_idx'),
                    models.Index(fields=['assigned_to', 'task_status'], name='sr_assignee_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='HistoricalServiceRequest',
            fields=[
                ('id', models.UUIDField(db_index=True, default=uuid.uuid4, editable=False)),
                ('created_at', models.DateTimeField(blank=True, db_index=True, editable=False)),
                ('updated_at', models.DateTimeField(blank=True, editable=False)),
                ('service_queue_id', models.CharField(db_index=True, help_text='Human-readable ticket reference', max_length=40)),
                ('client', models.CharField(help_text='Name of the requester', max_length=255)),
                ('task_status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='new', max_length=20)),
                ('service_request_narrative', models.TextField()),
                ('service_queue_category', models.CharField(choices=CATEGORY_CHOICES, max_length=30)),
                ('due_date', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('history_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('history_date', models.DateTimeField(db_index=True)),
                ('history_change_reason', models.CharField(max_length=100, null=True)),
                ('history_type', models.CharField(choices=[('+', 'Created'), ('~', 'Changed'), ('-', 'Deleted')], max_length=1)),
                ('assigned_by', models.ForeignKey(blank=True, db_constraint=False, help_text='User who created or assigned the request', null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('assigned_to', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('company', models.ForeignKey(blank=True, db_constraint=False, help_text='Company this request belongs to', null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to='companies.company')),
                ('history_user', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('modified_by', models.ForeignKey(blank=True, db_constraint=False, null=True, on_delete=django.db.models.deletion.DO_NOTHING, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'historical service request',
                'verbose_name_plural': 'historical service requests',
                'ordering': ('-history_date', '-history_id'),
                'get_latest_by': ('history_date', 'history_id'),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name='RequestNote',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('note_content', models.TextField()),
                ('is_internal', models.BooleanField(default=False, help_text='Internal notes are hidden from customer-facing reads')),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='request_notes', to=settings.AUTH_USER_MODEL)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notes', to='service_requests.servicerequest')),
            ],
            options={
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['request', 'created_at'], name='note_request_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RequestAttachment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('file_name', models.CharField(help_text='Original file name shown to users', max_length=255)),
                ('file_path', models.CharField(help_text='Storage key of the stored blob', max_length=500, unique=True)),
                ('file_size', models.PositiveIntegerField()),
                ('mime_type', models.CharField(max_length=100)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attachments', to='service_requests.servicerequest')),
                ('uploaded_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='request_attachments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['created_at'],
            },
        ),
    ]
