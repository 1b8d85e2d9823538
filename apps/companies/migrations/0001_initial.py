import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Company',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company_name', models.CharField(db_index=True, help_text='Registered name of the customer organization', max_length=255)),
                ('company_code', models.CharField(help_text='Unique 7-character code identifying the company', max_length=7, unique=True)),
                ('primary_contact', models.CharField(help_text='Name of the primary contact person', max_length=255)),
                ('phone', models.CharField(blank=True, help_text='Primary contact phone number', max_length=50)),
                ('email', models.EmailField(help_text='Primary contact email for this company', max_length=254, unique=True)),
            ],
            options={
                'verbose_name': 'Company',
                'verbose_name_plural': 'Companies',
                'ordering': ['company_name'],
            },
        ),
    ]
