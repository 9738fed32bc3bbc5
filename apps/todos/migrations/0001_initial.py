import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owner', models.CharField(db_index=True, help_text='Principal from the bearer token', max_length=255)),
                ('task_id', models.CharField(max_length=255)),
                ('title', models.CharField(max_length=255)),
                ('body', models.TextField(blank=True, null=True)),
                ('due_date', models.DateTimeField(blank=True, null=True)),
                ('upload', models.CharField(blank=True, help_text='s3://bucket/key of the uploaded image', max_length=1024, null=True)),
                ('labels', models.JSONField(blank=True, help_text='Detected labels, in detection order', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'unique_together': {('owner', 'task_id')},
            },
        ),
    ]
