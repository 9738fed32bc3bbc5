import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='FailedNotification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('container', models.CharField(max_length=255)),
                ('object_key', models.CharField(help_text='Key as delivered (URL-encoded)', max_length=1024)),
                ('error_code', models.CharField(choices=[('MALFORMED_KEY', 'Malformed Key'), ('RECORD_NOT_FOUND', 'Record Not Found'), ('INFERENCE_REJECTED', 'Inference Rejected'), ('STORE_UNAVAILABLE', 'Store Unavailable'), ('INFERENCE_UNAVAILABLE', 'Inference Unavailable')], max_length=30)),
                ('error_message', models.TextField(blank=True)),
                ('failed_step', models.CharField(blank=True, max_length=30)),
                ('attempts', models.PositiveIntegerField(default=1)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('REPLAYED', 'Replayed')], default='PENDING', max_length=20)),
                ('replay_outcome', models.CharField(blank=True, max_length=30)),
                ('replayed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Failed Notification',
                'verbose_name_plural': 'Failed Notifications',
                'ordering': ['-created_at'],
            },
        ),
    ]
