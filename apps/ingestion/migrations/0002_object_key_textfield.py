from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('ingestion', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='failednotification',
            name='object_key',
            field=models.TextField(help_text='Key as delivered (URL-encoded)'),
        ),
        migrations.AlterField(
            model_name='failednotification',
            name='error_code',
            field=models.CharField(choices=[('MALFORMED_KEY', 'Malformed Key'), ('RECORD_NOT_FOUND', 'Record Not Found'), ('INFERENCE_REJECTED', 'Inference Rejected'), ('STORE_UNAVAILABLE', 'Store Unavailable'), ('INFERENCE_UNAVAILABLE', 'Inference Unavailable'), ('STORE_REJECTED', 'Store Rejected')], max_length=30),
        ),
    ]
