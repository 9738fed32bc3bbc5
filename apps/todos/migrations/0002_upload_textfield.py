from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('todos', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='task',
            name='upload',
            field=models.TextField(blank=True, help_text='s3://bucket/key of the uploaded image', null=True),
        ),
    ]
