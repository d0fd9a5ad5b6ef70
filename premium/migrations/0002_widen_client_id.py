from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ('premium', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='premiumcode',
            name='redeemed_by',
            field=models.CharField(blank=True, max_length=255, null=True),
        ),
        migrations.AlterField(
            model_name='accessgrant',
            name='client_id',
            field=models.CharField(max_length=255),
        ),
        migrations.AlterField(
            model_name='failedcodeattempt',
            name='client_id',
            field=models.CharField(blank=True, max_length=255),
        ),
    ]
