# Generated manually for DeTransport Ads

from django.db import migrations, models
from django.utils import timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AdSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.BigIntegerField(db_index=True, help_text='Telegram user id of the submitter')),
                ('customer_name', models.CharField(max_length=128)),
                ('title', models.CharField(max_length=128)),
                ('description', models.TextField()),
                ('link_url', models.URLField(max_length=2048)),
                ('contact_info', models.CharField(max_length=255)),
                ('media_url', models.URLField(blank=True, max_length=2048, null=True)),
                ('tariff_days', models.PositiveIntegerField()),
                ('price_amount', models.PositiveIntegerField(help_text='Price in UAH')),
                ('moderation_status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('disabled', 'Disabled')], db_index=True, default='pending', max_length=16)),
                ('payment_status', models.CharField(choices=[('unpaid', 'Unpaid'), ('waiting_review', 'Waiting review'), ('paid', 'Paid')], db_index=True, default='unpaid', max_length=16)),
                ('payment_proof_url', models.URLField(blank=True, max_length=2048, null=True)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Ad Submission',
                'verbose_name_plural': 'Ad Submissions',
                'db_table': 'ads_requests',
                'ordering': ['-id'],
            },
        ),
        migrations.AddIndex(
            model_name='adsubmission',
            index=models.Index(fields=['moderation_status', 'start_date', 'end_date'], name='ads_mod_window_idx'),
        ),
    ]
