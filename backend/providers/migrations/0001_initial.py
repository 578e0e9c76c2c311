import django.core.validators
import django.db.models.deletion
import providers.models
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('services', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ServiceProvider',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('phone_number', models.CharField(max_length=20, unique=True)),
                ('street', models.CharField(blank=True, max_length=255)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('state', models.CharField(blank=True, max_length=100)),
                ('pincode', models.CharField(blank=True, max_length=20)),
                ('country', models.CharField(default='India', max_length=100)),
                ('aadhaar_number', models.CharField(max_length=20, unique=True)),
                ('aadhaar_image', models.URLField(blank=True, max_length=500)),
                ('aadhaar_image_key', models.CharField(blank=True, max_length=500)),
                ('aadhaar_verified', models.BooleanField(default=False)),
                ('pan_number', models.CharField(max_length=20, unique=True)),
                ('pan_image', models.URLField(blank=True, max_length=500)),
                ('pan_image_key', models.CharField(blank=True, max_length=500)),
                ('pan_verified', models.BooleanField(default=False)),
                ('passport_photo', models.URLField(blank=True, max_length=500)),
                ('passport_photo_key', models.CharField(blank=True, max_length=500)),
                ('specializations', models.JSONField(blank=True, default=list)),
                ('experience', models.PositiveIntegerField(default=0)),
                ('experience_unit', models.CharField(choices=[('months', 'Months'), ('years', 'Years')], default='years', max_length=10)),
                ('qualification', models.CharField(blank=True, max_length=200)),
                ('commission', models.DecimalField(decimal_places=2, default=Decimal('10.00'), help_text='Platform commission in percent', max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('status', models.CharField(choices=[('verification_pending', 'Verification Pending'), ('pending', 'Pending'), ('active', 'Active'), ('inactive', 'Inactive'), ('suspended', 'Suspended')], default='verification_pending', max_length=25)),
                ('average_rating', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=3)),
                ('total_ratings', models.PositiveIntegerField(default=0)),
                ('rating_distribution', models.JSONField(default=providers.models.empty_rating_distribution)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.CharField(blank=True, max_length=500)),
                ('suspension_reason', models.CharField(blank=True, max_length=500)),
                ('suspended_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_providers', to=settings.AUTH_USER_MODEL)),
                ('verified_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='verified_providers', to=settings.AUTH_USER_MODEL)),
                ('services', models.ManyToManyField(blank=True, related_name='providers', to='services.service')),
                ('subservices', models.ManyToManyField(blank=True, related_name='providers', to='services.subservice')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_provider_status'),
                    models.Index(fields=['-average_rating', '-total_ratings'], name='idx_provider_rating'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProviderAvailability',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day_of_week', models.IntegerField(choices=[(0, 'Monday'), (1, 'Tuesday'), (2, 'Wednesday'), (3, 'Thursday'), (4, 'Friday'), (5, 'Saturday'), (6, 'Sunday')])),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('is_available', models.BooleanField(default=True)),
                ('provider', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availability', to='providers.serviceprovider')),
            ],
            options={
                'ordering': ['day_of_week'],
                'constraints': [models.UniqueConstraint(fields=('provider', 'day_of_week'), name='uq_provider_availability')],
            },
        ),
    ]
