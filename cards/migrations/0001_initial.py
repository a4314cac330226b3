import django.core.validators
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
            name='ProfileCard',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('matcher_name', models.CharField(max_length=120)),
                ('friend_name', models.CharField(max_length=120)),
                ('friend_email', models.EmailField(blank=True, max_length=254)),
                ('friend_age', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(18), django.core.validators.MaxValueValidator(120)])),
                ('friend_gender', models.CharField(blank=True, choices=[('man', 'Man'), ('woman', 'Woman'), ('other', 'Other')], max_length=10)),
                ('friend_postal_code', models.CharField(blank=True, max_length=12)),
                ('education_level', models.CharField(blank=True, choices=[('none', 'No formal education'), ('high_school', 'High School Diploma or GED'), ('some_college', 'Some College (No Degree)'), ('associate', 'Associate Degree'), ('bachelor', "Bachelor's Degree"), ('master', "Master's Degree"), ('doctorate', 'Doctorate (Ph.D., M.D., J.D., etc.)'), ('trade', 'Trade/Vocational School'), ('undisclosed', 'Prefer not to say')], max_length=20)),
                ('occupation', models.CharField(blank=True, max_length=120)),
                ('bio', models.TextField()),
                ('interests', models.JSONField(blank=True, default=list)),
                ('photo_url', models.URLField(blank=True)),
                ('preferred_age_min', models.PositiveIntegerField(blank=True, null=True)),
                ('preferred_age_max', models.PositiveIntegerField(blank=True, null=True)),
                ('seeking', models.JSONField(blank=True, default=list)),
                ('preferred_gender', models.CharField(choices=[('men', 'Men'), ('women', 'Women'), ('other', 'Other'), ('any', 'Any')], default='any', max_length=10)),
                ('max_distance_km', models.PositiveIntegerField(blank=True, null=True)),
                ('match_attempts', models.PositiveIntegerField(default=0)),
                ('match_status', models.CharField(choices=[('available', 'Available'), ('matched', 'Matched')], default='available', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('matcher', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='profile_cards', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['matcher', 'match_status'], name='card_matcher_status_idx')],
            },
        ),
    ]
