import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('cards', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PotentialMatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pair_key', models.CharField(editable=False, max_length=64, unique=True)),
                ('compatibility_score', models.PositiveSmallIntegerField(default=0, validators=[django.core.validators.MaxValueValidator(100)])),
                ('compatibility_reason', models.TextField(blank=True)),
                ('status_matcher_a', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected')], default='pending', max_length=10)),
                ('status_matcher_b', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected')], default='pending', max_length=10)),
                ('status_friend_a', models.CharField(blank=True, choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected')], max_length=10, null=True)),
                ('status_friend_b', models.CharField(blank=True, choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected')], max_length=10, null=True)),
                ('friend_email_sent', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(blank=True, null=True)),
                ('matcher_a', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='potential_matches_as_a', to=settings.AUTH_USER_MODEL)),
                ('matcher_b', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='potential_matches_as_b', to=settings.AUTH_USER_MODEL)),
                ('profile_card_a', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='potential_matches_as_a', to='cards.profilecard')),
                ('profile_card_b', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='potential_matches_as_b', to='cards.profilecard')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['profile_card_a', 'profile_card_b'], name='pm_card_pair_idx'),
                    models.Index(fields=['matcher_a'], name='pm_matcher_a_idx'),
                    models.Index(fields=['matcher_b'], name='pm_matcher_b_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('profile_card_a', models.F('profile_card_b')), _negated=True), name='potential_match_distinct_cards'),
                ],
            },
        ),
    ]
