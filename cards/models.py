from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class ProfileCard(models.Model):
    """A single friend's profile, written and owned by one matcher."""

    GENDER_CHOICES = [
        ('man', 'Man'),
        ('woman', 'Woman'),
        ('other', 'Other'),
    ]
    PREFERRED_GENDER_CHOICES = [
        ('men', 'Men'),
        ('women', 'Women'),
        ('other', 'Other'),
        ('any', 'Any'),
    ]
    EDUCATION_CHOICES = [
        ('none', 'No formal education'),
        ('high_school', 'High School Diploma or GED'),
        ('some_college', 'Some College (No Degree)'),
        ('associate', 'Associate Degree'),
        ('bachelor', "Bachelor's Degree"),
        ('master', "Master's Degree"),
        ('doctorate', 'Doctorate (Ph.D., M.D., J.D., etc.)'),
        ('trade', 'Trade/Vocational School'),
        ('undisclosed', 'Prefer not to say'),
    ]

    STATUS_AVAILABLE = 'available'
    STATUS_MATCHED = 'matched'
    MATCH_STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_MATCHED, 'Matched'),
    ]

    # Written only by the match engine.
    BOOKKEEPING_FIELDS = ('match_attempts', 'match_status')

    matcher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='profile_cards')
    matcher_name = models.CharField(max_length=120)

    friend_name = models.CharField(max_length=120)
    friend_email = models.EmailField(blank=True)
    friend_age = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(18), MaxValueValidator(120)])
    friend_gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    friend_postal_code = models.CharField(max_length=12, blank=True)
    education_level = models.CharField(max_length=20, choices=EDUCATION_CHOICES, blank=True)
    occupation = models.CharField(max_length=120, blank=True)
    bio = models.TextField()
    interests = models.JSONField(default=list, blank=True)
    photo_url = models.URLField(blank=True)

    preferred_age_min = models.PositiveIntegerField(null=True, blank=True)
    preferred_age_max = models.PositiveIntegerField(null=True, blank=True)
    seeking = models.JSONField(default=list, blank=True)
    preferred_gender = models.CharField(max_length=10, choices=PREFERRED_GENDER_CHOICES, default='any')
    max_distance_km = models.PositiveIntegerField(null=True, blank=True)

    match_attempts = models.PositiveIntegerField(default=0)
    match_status = models.CharField(max_length=10, choices=MATCH_STATUS_CHOICES, default=STATUS_AVAILABLE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['matcher', 'match_status'], name='card_matcher_status_idx'),
        ]

    def __str__(self):
        return f"{self.friend_name} (by {self.matcher_name})"

    @property
    def is_matched(self):
        return self.match_status == self.STATUS_MATCHED
