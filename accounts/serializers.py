from rest_framework import serializers
from django.contrib.auth import get_user_model, authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework.validators import UniqueValidator
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        user = authenticate(
            username=attrs.get("username"),
            password=attrs.get("password")
        )
        if not user:
            raise serializers.ValidationError({
                "detail": "Invalid username or password."
            })
        if not user.is_active:
            raise serializers.ValidationError({
                "detail": "This account is inactive."
            })
        return super().validate(attrs)


class SignUpSerializer(serializers.ModelSerializer):
    username = serializers.CharField(
        validators=[
            UniqueValidator(
                queryset=User.objects.all(),
                message="This username is already taken."
            )
        ],
        error_messages={
            'blank': 'Please enter a username.',
            'required': 'Username is required.'
        }
    )

    password = serializers.CharField(
        write_only=True,
        error_messages={
            'blank': 'Please enter a password.',
            'required': 'Password is required.'
        }
    )

    display_name = serializers.CharField(max_length=120, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['username', 'password', 'display_name', 'email']

    def validate_password(self, value):
        # AUTH_PASSWORD_VALIDATORS from settings
        validate_password(value)
        return value

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('id', 'username', 'display_name', 'email')
        read_only_fields = ('id', 'username')
