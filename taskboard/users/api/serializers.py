from dj_rest_auth.serializers import LoginSerializer as BaseLoginSerializer
from django.contrib.auth import password_validation
from rest_framework import serializers

from taskboard.users.models import User


class UserSerializer(serializers.ModelSerializer[User]):
    class Meta:
        model = User
        fields = ["id", "name", "email", "created_at"]
        read_only_fields = ["id", "email", "created_at"]

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            msg = "Name is required"
            raise serializers.ValidationError(msg)
        return name


class UserSummarySerializer(serializers.ModelSerializer[User]):
    """Compact representation embedded in tasks (creator / assignee)."""

    class Meta:
        model = User
        fields = ["id", "name", "email"]
        read_only_fields = fields


class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            msg = "Name is required"
            raise serializers.ValidationError(msg)
        return name

    def validate_email(self, value: str) -> str:
        email = User.objects.normalize_email(value)
        if User.objects.filter(email__iexact=email).exists():
            msg = "User already exists"
            raise serializers.ValidationError(msg)
        return email

    def validate(self, attrs):
        candidate = User(email=attrs["email"], name=attrs["name"])
        password_validation.validate_password(attrs["password"], user=candidate)
        return attrs

    def create(self, validated_data) -> User:
        return User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            name=validated_data["name"],
        )


class LoginSerializer(BaseLoginSerializer):
    """Email + password only; there is no username on this user model."""

    username = None
    email = serializers.EmailField()
