"""
Исключения сервиса.

Каждое исключение несёт HTTP-статус и машинный код; обработчики в main.py
превращают их в ответ вида {"success": false, "error": <message>}.
Сообщения намеренно не различают "не существует" и "чужое", а также
"нет такого логина" и "неверный пароль".
"""
from typing import Optional


class RecordsError(Exception):
    """Базовое исключение сервиса"""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


# ---------- 400 ----------

class ValidationError(RecordsError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class ConflictError(RecordsError):
    status_code = 400
    code = "CONFLICT"
    default_message = "Resource already exists"


class ConcurrentModificationError(ConflictError):
    code = "CONCURRENT_MODIFICATION"
    default_message = "Record was modified by another request, please retry"


class AlreadyVerifiedError(RecordsError):
    status_code = 400
    code = "ALREADY_VERIFIED"
    default_message = "Email already verified"


class InvalidOtpError(RecordsError):
    status_code = 400
    code = "INVALID_OTP"
    default_message = "Invalid or expired OTP"


# ---------- 401 ----------

class AuthenticationError(RecordsError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class InvalidTokenError(AuthenticationError):
    code = "INVALID_TOKEN"
    default_message = "Token is invalid or expired"


class InvalidCredentialsError(RecordsError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class InvalidRefreshTokenError(RecordsError):
    status_code = 401
    code = "INVALID_REFRESH_TOKEN"
    default_message = "Invalid refresh token"


# ---------- 403 / 404 ----------

class AuthorizationError(RecordsError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access denied"


class NotFoundError(RecordsError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"

    @classmethod
    def for_resource(cls, resource_type: str) -> "NotFoundError":
        return cls(f"{resource_type} not found")


# ---------- 500 ----------

class InternalError(RecordsError):
    pass
