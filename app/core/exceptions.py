from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base for every error the API reports; ``detail`` carries a machine code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "internal_error"
    message = "Internal server error."
    headers = None

    def __init__(self, message: str | None = None):
        super().__init__(
            status_code=self.status_code,
            detail={"error": self.error, "message": message or self.message},
            headers=self.headers,
        )


# --- 400 ---

class ValidationException(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "validation_error"
    message = "Request is invalid."


class WeakPasswordException(ValidationException):
    error = "weak_password"
    message = "Password must be at least 6 characters long."


class InvalidEmailFormatException(ValidationException):
    error = "invalid_email"
    message = "Email address is not valid."


class InvalidPhoneFormatException(ValidationException):
    error = "invalid_phone"
    message = "Phone number must be in international format, e.g. +15551234567."


class ConflictException(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "conflict"
    message = "Resource already exists."


class UserAlreadyExistsException(ConflictException):
    error = "user_exists"

    def __init__(self, field: str = "email"):
        super().__init__(f"User with this {field} already exists.")


# --- 401 ---

class AuthenticationException(AppException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "unauthenticated"
    message = "Authentication required."
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsException(AuthenticationException):
    error = "invalid_credentials"
    message = "Invalid email or password."


class UnknownAccountException(InvalidCredentialsException):
    pass


class InvalidOTPException(AuthenticationException):
    error = "invalid_otp"
    message = "Invalid or expired OTP."


class TokenInvalidException(AuthenticationException):
    error = "invalid_token"
    message = "Token is invalid."


# --- 404 ---

class NotFoundException(AppException):
    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"
    message = "Resource not found."


class UserNotFoundException(NotFoundException):
    error = "user_not_found"
    message = "User not found."


class TaskNotFoundException(NotFoundException):
    error = "task_not_found"
    message = "Task not found."


# --- 500 ---

class DependencyException(AppException):
    error = "dependency_failed"
    message = "An upstream service failed."


class SMSDeliveryException(DependencyException):
    error = "sms_failed"
    message = "Failed to send OTP."


class LLMServiceException(DependencyException):
    error = "llm_unavailable"
    message = "AI assistant is unavailable."


class DatabaseUnavailableException(DependencyException):
    error = "database_unavailable"
    message = "Database is unavailable."
