"""
Custom exceptions for loyalty engine business logic.

Services raise these; the API layer maps them to HTTP responses
via ``utils.errors.error_response``.
"""


class LoyaltyError(Exception):
    """Base exception for all loyalty engine errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "LOYALTY_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(LoyaltyError):
    """Resource not found."""

    status_code = 404

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message, "NOT_FOUND")


class AccountNotFoundError(NotFoundError):
    """Loyalty account not found."""

    def __init__(self, identifier=None):
        super().__init__("Loyalty account", identifier)


class RewardNotFoundError(NotFoundError):
    """Catalog reward not found."""

    def __init__(self, identifier=None):
        super().__init__("Reward", identifier)


class UsableRewardNotFoundError(NotFoundError):
    """Redeemed reward not found for this user."""

    def __init__(self, identifier=None):
        super().__init__("Usable reward", identifier)


class InsufficientPointsError(LoyaltyError):
    """Not enough points for the operation."""

    status_code = 422

    def __init__(self, current: int, required: int):
        self.current = current
        self.required = required
        message = f"Insufficient points. Current: {current}, Required: {required}"
        super().__init__(message, "INSUFFICIENT_POINTS")


class InvalidAmountError(LoyaltyError):
    """Negative or malformed monetary amount."""

    def __init__(self, field: str, value=None):
        self.field = field
        self.value = value
        message = f"{field} must be a non-negative amount"
        if value is not None:
            message = f"{field} must be a non-negative amount (got {value})"
        super().__init__(message, "INVALID_AMOUNT")


class RewardAlreadyConsumedError(LoyaltyError):
    """A usable reward was already spent on a confirmed checkout."""

    status_code = 409

    def __init__(self, reward_id):
        self.reward_id = reward_id
        super().__init__(
            f"Reward {reward_id} has already been used",
            "REWARD_ALREADY_CONSUMED"
        )


class ConcurrencyError(LoyaltyError):
    """Optimistic write retries exhausted for an account."""

    status_code = 409

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(
            f"Loyalty account for user {user_id} is being updated concurrently, try again",
            "CONCURRENT_UPDATE"
        )


class ConfigurationError(LoyaltyError):
    """Application configuration error."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")
