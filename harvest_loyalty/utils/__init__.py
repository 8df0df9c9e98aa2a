"""
Utility modules for the loyalty engine.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    loyalty_error_response,
    bad_request,
    unauthorized,
    not_found,
)
from .exceptions import (
    LoyaltyError,
    NotFoundError,
    AccountNotFoundError,
    RewardNotFoundError,
    UsableRewardNotFoundError,
    InsufficientPointsError,
    InvalidAmountError,
    RewardAlreadyConsumedError,
    ConcurrencyError,
    ConfigurationError,
)
from .locks import KeyedLock, account_locks
