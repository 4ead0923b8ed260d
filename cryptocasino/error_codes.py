class ErrorCodes:
    """Machine-readable error codes returned in the ``error_code`` field of error responses."""

    GENERIC_ERROR = 'BE_GEN_000'
    VALIDATION_ERROR = 'BE_GEN_001'
    UNAUTHENTICATED = 'BE_GEN_002'
    FORBIDDEN = 'BE_GEN_003'
    NOT_FOUND = 'BE_GEN_004'
    METHOD_NOT_ALLOWED = 'BE_GEN_005'
    INTERNAL_SERVER_ERROR = 'BE_GEN_500'

    INSUFFICIENT_FUNDS = 'BE_LEDGER_001'
    DUPLICATE_SETTLEMENT = 'BE_LEDGER_002'
    INVALID_TRANSACTION_STATE = 'BE_LEDGER_003'

    GAME_LOGIC_ERROR = 'BE_GAME_001'
    GAME_INACTIVE = 'BE_GAME_002'
    GAME_TYPE_MISMATCH = 'BE_GAME_003'
