class WriteOffValidationError(Exception):
    """Raised when a grid row is not a pending write-off (bad due time, checked, etc.)."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class UnitNotFoundError(LookupError):
    """Raised when a grid name has no matching entry in the unit directory."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class GridReadError(Exception):
    """Raised when a unit's write-off grid cannot be read."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class TransportError(Exception):
    """Raised when a call to the unit directory or the event sink fails."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class MutationError(Exception):
    """Raised when cell colouring cannot be applied to a grid."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message
