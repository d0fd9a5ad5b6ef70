INVALID_CODE_MESSAGE = 'Invalid or already used code'


class PremiumCodeError(Exception):
    pass


class InvalidCode(PremiumCodeError):
    """No unredeemed code matched.

    Covers unknown codes, codes for another resource and spent codes alike;
    the message never says which.
    """

    def __init__(self):
        super().__init__(INVALID_CODE_MESSAGE)


class StorageError(PremiumCodeError):
    """A database operation failed; the driver error is kept as ``__cause__``."""

    def __init__(self, operation):
        self.operation = operation
        super().__init__(f'Storage failure during {operation}')


class LedgerWriteDegraded(PremiumCodeError):
    """The code was consumed but its access grant could not be written."""

    def __init__(self, resource_id, client_id):
        self.resource_id = resource_id
        self.client_id = client_id
        super().__init__(f'Access grant not recorded for client {client_id} on resource {resource_id}')
