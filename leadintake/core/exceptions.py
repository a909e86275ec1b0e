class LeadIntakeError(Exception):
    """Base class for all lead-intake domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except LeadIntakeError`` clause can catch any domain
    error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class ValidationError(LeadIntakeError):
    """Raised when lead input fails a business rule the caller can correct.

    The GDPR compliance gate raises this for leads from consent-required
    countries that arrive without consent or without a consent IP.
    """

    def __init__(self, detail: str = "Invalid lead data"):
        super().__init__(detail)


class ConfigurationError(LeadIntakeError):
    """Raised when a rule document is absent or malformed.

    Scoring and assignment cannot run on guessed weights, so this is fatal
    for the operation that needed the document.
    """

    def __init__(self, detail: str = "Invalid CRM configuration"):
        super().__init__(detail)


class NotFoundError(LeadIntakeError):
    """Raised when a referenced record does not exist."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail)


class LeadNotFoundError(NotFoundError):
    """Raised when a requested lead does not exist."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class CountryNotFoundError(NotFoundError):
    """Raised when a requested country is not in ``crm_countries``."""

    def __init__(self, detail: str = "Country not found"):
        super().__init__(detail)


class NotificationDeliveryError(LeadIntakeError):
    """Raised by the notification sender when the service rejects a message.

    Lead creation catches and logs it; it never reaches the API caller.
    """

    def __init__(self, detail: str = "Notification delivery failed"):
        super().__init__(detail)


class DecaySweepInProgressError(LeadIntakeError):
    """Raised when a decay sweep is requested while another holds the lease."""

    def __init__(self, detail: str = "A score decay sweep is already running"):
        super().__init__(detail)
