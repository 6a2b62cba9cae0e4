"""
Exception taxonomy for postback reconciliation.

Parse errors and semantic validation errors are never raised; they are
recorded as ``error_message`` on the field control and surface through the
validity aggregator. Only protocol violations (opt-in) and configuration
errors are raised.
"""


class FormStateError(Exception):
    """Base class for all errors raised by formstate."""


class ProtocolViolation(FormStateError):
    """Raised when submitted form data breaks the postback protocol."""


class InvalidPostBackError(ProtocolViolation):
    """Raised when a submitted instance token is unknown to its bucket."""

    def __init__(self, bucket_key: str, token: str):
        super().__init__(
            f"Instance token {token!r} is not outstanding for this client. "
            f"The form was either submitted twice or rendered by another process."
        )
        self.bucket_key = bucket_key
        self.token = token


class MissingFieldError(ProtocolViolation):
    """Raised when an expected field is absent from valid post back data."""

    def __init__(self, client_field_id: str):
        super().__init__(
            f"Form cannot be validated because expected field {client_field_id!r} "
            f"is not included in post back data. Typically this occurs if the "
            f"post back data was manipulated."
        )
        self.client_field_id = client_field_id


class ConfigurationError(FormStateError):
    """Raised for programmer errors such as a missing collaborator."""


class FieldNotFoundError(ConfigurationError):
    """Raised when a view references a field its object does not have."""

    def __init__(self, key: str):
        super().__init__(f"Presentable field for view field with key {key!r} cannot be found.")
        self.key = key
