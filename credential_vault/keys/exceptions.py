"""Errors raised by the API key layer."""


class CredentialInputError(ValueError):
    """A request carried an invalid credential parameter.

    Messages are fixed strings that never include the submitted values,
    so they are safe to return to the client.
    """
