# core/exceptions.py


class FetchError(Exception):
    """A read from the record store failed (connection, query or storage error)."""

    def __init__(self, entity, original=None):
        self.entity = entity
        self.original = original
        message = f"Could not fetch {entity}"
        if original is not None:
            message = f"{message}: {original}"
        super().__init__(message)


class MalformedRecordError(ValueError):
    """A stored field could not be read as the expected type."""

    def __init__(self, field, value):
        self.field = field
        self.value = value
        super().__init__(f"Malformed value for {field}: {value!r}")
