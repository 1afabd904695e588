class StoreError(Exception):
    """Base class for errors raised by the JSON document store."""


class InvalidCollectionName(StoreError, ValueError):
    pass


class CollectionFormatError(StoreError, ValueError):
    """A collection file parsed, but does not hold a JSON array."""


class UpdateError(StoreError, ValueError):
    """An update document could not be applied to the matched document."""
