"""Exceptions raised while loading GTFS feeds."""


class LoadError(Exception):
    """A feed could not be loaded; the previously published data is kept."""


class FetchError(LoadError):
    """The feed could not be downloaded (network failure or non-success response)."""


class DecodeError(LoadError):
    """The feed was downloaded but its archive, table or protobuf payload is malformed."""
