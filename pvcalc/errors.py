class PVCalcError(Exception):
    """Base class for calculator errors."""


class InputParseError(PVCalcError):
    """A single bill entry could not be parsed."""


class ConfigValidationError(PVCalcError):
    """A tariff edit referenced something that does not exist."""


class SnapshotLoadError(PVCalcError):
    """A project snapshot was malformed; nothing was loaded."""
