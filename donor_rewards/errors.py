"""Exceptions raised by the rewards engine."""


class InvalidArgumentError(ValueError):
    """A caller passed something that is not a donation collection (or a bad count).

    Raised instead of returning zero so upstream bugs surface.
    """


class RulesConfigError(ValueError):
    """A scoring, badge or achievement table failed validation."""
