"""Errors shared by the models, the validator and the view engine."""


class InvalidInputError(ValueError):
    """Input that breaks an expense invariant (negative amount, blank label...)."""
    pass
