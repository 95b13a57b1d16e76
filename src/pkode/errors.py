# src/pkode/errors.py


class PKModelError(Exception):
    """Base class for every error raised by pkode."""


class InvalidOptions(PKModelError, ValueError):
    """Solver options that cannot describe a finite forward integration."""


class InvalidParameter(PKModelError, ValueError):
    """A model parameter, route or regimen field outside its allowed domain."""


class UnknownModel(PKModelError, KeyError):
    """The registry has no model under the requested identifier."""

    def __init__(self, model_id: str):
        super().__init__(model_id)
        self.model_id = model_id

    def __str__(self) -> str:
        return f"Unknown model '{self.model_id}'."


class DimensionMismatch(PKModelError, AssertionError):
    """The derivative returned by a model does not match its state length."""


class IntegrationFailed(PKModelError, RuntimeError):
    """An adaptive SciPy integrator reported failure."""


class IntegrationCancelled(PKModelError, RuntimeError):
    """The caller asked the integration loop to stop early."""
