from .dental import DentalModeController, create_dental_mode

__all__ = ["DentalModeController", "create_dental_mode"]
