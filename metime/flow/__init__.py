from metime.flow.booking_wizard import (
    BookingWizard,
    InvalidStepError,
    WizardStep,
    WizardTrigger,
)

__all__ = ["BookingWizard", "InvalidStepError", "WizardStep", "WizardTrigger"]
