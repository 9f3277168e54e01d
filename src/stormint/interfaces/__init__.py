"""Protocol interfaces for stormint components."""

from stormint.interfaces.observer import ProgressObserver
from stormint.interfaces.submitter import TransactionSubmitter

__all__ = ["ProgressObserver", "TransactionSubmitter"]
