"""
Domain exceptions

Nothing here is fatal: callers degrade to "nothing happened" plus a notice.
"""


class DashboardError(Exception):
    """Base class for dashboard errors"""


class PersistenceError(DashboardError):
    """Underlying key-value storage could not be written"""


class SpreadsheetBackendError(DashboardError):
    """Spreadsheet backend fetch failed or returned an unusable payload"""


class DuplicatePatientError(DashboardError):
    """An active patient with the same name already exists"""

    def __init__(self, patient_name: str):
        super().__init__(f"Patient {patient_name} already exists in active patients")
        self.patient_name = patient_name
