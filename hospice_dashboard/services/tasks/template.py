"""
Task tree template

Creates the fixed 11-task checklist instantiated for every patient
"""
from enum import Enum
from typing import List

from hospice_dashboard.database.schemas import Task, Subtask, SubSubtask


class TaskId(str, Enum):
    WRITTEN_REQUEST = "wr"
    INVOICE = "invoice"
    RECORDS = "records"
    VISIT_1 = "visit1"
    VISIT_2 = "visit2"
    ATTENDING = "attending"
    CONSULTING = "consulting"
    RXNT = "rxnt"
    PHARMACY = "pharmacy"
    INGESTION = "ingestion"
    FOLLOWUP = "followup"


# Keys read by the invoice aggregation rule
SENT_INVOICE = "sent_invoice"
PAYMENT_RECEIVED = "payment_received"
PAID_VIA_QUICKBOOKS = "paid_via_quickbooks"
PAID_VIA_CHECK = "paid_via_check"


def _checkbox(key: str, name: str) -> SubSubtask:
    return SubSubtask(key=key, name=name, type="checkbox", complete=False)


def _text_input(key: str, name: str) -> SubSubtask:
    return SubSubtask(key=key, name=name, type="input", value="", complete=False)


def initialize_patient_tasks() -> List[Task]:
    """
    Create a fresh task tree for a patient

    Returns:
        List of 11 tasks with every completion flag false and every free-text value empty
    """
    return [
        Task(
            id=TaskId.WRITTEN_REQUEST.value,
            name="Send Adobe Forms",
            subtasks=[
                Subtask(
                    key="written_request",
                    name="Written Request",
                    sub_subtasks=[_checkbox("completed_by_patient", "Completed by Patient")],
                ),
                Subtask(key="payment_schedule_form", name="Payment Schedule Form"),
            ],
        ),
        Task(
            id=TaskId.INVOICE.value,
            name="Quickbooks Invoice",
            subtasks=[
                Subtask(key=SENT_INVOICE, name="Sent Invoice"),
                Subtask(
                    key=PAYMENT_RECEIVED,
                    name="Payment Received",
                    sub_subtasks=[
                        _checkbox(PAID_VIA_QUICKBOOKS, "Paid via Quickbooks"),
                        _checkbox(PAID_VIA_CHECK, "Paid via Check"),
                    ],
                ),
            ],
        ),
        Task(
            id=TaskId.RECORDS.value,
            name="Medical Records",
            subtasks=[
                Subtask(
                    key="request_medical_records",
                    name="Request Medical Records",
                    sub_subtasks=[
                        _text_input("hospice_doctor_name", "Hospice/Doctor Name"),
                        _text_input("request_method", "Request Method (Email/Doximity)"),
                    ],
                ),
                Subtask(key="medical_records_received", name="Medical Records Received"),
            ],
        ),
        Task(
            id=TaskId.VISIT_1.value,
            name="Visit 1",
            subtasks=[
                Subtask(
                    key="scheduled",
                    name="Scheduled",
                    sub_subtasks=[_text_input("visit_date", "Visit 1 Date")],
                ),
                Subtask(key="complete", name="Complete"),
            ],
        ),
        Task(
            id=TaskId.VISIT_2.value,
            name="Visit 2",
            subtasks=[
                Subtask(
                    key="scheduled",
                    name="Scheduled",
                    sub_subtasks=[_text_input("visit_date", "Visit 2 Date")],
                ),
                Subtask(key="complete", name="Complete"),
            ],
        ),
        Task(
            id=TaskId.ATTENDING.value,
            name="Attending Form",
            subtasks=[
                Subtask(key="started", name="Started"),
                Subtask(key="complete", name="Complete"),
                Subtask(key="in_email_drafts", name="In Emails Drafts"),
            ],
        ),
        Task(
            id=TaskId.CONSULTING.value,
            name="Consulting Form",
            subtasks=[
                Subtask(
                    key="received",
                    name="Received",
                    sub_subtasks=[_text_input("cp_name", "CP Name")],
                ),
            ],
        ),
        Task(
            id=TaskId.RXNT.value,
            name="RXNT",
            subtasks=[
                Subtask(key="patient_information_inputted", name="Patient Information Inputted"),
                Subtask(
                    key="prescription",
                    name="Prescription",
                    sub_subtasks=[
                        _checkbox("pending", "Pending"),
                        _checkbox("sent", "Sent"),
                    ],
                    note="Dose Type: {dose_level}",
                ),
            ],
        ),
        Task(
            id=TaskId.PHARMACY.value,
            name="Pharmacy Coordination",
            subtasks=[
                Subtask(key="email_drafted", name="Email Drafted"),
                Subtask(key="email_sent", name="Email Sent"),
            ],
        ),
        Task(
            id=TaskId.INGESTION.value,
            name="Ingestion",
            subtasks=[
                Subtask(
                    key="ingestion_date",
                    name="Ingestion Date",
                    sub_subtasks=[_text_input("date", "Date")],
                ),
                Subtask(key="medication_received", name="Medication Received by Patient"),
                Subtask(key="medication_taken", name="Medication Taken by Patient"),
            ],
        ),
        Task(
            id=TaskId.FOLLOWUP.value,
            name="Follow up Form",
            subtasks=[
                Subtask(key="completed", name="Completed"),
                Subtask(key="sent_to_eoloa", name="Sent to EOLOA"),
            ],
        ),
    ]
