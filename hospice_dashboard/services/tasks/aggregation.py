"""
Task completion aggregation

Each task is scored by a rule looked up by task id. The standard rule counts
one item per subtask; the invoice rule counts "Sent Invoice" plus either
payment method.
"""
import math
from typing import Callable, Dict, List, Optional, Tuple

from hospice_dashboard.database.schemas import Task, Subtask, TaskStatus
from hospice_dashboard.services.tasks.template import (
    TaskId,
    SENT_INVOICE,
    PAYMENT_RECEIVED,
    PAID_VIA_QUICKBOOKS,
    PAID_VIA_CHECK,
)

# (completed_items, total_items)
ItemCounts = Tuple[int, int]
AggregationRule = Callable[[Task], ItemCounts]


def find_subtask(task: Task, key: str) -> Optional[Subtask]:
    for subtask in task.subtasks:
        if subtask.key == key:
            return subtask
    return None


def is_leaf_complete(subtask: Optional[Subtask], key: str) -> bool:
    if subtask is None or not subtask.sub_subtasks:
        return False
    for sub_subtask in subtask.sub_subtasks:
        if sub_subtask.key == key:
            return sub_subtask.complete
    return False


def is_subtask_complete(subtask: Subtask) -> bool:
    """
    Effective completion: AND over sub-subtasks when present, else the subtask's own flag
    """
    if subtask.sub_subtasks:
        return all(sub_subtask.complete for sub_subtask in subtask.sub_subtasks)
    return subtask.complete


def standard_rule(task: Task) -> ItemCounts:
    completed = sum(1 for subtask in task.subtasks if is_subtask_complete(subtask))
    return completed, len(task.subtasks)


def invoice_rule(task: Task) -> ItemCounts:
    """
    Invoice is 2 items: sent counts 1, sent plus either payment method counts 2.
    Payment without a sent invoice counts nothing.
    """
    sent = find_subtask(task, SENT_INVOICE)
    payment = find_subtask(task, PAYMENT_RECEIVED)

    sent_invoice = sent.complete if sent is not None else False
    paid = is_leaf_complete(payment, PAID_VIA_QUICKBOOKS) or is_leaf_complete(payment, PAID_VIA_CHECK)

    total = len(task.subtasks)
    if sent_invoice and paid:
        return total, total
    if sent_invoice:
        return 1, total
    return 0, total


AGGREGATION_RULES: Dict[str, AggregationRule] = {
    TaskId.INVOICE.value: invoice_rule,
}


def get_rule(task_id: str) -> AggregationRule:
    return AGGREGATION_RULES.get(task_id, standard_rule)


def count_task_items(task: Task) -> ItemCounts:
    return get_rule(task.id)(task)


def status_from_counts(completed: int, total: int) -> str:
    if completed == 0:
        return "not-started"
    if completed == total:
        return "complete"
    return "partial"


def compute_task_status(task: Task) -> TaskStatus:
    completed, total = count_task_items(task)
    return TaskStatus(
        task_id=task.id,
        name=task.name,
        status=status_from_counts(completed, total),
        completed=completed,
        total=total,
    )


def compute_task_statuses(tasks: List[Task]) -> List[TaskStatus]:
    return [compute_task_status(task) for task in tasks]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_progress_for_tasks(tasks: Optional[List[Task]]) -> int:
    """
    Overall progress for a task tree

    Args:
        tasks: Patient task tree (None or empty yields 0)

    Returns:
        Integer percentage in [0, 100]
    """
    if not tasks:
        return 0

    completed_items = 0
    total_items = 0
    for task in tasks:
        completed, total = count_task_items(task)
        completed_items += completed
        total_items += total

    if total_items == 0:
        return 0
    return round_half_up(100 * completed_items / total_items)


def has_incomplete_tasks(tasks: Optional[List[Task]]) -> bool:
    if not tasks:
        return False
    return any(status.status != "complete" for status in compute_task_statuses(tasks))
