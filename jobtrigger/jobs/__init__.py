"""Job implementations.

Job                — abstract base: trigger collection + run/error state machine (base.py)
TriggerCollection  — the subscribing trigger list owned by each job (base.py)
ActionJob          — runs a synchronous callable (action.py)
TaskJob            — runs asynchronous work, one unit in flight at a time (task.py)
JobManager         — bulk pause / resume / close across jobs (manager.py)
"""

from jobtrigger.jobs.action import ActionJob
from jobtrigger.jobs.base import Job, TriggerCollection
from jobtrigger.jobs.manager import JobManager
from jobtrigger.jobs.task import TaskJob

__all__ = [
    "Job",
    "TriggerCollection",
    "ActionJob",
    "TaskJob",
    "JobManager",
]
