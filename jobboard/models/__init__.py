# Models package
from .job import Job, JobRecord, JobStatus, JobType

__all__ = [
    "Job",
    "JobRecord",
    "JobStatus",
    "JobType",
]
