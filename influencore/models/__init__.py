from .jobs import Job, JobKind, JobStatus, TERMINAL_STATUSES, utcnow

__all__ = ['Job', 'JobKind', 'JobStatus', 'TERMINAL_STATUSES', 'utcnow']
