import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import Session, select

from influencore.core.errors import InvalidJobStateError, JobNotFoundError
from influencore.models import Job, JobKind, JobStatus, utcnow

logger = logging.getLogger(__name__)


def _as_uuid(job_id) -> UUID:
    if isinstance(job_id, UUID):
        return job_id
    try:
        return UUID(str(job_id))
    except ValueError:
        raise JobNotFoundError(job_id)


class JobStore:
    """persistence for generation jobs, one short session per call"""

    def __init__(self, engine):
        self.engine = engine

    def create(self, owner_id: str, kind: JobKind, title: str, prompt: str, options: Optional[dict] = None) -> Job:
        """create a pending job record"""
        with Session(self.engine) as session:
            job = Job(
                owner_id=owner_id,
                kind=kind,
                title=title,
                prompt=prompt,
                options=options or {},
                status=JobStatus.PENDING,
                progress=0
            )
            session.add(job)
            session.commit()
            session.refresh(job)
            return job

    def get(self, job_id) -> Optional[Job]:
        try:
            uuid = _as_uuid(job_id)
        except JobNotFoundError:
            return None
        with Session(self.engine) as session:
            return session.get(Job, uuid)

    def require(self, job_id) -> Job:
        job = self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_for_owner(
        self,
        owner_id: str,
        status: Optional[JobStatus] = None,
        kind: Optional[JobKind] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[Job], int]:
        """one page of an owner's jobs, newest first, with the total match count"""
        filters = [Job.owner_id == owner_id]
        if status:
            filters.append(Job.status == status)
        if kind:
            filters.append(Job.kind == kind)

        with Session(self.engine) as session:
            total = session.exec(select(func.count()).select_from(Job).where(*filters)).one()
            query = (
                select(Job)
                .where(*filters)
                .order_by(Job.created_at.desc(), Job.id)
                .offset((max(page, 1) - 1) * limit)
                .limit(limit)
            )
            return list(session.exec(query).all()), total

    def stats_for_owner(self, owner_id: str) -> dict:
        """job counts by status and kind, and mean run time of completed jobs"""
        with Session(self.engine) as session:
            by_status = session.exec(
                select(Job.status, func.count()).where(Job.owner_id == owner_id).group_by(Job.status)
            ).all()
            by_kind = session.exec(
                select(Job.kind, func.count()).where(Job.owner_id == owner_id).group_by(Job.kind)
            ).all()
            runs = session.exec(
                select(Job.started_at, Job.finished_at).where(
                    Job.owner_id == owner_id,
                    Job.status == JobStatus.COMPLETED
                )
            ).all()

        durations = [
            (finished - started).total_seconds()
            for started, finished in runs
            if started and finished
        ]
        status_counts = {status.value: 0 for status in JobStatus}
        status_counts.update({status.value: count for status, count in by_status})
        kind_counts = {kind.value: 0 for kind in JobKind}
        kind_counts.update({kind.value: count for kind, count in by_kind})

        return {
            "total_jobs": sum(status_counts.values()),
            "by_status": status_counts,
            "by_kind": kind_counts,
            "avg_processing_seconds": sum(durations) / len(durations) if durations else 0,
        }

    def claim(self, job_id) -> Job:
        """
        move a pending job to processing

        the conditional update is the only way into processing, so two
        concurrent claims on the same job cannot both succeed
        """
        uuid = _as_uuid(job_id)
        now = utcnow()
        with Session(self.engine) as session:
            result = session.execute(
                update(Job)
                .where(Job.id == uuid, Job.status == JobStatus.PENDING)
                .values(status=JobStatus.PROCESSING, progress=0, started_at=now, updated_at=now)
            )
            session.commit()
            job = session.get(Job, uuid)
            if job is None:
                raise JobNotFoundError(job_id)
            if result.rowcount == 0:
                raise InvalidJobStateError(job_id, job.status)
            return job

    def update_progress(self, job_id, progress: int) -> bool:
        """record progress for a processing job; never lowers the stored value"""
        progress = min(100, max(0, int(progress)))
        with Session(self.engine) as session:
            result = session.execute(
                update(Job)
                .where(
                    Job.id == _as_uuid(job_id),
                    Job.status == JobStatus.PROCESSING,
                    Job.progress <= progress
                )
                .values(progress=progress, updated_at=utcnow())
            )
            session.commit()
            return result.rowcount > 0

    def complete(self, job_id, result: dict) -> Optional[Job]:
        """mark a processing job as completed with its result payload"""
        now = utcnow()
        return self._finish(
            job_id,
            status=JobStatus.COMPLETED,
            progress=100,
            result=result,
            failure_reason=None,
            failure_kind=None,
            finished_at=now,
            updated_at=now
        )

    def fail(self, job_id, reason: str, kind: Optional[str] = None) -> Optional[Job]:
        """mark a processing job as failed, keeping the last recorded progress"""
        now = utcnow()
        return self._finish(
            job_id,
            status=JobStatus.FAILED,
            result=None,
            failure_reason=reason,
            failure_kind=kind,
            finished_at=now,
            updated_at=now
        )

    def _finish(self, job_id, **values) -> Optional[Job]:
        uuid = _as_uuid(job_id)
        with Session(self.engine) as session:
            result = session.execute(
                update(Job)
                .where(Job.id == uuid, Job.status == JobStatus.PROCESSING)
                .values(**values)
            )
            session.commit()
            if result.rowcount == 0:
                # deleted or already terminal
                logger.warning(f"job {job_id} was not processing, {values['status'].value} not recorded")
                return None
            return session.get(Job, uuid)

    def delete(self, job_id) -> None:
        """administrative delete; a running job must finish or be cancelled first"""
        with Session(self.engine) as session:
            job = session.get(Job, _as_uuid(job_id))
            if job is None:
                raise JobNotFoundError(job_id)
            if job.status == JobStatus.PROCESSING:
                raise InvalidJobStateError(job_id, job.status, expected="pending or finished")
            session.delete(job)
            session.commit()
