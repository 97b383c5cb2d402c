"""Read-only access to the jobs and bids owned by sibling subsystems."""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger.models.bid import Bid
from ledger.models.job import Job


class JobRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_job(self, job_id: UUID) -> Job | None:
        return self.db.query(Job).filter(Job.id == job_id, Job.is_deleted.is_(False)).first()

    def get_bid(self, bid_id: UUID) -> Bid | None:
        return self.db.query(Bid).filter(Bid.id == bid_id, Bid.is_deleted.is_(False)).first()
