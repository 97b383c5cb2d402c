"""Resolve the organization that owns an invoice from its job/bid references."""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger.core.errors import InvalidOwnerError, MissingOwnerReferenceError, NotFoundError
from ledger.repositories.job_repository import JobRepository


class OwnershipResolver:
    def __init__(self, db: Session):
        self.job_repo = JobRepository(db)

    def resolve(
        self,
        organization_id: UUID | None = None,
        job_id: UUID | None = None,
        bid_id: UUID | None = None,
    ) -> UUID:
        """Return the owning organization id.

        A job is followed to its bid and the bid to its organization. An
        explicitly supplied organization must match the derived one. Nothing is
        written, so failures here leave the database untouched.
        """
        derived: UUID | None = None

        if job_id is not None:
            job = self.job_repo.get_job(job_id)
            if not job:
                raise NotFoundError(f"Job {job_id} not found")
            if job.bid_id is None:
                raise MissingOwnerReferenceError(f"Job {job_id} is not linked to a bid")
            if bid_id is not None and UUID(str(job.bid_id)) != bid_id:
                raise InvalidOwnerError(f"Job {job_id} does not belong to bid {bid_id}")
            bid_id = UUID(str(job.bid_id))

        if bid_id is not None:
            bid = self.job_repo.get_bid(bid_id)
            if not bid:
                raise NotFoundError(f"Bid {bid_id} not found")
            if bid.organization_id is None:
                raise MissingOwnerReferenceError(f"Bid {bid_id} is not linked to an organization")
            derived = UUID(str(bid.organization_id))

        if derived is None:
            if organization_id is None:
                raise MissingOwnerReferenceError(
                    "A job, a bid or an organization reference is required"
                )
            return organization_id

        if organization_id is not None and organization_id != derived:
            raise InvalidOwnerError(
                "Organization does not match the organization of the referenced job or bid",
                detail={"expected": str(derived), "supplied": str(organization_id)},
            )
        return derived
