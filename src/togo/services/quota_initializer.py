"""
Quota record get-or-create

Many first requests from the same user can arrive together, and each wants
the user's quota record to exist. Rather than read-then-insert, which lets
two callers both see "missing" and both insert, every caller inserts
optimistically and the UNIQUE constraint picks a single winner. Losers get
QuotaConflict back from the store and read the winner's row in a fresh
transaction, so they return the same record instead of an error.
"""

from togo.errors import InternalError
from togo.logger import get_logger
from togo.storage.database import Database
from togo.storage.models import QuotaRecord
from togo.storage.quota_repository import QuotaConflict, QuotaCreated, QuotaRepository

logger = get_logger(__name__)


class QuotaInitializer:
    """Ensures exactly one quota record exists per user"""

    def __init__(self, database: Database, default_task_limit_per_day: int):
        """
        Args:
            database: Database to store records in
            default_task_limit_per_day: Limit given to newly created records
        """
        if default_task_limit_per_day < 0:
            raise ValueError("default_task_limit_per_day must be >= 0")
        self.database = database
        self.default_task_limit_per_day = default_task_limit_per_day

    async def ensure_exists(self, user_id: int) -> QuotaRecord:
        """
        Return the user's quota record, creating it on first use

        Idempotent and safe to call concurrently for the same user: all
        callers get the single stored record.

        Raises:
            InternalError: storage failure other than the uniqueness race
        """
        async with self.database.transaction() as session:
            repo = QuotaRepository(session)
            existing = await repo.find_by_user_id(user_id)
            if existing is not None:
                return existing
            outcome = await repo.create(user_id, self.default_task_limit_per_day)

        if isinstance(outcome, QuotaCreated):
            logger.info(
                f"Created quota record {outcome.record.id} for user {user_id} "
                f"(limit {outcome.record.task_limit_per_day}/day)"
            )
            return outcome.record

        if not isinstance(outcome, QuotaConflict):
            raise InternalError(f"unexpected quota record create outcome: {outcome!r}")

        logger.debug(f"Quota record for user {user_id} created concurrently, reading winner")
        async with self.database.transaction() as session:
            record = await QuotaRepository(session).find_by_user_id(user_id)
        if record is None:
            # The winner's row must be visible once its insert conflicted with ours
            raise InternalError(f"quota record for user {user_id} vanished after conflict")
        return record
