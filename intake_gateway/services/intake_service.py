"""
Intake Service - orchestrates one registration submission

Request Flow:
    1. Rate limiter admits or rejects the client identifier
    2. The form payload is parsed (only after admission)
    3. Every field is validated in rule-table order, fail-fast
    4. The validated ClientRecord is handed to the store, once
    5. A confirmation is returned

Store failures become a generic ServerError; the store's own message is
logged for operators and never returned to the caller. Nothing is retried.
"""

import logging
from typing import Awaitable, Callable

from intake_gateway.errors import ServerError, StoreError
from intake_gateway.models import SubmissionResponse
from intake_gateway.services.rate_limiter import FixedWindowRateLimiter
from intake_gateway.services.validator import FormValues, validate_submission
from intake_gateway.storage.store import SubmissionStore

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Form submitted successfully"


class IntakeService:
    """
    Submission intake gateway.

    The rate limiter is the only state shared across requests; each
    ClientRecord lives for a single call.
    """

    def __init__(self, store: SubmissionStore, rate_limiter: FixedWindowRateLimiter):
        self.store = store
        self.rate_limiter = rate_limiter

    async def handle_submission(
        self,
        client_id: str,
        load_form: Callable[[], Awaitable[FormValues]],
    ) -> SubmissionResponse:
        """
        Admit, validate and persist one submission.

        Args:
            client_id: Best-effort origin of the request
            load_form: Parses the request body; not called when rate limited

        Raises:
            RateLimitExceeded: too many submissions from client_id (429)
            ClientError: first invalid field (400)
            ServerError: the store failed (500)
        """
        self.rate_limiter.admit(client_id)

        form = await load_form()
        record = validate_submission(form)

        try:
            await self.store.insert(record)
        except StoreError as e:
            logger.error(f"[INTAKE] Store insert failed for {client_id}: {e}")
            raise ServerError() from e

        logger.info(f"[INTAKE] Accepted submission from {client_id}")
        return SubmissionResponse(success=True, message=SUCCESS_MESSAGE)
