"""Account deletion cascade: detach an account from every live subsystem and quarantine it."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable

from schemas import AccountQuarantined

from .account import Account, AccountKey, Dashboard
from .contracts import DeletionOutcome, StepResult, StepStatus
from .errors import AuthorizationError, InternalError, LifecycleError, StorageError, ValidationError
from ..observability.metrics import ACCOUNT_DELETIONS, DELETION_STEP_FAILURES
from ..repository import AccountRepository
from ..security.credentials import proof_matches
from ..security.token_store import TokenStore
from ..storage.profile_store import ProfileStore
from ..storage.registry import AccountRegistry
from ..storage.reporting_store import ReportingStore
from ..storage.sessions import SessionRegistry

logger = logging.getLogger(__name__)


class AccountDeletionService:
    """Lenient, ordered deletion cascade for a single account.

    Only the quarantine move can fail the request. Every other step records a
    ``recoverable_failure`` and the cascade moves on; there is no rollback and
    no deduplication of concurrent requests for the same key.
    """

    def __init__(
        self,
        *,
        registry: AccountRegistry,
        profiles: ProfileStore,
        tokens: TokenStore,
        reporting: ReportingStore,
        sessions: SessionRegistry,
        repository: AccountRepository | None = None,
    ) -> None:
        """Store the subsystems the cascade detaches an account from."""
        self._registry = registry
        self._profiles = profiles
        self._tokens = tokens
        self._reporting = reporting
        self._sessions = sessions
        self._repository = repository

    def delete_account(self, account_key: AccountKey, credential_proof: str | None) -> DeletionOutcome:
        """Verify ``credential_proof`` and run the deletion cascade for ``account_key``.

        Raises
        ------
        AuthorizationError
            The proof is missing or does not match the stored hash. Nothing was changed.
        ValidationError
            No live account exists for the key. Nothing was changed.
        StorageError
            The profile could not be moved into quarantine. Every other detachment
            step has still been attempted; no audit event is written.
        InternalError
            Any other failure; details are logged, never returned.
        """
        try:
            account = self._authorize(account_key, credential_proof)
            logger.info("processing account deletion for %s", account_key)
            outcome = self._cascade(account_key, account)
        except (AuthorizationError, ValidationError):
            ACCOUNT_DELETIONS.labels(outcome="rejected").inc()
            raise
        except StorageError:
            ACCOUNT_DELETIONS.labels(outcome="storage_error").inc()
            raise
        except LifecycleError:
            raise
        except Exception as exc:
            logger.exception("unexpected error deleting account %s", account_key)
            ACCOUNT_DELETIONS.labels(outcome="error").inc()
            raise InternalError("internal failure") from exc

        ACCOUNT_DELETIONS.labels(outcome="ok").inc()
        logger.info(
            "account %s deleted (%d recoverable step failures)",
            account_key,
            len(outcome.recoverable_failures),
        )
        return outcome

    def _authorize(self, account_key: AccountKey, credential_proof: str | None) -> Account:
        if not credential_proof:
            logger.warning("delete account request without proof from %s", account_key)
            raise AuthorizationError("missing proof")
        account = self._registry.get(account_key)
        if account is None:
            logger.warning("delete account request for unknown account %s", account_key)
            raise ValidationError("account not found")
        if not proof_matches(credential_proof, account.pass_hash):
            logger.warning("delete account request with wrong proof from %s", account_key)
            raise AuthorizationError("mismatch")
        return account

    def _cascade(self, key: AccountKey, account: Account) -> DeletionOutcome:
        steps: list[StepResult] = []

        for dash in account.profile.dashboards:
            steps.append(self._run_step(f"notification_tokens:{dash.id}", partial(_clear_notification, dash))[0])
            steps.append(self._run_step(f"dash_tokens:{dash.id}", partial(self._tokens.delete_dash, key, dash))[0])

        steps.append(self._run_step("registry", partial(self._registry.delete, key))[0])

        quarantined, quarantine_path = self._run_step(
            "quarantine", partial(self._profiles.quarantine, key), critical=True
        )
        steps.append(quarantined)

        steps.append(self._run_step("reporting", partial(self._reporting.delete, key))[0])

        if self._repository is None:
            steps.append(StepResult("relational", StepStatus.skipped))
        else:
            steps.append(self._run_step("relational", partial(self._repository.delete_account, key))[0])

        steps.append(self._run_step("session", partial(self._close_session, key))[0])

        if quarantined.status is StepStatus.critical_failure:
            logger.error(
                "account %s detached but not quarantined; steps: %s",
                key,
                ", ".join(f"{step.name}={step.status.value}" for step in steps),
            )
            raise StorageError("failed to move profile to quarantine")

        if self._repository is not None:
            failed_steps = [step.name for step in steps if step.failed]
            steps.append(
                self._run_step("audit", partial(self._write_audit, key, quarantine_path, failed_steps))[0]
            )

        return DeletionOutcome(account_key=key, quarantine_path=quarantine_path, steps=steps)

    def _write_audit(self, key: AccountKey, quarantine_path: Path, failed_steps: list[str]) -> None:
        event = AccountQuarantined(
            email=key.email,
            app_name=key.app_name,
            quarantined_at=datetime.now(timezone.utc),
            quarantine_file=quarantine_path.name,
            failed_steps=failed_steps,
        )
        self._repository.write_audit_event(
            key=key,
            event_type="account.deleted",
            actor=key.email,
            metadata=event.model_dump(mode="json"),
        )

    def _run_step(
        self, name: str, action: Callable[[], Any], *, critical: bool = False
    ) -> tuple[StepResult, Any]:
        """Run one isolated step, turning any exception into a typed failure result."""
        try:
            value = action()
        except Exception as exc:
            status = StepStatus.critical_failure if critical else StepStatus.recoverable_failure
            DELETION_STEP_FAILURES.labels(step=name.split(":", 1)[0], severity=status.value).inc()
            if critical:
                logger.error("deletion step %s failed: %s", name, exc, exc_info=True)
            else:
                logger.warning("deletion step %s failed, continuing: %s", name, exc)
            return StepResult(name, status, str(exc)), None
        return StepResult(name, StepStatus.ok), value

    def _close_session(self, key: AccountKey) -> int:
        session = self._sessions.remove(key)
        if session is None:
            return 0
        return session.close_all()


def _clear_notification(dash: Dashboard) -> None:
    if dash.notification is not None:
        dash.notification.clear_tokens()
