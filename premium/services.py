"""
Premium code lifecycle: issuance, single-use redemption, access lookup and
code administration. Views call into these functions; nothing here touches
the request.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass

from django.db import DatabaseError, transaction
from django.utils import timezone

from .exceptions import INVALID_CODE_MESSAGE, InvalidCode, LedgerWriteDegraded, StorageError
from .models import CLIENT_ID_MAX_LENGTH, CODE_VALUE_MAX_LENGTH, RESOURCE_ID_MAX_LENGTH, AccessGrant, PremiumCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedemptionResult:
    valid: bool
    error: str | None = None
    code_id: int | None = None
    # Code consumed but the grant row is missing; never shown to the client.
    ledger_degraded: bool = False

    @property
    def success(self):
        return self.valid

    def as_dict(self):
        if self.success:
            return {'valid': True, 'success': True}
        return {'valid': False, 'error': self.error}


@contextmanager
def storage(operation, **context):
    try:
        yield
    except DatabaseError as exc:
        logger.error('premium_storage_error', exc_info=True, extra={'operation': operation, **context})
        raise StorageError(operation) from exc


def _require_text(name, value, max_length):
    if not isinstance(value, str) or value == '':
        raise ValueError(f'{name} must be a non-empty string')
    if len(value) > max_length:
        raise ValueError(f'{name} must be at most {max_length} characters')


def issue_code(resource_id, value, *, created_by=None):
    """Add one unredeemed code for ``resource_id``.

    The value is stored exactly as given. Issuing the same value twice yields
    two codes, each redeemable once.
    """
    _require_text('resource_id', resource_id, RESOURCE_ID_MAX_LENGTH)
    _require_text('value', value, CODE_VALUE_MAX_LENGTH)
    with storage('issue_code', resource_id=resource_id):
        code = PremiumCode.objects.create(resource_id=resource_id, value=value, created_by_admin=created_by)
    logger.info('premium_code_issued', extra={'resource_id': resource_id, 'code_id': code.id})
    return code


def consume_code(resource_id, value, client_id):
    """Claim an unredeemed code matching ``(resource_id, value)`` for ``client_id``.

    Returns ``(code_id, redeemed_at)`` of the claimed row. Raises InvalidCode
    when no unredeemed row is left, including when another caller claimed the
    last one first.
    """
    with storage('lookup_code', resource_id=resource_id):
        candidates = list(
            PremiumCode.objects.matching(resource_id, value)
            .unredeemed()
            .order_by('created_at', 'id')
            .values_list('pk', flat=True)
        )

    for code_id in candidates:
        redeemed_at = timezone.now()
        with storage('claim_code', resource_id=resource_id, code_id=code_id):
            claimed = PremiumCode.objects.claim(code_id, client_id, at=redeemed_at)
        if claimed:
            return code_id, redeemed_at
        logger.info('premium_code_claim_lost', extra={'resource_id': resource_id, 'code_id': code_id, 'client_id': client_id})

    raise InvalidCode()


def record_grant(client_id, resource_id, value, *, at=None):
    with transaction.atomic():
        return AccessGrant.objects.create(
            client_id=client_id,
            resource_id=resource_id,
            code_value_used=value,
            granted_at=at or timezone.now(),
        )


def redeem(resource_id, value, client_id):
    _require_text('client_id', client_id, CLIENT_ID_MAX_LENGTH)
    # No stored code can be empty or longer than its column.
    if not resource_id or not value or len(resource_id) > RESOURCE_ID_MAX_LENGTH or len(value) > CODE_VALUE_MAX_LENGTH:
        return RedemptionResult(valid=False, error=INVALID_CODE_MESSAGE)

    try:
        code_id, redeemed_at = consume_code(resource_id, value, client_id)
    except InvalidCode as exc:
        logger.info('premium_code_rejected', extra={'resource_id': resource_id, 'client_id': client_id})
        return RedemptionResult(valid=False, error=str(exc))

    # The claim above is already committed; a failed grant write must not undo it.
    try:
        record_grant(client_id, resource_id, value, at=redeemed_at)
    except DatabaseError:
        degraded = LedgerWriteDegraded(resource_id, client_id)
        logger.warning(
            str(degraded),
            exc_info=True,
            extra={'resource_id': resource_id, 'client_id': client_id, 'code_id': code_id, 'reason': 'ledger_write_degraded'},
        )
        return RedemptionResult(valid=True, code_id=code_id, ledger_degraded=True)

    logger.info('premium_code_redeemed', extra={'resource_id': resource_id, 'client_id': client_id, 'code_id': code_id})
    return RedemptionResult(valid=True, code_id=code_id)


def has_access(client_id, resource_id):
    if not client_id or not resource_id:
        return False
    with storage('has_access', resource_id=resource_id):
        return AccessGrant.objects.for_pair(client_id, resource_id).exists()


def list_codes(resource_id):
    with storage('list_codes', resource_id=resource_id):
        return list(PremiumCode.objects.for_resource(resource_id).newest_first())


def delete_code(code_id):
    # Grants are not linked to codes, so access already given survives this.
    with storage('delete_code', code_id=code_id):
        deleted, _ = PremiumCode.objects.filter(pk=code_id).delete()
    if deleted:
        logger.info('premium_code_deleted', extra={'code_id': code_id})
    return bool(deleted)
