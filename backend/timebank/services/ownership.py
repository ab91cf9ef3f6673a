"""
TimeBank Backend — Ownership Guard
===================================

What:  The authorization check run before every update or delete of a
       member-owned row (services, learning resources, user profiles).
How:   Compares the owner id stored on the row with the acting user id taken
       from the session token. Nothing else (display names, ids sent in the
       request body) is trusted.

    verify_ownership()        pure decision, AUTHORIZED / DENIED
    require_ownership()       raises UnauthorizedError on DENIED
    ensure_acting_identity()  rejects request-supplied user ids that differ
                              from the session identity
"""

import enum
import logging
from typing import Any, Optional

from timebank.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class OwnershipDecision(enum.Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"

    def __bool__(self) -> bool:
        return self is OwnershipDecision.AUTHORIZED


def verify_ownership(entity_owner_id: Optional[int], acting_user_id: Optional[int]) -> OwnershipDecision:
    """
    Decide whether `acting_user_id` may mutate a row owned by `entity_owner_id`.

    No side effects. A missing id on either side is always DENIED.
    """
    if entity_owner_id is None or acting_user_id is None:
        return OwnershipDecision.DENIED
    if int(entity_owner_id) == int(acting_user_id):
        return OwnershipDecision.AUTHORIZED
    return OwnershipDecision.DENIED


def require_ownership(
    entity_owner_id: Optional[int],
    acting_user_id: Optional[int],
    resource: str = "resource",
    resource_id: Optional[Any] = None,
) -> None:
    """
    Raise UnauthorizedError unless the acting user owns the row.

    Call after the row was loaded (a missing row is a NotFoundError, raised
    by the caller) and before any mutation.
    """
    if verify_ownership(entity_owner_id, acting_user_id) is OwnershipDecision.DENIED:
        logger.warning(
            "Ownership check denied: user %s on %s %s owned by %s",
            acting_user_id,
            resource,
            resource_id,
            entity_owner_id,
        )
        raise UnauthorizedError(resource=resource, resource_id=resource_id)


def ensure_acting_identity(claimed_user_id: Optional[int], acting_user_id: int) -> int:
    """
    Check a user id supplied in a request body or path against the session.

    Clients still send `user_id` / `userId` / `id` fields. They are treated
    as claims: absent is fine, equal to the session identity is fine,
    anything else is denied.

    Returns:
        The acting user id, to be used for the operation.
    """
    if claimed_user_id is not None:
        require_ownership(claimed_user_id, acting_user_id, resource="user", resource_id=claimed_user_id)
    return acting_user_id
