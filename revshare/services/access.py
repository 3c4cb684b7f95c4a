from revshare.common.exceptions import AuthorizationError
from revshare.logger_config import logger
from revshare.schemas.actor import Actor, AdminLevel


def require_level(actor: Actor, required: AdminLevel, action: str) -> None:
    """Raise AuthorizationError unless the actor holds ``required`` or above."""
    if not actor.has_level(required):
        logger.warning(
            f"Actor {actor.actor_id} ({actor.admin_level.value}) denied '{action}', requires {required.value}"
        )
        raise AuthorizationError(
            f"'{action}' requires {required.value} permission",
            {"action": action, "required_level": required.value, "actor_level": actor.admin_level.value},
        )
