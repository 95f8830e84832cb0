import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from meeting_bridge.schemas.host import HostChannel, HostUser
from meeting_bridge.services.identity_resolver import Found, IdentityResolver

logger = logging.getLogger(__name__)


class ParticipantResolutionError(Exception):
    pass


@dataclass
class ParticipantResolution:
    participants: list[HostUser]
    requested_ids: list[str]
    failed_ids: list[str] = field(default_factory=list)


class ParticipantResolver:
    def __init__(self, identity_resolver: IdentityResolver) -> None:
        self.identity_resolver = identity_resolver

    def resolve(
        self,
        participant_ids: Sequence[str],
        channel: HostChannel,
        requesting_user_id: str,
    ) -> ParticipantResolution:
        requested_ids = self._expand_participant_ids(participant_ids, channel, requesting_user_id)

        if not requested_ids and not channel.is_direct:
            raise ParticipantResolutionError("Select at least one participant")

        participants: list[HostUser] = []
        failed_ids: list[str] = []
        for participant_id in requested_ids:
            outcome = self.identity_resolver.resolve_user(participant_id)
            if isinstance(outcome, Found):
                participants.append(outcome.value)
                continue
            logger.warning("Failed to get participant user_id=%s", participant_id)
            failed_ids.append(participant_id)

        if not participants:
            logger.error(
                "No valid participants found requested_count=%s failed_count=%s",
                len(requested_ids),
                len(failed_ids),
            )
            raise ParticipantResolutionError(
                "Could not load participant information "
                f"(requested: {len(requested_ids)}, found: 0)",
            )

        logger.info(
            "Participants loaded requested_count=%s loaded_count=%s failed_count=%s",
            len(requested_ids),
            len(participants),
            len(failed_ids),
        )
        return ParticipantResolution(
            participants=participants,
            requested_ids=requested_ids,
            failed_ids=failed_ids,
        )

    def _expand_participant_ids(
        self,
        participant_ids: Sequence[str],
        channel: HostChannel,
        requesting_user_id: str,
    ) -> list[str]:
        expanded: list[str] = []
        seen: set[str] = set()
        for raw_id in participant_ids:
            cleaned = raw_id.strip()
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            expanded.append(cleaned)

        if channel.is_direct:
            other_user_id = channel.other_user_id_for_dm(requesting_user_id)
            if not other_user_id:
                logger.warning(
                    "Could not get other user ID from DM channel channel_id=%s user_id=%s",
                    channel.id,
                    requesting_user_id,
                )
            elif other_user_id not in seen:
                logger.debug("DM channel, auto-adding other user other_user_id=%s", other_user_id)
                expanded.append(other_user_id)
        return expanded
