"""
Identity registry: links external (Discord) accounts to Riot IDs.

The confirmation handshake that precedes ``link_identity`` lives in the
command layer; this service only stores and resolves links.
"""

import re
from typing import List, Optional, Tuple

from sqlalchemy import select

from valotracker.data_models.identity import Identity
from valotracker.database.models import LinkedAccount
from valotracker.services.base import BaseService
from valotracker.utils.exceptions import IdentityNotFoundError, InvalidRiotIdError
from valotracker.utils.logger import setup_logger

logger = setup_logger(__name__)

MENTION_PATTERN = re.compile(r'^<@!?(\d+)>$')
RAW_ID_PATTERN = re.compile(r'^\d{17,19}$')


def parse_riot_id(riot_id: str) -> Tuple[str, str]:
    """
    Split ``Name#Tag``. Names may contain spaces.

    Raises:
        InvalidRiotIdError: If either part is missing
    """
    if not riot_id or '#' not in riot_id:
        raise InvalidRiotIdError(riot_id or '')
    name, tag = riot_id.split('#', 1)
    name, tag = name.strip(), tag.strip()
    if not name or not tag:
        raise InvalidRiotIdError(riot_id)
    return name, tag


def _to_identity(account: LinkedAccount) -> Identity:
    return Identity(
        linked_external_id=account.external_id,
        canonical_name=account.riot_name,
        discriminator=account.riot_tag,
        display_alias=account.display_alias,
        player_id=account.player_id,
    )


class IdentityService(BaseService):
    """Stores and resolves linked identities."""

    async def link_identity(self, external_id, riot_id: str) -> Identity:
        """Create or replace the link for ``external_id``. The alias survives a relink."""
        name, tag = parse_riot_id(riot_id)
        external_id = str(external_id)
        async with self.get_session() as session:
            result = await session.execute(
                select(LinkedAccount).where(LinkedAccount.external_id == external_id)
            )
            account = result.scalar_one_or_none()
            if account:
                account.riot_name = name
                account.riot_tag = tag
                account.player_id = None
            else:
                account = LinkedAccount(external_id=external_id, riot_name=name, riot_tag=tag)
                session.add(account)
            await session.flush()
            identity = _to_identity(account)
        logger.info(f"Linked external account {external_id} to {identity.key}")
        return identity

    async def set_alias(self, riot_id: str, alias: str) -> Identity:
        """
        Set the display alias of the identity whose Riot ID matches.

        Matching is exact, or ignoring whitespace.

        Raises:
            IdentityNotFoundError: If no linked identity has that Riot ID
        """
        wanted = riot_id.strip()
        compact = re.sub(r'\s', '', wanted).lower()
        async with self.get_session() as session:
            result = await session.execute(select(LinkedAccount).order_by(LinkedAccount.id))
            for account in result.scalars():
                if account.riot_id == wanted or re.sub(r'\s', '', account.riot_id).lower() == compact:
                    account.display_alias = alias.strip()
                    await session.flush()
                    return _to_identity(account)
        raise IdentityNotFoundError(
            riot_id,
            f"❌ Riot ID **{riot_id}** not found. Please link it first using `/valo-link`."
        )

    async def record_player_id(self, external_id, player_id: str) -> bool:
        """Remember the upstream puuid of a linked account. Returns whether it changed."""
        async with self.get_session() as session:
            result = await session.execute(
                select(LinkedAccount).where(LinkedAccount.external_id == str(external_id))
            )
            account = result.scalar_one_or_none()
            if account is None or account.player_id == player_id:
                return False
            account.player_id = player_id
            riot_id = account.riot_id
        logger.info(f"Recorded upstream id for {riot_id}")
        return True

    async def get_by_external_id(self, external_id) -> Optional[Identity]:
        async with self.get_session() as session:
            result = await session.execute(
                select(LinkedAccount).where(LinkedAccount.external_id == str(external_id))
            )
            account = result.scalar_one_or_none()
            return _to_identity(account) if account else None

    async def get_by_alias(self, alias: str) -> Optional[Identity]:
        async with self.get_session() as session:
            result = await session.execute(
                select(LinkedAccount)
                .where(LinkedAccount.display_alias == alias)
                .order_by(LinkedAccount.id)
            )
            account = result.scalars().first()
            return _to_identity(account) if account else None

    async def list_identities(self) -> List[Identity]:
        """All linked identities in link order."""
        async with self.get_session() as session:
            result = await session.execute(select(LinkedAccount).order_by(LinkedAccount.id))
            return [_to_identity(account) for account in result.scalars()]

    async def resolve(self, reference: Optional[str], requester_id) -> Identity:
        """
        Resolve a command argument to an identity.

        Accepts a mention, a raw 17-19 digit account id, an alias or a literal
        ``Name#Tag``; with no reference the requester's own link is used.

        Raises:
            IdentityNotFoundError: With a message naming what could not be resolved
        """
        reference = (reference or '').strip()

        if not reference:
            identity = await self.get_by_external_id(requester_id)
            if identity:
                return identity
            raise IdentityNotFoundError(
                str(requester_id),
                "❌ You are not linked! Use `/valo-link Name#Tag` first."
            )

        mention = MENTION_PATTERN.match(reference)
        if mention:
            identity = await self.get_by_external_id(mention.group(1))
            if identity:
                return identity
            raise IdentityNotFoundError(
                reference, f"❌ The user <@{mention.group(1)}> is not linked to the bot."
            )

        if RAW_ID_PATTERN.match(reference):
            identity = await self.get_by_external_id(reference)
            if identity:
                return identity
            raise IdentityNotFoundError(reference, f"❌ The Discord ID **{reference}** is not linked.")

        identity = await self.get_by_alias(reference)
        if identity:
            return identity

        if '#' in reference:
            name, tag = parse_riot_id(reference)
            return Identity(linked_external_id='', canonical_name=name, discriminator=tag)

        raise IdentityNotFoundError(reference, f"❌ No user found with nickname **{reference}**.")
