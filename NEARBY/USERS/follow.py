# USERS/follow.py
import asyncio
import logging
from typing import List, Optional

from NEARBY.USERS.models import FollowCounts, UserCard
from NEARBY.USERS.notifications import NotificationStore
from NEARBY.USERS.profile import ProfileStore

logger = logging.getLogger("users.follow")


class FollowService:
    """
    Follow graph stored on both user documents:
    `following` on the follower, `followers` and `followRequests` on the followed user.
    """

    def __init__(self, profiles: ProfileStore, notifications: Optional[NotificationStore] = None):
        self.profiles = profiles
        self.notifications = notifications

    async def _cards(self, user_ids: List[str]) -> List[UserCard]:
        profiles = await asyncio.gather(*(self.profiles.get_profile(uid) for uid in user_ids))
        cards = []
        for uid, profile in zip(user_ids, profiles):
            if profile is None:
                cards.append(UserCard(id=uid))
            else:
                cards.append(UserCard(id=uid, name=profile.name, photo_url=profile.photo_url))
        return cards

    async def follow(self, follower_id: str, following_id: str) -> bool:
        if follower_id == following_id:
            raise ValueError("Cannot follow self")
        await self.profiles.array_union(follower_id, "following", [following_id])
        await self.profiles.array_union(following_id, "followers", [follower_id])
        logger.info("%s now follows %s", follower_id, following_id)
        return True

    async def unfollow(self, follower_id: str, following_id: str) -> bool:
        await self.profiles.array_remove(follower_id, "following", [following_id])
        await self.profiles.array_remove(following_id, "followers", [follower_id])
        logger.info("%s unfollowed %s", follower_id, following_id)
        return True

    async def get_followers(self, user_id: str) -> List[UserCard]:
        profile = await self.profiles.get_profile(user_id)
        return await self._cards(profile.followers if profile else [])

    async def get_following(self, user_id: str) -> List[UserCard]:
        profile = await self.profiles.get_profile(user_id)
        return await self._cards(profile.following if profile else [])

    async def is_following(self, follower_id: str, following_id: str) -> bool:
        profile = await self.profiles.get_profile(follower_id)
        return bool(profile) and following_id in profile.following

    async def counts(self, user_id: str) -> FollowCounts:
        profile = await self.profiles.get_profile(user_id)
        if profile is None:
            return FollowCounts()
        return FollowCounts(followers=len(profile.followers), following=len(profile.following))

    # ---------------------------
    # Follow requests
    # ---------------------------
    async def has_pending_request(self, follower_id: str, following_id: str) -> bool:
        target = await self.profiles.get_profile(following_id)
        return target is not None and follower_id in target.follow_requests

    async def send_request(self, follower_id: str, following_id: str) -> bool:
        """False if a request from `follower_id` is already pending."""
        if follower_id == following_id:
            raise ValueError("Cannot follow self")
        if await self.has_pending_request(follower_id, following_id):
            return False
        await self.profiles.array_union(following_id, "followRequests", [follower_id])
        if self.notifications is not None:
            sender = await self.profiles.get_profile(follower_id)
            await self.notifications.send_follow_request(follower_id, following_id, sender)
        logger.info("Follow request %s -> %s", follower_id, following_id)
        return True

    async def accept_request(self, follower_id: str, following_id: str) -> bool:
        """False unless `follower_id` has a pending request to `following_id`."""
        if not await self.has_pending_request(follower_id, following_id):
            logger.warning("No pending request %s -> %s to accept", follower_id, following_id)
            return False
        await self.profiles.array_remove(following_id, "followRequests", [follower_id])
        await self.profiles.array_union(following_id, "followers", [follower_id])
        await self.profiles.array_union(follower_id, "following", [following_id])
        if self.notifications is not None:
            await self.notifications.send_follow_accept(following_id, follower_id)
        return True

    async def reject_request(self, follower_id: str, following_id: str) -> bool:
        if not await self.has_pending_request(follower_id, following_id):
            return False
        await self.profiles.array_remove(following_id, "followRequests", [follower_id])
        return True

    async def pending_requests(self, user_id: str) -> List[UserCard]:
        profile = await self.profiles.get_profile(user_id)
        return await self._cards(profile.follow_requests if profile else [])
