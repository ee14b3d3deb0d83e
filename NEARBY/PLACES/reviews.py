# PLACES/reviews.py
import logging
from datetime import datetime, timezone

from NEARBY.core.clock import now_ms
from NEARBY.PLACES.catalog import VenueCatalog
from NEARBY.PLACES.models import Review, ReviewCreate
from NEARBY.USERS.profile import ProfileStore

logger = logging.getLogger("places.reviews")


class VenueNotFound(Exception):
    pass


def calculate_new_rating(current_rating: float, review_count: int, new_rating: int) -> float:
    """Running average including one more rating."""
    return ((current_rating * review_count) + new_rating) / (review_count + 1)


class ReviewService:
    def __init__(self, catalog: VenueCatalog, profiles: ProfileStore):
        self.catalog = catalog
        self.profiles = profiles

    async def add_review(self, venue_id: str, user_id: str, payload: ReviewCreate) -> Review:
        venue = await self.catalog.get_venue(venue_id)
        if venue is None:
            raise VenueNotFound(venue_id)

        profile = await self.profiles.get_profile(user_id)
        review = Review(
            id=f"{user_id}_{now_ms()}",
            user_id=user_id,
            user_name=profile.name if profile else "Unnamed user",
            user_photo=(profile.photo_url or "") if profile else "",
            rating=payload.rating,
            comment=payload.comment,
            date=datetime.now(timezone.utc).isoformat(),
        )
        new_rating = calculate_new_rating(venue.rating, len(venue.reviews), payload.rating)

        await self.catalog.append_review(
            venue_id,
            {
                "id": review.id,
                "userId": review.user_id,
                "userName": review.user_name,
                "userPhoto": review.user_photo,
                "rating": review.rating,
                "comment": review.comment,
                "date": review.date,
            },
            new_rating,
        )
        logger.info("Review %s added to venue=%s (rating %.2f)", review.id, venue_id, new_rating)
        return review
