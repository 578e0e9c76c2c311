"""
Rating service layer.

Ratings are created by the booking owner, one per subservice, and stay
editable by their author until an admin reviews them. Approval is a
two-phase operation: the moderation decision is committed first, then
the provider aggregate is updated in its own transaction together with
the rating's applied_to_provider flag. An aggregate update that keeps
failing leaves the flag unset for reconcile_provider_aggregates() to
pick up later, so the review itself never rolls back.
"""
import logging
from collections import defaultdict

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from bookings.models import Booking
from common.db import get_object_or_none, translate_errors
from common.exceptions import NotFoundError, ValidationError
from common.pagination import paginate
from common.validators import ensure_allowed_fields, parse_id_list
from providers.models import RATING_VALUES, average_from_distribution, empty_rating_distribution
from providers.services import ProviderService
from .models import Rating

logger = logging.getLogger(__name__)

RATING_FIELDS = ('rating', 'feedback')
REVIEW_FIELDS = ('status', 'review_note')
FEEDBACK_MIN_LENGTH = 10
FEEDBACK_MAX_LENGTH = 500
REVIEW_NOTE_MAX_LENGTH = 200


def _validate_score(value):
    if isinstance(value, bool) or not isinstance(value, int) or value not in RATING_VALUES:
        raise ValidationError("Rating must be between 1 and 5")
    return value


def _validate_feedback(value):
    if not isinstance(value, str) or len(value) < FEEDBACK_MIN_LENGTH:
        raise ValidationError(f"Feedback must be at least {FEEDBACK_MIN_LENGTH} characters long")
    if len(value) > FEEDBACK_MAX_LENGTH:
        raise ValidationError(f"Feedback must not exceed {FEEDBACK_MAX_LENGTH} characters")
    return value


def _subservice_summary(counts):
    distribution = empty_rating_distribution()
    for star, count in counts.items():
        distribution[str(star)] = count
    return {
        'average_rating': average_from_distribution(distribution),
        'total_ratings': sum(distribution.values()),
        'rating_distribution': distribution,
    }


class RatingService:
    """Service class for rating operations."""

    @staticmethod
    def _queryset():
        return Rating.objects.select_related('booking', 'user', 'provider', 'subservice', 'service', 'reviewed_by')

    @staticmethod
    def _load(rating_id):
        rating = get_object_or_none(RatingService._queryset(), rating_id)
        if rating is None:
            logger.warning("Rating not found", extra={'rating_id': str(rating_id)})
            raise NotFoundError("Rating not found")
        return rating

    @staticmethod
    @translate_errors('Failed to create rating', conflict_message='Rating already exists for this booking')
    def create_rating(booking_id, user, rating_data):
        """
        Rate a booking: one pending Rating per subservice on the booking,
        all written in a single transaction.

        Raises:
            ValidationError: booking missing or not the caller's, no provider
                assigned, booking already rated, or score/feedback out of bounds
        """
        ensure_allowed_fields(rating_data, RATING_FIELDS, 'rating')
        logger.info("Creating rating for booking", extra={'booking_id': str(booking_id), 'user_id': str(user.id)})

        booking = get_object_or_none(Booking.objects.prefetch_related('subservices'), booking_id)
        if booking is None:
            raise ValidationError("Booking not found")
        if booking.user_id != user.id:
            raise ValidationError("You can only rate your own bookings")
        if booking.service_provider_id is None:
            raise ValidationError("Cannot rate a booking without an assigned service provider")
        if Rating.objects.filter(booking=booking).exists():
            raise ValidationError("Rating already exists for this booking")

        score = _validate_score(rating_data.get('rating'))
        feedback = _validate_feedback(rating_data.get('feedback'))

        subservices = list(booking.subservices.all())
        if not subservices:
            raise ValidationError("Booking has no subservices to rate")

        with transaction.atomic():
            ratings = Rating.objects.bulk_create([
                Rating(
                    booking=booking,
                    user=user,
                    provider_id=booking.service_provider_id,
                    subservice=subservice,
                    service_id=subservice.service_id,
                    rating=score,
                    feedback=feedback,
                    status=Rating.Status.PENDING
                )
                for subservice in subservices
            ])

        logger.info("Ratings created", extra={
            'booking_id': str(booking.id),
            'count': len(ratings),
            'rating': score,
        })
        return list(RatingService._queryset().filter(booking=booking).order_by('subservice__name'))

    @staticmethod
    @translate_errors('Failed to fetch ratings')
    def get_user_ratings(user, status=None):
        queryset = RatingService._queryset().filter(user=user)
        if status:
            if status not in Rating.Status.values:
                raise ValidationError(f"Invalid status: {status}")
            queryset = queryset.filter(status=status)
        return list(queryset)

    @staticmethod
    @translate_errors('Failed to fetch rating')
    def get_rating(rating_id, user=None, is_admin=False):
        rating = RatingService._load(rating_id)
        if not is_admin and user is not None and rating.user_id != user.id:
            raise NotFoundError("Rating not found")
        return rating

    @staticmethod
    @translate_errors('Failed to fetch ratings')
    def get_booking_ratings(booking_id, user, is_admin=False):
        booking = get_object_or_none(Booking.objects.all(), booking_id)
        if booking is None or (not is_admin and booking.user_id != user.id):
            raise NotFoundError("Booking not found")
        return list(RatingService._queryset().filter(booking=booking))

    @staticmethod
    @translate_errors('Failed to update rating')
    def update_rating(rating_id, user, patch):
        """Author-only edit of score and/or feedback while the rating is pending."""
        ensure_allowed_fields(patch, RATING_FIELDS, 'rating update')
        if not patch:
            raise ValidationError("No valid fields to update")

        rating = RatingService._load(rating_id)
        if rating.user_id != user.id:
            raise ValidationError("You can only update your own ratings")
        if rating.status != Rating.Status.PENDING:
            raise ValidationError("Cannot update approved or rejected ratings")

        if 'rating' in patch:
            rating.rating = _validate_score(patch['rating'])
        if 'feedback' in patch:
            rating.feedback = _validate_feedback(patch['feedback'])
        rating.save(update_fields=[*patch, 'updated_at'])

        logger.info("Rating updated", extra={'rating_id': str(rating.id), 'fields': sorted(patch)})
        return rating

    @staticmethod
    @translate_errors('Failed to delete rating')
    def delete_rating(rating_id, user):
        rating = RatingService._load(rating_id)
        if rating.user_id != user.id:
            raise ValidationError("You can only delete your own ratings")
        if rating.status != Rating.Status.PENDING:
            raise ValidationError("Cannot delete approved or rejected ratings")

        rating.delete()
        logger.info("Rating deleted", extra={'rating_id': str(rating_id)})
        return {'message': 'Rating deleted successfully'}

    @staticmethod
    @translate_errors('Failed to review rating')
    def review_rating(rating_id, admin, review_data):
        """
        Approve or reject a pending rating.

        Phase one commits the decision. Phase two, on approval, folds the
        score into the provider aggregate; its failure is logged and
        reported through applied_to_provider but does not fail the review.
        """
        ensure_allowed_fields(review_data, REVIEW_FIELDS, 'rating review')
        status = review_data.get('status')
        if status not in (Rating.Status.APPROVED, Rating.Status.REJECTED):
            raise ValidationError("Status must be either approved or rejected")
        review_note = review_data.get('review_note') or ''
        if len(review_note) > REVIEW_NOTE_MAX_LENGTH:
            raise ValidationError(f"Review note must not exceed {REVIEW_NOTE_MAX_LENGTH} characters")

        with transaction.atomic():
            rating = get_object_or_none(Rating.objects.select_for_update(), rating_id)
            if rating is None:
                raise NotFoundError("Rating not found")
            if rating.status != Rating.Status.PENDING:
                raise ValidationError(f"Rating has already been {rating.status}")

            rating.status = status
            rating.reviewed_by = admin
            rating.reviewed_at = timezone.now()
            if review_note:
                rating.review_note = review_note
            rating.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'review_note', 'updated_at'])

        logger.info("Rating reviewed", extra={
            'rating_id': str(rating.id),
            'status': status,
            'admin_id': str(admin.id),
        })

        if status == Rating.Status.APPROVED:
            RatingService.apply_to_provider(rating)
        return RatingService._load(rating.id)

    @staticmethod
    def apply_to_provider(rating):
        """
        Fold an approved rating into its provider's aggregate exactly once.

        Retried up to RATING_AGGREGATE_RETRIES times. Returns True when
        this call applied the rating.
        """
        attempts = max(1, settings.RATING_AGGREGATE_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                with transaction.atomic():
                    locked = Rating.objects.select_for_update().get(pk=rating.pk)
                    if (locked.applied_to_provider or locked.status != Rating.Status.APPROVED
                            or locked.provider_id is None):
                        return False
                    ProviderService.apply_rating(locked.provider_id, locked.rating)
                    locked.applied_to_provider = True
                    locked.save(update_fields=['applied_to_provider', 'updated_at'])
                rating.applied_to_provider = True
                return True
            except Exception as e:
                logger.warning("Provider rating update attempt failed", extra={
                    'rating_id': str(rating.pk),
                    'provider_id': str(rating.provider_id),
                    'attempt': attempt,
                    'error': str(e),
                })

        logger.error("Provider rating update failed, left for reconciliation", extra={
            'rating_id': str(rating.pk),
            'provider_id': str(rating.provider_id),
            'attempts': attempts,
        })
        return False

    @staticmethod
    def reconcile_provider_aggregates():
        """
        Apply every approved rating that has not reached its provider yet.

        Returns:
            {'pending': n, 'applied': n, 'failed': n}
        """
        pending = list(
            Rating.objects.filter(
                status=Rating.Status.APPROVED,
                applied_to_provider=False,
                provider__isnull=False
            ).order_by('reviewed_at')
        )
        applied = sum(1 for rating in pending if RatingService.apply_to_provider(rating))
        result = {'pending': len(pending), 'applied': applied, 'failed': len(pending) - applied}
        logger.info("Provider rating reconciliation finished", extra=result)
        return result

    @staticmethod
    @translate_errors('Failed to get average rating')
    def get_average_rating_for_subservice(subservice_id):
        """Average, count and 1-5 distribution over approved ratings of one subservice."""
        subservice_pk = parse_id_list([subservice_id], 'subservice')[0]
        rows = (
            Rating.objects
            .filter(subservice_id=subservice_pk, status=Rating.Status.APPROVED)
            .order_by()
            .values('rating')
            .annotate(count=Count('id'))
        )
        summary = _subservice_summary({row['rating']: row['count'] for row in rows})
        return {'subservice_id': str(subservice_pk), **summary}

    @staticmethod
    @translate_errors('Failed to get average ratings')
    def get_average_ratings_for_all_subservices():
        rows = (
            Rating.objects
            .filter(status=Rating.Status.APPROVED)
            .order_by()
            .values('subservice_id', 'subservice__name', 'rating')
            .annotate(count=Count('id'))
        )
        counts = defaultdict(dict)
        names = {}
        for row in rows:
            counts[row['subservice_id']][row['rating']] = row['count']
            names[row['subservice_id']] = row['subservice__name']

        results = [
            {'subservice_id': str(subservice_id), 'subservice_name': names[subservice_id], **_subservice_summary(stars)}
            for subservice_id, stars in counts.items()
        ]
        results.sort(key=lambda item: item['average_rating'], reverse=True)
        return results

    @staticmethod
    @translate_errors('Failed to fetch pending ratings')
    def get_pending_ratings(page, limit):
        return paginate(RatingService._queryset().filter(status=Rating.Status.PENDING), page, limit)

    @staticmethod
    @translate_errors('Failed to fetch ratings')
    def get_all_ratings(page, limit, status=None):
        queryset = RatingService._queryset()
        if status:
            if status not in Rating.Status.values:
                raise ValidationError(f"Invalid status: {status}")
            queryset = queryset.filter(status=status)
        return paginate(queryset, page, limit)
