"""Dispute resolver and review gate tests (service layer)."""
import pytest

from mashriq.errors import Conflict, Forbidden, InvalidArgument, InvalidState, InvalidTransition, NotFound
from mashriq.models.order import OrderStatus, CancelledBy
from mashriq.models.review import Review
from mashriq.services import dispute_service, escrow_service, order_service, rating_service, review_service
from mashriq.services.dispute_service import compute_split
from mashriq.services.order_state_machine import transition
from tests.conftest import actor, make_user

S = OrderStatus


def _disputed(db, parties):
    buyer, seller, _, service = parties
    order = order_service.create_order(db, buyer.user_id, service.service_id)
    transition(db, order.order_id, actor(seller), S.in_progress)
    transition(db, order.order_id, actor(seller), S.delivered)
    return transition(db, order.order_id, actor(buyer), S.disputed, {"dispute_reason": "Wrong file format"})


def _completed(db, parties):
    buyer, seller, _, service = parties
    order = order_service.create_order(db, buyer.user_id, service.service_id)
    transition(db, order.order_id, actor(seller), S.in_progress)
    transition(db, order.order_id, actor(seller), S.delivered)
    return transition(db, order.order_id, actor(buyer), S.completed)


class TestResolveDispute:

    def test_buyer_wins_refunds(self, db, parties):
        buyer, _, admin, _ = parties
        order = _disputed(db, parties)

        order = dispute_service.resolve_dispute(db, order.order_id, actor(admin), "buyer_wins", "Seller agreed")

        assert order.status == S.refunded
        assert order.dispute_resolution == "buyer_wins"
        assert order.cancelled_by == CancelledBy.admin
        assert order.resolved_by == admin.user_id
        assert order.dispute_resolved_at is not None
        assert order.resolution_notes == "Seller agreed"
        assert escrow_service.balance_of(db, buyer.user_id) == 500

    def test_seller_wins_releases(self, db, parties):
        _, seller, admin, _ = parties
        order = _disputed(db, parties)

        order = dispute_service.resolve_dispute(db, order.order_id, actor(admin), "seller_wins")

        assert order.status == S.completed
        assert order.completed_at is not None
        assert escrow_service.balance_of(db, seller.user_id) == 80
        assert escrow_service.balance_of(db, "platform") == 20

    def test_split_then_second_resolution_fails(self, db, parties):
        """Buyer 30, seller 70 on a 100 order; the order cannot be resolved again."""
        buyer, seller, admin, _ = parties
        order = _disputed(db, parties)

        order = dispute_service.resolve_dispute(
            db, order.order_id, actor(admin), "split", seller_amount=70, buyer_amount=30,
        )

        assert order.status == S.completed
        assert order.dispute_resolution == "split:seller=70,buyer=30"
        assert escrow_service.balance_of(db, seller.user_id) == 70
        assert escrow_service.balance_of(db, buyer.user_id) == 430
        assert escrow_service.hold_for(db, order.order_id) is None

        with pytest.raises(InvalidTransition):
            dispute_service.resolve_dispute(db, order.order_id, actor(admin), "buyer_wins")
        assert escrow_service.balance_of(db, buyer.user_id) == 430

    def test_split_by_percent(self, db, parties):
        buyer, seller, admin, _ = parties
        order = _disputed(db, parties)
        order = dispute_service.resolve_dispute(db, order.order_id, actor(admin), "split", seller_percent=65)
        assert escrow_service.balance_of(db, seller.user_id) == 65
        assert escrow_service.balance_of(db, buyer.user_id) == 435

    def test_bad_split_changes_nothing(self, db, parties):
        buyer, seller, admin, _ = parties
        order = _disputed(db, parties)
        with pytest.raises(InvalidArgument):
            dispute_service.resolve_dispute(
                db, order.order_id, actor(admin), "split", seller_amount=70, buyer_amount=20,
            )
        order = order_service.get_order(db, order.order_id)
        assert order.status == S.disputed
        assert order.dispute_resolution is None
        assert escrow_service.hold_for(db, order.order_id).amount == 100

    def test_non_admin_forbidden(self, db, parties):
        """Parties and outsiders are refused with no state change or fund movement."""
        buyer, seller, _, _ = parties
        order = _disputed(db, parties)
        outsider = make_user(db, "Outsider")

        for who in (buyer, seller, outsider):
            with pytest.raises(Forbidden):
                dispute_service.resolve_dispute(db, order.order_id, actor(who), "seller_wins")

        order = order_service.get_order(db, order.order_id)
        assert order.status == S.disputed
        assert escrow_service.hold_for(db, order.order_id).amount == 100
        assert escrow_service.balance_of(db, seller.user_id) == 0

    def test_only_disputed_orders(self, db, parties):
        buyer, _, admin, service = parties
        order = order_service.create_order(db, buyer.user_id, service.service_id)
        with pytest.raises(InvalidTransition):
            dispute_service.resolve_dispute(db, order.order_id, actor(admin), "seller_wins")

    def test_unknown_resolution(self, db, parties):
        admin = parties[2]
        order = _disputed(db, parties)
        with pytest.raises(InvalidArgument):
            dispute_service.resolve_dispute(db, order.order_id, actor(admin), "coin_flip")

    def test_non_admin_is_refused_before_resolution_is_read(self, db, parties):
        buyer = parties[0]
        order = _disputed(db, parties)
        with pytest.raises(Forbidden):
            dispute_service.resolve_dispute(db, order.order_id, actor(buyer), "coin_flip")

    def test_open_disputes_queue(self, db, parties):
        buyer, _, admin, service = parties
        disputed = _disputed(db, parties)
        order_service.create_order(db, buyer.user_id, service.service_id)

        assert [o.order_id for o in dispute_service.list_open_disputes(db)] == [disputed.order_id]
        dispute_service.resolve_dispute(db, disputed.order_id, actor(admin), "seller_wins")
        assert dispute_service.list_open_disputes(db) == []


class TestComputeSplit:

    def test_fixed_amounts(self):
        terms = compute_split(100, seller_amount=100, buyer_amount=0)
        assert (terms.seller_amount, terms.buyer_amount) == (100, 0)

    def test_percent_rounds_half_up(self):
        terms = compute_split(101, seller_percent=50)
        assert (terms.seller_amount, terms.buyer_amount) == (51, 50)

    @pytest.mark.parametrize("kwargs", [
        {},
        {"seller_amount": 50},
        {"seller_amount": -1, "buyer_amount": 101},
        {"seller_percent": 101},
        {"seller_percent": 50, "seller_amount": 50, "buyer_amount": 50},
    ])
    def test_rejected_inputs(self, kwargs):
        with pytest.raises(InvalidArgument):
            compute_split(100, **kwargs)


class TestReviewGate:

    def test_review_completed_order(self, db, parties):
        buyer, seller, _, service = parties
        order = _completed(db, parties)

        review = review_service.create_review(db, order.order_id, buyer.user_id, 5, "Great work")

        assert review.rating == 5
        assert review.seller_id == seller.user_id
        assert review.service_id == service.service_id
        assert review_service.get_review_for_order(db, order.order_id).review_id == review.review_id

    def test_second_review_conflicts(self, db, parties):
        buyer = parties[0]
        order = _completed(db, parties)
        review_service.create_review(db, order.order_id, buyer.user_id, 4)
        for rating in (1, 5):
            with pytest.raises(Conflict):
                review_service.create_review(db, order.order_id, buyer.user_id, rating)
        assert db.query(Review).filter(Review.order_id == order.order_id).count() == 1

    def test_only_buyer(self, db, parties):
        _, seller, _, _ = parties
        order = _completed(db, parties)
        with pytest.raises(Forbidden):
            review_service.create_review(db, order.order_id, seller.user_id, 5)

    def test_not_completed(self, db, parties):
        buyer = parties[0]
        order = _disputed(db, parties)
        with pytest.raises(InvalidState):
            review_service.create_review(db, order.order_id, buyer.user_id, 5)

    @pytest.mark.parametrize("rating", [0, 6, -1, 2.5, "5", True])
    def test_rating_range(self, db, parties, rating):
        buyer = parties[0]
        order = _completed(db, parties)
        with pytest.raises(InvalidArgument):
            review_service.create_review(db, order.order_id, buyer.user_id, rating)

    def test_missing_order(self, db, parties):
        with pytest.raises(NotFound):
            review_service.create_review(db, "nope", parties[0].user_id, 5)

    def test_ratings_are_derived_on_read(self, db, parties):
        buyer, seller, _, service = parties
        first = _completed(db, parties)
        second = _completed(db, parties)
        review_service.create_review(db, first.order_id, buyer.user_id, 5)
        review_service.create_review(db, second.order_id, buyer.user_id, 4)

        summary = rating_service.seller_rating(db, seller.user_id)
        assert summary.average_rating == 4.5
        assert summary.reviews_count == 2
        assert rating_service.service_rating(db, service.service_id).reviews_count == 2

        stats = rating_service.seller_stats(db, seller.user_id)
        assert stats.completed_orders == 2
        assert stats.cancelled_orders == 0

    def test_recompute_failure_does_not_fail_review(self, db, parties, monkeypatch):
        buyer = parties[0]
        order = _completed(db, parties)

        def _boom(*args, **kwargs):
            raise RuntimeError("aggregator down")

        monkeypatch.setattr(rating_service, "recompute", _boom)
        review = review_service.create_review(db, order.order_id, buyer.user_id, 3)
        assert review.rating == 3

    def test_list_for_seller(self, db, parties):
        buyer, seller, _, _ = parties
        first = _completed(db, parties)
        second = _completed(db, parties)
        review_service.create_review(db, first.order_id, buyer.user_id, 2)
        review_service.create_review(db, second.order_id, buyer.user_id, 4)

        reviews = review_service.list_for_seller(db, seller.user_id)
        assert [r.order_id for r in reviews] == [second.order_id, first.order_id]
        assert len(review_service.list_for_seller(db, seller.user_id, limit=1)) == 1
        assert review_service.list_for_seller(db, buyer.user_id) == []
