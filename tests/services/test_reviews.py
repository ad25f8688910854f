import pytest

from research_backend.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from research_backend.models.review import Review
from research_backend.models.user import Role
from research_backend.services import assignments, reviews


def test_submitting_twice_updates_the_same_review(db, make_user, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    paper = make_paper()

    first = reviews.submit_review(db, paper.id, reviewer.id, 'Needs more data', ['weak baseline'])
    second = reviews.submit_review(db, paper.id, reviewer.id, 'Much better now', ['solid', ''])

    assert first.id == second.id
    assert db.query(Review).filter(Review.paper_id == paper.id, Review.reviewer_id == reviewer.id).count() == 1
    assert second.comments == 'Much better now'
    assert second.insights == ['solid']


def test_blank_comments_are_rejected(db, make_user, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    paper = make_paper()

    with pytest.raises(ValidationError):
        reviews.submit_review(db, paper.id, reviewer.id, '   ', ['insight'])

    assert db.query(Review).count() == 0


def test_review_for_unknown_paper(db, make_user) -> None:
    reviewer = make_user(Role.REVIEWER)

    with pytest.raises(NotFoundError):
        reviews.submit_review(db, 999, reviewer.id, 'Looks fine')


@pytest.mark.parametrize('status', ['accepted', 'rejected', 'revisions_requested'])
def test_closed_papers_cannot_be_reviewed(db, make_user, make_paper, status: str) -> None:
    reviewer = make_user(Role.REVIEWER)
    paper = make_paper(status=status)

    with pytest.raises(ConflictError):
        reviews.submit_review(db, paper.id, reviewer.id, 'Late review')


def test_mandatory_assignment_blocks_unassigned_reviewer(db, make_user, make_event, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()
    paper = make_paper(event=event)

    with pytest.raises(AuthorizationError):
        reviews.submit_review(db, paper.id, reviewer.id, 'Review', require_assignment=True)

    assignments.assign(db, event.id, reviewer.id, paper.id)
    review = reviews.submit_review(db, paper.id, reviewer.id, 'Review', require_assignment=True)
    assert review.id is not None


def test_reviews_for_paper_include_reviewer(db, make_user, make_paper) -> None:
    first = make_user(Role.REVIEWER, name='Grace')
    second = make_user(Role.REVIEWER, name='Alan')
    paper = make_paper()
    reviews.submit_review(db, paper.id, first.id, 'Good')
    reviews.submit_review(db, paper.id, second.id, 'Fine')

    listed = [reviews.serialize_review(review) for review in reviews.get_reviews_for_paper(db, paper.id)]

    assert [item['reviewer']['name'] for item in listed] == ['Grace', 'Alan']


def test_assigned_queue_flags_reviewed_papers(db, make_user, make_event, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()
    reviewed = make_paper(event=event, title='Reviewed')
    open_paper = make_paper(event=event, title='Open', status='under_review')
    make_paper(event=event, title='Decided', status='accepted')
    assignments.assign(db, event.id, reviewer.id, open_paper.id)
    reviews.submit_review(db, reviewed.id, reviewer.id, 'Done')

    queue = reviews.get_assigned_for_reviewer(db, reviewer.id, require_assignment=False)

    flags = {item['title']: (item['reviewed'], item['assigned']) for item in queue}
    assert flags == {'Reviewed': (True, False), 'Open': (False, True)}


def test_mandatory_queue_only_lists_assigned_papers(db, make_user, make_event, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()
    make_paper(event=event, title='Unassigned')
    assigned = make_paper(event=event, title='Assigned')
    assignments.assign(db, event.id, reviewer.id, assigned.id)

    queue = reviews.get_assigned_for_reviewer(db, reviewer.id, require_assignment=True)

    assert [item['title'] for item in queue] == ['Assigned']


def test_concurrent_first_review_is_retried_as_update(
    db, session_factory, make_user, make_paper, monkeypatch
) -> None:
    reviewer = make_user(Role.REVIEWER)
    paper = make_paper()
    original_find = reviews._find_review
    calls = {'count': 0}

    def find_after_other_session_commits(session, paper_id, reviewer_id):
        calls['count'] += 1
        if calls['count'] == 1:
            other = session_factory()
            try:
                other.add(Review(paper_id=paper_id, reviewer_id=reviewer_id, comments='theirs', insights=[]))
                other.commit()
            finally:
                other.close()
            return None
        return original_find(session, paper_id, reviewer_id)

    monkeypatch.setattr(reviews, '_find_review', find_after_other_session_commits)

    review = reviews.submit_review(db, paper.id, reviewer.id, 'mine', ['x'])

    assert calls['count'] == 2
    assert db.query(Review).filter(Review.paper_id == paper.id, Review.reviewer_id == reviewer.id).count() == 1
    assert review.comments == 'mine'
    assert review.insights == ['x']
