import pytest

from research_backend.core.exceptions import DuplicateAssignmentError, NotFoundError, ValidationError
from research_backend.models.assignment import Assignment
from research_backend.models.user import Role
from research_backend.services import assignments


def test_assign_records_reviewer_for_paper(db, make_user, make_event, make_paper) -> None:
    coordinator = make_user(Role.COORDINATOR)
    reviewer = make_user(Role.REVIEWER)
    event = make_event(creator=coordinator)
    paper = make_paper(event=event)

    record = assignments.assign(db, event.id, reviewer.id, paper.id, assigned_by=coordinator.id)

    assert record.id is not None
    assert record.assigned_at is not None
    assert assignments.is_assigned(db, paper.id, reviewer.id)
    assert not assignments.is_assigned(db, paper.id, coordinator.id)


def test_assign_twice_is_a_duplicate(db, make_user, make_event, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()
    paper = make_paper(event=event)
    assignments.assign(db, event.id, reviewer.id, paper.id)

    with pytest.raises(DuplicateAssignmentError) as exception_info:
        assignments.assign(db, event.id, reviewer.id, paper.id)

    assert exception_info.value.status_code == 409
    assert db.query(Assignment).count() == 1


def test_assign_rejects_paper_from_another_event(db, make_user, make_event, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event('Event A')
    other_event = make_event('Event B')
    paper = make_paper(event=other_event)

    with pytest.raises(NotFoundError):
        assignments.assign(db, event.id, reviewer.id, paper.id)


def test_assign_requires_reviewer_role(db, make_user, make_event, make_paper) -> None:
    author = make_user(Role.AUTHOR)
    event = make_event()
    paper = make_paper(event=event)

    with pytest.raises(NotFoundError) as exception_info:
        assignments.assign(db, event.id, author.id, paper.id)

    assert exception_info.value.message == 'Reviewer not found'


def test_assign_rejects_unknown_event(db, make_user, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    paper = make_paper()

    with pytest.raises(NotFoundError):
        assignments.assign(db, 404, reviewer.id, paper.id)


def test_assign_many_requires_papers(db, make_user, make_event) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()

    with pytest.raises(ValidationError):
        assignments.assign_many(db, event.id, reviewer.id, [])


def test_assign_many_is_all_or_nothing(db, make_user, make_event, make_paper) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()
    paper = make_paper(event=event)

    with pytest.raises(NotFoundError):
        assignments.assign_many(db, event.id, reviewer.id, [paper.id, 12345])

    assert db.query(Assignment).count() == 0


def test_list_assignments_is_ordered_and_joined(db, make_user, make_event, make_paper) -> None:
    first_reviewer = make_user(Role.REVIEWER, name='Grace')
    second_reviewer = make_user(Role.REVIEWER, name='Alan')
    event = make_event()
    paper = make_paper(event=event, title='Quantum Sorting', track='Theory')
    other_paper = make_paper(event=event, title='Mesh Networks', track='IoT')

    assignments.assign(db, event.id, first_reviewer.id, paper.id)
    assignments.assign(db, event.id, second_reviewer.id, other_paper.id)

    listed = [assignments.serialize_assignment(record) for record in assignments.list_assignments(db, event.id)]

    assert [item['reviewer']['name'] for item in listed] == ['Grace', 'Alan']
    assert listed[0]['paper'] == {'id': paper.id, 'title': 'Quantum Sorting', 'track': 'Theory'}
    assert listed[1]['paper']['track'] == 'IoT'


def test_assignment_lost_to_concurrent_insert_is_a_duplicate(
    db, session_factory, make_user, make_event, make_paper, monkeypatch
) -> None:
    reviewer = make_user(Role.REVIEWER)
    event = make_event()
    paper = make_paper(event=event)
    original_stage = assignments._stage_assignment

    def stage_then_other_session_commits(session, event_id, reviewer_user, paper_id, assigned_by):
        staged = original_stage(session, event_id, reviewer_user, paper_id, assigned_by)
        other = session_factory()
        try:
            other.add(Assignment(event_id=event_id, paper_id=paper_id, reviewer_id=reviewer_user.id))
            other.commit()
        finally:
            other.close()
        return staged

    monkeypatch.setattr(assignments, '_stage_assignment', stage_then_other_session_commits)

    with pytest.raises(DuplicateAssignmentError) as exception_info:
        assignments.assign(db, event.id, reviewer.id, paper.id)

    assert exception_info.value.status_code == 409
    assert db.query(Assignment).count() == 1
