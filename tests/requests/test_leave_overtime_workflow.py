from __future__ import annotations

from datetime import date, time

import pytest

from src.attendance_hub.attendance_hub.common.datetime_utils import hours_between, inclusive_day_span
from src.attendance_hub.attendance_hub.core.enums import RequestKind, RequestStatus
from src.attendance_hub.attendance_hub.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    RequestAlreadyReviewedError,
    ValidationError,
)


def _leave(hub, user=None, **overrides):
    user = user or hub.employee
    fields = dict(leave_type="sick", start_date="2025-06-10", end_date="2025-06-11", reason="flu")
    fields.update(overrides)
    return hub.requests.submit_leave(user.user_id, principal=hub.principal(user), **fields)


def test_sick_leave_is_pending_with_inclusive_day_count(hub):
    req = _leave(hub)

    assert req.status == RequestStatus.PENDING
    assert req.days == 2
    assert req.leave_type == "sick"
    assert req.leave_type_name == "Sick Leave"
    assert req.reviewer_id is None and req.reviewed_at is None


def test_day_span_counts_both_ends():
    assert inclusive_day_span(date(2025, 6, 20), date(2025, 6, 22)) == 3
    assert inclusive_day_span(date(2025, 6, 20), date(2025, 6, 20)) == 1


def test_overtime_hours_rounding():
    assert hours_between(time(18, 0), time(20, 30)) == 2.5
    assert hours_between(time(18, 0), time(18, 20)) == 0.3
    assert hours_between(time(18, 0), time(18, 3)) == 0.1
    assert hours_between(time(20, 0), time(18, 0)) == 0.0


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"end_date": "2025-06-09"}, "End date"),
        ({"reason": "   "}, "Reason"),
        ({"leave_type": "sabbatical"}, "leave type"),
        ({"leave_type": "personal", "end_date": "2025-06-20"}, "at most 7 days"),
        ({"start_date": "10/06/2025"}, "YYYY-MM-DD"),
    ],
)
def test_leave_preconditions(hub, overrides, message):
    with pytest.raises(ValidationError, match=message):
        _leave(hub, **overrides)
    assert hub.requests_repo.leave == {}


def test_inactive_leave_type_is_rejected(hub):
    hub.settings.update_leave_type(hub.principal(hub.admin), "personal", {"is_active": False})
    with pytest.raises(ValidationError):
        _leave(hub, leave_type="personal")


def test_overtime_submission(hub):
    user = hub.employee
    req = hub.requests.submit_overtime(
        user.user_id,
        work_date="2025-06-10",
        start_time="18:00",
        end_time="20:30",
        reason="release",
        principal=hub.principal(user),
    )
    assert req.hours == 2.5
    assert req.status == RequestStatus.PENDING

    with pytest.raises(ValidationError):
        hub.requests.submit_overtime(
            user.user_id,
            work_date="2025-06-10",
            start_time="20:00",
            end_time="18:00",
            reason="backwards",
        )


def test_cannot_submit_for_someone_else(hub):
    with pytest.raises(AuthorizationError):
        hub.requests.submit_leave(
            hub.employee.user_id,
            leave_type="sick",
            start_date="2025-06-10",
            end_date="2025-06-10",
            reason="flu",
            principal=hub.principal(hub.manager),
        )


def test_admin_approves_with_comment(hub):
    req = _leave(hub)
    approved = hub.requests.approve_leave(req.request_id, hub.principal(hub.admin), "get well")

    assert approved.status == RequestStatus.APPROVED
    assert approved.reviewer_id == hub.admin.user_id
    assert approved.review_comment == "get well"
    assert approved.reviewed_at is not None
    assert approved.days == 2


def test_terminal_request_cannot_be_reviewed_again(hub):
    req = _leave(hub)
    first = hub.requests.reject_leave(req.request_id, hub.principal(hub.manager), "not now")

    with pytest.raises(RequestAlreadyReviewedError):
        hub.requests.approve_leave(req.request_id, hub.principal(hub.admin), "override")
    with pytest.raises(RequestAlreadyReviewedError):
        hub.requests.reject_leave(req.request_id, hub.principal(hub.admin), "again")

    after = hub.requests_repo.get_leave(request_id=req.request_id)
    assert after == first
    assert after.reviewer_id == hub.manager.user_id
    assert after.review_comment == "not now"


def test_overtime_review_follows_the_same_rules(hub):
    req = hub.requests.submit_overtime(
        hub.employee.user_id,
        work_date="2025-06-10",
        start_time="18:00",
        end_time="19:00",
        reason="deploy",
    )
    approved = hub.requests.approve_overtime(req.request_id, hub.principal(hub.manager))
    assert approved.status == RequestStatus.APPROVED
    assert approved.review_comment == ""

    with pytest.raises(RequestAlreadyReviewedError):
        hub.requests.reject_overtime(req.request_id, hub.principal(hub.admin))


def test_only_reviewers_of_the_owner_department_may_review(hub):
    req = _leave(hub, user=hub.outsider)

    with pytest.raises(AuthorizationError):
        hub.requests.approve_leave(req.request_id, hub.principal(hub.manager))
    with pytest.raises(AuthorizationError):
        hub.requests.approve_leave(req.request_id, hub.principal(hub.employee))

    assert hub.requests_repo.get_leave(request_id=req.request_id).status == RequestStatus.PENDING


def test_unknown_request(hub):
    with pytest.raises(NotFoundError):
        hub.requests.approve_leave(404, hub.principal(hub.admin))


def test_lists_are_newest_first_and_scoped(hub):
    first = _leave(hub)
    second = _leave(hub, start_date="2025-07-01", end_date="2025-07-01")
    other = _leave(hub, user=hub.outsider)
    hub.requests.approve_leave(first.request_id, hub.principal(hub.admin))

    everything = hub.requests.list_leave()
    assert [r.request_id for r in everything] == [other.request_id, second.request_id, first.request_id]

    pending_mine = hub.requests.list_leave(hub.employee.user_id, "pending")
    assert [r.request_id for r in pending_mine] == [second.request_id]

    team = hub.requests.list_visible(hub.principal(hub.manager), RequestKind.LEAVE)
    assert {r.user_id for r in team} == {hub.employee.user_id}

    own = hub.requests.list_visible(hub.principal(hub.outsider), RequestKind.LEAVE)
    assert [r.request_id for r in own] == [other.request_id]

    with pytest.raises(ValidationError):
        hub.requests.list_leave(status="archived")


def test_manager_cannot_review_own_request(hub):
    req = _leave(hub, user=hub.manager)

    with pytest.raises(AuthorizationError):
        hub.requests.approve_leave(req.request_id, hub.principal(hub.manager))
    assert hub.requests_repo.get_leave(request_id=req.request_id).status == RequestStatus.PENDING

    approved = hub.requests.approve_leave(req.request_id, hub.principal(hub.admin))
    assert approved.status == RequestStatus.APPROVED


def test_listing_returns_every_request_unless_limited(hub):
    for _ in range(205):
        hub.requests_repo.create_leave(
            user_id=hub.employee.user_id,
            leave_type="sick",
            leave_type_name="Sick Leave",
            start_date=date(2025, 6, 10),
            end_date=date(2025, 6, 10),
            days=1,
            reason="flu",
        )
    admin = hub.principal(hub.admin)

    assert len(hub.requests.list_visible(admin, RequestKind.LEAVE)) == 205
    assert len(hub.requests.list_visible(admin, RequestKind.LEAVE, limit=10)) == 10
    with pytest.raises(ValidationError):
        hub.requests.list_visible(admin, RequestKind.LEAVE, limit=0)
