import random
import re
from datetime import date

import pytest

from labdesk.core.errors import OrderValidationError
from labdesk.tools.create_order import OrderRequest, create_order, generate_order_id
from labdesk.tools.order_tracking import build_tracking_steps, current_step_index, make_track_order


def test_tracking_steps_in_progress(repo):
    steps = build_tracking_steps(repo.get_order("O5002"))
    assert [s["id"] for s in steps] == [
        "ordered", "kit_shipped", "kit_delivered", "sample_received", "in_progress", "completed",
    ]
    assert [s["completed"] for s in steps] == [True, True, True, True, True, False]
    assert [s["date"] for s in steps] == [
        "2024-07-20", "2024-07-22", "2024-07-25", "2024-07-28", "2024-07-30", None,
    ]
    assert current_step_index(steps) == 4


def test_tracking_steps_completed_uses_last_updated(repo):
    steps = build_tracking_steps(repo.get_order("O5001"))
    assert all(s["completed"] for s in steps)
    assert steps[-1]["date"] == "2024-07-15"
    assert current_step_index(steps) == 5


def test_tracking_steps_pending(repo):
    order = repo.get_order("O5008")
    steps = build_tracking_steps(order)
    assert [s["completed"] for s in steps] == [True, False, False, False, False, False]
    assert current_step_index(steps) == 0
    assert order["orderedBy"] in steps[0]["description"]


def test_track_order_tool(repo):
    track = make_track_order(repo)
    assert track("O5004")["data"]["current"] == 3
    assert track("O9999") == {"ok": False, "error": "order_not_found"}
    assert track("") == {"ok": False, "error": "missing order_id"}


def test_create_order_appends_to_session(router):
    sesh = router.memory.for_session("s-1")
    created = create_order(
        OrderRequest(patient_id="P1003", test_ids=["4", "6"], phlebotomy_option="mobile", billed_to="patient"),
        router.session_repository("s-1"),
        sesh,
        rng=random.Random(7),
        today=date(2026, 1, 5),
    )
    assert re.fullmatch(r"O\d{4}", created.id)
    assert router.repository.get_order(created.id) is None
    assert created.order["status"] == "Pending"
    assert created.order["orderedDate"] == "2026-01-05"
    assert created.order["testName"] == "Complete Blood Count (CBC), Lipid Panel"
    assert created.total == pytest.approx(84.74)
    assert created.phlebotomy_option == "mobile"
    assert sesh.created_orders() == [created.order]
    assert router.session_repository("s-1").get_order(created.id) == created.order


class _Sequence:
    def __init__(self, values):
        self.values = iter(values)

    def randint(self, a, b):
        return next(self.values)


def test_generate_order_id_skips_taken_ids(repo):
    assert generate_order_id(repo, _Sequence([5001, 5023, 6000])) == "O6000"


@pytest.mark.parametrize("request_kwargs,code", [
    ({"patient_id": "P0000", "test_ids": ["4"]}, "PATIENT_NOT_FOUND"),
    ({"patient_id": "P1001", "test_ids": []}, "NO_TESTS"),
    ({"patient_id": "P1001", "test_ids": ["4", "99"]}, "TEST_NOT_FOUND"),
    ({"patient_id": "P1001", "test_ids": ["4"], "phlebotomy_option": "teleport"}, "INVALID_ORDER"),
    ({"patient_id": "P1001", "test_ids": ["4"], "billed_to": "insurer"}, "INVALID_ORDER"),
])
def test_create_order_validation(repo, memory, request_kwargs, code):
    sesh = memory.for_session("s-1")
    with pytest.raises(OrderValidationError) as exc:
        create_order(OrderRequest(**request_kwargs), repo, sesh)
    assert exc.value.code == code
    assert sesh.created_orders() == []
