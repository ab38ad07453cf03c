# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest

from release_planner.models.task_ratings import TaskRating
from release_planner.services.ratings import (
    clamp_satisfaction,
    initial_satisfaction,
    rescaled_satisfaction,
    reweighted_satisfaction,
    round_half_up,
    valuation_base,
    valuation_satisfaction,
)


def _rating(*, client_weight: int = 0, client_satisfaction: int = 0) -> TaskRating:
    return TaskRating(
        task_id=uuid4(),
        user_id=uuid4(),
        client_weight=client_weight,
        client_satisfaction=client_satisfaction,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.5, 1), (1.5, 2), (2.4, 2), (2.5, 3), (-0.5, 0), (-1.2, -1)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


def test_clamp_satisfaction_bounds() -> None:
    assert clamp_satisfaction(32) == 5
    assert clamp_satisfaction(-3) == 0
    assert clamp_satisfaction(3.5) == 4


def test_initial_satisfaction_sums_org_weights_and_clamps() -> None:
    # (5 + 3) * 4 = 32, stored clamped.
    assert initial_satisfaction([5, 3], 4) == 5
    assert initial_satisfaction([1], 2) == 2
    assert initial_satisfaction([], 4) == 0


def test_rescaled_satisfaction_is_proportional() -> None:
    assert rescaled_satisfaction(4, 4, 2) == 2
    assert rescaled_satisfaction(3, 2, 1) == 2
    assert rescaled_satisfaction(5, 1, 5) == 5


def test_rescaled_satisfaction_rejects_zero_previous_weight() -> None:
    with pytest.raises(ValueError, match="non-zero"):
        rescaled_satisfaction(3, 0, 2)


def test_reweighted_satisfaction_swaps_member_contribution() -> None:
    # 2 - 1*2 + 3*2 = 6 -> clamped to 5
    assert reweighted_satisfaction(2, 2, previous_weight=1, new_weight=3) == 5
    # 5 - 5*1 + 2*1 = 2
    assert reweighted_satisfaction(5, 1, previous_weight=5, new_weight=2) == 2
    # 1 - 3*1 + 0 = -2 -> clamped to 0
    assert reweighted_satisfaction(1, 1, previous_weight=3, new_weight=0) == 0


def test_reweighted_satisfaction_noop_without_valuation() -> None:
    assert reweighted_satisfaction(3, 0, previous_weight=1, new_weight=5) == 3


def test_valuation_zero_resets_satisfaction() -> None:
    previous = _rating(client_weight=3, client_satisfaction=4)
    assert valuation_satisfaction(previous, 0, [5, 3]) == 0


def test_valuation_without_prior_initializes_from_org_weights() -> None:
    assert valuation_satisfaction(None, 4, [5, 3]) == 5
    assert valuation_satisfaction(None, 1, [2]) == 2


def test_valuation_with_zero_prior_weight_initializes() -> None:
    previous = _rating(client_weight=0, client_satisfaction=0)
    assert valuation_satisfaction(previous, 1, [1, 1]) == 2


def test_valuation_rescales_nonzero_prior() -> None:
    previous = _rating(client_weight=4, client_satisfaction=4)
    assert valuation_satisfaction(previous, 2, [5, 3]) == 2


def test_valuation_same_value_is_idempotent() -> None:
    previous = _rating(client_weight=3, client_satisfaction=4)
    assert valuation_satisfaction(previous, 3, [5, 5]) == 4


def test_valuation_base_prefers_own_valued_rating() -> None:
    own = _rating(client_weight=2, client_satisfaction=3)
    other = _rating(client_weight=4, client_satisfaction=5)
    assert valuation_base(own, [other, own]) is own


def test_valuation_base_falls_back_to_first_valued_task_rating() -> None:
    own = _rating(client_weight=0, client_satisfaction=0)
    effort_only = _rating()
    other = _rating(client_weight=4, client_satisfaction=5)
    assert valuation_base(own, [effort_only, other]) is other
    assert valuation_base(None, [effort_only]) is None
    assert valuation_base(None, []) is None


def test_valuation_scaled_from_another_members_rating() -> None:
    other = _rating(client_weight=4, client_satisfaction=5)
    assert valuation_satisfaction(other, 2, [5, 3]) == 3
