from __future__ import annotations

from typing import Callable, Protocol

from tabletalk.domain.order.entities import OrderStatus, OrderTransitionError


class TransitionPolicy(Protocol):
    name: str

    def check(self, current: OrderStatus, requested: OrderStatus) -> None: ...


class PermissiveTransitionPolicy:
    """Staff may move an order to any status, backwards included."""

    name = "permissive"

    def check(self, current: OrderStatus, requested: OrderStatus) -> None:
        return None


class ForwardOnlyTransitionPolicy:
    name = "forward_only"

    def check(self, current: OrderStatus, requested: OrderStatus) -> None:
        if requested.rank < current.rank:
            raise OrderTransitionError(
                f"cannot move order from status={current.value} to status={requested.value}"
            )


_POLICIES: dict[str, Callable[[], TransitionPolicy]] = {
    PermissiveTransitionPolicy.name: PermissiveTransitionPolicy,
    ForwardOnlyTransitionPolicy.name: ForwardOnlyTransitionPolicy,
}


def transition_policy_for(name: str) -> TransitionPolicy:
    try:
        return _POLICIES[name.strip().lower()]()
    except KeyError as exc:
        raise ValueError(f"unknown transition policy: {name}") from exc
