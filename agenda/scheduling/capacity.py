from dataclasses import dataclass


@dataclass(frozen=True)
class CapacityPolicy:
    """How many active reservations a single slot may hold.

    Lowering ``max_per_slot`` never evicts anything: a slot that already
    holds more reservations than the new limit just reports no room.
    """

    allow_multiple: bool = False
    max_per_slot: int = 1

    @classmethod
    def from_business(cls, business) -> 'CapacityPolicy':
        return cls(
            allow_multiple=bool(business.allow_multiple_appointments),
            max_per_slot=max(1, business.max_appointments_per_slot or 1),
        )

    @property
    def effective_max(self) -> int:
        if not self.allow_multiple:
            return 1
        return max(1, self.max_per_slot)

    def has_room(self, occupied: int) -> bool:
        return occupied < self.effective_max

    def remaining(self, occupied: int) -> int:
        return max(0, self.effective_max - occupied)
