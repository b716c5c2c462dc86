"""
In-memory subscription item used outside the database layer.

The queue and benefit functions only read attributes, so ORM rows and
``ItemSnapshot`` instances can be passed to them interchangeably.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from gymsubs.utils.dates import parse_datetime

from .benefits import coerce_cost
from .errors import InvariantViolation
from .status import ItemStatus


@dataclass
class ItemSnapshot:
    """
    One purchased membership period, detached from any session.

    Attributes:
        id: Identifier, unique within the subscription
        name (str): Membership name copied at purchase time
        cost: Price as number or decimal string, as received
        max_classes_assistance (int): Class visits granted
        max_gym_assistance (int): Gym visits granted
        duration_months (int): Length of the period in months
        purchase_date (datetime): When the item was bought
        start_date (datetime): Start of the validity window
        end_date (datetime): End of the validity window
        status (str): One of the ItemStatus values
    """
    id: Any
    name: str
    cost: Any
    max_classes_assistance: int
    max_gym_assistance: int
    duration_months: int
    purchase_date: datetime
    start_date: datetime
    end_date: datetime
    status: str = ItemStatus.PENDING.value
    cancelled_at: Optional[datetime] = field(default=None)

    def __post_init__(self):
        if isinstance(self.status, ItemStatus):
            self.status = self.status.value
        if not isinstance(self.start_date, datetime) or not isinstance(self.end_date, datetime):
            raise ValueError(f"Item {self.id}: start_date and end_date are required")
        if self.end_date <= self.start_date:
            raise ValueError(f"Item {self.id}: end_date must be after start_date")

    @classmethod
    def from_dict(cls, data):
        """
        Build a snapshot from a JSON-style mapping.

        Accepts snake_case or camelCase keys; dates may be ISO strings.
        Nothing numeric is defaulted: a missing or malformed cost, count or
        date is a data fault.

        Raises:
            InvariantViolation: If a field is missing or cannot be read
        """
        item_id = data.get('id')

        def fault(message):
            return InvariantViolation(f"Item {item_id}: {message}", item_ids=[item_id])

        def pick(*keys):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            raise fault(f"missing {keys[0]}")

        def count(*keys):
            value = pick(*keys)
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                raise fault(f"{keys[0]} must be a whole number, got {value!r}")
            try:
                return int(value)
            except (TypeError, ValueError):
                raise fault(f"{keys[0]} must be a whole number, got {value!r}") from None

        def when(*keys):
            value = pick(*keys)
            try:
                return parse_datetime(value)
            except (TypeError, ValueError):
                raise fault(f"{keys[0]} is not a date: {value!r}") from None

        cost = pick('cost')
        coerce_cost(cost, item_id)

        start = when('start_date', 'startDate', 'start')
        purchase_keys = ('purchase_date', 'purchaseDate')
        purchase = when(*purchase_keys) if any(data.get(k) is not None for k in purchase_keys) else start

        try:
            return cls(
                id=item_id,
                name=pick('name'),
                cost=cost,
                max_classes_assistance=count('max_classes_assistance', 'maxClassesAssistance', 'classes'),
                max_gym_assistance=count('max_gym_assistance', 'maxGymAssistance', 'gym'),
                duration_months=count('duration_months', 'durationMonths'),
                purchase_date=purchase,
                start_date=start,
                end_date=when('end_date', 'endDate', 'end'),
                status=str(data.get('status') or ItemStatus.PENDING.value).lower(),
            )
        except ValueError as e:
            raise InvariantViolation(str(e), item_ids=[item_id]) from None
