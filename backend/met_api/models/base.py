"""
MET API — Entity Base Model
=============================

What:  Immutable value-object base shared by every domain entity.
Why:   One place for the JSON round trip (camelCase on the wire,
       snake_case in Python), field-level validation and the metadata the
       generic repositories need (sort key, date key, unique key, owner).
How:   Entities are frozen Pydantic models. `from_json` validates raw
       request/file data and raises InvalidInputError listing every failed
       field; `to_json` produces the exact shape `from_json` accepts.

Field typing rules:
    - strings must be strings (no coercion from numbers)
    - numbers must be int or float, never bool
    - booleans must be bool
    - dates are ISO-8601 strings; naive values are read in
      settings.default_timezone
"""

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Dict, List, Mapping, Optional, Union
from zoneinfo import ZoneInfo

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    PlainSerializer,
    StrictStr,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from met_api.config import settings
from met_api.exceptions import FieldError, InvalidInputError

# Fixed-width UTC form used for ordering and date-range comparisons
SORTABLE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def parse_datetime(value: Any) -> datetime:
    """Accepts an ISO-8601 string (or a datetime) and returns an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value)
    else:
        raise ValueError("expected an ISO-8601 date string")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(settings.default_timezone))
    return parsed


def sortable_date(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(SORTABLE_DATE_FORMAT)


def _require_number(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("expected a number")
    return value


IsoDateTime = Annotated[
    datetime,
    BeforeValidator(parse_datetime),
    PlainSerializer(lambda d: d.isoformat(), return_type=str),
]

Number = Annotated[Union[int, float], BeforeValidator(_require_number)]


class Entity(BaseModel):
    """
    Base class for all persisted entities.

    Class variables describe how repositories treat the type:
        resource_name:   singular JSON key ("user")
        plural_name:     list JSON key ("users")
        sort_field:      Python attribute used for ordering
        sort_descending: newest/largest first when True
        date_field:      attribute matched by start/end date queries
        unique_field:    attribute that must be unique per repository
        owner_field:     JSON key of the owning foreign key
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    resource_name: ClassVar[str] = "entity"
    plural_name: ClassVar[str] = "entities"
    sort_field: ClassVar[str] = "id"
    sort_descending: ClassVar[bool] = False
    date_field: ClassVar[Optional[str]] = None
    unique_field: ClassVar[Optional[str]] = None
    owner_field: ClassVar[Optional[str]] = None

    id: StrictStr

    # ── JSON round trip ───────────────────────────────────────────────────

    @classmethod
    def validate_json(cls, data: Any) -> List[FieldError]:
        """
        Lists every invalid field of `data` (JSON key names).

        Returns [FieldError("root")] when `data` is not an object, and an
        empty list when `from_json(data)` would succeed.
        """
        if not isinstance(data, Mapping):
            return [FieldError("root", "expected an object")]
        try:
            cls.model_validate(data)
        except ValidationError as e:
            return cls._field_errors(e)
        return []

    @classmethod
    def from_json(cls, data: Any):
        """Builds an entity or raises InvalidInputError naming all bad fields."""
        if not isinstance(data, Mapping):
            raise InvalidInputError(
                message=f"Invalid {cls.resource_name}",
                field_errors=[FieldError("root", "expected an object")],
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidInputError(
                message=f"Invalid {cls.resource_name}",
                field_errors=cls._field_errors(e),
            ) from e

    @staticmethod
    def _field_errors(error: ValidationError) -> List[FieldError]:
        errors: List[FieldError] = []
        seen = set()
        for err in error.errors():
            field = str(err["loc"][0]) if err["loc"] else "root"
            if field in seen:
                continue
            seen.add(field)
            errors.append(FieldError(field, err["msg"]))
        return errors

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    # ── Copies ────────────────────────────────────────────────────────────

    def with_id(self, entity_id: str):
        """Same entity under a new id (used when a repository mints one)."""
        return self.copy_with(id=entity_id)

    def copy_with(self, **changes: Any):
        """Revalidated copy with the given attributes (snake_case) replaced."""
        data = self.model_dump()
        data.update(changes)
        try:
            return type(self).model_validate(data)
        except ValidationError as e:
            raise InvalidInputError(
                message=f"Invalid {self.resource_name}",
                field_errors=self._field_errors(e),
            ) from e

    # ── Repository metadata ───────────────────────────────────────────────

    def sort_value(self) -> str:
        value = getattr(self, self.sort_field)
        if isinstance(value, datetime):
            return sortable_date(value)
        return str(value)

    def date_value(self) -> Optional[datetime]:
        if self.date_field is None:
            return None
        return getattr(self, self.date_field)

    def unique_value(self) -> Optional[str]:
        if self.unique_field is None:
            return None
        return str(getattr(self, self.unique_field))

    def matches(
        self,
        filters: Mapping[str, Any],
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> bool:
        """Equality on JSON keys plus an inclusive date window."""
        if filters:
            data = self.to_json()
            for key, expected in filters.items():
                if data.get(key) != expected:
                    return False

        if start_date is not None or end_date is not None:
            value = self.date_value()
            if value is None:
                return False
            if start_date is not None and value < start_date:
                return False
            if end_date is not None and value > end_date:
                return False

        return True
