"""Fake data generation for schemigrate fields."""

import math
import random
import string
from typing import Any, Callable

from faker import Faker

from schemigrate.core.exceptions import SchemaDefinitionError
from schemigrate.schema.compare import describe_field
from schemigrate.schema.fields import (
    AnyField,
    ArrayField,
    BoolField,
    CustomField,
    DefaultField,
    Field,
    LiteralField,
    NullField,
    NumberField,
    ObjectField,
    OptionalField,
    StringField,
    TupleField,
    UnionField,
)
from schemigrate.validation.validator import validate_field


class SampleGenerator:
    """Generate fake documents that conform to a field.

    Values are chosen from the field's constraints, with name-based
    heuristics for object keys (``email``, ``city``, ``age`` ...) so that
    samples read like real data. Custom fields cannot be sampled.
    """

    def __init__(self, locale: str = "en_US", seed: int | None = None):
        """Initialize the sample generator.

        Args:
            locale: Locale for Faker data generation (e.g., "en_US", "de_DE")
            seed: Seed for reproducible output
        """
        self.locale = locale
        self.fake = Faker(locale)
        self.random = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)

        self._string_heuristics: list[tuple[tuple[str, ...], Callable[[], str]]] = [
            (("email",), self.fake.email),
            (("first_name",), self.fake.first_name),
            (("last_name",), self.fake.last_name),
            (("username",), self.fake.user_name),
            (("name", "full_name"), self.fake.name),
            (("title",), lambda: self.fake.sentence(nb_words=4).rstrip(".")),
            (("description", "content", "body"), self.fake.paragraph),
            (("bio", "summary"), self.fake.sentence),
            (("url", "link"), self.fake.url),
            (("phone", "mobile"), self.fake.phone_number),
            (("address", "street"), lambda: self.fake.street_address()),
            (("city",), self.fake.city),
            (("country",), self.fake.country),
            (("zip", "postal"), self.fake.postcode),
            (("company", "organization"), self.fake.company),
            (("job", "position", "role"), self.fake.job),
            (("date", "day"), lambda: self.fake.date_object().isoformat()),
            (("id", "uuid"), lambda: str(self.fake.uuid4())),
        ]
        self._number_heuristics: list[tuple[tuple[str, ...], tuple[float, float], bool]] = [
            (("age",), (18, 80), True),
            (("price", "cost", "amount"), (1.0, 999.99), False),
            (("quantity", "count", "stock"), (0, 1000), True),
            (("rating", "score"), (0, 5), False),
            (("year",), (1970, 2030), True),
        ]

    def generate(self, field: Field, name: str | None = None) -> Any:
        """Generate one value that conforms to ``field``.

        Args:
            field: The field to generate data for
            name: Object key the value is stored under, used for heuristics

        Returns:
            A JSON-like value accepted by the field

        Raises:
            SchemaDefinitionError: If the field holds a CustomField or a
                pattern no candidate value matches
        """
        if isinstance(field, StringField):
            return self._generate_string(field, name)
        if isinstance(field, NumberField):
            return self._generate_number(field, name)
        if isinstance(field, BoolField):
            return self.random.choice([True, False])
        if isinstance(field, NullField):
            return None
        if isinstance(field, AnyField):
            return self.fake.word()
        if isinstance(field, LiteralField):
            return field.value
        if isinstance(field, ArrayField):
            upper = field.max_items if field.max_items is not None else field.min_items + 3
            count = self.random.randint(field.min_items, max(field.min_items, upper))
            return [self.generate(field.element, name) for _ in range(count)]
        if isinstance(field, TupleField):
            return [self.generate(item, name) for item in field.items]
        if isinstance(field, ObjectField):
            return self._generate_object(field)
        if isinstance(field, OptionalField):
            if self.random.random() < 0.2:
                return None
            return self.generate(field.inner, name)
        if isinstance(field, DefaultField):
            if self.random.random() < 0.2:
                return field.default
            return self.generate(field.inner, name)
        if isinstance(field, UnionField):
            return self.generate(self.random.choice(field.variants), name)
        if isinstance(field, CustomField):
            raise SchemaDefinitionError(
                f"Cannot generate a value for CustomField '{field.name}'",
                "Provide documents for custom fields explicitly.",
            )
        raise SchemaDefinitionError(f"Unknown field type {type(field).__name__}")

    def generate_batch(self, field: Field, count: int = 10) -> list:
        """Generate ``count`` conforming values."""
        return [self.generate(field) for _ in range(count)]

    def _generate_object(self, field: ObjectField) -> dict:
        data = {}
        for key, child in field.fields.items():
            if key not in field.required and self.random.random() < 0.3:
                continue
            data[key] = self.generate(child, key)
        return data

    def _generate_string(self, field: StringField, name: str | None) -> str:
        candidates = []
        if field.format == "email":
            candidates.append(self.fake.email())
        elif field.format == "uuid":
            candidates.append(str(self.fake.uuid4()))
        heuristic = self._string_for_name(name)
        if heuristic is not None:
            candidates.append(heuristic)
        candidates.extend([
            self.fake.word(),
            self.fake.word().capitalize(),
            str(self.random.randint(0, 99999)),
            "".join(self.random.choices(string.ascii_lowercase, k=6)),
        ])

        for candidate in candidates:
            candidate = self._fit_length(candidate, field)
            if not validate_field(field, candidate):
                return candidate
        raise SchemaDefinitionError(
            f"Cannot generate a string for {describe_field(field)}",
            "Provide documents for heavily constrained strings explicitly.",
        )

    def _fit_length(self, text: str, field: StringField) -> str:
        if field.max_len is not None:
            text = text[: field.max_len]
        if field.min_len is not None and len(text) < field.min_len:
            text += "".join(self.random.choices(string.ascii_lowercase, k=field.min_len - len(text)))
        return text

    def _string_for_name(self, name: str | None) -> str | None:
        if not name:
            return None
        name_lower = name.lower()
        for keys, make in self._string_heuristics:
            if any(key == name_lower or (len(key) > 2 and key in name_lower) for key in keys):
                return make()
        return None

    def _generate_number(self, field: NumberField, name: str | None) -> int | float:
        low, high, integer = 0, 100, field.integer_only
        name_lower = (name or "").lower()
        for keys, (h_low, h_high), h_integer in self._number_heuristics:
            if any(key in name_lower for key in keys):
                low, high, integer = h_low, h_high, integer or h_integer
                break

        if field.min is not None:
            low = max(low, field.min)
        if field.max is not None:
            high = min(high, field.max)
        if low > high:
            low = field.min if field.min is not None else high - 100
            high = field.max if field.max is not None else low + 100

        if integer or field.integer_only:
            int_low, int_high = math.ceil(low), math.floor(high)
            if int_low <= int_high:
                return self.random.randint(int_low, int_high)
            if field.integer_only:
                raise SchemaDefinitionError(
                    f"NumberField range {field.min}..{field.max} holds no integer"
                )
        value = round(self.random.uniform(low, high), 2)
        return min(max(value, low), high)

