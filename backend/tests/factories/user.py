"""Factory Boy definition for :class:`authcore.models.user.User`."""

from __future__ import annotations

import factory
from werkzeug.security import generate_password_hash

from authcore.core.config import MIN_HASH_ITERATIONS
from authcore.models.user import User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`authcore.models.user.User` instances.

    Pass ``password=...`` to choose the plain-text password; it is hashed at
    the cheapest accepted cost.
    """

    class Meta:
        model = User
        exclude = ("password",)

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Faker("name")
    password = DEFAULT_PASSWORD
    password_hash = factory.LazyAttribute(
        lambda o: generate_password_hash(o.password, method=f"pbkdf2:sha256:{MIN_HASH_ITERATIONS}")
    )
