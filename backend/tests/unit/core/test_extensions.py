"""Unit tests for the per-app auth component registry."""

from __future__ import annotations

import atexit
import gc

from authcore.core.config import TestingConfig
from authcore.core.extensions import get_components
from authcore.factory import create_app


def test_each_app_gets_its_own_components() -> None:
    first, second = create_app(TestingConfig), create_app(TestingConfig)

    one, two = get_components(first), get_components(second)

    assert one is not two
    assert one.revocation_store is not two.revocation_store


def test_creating_apps_registers_no_exit_hooks(app, monkeypatch) -> None:
    registered = []
    monkeypatch.setattr(atexit, "register", lambda fn, *a, **kw: registered.append(fn))

    for _ in range(3):
        create_app(TestingConfig)

    assert registered == []


def test_revocation_store_is_closed_with_its_app() -> None:
    app = create_app(TestingConfig)
    store = get_components(app).revocation_store
    store.revoke("tok", 60)
    assert store.is_revoked("tok")

    del app
    gc.collect()

    # close() on the in-process store drops every entry
    assert store.is_revoked("tok") is False


def test_live_app_keeps_its_store_open() -> None:
    keep = create_app(TestingConfig)
    store = get_components(keep).revocation_store
    store.revoke("tok", 60)

    create_app(TestingConfig)
    gc.collect()

    assert store.is_revoked("tok")
