"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import uim

    assert uim.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from uim.cli import main

    assert callable(main)


def test_lazy_import_from_uim() -> None:
    import uim

    assert uim.BuildDriver is not None
    assert uim.BuildFlags is not None
    assert uim.Project is not None


def test_platform_registry() -> None:
    from uim.platforms import PLATFORMS

    assert set(PLATFORMS) == {"alexa", "google"}
